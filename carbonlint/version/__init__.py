from carbonlint.version.carbonlint_version import CARBONLINT_VERSION, Version

__all__ = ["CARBONLINT_VERSION", "Version"]
