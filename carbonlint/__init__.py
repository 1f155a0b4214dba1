"""CarbonLint - Energy and carbon footprint estimation for workloads."""

from carbonlint.version.carbonlint_version import CARBONLINT_VERSION, Version

__version__ = str(CARBONLINT_VERSION)
__version_info__ = CARBONLINT_VERSION

__all__ = [
    "CARBONLINT_VERSION",
    "Version",
    "__version__",
    "__version_info__",
]
