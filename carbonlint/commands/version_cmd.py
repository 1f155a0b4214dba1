"""Version command implementation."""

from carbonlint.version import CARBONLINT_VERSION


def run_version(verbose: bool = False) -> None:
    """Print the version, with hash and release date when ``verbose``."""
    if not verbose:
        print(f"carbonlint {CARBONLINT_VERSION}")
        return

    print(f"carbonlint {CARBONLINT_VERSION.full_version()}")
    print(f"\n  Release date:  {CARBONLINT_VERSION.date_string()}")
    print(f"  Source hash:   {CARBONLINT_VERSION.hash}")
