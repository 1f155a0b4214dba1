"""Release version of carbonlint, with a fingerprint of the installed sources."""

import hashlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class Version:
    """Semantic version plus the source hash and release date.

    The hash lets two installs of the same version be told apart when one
    of them has local edits.
    """

    major: int
    minor: int
    patch: int
    hash: str
    date: datetime

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def semver(self) -> tuple[int, int, int]:
        """Return (major, minor, patch)."""
        return (self.major, self.minor, self.patch)

    def hash_short(self, length: int = 8) -> str:
        return self.hash[:length]

    def date_string(self, fmt: str = "%Y-%m-%d") -> str:
        return self.date.strftime(fmt)

    def full_version(self) -> str:
        """Return e.g. ``0.3.0 (hash: 1a2b3c4d, date: 2026-10-19)``."""
        return f"{self} (hash: {self.hash_short()}, date: {self.date_string()})"


def source_hash(package_dir: Path = _PACKAGE_DIR) -> str:
    """SHA-256 over every ``.py`` file in the package, in path order."""
    hasher = hashlib.sha256()
    for path in sorted(package_dir.rglob("*.py")):
        if "__pycache__" in path.parts:
            continue
        hasher.update(path.relative_to(package_dir).as_posix().encode())
        hasher.update(path.read_bytes())
    return hasher.hexdigest()


CARBONLINT_VERSION = Version(
    major=0,
    minor=3,
    patch=0,
    hash=source_hash(),
    date=datetime(2026, 10, 19),
)
