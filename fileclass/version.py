"""Schema version classification.

Schemas written before the current structural format carry no version, a
bare integer, or a major version below 2. Migration tooling decides what to
do with them; this module only says which is which.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

CURRENT_MAJOR = 2
VERSION_PATTERN = re.compile(r"^\s*(\d+)\.(\d+)\s*$")


class VersionStatus(str, Enum):
    ABSENT = "absent"
    LEGACY = "legacy"
    CURRENT = "current"


@dataclass(frozen=True)
class VersionClass:
    status: VersionStatus
    major: int | None = None  # None when absent or unparseable

    @property
    def is_legacy(self) -> bool:
        """Absent versions count as legacy."""
        return self.status is not VersionStatus.CURRENT


def is_valid_version(version: object) -> bool:
    return version is not None and VERSION_PATTERN.match(str(version)) is not None


def classify(version: object) -> VersionClass:
    """Classify a schema version string.

    Examples:
        classify("1.3") -> legacy, major 1
        classify("2.0") -> current
        classify(None) -> absent
        classify("abc") -> legacy, unknown major
    """
    if version is None or str(version).strip() == "":
        return VersionClass(VersionStatus.ABSENT)

    match = VERSION_PATTERN.match(str(version))
    if not match:
        # v1 schemas used a single integer
        return VersionClass(VersionStatus.LEGACY)

    major = int(match.group(1))
    if major < CURRENT_MAJOR:
        return VersionClass(VersionStatus.LEGACY, major)
    return VersionClass(VersionStatus.CURRENT, major)


def bump_version(version: object) -> str:
    """Return the version a schema gets after one more mutation."""
    if version is None:
        return f"{CURRENT_MAJOR}.0"
    text = str(version).strip()
    match = VERSION_PATTERN.match(text)
    if match:
        return f"{match.group(1)}.{int(match.group(2)) + 1}"
    if text.isdigit():
        return f"{int(text)}.1"
    return f"{CURRENT_MAJOR}.0"


def _version_tuple(value: str) -> tuple[int, ...]:
    parts = []
    for part in str(value).split("."):
        digits = re.match(r"\d+", part)
        parts.append(int(digits.group(0)) if digits else 0)
    return tuple(parts)


def needs_migration(version: object, app_version: str, threshold: str = "0.6.0") -> bool:
    """True when a legacy schema meets an application older than `threshold`."""
    if not classify(version).is_legacy:
        return False
    return _version_tuple(app_version) < _version_tuple(threshold)
