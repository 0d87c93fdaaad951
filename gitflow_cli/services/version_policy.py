"""Version policy: parse, validate and increment semantic versions."""

import json
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from gitflow_cli.exceptions import InvalidVersionError
from gitflow_cli.logging_config import get_logger
from gitflow_cli.models.version import RcTag, SemVer

logger = get_logger(__name__)

_VERSION_RE = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+)")

FIELDS = ("patch", "minor", "major")

FIELD_DESCRIPTIONS = {
    "patch": "bug fixes",
    "minor": "new features",
    "major": "breaking changes",
}

ZERO = SemVer(0, 0, 0)


def validate(value: str) -> bool:
    """True iff value is exactly three dot-separated non-negative integers."""
    return bool(value) and _VERSION_RE.fullmatch(value) is not None


def parse(value: str) -> SemVer:
    """Parse MAJOR.MINOR.PATCH.

    Raises:
        InvalidVersionError: If value is not in that exact form
    """
    match = _VERSION_RE.fullmatch(value or "")
    if match is None:
        raise InvalidVersionError(value)
    return SemVer(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def increment(version: Union[SemVer, str], field: str) -> SemVer:
    """Bump one field of a version, resetting the lower fields to zero.

    Args:
        version: Version to bump (SemVer or an already validated string)
        field: One of "patch", "minor", "major"

    Returns:
        The incremented version
    """
    if isinstance(version, str):
        version = parse(version)

    if field == "patch":
        return SemVer(version.major, version.minor, version.patch + 1)
    if field == "minor":
        return SemVer(version.major, version.minor + 1, 0)
    if field == "major":
        return SemVer(version.major + 1, 0, 0)
    raise ValueError(f"field must be one of {FIELDS}, got '{field}'")


def suggestions(current: SemVer) -> List[Tuple[str, SemVer]]:
    """Patch, minor and major increments of the current version, in that order."""
    return [(field, increment(current, field)) for field in FIELDS]


def current_version(manifest: Union[str, Path]) -> SemVer:
    """Read the version field of a package manifest.

    Returns 0.0.0 when the manifest is missing, unreadable, or has no valid
    version; a missing manifest is never an error here.
    """
    path = Path(manifest)
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug(f"No manifest at {path}, assuming {ZERO}")
        return ZERO
    except (OSError, ValueError) as e:
        logger.debug(f"Could not read {path}: {e}")
        return ZERO

    value = data.get("version") if isinstance(data, dict) else None
    if not isinstance(value, str) or not validate(value):
        logger.debug(f"Manifest {path} has no usable version ({value!r})")
        return ZERO
    return parse(value)


def rc_tag_glob(version: SemVer) -> str:
    """Glob matching every RC tag of a version (for `git tag -l`)."""
    return f"{version.tag}-rc.*"


def parse_rc_number(tag: str, version: SemVer) -> Optional[int]:
    """RC number of tag if it is an RC tag of version, else None."""
    prefix = f"{version.tag}-rc."
    if not tag.startswith(prefix):
        return None
    number = tag[len(prefix):]
    if not number.isdigit() or not number.isascii():
        return None
    return int(number)


def next_rc_number(tags: Iterable[str], version: SemVer) -> int:
    """One more than the highest existing RC number of version (1 if none)."""
    numbers = [n for n in (parse_rc_number(tag, version) for tag in tags) if n is not None]
    return max(numbers, default=0) + 1


def rc_tag(version: SemVer, number: int) -> str:
    """Render an RC tag name."""
    return str(RcTag(version, number))
