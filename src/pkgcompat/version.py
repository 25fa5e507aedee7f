"""Version vectors: parsing, formatting and ordering."""

import logging
import re
from collections.abc import Sequence
from itertools import zip_longest
from typing import Any, TypeAlias

from pkgcompat.errors import UnrecognizedFormat

logger = logging.getLogger(__name__)

Version: TypeAlias = tuple[int, ...]

_VERSION_STRING_RE = re.compile(r"^\d+(?:\.\d+)*$")


def _is_component(value: Any) -> bool:
    # bool is an int subclass but never a version component
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_version_vector(raw: Any) -> bool:
    """Return True if raw is a non-empty sequence of non-negative ints."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        return False
    return len(raw) > 0 and all(_is_component(c) for c in raw)


def parse_version(raw: Any) -> Version:
    """Normalize a raw version into a version vector.

    Args:
        raw: A sequence of non-negative ints, a single non-negative int, or a
            dotted string of decimal integers such as ``"1.2.0"``.

    Returns:
        The version as a tuple of ints.

    Raises:
        UnrecognizedFormat: If raw is empty, negative or not numeric.
    """
    if isinstance(raw, str):
        text = raw.strip()
        if not _VERSION_STRING_RE.match(text):
            raise UnrecognizedFormat(raw, "invalid version string")
        return tuple(int(part) for part in text.split("."))
    if _is_component(raw):
        return (raw,)
    if is_version_vector(raw):
        return tuple(raw)
    raise UnrecognizedFormat(raw, "invalid version vector")


def version_to_string(version: Sequence[int]) -> str:
    """Format a version vector as a dotted string."""
    return ".".join(str(c) for c in version)


def compare_versions(a: Sequence[int], b: Sequence[int]) -> int:
    """Compare two version vectors, treating missing trailing components as 0.

    Returns:
        -1 if a < b, 0 if they are equal, 1 if a > b.
    """
    for left, right in zip_longest(a, b, fillvalue=0):
        if left != right:
            return -1 if left < right else 1
    return 0


def version_less(a: Sequence[int], b: Sequence[int]) -> bool:
    """Return True if version a is strictly lower than version b."""
    return compare_versions(a, b) < 0


def version_key(version: Sequence[int]) -> Version:
    """Sort key agreeing with compare_versions: trailing zeros are dropped."""
    key = list(version)
    while key and key[-1] == 0:
        key.pop()
    return tuple(key)
