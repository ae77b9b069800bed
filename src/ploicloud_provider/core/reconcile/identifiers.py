"""
Import identifiers.

Top-level resources import by a single decimal id (``"42"``); child
resources import by ``"<parent_id>.<child_id>"``. Keyed children such as
secrets use ``"<parent_id>.<key>"`` where the key is free text.

Parse failures raise ``ImportIdError`` naming the segment at fault.
"""

import re
from typing import Sequence, Tuple

from ploicloud_provider.core.errors import ImportIdError

_DECIMAL = re.compile(r"[0-9]+")
SEPARATOR = "."


def _check_non_negative(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")


def _parse_segment(import_id: str, segment: str, name: str) -> int:
    if not segment:
        raise ImportIdError(
            f"invalid import ID {import_id!r}: segment '{name}' is empty",
            import_id=import_id,
            segment=name,
        )
    if not _DECIMAL.fullmatch(segment):
        raise ImportIdError(
            f"invalid import ID {import_id!r}: segment '{name}' must be a non-negative integer, "
            f"got {segment!r}",
            import_id=import_id,
            segment=name,
        )
    return int(segment)


def _expected_format(names: Sequence[str]) -> str:
    return SEPARATOR.join(f"<{name}>" for name in names)


def format_composite_id(parent_id: int, child_id: int) -> str:
    """Build ``"<parent_id>.<child_id>"``.

    Raises:
        ValueError: If either id is not a non-negative integer
    """
    _check_non_negative(parent_id, "parent_id")
    _check_non_negative(child_id, "child_id")
    return f"{parent_id}{SEPARATOR}{child_id}"


def parse_composite_id(
    import_id: str,
    names: Tuple[str, str] = ("parent_id", "child_id"),
) -> Tuple[int, int]:
    """Split ``"<parent>.<child>"`` into two non-negative integers.

    Example:
        >>> parse_composite_id("12.345")
        (12, 345)
    """
    segments = import_id.split(SEPARATOR)
    if len(segments) != 2:
        raise ImportIdError(
            f"invalid import ID {import_id!r}: expected format '{_expected_format(names)}' "
            f"with exactly 2 segments, got {len(segments)}",
            import_id=import_id,
        )
    parent = _parse_segment(import_id, segments[0], names[0])
    child = _parse_segment(import_id, segments[1], names[1])
    return parent, child


def parse_single_id(import_id: str, name: str = "id") -> int:
    """Parse a top-level import id (one decimal segment)."""
    if SEPARATOR in import_id:
        raise ImportIdError(
            f"invalid import ID {import_id!r}: expected format '<{name}>' with exactly 1 segment, "
            f"got {len(import_id.split(SEPARATOR))}",
            import_id=import_id,
        )
    return _parse_segment(import_id, import_id, name)


def split_keyed_id(
    import_id: str,
    names: Tuple[str, str] = ("parent_id", "key"),
) -> Tuple[int, str]:
    """Split ``"<parent>.<key>"``; the key is everything after the first dot."""
    parent, sep, key = import_id.partition(SEPARATOR)
    if not sep:
        raise ImportIdError(
            f"invalid import ID {import_id!r}: expected format '{_expected_format(names)}'",
            import_id=import_id,
        )
    if not key:
        raise ImportIdError(
            f"invalid import ID {import_id!r}: segment '{names[1]}' is empty",
            import_id=import_id,
            segment=names[1],
        )
    return _parse_segment(import_id, parent, names[0]), key
