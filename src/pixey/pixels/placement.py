"""Placement primitive shared by the single and bulk placement paths.

Both paths validate coordinates against the same explicit board size and
normalize colors the same way; they differ only in how they treat an invalid
entry (the single path rejects, the bulk path drops).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pixey.errors import InvalidInput

NEW_PIXEL_COST = 1
OVERWRITE_COST = 2

_COLOR_RE = re.compile(r"^#[0-9A-F]{6}$")


@dataclass(frozen=True)
class PixelWrite:
    x: int
    y: int
    color: str


def normalize_color(value: Any) -> str | None:  # noqa: ANN401
    """Uppercase ``#RRGGBB``; the leading ``#`` is optional on input.

    Returns None for anything that is not a six-digit hex color.
    """
    if not isinstance(value, str):
        return None
    color = value.strip().upper()
    if not color.startswith("#"):
        color = f"#{color}"
    if not _COLOR_RE.match(color):
        return None
    return color


def _is_coordinate(value: Any) -> bool:  # noqa: ANN401
    return isinstance(value, int) and not isinstance(value, bool)


def in_bounds(x: int, y: int, width: int, height: int) -> bool:
    """``0 <= x < width`` and ``0 <= y < height``."""
    return 0 <= x < width and 0 <= y < height


def validate_pixel(x: Any, y: Any, color: Any, width: int, height: int) -> PixelWrite:  # noqa: ANN401
    """Validate one placement request.

    Raises:
        InvalidInput: On non-integer or out-of-board coordinates, or a malformed color.
    """
    if not _is_coordinate(x) or not _is_coordinate(y):
        raise InvalidInput("Coordinates must be integers")
    if not in_bounds(x, y, width, height):
        raise InvalidInput(f"Pixel ({x}, {y}) is outside the {width}x{height} board")
    normalized = normalize_color(color)
    if normalized is None:
        raise InvalidInput("Color must be a hex value like #RRGGBB")
    return PixelWrite(x=x, y=y, color=normalized)


def prepare_batch(raw: Iterable[Mapping[str, Any] | Any], width: int, height: int) -> list[PixelWrite]:
    """Filter and de-duplicate a bulk request.

    Entries that are not objects, have non-integer or out-of-board coordinates,
    or a malformed color are dropped silently. Later entries for the same
    coordinate replace earlier ones. The result is ordered by ``(x, y)`` so
    concurrent batches lock the same cells in the same order.
    """
    unique: dict[tuple[int, int], PixelWrite] = {}
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        x, y = entry.get("x"), entry.get("y")
        if not _is_coordinate(x) or not _is_coordinate(y):
            continue
        if not in_bounds(x, y, width, height):
            continue
        color = normalize_color(entry.get("color"))
        if color is None:
            continue
        unique[(x, y)] = PixelWrite(x=x, y=y, color=color)
    return [unique[key] for key in sorted(unique)]


def placement_cost(new_count: int, overwrite_count: int) -> int:
    """New cells cost 1, overwrites cost 2."""
    return new_count * NEW_PIXEL_COST + overwrite_count * OVERWRITE_COST
