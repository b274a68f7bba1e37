"""
Proportional Layout Module

Slice-and-dice treemap: lay out weighted items as non-overlapping
rectangles that tile a root rectangle.

The item list (not the rectangle) is bisected where the running value
first reaches half the total; the rectangle is cut along its longer side
in the same value ratio, and each half recurses. Leaf areas are only
approximately proportional to value shares because the ratio compounds
with list order, unlike a squarified treemap.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from blockflow.core.models import SectorGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle, origin at the top-left."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    def overlaps(self, other: "Rect", tolerance: float = 1e-9) -> bool:
        """True when the interiors intersect (shared edges do not count)."""
        return (
            self.x < other.x + other.width - tolerance
            and other.x < self.x + self.width - tolerance
            and self.y < other.y + other.height - tolerance
            and other.y < self.y + self.height - tolerance
        )

    def split_vertical(self, ratio: float) -> Tuple["Rect", "Rect"]:
        """Left/right halves, the left taking ``ratio`` of the width."""
        left_width = self.width * ratio
        return (
            Rect(self.x, self.y, left_width, self.height),
            Rect(self.x + left_width, self.y, self.width - left_width, self.height),
        )

    def split_horizontal(self, ratio: float) -> Tuple["Rect", "Rect"]:
        """Top/bottom halves, the top taking ``ratio`` of the height."""
        top_height = self.height * ratio
        return (
            Rect(self.x, self.y, self.width, top_height),
            Rect(self.x, self.y + top_height, self.width, self.height - top_height),
        )

    def to_dict(self):
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class LayoutItem:
    """A weighted entry to lay out."""

    key: str
    value: float
    payload: Any = None


@dataclass(frozen=True)
class LayoutCell:
    """An item and the rectangle it received."""

    item: LayoutItem
    rect: Rect


def _split_index(items: Sequence[LayoutItem], total: float) -> int:
    """First index past the half-value point, kept within [1, n-1]."""
    running = 0.0
    split = 0
    for i, item in enumerate(items):
        running += item.value
        if running >= total / 2:
            split = i + 1
            break
    return min(max(split, 1), len(items) - 1)


def _slice(items: Sequence[LayoutItem], rect: Rect, out: List[LayoutCell]) -> None:
    if not items:
        return
    if len(items) == 1:
        out.append(LayoutCell(items[0], rect))
        return

    total = sum(item.value for item in items)
    split = _split_index(items, total)
    first, second = items[:split], items[split:]
    if total > 0:
        ratio = sum(item.value for item in first) / total
    else:
        ratio = len(first) / len(items)

    if rect.width > rect.height:
        first_rect, second_rect = rect.split_vertical(ratio)
    else:
        first_rect, second_rect = rect.split_horizontal(ratio)

    _slice(first, first_rect, out)
    _slice(second, second_rect, out)


def slice_and_dice(items: Sequence[LayoutItem], rect: Rect) -> List[LayoutCell]:
    """
    Lay out items inside a rectangle.

    Args:
        items: Items with positive values, expected sorted descending
        rect: Root rectangle

    Returns:
        One cell per item in input order; empty when there are no items or
        the total value is not positive
    """
    if not items:
        return []
    total = sum(item.value for item in items)
    if total <= 0:
        logger.debug("Layout skipped: total value is not positive")
        return []

    cells: List[LayoutCell] = []
    _slice(list(items), rect, cells)
    return cells


def layout_sector_groups(
    groups: Sequence[SectorGroup],
    rect: Optional[Rect] = None,
) -> List[LayoutCell]:
    """
    Lay out sector groups on a 0-100 percentage plane by default.

    Groups are sorted descending by aggregate value first; each cell's
    ``item.payload`` is the SectorGroup.
    """
    rect = rect or Rect(0.0, 0.0, 100.0, 100.0)
    ordered = sorted(groups, key=lambda g: g.aggregate_value, reverse=True)
    items = [LayoutItem(g.group_key, g.aggregate_value, g) for g in ordered]
    return slice_and_dice(items, rect)
