"""
Tests for the slice-and-dice layout engine.
"""

import itertools

import pytest

from blockflow.analytics.layout import (
    LayoutItem,
    Rect,
    layout_sector_groups,
    slice_and_dice,
)
from blockflow.core.models import SectorGroup


def _items(*values):
    return [LayoutItem(key=f"item{i}", value=v) for i, v in enumerate(values)]


class TestRect:
    """Tests for Rect helpers."""

    def test_area(self):
        assert Rect(0, 0, 4, 2.5).area == 10

    def test_split_vertical(self):
        left, right = Rect(10, 0, 100, 50).split_vertical(0.25)
        assert left == Rect(10, 0, 25, 50)
        assert right == Rect(35, 0, 75, 50)

    def test_split_horizontal(self):
        top, bottom = Rect(0, 10, 50, 100).split_horizontal(0.75)
        assert top == Rect(0, 10, 50, 75)
        assert bottom == Rect(0, 85, 50, 25)

    def test_shared_edge_is_not_overlap(self):
        assert not Rect(0, 0, 50, 50).overlaps(Rect(50, 0, 50, 50))

    def test_overlap(self):
        assert Rect(0, 0, 50, 50).overlaps(Rect(25, 25, 50, 50))

    def test_to_dict(self):
        assert Rect(1, 2, 3, 4).to_dict() == {"x": 1, "y": 2, "width": 3, "height": 4}


class TestSliceAndDice:
    """Tests for slice_and_dice."""

    def test_empty_items(self):
        """Test no items give no cells."""
        assert slice_and_dice([], Rect(0, 0, 100, 100)) == []

    def test_zero_total(self):
        """Test a non-positive total gives no cells instead of dividing by zero."""
        assert slice_and_dice(_items(0, 0), Rect(0, 0, 100, 100)) == []

    def test_single_item_gets_whole_rect(self):
        root = Rect(5, 5, 30, 20)
        cells = slice_and_dice(_items(42), root)

        assert len(cells) == 1
        assert cells[0].rect == root

    def test_known_split(self):
        """Test a 50/30/20 list splits the square then the bottom half."""
        cells = slice_and_dice(_items(50, 30, 20), Rect(0, 0, 100, 100))

        assert [c.rect for c in cells] == [
            Rect(0, 0, 100, 50),
            Rect(0, 50, 60, 50),
            Rect(60, 50, 40, 50),
        ]

    def test_longer_side_is_cut(self):
        """Test a wide rectangle is cut vertically."""
        cells = slice_and_dice(_items(1, 1), Rect(0, 0, 200, 100))
        assert cells[0].rect == Rect(0, 0, 100, 100)
        assert cells[1].rect == Rect(100, 0, 100, 100)

    def test_output_in_input_order(self):
        items = _items(40, 25, 15, 10, 5, 3, 2)
        cells = slice_and_dice(items, Rect(0, 0, 100, 100))
        assert [c.item for c in cells] == items

    @pytest.mark.parametrize(
        "values",
        [
            (40, 25, 15, 10, 5, 3, 2),
            (1, 1, 1, 1, 1),
            (1000, 1),
            (261.9, 244.6, 202.9, 125.0, 86.9, 40.7, 31.6, 23.6),
        ],
    )
    def test_tiles_root_without_overlap(self, values):
        """Test leaf areas sum to the root area and no two leaves overlap."""
        root = Rect(0, 0, 160, 90)
        cells = slice_and_dice(_items(*values), root)

        assert len(cells) == len(values)
        assert sum(c.rect.area for c in cells) == pytest.approx(root.area)
        for a, b in itertools.combinations(cells, 2):
            assert not a.rect.overlaps(b.rect)
        for cell in cells:
            assert cell.rect.x >= root.x - 1e-9
            assert cell.rect.y >= root.y - 1e-9
            assert cell.rect.x + cell.rect.width <= root.x + root.width + 1e-9
            assert cell.rect.y + cell.rect.height <= root.y + root.height + 1e-9

    def test_split_keeps_one_item_per_side(self):
        """Test a heavy last item still leaves the earlier items a side."""
        cells = slice_and_dice(_items(1, 1, 100), Rect(0, 0, 100, 100))

        assert len(cells) == 3
        assert cells[2].rect.area == pytest.approx(100 * 100 * 100 / 102)

    def test_zero_valued_tail(self):
        """Test zero-valued items after a positive one do not divide by zero."""
        cells = slice_and_dice(_items(10, 0, 0), Rect(0, 0, 100, 100))

        assert len(cells) == 3
        assert cells[0].rect.area == pytest.approx(10_000)


class TestLayoutSectorGroups:
    """Tests for layout_sector_groups."""

    def test_empty_groups(self):
        assert layout_sector_groups([]) == []

    def test_sorts_descending_and_carries_group(self):
        """Test groups are laid out largest first on a 0-100 plane."""
        small = SectorGroup(group_key="Energy", aggregate_value=20.0)
        large = SectorGroup(group_key="Technology", aggregate_value=80.0)

        cells = layout_sector_groups([small, large])

        assert [c.item.key for c in cells] == ["Technology", "Energy"]
        assert cells[0].item.payload is large
        assert cells[0].rect == Rect(0, 0, 100, 80)
        assert sum(c.rect.area for c in cells) == pytest.approx(100 * 100)

    def test_custom_rect(self):
        group = SectorGroup(group_key="Healthcare", aggregate_value=5.0)
        cells = layout_sector_groups([group], Rect(0, 0, 800, 600))
        assert cells[0].rect == Rect(0, 0, 800, 600)
