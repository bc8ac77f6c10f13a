"""Unit tests for the shared placement primitive."""

from __future__ import annotations

import pytest

from pixey.errors import InvalidInput
from pixey.pixels.placement import (
    PixelWrite,
    in_bounds,
    normalize_color,
    placement_cost,
    prepare_batch,
    validate_pixel,
)


class TestNormalizeColor:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("#a1b2c3", "#A1B2C3"),
            ("A1B2C3", "#A1B2C3"),
            ("  #ff0000 ", "#FF0000"),
            ("#000000", "#000000"),
        ],
    )
    def test_valid_colors_are_uppercased(self, raw: str, expected: str) -> None:
        assert normalize_color(raw) == expected

    @pytest.mark.parametrize("raw", ["#fff", "#GGGGGG", "#1234567", "", "red", None, 0xFF0000, "##FF0000"])
    def test_invalid_colors(self, raw: object) -> None:
        assert normalize_color(raw) is None


class TestBounds:
    def test_corners(self) -> None:
        assert in_bounds(0, 0, 200, 200)
        assert in_bounds(199, 199, 200, 200)

    def test_one_past_the_edge(self) -> None:
        assert not in_bounds(200, 0, 200, 200)
        assert not in_bounds(0, 200, 200, 200)

    def test_negative(self) -> None:
        assert not in_bounds(-1, 0, 200, 200)


class TestValidatePixel:
    def test_returns_normalized_write(self) -> None:
        assert validate_pixel(5, 5, "ff0000", 200, 200) == PixelWrite(5, 5, "#FF0000")

    def test_out_of_board_rejected(self) -> None:
        with pytest.raises(InvalidInput, match="outside"):
            validate_pixel(200, 5, "#FF0000", 200, 200)

    def test_bad_color_rejected(self) -> None:
        with pytest.raises(InvalidInput, match="Color"):
            validate_pixel(1, 1, "blue", 200, 200)

    def test_boolean_coordinates_rejected(self) -> None:
        with pytest.raises(InvalidInput, match="integers"):
            validate_pixel(True, 1, "#FF0000", 200, 200)


class TestPrepareBatch:
    def test_drops_invalid_entries(self) -> None:
        raw = [
            {"x": 1, "y": 1, "color": "#FF0000"},
            {"x": 200, "y": 1, "color": "#FF0000"},  # x == width
            {"x": 1, "y": -1, "color": "#FF0000"},
            {"x": "2", "y": 2, "color": "#FF0000"},
            {"x": 3, "y": 3, "color": "nope"},
            "not-an-object",
            {"y": 4, "color": "#FF0000"},
        ]
        assert prepare_batch(raw, 200, 200) == [PixelWrite(1, 1, "#FF0000")]

    def test_last_write_wins_for_duplicates(self) -> None:
        raw = [
            {"x": 1, "y": 1, "color": "#111111"},
            {"x": 2, "y": 2, "color": "#222222"},
            {"x": 1, "y": 1, "color": "#333333"},
        ]
        batch = prepare_batch(raw, 10, 10)
        assert len(batch) == 2
        assert PixelWrite(1, 1, "#333333") in batch
        assert PixelWrite(2, 2, "#222222") in batch

    def test_empty(self) -> None:
        assert prepare_batch([], 10, 10) == []

    def test_ordered_by_coordinate(self) -> None:
        forward = [
            {"x": 1, "y": 1, "color": "#111111"},
            {"x": 2, "y": 2, "color": "#222222"},
            {"x": 1, "y": 3, "color": "#333333"},
        ]
        expected = [PixelWrite(1, 1, "#111111"), PixelWrite(1, 3, "#333333"), PixelWrite(2, 2, "#222222")]
        assert prepare_batch(forward, 10, 10) == expected
        assert prepare_batch(list(reversed(forward)), 10, 10) == expected


class TestPlacementCost:
    def test_new_and_overwrite_mix(self) -> None:
        assert placement_cost(3, 2) == 7

    def test_single_new(self) -> None:
        assert placement_cost(1, 0) == 1

    def test_single_overwrite(self) -> None:
        assert placement_cost(0, 1) == 2
