"""Unit tests for the board stage machine."""

from __future__ import annotations

import pytest

from pixey.game.stages import STAGES, evaluate_stage, get_stage, next_stage, stage_for_total_burned


class TestStageLookup:
    def test_thresholds(self) -> None:
        assert [(s.number, s.board_size, s.required_burns) for s in STAGES] == [
            (1, 200, 0),
            (2, 500, 20_000),
            (3, 1000, 100_000),
        ]

    def test_unknown_stage(self) -> None:
        with pytest.raises(ValueError, match="Unknown stage"):
            get_stage(4)

    @pytest.mark.parametrize(
        ("total", "expected"),
        [(0, 1), (19_999, 1), (20_000, 2), (99_999, 2), (100_000, 3), (5_000_000, 3)],
    )
    def test_stage_for_total_burned(self, total: int, expected: int) -> None:
        assert stage_for_total_burned(total).number == expected

    def test_next_stage(self) -> None:
        assert next_stage(1).number == 2
        assert next_stage(2).number == 3
        assert next_stage(3) is None


class TestEvaluateStage:
    def test_no_change_below_threshold(self) -> None:
        transition = evaluate_stage(1, 19_999)
        assert not transition.advanced
        assert transition.current.number == 1

    def test_advances_on_threshold(self) -> None:
        transition = evaluate_stage(1, 20_000)
        assert transition.advanced
        assert transition.previous.number == 1
        assert transition.current.board_size == 500

    def test_can_skip_a_stage(self) -> None:
        transition = evaluate_stage(1, 150_000)
        assert transition.current.number == 3

    def test_never_demotes(self) -> None:
        transition = evaluate_stage(3, 10)
        assert not transition.advanced
        assert transition.current.number == 3
