"""Board stage thresholds and the stage transition rule.

Stages only ever advance: the board grows as the community burns tokens
and never shrinks back.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Stage:
    number: int
    board_size: int
    required_burns: int


STAGES: tuple[Stage, ...] = (
    Stage(number=1, board_size=200, required_burns=0),
    Stage(number=2, board_size=500, required_burns=20_000),
    Stage(number=3, board_size=1000, required_burns=100_000),
)


@dataclass(frozen=True)
class StageTransition:
    """Result of evaluating the stage machine after a burn."""

    previous: Stage
    current: Stage

    @property
    def advanced(self) -> bool:
        return self.current.number > self.previous.number


def get_stage(number: int) -> Stage:
    """Look up a stage by number.

    Raises:
        ValueError: If the number is not a known stage.
    """
    for stage in STAGES:
        if stage.number == number:
            return stage
    raise ValueError(f"Unknown stage: {number}")


def stage_for_total_burned(total_burned: int) -> Stage:
    """Highest stage whose threshold is met by the cumulative burn."""
    current = STAGES[0]
    for stage in STAGES:
        if total_burned >= stage.required_burns:
            current = stage
    return current


def next_stage(number: int) -> Stage | None:
    """The stage after ``number``, or None at the final stage."""
    for stage in STAGES:
        if stage.number > number:
            return stage
    return None


def evaluate_stage(current_stage: int, total_burned: int) -> StageTransition:
    """Compare the stored stage with what the cumulative burn unlocks.

    Never demotes: a lower computed stage keeps the stored one.
    """
    previous = get_stage(current_stage)
    reached = stage_for_total_burned(total_burned)
    if reached.number <= previous.number:
        return StageTransition(previous=previous, current=previous)
    return StageTransition(previous=previous, current=reached)
