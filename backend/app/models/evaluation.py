from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date
from enum import IntEnum
from typing import Any, Literal

Classification = Literal["A", "B", "C", "D"]

MIN_SCORE = 0
MAX_SCORE = 5
BLOCK_NAMES = ("deliveries", "attitude", "relationship", "development")


class Step(IntEnum):
    IDENTIFICATION = 0
    DELIVERIES_QUALITY = 1
    ATTITUDE = 2
    RELATIONSHIP = 3
    DEVELOPMENT = 4
    COMMITMENT = 5
    REPORT = 6

    @property
    def number(self) -> int:
        return self.value + 1

    @property
    def next(self) -> Step | None:
        if self is Step.REPORT:
            return None
        return Step(self.value + 1)

    @property
    def previous(self) -> Step | None:
        if self is Step.IDENTIFICATION:
            return None
        return Step(self.value - 1)


INPUT_STEP_COUNT = Step.REPORT.value


def validate_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Score must be an integer, got {value!r}")
    if value < MIN_SCORE or value > MAX_SCORE:
        raise ValueError(f"Score {value} outside {MIN_SCORE}-{MAX_SCORE}")
    return value


@dataclass(frozen=True)
class ScoredBlock:
    narrative: str = ""
    score: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.narrative, str):
            raise ValueError("Block narrative must be a string")
        validate_score(self.score)


@dataclass
class EvaluationRecord:
    """Everything entered during one wizard session.

    Blocks are immutable and replaced as a whole, so a score outside 0-5
    can never be stored. Text fields default to empty strings.
    """

    employee_name: str = ""
    role: str = ""
    date: date = field(default_factory=date.today)
    period: str = ""
    deliveries: ScoredBlock = field(default_factory=ScoredBlock)
    attitude: ScoredBlock = field(default_factory=ScoredBlock)
    relationship: ScoredBlock = field(default_factory=ScoredBlock)
    development: ScoredBlock = field(default_factory=ScoredBlock)
    commitment_text: str = ""

    @property
    def blocks(self) -> tuple[ScoredBlock, ...]:
        return tuple(getattr(self, name) for name in BLOCK_NAMES)

    @property
    def scores(self) -> tuple[int, ...]:
        return tuple(block.score for block in self.blocks)

    def apply(self, updates: dict[str, Any]) -> None:
        """Apply flat field updates such as ``deliveries_score=4``.

        All updates are validated before any of them is written.
        """
        staged: dict[str, Any] = {}
        for name, value in updates.items():
            block_name, _, part = name.rpartition("_")
            if block_name in BLOCK_NAMES and part in {"narrative", "score"}:
                current = staged.get(block_name, getattr(self, block_name))
                staged[block_name] = replace(current, **{part: value})
            elif name == "date":
                if not isinstance(value, date):
                    raise ValueError("date must be a calendar date")
                staged[name] = value
            elif name in _TEXT_FIELDS:
                if not isinstance(value, str):
                    raise ValueError(f"{name} must be a string")
                staged[name] = value
            else:
                raise ValueError(f"Unknown evaluation field: {name}")
        for name, value in staged.items():
            setattr(self, name, value)


_TEXT_FIELDS = {
    item.name
    for item in fields(EvaluationRecord)
    if item.name not in BLOCK_NAMES and item.name != "date"
}


@dataclass(frozen=True)
class ActionPlanItem:
    action: str
    how: str
    responsible: str
    deadline: str
    success_indicator: str


@dataclass(frozen=True)
class AIReport:
    recognition: str
    correction: str
    direction: str
    action_plan: tuple[ActionPlanItem, ...]
    average_score: float
    classification: Classification
