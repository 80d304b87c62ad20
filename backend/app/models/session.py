from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator


class EvaluationRecordUpdate(BaseModel):
    employeeName: str | None = None
    role: str | None = None
    date: datetime.date | None = None
    period: str | None = None
    deliveriesNarrative: str | None = None
    deliveriesScore: int | None = Field(default=None, ge=0, le=5, strict=True)
    attitudeNarrative: str | None = None
    attitudeScore: int | None = Field(default=None, ge=0, le=5, strict=True)
    relationshipNarrative: str | None = None
    relationshipScore: int | None = Field(default=None, ge=0, le=5, strict=True)
    developmentNarrative: str | None = None
    developmentScore: int | None = Field(default=None, ge=0, le=5, strict=True)
    commitmentText: str | None = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "EvaluationRecordUpdate":
        nulls = [name for name in self.model_fields_set if getattr(self, name) is None]
        if nulls:
            raise ValueError("fields must not be null: " + ", ".join(sorted(nulls)))
        return self

    def to_record_fields(self) -> dict[str, Any]:
        return {
            _snake_case(name): getattr(self, name) for name in self.model_fields_set
        }


def _snake_case(name: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in name)
