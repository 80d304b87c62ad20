from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from app.models.evaluation import EvaluationRecord, ScoredBlock
from app.services.scoring import ScoreAggregate

MIN_ACTION_PLAN_ITEMS = 3

ACTION_PLAN_ITEM_FIELDS = ("action", "how", "responsible", "deadline", "successIndicator")
REPORT_TEXT_FIELDS = ("recognition", "correction", "direction")

REPORT_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "recognition": {
            "type": "string",
            "description": "Strengths and praise (Recognize)",
        },
        "correction": {
            "type": "string",
            "description": "Gaps and points to improve (Correct)",
        },
        "direction": {
            "type": "string",
            "description": "Career guidance (Direct)",
        },
        "actionPlan": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {name: {"type": "string"} for name in ACTION_PLAN_ITEM_FIELDS},
                "required": list(ACTION_PLAN_ITEM_FIELDS),
            },
        },
    },
    "required": [*REPORT_TEXT_FIELDS, "actionPlan"],
}


@dataclass(frozen=True)
class ReportRequest:
    brief: str
    output_schema: dict[str, Any]
    aggregate: ScoreAggregate


def _format_block(label: str, block: ScoredBlock) -> str:
    return f"- {label}: {block.narrative} (Score: {block.score}/5)"


def build_request(record: EvaluationRecord, aggregate: ScoreAggregate) -> ReportRequest:
    blocks = "\n".join(
        [
            _format_block("Deliveries and technical quality", record.deliveries),
            _format_block("Responsibility and attitude", record.attitude),
            _format_block("Relationship and collaboration", record.relationship),
            _format_block("Growth and learning", record.development),
        ]
    )
    brief = (
        "Act as an expert assistant in people management and HR.\n"
        "Write structured feedback in the R.C.D format (Recognize, Correct, Direct) "
        "and a detailed 30-day action plan focused on professional development.\n\n"
        "Employee:\n"
        f"Name: {record.employee_name}\n"
        f"Role: {record.role}\n"
        f"Date: {record.date.isoformat()}\n"
        f"Period: {record.period}\n"
        f"Qualitative average: {aggregate.average_score:.1f} "
        f"(Classification {aggregate.classification})\n\n"
        f"Performance details:\n{blocks}\n\n"
        "Commitment stated by the employee:\n"
        f'"{record.commitment_text}"\n\n'
        "Requirements:\n"
        "1. The R.C.D feedback must be humane and focus on behavioral and "
        "technical competencies.\n"
        f"2. The action plan must have at least {MIN_ACTION_PLAN_ITEMS} items that "
        "help the employee raise their professional level."
    )
    return ReportRequest(
        brief=brief,
        output_schema=copy.deepcopy(REPORT_OUTPUT_SCHEMA),
        aggregate=aggregate,
    )
