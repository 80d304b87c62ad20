from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Protocol, Union

from app.models.evaluation import AIReport, EvaluationRecord, Step
from app.services.report_generation import MalformedResponse, ReportGenerationError
from app.services.report_request import ReportRequest, build_request
from app.services.scoring import aggregate
from app.telemetry.tracing import emit_event, emit_metric

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "The feedback report could not be generated. Please try again."


class ReportGenerator(Protocol):
    async def generate(self, request: ReportRequest) -> AIReport: ...


class ErrorKind(str, Enum):
    VALIDATION_BLOCKED = "validation_blocked"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MALFORMED_RESPONSE = "malformed_response"


class WizardBusyError(Exception):
    pass


@dataclass(frozen=True)
class ReportSuccess:
    report: AIReport


@dataclass(frozen=True)
class ReportFailure:
    kind: ErrorKind
    message: str


GenerationOutcome = Union[ReportSuccess, ReportFailure]


@dataclass(frozen=True)
class Notice:
    kind: ErrorKind
    message: str


def _has_text(value: str) -> bool:
    return bool(value.strip())


STEP_GATES: dict[Step, Callable[[EvaluationRecord], bool]] = {
    Step.IDENTIFICATION: lambda record: _has_text(record.employee_name)
    and _has_text(record.role),
    Step.COMMITMENT: lambda record: _has_text(record.commitment_text),
}


class WizardController:
    """Drives one evaluation session from identification to the report.

    ``current_step`` only changes through ``advance``, ``retreat`` and
    ``reset``. Leaving the commitment step awaits the report generator;
    that is the only suspension point.
    """

    def __init__(
        self,
        generator: ReportGenerator,
        *,
        default_period: str = "",
        session_id: str | None = None,
    ) -> None:
        self._generator = generator
        self._default_period = default_period
        self.session_id = session_id
        self.current_step = Step.IDENTIFICATION
        self.record = self._fresh_record()
        self.report: AIReport | None = None
        self.is_loading = False
        self.notice: Notice | None = None
        self.last_outcome: GenerationOutcome | None = None

    def _fresh_record(self) -> EvaluationRecord:
        return EvaluationRecord(period=self._default_period)

    @property
    def is_next_disabled(self) -> bool:
        if self.is_loading or self.current_step is Step.REPORT:
            return True
        gate = STEP_GATES.get(self.current_step)
        return gate is not None and not gate(self.record)

    @property
    def can_reset(self) -> bool:
        if self.is_loading:
            return False
        return self.report is not None or isinstance(self.last_outcome, ReportFailure)

    def update(self, **fields: Any) -> None:
        if self.is_loading or self.current_step is Step.REPORT:
            raise WizardBusyError("Evaluation is read-only while a report is generated or shown")
        self.record.apply(fields)

    def _move_to(self, step: Step) -> None:
        previous = self.current_step
        self.current_step = step
        emit_event(
            "wizard.step_changed",
            session_id=self.session_id,
            step=step.name,
            attributes={"from": previous.name},
        )

    async def advance(self) -> GenerationOutcome | None:
        if self.is_next_disabled:
            logger.debug(
                "Advance refused session_id=%s step=%s reason=%s",
                self.session_id,
                self.current_step.name,
                ErrorKind.VALIDATION_BLOCKED.value,
            )
            return None
        if self.current_step is Step.COMMITMENT:
            return await self._generate_report()
        self._move_to(self.current_step.next)
        return None

    def retreat(self) -> None:
        if self.is_loading or self.current_step is Step.REPORT:
            return
        previous = self.current_step.previous
        if previous is not None:
            self._move_to(previous)

    def reset(self) -> bool:
        if not self.can_reset:
            return False
        self.record = self._fresh_record()
        self.report = None
        self.is_loading = False
        self.notice = None
        self.last_outcome = None
        self._move_to(Step.IDENTIFICATION)
        emit_event("wizard.reset", session_id=self.session_id, step=Step.IDENTIFICATION.name)
        return True

    async def _generate_report(self) -> GenerationOutcome:
        scores = aggregate(self.record)
        request = build_request(self.record, scores)
        self.is_loading = True
        self.report = None
        self.notice = None
        self._move_to(Step.REPORT)
        emit_event(
            "wizard.report_requested",
            session_id=self.session_id,
            step=Step.REPORT.name,
            attributes={
                "averageScore": scores.average_score,
                "classification": scores.classification,
            },
        )
        started = time.perf_counter()
        try:
            result = await self._generator.generate(request)
        except ReportGenerationError as exc:
            kind = (
                ErrorKind.MALFORMED_RESPONSE
                if isinstance(exc, MalformedResponse)
                else ErrorKind.SERVICE_UNAVAILABLE
            )
            logger.warning(
                "Report generation failed session_id=%s kind=%s error=%s",
                self.session_id,
                kind.value,
                exc,
            )
            return self._fail(kind, str(exc))
        except asyncio.CancelledError:
            logger.warning("Report generation cancelled session_id=%s", self.session_id)
            self._fail(ErrorKind.SERVICE_UNAVAILABLE, "report generation cancelled")
            raise
        except Exception as exc:
            logger.exception("Unexpected report generator error session_id=%s", self.session_id)
            return self._fail(ErrorKind.SERVICE_UNAVAILABLE, str(exc))
        finally:
            self.is_loading = False
            emit_metric(
                "report.generation_latency",
                time.perf_counter() - started,
                session_id=self.session_id,
            )

        self.report = replace(
            result,
            average_score=scores.average_score,
            classification=scores.classification,
        )
        outcome = ReportSuccess(self.report)
        self.last_outcome = outcome
        emit_event(
            "wizard.report_ready",
            session_id=self.session_id,
            step=Step.REPORT.name,
            attributes={"actionPlanItems": len(self.report.action_plan)},
        )
        return outcome

    def _fail(self, kind: ErrorKind, message: str) -> ReportFailure:
        self.report = None
        self.notice = Notice(kind=kind, message=FAILURE_NOTICE)
        outcome = ReportFailure(kind=kind, message=message)
        self.last_outcome = outcome
        self._move_to(Step.COMMITMENT)
        emit_event(
            "wizard.report_failed",
            session_id=self.session_id,
            step=Step.COMMITMENT.name,
            attributes={"kind": kind.value},
        )
        return outcome
