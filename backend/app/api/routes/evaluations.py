from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse

from app.config import load_settings
from app.models.evaluation import INPUT_STEP_COUNT, AIReport, EvaluationRecord
from app.models.session import EvaluationRecordUpdate
from app.services.report_generation import ReportGenerationClient
from app.services.scoring import CLASSIFICATION_LABELS
from app.services.session_service import (
    CapacityError,
    SessionRegistry,
    ensure_capacity,
    registry,
)
from app.services.wizard import ReportGenerator, WizardBusyError, WizardController
from app.telemetry.otel import start_span

router = APIRouter()


def _registry() -> SessionRegistry:
    return registry


def _report_generator() -> ReportGenerator:
    settings = load_settings()
    return ReportGenerationClient(
        base_url=settings.report_api_base,
        api_key=settings.report_api_key,
        model=settings.report_model,
        timeout=settings.report_timeout_seconds,
    )


def _record_response(record: EvaluationRecord) -> dict[str, Any]:
    return {
        "employeeName": record.employee_name,
        "role": record.role,
        "date": record.date.isoformat(),
        "period": record.period,
        "deliveriesNarrative": record.deliveries.narrative,
        "deliveriesScore": record.deliveries.score,
        "attitudeNarrative": record.attitude.narrative,
        "attitudeScore": record.attitude.score,
        "relationshipNarrative": record.relationship.narrative,
        "relationshipScore": record.relationship.score,
        "developmentNarrative": record.development.narrative,
        "developmentScore": record.development.score,
        "commitmentText": record.commitment_text,
    }


def _report_response(report: AIReport | None) -> dict[str, Any] | None:
    if report is None:
        return None
    return {
        "recognition": report.recognition,
        "correction": report.correction,
        "direction": report.direction,
        "actionPlan": [
            {
                "action": item.action,
                "how": item.how,
                "responsible": item.responsible,
                "deadline": item.deadline,
                "successIndicator": item.success_indicator,
            }
            for item in report.action_plan
        ],
        "averageScore": report.average_score,
        "classification": report.classification,
        "classificationLabel": CLASSIFICATION_LABELS[report.classification],
    }


def _state_response(controller: WizardController) -> dict[str, Any]:
    notice = controller.notice
    return {
        "sessionId": controller.session_id,
        "currentStep": controller.current_step.name,
        "stepNumber": controller.current_step.number,
        "stepCount": INPUT_STEP_COUNT,
        "isLoading": controller.is_loading,
        "isNextDisabled": controller.is_next_disabled,
        "canReset": controller.can_reset,
        "record": _record_response(controller.record),
        "report": _report_response(controller.report),
        "notice": (
            {"kind": notice.kind.value, "message": notice.message} if notice else None
        ),
    }


def _get_controller(session_id: str, sessions: SessionRegistry) -> WizardController:
    controller = sessions.get(session_id)
    if controller is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return controller


@router.post("/evaluations", status_code=status.HTTP_201_CREATED)
async def create_evaluation(
    sessions: SessionRegistry = Depends(_registry),
    generator: ReportGenerator = Depends(_report_generator),
):
    settings = load_settings()
    try:
        ensure_capacity(sessions, max_sessions=settings.max_active_sessions)
    except CapacityError as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)
        ) from exc
    controller = WizardController(generator, default_period=settings.default_period)
    sessions.create(controller)
    return _state_response(controller)


@router.get("/evaluations/{session_id}")
async def get_evaluation(
    session_id: str,
    sessions: SessionRegistry = Depends(_registry),
):
    return _state_response(_get_controller(session_id, sessions))


@router.patch("/evaluations/{session_id}/record")
async def update_record(
    session_id: str,
    payload: EvaluationRecordUpdate,
    sessions: SessionRegistry = Depends(_registry),
):
    controller = _get_controller(session_id, sessions)
    try:
        controller.update(**payload.to_record_fields())
    except WizardBusyError as exc:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), **_state_response(controller)},
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return _state_response(controller)


@router.post("/evaluations/{session_id}/advance")
async def advance_evaluation(
    session_id: str,
    sessions: SessionRegistry = Depends(_registry),
):
    controller = _get_controller(session_id, sessions)
    if controller.is_loading:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_state_response(controller),
        )
    with start_span(
        "wizard.advance",
        {"sessionId": session_id, "step": controller.current_step.name},
    ):
        await controller.advance()
    return _state_response(controller)


@router.post("/evaluations/{session_id}/retreat")
async def retreat_evaluation(
    session_id: str,
    sessions: SessionRegistry = Depends(_registry),
):
    controller = _get_controller(session_id, sessions)
    controller.retreat()
    return _state_response(controller)


@router.post("/evaluations/{session_id}/reset")
async def reset_evaluation(
    session_id: str,
    sessions: SessionRegistry = Depends(_registry),
):
    controller = _get_controller(session_id, sessions)
    if not controller.reset():
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_state_response(controller),
        )
    return _state_response(controller)


@router.delete("/evaluations/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_evaluation(
    session_id: str,
    sessions: SessionRegistry = Depends(_registry),
):
    if not sessions.discard(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
