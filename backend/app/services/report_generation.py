from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from app.clients.llm import LLMError, LLMResponseError, ReportClient
from app.models.evaluation import ActionPlanItem, AIReport
from app.services.report_request import (
    ACTION_PLAN_ITEM_FIELDS,
    REPORT_TEXT_FIELDS,
    ReportRequest,
)
from app.services.scoring import ScoreAggregate
from app.telemetry.otel import start_span

logger = logging.getLogger(__name__)

REPORT_TOOL_NAME = "performance_report"

SYSTEM_PROMPT = (
    "You write performance feedback reports. Use the tool call to return JSON "
    "matching the declared schema. Do not include extra text."
)


class ReportGenerationError(Exception):
    pass


class ServiceUnavailable(ReportGenerationError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(ReportGenerationError):
    pass


def _extract_arguments(payload: dict[str, Any]) -> dict[str, Any]:
    choices = payload.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise MalformedResponse("Missing choices in report response")
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise MalformedResponse("Report response message is not an object")
    tool_calls = message.get("tool_calls") or []
    if tool_calls:
        if not isinstance(tool_calls, list) or not isinstance(tool_calls[0], dict):
            raise MalformedResponse("Report tool call is not an object")
        function = tool_calls[0].get("function")
        if not isinstance(function, dict):
            raise MalformedResponse("Missing tool call function in report response")
        arguments = function.get("arguments")
        if isinstance(arguments, dict):
            parsed = arguments
        elif isinstance(arguments, str) and arguments:
            try:
                parsed = json.loads(arguments)
            except json.JSONDecodeError as exc:
                raise MalformedResponse("Report tool arguments are not valid JSON") from exc
        else:
            raise MalformedResponse("Missing tool call arguments in report response")
    else:
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise MalformedResponse("Report response content is not text")
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end == -1:
            raise MalformedResponse("Report response missing JSON payload")
        try:
            parsed = json.loads(content[start : end + 1])
        except json.JSONDecodeError as exc:
            raise MalformedResponse("Report response content is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise MalformedResponse("Report payload is not an object")
    return parsed


def _require_text(source: dict[str, Any], field: str, context: str) -> str:
    value = source.get(field)
    if not isinstance(value, str) or not value.strip():
        raise MalformedResponse(f"Missing or empty '{field}' in {context}")
    return value


def _parse_action_plan(items: Any) -> tuple[ActionPlanItem, ...]:
    if not isinstance(items, list) or not items:
        raise MalformedResponse("Report actionPlan must be a non-empty list")
    plan: list[ActionPlanItem] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedResponse(f"actionPlan[{index}] is not an object")
        values = [_require_text(item, name, f"actionPlan[{index}]") for name in ACTION_PLAN_ITEM_FIELDS]
        plan.append(ActionPlanItem(*values))
    return tuple(plan)


def parse_report(payload: dict[str, Any], aggregate: ScoreAggregate) -> AIReport:
    """Build an AIReport from a chat completions response.

    Scores in the upstream payload are ignored: ``aggregate`` is always
    the source of ``average_score`` and ``classification``.
    """
    parsed = _extract_arguments(payload)
    recognition, correction, direction = (
        _require_text(parsed, name, "report") for name in REPORT_TEXT_FIELDS
    )
    return AIReport(
        recognition=recognition,
        correction=correction,
        direction=direction,
        action_plan=_parse_action_plan(parsed.get("actionPlan")),
        average_score=aggregate.average_score,
        classification=aggregate.classification,
    )


class ReportGenerationClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    def build_payload(self, request: ReportRequest) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": request.brief},
            ],
            "tools": [
                {
                    "type": "function",
                    "function": {
                        "name": REPORT_TOOL_NAME,
                        "parameters": request.output_schema,
                    },
                }
            ],
            "tool_choice": {"type": "function", "function": {"name": REPORT_TOOL_NAME}},
        }

    async def generate(self, request: ReportRequest) -> AIReport:
        client = ReportClient(
            base_url=self._base_url,
            api_key=self._api_key,
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            with start_span("report.llm_request", {"model": self._model}):
                try:
                    response = await client.complete(self.build_payload(request))
                except LLMResponseError as exc:
                    raise MalformedResponse(str(exc)) from exc
                except LLMError as exc:
                    logger.warning(
                        "Report generation request failed status=%s body=%s",
                        exc.status_code,
                        exc.body,
                    )
                    raise ServiceUnavailable(str(exc), status_code=exc.status_code) from exc
            with start_span("report.parse", {"model": self._model}):
                return parse_report(response, request.aggregate)
        finally:
            await client.close()
