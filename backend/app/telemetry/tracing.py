from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger("app.telemetry")


def _log(kind: str, name: str, session_id: str | None, **fields: Any) -> dict[str, Any]:
    payload = {"type": kind, "name": name, "sessionId": session_id, **fields}
    # Attributes may carry dates and enums from the evaluation record.
    logger.info(json.dumps(payload, sort_keys=True, default=str))
    return payload


def emit_event(
    name: str,
    *,
    session_id: str | None = None,
    step: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return _log("event", name, session_id, step=step, attributes=attributes or {})


def emit_metric(
    name: str,
    value: float,
    *,
    session_id: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return _log("metric", name, session_id, value=value, attributes=attributes or {})
