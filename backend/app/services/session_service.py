from __future__ import annotations

import logging
from uuid import uuid4

from app.services.wizard import WizardController
from app.telemetry.tracing import emit_metric

logger = logging.getLogger(__name__)


class CapacityError(Exception):
    pass


class SessionRegistry:
    """In-memory wizard sessions. Nothing survives a process restart."""

    def __init__(self) -> None:
        self._sessions: dict[str, WizardController] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, controller: WizardController) -> str:
        session_id = uuid4().hex
        controller.session_id = session_id
        self._sessions[session_id] = controller
        logger.info("Evaluation session created session_id=%s", session_id)
        return session_id

    def get(self, session_id: str) -> WizardController | None:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        self._sessions.clear()


def ensure_capacity(registry: SessionRegistry, *, max_sessions: int) -> None:
    if len(registry) >= max_sessions:
        emit_metric(
            "wizard.capacity_exceeded",
            1,
            attributes={"active": len(registry), "max": max_sessions},
        )
        raise CapacityError("evaluation session capacity exceeded")


registry = SessionRegistry()
