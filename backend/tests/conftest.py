import json

import httpx
import pytest

from app.services.report_generation import ReportGenerationClient
from app.services.session_service import registry


def _action_item(index: int) -> dict:
    return {
        "action": f"Action {index}",
        "how": f"How {index}",
        "responsible": "Clinic manager",
        "deadline": f"Day {index * 10}",
        "successIndicator": f"Indicator {index}",
    }


@pytest.fixture
def report_arguments():
    def build(**overrides):
        arguments = {
            "recognition": "Consistent clinical quality.",
            "correction": "Arrive on time for the first appointment.",
            "direction": "Start the implant specialization.",
            "actionPlan": [_action_item(index) for index in range(1, 4)],
        }
        arguments.update(overrides)
        return arguments

    return build


@pytest.fixture
def tool_call_response():
    def build(arguments):
        return {
            "choices": [
                {
                    "message": {
                        "tool_calls": [
                            {
                                "function": {
                                    "name": "performance_report",
                                    "arguments": json.dumps(arguments),
                                }
                            }
                        ]
                    }
                }
            ]
        }

    return build


@pytest.fixture
def report_env(monkeypatch):
    monkeypatch.setenv("REPORT_API_BASE", "https://api.chataiapi.com/v1")
    monkeypatch.setenv("REPORT_API_KEY", "secret")
    monkeypatch.setenv("REPORT_MODEL", "gpt-5-mini")
    monkeypatch.delenv("REPORT_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("EVALUATION_DEFAULT_PERIOD", raising=False)
    monkeypatch.delenv("MAX_ACTIVE_SESSIONS", raising=False)


@pytest.fixture
def report_generator(report_arguments, tool_call_response):
    requests = []

    async def handler(request):
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=tool_call_response(report_arguments()))

    generator = ReportGenerationClient(
        base_url="https://api.chataiapi.com/v1",
        api_key="secret",
        model="gpt-5-mini",
        transport=httpx.MockTransport(handler),
    )
    generator.requests = requests
    return generator


@pytest.fixture(autouse=True)
def _clear_sessions():
    registry.clear()
    yield
    registry.clear()
