import json

import httpx
import pytest

from app.clients.llm import LLMError, LLMResponseError, ReportClient


def _client(handler):
    return ReportClient(
        base_url="https://api.chataiapi.com/v1",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_complete_posts_payload_with_bearer_token():
    async def handler(request):
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer secret"
        assert json.loads(request.content)["model"] == "gpt-5-mini"
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    client = _client(handler)

    result = await client.complete({"model": "gpt-5-mini"})

    assert result["choices"][0]["message"]["content"] == "ok"
    await client.close()


@pytest.mark.asyncio
async def test_server_error_is_not_retried():
    calls = {"count": 0}

    async def handler(request):
        calls["count"] += 1
        return httpx.Response(502, text="bad gateway")

    client = _client(handler)

    with pytest.raises(LLMError) as exc:
        await client.complete({"model": "gpt-5-mini"})

    assert exc.value.status_code == 502
    assert exc.value.body == "bad gateway"
    assert not isinstance(exc.value, LLMResponseError)
    assert calls["count"] == 1
    await client.close()


@pytest.mark.asyncio
async def test_request_error_becomes_llm_error():
    async def handler(request):
        raise httpx.ReadTimeout("timeout", request=request)

    client = _client(handler)

    with pytest.raises(LLMError) as exc:
        await client.complete({"model": "gpt-5-mini"})

    assert exc.value.status_code is None
    assert isinstance(exc.value.__cause__, httpx.ReadTimeout)
    await client.close()


@pytest.mark.asyncio
async def test_complete_requires_choices_field():
    async def handler(request):
        return httpx.Response(200, json={"id": "cmpl-1"})

    client = _client(handler)

    with pytest.raises(LLMResponseError) as exc:
        await client.complete({"model": "gpt-5-mini"})

    assert "Missing 'choices'" in str(exc.value)
    await client.close()


@pytest.mark.asyncio
async def test_non_json_body_is_a_response_error():
    async def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    client = _client(handler)

    with pytest.raises(LLMResponseError):
        await client.complete({"model": "gpt-5-mini"})

    await client.close()
