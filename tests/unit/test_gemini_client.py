import json

import httpx
import pytest

from scout.config import settings
from scout.services.gemini_client import GeminiClient, GeminiConfigurationError, GeminiError

SCHEMA = {"type": "OBJECT", "properties": {"title": {"type": "STRING"}}, "required": ["title"]}


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(settings, "GEMINI_MODEL", "gemini-2.0-flash")


def make_client(handler) -> GeminiClient:
    return GeminiClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def candidate(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.mark.asyncio
async def test_generate_sends_contract_and_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=candidate('{"title": "挑戦するあなたへ"}'))

    client = make_client(handler)
    text = await client.generate("system", "prompt", SCHEMA)
    await client.close()

    assert text == '{"title": "挑戦するあなたへ"}'
    assert seen["url"].endswith("/models/gemini-2.0-flash:generateContent")
    assert "key=" not in seen["url"]
    assert seen["key"] == "test-key"
    assert seen["body"]["system_instruction"] == {"parts": [{"text": "system"}]}
    assert seen["body"]["contents"] == [{"parts": [{"text": "prompt"}]}]
    config = seen["body"]["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] == SCHEMA


@pytest.mark.asyncio
async def test_upstream_status_is_kept():
    client = make_client(lambda request: httpx.Response(429, text="quota"))

    with pytest.raises(GeminiError) as exc_info:
        await client.generate("system", "prompt", SCHEMA)

    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_transport_failure_is_502():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeminiError) as exc_info:
        await make_client(handler).generate("system", "prompt", SCHEMA)

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        [],
        {"candidates": []},
        {"candidates": [{"content": {}}]},
        {"candidates": ["text"]},
        {"candidates": [{"content": {"parts": ["text"]}}]},
        {"candidates": [{"content": "text"}]},
    ],
)
async def test_malformed_payload_is_500(payload):
    client = make_client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(GeminiError) as exc_info:
        await client.generate("system", "prompt", SCHEMA)

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
@pytest.mark.parametrize("key", [None, "", "ここにあなたのAPIキー"])
async def test_missing_key_is_configuration_error(monkeypatch, key):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", key)
    calls = []
    client = make_client(lambda request: calls.append(request) or httpx.Response(200))

    with pytest.raises(GeminiConfigurationError):
        await client.generate("system", "prompt", SCHEMA)

    assert calls == []
