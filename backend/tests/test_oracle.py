"""
Tests for the Gemini oracle client
"""
import asyncio
import json

import httpx
import pytest

from interview_coach.errors import OracleError
from interview_coach.oracle import GeminiOracle


def _ok(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.mark.asyncio
async def test_generate_content_posts_prompt_and_temperature():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_ok('{"reply": "Hi?"}'))

    oracle = GeminiOracle(api_key="secret", base_url="https://example.test/v1beta", transport=httpx.MockTransport(handler))
    text = await oracle.generate_content(model="gemini-test", prompt="PROMPT", temperature=0.2)

    assert text == '{"reply": "Hi?"}'
    assert seen["url"] == "https://example.test/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "secret"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "PROMPT"
    assert seen["body"]["generationConfig"]["temperature"] == 0.2


@pytest.mark.asyncio
async def test_generate_content_joins_parts():
    payload = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
    oracle = GeminiOracle(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)))
    assert await oracle.generate_content(model="m", prompt="p", temperature=0.1) == "ab"


@pytest.mark.asyncio
async def test_generate_content_skips_non_text_parts():
    payload = {"candidates": [{"content": {"parts": [{"text": None}, {"inlineData": {}}, {"text": "ok"}]}}]}
    oracle = GeminiOracle(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)))
    assert await oracle.generate_content(model="m", prompt="p", temperature=0.1) == "ok"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="internal"),
        httpx.Response(200, json={"candidates": []}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": None}]}}]}),
        httpx.Response(200, json={"candidates": [{"content": "plain string"}]}),
        httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": 42}]}}]}),
    ],
)
async def test_bad_responses_raise_oracle_error(response):
    oracle = GeminiOracle(api_key="k", transport=httpx.MockTransport(lambda r: response))
    with pytest.raises(OracleError):
        await oracle.generate_content(model="m", prompt="p", temperature=0.1)


@pytest.mark.asyncio
async def test_transport_error_raises_oracle_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    oracle = GeminiOracle(api_key="k", transport=httpx.MockTransport(handler))
    with pytest.raises(OracleError):
        await oracle.generate_content(model="m", prompt="p", temperature=0.1)


@pytest.mark.asyncio
async def test_deadline_raises_oracle_error():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json=_ok("late"))

    oracle = GeminiOracle(api_key="k", timeout=0.05, transport=httpx.MockTransport(handler))
    with pytest.raises(OracleError):
        await oracle.generate_content(model="m", prompt="p", temperature=0.1)


@pytest.mark.asyncio
async def test_missing_api_key(monkeypatch):
    monkeypatch.setattr("interview_coach.config.GEMINI_API_KEY", None)
    oracle = GeminiOracle(api_key=None)
    with pytest.raises(OracleError):
        await oracle.generate_content(model="m", prompt="p", temperature=0.1)
