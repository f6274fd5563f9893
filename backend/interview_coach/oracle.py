"""Client for the text-generation service (Gemini generateContent over HTTP)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from interview_coach import config
from interview_coach.errors import OracleError

LOG = logging.getLogger("interview.oracle")


class Oracle(Protocol):
    async def generate_content(self, *, model: str, prompt: str, temperature: float) -> str:
        ...


class GeminiOracle:
    """Calls ``models/{model}:generateContent`` and returns the concatenated text parts.

    Every failure mode (missing key, transport error, non-200, empty content,
    deadline exceeded) surfaces as ``OracleError``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = config.GEMINI_API_URL,
        timeout: float = config.ORACLE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def generate_content(self, *, model: str, prompt: str, temperature: float) -> str:
        api_key = self.api_key or config.GEMINI_API_KEY
        if not api_key:
            LOG.warning("GEMINI_API_KEY missing; oracle unavailable (model=%s)", model)
            raise OracleError("GEMINI_API_KEY is not configured")

        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature},
        }
        LOG.info("Calling oracle: model=%s temperature=%s prompt_len=%s", model, temperature, len(prompt))
        try:
            # httpx timeouts are per network operation; wait_for bounds the whole call.
            resp = await asyncio.wait_for(self._post(url, headers, payload), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            LOG.warning("Oracle call exceeded %ss deadline (model=%s)", self.timeout, model)
            raise OracleError(f"oracle timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            LOG.warning("Oracle request failed: %s", exc)
            raise OracleError(f"oracle request failed: {exc}") from exc

        if resp.status_code != 200:
            LOG.warning("Oracle responded with %s: %s", resp.status_code, resp.text[:200])
            raise OracleError(f"oracle responded with HTTP {resp.status_code}")

        try:
            content = _response_text(resp.json())
        except (ValueError, TypeError, AttributeError) as exc:
            LOG.warning("Oracle returned an undecodable body: %s", resp.text[:200])
            raise OracleError("oracle returned an undecodable body") from exc
        if not content:
            LOG.warning("Oracle returned empty content (model=%s)", model)
            raise OracleError("oracle returned empty content")
        return content

    async def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.post(url, headers=headers, json=payload)


def _response_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [part.get("text") for part in parts if isinstance(part, dict)]
    return "".join(text for text in texts if isinstance(text, str)).strip()
