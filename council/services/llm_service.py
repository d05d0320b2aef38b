"""Provider-agnostic LLM client for the narrative brief: Ollama or LM Studio.

Provider URLs come from council.config.settings. One module-level
httpx.AsyncClient is shared for connection pooling.
"""

from __future__ import annotations

import re
import time

import httpx

from council.config import settings
from council.utils.logger import logger

_shared_client: httpx.AsyncClient | None = None


async def _get_shared_client() -> httpx.AsyncClient:
    """Get or create the shared httpx.AsyncClient."""
    global _shared_client  # noqa: PLW0603
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10.0, read=120.0, write=30.0, pool=30.0),
        )
    return _shared_client


class LLMService:
    """Sends chat completion requests to Ollama or an OpenAI-compatible server."""

    def __init__(self, provider: str | None = None) -> None:
        self.provider = provider or settings.LLM_PROVIDER
        if provider is None:
            self.base_url = settings.LLM_BASE_URL
        elif provider == "lmstudio":
            self.base_url = settings.LMSTUDIO_URL.rstrip("/")
        else:
            self.base_url = settings.OLLAMA_URL.rstrip("/")
        self.model = settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.context_size = settings.LLM_CONTEXT_SIZE
        self.api_key = settings.OPENAI_API_KEY

    async def chat(
        self,
        system: str,
        user: str,
        *,
        response_format: str = "json",
    ) -> str:
        """Send one system + user exchange and return the raw text reply."""
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        t0 = time.perf_counter()
        if self.provider == "ollama":
            content = await self._call_ollama(messages, response_format)
        else:
            content = await self._call_openai(messages, response_format)
        logger.info(
            "LLM %s request done in %.2fs (%d chars)",
            self.provider, time.perf_counter() - t0, len(content),
        )
        return content

    async def _call_ollama(self, messages: list[dict], response_format: str) -> str:
        payload: dict = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": self.temperature, "num_ctx": self.context_size},
        }
        if response_format == "json":
            payload["format"] = "json"

        client = await _get_shared_client()
        resp = await client.post(f"{self.base_url}/api/chat", json=payload)
        resp.raise_for_status()
        data = resp.json()
        message = data.get("message") if isinstance(data, dict) else None
        return self._content_of(message)

    async def _call_openai(self, messages: list[dict], response_format: str) -> str:
        payload: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        # LM Studio does NOT support response_format, omit it entirely.
        if response_format == "json" and self.provider != "lmstudio":
            payload["response_format"] = {"type": "json_object"}

        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        client = await _get_shared_client()
        resp = await client.post(
            f"{self.base_url}/v1/chat/completions", json=payload, headers=headers
        )
        if resp.status_code >= 400:
            logger.error("LLM endpoint returned %d: %s", resp.status_code, resp.text[:500])
        resp.raise_for_status()
        data = resp.json()
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            logger.warning("LLM reply has no choices: %s", str(data)[:200])
            return ""
        return self._content_of(choices[0].get("message"))

    @staticmethod
    def _content_of(message: object) -> str:
        """Text of a chat message, or "" when the reply has the wrong shape."""
        if not isinstance(message, dict):
            return ""
        content = message.get("content")
        return content if isinstance(content, str) else ""

    @staticmethod
    def clean_json_response(raw: str) -> str:
        """Strip markdown fences and return the first complete JSON object.

        Brace-depth counting skips braces inside strings.
        """
        cleaned = re.sub(r"```(?:json)?\s*", "", raw)
        cleaned = re.sub(r"```\s*$", "", cleaned).strip()

        start = cleaned.find("{")
        if start == -1:
            return cleaned

        depth = 0
        in_string = False
        escape_next = False
        for i in range(start, len(cleaned)):
            ch = cleaned[i]
            if escape_next:
                escape_next = False
                continue
            if ch == "\\":
                escape_next = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return cleaned[start : i + 1]

        # Truncated object, return what we have
        return cleaned[start:]

    async def health_check(self) -> dict:
        """Check connectivity to the LLM backend."""
        path = "/api/tags" if self.provider == "ollama" else "/v1/models"
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}{path}", headers=headers)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            return {"status": "error", "provider": self.provider, "error": str(e)}
        return {"status": "ok", "provider": self.provider, "model": self.model}
