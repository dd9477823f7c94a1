"""OpenAI-compatible chat completions client using aiohttp."""

import asyncio
import sys
from typing import Optional

import aiohttp

from clipmind.config import AIConfig
from clipmind.domain.errors import AIEngineError


def _log(msg: str):
    print(msg, file=sys.stderr)


class ChatClient:
    """Async client for ``POST {base_url}/chat/completions``."""

    def __init__(self, config: Optional[AIConfig] = None):
        self._config = config or AIConfig()

    @property
    def url(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/chat/completions"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def _post(self, payload: dict, timeout_ms: int) -> dict:
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self.url, json=payload, headers=self._headers()) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    _log(f"[chat] API error {resp.status}: {body[:200]}")
                    raise AIEngineError(f"Chat API error {resp.status}: {body}")
                try:
                    return await resp.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise AIEngineError(f"Failed to parse response: {e}")

    async def complete(self, prompt: str, model: str, timeout_ms: Optional[int] = None) -> str:
        """Send one user message and return the first choice's text."""
        timeout_ms = timeout_ms or self._config.timeout_ms
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }
        _log(f"[chat] request model={model!r} timeout={timeout_ms}ms")
        try:
            data = await self._post(payload, timeout_ms)
        except asyncio.TimeoutError:
            _log(f"[chat] request timed out: {timeout_ms}ms")
            raise AIEngineError(f"Request timed out ({timeout_ms}ms)")
        except aiohttp.ClientConnectionError:
            _log("[chat] unable to connect")
            raise AIEngineError("Unable to connect to Chat API")
        except aiohttp.ClientError as e:
            _log(f"[chat] request failed: {e}")
            raise AIEngineError(f"Request failed: {e}")

        text = self.extract_text(data)
        if not text:
            _log("[chat] empty content")
            raise AIEngineError("Empty response")
        _log(f"[chat] ok: {text[:50]!r}")
        return text

    @staticmethod
    def extract_text(data) -> str:
        """Return ``choices[0].message.content`` or an empty string."""
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        return content if isinstance(content, str) else ""

    async def ping(self, model: str) -> bool:
        """Minimal request; True when the endpoint answers with a 2xx."""
        try:
            await self._post(
                {"model": model, "messages": [{"role": "user", "content": "hi"}]},
                self._config.timeout_ms,
            )
            return True
        except AIEngineError:
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AIEngineError(f"Unable to connect to Chat API: {e}")
