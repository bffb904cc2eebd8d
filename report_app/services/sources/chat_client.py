"""
ChatCompletionClient — thin async wrapper over an OpenAI-compatible
``/chat/completions`` endpoint.

Single Responsibility: send a message list, return the first choice's
text.  Shared by the query simulator and the report assistant so both
speak to the provider the same way.

Raises ``ChatModelError`` for transport failures, non-success statuses
and payloads without ``choices[0].message.content``.

Usage::

    client = ChatCompletionClient("https://api.openai.com/v1", api_key, "gpt-4o-mini")
    text = await client.complete([{"role": "user", "content": "hi"}])
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from report_app.core.errors import ChatModelError

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json|sql)?\s*|```")


class ChatCompletionClient:
    """
    One provider, one model.

    Stateless — each call opens its own ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        label: str = "Chat model",
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport
        self._label = label

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        json_mode: bool = False,
        temperature: float = 0.2,
    ) -> str:
        """Return the assistant message text (``""`` when the model sent none)."""
        payload: Dict[str, Any] = {
            "model": self._model,
            "temperature": temperature,
            "messages": messages,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                response = await client.post(self._url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise ChatModelError(f"{self._label} unreachable: {exc}") from exc

        if not response.is_success:
            raise ChatModelError(
                f"{self._label} error: HTTP {response.status_code} - "
                f"{response.text[:200]}"
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ChatModelError(f"Unexpected {self._label.lower()} response: {exc}") from exc

        logger.debug(f"[ChatClient] {self._model} answered {len(content or '')} chars")
        return content or ""


def strip_fences(content: Optional[str]) -> str:
    """Remove Markdown code fences models like to wrap answers in."""
    return _FENCE.sub("", content or "").strip()


def parse_json_answer(content: Optional[str]) -> Any:
    """Decode a fenced or bare JSON answer; ``None`` for an empty one."""
    cleaned = strip_fences(content)
    if not cleaned:
        return None
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ChatModelError(f"Model returned invalid JSON: {exc}") from exc
