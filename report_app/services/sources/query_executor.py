"""
Query executors — the collaborator behind ``query`` data sources.

The pipeline never talks to a real database.  A ``query`` source's
interpolated text is handed to a ``QueryExecutor`` whose only contract
is ``await execute(text)`` returning something that should be a list
of records.  The resolver validates the shape.

``LLMQuerySimulator`` asks an OpenAI-compatible chat endpoint to
*simulate* the result set, which is what the report designer uses to
prototype queries before a warehouse is wired in.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from report_app.core.config import Settings
from report_app.core.errors import ChatModelError, QueryExecutionError
from report_app.models.dashboard import AIConfig
from report_app.services.sources.chat_client import ChatCompletionClient, parse_json_answer

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a database engine. Execute the SQL the user sends against a "
    "plausible e-commerce schema (users, orders, products, sales) and reply "
    "with a JSON object of the form {\"rows\": [...]} only. Each row should "
    "include 'name' and 'value' keys when that makes sense."
)


class QueryExecutor(Protocol):
    """Anything that can turn query text into rows."""

    async def execute(self, query_text: str) -> Any:
        ...


class LLMQuerySimulator:
    """Simulates query results through a ``ChatCompletionClient``."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        max_rows: int = 10,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._chat = ChatCompletionClient(
            base_url, api_key, model,
            timeout=timeout, transport=transport, label="Query simulator",
        )
        self._max_rows = max_rows

    @property
    def model(self) -> str:
        return self._chat.model

    async def execute(self, query_text: str) -> Any:
        messages = [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Execute SQL: {query_text}\n"
                    f"Return at most {self._max_rows} realistic rows."
                ),
            },
        ]
        try:
            content = await self._chat.complete(messages, json_mode=True, temperature=0.2)
        except ChatModelError as exc:
            raise QueryExecutionError(str(exc)) from exc
        return parse_rows(content)


def parse_rows(content: Optional[str]) -> Any:
    """
    Decode a model answer into rows.

    Strips Markdown fences and unwraps single-list wrappers such as
    ``{"rows": [...]}`` which JSON-object response modes force on us.
    """
    try:
        parsed = parse_json_answer(content)
    except ChatModelError as exc:
        raise QueryExecutionError(str(exc)) from exc
    if parsed is None:
        return []

    if isinstance(parsed, dict):
        lists = [v for v in parsed.values() if isinstance(v, list)]
        if len(lists) == 1:
            return lists[0]
    return parsed


def build_query_executor(
    settings: Settings,
    ai: Optional[AIConfig] = None,
) -> Optional[LLMQuerySimulator]:
    """
    Build the simulator from settings, letting ``ai`` override the
    model and base URL.  Returns ``None`` when no API key is configured.
    """
    if not settings.query_simulator_enabled:
        logger.info("[QuerySimulator] No API key configured, query sources disabled")
        return None

    ai = ai or AIConfig()
    return LLMQuerySimulator(
        base_url=ai.base_url or settings.QUERY_SIMULATOR_BASE_URL,
        api_key=settings.QUERY_SIMULATOR_API_KEY,
        model=ai.model or settings.QUERY_SIMULATOR_MODEL,
        max_rows=settings.QUERY_SIMULATOR_MAX_ROWS,
        timeout=settings.QUERY_SIMULATOR_TIMEOUT,
    )
