"""
ReportAssistant — natural-language help for the dashboard editor.

Single Responsibility: turn a prompt into something the editor can use,
through the same OpenAI-compatible provider as the query simulator.

  generate_query      text → SQL for a ``query`` source (``{{key}}`` allowed)
  analyze_widget      short business insight over a widget's cached data
  generate_dashboard  text → ``{title, widgets, parameters}`` (persisted format)
  modify_widget       one widget's config + instruction → updated fields
  modify_dashboard    widgets and parameters + instruction → new lists

The assistant never touches the session; the API layer decides what
to apply and when to refresh.

Usage::

    assistant = build_assistant(settings)
    sql = await assistant.generate_query("monthly revenue by region")
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from report_app.core.config import Settings
from report_app.core.errors import ChatModelError
from report_app.models.dashboard import CHART_TYPES, PARAMETER_TYPES, AIConfig, Widget
from report_app.models.data_source import MODE_STATIC
from report_app.services.sources.chat_client import (
    ChatCompletionClient,
    parse_json_answer,
    strip_fences,
)

logger = logging.getLogger(__name__)

# Rows of widget data included in an analysis prompt
_MAX_ANALYSIS_ROWS = 50

_SQL_PROMPT = (
    "You are a SQL expert. Write one standard SQL query for the user's "
    "request against a typical e-commerce database (users, orders, products, "
    "sales). Use {{variableName}} for dashboard parameters the user mentions. "
    "Reply with the plain SQL text only, no Markdown and no explanation."
)

_ANALYST_PROMPT = (
    "You are a business data analyst. Give a concise insight (at most two "
    "sentences) about the chart data you are shown."
)

_DASHBOARD_PROMPT = (
    "You are a dashboard architect. Design a dashboard for the user's request "
    "and reply with one JSON object only: "
    '{"title": str, "widgets": [...], "parameters": [...]}.\n'
    f"Widget types: {', '.join(CHART_TYPES)}.\n"
    f"Parameter types: {', '.join(PARAMETER_TYPES)}.\n"
    "Each widget has type, title, optional description, colSpan (1-12, 12 is "
    "full width; stats usually 3, charts 6, tables 12), height (300-500) and "
    "a non-empty data array of realistic sample rows. Rows use name/value "
    "keys; stat rows may add trend, heatmap rows use x/y/value and timeline "
    "rows use name/description/date/status. Tables may use any columns. "
    "Each parameter has key, label, type and optional defaultValue. Add "
    "parameters whenever the request mentions filtering, searching or a "
    "time period."
)

_MODIFY_PROMPT = (
    "You are a data visualization expert. Apply the user's change to the "
    "JSON configuration you are given and reply with the full modified JSON "
    "object only. Change only what the request needs and keep every other "
    "field as it is. When the chart type changes, adapt the data to the new "
    f"type. Supported widget types: {', '.join(CHART_TYPES)}."
)


class ReportAssistant:
    """Prompt templates and answer parsing over a ``ChatCompletionClient``."""

    def __init__(self, client: ChatCompletionClient) -> None:
        self._client = client

    @property
    def model(self) -> str:
        return self._client.model

    # ── Query sources ────────────────────────────────────────

    async def generate_query(self, prompt: str, schema: Optional[str] = None) -> str:
        """SQL text for a ``query`` source; fences stripped."""
        request = prompt if not schema else f"{prompt}\n\nSchema:\n{schema}"
        content = await self._client.complete([
            {"role": "system", "content": _SQL_PROMPT},
            {"role": "user", "content": request},
        ])
        query = strip_fences(content)
        if not query:
            raise ChatModelError("Model returned an empty query")
        return query

    # ── Widgets ──────────────────────────────────────────────

    async def analyze_widget(self, widget: Widget, question: Optional[str] = None) -> str:
        rows = widget.data[:_MAX_ANALYSIS_ROWS]
        request = (
            f"Chart title: {widget.title or widget.type}\n"
            f"Chart type: {widget.type}\n"
            f"Data: {json.dumps(rows, ensure_ascii=False, default=str)}"
        )
        if question:
            request += f"\nQuestion: {question}"
        content = await self._client.complete(
            [
                {"role": "system", "content": _ANALYST_PROMPT},
                {"role": "user", "content": request},
            ],
            temperature=0.7,
        )
        insight = content.strip()
        if not insight:
            raise ChatModelError("Model returned an empty analysis")
        return insight

    async def modify_widget(self, widget: Widget, instruction: str) -> Dict[str, Any]:
        """
        Updated widget fields; the id is never taken from the model.

        New ``data`` on a static widget is mirrored into ``staticData``
        when the model left that untouched, so the next refresh keeps it.
        """
        current = {k: v for k, v in widget.to_dict().items() if k != "id"}
        result = await self._modify(current, instruction)
        result.pop("id", None)

        source = result.get("dataSource")
        source = source if isinstance(source, dict) else {}
        data = result.get("data")
        if (
            isinstance(data, list)
            and data != current["data"]
            and source.get("mode", widget.data_source.mode) == MODE_STATIC
            and source.get("staticData", widget.data_source.static_data)
            == widget.data_source.static_data
        ):
            result["dataSource"] = {**source, "mode": MODE_STATIC, "staticData": data}
        return result

    # ── Dashboards ───────────────────────────────────────────

    async def generate_dashboard(self, prompt: str) -> Dict[str, Any]:
        """``{title, widgets, parameters}``; title is ``None`` when the model gave none."""
        content = await self._client.complete(
            [
                {"role": "system", "content": _DASHBOARD_PROMPT},
                {"role": "user", "content": prompt},
            ],
            json_mode=True,
            temperature=0.7,
        )
        parsed = parse_json_answer(content)
        if isinstance(parsed, list):
            parsed = {"widgets": parsed}
        if not isinstance(parsed, dict):
            raise ChatModelError("Model did not return a dashboard object")

        widgets = [_with_static_data(w) for w in _entity_list(parsed.get("widgets"))]
        if not widgets:
            raise ChatModelError("Model returned a dashboard without widgets")
        title = parsed.get("title")
        logger.info(f"[Assistant] Generated {len(widgets)} widgets with {self.model}")
        return {
            "title": title if isinstance(title, str) and title.strip() else None,
            "widgets": widgets,
            "parameters": _entity_list(parsed.get("parameters")),
        }

    async def modify_dashboard(
        self,
        widgets: List[Dict[str, Any]],
        parameters: List[Dict[str, Any]],
        instruction: str,
    ) -> Dict[str, Any]:
        """
        New ``{widgets, parameters}`` lists.

        A list the model left out (or mangled) falls back to the one
        that was sent.
        """
        result = await self._modify({"widgets": widgets, "parameters": parameters}, instruction)
        new_widgets = result.get("widgets")
        new_parameters = result.get("parameters")
        return {
            "widgets": _entity_list(new_widgets) if isinstance(new_widgets, list) else widgets,
            "parameters": (
                _entity_list(new_parameters) if isinstance(new_parameters, list) else parameters
            ),
        }

    # ── Internal ─────────────────────────────────────────────

    async def _modify(self, current: Dict[str, Any], instruction: str) -> Dict[str, Any]:
        content = await self._client.complete(
            [
                {"role": "system", "content": _MODIFY_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f"Current configuration: "
                        f"{json.dumps(current, ensure_ascii=False, default=str)}\n"
                        f"Requested change: {instruction}"
                    ),
                },
            ],
            json_mode=True,
            temperature=0.7,
        )
        parsed = parse_json_answer(content)
        if not isinstance(parsed, dict):
            raise ChatModelError("Model did not return a JSON object")
        return parsed


def _entity_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _with_static_data(widget: Dict[str, Any]) -> Dict[str, Any]:
    """A static source with no ``staticData`` adopts the widget's sample ``data``."""
    source = widget.get("dataSource")
    data = widget.get("data")
    if (
        isinstance(source, dict)
        and source.get("mode", MODE_STATIC) == MODE_STATIC
        and not source.get("staticData")
        and isinstance(data, list)
    ):
        return {**widget, "dataSource": {**source, "staticData": data}}
    return widget


def build_assistant(
    settings: Settings,
    ai: Optional[AIConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[ReportAssistant]:
    """
    Build the assistant on the query-simulator provider settings, with
    ``ai`` overriding model and base URL.  ``None`` without an API key.
    """
    if not settings.query_simulator_enabled:
        logger.info("[Assistant] No API key configured, assistant disabled")
        return None

    ai = ai or AIConfig()
    client = ChatCompletionClient(
        base_url=ai.base_url or settings.QUERY_SIMULATOR_BASE_URL,
        api_key=settings.QUERY_SIMULATOR_API_KEY,
        model=ai.model or settings.QUERY_SIMULATOR_MODEL,
        timeout=settings.QUERY_SIMULATOR_TIMEOUT,
        transport=transport,
        label="Assistant",
    )
    return ReportAssistant(client)
