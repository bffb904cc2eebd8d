"""
DataSourceDescriptor — how a widget or select parameter obtains records.

Single Responsibility: typed, serializable configuration only.
No HTTP calls, no interpolation, no business logic.

The descriptor is a tagged union whose three payload slots are kept
side by side; ``mode`` names the active one.  Switching modes never
clears the inactive slots, so a user can switch back without losing
configuration.

Persisted form::

    {
        "mode": "static" | "query" | "http",
        "staticData": [...],
        "query": {"query": "SELECT ... WHERE city = '{{city}}'"},
        "http": {
            "url": "...", "method": "GET",
            "headers": [{"id", "key", "value", "enabled"}, ...],
            "queryParams": [...],
            "body": "...", "responsePath": "data.items"
        }
    }
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]

MODE_STATIC = "static"
MODE_QUERY = "query"
MODE_HTTP = "http"
SOURCE_MODES = (MODE_STATIC, MODE_QUERY, MODE_HTTP)

# Mode names written by older dashboard exports
_LEGACY_MODES = {"sql": MODE_QUERY, "api": MODE_HTTP}

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


# ── Payload slots ────────────────────────────────────────────────

@dataclass
class KeyValuePair:
    """One header or query-parameter row; disabled rows are kept but not sent."""
    key: str = ""
    value: str = ""
    enabled: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "KeyValuePair":
        return cls(
            id=str(raw.get("id") or uuid.uuid4()),
            key=str(raw.get("key") or ""),
            value="" if raw.get("value") is None else str(raw["value"]),
            enabled=bool(raw.get("enabled", True)),
        )


@dataclass
class QuerySourceConfig:
    """Templated query handed to the query-simulation collaborator."""
    query: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"query": self.query}

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "QuerySourceConfig":
        raw = raw or {}
        return cls(query=raw.get("query") or "")


@dataclass
class HttpSourceConfig:
    """Templated HTTP call."""
    url: str = ""
    method: str = "GET"
    headers: List[KeyValuePair] = field(default_factory=list)
    query_params: List[KeyValuePair] = field(default_factory=list)
    body: Optional[str] = None
    response_path: Optional[str] = None

    def enabled_headers(self) -> List[KeyValuePair]:
        return [h for h in self.headers if h.enabled and h.key]

    def enabled_query_params(self) -> List[KeyValuePair]:
        return [p for p in self.query_params if p.enabled and p.key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "headers": [h.to_dict() for h in self.headers],
            "queryParams": [p.to_dict() for p in self.query_params],
            "body": self.body,
            "responsePath": self.response_path,
        }

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "HttpSourceConfig":
        raw = raw or {}
        return cls(
            url=raw.get("url") or "",
            method=str(raw.get("method") or "GET").upper(),
            headers=[KeyValuePair.from_dict(h) for h in raw.get("headers") or []],
            query_params=[
                KeyValuePair.from_dict(p) for p in raw.get("queryParams") or []
            ],
            body=_body_text(raw.get("body")),
            response_path=raw.get("responsePath"),
        )


# JSON bodies may arrive as objects; they are stored as their JSON text
def _body_text(body: Any) -> Optional[str]:
    if body is None or isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False)


# ── Descriptor ───────────────────────────────────────────────────

@dataclass
class DataSourceDescriptor:
    """Tagged union over the three source kinds."""
    mode: str = MODE_STATIC
    static_data: List[Record] = field(default_factory=list)
    query: QuerySourceConfig = field(default_factory=QuerySourceConfig)
    http: HttpSourceConfig = field(default_factory=HttpSourceConfig)

    @classmethod
    def empty(cls) -> "DataSourceDescriptor":
        return cls()

    @classmethod
    def from_records(cls, records: Optional[List[Record]]) -> "DataSourceDescriptor":
        return cls(mode=MODE_STATIC, static_data=list(records or []))

    def switch_mode(self, mode: str) -> None:
        """Change the active slot; the other slots are left intact."""
        self.mode = normalize_mode(mode)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "staticData": list(self.static_data),
            "query": self.query.to_dict(),
            "http": self.http.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "DataSourceDescriptor":
        if not raw:
            return cls.empty()
        return cls(
            mode=normalize_mode(raw.get("mode") or MODE_STATIC),
            static_data=list(raw.get("staticData") or []),
            query=QuerySourceConfig.from_dict(raw.get("query") or raw.get("sql")),
            http=HttpSourceConfig.from_dict(raw.get("http") or raw.get("api")),
        )


def normalize_mode(mode: str) -> str:
    """Map legacy names and reject unknown modes."""
    mode = _LEGACY_MODES.get(mode, mode)
    if mode not in SOURCE_MODES:
        raise ValueError(
            f"Unknown data source mode '{mode}' "
            f"(expected one of {', '.join(SOURCE_MODES)})"
        )
    return mode
