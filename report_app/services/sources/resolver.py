"""
DataSourceResolver — Turns a descriptor + parameter values into records.

Single Responsibility: given a ``DataSourceDescriptor`` and the current
ParameterValueMap, produce a list of records, dispatching on ``mode``:

  static → the stored records, verbatim (no templating).
  query  → interpolate, hand to the QueryExecutor, require a list.
  http   → interpolate URL / query params / headers / body, call
           HttpSourceClient, walk the response path, require a list
           (or an object, converted to ``[{name, value}, ...]``).

Raises ``SourceError`` (or ``ConfigError`` for malformed descriptors).
Failure isolation is the orchestrator's job, not this one's.

Usage::

    resolver = DataSourceResolver(http_client=HttpSourceClient(), query_executor=None)
    rows = await resolver.resolve(widget.data_source, {"region": "east"})
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

from report_app.core.errors import ConfigError, SourceError
from report_app.models.data_source import (
    HTTP_METHODS,
    MODE_HTTP,
    MODE_QUERY,
    MODE_STATIC,
    DataSourceDescriptor,
    Record,
)
from report_app.services.sources.http_client import (
    HttpSourceClient,
    extract_response_path,
)
from report_app.services.sources.query_executor import QueryExecutor
from report_app.services.sources.template import find_placeholders, interpolate

logger = logging.getLogger(__name__)


class DataSourceResolver:
    """Dispatches a descriptor to the static, query or http strategy."""

    def __init__(
        self,
        http_client: Optional[HttpSourceClient] = None,
        query_executor: Optional[QueryExecutor] = None,
    ) -> None:
        self._http = http_client or HttpSourceClient()
        self._query_executor = query_executor

    @property
    def query_executor(self) -> Optional[QueryExecutor]:
        return self._query_executor

    def set_query_executor(self, executor: Optional[QueryExecutor]) -> None:
        self._query_executor = executor

    async def resolve(
        self,
        descriptor: Optional[DataSourceDescriptor],
        values: Mapping[str, Any],
    ) -> List[Record]:
        """
        Resolve one descriptor against the given parameter values.

        Args:
            descriptor: The source configuration.  ``None`` behaves as an
                empty static source.
            values:     ParameterValueMap used for ``{{key}}`` substitution.

        Returns:
            The resolved record list (not yet normalized).
        """
        if descriptor is None:
            return []

        if descriptor.mode == MODE_STATIC:
            return list(descriptor.static_data)
        if descriptor.mode == MODE_QUERY:
            return await self._resolve_query(descriptor, values)
        if descriptor.mode == MODE_HTTP:
            return await self._resolve_http(descriptor, values)

        raise ConfigError(f"Unsupported data source mode '{descriptor.mode}'")

    # ─────────────────────────────────────────────────────────
    #  STRATEGIES
    # ─────────────────────────────────────────────────────────

    async def _resolve_query(
        self,
        descriptor: DataSourceDescriptor,
        values: Mapping[str, Any],
    ) -> List[Record]:
        template = descriptor.query.query
        if not template or not template.strip():
            raise ConfigError("Query source has no query text", mode=MODE_QUERY)
        if self._query_executor is None:
            raise ConfigError(
                "No query executor configured — set QUERY_SIMULATOR_API_KEY",
                mode=MODE_QUERY,
            )

        query_text = interpolate(template, values)
        logger.debug(f"[Resolver] query: {query_text}")

        try:
            result = await self._query_executor.execute(query_text)
        except Exception as exc:
            raise SourceError(f"Query execution failed: {exc}", mode=MODE_QUERY) from exc

        if not isinstance(result, list):
            raise SourceError(
                f"Query returned {type(result).__name__}, expected a list of records",
                mode=MODE_QUERY,
            )
        return result

    async def _resolve_http(
        self,
        descriptor: DataSourceDescriptor,
        values: Mapping[str, Any],
    ) -> List[Record]:
        cfg = descriptor.http
        if not cfg.url or not cfg.url.strip():
            raise ConfigError("HTTP source has no URL", mode=MODE_HTTP)
        method = (cfg.method or "GET").upper()
        if method not in HTTP_METHODS:
            raise ConfigError(f"Unsupported HTTP method '{cfg.method}'", mode=MODE_HTTP)

        url = build_url(cfg.url, cfg.enabled_query_params(), values)
        headers = build_headers(cfg.enabled_headers(), values)

        body: Optional[str] = None
        if method != "GET" and cfg.body:
            body = interpolate(cfg.body, values)
            if not any(k.lower() == "content-type" for k in headers):
                headers["Content-Type"] = "application/json"

        logger.debug(f"[Resolver] http: {method} {url}")
        payload = await self._http.fetch_json(method, url, headers=headers, body=body)
        extracted = extract_response_path(payload, cfg.response_path)
        return _as_records(extracted)


# ─────────────────────────────────────────────────────────────────
# Helpers (module-level functions, no state)
# ─────────────────────────────────────────────────────────────────

def build_url(url_template: str, query_params, values: Mapping[str, Any]) -> str:
    """Interpolate the URL and append enabled query params, URL-encoded."""
    url = interpolate(url_template, values)
    pairs = [
        (interpolate(p.key, values), interpolate(p.value, values))
        for p in query_params
    ]
    if not pairs:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(pairs)}"


def build_headers(headers, values: Mapping[str, Any]) -> Dict[str, str]:
    """Interpolate enabled header rows into a plain dict."""
    return {
        interpolate(h.key, values): interpolate(h.value, values)
        for h in headers
    }


def _as_records(extracted: Any) -> List[Record]:
    """
    Accept a list as-is; convert an object to ``[{name, value}, ...]``
    keyed by its top-level keys; reject everything else.
    """
    if isinstance(extracted, list):
        return extracted
    if isinstance(extracted, dict):
        return [{"name": key, "value": value} for key, value in extracted.items()]
    raise SourceError(
        f"Response resolved to {type(extracted).__name__}, "
        "expected an array or an object",
        mode=MODE_HTTP,
    )


def unbound_placeholders(
    descriptor: Optional[DataSourceDescriptor],
    values: Mapping[str, Any],
) -> List[str]:
    """
    Placeholders the active mode would send whose value is missing or empty.

    Only templated parts that ``resolve`` actually uses are inspected:
    the query text, or the URL, enabled query params and headers, and
    the body of a non-GET request.  Static sources are never templated.
    """
    if descriptor is None:
        return []

    templates: List[Optional[str]] = []
    if descriptor.mode == MODE_QUERY:
        templates.append(descriptor.query.query)
    elif descriptor.mode == MODE_HTTP:
        cfg = descriptor.http
        templates.append(cfg.url)
        for row in cfg.enabled_query_params() + cfg.enabled_headers():
            templates.extend((row.key, row.value))
        if (cfg.method or "GET").upper() != "GET":
            templates.append(cfg.body)

    names: List[str] = []
    for template in templates:
        for name in find_placeholders(template):
            if name not in names and values.get(name) in (None, ""):
                names.append(name)
    return names
