"""
HttpSourceClient — Async HTTP wrapper for templated ``http`` sources.

Single Responsibility: execute one already-interpolated request and
return the parsed JSON.  No templating, no caching, no routing.

Handles:
  - Timeout enforcement.
  - Status checking (anything outside 2xx is a failure).
  - JSON decoding.
  - Response-path extraction (dot-notation path into the JSON).

Every failure is raised as ``SourceError``; callers decide whether to
isolate it.

Usage::

    client = HttpSourceClient(timeout=10)
    payload = await client.fetch_json("GET", "https://api.example.com/sales?region=east")
    rows = extract_response_path(payload, "data.items")
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from report_app.core.errors import SourceError
from report_app.models.data_source import MODE_HTTP

logger = logging.getLogger(__name__)


class HttpSourceClient:
    """
    Executes async HTTP requests for data sources.

    Stateless — each call creates and destroys its own
    ``httpx.AsyncClient``.  A transport can be injected for tests.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch_json(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> Any:
        """
        Send the request and decode the JSON body.

        Raises:
            SourceError: on transport failure, timeout, non-2xx status
                or a body that is not valid JSON.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers or {},
                    content=body.encode("utf-8") if body is not None else None,
                )
        except httpx.TimeoutException as exc:
            raise SourceError(
                f"Timeout after {self._timeout}s calling {url}", mode=MODE_HTTP,
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceError(
                f"Connection failed for {url}: {exc}", mode=MODE_HTTP,
            ) from exc

        if not response.is_success:
            raise SourceError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                mode=MODE_HTTP,
                status=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SourceError(
                f"Response from {url} is not valid JSON: {exc}",
                mode=MODE_HTTP,
                status=response.status_code,
            ) from exc


def extract_response_path(data: Any, response_path: Optional[str]) -> Any:
    """
    Navigate a dot-notation path into the response JSON.

    ``"data.orders"`` → ``data["data"]["orders"]``; a numeric segment
    indexes into a list (``"results.0.rows"``).  Returns the full
    response if no path is set.

    Raises:
        SourceError: at the first segment that cannot be resolved.
    """
    if not response_path:
        return data

    walked = []
    for segment in (s for s in response_path.split(".") if s):
        walked.append(segment)
        if isinstance(data, dict) and segment in data:
            data = data[segment]
        elif isinstance(data, list) and segment.lstrip("-").isdigit() \
                and -len(data) <= int(segment) < len(data):
            data = data[int(segment)]
        else:
            raise SourceError(
                f"Response path '{response_path}' not found at "
                f"'{'.'.join(walked)}'",
                mode=MODE_HTTP,
            )
    return data
