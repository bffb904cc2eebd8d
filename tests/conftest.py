"""Shared fixtures: resolvers over mock transports, fake query executors and chat endpoints."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, List, Optional

import httpx
import pytest

from report_app.services.sources import DataSourceResolver, HttpSourceClient


class FakeQueryExecutor:
    """Returns a fixed result (or raises) and records every query text."""

    def __init__(self, result: Any = None, error: Optional[Exception] = None) -> None:
        self.result = [] if result is None else result
        self.error = error
        self.queries: List[str] = []

    async def execute(self, query_text: str) -> Any:
        self.queries.append(query_text)
        if self.error is not None:
            raise self.error
        return self.result


class RoutingQueryExecutor:
    """Picks the result by the first registered substring found in the query."""

    def __init__(self, routes: dict, default: Any = None) -> None:
        self.routes = routes
        self.default = [] if default is None else default
        self.queries: List[str] = []

    async def execute(self, query_text: str) -> Any:
        self.queries.append(query_text)
        for needle, result in self.routes.items():
            if needle in query_text:
                if isinstance(result, Exception):
                    raise result
                return result
        return self.default


class GatedQueryExecutor:
    """
    First call blocks until ``gate`` is set and returns ``first``;
    later calls return ``later`` immediately.
    """

    def __init__(self, first: Any, later: Any) -> None:
        self.first = first
        self.later = later
        self.calls = 0
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def execute(self, query_text: str) -> Any:
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            await self.gate.wait()
            return self.first
        return self.later


def scripted_chat_handler(*answers: Any, status: int = 200):
    """Chat endpoint that replies with ``answers`` in order and records request payloads."""
    replies = list(answers)

    def handler(request: httpx.Request) -> httpx.Response:
        handler.requests.append(json.loads(request.content))
        content = replies.pop(0) if replies else ""
        return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})

    handler.requests = []
    return handler


def build_resolver(
    handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    executor: Any = None,
) -> DataSourceResolver:
    transport = httpx.MockTransport(handler) if handler is not None else None
    return DataSourceResolver(
        http_client=HttpSourceClient(timeout=5.0, transport=transport),
        query_executor=executor,
    )


@pytest.fixture
def make_resolver():
    return build_resolver


@pytest.fixture
def fake_executor_cls():
    return FakeQueryExecutor


@pytest.fixture
def routing_executor_cls():
    return RoutingQueryExecutor


@pytest.fixture
def gated_executor_cls():
    return GatedQueryExecutor


@pytest.fixture
def static_resolver():
    """Resolver with no network and no query executor."""
    return build_resolver()


@pytest.fixture
def scripted_chat():
    return scripted_chat_handler
