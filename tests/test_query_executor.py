import json

import httpx
import pytest

from report_app.core.config import Settings
from report_app.core.errors import QueryExecutionError
from report_app.models.dashboard import AIConfig
from report_app.services.sources.query_executor import (
    LLMQuerySimulator,
    build_query_executor,
    parse_rows,
)


def chat_reply(content, status=200):
    def handler(request):
        handler.request = request
        return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})
    return handler


class TestParseRows:
    def test_unwraps_single_list_object(self):
        assert parse_rows('{"rows": [{"name": "a", "value": 1}]}') == [{"name": "a", "value": 1}]

    def test_strips_markdown_fences(self):
        assert parse_rows('```json\n[{"name": "a"}]\n```') == [{"name": "a"}]

    def test_ambiguous_object_is_returned_as_is(self):
        assert parse_rows('{"a": [1], "b": [2]}') == {"a": [1], "b": [2]}

    def test_empty_content(self):
        assert parse_rows("") == []

    def test_invalid_json(self):
        with pytest.raises(QueryExecutionError):
            parse_rows("not json")


@pytest.mark.asyncio
async def test_simulator_posts_chat_completion():
    handler = chat_reply('{"rows": [{"name": "East", "value": "12"}]}')
    simulator = LLMQuerySimulator(
        base_url="https://llm.test/v1/",
        api_key="sk-test",
        model="m1",
        max_rows=5,
        transport=httpx.MockTransport(handler),
    )

    rows = await simulator.execute("SELECT region FROM sales")

    assert rows == [{"name": "East", "value": "12"}]
    request = handler.request
    assert str(request.url) == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["model"] == "m1"
    assert "SELECT region FROM sales" in payload["messages"][-1]["content"]
    assert "at most 5" in payload["messages"][-1]["content"]


@pytest.mark.asyncio
async def test_simulator_http_error():
    simulator = LLMQuerySimulator(
        base_url="https://llm.test/v1",
        api_key="sk-test",
        model="m1",
        transport=httpx.MockTransport(lambda request: httpx.Response(401, text="bad key")),
    )
    with pytest.raises(QueryExecutionError, match="401"):
        await simulator.execute("SELECT 1")


@pytest.mark.asyncio
async def test_simulator_unexpected_payload():
    simulator = LLMQuerySimulator(
        base_url="https://llm.test/v1",
        api_key="sk-test",
        model="m1",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})),
    )
    with pytest.raises(QueryExecutionError):
        await simulator.execute("SELECT 1")


def test_build_query_executor_requires_key():
    assert build_query_executor(Settings(QUERY_SIMULATOR_API_KEY="")) is None


def test_build_query_executor_applies_ai_overrides():
    settings = Settings(QUERY_SIMULATOR_API_KEY="sk-test", QUERY_SIMULATOR_MODEL="default-model")
    assert build_query_executor(settings).model == "default-model"
    executor = build_query_executor(settings, AIConfig(model="override"))
    assert executor.model == "override"
