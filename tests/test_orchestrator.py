import asyncio

import httpx
import pytest

from report_app.core.errors import ConfigError
from report_app.models.data_source import DataSourceDescriptor
from report_app.services.dashboard.aggregate import DashboardAggregate
from report_app.services.orchestrator import RefreshOrchestrator, RefreshState
from report_app.services.parameters import ParameterRegistry


def make_orchestrator(resolver):
    aggregate = DashboardAggregate()
    registry = ParameterRegistry(aggregate, resolver)
    return aggregate, registry, RefreshOrchestrator(aggregate, registry, resolver)


def query_widget(text, data=None, title="w"):
    return {
        "type": "bar",
        "title": title,
        "data": data or [],
        "dataSource": {"mode": "query", "query": {"query": text}},
    }


# ── RefreshState ─────────────────────────────────────────────────

class TestRefreshState:
    def test_single_flight_flag(self):
        state = RefreshState()
        assert state.try_begin() is True
        assert state.try_begin() is False
        state.end()
        assert state.try_begin() is True

    def test_older_ticket_cannot_clear_newer_loading_flag(self):
        state = RefreshState()
        old = state.start_widget("w1")
        new = state.start_widget("w1")
        assert new > old
        state.finish_widget("w1", old)
        assert state.is_loading("w1") is True
        state.finish_widget("w1", new)
        assert state.is_loading("w1") is False

    def test_forget_and_reset(self):
        state = RefreshState()
        state.start_widget("w1")
        state.record_error("w1", "boom")
        state.forget("w1")
        assert state.to_dict() == {"isRefreshing": False, "widgetLoading": {}, "widgetErrors": {}}


# ── refresh_all ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_refresh_all_normalizes_and_stores(static_resolver):
    aggregate, _, orchestrator = make_orchestrator(static_resolver)
    widget = aggregate.add_widget({
        "type": "bar",
        "dataSource": {"mode": "static", "staticData": [{"title": "Jan", "value": "10"}]},
    })

    summary = await orchestrator.refresh_all()

    assert summary.succeeded == [widget.id]
    assert summary.failed == []
    assert aggregate.get_widget(widget.id).data == [{"title": "Jan", "value": 10, "name": "Jan"}]
    assert orchestrator.is_refreshing is False
    assert orchestrator.is_widget_loading(widget.id) is False


@pytest.mark.asyncio
async def test_failed_widget_keeps_previous_data(make_resolver):
    resolver = make_resolver(lambda request: httpx.Response(500, text="oops"))
    aggregate, _, orchestrator = make_orchestrator(resolver)
    ok = aggregate.add_widget({"type": "bar", "data": [{"name": "a", "value": 1}]})
    broken = aggregate.add_widget({
        "type": "line",
        "data": [{"name": "stale", "value": 9}],
        "dataSource": {"mode": "http", "http": {"url": "https://api.test/broken"}},
    })

    summary = await orchestrator.refresh_all()

    assert summary.succeeded == [ok.id]
    assert summary.failed == [broken.id]
    assert aggregate.get_widget(broken.id).data == [{"name": "stale", "value": 9}]
    assert orchestrator.is_widget_loading(broken.id) is False
    assert "500" in orchestrator.state.last_error(broken.id)


@pytest.mark.asyncio
async def test_success_clears_previous_error(make_resolver, fake_executor_cls):
    executor = fake_executor_cls(error=RuntimeError("offline"))
    aggregate, _, orchestrator = make_orchestrator(make_resolver(executor=executor))
    widget = aggregate.add_widget(query_widget("SELECT 1"))

    await orchestrator.refresh_widget(widget.id)
    assert orchestrator.state.last_error(widget.id) is not None

    executor.error = None
    executor.result = [{"name": "x", "value": 1}]
    assert await orchestrator.refresh_widget(widget.id) is True
    assert orchestrator.state.last_error(widget.id) is None


@pytest.mark.asyncio
async def test_refresh_all_while_running_is_dropped(make_resolver, gated_executor_cls):
    executor = gated_executor_cls(first=[{"name": "a", "value": 1}], later=[])
    aggregate, _, orchestrator = make_orchestrator(make_resolver(executor=executor))
    widget = aggregate.add_widget(query_widget("SELECT 1"))

    first = asyncio.create_task(orchestrator.refresh_all())
    await executor.started.wait()
    assert orchestrator.is_refreshing is True
    assert orchestrator.is_widget_loading(widget.id) is True

    second = await orchestrator.refresh_all()
    assert second.skipped is True
    assert executor.calls == 1

    executor.gate.set()
    summary = await first
    assert summary.skipped is False
    assert summary.succeeded == [widget.id]
    assert orchestrator.is_refreshing is False


@pytest.mark.asyncio
async def test_refresh_all_with_no_widgets(static_resolver):
    _, _, orchestrator = make_orchestrator(static_resolver)
    summary = await orchestrator.refresh_all()
    assert summary.skipped is False
    assert summary.succeeded == [] and summary.failed == []
    assert orchestrator.is_refreshing is False


# ── refresh_widget / tickets ─────────────────────────────────────

@pytest.mark.asyncio
async def test_late_result_from_older_ticket_is_discarded(make_resolver, gated_executor_cls):
    executor = gated_executor_cls(
        first=[{"name": "old", "value": 1}],
        later=[{"name": "new", "value": 2}],
    )
    aggregate, _, orchestrator = make_orchestrator(make_resolver(executor=executor))
    widget = aggregate.add_widget(query_widget("SELECT 1"))

    slow = asyncio.create_task(orchestrator.refresh_widget(widget.id))
    await executor.started.wait()

    assert await orchestrator.refresh_widget(widget.id) is True
    assert aggregate.get_widget(widget.id).data == [{"name": "new", "value": 2}]

    executor.gate.set()
    assert await slow is False
    assert aggregate.get_widget(widget.id).data == [{"name": "new", "value": 2}]
    assert orchestrator.is_widget_loading(widget.id) is False


@pytest.mark.asyncio
async def test_widget_removed_while_resolving(make_resolver, gated_executor_cls):
    executor = gated_executor_cls(first=[{"name": "a"}], later=[])
    aggregate, _, orchestrator = make_orchestrator(make_resolver(executor=executor))
    widget = aggregate.add_widget(query_widget("SELECT 1"))

    task = asyncio.create_task(orchestrator.refresh_widget(widget.id))
    await executor.started.wait()
    aggregate.remove_widget(widget.id)
    executor.gate.set()

    assert await task is False
    assert aggregate.widgets == []


@pytest.mark.asyncio
async def test_refresh_unknown_widget(static_resolver):
    _, _, orchestrator = make_orchestrator(static_resolver)
    assert await orchestrator.refresh_widget("missing") is False


@pytest.mark.asyncio
async def test_refresh_widget_uses_current_values(make_resolver, fake_executor_cls):
    executor = fake_executor_cls(result=[])
    aggregate, registry, orchestrator = make_orchestrator(make_resolver(executor=executor))
    registry.add_parameter({"key": "region", "defaultValue": "east"})
    widget = aggregate.add_widget(query_widget("SELECT * WHERE region = '{{region}}'"))

    registry.set_value("region", "west")
    await orchestrator.refresh_widget(widget.id)

    assert executor.queries == ["SELECT * WHERE region = 'west'"]


# ── refresh_dashboard / preview ──────────────────────────────────

@pytest.mark.asyncio
async def test_refresh_dashboard_loads_options_before_widgets(make_resolver, routing_executor_cls):
    executor = routing_executor_cls(
        {"FROM regions": [{"label": "East", "value": "east"}]},
        default=[{"name": "total", "value": "7"}],
    )
    aggregate, registry, orchestrator = make_orchestrator(make_resolver(executor=executor))
    registry.add_parameter({
        "key": "region", "type": "select",
        "optionsDataSource": {"mode": "query", "query": {"query": "SELECT name FROM regions"}},
    })
    widget = aggregate.add_widget(query_widget("SELECT total FROM sales WHERE region = '{{region}}'"))

    summary = await orchestrator.refresh_dashboard()

    assert executor.queries == [
        "SELECT name FROM regions",
        "SELECT total FROM sales WHERE region = 'east'",
    ]
    assert summary.succeeded == [widget.id]
    assert aggregate.get_widget(widget.id).data == [{"name": "total", "value": 7}]


@pytest.mark.asyncio
async def test_preview_touches_no_widget(static_resolver):
    aggregate, _, orchestrator = make_orchestrator(static_resolver)
    widget = aggregate.add_widget({"type": "bar", "data": [{"name": "keep"}]})

    rows = await orchestrator.preview(DataSourceDescriptor.from_records([{"name": "p", "value": "3"}]))

    assert rows == [{"name": "p", "value": 3}]
    assert aggregate.get_widget(widget.id).data == [{"name": "keep"}]


@pytest.mark.asyncio
async def test_preview_propagates_errors(static_resolver):
    _, _, orchestrator = make_orchestrator(static_resolver)
    descriptor = DataSourceDescriptor.from_dict({"mode": "http", "http": {"url": ""}})
    with pytest.raises(ConfigError):
        await orchestrator.preview(descriptor)


@pytest.mark.asyncio
async def test_refresh_options_never_raises(make_resolver, fake_executor_cls):
    executor = fake_executor_cls(error=RuntimeError("down"))
    _, registry, orchestrator = make_orchestrator(make_resolver(executor=executor))
    param = registry.add_parameter({
        "key": "region", "type": "select",
        "optionsDataSource": {"mode": "query", "query": {"query": "SELECT 1"}},
    })

    assert await orchestrator.refresh_options() == {param.id: False}
