import httpx
import pytest

from report_app.core.errors import EntityNotFoundError
from report_app.models.dashboard import ParameterOption
from report_app.services.dashboard.aggregate import DashboardAggregate
from report_app.services.parameters import ParameterRegistry, get_parameter_type


def make_registry(resolver):
    aggregate = DashboardAggregate()
    return aggregate, ParameterRegistry(aggregate, resolver)


STATIC_REGIONS = {
    "mode": "static",
    "staticData": [{"label": "East", "value": "east"}, {"label": "West", "value": "west"}],
}


# ── Parameter types ──────────────────────────────────────────────

class TestParameterTypes:
    def test_date_range_occupies_start_and_end(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({
            "key": "period", "type": "date-range",
            "defaultValue": {"start": "2026-01-01", "end": "2026-01-31"},
        })
        assert get_parameter_type(param).runtime_keys() == ["period_start", "period_end"]
        assert registry.values == {"period_start": "2026-01-01", "period_end": "2026-01-31"}

    def test_date_range_without_default_seeds_empty_bounds(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({"key": "period", "type": "date-range"})
        assert registry.values == {"period_start": "", "period_end": ""}

    def test_text_default(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({"key": "q", "type": "text", "defaultValue": "abc"})
        registry.add_parameter({"key": "empty", "type": "text"})
        assert registry.values == {"q": "abc", "empty": ""}

    def test_unknown_type_is_rejected(self, static_resolver):
        _, registry = make_registry(static_resolver)
        with pytest.raises(ValueError):
            registry.add_parameter({"key": "x", "type": "slider"})


# ── Values ───────────────────────────────────────────────────────

class TestValues:
    def test_set_value_overwrites(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({"key": "region", "defaultValue": "east"})
        registry.set_value("region", "west")
        assert registry.get_value("region") == "west"

    def test_set_value_for_unknown_key_is_stored(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.set_value("adhoc", 3)
        assert registry.values == {"adhoc": 3}

    def test_date_range_assignment_forms(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({"key": "period", "type": "date-range"})

        registry.set_value("period", {"start": "2026-02-01", "end": "2026-02-28"})
        assert registry.values == {"period_start": "2026-02-01", "period_end": "2026-02-28"}

        registry.set_value("period", ["2026-03-01", "2026-03-31"])
        assert registry.values == {"period_start": "2026-03-01", "period_end": "2026-03-31"}

        registry.set_value("period", "2026-04-01")
        assert registry.values == {"period_start": "2026-04-01", "period_end": "2026-04-01"}
        assert "period" not in registry.values

    def test_values_is_a_copy(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.set_value("a", 1)
        registry.values["a"] = 2
        assert registry.get_value("a") == 1

    def test_reset_from_defaults_discards_user_values(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({"key": "region", "defaultValue": "east"})
        registry.add_parameter({"key": "free"})
        registry.set_value("region", "west")
        registry.set_value("adhoc", 1)

        registry.reset_from_defaults()

        assert registry.values == {"region": "east"}


# ── Lifecycle ────────────────────────────────────────────────────

class TestLifecycle:
    def test_rename_migrates_value_once(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({"key": "region", "defaultValue": "east"})
        registry.set_value("region", "west")

        registry.update_parameter(param.id, {"key": "area"})

        assert registry.values == {"area": "west"}

    def test_rename_date_range_moves_both_bounds(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({"key": "period", "type": "date-range"})
        registry.set_value("period", {"start": "a", "end": "b"})

        registry.update_parameter(param.id, {"key": "window"})

        assert registry.values == {"window_start": "a", "window_end": "b"}

    def test_label_only_update_keeps_values(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({"key": "region", "defaultValue": "east"})
        registry.set_value("region", "west")

        updated = registry.update_parameter(param.id, {"label": "Sales region"})

        assert updated.id == param.id
        assert updated.label == "Sales region"
        assert registry.values == {"region": "west"}

    def test_type_change_to_date_range_carries_value(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({"key": "day", "type": "date", "defaultValue": "2026-05-01"})

        registry.update_parameter(param.id, {"type": "date-range"})

        assert registry.values == {"day_start": "2026-05-01", "day_end": "2026-05-01"}

    def test_type_change_away_from_select_clears_options(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({
            "key": "region", "type": "select", "optionsDataSource": STATIC_REGIONS,
        })
        assert param.loaded_options

        updated = registry.update_parameter(param.id, {"type": "text"})

        assert updated.loaded_options is None

    def test_remove_drops_runtime_keys(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({"key": "period", "type": "date-range"})
        registry.add_parameter({"key": "q", "defaultValue": "x"})

        registry.remove_parameter(param.id)

        assert registry.values == {"q": "x"}

    def test_unknown_id(self, static_resolver):
        _, registry = make_registry(static_resolver)
        with pytest.raises(EntityNotFoundError):
            registry.update_parameter("nope", {"label": "x"})
        with pytest.raises(KeyError):
            registry.remove_parameter("nope")

    def test_static_options_load_immediately(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({
            "key": "region", "type": "select", "optionsDataSource": STATIC_REGIONS,
        })
        assert [(o.label, o.value) for o in param.loaded_options] == [
            ("East", "east"), ("West", "west"),
        ]
        # No default: the first option is the seeded value
        assert registry.values == {"region": "east"}

    def test_editing_static_options_reloads_them(self, static_resolver):
        _, registry = make_registry(static_resolver)
        param = registry.add_parameter({
            "key": "region", "type": "select", "optionsDataSource": STATIC_REGIONS,
        })
        updated = registry.update_parameter(param.id, {
            "optionsDataSource": {"staticData": [{"label": "North", "value": "north"}]},
        })
        assert [o.value for o in updated.loaded_options] == ["north"]


# ── Option refresh ───────────────────────────────────────────────

class TestRefreshOptions:
    @pytest.mark.asyncio
    async def test_failure_is_isolated_per_parameter(self, make_resolver, routing_executor_cls):
        executor = routing_executor_cls({
            "broken": RuntimeError("boom"),
            "products": [{"name": "Chair", "id": "p1"}],
        })
        aggregate, registry = make_registry(make_resolver(executor=executor))
        broken = registry.add_parameter({
            "key": "store", "type": "select",
            "optionsDataSource": {"mode": "query", "query": {"query": "SELECT broken"}},
        })
        broken.loaded_options = [ParameterOption(label="Old", value="old")]
        products = registry.add_parameter({
            "key": "product", "type": "select",
            "optionsDataSource": {"mode": "query", "query": {"query": "SELECT products"}},
        })

        outcome = await registry.refresh_options()

        assert outcome == {broken.id: False, products.id: True}
        assert [o.value for o in aggregate.get_parameter(broken.id).loaded_options] == ["old"]
        assert [(o.label, o.value) for o in aggregate.get_parameter(products.id).loaded_options] == [
            ("Chair", "p1"),
        ]

    @pytest.mark.asyncio
    async def test_first_option_adopted_when_nothing_selected(self, make_resolver):
        def handler(request):
            return httpx.Response(200, json={"regions": [
                {"label": "North", "value": "north"}, {"label": "South", "value": "south"},
            ]})

        _, registry = make_registry(make_resolver(handler))
        registry.add_parameter({
            "key": "region", "type": "select",
            "optionsDataSource": {
                "mode": "http",
                "http": {"url": "https://api.test/regions", "responsePath": "regions"},
            },
        })
        assert registry.get_value("region") == ""

        await registry.refresh_options()

        assert registry.get_value("region") == "north"

    @pytest.mark.asyncio
    async def test_existing_choice_is_kept(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({
            "key": "region", "type": "select", "optionsDataSource": STATIC_REGIONS,
        })
        registry.set_value("region", "west")

        await registry.refresh_options()

        assert registry.get_value("region") == "west"

    @pytest.mark.asyncio
    async def test_no_select_parameters(self, static_resolver):
        _, registry = make_registry(static_resolver)
        registry.add_parameter({"key": "q"})
        assert await registry.refresh_options() == {}

    @pytest.mark.asyncio
    async def test_options_see_current_values(self, make_resolver, fake_executor_cls):
        executor = fake_executor_cls(result=[{"name": "x", "value": 1}])
        _, registry = make_registry(make_resolver(executor=executor))
        registry.add_parameter({"key": "country", "defaultValue": "AR"})
        registry.add_parameter({
            "key": "city", "type": "select",
            "optionsDataSource": {
                "mode": "query",
                "query": {"query": "SELECT city FROM cities WHERE country = '{{country}}'"},
            },
        })

        await registry.refresh_options()

        assert executor.queries == ["SELECT city FROM cities WHERE country = 'AR'"]
