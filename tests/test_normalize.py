import pytest

from report_app.services.sources.normalize import (
    coerce_numeric,
    normalize_record,
    normalize_records,
    records_to_options,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12", 12),
        ("-3", -3),
        ("1.5", 1.5),
        (" 42 ", 42),
        ("1e3", 1000.0),
        (".5", 0.5),
    ],
)
def test_numeric_strings_are_coerced(raw, expected):
    result = coerce_numeric(raw)
    assert result == expected
    assert type(result) is type(expected)


@pytest.mark.parametrize("raw", [" ", "", "abc", "12abc", "inf", "nan", "1,000", True, None, [1]])
def test_other_values_are_untouched(raw):
    assert coerce_numeric(raw) is raw


class TestNormalizeRecord:
    def test_coerces_every_field(self):
        assert normalize_record({"name": "Jan", "value": "10", "pct": "0.25"}) == {
            "name": "Jan", "value": 10, "pct": 0.25,
        }

    def test_name_falls_back_to_title_then_id(self):
        assert normalize_record({"title": "T", "value": 1})["name"] == "T"
        assert normalize_record({"id": "a1"})["name"] == "a1"
        assert normalize_record({"name": None, "id": "a1"})["name"] == "a1"

    def test_existing_name_is_kept(self):
        assert normalize_record({"name": "N", "title": "T"})["name"] == "N"

    def test_no_fallback_available(self):
        assert "name" not in normalize_record({"value": 3})

    def test_scalar_rows_are_wrapped(self):
        assert normalize_record(7) == {"value": 7}

    def test_input_is_not_mutated(self):
        rows = [{"value": "5"}]
        out = normalize_records(rows)
        assert rows == [{"value": "5"}]
        assert out == [{"value": 5}]


class TestRecordsToOptions:
    def test_label_and_value_fallbacks(self):
        options = records_to_options([
            {"label": "L", "value": 1},
            {"name": "N", "id": 7},
            {"text": "T", "value": "t"},
            {"value": 3},
            {"id": "x"},
            "plain",
        ])
        assert [(o.label, o.value) for o in options] == [
            ("L", 1),
            ("N", 7),
            ("T", "t"),
            ("3", 3),
            ("", "x"),
            ("plain", "plain"),
        ]

    def test_value_keeps_falsy_values(self):
        option = records_to_options([{"label": "Zero", "value": 0}])[0]
        assert option.value == 0
