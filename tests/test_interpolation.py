from report_app.services.sources.template import find_placeholders, interpolate


class TestInterpolate:
    def test_substitutes_known_keys(self):
        assert interpolate("region={{region}}", {"region": "east"}) == "region=east"

    def test_missing_key_becomes_empty(self):
        assert interpolate("{{a}}-{{b}}", {"a": "x"}) == "x-"

    def test_none_value_becomes_empty(self):
        assert interpolate("[{{a}}]", {"a": None}) == "[]"

    def test_non_string_values_are_stringified(self):
        assert interpolate("{{n}}/{{f}}/{{b}}", {"n": 5, "f": 1.5, "b": True}) == "5/1.5/true"

    def test_booleans_are_lowercase_and_integral_floats_drop_fraction(self):
        values = {"f": True, "g": False, "n": 2.0, "neg": -3.0}
        assert interpolate("flag={{f}}&off={{g}}&n={{n}}&m={{neg}}", values) == (
            "flag=true&off=false&n=2&m=-3"
        )

    def test_non_finite_floats_are_left_as_python_renders_them(self):
        assert interpolate("{{x}}", {"x": float("inf")}) == "inf"

    def test_every_occurrence_is_replaced(self):
        assert interpolate("{{x}}{{x}}{{x}}", {"x": "ab"}) == "ababab"

    def test_malformed_placeholders_stay_verbatim(self):
        values = {"a": "X", " a ": "Y"}
        assert interpolate("{{ a }}", values) == "{{ a }}"
        assert interpolate("{{a}", values) == "{{a}"
        assert interpolate("{a}}", values) == "{a}}"
        assert interpolate("{{}}", values) == "{{}}"

    def test_empty_or_none_template(self):
        assert interpolate("", {"a": 1}) == ""
        assert interpolate(None, {"a": 1}) == ""

    def test_text_without_placeholders_is_unchanged(self):
        text = "SELECT * FROM sales WHERE amount > 10"
        assert interpolate(text, {"amount": 99}) == text

    def test_substituted_values_are_not_reinterpolated(self):
        assert interpolate("{{a}}", {"a": "{{b}}", "b": "nope"}) == "{{b}}"


class TestFindPlaceholders:
    def test_order_of_first_appearance_without_duplicates(self):
        assert find_placeholders("{{b}} {{a}} {{b}} {{ c }}") == ["b", "a"]

    def test_empty(self):
        assert find_placeholders(None) == []
