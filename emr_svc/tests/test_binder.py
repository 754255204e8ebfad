"""
Tests for the named-parameter binder.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from emr_svc.core.exceptions import BindingError, TemplateError
from emr_svc.core.query_registry import QueryTemplate
from emr_svc.services.search.binder import bind, parse_template, with_visit_location


def _template(sql: str, query_id: str = "test.query") -> QueryTemplate:
    return QueryTemplate(id=query_id, sql=sql)


# =============================================================================
# PLACEHOLDERS
# =============================================================================

def test_named_placeholders_become_positional_markers():
    statement = bind(_template("SELECT * FROM t WHERE a = :a AND b = :b"), {"a": 1, "b": "x"})

    assert statement.sql == "SELECT * FROM t WHERE a = ? AND b = ?"
    assert statement.parameters == (1, "x")
    assert statement.placeholder_count == 2


def test_repeated_placeholder_binds_each_occurrence():
    statement = bind(_template("SELECT :v IS NULL OR col = :v"), {"v": "abc"})

    assert statement.sql == "SELECT ? IS NULL OR col = ?"
    assert statement.parameters == ("abc", "abc")


def test_missing_placeholder_binds_null():
    statement = bind(_template("SELECT * FROM t WHERE (:status IS NULL OR status = :status)"), {})

    assert statement.parameters == (None, None)
    assert statement.placeholder_count == 2


def test_unreferenced_parameter_is_ignored():
    statement = bind(_template("SELECT * FROM t WHERE id = :id"), {"id": 7, "unused": "x"})

    assert statement.parameters == (7,)


def test_none_params_behaves_like_empty_mapping():
    statement = bind(_template("SELECT :a"), None)

    assert statement.parameters == (None,)


def test_template_without_placeholders_is_unchanged():
    sql = "SELECT COUNT(*) FROM visits"
    statement = bind(_template(sql), {"a": 1})

    assert statement.sql == sql
    assert statement.parameters == ()
    assert statement.placeholder_count == 0


# =============================================================================
# MULTI-VALUED PARAMETERS
# =============================================================================

@pytest.mark.parametrize("values", [["A"], ["A", "B"], ["A", "B", "C", "D", "E"]])
def test_list_expands_to_one_marker_per_element(values):
    statement = bind(_template("SELECT * FROM t WHERE x IN (:xs)"), {"xs": values})

    assert statement.sql == "SELECT * FROM t WHERE x IN ({})".format(", ".join("?" * len(values)))
    assert statement.placeholder_count == len(values)
    assert statement.parameters == tuple(values)


def test_tuple_expands_like_a_list():
    statement = bind(_template("SELECT * FROM t WHERE x IN (:xs)"), {"xs": (3, 1, 2)})

    assert statement.sql.endswith("IN (?, ?, ?)")
    assert statement.parameters == (3, 1, 2)


def test_empty_list_expands_to_no_markers():
    statement = bind(_template("SELECT * FROM t WHERE x IN (:xs)"), {"xs": []})

    assert statement.sql == "SELECT * FROM t WHERE x IN ()"
    assert statement.parameters == ()
    assert statement.placeholder_count == 0


def test_values_stay_in_order_across_mixed_placeholders():
    statement = bind(
        _template("SELECT * FROM t WHERE a = :a AND b IN (:bs) AND c = :c"),
        {"a": 1, "bs": [2, 3], "c": 4},
    )

    assert statement.sql == "SELECT * FROM t WHERE a = ? AND b IN (?, ?) AND c = ?"
    assert statement.parameters == (1, 2, 3, 4)
    assert statement.placeholder_count == len(statement.parameters)


def test_list_inside_lowercase_and_not_in_lists():
    statement = bind(_template("SELECT * FROM t WHERE x not in ( :xs )"), {"xs": [1, 2]})

    assert statement.sql == "SELECT * FROM t WHERE x not in ( ?, ? )"


@pytest.mark.parametrize("sql", [
    "SELECT * FROM t WHERE (:xs IS NULL OR x = :xs)",
    "SELECT * FROM t WHERE x = :xs",
    "SELECT * FROM t WHERE x IN (:xs, :other)",
    "SELECT * FROM t WHERE x IN (0, :xs)",
])
def test_list_outside_a_whole_in_list_is_rejected(sql):
    with pytest.raises(BindingError) as exc_info:
        bind(_template(sql), {"xs": ["A", "B"], "other": "C"})

    assert exc_info.value.context["parameter"] == "xs"


def test_scalar_may_fill_an_in_list():
    statement = bind(_template("SELECT * FROM t WHERE x IN (:xs)"), {"xs": "A"})

    assert statement.sql == "SELECT * FROM t WHERE x IN (?)"
    assert statement.parameters == ("A",)


def test_values_are_never_written_into_sql():
    hostile = "x'); DROP TABLE visits; --"
    statement = bind(_template("SELECT * FROM t WHERE name IN (:names)"), {"names": [hostile, "ok"]})

    assert hostile not in statement.sql
    assert statement.parameters == (hostile, "ok")


# =============================================================================
# LEXICAL CONTEXT
# =============================================================================

def test_colons_in_literals_identifiers_and_comments_are_not_placeholders():
    sql = (
        "SELECT ':lit', \"odd:name\", `back:tick` FROM t -- :line\n"
        "WHERE id = :id /* :block */"
    )
    parsed = parse_template(sql)

    assert parsed.names == ("id",)
    assert bind(_template(sql), {"id": 1}).sql == sql.replace(":id", "?")


def test_doubled_quote_stays_inside_literal():
    parsed = parse_template("SELECT 'it''s :not' AS a, :yes AS b")

    assert parsed.names == ("yes",)


def test_cast_and_assignment_operators_are_left_alone():
    statement = bind(_template("SELECT x::text, @y := 1, :v"), {"v": 2})

    assert statement.sql == "SELECT x::text, @y := 1, ?"
    assert statement.parameters == (2,)


def test_parameter_names_are_distinct_in_order():
    parsed = parse_template("SELECT :b, :a, :b")

    assert parsed.names == ("b", "a", "b")
    assert parsed.parameter_names == ("b", "a")


def test_parse_template_is_cached():
    sql = "SELECT :cached_value"

    assert parse_template(sql) is parse_template(sql)


# =============================================================================
# MALFORMED TEMPLATES
# =============================================================================

@pytest.mark.parametrize("sql", [
    "SELECT 'unterminated FROM t",
    'SELECT "unterminated FROM t',
    "SELECT * FROM t /* no end",
    "SELECT * FROM t WHERE a = : b",
    "SELECT * FROM t WHERE a = :1",
    "SELECT * FROM t WHERE a = ?",
    "   ",
])
def test_malformed_template_raises_template_error(sql):
    with pytest.raises(TemplateError) as exc_info:
        bind(_template(sql, query_id="broken.query"), {"a": 1})

    assert exc_info.value.context["query_id"] == "broken.query"
    assert "broken.query" in exc_info.value.detail


def test_template_error_reports_position():
    with pytest.raises(TemplateError) as exc_info:
        bind(_template("SELECT * FROM t WHERE a = ?"))

    assert exc_info.value.context["position"] == 26


# =============================================================================
# VALUE TYPES
# =============================================================================

def test_scalar_values_are_coerced_for_the_driver():
    uid = UUID("05ee9cf4-7242-4a17-b4d4-00f707265c8a")
    statement = bind(
        _template("SELECT :flag, :day, :moment, :amount, :uid, :raw, :ratio"),
        {
            "flag": True,
            "day": date(2024, 1, 15),
            "moment": datetime(2024, 1, 15, 10, 30),
            "amount": Decimal("1.50"),
            "uid": uid,
            "raw": b"\x00\x01",
            "ratio": 0.5,
        },
    )

    assert statement.parameters == (
        1,
        "2024-01-15",
        "2024-01-15 10:30:00",
        "1.50",
        "05ee9cf4-7242-4a17-b4d4-00f707265c8a",
        b"\x00\x01",
        0.5,
    )


def test_aware_datetime_is_bound_as_utc():
    nairobi = timezone(timedelta(hours=3))
    statement = bind(_template("SELECT :moment"), {"moment": datetime(2024, 1, 15, 13, 0, tzinfo=nairobi)})

    assert statement.parameters == ("2024-01-15 10:00:00",)


def test_list_elements_are_coerced():
    statement = bind(_template("SELECT * FROM t WHERE d IN (:days)"), {"days": [date(2024, 1, 1), False]})

    assert statement.parameters == ("2024-01-01", 0)


@pytest.mark.parametrize("value", [{"a": 1}, {1, 2}, frozenset([1]), [[1, 2]], object()])
def test_unsupported_value_raises_binding_error(value):
    with pytest.raises(BindingError) as exc_info:
        bind(_template("SELECT * FROM t WHERE x IN (:xs)"), {"xs": value})

    assert exc_info.value.context["parameter"] == "xs"


def test_unsupported_value_for_unreferenced_parameter_is_ignored():
    statement = bind(_template("SELECT :a"), {"a": 1, "other": object()})

    assert statement.parameters == (1,)


# =============================================================================
# VISIT LOCATION DERIVATION
# =============================================================================

def test_location_uuid_is_copied_to_visit_location_uuid():
    params = {"location_uuid": "abc", "other": 1}
    updated = with_visit_location(params)

    assert updated == {"location_uuid": "abc", "visit_location_uuid": "abc", "other": 1}
    assert params == {"location_uuid": "abc", "other": 1}


def test_visit_location_uuid_replaces_caller_value():
    updated = with_visit_location({"location_uuid": "abc", "visit_location_uuid": "old"})

    assert updated["visit_location_uuid"] == "abc"


def test_multi_valued_location_is_copied_as_a_new_list():
    locations = ["abc", "def"]
    updated = with_visit_location({"location_uuid": locations})

    assert updated["visit_location_uuid"] == ["abc", "def"]
    assert updated["visit_location_uuid"] is not locations


def test_no_location_means_no_visit_location():
    assert with_visit_location({"a": 1}) == {"a": 1}
    assert with_visit_location(None) == {}
