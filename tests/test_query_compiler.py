import pytest

from school_directory_api.app.core.filters import Condition, Operator, SortKey
from school_directory_api.app.core.store import COURSES, MAX_SQL_INTEGER, USERS
from school_directory_api.app.services.query_compiler import (
    build_pagination,
    flatten_query_params,
    parse_filter,
    parse_query,
)


def test_defaults_without_parameters():
    spec = parse_query(COURSES, {})
    assert spec.conditions == ()
    assert spec.projection is None
    assert spec.sort == (SortKey("created_at", True),)
    assert spec.page == 1
    assert spec.limit == 25
    assert spec.skip == 0


def test_plain_key_is_equality_with_typed_value():
    spec = parse_query(COURSES, {"tuition": "1000", "scholarship_available": "true"})
    assert Condition("tuition", Operator.EQ, 1000.0) in spec.conditions
    assert Condition("scholarship_available", Operator.EQ, True) in spec.conditions


@pytest.mark.parametrize(
    "key,value,expected",
    [
        ("tuition[gt]", "500", Condition("tuition", Operator.GT, 500.0)),
        ("tuition[gte]", "500", Condition("tuition", Operator.GTE, 500.0)),
        ("tuition[lt]", "500", Condition("tuition", Operator.LT, 500.0)),
        ("tuition[lte]", "500", Condition("tuition", Operator.LTE, 500.0)),
        ("tuition[ne]", "500", Condition("tuition", Operator.NE, 500.0)),
        ("tuition[eq]", "500", Condition("tuition", Operator.EQ, 500.0)),
        ("weeks[in]", "4,8", Condition("weeks", Operator.IN, ("4", "8"))),
        ("tuition", "lte:750", Condition("tuition", Operator.LTE, 750.0)),
        ("tuition", "in:100, 200", Condition("tuition", Operator.IN, (100.0, 200.0))),
    ],
)
def test_operator_forms(key, value, expected):
    assert parse_filter(COURSES, key, value) == [expected]


def test_unknown_operator_is_literal_equality():
    assert parse_filter(COURSES, "tuition[like]", "12") == [Condition("tuition", Operator.EQ, "12")]


def test_colon_value_without_operator_prefix_stays_literal():
    assert parse_filter(COURSES, "title", "Intro: Python") == [
        Condition("title", Operator.EQ, "Intro: Python")
    ]


def test_uncoercible_value_stays_string():
    assert parse_filter(COURSES, "tuition[gt]", "cheap") == [Condition("tuition", Operator.GT, "cheap")]


def test_repeated_plain_key_becomes_in_set():
    assert parse_filter(COURSES, "weeks", ["4", "8"]) == [Condition("weeks", Operator.IN, ("4", "8"))]


def test_repeated_bracket_key_is_anded():
    conditions = parse_filter(COURSES, "tuition[gt]", ["100", "200"])
    assert conditions == [
        Condition("tuition", Operator.GT, 100.0),
        Condition("tuition", Operator.GT, 200.0),
    ]


def test_select_keeps_known_visible_fields():
    spec = parse_query(USERS, {"select": "name, password,bogus,email"})
    assert spec.projection == ("name", "email")


def test_sort_parsing_and_unknown_fields():
    spec = parse_query(COURSES, {"sort": "-tuition,title,nope"})
    assert spec.sort == (SortKey("tuition", True), SortKey("title", False))

    spec = parse_query(COURSES, {"sort": "nope"})
    assert spec.sort == (SortKey("created_at", True),)


@pytest.mark.parametrize("raw", ["0", "-3", "abc", ""])
def test_invalid_page_and_limit_fall_back(raw):
    spec = parse_query(COURSES, {"page": raw, "limit": raw})
    assert spec.page == 1
    assert spec.limit == 25


def test_page_and_limit_beyond_sql_integer_range_fall_back():
    spec = parse_query(COURSES, {"page": str(10 ** 20), "limit": str(10 ** 20)})
    assert spec.page == 1
    assert spec.limit == 25


def test_skip_is_clamped_to_sql_integer_range():
    spec = parse_query(COURSES, {"page": str(10 ** 18), "limit": "100"})
    assert spec.page == 10 ** 18
    assert spec.skip == MAX_SQL_INTEGER


def test_page_and_limit_window():
    spec = parse_query(COURSES, {"page": "3", "limit": "10"})
    assert (spec.page, spec.limit, spec.skip) == (3, 10, 20)


def test_reserved_keys_are_not_filters():
    spec = parse_query(COURSES, {"select": "title", "sort": "title", "page": "1", "limit": "5"})
    assert spec.conditions == ()


def test_build_pagination_boundaries():
    assert build_pagination(1, 2, 5) == {"next": {"page": 2, "limit": 2}}
    assert build_pagination(2, 2, 5) == {
        "next": {"page": 3, "limit": 2},
        "prev": {"page": 1, "limit": 2},
    }
    assert build_pagination(3, 2, 5) == {"prev": {"page": 2, "limit": 2}}
    assert build_pagination(1, 25, 0) == {}
    assert build_pagination(1, 5, 5) == {}


def test_flatten_query_params():
    params = flatten_query_params([("a", "1"), ("b", "2"), ("a", "3"), ("a", "4")])
    assert params == {"a": ["1", "3", "4"], "b": "2"}
