import sqlite3

import pytest

from school_directory_api.app.core import store as store_module
from school_directory_api.app.core.filters import Condition, Operator, SortKey
from school_directory_api.app.core.store import (
    COURSES,
    REVIEWS,
    SCHOOL_COURSES,
    SCHOOL_SUMMARY,
    SCHOOLS,
    USERS,
    compile_order,
    compile_where,
)


def test_compile_where_binds_values():
    where, params = compile_where(
        COURSES,
        [
            Condition("tuition", Operator.GTE, 500.0),
            Condition("weeks", Operator.IN, ("4", "8")),
            Condition("title", Operator.NE, "Intro"),
        ],
    )
    assert where == ' WHERE "tuition" >= ? AND "weeks" IN (?, ?) AND ("title" IS NULL OR "title" != ?)'
    assert params == [500.0, "4", "8", "Intro"]


def test_compile_where_never_emits_unknown_or_hidden_columns():
    where, params = compile_where(
        USERS,
        [Condition("password", Operator.EQ, "x"), Condition("drop table", Operator.EQ, "y")],
    )
    assert where == " WHERE NULL = ? AND NULL = ?"
    assert params == ["x", "y"]


def test_compile_where_empty_in_matches_nothing():
    assert compile_where(COURSES, [Condition("weeks", Operator.IN, ())]) == (" WHERE 0", [])


def test_compile_order_appends_identity():
    assert compile_order(COURSES, [SortKey("tuition", True)]) == ' ORDER BY "tuition" DESC, "id" ASC'
    assert compile_order(COURSES, [SortKey("id", True)]) == ' ORDER BY "id" DESC'


def test_insert_update_delete(store, make_school):
    school = make_school()
    assert school["photo"] == "no-photo.jpg"
    assert school["average_cost"] is None

    updated = store.update(SCHOOLS, school["id"], {"phone": "555-1234", "bogus": 1})
    assert updated["phone"] == "555-1234"
    assert store.update(SCHOOLS, 9999, {"phone": "1"}) is None

    assert store.delete(SCHOOLS, school["id"]) is True
    assert store.get(SCHOOLS, school["id"]) is None
    assert store.delete(SCHOOLS, school["id"]) is False


def test_hidden_fields_only_on_request(store, make_user):
    user = make_user()
    assert "password" not in user
    cond = [Condition("id", Operator.EQ, user["id"])]
    assert "password" in store.find_one(USERS, cond, include_hidden=True)


def test_booleans_are_decoded(make_school, make_course):
    course = make_course(make_school(), 100, scholarship_available=True)
    assert course["scholarship_available"] is True


def test_unique_review_per_school_and_user(make_user, make_school, make_review):
    school = make_school()
    user = make_user()
    make_review(school, user, 5)
    with pytest.raises(sqlite3.IntegrityError):
        make_review(school, user, 9)


def test_rating_outside_range_is_rejected(make_user, make_school, make_review):
    with pytest.raises(sqlite3.IntegrityError):
        make_review(make_school(), make_user(), 11)


def test_deleting_school_cascades(store, make_user, make_school, make_course, make_review):
    school = make_school()
    make_course(school, 100)
    make_review(school, make_user(), 7)
    store.delete(SCHOOLS, school["id"])
    assert store.count(COURSES) == 0
    assert store.count(REVIEWS) == 0


def test_populate_missing_parent_resolves_to_none(store):
    records = [{"id": 1, "school_id": 42}, {"id": 2, "school_id": None}]
    assert store.populate(records, SCHOOL_SUMMARY) == [
        {"id": 1, "school_id": 42, "school": None},
        {"id": 2, "school_id": None, "school": None},
    ]


def test_populate_looks_up_keys_in_batches(store, make_school, make_course, monkeypatch):
    monkeypatch.setattr(store_module, "POPULATE_BATCH_SIZE", 2)
    schools = [make_school() for _ in range(5)]
    for i, school in enumerate(schools):
        make_course(school, 100 * (i + 1))
        make_course(school, 1000 * (i + 1))

    courses = store.populate(store.find(COURSES), SCHOOL_SUMMARY)
    assert all(c["school"]["id"] == c["school_id"] for c in courses)

    populated = store.populate(store.find(SCHOOLS), SCHOOL_COURSES)
    for school in populated:
        assert len(school["courses"]) == 2
        assert all(c["school_id"] == school["id"] for c in school["courses"])
