import logging

import pytest

from school_directory_api.app.core.store import SCHOOLS
from school_directory_api.app.services.aggregate_service import AggregateService


def course_payload(tuition, **values):
    data = {
        "title": "Web Development",
        "description": "Learn to build websites",
        "weeks": "8",
        "tuition": tuition,
        "scholarship_available": False,
    }
    data.update(values)
    return data


@pytest.fixture
def owned_school(make_user, make_school):
    owner = make_user("publisher")
    return owner, make_school(owner)


def test_create_course_updates_average_cost(client, auth, store, owned_school):
    owner, school = owned_school
    url = f"/api/v1/schools/{school['id']}/courses"

    for tuition in (1000, 1500):
        resp = client.post(url, json=course_payload(tuition), headers=auth(owner))
        assert resp.status_code == 201
    assert store.get(SCHOOLS, school["id"])["average_cost"] == 1250

    resp = client.post(url, json=course_payload(100), headers=auth(owner))
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["school_id"] == school["id"]
    assert body["data"]["user_id"] == owner["id"]
    assert store.get(SCHOOLS, school["id"])["average_cost"] == 870


def test_update_course_recomputes(client, auth, store, owned_school, make_course):
    owner, school = owned_school
    course = make_course(school, 1000)
    make_course(school, 2000)

    resp = client.put(f"/api/v1/courses/{course['id']}", json={"tuition": 3000}, headers=auth(owner))
    assert resp.status_code == 200
    assert resp.json()["data"]["tuition"] == 3000
    assert store.get(SCHOOLS, school["id"])["average_cost"] == 2500


def test_delete_excludes_removed_course(client, auth, store, owned_school, make_course):
    owner, school = owned_school
    cheap = make_course(school, 100)
    expensive = make_course(school, 1000)

    resp = client.delete(f"/api/v1/courses/{cheap['id']}", headers=auth(owner))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": {}}
    assert store.get(SCHOOLS, school["id"])["average_cost"] == 1000

    # The last course going away leaves the previous value in place.
    resp = client.delete(f"/api/v1/courses/{expensive['id']}", headers=auth(owner))
    assert resp.status_code == 200
    assert store.get(SCHOOLS, school["id"])["average_cost"] == 1000


def test_failed_recompute_does_not_fail_the_write(client, auth, store, owned_school, monkeypatch, caplog):
    owner, school = owned_school

    def boom(rule, school_id, store):
        raise RuntimeError("aggregation backend down")

    monkeypatch.setattr(AggregateService, "compute", boom)
    with caplog.at_level(logging.ERROR):
        resp = client.post(
            f"/api/v1/schools/{school['id']}/courses", json=course_payload(500), headers=auth(owner)
        )
    assert resp.status_code == 201
    assert store.get(SCHOOLS, school["id"])["average_cost"] is None
    assert f"Failed to recompute average_cost for school {school['id']}" in caplog.text


def test_only_school_owner_adds_courses(client, auth, make_user, owned_school):
    _, school = owned_school
    stranger = make_user("publisher")
    resp = client.post(
        f"/api/v1/schools/{school['id']}/courses", json=course_payload(100), headers=auth(stranger)
    )
    assert resp.status_code == 403
    assert resp.json()["success"] is False


def test_admin_may_edit_any_course(client, auth, make_user, owned_school, make_course):
    _, school = owned_school
    course = make_course(school, 100)
    resp = client.put(
        f"/api/v1/courses/{course['id']}", json={"title": "Renamed"}, headers=auth(make_user("admin"))
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Renamed"


def test_plain_user_cannot_add_courses(client, auth, make_user, owned_school):
    _, school = owned_school
    resp = client.post(
        f"/api/v1/schools/{school['id']}/courses", json=course_payload(100), headers=auth(make_user())
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "User role user is not authorized to access this route"


def test_unauthenticated_write_is_rejected(client, owned_school):
    _, school = owned_school
    resp = client.post(f"/api/v1/schools/{school['id']}/courses", json=course_payload(100))
    assert resp.status_code == 401


def test_course_for_missing_school(client, auth, make_user):
    resp = client.post("/api/v1/schools/999/courses", json=course_payload(100), headers=auth(make_user("admin")))
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "No school with the id of 999"}


def test_list_courses_embeds_school(client, owned_school, make_course):
    _, school = owned_school
    make_course(school, 100)
    make_course(school, 200)

    resp = client.get("/api/v1/courses", params={"tuition[gt]": "150"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["pagination"] == {}
    assert body["data"][0]["school"] == {
        "id": school["id"],
        "name": school["name"],
        "description": school["description"],
    }


def test_school_courses_are_unpaginated(client, owned_school, make_course):
    _, school = owned_school
    for tuition in range(30):
        make_course(school, tuition)
    resp = client.get(f"/api/v1/schools/{school['id']}/courses")
    body = resp.json()
    assert body["count"] == 30
    assert "pagination" not in body


def test_get_course(client, owned_school, make_course):
    _, school = owned_school
    course = make_course(school, 100)
    resp = client.get(f"/api/v1/courses/{course['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["school"]["name"] == school["name"]

    assert client.get("/api/v1/courses/999").status_code == 404
