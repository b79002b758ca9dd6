import pytest

from school_directory_api.app.core.store import REVIEWS, SCHOOLS


def review_payload(rating=8, **values):
    data = {"title": "Great school", "text": "Learned a lot", "rating": rating}
    data.update(values)
    return data


def test_reviews_update_average_rating(client, auth, store, make_user, make_school):
    school = make_school()
    url = f"/api/v1/schools/{school['id']}/reviews"
    for rating in (7, 10):
        resp = client.post(url, json=review_payload(rating), headers=auth(make_user()))
        assert resp.status_code == 201
    assert store.get(SCHOOLS, school["id"])["average_rating"] == 8.5


def test_second_review_by_same_user_is_rejected(client, auth, store, make_user, make_school):
    school = make_school()
    reviewer = make_user()
    url = f"/api/v1/schools/{school['id']}/reviews"

    first = client.post(url, json=review_payload(4, title="First"), headers=auth(reviewer))
    assert first.status_code == 201

    resp = client.post(url, json=review_payload(10, title="Second"), headers=auth(reviewer))
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": f"User {reviewer['id']} has already reviewed school {school['id']}",
    }
    assert store.count(REVIEWS) == 1
    assert store.get(REVIEWS, first.json()["data"]["id"])["title"] == "First"
    assert store.get(SCHOOLS, school["id"])["average_rating"] == 4.0


def test_publisher_cannot_review(client, auth, make_user, make_school):
    school = make_school()
    resp = client.post(
        f"/api/v1/schools/{school['id']}/reviews", json=review_payload(), headers=auth(make_user("publisher"))
    )
    assert resp.status_code == 403


@pytest.mark.parametrize("rating", [0, 11])
def test_rating_out_of_range(client, auth, make_user, make_school, rating):
    school = make_school()
    resp = client.post(
        f"/api/v1/schools/{school['id']}/reviews", json=review_payload(rating), headers=auth(make_user())
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert "rating" in resp.json()["error"]


def test_only_author_changes_review(client, auth, store, make_user, make_school, make_review):
    school = make_school()
    author = make_user()
    review = make_review(school, author, 6)
    url = f"/api/v1/reviews/{review['id']}"

    resp = client.put(url, json={"rating": 2}, headers=auth(make_user()))
    assert resp.status_code == 403

    resp = client.put(url, json={"rating": 2}, headers=auth(author))
    assert resp.status_code == 200
    assert resp.json()["data"]["rating"] == 2
    assert store.get(SCHOOLS, school["id"])["average_rating"] == 2.0


def test_delete_review_recomputes_from_remaining(client, auth, store, make_user, make_school, make_review):
    school = make_school()
    author = make_user()
    removed = make_review(school, author, 2)
    make_review(school, make_user(), 8)

    resp = client.delete(f"/api/v1/reviews/{removed['id']}", headers=auth(author))
    assert resp.status_code == 200
    assert store.get(SCHOOLS, school["id"])["average_rating"] == 8.0


def test_list_and_get_reviews(client, make_user, make_school, make_review):
    school = make_school()
    other = make_school()
    review = make_review(school, make_user(), 9)
    make_review(other, make_user(), 3)

    resp = client.get("/api/v1/reviews", params={"rating[gte]": "5"})
    body = resp.json()
    assert body["count"] == 1
    assert body["data"][0]["school"]["name"] == school["name"]

    resp = client.get(f"/api/v1/schools/{school['id']}/reviews")
    assert [r["id"] for r in resp.json()["data"]] == [review["id"]]

    resp = client.get(f"/api/v1/reviews/{review['id']}")
    assert resp.json()["data"]["school"]["id"] == school["id"]
    assert client.get("/api/v1/reviews/999").status_code == 404
