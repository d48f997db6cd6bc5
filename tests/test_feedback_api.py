import pytest

from conftest import ADMIN_HEADERS, headers_for


def _submit(client, restaurant_id, ratings=(5, 5, 5, 5), **extra):
    food, service, ambiance, pricing = ratings
    payload = {
        "restaurant_id": restaurant_id,
        "food_quality": food,
        "service": service,
        "ambiance": ambiance,
        "pricing": pricing,
    }
    payload.update(extra)
    return client.post("/api/feedback/submit", json=payload)


def test_submit_without_identity(client, restaurant):
    r = _submit(client, restaurant["id"], phone_number="+919876543210", comments="Lovely")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["feedback_id"] > 0


@pytest.mark.parametrize("phone", ["", "+91", None])
def test_blank_phone_accepted(client, restaurant, phone):
    r = _submit(client, restaurant["id"], phone_number=phone)
    assert r.status_code == 200


@pytest.mark.parametrize("phone", ["9876543210", "+91123456789", "+9198765432100"])
def test_invalid_phone_rejected(client, restaurant, phone):
    r = _submit(client, restaurant["id"], phone_number=phone)
    assert r.status_code == 400
    assert "valid Indian mobile number" in r.json()["message"]


def test_rating_out_of_range(client, restaurant):
    r = _submit(client, restaurant["id"], ratings=(6, 5, 5, 5))
    assert r.status_code == 400


def test_comment_too_long(client, restaurant):
    r = _submit(client, restaurant["id"], comments="x" * 151)
    assert r.status_code == 400


def test_submit_for_missing_restaurant(client):
    r = _submit(client, 999)
    assert r.status_code == 404


def test_list_newest_first_with_rating_filter(client, restaurant):
    _submit(client, restaurant["id"], ratings=(1, 1, 1, 1))
    _submit(client, restaurant["id"], ratings=(5, 4, 4, 5))

    r = client.get(f"/api/feedback/restaurant/{restaurant['id']}", headers=ADMIN_HEADERS)
    body = r.json()
    assert body["count"] == 2
    assert body["feedback"][0]["food_quality"] == 5

    r = client.get(
        f"/api/feedback/restaurant/{restaurant['id']}",
        params={"min_rating": 4},
        headers=ADMIN_HEADERS,
    )
    assert r.json()["count"] == 1


def test_list_date_range(client, restaurant):
    _submit(client, restaurant["id"])

    r = client.get(
        f"/api/feedback/restaurant/{restaurant['id']}",
        params={"start_date": "2000-01-01", "end_date": "2000-12-31"},
        headers=ADMIN_HEADERS,
    )
    assert r.json()["count"] == 0

    r = client.get(
        f"/api/feedback/restaurant/{restaurant['id']}",
        params={"start_date": "2000-01-01"},
        headers=ADMIN_HEADERS,
    )
    assert r.json()["count"] == 1


def test_admin_role_required(client, restaurant, make_user):
    make_user("mgr", "manager")
    r = client.get(f"/api/feedback/restaurant/{restaurant['id']}", headers=headers_for("mgr"))
    assert r.status_code == 403
    r = client.get(f"/api/feedback/restaurant/{restaurant['id']}")
    assert r.status_code == 401


def test_stats_and_distribution(client, restaurant):
    _submit(client, restaurant["id"], ratings=(5, 5, 5, 5))
    _submit(client, restaurant["id"], ratings=(4, 4, 4, 3))
    _submit(client, restaurant["id"], ratings=(1, 2, 1, 1))

    r = client.get(f"/api/feedback/stats/{restaurant['id']}", headers=ADMIN_HEADERS)
    assert r.status_code == 200
    stats = r.json()["stats"]
    assert stats["total_reviews"] == 3
    assert stats["avg_food_quality"] == pytest.approx(3.33, abs=0.01)
    assert stats["overall_rating"] == pytest.approx(3.33, abs=0.01)
    assert r.json()["distribution"] == {
        "five_star": 1,
        "four_star": 1,
        "three_star": 0,
        "two_star": 0,
        "one_star": 1,
    }


def test_stats_empty(client, restaurant):
    r = client.get(f"/api/feedback/stats/{restaurant['id']}", headers=ADMIN_HEADERS)
    stats = r.json()["stats"]
    assert stats["total_reviews"] == 0
    assert stats["overall_rating"] is None


def test_delete_one(client, restaurant):
    feedback_id = _submit(client, restaurant["id"]).json()["feedback_id"]
    r = client.delete(f"/api/feedback/{feedback_id}", headers=ADMIN_HEADERS)
    assert r.status_code == 200
    r = client.delete(f"/api/feedback/{feedback_id}", headers=ADMIN_HEADERS)
    assert r.status_code == 404


def test_delete_all_for_restaurant(client, restaurant):
    _submit(client, restaurant["id"])
    _submit(client, restaurant["id"])

    r = client.delete(f"/api/feedback/restaurant/{restaurant['id']}/all", headers=ADMIN_HEADERS)
    body = r.json()
    assert body["deleted"] == 2
    assert body["sequence_reset"] is True

    new_id = _submit(client, restaurant["id"]).json()["feedback_id"]
    assert new_id == 1
