from conftest import ADMIN_HEADERS, headers_for


def test_bootstrap_admin_can_verify(client):
    r = client.get("/api/auth/verify", headers=ADMIN_HEADERS)
    assert r.status_code == 200
    body = r.json()
    assert body["valid"] is True
    assert body["user"]["username"] == "admin"
    assert body["user"]["role"] == "admin"


def test_verify_rejects_missing_and_unknown(client):
    assert client.get("/api/auth/verify").status_code == 401
    r = client.get("/api/auth/verify", headers=headers_for("stranger"))
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_inactive_user_rejected(client, make_user):
    user = make_user("temp", "viewer")
    client.put(f"/api/users/{user['id']}", json={"is_active": False}, headers=ADMIN_HEADERS)
    assert client.get("/api/auth/verify", headers=headers_for("temp")).status_code == 401


def test_create_defaults_to_admin_role(client):
    r = client.post("/api/users/", json={"username": "second"}, headers=ADMIN_HEADERS)
    assert r.status_code == 200
    r = client.get("/api/auth/verify", headers=headers_for("second"))
    assert r.json()["user"]["role"] == "admin"


def test_duplicate_username(client, make_user):
    make_user("mgr", "manager")
    r = client.post("/api/users/", json={"username": "mgr"}, headers=ADMIN_HEADERS)
    assert r.status_code == 400
    assert r.json()["message"] == "Username already exists"


def test_invalid_email(client):
    r = client.post(
        "/api/users/", json={"username": "x", "email": "not-an-email"}, headers=ADMIN_HEADERS
    )
    assert r.status_code == 400


def test_list_users(client, make_user):
    make_user("mgr", "manager")
    r = client.get("/api/users/", headers=ADMIN_HEADERS)
    users = r.json()["users"]
    assert {u["username"] for u in users} == {"admin", "mgr"}
    assert all(u["is_active"] is True for u in users)


def test_viewer_cannot_manage_users(client, make_user):
    make_user("viewer1", "viewer")
    assert client.get("/api/users/", headers=headers_for("viewer1")).status_code == 403


def test_manager_cannot_touch_admins(client, make_user):
    make_user("mgr", "manager")
    admin = client.get("/api/auth/verify", headers=ADMIN_HEADERS).json()["user"]

    r = client.put(
        f"/api/users/{admin['id']}", json={"full_name": "Hacked"}, headers=headers_for("mgr")
    )
    assert r.status_code == 403
    r = client.delete(f"/api/users/{admin['id']}", headers=headers_for("mgr"))
    assert r.status_code == 403


def test_manager_can_manage_viewers(client, make_user):
    make_user("mgr", "manager")
    viewer = make_user("viewer1", "viewer")

    r = client.put(
        f"/api/users/{viewer['id']}", json={"full_name": "Front Desk"}, headers=headers_for("mgr")
    )
    assert r.status_code == 200
    r = client.delete(f"/api/users/{viewer['id']}", headers=headers_for("mgr"))
    assert r.status_code == 200


def test_cannot_delete_self(client):
    admin = client.get("/api/auth/verify", headers=ADMIN_HEADERS).json()["user"]
    r = client.delete(f"/api/users/{admin['id']}", headers=ADMIN_HEADERS)
    assert r.status_code == 400


def test_missing_user(client):
    assert client.put("/api/users/999", json={"full_name": "X"}, headers=ADMIN_HEADERS).status_code == 404
    assert client.delete("/api/users/999", headers=ADMIN_HEADERS).status_code == 404
