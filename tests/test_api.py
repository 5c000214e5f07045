"""End-to-end tests through the HTTP surface."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from .conftest import ADMIN_EMAIL, ADMIN_PASSWORD, STRONG_PASSWORD


def _login(client, email, password):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


def _register(client, sender, email, username):
    expected = len(sender.messages) + 1
    response = client.post(
        "/auth/register",
        json={"email": email, "username": username, "password": STRONG_PASSWORD},
    )
    assert response.status_code == 201, response.text
    sender.wait_for(expected)
    return response.json()["data"]


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_default_admin_is_bootstrapped(api_client):
    headers = _login(api_client, ADMIN_EMAIL, ADMIN_PASSWORD)

    response = api_client.get("/users/me", headers=headers)

    body = response.json()
    assert body["success"] is True
    assert body["status"] == 200
    assert body["data"]["role"] == "admin"
    assert body["data"]["is_verified"] is True
    assert "password_hash" not in body["data"]


def test_register_verify_and_login(api_client, api_sender):
    created = _register(api_client, api_sender, "ivy@example.com", "ivy")
    assert created["role"] == "user"
    assert created["is_verified"] is False

    token = api_sender.last_token()
    response = api_client.post("/auth/verify-email", json={"token": token})
    assert response.status_code == 200
    assert response.json()["data"]["is_verified"] is True

    replay = api_client.post("/auth/verify-email", json={"token": token})
    assert replay.status_code == 400
    assert replay.json()["error"] == {"kind": "invalid_token", "message": "Invalid or expired token"}

    headers = _login(api_client, "ivy@example.com", STRONG_PASSWORD)
    me = api_client.get("/users/me", headers=headers).json()["data"]
    assert me["email"] == "ivy@example.com"


def test_duplicate_registration_is_rejected(api_client, api_sender):
    _register(api_client, api_sender, "jay@example.com", "jay")

    response = api_client.post(
        "/auth/register",
        json={"email": "JAY@example.com", "username": "jay2", "password": STRONG_PASSWORD},
    )

    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "validation"


def test_weak_password_and_malformed_body_are_validation_errors(api_client):
    weak = api_client.post(
        "/auth/register",
        json={"email": "kim@example.com", "username": "kim", "password": "password"},
    )
    malformed = api_client.post("/auth/register", json={"email": "not-an-email"})

    assert weak.status_code == 400
    assert weak.json()["error"]["kind"] == "validation"
    assert malformed.status_code == 400
    assert malformed.json()["error"]["details"]


def test_login_failure_is_generic(api_client, api_sender):
    _register(api_client, api_sender, "lee@example.com", "lee")

    wrong = api_client.post("/auth/login", json={"email": "lee@example.com", "password": "Wr0ng!Password"})
    unknown = api_client.post("/auth/login", json={"email": "nobody@example.com", "password": STRONG_PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["error"] == unknown.json()["error"]
    assert wrong.headers["WWW-Authenticate"] == "Bearer"


def test_protected_routes_require_bearer_token(api_client):
    assert api_client.get("/users/me").status_code == 401
    invalid = api_client.get("/users/me", headers={"Authorization": "Bearer nonsense"})
    assert invalid.status_code == 401
    assert invalid.json()["error"]["kind"] == "authentication"


def test_token_with_malformed_subject_is_unauthorized(api_client):
    token = jwt.encode(
        {"sub": "not-a-uuid", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "api-test-secret",
        algorithm="HS256",
    )

    response = api_client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_users_cannot_reach_admin_endpoints(api_client, api_sender):
    user = _register(api_client, api_sender, "max@example.com", "max")
    headers = _login(api_client, "max@example.com", STRONG_PASSWORD)
    admin_headers = _login(api_client, ADMIN_EMAIL, ADMIN_PASSWORD)
    admin_id = api_client.get("/users/me", headers=admin_headers).json()["data"]["id"]

    assert api_client.get("/users", headers=headers).status_code == 403
    assert api_client.get(f"/users/{admin_id}", headers=headers).status_code == 403
    assert api_client.delete(f"/users/{user['id']}", headers=headers).status_code == 403
    assert api_client.get(f"/users/{user['id']}", headers=headers).status_code == 200

    escalate = api_client.put("/users/me", json={"is_active": False}, headers=headers)
    assert escalate.status_code == 403
    assert escalate.json()["error"]["kind"] == "authorization"


def test_admin_manages_accounts(api_client, api_sender):
    user = _register(api_client, api_sender, "ned@example.com", "ned")
    admin_headers = _login(api_client, ADMIN_EMAIL, ADMIN_PASSWORD)

    listing = api_client.get("/users", params={"page": 1, "limit": 10}, headers=admin_headers)
    assert listing.status_code == 200
    page = listing.json()["data"]
    assert page["total"] == 2
    assert page["total_pages"] == 1
    assert {item["email"] for item in page["data"]} == {ADMIN_EMAIL, "ned@example.com"}

    deactivated = api_client.put(f"/users/{user['id']}", json={"is_active": False}, headers=admin_headers)
    assert deactivated.status_code == 200
    assert deactivated.json()["data"]["is_active"] is False
    denied = api_client.post("/auth/login", json={"email": "ned@example.com", "password": STRONG_PASSWORD})
    assert denied.status_code == 401

    reset = api_client.put(
        f"/users/{user['id']}/password",
        json={"new_password": "N3w!Password"},
        headers=admin_headers,
    )
    assert reset.status_code == 200

    deleted = api_client.delete(f"/users/{user['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    assert api_client.get(f"/users/{user['id']}", headers=admin_headers).status_code == 404
    assert api_client.delete(f"/users/{user['id']}", headers=admin_headers).status_code == 404

    # Email is free again after soft-deletion.
    _register(api_client, api_sender, "ned@example.com", "ned")


def test_admin_creates_account(api_client):
    admin_headers = _login(api_client, ADMIN_EMAIL, ADMIN_PASSWORD)

    response = api_client.post(
        "/users",
        json={"email": "olga@example.com", "username": "olga", "password": STRONG_PASSWORD, "role": "admin"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["data"]["role"] == "admin"


def test_change_own_password(api_client, api_sender):
    _register(api_client, api_sender, "pat@example.com", "pat")
    headers = _login(api_client, "pat@example.com", STRONG_PASSWORD)

    missing = api_client.put("/users/me/password", json={"new_password": "N3w!Password"}, headers=headers)
    wrong = api_client.put(
        "/users/me/password",
        json={"current_password": "Wr0ng!Password", "new_password": "N3w!Password"},
        headers=headers,
    )
    ok = api_client.put(
        "/users/me/password",
        json={"current_password": STRONG_PASSWORD, "new_password": "N3w!Password"},
        headers=headers,
    )

    assert missing.status_code == 400
    assert wrong.status_code == 401
    assert ok.status_code == 200
    _login(api_client, "pat@example.com", "N3w!Password")


def test_forgot_and_reset_password(api_client, api_sender):
    _register(api_client, api_sender, "quinn@example.com", "quinn")

    unknown = api_client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    known = api_client.post("/auth/forgot-password", json={"email": "quinn@example.com"})
    assert unknown.json() == known.json()
    api_sender.wait_for(2)
    token = api_sender.last_token()

    response = api_client.post("/auth/reset-password", json={"token": token, "new_password": "N3w!Password"})
    assert response.status_code == 200
    _login(api_client, "quinn@example.com", "N3w!Password")

    bogus = api_client.post("/auth/reset-password", json={"token": "x" * 32, "new_password": "N3w!Password"})
    assert bogus.status_code == 400


def test_unknown_user_id_is_not_found(api_client):
    admin_headers = _login(api_client, ADMIN_EMAIL, ADMIN_PASSWORD)

    response = api_client.get(f"/users/{uuid.uuid4()}", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"


def _raw_json(client, path, body):
    return client.post(path, content=body.encode("ascii"), headers={"Content-Type": "application/json"})


def test_unencodable_token_is_rejected_as_invalid(api_client):
    escaped = "\\ud800" * 32

    verify = _raw_json(api_client, "/auth/verify-email", '{"token": "%s"}' % escaped)
    reset = _raw_json(
        api_client,
        "/auth/reset-password",
        '{"token": "%s", "new_password": "N3w!Password"}' % escaped,
    )

    assert verify.status_code == 400
    assert verify.json()["error"]["kind"] == "invalid_token"
    assert reset.status_code == 400
    assert reset.json()["error"]["kind"] == "invalid_token"


def test_unencodable_password_is_a_client_error(api_client):
    login = _raw_json(api_client, "/auth/login", '{"email": "%s", "password": "\\ud800"}' % ADMIN_EMAIL)
    unknown = _raw_json(api_client, "/auth/login", '{"email": "x@example.com", "password": "\\ud800"}')
    register = _raw_json(
        api_client,
        "/auth/register",
        '{"email": "rex@example.com", "username": "rex", "password": "Aa1!\\ud800xyz"}',
    )

    assert login.status_code == 401
    assert login.json()["error"]["kind"] == "authentication"
    assert unknown.status_code == 401
    assert register.status_code == 400
    assert register.json()["error"]["kind"] == "validation"
