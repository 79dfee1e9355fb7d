"""Tests for password registration and login (password auth mode)."""

import pytest

EMAIL = "a@x.com"
PASSWORD = "correct-horse"


@pytest.fixture
def password_client(make_client):
    return make_client(auth_mode="password")


def _register(client) -> dict:
    response = client.post(
        "/api/v1/auth/register", json={"email": EMAIL, "full_name": "Alice", "password": PASSWORD}
    )
    assert response.status_code == 201
    return response.json()


class TestPasswordRegistration:
    def test_register_returns_token(self, password_client, fake_db):
        body = _register(password_client)
        assert body["ok"] is True
        assert body["user"]["email"] == EMAIL
        stored = fake_db.get_collection("users").docs[0]
        assert stored["password_hash"] != PASSWORD

    def test_duplicate_email_conflicts(self, password_client):
        _register(password_client)
        response = password_client.post(
            "/api/v1/auth/register", json={"email": EMAIL, "full_name": "Alice", "password": PASSWORD}
        )
        assert response.status_code == 409

    def test_weak_password_rejected(self, password_client):
        response = password_client.post(
            "/api/v1/auth/register", json={"email": EMAIL, "full_name": "Alice", "password": "short"}
        )
        assert response.status_code == 400

    def test_password_over_72_bytes_rejected(self, password_client, fake_db):
        response = password_client.post(
            "/api/v1/auth/register", json={"email": EMAIL, "full_name": "Alice", "password": "p" * 80}
        )
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"
        assert fake_db.get_collection("users").docs == []

    def test_missing_password_rejected(self, password_client):
        response = password_client.post("/api/v1/auth/register", json={"email": EMAIL, "full_name": "Alice"})
        assert response.status_code == 400


class TestPasswordLogin:
    def test_login_and_fetch_profile(self, password_client):
        _register(password_client)
        response = password_client.post("/api/v1/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 200

        token = response.json()["token"]
        me = password_client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == EMAIL

    def test_wrong_password_unauthorized(self, password_client):
        _register(password_client)
        response = password_client.post("/api/v1/auth/login", json={"email": EMAIL, "password": "wrong-horse"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_oversized_password_unauthorized(self, password_client):
        _register(password_client)
        response = password_client.post("/api/v1/auth/login", json={"email": EMAIL, "password": "p" * 80})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_unknown_email_unauthorized(self, password_client):
        response = password_client.post("/api/v1/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 401

    def test_code_routes_not_mounted(self, password_client):
        response = password_client.post("/api/v1/auth/login/start", json={"email": EMAIL})
        assert response.status_code == 404
