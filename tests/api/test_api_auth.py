"""
Auth API tests
Covers /auth/login, /auth/me and bearer-token enforcement
"""
from datetime import timedelta

from fastapi.testclient import TestClient

from hotelos.security.auth import create_access_token


class TestAuthLogin:

    def test_login_success(self, client: TestClient, manager):
        response = client.post("/auth/login", json={"username": "manager", "password": "secret123"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["employee"]["username"] == "manager"
        assert data["employee"]["role"] == "manager"

    def test_login_wrong_password(self, client: TestClient, manager):
        response = client.post("/auth/login", json={"username": "manager", "password": "wrong"})
        assert response.status_code == 401

    def test_login_unknown_user(self, client: TestClient):
        response = client.post("/auth/login", json={"username": "nobody", "password": "secret123"})
        assert response.status_code == 401

    def test_login_inactive(self, client: TestClient, db_session, manager):
        manager.is_active = False
        db_session.commit()
        response = client.post("/auth/login", json={"username": "manager", "password": "secret123"})
        assert response.status_code == 401

    def test_token_from_login_works(self, client: TestClient, receptionist):
        token = client.post(
            "/auth/login", json={"username": "front1", "password": "secret123"}
        ).json()["access_token"]

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["username"] == "front1"


class TestBearerToken:

    def test_missing_token(self, client: TestClient):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, client: TestClient):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_expired_token(self, client: TestClient, manager):
        token = create_access_token(manager.id, manager.role, expires_delta=timedelta(minutes=-1))
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_disabled_account(self, client: TestClient, db_session, manager, manager_auth_headers):
        manager.is_active = False
        db_session.commit()
        response = client.get("/auth/me", headers=manager_auth_headers)
        assert response.status_code == 401

    def test_role_enforced(self, client: TestClient, auth_headers):
        response = client.post("/rooms", json={"room_number": "301", "rate_per_night": "120.00"},
                               headers=auth_headers)
        assert response.status_code == 403

    def test_health_is_public(self, client: TestClient):
        assert client.get("/health").status_code == 200
