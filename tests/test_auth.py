"""
Tests for authentication and profile endpoints.
"""
import pytest
from fastapi import status

from app.models.audit_log import AuditLog
from app.models.enums import UserRole
from app.models.user import User

CLIENT_PASSWORD = "Client1234!@x"


@pytest.mark.unit
class TestRegister:
    """Test client self-registration."""

    def test_register_creates_client(self, client, db_session):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "first_name": "Nina",
                "last_name": "New",
                "email": "Nina@Example.com",
                "password": "Register1234!@",
                "company": "Nina GmbH",
            },
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["email"] == "nina@example.com"
        assert data["user"]["role"] == "client"

        user = db_session.query(User).filter(User.email == "nina@example.com").one()
        assert user.role == UserRole.CLIENT
        assert user.password_hash != "Register1234!@"

    def test_register_duplicate_email(self, client, client_user):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "first_name": "Clara",
                "last_name": "Again",
                "email": "client@test.com",
                "password": "Register1234!@",
            },
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_register_weak_password(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"first_name": "W", "last_name": "P", "email": "weak@example.com", "password": "password"},
        )
        assert response.status_code == 422


@pytest.mark.unit
class TestLogin:
    """Test login functionality."""

    def test_login_success(self, client, client_user, db_session):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "client@test.com", "password": CLIENT_PASSWORD},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert "refresh_token" in response.cookies

        db_session.refresh(client_user)
        assert client_user.last_login is not None

    def test_login_invalid_password(self, client, client_user, db_session):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "client@test.com", "password": "Wrong1234!@xyz"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

        failures = db_session.query(AuditLog).filter(AuditLog.action_type == "AUTH_LOGIN").all()
        assert len(failures) == 1
        assert failures[0].details["success"] is False

    def test_login_unknown_email(self, client):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@test.com", "password": CLIENT_PASSWORD},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(self, client, client_user, db_session):
        client_user.is_active = False
        db_session.commit()

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "client@test.com", "password": CLIENT_PASSWORD},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.unit
class TestTokens:
    """Test refresh, logout and token validation."""

    def test_refresh_issues_new_access_token(self, client, client_user):
        login = client.post(
            "/api/v1/auth/login",
            json={"email": "client@test.com", "password": CLIENT_PASSWORD},
        )
        assert login.status_code == status.HTTP_200_OK

        response = client.post("/api/v1/auth/refresh")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["access_token"]

    def test_refresh_without_cookie(self, client):
        response = client.post("/api/v1/auth/refresh")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout(self, client, client_user):
        login = client.post(
            "/api/v1/auth/login",
            json={"email": "client@test.com", "password": CLIENT_PASSWORD},
        )
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        response = client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["detail"] == "Logged out successfully"

    def test_me(self, client, client_headers, client_user):
        response = client.get("/api/v1/auth/me", headers=client_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == str(client_user.id)

    def test_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.unit
class TestProfile:
    """Test the self-service profile."""

    def test_update_profile(self, client, client_headers):
        response = client.patch(
            "/api/v1/users/me",
            json={"company": "Clara Corp", "phone": "+49 30 1234"},
            headers=client_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["company"] == "Clara Corp"
        assert response.json()["phone"] == "+49 30 1234"

    def test_cannot_change_role(self, client, client_headers):
        response = client.patch("/api/v1/users/me", json={"role": "admin"}, headers=client_headers)
        assert response.status_code == 422

    def test_null_first_name_rejected(self, client, client_headers):
        response = client.patch("/api/v1/users/me", json={"first_name": None}, headers=client_headers)
        assert response.status_code == 422

    def test_null_optional_field_clears_it(self, client, client_headers):
        client.patch("/api/v1/users/me", json={"company": "Clara Corp"}, headers=client_headers)
        response = client.patch("/api/v1/users/me", json={"company": None}, headers=client_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["company"] is None
