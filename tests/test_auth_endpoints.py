"""Integration tests for authentication endpoints.

This module contains integration tests for login through the identity
provider, reading the current user, and logging out.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from bookswap.models.auth_session import AuthSession
from bookswap.models.user import User
from bookswap.schemas.auth_schemas import IdentityProfile
from bookswap.services.auth_service import IdentityProviderError


class TestLoginEndpoint:
    """Integration tests for POST /api/auth/login."""

    def test_login_creates_user(self, client: TestClient, test_session: Session, mock_userinfo):
        """Test first login creates the user and returns a usable token."""
        response = client.post("/api/auth/login", json={"access_token": "provider_token"})

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "success"
        assert data["message"] == "Login successful"
        assert data["data"]["token_type"] == "bearer"
        assert data["data"]["expires_in"] == 1440 * 60
        assert data["data"]["user"]["subject"] == "oidc|alice"
        assert data["data"]["user"]["email"] == "alice@example.com"

        users = test_session.exec(select(User)).all()
        assert len(users) == 1
        assert len(test_session.exec(select(AuthSession)).all()) == 1

        token = data["data"]["access_token"]
        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["subject"] == "oidc|alice"

    def test_login_refreshes_existing_user(
        self, client: TestClient, test_session: Session, test_user: User, mock_userinfo
    ):
        """Test a returning user keeps their ID and gets the new profile."""
        mock_userinfo.json.return_value = {
            "sub": test_user.subject,
            "email": "alice.new@example.com",
            "given_name": "Alicia",
        }

        response = client.post("/api/auth/login", json={"access_token": "provider_token"})

        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["id"] == test_user.id
        assert user["email"] == "alice.new@example.com"
        assert user["first_name"] == "Alicia"
        assert user["last_name"] is None

    def test_login_provider_rejects_token(self, client: TestClient, mock_userinfo):
        mock_userinfo.status_code = 401

        response = client.post("/api/auth/login", json={"access_token": "expired_token"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "authentication_error"

    def test_login_provider_unavailable(self, client: TestClient):
        with patch(
            "bookswap.services.auth_service.AuthService.fetch_identity_profile",
            new_callable=AsyncMock,
            side_effect=IdentityProviderError("Identity provider is unavailable", status_code=503),
        ):
            response = client.post("/api/auth/login", json={"access_token": "token"})

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "external_service_error"
        assert error["details"]["service"] == "identity_provider"

    def test_login_email_taken_by_other_account(
        self, client: TestClient, other_user: User
    ):
        profile = IdentityProfile(sub="oidc|newcomer", email=other_user.email)
        with patch(
            "bookswap.services.auth_service.AuthService.fetch_identity_profile",
            new_callable=AsyncMock,
            return_value=profile,
        ):
            response = client.post("/api/auth/login", json={"access_token": "token"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict_error"

    def test_login_blank_token(self, client: TestClient):
        """Test blank access tokens fail validation with 400."""
        response = client.post("/api/auth/login", json={"access_token": "   "})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["details"]["validation_errors"][0]["field"] == "body -> access_token"

    def test_login_missing_body(self, client: TestClient):
        response = client.post("/api/auth/login", json={})

        assert response.status_code == 400


class TestCurrentUserEndpoint:
    """Integration tests for GET /api/auth/user."""

    def test_get_current_user(self, client: TestClient, test_user: User, auth_headers: dict):
        response = client.get("/api/auth/user", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_user.id
        assert data["subject"] == test_user.subject
        assert data["email"] == test_user.email

    def test_get_current_user_without_token(self, client: TestClient):
        response = client.get("/api/auth/user")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["message"] == "Authorization header is missing"

    def test_get_current_user_invalid_token(self, client: TestClient, invalid_auth_headers: dict):
        response = client.get("/api/auth/user", headers=invalid_auth_headers)

        assert response.status_code == 401

    def test_token_without_session_is_rejected(
        self, client: TestClient, test_user: User, auth_service
    ):
        """A well-signed token whose session does not exist is refused."""
        token = auth_service.create_jwt_token(test_user.id, "never-opened")

        response = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "log in again" in response.json()["error"]["message"]


class TestLogoutEndpoint:
    """Integration tests for POST /api/auth/logout."""

    def test_logout_revokes_token(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/auth/logout", headers=auth_headers)

        assert response.status_code == 204
        assert response.content == b""

        after = client.get("/api/auth/user", headers=auth_headers)
        assert after.status_code == 401

    def test_logout_only_ends_own_session(
        self, client: TestClient, auth_headers_for, test_user: User
    ):
        first = auth_headers_for(test_user)
        second = auth_headers_for(test_user)

        assert client.post("/api/auth/logout", headers=first).status_code == 204

        assert client.get("/api/auth/user", headers=first).status_code == 401
        assert client.get("/api/auth/user", headers=second).status_code == 200

    def test_logout_without_token(self, client: TestClient):
        response = client.post("/api/auth/logout")

        assert response.status_code == 401
