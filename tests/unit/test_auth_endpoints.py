"""Unit tests for auth API endpoints.

Exercises /api/auth/register, /api/auth/login, /api/auth/refresh,
/api/auth/me and /health through FastAPI TestClient, with the auth service
wired to the in-memory user store.
"""

from unittest.mock import AsyncMock, patch

from identity.errors import StoreUnavailableError

REGISTER_BODY = {
    "username": "alice",
    "email": "alice@example.com",
    "password": "password-123",
}


def _register(client, **overrides):
    return client.post("/api/auth/register", json={**REGISTER_BODY, **overrides})


# ---------------------------------------------------------------------------
# POST /api/auth/register
# ---------------------------------------------------------------------------

class TestRegisterEndpoint:
    """Tests for POST /api/auth/register."""

    def test_creates_account(self, client):
        response = _register(client, display_name="Alice")

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "Bearer"
        assert body["access_token"]
        assert body["refresh_token"]
        assert body["expires_in"] == 900
        assert body["user"]["username"] == "alice"
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["display_name"] == "Alice"
        assert body["user"]["status"] == "ONLINE"
        assert body["user"]["is_verified"] is False

    def test_public_view_fields_only(self, client):
        user = _register(client).json()["user"]

        assert set(user) == {
            "id", "username", "email", "display_name", "avatar", "bio",
            "status", "is_verified", "created_at",
        }

    def test_duplicate_username_returns_409(self, client):
        _register(client)

        response = _register(client, email="other@example.com")

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_IDENTITY"

    def test_duplicate_email_returns_409(self, client):
        _register(client)

        response = _register(client, username="alice2")

        assert response.status_code == 409

    def test_invalid_username_returns_400(self, client):
        response = _register(client, username="bad name!")

        assert response.status_code == 400
        assert "username" in response.json()["detail"]

    def test_username_shaped_like_email_returns_400(self, client):
        response = _register(client, username="mallory@example.com")

        assert response.status_code == 400

    def test_non_ascii_username_accepted(self, client):
        response = _register(client, username="José")

        assert response.status_code == 201
        assert response.json()["user"]["username"] == "José"

    def test_short_password_returns_400(self, client):
        response = _register(client, password="short")

        assert response.status_code == 400

    def test_password_over_bcrypt_limit_returns_400(self, client):
        response = _register(client, password="x" * 73)

        assert response.status_code == 400

    def test_invalid_email_returns_400(self, client):
        response = _register(client, email="not-an-email")

        assert response.status_code == 400


# ---------------------------------------------------------------------------
# POST /api/auth/login
# ---------------------------------------------------------------------------

class TestLoginEndpoint:
    """Tests for POST /api/auth/login."""

    def test_login_by_username(self, client):
        _register(client)

        response = client.post(
            "/api/auth/login",
            json={"identifier": "alice", "password": "password-123"},
        )

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"

    def test_login_by_email(self, client):
        _register(client)

        response = client.post(
            "/api/auth/login",
            json={"identifier": "alice@example.com", "password": "password-123"},
        )

        assert response.status_code == 200

    def test_wrong_password_and_unknown_user_look_the_same(self, client):
        _register(client)

        wrong_password = client.post(
            "/api/auth/login",
            json={"identifier": "alice", "password": "wrong-password"},
        )
        unknown_user = client.post(
            "/api/auth/login",
            json={"identifier": "mallory", "password": "password-123"},
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        wrong_body = wrong_password.json()
        unknown_body = unknown_user.json()
        assert wrong_body["error"] == unknown_body["error"] == "INVALID_CREDENTIALS"
        assert wrong_body["detail"] == unknown_body["detail"]

    def test_disabled_account_returns_403(self, client, user_store):
        user_id = _register(client).json()["user"]["id"]
        user_store.rows[user_id].is_active = False

        response = client.post(
            "/api/auth/login",
            json={"identifier": "alice", "password": "password-123"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "ACCOUNT_DISABLED"

    def test_store_unavailable_returns_503(self, client, auth_service):
        with patch.object(
            auth_service,
            "login",
            new=AsyncMock(side_effect=StoreUnavailableError()),
        ):
            response = client.post(
                "/api/auth/login",
                json={"identifier": "alice", "password": "password-123"},
            )

        assert response.status_code == 503
        assert response.json()["error"] == "STORE_UNAVAILABLE"


# ---------------------------------------------------------------------------
# POST /api/auth/refresh and GET /api/auth/me
# ---------------------------------------------------------------------------

class TestRefreshEndpoint:
    """Tests for POST /api/auth/refresh."""

    def test_refresh_returns_new_pair(self, client):
        tokens = _register(client).json()

        response = client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == tokens["user"]["id"]

    def test_access_token_rejected(self, client):
        tokens = _register(client).json()

        response = client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["access_token"]}
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestMeEndpoint:
    """Tests for GET /api/auth/me."""

    def test_returns_current_user(self, client):
        tokens = _register(client).json()

        response = client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {tokens['access_token']}"},
        )

        assert response.status_code == 200
        assert response.json() == tokens["user"]

    def test_missing_token_returns_401(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    def test_refresh_token_rejected(self, client):
        tokens = _register(client).json()

        response = client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {tokens['refresh_token']}"},
        )

        assert response.status_code == 401


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------

class TestHealth:
    """Tests for GET /health."""

    def test_healthy_with_database(self, client):
        with patch("identity.api.routes.db_health_check", new=AsyncMock(return_value=True)):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "healthy"

    def test_still_ok_without_database(self, client):
        with patch("identity.api.routes.db_health_check", new=AsyncMock(return_value=False)):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "unavailable"

    def test_correlation_id_echoed(self, client):
        with patch("identity.api.routes.db_health_check", new=AsyncMock(return_value=True)):
            response = client.get("/health", headers={"X-Correlation-Id": "abc-123"})

        assert response.headers["X-Correlation-Id"] == "abc-123"


# ---------------------------------------------------------------------------
# startup
# ---------------------------------------------------------------------------

class TestStartup:
    """Tests for the application lifespan."""

    def test_dummy_hash_is_ready_before_first_request(self, client):
        from identity.api.dependencies import get_password_hasher

        assert "dummy_hash" in get_password_hasher().__dict__
