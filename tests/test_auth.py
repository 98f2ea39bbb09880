import pytest
from tests.conftest import DEFAULT_PASSWORD, bearer, create_test_token, register_user


class TestRegistration:
    """Tests for POST /api/auth/register"""

    def test_register_creates_user_and_tenant(self, client):
        """Registration returns the user, a bearer token and a personal tenant"""
        response = client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "Alice@Example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"]["email"] == "alice@example.com"
        assert body["data"]["user"]["name"] == "Alice Souza"
        assert body["data"]["token_type"] == "bearer"
        assert "password_hash" not in body["data"]["user"]

        me = client.get("/api/auth/me", headers=bearer(body["data"]["access_token"]))
        tenants = me.json()["data"]["tenants"]
        assert len(tenants) == 1
        assert tenants[0]["role"] == "owner"
        assert tenants[0]["name"] == "Alice Souza's finances"

    def test_register_sets_cookies(self, client):
        """Access and refresh tokens are also set as http-only cookies"""
        response = client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 201
        assert "sua-grana-token" in response.cookies
        assert "sua-grana-refresh-token" in response.cookies
        set_cookie = response.headers.get("set-cookie", "").lower()
        assert "httponly" in set_cookie

    def test_register_duplicate_email(self, client, user_a):
        """Registering an existing email returns 409"""
        response = client.post(
            "/api/auth/register",
            json={"name": "Other", "email": "ALICE@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 409
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "CONFLICT_ERROR"

    @pytest.mark.parametrize(
        "password",
        ["short1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecial123"],
    )
    def test_register_weak_password(self, client, password):
        """Passwords need 8+ chars with lower, upper, digit and special characters"""
        response = client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "alice@example.com", "password": password},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_register_invalid_email(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "not-an-email", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 422

    def test_register_slugs_are_unique(self, client):
        """Two users with the same name get distinct tenant slugs"""
        first = register_user(client, "Ana Costa", "ana1@example.com")
        second = register_user(client, "Ana Costa", "ana2@example.com")

        slug_a = client.get("/api/tenants/me", headers=bearer(first["access_token"])).json()["data"]["slug"]
        slug_b = client.get("/api/tenants/me", headers=bearer(second["access_token"])).json()["data"]["slug"]
        assert slug_a.startswith("ana-costa")
        assert slug_b.startswith("ana-costa")
        assert slug_a != slug_b


class TestLogin:
    """Tests for POST /api/auth/login"""

    def test_login_success(self, client, user_a):
        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == "alice@example.com"
        assert data["user"]["last_login_at"] is not None
        assert data["access_token"]

    def test_login_wrong_password(self, client, user_a):
        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "Wrong123!"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_login_unknown_email(self, client):
        """Unknown emails produce the same error as wrong passwords"""
        response = client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"


class TestTokens:
    """Tests for token validation, cookies and refresh"""

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    def test_expired_token(self, client, user_a):
        token = create_test_token(user_id=user_a["user"]["id"], expired=True)

        response = client.get("/api/auth/me", headers=bearer(token))

        assert response.status_code == 401

    def test_token_wrong_signature(self, client, user_a):
        from jose import jwt
        from datetime import datetime, timedelta, UTC

        token = jwt.encode(
            {"sub": str(user_a["user"]["id"]), "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "some-other-secret",
            algorithm="HS256",
        )

        response = client.get("/api/auth/me", headers=bearer(token))

        assert response.status_code == 401

    def test_refresh_token_not_accepted_as_access(self, client, user_a):
        token = create_test_token(user_id=user_a["user"]["id"], token_type="refresh")

        response = client.get("/api/auth/me", headers=bearer(token))

        assert response.status_code == 401

    def test_token_for_unknown_user(self, client):
        response = client.get("/api/auth/me", headers=bearer(create_test_token(user_id=999)))

        assert response.status_code == 401

    def test_cookie_authentication(self, client):
        """Without an Authorization header the access cookie is used"""
        client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        response = client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["data"]["user"]["email"] == "alice@example.com"

    def test_refresh_from_body(self, client, user_a):
        refresh_token = create_test_token(user_id=user_a["user"]["id"], token_type="refresh")

        response = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == 200
        new_token = response.json()["data"]["access_token"]
        assert client.get("/api/auth/me", headers=bearer(new_token)).status_code == 200

    def test_refresh_from_cookie(self, client):
        client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        response = client.post("/api/auth/refresh")

        assert response.status_code == 200
        assert response.json()["data"]["user"]["email"] == "alice@example.com"

    def test_refresh_rejects_access_token(self, client, user_a):
        response = client.post("/api/auth/refresh", json={"refresh_token": user_a["access_token"]})

        assert response.status_code == 401

    def test_refresh_without_token(self, client):
        response = client.post("/api/auth/refresh")

        assert response.status_code == 401

    def test_logout_clears_cookies(self, client):
        client.post(
            "/api/auth/register",
            json={"name": "Alice Souza", "email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logout successful"
        assert client.get("/api/auth/me").status_code == 401


class TestProfile:
    """Tests for profile and password endpoints"""

    def test_update_profile(self, client, auth_headers):
        response = client.put(
            "/api/auth/profile",
            headers=auth_headers,
            json={"name": "Alice S. Souza", "avatar": "https://example.com/a.png"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Alice S. Souza"
        assert response.json()["data"]["avatar"] == "https://example.com/a.png"

    def test_change_password(self, client, auth_headers):
        response = client.put(
            "/api/auth/change-password",
            headers=auth_headers,
            json={"current_password": DEFAULT_PASSWORD, "new_password": "NewSecret456?"},
        )

        assert response.status_code == 200
        old_login = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD}
        )
        new_login = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "NewSecret456?"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

    def test_change_password_wrong_current(self, client, auth_headers):
        response = client.put(
            "/api/auth/change-password",
            headers=auth_headers,
            json={"current_password": "Wrong123!", "new_password": "NewSecret456?"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Current password is incorrect"
