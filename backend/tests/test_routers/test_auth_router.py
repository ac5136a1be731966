"""Tests for the authentication endpoints."""

from conftest import TEST_PASSWORD, create_user


def _login(client, email: str, password: str = TEST_PASSWORD):
    return client.post(
        "/api/auth/login", data={"username": email, "password": password}
    )


class TestRegister:
    def test_register_returns_citizen(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "email": "jordan@example.com",
                "full_name": "Jordan Lee",
                "password": "longenough1",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "jordan@example.com"
        assert body["role"] == "CITIZEN"
        assert body["reputation_score"] == 0
        assert "hashed_password" not in body

    def test_duplicate_email(self, client, citizen):
        response = client.post(
            "/api/auth/register",
            json={
                "email": "citizen@example.com",
                "full_name": "Someone Else",
                "password": "longenough1",
            },
        )
        assert response.status_code == 409
        assert "correlation_id" in response.json()

    def test_short_password_rejected(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "x@example.com", "full_name": "Short Pw", "password": "123"},
        )
        assert response.status_code == 422


class TestLogin:
    def test_login_and_me(self, client, citizen):
        response = _login(client, "citizen@example.com")
        assert response.status_code == 200
        token = response.json()["access_token"]
        assert response.json()["token_type"] == "bearer"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["id"] == citizen.id

    def test_email_is_case_insensitive(self, client, citizen):
        assert _login(client, "Citizen@Example.com").status_code == 200

    def test_wrong_password(self, client, citizen):
        response = _login(client, "citizen@example.com", "wrong-password")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_unknown_user(self, client):
        assert _login(client, "nobody@example.com").status_code == 401

    def test_inactive_user(self, client, db_session):
        create_user(db_session, "gone@example.com", "Gone User", is_active=False)
        assert _login(client, "gone@example.com").status_code == 403


class TestTokens:
    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_deactivated_token_holder(self, client, db_session, citizen, citizen_headers):
        citizen.is_active = False
        db_session.commit()
        assert client.get("/api/auth/me", headers=citizen_headers).status_code == 403


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestSessions:
    """Refresh token rotation and logout (session store enabled)."""

    def test_login_without_store_has_no_refresh_token(self, client, citizen):
        assert _login(client, "citizen@example.com").json()["refresh_token"] is None

    def test_refresh_rotates_tokens(self, client, fake_cache, citizen):
        tokens = _login(client, "citizen@example.com").json()
        assert tokens["refresh_token"]

        response = client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )

        assert response.status_code == 200
        rotated = response.json()
        assert rotated["refresh_token"] != tokens["refresh_token"]
        me = client.get("/api/auth/me", headers=_bearer(rotated["access_token"]))
        assert me.json()["id"] == citizen.id

    def test_reused_refresh_token_ends_session(self, client, fake_cache, citizen):
        tokens = _login(client, "citizen@example.com").json()
        client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        replay = client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )

        assert replay.status_code == 401
        me = client.get("/api/auth/me", headers=_bearer(tokens["access_token"]))
        assert me.status_code == 401

    def test_unknown_refresh_token(self, client, fake_cache):
        response = client.post("/api/auth/refresh", json={"refresh_token": "nope"})
        assert response.status_code == 401

    def test_refresh_for_deactivated_account(
        self, client, fake_cache, db_session, citizen
    ):
        tokens = _login(client, "citizen@example.com").json()
        citizen.is_active = False
        db_session.commit()

        response = client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 403

    def test_logout_revokes_access_and_refresh(self, client, fake_cache, citizen):
        tokens = _login(client, "citizen@example.com").json()

        response = client.post(
            "/api/auth/logout", headers=_bearer(tokens["access_token"])
        )

        assert response.status_code == 200
        assert response.json() == {"sessions_revoked": 1}
        me = client.get("/api/auth/me", headers=_bearer(tokens["access_token"]))
        assert me.status_code == 401
        refresh = client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert refresh.status_code == 401

    def test_logout_everywhere(self, client, fake_cache, citizen):
        phone = _login(client, "citizen@example.com").json()
        laptop = _login(client, "citizen@example.com").json()

        response = client.post(
            "/api/auth/logout",
            json={"all_sessions": True},
            headers=_bearer(laptop["access_token"]),
        )

        assert response.json() == {"sessions_revoked": 2}
        me = client.get("/api/auth/me", headers=_bearer(phone["access_token"]))
        assert me.status_code == 401

    def test_logout_requires_token(self, client):
        assert client.post("/api/auth/logout").status_code == 401

    def test_sessionless_token_logout(self, client, citizen_headers):
        response = client.post("/api/auth/logout", headers=citizen_headers)
        assert response.json() == {"sessions_revoked": 0}
