"""Tests for user profile, leaderboard and role endpoints."""


class TestProfiles:
    def test_public_profile_hides_email(self, client, citizen):
        response = client.get(f"/api/users/{citizen.id}")
        assert response.status_code == 200
        assert response.json()["full_name"] == "Casey Citizen"
        assert "email" not in response.json()

    def test_unknown_user(self, client):
        assert client.get("/api/users/4040").status_code == 404

    def test_stats_and_badges(self, client, citizen):
        stats = client.get(f"/api/users/{citizen.id}/stats").json()
        assert stats["reputation_score"] == 0
        assert stats["badges_count"] == 0
        assert client.get(f"/api/users/{citizen.id}/badges").json() == []

    def test_leaderboard(self, client, db_session, citizen, other_user):
        other_user.reputation_score = 12
        db_session.commit()

        board = client.get("/api/users/leaderboard", params={"limit": 2}).json()
        assert [u["id"] for u in board] == [other_user.id, citizen.id]

    def test_search_is_for_stewards(
        self, client, citizen, citizen_headers, steward_headers
    ):
        assert (
            client.get(
                "/api/users/search", params={"q": "casey"}, headers=citizen_headers
            ).status_code
            == 403
        )
        found = client.get(
            "/api/users/search", params={"q": "casey"}, headers=steward_headers
        ).json()
        assert [u["id"] for u in found] == [citizen.id]


class TestRoles:
    def test_admin_promotes(self, client, citizen, admin_headers):
        response = client.put(
            f"/api/users/{citizen.id}/role",
            json={"role": "STEWARD"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["role"] == "STEWARD"

    def test_non_admin_forbidden(self, client, citizen, steward_headers):
        response = client.put(
            f"/api/users/{citizen.id}/role",
            json={"role": "SUPER_ADMIN"},
            headers=steward_headers,
        )
        assert response.status_code == 403

    def test_admin_cannot_change_own_role(self, client, admin_user, admin_headers):
        response = client.put(
            f"/api/users/{admin_user.id}/role",
            json={"role": "CITIZEN"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_unknown_role(self, client, citizen, admin_headers):
        response = client.put(
            f"/api/users/{citizen.id}/role",
            json={"role": "MAYOR"},
            headers=admin_headers,
        )
        assert response.status_code == 422
