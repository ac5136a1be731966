"""Tests for zone, category, badge and dashboard endpoints."""

from conftest import create_issue


class TestZones:
    def test_public_list_and_admin_create(self, client, zone, admin_headers):
        created = client.post(
            "/api/zones/",
            json={"name": "Riverside", "zone_type": "NEIGHBORHOOD"},
            headers=admin_headers,
        )
        assert created.status_code == 201

        names = [z["name"] for z in client.get("/api/zones/").json()]
        assert names == ["Downtown", "Riverside"]

    def test_create_requires_admin(self, client, steward_headers):
        response = client.post(
            "/api/zones/", json={"name": "Riverside"}, headers=steward_headers
        )
        assert response.status_code == 403

    def test_deactivate_in_use(self, client, zone, issue, admin_headers):
        response = client.delete(f"/api/zones/{zone.id}", headers=admin_headers)
        assert response.status_code == 409

    def test_deactivate_and_reactivate(self, client, zone, admin_headers):
        deactivated = client.delete(f"/api/zones/{zone.id}", headers=admin_headers)
        assert deactivated.json()["is_active"] is False
        assert client.get("/api/zones/").json() == []

        again = client.delete(f"/api/zones/{zone.id}", headers=admin_headers)
        assert again.status_code == 400

        reactivated = client.post(
            f"/api/zones/{zone.id}/reactivate", headers=admin_headers
        )
        assert reactivated.json()["is_active"] is True

    def test_stats_issues_and_stewards(
        self, client, db_session, assignment, steward, citizen, category, zone, issue
    ):
        create_issue(db_session, citizen, category, zone, title="Second pothole")

        stats = client.get(f"/api/zones/{zone.id}/stats").json()
        assert stats["total_issues"] == 2
        assert stats["steward_count"] == 1

        page = client.get(f"/api/zones/{zone.id}/issues", params={"limit": 1}).json()
        assert page["total"] == 2
        assert len(page["items"]) == 1

        stewards = client.get(f"/api/zones/{zone.id}/stewards").json()
        assert [s["id"] for s in stewards] == [steward.id]

    def test_unknown_zone(self, client):
        assert client.get("/api/zones/999/stats").status_code == 404


class TestCategories:
    def test_list_and_create(self, client, category, admin_headers):
        created = client.post(
            "/api/categories/",
            json={"name": "Graffiti", "description": "Vandalism"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        names = [c["name"] for c in client.get("/api/categories/").json()]
        assert names == ["Graffiti", "Roads"]

    def test_duplicate(self, client, category, admin_headers):
        response = client.post(
            "/api/categories/", json={"name": "Roads"}, headers=admin_headers
        )
        assert response.status_code == 409


class TestBadges:
    def test_award_flow(self, client, citizen, admin_headers):
        badge = client.post(
            "/api/badges/",
            json={"name": "Pothole Hunter", "required_score": 500},
            headers=admin_headers,
        ).json()

        awarded = client.post(
            "/api/badges/award",
            json={"user_id": citizen.id, "badge_id": badge["id"]},
            headers=admin_headers,
        )
        assert awarded.status_code == 201

        holders = client.get(f"/api/badges/{badge['id']}/holders").json()
        assert [h["user_id"] for h in holders] == [citizen.id]
        user_badges = client.get(f"/api/users/{citizen.id}/badges").json()
        assert [b["badge"]["name"] for b in user_badges] == ["Pothole Hunter"]

        revoked = client.request(
            "DELETE",
            "/api/badges/award",
            json={"user_id": citizen.id, "badge_id": badge["id"]},
            headers=admin_headers,
        )
        assert revoked.status_code == 204
        stats = client.get(f"/api/badges/{badge['id']}/stats").json()
        assert stats["holder_count"] == 0

    def test_citizen_cannot_create(self, client, citizen_headers):
        response = client.post(
            "/api/badges/", json={"name": "Self Made"}, headers=citizen_headers
        )
        assert response.status_code == 403


class TestDashboard:
    def test_figures(self, client, citizen, other_headers, issue):
        client.post(
            f"/api/issues/{issue.id}/vote", json={"vote_type": 1}, headers=other_headers
        )

        stats = client.get("/api/dashboard/stats").json()
        assert stats["total_issues"] == 1
        assert stats["total_votes"] == 1

        top = client.get("/api/dashboard/top-issues").json()
        assert top[0]["vote_score"] == 1

        categories = client.get("/api/dashboard/categories").json()
        assert categories == [{"category_id": issue.category_id, "name": "Roads", "issue_count": 1}]


class TestRoot:
    def test_root_and_health(self, client):
        assert client.get("/").json()["message"] == "Welcome to CivicTrack API"
        assert client.get("/api/health").json() == {"status": "healthy"}
