"""Tests for comment threads and moderation endpoints."""

import pytest

from conftest import auth_headers_for, create_user


@pytest.fixture
def comment_id(client, issue, other_headers) -> int:
    response = client.post(
        f"/api/comments/issue/{issue.id}",
        json={"content": "This pothole damaged my tyre"},
        headers=other_headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestThreads:
    def test_reply_tree(self, client, issue, citizen_headers, comment_id):
        reply = client.post(
            f"/api/comments/issue/{issue.id}",
            json={"content": "Sorry to hear that", "parent_id": comment_id},
            headers=citizen_headers,
        )
        assert reply.status_code == 201

        threads = client.get(f"/api/comments/issue/{issue.id}").json()
        assert len(threads) == 1
        assert threads[0]["id"] == comment_id
        assert [r["content"] for r in threads[0]["replies"]] == ["Sorry to hear that"]

    def test_comment_requires_auth(self, client, issue):
        response = client.post(
            f"/api/comments/issue/{issue.id}", json={"content": "Anonymous"}
        )
        assert response.status_code == 401

    def test_comment_on_missing_issue(self, client, other_headers):
        response = client.post(
            "/api/comments/issue/9999", json={"content": "Hello"}, headers=other_headers
        )
        assert response.status_code == 404

    def test_edit_by_author_only(self, client, citizen_headers, other_headers, comment_id):
        denied = client.put(
            f"/api/comments/{comment_id}",
            json={"content": "Edited by someone else"},
            headers=citizen_headers,
        )
        assert denied.status_code == 403

        edited = client.put(
            f"/api/comments/{comment_id}",
            json={"content": "Edited"},
            headers=other_headers,
        )
        assert edited.status_code == 200
        assert edited.json()["content"] == "Edited"

    def test_delete(self, client, other_headers, comment_id):
        response = client.delete(f"/api/comments/{comment_id}", headers=other_headers)
        assert response.status_code == 200
        assert response.json()["comments_deleted"] == 1
        assert client.get(f"/api/comments/{comment_id}").status_code == 404


class TestModeration:
    def test_flag_and_duplicate_flag(self, client, citizen_headers, comment_id):
        url = f"/api/comments/{comment_id}/flag"
        first = client.post(
            url, json={"reason": "HARASSMENT", "details": "Rude"}, headers=citizen_headers
        )
        assert first.status_code == 201
        assert first.json()["status"] == "PENDING"

        again = client.post(url, json={"reason": "SPAM"}, headers=citizen_headers)
        assert again.status_code == 409

    def test_cannot_flag_own_comment(self, client, other_headers, comment_id):
        response = client.post(
            f"/api/comments/{comment_id}/flag",
            json={"reason": "SPAM"},
            headers=other_headers,
        )
        assert response.status_code == 400

    def test_unknown_reason(self, client, citizen_headers, comment_id):
        response = client.post(
            f"/api/comments/{comment_id}/flag",
            json={"reason": "BORING"},
            headers=citizen_headers,
        )
        assert response.status_code == 422

    def test_queue_and_review(self, client, db_session, steward_headers, comment_id):
        for i in range(3):
            flagger = create_user(db_session, f"flagger{i}@example.com", f"Flagger {i}")
            client.post(
                f"/api/comments/{comment_id}/flag",
                json={"reason": "SPAM"},
                headers=auth_headers_for(flagger),
            )

        queue = client.get("/api/comments/flagged", headers=steward_headers).json()
        assert [c["id"] for c in queue] == [comment_id]
        assert queue[0]["is_flagged"] is True

        flags = client.get(
            f"/api/comments/{comment_id}/flags",
            params={"pending_only": True},
            headers=steward_headers,
        ).json()
        assert len(flags) == 3

        review = client.post(
            f"/api/comments/{comment_id}/review",
            json={"action": "DELETE", "feedback": "Spam"},
            headers=steward_headers,
        )
        assert review.status_code == 200
        assert review.json()["flags_resolved"] == 3
        assert review.json()["comments_deleted"] == 1
        assert client.get("/api/comments/flagged", headers=steward_headers).json() == []

    def test_citizen_cannot_moderate(self, client, citizen_headers, comment_id):
        assert (
            client.get("/api/comments/flagged", headers=citizen_headers).status_code
            == 403
        )
        response = client.post(
            f"/api/comments/{comment_id}/review",
            json={"action": "APPROVE"},
            headers=citizen_headers,
        )
        assert response.status_code == 403
