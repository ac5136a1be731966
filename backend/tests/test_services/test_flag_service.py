"""Unit tests for FlagService moderation workflow."""

from unittest.mock import patch

import pytest

import repositories.db_models as db_models
from conftest import create_user
from models.exceptions import (
    CannotFlagOwnContentException,
    CommentNotFoundException,
    DuplicateFlagException,
    InsufficientPermissionsException,
)
from repositories.flag_repository import FlagRepository
from services.flag_service import FLAG_THRESHOLD, FlagService

FlagReason = db_models.FlagReason
FlagStatus = db_models.FlagStatus
ModerationAction = db_models.ModerationAction


@pytest.fixture
def comment(db_session, issue, citizen) -> db_models.Comment:
    comment = db_models.Comment(
        issue_id=issue.id, user_id=citizen.id, content="This has been here for months"
    )
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)
    return comment


@pytest.fixture
def reporters(db_session) -> list[db_models.User]:
    return [
        create_user(db_session, f"reporter{i}@example.com", f"Reporter {i}")
        for i in range(FLAG_THRESHOLD)
    ]


def _flag_all(db, comment, users) -> None:
    for user in users:
        FlagService.flag_comment(db, comment.id, user.id, FlagReason.SPAM)


class TestFlagComment:
    def test_creates_pending_flag(self, db_session, comment, other_user):
        flag = FlagService.flag_comment(
            db_session, comment.id, other_user.id, FlagReason.HARASSMENT, "Rude"
        )

        assert flag.status == FlagStatus.PENDING
        assert flag.details == "Rude"
        db_session.refresh(comment)
        assert comment.flag_count == 1
        assert comment.is_flagged is False

    def test_threshold_reached_on_third_flag(self, db_session, comment, reporters):
        _flag_all(db_session, comment, reporters[:-1])
        db_session.refresh(comment)
        assert comment.flag_count == FLAG_THRESHOLD - 1
        assert comment.is_flagged is False

        _flag_all(db_session, comment, reporters[-1:])
        db_session.refresh(comment)
        assert comment.flag_count == FLAG_THRESHOLD
        assert comment.is_flagged is True

    def test_cannot_flag_own_comment(self, db_session, comment, citizen):
        with pytest.raises(CannotFlagOwnContentException):
            FlagService.flag_comment(db_session, comment.id, citizen.id, FlagReason.SPAM)

    def test_duplicate_flag_rejected(self, db_session, comment, other_user):
        FlagService.flag_comment(db_session, comment.id, other_user.id, FlagReason.SPAM)
        with pytest.raises(DuplicateFlagException):
            FlagService.flag_comment(
                db_session, comment.id, other_user.id, FlagReason.OTHER
            )
        db_session.refresh(comment)
        assert comment.flag_count == 1

    def test_concurrent_duplicate_is_conflict(self, db_session, comment, other_user):
        """A second flag that passes the lookup still hits the unique constraint."""
        FlagService.flag_comment(db_session, comment.id, other_user.id, FlagReason.SPAM)

        with patch.object(FlagRepository, "get_by_comment_and_user", return_value=None):
            with pytest.raises(DuplicateFlagException):
                FlagService.flag_comment(
                    db_session, comment.id, other_user.id, FlagReason.OTHER
                )

        db_session.refresh(comment)
        assert comment.flag_count == 1
        assert len(FlagRepository(db_session).get_for_comment(comment.id)) == 1

    def test_missing_comment(self, db_session, other_user):
        with pytest.raises(CommentNotFoundException):
            FlagService.flag_comment(db_session, 404, other_user.id, FlagReason.SPAM)


class TestReviewFlag:
    def test_approve_keeps_comment_and_resets(
        self, db_session, comment, reporters, steward
    ):
        _flag_all(db_session, comment, reporters)

        result = FlagService.review_flag(
            db_session, comment.id, steward, ModerationAction.APPROVE, "Fair criticism"
        )

        assert result.flags_resolved == FLAG_THRESHOLD
        assert result.comments_deleted == 0
        db_session.refresh(comment)
        assert comment.flag_count == 0
        assert comment.is_flagged is False
        flags = FlagService.get_comment_flags(db_session, comment.id, steward)
        assert {f.status for f in flags} == {FlagStatus.REJECTED}
        assert all(f.reviewed_by == steward.id for f in flags)
        assert FlagService.get_flagged_comments(db_session, steward) == []

    def test_delete_removes_comment_and_replies(
        self, db_session, issue, comment, reporters, other_user, admin_user
    ):
        reply = db_models.Comment(
            issue_id=issue.id,
            user_id=other_user.id,
            parent_id=comment.id,
            content="Agreed",
        )
        db_session.add(reply)
        db_session.commit()
        nested = db_models.Comment(
            issue_id=issue.id,
            user_id=other_user.id,
            parent_id=reply.id,
            content="Me too",
        )
        db_session.add(nested)
        db_session.commit()
        _flag_all(db_session, comment, reporters)
        comment_id = comment.id

        result = FlagService.review_flag(
            db_session, comment_id, admin_user, ModerationAction.DELETE
        )

        assert result.comments_deleted == 3
        assert result.flags_resolved == FLAG_THRESHOLD
        assert (
            db_session.query(db_models.Comment)
            .filter(db_models.Comment.issue_id == issue.id)
            .count()
            == 0
        )
        assert db_session.query(db_models.CommentFlag).count() == 0

    def test_citizen_cannot_review(self, db_session, comment, other_user):
        with pytest.raises(InsufficientPermissionsException):
            FlagService.review_flag(
                db_session, comment.id, other_user, ModerationAction.APPROVE
            )

    def test_flagged_after_approval_needs_new_flags(
        self, db_session, comment, reporters, steward, other_user
    ):
        """Approved comments start counting again from zero."""
        _flag_all(db_session, comment, reporters)
        FlagService.review_flag(db_session, comment.id, steward, ModerationAction.APPROVE)

        FlagService.flag_comment(db_session, comment.id, other_user.id, FlagReason.SPAM)
        db_session.refresh(comment)
        assert comment.flag_count == 1
        assert comment.is_flagged is False


class TestQueue:
    def test_queue_lists_flagged_comments(self, db_session, comment, reporters, steward):
        _flag_all(db_session, comment, reporters)
        queue = FlagService.get_flagged_comments(db_session, steward)
        assert [c.id for c in queue] == [comment.id]

    def test_pending_only_filter(self, db_session, comment, other_user, steward):
        FlagService.flag_comment(db_session, comment.id, other_user.id, FlagReason.SPAM)
        assert len(FlagService.get_comment_flags(db_session, comment.id, steward, True)) == 1

    def test_queue_requires_moderator(self, db_session, citizen):
        with pytest.raises(InsufficientPermissionsException):
            FlagService.get_flagged_comments(db_session, citizen)
