"""Unit tests for PermissionService scope checks."""

import pytest

import repositories.db_models as db_models
from conftest import create_issue
from models.exceptions import (
    InsufficientPermissionsException,
    PermissionDeniedException,
    StewardAccessDeniedException,
)
from services.issue_service import IssueService
from services.permission_service import PermissionService
from services.steward_service import StewardService


class TestHasStewardAccess:
    """Scope is the exact (steward, category, zone) triple."""

    def test_active_assignment_grants_access(
        self, db_session, assignment, steward, category, zone
    ):
        assert PermissionService.has_steward_access(
            db_session, steward.id, category.id, zone.id
        )

    def test_other_zone_denied(
        self, db_session, assignment, steward, category, other_zone
    ):
        assert not PermissionService.has_steward_access(
            db_session, steward.id, category.id, other_zone.id
        )

    def test_other_category_denied(
        self, db_session, assignment, steward, other_category, zone
    ):
        assert not PermissionService.has_steward_access(
            db_session, steward.id, other_category.id, zone.id
        )

    def test_inactive_assignment_denied(
        self, db_session, assignment, steward, category, zone
    ):
        assignment.is_active = False
        db_session.commit()
        assert not PermissionService.has_steward_access(
            db_session, steward.id, category.id, zone.id
        )

    def test_no_assignment_denied(self, db_session, steward, category, zone):
        assert not PermissionService.has_steward_access(
            db_session, steward.id, category.id, zone.id
        )


class TestGuardedOperations:
    """update_status, mark_duplicate and add_note share the same scope rule."""

    @pytest.fixture
    def out_of_scope_issues(
        self, db_session, citizen, category, other_category, zone, other_zone
    ):
        return [
            create_issue(db_session, citizen, category, other_zone, title="Wrong zone"),
            create_issue(
                db_session, citizen, other_category, zone, title="Wrong category"
            ),
        ]

    def test_update_status_outside_scope(
        self, db_session, assignment, steward, out_of_scope_issues
    ):
        for target in out_of_scope_issues:
            with pytest.raises(StewardAccessDeniedException):
                IssueService.update_status(
                    db_session, target.id, db_models.IssueStatus.ACKNOWLEDGED, steward
                )
            db_session.refresh(target)
            assert target.status == db_models.IssueStatus.OPEN

    def test_mark_duplicate_outside_scope(
        self, db_session, assignment, steward, issue, out_of_scope_issues
    ):
        for target in out_of_scope_issues:
            with pytest.raises(StewardAccessDeniedException):
                IssueService.mark_duplicate(db_session, target.id, issue.id, steward)

    def test_add_note_outside_scope(
        self, db_session, assignment, steward, out_of_scope_issues
    ):
        for target in out_of_scope_issues:
            with pytest.raises(StewardAccessDeniedException):
                StewardService.add_note(db_session, target.id, steward, "Checked")

    def test_inactive_assignment_blocks_update(
        self, db_session, assignment, steward, issue
    ):
        assignment.is_active = False
        db_session.commit()
        with pytest.raises(StewardAccessDeniedException):
            IssueService.update_status(
                db_session, issue.id, db_models.IssueStatus.ACKNOWLEDGED, steward
            )

    def test_citizen_is_rejected(self, db_session, citizen, issue):
        with pytest.raises(InsufficientPermissionsException):
            IssueService.update_status(
                db_session, issue.id, db_models.IssueStatus.ACKNOWLEDGED, citizen
            )

    def test_super_admin_bypasses_scope(self, db_session, admin_user, issue):
        updated = IssueService.update_status(
            db_session, issue.id, db_models.IssueStatus.ACKNOWLEDGED, admin_user
        )
        assert updated.status == db_models.IssueStatus.ACKNOWLEDGED


class TestOwnershipPolicies:
    def test_hard_delete_reporter_or_admin(self, citizen, other_user, admin_user, issue):
        PermissionService.can_hard_delete(citizen, issue)
        PermissionService.can_hard_delete(admin_user, issue)
        with pytest.raises(PermissionDeniedException):
            PermissionService.can_hard_delete(other_user, issue)

    def test_steward_cannot_hard_delete(self, steward, assignment, issue):
        with pytest.raises(PermissionDeniedException):
            PermissionService.can_hard_delete(steward, issue)

    def test_comment_edit_is_author_only(self, citizen, admin_user, issue):
        comment = db_models.Comment(issue_id=issue.id, user_id=citizen.id, content="Hi")
        PermissionService.can_edit_comment(citizen, comment)
        with pytest.raises(PermissionDeniedException):
            PermissionService.can_edit_comment(admin_user, comment)

    def test_comment_delete_author_or_admin(
        self, citizen, other_user, admin_user, steward, issue
    ):
        comment = db_models.Comment(issue_id=issue.id, user_id=citizen.id, content="Hi")
        PermissionService.can_delete_comment(citizen, comment)
        PermissionService.can_delete_comment(admin_user, comment)
        for actor in (other_user, steward):
            with pytest.raises(PermissionDeniedException):
                PermissionService.can_delete_comment(actor, comment)

    def test_comment_review_needs_moderator(self, citizen, steward, admin_user):
        PermissionService.can_review_comments(steward)
        PermissionService.can_review_comments(admin_user)
        with pytest.raises(InsufficientPermissionsException):
            PermissionService.can_review_comments(citizen)

    def test_require_super_admin(self, steward, admin_user):
        PermissionService.require_super_admin(admin_user)
        with pytest.raises(InsufficientPermissionsException):
            PermissionService.require_super_admin(steward)
