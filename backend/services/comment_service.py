"""
Service for comment business logic.
"""

from datetime import datetime, timezone
from typing import List

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    CommentNotFoundException,
    IssueNotFoundException,
    UserNotFoundException,
    ValidationException,
)
from repositories.comment_repository import CommentRepository
from repositories.database import transaction
from repositories.issue_repository import IssueRepository
from repositories.user_repository import UserRepository
from services.permission_service import PermissionService
from services.rate_limit_service import RateLimitService
from services.reputation_service import COMMENT_POSTED, ReputationService


def build_thread(comments: List[db_models.Comment]) -> List[schemas.CommentThread]:
    """
    Nest a flat comment list under their parents.

    Comments whose parent is missing from the list become roots.
    Order within each level follows the input order.
    """
    nodes = {c.id: schemas.CommentThread.model_validate(c) for c in comments}
    roots: List[schemas.CommentThread] = []
    for comment in comments:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


class CommentService:
    """Service for comment-related business logic."""

    @staticmethod
    def get_comment(db: Session, comment_id: int) -> db_models.Comment:
        """
        Get a comment by ID.

        Raises:
            CommentNotFoundException: If comment not found
        """
        comment = CommentRepository(db).get_by_id(comment_id)
        if not comment:
            raise CommentNotFoundException(comment_id)
        return comment

    @staticmethod
    def get_comments_for_issue(
        db: Session, issue_id: int
    ) -> List[schemas.CommentThread]:
        """
        Get an issue's comments as a reply tree, oldest first.

        Raises:
            IssueNotFoundException: If issue not found
        """
        if not IssueRepository(db).get_by_id(issue_id):
            raise IssueNotFoundException(issue_id)
        return build_thread(CommentRepository(db).get_for_issue(issue_id))

    @staticmethod
    def create_comment(
        db: Session,
        issue_id: int,
        author: db_models.User,
        data: schemas.CommentCreate,
    ) -> db_models.Comment:
        """
        Post a comment or a reply.

        Args:
            db: Database session
            issue_id: Issue ID
            author: Commenting user
            data: Content and optional parent comment

        Returns:
            Created comment

        Raises:
            RateLimitExceededException: If the author's comment budget is spent
            IssueNotFoundException: If issue not found
            CommentNotFoundException: If the parent comment does not exist
            ValidationException: If the parent belongs to another issue
        """
        RateLimitService.hit("comment", author.id)
        if not IssueRepository(db).get_by_id(issue_id):
            raise IssueNotFoundException(issue_id)

        repo = CommentRepository(db)
        if data.parent_id is not None:
            parent = repo.get_by_id(data.parent_id)
            if not parent:
                raise CommentNotFoundException(data.parent_id)
            if parent.issue_id != issue_id:
                raise ValidationException(
                    "Parent comment belongs to a different issue"
                )

        with transaction(db):
            comment = repo.add(
                db_models.Comment(
                    issue_id=issue_id,
                    user_id=author.id,
                    parent_id=data.parent_id,
                    content=data.content,
                )
            )
            ReputationService.apply(db, author.id, COMMENT_POSTED)

        ReputationService.invalidate_users(author.id)
        logger.debug(f"Comment {comment.id} posted on issue {issue_id}")
        return comment

    @staticmethod
    def update_comment(
        db: Session,
        comment_id: int,
        actor: db_models.User,
        data: schemas.CommentUpdate,
    ) -> db_models.Comment:
        comment = CommentService.get_comment(db, comment_id)
        PermissionService.can_edit_comment(actor, comment)

        with transaction(db):
            comment.content = data.content
            comment.updated_at = datetime.now(timezone.utc)
            db.flush()
        return comment

    @staticmethod
    def delete_comment(db: Session, comment_id: int, actor: db_models.User) -> int:
        """
        Delete a comment together with its replies.

        Returns:
            Number of comments removed
        """
        comment = CommentService.get_comment(db, comment_id)
        PermissionService.can_delete_comment(actor, comment)
        with transaction(db):
            removed = CommentRepository(db).delete_tree(comment)
        logger.info(f"Comment {comment_id} deleted ({removed} total) by user {actor.id}")
        return removed

    @staticmethod
    def get_user_comments(
        db: Session, user_id: int, skip: int = 0, limit: int = 20
    ) -> List[db_models.Comment]:
        if not UserRepository(db).get_by_id(user_id):
            raise UserNotFoundException(f"User with ID {user_id} not found")
        return CommentRepository(db).get_by_user(user_id, skip, limit)

