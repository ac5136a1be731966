from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services import CommentService, FlagService

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/issue/{issue_id}", response_model=List[schemas.CommentThread])
def get_comments_for_issue(
    issue_id: int, db: Session = Depends(get_db)
) -> List[schemas.CommentThread]:
    """
    Get an issue's comments as a reply tree.

    Domain exceptions are caught by centralized exception handlers.
    """
    return CommentService.get_comments_for_issue(db, issue_id)


@router.post("/issue/{issue_id}", response_model=schemas.Comment, status_code=201)
def create_comment(
    issue_id: int,
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.Comment:
    """Comment on an issue, or reply when parent_id is given."""
    return CommentService.create_comment(db, issue_id, current_user, comment)


@router.get("/flagged", response_model=List[schemas.Comment])
def get_flagged_comments(
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 50,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.Comment]:
    """Moderation queue, most flagged first."""
    return FlagService.get_flagged_comments(db, current_user, skip, limit)


@router.get("/user/{user_id}", response_model=List[schemas.Comment])
def get_user_comments(
    user_id: int,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
) -> List[db_models.Comment]:
    return CommentService.get_user_comments(db, user_id, skip, limit)


@router.get("/{comment_id}", response_model=schemas.Comment)
def get_comment(comment_id: int, db: Session = Depends(get_db)) -> db_models.Comment:
    return CommentService.get_comment(db, comment_id)


@router.put("/{comment_id}", response_model=schemas.Comment)
def update_comment(
    comment_id: int,
    update: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.Comment:
    return CommentService.update_comment(db, comment_id, current_user, update)


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, object]:
    """
    Delete a comment and its replies.

    Domain exceptions are caught by centralized exception handlers.
    """
    removed = CommentService.delete_comment(db, comment_id, current_user)
    return {"message": "Comment deleted successfully", "comments_deleted": removed}


@router.post(
    "/{comment_id}/flag", response_model=schemas.FlagResponse, status_code=201
)
def flag_comment(
    comment_id: int,
    flag: schemas.FlagCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.CommentFlag:
    """
    Report a comment.

    Three distinct reports put the comment in the moderation queue.
    """
    return FlagService.flag_comment(
        db, comment_id, current_user.id, flag.reason, flag.details
    )


@router.get("/{comment_id}/flags", response_model=List[schemas.FlagResponse])
def get_comment_flags(
    comment_id: int,
    pending_only: bool = False,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.CommentFlag]:
    return FlagService.get_comment_flags(db, comment_id, current_user, pending_only)


@router.post("/{comment_id}/review", response_model=schemas.FlagReviewResult)
def review_comment(
    comment_id: int,
    review: schemas.FlagReview,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> schemas.FlagReviewResult:
    """
    Resolve a flagged comment.

    APPROVE keeps it and clears the flags; DELETE removes it with its replies.
    """
    return FlagService.review_flag(
        db, comment_id, current_user, review.action, review.feedback
    )
