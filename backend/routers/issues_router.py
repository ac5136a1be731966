"""Issue router endpoints: reporting, lifecycle, votes and media."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationLimitSmall, PaginationSkip
from repositories.database import get_db
from services import CategoryService, IssueService, MediaService

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("/", response_model=schemas.IssueList)
def list_issues(
    status: Optional[db_models.IssueStatus] = None,
    category_id: Optional[int] = None,
    zone_id: Optional[int] = None,
    user_id: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=200),
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
) -> schemas.IssueList:
    """List issues, newest first, with optional filters."""
    return IssueService.list_issues(
        db,
        status=status,
        category_id=category_id,
        zone_id=zone_id,
        user_id=user_id,
        search=search,
        skip=skip,
        limit=limit,
    )


@router.get("/categories", response_model=List[schemas.Category])
def get_categories(db: Session = Depends(get_db)) -> list[dict]:
    """Issue categories (cached)."""
    return CategoryService.get_all_categories(db)


@router.get("/similar", response_model=List[schemas.Issue])
def find_similar_issues(
    category_id: int,
    zone_id: int,
    title: str = Query(..., min_length=3),
    limit: PaginationLimitSmall = 5,
    db: Session = Depends(get_db),
) -> List[db_models.Issue]:
    """
    Active issues that may describe the same problem.

    Meant to be called while a citizen fills in the report form.
    """
    return IssueService.find_similar(db, category_id, zone_id, title, limit)


@router.post("/", response_model=schemas.Issue, status_code=201)
def create_issue(
    issue: schemas.IssueCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.Issue:
    """
    Report a new issue.

    Domain exceptions are caught by centralized exception handlers.
    """
    return IssueService.create_issue(db, current_user, issue)


@router.put("/bulk-status", response_model=List[schemas.Issue])
def bulk_update_status(
    update: schemas.BulkStatusUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.Issue]:
    """Apply one status to many issues; nothing changes if any issue fails."""
    return IssueService.bulk_update_status(
        db, update.issue_ids, update.status, current_user, update.reason
    )


@router.get("/{issue_id}", response_model=schemas.IssueDetail)
def get_issue(issue_id: int, db: Session = Depends(get_db)) -> schemas.IssueDetail:
    return IssueService.get_issue_detail(db, issue_id)


@router.get("/{issue_id}/history", response_model=List[schemas.IssueHistoryEntry])
def get_issue_history(
    issue_id: int, db: Session = Depends(get_db)
) -> List[db_models.IssueHistory]:
    """Status history, most recent first."""
    return IssueService.get_issue_history(db, issue_id)


@router.put("/{issue_id}/status", response_model=schemas.Issue)
def update_issue_status(
    issue_id: int,
    update: schemas.StatusUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> db_models.Issue:
    """
    Change an issue's status.

    Stewards need an active assignment for the issue's category and zone.
    """
    return IssueService.update_status(
        db, issue_id, update.status, current_user, update.reason
    )


@router.post("/{issue_id}/duplicate", response_model=schemas.Issue)
def mark_duplicate(
    issue_id: int,
    payload: schemas.DuplicateMark,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> db_models.Issue:
    return IssueService.mark_duplicate(
        db, issue_id, payload.primary_issue_id, current_user, payload.reason
    )


@router.post("/{issue_id}/archive", response_model=schemas.Issue)
def archive_issue(
    issue_id: int,
    payload: Optional[schemas.ArchiveRequest] = None,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> db_models.Issue:
    return IssueService.archive_issue(
        db, issue_id, current_user, payload.reason if payload else None
    )


@router.delete("/{issue_id}", status_code=204)
def delete_issue(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> Response:
    """Permanently delete an issue (reporter or super admin)."""
    IssueService.hard_delete(db, issue_id, current_user)
    return Response(status_code=204)


# ============================================================================
# Votes
# ============================================================================


@router.post("/{issue_id}/vote", response_model=schemas.VoteResult)
def vote_on_issue(
    issue_id: int,
    vote: schemas.VoteCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.VoteResult:
    """
    Cast a vote.

    Voting the same way twice removes the vote; voting the other way flips it.
    """
    return IssueService.vote_on_issue(db, issue_id, current_user, vote.vote_type)


@router.delete("/{issue_id}/vote")
def remove_vote(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, int]:
    score = IssueService.remove_vote(db, issue_id, current_user)
    return {"vote_score": score}


@router.get("/{issue_id}/vote", response_model=Optional[schemas.Vote])
def get_my_vote(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> Optional[db_models.Vote]:
    """The caller's vote on the issue, or null."""
    return IssueService.get_my_vote(db, issue_id, current_user)


# ============================================================================
# Media
# ============================================================================


@router.get("/{issue_id}/media", response_model=List[schemas.Media])
def list_media(
    issue_id: int, db: Session = Depends(get_db)
) -> List[db_models.IssueMedia]:
    return MediaService.list_media(db, issue_id)


@router.post("/{issue_id}/media", response_model=schemas.Media, status_code=201)
def add_media(
    issue_id: int,
    media: schemas.MediaCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.IssueMedia:
    """Attach an already uploaded photo or video URL."""
    return MediaService.add_media(
        db,
        issue_id,
        current_user,
        media.media_url,
        media.media_type,
        media.is_thumbnail,
    )


@router.put("/{issue_id}/media/thumbnail", response_model=schemas.Media)
def set_thumbnail(
    issue_id: int,
    payload: schemas.ThumbnailUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.IssueMedia:
    return MediaService.set_thumbnail(db, issue_id, payload.media_id, current_user)


@router.delete("/{issue_id}/media/{media_id}", status_code=204)
def remove_media(
    issue_id: int,
    media_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> Response:
    MediaService.remove_media(db, issue_id, media_id, current_user)
    return Response(status_code=204)
