"""Steward router endpoints: applications, assignments, notes and workload."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services import StewardService

router = APIRouter(prefix="/stewards", tags=["stewards"])


# ============================================================================
# Applications
# ============================================================================


@router.post("/applications", response_model=schemas.Application, status_code=201)
def submit_application(
    application: schemas.ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.StewardApplication:
    """Apply to become a steward."""
    return StewardService.submit_application(
        db, current_user, application.justification
    )


@router.get("/applications/me", response_model=schemas.Application)
def get_my_application(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.StewardApplication:
    return StewardService.get_my_application(db, current_user.id)


@router.get("/applications/pending", response_model=List[schemas.Application])
def get_pending_applications(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> List[db_models.StewardApplication]:
    return StewardService.get_pending_applications(db)


@router.put(
    "/applications/{application_id}/review", response_model=schemas.Application
)
def review_application(
    application_id: int,
    review: schemas.ApplicationReview,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.StewardApplication:
    """Approve (promotes to STEWARD) or reject an application."""
    return StewardService.review_application(
        db, application_id, current_user, review.status, review.feedback
    )


# ============================================================================
# Current steward
# ============================================================================


@router.get("/me/assignments", response_model=List[schemas.Assignment])
def get_my_assignments(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.StewardCategoryAssignment]:
    return StewardService.get_assignments(db, current_user.id)


@router.get("/me/issues", response_model=List[schemas.Issue])
def get_my_issues(
    status: Optional[db_models.IssueStatus] = None,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 50,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.Issue]:
    """
    Issues in the caller's scope, most urgent first.

    Without a status filter only open, acknowledged and in-progress issues
    are returned.
    """
    return StewardService.get_my_issues(db, current_user, status, skip, limit)


@router.get("/me/stats", response_model=schemas.StewardStats)
def get_my_stats(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> schemas.StewardStats:
    return StewardService.get_stats(db, current_user.id)


@router.get("/me/workload", response_model=schemas.StewardWorkload)
def get_my_workload(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> schemas.StewardWorkload:
    return StewardService.get_workload(db, current_user)


# ============================================================================
# Notes
# ============================================================================


@router.post(
    "/issues/{issue_id}/notes", response_model=schemas.Note, status_code=201
)
def add_note(
    issue_id: int,
    note: schemas.NoteCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> db_models.StewardNote:
    return StewardService.add_note(db, issue_id, current_user, note.note)


@router.get("/issues/{issue_id}/notes", response_model=List[schemas.Note])
def get_notes(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.StewardNote]:
    return StewardService.get_notes(db, issue_id, current_user)


# ============================================================================
# Administration
# ============================================================================


@router.get("/", response_model=List[schemas.UserPublic])
def list_stewards(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> List[db_models.User]:
    return StewardService.list_stewards(db)


@router.post("/assignments", response_model=schemas.Assignment, status_code=201)
def create_assignment(
    assignment: schemas.AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.StewardCategoryAssignment:
    return StewardService.assign(
        db,
        assignment.steward_id,
        assignment.category_id,
        assignment.zone_id,
        current_user,
    )


@router.post("/assignments/bulk", response_model=List[schemas.Assignment])
def bulk_create_assignments(
    payload: schemas.BulkAssignmentCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> List[db_models.StewardCategoryAssignment]:
    """Assign several categories in one zone; already active pairs are skipped."""
    return StewardService.bulk_assign(db, payload, current_user)


@router.delete("/assignments/{assignment_id}", status_code=204)
def remove_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> Response:
    StewardService.remove_assignment(db, assignment_id)
    return Response(status_code=204)


@router.get("/{steward_id}/stats", response_model=schemas.StewardStats)
def get_steward_stats(
    steward_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> schemas.StewardStats:
    return StewardService.get_stats(db, steward_id)


@router.get("/{steward_id}/assignments", response_model=List[schemas.Assignment])
def get_steward_assignments(
    steward_id: int,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> List[db_models.StewardCategoryAssignment]:
    return StewardService.get_assignments(
        db, steward_id, active_only=not include_inactive
    )
