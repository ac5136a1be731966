"""Authentication router endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import LOGIN_LIMIT, REFRESH_LIMIT, REGISTER_LIMIT, limiter
from repositories.database import get_db
from services import AuthService, UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=schemas.User, status_code=201)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)
) -> db_models.User:
    """
    Register a new citizen account.

    Rate limited to 3 per minute per IP.
    """
    return UserService.register_user(db, user)


@router.post("/login", response_model=schemas.Token)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> schemas.Token:
    """
    Login with email (as username) and password.

    Rate limited to 5 per minute per IP, and 5 attempts per 15 minutes per
    email. Domain exceptions are caught by centralized exception handlers.
    """
    return AuthService.login(db, form_data.username, form_data.password)


@router.post("/refresh", response_model=schemas.Token)
@limiter.limit(REFRESH_LIMIT)
def refresh_token(
    request: Request,
    body: schemas.RefreshRequest,
    db: Session = Depends(get_db),
) -> schemas.Token:
    """
    Exchange a refresh token for a new token pair.

    The presented refresh token is consumed. Presenting it a second time
    revokes the whole session.
    """
    return AuthService.refresh_token(db, body.refresh_token)


@router.post("/logout", response_model=schemas.LogoutResult)
def logout(
    body: Optional[schemas.LogoutRequest] = None,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    session_id: Optional[str] = Depends(auth.get_current_session_id),
) -> schemas.LogoutResult:
    """
    End the current session.

    Also revokes the refresh token in the body, or every session of the
    user when all_sessions is set.
    """
    return AuthService.logout(
        current_user, session_id, body or schemas.LogoutRequest()
    )


@router.get("/me", response_model=schemas.User)
def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.User:
    """Get current user."""
    return current_user
