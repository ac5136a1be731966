"""
Authentication Service

Handles login, refresh token rotation and logout.
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from authentication.auth import authenticate_user, create_access_token
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveUserException,
    InvalidCredentialsException,
)
from repositories.user_repository import UserRepository
from services.rate_limit_service import RateLimitService
from services.session_service import SessionService, SessionTokens

if TYPE_CHECKING:
    import repositories.db_models as db_models


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def _issue_token(
        email: str, session: Optional[SessionTokens] = None
    ) -> schemas.Token:
        claims = {"sub": email}
        if session is not None:
            claims["sid"] = session.family_id
        access_token = create_access_token(
            data=claims,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        # nosec B106: "bearer" is OAuth2 token type, not a password
        return schemas.Token(
            access_token=access_token,
            token_type="bearer",  # nosec B106
            refresh_token=session.refresh_token if session else None,
        )

    @staticmethod
    def login(db: Session, email: str, password: str) -> schemas.Token:
        """
        Authenticate a user and open a session.

        Attempts are counted per email on the "auth" rate limit.

        Args:
            db: Database session
            email: User email
            password: User password

        Returns:
            Token with the access token and, when sessions are stored, a
            refresh token

        Raises:
            RateLimitExceededException: If too many attempts were made
            InvalidCredentialsException: If email or password is incorrect
            InactiveUserException: If the account is deactivated
        """
        RateLimitService.hit("auth", email.lower())

        user = authenticate_user(db, email, password)
        if not user:
            logger.info("Failed login attempt")
            raise InvalidCredentialsException("Incorrect email or password")
        if not user.is_active:
            raise InactiveUserException("Account has been deactivated")

        return AuthService._issue_token(user.email, SessionService.start(user.id))

    @staticmethod
    def refresh_token(db: Session, refresh_token: str) -> schemas.Token:
        """
        Exchange a refresh token for a new access token and refresh token.

        Raises:
            AuthenticationException: If the refresh token is invalid, reused
                or its user no longer exists
            InactiveUserException: If the account is deactivated
        """
        user_id, session = SessionService.rotate(refresh_token)
        user = UserRepository(db).get_by_id(user_id)
        if user is None or not user.is_active:
            SessionService.end(user_id, family_id=session.family_id)
            if user is None:
                raise AuthenticationException("Could not validate credentials")
            raise InactiveUserException("Account has been deactivated")
        return AuthService._issue_token(user.email, session)

    @staticmethod
    def logout(
        user: "db_models.User",
        session_id: Optional[str],
        data: schemas.LogoutRequest,
    ) -> schemas.LogoutResult:
        """Revoke the current session, a given refresh token or every session."""
        revoked = SessionService.end(
            user.id,
            family_id=session_id,
            refresh_token=data.refresh_token,
            everywhere=data.all_sessions,
        )
        return schemas.LogoutResult(sessions_revoked=revoked)
