from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveUserException,
    InsufficientPermissionsException,
)
from repositories.database import get_db
from repositories.user_repository import UserRepository

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def authenticate_user(db: Session, email: str, password: str) -> db_models.User | None:
    user = UserRepository(db).get_by_email(email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def _decode_claims(token: str) -> tuple[str, Optional[str]]:
    """Return the email in the ``sub`` claim and the session id, if any."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    email_value = payload.get("sub")
    if email_value is None:
        raise AuthenticationException("Could not validate credentials")
    email = schemas.TokenData(email=str(email_value)).email or ""
    session_id = payload.get("sid")
    return email, str(session_id) if session_id is not None else None


def _read_token(token: str) -> tuple[str, Optional[str]]:
    try:
        return _decode_claims(token)
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")


def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Get the current authenticated user from the JWT token.

    Raises:
        AuthenticationException: If credentials are invalid, the session was
            revoked or the user was not found.
    """
    email, session_id = _read_token(token)
    if session_id is not None:
        # Inline import: services import this module
        from services.session_service import SessionService

        if not SessionService.is_active(session_id):
            raise AuthenticationException("Session has been revoked")

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise AuthenticationException("Could not validate credentials")
    return user


def get_current_session_id(token: str = Depends(oauth2_scheme)) -> Optional[str]:
    """Session id carried by the bearer token (None for sessionless tokens)."""
    return _read_token(token)[1]


def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Get the current user and verify the account is active.

    Raises:
        InactiveUserException: If the user account has been deactivated.
    """
    if not current_user.is_active:
        raise InactiveUserException("Account has been deactivated")
    return current_user


def get_steward_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require the steward or super admin role.

    Scope (category, zone) checks happen in the service layer.

    Raises:
        InsufficientPermissionsException: If the user is a citizen.
    """
    if current_user.role not in (
        db_models.UserRole.STEWARD,
        db_models.UserRole.SUPER_ADMIN,
    ):
        raise InsufficientPermissionsException("Steward permissions required")
    return current_user


def get_admin_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require super admin permissions.

    Raises:
        InsufficientPermissionsException: If user is not a super admin.
    """
    if current_user.role != db_models.UserRole.SUPER_ADMIN:
        raise InsufficientPermissionsException("Not enough permissions")
    return current_user
