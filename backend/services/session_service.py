"""
Session Service - refresh tokens with rotation, kept in the cache backend.

Login opens a session family. Each refresh consumes the presented refresh
token and issues the next one in the same family. A consumed token that is
presented again has leaked, so the whole family is revoked. Access tokens
carry the family id as ``sid``; once the family is gone they stop working
too.

Sessions need a backend that stores data. With caching disabled no refresh
token is issued and access tokens simply run until they expire.
"""

import json
import secrets
from dataclasses import dataclass
from typing import Iterable, Optional

from loguru import logger
from redis.exceptions import RedisError

from models.config import settings
from models.exceptions import AuthenticationException
from services.cache_service import CacheBackend, cache_key, get_cache_backend


@dataclass(frozen=True)
class SessionTokens:
    """Identifiers handed to the client for one session."""

    family_id: str
    refresh_token: str


def _refresh_key(token: str) -> str:
    return cache_key("refresh", token)


def _family_key(family_id: str) -> str:
    return cache_key("refresh_family", family_id)


def _user_sessions_key(user_id: int) -> str:
    return cache_key("session", user_id)


def _session_ttl() -> int:
    return settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


class SessionService:
    """Service for refresh token sessions."""

    @staticmethod
    def _store_token(
        backend: CacheBackend, token: str, user_id: int, family_id: str
    ) -> None:
        ttl = _session_ttl()
        backend.set(
            _refresh_key(token),
            json.dumps({"user_id": user_id, "family_id": family_id, "used": False}),
            ttl,
        )
        backend.set(
            _family_key(family_id),
            json.dumps({"user_id": user_id, "latest": token}),
            ttl,
        )

    @staticmethod
    def _tracked_families(backend: CacheBackend, user_id: int) -> list[str]:
        raw = backend.get(_user_sessions_key(user_id))
        return json.loads(raw) if raw else []

    @staticmethod
    def _save_tracked(
        backend: CacheBackend, user_id: int, families: Iterable[str]
    ) -> None:
        # Drop families that expired on their own
        alive = [f for f in families if backend.get(_family_key(f)) is not None]
        if alive:
            backend.set(_user_sessions_key(user_id), json.dumps(alive), _session_ttl())
        else:
            backend.delete(_user_sessions_key(user_id))

    @staticmethod
    def _revoke_family(backend: CacheBackend, family_id: str) -> None:
        raw = backend.get(_family_key(family_id))
        if raw:
            backend.delete(_refresh_key(json.loads(raw)["latest"]))
        backend.delete(_family_key(family_id))

    @staticmethod
    def start(user_id: int) -> Optional[SessionTokens]:
        """
        Open a session family for a user who just logged in.

        Args:
            user_id: Authenticated user ID

        Returns:
            The new family and its first refresh token, or None when the
            backend cannot hold sessions
        """
        backend = get_cache_backend()
        if not backend.stores_data:
            return None

        session = SessionTokens(
            family_id=secrets.token_urlsafe(16),
            refresh_token=secrets.token_urlsafe(32),
        )
        try:
            SessionService._store_token(
                backend, session.refresh_token, user_id, session.family_id
            )
            families = SessionService._tracked_families(backend, user_id)
            SessionService._save_tracked(backend, user_id, [*families, session.family_id])
        except RedisError as e:
            logger.warning(f"Session store unavailable, no refresh token issued: {e!r}")
            return None
        return session

    @staticmethod
    def rotate(refresh_token: str) -> tuple[int, SessionTokens]:
        """
        Consume a refresh token and issue the next one in its family.

        Args:
            refresh_token: Token previously returned by login or refresh

        Returns:
            The owning user ID and the rotated session tokens

        Raises:
            AuthenticationException: If the token is unknown, expired,
                already used (the family is revoked) or the store is down
        """
        backend = get_cache_backend()
        key = _refresh_key(refresh_token)
        try:
            raw = backend.get(key)
            if raw is None:
                raise AuthenticationException("Invalid or expired refresh token")
            record = json.loads(raw)
            family_id = record["family_id"]

            if record["used"] or backend.get(_family_key(family_id)) is None:
                SessionService._revoke_family(backend, family_id)
                logger.warning(
                    f"Refresh token reuse for user {record['user_id']}, "
                    f"session {family_id} revoked"
                )
                raise AuthenticationException("Refresh token has been revoked")

            # Keep the consumed token as a marker so a replay is detected
            remaining = backend.ttl(key)
            backend.set(
                key,
                json.dumps({**record, "used": True}),
                remaining if remaining > 0 else _session_ttl(),
            )
            next_token = secrets.token_urlsafe(32)
            SessionService._store_token(
                backend, next_token, record["user_id"], family_id
            )
        except RedisError as e:
            logger.warning(f"Session store unavailable during refresh: {e!r}")
            raise AuthenticationException("Could not validate refresh token")

        return record["user_id"], SessionTokens(family_id, next_token)

    @staticmethod
    def end(
        user_id: int,
        family_id: Optional[str] = None,
        refresh_token: Optional[str] = None,
        everywhere: bool = False,
    ) -> int:
        """
        Revoke sessions of a user.

        Args:
            user_id: User logging out
            family_id: Session of the access token used for the request
            refresh_token: Refresh token to revoke; ignored when it belongs
                to someone else
            everywhere: Revoke every session the user has open

        Returns:
            Number of sessions revoked
        """
        backend = get_cache_backend()
        try:
            families: set[str] = {family_id} if family_id else set()
            if refresh_token:
                raw = backend.get(_refresh_key(refresh_token))
                if raw:
                    record = json.loads(raw)
                    if record["user_id"] == user_id:
                        families.add(record["family_id"])

            tracked = SessionService._tracked_families(backend, user_id)
            if everywhere:
                families.update(tracked)
            for family in families:
                SessionService._revoke_family(backend, family)
            SessionService._save_tracked(
                backend, user_id, [f for f in tracked if f not in families]
            )
        except RedisError as e:
            logger.warning(f"Session store unavailable during logout: {e!r}")
            return 0

        logger.info(f"User {user_id} logged out of {len(families)} session(s)")
        return len(families)

    @staticmethod
    def is_active(family_id: str) -> bool:
        """
        Check that an access token's session has not been revoked.

        Fails open when the store is unreachable or holds no data.
        """
        backend = get_cache_backend()
        if not backend.stores_data:
            return True
        try:
            return backend.get(_family_key(family_id)) is not None
        except RedisError as e:
            logger.warning(f"Session store unavailable, accepting token: {e!r}")
            return True
