"""Unit tests for refresh token sessions."""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from models.exceptions import AuthenticationException
from services.cache_service import NullCacheBackend, RedisCacheBackend, set_cache_backend
from services.session_service import SessionService


@pytest.fixture
def broken_store():
    """Session store whose Redis client refuses every call."""
    client = MagicMock()
    for method in ("get", "set", "delete", "scan_iter", "incr", "expire", "ttl"):
        getattr(client, method).side_effect = RedisConnectionError("down")
    set_cache_backend(RedisCacheBackend("redis://unreachable:6379/0", client=client))
    try:
        yield client
    finally:
        set_cache_backend(NullCacheBackend())


class TestStart:
    def test_opens_family(self, fake_cache):
        session = SessionService.start(7)

        assert session is not None
        assert session.refresh_token != session.family_id
        assert SessionService.is_active(session.family_id)

    def test_disabled_store_issues_nothing(self):
        assert SessionService.start(7) is None

    def test_each_login_is_its_own_family(self, fake_cache):
        first = SessionService.start(7)
        second = SessionService.start(7)
        assert first.family_id != second.family_id


class TestRotate:
    def test_rotation_keeps_family(self, fake_cache):
        session = SessionService.start(7)

        user_id, rotated = SessionService.rotate(session.refresh_token)

        assert user_id == 7
        assert rotated.family_id == session.family_id
        assert rotated.refresh_token != session.refresh_token

    def test_chain_of_rotations(self, fake_cache):
        token = SessionService.start(7).refresh_token
        for _ in range(3):
            _, rotated = SessionService.rotate(token)
            token = rotated.refresh_token
        assert SessionService.rotate(token)[0] == 7

    def test_unknown_token(self, fake_cache):
        with pytest.raises(AuthenticationException):
            SessionService.rotate("never-issued")

    def test_replayed_token_revokes_family(self, fake_cache):
        """A consumed token coming back means it leaked: kill the session."""
        session = SessionService.start(7)
        _, rotated = SessionService.rotate(session.refresh_token)

        with pytest.raises(AuthenticationException):
            SessionService.rotate(session.refresh_token)

        assert not SessionService.is_active(session.family_id)
        with pytest.raises(AuthenticationException):
            SessionService.rotate(rotated.refresh_token)


class TestEnd:
    def test_ends_current_session_only(self, fake_cache):
        phone = SessionService.start(7)
        laptop = SessionService.start(7)

        assert SessionService.end(7, family_id=phone.family_id) == 1

        assert not SessionService.is_active(phone.family_id)
        assert SessionService.is_active(laptop.family_id)
        with pytest.raises(AuthenticationException):
            SessionService.rotate(phone.refresh_token)

    def test_revokes_by_refresh_token(self, fake_cache):
        session = SessionService.start(7)
        SessionService.end(7, refresh_token=session.refresh_token)
        assert not SessionService.is_active(session.family_id)

    def test_ignores_someone_elses_refresh_token(self, fake_cache):
        theirs = SessionService.start(8)
        assert SessionService.end(7, refresh_token=theirs.refresh_token) == 0
        assert SessionService.is_active(theirs.family_id)

    def test_everywhere(self, fake_cache):
        mine = [SessionService.start(7) for _ in range(3)]
        theirs = SessionService.start(8)

        assert SessionService.end(7, everywhere=True) == 3

        assert not any(SessionService.is_active(s.family_id) for s in mine)
        assert SessionService.is_active(theirs.family_id)


class TestUnreachableStore:
    def test_login_without_refresh_token(self, broken_store):
        assert SessionService.start(7) is None

    def test_access_tokens_still_accepted(self, broken_store):
        assert SessionService.is_active("any-family")

    def test_refresh_is_rejected(self, broken_store):
        with pytest.raises(AuthenticationException):
            SessionService.rotate("whatever")

    def test_logout_reports_nothing_revoked(self, broken_store):
        assert SessionService.end(7, family_id="any-family") == 0
