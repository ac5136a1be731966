"""Unit tests for reputation deltas and badge awards."""

import pytest

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    AlreadyExistsException,
    BadgeNotFoundException,
    ConflictException,
    NotFoundException,
)
from repositories.badge_repository import BadgeRepository
from services.badge_service import BadgeService
from services.cache_service import cache_key
from services.comment_service import CommentService
from services.reputation_service import ReputationService
from services.user_service import UserService


@pytest.fixture
def badges(db_session) -> list[db_models.Badge]:
    return [
        BadgeService.create_badge(
            db_session, schemas.BadgeCreate(name=name, required_score=score)
        )
        for name, score in (("Newcomer", 1), ("Active Citizen", 10), ("Champion", 50))
    ]


def _held(db, user) -> list[str]:
    return sorted(a.badge.name for a in BadgeRepository(db).get_user_badges(user.id))


class TestApply:
    def test_adds_points(self, db_session, citizen):
        assert ReputationService.apply(db_session, citizen.id, 5) == 5
        db_session.commit()
        db_session.refresh(citizen)
        assert citizen.reputation_score == 5

    def test_floors_at_zero(self, db_session, citizen):
        ReputationService.apply(db_session, citizen.id, 2)
        assert ReputationService.apply(db_session, citizen.id, -10) == 0

    def test_missing_user(self, db_session):
        assert ReputationService.apply(db_session, 999, 5) == 0


class TestVoteDelta:
    @pytest.mark.parametrize(
        "old, new, expected",
        [
            (None, 1, 2),
            (None, -1, -1),
            (1, None, -2),
            (-1, None, 1),
            (1, -1, -3),
            (-1, 1, 3),
            (1, 1, 0),
            (None, None, 0),
        ],
    )
    def test_delta(self, old, new, expected):
        assert ReputationService.vote_delta(old, new) == expected


class TestAutomaticBadges:
    def test_awards_every_reached_threshold(self, db_session, citizen, badges):
        ReputationService.apply(db_session, citizen.id, 12)
        db_session.commit()
        assert _held(db_session, citizen) == ["Active Citizen", "Newcomer"]

    def test_badge_awarded_once(self, db_session, citizen, badges):
        ReputationService.apply(db_session, citizen.id, 12)
        ReputationService.apply(db_session, citizen.id, -5)
        ReputationService.apply(db_session, citizen.id, 5)
        db_session.commit()

        assert _held(db_session, citizen) == ["Active Citizen", "Newcomer"]

    def test_losing_points_keeps_badges(self, db_session, citizen, badges):
        ReputationService.apply(db_session, citizen.id, 1)
        ReputationService.apply(db_session, citizen.id, -1)
        db_session.commit()
        assert _held(db_session, citizen) == ["Newcomer"]


class TestBadgeCatalogue:
    def test_list_ordered_by_score(self, db_session, badges):
        names = [b["name"] for b in BadgeService.list_badges(db_session)]
        assert names == ["Newcomer", "Active Citizen", "Champion"]

    def test_duplicate_name(self, db_session, badges):
        with pytest.raises(AlreadyExistsException):
            BadgeService.create_badge(db_session, schemas.BadgeCreate(name="Newcomer"))

    def test_update(self, db_session, badges):
        updated = BadgeService.update_badge(
            db_session, badges[2].id, schemas.BadgeUpdate(required_score=100)
        )
        assert updated.required_score == 100
        assert updated.name == "Champion"

    def test_delete_removes_awards(self, db_session, citizen, badges):
        BadgeService.award_badge(db_session, citizen.id, badges[0].id)
        BadgeService.delete_badge(db_session, badges[0].id)

        assert _held(db_session, citizen) == []
        with pytest.raises(BadgeNotFoundException):
            BadgeService.get_badge(db_session, badges[0].id)


class TestManualAwards:
    def test_award_and_remove(self, db_session, citizen, badges):
        BadgeService.award_badge(db_session, citizen.id, badges[2].id)
        assert _held(db_session, citizen) == ["Champion"]

        BadgeService.remove_badge(db_session, citizen.id, badges[2].id)
        assert _held(db_session, citizen) == []

    def test_award_twice(self, db_session, citizen, badges):
        BadgeService.award_badge(db_session, citizen.id, badges[0].id)
        with pytest.raises(ConflictException):
            BadgeService.award_badge(db_session, citizen.id, badges[0].id)

    def test_remove_not_held(self, db_session, citizen, badges):
        with pytest.raises(NotFoundException):
            BadgeService.remove_badge(db_session, citizen.id, badges[0].id)

    def test_holders_and_stats(self, db_session, citizen, other_user, badges):
        BadgeService.award_badge(db_session, citizen.id, badges[0].id)

        holders = BadgeService.get_holders(db_session, badges[0].id)
        assert [h.user_id for h in holders] == [citizen.id]

        stats = BadgeService.get_stats(db_session, badges[0].id)
        assert stats.holder_count == 1
        assert stats.total_users == 2
        assert stats.holder_percentage == 50.0


class TestCacheInvalidation:
    """Cached user views are cleared only once the change is committed."""

    def test_apply_leaves_cache_untouched(self, db_session, fake_cache, citizen):
        UserService.get_leaderboard(db_session)
        ReputationService.apply(db_session, citizen.id, 5)

        assert cache_key("leaderboard") in fake_cache.store
        db_session.rollback()

    def test_rolled_back_award_keeps_cached_board(self, db_session, fake_cache, citizen):
        before = UserService.get_leaderboard(db_session)
        ReputationService.apply(db_session, citizen.id, 5)
        db_session.rollback()

        assert UserService.get_leaderboard(db_session) == before

    def test_committed_comment_refreshes_board(
        self, db_session, fake_cache, issue, other_user
    ):
        UserService.get_leaderboard(db_session)
        CommentService.create_comment(
            db_session, issue.id, other_user, schemas.CommentCreate(content="Same here")
        )

        assert cache_key("leaderboard") not in fake_cache.store
        scores = {
            u["id"]: u["reputation_score"] for u in UserService.get_leaderboard(db_session)
        }
        assert scores[other_user.id] == 1
