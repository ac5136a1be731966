"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

Issues are the central entity: reported by citizens inside a zone and a
category, triaged by stewards holding an assignment for that exact
(category, zone) pair, voted on and discussed through comments.
"""

import enum
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class UserRole(str, enum.Enum):
    CITIZEN = "CITIZEN"
    STEWARD = "STEWARD"
    SUPER_ADMIN = "SUPER_ADMIN"


class IssueStatus(str, enum.Enum):
    OPEN = "OPEN"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    ARCHIVED = "ARCHIVED"  # soft delete
    DUPLICATE = "DUPLICATE"  # linked to a primary issue


class VoteType(int, enum.Enum):
    UPVOTE = 1
    DOWNVOTE = -1


class ZoneType(str, enum.Enum):
    DISTRICT = "DISTRICT"
    NEIGHBORHOOD = "NEIGHBORHOOD"
    WARD = "WARD"
    CUSTOM = "CUSTOM"


class MediaType(str, enum.Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


# Content Moderation Enums


class FlagReason(str, enum.Enum):
    """Reasons for flagging a comment."""

    SPAM = "SPAM"
    HARASSMENT = "HARASSMENT"
    OFF_TOPIC = "OFF_TOPIC"
    MISINFORMATION = "MISINFORMATION"
    INAPPROPRIATE = "INAPPROPRIATE"
    OTHER = "OTHER"


class FlagStatus(str, enum.Enum):
    """Status of a comment flag."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"  # reviewer agreed, comment removed
    REJECTED = "REJECTED"  # reviewer kept the comment


class ModerationAction(str, enum.Enum):
    """Reviewer decision on a flagged comment."""

    APPROVE = "APPROVE"
    DELETE = "DELETE"


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("reputation_score >= 0", name="ck_users_reputation_floor"),
        Index("ix_users_role", "role"),
        Index("ix_users_reputation", "reputation_score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), default=UserRole.CITIZEN, nullable=False
    )
    reputation_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Activity counters
    issues_reported: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    issues_resolved: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, onupdate=_utc_now
    )

    # Relationships
    issues: Mapped[List["Issue"]] = relationship(
        "Issue", back_populates="reporter", foreign_keys="Issue.user_id"
    )
    assignments: Mapped[List["StewardCategoryAssignment"]] = relationship(
        "StewardCategoryAssignment",
        back_populates="steward",
        foreign_keys="StewardCategoryAssignment.steward_id",
    )
    badges: Mapped[List["UserBadge"]] = relationship(
        "UserBadge", back_populates="user"
    )


class Zone(Base):
    __tablename__ = "zones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    zone_type: Mapped[ZoneType] = mapped_column(
        Enum(ZoneType), default=ZoneType.DISTRICT, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, onupdate=_utc_now
    )

    issues: Mapped[List["Issue"]] = relationship("Issue", back_populates="zone")
    assignments: Mapped[List["StewardCategoryAssignment"]] = relationship(
        "StewardCategoryAssignment", back_populates="zone"
    )


class IssueCategory(Base):
    __tablename__ = "issue_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    issues: Mapped[List["Issue"]] = relationship("Issue", back_populates="category")


class StewardCategoryAssignment(Base):
    """
    Grants a steward authority over one category inside one zone.

    Removal deactivates the row; re-assigning the same triple reactivates it.
    """

    __tablename__ = "steward_category_assignments"
    __table_args__ = (
        UniqueConstraint(
            "steward_id",
            "category_id",
            "zone_id",
            name="uq_steward_category_zone",
        ),
        Index("ix_assignments_scope", "category_id", "zone_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    steward_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issue_categories.id"), nullable=False
    )
    zone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("zones.id"), nullable=False
    )
    assigned_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    steward: Mapped["User"] = relationship(
        "User", back_populates="assignments", foreign_keys=[steward_id]
    )
    category: Mapped["IssueCategory"] = relationship("IssueCategory")
    zone: Mapped["Zone"] = relationship("Zone", back_populates="assignments")


class Issue(Base):
    __tablename__ = "issues"
    __table_args__ = (
        Index("ix_issues_status", "status"),
        Index("ix_issues_scope", "category_id", "zone_id"),
        Index("ix_issues_user", "user_id"),
        Index("ix_issues_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issue_categories.id"), nullable=False
    )
    zone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("zones.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    assigned_steward_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    primary_issue_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("issues.id"), nullable=True
    )
    status: Mapped[IssueStatus] = mapped_column(
        Enum(IssueStatus), default=IssueStatus.OPEN, nullable=False
    )
    vote_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    urgency_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    location_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    reporter: Mapped["User"] = relationship(
        "User", back_populates="issues", foreign_keys=[user_id]
    )
    assigned_steward: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[assigned_steward_id]
    )
    category: Mapped["IssueCategory"] = relationship(
        "IssueCategory", back_populates="issues"
    )
    zone: Mapped["Zone"] = relationship("Zone", back_populates="issues")
    primary_issue: Mapped[Optional["Issue"]] = relationship(
        "Issue", remote_side=[id], foreign_keys=[primary_issue_id]
    )


class Vote(Base):
    __tablename__ = "issue_votes"
    __table_args__ = (
        UniqueConstraint("issue_id", "user_id", name="uq_vote_issue_user"),
        CheckConstraint("vote_type IN (1, -1)", name="ck_vote_type"),
        Index("ix_votes_issue", "issue_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    issue_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issues.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    vote_type: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_issue", "issue_id"),
        Index("ix_comments_parent", "parent_id"),
        Index("ix_comments_flagged", "is_flagged"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    issue_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issues.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Moderation state, recomputed from pending flags
    flag_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    author: Mapped["User"] = relationship("User", foreign_keys=[user_id])


class CommentFlag(Base):
    """
    A user's report against a comment.

    One row per (comment, reporting user). Three pending flags escalate the
    comment to the reviewer queue.
    """

    __tablename__ = "comment_flags"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_flag_comment_user"),
        Index("ix_comment_flags_status", "comment_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    reason: Mapped[FlagReason] = mapped_column(Enum(FlagReason), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[FlagStatus] = mapped_column(
        Enum(FlagStatus), default=FlagStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reviewed_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    review_feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class IssueHistory(Base):
    """Append-only log of status changes."""

    __tablename__ = "issue_history"
    __table_args__ = (Index("ix_issue_history_issue", "issue_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    issue_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issues.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    old_status: Mapped[Optional[IssueStatus]] = mapped_column(
        Enum(IssueStatus), nullable=True
    )
    new_status: Mapped[IssueStatus] = mapped_column(Enum(IssueStatus), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    actor: Mapped["User"] = relationship("User")


class StewardNote(Base):
    __tablename__ = "steward_notes"
    __table_args__ = (Index("ix_steward_notes_issue", "issue_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    issue_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issues.id"), nullable=False
    )
    steward_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    note: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    steward: Mapped["User"] = relationship("User")


class StewardApplication(Base):
    __tablename__ = "steward_applications"
    __table_args__ = (
        Index("ix_steward_applications_status", "status"),
        # At most one pending or approved application per user
        Index(
            "uq_steward_applications_open",
            "user_id",
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'APPROVED')"),
            postgresql_where=text("status IN ('PENDING', 'APPROVED')"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    justification: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    reviewed_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    applicant: Mapped["User"] = relationship("User", foreign_keys=[user_id])


class IssueMedia(Base):
    """Photo or video attached to an issue. Files live in external storage."""

    __tablename__ = "issue_media"
    __table_args__ = (Index("ix_issue_media_issue", "issue_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    issue_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issues.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    media_url: Mapped[str] = mapped_column(String, nullable=False)
    media_type: Mapped[MediaType] = mapped_column(
        Enum(MediaType), default=MediaType.IMAGE, nullable=False
    )
    is_thumbnail: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Badge(Base):
    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    required_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    badge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("badges.id"), nullable=False
    )
    awarded_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    user: Mapped["User"] = relationship("User", back_populates="badges")
    badge: Mapped["Badge"] = relationship("Badge")
