from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from repositories.db_models import (
    ApplicationStatus,
    FlagReason,
    FlagStatus,
    IssueStatus,
    MediaType,
    ModerationAction,
    UserRole,
    VoteType,
    ZoneType,
)


# Auth Schemas
class Token(BaseModel):
    access_token: str
    token_type: str
    # None when the session store is disabled
    refresh_token: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None
    all_sessions: bool = False


class LogoutResult(BaseModel):
    sessions_revoked: int


class TokenData(BaseModel):
    email: Optional[str] = None


# User Schemas
class UserBase(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=120)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class User(UserBase):
    id: int
    role: UserRole
    reputation_score: int
    issues_reported: int
    issues_resolved: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserPublic(BaseModel):
    """Profile fields visible to everyone (no email)."""

    id: int
    full_name: str
    role: UserRole
    reputation_score: int
    issues_reported: int
    issues_resolved: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserStats(BaseModel):
    user_id: int
    reputation_score: int
    issues_reported: int
    issues_resolved: int
    comments_count: int
    votes_cast: int
    badges_count: int


class RoleUpdate(BaseModel):
    role: UserRole


# Zone Schemas
class ZoneCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    description: Optional[str] = None
    zone_type: ZoneType = ZoneType.DISTRICT


class ZoneUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=120)
    description: Optional[str] = None
    zone_type: Optional[ZoneType] = None


class Zone(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    zone_type: ZoneType
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ZoneStats(BaseModel):
    zone_id: int
    total_issues: int
    status_counts: dict[str, int]
    total_votes: int
    steward_count: int


# Category Schemas
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=80)
    description: Optional[str] = None
    icon: Optional[str] = None


class Category(CategoryCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


# Issue Schemas
class IssueCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10)
    category_id: int
    zone_id: int
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = None
    urgency_score: int = Field(default=0, ge=0, le=10)
    thumbnail_url: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list)


class Issue(BaseModel):
    id: int
    title: str
    description: str
    category_id: int
    zone_id: int
    user_id: int
    assigned_steward_id: Optional[int] = None
    primary_issue_id: Optional[int] = None
    status: IssueStatus
    vote_score: int
    urgency_score: int
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Media(BaseModel):
    id: int
    issue_id: int
    user_id: int
    media_url: str
    media_type: MediaType
    is_thumbnail: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IssueDetail(Issue):
    comment_count: int = 0
    vote_count: int = 0
    media: List[Media] = Field(default_factory=list)


class IssueList(BaseModel):
    """Paginated issue list with total count."""

    items: List[Issue]
    total: int
    skip: int
    limit: int


class StatusUpdate(BaseModel):
    status: IssueStatus
    reason: Optional[str] = Field(None, max_length=1000)


class BulkStatusUpdate(StatusUpdate):
    issue_ids: List[int] = Field(..., min_length=1, max_length=100)


class DuplicateMark(BaseModel):
    primary_issue_id: int
    reason: Optional[str] = Field(None, max_length=1000)


class ArchiveRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class IssueHistoryEntry(BaseModel):
    id: int
    issue_id: int
    user_id: int
    old_status: Optional[IssueStatus] = None
    new_status: IssueStatus
    reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Vote Schemas
class VoteCreate(BaseModel):
    vote_type: VoteType


class Vote(BaseModel):
    id: int
    issue_id: int
    user_id: int
    vote_type: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoteResult(BaseModel):
    """Outcome of casting a vote."""

    action: Literal["created", "removed", "changed"]
    vote_type: Optional[int] = None
    vote_score: int


# Comment Schemas
class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class Comment(BaseModel):
    id: int
    issue_id: int
    user_id: int
    parent_id: Optional[int] = None
    content: str
    flag_count: int
    is_flagged: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CommentThread(Comment):
    """Comment with its nested replies."""

    replies: List["CommentThread"] = Field(default_factory=list)


# Moderation Schemas
class FlagCreate(BaseModel):
    reason: FlagReason
    details: Optional[str] = Field(None, max_length=1000)


class FlagResponse(BaseModel):
    id: int
    comment_id: int
    user_id: int
    reason: FlagReason
    details: Optional[str] = None
    status: FlagStatus
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    review_feedback: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class FlagReview(BaseModel):
    action: ModerationAction
    feedback: Optional[str] = Field(None, max_length=1000)


class FlagReviewResult(BaseModel):
    comment_id: int
    action: ModerationAction
    flags_resolved: int
    comments_deleted: int = 0


# Steward Schemas
class ApplicationCreate(BaseModel):
    justification: str = Field(..., min_length=20, max_length=2000)


class Application(BaseModel):
    id: int
    user_id: int
    justification: str
    status: ApplicationStatus
    created_at: datetime
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    feedback: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationReview(BaseModel):
    status: ApplicationStatus
    feedback: Optional[str] = Field(None, max_length=1000)


class AssignmentCreate(BaseModel):
    steward_id: int
    category_id: int
    zone_id: int


class BulkAssignmentCreate(BaseModel):
    steward_id: int
    zone_id: int
    category_ids: List[int] = Field(..., min_length=1)


class Assignment(BaseModel):
    id: int
    steward_id: int
    category_id: int
    zone_id: int
    assigned_by: Optional[int] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=5000)


class Note(BaseModel):
    id: int
    issue_id: int
    steward_id: int
    note: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StewardStats(BaseModel):
    steward_id: int
    active_assignments: int
    issues_in_scope: int
    open_issues: int
    resolved_issues: int
    status_changes: int
    notes_written: int


class StewardWorkload(BaseModel):
    steward_id: int
    status_counts: dict[str, int]
    assigned_to_me: int
    high_urgency: int


# Badge Schemas
class BadgeCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=80)
    description: Optional[str] = None
    icon_url: Optional[str] = None
    required_score: int = Field(default=0, ge=0)


class BadgeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=80)
    description: Optional[str] = None
    icon_url: Optional[str] = None
    required_score: Optional[int] = Field(None, ge=0)


class Badge(BadgeCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserBadge(BaseModel):
    badge: Badge
    awarded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BadgeHolder(BaseModel):
    user_id: int
    full_name: str
    reputation_score: int
    awarded_at: datetime


class BadgeAward(BaseModel):
    user_id: int
    badge_id: int


class BadgeStats(BaseModel):
    badge_id: int
    holder_count: int
    total_users: int
    holder_percentage: float


# Media Schemas
class MediaCreate(BaseModel):
    media_url: str = Field(..., min_length=1)
    media_type: Optional[MediaType] = None
    is_thumbnail: bool = False


class ThumbnailUpdate(BaseModel):
    media_id: int


# Dashboard Schemas
class SystemStats(BaseModel):
    total_users: int
    total_issues: int
    resolved_issues: int
    open_issues: int
    total_comments: int
    total_votes: int
    active_zones: int
    resolution_rate: float


class CategoryStats(BaseModel):
    category_id: int
    name: str
    issue_count: int


CommentThread.model_rebuild()
