"""
Media service: photo and video references attached to issues.

Only URLs are stored; uploads go straight to object storage.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import IssueNotFoundException, MediaNotFoundException
from repositories.database import transaction
from repositories.issue_repository import IssueRepository
from repositories.media_repository import MediaRepository
from services.permission_service import PermissionService
from services.rate_limit_service import RateLimitService


class MediaService:
    """Service for issue media."""

    @staticmethod
    def detect_media_type(url: str) -> db_models.MediaType:
        """Storage puts videos under a /video/ path; everything else is an image."""
        if "/video/" in url.lower():
            return db_models.MediaType.VIDEO
        return db_models.MediaType.IMAGE

    @staticmethod
    def build_media(
        issue_id: int,
        user_id: int,
        url: str,
        media_type: Optional[db_models.MediaType] = None,
        is_thumbnail: bool = False,
    ) -> db_models.IssueMedia:
        return db_models.IssueMedia(
            issue_id=issue_id,
            user_id=user_id,
            media_url=url,
            media_type=media_type or MediaService.detect_media_type(url),
            is_thumbnail=is_thumbnail,
        )

    @staticmethod
    def _get_issue(db: Session, issue_id: int) -> db_models.Issue:
        issue = IssueRepository(db).get_by_id(issue_id)
        if not issue:
            raise IssueNotFoundException(issue_id)
        return issue

    @staticmethod
    def _get_media(db: Session, issue_id: int, media_id: int) -> db_models.IssueMedia:
        media = MediaRepository(db).get_by_id(media_id)
        if not media or media.issue_id != issue_id:
            raise MediaNotFoundException(f"Media {media_id} not found on issue {issue_id}")
        return media

    @staticmethod
    def list_media(db: Session, issue_id: int) -> List[db_models.IssueMedia]:
        MediaService._get_issue(db, issue_id)
        return MediaRepository(db).get_for_issue(issue_id)

    @staticmethod
    def add_media(
        db: Session,
        issue_id: int,
        actor: db_models.User,
        media_url: str,
        media_type: Optional[db_models.MediaType] = None,
        is_thumbnail: bool = False,
    ) -> db_models.IssueMedia:
        """
        Attach a media URL to an issue.

        Args:
            db: Database session
            issue_id: Issue ID
            actor: Reporter or super admin
            media_url: Object storage URL
            media_type: Explicit type; detected from the URL when omitted
            is_thumbnail: Make this the issue thumbnail

        Returns:
            Created media record

        Raises:
            IssueNotFoundException: If issue not found
            PermissionDeniedException: If actor cannot manage the issue's media
            RateLimitExceededException: If the upload budget is spent
        """
        issue = MediaService._get_issue(db, issue_id)
        PermissionService.can_manage_media(actor, issue)
        RateLimitService.hit("upload", actor.id)

        repo = MediaRepository(db)
        with transaction(db):
            if is_thumbnail:
                repo.clear_thumbnail(issue_id)
            media = repo.add(
                MediaService.build_media(
                    issue_id, actor.id, media_url, media_type, is_thumbnail
                )
            )
        return media

    @staticmethod
    def set_thumbnail(
        db: Session, issue_id: int, media_id: int, actor: db_models.User
    ) -> db_models.IssueMedia:
        """Make one media item the thumbnail, clearing the previous one."""
        issue = MediaService._get_issue(db, issue_id)
        PermissionService.can_manage_media(actor, issue)
        media = MediaService._get_media(db, issue_id, media_id)

        repo = MediaRepository(db)
        with transaction(db):
            repo.clear_thumbnail(issue_id)
            media.is_thumbnail = True
            repo.flush()
        return media

    @staticmethod
    def remove_media(
        db: Session, issue_id: int, media_id: int, actor: db_models.User
    ) -> None:
        issue = MediaService._get_issue(db, issue_id)
        PermissionService.can_manage_media(actor, issue)
        media = MediaService._get_media(db, issue_id, media_id)
        with transaction(db):
            MediaRepository(db).delete(media)
