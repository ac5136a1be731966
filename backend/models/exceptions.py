"""
Custom domain exceptions for the application.

Services and the authentication module raise these; main.py turns them into
HTTP responses through centralized exception handlers, so the service layer
stays usable from CLI tools such as init_db.

Each exception carries a correlation ID shared with logs and Sentry.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Prefer the request correlation ID so the error matches the request log
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when user lacks required permissions."""

    pass


class ValidationException(DomainException):
    """Raised when input validation fails."""

    pass


class ConflictException(DomainException):
    """Raised when operation conflicts with existing data."""

    pass


class AuthenticationException(DomainException):
    """Raised when authentication fails."""

    pass


class AlreadyExistsException(DomainException):
    """Raised when trying to create a resource that already exists."""

    pass


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    pass


# Specific exceptions for domain entities


class UserNotFoundException(NotFoundException):
    """User not found."""

    pass


class UserAlreadyExistsException(AlreadyExistsException):
    """User already exists."""

    pass


class IssueNotFoundException(NotFoundException):
    """Issue not found."""

    def __init__(self, issue_id: int) -> None:
        super().__init__(f"Issue with ID {issue_id} not found")
        self.issue_id = issue_id


class ZoneNotFoundException(NotFoundException):
    """Zone not found."""

    def __init__(self, zone_id: int) -> None:
        super().__init__(f"Zone with ID {zone_id} not found")
        self.zone_id = zone_id


class CategoryNotFoundException(NotFoundException):
    """Category not found."""

    pass


class CommentNotFoundException(NotFoundException):
    """Comment not found."""

    def __init__(self, comment_id: int) -> None:
        super().__init__(f"Comment with ID {comment_id} not found")
        self.comment_id = comment_id


class VoteNotFoundException(NotFoundException):
    """Vote not found."""

    pass


class BadgeNotFoundException(NotFoundException):
    """Badge not found."""

    def __init__(self, badge_id: int) -> None:
        super().__init__(f"Badge with ID {badge_id} not found")
        self.badge_id = badge_id


class MediaNotFoundException(NotFoundException):
    """Media record not found."""

    pass


class ApplicationNotFoundException(NotFoundException):
    """Steward application not found."""

    pass


class AssignmentNotFoundException(NotFoundException):
    """Steward category assignment not found."""

    pass


class InvalidCredentialsException(AuthenticationException):
    """Invalid email or password."""

    pass


class InactiveUserException(PermissionDeniedException):
    """User account is inactive."""

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


# ============================================================================
# Issue Lifecycle Exceptions
# ============================================================================


class StewardAccessDeniedException(PermissionDeniedException):
    """Raised when a steward has no active assignment for a category and zone."""

    def __init__(self, category_id: int, zone_id: int) -> None:
        super().__init__(
            f"No steward access for category {category_id} in zone {zone_id}"
        )
        self.category_id = category_id
        self.zone_id = zone_id


class InvalidStatusTransitionException(ValidationException):
    """Raised when a status change is not allowed."""

    pass


class InactiveZoneException(BusinessRuleException):
    """Raised when an issue targets a deactivated zone."""

    def __init__(self, zone_id: int) -> None:
        super().__init__(f"Zone {zone_id} is not active")
        self.zone_id = zone_id


class ZoneInUseException(ConflictException):
    """Raised when deactivating a zone that still has open issues."""

    pass


# ============================================================================
# Voting Exceptions
# ============================================================================


class CannotVoteOwnIssueException(PermissionDeniedException):
    """Raised when a reporter votes on their own issue."""

    def __init__(self, message: str = "You cannot vote on your own issue"):
        super().__init__(message)


class InvalidVoteTypeException(ValidationException):
    """Raised when a vote value is not +1 or -1."""

    def __init__(self, vote_type: object) -> None:
        super().__init__(f"Invalid vote type {vote_type!r}; expected 1 or -1")


# ============================================================================
# Content Moderation Exceptions
# ============================================================================


class FlagException(DomainException):
    """Base exception for flag-related errors."""

    pass


class DuplicateFlagException(FlagException):
    """Raised when user tries to flag same comment twice."""

    def __init__(self, message: str = "You have already flagged this comment"):
        super().__init__(message)


class CannotFlagOwnContentException(FlagException):
    """Raised when user tries to flag their own comment."""

    def __init__(self, message: str = "You cannot flag your own comment"):
        super().__init__(message)


# ============================================================================
# Steward Management Exceptions
# ============================================================================


class DuplicateApplicationException(ConflictException):
    """Raised when a user already has a pending or approved application."""

    def __init__(
        self, message: str = "You already have an active steward application"
    ):
        super().__init__(message)


class ApplicationAlreadyReviewedException(BusinessRuleException):
    """Raised when reviewing an application that is no longer pending."""

    def __init__(self, application_id: int) -> None:
        super().__init__(f"Application {application_id} has already been reviewed")
        self.application_id = application_id


class AssignmentAlreadyExistsException(ConflictException):
    """Raised when an active assignment already exists for the triple."""

    def __init__(self) -> None:
        super().__init__(
            "Steward is already assigned to this category in this zone"
        )


class NotAStewardException(BusinessRuleException):
    """Raised when assigning scope to a user without the steward role."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} is not a steward")
        self.user_id = user_id


# ============================================================================
# Rate Limiting
# ============================================================================


class RateLimitExceededException(DomainException):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: int | None = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
