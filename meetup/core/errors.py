"""Error Hierarchy — tagged, categorized exceptions for all meetup failure modes.

Invariants:
    - Every error carries an ErrorKind tag; code, category, severity and HTTP status
      are derived from the kind (single table, _KIND_PROFILES)
    - Payload lives in ErrorContext as structured fields, never pre-formatted text
    - Human-readable text is rendered by core/format_errors.py at the edge
    - Domain errors (400-level) are recoverable; StoreError (503) is critical

Design Decisions:
    - ErrorKind tag + thin subclasses: handlers switch on .kind, callers can still
      `except NotFoundError` where that reads better
    - NotAMemberError subclasses NotFoundError: "member not in X" is a not-found
      for callers that only care about presence
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from meetup.core.domain_types import ResourceType


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    CONFLICT = "conflict"
    PERMISSION = "permission"
    AUTHENTICATION = "authentication"


class ErrorKind(str, Enum):
    """Tag identifying what went wrong."""
    NOT_FOUND = "not_found"
    BAD_VALUES = "bad_values"
    ALREADY_MEMBER = "already_member"
    NOT_A_MEMBER = "not_a_member"
    CONTENTION = "contention"
    STORE = "store"
    NOT_ALLOWED = "not_allowed"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class _KindProfile:
    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    http_status: int
    retryable: bool = False


_KIND_PROFILES: dict[ErrorKind, _KindProfile] = {
    ErrorKind.NOT_FOUND: _KindProfile(
        "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
        ErrorSeverity.ERROR, 404,
    ),
    ErrorKind.BAD_VALUES: _KindProfile(
        "BAD_VALUES", ErrorCategory.VALIDATION, ErrorSeverity.ERROR, 400,
    ),
    ErrorKind.ALREADY_MEMBER: _KindProfile(
        "ALREADY_MEMBER", ErrorCategory.BUSINESS_RULE, ErrorSeverity.ERROR, 409,
    ),
    ErrorKind.NOT_A_MEMBER: _KindProfile(
        "NOT_A_MEMBER", ErrorCategory.RESOURCE_NOT_FOUND,
        ErrorSeverity.ERROR, 404,
    ),
    ErrorKind.CONTENTION: _KindProfile(
        "CONTENTION", ErrorCategory.CONFLICT, ErrorSeverity.WARNING, 409,
        retryable=True,
    ),
    ErrorKind.STORE: _KindProfile(
        "STORE_ERROR", ErrorCategory.DATABASE, ErrorSeverity.CRITICAL, 503,
    ),
    ErrorKind.NOT_ALLOWED: _KindProfile(
        "NOT_ALLOWED", ErrorCategory.PERMISSION, ErrorSeverity.ERROR, 403,
    ),
    ErrorKind.UNAUTHENTICATED: _KindProfile(
        "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
        ErrorSeverity.ERROR, 401,
    ),
}


@dataclass
class ErrorContext:
    """Structured payload for an error; rendered into text only at the edge."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource_type: ResourceType | None = None
    resource_id: str | None = None
    user_id: str | None = None
    gathering_id: str | None = None
    group_id: str | None = None
    operation: str | None = None
    attempt: int | None = None
    retry_after_ms: int | None = None
    detail: str | None = None
    debug_info: dict[str, Any] | None = None


class MeetupError(Exception):
    """Base exception for all meetup errors."""

    def __init__(self, kind: ErrorKind, context: ErrorContext | None = None):
        self.kind = kind
        self.context = context or ErrorContext()
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return _KIND_PROFILES[self.kind].code

    @property
    def category(self) -> ErrorCategory:
        return _KIND_PROFILES[self.kind].category

    @property
    def severity(self) -> ErrorSeverity:
        return _KIND_PROFILES[self.kind].severity

    @property
    def http_status(self) -> int:
        return _KIND_PROFILES[self.kind].http_status

    @property
    def retryable(self) -> bool:
        return _KIND_PROFILES[self.kind].retryable

    @property
    def message(self) -> str:
        from meetup.core.format_errors import format_error_message
        return format_error_message(self.kind, self.context)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        ctx = self.context
        return {
            "error": {
                "code": self.code,
                "kind": self.kind.value,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "retryable": self.retryable,
                "timestamp": ctx.timestamp.isoformat(),
                "context": {
                    "resource_type": (
                        ctx.resource_type.value if ctx.resource_type else None
                    ),
                    "resource_id": ctx.resource_id,
                    "user_id": ctx.user_id,
                    "gathering_id": ctx.gathering_id,
                    "group_id": ctx.group_id,
                    "retry_after_ms": ctx.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NotFoundError(MeetupError):
    """Requested resource does not exist."""
    def __init__(
        self,
        resource_type: ResourceType,
        resource_id: object,
        context: ErrorContext | None = None,
        kind: ErrorKind = ErrorKind.NOT_FOUND,
    ):
        ctx = context or ErrorContext()
        ctx.resource_type = resource_type
        ctx.resource_id = str(resource_id)
        super().__init__(kind, ctx)


class NotAMemberError(NotFoundError):
    """User is not a member of the gathering/group they act on."""
    def __init__(
        self,
        user_id: object,
        resource_type: ResourceType,
        resource_id: object,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_id = str(user_id)
        super().__init__(
            resource_type, resource_id, ctx, kind=ErrorKind.NOT_A_MEMBER,
        )


class AlreadyMemberError(MeetupError):
    """User is already a member of the gathering/group."""
    def __init__(
        self,
        user_id: object,
        resource_type: ResourceType,
        resource_id: object,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_id = str(user_id)
        ctx.resource_type = resource_type
        ctx.resource_id = str(resource_id)
        super().__init__(ErrorKind.ALREADY_MEMBER, ctx)


class BadValuesError(MeetupError):
    """Invalid construction or update input."""
    def __init__(self, detail: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.detail = detail
        super().__init__(ErrorKind.BAD_VALUES, ctx)


class EmptyMembersError(BadValuesError):
    """A group cannot be created or left with no members."""
    def __init__(self, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource_type = ResourceType.GROUP
        super().__init__("members must be non-empty", ctx)


class NotAllowedError(MeetupError):
    """Acting user may not perform this operation."""
    def __init__(self, detail: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.detail = detail
        super().__init__(ErrorKind.NOT_ALLOWED, ctx)


class UnauthenticatedError(MeetupError):
    """No (valid) acting user on the request."""
    def __init__(self, detail: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.detail = detail
        super().__init__(ErrorKind.UNAUTHENTICATED, ctx)


class ContentionError(MeetupError):
    """Gathering lock not acquired in time, or a group kept changing under a write."""
    def __init__(
        self,
        resource_id: object,
        timeout_seconds: float,
        attempt: int | None = None,
        context: ErrorContext | None = None,
        resource_type: ResourceType = ResourceType.GATHERING,
    ):
        ctx = context or ErrorContext()
        ctx.resource_type = resource_type
        ctx.resource_id = str(resource_id)
        if resource_type is ResourceType.GROUP:
            ctx.group_id = str(resource_id)
        else:
            ctx.gathering_id = str(resource_id)
        ctx.attempt = attempt
        ctx.retry_after_ms = int(timeout_seconds * 1000)
        super().__init__(ErrorKind.CONTENTION, ctx)


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreError(MeetupError):
    """Persistence operation failed. Never retried automatically."""
    def __init__(
        self, detail: str, operation: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.detail = detail
        ctx.operation = operation
        super().__init__(ErrorKind.STORE, ctx)
