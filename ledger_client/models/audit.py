"""
Activity Models for Ledger Client

Every significant action in the client is logged.
This provides:
1. Traceability of what the user did and what the server answered
2. Debugging information when a session is lost
3. A record of every mutation sent to the ledger

DESIGN DECISION: Events never carry secrets. Tokens and passwords are
not part of any event's details.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


DESCRIPTION_MAX_LENGTH = 500

# User-typed text quoted in a description is cut to this many characters;
# the full value stays in details
QUOTED_TEXT_LENGTH = 80


def _quote(text: Any) -> str:
    text = str(text)
    if len(text) <= QUOTED_TEXT_LENGTH:
        return text
    return text[:QUOTED_TEXT_LENGTH - 3] + "..."


class AuditEventType(str, Enum):
    """
    Types of events we log.
    """
    # Session lifecycle
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    SESSION_RESTORED = "session_restored"
    TOKEN_REFRESHED = "token_refreshed"
    TOKEN_REFRESH_FAILED = "token_refresh_failed"
    SESSION_EXPIRED = "session_expired"

    # Read paths
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    LIST_FETCH_FAILED = "list_fetch_failed"
    DETAIL_FETCH_FAILED = "detail_fetch_failed"
    STALE_RESPONSE_DROPPED = "stale_response_dropped"

    # Mutations
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SAVE_FAILED = "save_failed"
    DELETE_FAILED = "delete_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single activity event.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'session')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Server-side ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one save and its refetch)"
    )

    description: str = Field(
        ...,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    @field_validator('description', mode='before')
    @classmethod
    def clip_description(cls, v: Any) -> Any:
        if isinstance(v, str) and len(v) > DESCRIPTION_MAX_LENGTH:
            return v[:DESCRIPTION_MAX_LENGTH - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "status_code": self.status_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.login_succeeded(username, correlation_id)
        event = AuditEventBuilder.transaction_saved(42, created=False, ...)
    """

    @staticmethod
    def login_succeeded(username: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="session",
            correlation_id=correlation_id,
            description=f"User signed in: {_quote(username)}",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(
        username: str,
        status_code: Optional[int],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            correlation_id=correlation_id,
            description=f"Sign-in rejected for {_quote(username)}",
            details={"username": username},
            status_code=status_code,
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def logout(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGOUT,
            entity_type="session",
            description=f"Session cleared: {reason}",
            details={"reason": reason},
            is_user_action=reason == "user",
        )

    @staticmethod
    def session_restored() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="session",
            description="Stored session picked up at start-up",
        )

    @staticmethod
    def token_refreshed(method: str, path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TOKEN_REFRESHED,
            entity_type="session",
            description=f"Access token refreshed after 401 on {method} {path}",
            details={"method": method, "path": path},
        )

    @staticmethod
    def token_refresh_failed(
        method: str,
        path: str,
        status_code: Optional[int],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TOKEN_REFRESH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="session",
            description=f"Token refresh failed after 401 on {method} {path}",
            details={"method": method, "path": path},
            status_code=status_code,
            error_message=error_message,
        )

    @staticmethod
    def session_expired() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_EXPIRED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description="Session could not be refreshed; client reset to login",
        )

    @staticmethod
    def fetch_failed(
        resource: str,
        status_code: Optional[int],
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = {
            "profile": AuditEventType.PROFILE_FETCH_FAILED,
            "list": AuditEventType.LIST_FETCH_FAILED,
        }.get(resource, AuditEventType.DETAIL_FETCH_FAILED)
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING,
            entity_type="transaction" if resource != "profile" else "profile",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Fetch of {resource} failed",
            status_code=status_code,
            error_message=error_message,
        )

    @staticmethod
    def stale_response_dropped(resource: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_RESPONSE_DROPPED,
            severity=AuditSeverity.DEBUG,
            description=f"Dropped {resource} response from an earlier session",
            details={"resource": resource},
        )

    @staticmethod
    def transaction_saved(
        transaction_id: Optional[Union[int, str]],
        item: str,
        amount: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.TRANSACTION_CREATED
                if created
                else AuditEventType.TRANSACTION_UPDATED
            ),
            entity_type="transaction",
            entity_id=str(transaction_id) if transaction_id is not None else None,
            correlation_id=correlation_id,
            description=(
                f"Transaction {'created' if created else 'updated'}: "
                f"{_quote(item)} - {_quote(amount)}"
            ),
            details={"item": item, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: Union[int, str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Transaction deleted: {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        action: str,
        transaction_id: Optional[Union[int, str]],
        status_code: Optional[int],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.DELETE_FAILED
                if action == "delete"
                else AuditEventType.SAVE_FAILED
            ),
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            entity_id=str(transaction_id) if transaction_id is not None else None,
            correlation_id=correlation_id,
            description=f"Transaction {action} failed",
            status_code=status_code,
            error_message=error_message,
            is_user_action=True,
        )
