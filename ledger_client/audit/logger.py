"""
Activity Logger

DESIGN DECISION: Every session change and every mutation is logged.
This provides:
1. Traceability of what was sent to the ledger
2. A trail to follow when a session is lost unexpectedly

The logger:
- Is async so it can be awaited inline from the controller and transport
- Never raises into the caller (a logging failure must not break the UI)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Callable, Optional, Union
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError

from ledger_client.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging (and so structlog) to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central activity logging service.

    Events are written to the structured local log only; the ledger
    server keeps its own history.
    """

    def __init__(self, logger_name: str = "ledger_client"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log write itself failed.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity.value == "error":
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must never take the client down
            logging.getLogger(__name__).exception("audit log write failed")
            return False

        return True

    async def _record(self, build: Callable[..., AuditEvent], *args: Any, **kwargs: Any) -> bool:
        """Build an event from caller-supplied values and log it."""
        try:
            event = build(*args, **kwargs)
        except ValidationError:
            logging.getLogger(__name__).exception("audit event could not be built")
            return False
        return await self.log(event)

    async def log_login_succeeded(self, username: str, correlation_id: Optional[UUID] = None) -> None:
        """Log a successful sign-in."""
        await self._record(AuditEventBuilder.login_succeeded, username, correlation_id)

    async def log_login_failed(
        self,
        username: str,
        status_code: Optional[int],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected sign-in."""
        await self._record(
            AuditEventBuilder.login_failed,
            username=username,
            status_code=status_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    async def log_logout(self, reason: str = "user") -> None:
        await self._record(AuditEventBuilder.logout, reason)

    async def log_session_restored(self) -> None:
        await self._record(AuditEventBuilder.session_restored)

    async def log_token_refreshed(self, method: str, path: str) -> None:
        await self._record(AuditEventBuilder.token_refreshed, method, path)

    async def log_token_refresh_failed(
        self,
        method: str,
        path: str,
        status_code: Optional[int],
        error_message: str,
    ) -> None:
        await self._record(
            AuditEventBuilder.token_refresh_failed,
            method=method,
            path=path,
            status_code=status_code,
            error_message=error_message,
        )

    async def log_session_expired(self) -> None:
        await self._record(AuditEventBuilder.session_expired)

    async def log_fetch_failed(
        self,
        resource: str,
        status_code: Optional[int],
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed read (profile, list or single transaction)."""
        await self._record(
            AuditEventBuilder.fetch_failed,
            resource=resource,
            status_code=status_code,
            error_message=error_message,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )

    async def log_stale_response_dropped(self, resource: str) -> None:
        await self._record(AuditEventBuilder.stale_response_dropped, resource)

    async def log_transaction_saved(
        self,
        transaction_id: Optional[Union[int, str]],
        item: str,
        amount: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a create or update."""
        await self._record(
            AuditEventBuilder.transaction_saved,
            transaction_id=transaction_id,
            item=item,
            amount=amount,
            created=created,
            correlation_id=correlation_id,
        )

    async def log_transaction_deleted(
        self,
        transaction_id: Union[int, str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._record(AuditEventBuilder.transaction_deleted, transaction_id, correlation_id)

    async def log_mutation_failed(
        self,
        action: str,
        transaction_id: Optional[Union[int, str]],
        status_code: Optional[int],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed save or delete."""
        await self._record(
            AuditEventBuilder.mutation_failed,
            action=action,
            transaction_id=transaction_id,
            status_code=status_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., a save).
    Pass it through all subsequent operations.
    """
    return uuid4()
