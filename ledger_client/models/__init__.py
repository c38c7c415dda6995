"""
Data Models Package

This package contains all Pydantic models used by the ledger client:
server payloads, the UI state, and activity events.
"""

from ledger_client.models.transaction import (
    RefreshedToken,
    TokenPair,
    Transaction,
    TransactionDraft,
    TransactionId,
    TransactionList,
    UserProfile,
)
from ledger_client.models.state import (
    AuthForm,
    LedgerState,
    ModalState,
)
from ledger_client.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "RefreshedToken",
    "TokenPair",
    "Transaction",
    "TransactionDraft",
    "TransactionId",
    "TransactionList",
    "UserProfile",
    # UI state
    "AuthForm",
    "LedgerState",
    "ModalState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
