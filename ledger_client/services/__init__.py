"""Services package."""

from ledger_client.services.api import (
    ApiError,
    ApiRequest,
    AuthenticationError,
    AuthTransport,
    LedgerAPI,
    SessionExpiredError,
    TransportFailure,
)
from ledger_client.services.storage import (
    CorruptSessionError,
    FileTokenStorage,
    InMemoryTokenStorage,
    Session,
    StorageError,
    TokenStorageInterface,
)

__all__ = [
    # API services
    "ApiError",
    "ApiRequest",
    "AuthenticationError",
    "AuthTransport",
    "LedgerAPI",
    "SessionExpiredError",
    "TransportFailure",
    # Storage services
    "CorruptSessionError",
    "FileTokenStorage",
    "InMemoryTokenStorage",
    "Session",
    "StorageError",
    "TokenStorageInterface",
]
