"""Ledger API services package."""

from ledger_client.services.api.client import LedgerAPI, transaction_path
from ledger_client.services.api.errors import (
    ApiError,
    AuthenticationError,
    SessionExpiredError,
    TransportFailure,
)
from ledger_client.services.api.transport import (
    REFRESH_PATH,
    ApiRequest,
    AuthTransport,
)

__all__ = [
    "ApiError",
    "ApiRequest",
    "AuthTransport",
    "AuthenticationError",
    "LedgerAPI",
    "REFRESH_PATH",
    "SessionExpiredError",
    "TransportFailure",
    "transaction_path",
]
