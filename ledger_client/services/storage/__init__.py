"""
Storage Services Package

Provides the token storage interface, its file and in-memory backends,
and the Session accessor built on top of them.
"""

from ledger_client.services.storage.interface import (
    CorruptSessionError,
    StorageError,
    TokenStorageInterface,
)
from ledger_client.services.storage.token_store import (
    FileTokenStorage,
    InMemoryTokenStorage,
)
from ledger_client.services.storage.session import (
    ACCESS_KEY,
    REFRESH_KEY,
    Session,
)

__all__ = [
    # Interfaces
    "TokenStorageInterface",
    # Exceptions
    "CorruptSessionError",
    "StorageError",
    # Backends
    "FileTokenStorage",
    "InMemoryTokenStorage",
    # Session
    "ACCESS_KEY",
    "REFRESH_KEY",
    "Session",
]
