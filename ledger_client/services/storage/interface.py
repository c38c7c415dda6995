"""
Abstract Token Storage Interface

DESIGN DECISION: Tokens live behind an abstract interface.
This allows us to:
1. Keep tokens in a file so a session survives restarts
2. Use in-memory storage for tests
3. Keep every reader of the tokens going through one Session object

Storage is synchronous: reads and writes are tiny and happen on the
event loop's thread, never concurrently.
"""

from abc import ABC, abstractmethod


class TokenStorageInterface(ABC):
    """
    Abstract interface for durable token storage.

    Implementations hold a flat mapping of string keys to string tokens.
    """

    @abstractmethod
    def load(self) -> dict[str, str]:
        """
        Read all stored tokens.

        Returns:
            Mapping of key to token; empty if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, tokens: dict[str, str]) -> None:
        """
        Replace the stored tokens with the given mapping.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Remove every stored token at once.

        Raises:
            StorageError: If the backend cannot be cleared
        """
        pass


class StorageError(Exception):
    """Base exception for token storage operations."""
    pass


class CorruptSessionError(StorageError):
    """Stored session data could not be decoded."""
    pass
