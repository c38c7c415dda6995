"""
Session Accessor

The one place that reads and writes the stored tokens. The transport
gets a Session injected instead of touching storage itself, so token
ownership is explicit and easy to fake in tests.
"""

from typing import Optional

from ledger_client.models.transaction import TokenPair
from ledger_client.services.storage.interface import TokenStorageInterface


ACCESS_KEY = "access"
REFRESH_KEY = "refresh"


class Session:
    """
    Access + refresh token pair backed by durable storage.

    Tokens are established together and cleared together. Only the
    access token is ever replaced on its own (after a refresh).
    """

    def __init__(self, storage: TokenStorageInterface):
        self._storage = storage

    def get(self, key: str) -> Optional[str]:
        """Read one stored token, or None."""
        return self._storage.load().get(key) or None

    def set(self, key: str, value: str) -> None:
        """Store one token, keeping the others."""
        tokens = self._storage.load()
        tokens[key] = value
        self._storage.save(tokens)

    def clear(self) -> None:
        """Forget the whole session."""
        self._storage.clear()

    def establish(self, tokens: TokenPair) -> None:
        """Persist both tokens from a fresh login."""
        self._storage.save({ACCESS_KEY: tokens.access, REFRESH_KEY: tokens.refresh})

    @property
    def access_token(self) -> Optional[str]:
        return self.get(ACCESS_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self.get(REFRESH_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None
