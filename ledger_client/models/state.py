"""
UI State Models

Everything the ledger page renders lives in one LedgerState object
owned by the controller. The front end only reads it.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ledger_client.models.transaction import Transaction, TransactionDraft, UserProfile


class AuthForm(BaseModel):
    """Contents of the login form."""

    username: str = ""
    password: str = ""


class ModalState(BaseModel):
    """The transaction modal: closed, or open with a draft."""

    open: bool = False
    draft: Optional[TransactionDraft] = None

    @classmethod
    def closed(cls) -> "ModalState":
        return cls(open=False, draft=None)

    @classmethod
    def editing(cls, draft: TransactionDraft) -> "ModalState":
        return cls(open=True, draft=draft)


class LedgerState(BaseModel):
    """
    All UI-visible state of the ledger page.

    The transaction list and total are only trusted right after a full
    refetch; they are never patched locally.
    """

    authenticated: bool = False
    profile: Optional[UserProfile] = None
    transactions: list[Transaction] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    loading: bool = False
    modal: ModalState = Field(default_factory=ModalState)
    auth_form: AuthForm = Field(default_factory=AuthForm)

    # Alerts raised since the front end last drained them
    messages: list[str] = Field(default_factory=list)

    def clear_cached_data(self) -> None:
        """Drop everything derived from the server."""
        self.profile = None
        self.transactions = []
        self.total = Decimal("0")
        self.loading = False
        self.modal = ModalState.closed()

    def drain_messages(self) -> list[str]:
        """Return pending alerts and forget them."""
        messages, self.messages = self.messages, []
        return messages
