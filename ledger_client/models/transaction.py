"""
Ledger Data Models

These models describe the data the ledger API hands back to the client.
They are designed to:
1. Parse server payloads into typed values
2. Tolerate missing optional fields (the server owns the schema)
3. Keep unknown server fields instead of dropping them

DESIGN DECISION: The server is the source of truth. Nothing here
recomputes totals or reorders transactions; the client keeps exactly
what it was sent.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


TransactionId = Union[int, str]


def _timestamp_to_str(value: Any) -> Any:
    """Keep timestamps as raw strings; formatting parses them later."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    """Parse a server amount; anything that is not a finite number is None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


# =============================================================================
# AUTHENTICATION
# =============================================================================

class TokenPair(BaseModel):
    """Access and refresh tokens returned by a successful login."""

    access: str = Field(..., min_length=1)
    refresh: str = Field(..., min_length=1)


class RefreshedToken(BaseModel):
    """Response of the refresh endpoint: a new access token only."""

    access: str = Field(..., min_length=1)


class UserProfile(BaseModel):
    """
    The signed-in user's profile.

    Read-only from the client's perspective. Only the username is
    displayed; anything else the server sends is kept as extra fields.
    """
    model_config = ConfigDict(extra="allow")

    username: str = ""


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry as stored on the server.

    The server has used three names for the timestamp over time
    (datetime, created_at, date); all are accepted.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: TransactionId
    item: str = ""
    # None when the server sent no usable number; displayed as zero
    amount: Optional[Decimal] = None
    recorded_at: Optional[str] = Field(default=None, alias="datetime")
    created_at: Optional[str] = None
    date: Optional[str] = None

    @field_validator('recorded_at', 'created_at', 'date', mode='before')
    @classmethod
    def timestamps_as_text(cls, v: Any) -> Any:
        return _timestamp_to_str(v)

    @field_validator('item', mode='before')
    @classmethod
    def item_as_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator('amount', mode='before')
    @classmethod
    def tolerant_amount(cls, v: Any) -> Optional[Decimal]:
        return _decimal_or_none(v)

    @property
    def timestamp(self) -> Optional[str]:
        """The first timestamp the server supplied."""
        return self.recorded_at or self.created_at or self.date


class TransactionList(BaseModel):
    """
    Response of the list endpoint.

    Missing or null fields default to an empty list and a zero total,
    matching how the list page renders an empty ledger. A total that is
    not a number also reads as zero.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    total: Decimal = Decimal("0")

    @model_validator(mode='before')
    @classmethod
    def fill_missing(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        data = dict(data)
        if data.get("transactions") is None:
            data.pop("transactions", None)
        if _decimal_or_none(data.get("total")) is None:
            data.pop("total", None)
        return data


# =============================================================================
# FORM STATE
# =============================================================================

class TransactionDraft(BaseModel):
    """
    An in-progress create or edit in the transaction modal.

    CRITICAL: This is client-only state. It is never persisted and is
    discarded on close, cancel or a successful save.

    The amount is kept as the text the user typed; the server validates it.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[TransactionId] = None
    item: str = ""
    amount: str = ""
    recorded_at: Optional[str] = Field(default=None, alias="datetime")
    created_at: Optional[str] = None

    @field_validator('amount', mode='before')
    @classmethod
    def amount_as_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (int, float, Decimal)):
            return str(v)
        return v

    @field_validator('recorded_at', 'created_at', mode='before')
    @classmethod
    def timestamps_as_text(cls, v: Any) -> Any:
        return _timestamp_to_str(v)

    @property
    def is_new(self) -> bool:
        """True when the draft creates a new transaction."""
        return self.id is None

    @property
    def timestamp(self) -> Optional[str]:
        return self.recorded_at or self.created_at

    @classmethod
    def blank(cls) -> "TransactionDraft":
        """Defaults for the create form."""
        return cls(item="", amount="")

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionDraft":
        """Pre-fill the edit form from a fetched transaction."""
        return cls(
            id=transaction.id,
            item=transaction.item,
            amount=transaction.amount,
            recorded_at=transaction.recorded_at,
            created_at=transaction.created_at or transaction.date,
        )

    def to_payload(self) -> dict[str, str]:
        """Editable fields sent on create and on partial update."""
        return {"item": self.item, "amount": self.amount}
