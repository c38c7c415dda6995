"""
Tests for Ledger Client

Test strategy:
1. Unit tests for individual components (models, formatting, storage)
2. Flow tests for the transport and controller against a fake server
3. No real API calls in tests (httpx MockTransport)
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from ledger_client.models.transaction import (
    RefreshedToken,
    TokenPair,
    Transaction,
    TransactionDraft,
    TransactionList,
    UserProfile,
)
from ledger_client.models.state import LedgerState, ModalState
from ledger_client.audit import AuditLogger
from ledger_client.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTokenModels:
    """Tests for the authentication payloads."""

    def test_token_pair_creation(self):
        tokens = TokenPair(access="a", refresh="r")
        assert tokens.access == "a"
        assert tokens.refresh == "r"

    def test_token_pair_requires_both_tokens(self):
        """A login response without a refresh token is unusable."""
        with pytest.raises(ValidationError):
            TokenPair.model_validate({"access": "a"})

    def test_refreshed_token_rejects_empty_access(self):
        with pytest.raises(ValidationError):
            RefreshedToken(access="")

    def test_profile_keeps_extra_fields(self):
        profile = UserProfile.model_validate({"username": "alice", "email": "a@example.com"})
        assert profile.username == "alice"
        assert profile.model_extra == {"email": "a@example.com"}


class TestTransactionModels:
    """Tests for Transaction and TransactionList."""

    def test_transaction_from_server_payload(self):
        """Test Transaction parses the server's field names."""
        transaction = Transaction.model_validate({
            "id": 7,
            "item": "Coffee",
            "amount": "4.50",
            "datetime": "2024-03-21T08:15:00",
        })
        assert transaction.id == 7
        assert transaction.amount == Decimal("4.50")
        assert transaction.timestamp == "2024-03-21T08:15:00"

    def test_timestamp_fallback_order(self):
        """datetime wins over created_at, which wins over date."""
        both = Transaction.model_validate(
            {"id": 1, "created_at": "2024-01-02T00:00:00", "date": "2024-01-03"}
        )
        assert both.timestamp == "2024-01-02T00:00:00"

        only_date = Transaction.model_validate({"id": 1, "date": "2024-01-03"})
        assert only_date.timestamp == "2024-01-03"

        none = Transaction.model_validate({"id": 1})
        assert none.timestamp is None

    def test_list_defaults_when_fields_missing(self):
        listing = TransactionList.model_validate({})
        assert listing.transactions == []
        assert listing.total == Decimal("0")

    def test_list_defaults_when_fields_null(self):
        listing = TransactionList.model_validate({"transactions": None, "total": None})
        assert listing.transactions == []
        assert listing.total == Decimal("0")

    @pytest.mark.parametrize("amount", [None, "", "abc", "NaN", "Infinity", True, [1]])
    def test_unusable_amount_reads_as_none(self, amount):
        """A bad amount on one row must not reject the row."""
        transaction = Transaction.model_validate({"id": 9, "item": "Tea", "amount": amount})
        assert transaction.amount is None

    def test_null_item_reads_as_empty(self):
        assert Transaction.model_validate({"id": 9, "item": None}).item == ""

    def test_numeric_timestamp_is_kept_as_text(self):
        assert Transaction.model_validate({"id": 9, "datetime": 1700000000}).timestamp == "1700000000"

    def test_list_with_bad_rows(self):
        listing = TransactionList.model_validate({
            "transactions": [
                {"id": 1, "item": "Rent", "amount": "12000.00"},
                {"id": 9, "item": None, "amount": None},
            ],
            "total": "not a number",
        })
        assert [t.id for t in listing.transactions] == [1, 9]
        assert listing.total == Decimal("0")

    def test_draft_from_row_without_amount(self):
        transaction = Transaction.model_validate({"id": 9, "item": "Tea", "amount": None})
        assert TransactionDraft.from_transaction(transaction).amount == ""

    def test_list_keeps_server_order_and_total(self):
        """The client never re-sorts or re-sums."""
        listing = TransactionList.model_validate({
            "transactions": [
                {"id": 2, "item": "B", "amount": "1.00"},
                {"id": 1, "item": "A", "amount": "2.00"},
            ],
            "total": 99,
        })
        assert [t.id for t in listing.transactions] == [2, 1]
        assert listing.total == Decimal("99")


class TestTransactionDraft:
    """Tests for the modal form state."""

    def test_blank_draft_is_new(self):
        draft = TransactionDraft.blank()
        assert draft.is_new is True
        assert draft.item == ""
        assert draft.amount == ""

    def test_draft_from_transaction(self):
        transaction = Transaction.model_validate({
            "id": 3, "item": "Fuel", "amount": "1500.00", "created_at": "2024-02-01T10:00:00",
        })
        draft = TransactionDraft.from_transaction(transaction)
        assert draft.is_new is False
        assert draft.id == 3
        assert draft.amount == "1500.00"
        assert draft.timestamp == "2024-02-01T10:00:00"

    def test_numeric_amount_becomes_text(self):
        assert TransactionDraft(amount=4.5).amount == "4.5"
        assert TransactionDraft(amount=None).amount == ""

    def test_payload_has_editable_fields_only(self):
        draft = TransactionDraft(id=3, item="Fuel", amount="10", created_at="2024-02-01")
        assert draft.to_payload() == {"item": "Fuel", "amount": "10"}


class TestLedgerState:
    """Tests for LedgerState."""

    def test_clear_cached_data(self):
        state = LedgerState(
            authenticated=True,
            profile=UserProfile(username="alice"),
            transactions=[Transaction(id=1, item="x", amount=Decimal("1"))],
            total=Decimal("1"),
            loading=True,
            modal=ModalState.editing(TransactionDraft.blank()),
        )
        state.clear_cached_data()
        assert state.profile is None
        assert state.transactions == []
        assert state.total == Decimal("0")
        assert state.loading is False
        assert state.modal.open is False

    def test_drain_messages(self):
        state = LedgerState(messages=["one", "two"])
        assert state.drain_messages() == ["one", "two"]
        assert state.messages == []


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.LOGOUT,
            description="Session cleared",
        )
        assert event.event_type == AuditEventType.LOGOUT
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.transaction_saved(
            transaction_id=42,
            item="Coffee",
            amount="4.50",
            created=True,
            correlation_id=uuid4(),
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_created"
        assert log_dict["entity_id"] == "42"
        assert log_dict["details"]["item"] == "Coffee"

    def test_builder_update_vs_create(self):
        event = AuditEventBuilder.transaction_saved(
            transaction_id=1, item="x", amount="1", created=False,
        )
        assert event.event_type == AuditEventType.TRANSACTION_UPDATED
        assert event.is_user_action is True

    def test_refresh_failure_is_error(self):
        event = AuditEventBuilder.token_refresh_failed("GET", "/", 401, "rejected")
        assert event.severity == AuditSeverity.ERROR
        assert event.status_code == 401

    def test_fetch_failed_event_types(self):
        assert AuditEventBuilder.fetch_failed("profile", 500, "x").event_type == AuditEventType.PROFILE_FETCH_FAILED
        assert AuditEventBuilder.fetch_failed("list", None, "x").event_type == AuditEventType.LIST_FETCH_FAILED
        assert AuditEventBuilder.fetch_failed("transaction", 404, "x").event_type == AuditEventType.DETAIL_FETCH_FAILED

    def test_long_user_text_is_quoted_short(self):
        """Descriptions stay within bounds; details keep the full value."""
        event = AuditEventBuilder.transaction_saved(
            transaction_id=3, item="x" * 600, amount="4.50", created=True,
        )
        assert len(event.description) <= 500
        assert event.details["item"] == "x" * 600

    def test_long_username_events_build(self):
        assert AuditEventBuilder.login_succeeded("u" * 600).details["username"] == "u" * 600
        assert len(AuditEventBuilder.login_failed("u" * 600, 401, "bad").description) <= 500

    def test_oversized_description_is_clipped(self):
        event = AuditEvent(event_type=AuditEventType.LOGOUT, description="d" * 800)
        assert len(event.description) == 500
        assert event.description.endswith("...")

    def test_login_events_never_carry_password(self):
        event = AuditEventBuilder.login_failed("alice", 401, "bad")
        assert "password" not in str(event.to_log_dict())


class TestAuditLogger:
    """The activity logger never raises into the caller."""

    async def test_logs_event(self):
        assert await AuditLogger().log(AuditEventBuilder.session_restored()) is True

    async def test_unbuildable_event_is_reported_not_raised(self):
        def broken_builder():
            return AuditEvent(event_type="not-an-event", description="x")

        assert await AuditLogger()._record(broken_builder) is False

    async def test_long_item_is_logged(self):
        await AuditLogger().log_transaction_saved(
            transaction_id=3, item="x" * 600, amount="4.50", created=True,
        )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
