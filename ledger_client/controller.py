"""
Ledger Controller

This module owns all UI-visible state and sequences every call to the
ledger API:
1. Session (login → session established → profile + list fetch)
2. Reads (profile, list, single transaction)
3. Mutations (save, delete → full refetch)

DESIGN DECISION: The controller enforces the boundaries:
- The list and total are only replaced by a full refetch, never patched
- Fetches after login run from an explicit "session established" hook
- A session that cannot be refreshed resets the whole state
- Responses that arrive after a logout are dropped (session epoch)

Errors follow one policy per path: reads degrade silently (logged
only), writes tell the user and stay retryable.
"""

import json
from typing import Any, Awaitable, Callable, Optional

import httpx

from ledger_client.audit import AuditLogger, create_correlation_id
from ledger_client.config import AppSettings, Settings, get_settings
from ledger_client.formatting import DEFAULT_CURRENCY_SYMBOL, format_currency, format_date
from ledger_client.models.state import AuthForm, LedgerState, ModalState
from ledger_client.models.transaction import (
    Transaction,
    TransactionDraft,
    TransactionId,
)
from ledger_client.prompts import StatePrompt, UserPromptInterface
from ledger_client.services.api import (
    ApiError,
    AuthTransport,
    LedgerAPI,
    SessionExpiredError,
)
from ledger_client.services.storage import (
    FileTokenStorage,
    InMemoryTokenStorage,
    Session,
    TokenStorageInterface,
)


SessionEstablishedCallback = Callable[[], Awaitable[None]]

INVALID_CREDENTIALS = "Invalid Credentials"
DETAIL_FAILED = "Could not load details"
SAVE_FALLBACK = "Operation failed"
DELETE_FAILED = "Delete failed."
DELETE_CONFIRMATION = "Are you sure?"


class LedgerController:
    """
    View/controller for the ledger page.

    Flow:
    1. login() or restore() → session established hook
    2. Hook → fetch_profile() + fetch_all()
    3. open_detail() → update_draft() → save() or delete()
    4. save()/delete() success → close modal → fetch_all()
    5. logout() or an unrecoverable refresh → back to the login form
    """

    def __init__(
        self,
        api: LedgerAPI,
        session: Session,
        prompt: Optional[UserPromptInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._api = api
        self._session = session
        self._audit_logger = audit_logger or AuditLogger()
        self._prompt = prompt or StatePrompt(lambda: self.state)

        self._currency_symbol = (
            app_settings.currency_symbol if app_settings else DEFAULT_CURRENCY_SYMBOL
        )
        self._display_tz = app_settings.display_tz if app_settings else None

        self.state = LedgerState()

        # Bumped whenever the session ends; in-flight results from an
        # older epoch are discarded
        self._session_epoch = 0
        self._session_listeners: list[SessionEstablishedCallback] = []

        self.on_session_established(self._load_session_data)
        api.transport.on_session_expired(self.reset)

    @property
    def prompt(self) -> UserPromptInterface:
        return self._prompt

    @property
    def session_epoch(self) -> int:
        return self._session_epoch

    async def close(self) -> None:
        await self._api.close()

    # =========================================================================
    # SESSION
    # =========================================================================

    def on_session_established(self, callback: SessionEstablishedCallback) -> None:
        """Register a coroutine function run right after a session starts."""
        self._session_listeners.append(callback)

    async def _session_established(self) -> None:
        for callback in self._session_listeners:
            await callback()

    async def _load_session_data(self) -> None:
        await self.fetch_profile()
        await self.fetch_all()

    def update_auth_form(self, **fields: str) -> None:
        """Form bindings for the login page."""
        self.state.auth_form = self.state.auth_form.model_copy(update=fields)

    async def login(self) -> bool:
        """
        Sign in with the current auth form.

        On success both tokens are persisted before the session
        established hook fires, so the hook's fetches see the new token.

        Returns:
            True if the session was established
        """
        correlation_id = create_correlation_id()
        form = self.state.auth_form

        try:
            tokens = await self._api.login(form.username, form.password)
        except ApiError as e:
            await self._audit_logger.log_login_failed(
                username=form.username,
                status_code=e.status_code,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            self._alert(INVALID_CREDENTIALS)
            return False

        self._session.establish(tokens)
        self._session_epoch += 1
        self.state.authenticated = True
        self.state.auth_form = AuthForm()

        await self._audit_logger.log_login_succeeded(form.username, correlation_id)
        await self._session_established()
        return True

    async def restore(self) -> bool:
        """
        Pick up a session left in storage by an earlier run.

        Returns:
            True if a stored access token was found
        """
        if not self._session.is_authenticated:
            return False

        self.state.authenticated = True
        await self._audit_logger.log_session_restored()
        await self._session_established()
        return True

    async def logout(self, reason: str = "user") -> None:
        """Clear the stored session and everything derived from it."""
        self._session.clear()
        self._session_epoch += 1
        self.state.authenticated = False
        self.state.clear_cached_data()
        await self._audit_logger.log_logout(reason)

    async def reset(self) -> None:
        """
        Hard reset after the session could not be refreshed.

        The transport has already cleared the stored tokens; the whole
        state is replaced, as if the page had been reloaded.
        """
        self._session_epoch += 1
        self.state = LedgerState()
        await self._audit_logger.log_session_expired()

    # =========================================================================
    # READS
    # =========================================================================

    async def fetch_profile(self) -> None:
        """Load the user profile. A 401 here means the session is gone."""
        epoch = self._session_epoch
        try:
            profile = await self._api.get_profile()
        except ApiError as e:
            await self._audit_logger.log_fetch_failed(
                resource="profile",
                status_code=e.status_code,
                error_message=str(e),
            )
            if e.is_unauthorized and not self._is_stale(epoch):
                await self.logout(reason="profile_unauthorized")
            return

        if self._is_stale(epoch):
            await self._audit_logger.log_stale_response_dropped("profile")
            return
        self.state.profile = profile

    async def fetch_all(self) -> None:
        """
        Replace the cached list and total with the server's.

        Failures are logged and leave the previous list on screen.
        """
        epoch = self._session_epoch
        self.state.loading = True
        try:
            listing = await self._api.list_transactions()
        except ApiError as e:
            await self._audit_logger.log_fetch_failed(
                resource="list",
                status_code=e.status_code,
                error_message=str(e),
            )
            return
        finally:
            if not self._is_stale(epoch):
                self.state.loading = False

        if self._is_stale(epoch):
            await self._audit_logger.log_stale_response_dropped("list")
            return
        self.state.transactions = listing.transactions
        self.state.total = listing.total

    # =========================================================================
    # MODAL
    # =========================================================================

    async def open_detail(self, transaction_id: Optional[TransactionId] = None) -> bool:
        """
        Open the modal to edit a transaction, or to create one.

        Returns:
            True if the modal is now open
        """
        if transaction_id is None:
            self.state.modal = ModalState.editing(TransactionDraft.blank())
            return True

        epoch = self._session_epoch
        try:
            transaction = await self._api.get_transaction(transaction_id)
        except ApiError as e:
            await self._audit_logger.log_fetch_failed(
                resource="transaction",
                status_code=e.status_code,
                error_message=str(e),
                entity_id=str(transaction_id),
            )
            if not isinstance(e, SessionExpiredError) and not self._is_stale(epoch):
                self._alert(DETAIL_FAILED)
            return False

        if self._is_stale(epoch):
            await self._audit_logger.log_stale_response_dropped("transaction")
            return False
        self.state.modal = ModalState.editing(TransactionDraft.from_transaction(transaction))
        return True

    def update_draft(self, **fields: Any) -> None:
        """Form bindings for the modal (item, amount)."""
        draft = self.state.modal.draft
        if not self.state.modal.open or draft is None:
            return
        updated = TransactionDraft.model_validate({**draft.model_dump(), **fields})
        self.state.modal = ModalState.editing(updated)

    def close_modal(self) -> None:
        """Cancel: the draft is discarded."""
        self.state.modal = ModalState.closed()

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def save(self) -> bool:
        """
        Create or partially update the transaction in the modal.

        On success the modal closes and the list is refetched. On failure
        the server's message is shown and the modal stays open.
        """
        draft = self.state.modal.draft
        if not self.state.modal.open or draft is None:
            return False

        correlation_id = create_correlation_id()
        epoch = self._session_epoch
        try:
            if draft.is_new:
                created = await self._api.create_transaction(draft)
                transaction_id = created.get("id") if isinstance(created, dict) else None
            else:
                await self._api.update_transaction(draft.id, draft.to_payload())
                transaction_id = draft.id
        except ApiError as e:
            await self._audit_logger.log_mutation_failed(
                action="save",
                transaction_id=draft.id,
                status_code=e.status_code,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            if not isinstance(e, SessionExpiredError) and not self._is_stale(epoch):
                self._alert(f"Error: {self._describe(e.server_message)}")
            return False

        await self._audit_logger.log_transaction_saved(
            transaction_id=transaction_id,
            item=draft.item,
            amount=draft.amount,
            created=draft.is_new,
            correlation_id=correlation_id,
        )
        if self._is_stale(epoch):
            return True

        self.close_modal()
        await self.fetch_all()
        return True

    async def delete(self) -> bool:
        """
        Delete the transaction in the modal, after confirmation.

        On failure a generic error is shown and the modal is left as is.
        """
        draft = self.state.modal.draft
        if not self.state.modal.open or draft is None or draft.is_new:
            return False
        if not self._prompt.confirm(DELETE_CONFIRMATION):
            return False

        correlation_id = create_correlation_id()
        epoch = self._session_epoch
        try:
            await self._api.delete_transaction(draft.id)
        except ApiError as e:
            await self._audit_logger.log_mutation_failed(
                action="delete",
                transaction_id=draft.id,
                status_code=e.status_code,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            if not isinstance(e, SessionExpiredError) and not self._is_stale(epoch):
                self._alert(DELETE_FAILED)
            return False

        await self._audit_logger.log_transaction_deleted(draft.id, correlation_id)
        if self._is_stale(epoch):
            return True

        self.close_modal()
        await self.fetch_all()
        return True

    # =========================================================================
    # DISPLAY
    # =========================================================================

    def display_total(self) -> str:
        return format_currency(self.state.total, self._currency_symbol)

    def display_amount(self, transaction: Transaction) -> str:
        return format_currency(transaction.amount, self._currency_symbol)

    def display_timestamp(self, value: Optional[str]) -> str:
        return format_date(value, self._display_tz)

    def heading(self) -> str:
        draft = self.state.modal.draft
        return "New Transaction" if draft is None or draft.is_new else "Edit Transaction"

    def caption(self, transaction: Transaction) -> str:
        """List line under the item name."""
        return f"by {self._username()} at {self.display_timestamp(transaction.timestamp)}"

    def recorded_by(self) -> str:
        """Modal line shown when editing."""
        draft = self.state.modal.draft
        timestamp = draft.timestamp if draft else None
        return f"Recorded by {self._username()} on: {self.display_timestamp(timestamp)}"

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _username(self) -> str:
        return self.state.profile.username if self.state.profile else ""

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self._session_epoch

    def _alert(self, message: str) -> None:
        self._prompt.alert(message)

    @staticmethod
    def _describe(server_message: Any) -> str:
        """Server message as text; structured messages are shown as JSON."""
        if server_message is None or server_message == "":
            return SAVE_FALLBACK
        if isinstance(server_message, str):
            return server_message
        return json.dumps(server_message, ensure_ascii=False)


def create_token_storage(settings: Settings) -> TokenStorageInterface:
    """Build the configured token storage backend."""
    session_settings = settings.session
    if session_settings.backend == "memory":
        return InMemoryTokenStorage()
    return FileTokenStorage(session_settings.storage_path)


def create_app_components(
    settings: Optional[Settings] = None,
    prompt: Optional[UserPromptInterface] = None,
    storage: Optional[TokenStorageInterface] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> LedgerController:
    """
    Factory function to wire the client together.

    Args:
        settings: Configuration; loaded from the environment if None
        prompt: Alert/confirm implementation; StatePrompt if None
        storage: Token storage; built from settings if None
        transport: httpx transport override (tests)

    Returns:
        A controller ready for restore() or login()
    """
    settings = settings or get_settings()
    api_settings = settings.api

    audit_logger = AuditLogger()
    session = Session(storage or create_token_storage(settings))
    auth_transport = AuthTransport(
        base_url=api_settings.base_url,
        session=session,
        timeout=api_settings.timeout,
        audit_logger=audit_logger,
        transport=transport,
    )
    api = LedgerAPI(auth_transport, read_retry_attempts=api_settings.read_retry_attempts)

    return LedgerController(
        api=api,
        session=session,
        prompt=prompt,
        audit_logger=audit_logger,
        app_settings=settings.app,
    )
