"""
Ledger API Client

Typed wrapper around the ledger's REST endpoints. All calls go through
the AuthTransport, so bearer injection and token refresh are handled
there, not here.

DESIGN DECISION: Read calls retry network-level failures with tenacity.
Writes are never retried automatically: a POST that timed out may
still have been applied, and a duplicate entry in a ledger is worse
than an error message.
"""

from typing import Any, Optional

from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ledger_client.models.transaction import (
    TokenPair,
    Transaction,
    TransactionDraft,
    TransactionId,
    TransactionList,
    UserProfile,
)
from ledger_client.services.api.errors import (
    ApiError,
    AuthenticationError,
    TransportFailure,
)
from ledger_client.services.api.transport import ApiRequest, AuthTransport


LOGIN_PATH = "/auth/login/"
PROFILE_PATH = "/auth/profile/"
LIST_PATH = "/"


def transaction_path(transaction_id: TransactionId) -> str:
    return f"/{transaction_id}/"


def _decode(response) -> Any:
    """Decode a JSON body; an empty body decodes to None."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise ApiError(
            f"Invalid JSON from {response.request.url.path}",
            status_code=response.status_code,
        ) from e


class LedgerAPI:
    """
    Endpoint methods for the ledger server.

    Raises ApiError (or a subclass) for every failure, including a
    payload that does not match the expected shape.
    """

    def __init__(
        self,
        transport: AuthTransport,
        read_retry_attempts: int = 3,
        retry_wait: Optional[wait_base] = None,
    ):
        self._transport = transport
        self._read_retry_attempts = read_retry_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    @property
    def transport(self) -> AuthTransport:
        return self._transport

    async def close(self) -> None:
        await self._transport.close()

    # -- authentication ------------------------------------------------------

    async def login(self, username: str, password: str) -> TokenPair:
        """
        Exchange credentials for an access/refresh token pair.

        Raises:
            AuthenticationError: Credentials rejected or response unusable
            TransportFailure: Server unreachable
        """
        request = ApiRequest(
            method="POST",
            path=LOGIN_PATH,
            body={"username": username, "password": password},
        )
        try:
            response = await self._transport.send_unauthenticated(request)
            return TokenPair.model_validate(_decode(response))
        except TransportFailure:
            raise
        except ValidationError as e:
            raise AuthenticationError("Login response did not contain tokens") from e
        except ApiError as e:
            raise AuthenticationError(
                str(e), status_code=e.status_code, payload=e.payload
            ) from e

    async def get_profile(self) -> UserProfile:
        data = await self._read(PROFILE_PATH)
        return self._parse(UserProfile, data or {})

    # -- transactions --------------------------------------------------------

    async def list_transactions(self) -> TransactionList:
        """All transactions in server order, plus the server's total."""
        data = await self._read(LIST_PATH)
        return self._parse(TransactionList, data or {})

    async def get_transaction(self, transaction_id: TransactionId) -> Transaction:
        data = await self._read(transaction_path(transaction_id))
        if not isinstance(data, dict) or not isinstance(data.get("transaction"), dict):
            raise ApiError(f"No transaction in response for {transaction_id}")
        return self._parse(Transaction, data["transaction"])

    async def create_transaction(self, draft: TransactionDraft) -> Any:
        response = await self._transport.dispatch(
            ApiRequest(method="POST", path=LIST_PATH, body=draft.to_payload())
        )
        return _decode(response)

    async def update_transaction(
        self,
        transaction_id: TransactionId,
        fields: dict[str, Any],
    ) -> Any:
        """Partial update: only the given fields are sent."""
        response = await self._transport.dispatch(
            ApiRequest(method="PATCH", path=transaction_path(transaction_id), body=fields)
        )
        return _decode(response)

    async def delete_transaction(self, transaction_id: TransactionId) -> None:
        await self._transport.dispatch(
            ApiRequest(method="DELETE", path=transaction_path(transaction_id))
        )

    # -- helpers -------------------------------------------------------------

    async def _read(self, path: str) -> Any:
        """
        GET with retries on network failures only (never on HTTP statuses).

        If the failure hit the post-refresh replay, later attempts resend
        that replay, so one read refreshes the token at most once.
        """
        request = ApiRequest(method="GET", path=path)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._read_retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(TransportFailure),
            reraise=True,
        ):
            with attempt:
                try:
                    response = await self._transport.dispatch(request)
                except TransportFailure as e:
                    if isinstance(e.request, ApiRequest) and e.request.retried:
                        request = e.request
                    raise
        return _decode(response)

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Unexpected {model.__name__} payload: {e.error_count()} errors") from e
