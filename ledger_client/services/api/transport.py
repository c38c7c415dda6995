"""
Authenticated Transport

Wraps every call to the ledger API:
1. Reads the access token from the Session and sends it as a bearer token
2. On a 401, refreshes the access token once and replays the request once
3. If the refresh fails, clears the Session and tells the listeners
   registered with on_session_expired() so the UI can reset to login

DESIGN DECISION: The "already retried" mark travels with the request
value (ApiRequest.retried) instead of being set on a shared object.
A replay is a copy, so two concurrent calls can never see each
other's retry state.

State machine per logical request:
    Sent -> Success | Failure(!=401) | 401 -> refresh -> Resent -> Success | Failure
No request is sent more than twice, and a 401 on the refresh call
itself is a refresh failure, never retried.
"""

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from ledger_client.audit import AuditLogger
from ledger_client.models.transaction import RefreshedToken
from ledger_client.services.api.errors import (
    ApiError,
    SessionExpiredError,
    TransportFailure,
)
from ledger_client.services.storage import ACCESS_KEY, Session


logger = structlog.get_logger(__name__)

REFRESH_PATH = "/auth/refresh/"

SessionExpiredCallback = Callable[[], Union[None, Awaitable[None]]]


class ApiRequest(BaseModel):
    """One logical API call, as passed through the transport."""
    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    body: Optional[Any] = None
    params: Optional[dict[str, Any]] = None
    retried: bool = False

    def mark_retried(self) -> "ApiRequest":
        """Copy of this request flagged as the single allowed replay."""
        return self.model_copy(update={"retried": True})


class AuthTransport:
    """
    HTTP transport with bearer injection and one-shot token refresh.
    """

    def __init__(
        self,
        base_url: str,
        session: Session,
        timeout: float = 10.0,
        audit_logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the transport.

        Args:
            base_url: API root (e.g. "https://ledger.example.com/api")
            session: Token accessor; the only source of credentials
            timeout: Request timeout in seconds
            audit_logger: Activity logger for refresh events
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._audit_logger = audit_logger
        self._expiry_listeners: list[SessionExpiredCallback] = []

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "AuthTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def session(self) -> Session:
        return self._session

    def on_session_expired(self, callback: SessionExpiredCallback) -> None:
        """Register a callback run after an unrecoverable refresh failure."""
        self._expiry_listeners.append(callback)

    async def dispatch(self, request: ApiRequest) -> httpx.Response:
        """
        Send a request with the current access token.

        Returns:
            The successful response

        Raises:
            SessionExpiredError: 401 and the refresh failed (session cleared)
            ApiError: Any other error status, including a 401 on the replay
            TransportFailure: No response at all
        """
        response = await self._send(request, authenticated=True)

        if response.status_code == 401 and not request.retried:
            return await self._refresh_and_replay(request.mark_retried())

        if response.is_error:
            raise ApiError.from_response(response)
        return response

    async def send_unauthenticated(self, request: ApiRequest) -> httpx.Response:
        """
        Send a request without a bearer token and without the refresh cycle.

        Used for login, where a 401 simply means bad credentials.
        """
        response = await self._send(request, authenticated=False)
        if response.is_error:
            raise ApiError.from_response(response)
        return response

    async def _send(self, request: ApiRequest, authenticated: bool) -> httpx.Response:
        headers = {}
        if authenticated:
            token = self._session.access_token
            if token:
                headers["Authorization"] = f"Bearer {token}"

        logger.debug(
            "api_request",
            method=request.method,
            path=request.path,
            retried=request.retried,
            bearer="Authorization" in headers,
        )
        try:
            return await self.client.request(
                request.method,
                request.path,
                json=request.body,
                params=request.params,
                headers=headers,
            )
        except httpx.TransportError as e:
            raise TransportFailure(
                f"{request.method} {request.path} failed: {e}",
                request=request,
            ) from e

    async def _refresh_and_replay(self, request: ApiRequest) -> httpx.Response:
        try:
            await self._refresh_access_token()
        except ApiError as e:
            await self._expire_session(request, e)
            raise SessionExpiredError(
                "Session expired, please sign in again",
                status_code=401,
                payload=e.payload,
            ) from e

        if self._audit_logger:
            await self._audit_logger.log_token_refreshed(request.method, request.path)

        # The replay carries retried=True, so a second 401 is final
        return await self.dispatch(request)

    async def _refresh_access_token(self) -> None:
        refresh = self._session.refresh_token
        if not refresh:
            raise ApiError("No refresh token stored")

        response = await self._send(
            ApiRequest(method="POST", path=REFRESH_PATH, body={"refresh": refresh}),
            authenticated=False,
        )
        if response.is_error:
            raise ApiError.from_response(response)

        try:
            token = RefreshedToken.model_validate(response.json())
        except ValueError as e:
            raise ApiError(
                "Malformed refresh response",
                status_code=response.status_code,
            ) from e

        self._session.set(ACCESS_KEY, token.access)

    async def _expire_session(self, request: ApiRequest, error: ApiError) -> None:
        self._session.clear()

        if self._audit_logger:
            await self._audit_logger.log_token_refresh_failed(
                method=request.method,
                path=request.path,
                status_code=error.status_code,
                error_message=str(error),
            )

        for callback in self._expiry_listeners:
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # One broken listener must not stop the others from resetting
                logger.exception("session_expired_listener_failed", callback=repr(callback))
