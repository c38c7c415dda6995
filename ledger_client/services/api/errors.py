"""Exceptions raised by the ledger API layer."""

from typing import Any, Optional

import httpx


class ApiError(Exception):
    """Base exception for ledger API calls."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    @property
    def server_message(self) -> Any:
        """The `message` field of the error body, if the server sent one."""
        if isinstance(self.payload, dict):
            return self.payload.get("message")
        return None

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build an error from a non-2xx response."""
        try:
            payload = response.json()
        except ValueError:
            payload = response.text or None

        message = None
        if isinstance(payload, dict) and payload.get("message"):
            message = str(payload["message"])
        if not message:
            message = f"{response.request.method} {response.request.url.path} returned {response.status_code}"

        return cls(message, status_code=response.status_code, payload=payload)


class AuthenticationError(ApiError):
    """Login was rejected."""
    pass


class SessionExpiredError(ApiError):
    """The access token expired and could not be refreshed; the session is gone."""
    pass


class TransportFailure(ApiError):
    """
    The request never got a response (connection, timeout, protocol error).

    `request` is the ApiRequest that was in flight, so a caller retrying
    the call can tell whether it was already the post-refresh replay.
    """

    def __init__(self, message: str, request: Any = None):
        super().__init__(message)
        self.request = request
