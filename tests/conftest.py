"""
Shared fixtures.

No real API calls in tests: the ledger server is faked in-process and
plugged into httpx through MockTransport.
"""

import json
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest
from tenacity import wait_none

from ledger_client.controller import LedgerController
from ledger_client.models.transaction import TokenPair
from ledger_client.services.api import AuthTransport, LedgerAPI
from ledger_client.services.storage import InMemoryTokenStorage, Session


BASE_URL = "https://ledger.test/api"
API_PREFIX = "/api"


def _json_response(status_code: int, payload: Any = None) -> httpx.Response:
    if payload is None:
        return httpx.Response(status_code)
    return httpx.Response(status_code, json=payload)


class FakeLedgerServer:
    """
    In-memory stand-in for the ledger API.

    Access tokens are only valid until expire_access_tokens() is called,
    which is how tests force a 401 on the next call.
    """

    def __init__(self):
        self.users = {"alice": "secret"}
        self.profile = {"username": "alice", "email": "alice@example.com"}
        self.valid_access: set[str] = set()
        self.valid_refresh: set[str] = set()
        self.transactions: list[dict] = [
            {"id": 1, "item": "Rent", "amount": "12000.00", "datetime": "2024-03-01T09:00:00"},
            {"id": 2, "item": "Groceries", "amount": "850.50", "datetime": "2024-03-02T18:30:00"},
        ]
        self.next_id = 3
        self.requests: list[httpx.Request] = []

        # (method, path) -> (status, body) returned once, before normal handling
        self.fail_next: dict[tuple[str, str], tuple[int, Any]] = {}
        # Status code forced on every refresh call (None = normal behaviour)
        self.refresh_status: Optional[int] = None
        # Number of upcoming requests that fail with a connection error
        self.network_failures = 0

        self._token_counter = 0

    # -- token helpers -------------------------------------------------------

    def issue_access(self) -> str:
        self._token_counter += 1
        token = f"access-{self._token_counter}"
        self.valid_access.add(token)
        return token

    def issue_refresh(self) -> str:
        self._token_counter += 1
        token = f"refresh-{self._token_counter}"
        self.valid_refresh.add(token)
        return token

    def expire_access_tokens(self) -> None:
        self.valid_access.clear()

    # -- inspection ----------------------------------------------------------

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and self._path(r) == path
        ]

    def count(self, method: str, path: str) -> int:
        return len(self.calls(method, path))

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    @property
    def total(self) -> Decimal:
        return sum((Decimal(t["amount"]) for t in self.transactions), Decimal("0"))

    # -- request handling ----------------------------------------------------

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len(API_PREFIX):] if path.startswith(API_PREFIX) else path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, self._path(request)

        if self.network_failures:
            self.network_failures -= 1
            raise httpx.ConnectError("connection refused", request=request)

        forced = self.fail_next.pop((method, path), None)
        if forced is not None:
            return _json_response(*forced)

        if (method, path) == ("POST", "/auth/login/"):
            return self._login(request)
        if (method, path) == ("POST", "/auth/refresh/"):
            return self._refresh(request)

        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Bearer ") or auth[len("Bearer "):] not in self.valid_access:
            return _json_response(401, {"detail": "Given token not valid"})

        if (method, path) == ("GET", "/auth/profile/"):
            return _json_response(200, self.profile)
        if path == "/":
            if method == "GET":
                return _json_response(
                    200, {"transactions": self.transactions, "total": float(self.total)}
                )
            if method == "POST":
                return self._create(request)
        return self._detail(request, method, path)

    def _login(self, request: httpx.Request) -> httpx.Response:
        body = self.body(request) or {}
        if self.users.get(body.get("username")) != body.get("password"):
            return _json_response(401, {"detail": "No active account found"})
        return _json_response(200, {"access": self.issue_access(), "refresh": self.issue_refresh()})

    def _refresh(self, request: httpx.Request) -> httpx.Response:
        if self.refresh_status is not None:
            return _json_response(self.refresh_status, {"detail": "refresh rejected"})
        body = self.body(request) or {}
        if body.get("refresh") not in self.valid_refresh:
            return _json_response(401, {"detail": "Token is invalid or expired"})
        return _json_response(200, {"access": self.issue_access()})

    def _validate(self, fields: dict) -> Optional[httpx.Response]:
        if "item" in fields and not str(fields["item"]).strip():
            return _json_response(400, {"message": "Item is required"})
        if "amount" in fields:
            try:
                Decimal(str(fields["amount"]))
            except ArithmeticError:
                return _json_response(400, {"message": {"amount": ["A valid number is required."]}})
        return None

    def _create(self, request: httpx.Request) -> httpx.Response:
        fields = self.body(request) or {}
        error = self._validate(fields)
        if error:
            return error
        record = {
            "id": self.next_id,
            "item": fields["item"],
            "amount": str(Decimal(str(fields["amount"])).quantize(Decimal("0.01"))),
            "datetime": "2024-03-21T08:15:00",
        }
        self.next_id += 1
        self.transactions.append(record)
        return _json_response(201, record)

    def _detail(self, request: httpx.Request, method: str, path: str) -> httpx.Response:
        try:
            transaction_id = int(path.strip("/"))
        except ValueError:
            return _json_response(404, {"detail": "Not found"})
        record = next((t for t in self.transactions if t["id"] == transaction_id), None)
        if record is None:
            return _json_response(404, {"detail": "Not found"})

        if method == "GET":
            return _json_response(200, {"transaction": record})
        if method == "PATCH":
            fields = self.body(request) or {}
            error = self._validate(fields)
            if error:
                return error
            record.update(fields)
            record["amount"] = str(Decimal(str(record["amount"])).quantize(Decimal("0.01")))
            return _json_response(200, record)
        if method == "DELETE":
            self.transactions.remove(record)
            return _json_response(204)
        return _json_response(405, {"detail": "Method not allowed"})


@pytest.fixture
def server() -> FakeLedgerServer:
    return FakeLedgerServer()


@pytest.fixture
def session() -> Session:
    return Session(InMemoryTokenStorage())


@pytest.fixture
async def transport(server, session):
    auth_transport = AuthTransport(
        BASE_URL,
        session,
        transport=httpx.MockTransport(server.handler),
    )
    yield auth_transport
    await auth_transport.close()


@pytest.fixture
def api(transport) -> LedgerAPI:
    return LedgerAPI(transport, read_retry_attempts=1, retry_wait=wait_none())


@pytest.fixture
def controller(api, session) -> LedgerController:
    return LedgerController(api=api, session=session)


@pytest.fixture
def signed_in(server, session) -> Session:
    """Put a valid session in storage without going through login()."""
    session.establish(TokenPair(access=server.issue_access(), refresh=server.issue_refresh()))
    return session
