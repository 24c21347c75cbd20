"""
Pytest fixtures for BranchDesk backend tests.

FakeBackend is an in-memory stand-in for Supabase: accounts, a current
session, auth state-change events and unique-keyed tables. Failures and
delays are injected per operation.
"""
import asyncio
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.schemas.auth import AuthSession, AuthUser
from app.services.auth_backend import (
    NOT_FOUND_CODE,
    PROFILES_TABLE,
    UNIQUE_VIOLATION_CODE,
    AuthBackend,
    AuthError,
    BackendError,
)


class FakeBackend(AuthBackend):
    """In-memory AuthBackend."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.accounts: Dict[str, Tuple[str, AuthUser]] = {}
        self.session: Optional[AuthSession] = None
        self.handlers = []
        self.calls = Counter()
        # op name -> exceptions raised by the next calls, in order
        self.failures: Dict[str, List[Exception]] = defaultdict(list)
        # user id -> event that profile lookups for that user wait on
        self.profile_gates: Dict[str, asyncio.Event] = {}
        self.hang_get_session = False
        self.require_email_confirmation = False
        self.closed = False

    # helpers ---------------------------------------------------------------

    def add_account(self, email: str, password: str = "secret123", user_id: Optional[str] = None) -> AuthUser:
        user = AuthUser(id=user_id or str(uuid.uuid4()), email=email)
        self.accounts[email] = (password, user)
        return user

    def add_profile(self, user_id: str, role: str = "admin", branch_id: Optional[str] = None) -> Dict[str, Any]:
        row = {"id": user_id, "role": role, "branch_id": branch_id, "created_at": _now()}
        self.tables[PROFILES_TABLE].append(row)
        return row

    def fail(self, op: str, *errors: Exception) -> None:
        self.failures[op].extend(errors)

    def gate_profile(self, user_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.profile_gates[user_id] = gate
        return gate

    def emit(self, event: str, session: Optional[AuthSession]) -> None:
        for handler in list(self.handlers):
            handler(event, session)

    def _maybe_fail(self, op: str) -> None:
        self.calls[op] += 1
        if self.failures[op]:
            raise self.failures[op].pop(0)

    # auth ------------------------------------------------------------------

    async def get_session(self) -> Optional[AuthSession]:
        self._maybe_fail("get_session")
        if self.hang_get_session:
            await asyncio.Event().wait()
        await asyncio.sleep(0)
        return self.session

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._maybe_fail("sign_in")
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        self.session = make_session(account[1])
        self.emit("SIGNED_IN", self.session)
        return self.session

    async def sign_up(self, email: str, password: str) -> Tuple[AuthUser, Optional[AuthSession]]:
        self._maybe_fail("sign_up")
        if email in self.accounts:
            raise AuthError("User already registered")
        user = self.add_account(email, password)
        if self.require_email_confirmation:
            return user, None
        self.session = make_session(user)
        self.emit("SIGNED_IN", self.session)
        return user, self.session

    async def sign_out(self) -> None:
        self._maybe_fail("sign_out")
        self.session = None
        self.emit("SIGNED_OUT", None)

    def on_auth_state_change(self, handler):
        self.handlers.append(handler)

        def _unsubscribe():
            if handler in self.handlers:
                self.handlers.remove(handler)

        return _unsubscribe

    # tables ----------------------------------------------------------------

    def _matching(self, table: str, filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            row for row in self.tables[table]
            if all(row.get(column) == value for column, value in (filters or {}).items())
        ]

    async def select(self, table, filters=None, order_by=None, descending=False):
        self._maybe_fail("select")
        await asyncio.sleep(0)
        rows = [dict(row) for row in self._matching(table, filters)]
        if order_by:
            rows.sort(key=lambda row: row.get(order_by) or "", reverse=descending)
        return rows

    async def select_one(self, table, filters):
        self._maybe_fail("select_one")
        gate = self.profile_gates.get(filters.get("id")) if table == PROFILES_TABLE else None
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        rows = self._matching(table, filters)
        if len(rows) != 1:
            raise BackendError(NOT_FOUND_CODE, "JSON object requested, multiple (or no) rows returned")
        return dict(rows[0])

    async def insert(self, table, row):
        self._maybe_fail("insert")
        await asyncio.sleep(0)
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now())
        if any(existing["id"] == row["id"] for existing in self.tables[table]):
            raise BackendError(UNIQUE_VIOLATION_CODE, f'duplicate key value violates unique constraint "{table}_pkey"')
        self.tables[table].append(row)
        return dict(row)

    async def update(self, table, row_id, patch):
        self._maybe_fail("update")
        await asyncio.sleep(0)
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(patch)
                return dict(row)
        raise BackendError(NOT_FOUND_CODE, f"update {table}: no row with id {row_id}")

    async def delete(self, table, row_id):
        self._maybe_fail("delete")
        await asyncio.sleep(0)
        self.tables[table] = [row for row in self.tables[table] if row["id"] != row_id]

    async def close(self):
        self.closed = True


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def make_session(user: AuthUser) -> AuthSession:
    return AuthSession(access_token=f"token-{uuid.uuid4().hex}", refresh_token="refresh", user=user)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    """Test client whose browser sessions all talk to the same FakeBackend."""
    async def factory():
        return backend

    app = create_app(backend_factory=factory)
    with TestClient(app) as test_client:
        yield test_client
