"""
Backend capability interface for the hosted auth/database service.

Everything the app needs from Supabase goes through AuthBackend: session
lookup, email/password auth, auth state-change events and table CRUD.
SupabaseBackend is the production implementation; tests inject an in-memory
fake. Row-level security is enforced by the service, never here.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
from supabase import (
    AsyncClient,
    AuthError as SupabaseAuthError,
    AuthRetryableError,
    PostgrestAPIError,
    acreate_client,
)

from app.config import settings
from app.schemas.auth import AuthSession, AuthUser

logger = logging.getLogger(__name__)

# Table names
PROFILES_TABLE = "user_profiles"
BRANCHES_TABLE = "branches"
EMPLOYEES_TABLE = "employees"
INVENTORY_TABLE = "inventory"
SALES_TABLE = "sales"

# PostgREST code for .single() matching zero rows
NOT_FOUND_CODE = "PGRST116"
# PostgreSQL unique_violation
UNIQUE_VIOLATION_CODE = "23505"
TRANSPORT_ERROR_CODE = "transport"

AuthStateHandler = Callable[[str, Optional[AuthSession]], None]
Unsubscribe = Callable[[], None]


class BackendError(Exception):
    """Query/insert/update/delete failed on the backend."""

    def __init__(self, code: Optional[str], message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.code == NOT_FOUND_CODE

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION_CODE


class TransportError(BackendError):
    """The backend could not be reached (network, timeout). Safe to retry."""

    def __init__(self, message: str):
        super().__init__(TRANSPORT_ERROR_CODE, message)


class AuthError(Exception):
    """Credentials rejected or auth request invalid (bad password, unverified email)."""


class AuthBackend(ABC):
    """Remote capability surface consumed by the session controller and record services."""

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Tuple[AuthUser, Optional[AuthSession]]:
        """Session is None while email verification is pending."""

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    @abstractmethod
    def on_auth_state_change(self, handler: AuthStateHandler) -> Unsubscribe:
        """Register handler(event, session); returns a callable that unsubscribes."""

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def select_one(self, table: str, filters: Dict[str, Any]) -> Dict[str, Any]:
        """Exactly one row; raises BackendError with NOT_FOUND_CODE when there is none."""

    @abstractmethod
    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> None:
        ...

    async def close(self) -> None:
        """Release client resources. Default: nothing to release."""


def _to_session(raw: Any) -> Optional[AuthSession]:
    """Convert a supabase-auth Session into AuthSession."""
    if raw is None or getattr(raw, "user", None) is None:
        return None
    return AuthSession(
        access_token=raw.access_token,
        refresh_token=getattr(raw, "refresh_token", None),
        user=_to_user(raw.user),
    )


def _to_user(raw: Any) -> AuthUser:
    return AuthUser(id=str(raw.id), email=getattr(raw, "email", None))


def _event_name(event: Any) -> str:
    return getattr(event, "value", None) or str(event)


class SupabaseBackend(AuthBackend):
    """AuthBackend over the async supabase client (one client per browser session)."""

    def __init__(self, client: AsyncClient):
        self._client = client

    @classmethod
    async def create(cls) -> "SupabaseBackend":
        """
        Create a backend with a fresh client using SUPABASE_URL / SUPABASE_KEY.

        Each browser session needs its own client: the client keeps the signed-in
        session in memory and sends its access token with every table request.
        """
        if not settings.supabase_configured:
            raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be configured")
        client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        return cls(client)

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def get_session(self) -> Optional[AuthSession]:
        try:
            raw = await self._client.auth.get_session()
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise TransportError(f"Session lookup failed: {e}") from e
        except SupabaseAuthError as e:
            raise BackendError(getattr(e, "code", None), f"Session lookup failed: {e}") from e
        return _to_session(raw)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._client.auth.sign_in_with_password({"email": email, "password": password})
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise TransportError(f"Sign-in request failed: {e}") from e
        except SupabaseAuthError as e:
            raise AuthError(str(e)) from e
        session = _to_session(response.session)
        if session is None:
            raise AuthError("Sign-in did not return a session")
        return session

    async def sign_up(self, email: str, password: str) -> Tuple[AuthUser, Optional[AuthSession]]:
        try:
            response = await self._client.auth.sign_up({"email": email, "password": password})
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise TransportError(f"Sign-up request failed: {e}") from e
        except SupabaseAuthError as e:
            raise AuthError(str(e)) from e
        if response.user is None:
            raise AuthError("Sign-up did not return a user")
        return _to_user(response.user), _to_session(response.session)

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise TransportError(f"Sign-out request failed: {e}") from e
        except SupabaseAuthError as e:
            raise AuthError(str(e)) from e

    def on_auth_state_change(self, handler: AuthStateHandler) -> Unsubscribe:
        def _callback(event, session):
            handler(_event_name(event), _to_session(session))

        subscription = self._client.auth.on_auth_state_change(_callback)
        return subscription.unsubscribe

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    async def _execute(self, query, action: str):
        try:
            return await query.execute()
        except PostgrestAPIError as e:
            raise BackendError(e.code, f"{action} failed: {e.message}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{action} failed: {e}") from e

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        query = self._client.table(table).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        response = await self._execute(query, f"select {table}")
        return list(response.data or [])

    async def select_one(self, table: str, filters: Dict[str, Any]) -> Dict[str, Any]:
        query = self._client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        response = await self._execute(query.single(), f"select {table}")
        return response.data

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._execute(self._client.table(table).insert(row), f"insert {table}")
        rows = response.data or []
        if not rows:
            raise BackendError(None, f"insert {table} returned no row")
        return rows[0]

    async def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        query = self._client.table(table).update(patch).eq("id", row_id)
        response = await self._execute(query, f"update {table}")
        rows = response.data or []
        if not rows:
            raise BackendError(NOT_FOUND_CODE, f"update {table}: no row with id {row_id}")
        return rows[0]

    async def delete(self, table: str, row_id: str) -> None:
        await self._execute(self._client.table(table).delete().eq("id", row_id), f"delete {table}")

    async def close(self) -> None:
        """Drop the in-memory session of an expired browser session."""
        try:
            await self._client.auth.sign_out({"scope": "local"})
        except (SupabaseAuthError, httpx.HTTPError) as e:
            logger.debug("Local sign-out while closing backend failed: %s", e)
