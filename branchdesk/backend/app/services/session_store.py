"""
In-memory store of browser sessions.

Each browser session (cookie id) owns one backend client and one
SessionController. Entries expire after SESSION_TTL_SECONDS of inactivity.
"""
import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from app.config import settings
from app.services.auth_backend import AuthBackend, SupabaseBackend
from app.services.session_controller import SessionController

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], Awaitable[AuthBackend]]


@dataclass
class BrowserSession:
    session_id: str
    backend: AuthBackend
    controller: SessionController
    expires_at: float


class SessionStore:
    """session id -> BrowserSession, with sliding TTL."""

    def __init__(self, backend_factory: Optional[BackendFactory] = None, ttl_seconds: Optional[int] = None):
        self._backend_factory = backend_factory or SupabaseBackend.create
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS
        self._sessions: Dict[str, BrowserSession] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(32)

    async def get_or_create(self, session_id: Optional[str]) -> BrowserSession:
        """Return the live session for session_id, creating (and bootstrapping) one if needed."""
        now = time.time()
        async with self._lock:
            await self._evict_expired(now)
            entry = self._sessions.get(session_id) if session_id else None
            if entry is not None:
                entry.expires_at = now + self.ttl_seconds
                return entry

            backend = await self._backend_factory()
            controller = SessionController(backend)
            entry = BrowserSession(
                session_id=self.new_session_id(),
                backend=backend,
                controller=controller,
                expires_at=now + self.ttl_seconds,
            )
            self._sessions[entry.session_id] = entry
        logger.info("Started browser session %s...", entry.session_id[:8])
        await controller.initialize()
        return entry

    async def _evict_expired(self, now: float) -> None:
        expired = [sid for sid, entry in self._sessions.items() if entry.expires_at <= now]
        for sid in expired:
            entry = self._sessions.pop(sid)
            logger.info("Browser session %s... expired", sid[:8])
            await self._close_entry(entry)

    async def discard(self, session_id: str) -> None:
        async with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is not None:
            await self._close_entry(entry)

    async def close_all(self) -> None:
        async with self._lock:
            entries = list(self._sessions.values())
            self._sessions.clear()
        for entry in entries:
            await self._close_entry(entry)

    @staticmethod
    async def _close_entry(entry: BrowserSession) -> None:
        await entry.controller.close()
        await entry.backend.close()

    def __len__(self) -> int:
        return len(self._sessions)
