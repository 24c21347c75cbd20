"""
Browser-session and guard dependencies.

Every request belongs to a browser session (cookie). The session owns a
backend client and a SessionController; protected routes go through
require_profile, which applies the route guard to the published state.

Role checks here only shape queries (branch scoping) and navigation.
Row-level security in the database is the access boundary.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status

from app.config import settings
from app.schemas.auth import AuthState
from app.services.auth_backend import AuthBackend, BackendError, TransportError
from app.services.guard import GuardDecision, branch_scope, evaluate
from app.services.session_controller import LOGIN_PATH, SessionController
from app.services.session_store import BrowserSession, SessionStore

logger = logging.getLogger(__name__)

RELOAD_PATH = "/api/auth/reload"


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


async def get_browser_session(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
) -> BrowserSession:
    """Browser session for the request cookie; starts a new one (and sets the cookie) if needed."""
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    session = await store.get_or_create(cookie)
    if session.session_id != cookie:
        response.set_cookie(
            settings.SESSION_COOKIE_NAME,
            session.session_id,
            max_age=store.ttl_seconds,
            httponly=True,
            samesite="lax",
            secure=settings.SESSION_COOKIE_SECURE,
        )
    return session


def get_controller(session: BrowserSession = Depends(get_browser_session)) -> SessionController:
    return session.controller


def get_backend(session: BrowserSession = Depends(get_browser_session)) -> AuthBackend:
    return session.backend


@dataclass
class AccessContext:
    """What a protected route gets once the guard allows it."""
    backend: AuthBackend
    state: AuthState

    @property
    def is_branch_manager(self) -> bool:
        return self.state.is_branch_manager

    def scope(self, requested: Optional[str] = None) -> Optional[str]:
        """Branch filter for list queries."""
        return branch_scope(self.state, requested)

    @property
    def forced_branch_id(self) -> Optional[str]:
        """Branch written onto new/updated records (branch managers only)."""
        return self.state.branch_id if self.state.is_branch_manager else None


async def require_profile(
    session: BrowserSession = Depends(get_browser_session),
) -> AccessContext:
    """
    Route guard.

    loading → 503 (retry later, or POST /api/auth/reload)
    no user → 401 with redirect to /login
    user without profile → 409 "profile missing" with the reload action
    """
    controller = session.controller
    state = await controller.wait_until_settled(settings.GUARD_SETTLE_SECONDS)
    decision = evaluate(state)

    if decision == GuardDecision.LOADING:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": decision.value, "message": "Loading your session", "action": RELOAD_PATH},
            headers={"Retry-After": "1"},
        )
    if decision == GuardDecision.REDIRECT_LOGIN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"status": decision.value, "message": "Sign in required", "redirect_to": LOGIN_PATH},
        )
    if decision == GuardDecision.PROFILE_MISSING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "status": decision.value,
                "message": state.error or "Your user profile is missing.",
                "action": RELOAD_PATH,
            },
        )
    if state.is_branch_manager and not state.branch_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No branch is assigned to your profile. Ask an administrator to assign one.",
        )
    return AccessContext(backend=session.backend, state=state)


def backend_http_error(e: BackendError) -> HTTPException:
    """Map a backend failure onto the HTTP error a router should raise."""
    if isinstance(e, TransportError):
        logger.warning("Backend unreachable: %s", e)
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database service unreachable")
    if e.is_not_found:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    logger.error("Backend error (code=%s): %s", e.code, e.message)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
