"""
Authentication API
Email/password sign-in and sign-up against Supabase Auth, logout, manual
reload, and the published session state for the frontend.

Sign-in does not touch the controller directly: the auth service emits
SIGNED_IN and the controller resolves the profile from that event. The
endpoint then waits (bounded) for the state to settle.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import settings
from app.dependencies import get_browser_session, get_controller
from app.schemas.auth import (
    AuthStateResponse,
    CredentialsRequest,
    SignUpResponse,
    ToastResponse,
)
from app.services.auth_backend import AuthError, TransportError
from app.services.guard import evaluate, navigation_for
from app.services.session_controller import SessionController
from app.services.session_store import BrowserSession

logger = logging.getLogger(__name__)

router = APIRouter()


def _state_response(controller: SessionController) -> AuthStateResponse:
    state = controller.state
    redirect_to = controller.navigator.take()
    return AuthStateResponse(
        user=state.user,
        profile=state.profile,
        loading=state.loading,
        error=state.error,
        is_admin=state.is_admin,
        is_branch_manager=state.is_branch_manager,
        branch_id=state.branch_id,
        guard=evaluate(state).value,
        navigation=navigation_for(state),
        redirect_to=redirect_to,
    )


@router.get("/auth/state", response_model=AuthStateResponse)
async def get_auth_state(controller: SessionController = Depends(get_controller)):
    """Published (user, profile, loading) plus role projections, guard decision and navigation."""
    return _state_response(controller)


@router.post("/auth/login", response_model=AuthStateResponse)
async def login(body: CredentialsRequest, session: BrowserSession = Depends(get_browser_session)):
    """Sign in with email and password. Bad credentials → 401; the session state is untouched."""
    email = body.email.strip().lower()
    try:
        await session.backend.sign_in_with_password(email, body.password)
    except AuthError as e:
        logger.info("Sign-in rejected for %s: %s", email, e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e) or "Invalid email or password")
    except TransportError as e:
        logger.warning("Sign-in for %s could not reach auth service: %s", email, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Authentication service unreachable")
    await session.controller.wait_until_settled(settings.AUTH_RESOLUTION_TIMEOUT_SECONDS)
    session.controller.toasts.info("Welcome back!", "You are now signed in.")
    return _state_response(session.controller)


@router.post("/auth/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: CredentialsRequest, session: BrowserSession = Depends(get_browser_session)):
    """
    Create an account. When email verification is pending no session is issued
    and the user must confirm their email before signing in.
    """
    email = body.email.strip().lower()
    try:
        user, auth_session = await session.backend.sign_up(email, body.password)
    except AuthError as e:
        logger.info("Sign-up rejected for %s: %s", email, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e) or "Sign-up failed")
    except TransportError as e:
        logger.warning("Sign-up for %s could not reach auth service: %s", email, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Authentication service unreachable")

    if auth_session is None:
        message = "Account created. Check your email to confirm it, then sign in."
    else:
        await session.controller.wait_until_settled(settings.AUTH_RESOLUTION_TIMEOUT_SECONDS)
        message = "Account created successfully! You are now signed in."
    session.controller.toasts.info("Account created", message)
    return SignUpResponse(user=user, session_active=auth_session is not None, message=message)


@router.post("/auth/logout", response_model=AuthStateResponse)
async def logout(controller: SessionController = Depends(get_controller)):
    """Sign out. Local state is cleared even if the remote sign-out fails (an error toast is queued)."""
    await controller.logout()
    return _state_response(controller)


@router.post("/auth/reload", response_model=AuthStateResponse)
async def reload_session(controller: SessionController = Depends(get_controller)):
    """Manual recovery: re-run session bootstrap and profile resolution."""
    await controller.force_reload()
    return _state_response(controller)


@router.get("/auth/notifications", response_model=List[ToastResponse])
async def drain_notifications(controller: SessionController = Depends(get_controller)):
    """Pending toasts for this browser session (cleared once returned)."""
    return [
        ToastResponse(level=t.level, title=t.title, description=t.description, created_at=t.created_at)
        for t in controller.toasts.drain()
    ]
