"""
Session & profile reconciliation controller.

One instance per browser session. It bootstraps from the auth service's
current session, resolves the user's profile, and publishes
(user, profile, loading, error) to the rest of the app.

Every bootstrap, auth event, reload and logout starts a new generation.
Work started under an older generation never writes state, so a slow
profile fetch for a previous user cannot land after a logout or re-login.
A watchdog forces loading off if a generation never reaches a terminal state.
"""
import asyncio
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Set

from app.config import settings
from app.schemas.auth import AuthEvent, AuthSession, AuthState, AuthUser
from app.services.auth_backend import AuthBackend, BackendError
from app.services.notifications import Navigator, ToastQueue
from app.services.profile_resolver import ProfileResolutionError, ProfileResolver

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
# initialize/force_reload wait at most timeout_seconds plus this margin
SETTLE_MARGIN_SECONDS = 0.5

# Events that carry a (possibly new) session and need the profile re-resolved
RESOLVING_EVENTS = {
    AuthEvent.SIGNED_IN.value,
    AuthEvent.TOKEN_REFRESHED.value,
    AuthEvent.USER_UPDATED.value,
}

StateListener = Callable[[AuthState], None]


class SessionController:
    """Reconciles the auth session with the application profile and publishes the result."""

    def __init__(
        self,
        backend: AuthBackend,
        resolver: Optional[ProfileResolver] = None,
        toasts: Optional[ToastQueue] = None,
        navigator: Optional[Navigator] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._backend = backend
        self._resolver = resolver or ProfileResolver(backend)
        self.toasts = toasts or ToastQueue()
        self.navigator = navigator or Navigator()
        self.timeout_seconds = settings.AUTH_RESOLUTION_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds

        self._state = AuthState()
        self._generation = 0
        self._active = True
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._watchdog: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[StateListener] = []
        self._settled: Optional[asyncio.Event] = None

    # -------------------------------------------------------------------------
    # Published state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active(self) -> bool:
        return self._active

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener(state) on every published change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        event = self._settled_event()
        if self._state.loading:
            event.clear()
        else:
            event.set()
            self._cancel_watchdog()
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Auth state listener failed")

    def _settled_event(self) -> asyncio.Event:
        # created lazily so the Event binds to the running loop
        if self._settled is None:
            self._settled = asyncio.Event()
            if not self._state.loading:
                self._settled.set()
        return self._settled

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def wait_until_settled(self, timeout: Optional[float] = None) -> AuthState:
        """Wait (at most timeout seconds) for loading to turn false; returns the state either way."""
        if self._state.loading:
            try:
                await asyncio.wait_for(self._settled_event().wait(), timeout)
            except asyncio.TimeoutError:
                pass
        return self._state

    # -------------------------------------------------------------------------
    # Bootstrapper
    # -------------------------------------------------------------------------

    async def initialize(self) -> AuthState:
        """Subscribe to auth events (once) and resolve the existing session, if any."""
        if self._unsubscribe is None:
            self._unsubscribe = self._backend.on_auth_state_change(self._on_auth_event)
        generation = self._next_generation()
        self._publish(loading=True, error=None)
        return await self._start_bootstrap(generation)

    async def _start_bootstrap(self, generation: int) -> AuthState:
        """
        Run bootstrap in the background and return once the state settles.

        The watchdog forces loading off after timeout_seconds, so callers get an
        answer on time even when the session or profile fetch never returns.
        """
        self._arm_watchdog(generation)
        self._spawn(self._bootstrap(generation))
        limit = self.timeout_seconds + SETTLE_MARGIN_SECONDS if self.timeout_seconds and self.timeout_seconds > 0 else None
        return await self.wait_until_settled(limit)

    async def _bootstrap(self, generation: int) -> None:
        try:
            session = await self._backend.get_session()
        except BackendError as e:
            logger.error("Could not fetch the current session, continuing signed out: %s", e)
            session = None
        if not self._is_current(generation):
            logger.debug("Discarding session lookup from stale generation %d", generation)
            return
        if session is None:
            self._publish(user=None, profile=None, loading=False, error=None)
            return
        self._publish(user=session.user, profile=self._profile_for(session.user), loading=True, error=None)
        await self._resolve(session.user, generation)

    def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        if not self._active:
            return
        if event == AuthEvent.SIGNED_OUT.value:
            self._next_generation()
            logger.info("Signed out")
            self._publish(user=None, profile=None, loading=False, error=None)
            return
        if event not in RESOLVING_EVENTS or session is None:
            logger.debug("Ignoring auth event %s", event)
            return

        generation = self._next_generation()
        user = session.user
        kept = self._profile_for(user)
        if event == AuthEvent.TOKEN_REFRESHED.value and kept is not None and not self._state.loading:
            # same user, profile already published: refresh quietly
            logger.debug("Token refreshed for %s, re-resolving profile in background", user.id)
            self._publish(user=user)
            self._spawn(self._resolve(user, generation, quiet=True))
            return
        logger.info("Auth event %s for %s, resolving profile", event, user.id)
        self._publish(user=user, profile=kept, loading=True, error=None)
        self._arm_watchdog(generation)
        self._spawn(self._resolve(user, generation))

    def _profile_for(self, user: AuthUser):
        """The published profile, if it belongs to user."""
        profile = self._state.profile
        if profile is not None and profile.id == user.id:
            return profile
        return None

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def _resolve(self, user: AuthUser, generation: int, quiet: bool = False) -> None:
        try:
            profile = await self._resolver.resolve(user.id)
        except ProfileResolutionError as e:
            if not self._is_current(generation):
                logger.debug("Discarding failed resolution for %s from stale generation %d", user.id, generation)
                return
            if quiet:
                # keep the profile already on screen; the next event or reload retries
                logger.warning("Background profile refresh for %s failed: %s", user.id, e.message)
                return
            self.toasts.error("Profile unavailable", e.message)
            self._publish(user=user, profile=None, loading=False, error=e.message)
            return
        if not self._is_current(generation):
            logger.debug("Discarding profile for %s from stale generation %d", user.id, generation)
            return
        self._publish(user=user, profile=profile, loading=False, error=None)

    # -------------------------------------------------------------------------
    # Watchdog
    # -------------------------------------------------------------------------

    def _arm_watchdog(self, generation: int) -> None:
        self._cancel_watchdog()
        if self.timeout_seconds and self.timeout_seconds > 0:
            self._watchdog = self._spawn(self._expire(generation))

    def _cancel_watchdog(self) -> None:
        watchdog, self._watchdog = self._watchdog, None
        if watchdog is not None and not watchdog.done() and watchdog is not asyncio.current_task():
            watchdog.cancel()

    async def _expire(self, generation: int) -> None:
        await asyncio.sleep(self.timeout_seconds)
        if not self._is_current(generation) or not self._state.loading:
            return
        logger.warning(
            "Auth resolution did not finish within %.1fs (generation %d); giving up on loading",
            self.timeout_seconds, generation,
        )
        self.toasts.warning("Still connecting", "The server is taking too long to respond. Try reloading.")
        self._publish(loading=False, error="Timed out while loading your session.")

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    async def logout(self) -> None:
        """Sign out remotely; local state is cleared even if the remote call fails."""
        generation = self._next_generation()
        self._publish(loading=True)
        self._arm_watchdog(generation)
        try:
            await self._backend.sign_out()
        except Exception as e:
            logger.error("Sign-out failed: %s", e)
            self.toasts.error("Logout failed", str(e))
        finally:
            if self._active:
                self._publish(user=None, profile=None, loading=False, error=None)
                self.navigator(LOGIN_PATH)

    async def force_reload(self) -> AuthState:
        """Manual recovery: start a new generation and re-run bootstrap + resolution."""
        generation = self._next_generation()
        logger.info("Reloading session (generation %d)", generation)
        self._publish(profile=None, loading=True, error=None)
        return await self._start_bootstrap(generation)

    async def close(self) -> None:
        """Tear down: stop listening and drop any in-flight work."""
        self._active = False
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception as e:
                logger.warning("Auth listener unsubscribe failed: %s", e)
            self._unsubscribe = None
        self._cancel_watchdog()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._listeners.clear()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
