"""
Profile resolution: get-or-create of the user_profiles row for an auth user.

resolve() is idempotent per user id:
- concurrent calls for the same user share one in-flight resolution;
- a unique-key violation on insert (profile created elsewhere in the meantime)
  is recovered by re-fetching the existing row.
Only the explicit not-found code triggers creation; any other error is a failure.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import ValidationError

from app.config import settings
from app.schemas.auth import Profile, ProfileRole
from app.services.auth_backend import PROFILES_TABLE, AuthBackend, BackendError, TransportError

logger = logging.getLogger(__name__)


class ProfileResolutionError(Exception):
    """Profile could not be fetched or created. Carries the underlying error as __cause__."""

    def __init__(self, user_id: str, message: str):
        super().__init__(message)
        self.user_id = user_id
        self.message = message


class ProfileResolver:
    """Fetch a user's profile, creating the default one on first sign-in."""

    def __init__(
        self,
        backend: AuthBackend,
        default_role: Optional[str] = None,
        create_missing: Optional[bool] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ):
        self._backend = backend
        self.default_role = ProfileRole(default_role or settings.DEFAULT_PROFILE_ROLE)
        self.create_missing = settings.AUTO_CREATE_PROFILES if create_missing is None else create_missing
        self.max_attempts = max_attempts or settings.PROFILE_RESOLVE_MAX_ATTEMPTS
        self.backoff_seconds = settings.PROFILE_RESOLVE_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        self._inflight: Dict[str, asyncio.Future] = {}

    async def resolve(self, user_id: str) -> Profile:
        """
        Return the profile for user_id.

        Raises ProfileResolutionError on a genuine backend error, on transport
        errors after max_attempts, or when the stored row is malformed.
        """
        task = self._inflight.get(user_id)
        if task is None:
            task = asyncio.ensure_future(self._resolve_with_retry(user_id))
            self._inflight[user_id] = task
            task.add_done_callback(lambda done, uid=user_id: self._forget(uid, done))
        else:
            logger.debug("Joining in-flight profile resolution for %s", user_id)
        # shield: one caller being cancelled must not cancel the shared resolution
        return await asyncio.shield(task)

    def _forget(self, user_id: str, task: asyncio.Future) -> None:
        if self._inflight.get(user_id) is task:
            del self._inflight[user_id]
        if not task.cancelled():
            # mark retrieved; every waiter re-raises it through shield
            task.exception()

    async def _resolve_with_retry(self, user_id: str) -> Profile:
        attempt = 1
        while True:
            try:
                return await self._get_or_create(user_id)
            except TransportError as e:
                if attempt >= self.max_attempts:
                    logger.error("Profile resolution for %s gave up after %d attempts: %s", user_id, attempt, e)
                    raise ProfileResolutionError(user_id, f"Could not reach the server to load your profile: {e.message}") from e
                delay = self.backoff_seconds * (2 ** (attempt - 1))
                logger.warning(
                    "Profile resolution for %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    user_id, attempt, self.max_attempts, delay, e,
                )
                await asyncio.sleep(delay)
                attempt += 1
            except BackendError as e:
                logger.error("Profile resolution for %s failed: %s (code=%s)", user_id, e.message, e.code)
                raise ProfileResolutionError(user_id, f"Could not load your profile: {e.message}") from e

    async def _get_or_create(self, user_id: str) -> Profile:
        try:
            return self._to_profile(user_id, await self._backend.select_one(PROFILES_TABLE, {"id": user_id}))
        except BackendError as e:
            if not e.is_not_found:
                raise

        if not self.create_missing:
            raise ProfileResolutionError(user_id, "No profile exists for this account. Ask an administrator to create one.")

        row = {
            "id": user_id,
            "role": self.default_role.value,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            created = await self._backend.insert(PROFILES_TABLE, row)
            logger.info("Created default profile for %s with role %s", user_id, self.default_role.value)
        except BackendError as e:
            if not e.is_unique_violation:
                raise
            logger.info("Profile for %s was created concurrently, re-fetching", user_id)
            created = await self._backend.select_one(PROFILES_TABLE, {"id": user_id})
        return self._to_profile(user_id, created)

    @staticmethod
    def _to_profile(user_id: str, row) -> Profile:
        try:
            return Profile.model_validate(row)
        except ValidationError as e:
            logger.error("Malformed profile row for %s: %s", user_id, e)
            raise ProfileResolutionError(user_id, "Your profile record is invalid. Contact an administrator.") from e
