"""
User-visible side channels of a browser session: toasts and navigation hints.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional

logger = logging.getLogger(__name__)

MAX_PENDING_TOASTS = 50


@dataclass(frozen=True)
class Toast:
    level: str
    title: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ToastQueue:
    """Pending toasts for one browser session; the frontend drains them."""

    def __init__(self, maxlen: int = MAX_PENDING_TOASTS):
        self._pending: Deque[Toast] = deque(maxlen=maxlen)

    def info(self, title: str, description: Optional[str] = None) -> None:
        self._push(Toast("info", title, description))

    def warning(self, title: str, description: Optional[str] = None) -> None:
        self._push(Toast("warning", title, description))

    def error(self, title: str, description: Optional[str] = None) -> None:
        self._push(Toast("error", title, description))

    def _push(self, toast: Toast) -> None:
        logger.debug("Toast [%s] %s: %s", toast.level, toast.title, toast.description)
        self._pending.append(toast)

    def drain(self) -> List[Toast]:
        toasts = list(self._pending)
        self._pending.clear()
        return toasts

    def __len__(self) -> int:
        return len(self._pending)


class Navigator:
    """Records where the frontend should go next (e.g. /login after logout)."""

    def __init__(self):
        self.pending: Optional[str] = None

    def __call__(self, path: str) -> None:
        self.pending = path

    def take(self) -> Optional[str]:
        path, self.pending = self.pending, None
        return path
