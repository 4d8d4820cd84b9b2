"""In-process notifications for profile changes (refresh finished, profile written)."""
import threading
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.modules.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)

PROFILE_REFRESHED = "refreshed"
PROFILE_UPDATED = "updated"


@dataclass
class ProfileEvent:
    kind: str
    user_id: str
    user: Optional[CurrentUser] = None
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[ProfileEvent], None]


class ProfileEventBus:
    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: ProfileEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Profile event listener failed for {event.user_id} ({event.kind}): {e}")

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()


profile_events = ProfileEventBus()


def get_profile_events() -> ProfileEventBus:
    return profile_events


def log_profile_event(event: ProfileEvent) -> None:
    logger.info(f"Profile {event.kind} for user {event.user_id}")
