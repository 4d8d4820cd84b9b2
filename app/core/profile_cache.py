"""Process-wide cache of current-user profiles keyed by user id.

Entries never expire and the map is unbounded. An entry only changes when a
profile write patches it or a background refresh replaces the exact object it
started from, so repeated lookups hand back the same object until then.
"""
import threading
import logging
from typing import Any, Dict, Optional

from app.modules.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)


class ProfileCache:
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, CurrentUser] = {}

    def get(self, user_id: str) -> Optional[CurrentUser]:
        with self._lock:
            return self._entries.get(user_id)

    def set(self, user_id: str, user: CurrentUser) -> None:
        with self._lock:
            self._entries[user_id] = user

    def replace(self, user_id: str, expected: CurrentUser, user: CurrentUser) -> bool:
        """Swap in `user` only while the entry is still `expected`; False if it was dropped or rewritten."""
        with self._lock:
            if self._entries.get(user_id) is not expected:
                return False
            self._entries[user_id] = user
        return True

    def patch(self, user_id: str, fields: Dict[str, Any]) -> Optional[CurrentUser]:
        """Replace a cached entry with a copy carrying `fields`. No-op when the user is not cached."""
        known = {k: v for k, v in fields.items() if k in CurrentUser.model_fields}
        with self._lock:
            current = self._entries.get(user_id)
            if current is None:
                return None
            updated = current.model_copy(update=known)
            self._entries[user_id] = updated
        logger.debug(f"Patched cached profile for {user_id}: {sorted(known)}")
        return updated

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


profile_cache = ProfileCache()


def get_profile_cache() -> ProfileCache:
    return profile_cache
