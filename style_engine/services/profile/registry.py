import threading
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from style_engine.core.exceptions import ConcurrentProfileConflict
from style_engine.core.security import redact_user_id
from style_engine.models.style_profile import StyleProfile
from style_engine.services.profile.aggregator import ProfileAggregator


class ProfileRegistry:
    """
    Per-user keyed store of StyleProfile snapshots.

    Writes for one user go through that user's exclusive section; reads return
    the currently published immutable snapshot without taking the user lock.
    """

    def __init__(self, aggregator: ProfileAggregator):
        self.aggregator = aggregator
        self._profiles: dict[str, StyleProfile] = {}
        self._user_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._user_locks[user_id] = lock
            return lock

    @contextmanager
    def exclusive(self, user_id: str) -> Iterator[None]:
        """Serialize log appends and profile updates for one user."""
        with self._lock_for(user_id):
            yield

    def snapshot(self, user_id: str) -> StyleProfile:
        """Current profile for a user (cold if nothing was published yet)."""
        with self._registry_lock:
            profile = self._profiles.get(user_id)
        return profile if profile is not None else self.aggregator.empty_profile(user_id)

    def publish(self, profile: StyleProfile, expected_count: int) -> None:
        """
        Publish a new snapshot.

        Args:
            profile: Snapshot to publish
            expected_count: event_count of the snapshot the writer started from

        Raises:
            ConcurrentProfileConflict: someone else published in between
        """
        with self._registry_lock:
            current = self._profiles.get(profile.user_id)
            actual = current.event_count if current is not None else 0
            if actual != expected_count:
                raise ConcurrentProfileConflict(profile.user_id, expected_count, actual)
            self._profiles[profile.user_id] = profile

    def discard(self, user_id: str) -> None:
        with self._registry_lock:
            self._profiles.pop(user_id, None)

    def replace(self, profile: StyleProfile) -> None:
        """Unconditionally install a snapshot (rebuild/restore, under the user's exclusive section)."""
        with self._registry_lock:
            self._profiles[profile.user_id] = profile
        logger.debug(f"[{redact_user_id(profile.user_id)}] Installed profile with {profile.event_count} events")
