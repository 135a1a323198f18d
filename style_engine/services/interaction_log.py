import threading
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from loguru import logger

from style_engine.core.security import redact_user_id
from style_engine.models.interaction import TERMINAL_KINDS, InteractionEvent, InteractionKind


class InteractionLog:
    """
    Append-only, per-user sequence of feedback events.

    Source of truth for learning. Events are never edited or deleted: a
    correction is a new event. Log position, not timestamp, defines fold order.
    `evict` only forgets the in-memory copy of a persisted stream.
    """

    def __init__(self):
        self._events: dict[str, list[InteractionEvent]] = defaultdict(list)
        self._lock = threading.Lock()

    def append(self, event: InteractionEvent) -> InteractionEvent:
        """
        Append an event and assign its per-user sequence number.

        Out-of-order timestamps are accepted but keep their log position.

        Returns:
            The stored event (with `sequence` set)
        """
        with self._lock:
            stream = self._events[event.user_id]
            if stream and event.timestamp < stream[-1].timestamp:
                logger.warning(
                    f"[{redact_user_id(event.user_id)}] Out-of-order timestamp for {event.item_id}: "
                    f"{event.timestamp.isoformat()} < {stream[-1].timestamp.isoformat()}"
                )
            stored = event.model_copy(update={"sequence": len(stream)})
            stream.append(stored)

        logger.debug(
            f"[{redact_user_id(event.user_id)}] Logged {event.kind.value} on {event.item_id} (#{stored.sequence})"
        )
        return stored

    def extend(self, events: Iterable[InteractionEvent]) -> list[InteractionEvent]:
        """Append several events in order (used when restoring a persisted log)."""
        return [self.append(event) for event in events]

    def stream_for_user(self, user_id: str) -> list[InteractionEvent]:
        """All events for a user in log order."""
        with self._lock:
            return list(self._events.get(user_id, []))

    def count_for_user(self, user_id: str) -> int:
        with self._lock:
            return len(self._events.get(user_id, []))

    def evict(self, user_id: str) -> int:
        """
        Forget a user's in-memory stream. The persisted copy stays authoritative.

        Returns:
            Number of events dropped
        """
        with self._lock:
            return len(self._events.pop(user_id, []))

    def last_decision_times(
        self, user_id: str, kinds: Iterable[InteractionKind] = TERMINAL_KINDS
    ) -> dict[str, datetime]:
        """
        Latest terminal-decision timestamp per item.

        Args:
            user_id: User whose log to scan
            kinds: Interaction kinds that count as a decision

        Returns:
            item_id → most recent decision timestamp
        """
        wanted = set(kinds)
        latest: dict[str, datetime] = {}
        for event in self.stream_for_user(user_id):
            if event.kind not in wanted:
                continue
            previous = latest.get(event.item_id)
            if previous is None or event.timestamp > previous:
                latest[event.item_id] = event.timestamp
        return latest
