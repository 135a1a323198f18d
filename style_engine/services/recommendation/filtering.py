import random
from datetime import datetime, timedelta, timezone

from loguru import logger

from style_engine.core.config import settings
from style_engine.core.exceptions import PoolExhausted
from style_engine.core.security import redact_user_id
from style_engine.models.interaction import TERMINAL_KINDS
from style_engine.models.item import Item
from style_engine.models.session import PresentationSession
from style_engine.services.embedding_store import EmbeddingStore
from style_engine.services.interaction_log import InteractionLog


class CandidateSelector:
    """
    Builds the pool of items eligible for the next presentation cycle.

    Exclusions:
    1. Anything already shown in the current session
    2. Anything decided on within the cool-down window
    """

    def __init__(self, store: EmbeddingStore, log: InteractionLog, cooldown_seconds: int | None = None):
        self.store = store
        self.log = log
        seconds = settings.COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        if seconds < 0:
            raise ValueError(f"cooldown_seconds must be >= 0, got {seconds}")
        self.cooldown = timedelta(seconds=seconds)

    def get_cooldown_exclusions(self, user_id: str, now: datetime) -> set[str]:
        """Item ids with a terminal decision younger than the cool-down window."""
        if not self.cooldown:
            return set()
        cutoff = now - self.cooldown
        recent = self.log.last_decision_times(user_id, TERMINAL_KINDS)
        return {item_id for item_id, decided_at in recent.items() if decided_at > cutoff}

    def select(self, user_id: str, session: PresentationSession, now: datetime | None = None) -> list[Item]:
        """
        Get the shuffled candidate pool for a session.

        The shuffle is seeded by the session, so a session sees a stable
        order while separate sessions do not share one.

        Raises:
            PoolExhausted: nothing left to show
        """
        now = now or datetime.now(timezone.utc)
        cooling = self.get_cooldown_exclusions(user_id, now)

        pool = [
            item
            for item in self.store.list_eligible(user_id)
            if not session.has_shown(item.id) and item.id not in cooling
        ]

        if not pool:
            logger.info(f"[{redact_user_id(user_id)}] Candidate pool exhausted for session {session.session_id}")
            raise PoolExhausted(user_id, session.session_id, session.like_count, session.skip_count)

        random.Random(session.seed).shuffle(pool)
        logger.debug(
            f"[{redact_user_id(user_id)}] Pool of {len(pool)} "
            f"(shown={len(session.shown_item_ids)}, cooling={len(cooling)})"
        )
        return pool
