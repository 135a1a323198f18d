import asyncio

import redis.asyncio as redis
from loguru import logger

from style_engine.core.config import settings
from style_engine.core.security import redact_user_id
from style_engine.models.decision import DecisionResult
from style_engine.models.item import Item
from style_engine.models.session import PresentationSession
from style_engine.models.style_profile import StyleProfile
from style_engine.services.embedding_store import EmbeddingStore
from style_engine.services.recommendation.engine import StyleEngine
from style_engine.services.style_store import StyleStore, style_store


class ShuffleService:
    """
    Facade used by the HTTP layer.

    Keeps the engine pure and in-memory; persistence to the StyleStore
    happens here, around the engine calls, when enabled.

    The persisted event list is authoritative. If appending to it fails, the
    user's in-memory state is evicted so the next request restores from it.
    """

    def __init__(
        self,
        engine: StyleEngine | None = None,
        store: StyleStore | None = None,
        persistence_enabled: bool | None = None,
    ):
        self.engine = engine or StyleEngine(EmbeddingStore())
        self.store = store or style_store
        self.persistence_enabled = (
            settings.PERSISTENCE_ENABLED if persistence_enabled is None else persistence_enabled
        )
        self._loaded_users: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        if user_id not in self._locks:
            self._locks[user_id] = asyncio.Lock()
        return self._locks[user_id]

    async def ensure_loaded(self, user_id: str) -> None:
        """Hydrate a user's log from the store the first time we see them."""
        if not self.persistence_enabled or user_id in self._loaded_users:
            return

        async with self._lock_for(user_id):
            await self._load(user_id)

    async def _load(self, user_id: str) -> None:
        if user_id in self._loaded_users:
            return

        events = await self.store.load_events(user_id)
        if events and self.engine.log.count_for_user(user_id) == 0:
            snapshot = await self.store.load_profile(user_id)
            profile = self.engine.restore(user_id, events, snapshot=snapshot)
            logger.info(f"[{redact_user_id(user_id)}] Restored {profile.event_count} events from store")
        self._loaded_users.add(user_id)

    def ingest_item(self, item: Item) -> None:
        """Write path for the tagging pipeline."""
        self.engine.store.upsert(item)

    async def next_pool(self, user_id: str, session_id: str) -> list[Item]:
        await self.ensure_loaded(user_id)
        return self.engine.next_candidate_pool(user_id, session_id)

    async def record_decision(
        self, user_id: str, item_id: str, kind: str, session_id: str | None = None
    ) -> DecisionResult:
        if not self.persistence_enabled:
            return self.engine.record_decision(user_id, item_id, kind, session_id=session_id)

        # One decision per user at a time, so the persisted order matches log order
        async with self._lock_for(user_id):
            await self._load(user_id)
            # Session tallies wait until the event is persisted
            result = self.engine.record_decision(user_id, item_id, kind)
            if not result.accepted:
                return result

            event = self.engine.log.stream_for_user(user_id)[result.sequence]
            try:
                await self.store.append_event(event)
            except (redis.RedisError, OSError):
                self._evict(user_id)
                raise

            session = self.engine.sessions.get(user_id, session_id) if session_id else None
            if session is not None:
                session.tally(event.kind)

        await self.store.save_profile(self.engine.get_profile(user_id))
        return result

    def _evict(self, user_id: str) -> None:
        self.engine.evict_user(user_id)
        self._loaded_users.discard(user_id)

    async def get_profile(self, user_id: str) -> StyleProfile:
        await self.ensure_loaded(user_id)
        return self.engine.get_profile(user_id)

    async def rebuild(self, user_id: str) -> StyleProfile:
        await self.ensure_loaded(user_id)
        profile = self.engine.rebuild(user_id)
        if self.persistence_enabled:
            await self.store.save_profile(profile)
        return profile

    def end_session(self, user_id: str, session_id: str) -> PresentationSession | None:
        return self.engine.end_session(user_id, session_id)


shuffle_service = ShuffleService()
