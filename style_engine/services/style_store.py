import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError

from style_engine.core.config import settings
from style_engine.core.constants import EVENTS_KEY, PROFILE_KEY
from style_engine.core.security import redact_user_id
from style_engine.models.interaction import InteractionEvent
from style_engine.models.style_profile import StyleProfile


class StyleStore:
    """
    Redis-backed persistence for the interaction log and profile snapshots.

    Layout:
    - events: one list per user, RPUSH-only, index == log sequence
    - profile: one JSON snapshot per user (derived; safe to drop)

    Storage errors are logged and re-raised unchanged; there is no retry here.
    """

    def __init__(self, redis_url: str | None = None, key_prefix: str | None = None) -> None:
        self.redis_url = redis_url or settings.REDIS_URL
        self.key_prefix = key_prefix if key_prefix is not None else settings.REDIS_KEY_PREFIX
        self._client: redis.Redis | None = None
        if not self.redis_url:
            logger.warning("REDIS_URL is not set. Style persistence will fail until configured.")

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            logger.info("Creating Redis client for StyleStore")
            self._client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    def _events_key(self, user_id: str) -> str:
        return EVENTS_KEY.format(prefix=self.key_prefix, user_id=user_id)

    def _profile_key(self, user_id: str) -> str:
        return PROFILE_KEY.format(prefix=self.key_prefix, user_id=user_id)

    # Events

    async def append_event(self, event: InteractionEvent) -> int:
        """
        Append an event to the user's persisted log.

        Returns:
            New length of the persisted log
        """
        key = self._events_key(event.user_id)
        try:
            client = await self.get_client()
            length = await client.rpush(key, event.model_dump_json())
        except (redis.RedisError, OSError) as exc:
            logger.error(f"[{redact_user_id(event.user_id)}] Failed to append event to '{key}': {exc}")
            raise

        if event.sequence is not None and length != event.sequence + 1:
            logger.warning(
                f"[{redact_user_id(event.user_id)}] Persisted log length {length} "
                f"does not match sequence #{event.sequence}"
            )
        return int(length)

    async def load_events(self, user_id: str) -> list[InteractionEvent]:
        """
        Load the persisted log in order. Undecodable entries are skipped.
        """
        key = self._events_key(user_id)
        try:
            client = await self.get_client()
            raw_events = await client.lrange(key, 0, -1)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"[{redact_user_id(user_id)}] Failed to load events from '{key}': {exc}")
            raise

        events = []
        for position, raw in enumerate(raw_events):
            try:
                events.append(InteractionEvent.model_validate_json(raw).model_copy(update={"sequence": position}))
            except ValidationError as e:
                logger.warning(f"[{redact_user_id(user_id)}] Skipping undecodable event #{position}: {e}")
        return events

    # Profile

    async def save_profile(self, profile: StyleProfile) -> None:
        key = self._profile_key(profile.user_id)
        try:
            client = await self.get_client()
            await client.set(key, profile.model_dump_json())
        except (redis.RedisError, OSError) as exc:
            logger.error(f"[{redact_user_id(profile.user_id)}] Failed to save profile to '{key}': {exc}")
            raise
        logger.debug(f"[{redact_user_id(profile.user_id)}] Saved profile snapshot ({profile.event_count} events)")

    async def load_profile(self, user_id: str) -> StyleProfile | None:
        """
        Get the stored snapshot, or None if missing or undecodable.
        """
        key = self._profile_key(user_id)
        try:
            client = await self.get_client()
            cached = await client.get(key)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"[{redact_user_id(user_id)}] Failed to load profile from '{key}': {exc}")
            raise

        if not cached:
            return None
        try:
            return StyleProfile.model_validate_json(cached)
        except ValidationError as e:
            logger.warning(f"[{redact_user_id(user_id)}] Failed to decode stored profile: {e}")
            return None

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.aclose()
                logger.info("StyleStore client closed")
            except Exception as exc:
                logger.warning(f"Failed to close StyleStore client: {exc}")
            finally:
                self._client = None


style_store = StyleStore()
