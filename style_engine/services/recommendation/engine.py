import random
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from loguru import logger

from style_engine.core.exceptions import InvalidEmbedding, NotFound
from style_engine.core.security import redact_user_id
from style_engine.models.decision import DecisionError, DecisionResult
from style_engine.models.interaction import InteractionEvent, InteractionKind
from style_engine.models.item import Item
from style_engine.models.session import PresentationSession
from style_engine.models.style_profile import StyleProfile
from style_engine.services.embedding_store import EmbeddingStore
from style_engine.services.interaction_log import InteractionLog
from style_engine.services.profile.aggregator import ProfileAggregator
from style_engine.services.profile.registry import ProfileRegistry
from style_engine.services.recommendation.filtering import CandidateSelector
from style_engine.services.recommendation.scoring import RecommendationRanker
from style_engine.services.sessions import SessionRegistry


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StyleEngine:
    """
    Main orchestration for the shuffle loop.

    1. next_candidate_pool: select → rank against the current snapshot
    2. caller presents the top item
    3. record_decision: append to log → fold → publish snapshot
    """

    def __init__(
        self,
        store: EmbeddingStore,
        log: InteractionLog | None = None,
        aggregator: ProfileAggregator | None = None,
        selector: CandidateSelector | None = None,
        ranker: RecommendationRanker | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.log = log or InteractionLog()
        self.aggregator = aggregator or ProfileAggregator(dim=store.dim)
        self.profiles = ProfileRegistry(self.aggregator)
        self.sessions = SessionRegistry()
        self.selector = selector or CandidateSelector(store, self.log)
        self.ranker = ranker or RecommendationRanker()
        self.clock = clock

    def next_candidate_pool(self, user_id: str, session_id: str) -> list[Item]:
        """
        Get the ranked pool for the next presentation.

        The head of the returned list is the item the caller presents; it is
        marked as shown in the session.

        Raises:
            PoolExhausted: nothing left to show in this session
        """
        session = self.sessions.open(user_id, session_id)
        pool = self.selector.select(user_id, session, now=self.clock())

        # Copy-on-read: ranking works against an immutable snapshot
        profile = self.profiles.snapshot(user_id)
        rng = random.Random(f"{session.seed}:{len(session.shown_item_ids)}")
        ranked = self.ranker.rank(pool, profile, rng=rng)

        session.mark_shown(ranked[0].id)
        return ranked

    def record_decision(
        self,
        user_id: str,
        item_id: str,
        kind: InteractionKind | str,
        session_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> DecisionResult:
        """
        Record a user's decision on an item and fold it into the profile.

        Malformed decisions are returned as rejected, never silently dropped.
        """
        try:
            kind = InteractionKind(kind)
        except ValueError:
            logger.warning(f"[{redact_user_id(user_id)}] Unknown interaction kind '{kind}' for {item_id}")
            reason = f"unknown interaction kind: {kind}"
            return DecisionResult.rejected(item_id, kind, DecisionError.UNKNOWN_KIND, reason)

        try:
            item = self.store.get_item(item_id)
            if item.user_id != user_id:
                raise NotFound("item", item_id)
            if item.embedding is None:
                raise InvalidEmbedding("item has not been analysed yet", item_id)
        except NotFound as e:
            logger.warning(f"[{redact_user_id(user_id)}] Rejected {kind.value} on {item_id}: {e}")
            return DecisionResult.rejected(item_id, kind, DecisionError.NOT_FOUND, str(e))
        except InvalidEmbedding as e:
            logger.warning(f"[{redact_user_id(user_id)}] Rejected {kind.value} on {item_id}: {e}")
            return DecisionResult.rejected(item_id, kind, DecisionError.INVALID_EMBEDDING, str(e))

        event = InteractionEvent(
            user_id=user_id,
            item_id=item_id,
            kind=kind,
            timestamp=timestamp or self.clock(),
            embedding=list(item.embedding),
            vibe_scores=dict(item.vibe_scores),
        )

        with self.profiles.exclusive(user_id):
            base = self.profiles.snapshot(user_id)
            try:
                self.aggregator.validate(event)
            except InvalidEmbedding as e:
                logger.warning(f"[{redact_user_id(user_id)}] Rejected {kind.value} on {item_id}: {e}")
                return DecisionResult.rejected(item_id, kind, DecisionError.INVALID_EMBEDDING, str(e))

            stored = self.log.append(event)
            updated = self.aggregator.fold(base, stored)
            self.profiles.publish(updated, expected_count=base.event_count)

        if session_id:
            session = self.sessions.get(user_id, session_id)
            if session is not None:
                session.tally(kind)

        logger.debug(f"[{redact_user_id(user_id)}] Folded {kind.value} on {item_id}; events={updated.event_count}")
        return DecisionResult.ok(item_id, kind, stored.sequence, updated.event_count)

    def rebuild(self, user_id: str) -> StyleProfile:
        """
        Recompute a user's profile from the interaction log.

        Returns:
            The rebuilt (and now published) profile
        """
        with self.profiles.exclusive(user_id):
            events = self.log.stream_for_user(user_id)
            profile, rejected = self.aggregator.replay(user_id, events)
            self.profiles.replace(profile)

        logger.info(
            f"[{redact_user_id(user_id)}] Rebuilt profile from {len(events)} events "
            f"({len(rejected)} rejected)"
        )
        return profile

    def restore(
        self, user_id: str, events: Iterable[InteractionEvent], snapshot: StyleProfile | None = None
    ) -> StyleProfile:
        """
        Load a persisted event log for a user with no in-memory history.

        Events already carry their embedding snapshots, so restoring does not
        consult the embedding store.

        Args:
            user_id: Owner of the events
            events: Persisted events
            snapshot: Stored profile; installed as-is when it covers exactly the
                restored log, otherwise the log is replayed

        Returns:
            The installed profile
        """
        with self.profiles.exclusive(user_id):
            if self.log.count_for_user(user_id):
                raise ValueError(f"log for {user_id} is not empty; refusing to restore over it")
            ordered = sorted(events, key=lambda e: e.sequence if e.sequence is not None else 0)
            self.log.extend(event.model_copy(update={"sequence": None}) for event in ordered)

            count = self.log.count_for_user(user_id)
            if snapshot is not None and self._snapshot_covers(snapshot, user_id, count):
                self.profiles.replace(snapshot)
                logger.info(f"[{redact_user_id(user_id)}] Restored stored profile covering {count} events")
                return snapshot

        return self.rebuild(user_id)

    def _snapshot_covers(self, snapshot: StyleProfile, user_id: str, count: int) -> bool:
        return (
            snapshot.user_id == user_id
            and snapshot.event_count == count
            and len(snapshot.centroid) == self.aggregator.dim
        )

    def evict_user(self, user_id: str) -> None:
        """
        Drop a user's in-memory log and profile.

        Used when the persisted log fell behind; the next access restores from it.
        """
        with self.profiles.exclusive(user_id):
            dropped = self.log.evict(user_id)
            self.profiles.discard(user_id)
        logger.warning(f"[{redact_user_id(user_id)}] Evicted {dropped} in-memory events")

    def get_profile(self, user_id: str) -> StyleProfile:
        """Current profile snapshot (cold if the user has no history)."""
        return self.profiles.snapshot(user_id)

    def open_session(self, user_id: str, session_id: str) -> PresentationSession:
        return self.sessions.open(user_id, session_id)

    def end_session(self, user_id: str, session_id: str) -> PresentationSession | None:
        return self.sessions.end(user_id, session_id)
