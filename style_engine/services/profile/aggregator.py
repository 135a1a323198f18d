from collections.abc import Iterable

import numpy as np
from loguru import logger

from style_engine.core.config import settings
from style_engine.core.constants import VIBE_MAX, VIBE_MIN
from style_engine.core.exceptions import InvalidEmbedding
from style_engine.core.security import redact_user_id
from style_engine.models.interaction import InteractionEvent
from style_engine.models.style_profile import StyleProfile
from style_engine.services.profile.evidence import InteractionWeights
from style_engine.services.profile.similarity import normalize, validate_embedding


class ProfileAggregator:
    """
    Folds interaction events into a StyleProfile using an exponential moving centroid.

    Per event with embedding v and signed weight s:
        centroid' = normalize(centroid * decay + s * v * (1 - decay))
        dist[tag]' = clamp(dist[tag] * decay + s * t * (1 - decay), 0, 1)

    Design principles:
    - fold() never mutates its input; it returns a new snapshot
    - replay() and incremental fold() run the exact same operations in the
      same order, so a rebuilt profile matches the live one bit-for-bit
    """

    def __init__(
        self,
        decay: float | None = None,
        weights: InteractionWeights | None = None,
        dim: int | None = None,
    ):
        """
        Initialize aggregator.

        Args:
            decay: Weight kept by the old state on each event, in (0, 1)
            weights: Signed weight per interaction kind
            dim: Embedding dimensionality
        """
        self.decay = settings.DECAY if decay is None else decay
        if not 0.0 < self.decay < 1.0:
            raise ValueError(f"decay must be in (0, 1), got {self.decay}")
        self.weights = weights or InteractionWeights()
        self.dim = dim or settings.EMBEDDING_DIM

    def empty_profile(self, user_id: str) -> StyleProfile:
        return StyleProfile.empty(user_id, self.dim)

    def validate(self, event: InteractionEvent) -> np.ndarray:
        """
        Sanity-check an event's embedding snapshot.

        Raises:
            InvalidEmbedding: wrong dimensionality or non-finite values
        """
        return validate_embedding(event.embedding, self.dim, event.item_id)

    def fold(self, profile: StyleProfile, event: InteractionEvent) -> StyleProfile:
        """
        Incorporate one event into a profile.

        Args:
            profile: Current snapshot (left untouched)
            event: Event to fold

        Returns:
            New StyleProfile snapshot

        Raises:
            InvalidEmbedding: the event's embedding fails the sanity check
        """
        vec = self.validate(event)
        sign = self.weights.get_sign_weight(event.kind)
        keep = self.decay
        blend = 1.0 - self.decay

        centroid = profile.centroid_array() if profile.centroid else np.zeros(self.dim, dtype=np.float64)
        centroid = normalize(centroid * keep + sign * vec * blend)

        vibes = dict(profile.vibe_distribution)
        for tag in sorted(event.vibe_scores):
            updated = vibes.get(tag, 0.0) * keep + sign * event.vibe_scores[tag] * blend
            vibes[tag] = min(VIBE_MAX, max(VIBE_MIN, updated))

        return profile.model_copy(
            update={
                "centroid": centroid.tolist(),
                "vibe_distribution": vibes,
                "event_count": profile.event_count + 1,
                "last_updated": event.timestamp,
            }
        )

    def fold_many(
        self, profile: StyleProfile, events: Iterable[InteractionEvent]
    ) -> tuple[StyleProfile, list[InteractionEvent]]:
        """
        Fold a batch of events in order, skipping the invalid ones.

        Returns:
            Tuple of (profile, rejected events)
        """
        rejected: list[InteractionEvent] = []
        for event in events:
            try:
                profile = self.fold(profile, event)
            except InvalidEmbedding as e:
                logger.warning(f"[{redact_user_id(event.user_id)}] Rejected event #{event.sequence}: {e}")
                rejected.append(event)
        return profile, rejected

    def replay(self, user_id: str, events: Iterable[InteractionEvent]) -> tuple[StyleProfile, list[InteractionEvent]]:
        """
        Rebuild a profile from scratch by folding the full log in order.

        Args:
            user_id: Owner of the events
            events: Events in log order

        Returns:
            Tuple of (rebuilt profile, rejected events)
        """
        return self.fold_many(self.empty_profile(user_id), events)
