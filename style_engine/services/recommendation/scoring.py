import math
import random

from loguru import logger

from style_engine.core.config import settings
from style_engine.models.item import Item
from style_engine.models.style_profile import StyleProfile
from style_engine.services.profile.similarity import cosine_similarity, sparse_dot, validate_embedding


class RecommendationRanker:
    """
    Orders a candidate pool by predicted affinity to a StyleProfile.

    score = blend * cos(item, centroid) + (1 - blend) * (item vibes · profile vibes)

    A share of slots (exploration_rate) is reserved for items picked at
    random from whatever has not been placed yet, regardless of score. The
    head itself goes to such a pick with probability exploration_rate.
    """

    def __init__(
        self,
        embedding_blend: float | None = None,
        exploration_rate: float | None = None,
        rng: random.Random | None = None,
    ):
        self.embedding_blend = settings.EMBEDDING_BLEND if embedding_blend is None else embedding_blend
        self.exploration_rate = settings.EXPLORATION_RATE if exploration_rate is None else exploration_rate
        if not 0.0 <= self.embedding_blend <= 1.0:
            raise ValueError(f"embedding_blend must be in [0, 1], got {self.embedding_blend}")
        if not 0.0 <= self.exploration_rate < 1.0:
            raise ValueError(f"exploration_rate must be in [0, 1), got {self.exploration_rate}")
        self.rng = rng or random.Random()

    def score(self, item: Item, profile: StyleProfile) -> float:
        """Blended affinity of one item. Only meaningful for a warm profile."""
        vec = validate_embedding(item.embedding, len(profile.centroid), item.id)
        embedding_score = cosine_similarity(vec, profile.centroid_array())
        vibe_score = sparse_dot(item.vibe_scores, profile.vibe_distribution)
        return self.embedding_blend * embedding_score + (1.0 - self.embedding_blend) * vibe_score

    def exploration_slots(self, pool_size: int) -> list[int]:
        """
        Positions after the head reserved for exploration, spread evenly through the ranking.

        At most floor(pool_size * rate) slots. The last position is never
        reserved: with a single item left there is nothing to choose from.
        The head is explored separately, see `explores_head`.
        """
        count = math.floor(pool_size * self.exploration_rate)
        if count <= 0:
            return []
        stride = max(2, round(1.0 / self.exploration_rate))
        return [pos for pos in range(stride - 1, pool_size - 1, stride)][:count]

    def explores_head(self, pool_size: int, rng: random.Random) -> bool:
        """
        Whether the presented item (position 0) goes to an exploration pick this cycle.

        Only the head is shown to the user, so it is explored with probability
        exploration_rate per cycle.
        """
        if pool_size < 2 or self.exploration_rate <= 0.0:
            return False
        return rng.random() < self.exploration_rate

    def rank(self, pool: list[Item], profile: StyleProfile, rng: random.Random | None = None) -> list[Item]:
        """
        Rank a candidate pool.

        Args:
            pool: Candidates in selector order
            profile: Snapshot to rank against
            rng: Random source for exploration picks (defaults to the ranker's)

        Returns:
            Ranked items. A cold profile returns the pool order unchanged.
        """
        if profile.is_cold:
            return list(pool)

        rng = rng or self.rng
        scored = [(self.score(item, profile), item) for item in pool]
        # Score descending, ties by item id for reproducible output
        scored.sort(key=lambda x: (-x[0], x[1].id))
        by_score = [item for _, item in scored]

        slots = set(self.exploration_slots(len(by_score)))
        if self.explores_head(len(by_score), rng):
            slots.add(0)
        if not slots:
            return by_score

        remaining = list(by_score)
        ranked: list[Item] = []
        for position in range(len(by_score)):
            if position in slots and len(remaining) > 1:
                # Never the next score pick, otherwise the slot changes nothing
                pick = remaining.pop(1 + rng.randrange(len(remaining) - 1))
            else:
                pick = remaining.pop(0)
            ranked.append(pick)

        logger.debug(f"Ranked {len(ranked)} candidates with {len(slots)} exploration slots")
        return ranked
