from datetime import datetime

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from style_engine.core.constants import TOP_VIBES_LIMIT


class StyleProfile(BaseModel):
    """
    Derived per-user style state.

    Answers one question: "How close is this item to what the user has been liking lately?"

    Never authoritative: it can always be rebuilt by replaying the interaction log.
    Instances are frozen; every update produces a new snapshot.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    centroid: list[float] = Field(default_factory=list, description="Decayed unit-length preference vector")
    vibe_distribution: dict[str, float] = Field(default_factory=dict, description="Vibe tag → weight in [0, 1]")
    event_count: int = 0
    last_updated: datetime | None = None

    @classmethod
    def empty(cls, user_id: str, dim: int) -> "StyleProfile":
        """Cold profile with a zero centroid."""
        return cls(user_id=user_id, centroid=[0.0] * dim)

    @property
    def is_cold(self) -> bool:
        return self.event_count == 0

    def centroid_array(self) -> np.ndarray:
        return np.asarray(self.centroid, dtype=np.float64)

    def get_top_vibes(self, limit: int = TOP_VIBES_LIMIT) -> list[tuple[str, float]]:
        """Get top N vibes by weight. Ties resolve alphabetically."""
        ranked = sorted(self.vibe_distribution.items(), key=lambda x: (-x[1], x[0]))
        return [(tag, weight) for tag, weight in ranked if weight > 0][:limit]

    def summary(self, limit: int = TOP_VIBES_LIMIT) -> dict:
        """Compact view for callers (no raw vector)."""
        return {
            "user_id": self.user_id,
            "event_count": self.event_count,
            "is_cold": self.is_cold,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "top_vibes": [{"vibe": tag, "weight": round(weight, 4)} for tag, weight in self.get_top_vibes(limit)],
        }
