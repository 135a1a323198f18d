import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Item(BaseModel):
    """
    Wardrobe item as written by the AI tagging pipeline.

    Read-only from the engine's point of view. `embedding` is None until the
    item has been analysed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    embedding: list[float] | None = Field(default=None, description="Unit-length image embedding")
    vibe_scores: dict[str, float] = Field(default_factory=dict, description="Vibe tag → affinity in [0, 1]")
    category: str | None = None
    subcategory: str | None = None
    is_unorthodox: bool = False
    user_verified: bool = False

    # Descriptive metadata, passed through untouched
    item_name: str | None = None
    era_detected: str | None = None
    created_at: datetime | None = None

    @field_validator("vibe_scores")
    @classmethod
    def _clean_vibe_scores(cls, value: dict[str, float]) -> dict[str, float]:
        # Sparse: drop non-finite and zero entries, clamp the rest to [0, 1]
        cleaned = {}
        for tag, score in value.items():
            score = float(score)
            if not math.isfinite(score):
                continue
            score = max(0.0, min(1.0, score))
            if score > 0.0:
                cleaned[tag] = score
        return cleaned

    @property
    def is_analyzed(self) -> bool:
        return self.embedding is not None
