from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InteractionKind(str, Enum):
    LIKE = "like"
    SKIP = "skip"
    FAVORITE = "favorite"
    REMOVE = "remove"

    @property
    def is_positive(self) -> bool:
        return self in (InteractionKind.LIKE, InteractionKind.FAVORITE)


# Every kind is a terminal decision on the item for cool-down purposes
TERMINAL_KINDS: frozenset[InteractionKind] = frozenset(InteractionKind)


class InteractionEvent(BaseModel):
    """
    A single piece of user feedback.

    The item's embedding and vibe scores are captured at interaction time so a
    replay never depends on the current state of the item.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    item_id: str
    kind: InteractionKind
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    embedding: list[float] = Field(description="Item embedding snapshot at interaction time")
    vibe_scores: dict[str, float] = Field(default_factory=dict, description="Item vibe snapshot")
    sequence: int | None = Field(default=None, description="Per-user log position, set by the log")

    @field_validator("timestamp")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
