import random
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from style_engine.models.interaction import InteractionKind


class PresentationSession(BaseModel):
    """
    Ephemeral, in-memory record of one shuffle session.

    Tracks what has already been shown so nothing repeats immediately, plus
    the like/skip tallies for the completion screen. Never persisted.
    """

    user_id: str
    session_id: str
    seed: int = Field(default_factory=lambda: random.getrandbits(32))
    opened_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    shown_item_ids: set[str] = Field(default_factory=set)
    like_count: int = 0
    skip_count: int = 0

    def mark_shown(self, item_id: str) -> None:
        self.shown_item_ids.add(item_id)

    def has_shown(self, item_id: str) -> bool:
        return item_id in self.shown_item_ids

    def tally(self, kind: InteractionKind) -> None:
        if kind.is_positive:
            self.like_count += 1
        else:
            self.skip_count += 1
