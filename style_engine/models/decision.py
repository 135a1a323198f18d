from enum import Enum

from pydantic import BaseModel, Field

from style_engine.models.interaction import InteractionKind


class DecisionError(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_EMBEDDING = "invalid_embedding"
    UNKNOWN_KIND = "unknown_kind"


class DecisionRequest(BaseModel):
    item_id: str
    kind: str = Field(description="One of: like, skip, favorite, remove")
    session_id: str | None = Field(default=None, description="Session to tally the decision against")


class DecisionResult(BaseModel):
    """Outcome of recording a decision. Rejections carry a reason instead of raising."""

    accepted: bool
    item_id: str
    kind: str
    error: DecisionError | None = None
    reason: str | None = None
    sequence: int | None = None
    event_count: int | None = None

    @classmethod
    def ok(cls, item_id: str, kind: InteractionKind, sequence: int, event_count: int) -> "DecisionResult":
        return cls(accepted=True, item_id=item_id, kind=kind.value, sequence=sequence, event_count=event_count)

    @classmethod
    def rejected(
        cls, item_id: str, kind: InteractionKind | str, error: DecisionError, reason: str
    ) -> "DecisionResult":
        kind_value = kind.value if isinstance(kind, InteractionKind) else str(kind)
        return cls(accepted=False, item_id=item_id, kind=kind_value, error=error, reason=reason)
