import math

from style_engine.core.config import settings
from style_engine.models.interaction import InteractionKind


class InteractionWeights:
    """
    Signed evidence weight per interaction kind.

    Pure lookup: no side effects, easy to test.

    like → +1, skip → -skip_weight (damped: a skip is often indecision),
    favorite → +favorite_weight, remove → -remove_weight.
    """

    def __init__(
        self,
        skip_weight: float | None = None,
        favorite_weight: float | None = None,
        remove_weight: float | None = None,
    ):
        self.skip_weight = settings.SKIP_WEIGHT if skip_weight is None else skip_weight
        self.favorite_weight = settings.FAVORITE_WEIGHT if favorite_weight is None else favorite_weight
        self.remove_weight = settings.REMOVE_WEIGHT if remove_weight is None else remove_weight

        if not 0.0 < self.skip_weight < 1.0:
            raise ValueError(f"skip_weight must be in (0, 1), got {self.skip_weight}")
        for name in ("favorite_weight", "remove_weight"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value}")

    def get_sign_weight(self, kind: InteractionKind) -> float:
        """
        Get the signed weight for an interaction kind.

        Args:
            kind: Interaction kind

        Returns:
            Positive for attraction, negative for aversion
        """
        weights = {
            InteractionKind.LIKE: 1.0,
            InteractionKind.SKIP: -self.skip_weight,
            InteractionKind.FAVORITE: self.favorite_weight,
            InteractionKind.REMOVE: -self.remove_weight,
        }
        return weights[kind]
