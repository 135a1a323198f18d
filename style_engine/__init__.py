"""
Style Engine - preference learning and candidate ranking for wardrobe shuffles.

Turns like/skip feedback into a decayed style profile and uses it to rank
which wardrobe items to surface next.
"""

from style_engine.core.version import __version__
from style_engine.services.embedding_store import EmbeddingStore
from style_engine.services.interaction_log import InteractionLog
from style_engine.services.profile.aggregator import ProfileAggregator
from style_engine.services.recommendation.engine import StyleEngine
from style_engine.services.recommendation.filtering import CandidateSelector
from style_engine.services.recommendation.scoring import RecommendationRanker

__all__ = [
    "__version__",
    "EmbeddingStore",
    "InteractionLog",
    "ProfileAggregator",
    "CandidateSelector",
    "RecommendationRanker",
    "StyleEngine",
]
