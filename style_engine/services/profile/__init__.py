"""
Profile learning.

Folds interaction events into a decayed centroid plus vibe distribution,
and keeps one published snapshot per user.
"""

from style_engine.services.profile.aggregator import ProfileAggregator
from style_engine.services.profile.evidence import InteractionWeights
from style_engine.services.profile.registry import ProfileRegistry

__all__ = [
    "ProfileAggregator",
    "InteractionWeights",
    "ProfileRegistry",
]
