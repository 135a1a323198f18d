"""
Core constants used across the engine. Keep these simple and documented.
"""

from typing import Final

# Embedding sanity
DEFAULT_EMBEDDING_DIM: Final[int] = 512
NORM_EPSILON: Final[float] = 1e-12  # Norms below this are treated as zero

# Learning defaults (overridable through settings)
DEFAULT_DECAY: Final[float] = 0.9
DEFAULT_SKIP_WEIGHT: Final[float] = 0.3  # Skip is often indecision, not rejection
DEFAULT_FAVORITE_WEIGHT: Final[float] = 1.5
DEFAULT_REMOVE_WEIGHT: Final[float] = 0.5

# Vibe distribution bounds
VIBE_MIN: Final[float] = 0.0
VIBE_MAX: Final[float] = 1.0

# Selection
DEFAULT_COOLDOWN_SECONDS: Final[int] = 24 * 60 * 60

# Ranking
DEFAULT_EMBEDDING_BLEND: Final[float] = 0.7  # Remaining 0.3 goes to vibe overlap
DEFAULT_EXPLORATION_RATE: Final[float] = 0.1

# Profile summary
TOP_VIBES_LIMIT: Final[int] = 5

# Redis keys (prefix comes from settings)
EVENTS_KEY: Final[str] = "{prefix}events:{user_id}"
PROFILE_KEY: Final[str] = "{prefix}profile:{user_id}"
