from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from style_engine.core.constants import (
    DEFAULT_COOLDOWN_SECONDS,
    DEFAULT_DECAY,
    DEFAULT_EMBEDDING_BLEND,
    DEFAULT_EMBEDDING_DIM,
    DEFAULT_EXPLORATION_RATE,
    DEFAULT_FAVORITE_WEIGHT,
    DEFAULT_REMOVE_WEIGHT,
    DEFAULT_SKIP_WEIGHT,
)
from style_engine.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production", "test"] = "production"

    # Learning
    EMBEDDING_DIM: int = DEFAULT_EMBEDDING_DIM
    DECAY: float = DEFAULT_DECAY
    SKIP_WEIGHT: float = DEFAULT_SKIP_WEIGHT
    FAVORITE_WEIGHT: float = DEFAULT_FAVORITE_WEIGHT
    REMOVE_WEIGHT: float = DEFAULT_REMOVE_WEIGHT

    # Selection & ranking
    COOLDOWN_SECONDS: int = DEFAULT_COOLDOWN_SECONDS
    EMBEDDING_BLEND: float = DEFAULT_EMBEDDING_BLEND
    EXPLORATION_RATE: float = DEFAULT_EXPLORATION_RATE

    # Persistence
    PERSISTENCE_ENABLED: bool = False
    REDIS_URL: str = "redis://redis:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "styleengine:"


settings = Settings()

APP_VERSION = __version__
