"""Shared fixtures for the style engine test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from style_engine.models.interaction import InteractionEvent, InteractionKind
from style_engine.models.item import Item
from style_engine.services.embedding_store import EmbeddingStore
from style_engine.services.interaction_log import InteractionLog
from style_engine.services.profile.aggregator import ProfileAggregator
from style_engine.services.recommendation.engine import StyleEngine
from style_engine.services.recommendation.filtering import CandidateSelector
from style_engine.services.recommendation.scoring import RecommendationRanker

DIM = 8
USER = "user-1"
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def basis(index: int, dim: int = DIM) -> list[float]:
    vec = [0.0] * dim
    vec[index] = 1.0
    return vec


def random_unit(rng: np.random.Generator, dim: int = DIM) -> list[float]:
    vec = rng.normal(size=dim)
    return (vec / np.linalg.norm(vec)).tolist()


def make_item(item_id: str, embedding: list[float] | None, user_id: str = USER, **kwargs) -> Item:
    return Item(id=item_id, user_id=user_id, embedding=embedding, **kwargs)


def make_event(
    item_id: str,
    embedding: list[float],
    kind: InteractionKind = InteractionKind.LIKE,
    at: datetime = T0,
    user_id: str = USER,
    vibes: dict[str, float] | None = None,
) -> InteractionEvent:
    return InteractionEvent(
        user_id=user_id, item_id=item_id, kind=kind, timestamp=at, embedding=embedding, vibe_scores=vibes or {}
    )


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def aggregator() -> ProfileAggregator:
    return ProfileAggregator(decay=0.9, dim=DIM)


@pytest.fixture
def store() -> EmbeddingStore:
    return EmbeddingStore(
        dim=DIM,
        items=[
            make_item("a", basis(0), vibe_scores={"minimalist": 0.9}),
            make_item("b", basis(1), vibe_scores={"cottagecore": 0.8}),
            make_item("c", basis(2), vibe_scores={"streetwear": 0.7}),
        ],
    )


@pytest.fixture
def engine(store: EmbeddingStore, clock: FakeClock) -> StyleEngine:
    log = InteractionLog()
    return StyleEngine(
        store,
        log=log,
        aggregator=ProfileAggregator(decay=0.9, dim=DIM),
        selector=CandidateSelector(store, log, cooldown_seconds=24 * 60 * 60),
        ranker=RecommendationRanker(exploration_rate=0.0),
        clock=clock,
    )
