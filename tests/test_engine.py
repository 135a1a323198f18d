"""End-to-end tests for the shuffle loop."""

from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import numpy as np
import pytest

from style_engine.core.exceptions import ConcurrentProfileConflict, PoolExhausted
from style_engine.models.decision import DecisionError
from style_engine.models.interaction import InteractionKind
from style_engine.services.embedding_store import EmbeddingStore
from style_engine.services.interaction_log import InteractionLog
from style_engine.services.profile.aggregator import ProfileAggregator
from style_engine.services.recommendation.engine import StyleEngine
from style_engine.services.recommendation.filtering import CandidateSelector
from style_engine.services.recommendation.scoring import RecommendationRanker
from tests.conftest import DIM, T0, USER, FakeClock, basis, make_item


def test_cold_start_presents_selector_order(engine: StyleEngine, store: EmbeddingStore) -> None:
    session = engine.open_session(USER, "s1")
    expected = store.list_eligible(USER)
    random.Random(session.seed).shuffle(expected)

    pool = engine.next_candidate_pool(USER, "s1")

    assert [item.id for item in pool] == [item.id for item in expected]
    assert session.has_shown(pool[0].id)


def test_three_item_session_runs_to_exhaustion(engine: StyleEngine, clock: FakeClock) -> None:
    decisions = [InteractionKind.LIKE, InteractionKind.SKIP, InteractionKind.LIKE]
    seen = []

    for kind in decisions:
        pool = engine.next_candidate_pool(USER, "s1")
        head = pool[0]
        assert head.id not in seen
        seen.append(head.id)
        result = engine.record_decision(USER, head.id, kind, session_id="s1")
        assert result.accepted
        clock.advance(seconds=5)

    with pytest.raises(PoolExhausted) as excinfo:
        engine.next_candidate_pool(USER, "s1")

    assert sorted(seen) == ["a", "b", "c"]
    assert excinfo.value.like_count == 2
    assert excinfo.value.skip_count == 1
    assert engine.get_profile(USER).event_count == 3


def test_like_pulls_similar_item_to_the_front(engine: StyleEngine, store: EmbeddingStore) -> None:
    near = [0.0] * DIM
    near[0], near[1] = 0.9, 0.1
    store.upsert(make_item("near-a", near))

    engine.record_decision(USER, "a", InteractionKind.LIKE)
    pool = engine.next_candidate_pool(USER, "s1")

    assert pool[0].id == "near-a"
    assert "a" not in {item.id for item in pool}


def test_decided_items_return_in_a_new_session_after_cooldown(engine: StyleEngine, clock: FakeClock) -> None:
    engine.record_decision(USER, "a", InteractionKind.SKIP)

    assert "a" not in {item.id for item in engine.next_candidate_pool(USER, "s1")}

    clock.advance(hours=25)

    assert "a" in {item.id for item in engine.next_candidate_pool(USER, "s2")}


def test_accepted_decision_reports_sequence_and_count(engine: StyleEngine) -> None:
    first = engine.record_decision(USER, "a", "like")
    second = engine.record_decision(USER, "b", "favorite")

    assert (first.accepted, first.sequence, first.event_count) == (True, 0, 1)
    assert (second.accepted, second.kind, second.sequence, second.event_count) == (True, "favorite", 1, 2)


def test_decision_tallies_its_session(engine: StyleEngine) -> None:
    engine.open_session(USER, "s1")

    engine.record_decision(USER, "a", InteractionKind.FAVORITE, session_id="s1")
    engine.record_decision(USER, "b", InteractionKind.REMOVE, session_id="s1")
    engine.record_decision(USER, "c", InteractionKind.SKIP, session_id="s1")

    session = engine.end_session(USER, "s1")
    assert (session.like_count, session.skip_count) == (1, 2)
    assert engine.end_session(USER, "s1") is None


def test_event_captures_item_snapshot(engine: StyleEngine) -> None:
    engine.record_decision(USER, "a", InteractionKind.LIKE)

    (event,) = engine.log.stream_for_user(USER)
    assert event.embedding == basis(0)
    assert event.vibe_scores == {"minimalist": 0.9}
    assert event.timestamp == T0


@pytest.mark.parametrize(
    ("item_id", "kind", "error"),
    [
        ("missing", InteractionKind.LIKE, DecisionError.NOT_FOUND),
        ("theirs", InteractionKind.LIKE, DecisionError.NOT_FOUND),
        ("pending", InteractionKind.SKIP, DecisionError.INVALID_EMBEDDING),
        ("a", "love", DecisionError.UNKNOWN_KIND),
    ],
)
def test_malformed_decisions_are_rejected(
    engine: StyleEngine, store: EmbeddingStore, item_id: str, kind, error: DecisionError
) -> None:
    store.upsert(make_item("theirs", basis(4), user_id="user-2"))
    store.upsert(make_item("pending", None))

    result = engine.record_decision(USER, item_id, kind)

    assert not result.accepted
    assert result.error == error
    assert result.reason
    assert engine.log.count_for_user(USER) == 0
    assert engine.get_profile(USER).is_cold


def test_rebuild_matches_live_profile(engine: StyleEngine, clock: FakeClock) -> None:
    rng = random.Random(5)
    for _ in range(30):
        engine.record_decision(USER, rng.choice("abc"), rng.choice(list(InteractionKind)))
        clock.advance(minutes=1)
    live = engine.get_profile(USER)

    rebuilt = engine.rebuild(USER)

    assert rebuilt.event_count == live.event_count == 30
    assert np.allclose(rebuilt.centroid_array(), live.centroid_array(), atol=1e-9, rtol=0)
    assert rebuilt.vibe_distribution == pytest.approx(live.vibe_distribution, abs=1e-9)
    assert engine.get_profile(USER) == rebuilt


def test_restore_rebuilds_from_persisted_events(engine: StyleEngine, store: EmbeddingStore, clock: FakeClock) -> None:
    for item_id, kind in [("a", "like"), ("b", "skip"), ("c", "favorite")]:
        engine.record_decision(USER, item_id, kind)
        clock.advance(seconds=30)
    persisted = engine.log.stream_for_user(USER)

    fresh = StyleEngine(store, aggregator=ProfileAggregator(decay=0.9, dim=DIM), clock=clock)
    restored = fresh.restore(USER, reversed(persisted))

    assert [event.sequence for event in fresh.log.stream_for_user(USER)] == [0, 1, 2]
    assert restored.event_count == 3
    assert np.allclose(restored.centroid_array(), engine.get_profile(USER).centroid_array(), atol=1e-12, rtol=0)


def test_restore_refuses_to_overwrite_history(engine: StyleEngine) -> None:
    engine.record_decision(USER, "a", InteractionKind.LIKE)

    with pytest.raises(ValueError):
        engine.restore(USER, engine.log.stream_for_user(USER))


def test_concurrent_decisions_for_one_user_are_serialized(store: EmbeddingStore, clock: FakeClock) -> None:
    log = InteractionLog()
    engine = StyleEngine(
        store,
        log=log,
        aggregator=ProfileAggregator(decay=0.9, dim=DIM),
        selector=CandidateSelector(store, log, cooldown_seconds=0),
        ranker=RecommendationRanker(exploration_rate=0.0),
        clock=clock,
    )
    decisions = [("abc"[i % 3], list(InteractionKind)[i % 4]) for i in range(200)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda d: engine.record_decision(USER, d[0], d[1]), decisions))

    assert all(result.accepted for result in results)
    assert sorted(result.sequence for result in results) == list(range(200))
    assert sorted(result.event_count for result in results) == list(range(1, 201))

    live = engine.get_profile(USER)
    rebuilt = engine.rebuild(USER)
    assert live.event_count == 200
    assert np.allclose(rebuilt.centroid_array(), live.centroid_array(), atol=1e-9, rtol=0)


def test_users_do_not_share_profiles(engine: StyleEngine, store: EmbeddingStore) -> None:
    store.upsert(make_item("x", basis(5), user_id="user-2"))

    engine.record_decision("user-2", "x", InteractionKind.LIKE)

    assert engine.get_profile(USER).is_cold
    assert engine.get_profile("user-2").event_count == 1


def test_stale_publish_is_refused(engine: StyleEngine) -> None:
    engine.record_decision(USER, "a", InteractionKind.LIKE)
    stale_base = engine.aggregator.empty_profile(USER)
    candidate = stale_base.model_copy(update={"event_count": 1})

    with pytest.raises(ConcurrentProfileConflict) as excinfo:
        engine.profiles.publish(candidate, expected_count=0)

    assert excinfo.value.actual_count == 1


def test_profile_summary_lists_top_vibes(engine: StyleEngine, clock: FakeClock) -> None:
    engine.record_decision(USER, "a", InteractionKind.LIKE)
    clock.advance(seconds=1)
    engine.record_decision(USER, "b", InteractionKind.FAVORITE)

    summary = engine.get_profile(USER).summary()

    assert summary["event_count"] == 2
    assert summary["is_cold"] is False
    assert [entry["vibe"] for entry in summary["top_vibes"]] == ["cottagecore", "minimalist"]
    assert summary["last_updated"] == (T0 + timedelta(seconds=1)).isoformat()


def test_exploration_changes_the_presented_item(clock: FakeClock) -> None:
    store = EmbeddingStore(dim=DIM, items=[make_item(f"i{i:02d}", basis(i % DIM)) for i in range(21)])
    log = InteractionLog()
    engine = StyleEngine(
        store,
        log=log,
        aggregator=ProfileAggregator(decay=0.9, dim=DIM),
        selector=CandidateSelector(store, log, cooldown_seconds=24 * 60 * 60),
        ranker=RecommendationRanker(exploration_rate=0.5),
        clock=clock,
    )
    engine.record_decision(USER, "i00", InteractionKind.LIKE)

    heads = {engine.next_candidate_pool(USER, f"session-{n}")[0].id for n in range(200)}

    assert "i08" in heads
    assert len(heads) > 1


def test_evicted_user_can_be_restored(engine: StyleEngine) -> None:
    engine.record_decision(USER, "a", InteractionKind.LIKE)
    persisted = engine.log.stream_for_user(USER)

    engine.evict_user(USER)

    assert engine.log.count_for_user(USER) == 0
    assert engine.get_profile(USER).is_cold
    assert engine.restore(USER, persisted).event_count == 1
