"""Tests for settings defaults and log redaction."""

from __future__ import annotations

import pytest

from style_engine.core import constants
from style_engine.core.config import Settings
from style_engine.core.security import redact_user_id


def test_settings_defaults_come_from_constants(monkeypatch) -> None:
    for name in ("EMBEDDING_DIM", "DECAY", "SKIP_WEIGHT", "FAVORITE_WEIGHT", "REMOVE_WEIGHT"):
        monkeypatch.delenv(name, raising=False)
    for name in ("COOLDOWN_SECONDS", "EMBEDDING_BLEND", "EXPLORATION_RATE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.EMBEDDING_DIM == constants.DEFAULT_EMBEDDING_DIM
    assert settings.DECAY == constants.DEFAULT_DECAY
    assert settings.SKIP_WEIGHT == constants.DEFAULT_SKIP_WEIGHT
    assert settings.FAVORITE_WEIGHT == constants.DEFAULT_FAVORITE_WEIGHT
    assert settings.REMOVE_WEIGHT == constants.DEFAULT_REMOVE_WEIGHT
    assert settings.COOLDOWN_SECONDS == constants.DEFAULT_COOLDOWN_SECONDS
    assert settings.EMBEDDING_BLEND == constants.DEFAULT_EMBEDDING_BLEND
    assert settings.EXPLORATION_RATE == constants.DEFAULT_EXPLORATION_RATE


def test_environment_overrides_defaults(monkeypatch) -> None:
    monkeypatch.setenv("exploration_rate", "0.25")

    assert Settings(_env_file=None).EXPLORATION_RATE == 0.25


@pytest.mark.parametrize(
    ("user_id", "expected"),
    [
        (None, "None"),
        ("", "None"),
        ("abc", "abc"),
        ("auth0|5f2c9e81", "auth0|***"),
    ],
)
def test_redact_user_id(user_id, expected: str) -> None:
    assert redact_user_id(user_id) == expected
