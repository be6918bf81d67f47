"""Tests for ChannelConfig parsing and validation."""

import pytest
from pydantic import ValidationError

from game.settings import ChannelConfig


def test_defaults():
    settings = ChannelConfig()
    assert settings.difficulty == 'normal'
    assert settings.question_time_seconds == 30
    assert settings.points_base == 10
    assert settings.score_tracking and settings.points_time_bonus and settings.points_difficulty_multiplier


def test_apply_string_options():
    settings = ChannelConfig()
    update = settings.apply({
        'difficulty': 'HARD',
        'question_time_seconds': '60',
        'points_time_bonus': 'off',
        'topic_preferences': 'history, science ,',
    })

    assert update.changed
    assert update.errors == []
    assert settings.difficulty == 'hard'
    assert settings.question_time_seconds == 60
    assert settings.points_time_bonus is False
    assert settings.topic_preferences == ['history', 'science']


def test_invalid_values_are_reported_not_applied():
    settings = ChannelConfig()
    update = settings.apply({'difficulty': 'insane', 'points_base': 500, 'score_tracking': 'maybe'})

    assert not update.changed
    assert len(update.errors) == 3
    assert settings.difficulty == 'normal'
    assert settings.points_base == 10
    assert settings.score_tracking is True


def test_unchanged_value_is_not_a_change():
    settings = ChannelConfig()
    assert not settings.apply({'difficulty': 'normal'}).changed


def test_round_trip_ignores_unknown_keys():
    stored = dict(ChannelConfig(difficulty='easy').model_dump(), legacy_field=True)
    assert ChannelConfig.model_validate(stored).difficulty == 'easy'


def test_stored_values_out_of_range_are_rejected():
    with pytest.raises(ValidationError):
        ChannelConfig.model_validate({'question_time_seconds': 5})


def test_chat_spellings_of_toggles_and_padding():
    settings = ChannelConfig()
    update = settings.apply({'score_tracking': 'Disabled', 'points_base': ' 25 ', 'bot_language': '  French'})

    assert update.errors == []
    assert settings.score_tracking is False
    assert settings.points_base == 25
    assert settings.bot_language == 'french'
    assert update.changes == ["Score tracking disabled", "Base points set to 25", "Bot language set to french"]


def test_out_of_range_time_keeps_other_valid_options():
    settings = ChannelConfig()
    update = settings.apply({'question_time_seconds': '1000', 'difficulty': 'easy'})

    assert update.changes == ["Difficulty set to easy"]
    assert update.errors == ['Invalid question time "1000". Must be between 10 and 120 seconds.']
    assert settings.question_time_seconds == 30
