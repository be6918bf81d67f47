"""Per-channel trivia settings."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationError, field_validator

import config

# Chat-friendly spellings pydantic's bool parsing does not know
_BOOL_WORDS = {'enable': True, 'enabled': True, 'disable': False, 'disabled': False}

TOGGLE_LABELS = {
    'score_tracking': 'Score tracking',
    'points_time_bonus': 'Time bonus',
    'points_difficulty_multiplier': 'Difficulty multiplier',
}


@dataclass
class ConfigUpdate:
    """Outcome of applying configuration options."""
    changes: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class ChannelConfig(BaseModel):
    """Persisted trivia settings for one channel."""
    difficulty: str = config.DEFAULT_DIFFICULTY
    question_time_seconds: int = Field(
        default=config.DEFAULT_QUESTION_TIME,
        ge=config.MIN_QUESTION_TIME,
        le=config.MAX_QUESTION_TIME,
    )
    score_tracking: bool = True
    topic_preferences: List[str] = Field(default_factory=list)
    points_base: int = Field(
        default=config.DEFAULT_POINTS_BASE,
        ge=config.MIN_POINTS_BASE,
        le=config.MAX_POINTS_BASE,
    )
    points_time_bonus: bool = True
    points_difficulty_multiplier: bool = True
    bot_language: str = Field(default=config.DEFAULT_BOT_LANGUAGE, min_length=1)

    @field_validator("difficulty", "bot_language", mode="before")
    @classmethod
    def normalize_word(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("difficulty")
    @classmethod
    def check_difficulty(cls, v: str) -> str:
        if v not in config.DIFFICULTIES:
            raise ValueError(f"unknown difficulty {v!r}")
        return v

    @field_validator("question_time_seconds", "points_base", mode="before")
    @classmethod
    def strip_number(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("score_tracking", "points_time_bonus", "points_difficulty_multiplier", mode="before")
    @classmethod
    def parse_toggle(cls, v: Any) -> Any:
        if isinstance(v, str):
            text = v.strip().lower()
            return _BOOL_WORDS.get(text, text)
        return v

    @field_validator("topic_preferences", mode="before")
    @classmethod
    def split_topics(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(',')
        if isinstance(v, (list, tuple)):
            return [str(t).strip() for t in v if str(t).strip()]
        return v

    def apply(self, options: Dict[str, Any]) -> ConfigUpdate:
        """
        Apply user supplied options in place.

        Each option is validated on its own against the current settings,
        so one bad value does not block the others. Invalid values are
        reported in ``errors`` and leave the field as is.

        Returns:
            ConfigUpdate describing what changed
        """
        update = ConfigUpdate()
        for name in type(self).model_fields:
            if name not in options:
                continue
            try:
                candidate = type(self).model_validate({**self.model_dump(), name: options[name]})
            except ValidationError:
                update.errors.append(_error_message(name, options[name]))
                continue
            value = getattr(candidate, name)
            if value != getattr(self, name):
                setattr(self, name, value)
                update.changes.append(_change_message(name, value))
        return update


def _error_message(name: str, raw: Any) -> str:
    if name == 'difficulty':
        return f'Invalid difficulty "{raw}". Use one of: {", ".join(config.DIFFICULTIES)}.'
    if name == 'question_time_seconds':
        return (
            f'Invalid question time "{raw}". '
            f'Must be between {config.MIN_QUESTION_TIME} and {config.MAX_QUESTION_TIME} seconds.'
        )
    if name == 'points_base':
        return (
            f'Invalid base points "{raw}". '
            f'Must be between {config.MIN_POINTS_BASE} and {config.MAX_POINTS_BASE}.'
        )
    if name in TOGGLE_LABELS:
        return f'Invalid value "{raw}" for {TOGGLE_LABELS[name].lower()}. Use on or off.'
    if name == 'bot_language':
        return "Bot language cannot be empty."
    return f'Invalid value "{raw}" for {name}.'


def _change_message(name: str, value: Any) -> str:
    if name == 'difficulty':
        return f"Difficulty set to {value}"
    if name == 'question_time_seconds':
        return f"Question time set to {value} seconds"
    if name == 'points_base':
        return f"Base points set to {value}"
    if name in TOGGLE_LABELS:
        return f"{TOGGLE_LABELS[name]} {'enabled' if value else 'disabled'}"
    if name == 'topic_preferences':
        return f"Topic preferences set to: {', '.join(value) or 'None'}"
    return f"Bot language set to {value}"
