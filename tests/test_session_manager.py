"""Tests for per-channel state ownership."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from game.session import GamePhase
from game.session_manager import SessionManager


@pytest.mark.asyncio
async def test_creates_state_once_per_channel(storage):
    manager = SessionManager(storage)

    first, second = await asyncio.gather(manager.get_or_create("a"), manager.get_or_create("a"))

    assert first is second
    assert first.phase == GamePhase.IDLE
    assert storage.configs["a"]['difficulty'] == 'normal'


@pytest.mark.asyncio
async def test_loads_saved_config(storage):
    storage.configs["a"] = {'difficulty': 'hard', 'question_time_seconds': 20}
    manager = SessionManager(storage)

    state = await manager.get_or_create("a")

    assert state.config.difficulty == 'hard'
    assert state.config.question_time_seconds == 20


@pytest.mark.asyncio
async def test_storage_failure_falls_back_to_defaults():
    storage = AsyncMock()
    storage.load_channel_config.side_effect = RuntimeError("db locked")
    storage.save_channel_config.side_effect = RuntimeError("db locked")
    manager = SessionManager(storage)

    state = await manager.get_or_create("a")

    assert state.config.difficulty == 'normal'


@pytest.mark.asyncio
async def test_reset_keeps_config(storage):
    manager = SessionManager(storage)
    state = await manager.get_or_create("a")
    state.config.difficulty = 'easy'
    state.phase = GamePhase.ENDING

    fresh = manager.reset("a")

    assert fresh is not state
    assert fresh.phase == GamePhase.IDLE
    assert fresh.config.difficulty == 'easy'
    assert manager.get("a") is fresh
    assert manager.get("b") is None


@pytest.mark.asyncio
async def test_invalid_saved_config_is_replaced_with_defaults(storage):
    storage.configs["a"] = {'difficulty': 'impossible', 'points_base': 9000}
    manager = SessionManager(storage)

    state = await manager.get_or_create("a")

    assert state.config.difficulty == 'normal'
    assert storage.configs["a"]['points_base'] == 10
