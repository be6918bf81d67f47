"""Manages per-channel trivia game states."""

import asyncio
import logging
from typing import Optional, Dict

from pydantic import ValidationError

from game.interfaces import Persistence
from game.session import GameState
from game.settings import ChannelConfig

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the channel -> GameState mapping."""

    def __init__(self, storage: Persistence):
        self.storage = storage
        # Dictionary mapping channel to its game state
        self._states: Dict[str, GameState] = {}
        # Creation locks, one per channel, so channels never wait on each other
        self._locks: Dict[str, asyncio.Lock] = {}

    async def get_or_create(self, channel: str) -> GameState:
        """Get the channel's state, loading its persisted config on first use."""
        state = self._states.get(channel)
        if state is not None:
            return state

        lock = self._locks.setdefault(channel, asyncio.Lock())
        async with lock:
            state = self._states.get(channel)
            if state is None:
                settings = await self._load_config(channel)
                state = GameState(channel=channel, config=settings)
                self._states[channel] = state
                logger.debug("[%s] Created new game state", channel)
        return state

    async def _load_config(self, channel: str) -> ChannelConfig:
        stored = None
        try:
            stored = await self.storage.load_channel_config(channel)
        except Exception:
            logger.error("[%s] Failed to load channel config, using defaults", channel, exc_info=True)

        if stored:
            try:
                settings = ChannelConfig.model_validate(stored)
            except ValidationError:
                logger.warning("[%s] Saved config is invalid, using defaults", channel, exc_info=True)
            else:
                logger.info("[%s] Loaded saved config", channel)
                return settings
        else:
            logger.info("[%s] No saved config found, using defaults", channel)

        settings = ChannelConfig()
        try:
            await self.storage.save_channel_config(channel, settings.model_dump())
        except Exception:
            logger.error("[%s] Failed to save default config", channel, exc_info=True)
        return settings

    def get(self, channel: str) -> Optional[GameState]:
        """Get a channel's state without creating it."""
        return self._states.get(channel)

    def reset(self, channel: str) -> GameState:
        """Replace the channel's state with an idle one that keeps only its config."""
        old = self._states.get(channel)
        if old is not None:
            old.cancel_timer()
            settings = old.config
        else:
            settings = ChannelConfig()
        state = GameState(channel=channel, config=settings)
        self._states[channel] = state
        logger.info("[%s] Game state reset to idle", channel)
        return state

    def clear(self):
        for state in self._states.values():
            state.cancel_timer()
        self._states.clear()
        self._locks.clear()
