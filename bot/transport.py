"""Outbound chat messages with per-channel ordering and pacing."""

import asyncio
import logging
from typing import Dict, Optional

import discord

import config
from utils.formatters import truncate_text

logger = logging.getLogger(__name__)


class DiscordTransport:
    """
    Queues messages per channel and sends them in order.

    ``enqueue_message`` never blocks and never raises; one sender task per
    channel drains its queue with at least ``send_interval`` seconds
    between sends.
    """

    def __init__(
        self,
        bot: discord.Client,
        send_interval: float = config.SEND_INTERVAL_SECONDS,
        max_length: int = config.MAX_MESSAGE_LENGTH
    ):
        self.bot = bot
        self.send_interval = send_interval
        self.max_length = max_length
        self._queues: Dict[str, asyncio.Queue] = {}
        self._senders: Dict[str, asyncio.Task] = {}

    def enqueue_message(self, channel: str, text: str):
        if not text:
            return
        queue = self._queues.get(channel)
        if queue is None:
            queue = self._queues[channel] = asyncio.Queue()
        queue.put_nowait(truncate_text(text, self.max_length))

        sender = self._senders.get(channel)
        if sender is None or sender.done():
            self._senders[channel] = asyncio.create_task(self._drain(channel), name=f"sender-{channel}")

    async def _resolve_channel(self, channel: str) -> Optional[discord.abc.Messageable]:
        target = self.bot.get_channel(int(channel))
        if target is None:
            target = await self.bot.fetch_channel(int(channel))
        return target

    async def _drain(self, channel: str):
        queue = self._queues[channel]
        while not queue.empty():
            text = queue.get_nowait()
            try:
                target = await self._resolve_channel(channel)
                await target.send(text)
            except (discord.DiscordException, ValueError):
                logger.error("[%s] Failed to send message: %r", channel, text[:80], exc_info=True)
            finally:
                queue.task_done()
            await asyncio.sleep(self.send_interval)

    def pending(self, channel: str) -> int:
        queue = self._queues.get(channel)
        return queue.qsize() if queue else 0

    async def close(self):
        """Stop all sender tasks, dropping unsent messages."""
        for task in self._senders.values():
            task.cancel()
        await asyncio.gather(*self._senders.values(), return_exceptions=True)
        self._senders.clear()
        self._queues.clear()
