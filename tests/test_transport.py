"""Tests for the queued Discord transport."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bot.transport import DiscordTransport


def make_bot(channel):
    bot = MagicMock()
    bot.get_channel.return_value = channel
    bot.fetch_channel = AsyncMock(return_value=channel)
    return bot


@pytest.mark.asyncio
async def test_messages_are_sent_in_order_and_truncated():
    channel = MagicMock()
    channel.send = AsyncMock()
    transport = DiscordTransport(make_bot(channel), send_interval=0, max_length=20)

    transport.enqueue_message("123", "first")
    transport.enqueue_message("123", "second message that is far too long")
    transport.enqueue_message("123", "")
    await asyncio.sleep(0.05)

    sent = [call.args[0] for call in channel.send.await_args_list]
    assert sent == ["first", "second message..."]
    assert transport.pending("123") == 0
    await transport.close()


@pytest.mark.asyncio
async def test_send_failure_is_logged_and_queue_continues():
    channel = MagicMock()
    channel.send = AsyncMock(side_effect=[discord.DiscordException("boom"), None])
    transport = DiscordTransport(make_bot(channel), send_interval=0)

    transport.enqueue_message("123", "lost")
    transport.enqueue_message("123", "delivered")
    await asyncio.sleep(0.05)

    assert channel.send.await_count == 2
    await transport.close()


@pytest.mark.asyncio
async def test_unknown_channel_is_fetched():
    channel = MagicMock()
    channel.send = AsyncMock()
    bot = make_bot(channel)
    bot.get_channel.return_value = None
    transport = DiscordTransport(bot, send_interval=0)

    transport.enqueue_message("456", "hello")
    await asyncio.sleep(0.05)

    bot.fetch_channel.assert_awaited_once_with(456)
    channel.send.assert_awaited_once_with("hello")
    await transport.close()
