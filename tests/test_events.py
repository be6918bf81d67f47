"""Tests for chat message routing."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bot.events import setup_events
from game.errors import GameResult


def register_handlers(engine):
    handlers = {}

    def event(func):
        handlers[func.__name__] = func
        return func

    bot = MagicMock()
    bot.event.side_effect = event
    bot.tree.error.side_effect = lambda func: func
    bot.process_commands = AsyncMock()
    setup_events(bot, engine)
    return bot, handlers


def make_message(content, author_name="Carol"):
    message = MagicMock()
    message.author.bot = False
    message.author.name = author_name
    message.author.display_name = author_name
    message.channel.id = 1001
    message.content = content
    message.reply = AsyncMock()
    return message


def make_engine(awaits_reply):
    engine = MagicMock()
    engine.awaits_report_reply.return_value = awaits_reply
    engine.finalize_report_with_round_number = AsyncMock(
        return_value=GameResult.fail("Your report session timed out. Please start the report again.")
    )
    engine.process_potential_answer = AsyncMock()
    return engine


@pytest.mark.asyncio
async def test_round_number_after_expiry_gets_timeout_reply():
    engine = make_engine(awaits_reply=True)
    bot, handlers = register_handlers(engine)
    message = make_message("2")

    await handlers['on_message'](message)

    engine.finalize_report_with_round_number.assert_awaited_once_with("1001", "Carol", "2")
    engine.process_potential_answer.assert_not_awaited()
    assert "timed out" in message.reply.await_args.args[0]
    bot.process_commands.assert_awaited_once_with(message)


@pytest.mark.asyncio
async def test_plain_text_goes_to_answer_path():
    engine = make_engine(awaits_reply=True)
    _, handlers = register_handlers(engine)
    message = make_message("Paris")

    await handlers['on_message'](message)

    engine.finalize_report_with_round_number.assert_not_awaited()
    engine.process_potential_answer.assert_awaited_once_with("1001", "Carol", "Carol", "Paris")


@pytest.mark.asyncio
async def test_number_without_report_is_a_guess():
    engine = make_engine(awaits_reply=False)
    _, handlers = register_handlers(engine)

    await handlers['on_message'](make_message("1969"))

    engine.process_potential_answer.assert_awaited_once()


@pytest.mark.asyncio
async def test_bot_messages_are_ignored():
    engine = make_engine(awaits_reply=True)
    bot, handlers = register_handlers(engine)
    message = make_message("2")
    message.author.bot = True

    await handlers['on_message'](message)

    engine.finalize_report_with_round_number.assert_not_awaited()
    bot.process_commands.assert_not_awaited()
