"""Main entry point for the Trivia Bot."""

import asyncio
import logging
import os

from dotenv import load_dotenv

import config
from bot.client import create_bot
from bot.events import setup_events
from bot.transport import DiscordTransport
from database.manager import DatabaseManager
from database.migrations import initialize_database
from game.engine import TriviaEngine
from oracle.client import LLMClient, TriviaOracle
from oracle.translation import LLMTranslator

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    # discord.py is chatty at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)


async def main():
    """Main function to start the bot."""
    configure_logging()

    # Get token
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        logger.error("DISCORD_TOKEN not found in environment variables! Create a .env file with your bot token.")
        return

    logger.info("Initializing database...")
    await initialize_database(config.DATABASE_PATH)

    bot = create_bot()
    transport = DiscordTransport(bot)
    llm = LLMClient()
    engine = TriviaEngine(
        oracle=TriviaOracle(llm),
        storage=DatabaseManager(config.DATABASE_PATH),
        transport=transport,
        translator=LLMTranslator(llm)
    )
    bot.trivia_engine = engine

    setup_events(bot, engine)
    await bot.load_extension('cogs.trivia_commands')

    logger.info("Starting bot...")
    try:
        await bot.start(token)
    finally:
        await engine.shutdown()
        await transport.close()
        if not bot.is_closed():
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user.")
