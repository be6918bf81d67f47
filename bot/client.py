"""Discord bot client setup."""

import discord
from discord.ext import commands

BOT_DESCRIPTION = "Chat trivia with generated questions, multi-round games and leaderboards."


def create_bot(activity_name: str = "/trivia_start") -> commands.Bot:
    """Create a bot that can read chat answers and post rounds."""
    intents = discord.Intents.default()
    # Answers arrive as plain chat messages
    intents.message_content = True
    intents.guilds = True

    bot = commands.Bot(
        command_prefix=commands.when_mentioned,
        description=BOT_DESCRIPTION,
        intents=intents,
        activity=discord.Game(name=activity_name),
        # Round messages name winners with "@display_name"; never ping them
        allowed_mentions=discord.AllowedMentions.none()
    )
    return bot
