"""Discord bot event handlers."""

import logging

import discord
from discord import app_commands
from discord.ext import commands

from game.engine import TriviaEngine

logger = logging.getLogger(__name__)


def is_round_reply(text: str) -> bool:
    """True for replies like "2" or "#2" that pick a round to report."""
    cleaned = (text or "").strip().lstrip('#')
    return cleaned.isdigit()


def setup_events(bot: commands.Bot, engine: TriviaEngine):
    """Set up event handlers for the bot."""

    @bot.event
    async def on_ready():
        """Called when bot is ready."""
        logger.info("%s has connected to Discord, in %d guilds", bot.user, len(bot.guilds))

        # Sync to every guild for instant availability, then globally
        for guild in bot.guilds:
            try:
                bot.tree.copy_global_to(guild=guild)
                synced = await bot.tree.sync(guild=guild)
                logger.info("Synced %d command(s) to guild: %s", len(synced), guild.name)
            except discord.DiscordException:
                logger.error("Failed to sync commands to %s", guild.name, exc_info=True)

        try:
            synced = await bot.tree.sync()
            logger.info("Synced %d command(s) globally", len(synced))
        except discord.DiscordException:
            logger.error("Failed to sync commands globally", exc_info=True)

    @bot.event
    async def on_message(message: discord.Message):
        if message.author.bot:
            return

        channel = str(message.channel.id)
        username = message.author.name
        if engine.awaits_report_reply(channel, username) and is_round_reply(message.content):
            result = await engine.finalize_report_with_round_number(channel, username, message.content)
            await message.reply(result.text, mention_author=False)
        else:
            await engine.process_potential_answer(channel, username, message.author.display_name, message.content)
        await bot.process_commands(message)

    @bot.event
    async def on_error(event, *args, **kwargs):
        """Handle errors."""
        logger.exception("Error in %s", event)

    @bot.tree.error
    async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Handle application command errors."""
        if isinstance(error, app_commands.CheckFailure):
            await interaction.response.send_message("You don't have permission to use this command.", ephemeral=True)
        elif isinstance(error, app_commands.CommandOnCooldown):
            await interaction.response.send_message(f"This command is on cooldown. Try again in {error.retry_after:.1f} seconds.", ephemeral=True)
        else:
            logger.error("Error in app command", exc_info=error)
            if not interaction.response.is_done():
                await interaction.response.send_message("An error occurred while executing this command.", ephemeral=True)
