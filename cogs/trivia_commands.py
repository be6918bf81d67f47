"""Slash commands for trivia games."""

import logging
from typing import Any, Dict, Optional

import discord
from discord import app_commands
from discord.ext import commands

import config
from game.engine import TriviaEngine
from game.errors import PermissionDenied
from utils.embeds import create_config_embed, create_leaderboard_embed

logger = logging.getLogger(__name__)


def can_moderate(interaction: discord.Interaction) -> bool:
    """Members who can manage messages count as moderators."""
    permissions = interaction.permissions
    return bool(permissions and (permissions.manage_messages or permissions.administrator))


def ensure_can_stop(engine: TriviaEngine, channel: str, username: str, moderator: bool):
    """
    Only the game's initiator or a moderator may stop it.

    Raises:
        PermissionDenied: the user is neither
    """
    if moderator:
        return
    initiator = engine.get_current_game_initiator(channel)
    if initiator is not None and initiator != username.lower():
        raise PermissionDenied("Only the player who started the game or a moderator can stop it.")


def ensure_moderator(moderator: bool, action: str):
    if not moderator:
        raise PermissionDenied(f"Only moderators can {action}.")


def build_config_options(**values: Any) -> Dict[str, Any]:
    """Drop options the user did not supply."""
    return {key: value for key, value in values.items() if value is not None}


class TriviaCommands(commands.Cog):
    """Trivia game commands."""

    def __init__(self, bot: commands.Bot, engine: TriviaEngine):
        self.bot = bot
        self.engine = engine

    @staticmethod
    async def _reply(interaction: discord.Interaction, text: str, ephemeral: bool = True):
        if interaction.response.is_done():
            await interaction.followup.send(text, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(text, ephemeral=ephemeral)

    @app_commands.command(name="trivia_start", description="Start a trivia game in this channel")
    @app_commands.describe(topic="Question topic (default: general knowledge)", rounds="Number of rounds")
    async def start(
        self,
        interaction: discord.Interaction,
        topic: Optional[str] = None,
        rounds: app_commands.Range[int, 1, config.MAX_ROUNDS] = 1
    ):
        """Start a trivia game."""
        # Question generation can outlast the interaction window
        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await self.engine.start_game(
            str(interaction.channel_id), topic, interaction.user.name, rounds
        )
        await self._reply(interaction, ("✅ " if result.success else "❌ ") + result.text)

    @app_commands.command(name="trivia_stop", description="Stop the current trivia game")
    async def stop(self, interaction: discord.Interaction):
        """Stop the running game."""
        channel = str(interaction.channel_id)
        try:
            ensure_can_stop(self.engine, channel, interaction.user.name, can_moderate(interaction))
        except PermissionDenied as e:
            await self._reply(interaction, f"❌ {e}")
            return

        result = await self.engine.stop_game(channel)
        await self._reply(interaction, ("✅ " if result.success else "❌ ") + result.text)

    @app_commands.command(name="trivia_config", description="View or change trivia settings for this channel")
    @app_commands.describe(
        difficulty="Question difficulty",
        question_time="Seconds to answer each question",
        points_base="Base points for a correct answer",
        score_tracking="Keep a lifetime leaderboard",
        time_bonus="Award extra points for fast answers",
        difficulty_multiplier="Scale points by difficulty",
        language="Language players answer in",
        topics="Preferred topics, comma separated"
    )
    @app_commands.choices(difficulty=[
        app_commands.Choice(name="Easy", value="easy"),
        app_commands.Choice(name="Normal", value="normal"),
        app_commands.Choice(name="Hard", value="hard")
    ])
    async def configure(
        self,
        interaction: discord.Interaction,
        difficulty: Optional[str] = None,
        question_time: Optional[app_commands.Range[int, config.MIN_QUESTION_TIME, config.MAX_QUESTION_TIME]] = None,
        points_base: Optional[app_commands.Range[int, config.MIN_POINTS_BASE, config.MAX_POINTS_BASE]] = None,
        score_tracking: Optional[bool] = None,
        time_bonus: Optional[bool] = None,
        difficulty_multiplier: Optional[bool] = None,
        language: Optional[str] = None,
        topics: Optional[str] = None
    ):
        """View or change settings."""
        channel = str(interaction.channel_id)
        options = build_config_options(
            difficulty=difficulty,
            question_time_seconds=question_time,
            points_base=points_base,
            score_tracking=score_tracking,
            points_time_bonus=time_bonus,
            points_difficulty_multiplier=difficulty_multiplier,
            bot_language=language,
            topic_preferences=topics
        )

        if not options:
            state = await self.engine.sessions.get_or_create(channel)
            await interaction.response.send_message(embed=create_config_embed(state.config), ephemeral=True)
            return

        try:
            ensure_moderator(can_moderate(interaction), "change trivia settings")
        except PermissionDenied as e:
            await self._reply(interaction, f"❌ {e}")
            return

        result = await self.engine.configure_game(channel, options)
        await self._reply(interaction, ("✅ " if result.success else "❌ ") + result.text)

    @app_commands.command(name="trivia_resetconfig", description="Reset trivia settings to defaults")
    async def reset_config(self, interaction: discord.Interaction):
        try:
            ensure_moderator(can_moderate(interaction), "reset trivia settings")
        except PermissionDenied as e:
            await self._reply(interaction, f"❌ {e}")
            return

        result = await self.engine.reset_channel_config(str(interaction.channel_id))
        await self._reply(interaction, ("✅ " if result.success else "❌ ") + result.text)

    @app_commands.command(name="trivia_leaderboard", description="View this channel's trivia leaderboard")
    async def leaderboard(self, interaction: discord.Interaction):
        """View the leaderboard."""
        entries = await self.engine.get_leaderboard(str(interaction.channel_id), config.LEADERBOARD_SIZE)
        if not entries:
            await interaction.response.send_message("❌ No leaderboard data available yet!", ephemeral=True)
            return

        channel_name = getattr(interaction.channel, 'name', None)
        await interaction.response.send_message(embed=create_leaderboard_embed(entries, channel_name))

    @app_commands.command(name="trivia_clearleaderboard", description="Clear this channel's trivia leaderboard")
    async def clear_leaderboard(self, interaction: discord.Interaction):
        try:
            ensure_moderator(can_moderate(interaction), "clear the leaderboard")
        except PermissionDenied as e:
            await self._reply(interaction, f"❌ {e}")
            return

        result = await self.engine.clear_leaderboard(str(interaction.channel_id))
        await self._reply(interaction, ("✅ " if result.success else "❌ ") + result.text)

    @app_commands.command(name="trivia_report", description="Report a bad question from the last game")
    @app_commands.describe(reason="What was wrong with the question")
    async def report(self, interaction: discord.Interaction, reason: str):
        """Flag a question from the last finished game."""
        result = await self.engine.initiate_report_process(
            str(interaction.channel_id), reason, interaction.user.name
        )
        await self._reply(interaction, result.text)


async def setup(bot: commands.Bot):
    """Load the cog."""
    await bot.add_cog(TriviaCommands(bot, bot.trivia_engine))
