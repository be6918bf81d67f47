"""Discord embed builders for bot responses."""

from typing import Any, Dict, List, Optional

import discord

from game.settings import ChannelConfig


def create_leaderboard_embed(entries: List[Dict[str, Any]], channel_name: Optional[str] = None) -> discord.Embed:
    """Create embed for a channel's lifetime trivia leaderboard."""
    title = "🏆 Trivia Leaderboard"
    if channel_name:
        title += f" - #{channel_name}"

    embed = discord.Embed(
        title=title,
        color=discord.Color.gold()
    )

    # Format leaderboard
    medals = ["👑", "🥈", "🥉"]
    leaderboard_text = ""

    for i, entry in enumerate(entries, 1):
        medal = medals[i - 1] if i <= 3 else f"{i}."
        name = entry.get('display_name') or entry.get('user')
        leaderboard_text += (
            f"{medal} **{name}** - {entry.get('points', 0):,} pts"
            f" ({entry.get('correct_answers', 0)} correct)\n"
        )

    embed.description = leaderboard_text[:4096]  # Discord limit
    embed.set_footer(text="Answer trivia questions in chat to climb the board!")
    return embed


def create_config_embed(settings: ChannelConfig) -> discord.Embed:
    """Create embed showing a channel's trivia settings."""
    embed = discord.Embed(
        title="⚙️ Trivia Settings",
        color=discord.Color.blue()
    )
    embed.add_field(name="Difficulty", value=settings.difficulty.capitalize(), inline=True)
    embed.add_field(name="Question Time", value=f"{settings.question_time_seconds}s", inline=True)
    embed.add_field(name="Base Points", value=str(settings.points_base), inline=True)
    embed.add_field(name="Score Tracking", value="On" if settings.score_tracking else "Off", inline=True)
    embed.add_field(name="Time Bonus", value="On" if settings.points_time_bonus else "Off", inline=True)
    embed.add_field(
        name="Difficulty Multiplier",
        value="On" if settings.points_difficulty_multiplier else "Off",
        inline=True
    )
    embed.add_field(name="Language", value=settings.bot_language.capitalize(), inline=True)
    if settings.topic_preferences:
        embed.add_field(name="Topics", value=", ".join(settings.topic_preferences), inline=False)
    return embed
