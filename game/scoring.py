"""Scoring calculations for trivia rounds."""

import math
from typing import Dict

import config


def calculate_points(
    base: int,
    difficulty: str,
    elapsed_seconds: float,
    question_time_seconds: float,
    streak: int = 0,
    time_bonus: bool = True,
    difficulty_multiplier: bool = True
) -> int:
    """
    Calculate points for a correct answer.

    Args:
        base: Base points for the channel
        difficulty: Difficulty of the question (easy, normal, hard)
        elapsed_seconds: Time from question post to the correct answer
        question_time_seconds: Length of the answer window
        streak: Winner's consecutive correct answers before this round
        time_bonus: Whether fast answers earn up to 50% extra
        difficulty_multiplier: Whether to scale by difficulty

    Returns:
        Final points as integer
    """
    points = float(base)

    if difficulty_multiplier and difficulty:
        points *= config.DIFFICULTY_MULTIPLIERS.get(difficulty.lower(), 1.0)

    if time_bonus and question_time_seconds > 0:
        remaining_ratio = max(0.0, (question_time_seconds - elapsed_seconds) / question_time_seconds)
        points += math.floor(points * config.TIME_BONUS_RATIO * remaining_ratio)

    if streak > 1:
        points *= 1 + (streak - 1) * config.STREAK_BONUS_STEP

    # Float noise (e.g. 30 * 1.2 = 35.999...) must not cost a point
    return max(0, math.floor(round(points, 6)))


def record_correct(streaks: Dict[str, int], username: str) -> int:
    """Bump a winner's streak and return the new value."""
    streaks[username] = streaks.get(username, 0) + 1
    return streaks[username]


def reset_streaks(streaks: Dict[str, int]):
    """Any round without a winner breaks every streak."""
    streaks.clear()
