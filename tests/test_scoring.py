"""Tests for scoring calculations."""

from game.scoring import calculate_points, record_correct, reset_streaks


def test_hard_question_answered_instantly():
    assert calculate_points(10, 'hard', 0.0, 30) == 30


def test_streak_of_three_adds_twenty_percent():
    assert calculate_points(10, 'hard', 0.0, 30, streak=3) == 36


def test_no_time_bonus_after_window():
    assert calculate_points(10, 'normal', 30.0, 30) == 15
    assert calculate_points(10, 'normal', 45.0, 30) == 15


def test_toggles_disable_bonuses():
    assert calculate_points(10, 'hard', 0.0, 30, time_bonus=False) == 20
    assert calculate_points(10, 'hard', 0.0, 30, difficulty_multiplier=False) == 15
    assert calculate_points(10, 'hard', 0.0, 30, time_bonus=False, difficulty_multiplier=False) == 10


def test_half_time_remaining():
    # 15 + floor(15 * 0.5 * 0.5)
    assert calculate_points(10, 'normal', 15.0, 30) == 18


def test_streak_tracking():
    streaks = {}
    assert record_correct(streaks, 'bob') == 1
    assert record_correct(streaks, 'bob') == 2
    assert record_correct(streaks, 'amy') == 1
    reset_streaks(streaks)
    assert streaks == {}
