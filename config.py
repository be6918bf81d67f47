"""Configuration constants for the Trivia Bot."""

import os
from dotenv import load_dotenv

load_dotenv()

# Difficulty multipliers
DIFFICULTY_MULTIPLIERS = {
    'easy': 1.0,
    'normal': 1.5,
    'hard': 2.0
}
DIFFICULTIES = tuple(DIFFICULTY_MULTIPLIERS)

# Channel defaults (used when nothing is persisted yet)
DEFAULT_DIFFICULTY = 'normal'
DEFAULT_QUESTION_TIME = 30  # seconds
DEFAULT_POINTS_BASE = 10
DEFAULT_BOT_LANGUAGE = 'english'

# Configurable ranges
MIN_QUESTION_TIME = 10
MAX_QUESTION_TIME = 120
MIN_POINTS_BASE = 1
MAX_POINTS_BASE = 100
MAX_ROUNDS = 10

# Bonuses
TIME_BONUS_RATIO = 0.5  # up to +50% for an instant answer
STREAK_BONUS_STEP = 0.1  # +10% per consecutive answer after the first

# Round flow
ROUND_DELAY_SECONDS = 5.0  # between rounds and before returning to idle
FINAL_SCORES_PAUSE = 1.0
MAX_QUESTION_RETRIES = 3
QUESTION_RETRY_BACKOFF = 0.5  # seconds
MIN_QUESTION_LENGTH = 10

# Deduplication
RECENT_QUESTIONS_LIMIT = 30
RECENT_ANSWERS_LIMIT = 50
ANSWER_SIMILARITY_THRESHOLD = 0.75
MIN_CONTAINMENT_LENGTH = 3

# Answer verification
MESSAGE_THROTTLE_SECONDS = 0.5
FALLBACK_SIMILARITY_THRESHOLD = 0.8
LLM_OVERRIDE_SIMILARITY = 0.5

# Reports
REPORT_TTL_SECONDS = 60

# Leaderboards
LEADERBOARD_SIZE = 5
SESSION_SCORES_SIZE = 5

# Chat transport
MAX_MESSAGE_LENGTH = 450
SEND_INTERVAL_SECONDS = 1.0

# Environment
DATABASE_PATH = os.getenv("DATABASE_PATH", "./data/trivia.db")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_API_KEY = os.getenv("LLM_API_KEY", "")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
