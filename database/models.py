"""Database models and schemas."""

# SQL schemas for all tables

CREATE_CHANNEL_CONFIGS_TABLE = """
CREATE TABLE IF NOT EXISTS channel_configs (
    channel_id TEXT PRIMARY KEY,
    settings TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

CREATE_ROUND_HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS round_history (
    record_id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL,
    channel_id TEXT NOT NULL,
    topic TEXT,
    question TEXT,
    answer TEXT,
    difficulty TEXT,
    winner TEXT,
    winner_display TEXT,
    duration_seconds REAL,
    reason_ended TEXT NOT NULL,
    round_number INTEGER DEFAULT 1,
    total_rounds INTEGER DEFAULT 1,
    points_awarded INTEGER DEFAULT 0,
    flagged BOOLEAN DEFAULT FALSE,
    flag_reason TEXT,
    flagged_by TEXT,
    flagged_at TIMESTAMP,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

CREATE_PLAYER_STATS_TABLE = """
CREATE TABLE IF NOT EXISTS player_stats (
    channel_id TEXT NOT NULL,
    username TEXT NOT NULL,
    display_name TEXT,
    points INTEGER DEFAULT 0,
    correct_answers INTEGER DEFAULT 0,
    last_played TIMESTAMP,
    PRIMARY KEY (channel_id, username)
);
"""

ALL_TABLES = [
    CREATE_CHANNEL_CONFIGS_TABLE,
    CREATE_ROUND_HISTORY_TABLE,
    CREATE_PLAYER_STATS_TABLE,
]

# Indexes for performance
CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_history_channel ON round_history(channel_id, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_history_topic ON round_history(channel_id, topic);",
    "CREATE INDEX IF NOT EXISTS idx_history_session ON round_history(session_id);",
    "CREATE INDEX IF NOT EXISTS idx_player_stats_points ON player_stats(channel_id, points DESC);",
]
