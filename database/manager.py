"""Database operations manager."""

import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

import config
from game.errors import PersistenceFailed
from game.interfaces import CompletedSession, SessionItem

logger = logging.getLogger(__name__)


class StorageError(PersistenceFailed):
    """Raised when a database operation fails."""
    pass


class DatabaseManager:
    """Manages all database operations."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.DATABASE_PATH

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, turning driver errors into StorageError."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            raise StorageError(f"Database operation failed: {e}") from e

    # Channel configuration
    async def load_channel_config(self, channel: str) -> Optional[Dict[str, Any]]:
        """Get a channel's saved settings, or None if it has none."""
        async with self._connect() as db:
            async with db.execute(
                "SELECT settings FROM channel_configs WHERE channel_id = ?",
                (channel,)
            ) as cursor:
                row = await cursor.fetchone()
        if not row:
            return None
        try:
            return json.loads(row['settings'])
        except ValueError:
            logger.warning("[%s] Stored config is not valid JSON, ignoring it", channel)
            return None

    async def save_channel_config(self, channel: str, settings: Dict[str, Any]):
        """Create or replace a channel's settings."""
        async with self._connect() as db:
            await db.execute(
                """
                INSERT INTO channel_configs (channel_id, settings, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(channel_id) DO UPDATE SET
                    settings = excluded.settings,
                    updated_at = excluded.updated_at
                """,
                (channel, json.dumps(settings), datetime.utcnow())
            )
            await db.commit()

    # Round history
    async def record_round_result(self, details: Dict[str, Any]) -> str:
        """Save one finished round and return its record id."""
        record_id = str(uuid.uuid4())

        async with self._connect() as db:
            await db.execute(
                """
                INSERT INTO round_history
                (record_id, session_id, channel_id, topic, question, answer, difficulty,
                 winner, winner_display, duration_seconds, reason_ended,
                 round_number, total_rounds, points_awarded)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record_id,
                    details['session_id'],
                    details['channel'],
                    details.get('topic') or 'general',
                    details['question'],
                    details['answer'],
                    details.get('difficulty'),
                    details.get('winner'),
                    details.get('winner_display'),
                    details.get('duration_seconds'),
                    details['reason_ended'],
                    details.get('round_number', 1),
                    details.get('total_rounds', 1),
                    details.get('points_awarded', 0),
                )
            )
            await db.commit()

        return record_id

    async def _recent_column(self, column: str, channel: str, topic: Optional[str], limit: int) -> List[str]:
        query = f"SELECT {column} FROM round_history WHERE channel_id = ?"
        params: List[Any] = [channel]
        if topic:
            query += " AND topic = ?"
            params.append(topic)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        async with self._connect() as db:
            async with db.execute(query, params) as cursor:
                return [row[0] async for row in cursor if row[0]]

    async def get_recent_questions(self, channel: str, topic: Optional[str], limit: int) -> List[str]:
        """Most recent question texts asked in a channel, newest first."""
        return await self._recent_column('question', channel, topic, limit)

    async def get_recent_answers(self, channel: str, topic: Optional[str], limit: int) -> List[str]:
        """Most recent answers in a channel, newest first."""
        return await self._recent_column('answer', channel, topic, limit)

    async def get_latest_completed_session(self, channel: str) -> Optional[CompletedSession]:
        """
        Get the most recent session in the channel that ran to its end.

        A session counts as completed once its last round was recorded, or
        once it was stopped or aborted by a generation failure. Marker rows
        for rounds that never got a question are left out of the items.
        """
        async with self._connect() as db:
            async with db.execute(
                """
                SELECT session_id, MAX(total_rounds) AS total_rounds
                FROM round_history
                WHERE channel_id = ?
                GROUP BY session_id
                HAVING MAX(round_number) >= MAX(total_rounds)
                    OR SUM(reason_ended IN ('stopped', 'question_error')) > 0
                ORDER BY MAX(created_at) DESC, MAX(rowid) DESC
                LIMIT 1
                """,
                (channel,)
            ) as cursor:
                session_row = await cursor.fetchone()
            if not session_row:
                return None

            async with db.execute(
                """
                SELECT round_number, record_id, question, answer
                FROM round_history
                WHERE session_id = ? AND question IS NOT NULL
                ORDER BY round_number
                """,
                (session_row['session_id'],)
            ) as cursor:
                items = [
                    SessionItem(
                        round_number=row['round_number'],
                        record_id=row['record_id'],
                        question=row['question'],
                        answer=row['answer']
                    )
                    async for row in cursor
                ]

        return CompletedSession(
            session_id=session_row['session_id'],
            total_rounds=session_row['total_rounds'],
            items=items
        )

    async def flag_record_by_id(self, record_id: str, reason: str, reporter: str):
        """Mark a round's question as problematic."""
        async with self._connect() as db:
            cursor = await db.execute(
                """
                UPDATE round_history
                SET flagged = TRUE,
                    flag_reason = ?,
                    flagged_by = ?,
                    flagged_at = ?
                WHERE record_id = ?
                """,
                (reason, reporter, datetime.utcnow(), record_id)
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise StorageError(f"No round history record {record_id}")

    # Player operations
    async def update_player_score(self, username: str, channel: str, points: int, display_name: str):
        """Add points and one correct answer to a player's channel totals."""
        async with self._connect() as db:
            await db.execute(
                """
                INSERT INTO player_stats (channel_id, username, display_name, points, correct_answers, last_played)
                VALUES (?, ?, ?, ?, 1, ?)
                ON CONFLICT(channel_id, username) DO UPDATE SET
                    display_name = excluded.display_name,
                    points = points + excluded.points,
                    correct_answers = correct_answers + 1,
                    last_played = excluded.last_played
                """,
                (channel, username.lower(), display_name, points, datetime.utcnow())
            )
            await db.commit()

    async def get_player_stats(self, username: str, channel: str) -> Optional[Dict[str, Any]]:
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM player_stats WHERE channel_id = ? AND username = ?",
                (channel, username.lower())
            ) as cursor:
                row = await cursor.fetchone()
        return dict(row) if row else None

    # Leaderboard operations
    async def get_leaderboard(self, channel: str, limit: int = config.LEADERBOARD_SIZE) -> List[Dict[str, Any]]:
        """Get a channel's players ranked by lifetime points."""
        async with self._connect() as db:
            async with db.execute(
                """
                SELECT username, display_name, points, correct_answers
                FROM player_stats
                WHERE channel_id = ? AND points > 0
                ORDER BY points DESC, correct_answers DESC, username
                LIMIT ?
                """,
                (channel, limit)
            ) as cursor:
                return [
                    {
                        'user': row['username'],
                        'display_name': row['display_name'] or row['username'],
                        'points': row['points'],
                        'correct_answers': row['correct_answers'],
                    }
                    async for row in cursor
                ]

    async def clear_leaderboard(self, channel: str) -> int:
        """Delete a channel's player totals and return how many were removed."""
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM player_stats WHERE channel_id = ?", (channel,))
            await db.commit()
            return cursor.rowcount
