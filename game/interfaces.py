"""Collaborator interfaces the engine depends on."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from game.session import TriviaQuestion


@dataclass
class Verdict:
    is_correct: bool
    confidence: float = 0.0
    reasoning: str = ""


@dataclass
class SessionItem:
    round_number: int
    record_id: str
    question: str
    answer: str


@dataclass
class CompletedSession:
    session_id: str
    total_rounds: int
    items: List[SessionItem] = field(default_factory=list)


class Oracle(Protocol):
    async def generate_question(
        self,
        topic: Optional[str],
        difficulty: str,
        excluded_questions: List[str],
        excluded_answers: List[str]
    ) -> Optional[TriviaQuestion]:
        ...

    async def verify_answer(
        self,
        correct_answer: str,
        guess: str,
        alternates: List[str],
        question_text: str,
        topic: str
    ) -> Verdict:
        ...


class Translator(Protocol):
    async def translate(self, text: str, target_language: str) -> str:
        ...


class Transport(Protocol):
    def enqueue_message(self, channel: str, text: str) -> None:
        ...


class Persistence(Protocol):
    async def load_channel_config(self, channel: str) -> Optional[Dict[str, Any]]:
        ...

    async def save_channel_config(self, channel: str, settings: Dict[str, Any]) -> None:
        ...

    async def record_round_result(self, details: Dict[str, Any]) -> str:
        ...

    async def update_player_score(self, username: str, channel: str, points: int, display_name: str) -> None:
        ...

    async def get_recent_questions(self, channel: str, topic: Optional[str], limit: int) -> List[str]:
        ...

    async def get_recent_answers(self, channel: str, topic: Optional[str], limit: int) -> List[str]:
        ...

    async def get_leaderboard(self, channel: str, limit: int) -> List[Dict[str, Any]]:
        ...

    async def clear_leaderboard(self, channel: str) -> int:
        ...

    async def get_latest_completed_session(self, channel: str) -> Optional[CompletedSession]:
        ...

    async def flag_record_by_id(self, record_id: str, reason: str, reporter: str) -> None:
        ...
