"""Shared fakes for trivia tests."""

import asyncio
import uuid
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from game.engine import TriviaEngine
from game.interfaces import CompletedSession, SessionItem, Verdict
from game.session import TriviaQuestion

QUESTIONS = [
    TriviaQuestion(
        text="What is the capital city of France?",
        answer="Paris",
        alternate_answers=["Paris, France"],
        explanation="Paris has been the capital since 987.",
        difficulty='normal'
    ),
    TriviaQuestion(
        text="Which planet is known as the Red Planet?",
        answer="Mars",
        explanation="Iron oxide gives Mars its colour.",
        difficulty='easy'
    ),
    TriviaQuestion(
        text="What gas do plants absorb for photosynthesis?",
        answer="Carbon dioxide",
        alternate_answers=["CO2"],
        explanation="Plants take in CO2 and release oxygen.",
        difficulty='hard'
    ),
]


def make_question(index: int) -> TriviaQuestion:
    source = QUESTIONS[index]
    return TriviaQuestion(
        text=source.text,
        answer=source.answer,
        alternate_answers=list(source.alternate_answers),
        explanation=source.explanation,
        difficulty=source.difficulty
    )


class FakeOracle:
    """Serves questions in order and judges guesses with a fixed verdict."""

    def __init__(self, questions: Optional[List[Optional[TriviaQuestion]]] = None, verdict: Optional[Verdict] = None):
        self.questions = list(questions) if questions is not None else [make_question(i) for i in range(len(QUESTIONS))]
        self.verdict = verdict or Verdict(is_correct=False, confidence=0.9, reasoning="Different answer.")
        self.generate_calls: List[Dict[str, Any]] = []
        self.verify_calls: List[Dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate_question(self, topic, difficulty, excluded_questions, excluded_answers):
        self.generate_calls.append({
            'topic': topic,
            'difficulty': difficulty,
            'excluded_questions': excluded_questions,
            'excluded_answers': excluded_answers,
        })
        if self.gate is not None:
            await self.gate.wait()
        if not self.questions:
            return None
        return self.questions.pop(0)

    async def verify_answer(self, correct_answer, guess, alternates, question_text, topic):
        self.verify_calls.append({'correct_answer': correct_answer, 'guess': guess})
        return self.verdict


class FakeTransport:
    def __init__(self):
        self.sent: List[tuple] = []

    def enqueue_message(self, channel: str, text: str):
        self.sent.append((channel, text))

    def texts(self, channel: Optional[str] = None) -> List[str]:
        return [text for ch, text in self.sent if channel is None or ch == channel]

    def count(self, fragment: str) -> int:
        return sum(1 for text in self.texts() if fragment in text)


class FakeStorage:
    """In-memory stand-in for DatabaseManager."""

    def __init__(self):
        self.configs: Dict[str, Dict[str, Any]] = {}
        self.records: List[Dict[str, Any]] = []
        self.scores: Dict[tuple, Dict[str, Any]] = {}
        self.flags: List[tuple] = []
        self.fail_writes = False

    async def load_channel_config(self, channel):
        return self.configs.get(channel)

    async def save_channel_config(self, channel, settings):
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.configs[channel] = dict(settings)

    async def record_round_result(self, details):
        if self.fail_writes:
            raise RuntimeError("disk full")
        record = dict(details, record_id=str(uuid.uuid4()))
        self.records.append(record)
        return record['record_id']

    async def update_player_score(self, username, channel, points, display_name):
        if self.fail_writes:
            raise RuntimeError("disk full")
        entry = self.scores.setdefault((channel, username), {
            'user': username, 'display_name': display_name, 'points': 0, 'correct_answers': 0
        })
        entry['points'] += points
        entry['correct_answers'] += 1

    async def get_recent_questions(self, channel, topic, limit):
        return [r['question'] for r in reversed(self.records) if r['channel'] == channel and r['question']][:limit]

    async def get_recent_answers(self, channel, topic, limit):
        return [r['answer'] for r in reversed(self.records) if r['channel'] == channel and r['answer']][:limit]

    async def get_leaderboard(self, channel, limit):
        entries = [e for (ch, _), e in self.scores.items() if ch == channel]
        return sorted(entries, key=lambda e: e['points'], reverse=True)[:limit]

    async def clear_leaderboard(self, channel):
        keys = [key for key in self.scores if key[0] == channel]
        for key in keys:
            del self.scores[key]
        return len(keys)

    async def get_latest_completed_session(self, channel):
        records = [r for r in self.records if r['channel'] == channel]
        if not records:
            return None
        session_id = records[-1]['session_id']
        rounds = [r for r in records if r['session_id'] == session_id]
        return CompletedSession(
            session_id=session_id,
            total_rounds=rounds[-1]['total_rounds'],
            items=[
                SessionItem(r['round_number'], r['record_id'], r['question'], r['answer'])
                for r in rounds if r['question']
            ]
        )

    async def flag_record_by_id(self, record_id, reason, reporter):
        self.flags.append((record_id, reason, reporter))


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest_asyncio.fixture
async def engine(oracle, storage, transport):
    engine = TriviaEngine(
        oracle=oracle,
        storage=storage,
        transport=transport,
        round_delay=0,
        throttle_seconds=0,
        retry_backoff=0,
        final_scores_pause=0
    )
    yield engine
    await engine.shutdown()


async def wait_until(predicate, timeout: float = 2.0):
    """Poll until ``predicate()`` is true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
