"""Tests for question selection and duplicate rejection."""

import pytest

from conftest import FakeOracle, make_question
from game.errors import GenerationExhausted
from game.question_selector import QuestionSelector, validate_structure
from game.session import GameState, TriviaQuestion


def test_validate_structure():
    assert validate_structure(None) == "no question returned"
    assert validate_structure(TriviaQuestion(text="Short?", answer="x")) == "question text too short"
    assert validate_structure(TriviaQuestion(text="A long enough question?", answer=" ")) == "missing answer"
    assert validate_structure(make_question(0)) is None


@pytest.mark.asyncio
async def test_exclusions_merge_history_and_topic(storage):
    storage.records.append({
        'channel': 'c', 'session_id': 's', 'question': 'Old question?', 'answer': 'Venus',
        'round_number': 1, 'total_rounds': 1, 'record_id': 'r1',
    })
    state = GameState(channel='c', topic='Astronomy')
    state.excluded_questions.add('Earlier this session?')
    state.excluded_answers.add('mars')

    selector = QuestionSelector(FakeOracle(), storage)
    questions, answers = await selector.build_exclusions(state)

    assert questions == ['Earlier this session?', 'Old question?']
    assert answers == ['astronomy', 'mars', 'venus']


@pytest.mark.asyncio
async def test_rejects_similar_answer_then_accepts(storage):
    similar = TriviaQuestion(text="Which planet has the tallest volcano?", answer="Planet Mars")
    oracle = FakeOracle(questions=[similar, make_question(0)])
    state = GameState(channel='c')
    state.excluded_answers.add('mars')

    question = await QuestionSelector(oracle, storage, backoff_seconds=0).select(state)

    assert question.answer == "Paris"
    assert question.topic == 'general'
    assert len(oracle.generate_calls) == 2
    assert len(state.question_signatures) == 1


@pytest.mark.asyncio
async def test_rejects_paraphrased_question(storage):
    paraphrase = TriviaQuestion(text="France: what is its capital city?", answer="Paris city")
    oracle = FakeOracle(questions=[make_question(0), paraphrase, make_question(1)])
    state = GameState(channel='c')
    selector = QuestionSelector(oracle, storage, backoff_seconds=0)

    await selector.select(state)
    second = await selector.select(state)

    assert second.answer == "Mars"


@pytest.mark.asyncio
async def test_oracle_errors_count_against_retry_budget(storage):
    class BrokenOracle(FakeOracle):
        async def generate_question(self, *args):
            self.generate_calls.append(args)
            raise RuntimeError("rate limited")

    oracle = BrokenOracle()
    with pytest.raises(GenerationExhausted) as excinfo:
        await QuestionSelector(oracle, storage, max_retries=3, backoff_seconds=0).select(GameState(channel='c'))

    assert excinfo.value.attempts == 3
    assert len(oracle.generate_calls) == 3
