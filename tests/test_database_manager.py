"""Tests for the aiosqlite storage layer."""

import pytest
import pytest_asyncio

from database.manager import DatabaseManager, StorageError
from database.migrations import initialize_database
from game.errors import PersistenceFailed


@pytest_asyncio.fixture
async def db(tmp_path):
    path = str(tmp_path / "data" / "trivia.db")
    await initialize_database(path)
    return DatabaseManager(path)


def round_details(session_id, round_number, total_rounds, question, answer, reason='guessed', topic='general'):
    return {
        'session_id': session_id,
        'channel': 'chan',
        'topic': topic,
        'question': question,
        'answer': answer,
        'winner': 'bob' if reason == 'guessed' else None,
        'winner_display': 'Bob' if reason == 'guessed' else None,
        'duration_seconds': 4.2,
        'reason_ended': reason,
        'round_number': round_number,
        'total_rounds': total_rounds,
        'difficulty': 'normal',
        'points_awarded': 20 if reason == 'guessed' else 0,
    }


@pytest.mark.asyncio
async def test_channel_config_round_trip(db):
    assert await db.load_channel_config('chan') is None

    await db.save_channel_config('chan', {'difficulty': 'hard'})
    await db.save_channel_config('chan', {'difficulty': 'easy', 'points_base': 5})

    assert await db.load_channel_config('chan') == {'difficulty': 'easy', 'points_base': 5}


@pytest.mark.asyncio
async def test_recent_questions_and_answers(db):
    await db.record_round_result(round_details('s1', 1, 1, 'Q one?', 'Paris', topic='geography'))
    await db.record_round_result(round_details('s2', 1, 1, 'Q two?', 'Mars', topic='space'))

    assert await db.get_recent_questions('chan', None, 10) == ['Q two?', 'Q one?']
    assert await db.get_recent_answers('chan', 'geography', 10) == ['Paris']
    assert await db.get_recent_questions('other', None, 10) == []


@pytest.mark.asyncio
async def test_latest_completed_session(db):
    await db.record_round_result(round_details('old', 1, 1, 'Old?', 'Old'))
    ids = [
        await db.record_round_result(round_details('new', n, 3, f'Question {n}?', f'Answer {n}'))
        for n in (1, 2, 3)
    ]

    session = await db.get_latest_completed_session('chan')

    assert session.session_id == 'new'
    assert session.total_rounds == 3
    assert [item.round_number for item in session.items] == [1, 2, 3]
    assert [item.record_id for item in session.items] == ids


@pytest.mark.asyncio
async def test_unfinished_session_is_skipped(db):
    await db.record_round_result(round_details('done', 1, 1, 'Done?', 'Yes'))
    await db.record_round_result(round_details('running', 1, 3, 'Running?', 'No'))

    session = await db.get_latest_completed_session('chan')
    assert session.session_id == 'done'

    await db.record_round_result(round_details('running', 2, 3, 'Stopped?', 'Maybe', reason='stopped'))
    session = await db.get_latest_completed_session('chan')
    assert session.session_id == 'running'
    assert len(session.items) == 2


@pytest.mark.asyncio
async def test_flag_record(db):
    record_id = await db.record_round_result(round_details('s', 1, 1, 'Q?', 'A'))

    await db.flag_record_by_id(record_id, 'wrong answer', 'carol')

    with pytest.raises(StorageError):
        await db.flag_record_by_id('missing', 'x', 'y')


@pytest.mark.asyncio
async def test_player_scores_and_leaderboard(db):
    await db.update_player_score('Bob', 'chan', 20, 'Bobby')
    await db.update_player_score('bob', 'chan', 15, 'Bobby')
    await db.update_player_score('amy', 'chan', 30, 'Amy')
    await db.update_player_score('amy', 'elsewhere', 100, 'Amy')

    board = await db.get_leaderboard('chan', 5)

    assert [(e['user'], e['points'], e['correct_answers']) for e in board] == [('bob', 35, 2), ('amy', 30, 1)]
    assert board[0]['display_name'] == 'Bobby'

    assert await db.clear_leaderboard('chan') == 2
    assert await db.get_leaderboard('chan', 5) == []
    assert (await db.get_player_stats('amy', 'elsewhere'))['points'] == 100


@pytest.mark.asyncio
async def test_driver_errors_become_storage_errors(tmp_path):
    db = DatabaseManager(str(tmp_path / "never_initialized.db"))

    with pytest.raises(PersistenceFailed):
        await db.get_leaderboard('chan', 5)


@pytest.mark.asyncio
async def test_aborted_session_marker_completes_session(db):
    await db.record_round_result(round_details('done', 1, 1, 'Done?', 'Yes'))
    kept = await db.record_round_result(round_details('aborted', 1, 3, 'First?', 'One'))
    await db.record_round_result(round_details('aborted', 2, 3, None, None, reason='question_error'))

    session = await db.get_latest_completed_session('chan')

    assert session.session_id == 'aborted'
    assert [item.record_id for item in session.items] == [kept]
    assert await db.get_recent_questions('chan', None, 10) == ['First?', 'Done?']
