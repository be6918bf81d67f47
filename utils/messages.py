"""Chat message builders for trivia rounds."""

import re
from typing import Dict, List, Optional

import config
from game.session import SessionScore
from utils.formatters import format_time, format_ranking, truncate_text

DIFFICULTY_MARKERS = {
    'easy': '🟢',
    'normal': '🟡',
    'hard': '🔴',
}


def strip_markdown(text: Optional[str]) -> str:
    """Remove bold/italic asterisks the oracle sometimes adds."""
    return re.sub(r'\*+', '', text or '').strip()


def fit_message(text: str) -> str:
    """Keep a message within the chat length limit."""
    return truncate_text(text, config.MAX_MESSAGE_LENGTH)


def round_prefix(current_round: int, total_rounds: int) -> str:
    return f"(Round {current_round}/{total_rounds}) " if total_rounds > 1 else ""


def start_message(topic: Optional[str], question_time: int, total_rounds: int) -> str:
    round_text = f"{total_rounds} rounds" if total_rounds > 1 else "a round"
    return (
        f"🎯 Starting {round_text} of Trivia! Topic: {topic or 'General Knowledge'}. "
        f"You have {question_time} seconds to answer each question. Type your answers in chat!"
    )


def next_round_message(current_round: int, total_rounds: int) -> str:
    return f"🎮 Starting Round {current_round}/{total_rounds}..."


def question_message(current_round: int, total_rounds: int, question: str, difficulty: str, question_time: int) -> str:
    prefix = f"[Round {current_round}/{total_rounds}] " if total_rounds > 1 else ""
    marker = DIFFICULTY_MARKERS.get((difficulty or '').lower(), '❓')
    return fit_message(f"{prefix}{marker} TRIVIA: {strip_markdown(question)} ({question_time}s)")


def correct_answer_message(
    prefix: str,
    display_name: str,
    answer: str,
    explanation: str,
    elapsed_seconds: Optional[float],
    streak: int,
    points: int
) -> str:
    time_info = f" in {format_time(elapsed_seconds)}" if elapsed_seconds is not None else ""
    streak_info = f" 🔥x{streak}" if streak > 1 else ""
    points_info = f" (+{points} pts)" if points > 0 else ""
    return fit_message(
        f"{prefix}✅ @{display_name} got it right{time_info}{streak_info}{points_info}! "
        f"The answer is: {answer}. {strip_markdown(explanation)}".rstrip()
    )


def timeout_message(prefix: str, answer: str, explanation: str) -> str:
    return fit_message(f"{prefix}⏱️ Time's up! The answer is: {answer}. {strip_markdown(explanation)}".rstrip())


def stop_message(prefix: str, answer: Optional[str]) -> str:
    if not answer:
        return f"{prefix}🛑 Game stopped."
    return f"{prefix}🛑 Game stopped. The answer was: {answer}"


def question_error_message(current_round: int) -> str:
    return f"⚠️ Error: Could not generate a question for round {current_round}. Ending the game."


def session_scores_message(scores: Dict[str, SessionScore], stopped: bool = False) -> str:
    if not scores:
        body = "No scores recorded."
    else:
        ranked = sorted(scores.values(), key=lambda s: s.points, reverse=True)[:config.SESSION_SCORES_SIZE]
        body = format_ranking([(s.display_name, s.points) for s in ranked])
    heading = "🏁 Game stopped. Final Scores: " if stopped else "🏁 Final Scores: "
    return fit_message(heading + body)


def leaderboard_message(entries: List[Dict]) -> str:
    ranked = [
        (entry.get('display_name') or entry.get('user'), entry.get('points', 0))
        for entry in entries[:config.LEADERBOARD_SIZE]
    ]
    return fit_message("🏆 Trivia Champions: " + format_ranking(ranked))
