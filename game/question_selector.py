"""Question generation with retry and duplicate rejection."""

import asyncio
import logging
from typing import List, Optional, Tuple

import config
from game.errors import GenerationExhausted
from game.interfaces import Oracle, Persistence
from game.session import GameState, TriviaQuestion
from utils.text_similarity import question_signature, is_answer_too_similar

logger = logging.getLogger(__name__)


def validate_structure(question: Optional[TriviaQuestion]) -> Optional[str]:
    """Return why a candidate is unusable, or None if it is well formed."""
    if question is None:
        return "no question returned"
    if not question.text or len(question.text.strip()) < config.MIN_QUESTION_LENGTH:
        return "question text too short"
    if not question.answer or not question.answer.strip():
        return "missing answer"
    return None


class QuestionSelector:
    """Asks the oracle for questions until one is new to the channel."""

    def __init__(
        self,
        oracle: Oracle,
        storage: Persistence,
        max_retries: int = config.MAX_QUESTION_RETRIES,
        backoff_seconds: float = config.QUESTION_RETRY_BACKOFF
    ):
        self.oracle = oracle
        self.storage = storage
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    async def build_exclusions(self, state: GameState) -> Tuple[List[str], List[str]]:
        """Combine session exclusions with recent channel history."""
        recent_questions: List[str] = []
        recent_answers: List[str] = []
        try:
            recent_questions = await self.storage.get_recent_questions(
                state.channel, state.topic, config.RECENT_QUESTIONS_LIMIT
            )
        except Exception:
            logger.error("[%s] Error fetching recent questions", state.channel, exc_info=True)
        try:
            recent_answers = await self.storage.get_recent_answers(
                state.channel, state.topic, config.RECENT_ANSWERS_LIMIT
            )
        except Exception:
            logger.error("[%s] Error fetching recent answers", state.channel, exc_info=True)

        questions = sorted(state.excluded_questions.union(recent_questions))
        answers = set(state.excluded_answers)
        answers.update(a.lower() for a in recent_answers if a)
        if state.topic:
            # An answer equal to the topic would give the game away
            answers.add(state.topic.lower())
        return questions, sorted(answers)

    def rejection_reason(
        self,
        state: GameState,
        candidate: Optional[TriviaQuestion],
        excluded_questions: List[str],
        excluded_answers: List[str]
    ) -> Optional[str]:
        """Run every check a candidate must pass."""
        reason = validate_structure(candidate)
        if reason:
            return reason
        if candidate.text in excluded_questions:
            return "question is excluded"
        if question_signature(candidate.text) in state.question_signatures:
            return "question paraphrases one already asked"
        if is_answer_too_similar(candidate.answer, excluded_answers):
            return "answer too similar to a recent answer"
        return None

    async def select(self, state: GameState) -> TriviaQuestion:
        """
        Generate the next question for the channel's current round.

        Raises:
            GenerationExhausted: no valid candidate within the retry budget
        """
        excluded_questions, excluded_answers = await self.build_exclusions(state)

        for attempt in range(1, self.max_retries + 1):
            candidate = None
            try:
                candidate = await self.oracle.generate_question(
                    state.topic,
                    state.config.difficulty,
                    excluded_questions,
                    excluded_answers
                )
            except Exception:
                logger.error(
                    "[%s] Error generating question (attempt %d/%d)",
                    state.channel, attempt, self.max_retries, exc_info=True
                )
            else:
                reason = self.rejection_reason(state, candidate, excluded_questions, excluded_answers)
                if reason is None:
                    if not candidate.topic or candidate.topic == 'general':
                        candidate.topic = state.topic or 'general'
                    state.question_signatures.add(question_signature(candidate.text))
                    logger.info(
                        "[%s] Question generated for round %d (attempt %d)",
                        state.channel, state.current_round, attempt
                    )
                    return candidate
                logger.warning(
                    "[%s] Discarded candidate question (attempt %d/%d): %s",
                    state.channel, attempt, self.max_retries, reason
                )

            if attempt < self.max_retries:
                await asyncio.sleep(self.backoff_seconds)

        raise GenerationExhausted(state.channel, self.max_retries)
