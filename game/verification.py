"""Answer verification: translation, exact match, oracle judgement, fallback."""

import logging
from typing import Optional

import config
from game.interfaces import Oracle, Translator, Verdict
from game.session import TriviaQuestion
from utils.text_similarity import best_similarity

logger = logging.getLogger(__name__)

ENGLISH = 'english'


def guess_cache_key(guess: str) -> str:
    """Key under which a guess is remembered for the rest of the round."""
    return guess.strip().casefold()


def exact_match(question: TriviaQuestion, guess: str) -> bool:
    """Case-insensitive match against the answer or any alternate."""
    key = guess.strip().casefold()
    return any(key == answer.strip().casefold() for answer in question.accepted_answers())


def fallback_verdict(question: TriviaQuestion, guess: str) -> Verdict:
    """Pure similarity judgement used when the oracle is unavailable."""
    similarity = best_similarity(guess, question.accepted_answers())
    return Verdict(
        is_correct=similarity > config.FALLBACK_SIMILARITY_THRESHOLD,
        confidence=similarity,
        reasoning=f"Similarity check: {round(similarity * 100)}% (oracle fallback)."
    )


class AnswerVerifier:
    """Decides whether a chat guess answers the current question."""

    def __init__(self, oracle: Oracle, translator: Optional[Translator] = None):
        self.oracle = oracle
        self.translator = translator

    async def to_english(self, channel: str, guess: str, language: str) -> str:
        """Translate a guess for non-English channels, keeping the original on failure."""
        if not language or language.lower() == ENGLISH or self.translator is None:
            return guess
        try:
            translated = await self.translator.translate(guess, 'English')
        except Exception:
            logger.error("[%s] Failed to translate guess %r, using original", channel, guess, exc_info=True)
            return guess
        if not translated or not translated.strip():
            logger.warning("[%s] Translation of %r came back empty, using original", channel, guess)
            return guess
        return translated.strip()

    async def verify(self, channel: str, question: TriviaQuestion, guess: str) -> Verdict:
        """
        Judge a (translated) guess.

        Exact and alternate matches never reach the oracle. Oracle errors
        degrade to a similarity threshold instead of propagating.
        """
        if exact_match(question, guess):
            return Verdict(is_correct=True, confidence=1.0, reasoning="Exact match")

        try:
            return await self.oracle.verify_answer(
                question.answer,
                guess,
                list(question.alternate_answers),
                question.text,
                question.topic or 'general'
            )
        except Exception:
            logger.error("[%s] Oracle verification failed, falling back to similarity", channel, exc_info=True)
            return fallback_verdict(question, guess)
