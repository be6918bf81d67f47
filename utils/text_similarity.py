"""Text normalization and similarity calculations."""

import re
from typing import Iterable, Optional, Set

from rapidfuzz.distance import Levenshtein

import config

# Words that carry no meaning for duplicate detection
STOP_WORDS: Set[str] = {
    'a', 'an', 'the', 'of', 'in', 'on', 'at', 'to', 'for', 'by', 'with',
    'from', 'and', 'or', 'is', 'are', 'was', 'were', 'be', 'been', 'which',
    'what', 'who', 'whom', 'whose', 'where', 'when', 'why', 'how', 'this',
    'that', 'these', 'those', 'it', 'its', 'as', 'do', 'does', 'did', 'has',
    'have', 'had', 'name', 'known', 'called',
}


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison.

    - Convert to lowercase
    - Remove punctuation (except spaces)
    - Collapse multiple spaces
    - Strip leading/trailing spaces
    """
    if not text:
        return ""

    # Convert to lowercase
    text = text.lower()

    # Remove punctuation except spaces
    text = re.sub(r'[^\w\s]', '', text)

    # Collapse multiple spaces into single space
    text = re.sub(r'\s+', ' ', text)

    return text.strip()


def singularize(word: str) -> str:
    """Crude plural normalization, good enough for signatures."""
    if len(word) > 4 and word.endswith('ies'):
        return word[:-3] + 'y'
    if len(word) > 4 and word.endswith(('ses', 'xes', 'zes', 'ches', 'shes')):
        return word[:-2]
    if len(word) > 3 and word.endswith('s') and not word.endswith(('ss', 'us', 'is')):
        return word[:-1]
    return word


def question_signature(question: str) -> str:
    """
    Build an order-independent fingerprint of a question.

    Two paraphrases that use the same content words ("Which planet is the
    largest?" / "The largest planet is which?") share a signature.
    """
    tokens = {
        singularize(token)
        for token in normalize_text(question).split()
        if token not in STOP_WORDS
    }
    return ' '.join(sorted(tokens))


def levenshtein_similarity(s1: str, s2: str) -> float:
    """
    Similarity ratio derived from the edit distance.

    Returns:
        1.0 for identical strings (case-insensitive), down to 0.0.
    """
    a = (s1 or "").lower()
    b = (s2 or "").lower()
    if not a and not b:
        return 1.0
    return Levenshtein.normalized_similarity(a, b)


def is_contained(a: str, b: str, min_length: int = config.MIN_CONTAINMENT_LENGTH) -> bool:
    """True if either string contains the other; short strings never match."""
    if len(a) < min_length or len(b) < min_length:
        return False
    return a in b or b in a


def is_answer_too_similar(
    new_answer: str,
    excluded_answers: Optional[Iterable[str]],
    threshold: float = config.ANSWER_SIMILARITY_THRESHOLD
) -> bool:
    """
    Check a candidate answer against answers that should not repeat.

    Tests, in order: exact normalized match, containment in either
    direction, Levenshtein similarity above the threshold.
    """
    candidate = normalize_text(new_answer)
    if not candidate or not excluded_answers:
        return False

    for excluded in excluded_answers:
        other = normalize_text(excluded)
        if not other:
            continue
        if candidate == other:
            return True
        if is_contained(candidate, other):
            return True
        if levenshtein_similarity(candidate, other) > threshold:
            return True

    return False


def best_similarity(guess: str, answers: Iterable[str]) -> float:
    """Highest similarity between a guess and any of the given answers."""
    scores = [levenshtein_similarity(guess.strip(), answer.strip()) for answer in answers if answer]
    return max(scores, default=0.0)
