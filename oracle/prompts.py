"""Prompt templates and reply parsers for the trivia LLM."""

import re
from typing import List, Optional, Tuple

from game.session import TriviaQuestion

GENERAL_TOPICS = {'general', 'general knowledge'}

QUESTION_TEMPLATE = """Create an engaging trivia question about {topic}.
Avoid overly obscure or simple date-based questions (like premiere or release dates) unless the date itself is exceptionally significant for a unique reason.
Focus on interesting facts, characters, plot points, lore, or unique details.

Requirements:
- Difficulty level: {difficulty}
- The question must be clear and specific
- Provide the correct answer
- Include alternate acceptable answers if applicable
- Add a brief explanation about the answer{exclusions}

Format your response exactly like this:
Question: [your complete question here]
Answer: [the correct answer]
Alternate Answers: [other acceptable answers, comma separated]
Explanation: [brief explanation of the answer]"""

VERIFY_TEMPLATE = """Your task is to STRICTLY determine if the "Player's Input" is a correct answer to the "Trivia Question".
The "Official Correct Answer" is provided.

Trivia Question: "{question}"
Official Correct Answer: "{answer}"{alternates}
Player's Input: "{guess}"

Instructions for you:
1. Directly compare the "Player's Input" against the "Official Correct Answer".
2. Consider common spelling variations or very minor phrasing differences as potentially correct.
3. If the "Player's Input" is substantially different, unrelated to the "Official Correct Answer", or is a comment ABOUT the question/game rather than an attempt to answer, it is INCORRECT.
4. If the "Official Correct Answer" is a date or number, the "Player's Input" must also be a recognizable date or number that matches.

Respond with ONLY the word "CORRECT" or "INCORRECT".
On a new line, provide a VERY BRIEF (1 short sentence) justification for your decision."""

TRANSLATE_TEMPLATE = """Translate the following text into {language}.
Respond with ONLY the translation, no quotes or commentary.

Text: {text}"""

QUESTION_RE = re.compile(r'Question:\s*(.*?)(?=Answer:|$)', re.I | re.S)
ANSWER_RE = re.compile(r'(?<!Alternate )Answer:\s*(.*?)(?=Alternate|Explanation|$)', re.I | re.S)
ALTERNATES_RE = re.compile(r'Alternate Answers?:\s*(.*?)(?=Explanation|$)', re.I | re.S)
EXPLANATION_RE = re.compile(r'Explanation:\s*(.*)', re.I | re.S)

DATE_QUESTION_RE = re.compile(r'date|when|year|premiered|released|concluded', re.I)
DATE_GUESS_RE = re.compile(r'\d|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec', re.I)


def is_general_topic(topic: Optional[str]) -> bool:
    return not topic or topic.strip().lower() in GENERAL_TOPICS


def build_question_prompt(
    topic: Optional[str],
    difficulty: str,
    excluded_questions: List[str],
    excluded_answers: List[str]
) -> str:
    exclusions = ""
    if excluded_questions:
        quoted = ", ".join(f'"{q}"' for q in excluded_questions)
        exclusions += f"\nIMPORTANT: Do NOT generate any of the following questions again: {quoted}."
    if excluded_answers:
        quoted = ", ".join(f'"{a}"' for a in excluded_answers)
        exclusions += f"\nIMPORTANT: The answer must NOT be any of: {quoted}."
    return QUESTION_TEMPLATE.format(
        topic='general knowledge' if is_general_topic(topic) else topic,
        difficulty=difficulty,
        exclusions=exclusions
    )


def build_verify_prompt(question: str, answer: str, guess: str, alternates: List[str]) -> str:
    alt_text = ""
    if alternates:
        alt_text = "\nOther Acceptable Answers: " + ", ".join(f'"{a}"' for a in alternates)
    return VERIFY_TEMPLATE.format(question=question, answer=answer, alternates=alt_text, guess=guess)


def build_translate_prompt(text: str, language: str) -> str:
    return TRANSLATE_TEMPLATE.format(text=text, language=language)


def _match(pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_question(text: str, difficulty: str, topic: Optional[str]) -> Optional[TriviaQuestion]:
    """Parse the Question/Answer/Alternate Answers/Explanation layout."""
    if not text:
        return None
    question = _match(QUESTION_RE, text)
    answer = _match(ANSWER_RE, text)
    if not question or not answer:
        return None

    alternates = [
        alt.strip() for alt in _match(ALTERNATES_RE, text).split(',')
        if alt.strip() and alt.strip().lower() != answer.lower()
    ]
    return TriviaQuestion(
        text=question,
        answer=answer,
        alternate_answers=alternates,
        explanation=_match(EXPLANATION_RE, text),
        difficulty=difficulty,
        topic='general' if is_general_topic(topic) else topic
    )


def parse_verdict(text: str) -> Tuple[bool, str]:
    """Parse "CORRECT"/"INCORRECT" followed by a one-line reason."""
    lines = (text or "").strip().split("\n")
    is_correct = lines[0].strip().upper().startswith("CORRECT")
    reasoning = " ".join(line.strip() for line in lines[1:]).strip()
    if not reasoning:
        reasoning = "The answer is considered correct." if is_correct else "The answer is considered incorrect."
    return is_correct, reasoning


def expects_date(question: str) -> bool:
    return bool(DATE_QUESTION_RE.search(question or ""))


def looks_like_date(guess: str) -> bool:
    return bool(DATE_GUESS_RE.search(guess or ""))
