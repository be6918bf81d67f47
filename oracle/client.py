"""OpenAI-compatible LLM client and the trivia oracle built on it."""

import logging
from typing import List, Optional

import httpx

import config
from game.errors import OracleUnavailable
from game.interfaces import Verdict
from game.session import TriviaQuestion
from oracle import prompts
from utils.text_similarity import levenshtein_similarity

logger = logging.getLogger(__name__)


class LLMClient:
    """Minimal async chat-completions client."""

    def __init__(
        self,
        base_url: str = config.LLM_BASE_URL,
        api_key: str = config.LLM_API_KEY,
        model_name: str = config.LLM_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 512,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.transport = transport

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def generate(self, prompt: str, **params) -> str:
        """
        Send one user prompt and return the reply text.

        Raises:
            OracleUnavailable: on any HTTP failure or an empty reply
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._get_headers(),
                    json={
                        "model": params.get("model", self.model_name),
                        "messages": [{"role": "user", "content": prompt}],
                        "temperature": params.get("temperature", self.temperature),
                        "max_tokens": params.get("max_tokens", self.max_tokens),
                        "stream": False,
                    },
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise OracleUnavailable(f"LLM request failed: {e}") from e

        choices = data.get("choices", [])
        content = choices[0].get("message", {}).get("content", "") if choices else ""
        if not content or not content.strip():
            raise OracleUnavailable("LLM returned an empty reply")
        return content.strip()


class TriviaOracle:
    """Generates questions and judges guesses with an LLM."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def generate_question(
        self,
        topic: Optional[str],
        difficulty: str,
        excluded_questions: List[str],
        excluded_answers: List[str]
    ) -> Optional[TriviaQuestion]:
        prompt = prompts.build_question_prompt(topic, difficulty, excluded_questions, excluded_answers)
        text = await self.client.generate(prompt)
        question = prompts.parse_question(text, difficulty, topic)
        if question is None:
            raise OracleUnavailable(f"Unparseable question reply: {text[:100]}")
        return question

    async def verify_answer(
        self,
        correct_answer: str,
        guess: str,
        alternates: List[str],
        question_text: str,
        topic: str
    ) -> Verdict:
        # Date-shaped questions need a date-shaped guess
        if prompts.expects_date(question_text) and not prompts.looks_like_date(guess):
            logger.debug("Question expects a date, guess %r does not look like one", guess)
            return Verdict(
                is_correct=False,
                confidence=0.8,
                reasoning="Answer format does not match expected (e.g., a date was expected)."
            )

        prompt = prompts.build_verify_prompt(question_text, correct_answer, guess, alternates)
        text = await self.client.generate(prompt, temperature=0.1, max_tokens=50)
        is_correct, reasoning = prompts.parse_verdict(text)

        similarity = levenshtein_similarity(correct_answer, guess)
        strong_alternate = any(
            levenshtein_similarity(alt, guess) > config.FALLBACK_SIMILARITY_THRESHOLD for alt in alternates
        )
        if is_correct and similarity < config.LLM_OVERRIDE_SIMILARITY and not strong_alternate:
            logger.warning(
                "LLM judged %r correct for %r but similarity is %.2f, overriding to incorrect",
                guess, correct_answer, similarity
            )
            return Verdict(
                is_correct=False,
                confidence=0.7,
                reasoning=f"Overridden: low similarity ({similarity:.2f}) despite LLM judging correct."
            )

        confidence = (0.98 if similarity > 0.85 else 0.9) if is_correct else 1.0 - similarity
        return Verdict(is_correct=is_correct, confidence=confidence, reasoning=reasoning)
