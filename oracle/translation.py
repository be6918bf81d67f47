"""Guess translation for channels that play in another language."""

import logging

from game.errors import OracleUnavailable, TranslationFailed
from oracle import prompts
from oracle.client import LLMClient

logger = logging.getLogger(__name__)


class LLMTranslator:
    """Translates short chat lines with the same LLM the oracle uses."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def translate(self, text: str, target_language: str) -> str:
        """
        Raises:
            TranslationFailed: the LLM could not be reached or replied with nothing
        """
        prompt = prompts.build_translate_prompt(text, target_language)
        try:
            translated = await self.client.generate(prompt, temperature=0.1, max_tokens=100)
        except OracleUnavailable as e:
            raise TranslationFailed(f"Could not translate {text!r}: {e}") from e
        translated = translated.strip().strip('"').strip()
        if not translated:
            raise TranslationFailed(f"Empty translation for {text!r}")
        logger.debug("Translated %r -> %r (%s)", text, translated, target_language)
        return translated
