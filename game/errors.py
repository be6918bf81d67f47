"""
Exception hierarchy and result type for the trivia engine.

Collaborator failures are raised by the adapters (database, oracle,
translation) and caught by the engine at the point of call. Only
``GameResult`` ever leaves the engine's public surface.
"""

from dataclasses import dataclass
from typing import Optional


class TriviaError(Exception):
    """Base exception for all trivia errors."""
    pass


class AlreadyActive(TriviaError):
    """Raised when a game is started while another one is running."""

    def __init__(self, channel: str, phase: str, message: Optional[str] = None):
        self.channel = channel
        self.phase = phase
        super().__init__(
            message or f"A game is already active ({phase}). Please wait or use /trivia_stop."
        )


class GenerationExhausted(TriviaError):
    """Raised when the oracle gave no usable question within the retry budget."""

    def __init__(self, channel: str, attempts: int):
        self.channel = channel
        self.attempts = attempts
        super().__init__(f"Failed to generate a valid question after {attempts} attempts")


class OracleUnavailable(TriviaError):
    """Raised when the question/verification oracle cannot be reached or parsed."""
    pass


class TranslationFailed(TriviaError):
    """Raised by the translator when it cannot produce a translation."""
    pass


class PersistenceFailed(TriviaError):
    """Raised when the storage layer cannot complete an operation."""
    pass


class InvalidReportTarget(TriviaError):
    """Raised for a report reply that does not name a known round."""
    pass


class PermissionDenied(TriviaError):
    """Raised by the command layer when a user may not run a command."""
    pass


@dataclass
class GameResult:
    """Structured outcome returned to the command layer."""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, message: Optional[str] = None) -> 'GameResult':
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, error: str) -> 'GameResult':
        return cls(success=False, error=error)

    @property
    def text(self) -> str:
        """Whatever should be relayed to the user."""
        return (self.message if self.success else self.error) or ""
