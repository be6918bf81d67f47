"""Game session data structures."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Set, TYPE_CHECKING

from game.settings import ChannelConfig

if TYPE_CHECKING:
    from game.round_timer import RoundTimer


class GamePhase(str, Enum):
    """Lifecycle phase of a channel's trivia game."""
    IDLE = 'idle'
    SELECTING = 'selecting'
    IN_PROGRESS = 'in_progress'
    GUESSED = 'guessed'
    TIMEOUT = 'timeout'
    ENDING = 'ending'


# Phases in which a round is still live and may be stopped
STOPPABLE_PHASES = {GamePhase.SELECTING, GamePhase.IN_PROGRESS, GamePhase.GUESSED, GamePhase.TIMEOUT}


@dataclass
class TriviaQuestion:
    """A generated question with its accepted answers."""
    text: str
    answer: str
    alternate_answers: List[str] = field(default_factory=list)
    explanation: str = ""
    difficulty: str = 'normal'
    topic: str = 'general'

    def accepted_answers(self) -> List[str]:
        return [self.answer] + [alt for alt in self.alternate_answers if alt]


@dataclass
class Winner:
    username: str
    display_name: str
    elapsed_seconds: float = 0.0


@dataclass
class SessionScore:
    display_name: str
    points: int = 0


@dataclass
class GameState:
    """Represents one channel's trivia game."""
    channel: str
    config: ChannelConfig = field(default_factory=ChannelConfig)

    phase: GamePhase = GamePhase.IDLE
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    topic: Optional[str] = None
    initiator: Optional[str] = None

    # Current round
    current_question: Optional[TriviaQuestion] = None
    round_start: Optional[float] = None
    winner: Optional[Winner] = None
    timer: Optional['RoundTimer'] = None
    guess_cache: Dict[str, bool] = field(default_factory=dict)
    last_message_at: float = float('-inf')

    # Session shape
    total_rounds: int = 1
    current_round: int = 1

    # Session accumulators
    session_scores: Dict[str, SessionScore] = field(default_factory=dict)
    excluded_questions: Set[str] = field(default_factory=set)
    excluded_answers: Set[str] = field(default_factory=set)
    question_signatures: Set[str] = field(default_factory=set)
    streaks: Dict[str, int] = field(default_factory=dict)

    @property
    def is_multi_round(self) -> bool:
        return self.total_rounds > 1

    @property
    def is_last_round(self) -> bool:
        return self.current_round >= self.total_rounds

    def cancel_timer(self):
        """Cancel the round timer, if any."""
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def clear_round(self):
        """Drop everything scoped to a single round."""
        self.cancel_timer()
        self.current_question = None
        self.round_start = None
        self.winner = None
        self.guess_cache = {}

    def begin_session(self, topic: Optional[str], initiator: Optional[str], total_rounds: int):
        """Reset session accumulators for a fresh start."""
        self.clear_round()
        self.session_id = str(uuid.uuid4())
        self.topic = topic
        self.initiator = initiator.lower() if initiator else None
        self.total_rounds = max(1, total_rounds)
        self.current_round = 1
        self.session_scores = {}
        self.excluded_questions = set()
        self.excluded_answers = set()
        self.question_signatures = set()
        self.streaks = {}
