"""
Trivia round orchestration.

``TriviaEngine`` drives every channel's ``GameState`` through
IDLE -> SELECTING -> IN_PROGRESS -> (GUESSED | TIMEOUT) -> ENDING and back,
and is the only object the command layer talks to. Collaborators (oracle,
storage, transport, translator) are injected so tests can swap them out.

All game logic runs on one asyncio loop. The only suspension points are
collaborator awaits, so a phase check followed by a phase assignment with
no ``await`` in between is atomic; that is what makes the ENDING guard and
the "first correct verdict wins" rule hold without locks.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import config
from game.errors import AlreadyActive, GameResult, GenerationExhausted
from game.interfaces import Oracle, Persistence, Transport, Translator
from game.question_selector import QuestionSelector
from game.reports import PendingReportStore, ReportWorkflow
from game.round_timer import RoundTimer
from game.scoring import calculate_points, record_correct, reset_streaks
from game.session import GameState, GamePhase, SessionScore, Winner, STOPPABLE_PHASES
from game.session_manager import SessionManager
from game.settings import ChannelConfig
from game.verification import AnswerVerifier, guess_cache_key
from utils import messages

logger = logging.getLogger(__name__)

REASON_GUESSED = 'guessed'
REASON_TIMEOUT = 'timeout'
REASON_STOPPED = 'stopped'
REASON_QUESTION_ERROR = 'question_error'

# Reasons that end the whole session, not just the round
TERMINAL_REASONS = {REASON_STOPPED, REASON_QUESTION_ERROR}

COMMAND_PREFIXES = ('!', '/')

ROUND_STARTED = 'started'
ROUND_FAILED = 'failed'
ROUND_ABANDONED = 'abandoned'


class TriviaEngine:
    """Per-channel trivia state machine and public command surface."""

    def __init__(
        self,
        oracle: Oracle,
        storage: Persistence,
        transport: Transport,
        translator: Optional[Translator] = None,
        sessions: Optional[SessionManager] = None,
        pending_reports: Optional[PendingReportStore] = None,
        round_delay: float = config.ROUND_DELAY_SECONDS,
        throttle_seconds: float = config.MESSAGE_THROTTLE_SECONDS,
        retry_backoff: float = config.QUESTION_RETRY_BACKOFF,
        final_scores_pause: float = config.FINAL_SCORES_PAUSE,
        clock: Callable[[], float] = time.monotonic
    ):
        self.storage = storage
        self.transport = transport
        self.sessions = sessions if sessions is not None else SessionManager(storage)
        self.selector = QuestionSelector(oracle, storage, backoff_seconds=retry_backoff)
        self.verifier = AnswerVerifier(oracle, translator)
        self.reports = ReportWorkflow(storage, pending_reports)
        self.round_delay = round_delay
        self.throttle_seconds = throttle_seconds
        self.final_scores_pause = final_scores_pause
        self.clock = clock
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _send(self, channel: str, text: str):
        if text:
            self.transport.enqueue_message(channel, text)

    def _schedule(self, delay: float, action: Callable[[], Awaitable[None]], name: str):
        """Run ``action`` after ``delay`` seconds in the background."""
        async def runner():
            await asyncio.sleep(delay)
            try:
                await action()
            except Exception:
                logger.exception("Error in scheduled %s", name)

        task = asyncio.create_task(runner(), name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _is_current(self, state: GameState, session_id: str, round_number: Optional[int] = None) -> bool:
        """True if ``state`` is still the live record for the session (and round)."""
        if self.sessions.get(state.channel) is not state or state.session_id != session_id:
            return False
        return round_number is None or state.current_round == round_number

    async def drain(self):
        """Wait for scheduled follow-ups (next rounds, resets) to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self):
        """Cancel every timer and scheduled task."""
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)
        self.sessions.clear()

    # ------------------------------------------------------------------
    # Round lifecycle
    # ------------------------------------------------------------------

    async def start_game(
        self,
        channel: str,
        topic: Optional[str] = None,
        initiator: Optional[str] = None,
        rounds: int = 1
    ) -> GameResult:
        """Start a session of one or more rounds in ``channel``."""
        state = await self.sessions.get_or_create(channel)

        if state.phase != GamePhase.IDLE:
            logger.warning("[%s] Attempted to start game while phase is %s", channel, state.phase.value)
            specific = None
            if initiator and state.initiator == initiator.lower() and state.is_multi_round:
                specific = (
                    f"A {state.total_rounds}-round game initiated by you is already in progress "
                    f"(round {state.current_round}). Use /trivia_stop if needed."
                )
            return GameResult.fail(str(AlreadyActive(channel, state.phase.value, specific)))

        rounds = min(max(1, int(rounds or 1)), config.MAX_ROUNDS)
        topic = topic.strip() if topic and topic.strip() else None
        state.begin_session(topic, initiator, rounds)
        state.phase = GamePhase.SELECTING
        logger.info(
            "[%s] Starting new game. Topic: %s, Rounds: %d, Initiator: %s",
            channel, topic or 'General', rounds, state.initiator
        )

        self._send(channel, messages.start_message(topic, state.config.question_time_seconds, rounds))

        outcome = await self._start_round(state)
        if outcome == ROUND_STARTED:
            return GameResult.ok(f"Trivia started: {rounds} round(s) on {topic or 'General Knowledge'}.")
        if outcome == ROUND_FAILED:
            return GameResult.fail("Could not generate a trivia question. Please try again later.")
        return GameResult.fail("The game was stopped before the first question was posted.")

    async def _start_round(self, state: GameState) -> str:
        """
        SELECTING -> IN_PROGRESS for the state's current round.

        Returns:
            ROUND_STARTED, ROUND_FAILED (generation exhausted) or
            ROUND_ABANDONED (stopped while the question was being generated)
        """
        session_id = state.session_id
        round_number = state.current_round
        state.phase = GamePhase.SELECTING

        try:
            question = await self.selector.select(state)
        except GenerationExhausted as e:
            logger.error("[%s] %s", state.channel, e)
            if self._is_current(state, session_id, round_number) and state.phase == GamePhase.SELECTING:
                await self._transition_to_ending(state, REASON_QUESTION_ERROR)
                return ROUND_FAILED
            return ROUND_ABANDONED

        if not self._is_current(state, session_id, round_number) or state.phase != GamePhase.SELECTING:
            logger.info("[%s] Round %d was stopped during question selection", state.channel, round_number)
            return ROUND_ABANDONED

        state.current_question = question
        state.winner = None
        state.guess_cache = {}
        state.round_start = self.clock()
        state.phase = GamePhase.IN_PROGRESS

        question_time = state.config.question_time_seconds
        self._send(state.channel, messages.question_message(
            round_number, state.total_rounds, question.text, question.difficulty, question_time
        ))

        state.timer = RoundTimer(
            question_time,
            lambda: self._on_round_timeout(state.channel, session_id, round_number),
            name=f"trivia-timeout-{state.channel}-{round_number}"
        ).start()
        logger.info("[%s] Round %d/%d started with %ss timer", state.channel, round_number, state.total_rounds, question_time)
        return ROUND_STARTED

    async def _on_round_timeout(self, channel: str, session_id: str, round_number: int):
        state = self.sessions.get(channel)
        if state is None or not self._is_current(state, session_id, round_number):
            return
        if state.phase != GamePhase.IN_PROGRESS:
            return
        logger.info("[%s] Round %d timed out", channel, round_number)
        state.phase = GamePhase.TIMEOUT
        await self._transition_to_ending(state, REASON_TIMEOUT)

    async def _transition_to_ending(self, state: GameState, reason: str) -> bool:
        """
        Resolve the current round. Runs at most once per round.

        Returns:
            False if the round had already been resolved
        """
        state.cancel_timer()
        if state.phase in (GamePhase.ENDING, GamePhase.IDLE):
            logger.warning("[%s] Phase is already %s, ignoring %s", state.channel, state.phase.value, reason)
            return False

        state.phase = GamePhase.ENDING
        channel = state.channel
        question = state.current_question
        prefix = messages.round_prefix(state.current_round, state.total_rounds)
        logger.info("[%s] Round %d/%d ending. Reason: %s", channel, state.current_round, state.total_rounds, reason)

        # 1. Remember what was asked so later rounds avoid it
        if question:
            state.excluded_questions.add(question.text)
            state.excluded_answers.add(question.answer.lower())

        # 2. Scoring
        points = 0
        winner = state.winner if reason == REASON_GUESSED else None
        if winner and question:
            settings = state.config
            previous_streak = state.streaks.get(winner.username, 0)
            points = calculate_points(
                settings.points_base,
                question.difficulty,
                winner.elapsed_seconds,
                settings.question_time_seconds,
                streak=previous_streak,
                time_bonus=settings.points_time_bonus,
                difficulty_multiplier=settings.points_difficulty_multiplier
            )
            streak = record_correct(state.streaks, winner.username)

            score = state.session_scores.setdefault(winner.username, SessionScore(winner.display_name))
            score.display_name = winner.display_name
            score.points += points

            if settings.score_tracking:
                try:
                    await self.storage.update_player_score(winner.username, channel, points, winner.display_name)
                except Exception:
                    logger.error("[%s] Error updating score for %s", channel, winner.username, exc_info=True)
        else:
            streak = 0
            reset_streaks(state.streaks)

        # 3. Announce
        if reason == REASON_QUESTION_ERROR:
            self._send(channel, messages.question_error_message(state.current_round))
        elif question is None:
            self._send(channel, messages.stop_message(prefix, None))
        elif winner:
            self._send(channel, messages.correct_answer_message(
                prefix, winner.display_name, question.answer, question.explanation,
                winner.elapsed_seconds, streak, points
            ))
        elif reason == REASON_TIMEOUT:
            self._send(channel, messages.timeout_message(prefix, question.answer, question.explanation))
        else:
            self._send(channel, messages.stop_message(prefix, question.answer))

        # 4. History. A round that ends the session without a question still
        # leaves a marker row so the session counts as finished.
        if question or reason in TERMINAL_REASONS:
            await self._record_round(state, reason, points)

        # 5. Next step
        session_id = state.session_id
        if reason in TERMINAL_REASONS:
            logger.info("[%s] Game session ended (%s)", channel, reason)
            if state.is_multi_round and state.session_scores:
                self._send(channel, messages.session_scores_message(state.session_scores, stopped=True))
            self._schedule_reset(state)
        elif not state.is_last_round:
            state.current_round += 1
            state.clear_round()
            logger.info("[%s] Proceeding to round %d", channel, state.current_round)
            self._schedule(
                self.round_delay,
                lambda: self._next_round(channel, session_id),
                name=f"trivia-next-{channel}-{state.current_round}"
            )
        else:
            logger.info("[%s] Game session finished", channel)
            shown_scores = state.is_multi_round and bool(state.session_scores)
            if shown_scores:
                self._send(channel, messages.session_scores_message(state.session_scores))
            if state.config.score_tracking:
                if shown_scores:
                    await asyncio.sleep(self.final_scores_pause)
                await self._announce_leaderboard(channel)
            self._schedule_reset(state)
        return True

    async def _record_round(self, state: GameState, reason: str, points: int):
        question = state.current_question
        winner = state.winner if reason == REASON_GUESSED else None
        duration = self.clock() - state.round_start if state.round_start is not None else None
        details: Dict[str, Any] = {
            'session_id': state.session_id,
            'channel': state.channel,
            'topic': state.topic or 'general',
            'question': question.text if question else None,
            'answer': question.answer if question else None,
            'winner': winner.username if winner else None,
            'winner_display': winner.display_name if winner else None,
            'duration_seconds': duration,
            'reason_ended': reason,
            'round_number': state.current_round,
            'total_rounds': state.total_rounds,
            'difficulty': question.difficulty if question else state.config.difficulty,
            'points_awarded': points,
        }
        try:
            await self.storage.record_round_result(details)
        except Exception:
            logger.error("[%s] Error recording round result", state.channel, exc_info=True)

    async def _announce_leaderboard(self, channel: str):
        try:
            entries = await self.storage.get_leaderboard(channel, config.LEADERBOARD_SIZE)
        except Exception:
            logger.error("[%s] Error fetching leaderboard", channel, exc_info=True)
            return
        if entries:
            self._send(channel, messages.leaderboard_message(entries))

    async def _next_round(self, channel: str, session_id: str):
        state = self.sessions.get(channel)
        if state is None or not self._is_current(state, session_id) or state.phase != GamePhase.ENDING:
            return
        logger.info("[%s] Starting round %d/%d", channel, state.current_round, state.total_rounds)
        self._send(channel, messages.next_round_message(state.current_round, state.total_rounds))
        await self._start_round(state)

    def _schedule_reset(self, state: GameState):
        channel = state.channel
        session_id = state.session_id

        async def reset():
            current = self.sessions.get(channel)
            if current is not None and current.session_id == session_id:
                self.sessions.reset(channel)

        self._schedule(self.round_delay, reset, name=f"trivia-reset-{channel}")

    async def stop_game(self, channel: str) -> GameResult:
        """Force the running round to end with reason ``stopped``."""
        state = self.sessions.get(channel)
        if state is None or state.phase not in STOPPABLE_PHASES:
            logger.debug("[%s] Stop requested, but no active game", channel)
            return GameResult.fail("No active Trivia game to stop.")

        logger.info("[%s] Stop requested during round %d/%d", channel, state.current_round, state.total_rounds)
        await self._transition_to_ending(state, REASON_STOPPED)
        return GameResult.ok("Trivia game stopped.")

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    async def process_potential_answer(self, channel: str, username: str, display_name: str, text: str) -> GameResult:
        """
        Judge one chat line as a guess.

        ``success`` is True when the line was judged; its message is
        "correct" or "incorrect". Lines that were skipped (no round,
        throttled, cached) come back with ``success=False`` and the reason.
        """
        state = self.sessions.get(channel)
        if state is None or state.phase != GamePhase.IN_PROGRESS or state.current_question is None:
            return GameResult.fail("No round in progress.")
        guess = (text or "").strip()
        if not guess or guess.startswith(COMMAND_PREFIXES):
            return GameResult.fail("Not an answer.")

        now = self.clock()
        if now - state.last_message_at < self.throttle_seconds:
            return GameResult.fail("Throttled.")
        state.last_message_at = now

        cache_key = guess_cache_key(guess)
        if state.guess_cache.get(cache_key) is False:
            logger.debug("[%s] Guess %r already judged incorrect this round", channel, guess)
            return GameResult.fail("Already judged incorrect.")

        session_id = state.session_id
        round_number = state.current_round
        question = state.current_question
        username = username.lower()

        candidate = await self.verifier.to_english(channel, guess, state.config.bot_language)
        verdict = await self.verifier.verify(channel, question, candidate)

        if (not self._is_current(state, session_id, round_number)
                or state.phase != GamePhase.IN_PROGRESS
                or state.current_question is not question):
            logger.debug("[%s] Verdict for %r arrived after the round was resolved", channel, guess)
            return GameResult.fail("Round already resolved.")

        if not verdict.is_correct:
            state.guess_cache[cache_key] = False
            return GameResult.ok("incorrect")

        logger.info(
            "[%s] Correct answer %r by %s (confidence %.2f)",
            channel, guess, username, verdict.confidence
        )
        state.winner = Winner(username, display_name, self.clock() - state.round_start)
        state.phase = GamePhase.GUESSED
        await self._transition_to_ending(state, REASON_GUESSED)
        return GameResult.ok("correct")

    # ------------------------------------------------------------------
    # Configuration and leaderboard
    # ------------------------------------------------------------------

    async def configure_game(self, channel: str, options: Dict[str, Any]) -> GameResult:
        """Apply settings changes and persist them."""
        state = await self.sessions.get_or_create(channel)
        logger.info("[%s] Configure requested with options: %s", channel, options)

        update = state.config.apply(options or {})
        if not update.changed:
            if update.errors:
                return GameResult.fail("Trivia settings not changed: " + " ".join(update.errors))
            return GameResult.fail("No configuration changes provided.")

        summary = ". ".join(update.changes + update.errors)
        try:
            await self.storage.save_channel_config(channel, state.config.model_dump())
        except Exception:
            logger.error("[%s] Failed to save configuration changes", channel, exc_info=True)
            return GameResult.ok(f"Settings updated in memory, but failed to save them permanently: {summary}.")
        logger.info("[%s] Configuration updated: %s", channel, summary)
        return GameResult.ok(f"Trivia settings updated: {summary}.")

    async def reset_channel_config(self, channel: str) -> GameResult:
        state = await self.sessions.get_or_create(channel)
        state.config = ChannelConfig()
        try:
            await self.storage.save_channel_config(channel, state.config.model_dump())
        except Exception:
            logger.error("[%s] Failed to save reset configuration", channel, exc_info=True)
            return GameResult.fail("Configuration reset in memory, but failed to save permanently.")
        logger.info("[%s] Configuration reset to defaults", channel)
        return GameResult.ok("Trivia configuration reset to defaults.")

    async def clear_leaderboard(self, channel: str) -> GameResult:
        try:
            cleared = await self.storage.clear_leaderboard(channel)
        except Exception:
            logger.error("[%s] Error clearing leaderboard", channel, exc_info=True)
            return GameResult.fail("An error occurred while clearing the leaderboard.")
        logger.info("[%s] Leaderboard cleared (%d players)", channel, cleared)
        return GameResult.ok(f"Cleared trivia leaderboard data for {cleared} players.")

    async def get_leaderboard(self, channel: str, limit: int = config.LEADERBOARD_SIZE) -> List[Dict[str, Any]]:
        try:
            return await self.storage.get_leaderboard(channel, limit)
        except Exception:
            logger.error("[%s] Error fetching leaderboard", channel, exc_info=True)
            return []

    def get_current_game_initiator(self, channel: str) -> Optional[str]:
        state = self.sessions.get(channel)
        if state is not None and state.phase != GamePhase.IDLE:
            return state.initiator
        return None

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def initiate_report_process(self, channel: str, reason: str, reporter: str) -> GameResult:
        if not reason or not reason.strip():
            return GameResult.fail("Please provide a reason for the report.")
        return await self.reports.initiate(channel, reason.strip(), reporter)

    async def finalize_report_with_round_number(self, channel: str, reporter: str, round_text: str) -> GameResult:
        return await self.reports.finalize(channel, reporter, round_text)

    def has_pending_report(self, channel: str, reporter: str) -> bool:
        return self.reports.pending.has_pending(channel, reporter)

    def awaits_report_reply(self, channel: str, reporter: str) -> bool:
        """True if the reporter's next round number should go to the report flow."""
        return self.reports.pending.has_entry(channel, reporter)
