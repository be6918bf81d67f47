"""Problem reports for questions from the last finished session."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import config
from game.errors import GameResult, InvalidReportTarget
from game.interfaces import Persistence, SessionItem
from utils.formatters import truncate_text

logger = logging.getLogger(__name__)


@dataclass
class PendingReport:
    """A report waiting for the reporter to pick a round."""
    reason: str
    session_items: List[SessionItem] = field(default_factory=list)
    expires_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class PendingReportStore:
    """Expiring (channel, reporter) -> PendingReport mapping."""

    def __init__(self, ttl_seconds: float = config.REPORT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._pending: Dict[Tuple[str, str], PendingReport] = {}

    @staticmethod
    def _key(channel: str, reporter: str) -> Tuple[str, str]:
        return channel, reporter.lower()

    def add(self, channel: str, reporter: str, reason: str, items: List[SessionItem]) -> PendingReport:
        report = PendingReport(reason=reason, session_items=list(items), expires_at=self.clock() + self.ttl_seconds)
        self._pending[self._key(channel, reporter)] = report
        return report

    def peek(self, channel: str, reporter: str) -> Optional[PendingReport]:
        """The entry as stored, expired or not."""
        return self._pending.get(self._key(channel, reporter))

    def has_entry(self, channel: str, reporter: str) -> bool:
        """True while an entry exists, even one past its expiry."""
        return self.peek(channel, reporter) is not None

    def has_pending(self, channel: str, reporter: str) -> bool:
        report = self.peek(channel, reporter)
        return report is not None and not report.is_expired(self.clock())

    def pop(self, channel: str, reporter: str) -> Optional[PendingReport]:
        return self._pending.pop(self._key(channel, reporter), None)

    def purge_expired(self) -> int:
        now = self.clock()
        expired = [key for key, report in self._pending.items() if report.is_expired(now)]
        for key in expired:
            del self._pending[key]
        return len(expired)

    def __len__(self):
        return len(self._pending)


def parse_round_number(text: str, items: List[SessionItem]) -> SessionItem:
    """
    Resolve a reply like "2" to one of the session's rounds.

    Raises:
        InvalidReportTarget: not a number, or not one of the rounds
    """
    cleaned = (text or "").strip().lstrip('#')
    try:
        number = int(cleaned)
    except ValueError:
        raise InvalidReportTarget(f'"{text}" is not a round number.')
    for item in items:
        if item.round_number == number:
            return item
    known = ", ".join(str(item.round_number) for item in items)
    raise InvalidReportTarget(f"Round {number} is not part of the last game (rounds: {known}).")


class ReportWorkflow:
    """Two-step flag flow: pick the session, then (if needed) the round."""

    def __init__(self, storage: Persistence, pending: Optional[PendingReportStore] = None):
        self.storage = storage
        self.pending = pending if pending is not None else PendingReportStore()

    async def initiate(self, channel: str, reason: str, reporter: str) -> GameResult:
        self.pending.purge_expired()

        try:
            session = await self.storage.get_latest_completed_session(channel)
        except Exception:
            logger.error("[%s] Error fetching last session for report", channel, exc_info=True)
            return GameResult.fail("Could not look up the last trivia game right now.")

        if session is None or not session.items:
            return GameResult.fail("There is no recent trivia game to report.")

        if len(session.items) == 1:
            return await self._flag(channel, session.items[0], reason, reporter)

        items = sorted(session.items, key=lambda item: item.round_number)
        self.pending.add(channel, reporter, reason, items)
        listing = " | ".join(
            f"{item.round_number}: {truncate_text(item.question, 60)}" for item in items
        )
        logger.info("[%s] Pending report created for %s (%d rounds)", channel, reporter, len(items))
        return GameResult.ok(
            f"The last game had {len(items)} rounds. Reply with the round number to report "
            f"within {int(self.pending.ttl_seconds)}s. {listing}"
        )

    async def finalize(self, channel: str, reporter: str, round_text: str) -> GameResult:
        report = self.pending.peek(channel, reporter)
        if report is None:
            return GameResult.fail("You have no pending trivia report.")
        if report.is_expired(self.pending.clock()):
            self.pending.pop(channel, reporter)
            return GameResult.fail("Your report session timed out. Please start the report again.")

        try:
            item = parse_round_number(round_text, report.session_items)
        except InvalidReportTarget as e:
            return GameResult.fail(str(e))

        self.pending.pop(channel, reporter)
        return await self._flag(channel, item, report.reason, reporter)

    async def _flag(self, channel: str, item: SessionItem, reason: str, reporter: str) -> GameResult:
        try:
            await self.storage.flag_record_by_id(item.record_id, reason, reporter)
        except Exception:
            logger.error("[%s] Failed to flag record %s", channel, item.record_id, exc_info=True)
            return GameResult.fail("Could not save your report. Please try again later.")
        logger.info("[%s] %s flagged round %d (%s): %s", channel, reporter, item.round_number, item.record_id, reason)
        return GameResult.ok(
            f'Thanks! Reported the question "{truncate_text(item.question, 80)}" (round {item.round_number}).'
        )
