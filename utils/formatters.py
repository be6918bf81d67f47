"""Text formatting helpers for chat output."""

from typing import List, Sequence, Tuple

RANK_MEDALS = ("🥇", "🥈", "🥉")


def format_time(seconds: float) -> str:
    """Format an answer time, e.g. "850ms", "4.2s" or "1m 5s"."""
    if seconds < 1:
        return f"{max(seconds, 0) * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    mins, secs = divmod(int(round(seconds)), 60)
    return f"{mins}m {secs}s"


def format_points(points: int) -> str:
    """ "1 pt", "1,250 pts" """
    return f"{points:,} pt" if points == 1 else f"{points:,} pts"


def truncate_text(text: str, max_length: int = 50, suffix: str = "...") -> str:
    """Cut text to max length, preferring a word boundary in the last fifth."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length - len(suffix)]
    space = cut.rfind(' ')
    if space >= len(cut) * 4 // 5:
        cut = cut[:space]
    return cut.rstrip() + suffix


def format_ranking(entries: Sequence[Tuple[str, int]], separator: str = ", ") -> str:
    """Format (name, points) pairs as "🥇 amy (30 pts), 🥈 bob (20 pts), 4. ..."."""
    parts: List[str] = []
    for rank, (name, points) in enumerate(entries, 1):
        marker = RANK_MEDALS[rank - 1] if rank <= len(RANK_MEDALS) else f"{rank}."
        parts.append(f"{marker} {name} ({format_points(points)})")
    return separator.join(parts)
