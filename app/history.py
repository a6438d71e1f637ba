"""Bounded, per-title watch history."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Iterable

from .models import WatchHistoryEntry

DEFAULT_HISTORY_LIMIT = 20


def record(
    entries: Iterable[WatchHistoryEntry],
    title_id: str,
    episode: int,
    progress: float,
    *,
    now: datetime | None = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[WatchHistoryEntry]:
    """Return a new ledger with ``title_id`` updated to the latest position.

    An existing entry for the title is replaced outright, so the episode from
    an earlier session is dropped rather than merged. The result is ordered by
    ``last_watched`` (newest first) and holds at most ``limit`` entries.
    """

    entry = WatchHistoryEntry(
        title_id=title_id,
        episode=episode,
        progress=progress,
        last_watched=now or datetime.now(timezone.utc),
    )

    # The fresh entry leads so it wins ties on ``last_watched``.
    ledger = [entry]
    ledger.extend(existing for existing in entries if existing.title_id != title_id)

    ledger.sort(key=lambda item: item.last_watched, reverse=True)
    return ledger[:limit]


class ProgressThrottle:
    """Rate limiter for playback progress ticks, keyed by title.

    Players fire ``timeupdate`` several times a second; only ticks at least
    ``interval`` seconds apart for the same title are let through. A change of
    episode always passes so the ledger never lags behind navigation.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._interval = interval
        self._clock = clock
        self._last: dict[str, tuple[float, int]] = {}

    def allow(self, title_id: str, episode: int) -> bool:
        now = self._clock()
        previous = self._last.get(title_id)
        if previous is not None:
            last_at, last_episode = previous
            if last_episode == episode and now - last_at < self._interval:
                return False
        self._last[title_id] = (now, episode)
        return True

    def reset(self, title_id: str) -> None:
        self._last.pop(title_id, None)
