"""Episode list derivation for the watch page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .models import Title
from .utils import parse_int


@dataclass(frozen=True, slots=True)
class EpisodeLink:
    """One entry of the episode selector."""

    id: int | None
    is_current: bool

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.id, "isCurrent": self.is_current}


def episode_numbers(title: Title) -> list[int | None]:
    """Return the sorted episode identifiers of ``title``.

    Explicit episode records win over ``totalEpisodes``. Duplicates are kept
    and entries without a numeric ``episode`` are placed last as ``None``.
    """

    if title.episodes:
        numbers = [entry.number for entry in title.episodes]
        valid = sorted(number for number in numbers if number is not None)
        invalid: list[int | None] = [None] * (len(numbers) - len(valid))
        return [*valid, *invalid]

    total = parse_int(title.total_episodes)
    if not total:
        total = 1
    return list(range(1, total + 1))


def list_episodes(title: Title, current_episode: object) -> list[EpisodeLink]:
    """Return the episode selector for ``title`` with the requested one marked."""

    current = parse_int(current_episode)
    return [
        EpisodeLink(id=number, is_current=number is not None and number == current)
        for number in episode_numbers(title)
    ]


def first_episode(title: Title) -> int:
    """Lowest numeric episode of ``title``, 1 when it has none."""

    numbers = [entry.number for entry in title.episodes if entry.number is not None]
    return min(numbers) if numbers else 1
