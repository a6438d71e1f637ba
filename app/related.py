"""Related-title suggestions shown beside the player."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .episodes import first_episode
from .models import Title

DEFAULT_RELATED_LIMIT = 4


@dataclass(frozen=True, slots=True)
class RelatedTitle:
    title: Title
    first_episode: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.title.id,
            "title": self.title.title,
            "thumbnail": self.title.thumbnail,
            "genre": self.title.genre,
            "views": self.title.views,
            "firstEpisode": self.first_episode,
        }


def related_titles(
    all_titles: Sequence[Title],
    exclude_id: str,
    genre: str | None,
    *,
    limit: int = DEFAULT_RELATED_LIMIT,
) -> list[RelatedTitle]:
    """Pick up to ``limit`` titles sharing ``genre``.

    When nothing else shares the genre, any other title qualifies. Titles keep
    their catalog order; there is no ranking by views or recency.
    """

    candidates = [title for title in all_titles if title.id != exclude_id]
    same_genre = [title for title in candidates if genre and title.genre == genre]
    selected = (same_genre or candidates)[:limit]
    return [
        RelatedTitle(title=title, first_episode=first_episode(title))
        for title in selected
    ]
