"""Catalog operations backing the watch page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from ..config import Settings
from ..episodes import EpisodeLink, list_episodes
from ..history import ProgressThrottle, record
from ..models import ProgressReport, Title, WatchHistoryEntry
from ..related import RelatedTitle, related_titles
from ..stores import CatalogStore, HistoryStore
from ..utils import parse_int
from ..video_sources import VideoSource, resolve_video

logger = logging.getLogger(__name__)


class MissingTitle(LookupError):
    """The requested title is not in the catalog."""

    def __init__(self, title_id: str):
        super().__init__(f"Title {title_id!r} not found")
        self.title_id = title_id


@dataclass
class WatchPage:
    """Everything the player page needs for one title and episode."""

    title: Title
    episode: int
    video: VideoSource
    episodes: list[EpisodeLink]
    related: list[RelatedTitle]

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title.to_payload(),
            "episode": self.episode,
            "video": self.video.to_payload(),
            "episodes": [link.to_payload() for link in self.episodes],
            "related": [entry.to_payload() for entry in self.related],
        }


class CatalogService:
    """Coordinates the catalog and history stores with the watch-page logic.

    Every operation loads the documents it needs, works on that snapshot and
    saves at most once; nothing is cached between calls.
    """

    def __init__(
        self,
        settings: Settings,
        catalog_store: CatalogStore,
        history_store: HistoryStore,
        throttle: ProgressThrottle | None = None,
    ):
        self._settings = settings
        self._catalog = catalog_store
        self._history = history_store
        self._throttle = throttle or ProgressThrottle(settings.progress_throttle_seconds)

    async def list_titles(self) -> list[Title]:
        return await self._catalog.get_all_titles()

    async def replace_titles(self, titles: Sequence[Title]) -> None:
        ids = [title.id for title in titles]
        if len(set(ids)) != len(ids):
            raise ValueError("Title identifiers must be unique")
        await self._catalog.save_titles(titles)
        logger.info("Catalog replaced with %d titles", len(titles))

    async def get_title(self, title_id: str) -> Title:
        return self._find(await self._catalog.get_all_titles(), title_id)

    @staticmethod
    def _find(titles: Sequence[Title], title_id: str) -> Title:
        for title in titles:
            if title.id == title_id:
                return title
        raise MissingTitle(title_id)

    def resolve_video(self, title: Title, episode_number: object) -> VideoSource:
        return resolve_video(
            title,
            episode_number,
            bigcommand_base=self._settings.bigcommand_base,
            admin_path=self._settings.admin_path,
        )

    async def watch_page(self, title_id: str, episode: object = None) -> WatchPage:
        """Assemble the player, episode selector and related titles."""

        titles = await self._catalog.get_all_titles()
        title = self._find(titles, title_id)
        current = parse_int(episode)
        if current is None:
            current = 1
        return WatchPage(
            title=title,
            episode=current,
            video=self.resolve_video(title, current),
            episodes=list_episodes(title, current),
            related=related_titles(
                titles, title.id, title.genre, limit=self._settings.related_limit
            ),
        )

    async def start_session(self, title_id: str, episode: int) -> Title:
        """Count a view and put the title at the top of the history."""

        titles = await self._catalog.get_all_titles()
        title = self._find(titles, title_id)
        title.views += 1
        await self._catalog.save_titles(titles)
        self._throttle.reset(title_id)
        await self.record_watch(title_id, episode, 0)
        return title

    async def record_watch(
        self, title_id: str, episode: int, progress: float
    ) -> list[WatchHistoryEntry]:
        ledger = record(
            await self._history.get_history(),
            title_id,
            episode,
            progress,
            limit=self._settings.history_limit,
        )
        await self._history.save_history(ledger)
        return ledger

    async def report_progress(self, report: ProgressReport) -> bool:
        """Record a playback tick; returns ``False`` when it was skipped."""

        progress = report.progress
        if progress is None or progress <= 0:
            return False
        if not self._throttle.allow(report.title_id, report.episode):
            return False
        await self.record_watch(report.title_id, report.episode, progress)
        return True

    async def get_history(self) -> list[WatchHistoryEntry]:
        return await self._history.get_history()
