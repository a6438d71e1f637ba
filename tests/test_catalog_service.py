from __future__ import annotations

import asyncio

import pytest

from app.config import Settings
from app.history import ProgressThrottle
from app.models import ProgressReport
from app.services.catalog import CatalogService, MissingTitle
from app.stores import InMemoryCatalogStore, InMemoryHistoryStore
from app.video_sources import DirectVideo, NoVideo, ProviderEmbed


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _service(settings: Settings, catalog, **kwargs) -> CatalogService:
    return CatalogService(
        settings,
        InMemoryCatalogStore(catalog),
        InMemoryHistoryStore(),
        **kwargs,
    )


def test_watch_page_collects_player_episodes_and_related(settings, catalog) -> None:
    service = _service(settings, catalog)

    page = asyncio.run(service.watch_page("1", "2"))

    assert page.video == DirectVideo(url="https://cdn.example/bra-ep2.mp4")
    assert [(link.id, link.is_current) for link in page.episodes] == [
        (1, False),
        (2, True),
        (3, False),
    ]
    assert [entry.title.id for entry in page.related] == ["2", "4", "5"]
    assert [entry.first_episode for entry in page.related] == [1, 4, 1]


def test_watch_page_resolves_provider_embeds_with_configured_base(catalog) -> None:
    settings = Settings(_env_file=None, BIGCOMMAND_EMBED_URL="https://player.example/watch")
    service = _service(settings, catalog)

    page = asyncio.run(service.watch_page("1", 3))

    assert page.video == ProviderEmbed(
        provider="bigcommand", data_id="xyz123", base_url="https://player.example/watch/"
    )
    assert page.to_payload()["video"]["src"] == "https://player.example/watch/xyz123"


def test_watch_page_defaults_to_first_episode(settings, catalog) -> None:
    service = _service(settings, catalog)

    page = asyncio.run(service.watch_page("1"))

    assert page.episode == 1
    assert page.video == DirectVideo(url="https://cdn.example/bra-default.mp4")


def test_watch_page_without_video(settings, catalog) -> None:
    service = _service(settings, catalog)

    page = asyncio.run(service.watch_page("2", 1))

    assert page.video == NoVideo()
    assert page.to_payload()["video"] == {"kind": "none"}


def test_missing_title_raises(settings, catalog) -> None:
    service = _service(settings, catalog)

    with pytest.raises(MissingTitle):
        asyncio.run(service.watch_page("404"))
    with pytest.raises(MissingTitle):
        asyncio.run(service.start_session("404", 1))


def test_start_session_counts_view_and_records_history(settings, catalog) -> None:
    service = _service(settings, catalog)

    async def runner():
        await service.start_session("1", 2)
        title = await service.get_title("1")
        history = await service.get_history()
        return title, history

    title, history = asyncio.run(runner())

    assert title.views == 11
    assert [(entry.title_id, entry.episode, entry.progress) for entry in history] == [
        ("1", 2, 0)
    ]


def test_record_watch_uses_configured_limit(catalog) -> None:
    settings = Settings(_env_file=None, HISTORY_LIMIT=2)
    service = _service(settings, catalog)

    async def runner():
        for title_id in ("1", "2", "3"):
            await service.record_watch(title_id, 1, 10)
        return await service.get_history()

    history = asyncio.run(runner())

    assert [entry.title_id for entry in history] == ["3", "2"]


def test_report_progress_skips_unknown_duration(settings, catalog) -> None:
    service = _service(settings, catalog)
    report = ProgressReport(title_id="1", episode=1, current_time=12, duration=0)

    assert asyncio.run(service.report_progress(report)) is False
    assert asyncio.run(service.get_history()) == []


def test_report_progress_is_throttled(catalog) -> None:
    settings = Settings(_env_file=None, PROGRESS_THROTTLE_SECONDS=5)
    clock = FakeClock()
    service = _service(settings, catalog, throttle=ProgressThrottle(5, clock=clock))

    async def tick(seconds: float) -> bool:
        return await service.report_progress(
            ProgressReport(title_id="1", episode=1, current_time=seconds, duration=100)
        )

    async def runner():
        results = [await tick(10)]
        clock.now = 1
        results.append(await tick(11))
        clock.now = 6
        results.append(await tick(16))
        return results, await service.get_history()

    results, history = asyncio.run(runner())

    assert results == [True, False, True]
    assert len(history) == 1
    assert history[0].progress == 16


def test_replace_titles_rejects_duplicate_ids(settings, catalog) -> None:
    service = _service(settings, [])

    with pytest.raises(ValueError, match="unique"):
        asyncio.run(service.replace_titles([catalog[0], catalog[0]]))


def test_replace_titles_swaps_catalog(settings, catalog) -> None:
    service = _service(settings, [])

    async def runner():
        await service.replace_titles(catalog[:2])
        return await service.list_titles()

    assert [title.id for title in asyncio.run(runner())] == ["1", "2"]


def test_watch_page_serves_titles_with_fractional_episodes(settings, catalog_payload) -> None:
    catalog_payload.append(
        {
            "id": "6",
            "title": "Interlude",
            "genre": "Drama",
            "episodes": [
                {"episode": 2.5, "videoUrl": "https://cdn.example/interlude-2.mp4"},
                {"episode": 1},
            ],
        }
    )
    service = CatalogService(
        settings, InMemoryCatalogStore(catalog_payload), InMemoryHistoryStore()
    )

    page = asyncio.run(service.watch_page("6", 2))

    assert [(link.id, link.is_current) for link in page.episodes] == [(1, False), (2, True)]
    assert page.video == DirectVideo(url="https://cdn.example/interlude-2.mp4")
