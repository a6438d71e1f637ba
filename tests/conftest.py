"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from app.config import Settings  # noqa: E402
from app.models import Title  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, PROGRESS_THROTTLE_SECONDS=0)


@pytest.fixture
def catalog_payload() -> list[dict[str, object]]:
    """Catalog documents shaped the way the admin panel stores them."""

    return [
        {
            "id": "1",
            "title": "Blade Runner Academy",
            "genre": "Action",
            "totalEpisodes": 3,
            "videoUrl": "https://cdn.example/bra-default.mp4",
            "episodes": [
                {"episode": 2, "videoUrl": "https://cdn.example/bra-ep2.mp4"},
                {"episode": 1},
                {
                    "episode": 3,
                    "videoUrl": '{"type":"embed","provider":"bigcommand","dataId":"xyz123"}',
                },
            ],
            "views": 10,
        },
        {"id": "2", "title": "Mecha Drift", "genre": "Action", "views": 4},
        {"id": "3", "title": "Tea House Days", "genre": "Comedy", "views": 7},
        {
            "id": "4",
            "title": "Storm Ninja",
            "genre": "Action",
            "episodes": [{"episode": 5}, {"episode": 4}],
        },
        {"id": "5", "title": "Final Arc", "genre": "Action"},
    ]


@pytest.fixture
def catalog(catalog_payload) -> list[Title]:
    return [Title.model_validate(entry) for entry in catalog_payload]
