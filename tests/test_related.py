from __future__ import annotations

from app.models import Title
from app.related import RelatedTitle, related_titles


def _titles(*rows: tuple[str, str | None]) -> list[Title]:
    return [
        Title.model_validate({"id": title_id, "title": f"Title {title_id}", "genre": genre})
        for title_id, genre in rows
    ]


def test_genre_matches_win_in_catalog_order() -> None:
    titles = _titles(
        ("1", "Action"), ("2", "Action"), ("3", "Comedy"), ("4", "Action"), ("5", "Action")
    )

    related = related_titles(titles, "5", "Action")

    assert [entry.title.id for entry in related] == ["1", "2", "4"]


def test_falls_back_to_other_titles_without_matches() -> None:
    titles = _titles(
        ("1", "Drama"), ("2", "Comedy"), ("3", "Horror"), ("4", "Drama"), ("5", "Romance"), ("6", "Sports")
    )

    related = related_titles(titles, "6", "Sports")

    assert [entry.title.id for entry in related] == ["1", "2", "3", "4"]


def test_limits_genre_matches() -> None:
    titles = _titles(*[(str(index), "Action") for index in range(1, 9)])

    related = related_titles(titles, "1", "Action")

    assert [entry.title.id for entry in related] == ["2", "3", "4", "5"]


def test_missing_genre_uses_fallback() -> None:
    titles = _titles(("1", None), ("2", "Action"))

    assert [entry.title.id for entry in related_titles(titles, "1", None)] == ["2"]


def test_only_title_has_no_related() -> None:
    assert related_titles(_titles(("1", "Action")), "1", "Action") == []


def test_first_episode_derived_per_title() -> None:
    titles = [
        Title.model_validate(
            {"id": "1", "title": "A", "genre": "Action", "episodes": [{"episode": 4}, {"episode": 2}]}
        ),
        Title.model_validate({"id": "2", "title": "B", "genre": "Action"}),
        Title.model_validate({"id": "3", "title": "C", "genre": "Action"}),
    ]

    related = related_titles(titles, "3", "Action")

    assert [entry.first_episode for entry in related] == [2, 1]
    assert related[0] == RelatedTitle(title=titles[0], first_episode=2)
    assert related[0].to_payload()["firstEpisode"] == 2


def test_titles_without_genre_fall_back_in_catalog_order() -> None:
    titles = _titles(("1", None), ("2", None), ("3", "Action"), ("4", None), ("5", "Drama"), ("6", None))

    related = related_titles(titles, "2", None)

    assert [entry.title.id for entry in related] == ["1", "3", "4", "5"]
