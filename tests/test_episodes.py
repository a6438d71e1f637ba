from __future__ import annotations

from app.episodes import EpisodeLink, episode_numbers, first_episode, list_episodes
from app.models import Title


def _title(**fields: object) -> Title:
    return Title.model_validate({"id": "t", "title": "Test", **fields})


def test_explicit_episodes_are_sorted_and_current_marked() -> None:
    title = _title(episodes=[{"episode": 3}, {"episode": 1}, {"episode": 2}])

    links = list_episodes(title, "2")

    assert links == [
        EpisodeLink(id=1, is_current=False),
        EpisodeLink(id=2, is_current=True),
        EpisodeLink(id=3, is_current=False),
    ]


def test_episode_strings_sort_numerically() -> None:
    title = _title(episodes=[{"episode": "10"}, {"episode": "2"}, {"episode": "1"}])

    assert episode_numbers(title) == [1, 2, 10]


def test_duplicate_episodes_are_passed_through() -> None:
    title = _title(episodes=[{"episode": 1}, {"episode": 2}, {"episode": 1}])

    links = list_episodes(title, 1)

    assert [link.id for link in links] == [1, 1, 2]
    assert [link.is_current for link in links] == [True, True, False]


def test_output_length_matches_episode_records() -> None:
    records = [{"episode": number} for number in (7, 3, 9, 1, 4)]
    title = _title(episodes=records)

    links = list_episodes(title, None)

    assert len(links) == len(records)
    assert [link.id for link in links] == sorted(number["episode"] for number in records)
    assert not any(link.is_current for link in links)


def test_total_episodes_used_without_records() -> None:
    title = _title(totalEpisodes=4)

    assert [link.id for link in list_episodes(title, 4)] == [1, 2, 3, 4]
    assert list_episodes(title, 4)[-1].is_current is True


def test_total_episodes_defaults_to_one_when_missing_or_zero() -> None:
    assert episode_numbers(_title()) == [1]
    assert episode_numbers(_title(totalEpisodes="lots")) == [1]
    assert episode_numbers(_title(totalEpisodes=0)) == [1]
    assert episode_numbers(_title(totalEpisodes="6")) == [1, 2, 3, 4, 5, 6]


def test_non_numeric_episodes_sort_last_and_never_current() -> None:
    title = _title(episodes=[{"episode": "special"}, {"episode": 2}, {"episode": 1}])

    links = list_episodes(title, "special")

    assert [link.id for link in links] == [1, 2, None]
    assert not any(link.is_current for link in links)


def test_episode_link_payload() -> None:
    assert EpisodeLink(id=3, is_current=True).to_payload() == {"id": 3, "isCurrent": True}


def test_first_episode_is_lowest_number() -> None:
    assert first_episode(_title(episodes=[{"episode": 5}, {"episode": 3}])) == 3
    assert first_episode(_title(episodes=[{"episode": "x"}])) == 1
    assert first_episode(_title()) == 1


def test_negative_total_episodes_lists_nothing() -> None:
    assert episode_numbers(_title(totalEpisodes=-3)) == []
    assert list_episodes(_title(totalEpisodes="-1"), 1) == []


def test_fractional_episode_numbers_are_truncated() -> None:
    title = _title(episodes=[{"episode": 2.5}, {"episode": 1}])

    assert episode_numbers(title) == [1, 2]
    assert title.episodes[0].episode == 2.5


def test_fractional_total_episodes_are_truncated() -> None:
    assert episode_numbers(_title(totalEpisodes=12.5)) == list(range(1, 13))
