"""Category and season taxonomy tests."""

from __future__ import annotations

import pytest

from cineflix.categories import (
    ALL_CATEGORIES,
    CATEGORY_FILTERS,
    grid_heading,
    normalise_category_filter,
)
from cineflix.models import Episode
from cineflix.taxonomy import (
    available_seasons,
    default_season,
    group_by_season,
    insert_episode,
    next_episode_number,
    parse_season,
    remove_episode,
)


def _episode(identifier: str, season: int, number: int) -> Episode:
    return Episode(
        id=identifier,
        season=season,
        number=number,
        title=f"Episode {identifier}",
        access_code=f"code-{identifier}",
    )


def test_category_filters_start_with_all() -> None:
    assert CATEGORY_FILTERS == (ALL_CATEGORIES, "Exclusive", "Korean Drama", "Series")


def test_grid_heading_for_each_filter() -> None:
    assert grid_heading("All") == "Just Added"
    assert grid_heading("Korean Drama") == "Korean Drama Collection"

    with pytest.raises(ValueError):
        grid_heading("Cartoons")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, "All"), ("", "All"), ("series", "Series"), ("korean  drama", "Korean Drama")],
)
def test_normalise_category_filter(value: object, expected: str) -> None:
    assert normalise_category_filter(value) == expected


def test_normalise_category_filter_rejects_unknown_values() -> None:
    with pytest.raises(ValueError):
        normalise_category_filter("Documentary")


def test_group_by_season_orders_seasons_and_episodes() -> None:
    episodes = [
        _episode("c", 2, 2),
        _episode("a", 1, 1),
        _episode("d", 2, 1),
        _episode("b", 1, 2),
    ]

    grouped = group_by_season(episodes)

    assert list(grouped) == [1, 2]
    assert [episode.id for episode in grouped[1]] == ["a", "b"]
    assert [episode.id for episode in grouped[2]] == ["d", "c"]


def test_group_by_season_keeps_gaps() -> None:
    grouped = group_by_season([_episode("x", 3, 1), _episode("y", 1, 1)])

    assert list(grouped) == [1, 3]
    assert available_seasons(grouped[1] + grouped[3]) == (1, 3)


def test_group_by_season_keeps_duplicate_numbers_in_input_order() -> None:
    grouped = group_by_season([_episode("first", 1, 2), _episode("second", 1, 2)])

    assert [episode.id for episode in grouped[1]] == ["first", "second"]


def test_default_season_prefers_season_one() -> None:
    assert default_season({1: (), 2: ()}) == 1
    assert default_season((2, 4)) == 2
    assert default_season(()) == 1


def test_next_episode_number_counts_within_season() -> None:
    episodes = [_episode("a", 1, 1), _episode("b", 1, 2), _episode("c", 2, 1)]

    assert next_episode_number(episodes, 1) == 3
    assert next_episode_number(episodes, 2) == 2
    assert next_episode_number(episodes, 5) == 1


@pytest.mark.parametrize(("value", "expected"), [("2", 2), ("", 1), ("abc", 1), (0, 1), (-3, 1)])
def test_parse_season(value: object, expected: int) -> None:
    assert parse_season(value) == expected


def test_insert_episode_numbers_sequentially_within_season() -> None:
    episodes: tuple[Episode, ...] = ()
    for index in range(3):
        episodes = insert_episode(
            episodes, title=f"Part {index}", access_code=f"p{index}", season=2
        )

    assert [(episode.season, episode.number) for episode in episodes] == [
        (2, 1),
        (2, 2),
        (2, 3),
    ]


def test_insert_episode_keeps_collection_sorted() -> None:
    episodes = (_episode("a", 2, 1),)

    result = insert_episode(episodes, title="Pilot", access_code="pilot", season="1")

    assert [(episode.season, episode.number) for episode in result] == [(1, 1), (2, 1)]
    assert result[0].duration == "N/A"


def test_remove_episode_does_not_renumber() -> None:
    episodes = (_episode("a", 1, 1), _episode("b", 1, 2), _episode("c", 1, 3))

    remaining = remove_episode(episodes, "b")

    assert [episode.number for episode in remaining] == [1, 3]
    assert next_episode_number(remaining, 1) == 3
