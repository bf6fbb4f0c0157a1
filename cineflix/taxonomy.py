"""Season and episode structure shared by browsing and authoring."""

from __future__ import annotations

import secrets
from typing import Iterable, Mapping

from .models import UNKNOWN_DURATION, Episode


def episode_sort_key(episode: Episode) -> tuple[int, int]:
    return episode.season, episode.number


def sort_episodes(episodes: Iterable[Episode]) -> tuple[Episode, ...]:
    """Return episodes ordered by season then episode number."""

    return tuple(sorted(episodes, key=episode_sort_key))


def group_by_season(episodes: Iterable[Episode]) -> dict[int, tuple[Episode, ...]]:
    """Partition episodes into seasons, each ordered by episode number.

    Seasons appear in ascending order regardless of the input order, and
    gaps in season numbering are preserved as-is.
    """

    groups: dict[int, list[Episode]] = {}
    for episode in episodes:
        groups.setdefault(episode.season, []).append(episode)
    return {
        season: tuple(sorted(groups[season], key=lambda entry: entry.number))
        for season in sorted(groups)
    }


def available_seasons(episodes: Iterable[Episode]) -> tuple[int, ...]:
    """Return the distinct season numbers present, ascending."""

    return tuple(sorted({episode.season for episode in episodes}))


def default_season(seasons: Mapping[int, object] | tuple[int, ...]) -> int:
    """Return the season a detail view opens on."""

    ordered = sorted(seasons)
    if not ordered or 1 in ordered:
        return 1
    return ordered[0]


def next_episode_number(episodes: Iterable[Episode], season: int) -> int:
    """Return the number a new episode receives within ``season``."""

    return sum(1 for episode in episodes if episode.season == season) + 1


def parse_season(value: object) -> int:
    """Coerce operator input into a season number, defaulting to 1."""

    try:
        season = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return season if season >= 1 else 1


def new_episode_id() -> str:
    return secrets.token_hex(8)


def insert_episode(
    episodes: Iterable[Episode],
    *,
    title: str,
    access_code: str,
    season: object = 1,
    duration: str | None = None,
    episode_id: str | None = None,
) -> tuple[Episode, ...]:
    """Append an episode to its season and return the re-sorted collection."""

    existing = tuple(episodes)
    season_number = parse_season(season)
    episode = Episode(
        id=episode_id or new_episode_id(),
        season=season_number,
        number=next_episode_number(existing, season_number),
        title=title,
        duration=(duration or "").strip() or UNKNOWN_DURATION,
        access_code=access_code,
    )
    return sort_episodes((*existing, episode))


def remove_episode(episodes: Iterable[Episode], episode_id: str) -> tuple[Episode, ...]:
    """Drop one episode; remaining episodes keep their numbers."""

    return tuple(episode for episode in episodes if episode.id != episode_id)
