"""Fixed taxonomy of catalog categories and settings choices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


Category = Literal["Exclusive", "Korean Drama", "Series"]

ALL_CATEGORIES = "All"


@dataclass(frozen=True)
class CategoryDefinition:
    """Describes a browsable category chip shown above the grid."""

    key: str
    heading: str
    series_mode: bool


CATEGORY_DEFINITIONS: tuple[CategoryDefinition, ...] = (
    CategoryDefinition(key="Exclusive", heading="Exclusive Collection", series_mode=False),
    CategoryDefinition(key="Korean Drama", heading="Korean Drama Collection", series_mode=True),
    CategoryDefinition(key="Series", heading="Series Collection", series_mode=True),
)

CATEGORIES: tuple[str, ...] = tuple(definition.key for definition in CATEGORY_DEFINITIONS)
CATEGORY_FILTERS: tuple[str, ...] = (ALL_CATEGORIES, *CATEGORIES)
SERIES_CATEGORIES: frozenset[str] = frozenset(
    definition.key for definition in CATEGORY_DEFINITIONS if definition.series_mode
)

# Minutes between automatic view increments offered to operators.
VIEW_INCREMENT_INTERVALS: tuple[int, ...] = (30, 60, 120, 360, 1440)
DEFAULT_VIEW_INCREMENT_INTERVAL = 60


def grid_heading(category: str) -> str:
    """Return the section heading for the category grid."""

    if category == ALL_CATEGORIES:
        return "Just Added"
    for definition in CATEGORY_DEFINITIONS:
        if definition.key == category:
            return definition.heading
    raise ValueError(f"Unknown category: {category}")


def normalise_category_filter(value: object) -> str:
    """Return the canonical category filter for user supplied input."""

    if value is None:
        return ALL_CATEGORIES
    cleaned = " ".join(str(value).split())
    if not cleaned:
        return ALL_CATEGORIES
    for candidate in CATEGORY_FILTERS:
        if candidate.lower() == cleaned.lower():
            return candidate
    raise ValueError(f"Unknown category: {value}")
