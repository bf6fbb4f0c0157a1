"""Built-in catalog rendered when the remote store is empty or unreachable."""

from __future__ import annotations

from typing import Any

from .models import ContentItem


SEED_DOCUMENTS: tuple[tuple[str, dict[str, Any]], ...] = (
    (
        "seed-1",
        {
            "title": "Shadow Protocol",
            "category": "Exclusive",
            "thumbnail": "https://images.cineflix.app/seed/shadow-protocol.jpg",
            "telegramCode": "shadow_protocol_4k",
            "year": "2025",
            "rating": 9.2,
            "quality": "4K HDR",
            "description": "A decommissioned agent is pulled back for one last extraction.",
            "views": "12.4K",
        },
    ),
    (
        "seed-2",
        {
            "title": "Crash Landing Memories",
            "category": "Korean Drama",
            "thumbnail": "https://images.cineflix.app/seed/crash-landing-memories.jpg",
            "year": "2024",
            "rating": 8.9,
            "quality": "1080p",
            "description": "An heiress and a border officer rebuild a life across the line.",
            "views": "48K",
            "episodes": [
                {"id": "seed-2-e1", "season": 1, "number": 1, "title": "The Fall", "duration": "62m", "telegramCode": "clm_s1e1"},
                {"id": "seed-2-e2", "season": 1, "number": 2, "title": "Borderline", "duration": "64m", "telegramCode": "clm_s1e2"},
                {"id": "seed-2-e3", "season": 1, "number": 3, "title": "Safe House", "duration": "61m", "telegramCode": "clm_s1e3"},
            ],
        },
    ),
    (
        "seed-3",
        {
            "title": "Neon District",
            "category": "Series",
            "thumbnail": "https://images.cineflix.app/seed/neon-district.jpg",
            "year": "2023",
            "rating": 8.4,
            "quality": "4K",
            "description": "Detectives patrol a city that never switches its lights off.",
            "views": "9.8K",
            "episodes": [
                {"id": "seed-3-e1", "season": 1, "number": 1, "title": "Pilot", "duration": "48m", "telegramCode": "neon_s1e1"},
                {"id": "seed-3-e2", "season": 1, "number": 2, "title": "Afterglow", "duration": "45m", "telegramCode": "neon_s1e2"},
                {"id": "seed-3-e3", "season": 2, "number": 1, "title": "Blackout", "duration": "51m", "telegramCode": "neon_s2e1"},
            ],
        },
    ),
    (
        "seed-4",
        {
            "title": "The Last Monsoon",
            "category": "Exclusive",
            "thumbnail": "https://images.cineflix.app/seed/the-last-monsoon.jpg",
            "telegramCode": "last_monsoon_hd",
            "year": "2024",
            "rating": 8.1,
            "quality": "4K HDR",
            "description": "A fishing village braces for the storm of the century.",
            "views": "3.1K",
        },
    ),
    (
        "seed-5",
        {
            "title": "Hanok Hearts",
            "category": "Korean Drama",
            "thumbnail": "https://images.cineflix.app/seed/hanok-hearts.jpg",
            "year": "2025",
            "rating": 8.7,
            "quality": "1080p",
            "description": "Two rival architects restore the same traditional house.",
            "views": "21K",
            "episodes": [
                {"id": "seed-5-e1", "season": 1, "number": 1, "title": "Foundations", "duration": "58m", "telegramCode": "hanok_s1e1"},
                {"id": "seed-5-e2", "season": 1, "number": 2, "title": "Roof Tiles", "duration": "60m", "telegramCode": "hanok_s1e2"},
            ],
        },
    ),
    (
        "seed-6",
        {
            "title": "Orbit Zero",
            "category": "Exclusive",
            "thumbnail": "https://images.cineflix.app/seed/orbit-zero.jpg",
            "telegramCode": "orbit_zero_4k",
            "year": "2025",
            "rating": 7.6,
            "quality": "4K",
            "description": "A maintenance crew is stranded above a silent Earth.",
            "views": "870",
        },
    ),
    (
        "seed-7",
        {
            "title": "Cold Case Files: Dhaka",
            "category": "Series",
            "thumbnail": "https://images.cineflix.app/seed/cold-case-dhaka.jpg",
            "year": "2022",
            "rating": 7.9,
            "quality": "720p",
            "description": "Unsolved files reopened by a detective with nothing to lose.",
            "views": "5.5K",
            "episodes": [
                {"id": "seed-7-e1", "season": 1, "number": 1, "title": "The Ferry", "duration": "42m", "telegramCode": "ccd_s1e1"},
            ],
        },
    ),
)


def seed_catalog() -> tuple[ContentItem, ...]:
    """Return the built-in fallback catalog in display order."""

    return tuple(
        ContentItem.from_document(document_id, data)
        for document_id, data in SEED_DOCUMENTS
    )


SEED_CATALOG: tuple[ContentItem, ...] = seed_catalog()
