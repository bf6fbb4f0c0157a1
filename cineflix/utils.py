"""Utility helpers for the Cineflix engine."""

from __future__ import annotations

import hashlib
import json
import secrets
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_document_id() -> str:
    """Return a random 20 character document identifier."""

    return secrets.token_urlsafe(15)


def fingerprint(payload: Any) -> str:
    """Return a stable digest of a JSON-compatible payload."""

    encoded = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def build_deep_link(bot_username: str, access_code: str) -> str:
    """Return the bot deep link that delivers ``access_code``."""

    handle = bot_username.strip().lstrip("@")
    return f"https://t.me/{handle}?start={quote(access_code.strip(), safe='')}"
