"""Cineflix catalog synchronization and view-state engine."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["app", "create_app", "CatalogEngine"]

_LAZY_ATTRIBUTES = {
    "app": "cineflix.main",
    "create_app": "cineflix.main",
    "CatalogEngine": "cineflix.engine",
}


def __getattr__(name: str) -> Any:
    if name in _LAZY_ATTRIBUTES:
        module = import_module(_LAZY_ATTRIBUTES[name])
        return getattr(module, name)
    raise AttributeError(f"module 'cineflix' has no attribute {name}")
