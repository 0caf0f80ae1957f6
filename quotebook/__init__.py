"""Persistent quotes, comments and users with cascading deletes."""

from __future__ import annotations

from typing import Any

from .storage import CollectionStore, Database, resolve_database_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "CollectionStore",
    "Database",
    "resolve_database_path",
    "create_app",
]
