"""Repository pattern implementations for database persistence.

This module provides a Repository pattern abstraction for data persistence,
enabling:
- Clean separation between detection logic and data access
- Easy swapping of storage backends (SQLite, any relational store)
- Idempotent upserts keyed by planned workout id
"""

from .base import Repository
from .adaptation_repository import AdaptationRepository

__all__ = [
    "Repository",
    "AdaptationRepository",
]
