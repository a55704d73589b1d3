"""Repositories wrapping the Cosmic API resources."""

from .base import BaseRepository, sanitize_for_logging
from .media import MediaRepository
from .objects import ObjectRepository
from .types import TypeRepository

__all__ = [
    "BaseRepository",
    "MediaRepository",
    "ObjectRepository",
    "TypeRepository",
    "sanitize_for_logging",
]
