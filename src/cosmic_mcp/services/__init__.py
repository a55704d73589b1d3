"""Business services for objects, object types and media."""

from .media import MediaService
from .objects import ObjectService, generate_slug
from .types import TypeService, pluralize

__all__ = [
    "MediaService",
    "ObjectService",
    "TypeService",
    "generate_slug",
    "pluralize",
]
