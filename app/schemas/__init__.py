"""Beanie ODM schemas for MongoDB collections."""

from .init import DOCUMENT_MODELS, init_beanie_odm
from .stream import Stream

__all__ = [
    "DOCUMENT_MODELS",
    "Stream",
    "init_beanie_odm",
]
