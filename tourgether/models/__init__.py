"""Domain models"""
from .catalog import (
    CatalogKind,
    CatalogItem,
    Attraction,
    Restaurant,
    WebSnippet,
    RetrievalResult,
    ITEM_MODELS,
)

__all__ = [
    "CatalogKind",
    "CatalogItem",
    "Attraction",
    "Restaurant",
    "WebSnippet",
    "RetrievalResult",
    "ITEM_MODELS",
]
