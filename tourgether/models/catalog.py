"""Catalog and retrieval models shared across the RAG pipeline"""
import json
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class CatalogKind(str, Enum):
    """Catalog tables"""
    ATTRACTIONS = "attractions"
    RESTAURANTS = "restaurants"


class CatalogItem(BaseModel):
    """Common fields of an attraction or restaurant row"""
    model_config = {"extra": "ignore"}

    id: int = Field(..., description="Stable catalog id")
    name: str = Field(..., description="Place name")
    description: Optional[str] = Field(None, description="Free-text description")
    picture: Optional[str] = Field(None, description="Picture URL")
    destination: str = Field(default="", description="Destination the place belongs to")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Rating 0-5")
    review_tags: List[str] = Field(default_factory=list)
    general_location: Optional[str] = Field(None, description="Neighbourhood or area")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    embedding: Optional[List[float]] = Field(None, exclude=True, description="Dense vector, null when not embedded yet")
    combined_score: Optional[float] = Field(None, description="Per-query hybrid score, never stored")

    @field_validator("embedding", mode="before")
    @classmethod
    def parse_vector_literal(cls, v):
        """pgvector columns come back from PostgREST as '[0.1,0.2,...]' strings"""
        if isinstance(v, str):
            v = v.strip()
            return json.loads(v) if v else None
        return v

    @field_validator("review_tags", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    @property
    def tags(self) -> List[str]:
        return list(self.review_tags)


class Attraction(CatalogItem):
    """Attraction row"""
    categories: List[str] = Field(default_factory=list)

    @field_validator("categories", mode="before")
    @classmethod
    def categories_none_to_empty(cls, v):
        return v or []

    @property
    def tags(self) -> List[str]:
        return list(self.categories)


class Restaurant(CatalogItem):
    """Restaurant row"""
    cuisines: List[str] = Field(default_factory=list)
    dishes: List[str] = Field(default_factory=list)

    @field_validator("cuisines", "dishes", mode="before")
    @classmethod
    def lists_none_to_empty(cls, v):
        return v or []

    @property
    def tags(self) -> List[str]:
        return list(self.cuisines)


class WebSnippet(BaseModel):
    """Single web search hit"""
    title: str = ""
    url: str = ""
    content: str = ""
    score: float = 0.0


class RetrievalResult(BaseModel):
    """Evidence gathered for one request. Discarded after context assembly."""
    attractions: List[Attraction] = Field(default_factory=list)
    restaurants: List[Restaurant] = Field(default_factory=list)
    web_snippets: List[WebSnippet] = Field(default_factory=list)
    failures: List[str] = Field(default_factory=list, exclude=True, description="Soft failures absorbed while retrieving")

    @property
    def is_empty(self) -> bool:
        return not (self.attractions or self.restaurants or self.web_snippets)


ITEM_MODELS = {
    CatalogKind.ATTRACTIONS: Attraction,
    CatalogKind.RESTAURANTS: Restaurant,
}
