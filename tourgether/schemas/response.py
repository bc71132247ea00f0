"""Response schemas for API endpoints"""
from typing import List, Optional
from pydantic import BaseModel, Field
from ..models.catalog import Attraction, Restaurant

SUMMARY_DESCRIPTION_CHARS = 200


class _CamelModel(BaseModel):
    model_config = {"populate_by_name": True}


class AttractionSummary(_CamelModel):
    """Attraction surfaced to the caller for rendering images and ratings"""
    id: int
    name: str
    picture: Optional[str] = None
    rating: Optional[float] = None
    description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: Attraction) -> "AttractionSummary":
        description = item.description[:SUMMARY_DESCRIPTION_CHARS] if item.description else None
        return cls(
            id=item.id,
            name=item.name,
            picture=item.picture,
            rating=item.rating,
            description=description,
            categories=item.categories,
        )


class RestaurantSummary(_CamelModel):
    """Restaurant surfaced to the caller"""
    id: int
    name: str
    picture: Optional[str] = None
    rating: Optional[float] = None
    cuisines: List[str] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: Restaurant) -> "RestaurantSummary":
        return cls(
            id=item.id,
            name=item.name,
            picture=item.picture,
            rating=item.rating,
            cuisines=item.cuisines,
        )


class SourceCounts(_CamelModel):
    """Provenance of the facts that fed the generator"""
    database_attractions: int = Field(0, alias="databaseAttractions")
    database_restaurants: int = Field(0, alias="databaseRestaurants")
    web_sources: int = Field(0, alias="webSources")


class GenerateItineraryResponse(_CamelModel):
    """Response for /generate-travel-itinerary"""
    success: bool = True
    itinerary: str = Field(..., description="Markdown itinerary")
    destination: str
    days_count: int = Field(..., alias="daysCount")
    attractions: List[AttractionSummary] = Field(default_factory=list)
    restaurants: List[RestaurantSummary] = Field(default_factory=list)
    sources: SourceCounts
    unverified_places: List[str] = Field(
        default_factory=list,
        alias="unverifiedPlaces",
        description="Bold place mentions that could not be matched to the retrieved context"
    )


class SearchResults(_CamelModel):
    attractions: List[Attraction] = Field(default_factory=list)
    restaurants: List[Restaurant] = Field(default_factory=list)


class CatalogSearchResponse(_CamelModel):
    """Response for /search-travel"""
    success: bool = True
    query: Optional[str] = None
    results: SearchResults
    total_results: int = Field(0, alias="totalResults")


class ImportSummary(_CamelModel):
    """Response for /catalog/import"""
    success: bool = True
    attractions_imported: int = Field(0, alias="attractionsImported")
    restaurants_imported: int = Field(0, alias="restaurantsImported")
    total_imported: int = Field(0, alias="totalImported")
    errors: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error response"""
    error: str = Field(..., description="Short, user-facing error message")
    details: Optional[List[str]] = Field(None, description="Per-field validation messages")
