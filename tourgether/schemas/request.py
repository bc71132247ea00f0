"""Request schemas for API endpoints"""
from datetime import date
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from ..config import settings
from ..utils.prompt_injection import PromptInjectionDetector


class TripType(str, Enum):
    LANDMARKS = "landmarks"
    HISTORICAL_PLACES = "historical_places"
    NATURE = "nature"
    ENTERTAINMENT = "entertainment"


class Pace(str, Enum):
    RELAXED = "relaxed"
    MODERATE = "moderate"
    FAST_PACED = "fast_paced"


class DiningStyle(str, Enum):
    LOCAL = "local"
    MIXED = "mixed"
    FINE_DINING = "fine_dining"


class TripRequest(BaseModel):
    """
    Request body for /generate-travel-itinerary

    Field names are camelCase on the wire to match the planner frontend.
    Every constraint is checked here, before any retrieval work.
    """
    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "json_schema_extra": {
            "example": {
                "destination": "Kyoto",
                "startDate": "2026-04-01",
                "endDate": "2026-04-03",
                "budgetMin": 1000,
                "budgetMax": 2500,
                "currency": "USD",
                "tripType": "historical_places",
                "pace": "moderate",
                "diningStyle": "local",
                "travelers": 2,
                "daysCount": 3
            }
        },
    }

    destination: str = Field(..., description="Destination name (e.g., 'Kyoto')")
    start_date: date = Field(..., alias="startDate", description="Trip start date (YYYY-MM-DD)")
    end_date: date = Field(..., alias="endDate", description="Trip end date (YYYY-MM-DD)")
    budget_min: float = Field(..., alias="budgetMin")
    budget_max: float = Field(..., alias="budgetMax")
    currency: str = Field(..., min_length=1, max_length=10)
    trip_type: TripType = Field(..., alias="tripType")
    pace: Pace
    dining_style: DiningStyle = Field(..., alias="diningStyle")
    travelers: int = Field(..., ge=1, le=50)
    days_count: int = Field(..., alias="daysCount", ge=1, le=60)
    predicted_region: Optional[str] = Field(
        None,
        alias="predictedRegion",
        max_length=100,
        description="Region key from a prior photo classification"
    )
    session_id: Optional[str] = Field(None, alias="sessionId", max_length=100)

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v):
        """Non-empty, bounded, and free of prompt injection attempts"""
        v = PromptInjectionDetector.sanitize_text(v, max_length=len(v) + 1)
        if not v:
            raise ValueError("Destination is required")
        if len(v) > settings.max_destination_length:
            raise ValueError(f"Destination too long (max {settings.max_destination_length} characters)")

        is_safe, _ = PromptInjectionDetector.detect_injection(v, check_place=True)
        if not is_safe:
            raise ValueError("Invalid destination format - suspicious content detected")
        return v

    @field_validator("budget_min", "budget_max")
    @classmethod
    def validate_budget_range(cls, v):
        if v < 0:
            raise ValueError("Budget must be positive")
        if v > settings.max_budget:
            raise ValueError("Budget too high")
        return v

    @field_validator("budget_max")
    @classmethod
    def max_not_below_min(cls, v, info):
        """Validate maximum budget is not below minimum budget"""
        if "budget_min" in info.data and v < info.data["budget_min"]:
            raise ValueError("Maximum budget must be greater than or equal to minimum budget")
        return v

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v, info):
        """Validate end date is on or after start date"""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("End date must be on or after start date")
        return v

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v):
        return v.strip().upper()

    @field_validator("predicted_region")
    @classmethod
    def validate_predicted_region(cls, v):
        if v is None:
            return v
        v = PromptInjectionDetector.sanitize_text(v, max_length=100)
        is_safe, _ = PromptInjectionDetector.detect_injection(v)
        if not is_safe:
            raise ValueError("Invalid region format - suspicious content detected")
        return v or None


class SearchType(str, Enum):
    BOTH = "both"
    ATTRACTIONS = "attractions"
    RESTAURANTS = "restaurants"


class CatalogSearchRequest(BaseModel):
    """Request body for /search-travel"""
    model_config = {"populate_by_name": True, "extra": "ignore"}

    query: Optional[str] = Field(None, max_length=300)
    destination: Optional[str] = Field(None, max_length=100)
    type: SearchType = SearchType.BOTH
    categories: Optional[List[str]] = None
    cuisines: Optional[List[str]] = None
    min_rating: Optional[float] = Field(None, alias="minRating", ge=0, le=5)
    limit: int = Field(10, ge=1, le=50)
    use_semantic_search: bool = Field(True, alias="useSemanticSearch")


class CatalogImportRequest(BaseModel):
    """Request body for /catalog/import - raw rows from an external catalog export"""
    model_config = {"populate_by_name": True, "extra": "ignore"}

    attractions: List[dict] = Field(default_factory=list)
    restaurants: List[dict] = Field(default_factory=list)
    generate_embeddings: bool = Field(True, alias="generateEmbeddings")
    batch_size: int = Field(25, alias="batchSize", ge=1, le=96)
