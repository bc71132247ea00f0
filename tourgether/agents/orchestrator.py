"""
Orchestrator - runs the retrieval tiers, assembles context and generates the itinerary

Pipeline:
    validate -> resolve region -> hybrid search -> (nothing found) text search
    -> (no attractions) web search -> build context -> generate -> grounding check

Each retrieval tier is a small stage returning a StageResult. The orchestrator
composes them left to right; nothing is retried and nothing loops.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..config import settings
from ..errors import GenerationUnavailableError, RetrievalSoftFailure
from ..models.catalog import RetrievalResult, WebSnippet
from ..rag.context import DEFAULT_LIMITS, ContextLimits, build_context
from ..rag.retriever import HybridRetriever, get_retriever
from ..rag.vector_store import CatalogStore, get_catalog_store
from ..schemas.request import TripRequest
from ..schemas.response import (
    AttractionSummary,
    GenerateItineraryResponse,
    RestaurantSummary,
    SourceCounts,
)
from ..tools.web_search import WebSearchAPI, attraction_query, get_web_search, restaurant_query
from ..validators.input_validator import trip_summary, validate_trip_request
from .grounding import find_unverified_places
from .itinerary_agent import ItineraryGenerator

logger = logging.getLogger(__name__)

GROUNDING_POLICIES = ("accept", "warn", "reject")


@dataclass
class StageResult:
    """Evidence produced by one retrieval tier plus any absorbed failure"""
    evidence: RetrievalResult = field(default_factory=RetrievalResult)
    failure: Optional[str] = None


class ItineraryOrchestrator:
    """Coordinates retrieval, context assembly, generation and the grounding check"""

    def __init__(
        self,
        retriever: Optional[HybridRetriever] = None,
        web_search: Optional[WebSearchAPI] = None,
        generator: Optional[ItineraryGenerator] = None,
        store: Optional[CatalogStore] = None,
        grounding_policy: Optional[str] = None,
        limits: ContextLimits = DEFAULT_LIMITS
    ):
        self.retriever = retriever or get_retriever()
        self.web_search = web_search or get_web_search()
        self.generator = generator or ItineraryGenerator()
        self.store = store or self.retriever.store or get_catalog_store()
        self.grounding_policy = (grounding_policy or settings.grounding_policy).lower()
        if self.grounding_policy not in GROUNDING_POLICIES:
            raise ValueError(f"Unknown grounding policy: {self.grounding_policy}")
        self.limits = limits

    # Stages

    async def resolve_region(self, trip: TripRequest) -> Optional[str]:
        """Explicit predictedRegion wins; otherwise look up the session's last prediction"""
        if trip.predicted_region:
            return trip.predicted_region
        if not trip.session_id:
            return None
        try:
            region = await self.store.get_predicted_region(trip.session_id)
        except RetrievalSoftFailure as e:
            logger.warning(f"Predicted region lookup failed for session {trip.session_id}: {e}")
            return None
        if region:
            logger.info(f"Using predicted region '{region}' from session {trip.session_id}")
        return region

    async def hybrid_stage(self, trip: TripRequest) -> StageResult:
        result = await self.retriever.hybrid_search(
            trip.destination,
            trip.trip_type.value,
            dining_style=trip.dining_style.value,
            attraction_limit=self.limits.max_attractions,
            restaurant_limit=self.limits.max_restaurants
        )
        return StageResult(evidence=result, failure="; ".join(result.failures) or None)

    async def text_stage(self, trip: TripRequest) -> StageResult:
        result = await self.retriever.text_search(
            trip.destination,
            attraction_limit=self.limits.max_attractions,
            restaurant_limit=self.limits.max_restaurants
        )
        return StageResult(evidence=result, failure="; ".join(result.failures) or None)

    async def web_stage(self, trip: TripRequest, include_restaurants: bool) -> StageResult:
        queries = [attraction_query(trip.destination, trip.trip_type.value)]
        if include_restaurants:
            queries.append(restaurant_query(trip.destination))

        batches = await asyncio.gather(*[self.web_search.search(q) for q in queries])
        snippets: List[WebSnippet] = [s for batch in batches for s in batch]
        failure = None if snippets else "web search returned no results"
        return StageResult(evidence=RetrievalResult(web_snippets=snippets), failure=failure)

    async def retrieve(self, trip: TripRequest) -> RetrievalResult:
        """Run the fallback tiers and merge what they found"""
        stage = await self.hybrid_stage(trip)
        if stage.failure:
            logger.warning(f"Hybrid search degraded: {stage.failure}")
        evidence = stage.evidence

        if not evidence.attractions and not evidence.restaurants:
            logger.info("Hybrid search found nothing, trying text search")
            stage = await self.text_stage(trip)
            if stage.failure:
                logger.warning(f"Text search degraded: {stage.failure}")
            evidence = stage.evidence

        if not evidence.attractions:
            if self.web_search.configured:
                logger.info("No attractions in catalog, falling back to web search")
                stage = await self.web_stage(trip, include_restaurants=not evidence.restaurants)
                if stage.failure:
                    logger.warning(f"Web search degraded: {stage.failure}")
                evidence = RetrievalResult(
                    attractions=evidence.attractions,
                    restaurants=evidence.restaurants,
                    web_snippets=stage.evidence.web_snippets
                )
            else:
                logger.info("No attractions in catalog and web search is not configured")

        # Keep only what the context will actually show so provenance matches it
        return RetrievalResult(
            attractions=evidence.attractions[:self.limits.max_attractions],
            restaurants=evidence.restaurants[:self.limits.max_restaurants],
            web_snippets=evidence.web_snippets[:self.limits.max_web_snippets]
        )

    def check_grounding(self, itinerary: str, context: str, evidence: RetrievalResult) -> List[str]:
        if self.grounding_policy == "accept":
            return []

        known_names = [item.name for item in evidence.attractions] + [item.name for item in evidence.restaurants]
        unverified = find_unverified_places(itinerary, context, known_names)
        if unverified and self.grounding_policy == "reject":
            raise GenerationUnavailableError(
                f"Itinerary referenced places outside the retrieved context: {unverified}"
            )
        return unverified

    # Entry points

    async def plan_trip(self, trip: TripRequest) -> GenerateItineraryResponse:
        """
        Produce an itinerary for an already validated trip

        Raises:
            GenerationRateLimitedError, GenerationQuotaExceededError, GenerationUnavailableError
        """
        logger.info(f"Planning trip: {trip_summary(trip)}")

        region = await self.resolve_region(trip)
        evidence = await self.retrieve(trip)
        context = build_context(evidence.attractions, evidence.restaurants, evidence.web_snippets, self.limits)

        logger.info(
            f"Context: {len(evidence.attractions)} attractions, {len(evidence.restaurants)} restaurants, "
            f"{len(evidence.web_snippets)} web snippets ({len(context)} chars)"
        )

        itinerary = await self.generator.generate(trip, context, region)
        unverified = self.check_grounding(itinerary, context, evidence)

        logger.info(f"✓ Itinerary generated for {trip.destination}")
        return GenerateItineraryResponse(
            success=True,
            itinerary=itinerary,
            destination=trip.destination,
            days_count=trip.days_count,
            attractions=[AttractionSummary.from_item(a) for a in evidence.attractions],
            restaurants=[RestaurantSummary.from_item(r) for r in evidence.restaurants],
            sources=SourceCounts(
                database_attractions=len(evidence.attractions),
                database_restaurants=len(evidence.restaurants),
                web_sources=len(evidence.web_snippets)
            ),
            unverified_places=unverified
        )

    async def generate_itinerary(self, payload: Any) -> GenerateItineraryResponse:
        """
        Validate a raw request body and plan the trip

        Raises:
            TripValidationError: Before any retrieval or generation call is made
        """
        trip = validate_trip_request(payload)
        return await self.plan_trip(trip)


# Global singleton instance
_orchestrator: Optional[ItineraryOrchestrator] = None


def get_orchestrator() -> ItineraryOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ItineraryOrchestrator()
    return _orchestrator
