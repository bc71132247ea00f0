"""
High-level retrieval logic for the RAG pipeline.

Two catalog tiers live here:
- hybrid_search: one query embedding, blended vector + keyword ranking
- text_search: destination substring match ordered by rating

Neither raises on provider or store failures. They log, record the failure on
the result and return whatever evidence they could gather, so the orchestrator
can move on to the next tier.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from ..errors import EmbeddingError, RetrievalSoftFailure
from ..models.catalog import CatalogItem, CatalogKind, RetrievalResult
from .embeddings import (
    EmbeddingModel,
    get_embedding_model,
    create_query_text,
    create_restaurant_query_text
)
from .scoring import VECTOR_WEIGHT, TEXT_WEIGHT, ranking_key, rating_key
from .vector_store import CatalogStore, get_catalog_store

logger = logging.getLogger(__name__)

DEFAULT_ATTRACTION_LIMIT = 10
DEFAULT_RESTAURANT_LIMIT = 5


class HybridRetriever:
    """
    Retrieves destination-scoped attractions and restaurants from the catalog.

    The blending weights are owned here and passed to every hybrid query.
    """

    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        embedding_model: Optional[EmbeddingModel] = None,
        vector_weight: float = VECTOR_WEIGHT,
        text_weight: float = TEXT_WEIGHT
    ):
        self.store = store or get_catalog_store()
        self.embedding_model = embedding_model or get_embedding_model()
        self.vector_weight = vector_weight
        self.text_weight = text_weight

    async def _hybrid_kind(
        self,
        kind: CatalogKind,
        query_text: str,
        query_embedding: List[float],
        destination: Optional[str],
        limit: int
    ) -> Tuple[List[CatalogItem], Optional[str]]:
        try:
            items = await self.store.hybrid_search(
                kind,
                query_text=query_text,
                query_embedding=query_embedding,
                destination=destination,
                match_count=limit,
                vector_weight=self.vector_weight,
                text_weight=self.text_weight
            )
        except RetrievalSoftFailure as e:
            logger.warning(f"Hybrid search on {kind.value} failed, treating as empty: {e}")
            return [], str(e)

        # Re-rank so ordering is deterministic whatever order the backend used
        return sorted(items, key=ranking_key)[:limit], None

    async def _text_kind(
        self,
        kind: CatalogKind,
        destination: Optional[str],
        limit: int,
        min_rating: Optional[float] = None,
        tags: Optional[List[str]] = None
    ) -> Tuple[List[CatalogItem], Optional[str]]:
        try:
            items = await self.store.search_by_destination(
                kind, destination or "", limit, min_rating=min_rating, tags=tags
            )
        except RetrievalSoftFailure as e:
            logger.warning(f"Text search on {kind.value} failed, treating as empty: {e}")
            return [], str(e)

        return sorted(items, key=rating_key)[:limit], None

    async def hybrid_search(
        self,
        destination: str,
        trip_type: str,
        dining_style: Optional[str] = None,
        attraction_limit: int = DEFAULT_ATTRACTION_LIMIT,
        restaurant_limit: int = DEFAULT_RESTAURANT_LIMIT
    ) -> RetrievalResult:
        """
        Hybrid (vector + keyword) retrieval for a trip.

        Args:
            destination: Trip destination, matched case-insensitively
            trip_type: Trip focus, e.g. "historical_places"
            dining_style: Dining preference, folded into the restaurant keyword query
            attraction_limit: Max attractions returned
            restaurant_limit: Max restaurants returned

        Returns:
            RetrievalResult with ranked attractions and restaurants (possibly empty)
        """
        query_text = create_query_text(destination, trip_type)
        restaurant_query = create_restaurant_query_text(destination, dining_style)
        logger.info(f"Hybrid search query: {query_text!r}")

        try:
            query_embedding = await self.embedding_model.embed(query_text)
        except EmbeddingError as e:
            logger.warning(f"Query embedding failed, hybrid search skipped: {e}")
            return RetrievalResult(failures=[str(e)])

        (attractions, attraction_error), (restaurants, restaurant_error) = await asyncio.gather(
            self._hybrid_kind(CatalogKind.ATTRACTIONS, query_text, query_embedding, destination, attraction_limit),
            self._hybrid_kind(CatalogKind.RESTAURANTS, restaurant_query, query_embedding, destination, restaurant_limit),
        )

        logger.info(
            f"Found {len(attractions)} attractions and {len(restaurants)} restaurants from hybrid search"
        )
        return RetrievalResult(
            attractions=attractions,
            restaurants=restaurants,
            failures=[e for e in (attraction_error, restaurant_error) if e]
        )

    async def text_search(
        self,
        destination: str,
        attraction_limit: int = DEFAULT_ATTRACTION_LIMIT,
        restaurant_limit: int = DEFAULT_RESTAURANT_LIMIT
    ) -> RetrievalResult:
        """
        Lexical fallback: destination substring match, best rated first.

        Returns:
            RetrievalResult with attractions and restaurants (possibly empty)
        """
        logger.info(f"Falling back to text search for: {destination}")

        (attractions, attraction_error), (restaurants, restaurant_error) = await asyncio.gather(
            self._text_kind(CatalogKind.ATTRACTIONS, destination, attraction_limit),
            self._text_kind(CatalogKind.RESTAURANTS, destination, restaurant_limit),
        )

        logger.info(f"Text search found {len(attractions)} attractions and {len(restaurants)} restaurants")
        return RetrievalResult(
            attractions=attractions,
            restaurants=restaurants,
            failures=[e for e in (attraction_error, restaurant_error) if e]
        )

    async def search_catalog(
        self,
        query: Optional[str],
        destination: Optional[str],
        kinds: List[CatalogKind],
        limit: int = 10,
        use_semantic_search: bool = True,
        min_rating: Optional[float] = None,
        categories: Optional[List[str]] = None,
        cuisines: Optional[List[str]] = None
    ) -> RetrievalResult:
        """
        Free-form catalog search used by /search-travel.

        Semantic ranking is used when a query is given and semantic search is
        enabled; if the query embedding fails, the text path answers instead.
        Filters apply after ranking on the semantic path and inside the store
        query on the text path.
        """
        tag_filters = {CatalogKind.ATTRACTIONS: categories, CatalogKind.RESTAURANTS: cuisines}
        results = {kind: [] for kind in CatalogKind}
        failures: List[str] = []

        query_embedding = None
        if query and use_semantic_search:
            try:
                query_embedding = await self.embedding_model.embed(query)
            except EmbeddingError as e:
                logger.warning(f"Query embedding failed, using text search: {e}")
                failures.append(str(e))

        if query_embedding is not None:
            outcomes = await asyncio.gather(*[
                self._hybrid_kind(kind, query, query_embedding, destination, limit) for kind in kinds
            ])
            for kind, (items, error) in zip(kinds, outcomes):
                wanted = set(tag_filters[kind] or [])
                if wanted:
                    items = [i for i in items if wanted & set(i.tags)]
                if min_rating is not None:
                    items = [i for i in items if (i.rating or 0) >= min_rating]
                results[kind] = items
                if error:
                    failures.append(error)
        else:
            outcomes = await asyncio.gather(*[
                self._text_kind(kind, destination, limit, min_rating=min_rating, tags=tag_filters[kind])
                for kind in kinds
            ])
            for kind, (items, error) in zip(kinds, outcomes):
                results[kind] = items
                if error:
                    failures.append(error)

        return RetrievalResult(
            attractions=results[CatalogKind.ATTRACTIONS],
            restaurants=results[CatalogKind.RESTAURANTS],
            failures=failures
        )


# Global singleton instance
_retriever: Optional[HybridRetriever] = None


def get_retriever() -> HybridRetriever:
    """
    Get global HybridRetriever instance.

    Returns:
        Singleton HybridRetriever instance
    """
    global _retriever
    if _retriever is None:
        _retriever = HybridRetriever()
    return _retriever
