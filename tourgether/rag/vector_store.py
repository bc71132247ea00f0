"""
Catalog store operations for the attractions and restaurants tables.

CatalogStore is the interface the retriever and importer depend on.
SupabaseCatalogStore talks to Supabase (pgvector + full-text); the
supabase-py client is synchronous, so every call runs in a worker thread.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from ..config import settings
from ..errors import RetrievalSoftFailure
from ..models.catalog import CatalogItem, CatalogKind, ITEM_MODELS
from ..utils.database import SupabaseClient

logger = logging.getLogger(__name__)

SELECT_COLUMNS = {
    CatalogKind.ATTRACTIONS: "id, name, description, picture, destination, rating, categories, review_tags, general_location, latitude, longitude",
    CatalogKind.RESTAURANTS: "id, name, description, picture, destination, rating, cuisines, dishes, review_tags, general_location, latitude, longitude",
}

HYBRID_SEARCH_RPC = {
    CatalogKind.ATTRACTIONS: "hybrid_search_attractions",
    CatalogKind.RESTAURANTS: "hybrid_search_restaurants",
}

TAG_COLUMN = {
    CatalogKind.ATTRACTIONS: "categories",
    CatalogKind.RESTAURANTS: "cuisines",
}


def to_vector_literal(embedding: Union[str, Sequence[float]]) -> str:
    """Format an embedding the way pgvector parses it: '[0.1,0.2,...]'"""
    if isinstance(embedding, str):
        return embedding.strip()
    return "[" + ",".join(str(float(x)) for x in embedding) + "]"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so a destination is matched literally"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_rows(kind: CatalogKind, rows: Optional[List[Dict[str, Any]]]) -> List[CatalogItem]:
    """Convert raw rows into typed items, skipping rows that do not validate"""
    model = ITEM_MODELS[kind]
    items = []
    for row in rows or []:
        try:
            items.append(model.model_validate(row))
        except Exception as e:
            logger.warning(f"Skipping malformed {kind.value} row id={row.get('id')}: {e}")
    return items


class CatalogStore:
    """Read/write interface to the catalog tables"""

    async def hybrid_search(
        self,
        kind: CatalogKind,
        query_text: str,
        query_embedding: Sequence[float],
        destination: str,
        match_count: int,
        vector_weight: float,
        text_weight: float
    ) -> List[CatalogItem]:
        """
        Rank destination-scoped rows by blended vector + keyword relevance.

        Returned items carry combined_score.

        Raises:
            RetrievalSoftFailure: If the store cannot be queried
        """
        raise NotImplementedError

    async def search_by_destination(
        self,
        kind: CatalogKind,
        destination: str,
        limit: int,
        min_rating: Optional[float] = None,
        tags: Optional[List[str]] = None
    ) -> List[CatalogItem]:
        """
        Case-insensitive substring match on destination, best rated first.

        Raises:
            RetrievalSoftFailure: If the store cannot be queried
        """
        raise NotImplementedError

    async def upsert_items(self, kind: CatalogKind, rows: List[Dict[str, Any]]) -> int:
        """Insert or update rows keyed by id. Returns the number of rows written."""
        raise NotImplementedError

    async def get_predicted_region(self, session_id: str) -> Optional[str]:
        """Latest region predicted from a photo for this session, if any"""
        return None


class SupabaseCatalogStore(CatalogStore):
    """Catalog store backed by Supabase pgvector tables and RPCs"""

    PREDICTIONS_TABLE = "predictions"

    def __init__(self, client=None, timeout_seconds: Optional[float] = None):
        self._client = client
        self.timeout_seconds = timeout_seconds or settings.catalog_timeout_seconds

    @property
    def supabase(self):
        if self._client is None:
            self._client = SupabaseClient.get_client()
        return self._client

    async def _run(self, description: str, fn):
        """Run a blocking Supabase call off the event loop with a timeout"""
        try:
            response = await asyncio.wait_for(asyncio.to_thread(fn), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"{description} timed out after {self.timeout_seconds}s")
            raise RetrievalSoftFailure(f"{description} timed out") from e
        except Exception as e:
            logger.error(f"{description} failed: {type(e).__name__}: {e}")
            raise RetrievalSoftFailure(f"{description} failed: {e}") from e
        return response

    async def hybrid_search(
        self,
        kind: CatalogKind,
        query_text: str,
        query_embedding: Sequence[float],
        destination: str,
        match_count: int,
        vector_weight: float,
        text_weight: float
    ) -> List[CatalogItem]:
        params = {
            "query_text": query_text,
            "query_embedding": to_vector_literal(query_embedding),
            "destination_filter": destination,
            "match_count": match_count,
            "vector_weight": vector_weight,
            "text_weight": text_weight,
        }
        response = await self._run(
            f"Hybrid search on {kind.value}",
            lambda: self.supabase.rpc(HYBRID_SEARCH_RPC[kind], params).execute()
        )
        return parse_rows(kind, response.data)

    async def search_by_destination(
        self,
        kind: CatalogKind,
        destination: str,
        limit: int,
        min_rating: Optional[float] = None,
        tags: Optional[List[str]] = None
    ) -> List[CatalogItem]:
        def query():
            builder = self.supabase.table(kind.value).select(SELECT_COLUMNS[kind])
            if destination:
                builder = builder.ilike("destination", f"%{escape_like(destination)}%")
            if min_rating is not None:
                builder = builder.gte("rating", min_rating)
            if tags:
                builder = builder.overlaps(TAG_COLUMN[kind], tags)
            return builder\
                .order("rating", desc=True, nullsfirst=False)\
                .order("id")\
                .limit(limit)\
                .execute()

        response = await self._run(f"Text search on {kind.value}", query)
        return parse_rows(kind, response.data)

    async def upsert_items(self, kind: CatalogKind, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0

        payload = []
        for row in rows:
            record = dict(row)
            if record.get("embedding") is not None:
                record["embedding"] = to_vector_literal(record["embedding"])
            payload.append(record)

        response = await self._run(
            f"Upsert into {kind.value}",
            lambda: self.supabase.table(kind.value).upsert(payload, on_conflict="id").execute()
        )
        written = len(response.data) if response.data else len(payload)
        logger.info(f"Upserted {written} rows into {kind.value}")
        return written

    async def get_predicted_region(self, session_id: str) -> Optional[str]:
        try:
            response = await self._run(
                "Predicted region lookup",
                lambda: self.supabase.table(self.PREDICTIONS_TABLE)
                .select("predicted_region")
                .eq("session_id", session_id)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except RetrievalSoftFailure:
            return None

        if response.data:
            return response.data[0].get("predicted_region")
        return None


# Global singleton instance
_catalog_store: Optional[CatalogStore] = None


def get_catalog_store() -> CatalogStore:
    """
    Get global CatalogStore instance for the configured backend.

    Returns:
        SupabaseCatalogStore, or InMemoryCatalogStore when CATALOG_BACKEND=memory
    """
    global _catalog_store
    if _catalog_store is None:
        if settings.catalog_backend == "memory":
            from .memory_store import InMemoryCatalogStore
            _catalog_store = InMemoryCatalogStore.from_seed_file(settings.catalog_seed_path)
        else:
            _catalog_store = SupabaseCatalogStore()
    return _catalog_store
