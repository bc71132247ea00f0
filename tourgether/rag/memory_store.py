"""In-process catalog store for local development and tests"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models.catalog import CatalogItem, CatalogKind
from .scoring import rank_items, rating_key
from .vector_store import CatalogStore, parse_rows

logger = logging.getLogger(__name__)


class InMemoryCatalogStore(CatalogStore):
    """
    Catalog held in dictionaries keyed by id.

    Hybrid search runs the scoring functions from rag.scoring directly, so this
    store is also the reference behaviour for the Supabase RPCs.
    """

    def __init__(
        self,
        attractions: Iterable[CatalogItem] = (),
        restaurants: Iterable[CatalogItem] = (),
        predictions: Optional[Dict[str, str]] = None
    ):
        self._items: Dict[CatalogKind, Dict[int, CatalogItem]] = {
            CatalogKind.ATTRACTIONS: {item.id: item for item in attractions},
            CatalogKind.RESTAURANTS: {item.id: item for item in restaurants},
        }
        self._predictions = dict(predictions or {})

    @classmethod
    def from_seed_file(cls, path: Optional[str]) -> "InMemoryCatalogStore":
        """
        Load a JSON seed file shaped like {"attractions": [...], "restaurants": [...]}

        A missing path gives an empty catalog.
        """
        if not path:
            logger.warning("CATALOG_BACKEND=memory without CATALOG_SEED_PATH - catalog is empty")
            return cls()

        data = json.loads(Path(path).read_text(encoding="utf-8"))
        store = cls(
            attractions=parse_rows(CatalogKind.ATTRACTIONS, data.get("attractions")),
            restaurants=parse_rows(CatalogKind.RESTAURANTS, data.get("restaurants")),
            predictions=data.get("predictions"),
        )
        logger.info(
            f"Loaded seed catalog from {path}: "
            f"{store.count(CatalogKind.ATTRACTIONS)} attractions, {store.count(CatalogKind.RESTAURANTS)} restaurants"
        )
        return store

    def count(self, kind: CatalogKind) -> int:
        return len(self._items[kind])

    def _scoped(self, kind: CatalogKind, destination: str) -> List[CatalogItem]:
        needle = (destination or "").strip().lower()
        return [
            item for item in self._items[kind].values()
            if needle in (item.destination or "").lower()
        ]

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
        return rank_items(
            self._scoped(kind, destination),
            query_text,
            query_embedding,
            match_count,
            vector_weight=vector_weight,
            text_weight=text_weight,
        )

    async def search_by_destination(
        self,
        kind: CatalogKind,
        destination: str,
        limit: int,
        min_rating: Optional[float] = None,
        tags: Optional[List[str]] = None
    ) -> List[CatalogItem]:
        items = self._scoped(kind, destination)
        if min_rating is not None:
            items = [i for i in items if i.rating is not None and i.rating >= min_rating]
        if tags:
            wanted = set(tags)
            items = [i for i in items if wanted & set(i.tags)]
        items.sort(key=rating_key)
        return items[:limit]

    async def upsert_items(self, kind: CatalogKind, rows: List[Dict[str, Any]]) -> int:
        items = parse_rows(kind, rows)
        for item in items:
            self._items[kind][item.id] = item
        return len(items)

    async def get_predicted_region(self, session_id: str) -> Optional[str]:
        return self._predictions.get(session_id)
