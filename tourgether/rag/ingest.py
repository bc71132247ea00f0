"""
Catalog ingestion - maps source rows onto the catalog tables and embeds them

Source exports come in two column layouts. The layout is resolved once per
import from the first row's keys, then every row goes through the same typed
field table.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..errors import EmbeddingError, IngestionError, RetrievalSoftFailure
from ..models.catalog import CatalogKind
from ..schemas.response import ImportSummary
from .embeddings import EmbeddingModel, create_document_text, get_embedding_model
from .vector_store import CatalogStore, get_catalog_store

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 25

LIST_FIELDS = ("categories", "cuisines", "dishes", "review_tags")


@dataclass(frozen=True)
class FieldMapping:
    """Target catalog column -> source column for one schema version"""
    name: str
    columns: Dict[str, str]
    # Source columns that must be present for a row to match this schema
    required: Sequence[str]

    def matches(self, row: Dict[str, Any]) -> bool:
        return all(column in row for column in self.required)


_UPPERCASE_COLUMNS = {
    "id": "ID",
    "name": "NAME",
    "picture": "PICTURE",
    "rating": "RATING",
    "destination": "DESTINATION",
    "description": "DESCRIPTION",
    "categories": "CATEGORIES",
    "cuisines": "CUISINES",
    "dishes": "DISHES",
    "review_tags": "REVIEW_TAGS",
}

_LOWERCASE_COLUMNS = {
    "id": "id",
    "name": "name",
    "picture": "picture",
    "rating": "rating",
    "destination": "destination",
    "description": "description",
    "categories": "categories",
    "cuisines": "cuisines",
    "dishes": "dishes",
    "review_tags": "review_tags",
    "general_location": "general_location",
    "latitude": "latitude",
    "longitude": "longitude",
    "embedding": "embedding",
}

SOURCE_SCHEMAS = [
    FieldMapping(name="uppercase_v1", columns=_UPPERCASE_COLUMNS, required=("ID", "NAME")),
    FieldMapping(name="lowercase_v2", columns=_LOWERCASE_COLUMNS, required=("id", "name")),
]

# Columns each table accepts
TABLE_COLUMNS = {
    CatalogKind.ATTRACTIONS: (
        "id", "name", "picture", "rating", "destination", "description",
        "categories", "review_tags", "general_location", "latitude", "longitude", "embedding",
    ),
    CatalogKind.RESTAURANTS: (
        "id", "name", "picture", "rating", "destination", "description",
        "cuisines", "dishes", "review_tags", "general_location", "latitude", "longitude", "embedding",
    ),
}


def resolve_schema(rows: Sequence[Dict[str, Any]]) -> FieldMapping:
    """
    Pick the source schema from the first row

    Raises:
        IngestionError: If no known schema matches
    """
    if not rows:
        raise IngestionError("No rows to import")
    first = rows[0]
    if not isinstance(first, dict):
        raise IngestionError("Catalog rows must be JSON objects")
    for schema in SOURCE_SCHEMAS:
        if schema.matches(first):
            return schema
    raise IngestionError(f"Unrecognised source columns: {sorted(first.keys())[:10]}")


def parse_embedding(value: Any) -> Optional[List[float]]:
    """
    Normalize a source embedding to a list of floats

    Accepts a list or the pgvector text form '[0.1,0.2,...]'. Blank values give None.

    Raises:
        IngestionError: If the value is not a numeric vector
    """
    if value is None:
        return None
    try:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            value = json.loads(value)
        return [float(x) for x in value] or None
    except (TypeError, ValueError) as e:
        raise IngestionError(f"Embedding is not a numeric vector: {str(value)[:40]!r}") from e


def split_list(value: Any) -> List[str]:
    """'Museums, Parks' -> ['Museums', 'Parks']; lists pass through trimmed"""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if part is not None and str(part).strip()]


def map_row(kind: CatalogKind, row: Dict[str, Any], schema: FieldMapping) -> Dict[str, Any]:
    """
    Map one source row to a catalog record

    Raises:
        IngestionError: If the row has no usable id or name
    """
    record: Dict[str, Any] = {}
    for column in TABLE_COLUMNS[kind]:
        source = schema.columns.get(column)
        record[column] = row.get(source) if source else None

    for column in LIST_FIELDS:
        if column in record:
            record[column] = split_list(record[column])

    try:
        record["id"] = int(record["id"])
    except (TypeError, ValueError) as e:
        raise IngestionError(f"Row has no integer id: {record.get('id')!r}") from e

    name = record.get("name")
    if not name or not str(name).strip():
        raise IngestionError(f"Row {record['id']} has no name")
    record["name"] = str(name).strip()
    record["destination"] = (record.get("destination") or "").strip()
    if "embedding" in record:
        record["embedding"] = parse_embedding(record["embedding"])
    return record


def searchable_text(kind: CatalogKind, record: Dict[str, Any]) -> str:
    tags = record.get("categories") if kind == CatalogKind.ATTRACTIONS else record.get("cuisines")
    return create_document_text(
        record["name"],
        record.get("destination") or "",
        record.get("description"),
        tags or (),
        record.get("dishes") or (),
        record.get("review_tags") or (),
    )


class CatalogImporter:
    """Maps, embeds and upserts catalog rows in batches"""

    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        embedding_model: Optional[EmbeddingModel] = None
    ):
        self.store = store or get_catalog_store()
        self.embedding_model = embedding_model or get_embedding_model()

    async def _embed_batch(self, kind: CatalogKind, records: List[Dict[str, Any]], errors: List[str]) -> None:
        missing = [r for r in records if not r.get("embedding")]
        if not missing:
            return
        try:
            vectors = await self.embedding_model.embed_batch([searchable_text(kind, r) for r in missing])
        except EmbeddingError as e:
            logger.error(f"Embedding failed for {len(missing)} {kind.value}, storing without embeddings: {e}")
            errors.append(f"{kind.value.capitalize()}: embedding failed ({e})")
            return
        for record, vector in zip(missing, vectors):
            record["embedding"] = vector

    async def import_rows(
        self,
        kind: CatalogKind,
        rows: List[Dict[str, Any]],
        generate_embeddings: bool = True,
        batch_size: int = DEFAULT_BATCH_SIZE
    ) -> ImportSummary:
        """
        Import one table's rows

        Args:
            kind: Target table
            rows: Source rows in any known schema
            generate_embeddings: Embed rows that do not carry an embedding
            batch_size: Rows per embedding call and upsert

        Returns:
            ImportSummary for this table; failed batches are listed in errors
        """
        summary = ImportSummary()
        if not rows:
            return summary

        schema = resolve_schema(rows)
        logger.info(f"Importing {len(rows)} {kind.value} using schema {schema.name}")

        imported = 0
        total_batches = (len(rows) + batch_size - 1) // batch_size
        for batch_number, start in enumerate(range(0, len(rows), batch_size), 1):
            logger.info(f"Processing {kind.value} batch {batch_number}/{total_batches}")

            records = []
            for row in rows[start:start + batch_size]:
                try:
                    records.append(map_row(kind, row, schema))
                except (IngestionError, AttributeError) as e:
                    logger.warning(f"Skipping {kind.value} row: {e}")
                    summary.errors.append(f"{kind.value.capitalize()}: {e}")

            if not records:
                continue
            if generate_embeddings:
                await self._embed_batch(kind, records, summary.errors)

            try:
                imported += await self.store.upsert_items(kind, records)
            except RetrievalSoftFailure as e:
                logger.error(f"Upsert failed for {kind.value} batch {batch_number}: {e}")
                summary.errors.append(f"{kind.value.capitalize()}: {e}")

        if kind == CatalogKind.ATTRACTIONS:
            summary.attractions_imported = imported
        else:
            summary.restaurants_imported = imported
        summary.total_imported = imported
        return summary

    async def import_catalog(
        self,
        attractions: List[Dict[str, Any]],
        restaurants: List[Dict[str, Any]],
        generate_embeddings: bool = True,
        batch_size: int = DEFAULT_BATCH_SIZE
    ) -> ImportSummary:
        """Import both tables and merge the summaries"""
        summaries = [
            await self.import_rows(CatalogKind.ATTRACTIONS, attractions, generate_embeddings, batch_size),
            await self.import_rows(CatalogKind.RESTAURANTS, restaurants, generate_embeddings, batch_size),
        ]
        merged = ImportSummary(
            attractions_imported=summaries[0].attractions_imported,
            restaurants_imported=summaries[1].restaurants_imported,
            errors=summaries[0].errors + summaries[1].errors,
        )
        merged.total_imported = merged.attractions_imported + merged.restaurants_imported
        logger.info(
            f"✓ Import complete: {merged.attractions_imported} attractions, "
            f"{merged.restaurants_imported} restaurants, {len(merged.errors)} errors"
        )
        return merged
