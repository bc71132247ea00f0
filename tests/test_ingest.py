"""Catalog import"""
import pytest

from tourgether.errors import IngestionError, RetrievalSoftFailure
from tourgether.models.catalog import CatalogKind
from tourgether.rag.ingest import CatalogImporter, map_row, parse_embedding, resolve_schema, split_list
from tourgether.rag.memory_store import InMemoryCatalogStore
from tourgether.rag.vector_store import SupabaseCatalogStore, to_vector_literal

from .conftest import FakeEmbeddingModel

UPPERCASE_ROWS = [
    {
        "ID": "11", "NAME": "Philosopher's Path", "DESTINATION": "Kyoto", "RATING": 4.5,
        "DESCRIPTION": "Canal-side stone path", "CATEGORIES": "Walking Trails, Parks",
        "REVIEW_TAGS": "cherry blossoms, quiet",
    },
    {"ID": 12, "NAME": "Ryoan-ji", "DESTINATION": "Kyoto", "CATEGORIES": ["Temples"]},
]

LOWERCASE_ROWS = [
    {
        "id": 201, "name": "Pontocho Alley Izakaya", "destination": "Kyoto", "rating": 4.2,
        "cuisines": "Japanese, Izakaya", "dishes": "yakitori,  sake ", "general_location": "Pontocho",
        "embedding": [0.0, 1.0, 0.0],
    },
]


class FailingUpsertStore(InMemoryCatalogStore):
    async def upsert_items(self, kind, rows):
        raise RetrievalSoftFailure("upsert rejected")


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeTable:
    def __init__(self, client, name):
        self.client = client
        self.name = name
        self.payload = None

    def upsert(self, payload, on_conflict=None):
        self.payload = payload
        return self

    def execute(self):
        self.client.upserts.append((self.name, self.payload))
        return FakeResponse(self.payload)


class FakeSupabase:
    """Records upserted payloads the way supabase-py would send them"""

    def __init__(self):
        self.upserts = []

    def table(self, name):
        return FakeTable(self, name)


def test_split_list_handles_strings_and_lists():
    assert split_list("Parks,  Museums ,") == ["Parks", "Museums"]
    assert split_list([" Temples ", None, ""]) == ["Temples"]
    assert split_list(None) == []


def test_schema_is_resolved_from_first_row():
    assert resolve_schema(UPPERCASE_ROWS).name == "uppercase_v1"
    assert resolve_schema(LOWERCASE_ROWS).name == "lowercase_v2"
    with pytest.raises(IngestionError):
        resolve_schema([{"Title": "Unknown layout"}])


def test_map_row_normalizes_fields():
    record = map_row(CatalogKind.ATTRACTIONS, UPPERCASE_ROWS[0], resolve_schema(UPPERCASE_ROWS))

    assert record["id"] == 11
    assert record["categories"] == ["Walking Trails", "Parks"]
    assert record["review_tags"] == ["cherry blossoms", "quiet"]
    assert "cuisines" not in record


async def test_import_embeds_and_upserts(store):
    embedding_model = FakeEmbeddingModel()
    importer = CatalogImporter(store=store, embedding_model=embedding_model)

    summary = await importer.import_catalog(UPPERCASE_ROWS, LOWERCASE_ROWS, batch_size=1)

    assert summary.attractions_imported == 2
    assert summary.restaurants_imported == 1
    assert summary.total_imported == 3
    assert summary.errors == []
    # The lowercase row already carries an embedding
    assert len(embedding_model.batch_calls) == 2
    assert embedding_model.batch_calls[0][0].startswith("Philosopher's Path Kyoto Canal-side stone path")

    items = await store.search_by_destination(CatalogKind.RESTAURANTS, "kyoto", limit=10)
    izakaya = next(i for i in items if i.id == 201)
    assert izakaya.dishes == ["yakitori", "sake"]
    assert izakaya.embedding == [0.0, 1.0, 0.0]


async def test_import_without_embeddings_makes_no_provider_calls(store):
    embedding_model = FakeEmbeddingModel()
    importer = CatalogImporter(store=store, embedding_model=embedding_model)

    summary = await importer.import_rows(CatalogKind.ATTRACTIONS, UPPERCASE_ROWS, generate_embeddings=False)

    assert summary.attractions_imported == 2
    assert embedding_model.batch_calls == []


async def test_embedding_failure_still_stores_rows(store):
    importer = CatalogImporter(store=store, embedding_model=FakeEmbeddingModel(fail=True))

    summary = await importer.import_rows(CatalogKind.ATTRACTIONS, UPPERCASE_ROWS)

    assert summary.attractions_imported == 2
    assert any("embedding failed" in e for e in summary.errors)


async def test_failed_batches_are_reported_and_skipped():
    importer = CatalogImporter(store=FailingUpsertStore(), embedding_model=FakeEmbeddingModel())

    summary = await importer.import_rows(CatalogKind.ATTRACTIONS, UPPERCASE_ROWS, batch_size=1)

    assert summary.attractions_imported == 0
    assert summary.errors == ["Attractions: upsert rejected", "Attractions: upsert rejected"]


async def test_rows_without_id_are_skipped(store):
    importer = CatalogImporter(store=store, embedding_model=FakeEmbeddingModel())
    rows = [{"ID": "abc", "NAME": "Broken"}, {"ID": 13, "NAME": "Tofuku-ji", "DESTINATION": "Kyoto"}]

    summary = await importer.import_rows(CatalogKind.ATTRACTIONS, rows)

    assert summary.attractions_imported == 1
    assert len(summary.errors) == 1


def test_parse_embedding_accepts_lists_and_pgvector_text():
    assert parse_embedding([0, 1]) == [0.0, 1.0]
    assert parse_embedding(" [0.1,0.2,0.3] ") == [0.1, 0.2, 0.3]
    assert parse_embedding("") is None
    assert parse_embedding(None) is None
    with pytest.raises(IngestionError):
        parse_embedding("[a,b]")


def test_to_vector_literal_passes_text_vectors_through():
    assert to_vector_literal([0.5, 1]) == "[0.5,1.0]"
    assert to_vector_literal(" [0.1,0.2] ") == "[0.1,0.2]"


async def test_text_embeddings_are_kept_through_supabase_upsert():
    client = FakeSupabase()
    embedding_model = FakeEmbeddingModel()
    importer = CatalogImporter(store=SupabaseCatalogStore(client=client), embedding_model=embedding_model)
    rows = [
        {"id": 1, "name": "Kinkaku-ji", "destination": "Kyoto", "embedding": "[0.1,0.2,0.3]"},
        {"id": 2, "name": "Ginkaku-ji", "destination": "Kyoto"},
    ]

    summary = await importer.import_rows(CatalogKind.ATTRACTIONS, rows)

    assert summary.attractions_imported == 2
    assert summary.errors == []
    assert embedding_model.batch_calls == [["Ginkaku-ji Kyoto"]]
    table, payload = client.upserts[0]
    assert table == "attractions"
    assert payload[0]["embedding"] == "[0.1,0.2,0.3]"
    assert payload[1]["embedding"] == "[1.0,0.0,0.0]"


async def test_malformed_embedding_skips_only_that_row(store):
    importer = CatalogImporter(store=store, embedding_model=FakeEmbeddingModel())
    rows = [
        {"id": 30, "name": "Bad Vector", "destination": "Kyoto", "embedding": "not a vector"},
        {"id": 31, "name": "Tenryu-ji", "destination": "Kyoto", "embedding": "[0.0,1.0,0.0]"},
    ]

    summary = await importer.import_rows(CatalogKind.ATTRACTIONS, rows)

    assert summary.attractions_imported == 1
    assert len(summary.errors) == 1
    assert summary.errors[0].startswith("Attractions: Embedding is not a numeric vector")
