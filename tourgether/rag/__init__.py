"""
RAG (Retrieval-Augmented Generation) module for TourGether.

Retrieves destination-scoped attractions and restaurants from the catalog
and renders them as the only context the itinerary generator may use.

Main components:
- embeddings: Text-to-vector conversion using Cohere
- scoring: Hybrid (vector + keyword) relevance and result ordering
- vector_store: Supabase pgvector operations (hybrid RPC, text search, upsert)
- memory_store: In-process catalog for local development and tests
- retriever: Hybrid search and text-search fallback
- context: Prompt context assembly
- ingest: Catalog import from external exports

Usage:
    from tourgether.rag import get_retriever, build_context
    retriever = get_retriever()
    result = await retriever.hybrid_search("Kyoto", "historical_places", dining_style="local")
    context = build_context(result.attractions, result.restaurants, result.web_snippets)
"""

from tourgether.rag.embeddings import (
    EmbeddingModel,
    get_embedding_model,
    create_document_text,
    create_query_text
)

from tourgether.rag.vector_store import (
    CatalogStore,
    SupabaseCatalogStore,
    get_catalog_store
)

from tourgether.rag.memory_store import InMemoryCatalogStore

from tourgether.rag.retriever import (
    HybridRetriever,
    get_retriever
)

from tourgether.rag.context import build_context

from tourgether.rag.ingest import CatalogImporter

__all__ = [
    # Embeddings
    "EmbeddingModel",
    "get_embedding_model",
    "create_document_text",
    "create_query_text",

    # Catalog stores
    "CatalogStore",
    "SupabaseCatalogStore",
    "InMemoryCatalogStore",
    "get_catalog_store",

    # Retriever (main interface)
    "HybridRetriever",
    "get_retriever",

    # Context and ingestion
    "build_context",
    "CatalogImporter",
]
