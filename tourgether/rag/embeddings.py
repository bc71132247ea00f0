"""
Embedding generation module for RAG system using Cohere API.

Catalog rows and queries must be embedded with the same model, otherwise
cosine similarity between them is meaningless. embed-english-v3.0 returns
1024-dimensional vectors.
"""

import asyncio
import logging
from typing import Iterable, List, Optional
import cohere

from ..config import settings
from ..errors import EmbeddingError

logger = logging.getLogger(__name__)

MAX_DOCUMENT_CHARS = 8000


class EmbeddingModel:
    """
    Wrapper for Cohere embedding API.

    Features:
    - API-based embeddings (no model downloads)
    - Batch processing support (96 texts per call)
    - Calls run in a worker thread so the event loop is never blocked
    """

    EMBEDDING_DIMENSION = 1024
    DOCUMENT_INPUT_TYPE = "search_document"  # For indexing catalog rows
    QUERY_INPUT_TYPE = "search_query"  # For retrieval
    MAX_BATCH_SIZE = 96

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None
    ):
        self.api_key = api_key if api_key is not None else settings.cohere_api_key
        self.model_name = model_name or settings.embedding_model
        self.timeout_seconds = timeout_seconds or settings.embedding_timeout_seconds
        self._client: Optional[cohere.Client] = None

        if self.api_key:
            logger.info(f"Initializing Cohere client with model: {self.model_name}")
            self._client = cohere.Client(self.api_key)
        else:
            logger.warning("COHERE_API_KEY is not set - semantic search is disabled, text search will be used")

    @property
    def available(self) -> bool:
        return self._client is not None

    @property
    def dimension(self) -> int:
        return self.EMBEDDING_DIMENSION

    def _embed_sync(self, texts: List[str], input_type: str) -> List[List[float]]:
        response = self._client.embed(
            texts=texts,
            model=self.model_name,
            input_type=input_type,
            embedding_types=["float"]
        )
        # cohere>=5 exposes the "float" embeddings as float_
        vectors = getattr(response.embeddings, "float_", None) or getattr(response.embeddings, "float", None) or []
        return [list(vector) for vector in vectors]

    async def _embed(self, texts: List[str], input_type: str) -> List[List[float]]:
        if self._client is None:
            raise EmbeddingError("Cohere API key is required. Set COHERE_API_KEY in environment.")

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._embed_sync, texts, input_type),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Embedding call timed out after {self.timeout_seconds}s")
            raise EmbeddingError("Embedding generation timed out") from e
        except Exception as e:
            logger.error(f"Failed to generate embedding: {type(e).__name__}: {e}")
            raise EmbeddingError(f"Embedding generation failed: {e}") from e

    async def embed(self, text: str, input_type: str = QUERY_INPUT_TYPE) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Input text to embed
            input_type: "search_query" for retrieval, "search_document" for indexing

        Returns:
            List of floats (fixed dimension)

        Raises:
            EmbeddingError: If text is empty or the provider call fails
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        vectors = await self._embed([text], input_type)
        if not vectors:
            raise EmbeddingError("Embedding provider returned no vectors")
        return vectors[0]

    async def embed_batch(
        self,
        texts: List[str],
        input_type: str = DOCUMENT_INPUT_TYPE,
        batch_size: int = MAX_BATCH_SIZE
    ) -> List[List[float]]:
        """
        Generate embeddings for multiple texts, preserving input order.

        Raises:
            EmbeddingError: If any text is empty or a provider call fails
        """
        if not texts:
            raise EmbeddingError("Cannot embed empty list of texts")
        if any(not t or not t.strip() for t in texts):
            raise EmbeddingError("Cannot embed empty text")

        batch_size = min(batch_size, self.MAX_BATCH_SIZE)
        all_embeddings: List[List[float]] = []
        for i in range(0, len(texts), batch_size):
            batch = texts[i:i + batch_size]
            all_embeddings.extend(await self._embed(batch, input_type))

        if len(all_embeddings) != len(texts):
            raise EmbeddingError(
                f"Embedding provider returned {len(all_embeddings)} vectors for {len(texts)} texts"
            )
        return all_embeddings


def _join_terms(values: Iterable[str]) -> str:
    return " ".join(v.strip() for v in values if v and v.strip())


def create_document_text(
    name: str,
    destination: str,
    description: Optional[str] = None,
    tags: Iterable[str] = (),
    dishes: Iterable[str] = (),
    review_tags: Iterable[str] = ()
) -> str:
    """
    Create searchable document text for a catalog row.

    Example:
        >>> create_document_text("Fushimi Inari Taisha", "Kyoto", "Shrine with thousands of torii", ["Shrines"])
        'Fushimi Inari Taisha Kyoto Shrine with thousands of torii Shrines'
    """
    parts = [name, destination, description or "", _join_terms(tags), _join_terms(dishes), _join_terms(review_tags)]
    return " ".join(p.strip() for p in parts if p and p.strip())[:MAX_DOCUMENT_CHARS]


def create_query_text(destination: str, trip_type: str) -> str:
    """
    Create the attraction query for a trip.

    Example:
        >>> create_query_text("Kyoto", "historical_places")
        'historical places attractions and activities in Kyoto'
    """
    return f"{trip_type.replace('_', ' ')} attractions and activities in {destination}"


def create_restaurant_query_text(destination: str, dining_style: Optional[str] = None) -> str:
    """
    Create the restaurant query for a trip.

    Example:
        >>> create_restaurant_query_text("Kyoto", "fine_dining")
        'fine dining restaurants and dining in Kyoto'
    """
    prefix = f"{dining_style.replace('_', ' ')} " if dining_style else ""
    return f"{prefix}restaurants and dining in {destination}"


# Global singleton instance
_embedding_model: Optional[EmbeddingModel] = None


def get_embedding_model() -> EmbeddingModel:
    """
    Get global embedding model instance.

    Returns:
        Singleton EmbeddingModel instance
    """
    global _embedding_model
    if _embedding_model is None:
        _embedding_model = EmbeddingModel()
    return _embedding_model
