"""
Hybrid relevance scoring for catalog items.

combined_score = VECTOR_WEIGHT * vector_score + TEXT_WEIGHT * text_score

- vector_score: cosine similarity between query and item embeddings, clamped
  to [0, 1]. Items without an embedding score 0 here, so only the
  lexical term can lift them.
- text_score: token-overlap ratio, |query tokens & item tokens| / |query tokens|,
  over the item's name, description and tags.

The Supabase hybrid_search_* RPCs are expected to return the same score in
their combined_score column; InMemoryCatalogStore uses these functions directly.
"""
import math
import re
from typing import Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from ..models.catalog import CatalogItem

VECTOR_WEIGHT = 0.6
TEXT_WEIGHT = 0.4

STOP_WORDS = frozenset({
    "a", "an", "and", "at", "by", "for", "from", "in", "of", "on", "or",
    "the", "to", "with", "things", "do", "best",
})

_TOKEN_RE = re.compile(r"[^\W_]+", re.UNICODE)

ItemT = TypeVar("ItemT", bound=CatalogItem)


def tokenize(text: Optional[str]) -> Set[str]:
    """Lowercase word tokens without stop words"""
    if not text:
        return set()
    return {t for t in _TOKEN_RE.findall(text.lower()) if t not in STOP_WORDS}


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity clamped to [0, 1]. Mismatched or zero vectors score 0."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return max(0.0, min(1.0, dot / (norm_a * norm_b)))


def item_terms(item: CatalogItem) -> Set[str]:
    terms = tokenize(item.name) | tokenize(item.description)
    for tag in item.tags:
        terms |= tokenize(tag)
    return terms


def text_relevance(query_tokens: Set[str], item: CatalogItem) -> float:
    """Share of query tokens found in the item's name, description and tags"""
    if not query_tokens:
        return 0.0
    return len(query_tokens & item_terms(item)) / len(query_tokens)


def combined_score(
    vector_score: float,
    text_score: float,
    vector_weight: float = VECTOR_WEIGHT,
    text_weight: float = TEXT_WEIGHT
) -> float:
    return vector_weight * vector_score + text_weight * text_score


def score_item(
    item: CatalogItem,
    query_tokens: Set[str],
    query_embedding: Optional[Sequence[float]],
    vector_weight: float = VECTOR_WEIGHT,
    text_weight: float = TEXT_WEIGHT
) -> float:
    vector_score = 0.0
    if query_embedding and item.embedding:
        vector_score = cosine_similarity(query_embedding, item.embedding)
    return combined_score(vector_score, text_relevance(query_tokens, item), vector_weight, text_weight)


def ranking_key(item: CatalogItem) -> Tuple[float, float, int]:
    """Sort key: combined_score desc, rating desc (nulls last), id asc"""
    score = item.combined_score if item.combined_score is not None else 0.0
    rating = item.rating if item.rating is not None else -1.0
    return (-score, -rating, item.id)


def rating_key(item: CatalogItem) -> Tuple[float, int]:
    """Sort key for lexical fallback: rating desc (nulls last), id asc"""
    rating = item.rating if item.rating is not None else -1.0
    return (-rating, item.id)


def rank_items(
    items: Iterable[ItemT],
    query_text: str,
    query_embedding: Optional[Sequence[float]],
    limit: int,
    vector_weight: float = VECTOR_WEIGHT,
    text_weight: float = TEXT_WEIGHT
) -> List[ItemT]:
    """
    Score and order candidates for one query, keeping the top `limit`.

    Returns copies carrying combined_score. There is no score floor: an item
    with no vector or keyword signal still ranks, after every scored one.
    """
    query_tokens = tokenize(query_text)
    scored = [
        item.model_copy(update={
            "combined_score": score_item(item, query_tokens, query_embedding, vector_weight, text_weight)
        })
        for item in items
    ]
    scored.sort(key=ranking_key)
    return scored[:limit]
