"""Tavily web search wrapper - last fallback tier for destinations the catalog does not cover"""
import asyncio
import logging
from typing import Any, Dict, List, Optional
from tavily import TavilyClient

from ..config import settings
from ..errors import WebSearchSoftFailure
from ..models.catalog import WebSnippet

logger = logging.getLogger(__name__)

# Review and travel-content sites only
TRAVEL_DOMAINS = [
    "tripadvisor.com",
    "lonelyplanet.com",
    "viator.com",
    "booking.com",
    "yelp.com",
]


def attraction_query(destination: str, trip_type: str) -> str:
    return f"best {trip_type.replace('_', ' ')} attractions and things to do in {destination}"


def restaurant_query(destination: str) -> str:
    return f"best restaurants and places to eat in {destination}"


class WebSearchAPI:
    """Wrapper for Tavily search restricted to travel domains"""

    SEARCH_DEPTH = "advanced"
    MAX_RESULTS = 10

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.api_key = api_key if api_key is not None else settings.tavily_api_key
        self.timeout_seconds = timeout_seconds or settings.web_search_timeout_seconds
        self._client: Optional[TavilyClient] = TavilyClient(api_key=self.api_key) if self.api_key else None

    @property
    def configured(self) -> bool:
        """True when an API key is set; without one the web tier is skipped"""
        return self._client is not None

    def _search_sync(self, query: str) -> Dict[str, Any]:
        return self._client.search(
            query=query,
            search_depth=self.SEARCH_DEPTH,
            max_results=self.MAX_RESULTS,
            include_domains=TRAVEL_DOMAINS,
        )

    async def _raw_search(self, query: str) -> Dict[str, Any]:
        if self._client is None:
            raise WebSearchSoftFailure("TAVILY_API_KEY is not configured")
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._search_sync, query),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise WebSearchSoftFailure(f"Web search timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            raise WebSearchSoftFailure(f"Web search failed: {type(e).__name__}: {e}") from e

    async def search(self, query: str) -> List[WebSnippet]:
        """
        Search travel sites for a query

        Args:
            query: Natural-language query

        Returns:
            Up to MAX_RESULTS snippets; empty on any provider error or missing key
        """
        logger.info(f"Tavily fallback search for: {query[:80]}")
        try:
            data = await self._raw_search(query)
        except WebSearchSoftFailure as e:
            logger.error(f"Web search soft failure for '{query[:80]}': {e}")
            return []

        snippets = []
        for result in (data or {}).get("results", [])[:self.MAX_RESULTS]:
            try:
                snippets.append(WebSnippet(
                    title=result.get("title") or "",
                    url=result.get("url") or "",
                    content=result.get("content") or "",
                    score=float(result.get("score") or 0.0),
                ))
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed web result: {e}")

        logger.info(f"Web search returned {len(snippets)} results")
        return snippets


# Global singleton instance
_web_search: Optional[WebSearchAPI] = None


def get_web_search() -> WebSearchAPI:
    global _web_search
    if _web_search is None:
        _web_search = WebSearchAPI()
    return _web_search
