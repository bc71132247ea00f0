"""Shared fixtures: an in-memory Kyoto catalog plus fakes for every outbound provider"""
from typing import Dict, List, Optional

import pytest

from tourgether.agents.itinerary_agent import ItineraryGenerator
from tourgether.agents.orchestrator import ItineraryOrchestrator
from tourgether.errors import EmbeddingError
from tourgether.models.catalog import Attraction, Restaurant, WebSnippet
from tourgether.rag.memory_store import InMemoryCatalogStore
from tourgether.rag.retriever import HybridRetriever

QUERY_VECTOR = [1.0, 0.0, 0.0]


class FakeEmbeddingModel:
    """Returns QUERY_VECTOR for every text and counts calls"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[str] = []
        self.batch_calls: List[List[str]] = []

    @property
    def available(self) -> bool:
        return not self.fail

    async def embed(self, text: str, input_type: str = "search_query") -> List[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingError("embedding provider unavailable")
        return list(QUERY_VECTOR)

    async def embed_batch(self, texts, input_type="search_document", batch_size=96):
        self.batch_calls.append(list(texts))
        if self.fail:
            raise EmbeddingError("embedding provider unavailable")
        return [list(QUERY_VECTOR) for _ in texts]


class FakeChatAPI:
    """Records messages and answers with a canned itinerary or a configured error"""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.requests: List[List[Dict[str, str]]] = []

    async def complete(self, messages, temperature=0.4, max_tokens=4000) -> str:
        self.requests.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self):
        pass


class FakeWebSearch:
    """Travel-site search that returns one snippet per query"""

    def __init__(self, configured: bool = True, results_per_query: int = 1):
        self._configured = configured
        self.results_per_query = results_per_query
        self.queries: List[str] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def search(self, query: str) -> List[WebSnippet]:
        self.queries.append(query)
        return [
            WebSnippet(
                title=f"Result {i} for {query}",
                url=f"https://www.tripadvisor.com/{len(self.queries)}/{i}",
                content="Travellers recommend this place.",
                score=0.9,
            )
            for i in range(self.results_per_query)
        ]


def kyoto_attractions() -> List[Attraction]:
    return [
        Attraction(
            id=1, name="Fushimi Inari Taisha", destination="Kyoto", rating=4.8,
            description="Historical shrine famous for thousands of torii gates",
            categories=["Shrines", "Historical Sites"], general_location="Fushimi",
            embedding=[1.0, 0.0, 0.0],
        ),
        Attraction(
            id=2, name="Kinkaku-ji", destination="Kyoto", rating=4.7,
            description="Zen temple covered in gold leaf",
            categories=["Temples", "Historical Sites"], general_location="Kita",
            embedding=[0.8, 0.6, 0.0],
        ),
        Attraction(
            id=3, name="Arashiyama Bamboo Grove", destination="Kyoto", rating=4.5,
            description="Walking path through towering bamboo",
            categories=["Nature"], general_location="Arashiyama",
            embedding=[0.0, 1.0, 0.0],
        ),
        Attraction(
            id=4, name="Nijo Castle", destination="Kyoto", rating=None,
            description="Historical castle of the Tokugawa shoguns",
            categories=["Castles"],
        ),
        Attraction(
            id=10, name="Senso-ji", destination="Tokyo", rating=4.6,
            description="Historical Buddhist temple in Asakusa",
            categories=["Temples"], embedding=[1.0, 0.0, 0.0],
        ),
    ]


def kyoto_restaurants() -> List[Restaurant]:
    return [
        Restaurant(
            id=101, name="Nishiki Market Stalls", destination="Kyoto", rating=4.4,
            description="Local restaurants and street food stalls",
            cuisines=["Japanese", "Street Food"], dishes=["yakitori"],
            embedding=[1.0, 0.0, 0.0],
        ),
        Restaurant(
            id=102, name="Gion Karyo", destination="Kyoto", rating=4.6,
            description="Kaiseki dining in Gion",
            cuisines=["Japanese", "Kaiseki"], embedding=[0.9, 0.1, 0.0],
        ),
    ]


def itinerary_mentioning(*names: str) -> str:
    lines = ["## Day 1: Temples and shrines", "**Morning (8:00 AM - 12:00 PM)**"]
    lines.extend(f"- Visit **{name}**" for name in names)
    return "\n".join(lines)


@pytest.fixture
def trip_payload() -> Dict:
    return {
        "destination": "Kyoto",
        "startDate": "2026-04-01",
        "endDate": "2026-04-03",
        "budgetMin": 1000,
        "budgetMax": 2500,
        "currency": "usd",
        "tripType": "historical_places",
        "pace": "moderate",
        "diningStyle": "local",
        "travelers": 2,
        "daysCount": 3,
    }


@pytest.fixture
def store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore(
        attractions=kyoto_attractions(),
        restaurants=kyoto_restaurants(),
        predictions={"session-1": "east_asia"},
    )


@pytest.fixture
def embedding_model() -> FakeEmbeddingModel:
    return FakeEmbeddingModel()


@pytest.fixture
def web_search() -> FakeWebSearch:
    return FakeWebSearch()


@pytest.fixture
def chat_api() -> FakeChatAPI:
    return FakeChatAPI(reply=itinerary_mentioning("Fushimi Inari Taisha", "Kinkaku-ji"))


@pytest.fixture
def retriever(store, embedding_model) -> HybridRetriever:
    return HybridRetriever(store=store, embedding_model=embedding_model)


@pytest.fixture
def orchestrator(retriever, web_search, chat_api, store) -> ItineraryOrchestrator:
    return ItineraryOrchestrator(
        retriever=retriever,
        web_search=web_search,
        generator=ItineraryGenerator(chat_api=chat_api),
        store=store,
        grounding_policy="warn",
    )
