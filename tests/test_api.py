"""HTTP surface"""
import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tourgether.agents.itinerary_agent import ItineraryGenerator
from tourgether.agents.orchestrator import ItineraryOrchestrator, get_orchestrator
from tourgether.config import settings
from tourgether.errors import GenerationQuotaExceededError, GenerationRateLimitedError, GenerationUnavailableError
from tourgether.main import app, get_importer
from tourgether.middleware import auth
from tourgether.middleware.timeout import RequestTimeoutMiddleware
from tourgether.rag.ingest import CatalogImporter
from tourgether.rag.retriever import get_retriever

from .conftest import FakeChatAPI, FakeEmbeddingModel, FakeWebSearch


@pytest.fixture
def client(orchestrator, retriever, store):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_retriever] = lambda: retriever
    app.dependency_overrides[get_importer] = lambda: CatalogImporter(store=store, embedding_model=FakeEmbeddingModel())
    yield TestClient(app)
    app.dependency_overrides.clear()


def client_with_chat_error(retriever, store, error) -> TestClient:
    orchestrator = ItineraryOrchestrator(
        retriever=retriever,
        web_search=FakeWebSearch(),
        generator=ItineraryGenerator(chat_api=FakeChatAPI(error=error)),
        store=store,
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    return TestClient(app)


def test_health(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "healthy"}


def test_generate_itinerary(client, trip_payload):
    response = client.post("/generate-travel-itinerary", json=trip_payload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["daysCount"] == 3
    assert body["sources"]["databaseAttractions"] == 4
    assert body["itinerary"].startswith("## Day 1")
    assert body["unverifiedPlaces"] == []


def test_invalid_trip_returns_400_with_details(client, trip_payload):
    trip_payload.update(budgetMin=5000, budgetMax=1000)

    response = client.post("/generate-travel-itinerary", json=trip_payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid trip data"
    assert any(d.startswith("budgetMax") for d in body["details"])


def test_malformed_json_returns_400(client):
    response = client.post(
        "/generate-travel-itinerary", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.parametrize("error, status, message", [
    (GenerationRateLimitedError("slow down", retry_after=5), 429, "Rate limit exceeded"),
    (GenerationQuotaExceededError("no credits"), 402, "AI credits depleted"),
    (GenerationUnavailableError("upstream 503 body with secrets"), 500, "Failed to generate itinerary"),
])
def test_generation_errors_map_to_status(client, retriever, store, trip_payload, error, status, message):
    response = client_with_chat_error(retriever, store, error).post("/generate-travel-itinerary", json=trip_payload)

    assert response.status_code == status
    body = response.json()
    assert body["error"].startswith(message)
    assert "secrets" not in response.text
    if status == 429:
        assert response.headers["retry-after"] == "5"


def test_auth_required_without_token_returns_401(client, trip_payload, monkeypatch):
    monkeypatch.setattr(settings, "require_auth", True)

    response = client.post("/generate-travel-itinerary", json=trip_payload)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_search_travel(client):
    response = client.post("/search-travel", json={"query": "temple", "destination": "Kyoto", "type": "attractions"})

    assert response.status_code == 200
    body = response.json()
    assert body["results"]["restaurants"] == []
    assert body["totalResults"] == len(body["results"]["attractions"])
    assert all("embedding" not in a for a in body["results"]["attractions"])


def test_search_travel_requires_query_or_destination(client):
    response = client.post("/search-travel", json={"type": "both"})
    assert response.status_code == 400


def test_search_travel_rejects_bad_limit(client):
    response = client.post("/search-travel", json={"destination": "Kyoto", "limit": 500})
    assert response.status_code == 400
    assert any(d.startswith("limit") for d in response.json()["details"])


def test_catalog_import_requires_admin_key(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", None)
    assert client.post("/catalog/import", json={"attractions": []}).status_code == 403

    monkeypatch.setattr(settings, "admin_api_key", "secret")
    response = client.post("/catalog/import", json={"attractions": []}, headers={"X-Admin-Key": "wrong"})
    assert response.status_code == 403


def test_catalog_import(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "secret")

    response = client.post(
        "/catalog/import",
        json={"attractions": [{"ID": 50, "NAME": "Tofuku-ji", "DESTINATION": "Kyoto"}], "restaurants": []},
        headers={"X-Admin-Key": "secret"},
    )

    assert response.status_code == 200
    assert response.json()["attractionsImported"] == 1
    assert response.json()["totalImported"] == 1


def test_catalog_import_unknown_schema_returns_400(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "secret")

    response = client.post(
        "/catalog/import", json={"attractions": [{"Title": "??"}]}, headers={"X-Admin-Key": "secret"}
    )

    assert response.status_code == 400


def test_timeout_middleware_returns_504():
    slow_app = FastAPI()
    slow_app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=0.05)

    @slow_app.get("/slow")
    async def slow():
        await asyncio.sleep(1)
        return {"ok": True}

    response = TestClient(slow_app).get("/slow")

    assert response.status_code == 504
    assert response.json() == {"error": "Request timed out. Please try again."}


def test_catalog_import_malformed_body_returns_400_shape(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "secret")

    response = client.post(
        "/catalog/import", json={"attractions": "not a list", "batchSize": 500}, headers={"X-Admin-Key": "secret"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid catalog data"
    assert any(d.startswith("attractions") for d in body["details"])
    assert any(d.startswith("batchSize") for d in body["details"])
    assert "detail" not in body


def test_invalid_trip_is_rejected_before_token_lookup(client, trip_payload, monkeypatch):
    lookups = []

    async def record_lookup(token):
        lookups.append(token)
        return "user-1"

    monkeypatch.setattr(auth, "resolve_user_id", record_lookup)
    headers = {"Authorization": "Bearer abc"}

    trip_payload.update(travelers=0)
    response = client.post("/generate-travel-itinerary", json=trip_payload, headers=headers)
    assert response.status_code == 400
    assert lookups == []

    trip_payload.update(travelers=2)
    response = client.post("/generate-travel-itinerary", json=trip_payload, headers=headers)
    assert response.status_code == 200
    assert lookups == ["abc"]
