"""
TourGether Backend - retrieval-augmented travel itinerary generator

ARCHITECTURE:
- Strict request validation before any outbound call
- Hybrid (vector + keyword) catalog retrieval with text and web fallbacks
- Itineraries generated only from the retrieved context, then grounding-checked
- Distinct errors for rate limits (429), exhausted credits (402) and other failures (500)
- Optional Supabase authentication, admin-key protected catalog import
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from .agents.orchestrator import ItineraryOrchestrator, get_orchestrator
from .config import settings
from .errors import AuthenticationError, GenerationError, GenerationRateLimitedError, IngestionError, TripValidationError
from .middleware.auth import get_current_user
from .middleware.timeout import RequestTimeoutMiddleware
from .models.catalog import CatalogKind
from .rag.ingest import CatalogImporter
from .rag.retriever import HybridRetriever, get_retriever
from .schemas.request import CatalogImportRequest, CatalogSearchRequest, SearchType
from .schemas.response import (
    CatalogSearchResponse,
    ErrorResponse,
    GenerateItineraryResponse,
    ImportSummary,
    SearchResults,
)
from .tools.chat_completion import close_chat_api
from .utils.cancellation import ClientDisconnected, run_cancellable
from .validators.input_validator import format_validation_errors, validate_trip_request


def configure_logging() -> None:
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
    )


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"TourGether API starting (env={settings.env}, catalog={settings.catalog_backend})")
    yield
    await close_chat_api()
    logger.info("TourGether API stopped")


app = FastAPI(
    title="TourGether API",
    description="Retrieval-augmented travel itinerary generator",
    version="1.0.0",
    lifespan=lifespan
)

# Request timeout
app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

# CORS middleware for frontend communication
allowed_origins_list = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)


def error_response(status_code: int, message: str, details=None, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    body = ErrorResponse(error=message, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return error_response(401, "Unauthorized", headers={"WWW-Authenticate": "Bearer"})


def get_importer() -> CatalogImporter:
    return CatalogImporter()


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "ok", "message": "TourGether API is running"}


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.post(
    "/generate-travel-itinerary",
    response_model=GenerateItineraryResponse,
    response_model_by_alias=True,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse}
    }
)
async def generate_travel_itinerary(
    req: Request,
    orchestrator: ItineraryOrchestrator = Depends(get_orchestrator)
):
    """
    Generate a day-by-day itinerary grounded in the catalog

    The body is validated here rather than by FastAPI so every violated field
    is reported in one 400 response. Validation runs before the auth lookup,
    so a rejected body makes no outbound call at all.

    Returns:
        GenerateItineraryResponse with the markdown itinerary and its provenance

    Raises:
        AuthenticationError: When REQUIRE_AUTH is set and no valid token was sent (401)
    """
    try:
        payload: Any = await req.json()
    except ValueError:
        return error_response(400, "Invalid trip data", ["request: Body must be valid JSON"])

    try:
        trip = validate_trip_request(payload)
    except TripValidationError as e:
        return error_response(400, "Invalid trip data", e.messages)

    current_user = await get_current_user(req)

    try:
        result = await run_cancellable(req, orchestrator.plan_trip(trip))
        logger.info(f"Itinerary served to {current_user}")
        return result

    except GenerationRateLimitedError as e:
        headers = {"Retry-After": str(int(e.retry_after))} if e.retry_after else None
        return error_response(e.status_code, e.user_message, headers=headers)

    except GenerationError as e:
        logger.error(f"Generation failed ({type(e).__name__}): {e}")
        return error_response(e.status_code, e.user_message)

    except ClientDisconnected:
        # Nobody is listening; the status only shows up in access logs
        return error_response(499, "Client disconnected")

    except Exception as e:
        logger.exception(f"Unexpected error generating itinerary: {e}")
        return error_response(500, "An unexpected error occurred. Please try again.")


@app.post(
    "/search-travel",
    response_model=CatalogSearchResponse,
    response_model_by_alias=True,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def search_travel(
    req: Request,
    retriever: HybridRetriever = Depends(get_retriever)
):
    """
    Search the catalog by free-text query and/or destination

    Returns:
        CatalogSearchResponse with attractions and restaurants (embeddings omitted)
    """
    try:
        request = CatalogSearchRequest.model_validate(await req.json())
    except ValueError as e:
        details = format_validation_errors(e) if isinstance(e, PydanticValidationError) else ["request: Body must be valid JSON"]
        return error_response(400, "Invalid search request", details)

    if not (request.query or request.destination):
        return error_response(400, "Either query or destination is required")

    kinds = [CatalogKind.ATTRACTIONS, CatalogKind.RESTAURANTS]
    if request.type == SearchType.ATTRACTIONS:
        kinds = [CatalogKind.ATTRACTIONS]
    elif request.type == SearchType.RESTAURANTS:
        kinds = [CatalogKind.RESTAURANTS]

    try:
        result = await retriever.search_catalog(
            query=request.query,
            destination=request.destination,
            kinds=kinds,
            limit=request.limit,
            use_semantic_search=request.use_semantic_search,
            min_rating=request.min_rating,
            categories=request.categories,
            cuisines=request.cuisines
        )
    except Exception as e:
        logger.exception(f"Catalog search failed: {e}")
        return error_response(500, "Search failed. Please try again.")

    return CatalogSearchResponse(
        success=True,
        query=request.query,
        results=SearchResults(attractions=result.attractions, restaurants=result.restaurants),
        total_results=len(result.attractions) + len(result.restaurants)
    )


@app.post(
    "/catalog/import",
    response_model=ImportSummary,
    response_model_by_alias=True,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def import_catalog(
    req: Request,
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
    importer: CatalogImporter = Depends(get_importer)
):
    """
    Import catalog rows from an external export (ADMIN - requires X-Admin-Key)

    Returns:
        ImportSummary with per-table counts and any batch errors
    """
    if not settings.admin_api_key or x_admin_key != settings.admin_api_key:
        return error_response(403, "Forbidden")

    try:
        request = CatalogImportRequest.model_validate(await req.json())
    except ValueError as e:
        details = format_validation_errors(e) if isinstance(e, PydanticValidationError) else ["request: Body must be valid JSON"]
        return error_response(400, "Invalid catalog data", details)

    try:
        return await importer.import_catalog(
            request.attractions,
            request.restaurants,
            generate_embeddings=request.generate_embeddings,
            batch_size=request.batch_size
        )
    except IngestionError as e:
        return error_response(400, "Invalid catalog data", [str(e)])
    except Exception as e:
        logger.exception(f"Catalog import failed: {e}")
        return error_response(500, "Import failed. Please try again.")
