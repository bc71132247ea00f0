"""Error taxonomy for the itinerary pipeline.

Only validation, authentication and generation errors ever reach the caller.
Retrieval and web-search failures are absorbed by the stage that hit them.
"""
from typing import List, Optional


class TourGetherError(Exception):
    """Base class for all application errors"""


class TripValidationError(TourGetherError):
    """Raised when a trip request violates one or more field constraints"""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Invalid trip data")


class AuthenticationError(TourGetherError):
    """Raised when a required bearer token is missing or invalid"""


class RetrievalSoftFailure(TourGetherError):
    """A catalog or embedding call failed. Logged and answered with a fallback."""


class EmbeddingError(RetrievalSoftFailure):
    """Embedding provider failed or was given empty input"""


class WebSearchSoftFailure(TourGetherError):
    """Web search provider failed. Logged and answered with no snippets."""


class IngestionError(TourGetherError):
    """Raised when catalog rows cannot be mapped to a known source schema"""


class GenerationError(TourGetherError):
    """Base class for failures that prevent producing any itinerary"""

    status_code: int = 500
    user_message: str = "Failed to generate itinerary. Please try again."


class GenerationRateLimitedError(GenerationError):
    """Upstream model rejected the call with a rate limit. Retryable."""

    status_code = 429
    user_message = "Rate limit exceeded. Please try again in a moment."

    def __init__(self, message: str = "Generation rate limited", retry_after: Optional[float] = None):
        self.retry_after = retry_after
        super().__init__(message)


class GenerationQuotaExceededError(GenerationError):
    """Upstream credits are exhausted. Needs operator action."""

    status_code = 402
    user_message = "AI credits depleted. Please contact support to add credits."


class GenerationUnavailableError(GenerationError):
    """Any other upstream generation failure"""

    status_code = 500
