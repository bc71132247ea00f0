"""
Itinerary generator - turns a validated trip and an assembled context into markdown
"""
import logging
from typing import Optional

from ..config import settings
from ..errors import GenerationError, GenerationUnavailableError
from ..schemas.request import TripRequest
from ..tools.chat_completion import ChatCompletionAPI, get_chat_api
from .prompts import build_itinerary_messages

logger = logging.getLogger(__name__)


class ItineraryGenerator:
    """Calls the language model with the grounded prompt"""

    def __init__(
        self,
        chat_api: Optional[ChatCompletionAPI] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ):
        self.chat_api = chat_api or get_chat_api()
        self.temperature = settings.model_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.model_max_tokens

    async def generate(self, trip: TripRequest, context: str, region: Optional[str] = None) -> str:
        """
        Generate the itinerary markdown

        Args:
            trip: Validated trip request
            context: Output of build_context ("" when no evidence was found)
            region: Optional region hint from a prior photo classification

        Returns:
            Markdown itinerary with "## Day N: <theme>" sections

        Raises:
            GenerationRateLimitedError: Upstream rate limit, retry later
            GenerationQuotaExceededError: Upstream credits exhausted
            GenerationUnavailableError: Any other upstream failure
        """
        messages = build_itinerary_messages(trip, context, region)
        logger.info(
            f"Calling LLM for {trip.days_count}-day itinerary to {trip.destination} "
            f"(context: {len(context)} chars, grounded: {bool(context)})"
        )

        try:
            itinerary = await self.chat_api.complete(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Unexpected generation failure: {type(e).__name__}: {e}")
            raise GenerationUnavailableError(str(e)) from e

        logger.info(f"✓ LLM response received ({len(itinerary)} chars)")
        return itinerary.strip()
