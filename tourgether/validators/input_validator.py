"""Input validation for API requests"""
import logging
from typing import Any, Dict, List
from pydantic import ValidationError as PydanticValidationError
from ..errors import TripValidationError
from ..schemas.request import TripRequest

logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def format_validation_errors(error: PydanticValidationError) -> List[str]:
    """
    Flatten pydantic errors into one readable message per violated constraint

    Args:
        error: Pydantic validation error

    Returns:
        Messages like "budgetMax: Maximum budget must be greater than or equal to minimum budget"
    """
    messages = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "request"
        message = item.get("msg", "Invalid value")
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        messages.append(f"{field}: {message}")
    return messages


def validate_trip_request(payload: Any) -> TripRequest:
    """
    Validate a raw trip payload before any retrieval work is done

    Args:
        payload: Decoded JSON body

    Returns:
        Validated TripRequest

    Raises:
        TripValidationError: With every violated field constraint
    """
    if not isinstance(payload, dict):
        raise TripValidationError(["request: Trip data must be a JSON object"])

    try:
        return TripRequest.model_validate(payload)
    except PydanticValidationError as e:
        messages = format_validation_errors(e)
        logger.warning(f"Trip validation failed: {messages}")
        raise TripValidationError(messages) from e


def trip_summary(trip: TripRequest) -> Dict[str, Any]:
    """Compact, log-safe description of a validated trip"""
    return {
        "destination": trip.destination,
        "trip_type": trip.trip_type.value,
        "days": trip.days_count,
        "travelers": trip.travelers,
    }
