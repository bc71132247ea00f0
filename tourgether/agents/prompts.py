"""Prompt templates for itinerary generation"""
from typing import Dict, List, Optional
from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate

from ..schemas.request import TripRequest

TRIP_TYPE_LABELS = {
    "landmarks": "Famous landmarks and iconic spots",
    "historical_places": "Historical sites, museums, and cultural heritage",
    "nature": "Natural parks, beaches, and outdoor adventures",
    "entertainment": "Shows, nightlife, theme parks, and attractions",
}

PACE_LABELS = {
    "relaxed": "relaxed pace with plenty of downtime",
    "moderate": "balanced mix of activities and rest",
    "fast_paced": "action-packed with many activities each day",
}

DINING_LABELS = {
    "local": "authentic local cuisine",
    "mixed": "a mix of local and international dining",
    "fine_dining": "upscale fine dining experiences",
}

NO_CONTEXT_NOTICE = (
    "No specific data available for this destination. "
    "Provide general travel recommendations based on your knowledge of {destination}, "
    "and begin the itinerary with a short note stating that it is based on general knowledge "
    "rather than retrieved data."
)

SYSTEM_PROMPT = """You are TourGether, an expert AI travel planner powered by retrieval-augmented generation.

CRITICAL RULES:
1. You MUST ONLY recommend attractions, restaurants, and places that are named in the provided CONTEXT.
2. Do NOT invent any places, names, ratings, or details that are not in the context.
3. Use place names exactly as written in the context and write each one in bold.
4. Include the ratings from the context when available.
5. If the context lacks information for part of the trip, say "Based on available information..." and only use what is provided.
6. Only when the context says no specific data is available may you use general knowledge, and you must say so at the top of the itinerary.

Your itineraries must be:
- Practical, with specific times for each activity
- Organized with one "## Day N: <theme>" header per day
- Split into "**Morning (8:00 AM - 12:00 PM)**", "**Afternoon (12:00 PM - 6:00 PM)**" and "**Evening (6:00 PM onwards)**" sections with bullet points
- Priced in the traveler's currency where you give estimated costs"""

USER_PROMPT = """Create a detailed {days_count}-day travel itinerary for {destination}.

**Trip Details:**
- Travelers: {travelers}
- Dates: {start_date} to {end_date}
- Budget: {currency} {budget_min} - {budget_max} total
- Focus: {focus}
- Pace: {pace}
- Dining preference: {dining}{region_line}

---
## RETRIEVED CONTEXT (USE ONLY THIS INFORMATION):
{context}
---

Using ONLY the information from the context above, create a day-by-day itinerary with:
1. Morning, afternoon, and evening activities (from the attractions in context)
2. Restaurant recommendations (from the restaurants in context)
3. Estimated costs for major activities and meals
4. Travel tips between locations
5. Alternative options for flexibility

Format each day clearly with:
## Day X: [Theme/Focus]
**Morning (8:00 AM - 12:00 PM)**
**Afternoon (12:00 PM - 6:00 PM)**
**Evening (6:00 PM onwards)**

Include practical details like opening hours and best times to visit."""

ITINERARY_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", USER_PROMPT),
])

_ROLE_BY_MESSAGE_TYPE = {"system": "system", "human": "user", "ai": "assistant"}


def format_amount(value: float) -> str:
    """1500 -> '1,500', 1500.5 -> '1,500.50'"""
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def prompt_variables(trip: TripRequest, context: str, region: Optional[str] = None) -> Dict[str, str]:
    """Template variables for one trip"""
    trip_type = trip.trip_type.value
    region_line = f"\n- Region context: {region.replace('_', ' ')}" if region else ""
    return {
        "days_count": str(trip.days_count),
        "destination": trip.destination,
        "travelers": f"{trip.travelers} {'person' if trip.travelers == 1 else 'people'}",
        "start_date": trip.start_date.isoformat(),
        "end_date": trip.end_date.isoformat(),
        "currency": trip.currency,
        "budget_min": format_amount(trip.budget_min),
        "budget_max": format_amount(trip.budget_max),
        "focus": TRIP_TYPE_LABELS.get(trip_type, trip_type),
        "pace": PACE_LABELS.get(trip.pace.value, trip.pace.value),
        "dining": DINING_LABELS.get(trip.dining_style.value, trip.dining_style.value),
        "region_line": region_line,
        "context": context or NO_CONTEXT_NOTICE.format(destination=trip.destination),
    }


def to_chat_messages(messages: List[BaseMessage]) -> List[Dict[str, str]]:
    """Convert LangChain messages to the chat-completions wire format"""
    return [
        {"role": _ROLE_BY_MESSAGE_TYPE.get(m.type, "user"), "content": m.content}
        for m in messages
    ]


def build_itinerary_messages(trip: TripRequest, context: str, region: Optional[str] = None) -> List[Dict[str, str]]:
    """System + user messages for one itinerary request"""
    messages = ITINERARY_PROMPT.format_messages(**prompt_variables(trip, context, region))
    return to_chat_messages(messages)
