"""
Context assembly for itinerary generation.

build_context is the only place retrieved evidence is turned into prompt text,
and the generator is told to use nothing else. Every free-text field is hard
truncated so the prompt stays within budget.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models.catalog import Attraction, Restaurant, WebSnippet

ATTRACTIONS_HEADING = "## Retrieved Attractions from Database:"
RESTAURANTS_HEADING = "## Retrieved Restaurants from Database:"
WEB_HEADING = "## Additional Web Search Results:"

ELLIPSIS = "..."


@dataclass(frozen=True)
class ContextLimits:
    """Item counts and per-field character caps"""
    max_attractions: int = 10
    max_restaurants: int = 5
    max_web_snippets: int = 20
    attraction_description_chars: int = 300
    restaurant_description_chars: int = 200
    web_title_chars: int = 150
    web_content_chars: int = 250
    name_chars: int = 120
    location_chars: int = 100
    tag_list_chars: int = 150
    url_chars: int = 200


DEFAULT_LIMITS = ContextLimits()


def truncate(text: Optional[str], limit: int) -> str:
    """Collapse whitespace and cut to at most `limit` characters, ellipsis included"""
    if not text:
        return ""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    if limit <= len(ELLIPSIS):
        return text[:limit]
    return text[:limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def _format_rating(rating: Optional[float]) -> str:
    if rating is None:
        return ""
    return f" (Rating: {rating:g}/5)"


def _heading(index: int, name: Optional[str], rating: Optional[float], limits: ContextLimits) -> str:
    return f"{index}. **{truncate(name, limits.name_chars)}**{_format_rating(rating)}"


def _detail_lines(
    description: Optional[str],
    description_chars: int,
    tag_label: str,
    tags: Sequence[str],
    location: Optional[str],
    limits: ContextLimits
) -> List[str]:
    lines = []
    description = truncate(description, description_chars)
    if description:
        lines.append(f"   {description}")
    tag_list = truncate(", ".join(tags), limits.tag_list_chars)
    if tag_list:
        lines.append(f"   {tag_label}: {tag_list}")
    location = truncate(location, limits.location_chars)
    if location:
        lines.append(f"   Location: {location}")
    return lines


def _attraction_lines(index: int, item: Attraction, limits: ContextLimits) -> List[str]:
    lines = [_heading(index, item.name, item.rating, limits)]
    lines.extend(_detail_lines(
        item.description, limits.attraction_description_chars,
        "Categories", item.categories, item.general_location, limits
    ))
    return lines


def _restaurant_lines(index: int, item: Restaurant, limits: ContextLimits) -> List[str]:
    lines = [_heading(index, item.name, item.rating, limits)]
    lines.extend(_detail_lines(
        item.description, limits.restaurant_description_chars,
        "Cuisines", item.cuisines, item.general_location, limits
    ))
    return lines


def _web_lines(index: int, snippet: WebSnippet, limits: ContextLimits) -> List[str]:
    url = truncate(snippet.url, limits.url_chars)
    lines = [f"{index}. **{truncate(snippet.title, limits.web_title_chars) or url}**"]
    content = truncate(snippet.content, limits.web_content_chars)
    if content:
        lines.append(f"   {content}")
    if url:
        lines.append(f"   Source: {url}")
    return lines

def build_context(
    attractions: Sequence[Attraction],
    restaurants: Sequence[Restaurant],
    web_snippets: Sequence[WebSnippet],
    limits: ContextLimits = DEFAULT_LIMITS
) -> str:
    """
    Render retrieved evidence as the generator's context block.

    Sections with no items are omitted entirely. Returns "" when there is no
    evidence at all.
    """
    sections = []

    if attractions:
        lines = [ATTRACTIONS_HEADING]
        for i, item in enumerate(attractions[:limits.max_attractions], 1):
            lines.extend(_attraction_lines(i, item, limits))
            lines.append("")
        sections.append("\n".join(lines))

    if restaurants:
        lines = [RESTAURANTS_HEADING]
        for i, item in enumerate(restaurants[:limits.max_restaurants], 1):
            lines.extend(_restaurant_lines(i, item, limits))
            lines.append("")
        sections.append("\n".join(lines))

    if web_snippets:
        lines = [WEB_HEADING]
        for i, snippet in enumerate(web_snippets[:limits.max_web_snippets], 1):
            lines.extend(_web_lines(i, snippet, limits))
            lines.append("")
        sections.append("\n".join(lines))

    return "\n".join(sections).strip()
