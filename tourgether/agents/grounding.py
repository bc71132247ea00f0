"""
Post-generation grounding check.

The generator is told to write every place name in bold and to use only
names from the context. This module pulls the bold spans back out of the
itinerary and reports the ones that cannot be traced to the context.
"""
import logging
import re
from difflib import SequenceMatcher
from typing import Iterable, List

logger = logging.getLogger(__name__)

FUZZY_MATCH_RATIO = 0.85

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_STRUCTURAL_RE = re.compile(
    r"^(day|morning|afternoon|evening|night|late night|breakfast|brunch|lunch|dinner|"
    r"tip|tips|note|notes|cost|costs|estimated|budget|total|alternative|alternatives|"
    r"option|options|travel|transport|getting there|trip details|based on)\b",
    re.IGNORECASE,
)


def _normalize(text: str) -> str:
    return " ".join(re.sub(r"[^\w\s]", " ", text.lower()).split())


def extract_place_mentions(itinerary: str) -> List[str]:
    """
    Bold spans that look like place names, in order of first appearance.

    Skips markdown headers, time-of-day labels, labels ending in ':' and spans
    containing digits (times, prices).
    """
    mentions: List[str] = []
    seen = set()
    for line in itinerary.splitlines():
        if line.lstrip().startswith("#"):
            continue
        for match in _BOLD_RE.finditer(line):
            span = match.group(1).strip().strip("*_ ")
            if not span or span.endswith(":") or any(c.isdigit() for c in span):
                continue
            if _STRUCTURAL_RE.match(span):
                continue
            key = _normalize(span)
            if key and key not in seen:
                seen.add(key)
                mentions.append(span)
    return mentions


def _matches_name(mention: str, names: Iterable[str]) -> bool:
    for name in names:
        normalized = _normalize(name)
        if not normalized:
            continue
        if mention == normalized or mention in normalized or normalized in mention:
            return True
        if SequenceMatcher(None, mention, normalized).ratio() >= FUZZY_MATCH_RATIO:
            return True
    return False


def find_unverified_places(itinerary: str, context: str, known_names: Iterable[str] = ()) -> List[str]:
    """
    Place mentions in the itinerary that appear neither in the context text nor
    (fuzzily) among the known catalog names.

    Args:
        itinerary: Generated markdown
        context: The exact context block given to the generator
        known_names: Catalog names that fed the context

    Returns:
        Unverified mentions as written in the itinerary
    """
    if not context:
        return []

    haystack = _normalize(context)
    names = list(known_names)
    unverified = []
    for mention in extract_place_mentions(itinerary):
        normalized = _normalize(mention)
        if normalized in haystack or _matches_name(normalized, names):
            continue
        unverified.append(mention)

    if unverified:
        logger.warning(f"Itinerary mentions {len(unverified)} place(s) not found in context: {unverified}")
    return unverified
