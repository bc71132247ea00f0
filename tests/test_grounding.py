"""Post-generation grounding check"""
from tourgether.agents.grounding import extract_place_mentions, find_unverified_places

CONTEXT = """## Retrieved Attractions from Database:
1. **Fushimi Inari Taisha** (Rating: 4.8/5)
   Historical shrine famous for thousands of torii gates

## Retrieved Restaurants from Database:
1. **Gion Karyo** (Rating: 4.6/5)"""

ITINERARY = """## Day 1: Shrines and Kaiseki
**Morning (8:00 AM - 12:00 PM)**
- Walk the gates at **Fushimi Inari Taisha**
**Afternoon (12:00 PM - 6:00 PM)**
- Visit **Kiyomizu-dera**
**Evening (6:00 PM onwards)**
- Dinner at **Gion Karyo**
**Tip:** carry cash
**Estimated cost** ¥5,000"""


def test_structural_labels_are_not_place_mentions():
    assert extract_place_mentions(ITINERARY) == ["Fushimi Inari Taisha", "Kiyomizu-dera", "Gion Karyo"]


def test_places_outside_context_are_reported():
    assert find_unverified_places(ITINERARY, CONTEXT) == ["Kiyomizu-dera"]


def test_fuzzy_catalog_name_match_is_grounded():
    itinerary = "- Visit **Fushimi Inari Taisa**"
    assert find_unverified_places(itinerary, CONTEXT, ["Fushimi Inari Taisha"]) == []


def test_check_is_skipped_without_context():
    assert find_unverified_places(ITINERARY, "") == []
