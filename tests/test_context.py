"""Context assembly"""
from tourgether.models.catalog import Attraction, Restaurant, WebSnippet
from tourgether.rag.context import (
    ATTRACTIONS_HEADING,
    RESTAURANTS_HEADING,
    WEB_HEADING,
    ContextLimits,
    build_context,
    truncate,
)


def test_truncate_never_exceeds_limit():
    text = "word " * 200
    for limit in (1, 3, 4, 10, 300):
        assert len(truncate(text, limit)) <= limit
    assert truncate(text, 10).endswith("...")


def test_truncate_leaves_short_text_alone():
    assert truncate("  Golden   Pavilion ", 50) == "Golden Pavilion"
    assert truncate(None, 50) == ""


def test_attraction_entry_format():
    item = Attraction(
        id=1, name="Kinkaku-ji", rating=4.7, description="Zen temple",
        categories=["Temples", "Gardens"], general_location="Kita",
    )

    context = build_context([item], [], [])

    assert context.splitlines() == [
        ATTRACTIONS_HEADING,
        "1. **Kinkaku-ji** (Rating: 4.7/5)",
        "   Zen temple",
        "   Categories: Temples, Gardens",
        "   Location: Kita",
    ]


def test_missing_rating_is_omitted():
    context = build_context([Attraction(id=1, name="Nijo Castle")], [], [])
    assert "1. **Nijo Castle**" in context
    assert "Rating" not in context


def test_empty_sections_are_omitted():
    context = build_context(
        [Attraction(id=1, name="Kinkaku-ji")],
        [],
        [WebSnippet(title="Top Kyoto sights", url="https://www.lonelyplanet.com/kyoto", content="Temples")],
    )

    assert ATTRACTIONS_HEADING in context
    assert WEB_HEADING in context
    assert "Restaurants" not in context
    assert "Source: https://www.lonelyplanet.com/kyoto" in context


def test_no_evidence_gives_empty_context():
    assert build_context([], [], []) == ""


def test_item_counts_and_field_caps_are_enforced():
    long_text = "x" * 1000
    attractions = [Attraction(id=i, name=f"Place {i}", description=long_text) for i in range(15)]
    restaurants = [Restaurant(id=100 + i, name=f"Cafe {i}", description=long_text) for i in range(8)]
    snippets = [WebSnippet(title=long_text, url=f"https://yelp.com/{i}", content=long_text) for i in range(3)]

    context = build_context(attractions, restaurants, snippets)
    lines = context.splitlines()

    assert "10. **Place 9**" in context
    assert "**Place 10**" not in context
    assert "5. **Cafe 4**" in context
    assert "**Cafe 5**" not in context
    assert RESTAURANTS_HEADING in context
    description_lines = [l.strip() for l in lines if l.strip().startswith("xxx")]
    assert max(len(l) for l in description_lines) <= 300
    assert all(len(l) <= 250 for l in description_lines[-3:])


def test_every_field_is_capped():
    huge = "y" * 5000
    limits = ContextLimits()
    context = build_context(
        [Attraction(id=1, name="N" * 5000, general_location="L" * 5000, categories=["C" * 5000, "Parks"])],
        [Restaurant(id=2, name=huge, general_location=huge, cuisines=[huge])],
        [WebSnippet(title="", url="https://example.com/" + huge, content="")],
        limits,
    )
    lines = context.splitlines()

    longest_cap = max(limits.name_chars, limits.location_chars, limits.tag_list_chars, limits.url_chars)
    assert max(len(l) for l in lines) <= longest_cap + len("   Categories: ")
    assert "   Location: " + "L" * (limits.location_chars - 3) + "..." in lines
    assert len(context) < 2000
    web_title = next(l for l in lines if l.startswith("1. **https://"))
    assert len(web_title) <= limits.url_chars + len("1. ****")


def test_custom_limits():
    limits = ContextLimits(max_attractions=1)
    context = build_context(
        [Attraction(id=1, name="First"), Attraction(id=2, name="Second")], [], [], limits
    )
    assert "First" in context
    assert "Second" not in context


def test_build_context_is_deterministic():
    items = [Attraction(id=i, name=f"Place {i}", rating=4.0) for i in range(3)]
    assert build_context(items, [], []) == build_context(items, [], [])
