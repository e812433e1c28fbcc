# tests/test_document.py
"""
Selector evaluation: first‑match fallback vs. union, attribute vs. text
values, and tolerance for broken markup or selectors.
"""

import pytest

from models.content_model import ContentModel
from services.importer.document import DocumentIndex, SelectorResolver, infer_page_title

PAGE = """
<html>
  <head>
    <title>  Site title  </title>
    <meta property="og:title" content="Social title">
  </head>
  <body>
    <h1>   </h1>
    <h1>  Main heading </h1>
    <ul class="tags"><li>Paris</li><li> Rome </li><li>Oslo</li></ul>
    <img src="/a.png" alt="first"><img src="/b.png">
  </body>
</html>
"""


@pytest.fixture
def resolver() -> SelectorResolver:
    return SelectorResolver(DocumentIndex(PAGE))


# -------------------------------------------------------------------
# 1️⃣  resolve_first – ordered fallback
# -------------------------------------------------------------------
def test_resolve_first_skips_missing_selector(resolver):
    assert resolver.resolve_first(["//missing", "//title"]) == "Site title"


def test_resolve_first_stops_at_first_matching_selector(resolver):
    """Later selectors are never consulted once one matches."""
    assert resolver.resolve_first(["//ul/li", "//title"]) == "Paris"


def test_resolve_first_returns_none_without_match(resolver):
    assert resolver.resolve_first(["//missing"]) is None
    assert resolver.resolve_first([]) is None


# -------------------------------------------------------------------
# 2️⃣  resolve_all – union of every selector
# -------------------------------------------------------------------
def test_resolve_all_concatenates_every_selector(resolver):
    assert resolver.resolve_all(["//missing", "//title", "//ul/li"]) == [
        "Site title",
        "Paris",
        "Rome",
        "Oslo",
    ]


def test_resolve_all_empty_cases(resolver):
    assert resolver.resolve_all([]) == []
    assert resolver.resolve_all(["//nothing-here"]) == []


# -------------------------------------------------------------------
# 3️⃣  Values – attributes raw, elements trimmed text
# -------------------------------------------------------------------
def test_attribute_selector_yields_attribute_values(resolver):
    assert resolver.resolve_all(["//img/@src"]) == ["/a.png", "/b.png"]
    assert resolver.resolve_first(["//meta[@property='og:title']/@content"]) == "Social title"


def test_scalar_xpath_expression(resolver):
    assert resolver.resolve_first(["count(//ul/li)"]) == "3"
    assert resolver.resolve_first(["normalize-space(//ul/li[2])"]) == "Rome"


# -------------------------------------------------------------------
# 4️⃣  Leniency
# -------------------------------------------------------------------
def test_malformed_markup_does_not_raise():
    index = DocumentIndex("<div><p>Unclosed <b>bold<div>text</p>")
    values = SelectorResolver(index).resolve_all(["//b"])
    assert values and values[0].startswith("bold")


@pytest.mark.parametrize("char", ["\x0c", "\x00", "\x0b", "\x1b"])
def test_control_characters_keep_the_document(char):
    resolver = SelectorResolver(DocumentIndex(f"<h1>Welcome</h1><p>a{char}b</p>"))

    assert resolver.resolve_first(["//h1"]) == "Welcome"
    assert resolver.resolve_first(["//p"]).startswith("a")


@pytest.mark.parametrize("markup", ["", "   ", b"", "plain text only"])
def test_degenerate_documents(markup):
    resolver = SelectorResolver(DocumentIndex(markup))
    assert resolver.resolve_first(["//h1"]) is None


def test_invalid_selector_is_a_miss(resolver):
    assert resolver.resolve_first(["//*[", "//title"]) == "Site title"
    assert resolver.resolve_all(["//*["]) == []


# -------------------------------------------------------------------
# 5️⃣  Page title inference
# -------------------------------------------------------------------
def test_page_title_prefers_model_title_field(resolver):
    model = ContentModel.model_validate(
        {"content_types": [{"type": "page", "fields": [{"name": "title", "xpaths": ["//title"]}]}]}
    )
    assert infer_page_title(resolver, model) == "Site title"


def test_page_title_falls_back_to_social_then_heading():
    model = ContentModel.model_validate(
        {"content_types": [{"type": "page", "fields": [{"name": "title", "xpaths": ["//missing"]}]}]}
    )
    with_meta = SelectorResolver(DocumentIndex(PAGE))
    assert infer_page_title(with_meta, model) == "Social title"

    heading_only = SelectorResolver(DocumentIndex("<h1> </h1><h1>Heading</h1>"))
    assert infer_page_title(heading_only, ContentModel()) == "Heading"


def test_page_title_none_when_nothing_matches():
    assert infer_page_title(SelectorResolver(DocumentIndex("<p>x</p>")), ContentModel()) is None
