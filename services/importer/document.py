# services/importer/document.py
"""
Parse raw markup into a queryable tree and evaluate XPath selectors on it.

BeautifulSoup does the (lenient) parsing; lxml's ``soupparser`` turns the
soup into an lxml tree so selectors can be plain XPath 1.0, including
attribute selectors such as ``//img/@src``.
"""

import re
from typing import Iterable, List, Optional, Sequence, Union

from bs4 import UnicodeDammit
from loguru import logger
from lxml import etree
from lxml import html as lxml_html
from lxml.html import soupparser

from models.content_model import ContentModel

# Tried when the model has no usable ``title`` field
GENERIC_TITLE_SELECTORS = (
    "//meta[@property='og:title']/@content",
    "//h1[normalize-space()]",
)

# Characters an lxml tree cannot hold (XML 1.0 excludes most C0 controls)
XML_UNSAFE_SPACES = re.compile(r"[\x0b\x0c]")
XML_UNSAFE_CHARS = re.compile(r"[\x00-\x08\x0e-\x1f\ufffe\uffff]")


def _xml_safe(markup: Union[str, bytes]) -> str:
    """
    Decode ``markup`` and drop the control characters lxml refuses to store.
    Form feed and vertical tab are whitespace in HTML, so they become spaces.
    """
    if isinstance(markup, bytes):
        markup = UnicodeDammit(markup, is_html=True).unicode_markup or ""
    return XML_UNSAFE_CHARS.sub("", XML_UNSAFE_SPACES.sub(" ", markup))


def _parse(markup: Union[str, bytes]):
    if not markup or not markup.strip():
        return lxml_html.Element("html")
    try:
        return soupparser.fromstring(_xml_safe(markup))
    except Exception as exc:  # pylint: disable=broad-except
        # html.parser almost never rejects input; an empty tree is the fallback
        logger.warning(f"Could not parse markup, continuing with an empty document: {exc}")
        return lxml_html.Element("html")


def _node_value(node) -> Optional[str]:
    """Attribute results keep their raw value, everything else is trimmed text."""
    if isinstance(node, str):
        if getattr(node, "is_attribute", False):
            return str(node)
        return str(node).strip()
    if isinstance(node, etree._Element):
        if hasattr(node, "text_content"):
            return node.text_content().strip()
        return (node.text or "").strip()
    return None


class DocumentIndex:
    """A parsed document.  Malformed markup never raises; it just parses partially."""

    def __init__(self, markup: Union[str, bytes]):
        self.root = _parse(markup)

    def select(self, selector: str) -> List[str]:
        """Values of every node matched by ``selector`` in document order."""
        try:
            result = self.root.xpath(selector)
        except (etree.XPathError, ValueError) as exc:
            logger.warning(f"Invalid selector {selector!r}: {exc}")
            return []

        if isinstance(result, list):
            values = (_node_value(node) for node in result)
            return [value for value in values if value is not None]
        # string()/count() style expressions return a scalar
        if isinstance(result, bool):
            return ["true"] if result else []
        if isinstance(result, float):
            return [str(int(result)) if result.is_integer() else str(result)]
        if isinstance(result, str) and result.strip():
            return [result.strip()]
        return []


class SelectorResolver:
    """
    Ordered selector lists against a ``DocumentIndex``.

    ``resolve_first`` is a fallback chain: the first selector with at least one
    match wins and later selectors are never consulted.  ``resolve_all`` is a
    union: every selector is evaluated and the matches are concatenated in
    selector‑then‑document order.
    """

    def __init__(self, index: DocumentIndex):
        self.index = index

    def resolve_first(self, selectors: Sequence[str]) -> Optional[str]:
        for selector in selectors or ():
            values = self.index.select(selector)
            if values:
                logger.debug(f"Selector {selector!r} matched")
                return values[0]
        return None

    def resolve_all(self, selectors: Sequence[str]) -> List[str]:
        out: List[str] = []
        for selector in selectors or ():
            out.extend(self.index.select(selector))
        return out


def infer_page_title(resolver: SelectorResolver, model: ContentModel) -> Optional[str]:
    """
    Best guess at the page title, used as alt text for media.

    The first ``title`` field (across content types) that has selectors is
    tried; when it is missing or yields nothing, ``GENERIC_TITLE_SELECTORS``
    are tried in order.
    """
    selectors = next(_title_selectors(model), None)
    title = resolver.resolve_first(selectors) if selectors else None
    if not title:
        title = resolver.resolve_first(GENERIC_TITLE_SELECTORS)
    return title or None


def _title_selectors(model: ContentModel) -> Iterable[Sequence[str]]:
    for content_type in model.content_types:
        for field in content_type.fields:
            if field.name == "title" and field.selectors:
                yield field.selectors
