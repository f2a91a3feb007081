"""
DOM helpers: parsing, visible text, and labeled-value lookup.
"""

import copy
import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, ProcessingInstruction

from .field_keywords import get_keywords, is_label

INVISIBLE_TAGS = ("script", "style", "noscript", "template")
LABEL_TAGS = ["dt", "th", "label", "strong", "span", "b"]
VALUE_TAGS = ["dd", "td", "span", "div"]
ITEM_TAGS = ["li", "div", "p", "tr"]
MAX_ITEM_LENGTH = 120

_WHITESPACE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    """Parse page HTML with the lxml parser."""
    return BeautifulSoup(html or "", "lxml")


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and strip."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def node_text(node) -> str:
    """Whitespace-normalized text of a single element (empty for None)."""
    if node is None:
        return ""
    return clean_text(node.get_text(" "))


def visible_text(node, exclude_selectors: Iterable[str] = ()) -> str:
    """
    Rendered-looking text of a node.

    Skips script/style content, HTML comments and anything under an element
    matching one of exclude_selectors (e.g. the comment thread).
    """
    if node is None:
        return ""

    excluded = set()
    for selector in exclude_selectors:
        if not selector:
            continue
        for element in node.select(selector):
            excluded.add(id(element))

    parts = []
    for string in node.find_all(string=True):
        if isinstance(string, (Comment, Declaration, Doctype, ProcessingInstruction)):
            continue
        parent = string.parent
        if parent is not None and parent.name in INVISIBLE_TAGS:
            continue
        if excluded and any(id(p) in excluded for p in string.parents):
            continue
        parts.append(string)

    return clean_text(" ".join(parts))


def select_first(node, selectors: Iterable[str]):
    """First element matched by any selector, tried in order."""
    if node is None:
        return None
    for selector in selectors:
        if not selector:
            continue
        found = node.select_one(selector)
        if found is not None:
            return found
    return None


def select_all(node, selectors: Iterable[str]) -> List:
    """Every element matched by the selectors, in selector order, without duplicates."""
    if node is None:
        return []
    seen = set()
    results = []
    for selector in selectors:
        if not selector:
            continue
        for element in node.select(selector):
            if id(element) not in seen:
                seen.add(id(element))
                results.append(element)
    return results


def _label_prefix_regex(field_name: str):
    keywords = sorted(get_keywords(field_name), key=len, reverse=True)
    if not keywords:
        return None
    alternatives = "|".join(re.escape(kw) for kw in keywords)
    return re.compile(r"^(?:" + alternatives + r")(?![A-Za-z0-9])\s*[:#]\s*(.+)$", re.IGNORECASE)


def labeled_value(node, field_name: str) -> Optional[str]:
    """
    Find the value shown next to a field label.

    Handles label/value pairs (<dt>Mileage</dt><dd>8,456</dd>, table cells,
    adjacent spans) and single items that start with the label
    (<li>Mileage: 8,456</li>).

    Returns:
        The value text, or None if no labeled region exists
    """
    if node is None:
        return None

    for label in node.find_all(LABEL_TAGS):
        if not is_label(node_text(label), field_name):
            continue
        value = label.find_next_sibling(VALUE_TAGS)
        text = node_text(value)
        if text:
            return text

    prefix = _label_prefix_regex(field_name)
    if prefix is None:
        return None

    for item in node.find_all(ITEM_TAGS):
        text = node_text(item)
        if not text or len(text) > MAX_ITEM_LENGTH:
            continue
        match = prefix.match(text)
        if match:
            return match.group(1).strip()

    return None


def without_selectors(soup: BeautifulSoup, selectors: Iterable[str]) -> BeautifulSoup:
    """Copy of the document with every element matched by selectors removed."""
    pruned = copy.copy(soup)
    for element in select_all(pruned, selectors):
        # Nested matches go with their container
        if not element.decomposed:
            element.decompose()
    return pruned


def item_texts(node, selectors: Iterable[str]) -> List[str]:
    """Texts of the <li> items inside the elements matched by selectors."""
    texts = []
    for container in select_all(node, selectors):
        items = container.find_all("li") or [container]
        for item in items:
            text = node_text(item)
            if text:
                texts.append(text)
    return texts
