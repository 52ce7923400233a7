from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .scripts import COLLECT_LOCATIONS
from ..core.config import (
    MAX_FRAGMENT_LENGTH,
    SANITIZED_ATTRIBUTE_PREFIXES,
    SANITIZED_ATTRIBUTES,
)
from ..core.types import ElementLocation

UNIQUE_ATTRIBUTES = ["id", "data-testid", "data-test-id", "data-qa"]
SKIPPED_TAGS = ["head", "script", "style"]


async def collect_locations(handle, tags: List[str]) -> List[ElementLocation]:
    """Return visible elements of the live page/frame whose tag is in ``tags``."""
    return await handle.evaluate(
        COLLECT_LOCATIONS, {"tags": tags, "maxLength": MAX_FRAGMENT_LENGTH})


def _attr(el: Tag, name: str) -> Optional[str]:
    value = el.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value


def _own_text(el: Tag) -> str:
    return "".join(str(c) for c in el.children if isinstance(c, NavigableString)).strip()


def _has_text_node(el: Tag, text: str) -> bool:
    return any(isinstance(c, NavigableString) and str(c) == text for c in el.children)


def _quotable(value: Optional[str]) -> bool:
    return bool(value) and '"' not in value


def _is_hidden(el: Tag) -> bool:
    node = el
    while isinstance(node, Tag) and node.name != "[document]":
        if node.has_attr("hidden") or _attr(node, "aria-hidden") == "true":
            return True
        style = (_attr(node, "style") or "").replace(" ", "").lower()
        if "display:none" in style or "visibility:hidden" in style:
            return True
        node = node.parent
    return el.name == "input" and (_attr(el, "type") or "").lower() == "hidden"


def positional_xpath(el: Tag) -> str:
    """Ancestor chain like ``//html/body/div[2]/p``; the index is left out for the first same-tag sibling."""
    parts = []
    node = el
    while isinstance(node, Tag) and node.name != "[document]":
        index = len(node.find_previous_siblings(node.name)) + 1
        parts.append(f"{node.name}[{index}]" if index > 1 else node.name)
        node = node.parent
    return "//" + "/".join(reversed(parts))


def locate(soup: BeautifulSoup, el: Tag) -> str:
    """Shortest stable locator for ``el``, falling back to its position in the tree."""
    for name in UNIQUE_ATTRIBUTES:
        value = _attr(el, name)
        if _quotable(value) and len(soup.find_all(attrs={name: value})) == 1:
            return f'//*[@{name}="{value}"]'

    href = _attr(el, "href")
    if el.name == "a" and _quotable(href) and len(soup.find_all("a", href=href)) == 1:
        return f'//a[@href="{href}"]'

    cls = _attr(el, "class")
    text = _own_text(el)
    if _quotable(cls) and _quotable(text):
        matches = [
            t for t in soup.find_all(el.name)
            if _attr(t, "class") == cls and _has_text_node(t, text)
        ]
        if matches == [el]:
            return f'//{el.name}[@class="{cls}" and text()="{text}"]'

    return positional_xpath(el)


def _fragment(soup: BeautifulSoup, el: Tag) -> str:
    clone = soup.new_tag(el.name, attrs=dict(el.attrs))
    text = _own_text(el)
    if text:
        clone.string = text
    return str(clone)


def parse_locations(html: str, tags: List[str]) -> List[ElementLocation]:
    """Same candidate rules as ``collect_locations``, applied to an HTML snapshot."""
    soup = BeautifulSoup(html, "html.parser")
    allowed = {t.lower() for t in tags}
    locations: List[ElementLocation] = []

    for el in soup.find_all(True):
        if el.name not in allowed:
            continue
        if any(p.name in SKIPPED_TAGS for p in el.parents) or _is_hidden(el):
            continue
        fragment = _fragment(soup, el)
        if len(fragment) > MAX_FRAGMENT_LENGTH:
            continue
        locations.append({"xpath": locate(soup, el), "html": fragment})

    return locations


def _keep_attribute(name: str) -> bool:
    return name in SANITIZED_ATTRIBUTES or any(
        name.startswith(prefix) for prefix in SANITIZED_ATTRIBUTE_PREFIXES)


def sanitize(html: str) -> str:
    """Strip a fragment down to the attributes that describe an element."""
    soup = BeautifulSoup(html, "html.parser")
    for el in soup.find_all(SKIPPED_TAGS):
        el.decompose()
    for el in soup.find_all(True):
        el.attrs = {k: v for k, v in el.attrs.items() if _keep_attribute(k)}
    return str(soup)
