"""Selector chains for story pages and the "next page" control."""

from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .errors import ContentNotFound
from .models import BookMetadata

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"

# newer React markup first, then the two legacy layouts
TITLE_SELECTORS = ["h1._title_2d1pc_26", "h1.headline", "h1"]
AUTHOR_SELECTORS = ["._author__title_2mplv_48", ".y_eU", ".b-story-user-y"]
CONTENT_SELECTORS = ["._article__content_14oe9_81 > div:first-child", ".b-story-body-x", ".aa_ht"]

Strategy = Callable[[BeautifulSoup], Optional[Tag]]


def _inner_html_entities(text: str) -> str:
    # same escaping as a browser's innerHTML: &, <, > and U+00A0 as &nbsp;
    return EntitySubstitution.substitute_xml(text).replace("\xa0", "&nbsp;")


INNER_HTML = HTMLFormatter(entity_substitution=_inner_html_entities)


def select(sel: str) -> Strategy:
    def _run(doc: BeautifulSoup) -> Optional[Tag]:
        return doc.select_one(sel)
    _run.__name__ = f"select({sel!r})"
    return _run


def with_text(strategy: Strategy) -> Strategy:
    """Only accept a match that carries visible text."""
    def _run(doc: BeautifulSoup) -> Optional[Tag]:
        node = strategy(doc)
        if node is not None and node.get_text(strip=True):
            return node
        return None
    _run.__name__ = f"with_text({strategy.__name__})"
    return _run


def first_match(doc: BeautifulSoup, strategies: List[Strategy]) -> Optional[Tag]:
    for strategy in strategies:
        node = strategy(doc)
        if node is not None:
            return node
    return None


TITLE_STRATEGIES = [with_text(select(s)) for s in TITLE_SELECTORS]
AUTHOR_STRATEGIES = [with_text(select(s)) for s in AUTHOR_SELECTORS]
CONTENT_STRATEGIES = [select(s) for s in CONTENT_SELECTORS]


def text_or(doc: BeautifulSoup, strategies: List[Strategy], default: str) -> str:
    node = first_match(doc, strategies)
    if node is None:
        return default
    return node.get_text().strip()


# --------- Metadata ---------
def extract_metadata(doc: BeautifulSoup) -> BookMetadata:
    return BookMetadata(
        title=text_or(doc, TITLE_STRATEGIES, UNKNOWN_TITLE),
        author=text_or(doc, AUTHOR_STRATEGIES, UNKNOWN_AUTHOR),
    )


# --------- Content ---------
def extract_content(doc: BeautifulSoup) -> str:
    """Inner markup of the story body. Raises ContentNotFound if no container matches."""
    node = first_match(doc, CONTENT_STRATEGIES)
    if node is None:
        raise ContentNotFound(
            "Could not locate story text. The page structure might be unknown or blocked."
        )
    return node.decode_contents(formatter=INNER_HTML)


# --------- Next page ---------
def _class_string(a: Tag) -> str:
    cls = a.get("class") or []
    if isinstance(cls, str):
        return cls.lower()
    return " ".join(cls).lower()


def is_next_link(a: Tag) -> bool:
    text = a.get_text().strip().lower()
    cls = _class_string(a)
    title = (a.get("title") or "").lower()
    return (
        text == "next"
        or "next »" in text
        or text == "»"
        or "pager-next" in cls
        or "b-pager-next" in cls
        or "next page" in title
    )


def find_next_page(doc: BeautifulSoup) -> Optional[Tag]:
    """First anchor in document order that looks like a "next page" control."""
    for a in doc.find_all("a"):
        if is_next_link(a):
            return a
    return None
