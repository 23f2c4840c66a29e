from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .config import SERIES_MARKER, SITE_ORIGIN
from .errors import NoChaptersFound
from .extract import UNKNOWN_AUTHOR, select, text_or, with_text
from .models import BookMetadata, Series, SeriesEntry

UNKNOWN_SERIES = "Unknown Series"

SERIES_TITLE = [with_text(select("h1.headline"))]
SERIES_AUTHOR = [with_text(select(".y_eU"))]
CHAPTER_LINKS = ".series__works .br_rj"


def is_series_url(url: str) -> bool:
    return SERIES_MARKER in url


def absolute_url(href: str) -> str:
    if href.startswith("http://") or href.startswith("https://"):
        return href
    if href.startswith("//"):
        return "https:" + href
    return urljoin(SITE_ORIGIN + "/", href)


def enumerate_series(doc: BeautifulSoup) -> Series:
    """Read series title, author and the ordered chapter list from a landing page."""
    meta = BookMetadata(
        title=text_or(doc, SERIES_TITLE, UNKNOWN_SERIES),
        author=text_or(doc, SERIES_AUTHOR, UNKNOWN_AUTHOR),
    )

    entries = []
    for link in doc.select(CHAPTER_LINKS):
        href: Optional[str] = link.get("href")
        title = link.get_text().strip()
        if not href or not href.strip():
            raise NoChaptersFound(f"Chapter link {title!r} has no URL")
        entries.append(SeriesEntry(url=absolute_url(href.strip()), title=title))

    if not entries:
        raise NoChaptersFound("No chapters found on series page.")
    return Series(metadata=meta, entries=entries)
