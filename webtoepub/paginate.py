import asyncio
from typing import Awaitable, Callable, Optional
from urllib.parse import urlsplit, urlunsplit

from bs4 import BeautifulSoup

from .config import MAX_PAGES, PAGE_DELAY
from .extract import extract_content, find_next_page
from .fetcher import PageFetcher
from .models import PaginationState

PAGE_SEPARATOR = '<hr class="page-break" style="margin: 2em 0; border-top: 2px dashed #666;" />'


def strip_query(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def page_url(base_url: str, page: int) -> str:
    # page 1 is the bare URL on the site, never ?page=1
    if page == 1:
        return base_url
    return f"{base_url}?page={page}"


def join_fragments(fragments) -> str:
    return PAGE_SEPARATOR.join(fragments)


def advance(state: PaginationState, doc: BeautifulSoup, max_pages: int = MAX_PAGES) -> PaginationState:
    """Fold one fetched page into the walk and decide whether another follows."""
    state.fragments.append(extract_content(doc))
    if find_next_page(doc) is None:
        state.has_next = False
    elif state.page >= max_pages:
        state.has_next = False
        state.capped = True
    else:
        state.page += 1
    return state


class ChapterPaginator:
    def __init__(
        self,
        fetcher: PageFetcher,
        page_delay: float = PAGE_DELAY,
        max_pages: int = MAX_PAGES,
        status: Callable[[str], None] = print,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.page_delay = page_delay
        self.max_pages = max_pages
        self.status = status
        self.sleep = sleep

    async def paginate(self, start_url: str, label: str = "",
                       first_page: Optional[BeautifulSoup] = None) -> str:
        """Fetch every physical page of one chapter and return the joined HTML.

        ``first_page`` is an already fetched copy of page 1; when given, page 1
        is not requested again.
        """
        state = PaginationState(base_url=strip_query(start_url))
        prefix = f"{label} " if label else ""

        while state.has_next:
            if state.page == 1 and first_page is not None:
                doc = first_page
            else:
                self.status(f"[page] {prefix}fetching page {state.page}…")
                doc = await self.fetcher.fetch(page_url(state.base_url, state.page))
            advance(state, doc, self.max_pages)
            if state.has_next:
                await self.sleep(self.page_delay)

        if state.capped:
            self.status(f"[warn] {prefix}stopped at the {self.max_pages}-page limit")
        self.status(f"[page] {prefix}{len(state.fragments)} page(s) assembled")
        return join_fragments(state.fragments)
