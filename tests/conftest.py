"""Shared fixtures: canned story pages and an in-memory fetcher."""

from typing import Dict, List

import pytest

from webtoepub.errors import NetworkError
from webtoepub.fetcher import parse_document

NEXT_LINK = '<a class="l_bJ" href="?page=2" title="Next Page">Next</a>'


def story_page(body: str, has_next: bool = False, title: str = "A Story",
               author: str = "someone") -> str:
    return f"""<html><head><title>{title} - Literotica.com</title></head>
<body>
  <h1 class="headline">{title}</h1>
  <a class="y_eU" href="/authors/{author}">{author}</a>
  <div class="panel"><div class="aa_ht">{body}</div></div>
  <div class="l_bH">{NEXT_LINK if has_next else ''}</div>
</body></html>"""


def series_page(links: List[str], title: str = "A Series", author: str = "someone") -> str:
    items = "".join(f"<li>{link}</li>" for link in links)
    return f"""<html><head><title>{title}</title></head>
<body>
  <h1 class="headline">{title}</h1>
  <a class="y_eU" href="/authors/{author}">{author}</a>
  <ul class="series__works">{items}</ul>
</body></html>"""


BLOCKED_PAGE = "<html><head><title>Just a moment...</title></head><body>checking</body></html>"


class FakeFetcher:
    """Serves canned HTML by exact URL and records every request."""

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.calls: List[str] = []

    async def fetch(self, url: str):
        self.calls.append(url)
        if url not in self.pages:
            raise NetworkError("HTTP Error: 404")
        return parse_document(self.pages[url])


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def messages():
    return []
