import time
from typing import Callable, Optional, Protocol
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup
from playwright.async_api import async_playwright, Error as PWError

from .cache import VersionedCache
from .config import FetchConfig, NAV_TIMEOUT
from .errors import BlockedError, NetworkError

BLOCK_MARKERS = ("Just a moment", "Cloudflare")


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> BeautifulSoup:
        ...


def parse_document(html: str) -> BeautifulSoup:
    """Parse a page; an anti-bot interstitial raises BlockedError."""
    soup = BeautifulSoup(html or "", "html.parser")
    title = soup.title.get_text() if soup.title else ""
    if any(marker in title for marker in BLOCK_MARKERS):
        raise BlockedError("Blocked by Cloudflare protection. Try a different network.")
    return soup


def with_cache_buster(url: str) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}t={int(time.time() * 1000)}"


def request_url(url: str, config: FetchConfig) -> str:
    target = with_cache_buster(url) if config.cache_bust else url
    if config.proxy_prefix:
        return config.proxy_prefix + quote(target, safe="")
    return target


# --------- httpx ---------
class HttpFetcher:
    def __init__(self, config: Optional[FetchConfig] = None,
                 cache: Optional[VersionedCache] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 status: Callable[[str], None] = print):
        self.config = config or FetchConfig()
        self.cache = cache
        self.status = status
        self.client = httpx.AsyncClient(
            timeout=self.config.timeout,
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpFetcher":
        if self.cache is not None:
            self.cache.activate()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _download(self, url: str) -> str:
        try:
            r = await self.client.get(request_url(url, self.config))
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {e}") from e
        if not r.is_success:
            raise NetworkError(f"HTTP Error: {r.status_code}")
        return r.text

    async def fetch(self, url: str) -> BeautifulSoup:
        if self.cache is None:
            return parse_document(await self._download(url))

        if self.cache.network_first(url):
            try:
                html = await self._download(url)
            except NetworkError:
                cached = self.cache.lookup(url)
                if cached is None:
                    raise
                self.status(f"[cache] network failed, serving cached copy of {url}")
                return parse_document(cached)
        else:
            cached = self.cache.lookup(url)
            if cached is not None:
                return parse_document(cached)
            html = await self._download(url)

        doc = parse_document(html)
        self.cache.store_page(url, html)
        return doc


# --------- playwright ---------
class BrowserFetcher:
    """Renders pages in headless Chromium; slower, but gets past some JS gates."""

    def __init__(self, config: Optional[FetchConfig] = None):
        self.config = config or FetchConfig()
        self._pw = None
        self._browser = None
        self._context = None
        self._page = None

    async def __aenter__(self) -> "BrowserFetcher":
        self._pw = await async_playwright().start()
        self._browser = await self._pw.chromium.launch(
            headless=self.config.headless,
            args=["--disable-blink-features=AutomationControlled"],
        )
        self._context = await self._browser.new_context(
            user_agent=self.config.user_agent,
            locale="en-US",
        )
        self._context.set_default_navigation_timeout(NAV_TIMEOUT)
        self._page = await self._context.new_page()
        return self

    async def __aexit__(self, *exc) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._pw is not None:
            await self._pw.stop()

    async def fetch(self, url: str) -> BeautifulSoup:
        if self._page is None:
            raise RuntimeError("BrowserFetcher must be used as an async context manager")
        try:
            resp = await self._page.goto(request_url(url, self.config), wait_until="domcontentloaded")
        except PWError as e:
            raise NetworkError(f"Network error: {e}") from e
        if resp is not None and resp.status >= 400:
            raise NetworkError(f"HTTP Error: {resp.status}")
        return parse_document(await self._page.content())
