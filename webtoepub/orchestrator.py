import asyncio
import re
from pathlib import Path
from typing import Awaitable, Callable, List, Union

from .config import CHAPTER_DELAY, MAX_PAGES, PAGE_DELAY
from .epub_builder import EpubArchive, assemble_epub
from .extract import extract_metadata
from .fetcher import PageFetcher
from .models import Chapter
from .paginate import ChapterPaginator, strip_query
from .series import enumerate_series, is_series_url

Status = Callable[[str], None]
Sleep = Callable[[float], Awaitable[None]]


def normalize_input_url(raw: str) -> str:
    url = (raw or "").strip()
    if not url:
        raise ValueError("Please enter a URL")
    if not re.match(r"^https?://", url, re.I):
        url = "https://" + url
    return url


async def convert_series(url: str, fetcher: PageFetcher, paginator: ChapterPaginator,
                         status: Status, sleep: Sleep,
                         chapter_delay: float = CHAPTER_DELAY) -> EpubArchive:
    status("[stage] fetching series info…")
    series = enumerate_series(await fetcher.fetch(url))
    meta = series.metadata
    total = len(series.entries)
    status(f"[series] {meta.title!r} by {meta.author!r}: found {total} chapters")

    chapters: List[Chapter] = []
    for i, entry in enumerate(series.entries, start=1):
        if i > 1:
            await sleep(chapter_delay)
        status(f"[chapter] {i}/{total}: {entry.title}")
        content = await paginator.paginate(entry.url, label=f"(Ch {i})")
        chapters.append(Chapter(title=entry.title, content=content))

    status("[epub] building EPUB file…")
    return assemble_epub(meta.title, meta.author, chapters)


async def convert_single(url: str, fetcher: PageFetcher, paginator: ChapterPaginator,
                         status: Status) -> EpubArchive:
    status("[stage] fetching story metadata…")
    start = strip_query(url)
    first = await fetcher.fetch(start)
    meta = extract_metadata(first)
    status(f"[meta] title={meta.title!r} author={meta.author!r}")

    content = await paginator.paginate(start, first_page=first)

    status("[epub] building EPUB file…")
    return assemble_epub(meta.title, meta.author, [Chapter(title=meta.title, content=content)])


async def convert(
    url: str,
    fetcher: PageFetcher,
    status: Status = print,
    sleep: Sleep = asyncio.sleep,
    page_delay: float = PAGE_DELAY,
    chapter_delay: float = CHAPTER_DELAY,
    max_pages: int = MAX_PAGES,
) -> EpubArchive:
    """Scrape a story or a series into an in-memory EPUB.

    Any error aborts the whole run; nothing partial is returned.
    """
    url = normalize_input_url(url)
    paginator = ChapterPaginator(fetcher, page_delay=page_delay, max_pages=max_pages,
                                 status=status, sleep=sleep)
    if is_series_url(url):
        return await convert_series(url, fetcher, paginator, status, sleep, chapter_delay)
    return await convert_single(url, fetcher, paginator, status)


async def convert_to_file(url: str, fetcher: PageFetcher, out_dir: Union[str, Path],
                          status: Status = print, **kwargs) -> Path:
    archive = await convert(url, fetcher, status=status, **kwargs)
    out_path = archive.write(out_dir)
    status(f"[success] EPUB created at: {out_path}")
    return out_path
