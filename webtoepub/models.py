from dataclasses import dataclass, field
from typing import List


# --------- Data ---------
@dataclass(frozen=True)
class Chapter:
    title: str
    content: str


@dataclass(frozen=True)
class SeriesEntry:
    url: str
    title: str


@dataclass(frozen=True)
class BookMetadata:
    title: str
    author: str


@dataclass
class Series:
    metadata: BookMetadata
    entries: List[SeriesEntry] = field(default_factory=list)


@dataclass
class PaginationState:
    """Where a chapter walk stands after the last fetched page."""
    base_url: str
    page: int = 1
    fragments: List[str] = field(default_factory=list)
    has_next: bool = True
    capped: bool = False
