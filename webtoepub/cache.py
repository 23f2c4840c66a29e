"""Page cache scoped to a cache generation.

Entries from any other generation are dropped on ``activate()``. The fetcher
decides per URL whether to go to the network or the cache first.
"""

import hashlib
from pathlib import Path
from typing import Callable, Iterator, MutableMapping, Optional

from .config import CACHE_GENERATION
from .series import is_series_url


class DirectoryStore(MutableMapping):
    """``"<generation>/<name>"`` keys stored as ``root/<generation>/<name>.html``."""

    suffix = ".html"

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        generation, _, name = key.partition("/")
        if not generation or not name or "/" in name:
            raise KeyError(key)
        return self.root / generation / f"{name}{self.suffix}"

    def __getitem__(self, key: str) -> str:
        path = self._path(key)
        if not path.is_file():
            raise KeyError(key)
        return path.read_text(encoding="utf-8")

    def __setitem__(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def __delitem__(self, key: str) -> None:
        path = self._path(key)
        if not path.is_file():
            raise KeyError(key)
        path.unlink()
        try:
            path.parent.rmdir()
        except OSError:
            pass  # generation dir still has entries

    def __iter__(self) -> Iterator[str]:
        if not self.root.is_dir():
            return
        for gen_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
            for f in sorted(gen_dir.glob(f"*{self.suffix}")):
                yield f"{gen_dir.name}/{f.name[:-len(self.suffix)]}"

    def __len__(self) -> int:
        return sum(1 for _ in self)


class VersionedCache:
    def __init__(
        self,
        store: MutableMapping[str, str],
        generation: str = CACHE_GENERATION,
        network_first: Callable[[str], bool] = is_series_url,
        status: Callable[[str], None] = print,
    ):
        self.store = store
        self.status = status
        self.generation = generation
        self.network_first = network_first

    def key(self, url: str) -> str:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
        return f"{self.generation}/{digest}"

    def activate(self) -> int:
        """Delete everything cached under another generation."""
        prefix = f"{self.generation}/"
        stale = [k for k in list(self.store) if not k.startswith(prefix)]
        for k in stale:
            del self.store[k]
        if stale:
            self.status(f"[cache] cleaned up {len(stale)} entries from old generations")
        return len(stale)

    def lookup(self, url: str) -> Optional[str]:
        return self.store.get(self.key(url))

    def store_page(self, url: str, html: str) -> None:
        self.store[self.key(url)] = html
