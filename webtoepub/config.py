import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# --------- Config ---------
SITE_ORIGIN = "https://www.literotica.com"
SERIES_MARKER = "/series/se/"
DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/138.0.0.0 Safari/537.36"
)
REQUEST_TIMEOUT = 30
NAV_TIMEOUT = 25_000
MAX_PAGES = 50
PAGE_DELAY = 0.3
CHAPTER_DELAY = 0.5
CACHE_GENERATION = "webtoepub-1"
CONFIG_PATH = Path.home() / ".webtoepub.json"
DEFAULT_OUT_DIR = "output"

# keys honoured in the JSON config file
CONFIG_KEYS = ("out_dir", "proxy_prefix", "user_agent", "timeout", "cache_dir")


@dataclass
class FetchConfig:
    user_agent: str = DEFAULT_UA
    timeout: float = REQUEST_TIMEOUT
    # e.g. "https://corsproxy.io/?"; the target URL is appended percent-encoded
    proxy_prefix: Optional[str] = None
    cache_bust: bool = True
    headless: bool = True


def load_config(path: Path = CONFIG_PATH) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f) or {}
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        print(f"[warn] ignoring unreadable config {path}: {e}")
        return {}
    if not isinstance(data, dict):
        print(f"[warn] ignoring config {path}: expected a JSON object")
        return {}
    cfg = {k: v for k, v in data.items() if k in CONFIG_KEYS}
    if "timeout" in cfg:
        try:
            cfg["timeout"] = float(cfg["timeout"])
            if cfg["timeout"] <= 0:
                raise ValueError("must be positive")
        except (TypeError, ValueError):
            print(f"[warn] ignoring timeout {cfg.pop('timeout')!r} in {path}: expected a positive number")
    return cfg


def save_config(path: Path, data: Dict[str, Any]) -> None:
    cfg = {k: v for k, v in data.items() if k in CONFIG_KEYS and v is not None}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)
