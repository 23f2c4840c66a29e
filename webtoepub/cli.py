import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .cache import DirectoryStore, VersionedCache
from .config import CONFIG_PATH, DEFAULT_OUT_DIR, DEFAULT_UA, REQUEST_TIMEOUT, FetchConfig, load_config, save_config
from .errors import WebToEpubError
from .fetcher import BrowserFetcher, HttpFetcher
from .orchestrator import convert_to_file, normalize_input_url


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="webtoepub", description="Story / series URL → EPUB (follows multi-page chapters).")
    ap.add_argument("url", help="Story URL, or a series URL containing /series/se/")
    ap.add_argument("--out", default=None, help=f"Output folder (default: {DEFAULT_OUT_DIR}/)")
    ap.add_argument("--browser", action="store_true", help="Fetch pages through headless Chromium instead of plain HTTP")
    ap.add_argument("--no-headless", action="store_true", help="With --browser: show the browser window (debug)")
    ap.add_argument("--proxy-prefix", default=None, help="Prefix for every request, e.g. https://corsproxy.io/?")
    ap.add_argument("--no-cache-bust", action="store_true", help="Do not append a t=<timestamp> parameter to requests")
    ap.add_argument("--timeout", type=float, default=None, help=f"Request timeout in seconds (default: {REQUEST_TIMEOUT})")
    ap.add_argument("--cache-dir", default=None, help="Keep fetched pages in this folder between runs (HTTP mode only)")
    ap.add_argument("--config", default=str(CONFIG_PATH), help=f"JSON config file (default: {CONFIG_PATH})")
    ap.add_argument("--save-config", action="store_true", help="Write the effective settings back to the config file")
    return ap


async def amain(args: argparse.Namespace) -> Path:
    config_path = Path(args.config).expanduser()
    cfg = load_config(config_path)

    out_dir = args.out or cfg.get("out_dir") or DEFAULT_OUT_DIR
    proxy_prefix = args.proxy_prefix or cfg.get("proxy_prefix") or None
    timeout = args.timeout or cfg.get("timeout") or REQUEST_TIMEOUT
    cache_dir = args.cache_dir or cfg.get("cache_dir") or None
    user_agent = cfg.get("user_agent") or DEFAULT_UA

    if args.save_config:
        save_config(config_path, {
            "out_dir": out_dir, "proxy_prefix": proxy_prefix, "user_agent": user_agent,
            "timeout": timeout, "cache_dir": cache_dir,
        })
        print(f"[config] saved {config_path}")

    fetch_cfg = FetchConfig(
        user_agent=user_agent,
        timeout=float(timeout),
        proxy_prefix=proxy_prefix,
        cache_bust=not args.no_cache_bust,
        headless=not args.no_headless,
    )

    if args.browser:
        if cache_dir:
            print("[warn] --cache-dir is ignored with --browser")
        async with BrowserFetcher(fetch_cfg) as fetcher:
            return await convert_to_file(args.url, fetcher, out_dir)

    cache = VersionedCache(DirectoryStore(Path(cache_dir).expanduser())) if cache_dir else None
    async with HttpFetcher(fetch_cfg, cache=cache) as fetcher:
        return await convert_to_file(args.url, fetcher, out_dir)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.url = normalize_input_url(args.url)
    except ValueError as e:
        print(f"[error] {e}")
        return 2
    try:
        asyncio.run(amain(args))
    except WebToEpubError as e:
        print(f"[error] {e}")
        return 1
    return 0


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n[warn] aborted by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
