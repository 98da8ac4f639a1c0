import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from core.errors import CommunicationError, ExportError, ScrapeError
from core.export import OUTPUT_DIR, safe_name, write_export
from core.logger import get_logger
from core.models import WishlistRecord
from core.page import PageTree
from extraction import collect
from fetchers import FETCHERS

logger = get_logger(__name__)

CONFIG_PATH = os.getenv("CONFIG_PATH", "config.json")
EXPORT_FORMATS = [
    f.strip().lower() for f in os.getenv("EXPORT_FORMATS", "csv,json").split(",") if f.strip()
]

SCRAPE_ACTION = "scrapeWishlist"


def scrape(
    page: PageTree,
    reveal_more: Optional[Callable[[], None]] = None,
    wait: Optional[Callable[[float], None]] = None,
) -> Dict[str, Any]:
    """Run one collection and wrap the outcome in a success/error envelope."""
    reveal = reveal_more or page.reveal_more
    kwargs = {"wait": wait} if wait is not None else {}
    try:
        records = collect(page, reveal, **kwargs)
    except ScrapeError as e:
        logger.warning("Scrape of %s failed: %s", page.url, e)
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("Unexpected error scraping %s: %s", page.url, e)
        return {"success": False, "error": str(e) or "Unknown error occurred"}

    return {"success": True, "items": [r.to_dict() for r in records]}


def handle_request(message: Any, page: PageTree, **kwargs) -> Optional[Dict[str, Any]]:
    """Answer a {"action": "scrapeWishlist"} request; other messages get None."""
    if not isinstance(message, dict) or message.get("action") != SCRAPE_ACTION:
        return None
    return scrape(page, **kwargs)


def scrape_wishlist(
    identifier: str,
    name: Optional[str] = None,
    platform: str = "amazon",
    **kwargs,
) -> Dict[str, Any]:
    opener = FETCHERS.get(platform)
    if not opener:
        return {"success": False, "error": f"No fetcher registered for platform '{platform}'"}

    try:
        page = opener(identifier, name)
    except (ScrapeError, CommunicationError) as e:
        logger.error("Could not open wishlist '%s': %s", name or identifier, e)
        return {"success": False, "error": str(e)}

    return scrape(page, **kwargs)


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    if not os.path.exists(path):
        logger.error("Config file not found at %s", path)
        raise SystemExit(1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg: Dict[str, Any] = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to load config.json at %s: %s", path, e)
        raise SystemExit(1)

    if not isinstance(cfg, dict) or "wishlists" not in cfg:
        logger.error("config.json must be an object with a 'wishlists' key.")
        raise SystemExit(1)

    if not isinstance(cfg["wishlists"], list) or not cfg["wishlists"]:
        logger.error("config.json 'wishlists' must be a non-empty list.")
        raise SystemExit(1)

    return cfg


def get_formats_for_wishlist(wl: Dict[str, Any]) -> List[str]:
    wl_formats = wl.get("formats")
    if isinstance(wl_formats, list):
        cleaned = [f.strip().lower() for f in wl_formats if isinstance(f, str) and f.strip()]
        if cleaned:
            return cleaned
    return EXPORT_FORMATS


def process_wishlist(wl: Dict[str, Any], out_dir: str | Path = OUTPUT_DIR, **kwargs) -> Optional[List[Path]]:
    """Scrape one configured wishlist and export it; returns written paths or None on failure."""
    platform = str(wl.get("platform", "amazon")).strip().lower()
    identifier = str(wl.get("identifier", "")).strip()
    name = str(wl.get("name", "")).strip() or identifier
    enabled = wl.get("enabled", True)

    if not identifier:
        logger.error("Invalid wishlist entry (missing identifier): %s", wl)
        return None

    if not enabled:
        logger.info("Wishlist '%s' is disabled; skipping.", name)
        return []

    logger.info("Processing wishlist: name=%s, identifier=%s", name, identifier)

    response = scrape_wishlist(identifier, name, platform, **kwargs)
    if not response["success"]:
        logger.error("Scrape failed for wishlist '%s': %s", name, response["error"])
        return None

    records = [WishlistRecord(**item) for item in response["items"]]
    target_dir = Path(out_dir) / safe_name(name)

    paths: List[Path] = []
    for fmt in get_formats_for_wishlist(wl):
        try:
            paths.append(write_export(records, fmt, target_dir))
        except ExportError as e:
            logger.error("Export of wishlist '%s' as %s failed: %s", name, fmt, e)
    return paths


def run_once(argv: Optional[List[str]] = None) -> int:
    """Scrape the wishlists given on the command line, or those in the config file."""
    argv = list(argv or [])
    if argv:
        wishlists: List[Any] = [{"name": arg, "identifier": arg} for arg in argv]
    else:
        wishlists = load_config().get("wishlists", [])

    failures = 0
    for wl in wishlists:
        if not isinstance(wl, dict):
            logger.error("Invalid wishlist entry: %s", wl)
            failures += 1
            continue
        try:
            if process_wishlist(wl) is None:
                failures += 1
        except Exception as e:
            logger.exception("Unhandled error processing wishlist %s: %s", wl.get("name"), e)
            failures += 1

    return 1 if failures else 0


def main() -> None:
    try:
        raise SystemExit(run_once(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:
        logger.exception("Fatal scraper error: %s", e)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
