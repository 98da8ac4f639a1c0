import datetime
import logging
import os
import re
from pathlib import Path
from urllib.parse import urlsplit

import pytz
import requests
from bs4 import BeautifulSoup
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from core.errors import CommunicationError, NotAWishlistPage
from core.export import safe_name
from core.logger import get_logger
from core.page import HtmlPage
from core.urls import BASE_URL, ensure_absolute_url

logger = get_logger(__name__)

DEBUG_DIR = Path(os.getenv("DEBUG_DIR", "debug_dumps"))

# First attempt plus retries for every page fetch
AMAZON_FETCH_ATTEMPTS = int(os.getenv("AMAZON_FETCH_ATTEMPTS", "4"))
AMAZON_FETCH_BACKOFF = float(os.getenv("AMAZON_FETCH_BACKOFF", "0.2"))
AMAZON_TIMEOUT = int(os.getenv("AMAZON_TIMEOUT", "30"))

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/14.0 "
        "Mobile/15A372 Safari/604.1"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Referer": "https://www.amazon.com/",
}

SHOW_MORE_SELECTOR = "form.scroll-state input.showMoreUrl"


class AmazonError(Exception):
    """A single Amazon page fetch failed (bad status or robot check)."""


def _dump_html(wishlist_name: str | None, page_index: int, html: str) -> None:
    """Write HTML to a timestamped file when DEBUG logging is enabled."""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    timestamp = datetime.datetime.now(tz=pytz.UTC).strftime("%Y%m%d_%H%M%S")
    safe = safe_name(wishlist_name or "unknown")
    path = DEBUG_DIR / f"amazon_{safe}_page{page_index}_{timestamp}.html"
    try:
        DEBUG_DIR.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        logger.debug("Dumped Amazon HTML to %s", path)
    except OSError as exc:
        logger.debug("Failed to dump Amazon HTML to %s: %s", path, exc)


def is_amazon_url(url: str) -> bool:
    host = urlsplit(url).netloc.lower()
    return host == "amazon.com" or "amazon." in host


def normalize_wishlist_url(url: str) -> str:
    """
    Normalize various Amazon wishlist URLs to the mobile wishlist URL format.

    Examples of accepted inputs:
      - https://www.amazon.com/hz/wishlist/ls/XXXXXXXXXXXX
      - https://www.amazon.com/gp/registry/wishlist/XXXXXXXXXXXX
      - https://www.amazon.com/gp/registry/list/XXXXXXXXXXXX
    Anything else is returned unchanged.
    """
    m = re.search(r"/hz/wishlist/ls/([A-Za-z0-9]+)/?", url)
    if not m:
        m = re.search(r"/gp/registry/(?:wishlist|list)/([A-Za-z0-9]+)/?", url)
    if m:
        return wishlist_url_for(m.group(1))
    return url


def wishlist_url_for(list_id: str) -> str:
    return f"{BASE_URL}/gp/aw/ls?lid={list_id}&ty=wishlist"


def looks_like_captcha_or_block(html: str) -> bool:
    """Heuristically detect Robot Check / CAPTCHA / blocked pages on mobile."""
    lower = html.lower()
    markers = (
        "robot check",
        "enter the characters you see below",
        "/errors/validatecaptcha",
        "to discuss automated access to amazon data",
        "type the characters you see in this image",
    )
    return any(m in lower for m in markers)


def fetch_backoff():
    """Exponential delay between page fetch attempts, capped at 5s, plus up to one base step of jitter."""
    return wait_exponential(multiplier=AMAZON_FETCH_BACKOFF, max=5) + wait_random(0, AMAZON_FETCH_BACKOFF)


@retry(
    retry=retry_if_exception_type((requests.RequestException, AmazonError)),
    wait=fetch_backoff(),
    stop=stop_after_attempt(AMAZON_FETCH_ATTEMPTS),
)
def fetch_page_raw(session: requests.Session, url: str) -> str:
    """Fetch a single Amazon wishlist page, retrying transient failures."""
    logger.debug("Fetching Amazon page: %s", url)
    resp = session.get(url, headers=HEADERS, timeout=AMAZON_TIMEOUT)
    status = resp.status_code

    if status == 503:
        logger.warning(
            "Amazon returned 503 at %s (possible CAPTCHA or rate limiting).",
            url,
        )
        raise AmazonError("503 Service Unavailable")

    if status != 200:
        logger.warning("Amazon returned status %s at %s.", status, url)
        raise AmazonError(f"Bad status code {status}")

    html = resp.text
    if looks_like_captcha_or_block(html):
        logger.warning("Amazon served a robot check page at %s.", url)
        raise AmazonError("Robot check page")
    return html


def fetch_page(session: requests.Session, url: str) -> str:
    try:
        return fetch_page_raw(session, url)
    except RetryError as e:
        cause = e.last_attempt.exception()
        logger.error(
            "Failed to fetch Amazon page %s after %d attempts: %s",
            url,
            AMAZON_FETCH_ATTEMPTS,
            cause,
        )
        raise CommunicationError(f"Failed to communicate with Amazon: {cause}") from e


def show_more_url(html: str) -> str | None:
    """Return the next-chunk URL from the mobile wishlist's hidden form, if any."""
    soup = BeautifulSoup(html, "html.parser")
    token_input = soup.select_one(SHOW_MORE_SELECTOR)
    token_val = token_input.get("value") if token_input is not None else None
    if isinstance(token_val, str) and token_val.strip():
        return ensure_absolute_url(token_val)
    return None


class AmazonWishlistPage(HtmlPage):
    """
    A fetched wishlist that grows as more of it is revealed.

    reveal_more() plays the part of scrolling in a browser: it follows the
    "show more" token of the most recently loaded chunk and appends the next
    chunk's entries to the document.
    """

    def __init__(
        self,
        session: requests.Session,
        url: str,
        html: str,
        wishlist_name: str | None = None,
    ):
        super().__init__(html, url=url)
        self.session = session
        self.wishlist_name = wishlist_name
        self.chunks_loaded = 1
        self._next_url = show_more_url(html)
        _dump_html(wishlist_name, 0, html)

    @property
    def exhausted(self) -> bool:
        return self._next_url is None

    def reveal_more(self) -> None:
        if self._next_url is None:
            logger.debug(
                "No further chunks for Amazon wishlist '%s'.",
                self.wishlist_name or self.url,
            )
            return

        next_url = self._next_url
        try:
            html = fetch_page(self.session, next_url)
        except CommunicationError as exc:
            # Keep what was collected so far; revealing stops here
            logger.error(
                "Stopped loading Amazon wishlist '%s' at %s: %s",
                self.wishlist_name or self.url,
                next_url,
                exc,
            )
            self._next_url = None
            return

        _dump_html(self.wishlist_name, self.chunks_loaded, html)
        self._next_url = show_more_url(html)
        self.append_html(html)
        self.chunks_loaded += 1
        logger.debug(
            "Loaded chunk %d of Amazon wishlist '%s' from %s.",
            self.chunks_loaded,
            self.wishlist_name or self.url,
            next_url,
        )


def open_wishlist(
    identifier: str,
    wishlist_name: str | None = None,
    session: requests.Session | None = None,
) -> AmazonWishlistPage:
    """
    Fetch the first chunk of an Amazon wishlist.

    identifier may be:
      - a full URL like https://www.amazon.com/hz/wishlist/ls/XYZ
      - a bare wishlist ID like XYZ
    """
    identifier = identifier.strip()
    if identifier.startswith("http://") or identifier.startswith("https://"):
        if not is_amazon_url(identifier):
            raise NotAWishlistPage("Please navigate to an Amazon wishlist page")
        first_url = normalize_wishlist_url(identifier)
    else:
        # Assume bare wishlist ID
        first_url = wishlist_url_for(identifier)

    logger.info("Opening Amazon wishlist '%s' at %s", wishlist_name or identifier, first_url)

    session = session or requests.Session()
    html = fetch_page(session, first_url)
    return AmazonWishlistPage(session, first_url, html, wishlist_name)
