# core/urls.py
import re
from urllib.parse import urlsplit

BASE_URL = "https://www.amazon.com"

ASIN_RE = re.compile(r"^[A-Z0-9]{10}$", re.IGNORECASE)
PRODUCT_PATH_RE = re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})(?:[/?#]|$)", re.IGNORECASE)
ASIN_PARAM_RE = re.compile(r"[?&]asin=([A-Z0-9]{10})(?:[&#]|$)", re.IGNORECASE)


def normalize_asin(value: str | None) -> str:
    """Return the upper-cased ASIN, or "" if value is not a 10-character code."""
    if not value:
        return ""
    value = value.strip()
    if not ASIN_RE.match(value):
        return ""
    return value.upper()


def asin_from_url(url: str | None) -> str:
    """Pull an ASIN out of a /dp/ or /gp/product/ link (or an asin= parameter)."""
    if not url:
        return ""
    m = PRODUCT_PATH_RE.search(url)
    if not m:
        m = ASIN_PARAM_RE.search(url)
    return m.group(1).upper() if m else ""


def ensure_absolute_url(url: str | None) -> str:
    """Rewrite scheme-relative and root-relative URLs against the site origin."""
    if not url:
        return ""
    url = url.strip()
    if url.startswith("//"):
        return "https:" + url
    parsed = urlsplit(url)
    if parsed.scheme and parsed.netloc:
        return url
    # treat as path on BASE_URL
    if not url.startswith("/"):
        url = "/" + url
    return f"{BASE_URL}{url}"


def canonicalize_url(url: str | None) -> str:
    """Absolute origin + path; query string and fragment are dropped."""
    absolute = ensure_absolute_url(url)
    if not absolute:
        return ""
    parts = urlsplit(absolute)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


def product_url_for(asin: str) -> str:
    return f"{BASE_URL}/dp/{asin}"
