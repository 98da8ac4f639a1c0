# extraction/fields.py
import json
import math
import re

from core.logger import get_logger
from core.models import NO_PRICE, UNKNOWN_NAME, WishlistRecord
from core.page import PageNode
from core.urls import (
    asin_from_url,
    canonicalize_url,
    ensure_absolute_url,
    normalize_asin,
    product_url_for,
)

logger = get_logger(__name__)

PRODUCT_LINK_SELECTOR = 'a[href*="/dp/"], a[href*="/gp/product/"]'

TITLE_SELECTORS = [
    "h2 a span",
    "h3 a span",
    '[id*="itemName"]',
    ".a-text-normal",
    'a[id*="itemName"]',
    ".a-link-normal",
    "h2",
    "h3",
]

PRICE_SELECTORS = [
    ".a-price .a-offscreen",
    ".a-price-whole",
    '[class*="price"]',
    ".a-color-price",
    "[data-price]",
]

IMAGE_SELECTORS = [
    "img[data-a-dynamic-image]",
    "img[data-src]",
    "img.a-dynamic-image",
    ".a-dynamic-image img",
    "[data-image-latency] img",
    "img[src]",
]

PLACEHOLDER_MARKERS = ("pixel", "placeholder", "data:image")

CURRENCY_SYMBOLS = "$£€¥₹"
PRICE_RE = re.compile(r"([$£€¥₹])?\s?(\d[\d,]*(?:\.\d+)?)")
# Scanning a whole entry's text is noisier, so insist on cents
TEXT_PRICE_RE = re.compile(r"([$£€¥₹])?\s?(\d[\d,]*\.\d{2})")

NAME_FALLBACK_MIN = 50
NAME_FALLBACK_MAX = 200


def _product_link(node: PageNode) -> PageNode | None:
    link = node.select_one(PRODUCT_LINK_SELECTOR)
    if link is None and node.tag == "a":
        return node
    return link


def extract_asin(node: PageNode) -> str:
    """Own attributes, then nearest ASIN-bearing ancestor, then descendants and links."""
    for value in (node.attr("data-asin"), node.attr("data-item-id")):
        asin = normalize_asin(value)
        if asin:
            return asin

    # closest() matches the node itself, so start one level up
    parent = node.parent()
    holder = parent.closest("[data-asin]") if parent is not None else None
    if holder is not None:
        asin = normalize_asin(holder.attr("data-asin"))
        if asin:
            return asin

    child = node.select_one("[data-asin]")
    if child is not None:
        asin = normalize_asin(child.attr("data-asin"))
        if asin:
            return asin

    link = _product_link(node)
    if link is not None:
        return asin_from_url(link.attr("href"))
    return ""


def extract_name(node: PageNode) -> str:
    for sel in TITLE_SELECTORS:
        title_el = node.select_one(sel)
        if title_el is None:
            continue
        text = title_el.text()
        if text:
            return text

    all_text = node.text()
    if len(all_text) > NAME_FALLBACK_MIN:
        return all_text[:NAME_FALLBACK_MAX].strip()
    return ""


def format_price(amount: str, symbol: str = "$") -> str:
    """Drop thousands separators and make sure exactly one currency symbol leads."""
    cleaned = amount.replace(",", "").strip()
    if not cleaned:
        return ""
    if cleaned[0] in CURRENCY_SYMBOLS:
        return cleaned
    return f"{symbol or '$'}{cleaned}"


def _price_from_attr(value: str | None) -> str:
    raw = (value or "").strip()
    if not raw:
        return ""
    symbol = "$"
    if raw[0] in CURRENCY_SYMBOLS:
        symbol, raw = raw[0], raw[1:].strip()
    try:
        number = float(raw.replace(",", ""))
    except ValueError:
        logger.debug("Ignoring non-numeric data-price %r", value)
        return ""
    # Amazon marks unavailable entries with data-price="-Infinity"
    if not math.isfinite(number) or number < 0:
        logger.debug("Ignoring unusable data-price %r", value)
        return ""
    return format_price(raw, symbol)


def _price_from_text(text: str, pattern: re.Pattern) -> str:
    m = pattern.search(text)
    if not m:
        return ""
    symbol, amount = m.groups()
    return format_price(amount, symbol or "$")


def extract_price(node: PageNode) -> str:
    for sel in PRICE_SELECTORS:
        price_el = node.select_one(sel)
        if price_el is None:
            continue
        price = _price_from_attr(price_el.attr("data-price"))
        if price:
            return price
        text = price_el.text()
        if text:
            return _price_from_text(text, PRICE_RE) or text

    price = _price_from_attr(node.attr("data-price"))
    if price:
        return price
    return _price_from_text(node.text(), TEXT_PRICE_RE)


def extract_url(node: PageNode) -> str:
    link = _product_link(node)
    if link is None:
        return ""
    href = link.attr("href")
    if not href or not href.strip():
        return ""
    return canonicalize_url(href)


def _is_placeholder(url: str) -> bool:
    lower = url.lower()
    return any(marker in lower for marker in PLACEHOLDER_MARKERS)


def pick_dynamic_image(raw: str | None) -> str:
    """
    Choose an image from a data-a-dynamic-image mapping of URL -> [width, height].

    The largest area wins when every entry carries numeric dimensions; otherwise
    the last key is taken, as Amazon usually lists sizes in ascending order.
    Malformed JSON yields "".
    """
    if not raw:
        return ""
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Malformed data-a-dynamic-image attribute: %.80s", raw)
        return ""
    if not isinstance(data, dict) or not data:
        return ""

    urls = [u for u in data.keys() if isinstance(u, str) and u.strip()]
    if not urls:
        return ""

    areas: list[float] = []
    for url in urls:
        dims = data[url]
        if (
            isinstance(dims, list)
            and len(dims) >= 2
            and all(isinstance(d, (int, float)) and not isinstance(d, bool) for d in dims[:2])
        ):
            areas.append(dims[0] * dims[1])
        else:
            return urls[-1].strip()

    best = max(range(len(urls)), key=lambda i: (areas[i], i))
    return urls[best].strip()


def extract_image(node: PageNode) -> str:
    for sel in IMAGE_SELECTORS:
        img = node.select_one(sel)
        if img is None:
            continue

        dynamic = pick_dynamic_image(img.attr("data-a-dynamic-image"))
        if dynamic:
            return ensure_absolute_url(dynamic)

        lazy = (img.attr("data-src") or "").strip()
        if lazy:
            return ensure_absolute_url(lazy)

        src = (img.attr("src") or "").strip()
        if src and not _is_placeholder(src):
            return ensure_absolute_url(src)

    any_img = node.select_one("img")
    if any_img is not None:
        src = (any_img.attr("src") or "").strip()
        if src and not _is_placeholder(src):
            return ensure_absolute_url(src)
    return ""


def extract_record(node: PageNode) -> WishlistRecord | None:
    """Build a record from one candidate entry; None when it has no ASIN."""
    asin = extract_asin(node)
    if not asin:
        return None

    record = WishlistRecord(
        asin=asin,
        name=extract_name(node) or UNKNOWN_NAME,
        price=extract_price(node) or NO_PRICE,
        url=extract_url(node) or product_url_for(asin),
        image=extract_image(node),
    )
    logger.debug(
        "Parsed item: asin=%s, name=%.60s, price=%s, url=%s, image=%s",
        record.asin,
        record.name,
        record.price,
        record.url,
        record.image,
    )
    return record
