# extraction/classifier.py
import re

from core.logger import get_logger
from core.page import PageTree

from .locator import find_item_nodes, has_wishlist_structure

logger = get_logger(__name__)

WISHLIST_URL_RE = re.compile(r"wishlist|/registry/(?:wishlist|list)/", re.IGNORECASE)

PRIVATE_PHRASES = (
    "this list is private",
    "this list is not available",
    "you don't have permission",
    "this list doesn't exist",
    "we're sorry. the web address you entered is not a functioning page",
    "sorry, we couldn't find that list",
)

ALERT_SELECTOR = '[data-action="sign-in"], .a-alert-error'
ALERT_PHRASES = ("view this list", "access this list", "private list")


def _fold(text: str) -> str:
    # Amazon copy mixes straight and typographic apostrophes
    return text.replace("’", "'").lower()


def is_wishlist_page(page: PageTree) -> bool:
    """True if the URL looks like a wishlist, or the page has wishlist anchors or locatable entries."""
    if WISHLIST_URL_RE.search(page.url or ""):
        return True
    root = page.document()
    return has_wishlist_structure(root) or bool(find_item_nodes(root))


def is_private_or_inaccessible(page: PageTree) -> bool:
    """
    Decide whether the list cannot be read.

    Any located item means the list is readable. Without items, a known
    "private/unavailable" phrase counts only when no wishlist structure is
    present, while sign-in or error alerts about list access always count.
    When nothing points either way the page is treated as accessible.
    """
    root = page.document()
    if find_item_nodes(root):
        return False

    body = root.select_one("body") or root
    body_text = _fold(body.text())
    body_markup = _fold(body.markup())
    for phrase in PRIVATE_PHRASES:
        if phrase in body_text or phrase in body_markup:
            if not has_wishlist_structure(root):
                logger.info("Page reports '%s' and has no wishlist structure.", phrase)
                return True
            logger.debug("Found '%s' but wishlist structure is present; may still be loading.", phrase)

    for alert in root.select(ALERT_SELECTOR):
        alert_text = _fold(alert.text())
        if any(p in alert_text for p in ALERT_PHRASES):
            logger.info("Alert on page restricts list access: %s", alert.text()[:120])
            return True

    return False
