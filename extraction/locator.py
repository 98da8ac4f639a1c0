# extraction/locator.py
from core.logger import get_logger
from core.page import PageNode

logger = get_logger(__name__)

# Ordered most to least specific. Results are never merged: the first
# strategy that matches anything decides the item set.
ITEM_STRATEGIES: list[tuple[str, str]] = [
    ("g-items container", "#g-items li[data-item-id], #g-items [data-item-id]"),
    ("item-named container", '[id*="item"] [data-item-id], [id*="item"] [data-asin]'),
    (
        "list/grid items",
        ".a-unordered-list.a-nostyle.a-vertical li, li.g-item-sortable, "
        "div.g-item-sortable, li.awl-item-wrapper",
    ),
    ("any product node", '[data-asin]:not([data-asin=""])'),
]

# Markers of a wishlist layout, present even while the item list is still empty
WISHLIST_ANCHORS = "#g-items, [data-wishlist], .a-unordered-list.a-nostyle.a-vertical"


def find_item_nodes(root: PageNode) -> list[PageNode]:
    """Return candidate wishlist entries in document order (possibly empty)."""
    for label, selector in ITEM_STRATEGIES:
        nodes = root.select(selector)
        if nodes:
            logger.debug("Item locator: strategy '%s' matched %d nodes.", label, len(nodes))
            return nodes
    logger.debug("Item locator: no strategy matched.")
    return []


def has_wishlist_structure(root: PageNode) -> bool:
    return root.select_one(WISHLIST_ANCHORS) is not None
