# extraction/__init__.py
from .classifier import is_private_or_inaccessible, is_wishlist_page
from .collector import collect
from .fields import extract_record
from .locator import find_item_nodes

__all__ = [
    "collect",
    "extract_record",
    "find_item_nodes",
    "is_private_or_inaccessible",
    "is_wishlist_page",
]
