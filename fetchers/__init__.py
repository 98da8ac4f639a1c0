# fetchers/__init__.py
from . import amazon

FETCHERS = {
    "amazon": amazon.open_wishlist,
}
