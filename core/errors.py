# core/errors.py


class ScrapeError(Exception):
    """Terminal outcome of a collection run; the message is shown to the user as-is."""

    default_message = "Failed to scrape wishlist"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class NotAWishlistPage(ScrapeError):
    default_message = "Not on an Amazon wishlist page"


class PrivateOrInaccessible(ScrapeError):
    default_message = "This wishlist is private and cannot be scraped"


class NoItemsFound(ScrapeError):
    default_message = "No wishlist items found. The page structure may have changed."


class CommunicationError(Exception):
    """Fetching or relaying the page failed; not an extraction outcome."""


class ExportError(Exception):
    """An export was requested that cannot be produced."""
