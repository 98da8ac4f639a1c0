# core/models.py
from dataclasses import dataclass

UNKNOWN_NAME = "Unknown Item"
NO_PRICE = "N/A"


@dataclass
class WishlistRecord:
    """
    One product entry scraped from a wishlist page.
    The price is kept as the display string shown on the page, not a number.
    """
    asin: str
    name: str = UNKNOWN_NAME
    price: str = NO_PRICE
    url: str = ""
    image: str = ""

    def to_dict(self) -> dict[str, str]:
        # Key order is the export column order
        return {
            "name": self.name,
            "asin": self.asin,
            "price": self.price,
            "url": self.url,
            "image": self.image,
        }
