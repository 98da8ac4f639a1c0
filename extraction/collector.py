# extraction/collector.py
"""
Incremental collection of wishlist records.

``collect`` alternates extraction passes with a host-supplied "reveal more"
action (scrolling, following a "show more" link, ...) and a settle delay,
until a pass adds nothing new or the reveal ceiling is reached.

Callers must not run two collections against the same page at once; the
page is only read here, but both runs would trigger reveals on it.
"""
import os
import time
from dataclasses import dataclass, field
from typing import Callable

from core.errors import NoItemsFound, NotAWishlistPage, PrivateOrInaccessible
from core.logger import get_logger
from core.models import WishlistRecord
from core.page import PageNode, PageTree

from .classifier import is_private_or_inaccessible, is_wishlist_page
from .fields import extract_record
from .locator import find_item_nodes

logger = get_logger(__name__)

SETTLE_DELAY_MS = int(os.getenv("SETTLE_DELAY_MS", "1500"))
MAX_REVEAL_CYCLES = int(os.getenv("MAX_REVEAL_CYCLES", "10"))


@dataclass
class CollectionRun:
    """State of a single collect() call."""
    records: list[WishlistRecord] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)
    reveals: int = 0
    previous_count: int = 0

    def absorb(self, root: PageNode) -> int:
        """Extract every located entry and keep the ones with unseen ASINs."""
        added = 0
        for node in find_item_nodes(root):
            try:
                record = extract_record(node)
            except Exception as exc:
                logger.debug("Failed to parse item node %r: %s", node, exc)
                continue
            if record is None or record.asin in self.seen:
                continue
            self.seen.add(record.asin)
            self.records.append(record)
            added += 1
        return added


def collect(
    page: PageTree,
    reveal_more: Callable[[], None],
    wait: Callable[[float], None] = time.sleep,
    settle_delay: float = SETTLE_DELAY_MS / 1000,
    max_reveals: int = MAX_REVEAL_CYCLES,
) -> list[WishlistRecord]:
    """
    Collect all records from a wishlist page.

    ``wait`` is called with ``settle_delay`` seconds after every reveal.
    Raises NotAWishlistPage, PrivateOrInaccessible or NoItemsFound.
    """
    if not is_wishlist_page(page):
        raise NotAWishlistPage()
    if is_private_or_inaccessible(page):
        raise PrivateOrInaccessible()

    run = CollectionRun()
    added = run.absorb(page.document())
    logger.debug("Initial pass found %d items on %s.", added, page.url)

    while run.reveals < max_reveals:
        run.previous_count = len(run.records)

        reveal_more()
        wait(settle_delay)

        added = run.absorb(page.document())
        if len(run.records) == run.previous_count:
            logger.debug("No new items after reveal %d; collection is stable.", run.reveals + 1)
            break

        run.reveals += 1
        logger.debug(
            "Reveal %d/%d yielded %d new items (%d total so far).",
            run.reveals,
            max_reveals,
            added,
            len(run.records),
        )

    if not run.records:
        raise NoItemsFound()

    logger.info("Collected %d wishlist items from %s.", len(run.records), page.url)
    return run.records
