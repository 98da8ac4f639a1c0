import pytest

from core.errors import NoItemsFound, NotAWishlistPage, PrivateOrInaccessible
from core.page import HtmlPage
from extraction import collector
from extraction.collector import CollectionRun, collect

from html_fixtures import (
    WISHLIST_URL,
    EndlessPage,
    GrowingPage,
    desktop_item,
    desktop_page,
)


class FakeClock:
    def __init__(self):
        self.waits = []

    def __call__(self, seconds):
        self.waits.append(seconds)


def _three_items():
    return (
        desktop_item("B000000001", "First", "$1.00")
        + desktop_item("B000000002", "Second", "$2.00")
        + desktop_item("B000000003", "Third", "$3.00")
    )


def test_stable_page_returns_items_in_order_after_one_reveal():
    page = GrowingPage(desktop_page(_three_items()), chunks=[])
    clock = FakeClock()

    records = collect(page, page.reveal_more, wait=clock, settle_delay=1.5)

    assert [r.asin for r in records] == ["B000000001", "B000000002", "B000000003"]
    assert [r.name for r in records] == ["First", "Second", "Third"]
    assert [r.price for r in records] == ["$1.00", "$2.00", "$3.00"]
    assert page.reveals == 1
    assert clock.waits == [1.5]


def test_growing_page_collects_until_stable():
    chunks = [
        '<ul id="g-items">' + desktop_item("B000000004", "Fourth") + desktop_item("B000000005", "Fifth") + "</ul>",
        '<ul id="g-items">' + desktop_item("B000000006", "Sixth") + "</ul>",
    ]
    page = GrowingPage(desktop_page(_three_items()), chunks=chunks)

    records = collect(page, page.reveal_more, wait=FakeClock())

    assert [r.asin for r in records] == [f"B00000000{i}" for i in range(1, 7)]
    # two growing reveals plus the one that found nothing new
    assert page.reveals == 3


def test_repeated_entries_are_not_duplicated():
    chunks = ['<ul id="g-items">' + desktop_item("B000000001", "First again") + "</ul>"]
    page = GrowingPage(desktop_page(_three_items()), chunks=chunks)

    records = collect(page, page.reveal_more, wait=FakeClock())

    asins = [r.asin for r in records]
    assert len(asins) == len(set(asins)) == 3
    assert records[0].name == "First"


def test_endless_page_stops_at_reveal_ceiling():
    page = EndlessPage()
    clock = FakeClock()

    records = collect(page, page.reveal_more, wait=clock, settle_delay=0, max_reveals=10)

    assert page.reveals == 10
    assert len(clock.waits) == 10
    assert len(records) == 11


def test_default_ceiling_is_ten():
    assert collector.MAX_REVEAL_CYCLES == 10
    assert collector.SETTLE_DELAY_MS == 1500
    page = EndlessPage()
    collect(page, page.reveal_more, wait=FakeClock())
    assert page.reveals == 10


def test_not_a_wishlist_fails_before_revealing():
    page = GrowingPage("<html><body><p>Cart</p></body></html>", chunks=[], url="https://www.amazon.com/gp/cart")
    clock = FakeClock()

    with pytest.raises(NotAWishlistPage, match="Not on an Amazon wishlist page"):
        collect(page, page.reveal_more, wait=clock)

    assert page.reveals == 0
    assert clock.waits == []


def test_private_list_fails():
    page = GrowingPage("<html><body><h4>This list is private</h4></body></html>", chunks=[])

    with pytest.raises(PrivateOrInaccessible, match="private"):
        collect(page, page.reveal_more, wait=FakeClock())

    assert page.reveals == 0


def test_entries_without_identifiers_give_no_items_found():
    items = "".join(
        f'<li data-item-id="I3NOTANASIN{i}"><span>Mystery entry {i}</span></li>' for i in range(3)
    )
    page = GrowingPage(desktop_page(items), chunks=[])

    with pytest.raises(NoItemsFound, match="No wishlist items found"):
        collect(page, page.reveal_more, wait=FakeClock())

    assert page.reveals == 1


def test_node_level_errors_are_skipped(monkeypatch):
    page = HtmlPage(desktop_page(_three_items()), url=WISHLIST_URL)
    real_extract = collector.extract_record

    def flaky_extract(node):
        if "Second" in node.text():
            raise RuntimeError("markup drift")
        return real_extract(node)

    monkeypatch.setattr(collector, "extract_record", flaky_extract)

    records = collect(page, page.reveal_more, wait=FakeClock())

    assert [r.asin for r in records] == ["B000000001", "B000000003"]


def test_second_pass_over_unchanged_tree_adds_nothing():
    root = HtmlPage(desktop_page(_three_items())).document()
    run = CollectionRun()

    assert run.absorb(root) == 3
    assert run.absorb(root) == 0
    assert len(run.records) == 3
