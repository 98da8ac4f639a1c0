from core.page import HtmlPage
from extraction.classifier import is_private_or_inaccessible, is_wishlist_page

from html_fixtures import WISHLIST_URL, desktop_item, desktop_page, mobile_item, mobile_page

OTHER_URL = "https://www.amazon.com/gp/cart/view.html"
MOBILE_LIST_URL = "https://www.amazon.com/gp/aw/ls?lid=3ABCDEFGHIJKL"


def test_wishlist_url_alone_is_enough():
    page = HtmlPage("<html><body><p>Loading…</p></body></html>", url=WISHLIST_URL)
    assert is_wishlist_page(page)


def test_registry_url_is_a_wishlist():
    page = HtmlPage("<html><body></body></html>", url="https://www.amazon.com/gp/registry/list/3ABC")
    assert is_wishlist_page(page)


def test_structure_alone_is_enough():
    page = HtmlPage(desktop_page(), url="https://www.amazon.com/some/new/scheme")
    assert is_wishlist_page(page)


def test_mobile_entries_alone_are_enough():
    page = HtmlPage(mobile_page(mobile_item("B000000001", "Kettle")), url=MOBILE_LIST_URL)
    assert is_wishlist_page(page)


def test_bare_product_nodes_are_enough():
    page = HtmlPage(
        '<html><body><div data-asin="B000000001"><h3>Kettle</h3></div></body></html>',
        url="https://www.amazon.com/some/new/scheme",
    )
    assert is_wishlist_page(page)


def test_plain_page_is_not_a_wishlist():
    page = HtmlPage("<html><body><h1>Your cart</h1></body></html>", url=OTHER_URL)
    assert not is_wishlist_page(page)


def test_private_phrase_without_structure():
    page = HtmlPage(
        "<html><body><div class='a-box'><h4>This list is private</h4></div></body></html>",
        url=WISHLIST_URL,
    )
    assert is_private_or_inaccessible(page)


def test_typographic_apostrophe_phrase():
    page = HtmlPage(
        "<html><body><p>Sorry, we couldn’t find that list.</p></body></html>",
        url=WISHLIST_URL,
    )
    assert is_private_or_inaccessible(page)


def test_private_phrase_with_structure_is_not_private():
    page = HtmlPage(desktop_page(extra_body="<p>This list is not available</p>"), url=WISHLIST_URL)
    assert not is_private_or_inaccessible(page)


def test_located_items_override_private_phrases():
    page = HtmlPage(
        desktop_page(desktop_item("B000000001", "One"), extra_body="<p>This list is private</p>"),
        url=WISHLIST_URL,
    )
    assert not is_private_or_inaccessible(page)


def test_access_alert_marks_private_even_with_structure():
    page = HtmlPage(
        desktop_page(
            extra_body='<div class="a-alert-error"><p>Sign in to view this list.</p></div>'
        ),
        url=WISHLIST_URL,
    )
    assert is_private_or_inaccessible(page)


def test_unrelated_alert_is_ignored():
    page = HtmlPage(
        '<html><body><div class="a-alert-error">Your session expired.</div></body></html>',
        url=WISHLIST_URL,
    )
    assert not is_private_or_inaccessible(page)


def test_no_signal_defaults_to_accessible():
    page = HtmlPage("<html><body><p>Loading your list</p></body></html>", url=WISHLIST_URL)
    assert not is_private_or_inaccessible(page)
