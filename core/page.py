# core/page.py
"""
Read-only view of a wishlist page.

The extraction code only talks to the two protocols below, so any host that
can answer CSS-selector queries can drive it. ``SoupNode`` and ``HtmlPage``
are the BeautifulSoup-backed implementations used by the HTTP fetcher and by
the tests.
"""
from typing import Optional, Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag

from .urls import BASE_URL


class PageNode(Protocol):
    @property
    def tag(self) -> str: ...

    def select(self, pattern: str) -> list["PageNode"]: ...

    def select_one(self, pattern: str) -> Optional["PageNode"]: ...

    def parent(self) -> Optional["PageNode"]: ...

    def closest(self, pattern: str) -> Optional["PageNode"]: ...

    def attr(self, name: str) -> Optional[str]: ...

    def text(self) -> str: ...

    def markup(self) -> str: ...


class PageTree(Protocol):
    url: str

    def document(self) -> PageNode:
        """Return the current root; call again after the page changes."""
        ...

    def reveal_more(self) -> None:
        """Ask the host to load further entries, if it can."""
        ...


class SoupNode:
    __slots__ = ("_el",)

    def __init__(self, el: Tag):
        self._el = el

    def __repr__(self) -> str:
        return f"SoupNode(<{self.tag}>)"

    @property
    def tag(self) -> str:
        return (self._el.name or "").lower()

    def select(self, pattern: str) -> list["SoupNode"]:
        return [SoupNode(el) for el in self._el.select(pattern)]

    def select_one(self, pattern: str) -> Optional["SoupNode"]:
        found = self._el.select_one(pattern)
        return SoupNode(found) if found is not None else None

    def parent(self) -> Optional["SoupNode"]:
        up = self._el.parent
        return SoupNode(up) if up is not None else None

    def closest(self, pattern: str) -> Optional["SoupNode"]:
        if isinstance(self._el, BeautifulSoup):
            return None
        found = self._el.css.closest(pattern)
        return SoupNode(found) if found is not None else None

    def attr(self, name: str) -> Optional[str]:
        val = self._el.get(name)
        if val is None:
            return None
        # multi-valued attributes such as class come back as lists
        if isinstance(val, list):
            return " ".join(val)
        return str(val)

    def text(self) -> str:
        return " ".join(self._el.get_text(" ").split())

    def markup(self) -> str:
        return str(self._el)


class HtmlPage:
    """A page tree over HTML held in memory; more HTML can be appended later."""

    def __init__(self, html: str, url: str = BASE_URL):
        self.url = url
        self._soup = BeautifulSoup(html, "html.parser")

    def document(self) -> SoupNode:
        return SoupNode(self._soup)

    def reveal_more(self) -> None:
        """A static page has nothing further to load."""

    def append_html(self, html: str) -> None:
        """Move the body content of another document to the end of this one."""
        fragment = BeautifulSoup(html, "html.parser")
        source = fragment.body or fragment
        target = self._soup.body or self._soup
        for child in list(source.contents):
            target.append(child.extract())
