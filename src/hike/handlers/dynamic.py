"""
=============================================================================
DYNAMIC PAGES
=============================================================================

A dynamic page is an ordinary file on disk whose text contains MARKERS.
Before the file is sent, each marker is replaced by the output of a
Python callable registered for it.

    site/status.html                     registered for "/status.html"
    ─────────────────                    ──────────────────────────────
    <p>Uptime: <!-- [uptime] --></p>     Anchor("<!-- [uptime] -->", uptime)
    <pre><!-- [ls] --></pre>             Anchor("<!-- [ls] -->", list_files)

=============================================================================
SUBSTITUTION RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    substitute(text, anchors)                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   for anchor in anchors:            ← registration order            │
    │       │                                                              │
    │       ├── marker not in text?                                        │
    │       │       └── skip, callback NOT called                         │
    │       │                                                              │
    │       └── marker in text                                             │
    │               └── value = callback()   ← once, however many hits    │
    │               └── text = text.replace(marker, value)                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Anchors run against the text as already rewritten by the anchors before
them, so a callback may emit a later anchor's marker.

A callback is anything callable with no arguments: a function, a closure,
a bound method, an object with __call__. It may have side effects. It runs
synchronously in the worker thread handling the request.

=============================================================================
MATCHING PAGES
=============================================================================

Pages are matched on the REQUESTED URL by exact string equality:
"/status.html" does not match "/status.html?x=1" or "/STATUS.html".
If two pages share a URL, only the first one registered is used.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple


logger = logging.getLogger(__name__)

Callback = Callable[[], str]


@dataclass(frozen=True)
class Anchor:
    """
    One marker and the callable that produces its replacement.

    Attributes:
        marker: Literal substring to look for. An empty marker never matches.
        callback: Zero-argument callable returning the replacement text.
                  Non-str results are passed through str().
    """

    marker: str
    callback: Callback

    def render(self) -> str:
        value = self.callback()
        return value if isinstance(value, str) else str(value)


@dataclass
class DynamicPage:
    """
    A URL whose content goes through marker substitution.

    Attributes:
        url: Exact request path this page applies to.
        anchors: Anchors applied in order.
    """

    url: str
    anchors: List[Anchor] = field(default_factory=list)

    def add_anchor(self, marker: str, callback: Callback) -> "DynamicPage":
        """Append an anchor. Returns self for chaining."""
        self.anchors.append(Anchor(marker=marker, callback=callback))
        return self

    def frozen(self) -> "DynamicPage":
        """Copy whose anchor list can no longer be changed by the host."""
        return DynamicPage(url=self.url, anchors=tuple(self.anchors))


def substitute(text: str, anchors: Iterable[Anchor]) -> str:
    """
    Replace every occurrence of each anchor's marker with its callback output.

    Args:
        text: Content to rewrite.
        anchors: Anchors in the order they should run.

    Returns:
        The rewritten text. Unchanged if no marker occurs.

    Raises:
        Whatever a callback raises; nothing is swallowed here.
    """
    for anchor in anchors:
        if not anchor.marker or anchor.marker not in text:
            continue
        logger.debug(f"Substituting {anchor.marker!r}")
        text = text.replace(anchor.marker, anchor.render())
    return text


def substitute_bytes(body: bytes, anchors: Sequence[Anchor]) -> bytes:
    """
    Byte-level wrapper around substitute().

    The body is decoded as UTF-8 with invalid sequences replaced by U+FFFD
    and re-encoded as UTF-8, so a page that is not valid UTF-8 comes back
    with those bytes changed even when no marker matched.
    """
    text = body.decode("utf-8", errors="replace")
    return substitute(text, anchors).encode("utf-8")


class DynamicPageRegistry:
    """
    Ordered collection of dynamic pages.

    Appending never checks for duplicates; lookup returns the first page
    whose url matches.
    """

    def __init__(self, pages: Optional[Iterable[DynamicPage]] = None):
        self._pages: List[DynamicPage] = list(pages or ())

    def register(self, page: DynamicPage) -> None:
        self._pages.append(page)

    def lookup(self, url: str) -> Optional[DynamicPage]:
        """First registered page whose url equals url, or None."""
        for page in self._pages:
            if page.url == url:
                return page
        return None

    def anchor(self, url: str, marker: str, callback: Callback) -> DynamicPage:
        """
        Add an anchor to the page for url, creating the page if needed.

        Returns:
            The page the anchor was added to.
        """
        page = self.lookup(url)
        if page is None:
            page = DynamicPage(url=url)
            self.register(page)
        return page.add_anchor(marker, callback)

    def snapshot(self) -> "DynamicPageRegistry":
        """
        Copy for serving.

        Pages and their anchor lists are copied so that registering more
        pages afterwards does not affect connections already being served.
        Callbacks themselves are shared, not copied.
        """
        return DynamicPageRegistry(page.frozen() for page in self._pages)

    @property
    def pages(self) -> Tuple[DynamicPage, ...]:
        return tuple(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[DynamicPage]:
        return iter(self._pages)
