"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Maps a request URL onto a file under the root directory and reads it.

=============================================================================
PATH RESOLUTION
=============================================================================

The URL is glued onto the root directory AS A STRING. Three cases, tried
in this order:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    resolve_path(url, page, root)                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. url ends with "/"                                              │
    │      "/docs/"  → root + "/docs/" + "index.html"                     │
    │                                                                      │
    │   2. root + url is an existing directory                            │
    │      "/docs"   → root + "/docs" + "/" + "index.html"                │
    │                                                                      │
    │   3. anything else                                                  │
    │      "/a.css"  → root + "/a.css"                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

With root "." a request for "/" becomes "./index.html".

Case 2 needs one stat() call. os.path.isdir() answers "exists AND is a
directory" in that single call.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

resolve_path() does no normalization, so "/../../etc/passwd" resolves to
"./../../etc/passwd". The check lives in StaticFileHandler instead:

    1. Resolve both the root and the candidate (following .. and symlinks)
    2. Require the candidate to be inside the root
    3. Otherwise answer 404, exactly as for a missing file

confine_to_root=False switches the check off and serves whatever the
concatenated path points at.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..http.response import HTTPResponse, ok, not_found


logger = logging.getLogger(__name__)

URL_SEPARATOR = "/"


def resolve_path(url: str, default_page: str, root_dir: str) -> str:
    """
    Turn a request URL into a filesystem path.

    Args:
        url: Request path exactly as sent by the client.
        default_page: File name used for directory URLs.
        root_dir: Served directory, prefixed verbatim.

    Returns:
        The path to read. It may not exist.
    """
    root_dir = str(root_dir)

    if url.endswith(URL_SEPARATOR):
        return f"{root_dir}{url}{default_page}"

    candidate = f"{root_dir}{url}"
    if os.path.isdir(candidate):
        return f"{candidate}{URL_SEPARATOR}{default_page}"

    return candidate


def is_within_root(path: str, root_dir: str) -> bool:
    """
    Check that path, once resolved, is root_dir or lies beneath it.

    Both sides are resolved with strict=False, so a path that does not
    exist yet is still judged by where it WOULD be.
    """
    try:
        root = Path(root_dir).resolve()
        Path(path).resolve().relative_to(root)
    except (ValueError, OSError, RuntimeError):
        # ValueError: outside root (or embedded NUL)
        # RuntimeError: symlink loop
        return False
    return True


def load_file(path: str) -> Optional[bytes]:
    """
    Read a whole file.

    Returns:
        File bytes, or None for ANY failure: missing, permission denied,
        is a directory, invalid path. Callers must not distinguish them.
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot read {path!r}: {e}")
        return None


@dataclass
class StaticResult:
    """Outcome of serving one URL: where we looked and what we answer."""

    path: str
    response: HTTPResponse


class StaticFileHandler:
    """
    Serves files from a root directory.

    Usage:
        handler = StaticFileHandler("site")
        result = handler.serve("/")
        result.path              # "site/index.html"
        result.response.status   # HTTPStatus.OK or HTTPStatus.NOT_FOUND
    """

    def __init__(
        self,
        root_dir: str = ".",
        default_page: str = "index.html",
        confine_to_root: bool = True,
    ):
        """
        Args:
            root_dir: Directory to serve. Not checked here; the server
                      validates it when the root is configured.
            default_page: File served for directory URLs.
            confine_to_root: Treat paths escaping root_dir as not found.
        """
        self.root_dir = str(root_dir)
        self.default_page = default_page
        self.confine_to_root = confine_to_root

    def resolve(self, url: str) -> str:
        return resolve_path(url, self.default_page, self.root_dir)

    def serve(self, url: str) -> StaticResult:
        """
        Resolve and load one URL.

        Args:
            url: Request path.

        Returns:
            StaticResult with the resolved path and a 200 response holding
            the file bytes, or a 404 response with an empty body.
        """
        path = self.resolve(url)

        if self.confine_to_root and not is_within_root(path, self.root_dir):
            logger.warning(f"Path traversal attempt: {url!r} -> {path!r}")
            return StaticResult(path=path, response=not_found())

        content = load_file(path)
        if content is None:
            return StaticResult(path=path, response=not_found())

        return StaticResult(path=path, response=ok(content))
