"""
=============================================================================
CONTENT HANDLERS
=============================================================================

What the server does with a URL once it has one:

    static.py   - resolve the URL to a file under the root and read it
    dynamic.py  - rewrite markers in the file with callback output

    URL ──► StaticFileHandler.serve() ──► bytes ──► substitute_bytes() ──► body
                                                    (only for registered URLs)

=============================================================================
"""

from .static import StaticFileHandler, StaticResult, resolve_path, load_file, is_within_root
from .dynamic import (
    Anchor,
    DynamicPage,
    DynamicPageRegistry,
    substitute,
    substitute_bytes,
)

__all__ = [
    "StaticFileHandler",
    "StaticResult",
    "resolve_path",
    "load_file",
    "is_within_root",
    "Anchor",
    "DynamicPage",
    "DynamicPageRegistry",
    "substitute",
    "substitute_bytes",
]
