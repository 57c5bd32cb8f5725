"""Load, validate, and query a versioned Markdown documentation corpus.

This package reads every content file in every registered language, checks
its frontmatter, resolves the product versions it is published under, and
computes permalinks and versioned redirects. The result is an immutable
:class:`~docs_pages.loader.PageCollection` that the corpus checks, the search
indexer filter, and the ``docs-pages`` CLI consume.

Exports
-------
- ``load_pages``: Build a PageCollection from a SiteConfig.
- ``ContentStore``: Explicit process-wide holder with initialize/reload.
- ``find_indexable_pages``: Filter pages down to those worth indexing.
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from pathlib import Path
>>> from docs_pages import load_pages
>>> from docs_pages.config import load_site_config
>>> pages = load_pages(load_site_config(Path("config/site.yaml")))  # doctest: +SKIP
>>> len(pages) > 0  # doctest: +SKIP
True
"""

from __future__ import annotations

from .cli import app, main
from .indexable import find_indexable_pages
from .loader import ContentStore, PageCollection, load_pages
from .page import Page, ParentProduct

__all__ = [
    "ContentStore",
    "Page",
    "PageCollection",
    "ParentProduct",
    "app",
    "find_indexable_pages",
    "load_pages",
    "main",
]
