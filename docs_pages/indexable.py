"""Select the pages a search indexer should scrape."""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ

from ._constants import INDEX_FILENAME

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .page import Page

logger = logging.getLogger(__name__)


def is_indexable(page: Page) -> bool:
    """Return True unless the page or its product is hidden or WIP."""
    if page.hidden:
        return False
    product = page.parent_product
    if product is not None and (product.wip or product.hidden):
        return False
    return page.relative_path != INDEX_FILENAME


def find_indexable_pages(pages: cabc.Iterable[Page], match: str = "") -> list[Page]:
    """Filter ``pages`` down to those worth indexing.

    Parameters
    ----------
    pages : Iterable[Page]
        Loaded pages, typically a :class:`~docs_pages.loader.PageCollection`.
    match : str, optional
        When given, keep only pages whose relative path contains it.

    Returns
    -------
    list[Page]
        Indexable pages in input order. Hidden pages, pages under a WIP or
        hidden product, and the bare language home page are excluded.
    """
    all_pages = list(pages)
    indexable = [
        page
        for page in all_pages
        if is_indexable(page) and (not match or match in page.relative_path)
    ]
    logger.info("total pages %d", len(all_pages))
    logger.info("indexable pages %d", len(indexable))
    return indexable


__all__ = ["find_indexable_pages", "is_indexable"]
