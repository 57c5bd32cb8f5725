"""Load every content file into an immutable collection of pages.

The load is a fork-join: each file is parsed, validated, version-resolved,
and given permalinks independently on a thread pool, then a single reduce
step over the finished pages computes the cross-file failures (unknown
languages, pages without permalinks, duplicate redirects).

Example
-------
>>> from pathlib import Path
>>> from docs_pages.config import load_site_config
>>> from docs_pages.loader import load_pages
>>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> pages = load_pages(config)  # doctest: +SKIP
>>> pages.get("index.md", "en").permalinks[0].href  # doctest: +SKIP
'/en'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import functools
import logging
import typing as typ
from concurrent.futures import ThreadPoolExecutor, as_completed

from ._constants import DEFAULT_VERSION, IGNORED_FILENAMES, INDEX_FILENAME
from .errors import ContentLoadError, ContentTreeError, ContentValidationError
from .frontmatter import (
    FrontmatterError,
    FrontmatterParseError,
    split_frontmatter,
    validate_frontmatter,
)
from .page import Page, ParentProduct
from .permalinks import (
    build_permalinks,
    build_redirects,
    find_duplicate_redirects,
    join_url_path,
)
from .versions import VersionRegistry, VersionResolver, load_version_registry

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from pathlib import Path

    from .config import SiteConfig

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True, frozen=True)
class BatchError:
    """A cross-file failure found after every page was built."""

    kind: str
    message: str
    files: tuple[str, ...]


@dc.dataclass(slots=True, frozen=True)
class SourceFile:
    """A discovered content file waiting to be loaded."""

    path: Path
    relative_path: str
    language_code: str


@dc.dataclass(frozen=True)
class PageCollection:
    """Immutable, order-stable result of one content load."""

    pages: tuple[Page, ...]
    languages: frozenset[str]
    default_language: str = "en"
    default_version: str = DEFAULT_VERSION
    batch_errors: tuple[BatchError, ...] = ()

    @classmethod
    def build(
        cls,
        pages: cabc.Iterable[Page],
        *,
        languages: cabc.Iterable[str],
        default_language: str = "en",
        default_version: str = DEFAULT_VERSION,
    ) -> PageCollection:
        """Wrap ``pages`` and compute the cross-file failures once."""
        page_tuple = tuple(pages)
        language_set = frozenset(languages)
        return cls(
            pages=page_tuple,
            languages=language_set,
            default_language=default_language,
            default_version=default_version,
            batch_errors=tuple(
                _collect_batch_errors(page_tuple, language_set, default_language)
            ),
        )

    def __iter__(self) -> cabc.Iterator[Page]:
        return iter(self.pages)

    def __len__(self) -> int:
        return len(self.pages)

    def by_language(self, language_code: str) -> tuple[Page, ...]:
        """Return the pages of one language in load order."""
        return tuple(page for page in self.pages if page.language_code == language_code)

    def get(self, relative_path: str, language_code: str | None = None) -> Page | None:
        """Return the page at ``relative_path`` in ``language_code``."""
        code = language_code or self.default_language
        return self._by_path.get((code, relative_path))

    @functools.cached_property
    def _by_path(self) -> dict[tuple[str, str], Page]:
        return {(page.language_code, page.relative_path): page for page in self.pages}

    @functools.cached_property
    def page_map(self) -> dict[str, Page]:
        """Map every permalink href to its page."""
        return {
            permalink.href: page for page in self.pages for permalink in page.permalinks
        }

    @functools.cached_property
    def redirect_map(self) -> dict[str, str]:
        """Map default-language redirect paths to their target hrefs.

        When a path is claimed twice the first page in load order wins; the
        collision itself is reported in :attr:`batch_errors`.
        """
        redirects: dict[str, str] = {}
        for page in self.by_language(self.default_language):
            for redirect in page.redirects:
                redirects.setdefault(redirect.path, redirect.target)
        return redirects


def _collect_batch_errors(
    pages: tuple[Page, ...], languages: frozenset[str], default_language: str
) -> list[BatchError]:
    """Reduce step: cross-file invariants over the finished collection."""
    failures: list[BatchError] = []

    unknown = tuple(
        page.full_path for page in pages if page.language_code not in languages
    )
    if unknown:
        failures.append(
            BatchError(
                kind="unknown-language",
                message=f"{len(unknown)} page(s) have an unregistered language code.",
                files=unknown,
            )
        )

    unexplained = tuple(
        page.full_path
        for page in pages
        if not page.permalinks and not page.has_fatal_error
    )
    if unexplained:
        failures.append(
            BatchError(
                kind="empty-permalinks",
                message=f"{len(unexplained)} page(s) have no permalinks.",
                files=unexplained,
            )
        )

    for duplicate in find_duplicate_redirects(pages, default_language):
        failures.append(
            BatchError(
                kind="duplicate-redirect",
                message=(
                    f"Redirect path '{duplicate.path}' is defined in "
                    f"{len(duplicate.files)} files."
                ),
                files=duplicate.files,
            )
        )
    return failures


def discover_files(config: SiteConfig) -> list[SourceFile]:
    """List content files for every registered language, default first.

    Raises
    ------
    ContentTreeError
        If the default language's content tree does not exist.
    """
    sources: list[SourceFile] = []
    for code in config.language_codes:
        root = config.languages[code].content_dir
        if not root.is_dir():
            if code == config.default_language:
                msg = f"Content tree '{root}' not found."
                raise ContentTreeError(msg)
            logger.warning("skipping language %s: %s not found", code, root)
            continue
        for path in sorted(root.rglob("*.md")):
            if path.name in IGNORED_FILENAMES or not path.is_file():
                continue
            sources.append(
                SourceFile(
                    path=path,
                    relative_path=path.relative_to(root).as_posix(),
                    language_code=code,
                )
            )
    return sources


def load_products(
    content_dir: Path, language_code: str = "en"
) -> dict[str, ParentProduct]:
    """Read each top-level product's ``index.md`` into a ParentProduct.

    Products whose index cannot be parsed are skipped; the index page itself
    carries the error once it is loaded.
    """
    products: dict[str, ParentProduct] = {}
    for index_path in sorted(content_dir.glob(f"*/{INDEX_FILENAME}")):
        product_id = index_path.parent.name
        try:
            data, _ = split_frontmatter(index_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("product %s index unreadable: %s", product_id, exc)
            continue
        matter, _ = validate_frontmatter(data, str(index_path))
        products[product_id] = ParentProduct(
            id=product_id,
            name=matter.title if matter else product_id,
            href=f"/{language_code}/{product_id}",
            wip=bool(data.get("wip", False)),
            hidden=bool(data.get("hidden", False)),
        )
    return products


def _placeholder_page(
    source: SourceFile, products: cabc.Mapping[str, ParentProduct] | None
) -> Page:
    """Return the bare Page for ``source`` before its text is read."""
    segment, sep, _ = source.relative_path.partition("/")
    product = (products or {}).get(segment) if sep else None
    if product is not None:
        product = dc.replace(
            product, href=join_url_path(source.language_code, product.id)
        )
    return Page(
        relative_path=source.relative_path,
        language_code=source.language_code,
        full_path=str(source.path),
        parent_product=product,
    )


def _failed_page(base: Page, message: str) -> Page:
    """Attach a fatal load error to a page that has no permalinks."""
    error = FrontmatterError(
        filepath=base.full_path, message=message, reason="load", fatal=True
    )
    return dc.replace(base, frontmatter_errors=(error,))


def build_page(
    source: SourceFile,
    resolver: VersionResolver,
    *,
    products: cabc.Mapping[str, ParentProduct] | None = None,
) -> Page:
    """Build the Page for one file, recording failures on the page.

    Parameters
    ----------
    source : SourceFile
        File to load.
    resolver : VersionResolver
        Resolver bound to the version registry.
    products : Mapping[str, ParentProduct], optional
        Products keyed by top-level directory name.

    Returns
    -------
    Page
        A page with permalinks, or one whose ``frontmatter_errors`` holds a
        fatal error explaining why it has none.
    """
    filepath = str(source.path)
    base = _placeholder_page(source, products)
    try:
        raw = source.path.read_text(encoding="utf-8")
    except (OSError, ValueError) as exc:
        logger.error("failed to read %s: %s", filepath, exc)
        return _failed_page(base, f"Unable to read file: {exc}")

    try:
        data, body = split_frontmatter(raw)
    except FrontmatterParseError as exc:
        error = FrontmatterError(
            filepath=filepath, message=str(exc), reason="yaml", fatal=True
        )
        return dc.replace(base, raw=raw, markdown=raw, frontmatter_errors=(error,))

    matter, errors = validate_frontmatter(data, filepath)
    if matter is None:
        title = data.get("title")
        return dc.replace(
            base,
            title=title if isinstance(title, str) else "",
            raw=raw,
            markdown=body,
            frontmatter_errors=tuple(errors),
        )

    resolved = resolver.resolve(matter.versions)
    errors.extend(
        FrontmatterError(
            filepath=filepath,
            message=message,
            reason="versions",
            fatal=not resolved.versions,
        )
        for message in resolved.errors
    )
    default_version = resolver.registry.default_version
    permalinks = build_permalinks(
        source.relative_path,
        source.language_code,
        resolved.versions,
        matter.title,
        default_version,
    )
    return dc.replace(
        base,
        title=matter.title,
        short_title=matter.short_title,
        frontmatter=matter,
        applicable_versions=resolved.versions,
        permalinks=permalinks,
        redirect_from=matter.redirect_from,
        redirects=build_redirects(matter.redirect_from, permalinks, default_version),
        hidden=matter.hidden,
        frontmatter_errors=tuple(errors),
        version_warnings=resolved.warnings,
        raw=raw,
        markdown=body,
    )


def load_pages(
    config: SiteConfig,
    *,
    registry: VersionRegistry | None = None,
    strict: bool = False,
) -> PageCollection:
    """Load every content file in every registered language.

    Parameters
    ----------
    config : SiteConfig
        Resolved site configuration.
    registry : VersionRegistry, optional
        Pre-loaded registry; read from ``config.versions_file`` when omitted.
    strict : bool, optional
        Raise :class:`ContentValidationError` when cross-file failures exist.

    Returns
    -------
    PageCollection
        Pages in discovery order (default language first, then by path).

    Raises
    ------
    VersionRegistryError
        If the registry is missing or malformed.
    ContentTreeError
        If the default content tree does not exist.
    ContentLoadError
        If fewer than ``config.min_pages`` pages were found.
    ContentValidationError
        If ``strict`` and any cross-file failure was found.
    """
    if registry is None:
        registry = load_version_registry(config.versions_file, config.features_dir)
    sources = discover_files(config)
    products = load_products(config.content_dir, config.default_language)
    resolver = VersionResolver(registry)

    results: dict[int, Page] = {}
    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        futures = {
            executor.submit(build_page, source, resolver, products=products): index
            for index, source in enumerate(sources)
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as exc:  # noqa: BLE001 - recorded on the page
                source = sources[index]
                logger.exception("failed to build page %s", source.path)
                results[index] = _failed_page(
                    _placeholder_page(source, products), f"Unable to load page: {exc}"
                )

    collection = PageCollection.build(
        (results[index] for index in range(len(sources))),
        languages=config.languages,
        default_language=config.default_language,
        default_version=registry.default_version,
    )
    if len(collection) < config.min_pages:
        msg = (
            f"Loaded {len(collection)} page(s); expected at least {config.min_pages}."
        )
        raise ContentLoadError(msg)

    logger.info(
        "loaded %d pages in %d language(s); %d batch error(s)",
        len(collection),
        len({page.language_code for page in collection}),
        len(collection.batch_errors),
    )
    if strict and collection.batch_errors:
        raise ContentValidationError(collection.batch_errors)
    return collection


class ContentStore:
    """Process-wide holder for the loaded collection.

    Loading happens only through :meth:`initialize` and :meth:`reload`;
    reading :attr:`pages` never triggers a load.
    """

    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self._pages: PageCollection | None = None

    @property
    def initialized(self) -> bool:
        return self._pages is not None

    @property
    def pages(self) -> PageCollection:
        """Return the loaded collection.

        Raises
        ------
        RuntimeError
            If :meth:`initialize` has not been called.
        """
        if self._pages is None:
            msg = "Content store is not initialized; call initialize() first."
            raise RuntimeError(msg)
        return self._pages

    def initialize(self) -> PageCollection:
        """Load the collection once; later calls return the same value."""
        if self._pages is None:
            self._pages = load_pages(self.config)
        return self._pages

    def reload(self, config: SiteConfig | None = None) -> PageCollection:
        """Discard the current collection and load a fresh one."""
        if config is not None:
            self.config = config
        self._pages = load_pages(self.config)
        return self._pages


__all__ = [
    "BatchError",
    "ContentStore",
    "PageCollection",
    "SourceFile",
    "build_page",
    "discover_files",
    "load_pages",
    "load_products",
]
