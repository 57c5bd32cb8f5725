"""Immutable records describing one loaded content page."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ._constants import INDEX_FILENAME

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .frontmatter import Frontmatter, FrontmatterError
    from .permalinks import Permalink, Redirect


@dc.dataclass(slots=True, frozen=True)
class ParentProduct:
    """Top-level product a page belongs to, read from the product index."""

    id: str
    name: str
    href: str
    wip: bool = False
    hidden: bool = False


@dc.dataclass(slots=True, frozen=True)
class Page:
    """One content file in one language.

    Attributes
    ----------
    relative_path : str
        POSIX path of the file within its language's content tree.
    language_code : str
        Registered language code.
    full_path : str
        Absolute path of the source file.
    title : str
        Display title; empty when the frontmatter could not be read.
    short_title : str or None
        Optional shorter title used in navigation.
    frontmatter : Frontmatter or None
        Validated frontmatter, ``None`` when required keys were invalid.
    applicable_versions : tuple[str, ...]
        Version ids the page is published under, in registry order.
    permalinks : tuple[Permalink, ...]
        One canonical URL per applicable version.
    redirect_from : tuple[str, ...]
        Declared legacy paths, as written in the frontmatter.
    redirects : tuple[Redirect, ...]
        ``redirect_from`` expanded across the applicable versions.
    hidden : bool
        Frontmatter ``hidden`` flag.
    parent_product : ParentProduct or None
        Product owning the page; ``None`` for the root index.
    frontmatter_errors : tuple[FrontmatterError, ...]
        Validation failures for the file; empty when valid.
    version_warnings : tuple[str, ...]
        Non-fatal notes from version resolution.
    raw : str
        Unparsed file text.
    markdown : str
        Body text after the frontmatter block.
    """

    relative_path: str
    language_code: str
    full_path: str
    title: str = ""
    short_title: str | None = None
    frontmatter: Frontmatter | None = None
    applicable_versions: tuple[str, ...] = ()
    permalinks: tuple[Permalink, ...] = ()
    redirect_from: tuple[str, ...] = ()
    redirects: tuple[Redirect, ...] = ()
    hidden: bool = False
    parent_product: ParentProduct | None = None
    frontmatter_errors: tuple[FrontmatterError, ...] = ()
    version_warnings: tuple[str, ...] = ()
    raw: str = ""
    markdown: str = ""

    @property
    def allow_title_to_differ_from_filename(self) -> bool:
        """Return the frontmatter override for the filename/title check."""
        matter = self.frontmatter
        return bool(matter and matter.allow_title_to_differ_from_filename)

    @property
    def learning_tracks(self) -> tuple[str, ...]:
        """Return the learning track keys listed in the frontmatter."""
        return self.frontmatter.learning_tracks if self.frontmatter else ()

    @property
    def is_index(self) -> bool:
        """Return True for ``index.md`` files at any depth."""
        return self.relative_path.rsplit("/", 1)[-1] == INDEX_FILENAME

    @property
    def has_fatal_error(self) -> bool:
        """Return True when an attached error explains missing permalinks."""
        return any(error.fatal for error in self.frontmatter_errors)


__all__ = ["Page", "ParentProduct"]
