"""Compute canonical permalinks and versioned redirect paths for pages.

A permalink joins the language, the version (omitted for the default
version), and the content path derived from the file's relative path.
Redirects are computed the same way from each ``redirect_from`` entry but
without the language segment, mirroring how legacy URLs are matched before a
language is chosen.

Examples
--------
>>> content_path("actions/index.md")
'actions'
>>> [p.href for p in build_permalinks(
...     "actions/quickstart.md", "en",
...     ("free-pro-team@latest", "enterprise-server@3.9"), "Quickstart")]
['/en/actions/quickstart', '/en/enterprise-server@3.9/actions/quickstart']
>>> remove_default_version("/free-pro-team@latest/old-path")
'/old-path'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from ._constants import CONTENT_SUFFIX, DEFAULT_LANGUAGE, DEFAULT_VERSION

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .page import Page


@dc.dataclass(slots=True, frozen=True)
class Permalink:
    """Canonical URL of a page under one version and language."""

    language_code: str
    page_version: str
    title: str
    href: str


@dc.dataclass(slots=True, frozen=True)
class Redirect:
    """A versioned legacy path that routes to a page permalink."""

    path: str
    version: str
    target: str


@dc.dataclass(slots=True, frozen=True)
class DuplicateRedirect:
    """A versioned redirect path claimed by more than one file."""

    path: str
    files: tuple[str, ...]


def content_path(relative_path: str) -> str:
    """Return the URL path for ``relative_path`` without suffix or ``index``."""
    path = relative_path.replace("\\", "/").strip("/")
    path = path.removesuffix(CONTENT_SUFFIX)
    if path == "index":
        return ""
    return path.removesuffix("/index")


def join_url_path(*segments: str) -> str:
    """Join URL segments with single slashes and a leading slash."""
    parts = [part for segment in segments for part in segment.split("/") if part]
    return "/" + "/".join(parts)


def remove_default_version(path: str, default_version: str = DEFAULT_VERSION) -> str:
    """Strip the first default version segment from ``path``; empty becomes ``/``."""
    segments = [part for part in path.split("/") if part]
    if default_version in segments:
        segments.remove(default_version)
    return "/" + "/".join(segments)


def build_permalinks(
    relative_path: str,
    language_code: str,
    versions: cabc.Sequence[str],
    title: str,
    default_version: str = DEFAULT_VERSION,
) -> tuple[Permalink, ...]:
    """Return one permalink per applicable version, in version order.

    Parameters
    ----------
    relative_path : str
        Path of the source file within its content tree.
    language_code : str
        Language segment placed first in every href.
    versions : Sequence[str]
        Applicable version ids, already resolved and ordered.
    title : str
        Title recorded on each permalink.
    default_version : str, optional
        Version whose segment is omitted from hrefs.

    Returns
    -------
    tuple[Permalink, ...]
        Empty when ``versions`` is empty.
    """
    path = content_path(relative_path)
    return tuple(
        Permalink(
            language_code=language_code,
            page_version=version,
            title=title,
            href=join_url_path(
                language_code, "" if version == default_version else version, path
            ),
        )
        for version in versions
    )


def build_redirects(
    redirect_from: cabc.Iterable[str],
    permalinks: cabc.Sequence[Permalink],
    default_version: str = DEFAULT_VERSION,
) -> tuple[Redirect, ...]:
    """Expand ``redirect_from`` across the versions of ``permalinks``.

    Each declared path is joined with every permalink's version; the default
    version segment is dropped. Repeated declarations collapse silently.
    """
    redirects: dict[str, Redirect] = {}
    for declared in redirect_from:
        for permalink in permalinks:
            path = remove_default_version(
                join_url_path(permalink.page_version, declared), default_version
            )
            redirects.setdefault(
                path,
                Redirect(
                    path=path, version=permalink.page_version, target=permalink.href
                ),
            )
    return tuple(redirects.values())


def find_duplicate_redirects(
    pages: cabc.Iterable[Page], language_code: str = DEFAULT_LANGUAGE
) -> list[DuplicateRedirect]:
    """Return every versioned redirect path claimed by two or more files.

    Only pages in ``language_code`` take part. Files are listed in load
    order and paths in the order they were first seen.
    """
    claims: dict[str, dict[str, None]] = {}
    for page in pages:
        if page.language_code != language_code:
            continue
        for redirect in page.redirects:
            claims.setdefault(redirect.path, {})[page.full_path] = None
    return [
        DuplicateRedirect(path=path, files=tuple(files))
        for path, files in claims.items()
        if len(files) > 1
    ]


__all__ = [
    "DuplicateRedirect",
    "Permalink",
    "Redirect",
    "build_permalinks",
    "build_redirects",
    "content_path",
    "find_duplicate_redirects",
    "join_url_path",
    "remove_default_version",
]
