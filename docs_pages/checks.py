"""Corpus-wide checks over a loaded page collection.

Each check returns a :class:`CheckResult` whose ``failures`` are plain,
JSON-encodable records and whose ``message`` explains how to fix them. The
CLI ``check`` command and the corpus test module run the same functions.

Example
-------
>>> slugify("Quickstart for GitHub Actions")
'quickstart-for-github-actions'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import html
import re
import typing as typ
from pathlib import PurePosixPath

import msgspec

from ._constants import DEFAULT_LANGUAGE, INDEX_FILENAME
from .learning_tracks import find_missing_guides
from .permalinks import find_duplicate_redirects
from .template_syntax import find_template_errors

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .learning_tracks import LearningTracks
    from .loader import PageCollection
    from .page import Page

_SLUG_STRIP = re.compile(r"[^\w\- ]")


@dc.dataclass(slots=True, frozen=True)
class CheckResult:
    """Outcome of one corpus check."""

    name: str
    failures: tuple[typ.Any, ...]
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.failures

    def report(self) -> str:
        """Return the message followed by the failures as indented JSON."""
        payload = msgspec.json.format(
            msgspec.json.encode(list(self.failures)), indent=2
        ).decode("utf-8")
        return f"{self.message}\n{payload}" if self.message else payload


def slugify(text: str) -> str:
    """Return a GitHub-style heading slug.

    Lowercases, drops everything but word characters, hyphens, and spaces,
    then turns each space into a hyphen (runs are not collapsed).
    """
    return _SLUG_STRIP.sub("", text.lower()).replace(" ", "-")


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def check_language_codes(pages: PageCollection) -> CheckResult:
    """Every page's language code must be registered."""
    failures = tuple(
        {"file": page.full_path, "languageCode": page.language_code}
        for page in pages
        if page.language_code not in pages.languages
    )
    return CheckResult(
        name="language-codes",
        failures=failures,
        message=(
            f"Found {_plural(len(failures), 'page')} with an unregistered language."
        ),
    )


def check_permalinks(pages: PageCollection) -> CheckResult:
    """Every page must have at least one permalink."""
    failures = tuple(page.full_path for page in pages if not page.permalinks)
    return CheckResult(
        name="permalinks",
        failures=failures,
        message=f"Found {_plural(len(failures), 'page')} without permalinks.",
    )


def check_redirect_uniqueness(
    pages: PageCollection, language_code: str = DEFAULT_LANGUAGE
) -> CheckResult:
    """No versioned redirect path may be claimed by two different files."""
    duplicates = find_duplicate_redirects(pages, language_code)
    details = "\n\n".join(
        f"{dup.path}\n  Defined in:\n    " + "\n    ".join(dup.files)
        for dup in duplicates
    )
    message = (
        f"Found {_plural(len(duplicates), 'duplicate redirect_from path')}.\n"
        "Define each path once in redirect_from, within a single file and "
        "across all files of the language.\n"
    ) + details
    return CheckResult(
        name="redirect-uniqueness",
        failures=tuple(
            {"path": dup.path, "files": list(dup.files)} for dup in duplicates
        ),
        message=message,
    )


def _title_mismatch(page: Page) -> bool:
    """Return True when neither title slug matches the file's basename."""
    stem = PurePosixPath(page.relative_path).stem
    titles = (page.title, page.short_title or "")
    return all(slugify(html.unescape(title)) != stem for title in titles)


def check_filename_titles(
    pages: PageCollection, language_code: str = DEFAULT_LANGUAGE
) -> CheckResult:
    """Filenames must match the slug of the title or short title.

    Index pages and pages with ``allowTitleToDifferFromFilename`` are skipped,
    as are pages whose frontmatter could not be read.
    """
    failures = tuple(
        {
            "file": PurePosixPath(page.relative_path).name,
            "title": page.title,
            "path": page.full_path,
        }
        for page in pages
        if page.language_code == language_code
        and page.frontmatter is not None
        and INDEX_FILENAME not in page.relative_path
        and not page.allow_title_to_differ_from_filename
        and _title_mismatch(page)
    )
    return CheckResult(
        name="filename-titles",
        failures=failures,
        message=(
            f"Found {_plural(len(failures), 'file')} that do not match their "
            "slugified titles. Rename the file or set "
            "allowTitleToDifferFromFilename."
        ),
    )


def check_frontmatter(pages: cabc.Iterable[Page]) -> CheckResult:
    """Every page must have valid frontmatter."""
    failures = tuple(error for page in pages for error in page.frontmatter_errors)
    return CheckResult(
        name="frontmatter",
        failures=failures,
        message="\n".join(error.filepath for error in failures),
    )


def check_template_syntax(pages: cabc.Iterable[Page]) -> CheckResult:
    """Every page's template markup must parse."""
    issues = find_template_errors(pages)
    return CheckResult(
        name="template-syntax",
        failures=tuple({"filename": i.filename, "error": i.error} for i in issues),
        message=f"Found {_plural(len(issues), 'page')} with invalid template syntax.",
    )


def check_learning_tracks(
    tracks: LearningTracks, pages: PageCollection
) -> CheckResult:
    """Track files must be valid and every guide must resolve to a page."""
    missing = find_missing_guides(tracks, pages)
    failures: tuple[typ.Any, ...] = (
        *tracks.errors,
        *({"product": m.product, "track": m.track, "guide": m.guide} for m in missing),
    )
    return CheckResult(
        name="learning-tracks",
        failures=failures,
        message=(
            f"Found {_plural(len(tracks.errors), 'track error')} and "
            f"{_plural(len(missing), 'guide')} matching no page."
        ),
    )


def run_all_checks(
    pages: PageCollection, tracks: LearningTracks | None = None
) -> list[CheckResult]:
    """Run every corpus check, in a stable order."""
    results = [
        check_language_codes(pages),
        check_permalinks(pages),
        check_redirect_uniqueness(pages, pages.default_language),
        check_filename_titles(pages, pages.default_language),
        check_frontmatter(pages),
        check_template_syntax(pages),
    ]
    if tracks is not None:
        results.append(check_learning_tracks(tracks, pages))
    return results


__all__ = [
    "CheckResult",
    "check_filename_titles",
    "check_frontmatter",
    "check_language_codes",
    "check_learning_tracks",
    "check_permalinks",
    "check_redirect_uniqueness",
    "check_template_syntax",
    "run_all_checks",
    "slugify",
]
