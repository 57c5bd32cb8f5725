"""Corpus-wide checks over the content shipped in this repository.

These tests load ``config/site.yaml`` once per module and assert that every
page satisfies the content rules: registered languages, non-empty
permalinks, unique versioned redirects, filenames that match titles, valid
frontmatter, parsable template markup, and learning tracks whose guides all
exist. A failing test prints the check's report so the offending files can
be fixed directly.

Usage
-----
Run ``pytest tests/test_corpus.py -v`` after editing anything under
``content/``, ``translations/``, or ``data/``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from docs_pages import checks
from docs_pages.config import load_site_config
from docs_pages.indexable import find_indexable_pages
from docs_pages.learning_tracks import LearningTracks, load_learning_tracks
from docs_pages.loader import PageCollection, load_pages
from docs_pages.versions import VersionResolver, load_version_registry

SITE_CONFIG = Path(__file__).resolve().parents[1] / "config" / "site.yaml"


@pytest.fixture(scope="module")
def corpus() -> tuple[PageCollection, LearningTracks]:
    """Load the shipped site and its learning tracks."""
    config = load_site_config(SITE_CONFIG)
    registry = load_version_registry(config.versions_file, config.features_dir)
    pages = load_pages(config, registry=registry, strict=True)
    tracks = load_learning_tracks(config.learning_tracks_dir, VersionResolver(registry))
    return pages, tracks


@pytest.fixture(scope="module")
def pages(corpus: tuple[PageCollection, LearningTracks]) -> PageCollection:
    return corpus[0]


def test_corpus_has_pages_in_every_language(pages: PageCollection) -> None:
    assert {page.language_code for page in pages} == set(pages.languages)


@pytest.mark.parametrize(
    "check",
    [
        checks.check_language_codes,
        checks.check_permalinks,
        checks.check_redirect_uniqueness,
        checks.check_filename_titles,
        checks.check_frontmatter,
        checks.check_template_syntax,
    ],
    ids=lambda check: check.__name__,
)
def test_corpus_check(
    pages: PageCollection, check: typ.Callable[[PageCollection], checks.CheckResult]
) -> None:
    result = check(pages)
    assert result.ok, result.report()


def test_learning_track_guides_exist(
    corpus: tuple[PageCollection, LearningTracks],
) -> None:
    pages, tracks = corpus
    assert list(tracks), "expected at least one learning track"
    result = checks.check_learning_tracks(tracks, pages)
    assert result.ok, result.report()


def test_feature_flag_versions_apply(pages: PageCollection) -> None:
    page = pages.get("actions/larger-runners.md")
    assert page is not None
    assert page.applicable_versions == (
        "free-pro-team@latest",
        "enterprise-cloud@latest",
    )


def test_wip_product_is_not_indexable(pages: PageCollection) -> None:
    indexable = {
        (page.language_code, page.relative_path)
        for page in find_indexable_pages(pages)
    }
    assert ("en", "actions/quickstart.md") in indexable
    assert ("ja", "actions/quickstart.md") in indexable
    assert not any(path.startswith("early-access/") for _, path in indexable)
    assert ("en", "index.md") not in indexable
