"""Tests for loading a content tree into a PageCollection.

Each test builds a small site in ``tmp_path`` with the ``content_tree``
fixture and runs the real loader over it, covering per-file failures that are
recorded on pages, cross-file batch errors computed after the load, the fatal
conditions that abort a load, and the explicit ContentStore lifecycle.
"""

from __future__ import annotations

import typing as typ

import pytest

from docs_pages.errors import (
    ContentLoadError,
    ContentTreeError,
    ContentValidationError,
    VersionRegistryError,
)
from docs_pages.loader import ContentStore, build_page, load_pages

if typ.TYPE_CHECKING:
    from conftest import ContentTree
    from pytest_mock import MockerFixture

    from docs_pages.loader import PageCollection


def _kinds(pages: PageCollection) -> list[str]:
    return [error.kind for error in pages.batch_errors]


def test_pages_carry_versions_permalinks_and_redirects(
    content_tree: ContentTree,
) -> None:
    content_tree.page("index.md", title="Home", versions={"fpt": "*", "ghes": "*"})
    content_tree.page(
        "actions/quickstart.md",
        title="Quickstart",
        versions={"ghes": "*"},
        redirect_from=["/old-quickstart"],
        body="Body text\n",
    )
    pages = load_pages(content_tree.config())

    assert len(pages) == 2
    home = pages.get("index.md")
    assert home is not None
    assert [p.href for p in home.permalinks] == [
        "/en",
        "/en/enterprise-server@3.9",
        "/en/enterprise-server@3.8",
    ]
    page = pages.get("actions/quickstart.md", "en")
    assert page is not None
    assert page.applicable_versions == (
        "enterprise-server@3.9",
        "enterprise-server@3.8",
    )
    assert page.markdown == "Body text\n"
    assert page.raw.startswith("---\n")
    assert page.frontmatter_errors == ()
    assert pages.redirect_map == {
        "/enterprise-server@3.9/old-quickstart": (
            "/en/enterprise-server@3.9/actions/quickstart"
        ),
        "/enterprise-server@3.8/old-quickstart": (
            "/en/enterprise-server@3.8/actions/quickstart"
        ),
    }
    assert pages.page_map["/en/enterprise-server@3.8/actions/quickstart"] is page
    assert pages.batch_errors == ()


def test_parent_product_is_read_from_product_index(content_tree: ContentTree) -> None:
    content_tree.page("index.md", title="Home")
    content_tree.page("labs/index.md", title="Labs", wip=True)
    content_tree.page("labs/try-it.md", title="Try it")
    pages = load_pages(content_tree.config())

    page = pages.get("labs/try-it.md")
    assert page is not None
    assert page.parent_product is not None
    assert page.parent_product.id == "labs"
    assert page.parent_product.name == "Labs"
    assert page.parent_product.href == "/en/labs"
    assert page.parent_product.wip is True
    root = pages.get("index.md")
    assert root is not None
    assert root.parent_product is None


def test_translated_pages_link_to_product_in_their_language(
    content_tree: ContentTree,
) -> None:
    content_tree.page("actions/index.md", title="Actions", hidden=True)
    content_tree.page("actions/foo.md", title="Foo")
    content_tree.page("actions/foo.md", title="Foo", language="ja")
    pages = load_pages(content_tree.config(languages=("en", "ja")))

    english = pages.get("actions/foo.md", "en")
    japanese = pages.get("actions/foo.md", "ja")
    assert english is not None
    assert japanese is not None
    assert english.parent_product is not None
    assert japanese.parent_product is not None
    assert english.parent_product.href == "/en/actions"
    assert japanese.parent_product.href == "/ja/actions"
    assert japanese.parent_product.name == "Actions"
    assert japanese.parent_product.hidden is True


def test_discovery_order_is_stable_with_translations_after_default(
    content_tree: ContentTree,
) -> None:
    for name in ("zeta", "alpha", "mid/beta"):
        content_tree.page(f"{name}.md")
        content_tree.page(f"{name}.md", language="ja")
    content_tree.write("README.md", "# Not a page\n")
    pages = load_pages(content_tree.config(languages=("en", "ja"), workers=4))

    assert [(p.language_code, p.relative_path) for p in pages] == [
        ("en", "alpha.md"),
        ("en", "mid/beta.md"),
        ("en", "zeta.md"),
        ("ja", "alpha.md"),
        ("ja", "mid/beta.md"),
        ("ja", "zeta.md"),
    ]
    assert [p.relative_path for p in pages.by_language("ja")][0] == "alpha.md"
    assert pages.languages == frozenset({"en", "ja"})


def test_missing_translation_tree_is_skipped(
    content_tree: ContentTree, caplog: pytest.LogCaptureFixture
) -> None:
    content_tree.page("index.md")
    pages = load_pages(content_tree.config(languages=("en", "de")))
    assert [p.language_code for p in pages] == ["en"]
    assert "skipping language de" in caplog.text


def test_invalid_file_is_recorded_without_aborting(content_tree: ContentTree) -> None:
    content_tree.page("good.md")
    content_tree.write("broken.md", "---\ntitle: [unclosed\n---\nBody\n")
    content_tree.page("untitled.md", title="", versions={"fpt": "*"})
    pages = load_pages(content_tree.config())

    assert len(pages) == 3
    broken = pages.get("broken.md")
    assert broken is not None
    assert broken.permalinks == ()
    assert broken.has_fatal_error
    assert broken.frontmatter_errors[0].reason == "yaml"
    untitled = pages.get("untitled.md")
    assert untitled is not None
    assert untitled.frontmatter is None
    assert untitled.has_fatal_error
    good = pages.get("good.md")
    assert good is not None
    assert good.permalinks
    assert _kinds(pages) == [], "pages with a fatal error explain their permalinks"


def test_empty_version_result_is_a_fatal_page_error(content_tree: ContentTree) -> None:
    content_tree.page("gone.md", versions={"ghae": "*"})
    pages = load_pages(content_tree.config())
    (page,) = pages
    assert page.permalinks == ()
    assert page.version_warnings == ("Unknown product line 'ghae' was dropped.",)
    (error,) = page.frontmatter_errors
    assert error.reason == "versions"
    assert error.fatal


def test_unquoted_numeric_releases_resolve(content_tree: ContentTree) -> None:
    content_tree.page("listed.md", versions={"ghes": [3.9]})
    content_tree.page("ranged.md", versions={"ghes": 3.8})
    pages = load_pages(content_tree.config())

    listed = pages.get("listed.md")
    assert listed is not None
    assert listed.frontmatter_errors == ()
    assert listed.applicable_versions == ("enterprise-server@3.9",)
    assert [p.href for p in listed.permalinks] == [
        "/en/enterprise-server@3.9/listed"
    ]
    ranged = pages.get("ranged.md")
    assert ranged is not None
    assert ranged.applicable_versions == ("enterprise-server@3.8",)


def test_non_fatal_errors_keep_permalinks(content_tree: ContentTree) -> None:
    content_tree.page("page.md", versions={"fpt": "*", "ghes": ["3.1"]}, colour="red")
    (page,) = load_pages(content_tree.config())
    assert [p.href for p in page.permalinks] == ["/en/page"]
    assert sorted(e.reason for e in page.frontmatter_errors) == [
        "unknown-key",
        "versions",
    ]
    assert not page.has_fatal_error


def test_duplicate_redirects_and_validation_errors_are_both_reported(
    content_tree: ContentTree,
) -> None:
    content_tree.page("one.md", redirect_from=["/dup"], colour="red")
    content_tree.page("two.md", redirect_from=["/dup"])
    pages = load_pages(content_tree.config())

    assert _kinds(pages) == ["duplicate-redirect"]
    (duplicate,) = pages.batch_errors
    assert [path.rsplit("/", 1)[-1] for path in duplicate.files] == ["one.md", "two.md"]
    one = pages.get("one.md")
    assert one is not None
    assert one.frontmatter_errors, "validation errors stay on the page"
    assert pages.redirect_map == {"/dup": "/en/one"}


def test_strict_load_raises_with_batch_errors(content_tree: ContentTree) -> None:
    content_tree.page("one.md", redirect_from=["/dup"])
    content_tree.page("two.md", redirect_from=["/dup"])
    with pytest.raises(ContentValidationError) as excinfo:
        load_pages(content_tree.config(), strict=True)
    assert [failure.kind for failure in excinfo.value.failures] == [
        "duplicate-redirect"
    ]
    assert "across 2 file(s)" in str(excinfo.value)


def test_too_few_pages_is_fatal(content_tree: ContentTree) -> None:
    content_tree.page("only.md")
    with pytest.raises(ContentLoadError, match="expected at least 5"):
        load_pages(content_tree.config(min_pages=5))


def test_missing_content_tree_is_fatal(content_tree: ContentTree) -> None:
    config = content_tree.config()
    content_tree.content_dir.rmdir()
    with pytest.raises(ContentTreeError):
        load_pages(config)


def test_missing_registry_is_fatal(content_tree: ContentTree) -> None:
    content_tree.page("index.md")
    config = content_tree.config()
    config.versions_file.unlink()
    with pytest.raises(VersionRegistryError):
        load_pages(config)


def test_worker_exception_becomes_fatal_page_error(
    content_tree: ContentTree, mocker: MockerFixture
) -> None:
    content_tree.page("a.md")
    content_tree.page("b.md")
    original = build_page

    def _flaky(source, resolver, *, products=None):
        if source.relative_path == "b.md":
            raise RuntimeError("boom")
        return original(source, resolver, products=products)

    mocker.patch("docs_pages.loader.build_page", side_effect=_flaky)
    pages = load_pages(content_tree.config())

    failed = pages.get("b.md")
    assert failed is not None
    assert failed.permalinks == ()
    assert failed.frontmatter_errors[0].message == "Unable to load page: boom"
    assert failed.frontmatter_errors[0].fatal
    assert pages.batch_errors == ()


def test_content_store_loads_only_when_asked(
    content_tree: ContentTree, mocker: MockerFixture
) -> None:
    content_tree.page("index.md")
    store = ContentStore(content_tree.config())
    assert not store.initialized
    with pytest.raises(RuntimeError, match="initialize"):
        _ = store.pages

    spy = mocker.spy(ContentStore, "initialize")
    first = store.initialize()
    assert store.initialize() is first
    assert store.pages is first
    assert spy.call_count == 2

    content_tree.page("second.md")
    assert len(store.pages) == 1, "no implicit reload"
    assert len(store.reload()) == 2
