"""Shared pytest-bdd steps for content loading scenarios.

Scenarios describe pages by path, redirect, and version token; the steps here
collect those declarations in ``scenario_state``, write them with the
``content_tree`` fixture when the content is loaded, and expose the loaded
collection to the module-specific ``then`` steps.
"""

from __future__ import annotations

import typing as typ

import pytest
from pytest_bdd import given, parsers, then, when

from docs_pages.loader import load_pages
from docs_pages.permalinks import find_duplicate_redirects

if typ.TYPE_CHECKING:
    from conftest import ContentTree

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {"pages": {}}


@given("a version registry with Enterprise Server releases 3.8 and 3.9")
def given_registry(content_tree: ContentTree, scenario_state: ScenarioState) -> None:
    """Record the tree whose ``data/versions.yaml`` lists 3.8 and 3.9."""
    registry = (content_tree.data_dir / "versions.yaml").read_text(encoding="utf-8")
    assert '["3.8", "3.9"]' in registry, "expected the standard test registry"
    scenario_state["tree"] = content_tree


@given(
    parsers.parse(
        'a page "{path}" with redirect_from "{redirect}" '
        'for "{plan}" versions "{token}"'
    )
)
def given_page(
    scenario_state: ScenarioState, path: str, redirect: str, plan: str, token: str
) -> None:
    """Declare a page published under one product line with one redirect."""
    scenario_state["pages"][path] = {
        "versions": {plan: token},
        "redirect_from": [redirect],
    }


@given(parsers.parse('the page "{path}" declares "{redirect}" again'))
def given_repeated_redirect(
    scenario_state: ScenarioState, path: str, redirect: str
) -> None:
    """Append a second copy of ``redirect`` to an already declared page."""
    scenario_state["pages"][path]["redirect_from"].append(redirect)


@when("the content is loaded")
def when_content_loaded(scenario_state: ScenarioState) -> None:
    """Write every declared page and run the loader over the tree."""
    tree: ContentTree = scenario_state["tree"]
    for path, frontmatter in scenario_state["pages"].items():
        tree.page(path, **frontmatter)
    scenario_state["collection"] = load_pages(tree.config())


@then("no duplicate redirect is reported")
def then_no_duplicates(scenario_state: ScenarioState) -> None:
    """Assert neither the reduce step nor the batch errors found a collision."""
    collection = scenario_state["collection"]
    assert find_duplicate_redirects(collection) == []
    assert collection.batch_errors == ()
