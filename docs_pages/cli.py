"""Cyclopts CLI entrypoint for validating and querying the content tree.

The ``docs-pages`` console script defined here loads every content page and
either runs the corpus checks, lists the pages a search indexer should
scrape, or prints the default-language redirect table. Typical usage is
``docs-pages check`` in CI to keep the corpus valid.

Examples
--------
Run every corpus check for the default configuration:

>>> from docs_pages.cli import main
>>> main()  # doctest: +SKIP

List indexable pages under one product:

>>> from docs_pages.cli import app
>>> app(["indexable", "--match", "actions/"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .checks import run_all_checks
from .config import load_site_config
from .indexable import find_indexable_pages
from .learning_tracks import load_learning_tracks
from .loader import load_pages
from .versions import VersionResolver, load_version_registry

DEFAULT_CONFIG = Path("config/site.yaml")

app = App(name="docs-pages", config=cyclopts.config.Env("DOCS_PAGES_", command=False))  # type: ignore[unknown-argument]

ConfigOption = typ.Annotated[
    Path, Parameter(help="Path to site config", env_var="DOCS_PAGES_CONFIG")
]
VerboseOption = typ.Annotated[bool, Parameter(help="Log progress to stderr")]


def _configure_logging(verbose: bool) -> None:
    """Send library logging to stderr at INFO (verbose) or WARNING."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(help="Load every page and run the corpus checks.")
def check(
    *, config: ConfigOption = DEFAULT_CONFIG, verbose: VerboseOption = False
) -> None:
    """Run every corpus check and exit non-zero when any fails.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``DOCS_PAGES_CONFIG``).
    verbose : bool, optional
        Log load progress and counts.

    Raises
    ------
    SystemExit
        With status 1 when at least one check reports failures.
    """
    _configure_logging(verbose)
    site_config = load_site_config(config)
    registry = load_version_registry(
        site_config.versions_file, site_config.features_dir
    )
    pages = load_pages(site_config, registry=registry)
    tracks = load_learning_tracks(
        site_config.learning_tracks_dir, VersionResolver(registry)
    )

    failed = False
    for result in run_all_checks(pages, tracks):
        if result.ok:
            print(f"ok   {result.name}")
            continue
        failed = True
        print(f"FAIL {result.name}")
        print(result.report())
    if failed:
        raise SystemExit(1)


@app.command(help="List pages a search indexer should scrape.")
def indexable(
    *,
    match: typ.Annotated[
        str, Parameter(help="Only keep paths containing this text")
    ] = "",
    config: ConfigOption = DEFAULT_CONFIG,
    verbose: VerboseOption = False,
) -> None:
    """Print the language and relative path of every indexable page."""
    _configure_logging(verbose)
    pages = load_pages(load_site_config(config))
    for page in find_indexable_pages(pages, match):
        print(f"{page.language_code}\t{page.relative_path}")


@app.command(help="Print the default-language redirect table.")
def redirects(
    *, config: ConfigOption = DEFAULT_CONFIG, verbose: VerboseOption = False
) -> None:
    """Print ``path -> target`` for every default-language redirect."""
    _configure_logging(verbose)
    pages = load_pages(load_site_config(config))
    for path, target in sorted(pages.redirect_map.items()):
        print(f"{path} -> {target}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``docs-pages`` command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
