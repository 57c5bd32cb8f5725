"""Shared fixtures for building throwaway content trees.

Most tests need a small site on disk: a ``content/`` tree of Markdown pages,
a ``data/versions.yaml`` registry, and a ``site.yaml`` pointing at both. The
:class:`ContentTree` builder writes those files under ``tmp_path`` so each
test describes only the pages it cares about.

Usage
-----
Request the ``content_tree`` fixture, add pages with
:meth:`ContentTree.page`, then call :meth:`ContentTree.config` to obtain a
loaded :class:`~docs_pages.config.SiteConfig`.
"""

from __future__ import annotations

import io
import typing as typ
from pathlib import Path

import pytest
from ruamel.yaml import YAML

from docs_pages.config import load_site_config
from docs_pages.versions import VersionPlan, VersionRegistry

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from docs_pages.config import SiteConfig

VERSIONS_YAML = """\
default: free-pro-team@latest
plans:
  fpt:
    plan: free-pro-team
    name: Free, Pro, & Team
    releases: [latest]
  ghec:
    plan: enterprise-cloud
    name: Enterprise Cloud
    releases: [latest]
  ghes:
    plan: enterprise-server
    name: Enterprise Server
    releases: ["3.8", "3.9"]
"""


def dump_yaml(data: typ.Any) -> str:
    """Serialise ``data`` as block-style YAML."""
    dumper = YAML(typ="safe")
    dumper.default_flow_style = False
    buffer = io.StringIO()
    dumper.dump(data, buffer)
    return buffer.getvalue()


class ContentTree:
    """Builder for a throwaway site rooted at ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.content_dir = root / "content"
        self.data_dir = root / "data"
        self.translations_dir = root / "translations"
        self.content_dir.mkdir(parents=True)
        self.data_dir.mkdir()
        self.write_data("versions.yaml", VERSIONS_YAML)

    def language_dir(self, language: str) -> Path:
        """Return the content tree for ``language``."""
        if language == "en":
            return self.content_dir
        return self.translations_dir / language / "content"

    def write(self, relative_path: str, text: str, *, language: str = "en") -> Path:
        """Write raw ``text`` to a content file and return its path."""
        path = self.language_dir(language) / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def page(
        self,
        relative_path: str,
        *,
        body: str = "",
        language: str = "en",
        **frontmatter: typ.Any,
    ) -> Path:
        """Write a page whose title defaults to its filename.

        ``versions`` defaults to ``{"fpt": "*"}``.
        """
        stem = Path(relative_path).stem
        frontmatter.setdefault("title", stem.replace("-", " ").capitalize())
        frontmatter.setdefault("versions", {"fpt": "*"})
        text = f"---\n{dump_yaml(frontmatter)}---\n{body}"
        return self.write(relative_path, text, language=language)

    def write_data(self, relative_path: str, text: str) -> Path:
        """Write a file under ``data/`` and return its path."""
        path = self.data_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def config(
        self,
        *,
        languages: cabc.Sequence[str] = ("en",),
        min_pages: int = 1,
        workers: int = 2,
    ) -> SiteConfig:
        """Write ``site.yaml`` for this tree and load it."""
        payload = {
            "defaults": {
                "content_dir": "content",
                "data_dir": "data",
                "translations_dir": "translations",
                "min_pages": min_pages,
                "workers": workers,
            },
            "languages": {code: {"name": code.upper()} for code in languages},
        }
        path = self.root / "site.yaml"
        path.write_text(dump_yaml(payload), encoding="utf-8")
        return load_site_config(path)


@pytest.fixture
def content_tree(tmp_path: Path) -> ContentTree:
    """Return an empty site with the standard test version registry."""
    return ContentTree(tmp_path / "site")


@pytest.fixture
def registry() -> VersionRegistry:
    """Return an in-memory registry with two Enterprise Server releases."""
    return VersionRegistry(
        plans={
            "fpt": VersionPlan("fpt", "free-pro-team", "Free", ("latest",)),
            "ghec": VersionPlan("ghec", "enterprise-cloud", "Cloud", ("latest",)),
            "ghes": VersionPlan("ghes", "enterprise-server", "Server", ("3.9", "3.8")),
        },
        features={"larger-runners": {"fpt": "*", "ghec": "*"}},
    )
