"""Typed dataclasses describing docs_pages site configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True, frozen=True)
class LanguageConfig:
    """A registered content language and where its tree lives."""

    code: str
    name: str
    native_name: str
    content_dir: Path
    wip: bool = False


@dc.dataclass(slots=True, frozen=True)
class SiteConfig:
    """Resolved paths and limits for one content load."""

    root: Path
    content_dir: Path
    data_dir: Path
    translations_dir: Path
    versions_file: Path
    features_dir: Path
    learning_tracks_dir: Path
    languages: dict[str, LanguageConfig]
    default_language: str = "en"
    min_pages: int = 1
    workers: int = 4

    @property
    def language_codes(self) -> tuple[str, ...]:
        """Return registered codes with the default language first."""
        others = [code for code in self.languages if code != self.default_language]
        return (self.default_language, *others)

    def get_language(self, code: str) -> LanguageConfig:
        """Return the registered language or raise with the known codes."""
        try:
            return self.languages[code]
        except KeyError as exc:
            available = ", ".join(sorted(self.languages))
            msg = f"Unknown language '{code}'. Known languages: {available}"
            raise KeyError(msg) from exc


__all__ = ["LanguageConfig", "SiteConfig", "SiteConfigError"]
