"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .._constants import DEFAULT_LANGUAGE
from .helpers import (
    DEFAULT_CONTENT_DIR,
    DEFAULT_DATA_DIR,
    DEFAULT_TRANSLATIONS_DIR,
    DEFAULT_WORKERS,
    _build_language_config,
    _optional_str,
    _positive_int,
    _resolve_path,
)
from .models import LanguageConfig, SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the content tree and languages.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML site configuration file (for example,
        ``config/site.yaml``). Relative paths inside the file resolve against
        the directory holding it.

    Returns
    -------
    SiteConfig
        Parsed configuration with absolute content, data, and translation
        paths plus the registered languages.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If required sections are missing or invalid (for example, the default
        language is not registered).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from docs_pages.config import load_site_config
    >>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
    >>> config.language_codes[0]  # doctest: +SKIP
    'en'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    defaults = raw.get("defaults", {}) or {}
    if not isinstance(defaults, dict):
        msg = "'defaults' must be a mapping."
        raise SiteConfigError(msg)

    root = path.resolve().parent
    content_dir = _resolve_path(
        root, defaults.get("content_dir"), root / DEFAULT_CONTENT_DIR
    )
    data_dir = _resolve_path(root, defaults.get("data_dir"), root / DEFAULT_DATA_DIR)
    translations_dir = _resolve_path(
        root, defaults.get("translations_dir"), root / DEFAULT_TRANSLATIONS_DIR
    )
    default_language = (
        _optional_str(defaults.get("default_language")) or DEFAULT_LANGUAGE
    )

    languages = _build_languages(
        raw.get("languages"),
        root=root,
        default_language=default_language,
        content_dir=content_dir,
        translations_dir=translations_dir,
    )

    return SiteConfig(
        root=root,
        content_dir=content_dir,
        data_dir=data_dir,
        translations_dir=translations_dir,
        versions_file=_resolve_path(
            root, defaults.get("versions_file"), data_dir / "versions.yaml"
        ),
        features_dir=_resolve_path(
            root, defaults.get("features_dir"), data_dir / "features"
        ),
        learning_tracks_dir=_resolve_path(
            root, defaults.get("learning_tracks_dir"), data_dir / "learning-tracks"
        ),
        languages=languages,
        default_language=default_language,
        min_pages=_positive_int(defaults.get("min_pages"), key="min_pages", default=1),
        workers=max(
            1,
            _positive_int(
                defaults.get("workers"), key="workers", default=DEFAULT_WORKERS
            ),
        ),
    )


def _build_languages(
    languages_raw: object,
    *,
    root: Path,
    default_language: str,
    content_dir: Path,
    translations_dir: Path,
) -> dict[str, LanguageConfig]:
    """Build the registered language table, requiring the default language."""
    match languages_raw:
        case None:
            languages_raw = {default_language: {}}
        case dict():
            pass
        case list():
            languages_raw = {str(code): {} for code in languages_raw}
        case _:
            msg = "'languages' must be a mapping or a list of language codes."
            raise SiteConfigError(msg)

    languages: dict[str, LanguageConfig] = {}
    for code, payload in languages_raw.items():
        if payload is not None and not isinstance(payload, dict):
            msg = f"Language '{code}' must map to a mapping of settings."
            raise SiteConfigError(msg)
        languages[str(code)] = _build_language_config(
            str(code),
            payload,
            root=root,
            default_language=default_language,
            content_dir=content_dir,
            translations_dir=translations_dir,
        )

    if default_language not in languages:
        msg = f"Default language '{default_language}' is not a registered language."
        raise SiteConfigError(msg)
    return languages


__all__ = ["load_site_config"]
