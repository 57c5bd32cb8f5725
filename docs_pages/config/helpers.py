"""Utility helpers shared by the docs_pages configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import LanguageConfig, SiteConfigError

DEFAULT_CONTENT_DIR = "content"
DEFAULT_DATA_DIR = "data"
DEFAULT_TRANSLATIONS_DIR = "translations"
DEFAULT_WORKERS = 4


def _resolve_path(root: Path, value: object | None, fallback: Path) -> Path:
    """Resolve ``value`` against ``root``; use ``fallback`` when unset."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return fallback
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else root / path


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _positive_int(value: object | None, *, key: str, default: int) -> int:
    """Coerce ``value`` to a non-negative integer or raise SiteConfigError."""
    if value is None:
        return default
    match value:
        case bool():
            pass
        case int() if value >= 0:
            return value
        case str() if value.strip().isdigit():
            return int(value.strip())
    msg = f"'{key}' must be a non-negative integer, got {value!r}."
    raise SiteConfigError(msg)


def _build_language_config(
    code: str,
    payload: typ.Mapping[str, typ.Any] | None,
    *,
    root: Path,
    default_language: str,
    content_dir: Path,
    translations_dir: Path,
) -> LanguageConfig:
    """Build a LanguageConfig, placing translations under ``translations_dir``."""
    payload = payload or {}
    if code == default_language:
        fallback = content_dir
    else:
        fallback = translations_dir / code / "content"
    return LanguageConfig(
        code=code,
        name=_optional_str(payload.get("name")) or code,
        native_name=_optional_str(payload.get("native_name"))
        or _optional_str(payload.get("name"))
        or code,
        content_dir=_resolve_path(root, payload.get("content_dir"), fallback),
        wip=bool(payload.get("wip", False)),
    )


__all__ = [
    "DEFAULT_CONTENT_DIR",
    "DEFAULT_DATA_DIR",
    "DEFAULT_TRANSLATIONS_DIR",
    "DEFAULT_WORKERS",
    "_build_language_config",
    "_optional_str",
    "_positive_int",
    "_resolve_path",
]
