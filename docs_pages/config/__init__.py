"""Load and validate site configuration YAML for docs_pages content loads.

This subpackage parses the project's ``site.yaml`` file, resolves the content,
data, and translation directories relative to it, and produces frozen
dataclasses (:class:`SiteConfig`, :class:`LanguageConfig`) that the page
loader consumes. The primary entry point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from docs_pages.config import load_site_config
>>> site = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> site.get_language("en").content_dir.name  # doctest: +SKIP
'content'
"""

from .loader import load_site_config
from .models import LanguageConfig, SiteConfig, SiteConfigError

__all__ = [
    "LanguageConfig",
    "SiteConfig",
    "SiteConfigError",
    "load_site_config",
]
