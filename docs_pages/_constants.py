"""Common literal values used across docs_pages.

These constants keep filenames, language codes, and version identifiers
centralized so the loader, checks, and tests can import the same values
without drifting. Intended for internal use within the docs_pages package.

Examples
--------
>>> from docs_pages import _constants
>>> _constants.DEFAULT_VERSION
'free-pro-team@latest'
>>> _constants.VERSION_ID_TEMPLATE.format(plan="enterprise-server", release="3.9")
'enterprise-server@3.9'
"""

DEFAULT_LANGUAGE = "en"
DEFAULT_VERSION = "free-pro-team@latest"
VERSION_ID_TEMPLATE = "{plan}@{release}"
LATEST_RELEASE = "latest"

CONTENT_SUFFIX = ".md"
INDEX_FILENAME = "index.md"
IGNORED_FILENAMES = frozenset({"README.md"})
FEATURE_KEY = "feature"
