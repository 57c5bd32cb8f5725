"""Exceptions raised while loading the documentation content tree.

Per-file problems never raise; they are recorded on the page as
:class:`~docs_pages.frontmatter.FrontmatterError` values. The classes here
cover conditions that stop a load outright, plus the opt-in strict mode that
turns cross-file failures into an exception.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    import collections.abc as cabc

    from .loader import BatchError


class ContentLoadError(RuntimeError):
    """Raised when the content tree cannot be loaded at all."""


class ContentTreeError(ContentLoadError):
    """Raised when the content directory is missing or unreadable."""


class VersionRegistryError(ContentLoadError):
    """Raised when the version registry is missing or malformed."""


class ContentValidationError(ContentLoadError):
    """Raised by strict loads when cross-file invariants are violated."""

    def __init__(self, failures: cabc.Sequence[BatchError]) -> None:
        self.failures = tuple(failures)
        files = sorted({path for failure in self.failures for path in failure.files})
        msg = (
            f"{len(self.failures)} content validation failure(s) across "
            f"{len(files)} file(s)."
        )
        super().__init__(msg)


__all__ = [
    "ContentLoadError",
    "ContentTreeError",
    "ContentValidationError",
    "VersionRegistryError",
]
