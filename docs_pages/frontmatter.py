r"""Parse and validate the YAML frontmatter block of a content file.

Frontmatter is the ``---`` fenced YAML mapping at the top of every Markdown
file. :func:`split_frontmatter` separates it from the body and
:func:`validate_frontmatter` checks it against the :class:`Frontmatter`
schema, collecting every problem as a :class:`FrontmatterError` instead of
raising, so one malformed file never stops a whole load.

Example
-------
>>> text = "---\ntitle: Hello\nversions:\n  fpt: '*'\n---\nBody"
>>> data, body = split_frontmatter(text)
>>> matter, errors = validate_frontmatter(data, "hello.md")
>>> matter.title, errors
('Hello', [])
"""

from __future__ import annotations

import re
import typing as typ

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

FRONTMATTER_PATTERN = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)

ContentType = typ.Literal[
    "overview", "quick_start", "tutorial", "how_to", "reference", "rai"
]
Layout = typ.Literal[
    "inline",
    "product-landing",
    "product-guides",
    "release-notes",
    "category-landing",
    "journey-landing",
]
Platform = typ.Literal["mac", "windows", "linux"]
Release = str | int | float
# '*', 'latest', a range, a single numeric release, or an explicit list.
VersionToken = Release | list[Release]


class FrontmatterParseError(ValueError):
    """Raised when the frontmatter block is not a parsable YAML mapping."""


class FrontmatterError(msgspec.Struct, frozen=True, kw_only=True):
    """One validation failure for one file.

    Attributes
    ----------
    filepath : str
        Source file the error belongs to.
    message : str
        Human-readable description of the problem.
    reason : str
        Short machine-readable category (``yaml``, ``unknown-key``,
        ``missing-key``, ``type``, ``value``, ``versions``, ``load``).
    fatal : bool
        True when the error prevents the page from having permalinks.
    """

    filepath: str
    message: str
    reason: str = "value"
    fatal: bool = False


class Frontmatter(
    msgspec.Struct, frozen=True, kw_only=True, forbid_unknown_fields=True
):
    """Recognized frontmatter keys with their types and defaults."""

    title: str
    versions: dict[str, VersionToken]
    short_title: str | None = msgspec.field(default=None, name="shortTitle")
    intro: str | None = None
    permissions: str | None = None
    product: str | None = None
    redirect_from: tuple[str, ...] = ()
    hidden: bool = False
    wip: bool = False
    allow_title_to_differ_from_filename: bool = msgspec.field(
        default=False, name="allowTitleToDifferFromFilename"
    )
    children: tuple[str, ...] = ()
    topics: tuple[str, ...] = ()
    type: ContentType | None = None
    layout: Layout | None = None
    learning_tracks: tuple[str, ...] = msgspec.field(default=(), name="learningTracks")
    default_platform: Platform | None = msgspec.field(
        default=None, name="defaultPlatform"
    )
    default_tool: str | None = msgspec.field(default=None, name="defaultTool")


_FIELDS = {info.encode_name: info for info in msgspec.structs.fields(Frontmatter)}
_FATAL_KEYS = frozenset({"title", "versions"})
_PATH_LIST_KEYS = ("redirect_from", "children")


def split_frontmatter(raw: str) -> tuple[dict[str, typ.Any], str]:
    """Return the parsed frontmatter mapping and the remaining body.

    Files without a frontmatter block yield an empty mapping and the full
    text as body.

    Raises
    ------
    FrontmatterParseError
        If the block is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_PATTERN.match(raw)
    if not match:
        return {}, raw
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(match.group(1))
    except YAMLError as exc:
        msg = f"Invalid YAML in frontmatter: {exc}"
        raise FrontmatterParseError(msg) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        msg = "Frontmatter must be a YAML mapping."
        raise FrontmatterParseError(msg)
    return dict(loaded), raw[match.end() :]


def validate_frontmatter(
    data: typ.Mapping[str, typ.Any], filepath: str
) -> tuple[Frontmatter | None, list[FrontmatterError]]:
    """Check ``data`` against :class:`Frontmatter`, collecting every error.

    Parameters
    ----------
    data : Mapping[str, Any]
        Parsed frontmatter mapping.
    filepath : str
        Path recorded on each error.

    Returns
    -------
    tuple[Frontmatter or None, list[FrontmatterError]]
        The typed frontmatter (built from the valid fields whenever the
        required ones are valid) and the errors found. The frontmatter is
        ``None`` only when ``title`` or ``versions`` is missing or invalid.
    """
    errors: list[FrontmatterError] = []
    values: dict[str, typ.Any] = {}

    for key, value in data.items():
        info = _FIELDS.get(str(key))
        if info is None:
            errors.append(
                FrontmatterError(
                    filepath=filepath,
                    message=f"Unknown frontmatter key '{key}'.",
                    reason="unknown-key",
                )
            )
            continue
        if key == "redirect_from" and isinstance(value, str):
            value = [value]
        try:
            values[info.name] = msgspec.convert(value, type=info.type)
        except msgspec.ValidationError as exc:
            errors.append(
                FrontmatterError(
                    filepath=filepath,
                    message=f"'{key}': {exc}",
                    reason="type",
                    fatal=key in _FATAL_KEYS,
                )
            )

    for key in sorted(_FATAL_KEYS - set(map(str, data))):
        errors.append(
            FrontmatterError(
                filepath=filepath,
                message=f"Missing required frontmatter key '{key}'.",
                reason="missing-key",
                fatal=True,
            )
        )

    errors.extend(_check_values(values, filepath))
    if any(error.fatal for error in errors):
        return None, errors
    return Frontmatter(**values), errors


def _check_values(
    values: typ.Mapping[str, typ.Any], filepath: str
) -> list[FrontmatterError]:
    """Apply value rules the type system cannot express."""
    errors: list[FrontmatterError] = []
    title = values.get("title")
    if title is not None and not title.strip():
        errors.append(
            FrontmatterError(
                filepath=filepath, message="'title' must not be empty.", fatal=True
            )
        )
    versions = values.get("versions")
    if versions is not None and not versions:
        errors.append(
            FrontmatterError(
                filepath=filepath,
                message="'versions' must name at least one product.",
                reason="versions",
                fatal=True,
            )
        )
    for key in _PATH_LIST_KEYS:
        for entry in values.get(key, ()):
            if not entry.startswith("/"):
                errors.append(
                    FrontmatterError(
                        filepath=filepath,
                        message=f"'{key}' entry '{entry}' must start with '/'.",
                    )
                )
    return errors


__all__ = [
    "FRONTMATTER_PATTERN",
    "Frontmatter",
    "FrontmatterError",
    "FrontmatterParseError",
    "split_frontmatter",
    "validate_frontmatter",
]
