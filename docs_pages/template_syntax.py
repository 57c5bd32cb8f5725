"""Check that Liquid-style markup in content files parses.

Content bodies use Liquid syntax plus a handful of docs-specific tags
(``{% data %}``, ``{% ifversion %}``, ``{% octicon %}``, platform and
callout blocks). The checker parses the markup with a Jinja2 environment:
Liquid spellings that Jinja2 lacks are rewritten in a preprocessing step
and the custom tags are registered as extensions. Only syntax is checked;
nothing is rendered.

Example
-------
>>> tree = parse_template("{% ifversion ghes %}Server{% else %}Cloud{% endif %}")
>>> type(tree).__name__
'Template'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import functools
import re
import typing as typ

from jinja2 import Environment, TemplateSyntaxError, nodes
from jinja2.ext import Extension

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from jinja2.parser import Parser

    from .page import Page

TEMPLATE_PATTERN = re.compile(r"\{[{%]")
SINGLE_TAGS = frozenset({"data", "octicon", "indented_data_reference"})
BLOCK_TAGS = frozenset(
    {
        "note",
        "tip",
        "warning",
        "caution",
        "important",
        "mac",
        "windows",
        "linux",
        "webui",
        "cli",
        "desktop",
        "vscode",
        "codespaces",
        "jetbrains",
        "curl",
        "api",
        "rowheaders",
        "prompt",
    }
)

_COMMENT_BLOCK = re.compile(
    r"\{%-?\s*comment\s*-?%\}.*?\{%-?\s*endcomment\s*-?%\}", re.DOTALL
)
_TAG_REWRITES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(\{%-?\s*)elsif\b"), r"\1elif"),
    (re.compile(r"(\{%-?\s*)assign\b"), r"\1set"),
    (re.compile(r"(\{%-?\s*)capture\b"), r"\1set"),
    (re.compile(r"(\{%-?\s*)endcapture\b"), r"\1endset"),
    (re.compile(r"(\{%-?\s*)unless\b"), r"\1if not"),
    (re.compile(r"(\{%-?\s*)endunless\b"), r"\1endif"),
)
_FOR_TAG = re.compile(r"(\{%-?\s*for\s.*?)(-?%\})", re.DOTALL)
_FOR_PARAMS = re.compile(r"\s+(?:(?:limit|offset)\s*:\s*[^\s%]+|reversed\b)")
_TAG = re.compile(r"\{[{%].*?[%}]\}", re.DOTALL)
_FILTER_ARGS = re.compile(r"\|\s*(\w+)\s*:\s*([^|}%]+?)(?=\s*(?:\||-?[}%]\}))")


@dc.dataclass(slots=True, frozen=True)
class TemplateIssue:
    """A page whose markup failed to parse."""

    filename: str
    error: str


def _skip_to_block_end(parser: Parser) -> None:
    """Consume the remaining tokens of the current tag."""
    while not parser.stream.current.test_any("block_end", "eof"):
        next(parser.stream)


class SingleTagExtension(Extension):
    """Tags with opaque arguments and no body, such as ``{% data x.y %}``."""

    tags = set(SINGLE_TAGS)

    def parse(self, parser: Parser) -> list[nodes.Node]:
        next(parser.stream)
        _skip_to_block_end(parser)
        return []


class BlockTagExtension(Extension):
    """Body tags closed by ``end<tag>``, such as ``{% note %}...{% endnote %}``."""

    tags = set(BLOCK_TAGS)

    def parse(self, parser: Parser) -> list[nodes.Node]:
        token = next(parser.stream)
        _skip_to_block_end(parser)
        return parser.parse_statements((f"name:end{token.value}",), drop_needle=True)


def _parse_branches(parser: Parser, branch: str, end: str) -> list[nodes.Node]:
    """Parse a body split by ``branch`` tags and an optional ``else`` up to ``end``."""
    _skip_to_block_end(parser)
    needles = (f"name:{branch}", "name:else", f"name:{end}")
    body = parser.parse_statements(needles)
    while True:
        token = next(parser.stream)
        if token.test(f"name:{branch}"):
            _skip_to_block_end(parser)
            body.extend(parser.parse_statements(needles))
        elif token.test("name:else"):
            body.extend(parser.parse_statements((f"name:{end}",), drop_needle=True))
            return body
        else:
            return body


class VersionConditionExtension(Extension):
    """``{% ifversion %}`` blocks with ``elif``/``else`` branches and ``endif``."""

    tags = {"ifversion"}

    def parse(self, parser: Parser) -> list[nodes.Node]:
        next(parser.stream)
        return _parse_branches(parser, "elif", "endif")


class CaseExtension(Extension):
    """Liquid ``{% case %}`` with ``when``/``else`` branches and ``endcase``."""

    tags = {"case"}

    def parse(self, parser: Parser) -> list[nodes.Node]:
        next(parser.stream)
        return _parse_branches(parser, "when", "endcase")


def _rewrite_tag(tag: str) -> str:
    """Turn Liquid operators and `filter: args` calls into Jinja2 syntax."""
    tag = tag.replace(" contains ", " in ")
    return _FILTER_ARGS.sub(r"| \1(\2)", tag)


class LiquidCompatExtension(Extension):
    """Rewrite Liquid spellings into their Jinja2 equivalents before lexing."""

    def preprocess(
        self, source: str, name: str | None, filename: str | None = None
    ) -> str:
        source = _COMMENT_BLOCK.sub("", source)
        for pattern, replacement in _TAG_REWRITES:
            source = pattern.sub(replacement, source)
        source = _FOR_TAG.sub(
            lambda match: _FOR_PARAMS.sub("", match.group(1)) + match.group(2), source
        )
        return _TAG.sub(lambda match: _rewrite_tag(match.group(0)), source)


@functools.cache
def create_environment() -> Environment:
    """Return the shared Jinja2 environment used for syntax checks."""
    return Environment(
        extensions=[
            LiquidCompatExtension,
            SingleTagExtension,
            BlockTagExtension,
            VersionConditionExtension,
            CaseExtension,
        ],
        autoescape=False,
        comment_start_string="{##",
        comment_end_string="##}",
    )


def has_template_syntax(text: str) -> bool:
    """Return True when ``text`` contains ``{{`` or ``{%``."""
    return TEMPLATE_PATTERN.search(text) is not None


def parse_template(text: str) -> nodes.Template:
    """Parse ``text`` and return the syntax tree.

    Raises
    ------
    jinja2.TemplateSyntaxError
        If the markup is malformed (for example, an unclosed block).
    """
    return create_environment().parse(text)


def find_template_errors(pages: cabc.Iterable[Page]) -> list[TemplateIssue]:
    """Parse the raw text of each page that uses template syntax."""
    issues: list[TemplateIssue] = []
    for page in pages:
        if not has_template_syntax(page.raw):
            continue
        try:
            parse_template(page.raw)
        except TemplateSyntaxError as exc:
            issues.append(
                TemplateIssue(filename=page.full_path, error=exc.message or str(exc))
            )
    return issues


__all__ = [
    "BLOCK_TAGS",
    "SINGLE_TAGS",
    "TEMPLATE_PATTERN",
    "TemplateIssue",
    "create_environment",
    "find_template_errors",
    "has_template_syntax",
    "parse_template",
]
