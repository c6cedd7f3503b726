"""Handlebars template rendering over decoded configuration content.

Rendering is two steps:

1. decode the raw payload as YAML, JSON or TOML into plain Python
   mappings, sequences and scalars;
2. render a handlebars template (pybars3) with that value as context.

Undefined keys render empty, as handlebars does.  The output only depends
on the template and the payload, so re-rendering the same pair yields the
same bytes.

Whitespace follows handlebars.js.  A line holding nothing but a block tag
(``{{#...}}``, ``{{^...}}``, ``{{/...}}``, ``{{else}}``) or a comment is
"standalone": its indentation and its line break are dropped, and every
other newline is kept.  pybars also swallows the newline in front of a
closing tag, so :func:`prepare_template` resolves standalone lines itself
and hands the remaining newlines to pybars as helper calls it cannot strip.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pybars import Compiler, PybarsError

from app_config.core.errors import (
    TemplateDecodeError,
    TemplateNotFoundError,
    TemplateSyntaxError,
)
from app_config.models.sources import ContentType

logger = logging.getLogger(__name__)

ParameterLookup = Callable[[str], str]

# Comments may contain "}}", so they are matched before plain tags.
_TAG = re.compile(r"(\{\{!--.*?--\}\}|\{\{\{.*?\}\}\}|\{\{.*?\}\})", re.DOTALL)
_BLOCK_TAG = re.compile(r"\{\{\s*(?P<sigil>[#^/!]|else\b)\s*(?P<name>[^\s}]*)")
_UNTERMINATED = re.compile(r"(?<!\\)\{\{")
_NEWLINE_HELPER = "appConfigNewline"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_text(raw_content: bytes | str) -> str:
    if isinstance(raw_content, str):
        return raw_content
    try:
        return raw_content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TemplateDecodeError(f"Content is not valid UTF-8: {exc}") from exc


def decode_content(content_type: ContentType, raw_content: bytes | str) -> Any:
    """Parse a raw payload into a generic structured value."""
    text = _decode_text(raw_content)
    try:
        if content_type == ContentType.YAML:
            return yaml.safe_load(text)
        if content_type == ContentType.JSON:
            return json.loads(text)
        if content_type == ContentType.TOML:
            return tomllib.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TemplateDecodeError(
            f"Content is not valid {content_type.value}: {exc}"
        ) from exc
    raise TemplateDecodeError(f"Unsupported content type: {content_type!r}")


# ---------------------------------------------------------------------------
# Template preparation
# ---------------------------------------------------------------------------


def _check_blocks(tags: list[str]) -> None:
    """Raise ``TemplateSyntaxError`` unless block tags nest and close."""
    open_blocks: list[str] = []
    for tag in tags:
        match = _BLOCK_TAG.match(tag)
        if match is None:
            continue
        sigil, name = match.group("sigil", "name")
        if sigil in ("#", "^") and name:
            open_blocks.append(name)
        elif sigil == "/":
            if not open_blocks:
                raise TemplateSyntaxError(
                    f"Closing tag {tag} has no matching opening block"
                )
            expected = open_blocks.pop()
            if name != expected:
                raise TemplateSyntaxError(
                    f"Closing tag {tag} does not match the open block {expected!r}"
                )
    if open_blocks:
        raise TemplateSyntaxError(f"Block {open_blocks[-1]!r} is never closed")


def _is_standalone(tags: list[str], texts: list[str], index: int) -> tuple[int, int] | None:
    """Return the cut points around a standalone tag, or ``None``.

    The first value is where the text before the tag stops (its trailing
    indentation is dropped); the second is where the text after the tag
    resumes (past its line break).
    """
    if _BLOCK_TAG.match(tags[index]) is None:
        return None

    before, after = texts[index], texts[index + 1]
    line_start = before.rfind("\n") + 1
    if line_start == 0 and index > 0:
        return None
    if before[line_start:].strip(" \t"):
        return None

    line_end = after.find("\n")
    if line_end == -1:
        if index + 1 < len(tags) or after.strip(" \t"):
            return None
        line_end = len(after)
    else:
        line_end += 1
        if after[:line_end].strip():
            return None
    return line_start, line_end


def prepare_template(source: str) -> str:
    """Rewrite handlebars *source* so pybars renders it like handlebars.js.

    Raises ``TemplateSyntaxError`` for an unterminated ``{{`` or for block
    tags that are left open, closed twice or closed out of order.
    """
    parts = _TAG.split(source)
    texts, tags = parts[0::2], parts[1::2]

    for text in texts:
        if _UNTERMINATED.search(text):
            raise TemplateSyntaxError("Template has an unterminated '{{' tag")
    _check_blocks(tags)

    cuts = [[0, len(text)] for text in texts]
    for index in range(len(tags)):
        standalone = _is_standalone(tags, texts, index)
        if standalone is not None:
            cuts[index][1], cuts[index + 1][0] = standalone

    newline = "{{%s}}" % _NEWLINE_HELPER
    pieces: list[str] = []
    for index, text in enumerate(texts):
        start, end = cuts[index]
        pieces.append(text[start:end].replace("\n", newline))
        if index < len(tags):
            pieces.append(tags[index])
    return "".join(pieces)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders handlebars templates against decoded configuration.

    Parameters
    ----------
    parameter_lookup:
        Backs the ``{{key "Name"}}`` helper.  When omitted, using the
        helper is a render-time error.

    Notes
    -----
    Because ``key`` is a helper, a bare ``{{key}}`` is resolved by the
    helper as a field lookup on the current context only.  Inside a block
    this is the current item, as in handlebars.js; a ``key`` field on an
    enclosing context is reached with ``{{../key}}``.
    """

    def __init__(self, parameter_lookup: ParameterLookup | None = None) -> None:
        self._compiler = Compiler()
        self._parameter_lookup = parameter_lookup

    def _helpers(self) -> dict[str, Callable[..., Any]]:
        def key_helper(this: Any, *args: Any) -> Any:
            if not args:
                context = getattr(this, "context", this)
                if isinstance(context, Mapping):
                    value = context.get("key")
                else:
                    value = this.get("key") if hasattr(this, "get") else None
                return "" if value is None else value
            name = args[0]
            if self._parameter_lookup is None:
                raise TemplateSyntaxError(
                    f"Template uses {{{{key {name!r}}}}} but no parameter lookup is configured"
                )
            return self._parameter_lookup(str(name))

        def newline_helper(this: Any) -> str:
            return "\n"

        return {"key": key_helper, _NEWLINE_HELPER: newline_helper}

    def render(
        self,
        template_path: Path,
        content_type: ContentType,
        raw_content: bytes | str,
    ) -> str:
        """Render the template file at *template_path* with *raw_content*.

        Raises ``TemplateDecodeError``, ``TemplateNotFoundError`` or
        ``TemplateSyntaxError``.
        """
        context = decode_content(content_type, raw_content)
        if context is None:
            # An empty YAML document decodes to None.
            context = {}

        path = Path(template_path).expanduser()
        try:
            source = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise TemplateNotFoundError(f"Template not found: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateNotFoundError(f"Cannot read template {path}: {exc}") from exc

        output = self.render_source(source, context)
        logger.debug("Rendered %s (%d chars)", path, len(output))
        return output

    def render_source(self, source: str, context: Any) -> str:
        """Render template text against an already decoded context."""
        prepared = prepare_template(source)
        try:
            template = self._compiler.compile(prepared)
        except PybarsError as exc:
            raise TemplateSyntaxError(f"Template does not compile: {exc}") from exc

        try:
            return str(template(context, helpers=self._helpers()))
        except PybarsError as exc:
            raise TemplateSyntaxError(f"Template failed to render: {exc}") from exc
