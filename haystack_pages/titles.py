"""Derive page titles from raw Markdown and Org source text."""

from __future__ import annotations

import re

from .documents import DocumentFormat
from .markdown import markdown_parser

DEFAULT_TITLE = "haystack"

ORG_DIRECTIVE_RE = re.compile(r"^#\+([^:]*):(.*)$")
ORG_HEADLINE_RE = re.compile(r"^\*+ (.*)$")

_HEADING_TEXT_TOKENS = frozenset({"text", "code_inline"})
_HEADING_BREAK_TOKENS = frozenset({"softbreak", "hardbreak"})


def extract_title(text: str, fmt: DocumentFormat) -> str | None:
    """Return the title derived from ``text`` or ``None`` when nothing qualifies."""
    if fmt is DocumentFormat.ORG:
        return extract_org_title(text)
    return extract_markdown_title(text)


def extract_markdown_title(text: str) -> str | None:
    """Use the inline text of the first non-empty heading."""
    tokens = markdown_parser().parse(text)
    in_heading = False
    for token in tokens:
        if token.type == "heading_open":
            in_heading = True
        elif token.type == "heading_close":
            in_heading = False
        elif in_heading and token.type == "inline":
            parts: list[str] = []
            for child in token.children or ():
                if child.type in _HEADING_TEXT_TOKENS:
                    parts.append(child.content)
                elif child.type in _HEADING_BREAK_TOKENS:
                    parts.append(" ")
            title = "".join(parts).strip()
            if title:
                return title
    return None


def extract_org_title(text: str) -> str | None:
    """Prefer a ``#+TITLE:`` directive, otherwise the first headline.

    A directive wins even when it appears after the first headline.
    """
    headline: str | None = None
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        directive = ORG_DIRECTIVE_RE.match(line)
        if directive and directive.group(1).strip().lower() == "title":
            value = directive.group(2).strip()
            if value:
                return value
            continue
        if headline is None:
            match = ORG_HEADLINE_RE.match(line)
            if match and match.group(1).strip():
                headline = match.group(1).strip()
    return headline


def page_title(text: str, fmt: DocumentFormat) -> str:
    """Title used in the page ``<title>``, never empty."""
    return extract_title(text, fmt) or DEFAULT_TITLE
