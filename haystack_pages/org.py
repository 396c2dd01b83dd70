"""Org-mode rendering: headlines via orgparse, bodies via a small block serializer.

Code blocks are highlighted after serialization by matching the exact
``<pre>`` shapes the serializer (or a Markdown-style exporter) produces. If
that shape changes the blocks are left as plain escaped text.
"""

from __future__ import annotations

import re
import textwrap
from html import escape, unescape
from typing import Callable, Iterator

import orgparse

from .documents import CodeBlock

LANGUAGE_PATTERN = r"[A-Za-z0-9_+\-.#]+"

MARKUP_CODE_RE = re.compile(
    rf'<pre><code class="language-({LANGUAGE_PATTERN})">(.*?)</code></pre>', re.DOTALL
)
ORG_SRC_RE = re.compile(rf'<pre class="src src-({LANGUAGE_PATTERN})">(.*?)</pre>', re.DOTALL)
_LANGUAGE_RE = re.compile(rf"^{LANGUAGE_PATTERN}$")

HEADLINE_RE = re.compile(r"^(\*+) (.*)$")
HEADLINE_TAGS_RE = re.compile(r"\s+:[\w@#%:]+:\s*$")
HEADLINE_KEYWORD_RE = re.compile(r"^(TODO|DONE)\s+")
PLANNING_RE = re.compile(r"^\s*(SCHEDULED|DEADLINE|CLOSED):")
BLOCK_BEGIN_RE = re.compile(r"^\s*#\+begin_(\w+)(.*)$", re.IGNORECASE)
BLOCK_END_RE = re.compile(r"^\s*#\+end_(\w+)\s*$", re.IGNORECASE)
DIRECTIVE_RE = re.compile(r"^\s*#\+")
COMMENT_RE = re.compile(r"^\s*#(\s|$)")
RULE_RE = re.compile(r"^\s*-{5,}\s*$")
TABLE_ROW_RE = re.compile(r"^\s*\|")
TABLE_RULE_RE = re.compile(r"^\s*\|[-+]+\|?\s*$")
UNORDERED_ITEM_RE = re.compile(r"^\s*[-+]\s+(.*)$")
ORDERED_ITEM_RE = re.compile(r"^\s*\d+[.)]\s+(.*)$")
LINK_RE = re.compile(r"\[\[([^\]]+)\](?:\[([^\]]+)\])?\]")
EMPHASIS_RE = re.compile(r"(?<![\w*/_+=~])([*/_+=~])(?=\S)(.+?)(?<=\S)\1(?![\w*/_+=~])")

_EMPHASIS_TAGS = {"*": "b", "/": "i", "_": "u", "+": "del"}
_IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")


def render_org(text: str, render_block: Callable[[CodeBlock], str]) -> str:
    """Serialize an Org document to HTML and highlight its source blocks."""
    return rewrite_code_blocks(serialize_org(text), render_block)


def serialize_org(text: str) -> str:
    preamble, sections = split_sections(text)
    parts = [render_org_body(preamble)]
    for level, headline, body in sections:
        level = min(max(level, 1), 6)
        parts.append(f"<h{level}>{render_inline(headline_text(headline))}</h{level}>")
        parts.append(render_org_body(body))
    return "\n".join(part for part in parts if part)


def split_sections(text: str) -> tuple[str, list[tuple[int, str, str]]]:
    """Split ``text`` into the preamble and ``(level, headline, body)`` sections.

    Lines inside ``#+BEGIN_``/``#+END_`` blocks never start a section.
    """
    preamble: list[str] = []
    sections: list[tuple[int, str, list[str]]] = []
    open_block: str | None = None
    for line in text.splitlines():
        body = sections[-1][2] if sections else preamble
        if open_block is not None:
            end = BLOCK_END_RE.match(line)
            if end and end.group(1).lower() == open_block:
                open_block = None
            body.append(line)
            continue
        begin = BLOCK_BEGIN_RE.match(line)
        if begin:
            open_block = begin.group(1).lower()
            body.append(line)
            continue
        headline = HEADLINE_RE.match(line)
        if headline:
            sections.append((len(headline.group(1)), line, []))
            continue
        if not PLANNING_RE.match(line):
            body.append(line)
    return "\n".join(preamble), [(level, line, "\n".join(body)) for level, line, body in sections]


def headline_text(line: str) -> str:
    """Headline title without stars, TODO keyword or tags.

    Timestamps orgparse cannot turn into dates are kept as plain text.
    """
    try:
        nodes = orgparse.loads(line)[1:]
    except ValueError:
        nodes = []
    if nodes:
        return nodes[0].get_heading(format="raw")
    title = HEADLINE_RE.sub(r"\2", line)
    title = HEADLINE_TAGS_RE.sub("", title)
    return HEADLINE_KEYWORD_RE.sub("", title).strip()


def rewrite_code_blocks(html_text: str, render_block: Callable[[CodeBlock], str]) -> str:
    """Replace known ``<pre>`` code shapes with highlighted markup.

    Anything that does not match is left untouched.
    """

    def _replace(match: re.Match[str]) -> str:
        return render_block(CodeBlock(code=unescape(match.group(2)), language=match.group(1)))

    html_text = MARKUP_CODE_RE.sub(_replace, html_text)
    return ORG_SRC_RE.sub(_replace, html_text)


class _BodyWriter:
    """Accumulates paragraphs, lists and tables until a block boundary."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self._paragraph: list[str] = []
        self._list_tag: str | None = None
        self._items: list[str] = []
        self._rows: list[list[str] | None] = []

    def text(self, line: str) -> None:
        if self._list_tag is not None and line[:1].isspace():
            self._items[-1] = f"{self._items[-1]} {line.strip()}"
            return
        self._flush_list()
        self._flush_table()
        self._paragraph.append(line.strip())

    def item(self, tag: str, content: str) -> None:
        self._flush_paragraph()
        self._flush_table()
        if self._list_tag != tag:
            self._flush_list()
            self._list_tag = tag
        self._items.append(content.strip())

    def table_row(self, line: str) -> None:
        self._flush_paragraph()
        self._flush_list()
        if TABLE_RULE_RE.match(line):
            self._rows.append(None)
            return
        cells = line.strip().strip("|").split("|")
        self._rows.append([cell.strip() for cell in cells])

    def raw(self, fragment: str) -> None:
        self.flush()
        self.parts.append(fragment)

    def flush(self) -> None:
        self._flush_paragraph()
        self._flush_list()
        self._flush_table()

    def _flush_paragraph(self) -> None:
        if self._paragraph:
            self.parts.append(f"<p>{render_inline(' '.join(self._paragraph))}</p>")
            self._paragraph = []

    def _flush_list(self) -> None:
        if self._list_tag is None:
            return
        items = "\n".join(f"<li>{render_inline(item)}</li>" for item in self._items)
        self.parts.append(f"<{self._list_tag}>\n{items}\n</{self._list_tag}>")
        self._list_tag = None
        self._items = []

    def _flush_table(self) -> None:
        if not self._rows:
            return
        head: list[list[str]] = []
        rows = self._rows
        if None in rows and rows.index(None) > 0:
            split = rows.index(None)
            head = [row for row in rows[:split] if row is not None]
            rows = rows[split:]
        lines = ["<table>"]
        if head:
            lines.append("<thead>")
            lines.extend(_table_row(row, "th") for row in head)
            lines.append("</thead>")
        lines.append("<tbody>")
        lines.extend(_table_row(row, "td") for row in rows if row is not None)
        lines.append("</tbody>")
        lines.append("</table>")
        self.parts.append("\n".join(lines))
        self._rows = []


def render_org_body(text: str) -> str:
    """Serialize the body text that sits below one headline."""
    writer = _BodyWriter()
    lines = iter(text.splitlines())
    for line in lines:
        begin = BLOCK_BEGIN_RE.match(line)
        if begin:
            kind = begin.group(1).lower()
            content = _collect_block(lines, kind)
            writer.raw(_render_block(kind, begin.group(2).split(), content))
            continue
        if not line.strip():
            writer.flush()
            continue
        if DIRECTIVE_RE.match(line) or COMMENT_RE.match(line):
            continue
        if RULE_RE.match(line):
            writer.raw("<hr>")
            continue
        if TABLE_ROW_RE.match(line):
            writer.table_row(line)
            continue
        unordered = UNORDERED_ITEM_RE.match(line)
        if unordered:
            writer.item("ul", unordered.group(1))
            continue
        ordered = ORDERED_ITEM_RE.match(line)
        if ordered:
            writer.item("ol", ordered.group(1))
            continue
        writer.text(line)
    writer.flush()
    return "\n".join(writer.parts)


def _collect_block(lines: Iterator[str], kind: str) -> str:
    collected: list[str] = []
    for line in lines:
        end = BLOCK_END_RE.match(line)
        if end and end.group(1).lower() == kind:
            break
        collected.append(line)
    if not collected:
        return ""
    return textwrap.dedent("\n".join(collected)) + "\n"


def _render_block(kind: str, args: list[str], content: str) -> str:
    if kind == "src":
        language = args[0] if args and _LANGUAGE_RE.match(args[0]) else "text"
        return f'<pre class="src src-{language}">{escape(content)}</pre>'
    if kind == "example":
        return f'<pre class="example">{escape(content)}</pre>'
    if kind == "quote":
        return f"<blockquote>\n{render_org_body(content)}\n</blockquote>"
    if kind == "verse":
        verse = "<br>\n".join(render_inline(line) for line in content.rstrip("\n").splitlines())
        return f'<p class="verse">\n{verse}\n</p>'
    if kind == "export":
        if args and args[0].lower() == "html":
            return content
        return ""
    return f'<div class="{escape(kind)}">\n{render_org_body(content)}\n</div>'


def _table_row(cells: list[str], tag: str) -> str:
    return "<tr>" + "".join(f"<{tag}>{render_inline(cell)}</{tag}>" for cell in cells) + "</tr>"


def render_inline(text: str) -> str:
    """Escape ``text`` and convert Org links and emphasis markers."""
    out: list[str] = []
    pos = 0
    for match in LINK_RE.finditer(text):
        out.append(_render_emphasis(text[pos : match.start()]))
        out.append(_render_link(match.group(1), match.group(2)))
        pos = match.end()
    out.append(_render_emphasis(text[pos:]))
    return "".join(out)


def _render_link(target: str, label: str | None) -> str:
    href = target[len("file:") :] if target.startswith("file:") else target
    if label is None and href.lower().endswith(_IMAGE_SUFFIXES):
        return f'<img src="{escape(href)}" alt="">'
    text = _render_emphasis(label) if label else escape(target)
    return f'<a href="{escape(href)}">{text}</a>'


def _render_emphasis(text: str) -> str:
    out: list[str] = []
    pos = 0
    for match in EMPHASIS_RE.finditer(text):
        marker, inner = match.group(1), match.group(2)
        out.append(escape(text[pos : match.start()]))
        if marker in "=~":
            out.append(f"<code>{escape(inner)}</code>")
        else:
            tag = _EMPHASIS_TAGS[marker]
            out.append(f"<{tag}>{_render_emphasis(inner)}</{tag}>")
        pos = match.end()
    out.append(escape(text[pos:]))
    return "".join(out)
