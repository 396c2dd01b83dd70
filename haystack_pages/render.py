"""Turn one source document into a complete, self-contained HTML page."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping, Protocol

from jinja2 import Environment, PackageLoader, select_autoescape

from .config import ThemeConfig
from .css import WRAP_OVERRIDES, base_stylesheet, syntax_stylesheet
from .documents import CodeBlock, DocumentFormat, SourceDocument
from .highlight import Highlighter
from .markdown import render_markdown
from .org import render_org
from .titles import page_title

logger = logging.getLogger(__name__)

DEFAULT_HEAD_SNIPPET = Path("theme") / "head.html"
THEME_STORAGE_KEY = "haystack-theme"
PAGE_TEMPLATE = "page.html"

__all__ = [
    "DEFAULT_HEAD_SNIPPET",
    "DocumentFormat",
    "DocumentRenderer",
    "RenderError",
    "SourceDocument",
]


class RenderError(RuntimeError):
    """Raised when a document cannot be turned into a page."""


class BodyBackend(Protocol):
    """Parse a document body and replace every code block with highlighted HTML."""

    def __call__(self, text: str, render_block: Callable[[CodeBlock], str]) -> str: ...


BACKENDS: Mapping[DocumentFormat, BodyBackend] = {
    DocumentFormat.MARKDOWN: render_markdown,
    DocumentFormat.ORG: render_org,
}


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("haystack_pages", "assets"),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def read_head_snippet(path: Path) -> str:
    """Operator-supplied ``<head>`` fragment; empty when the file is missing."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return ""


class DocumentRenderer:
    """Render source documents with a shared highlighter.

    The highlighter (and the theme registry it holds) is read-only, so a single
    renderer can serve concurrent requests.
    """

    def __init__(self, highlighter: Highlighter | None = None, *, head_snippet: Path = DEFAULT_HEAD_SNIPPET) -> None:
        self.highlighter = highlighter or Highlighter()
        self.head_snippet = head_snippet

    def render(self, source: SourceDocument, theme: ThemeConfig) -> str:
        body = self.render_body(source)
        title = page_title(source.text, source.format)
        return self.wrap_page(body, title, theme)

    def render_file(self, path: Path, theme: ThemeConfig) -> str:
        """Read and render ``path``; ``OSError``/``UnicodeDecodeError`` propagate."""
        logger.debug("Rendering %s", path)
        source = SourceDocument.read(path)
        if source is None:
            raise RenderError(f"unsupported extension {path.suffix!r} for {path}")
        return self.render(source, theme)

    def render_body(self, source: SourceDocument) -> str:
        backend = BACKENDS[source.format]
        try:
            return backend(source.text, self.highlighter.highlight_block)
        except Exception as exc:
            label = source.path or f"<{source.format.value} document>"
            raise RenderError(f"failed to render {label}: {exc}") from exc

    def wrap_page(self, body: str, title: str, theme: ThemeConfig) -> str:
        light_css, dark_css = self.highlighter.theme_css(theme.light, theme.dark)
        template = _environment().get_template(PAGE_TEMPLATE)
        return template.render(
            title=title,
            storage_key=THEME_STORAGE_KEY,
            base_css=base_stylesheet(),
            syntax_css=syntax_stylesheet(light_css, dark_css),
            wrap_css=WRAP_OVERRIDES,
            head_extra=read_head_snippet(self.head_snippet),
            body=body,
        )
