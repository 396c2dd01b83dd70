"""Markdown rendering with code blocks swapped for highlighted HTML."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, cast

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from .documents import CodeBlock

CODE_TOKEN_TYPES = frozenset({"fence", "code_block"})


@lru_cache(maxsize=1)
def markdown_parser() -> MarkdownIt:
    """Configure and cache a CommonMark-compliant parser."""
    md = MarkdownIt("commonmark", {"html": True, "typographer": True})
    md.enable("table").enable("strikethrough")
    md.use(deflist_plugin)
    md.use(footnote_plugin)
    md.use(tasklists_plugin, label=True)
    return md


def code_block_of(token: Token) -> CodeBlock:
    """Lift a ``fence``/``code_block`` token into a :class:`CodeBlock`."""
    info = token.info if token.type == "fence" else None
    return CodeBlock.from_info(token.content, info)


def replace_code_blocks(tokens: list[Token], render_block: Callable[[CodeBlock], str]) -> list[Token]:
    """Return a new stream where every code block token is a raw HTML block."""
    replaced: list[Token] = []
    for token in tokens:
        if token.type not in CODE_TOKEN_TYPES:
            replaced.append(token)
            continue
        html_snippet = render_block(code_block_of(token))
        replaced.append(
            Token(
                type="html_block",
                tag="",
                nesting=0,
                map=token.map,
                level=token.level,
                content=f"{html_snippet}\n",
                block=True,
            )
        )
    return replaced


def render_markdown(text: str, render_block: Callable[[CodeBlock], str]) -> str:
    """Render Markdown to HTML, routing code blocks through ``render_block``."""
    md = markdown_parser()
    env: dict[str, Any] = {}
    tokens = md.parse(text, env)
    tokens = replace_code_blocks(tokens, render_block)
    return cast(str, md.renderer.render(tokens, md.options, env))
