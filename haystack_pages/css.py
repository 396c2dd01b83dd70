"""Stylesheet helpers: selector scoping and light/dark/auto assembly."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import resources

LIGHT_SCOPE = "html[data-theme='light']"
DARK_SCOPE = "html[data-theme='dark']"
AUTO_SCOPE = "html[data-theme='auto']"

WRAP_OVERRIDES = """/* Force code wrapping */
.container pre, .container pre code, .container code.hl, .container pre .hl {
  white-space: pre-wrap;
  overflow-wrap: anywhere;
  word-break: break-word;
}"""

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


@lru_cache(maxsize=1)
def base_stylesheet() -> str:
    """Stylesheet shipped with the package for page layout and colors."""
    return resources.files(__package__).joinpath("assets", "base.css").read_text(encoding="utf-8")


def scope_css(css: str, prefix: str) -> str:
    """Prefix every selector of a flat stylesheet with ``prefix``.

    Chunks without an opening brace are dropped, as are rules left with no
    selectors.
    """
    rules: list[str] = []
    for chunk in _COMMENT_RE.sub("", css).split("}"):
        selectors, brace, body = chunk.partition("{")
        if not brace:
            continue
        scoped = [f"{prefix} {selector}" for selector in (s.strip() for s in selectors.split(",")) if selector]
        if not scoped:
            continue
        rules.append(f"{', '.join(scoped)} {{{body}}}")
    return "\n".join(rules)


def prefers_color_scheme(scheme: str, css: str) -> str:
    return f"@media (prefers-color-scheme: {scheme}) {{\n{css}\n}}"


def syntax_stylesheet(light_css: str, dark_css: str) -> str:
    """Combine both theme stylesheets for explicit and automatic modes.

    Auto mode rules only ever appear inside a ``prefers-color-scheme`` query.
    """
    parts = [
        scope_css(light_css, LIGHT_SCOPE),
        scope_css(dark_css, DARK_SCOPE),
        prefers_color_scheme("light", scope_css(light_css, AUTO_SCOPE)),
        prefers_color_scheme("dark", scope_css(dark_css, AUTO_SCOPE)),
    ]
    return "\n".join(parts)
