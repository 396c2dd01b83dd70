"""Syntax highlighting and theme resolution backed by Pygments."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from html import escape
from types import MappingProxyType
from typing import Mapping

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.lexers.special import TextLexer
from pygments.style import Style
from pygments.styles import get_all_styles, get_style_by_name
from pygments.util import ClassNotFound

from .documents import CodeBlock

logger = logging.getLogger(__name__)

CODE_CLASS = "hl"
PLAIN_LANGUAGE = "text"

LIGHT_FALLBACKS = ("default", "friendly")
DARK_FALLBACKS = ("github-dark", "monokai")

# Keys are compared after normalization (see ``normalize_theme_name``).
THEME_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "github": "default",
        "inspiredgithub": "default",
        "solarized": "solarized-dark",
        "onedark": "one-dark",
        "atomonedark": "one-dark",
        "gruvbox": "gruvbox-dark",
        "visualstudio": "vs",
        "vscode": "vs",
        "ocean": "nord",
        "oceandark": "nord",
        "base16oceandark": "nord",
    }
)

# Keep the snippet byte-for-byte: no stripping, no forced trailing newline.
_LEXER_OPTIONS = {"stripnl": False, "ensurenl": False}

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]")


class ThemeError(RuntimeError):
    """Raised when no highlighting theme can be produced for a page mode."""


def normalize_theme_name(name: str) -> str:
    """Lowercase and drop every non-alphanumeric character."""
    return _NON_ALNUM_RE.sub("", name.lower())


@dataclass(frozen=True)
class ThemeRegistry:
    """Immutable view of the available highlighting themes."""

    themes: Mapping[str, type[Style]]

    @classmethod
    def load(cls) -> "ThemeRegistry":
        themes: dict[str, type[Style]] = {}
        for name in get_all_styles():
            try:
                themes[name] = get_style_by_name(name)
            except ClassNotFound:
                logger.debug("Pygments style '%s' is registered but cannot be loaded", name)
        return cls(themes=MappingProxyType(themes))

    def names(self) -> list[str]:
        """Theme names sorted case-insensitively."""
        return sorted(self.themes, key=str.lower)

    def get(self, name: str) -> type[Style] | None:
        return self.themes.get(name)

    def resolve(self, name: str | None) -> type[Style] | None:
        """Find a theme by exact, case-insensitive, normalized, then alias match."""
        if name is None:
            return None
        wanted = name.strip()
        if not wanted:
            return None

        exact = self.themes.get(wanted)
        if exact is not None:
            return exact

        lowered = wanted.lower()
        for key, style in self.themes.items():
            if key.lower() == lowered:
                return style

        normalized = normalize_theme_name(wanted)
        for key, style in self.themes.items():
            if normalize_theme_name(key) == normalized:
                return style

        alias = THEME_ALIASES.get(normalized)
        if alias is not None:
            return self.themes.get(alias)
        return None

    def find_lexer(self, language: str | None) -> Lexer:
        """Lexer for a fence language token; plain text when nothing matches."""
        if language:
            try:
                return get_lexer_by_name(language.lower(), **_LEXER_OPTIONS)
            except ClassNotFound:
                pass
            try:
                return get_lexer_for_filename(f"snippet.{language}", **_LEXER_OPTIONS)
            except ClassNotFound:
                logger.debug("No lexer for language '%s'; using plain text", language)
        return TextLexer(**_LEXER_OPTIONS)


@lru_cache(maxsize=1)
def default_registry() -> ThemeRegistry:
    """Process-wide registry, built on first use."""
    return ThemeRegistry.load()


def resolve_theme(name: str | None, registry: ThemeRegistry | None = None) -> type[Style] | None:
    return (registry or default_registry()).resolve(name)


class Highlighter:
    """Turn code snippets into classed HTML and themes into CSS."""

    def __init__(self, registry: ThemeRegistry | None = None) -> None:
        self._registry = registry or default_registry()
        self._formatter = HtmlFormatter(nowrap=True)

    @property
    def registry(self) -> ThemeRegistry:
        return self._registry

    def highlight(self, code: str, language: str | None = None) -> str:
        """Return ``<pre><code class="hl language-...">`` markup for ``code``."""
        lexer = self._registry.find_lexer(language)
        body = pygments_highlight(code, lexer, self._formatter)
        class_lang = escape(language or PLAIN_LANGUAGE, quote=True)
        return f'<pre><code class="{CODE_CLASS} language-{class_lang}">{body}</code></pre>'

    def highlight_block(self, block: CodeBlock) -> str:
        return self.highlight(block.code, block.language)

    def theme_css(self, light_name: str | None, dark_name: str | None) -> tuple[str, str]:
        """Stylesheets for the light and dark modes, falling back to defaults."""
        light = self._theme_for(light_name, LIGHT_FALLBACKS, "light")
        dark = self._theme_for(dark_name, DARK_FALLBACKS, "dark")
        return self.css_for(light), self.css_for(dark)

    def css_for(self, style: type[Style]) -> str:
        return HtmlFormatter(style=style).get_style_defs(f".{CODE_CLASS}")

    def _theme_for(self, name: str | None, fallbacks: tuple[str, ...], mode: str) -> type[Style]:
        style = self._registry.resolve(name)
        if style is not None:
            return style
        if name is not None:
            logger.warning(
                "theme-%s '%s' not found; using %s fallback",
                mode,
                name,
                "/".join(fallbacks),
            )
        for candidate in fallbacks:
            fallback = self._registry.get(candidate)
            if fallback is not None:
                return fallback
        raise ThemeError(f"No default {mode} highlighting theme available (tried {', '.join(fallbacks)}).")
