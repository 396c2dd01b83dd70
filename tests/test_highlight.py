from __future__ import annotations

import logging

import pytest

from haystack_pages.documents import CodeBlock
from haystack_pages.highlight import (
    Highlighter,
    ThemeError,
    ThemeRegistry,
    default_registry,
    normalize_theme_name,
    resolve_theme,
)


@pytest.fixture(scope="module")
def highlighter() -> Highlighter:
    return Highlighter(default_registry())


def test_highlight_wraps_classed_markup(highlighter: Highlighter) -> None:
    html = highlighter.highlight("print('hi')\n", "python")

    assert html.startswith('<pre><code class="hl language-python">')
    assert html.endswith("</code></pre>")
    assert '<span class="nb">print</span>' in html
    assert "style=" not in html


def test_highlight_without_language_is_plain_text(highlighter: Highlighter) -> None:
    html = highlighter.highlight("a < b && c\n")
    assert html == '<pre><code class="hl language-text">a &lt; b &amp;&amp; c\n</code></pre>'


def test_unknown_language_keeps_its_class_but_is_not_highlighted(highlighter: Highlighter) -> None:
    html = highlighter.highlight("whatever here\n", "nosuchlang")
    assert html == '<pre><code class="hl language-nosuchlang">whatever here\n</code></pre>'


def test_language_token_may_be_a_file_extension(highlighter: Highlighter) -> None:
    html = highlighter.highlight("key: value\n", "yml")
    assert 'class="hl language-yml"' in html
    assert '<span class="nt">key</span>' in html


def test_highlight_preserves_lines(highlighter: Highlighter) -> None:
    code = "a = 1\n\nb = 2\n"
    html = highlighter.highlight(code, "python")
    assert html.count("\n") == code.count("\n")


def test_highlight_block_uses_block_language(highlighter: Highlighter) -> None:
    block = CodeBlock.from_info("fn main() {}\n", "rust ignore")
    assert block.language == "rust"
    assert 'language-rust"' in highlighter.highlight_block(block)


def test_normalize_theme_name() -> None:
    assert normalize_theme_name("Solarized (Dark)") == "solarizeddark"
    assert normalize_theme_name("base16-ocean.dark") == "base16oceandark"


def test_resolve_exact_case_insensitive_and_normalized() -> None:
    registry = default_registry()
    assert registry.resolve("monokai") is registry.get("monokai")
    assert registry.resolve("MONOKAI") is registry.get("monokai")
    assert registry.resolve("Solarized Dark") is registry.get("solarized-dark")


def test_resolve_aliases_share_one_theme() -> None:
    registry = default_registry()
    github = registry.resolve("GitHub")

    assert github is not None
    assert github is registry.resolve("github")
    assert github is registry.resolve("Git Hub")
    assert github is registry.get("default")


def test_github_alias_is_light_and_dark_variant_is_reachable() -> None:
    registry = default_registry()
    assert registry.resolve("InspiredGitHub") is registry.get("default")
    assert registry.resolve("GitHub Dark") is registry.get("github-dark")


def test_resolve_returns_none_for_blank_or_unknown() -> None:
    assert resolve_theme(None) is None
    assert resolve_theme("   ") is None
    assert resolve_theme("definitely-not-a-theme") is None


def test_theme_names_are_sorted_case_insensitively() -> None:
    names = default_registry().names()
    assert names == sorted(names, key=str.lower)
    assert "monokai" in names


def test_theme_css_falls_back_and_logs(highlighter: Highlighter, caplog: pytest.LogCaptureFixture) -> None:
    registry = highlighter.registry
    with caplog.at_level(logging.WARNING, logger="haystack_pages.highlight"):
        light_css, dark_css = highlighter.theme_css("definitely-not-a-theme", None)

    assert light_css == highlighter.css_for(registry.get("default"))
    assert dark_css == highlighter.css_for(registry.get("github-dark"))
    warnings = [record.getMessage() for record in caplog.records]
    assert len(warnings) == 1
    assert "theme-light" in warnings[0]
    assert "definitely-not-a-theme" in warnings[0]


def test_theme_css_uses_resolved_themes(highlighter: Highlighter) -> None:
    light_css, dark_css = highlighter.theme_css("friendly", "monokai")
    assert ".hl .k" in light_css
    assert light_css == highlighter.css_for(highlighter.registry.get("friendly"))
    assert dark_css == highlighter.css_for(highlighter.registry.get("monokai"))


def test_fallback_chain_uses_next_available_theme() -> None:
    full = default_registry()
    registry = ThemeRegistry(
        themes={"friendly": full.get("friendly"), "monokai": full.get("monokai")}
    )
    highlighter = Highlighter(registry)
    light_css, dark_css = highlighter.theme_css(None, None)
    assert light_css == highlighter.css_for(full.get("friendly"))
    assert dark_css == highlighter.css_for(full.get("monokai"))


def test_missing_default_theme_is_fatal() -> None:
    highlighter = Highlighter(ThemeRegistry(themes={}))
    with pytest.raises(ThemeError):
        highlighter.theme_css(None, None)
