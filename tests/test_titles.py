from __future__ import annotations

from haystack_pages.documents import DocumentFormat
from haystack_pages.titles import (
    DEFAULT_TITLE,
    extract_markdown_title,
    extract_org_title,
    extract_title,
    page_title,
)


def test_markdown_title_comes_from_first_heading() -> None:
    assert extract_markdown_title("# Hello\n\nbody") == "Hello"


def test_markdown_title_keeps_inline_code_and_trims() -> None:
    text = "Intro paragraph.\n\n##   Using `render()` today  \n\n# Later\n"
    assert extract_markdown_title(text) == "Using render() today"


def test_markdown_title_skips_empty_heading() -> None:
    assert extract_markdown_title("#\n\n## Second\n") == "Second"


def test_markdown_title_supports_setext_headings() -> None:
    assert extract_markdown_title("Setext Title\n============\n") == "Setext Title"


def test_markdown_title_joins_heading_lines_with_a_space() -> None:
    assert extract_markdown_title("Hello\nWorld\n=====\n") == "Hello World"


def test_markdown_without_heading_has_no_title() -> None:
    assert extract_markdown_title("just text\n\n```\n# not a heading\n```\n") is None


def test_org_directive_wins_over_headline() -> None:
    assert extract_org_title("#+TITLE: My Doc\n* Ignored\n") == "My Doc"


def test_org_directive_is_case_insensitive_and_wins_even_after_headline() -> None:
    assert extract_org_title("* Headline\n#+title:   Late Title  \n") == "Late Title"


def test_org_empty_directive_falls_through_to_headline() -> None:
    assert extract_org_title("#+TITLE:\n** Sub Heading\n") == "Sub Heading"


def test_org_headline_strips_stars() -> None:
    assert extract_org_title("** Sub Heading\n") == "Sub Heading"


def test_org_ignores_bold_text_and_missing_space() -> None:
    assert extract_org_title("*bold* start\n**NoSpace\n") is None


def test_extract_title_dispatches_on_format() -> None:
    assert extract_title("# Markdown", DocumentFormat.MARKDOWN) == "Markdown"
    assert extract_title("* Org", DocumentFormat.ORG) == "Org"


def test_page_title_falls_back_to_default_name() -> None:
    assert page_title("no headings here", DocumentFormat.MARKDOWN) == DEFAULT_TITLE
    assert page_title("", DocumentFormat.ORG) == DEFAULT_TITLE
