from __future__ import annotations

from haystack_pages.documents import CodeBlock
from haystack_pages.org import (
    render_inline,
    render_org,
    render_org_body,
    rewrite_code_blocks,
    serialize_org,
    split_sections,
)


def _fake_block(block: CodeBlock) -> str:
    return f"[{block.language}:{block.code}]"


def test_headlines_become_heading_tags() -> None:
    html = serialize_org("#+TITLE: Doc\nintro text\n* TODO First :tag:\nbody\n** Second\n******* Deep\n")

    assert "<p>intro text</p>" in html
    assert "<h1>First</h1>" in html
    assert "<h2>Second</h2>" in html
    assert "<h6>Deep</h6>" in html
    assert "TITLE" not in html
    assert ":tag:" not in html


def test_src_block_is_serialized_escaped() -> None:
    body = render_org_body("#+BEGIN_SRC python :results output\n  if a < b:\n      pass\n#+END_SRC\n")
    assert body == '<pre class="src src-python">if a &lt; b:\n    pass\n</pre>'


def test_src_block_without_language_is_plain_text() -> None:
    body = render_org_body("#+begin_src\nraw\n#+end_src\n")
    assert body == '<pre class="src src-text">raw\n</pre>'


def test_render_org_highlights_source_blocks() -> None:
    html = render_org("* Code\n#+BEGIN_SRC sh\necho \"<hi>\" && exit\n#+END_SRC\n", _fake_block)

    assert '[sh:echo "<hi>" && exit\n]' in html
    assert "src-sh" not in html


def test_rewrite_handles_both_known_shapes_and_leaves_others() -> None:
    html = (
        '<pre><code class="language-rust">let x = &amp;y;</code></pre>\n'
        '<pre class="src src-c">a &lt; b</pre>\n'
        '<pre class="example">untouched</pre>\n'
        '<pre><code class="language-bad lang">kept</code></pre>'
    )
    rewritten = rewrite_code_blocks(html, _fake_block)

    assert "[rust:let x = &y;]" in rewritten
    assert "[c:a < b]" in rewritten
    assert '<pre class="example">untouched</pre>' in rewritten
    assert '<pre><code class="language-bad lang">kept</code></pre>' in rewritten


def test_lists_tables_and_rules() -> None:
    body = render_org_body(
        "- one\n- two\n  continued\n\n1. first\n2) second\n\n-----\n"
        "| Name | Qty |\n|------+-----|\n| a | 1 |\n"
    )

    assert "<ul>\n<li>one</li>\n<li>two continued</li>\n</ul>" in body
    assert "<ol>\n<li>first</li>\n<li>second</li>\n</ol>" in body
    assert "<hr>" in body
    assert "<thead>\n<tr><th>Name</th><th>Qty</th></tr>\n</thead>" in body
    assert "<tr><td>a</td><td>1</td></tr>" in body


def test_quote_example_and_comments() -> None:
    body = render_org_body(
        "# a comment\n#+BEGIN_QUOTE\nwise words\n#+END_QUOTE\n#+BEGIN_EXAMPLE\n<raw>\n#+END_EXAMPLE\n"
    )

    assert "a comment" not in body
    assert "<blockquote>\n<p>wise words</p>\n</blockquote>" in body
    assert '<pre class="example">&lt;raw&gt;\n</pre>' in body


def test_inline_markup_and_links() -> None:
    html = render_inline("*bold* /it/ =x<y= ~code~ +gone+ _under_ [[https://e.x][the /site/]] [[img/a.png]]")

    assert "<b>bold</b>" in html
    assert "<i>it</i>" in html
    assert "<code>x&lt;y</code>" in html
    assert "<code>code</code>" in html
    assert "<del>gone</del>" in html
    assert "<u>under</u>" in html
    assert '<a href="https://e.x">the <i>site</i></a>' in html
    assert '<img src="img/a.png" alt="">' in html


def test_inline_leaves_paths_and_arithmetic_alone() -> None:
    assert render_inline("a/b/c and 1 + 2 + 3 and C++") == "a/b/c and 1 + 2 + 3 and C++"


def test_impossible_dates_render_as_text() -> None:
    html = render_org("* Meeting <2024-02-30 Fri>\nbody\n", _fake_block)

    assert "<h1>Meeting &lt;2024-02-30 Fri&gt;</h1>" in html
    assert "<p>body</p>" in html


def test_planning_lines_with_bad_dates_are_skipped() -> None:
    html = render_org("* TODO Task :work:\nSCHEDULED: <2024-13-45 Mon>\nnotes\n", _fake_block)

    assert "<h1>Task</h1>" in html
    assert "<p>notes</p>" in html
    assert "SCHEDULED" not in html


def test_star_lines_inside_blocks_do_not_start_sections() -> None:
    preamble, sections = split_sections("intro\n* Code\n#+BEGIN_SRC org\n* nested\n#+END_SRC\n** After\n")

    assert preamble == "intro"
    assert [(level, line) for level, line, _ in sections] == [(1, "* Code"), (2, "** After")]
    assert sections[0][2] == "#+BEGIN_SRC org\n* nested\n#+END_SRC"
