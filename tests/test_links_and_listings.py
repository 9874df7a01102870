"""Unit tests for href computation and listing rendering."""

from __future__ import annotations

from docsplice.engine.links import anchor_href, output_path, resolve_page_reference
from docsplice.engine.listings import render_contents, render_index
from docsplice.model import Anchor, AnchorOrigin


def _heading(title: str, level: int, page_id: str = "a.md") -> Anchor:
    slug = title.lower()
    return Anchor(slug, AnchorOrigin.HEADING, page_id, 0, (0, 0), slug, title, level)


def test_output_path() -> None:
    assert output_path("index.md") == "index.html"
    assert output_path("guide/./intro.md") == "guide/intro.html"
    assert output_path("notes.txt") == "notes.txt.html"


def test_anchor_href_between_directories() -> None:
    target = _heading("Setup", 2, "guide/setup.md")
    assert anchor_href("guide/setup.md", target) == "#setup"
    assert anchor_href("guide/usage.md", target) == "setup.html#setup"
    assert anchor_href("index.md", target) == "guide/setup.html#setup"
    assert anchor_href("api/deep/ref.md", target) == "../../guide/setup.html#setup"


def test_resolve_page_reference() -> None:
    pages = ["index.md", "guide/setup.md", "guide/usage.md"]
    assert resolve_page_reference("index.md", "guide/setup.md", pages) == "guide/setup.md"
    assert resolve_page_reference("guide/usage.md", "setup.md", pages) == "guide/setup.md"
    assert resolve_page_reference("guide/usage.md", "../index.md", pages) == "index.md"
    assert resolve_page_reference("index.md", "missing.md", pages) is None


def test_render_contents_nests_by_level() -> None:
    anchors = [_heading("Guide", 1), _heading("Install", 2), _heading("Usage", 2)]
    assert render_contents(anchors, "toc.md") == (
        "- [Guide](a.html#guide)\n"
        "    - [Install](a.html#install)\n"
        "    - [Usage](a.html#usage)\n\n"
    )


def test_render_contents_never_skips_a_level() -> None:
    anchors = [_heading("Top", 2), _heading("Deep", 4), _heading("Next", 3)]
    assert render_contents(anchors, "a.md") == (
        "- [Top](#top)\n    - [Deep](#deep)\n    - [Next](#next)\n\n"
    )


def test_render_contents_escapes_brackets() -> None:
    assert render_contents([_heading("Arrays [1]", 1)], "a.md") == (
        "- [Arrays \\[1\\]](#arrays [1])\n\n"
    )


def test_render_index_lists_symbols() -> None:
    anchor = Anchor(
        "Base.length(::T)",
        AnchorOrigin.SYMBOL,
        "api.md",
        1,
        (2, 0),
        "Base.length-T",
        "Base.length(::T)",
    )
    assert render_index([anchor], "index.md") == (
        "- [`Base.length(::T)`](api.html#Base.length-T)\n\n"
    )


def test_empty_listings_render_nothing() -> None:
    assert render_contents([], "a.md") == ""
    assert render_index([], "a.md") == ""
