"""Helpers for rewriting relative markdown page links to generated HTML pages."""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from docsplice._constants import OUTPUT_SUFFIX, SOURCE_SUFFIX

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any


class MarkdownLinkExtension(Extension):
    """Rewrite relative ``*.md`` links to the ``*.html`` files the build writes.

    Hand-written links between source pages (``[setup](../guide/setup.md)``)
    keep working in the generated site; absolute URLs, fragments and
    non-markdown targets are left untouched.
    """

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the page-link treeprocessor on the Markdown instance."""
        md.treeprocessors.register(MarkdownLinkTreeprocessor(md), "docsplice_page_links", 15)


class MarkdownLinkTreeprocessor(Treeprocessor):
    """Point relative markdown page links at their rendered counterparts."""

    def run(self, root: Element) -> Element:
        """Rewrite relative ``.md`` anchors in the parsed markdown tree."""
        for element in root.iter():
            if element.tag == "a":
                rewritten = rewrite_page_link(element.get("href"))
                if rewritten:
                    element.set("href", rewritten)
        return root


def rewrite_page_link(target: str | None) -> str | None:
    """Return ``target`` with its ``.md`` path swapped for ``.html``, if relative.

    >>> rewrite_page_link("../guide/setup.md#install")
    '../guide/setup.html#install'
    >>> rewrite_page_link("https://example.com/readme.md") is None
    True
    """
    if not target or target.startswith(("#", "//")) or "://" in target:
        return None
    parsed = urlsplit(target)
    if parsed.scheme or parsed.netloc or not parsed.path.endswith(SOURCE_SUFFIX):
        return None
    path = posixpath.normpath(parsed.path)
    if parsed.path.startswith("./"):
        path = f"./{path}"
    url = f"{path[: -len(SOURCE_SUFFIX)]}{OUTPUT_SUFFIX}"
    if parsed.query:
        url = f"{url}?{parsed.query}"
    if parsed.fragment:
        url = f"{url}#{parsed.fragment}"
    return url


__all__ = ["MarkdownLinkExtension", "MarkdownLinkTreeprocessor", "rewrite_page_link"]
