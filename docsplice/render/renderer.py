"""Render resolved pages from markdown into HTML fragments."""

from __future__ import annotations

import re
import typing as typ

from markdown import Markdown

from .link_rewriter import MarkdownLinkExtension

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension

    from docsplice.model import Page
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
FENCE_LABEL_PATTERN = re.compile(
    r"^([`~]{3,})([A-Za-z0-9_+#.@-]+)?([ ,][^\r\n]+)$", re.MULTILINE
)


class HtmlContentRenderer:
    """Render markdown with the extensions every generated page relies on."""

    def __init__(self, link_extension: Extension | None = None) -> None:
        """Initialize a renderer with an optional link extension.

        Parameters
        ----------
        link_extension : Extension, optional
            Markdown extension used when rewriting links; defaults to
            :class:`MarkdownLinkExtension`.
        """
        self._link_extension = link_extension or MarkdownLinkExtension()

    def markdown(self, text: str) -> str:
        """Render markdown into HTML using the configured extensions."""
        normalized = self._normalize_fenced_blocks(text)
        if not normalized.strip():
            return ""
        extensions: list[Extension | str] = [
            "fenced_code",
            "tables",
            "sane_lists",
            "attr_list",
            self._link_extension,
        ]
        md = Markdown(extensions=extensions, output_format="html")
        return md.convert(normalized)

    def page(self, page: Page) -> str:
        """Render a resolved page's markdown serialisation."""
        return self.markdown(page.to_markdown())

    @staticmethod
    def _normalize_fenced_blocks(text: str) -> str:
        without_indent = FENCED_INDENT_PATTERN.sub(r"\1", text)

        def _strip_labels(match: re.Match[str]) -> str:
            fence, language, _extras = match.groups()
            label = language or ""
            return f"{fence}{label}"

        return FENCE_LABEL_PATTERN.sub(_strip_labels, without_indent)


__all__ = ["HtmlContentRenderer"]
