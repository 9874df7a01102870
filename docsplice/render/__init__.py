"""Utilities for rendering resolved docsplice pages to HTML."""

from .link_rewriter import MarkdownLinkExtension
from .renderer import HtmlContentRenderer

__all__ = ["HtmlContentRenderer", "MarkdownLinkExtension"]
