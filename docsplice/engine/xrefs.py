"""Resolve ``[text](@ref)`` links against a frozen anchor registry.

Two link forms are recognised:

* ``[Installing](@ref)`` / ``[`Base.length(::T)`](@ref)``: the link text is
  the target.
* ``[see here](@ref Installing)`` / ``[length](@ref `Base.length`)``: an
  explicit target follows ``@ref``.

Backticked targets are symbol identities; plain targets are heading titles
normalised to slugs. Resolved links are rewritten to relative hrefs;
unresolved ones keep their text and lose the link.
"""

from __future__ import annotations

import re
import typing as typ

from docsplice.diagnostics import Diagnostic, DiagnosticKind, make_diagnostic
from docsplice.markdown_parser import REF_PATTERN, slugify, sub_ref_links
from docsplice.model import (
    AnchorOrigin,
    CrossRef,
    Heading,
    PlainMarkdown,
    ResolvedContent,
    SymbolDoc,
)
from docsplice.targets import SignatureError, parse_target, strip_code_span

from .links import anchor_href

if typ.TYPE_CHECKING:
    from docsplice.model import Anchor, Block, Page
    from docsplice.registry import AnchorRegistry


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1].strip()
    return text


class CrossReferenceResolver:
    """Rewrite the ``@ref`` links of one page at a time.

    The resolver only reads the registry, so pages may be processed
    concurrently; every page collects its own diagnostics.
    """

    def __init__(self, registry: AnchorRegistry) -> None:
        self.registry = registry

    def resolve_page(self, page: Page) -> list[Diagnostic]:
        """Resolve every reference on ``page`` in document order.

        Prose, spliced docstrings and heading titles are rewritten; fenced
        code and inline code spans are left as written.
        """
        diagnostics: list[Diagnostic] = []
        page.refs = []
        current_module: str | None = None
        for block in page.blocks:
            if isinstance(block, ResolvedContent) and block.kind == "meta":
                current_module = block.settings.get("CurrentModule") or current_module
            if isinstance(block, Heading):
                block.title = self._rewrite(
                    page, block.title, block.line, current_module, diagnostics
                )
                continue
            for leaf in _prose_blocks(block):
                leaf.text = self._rewrite(page, leaf.text, leaf.line, current_module, diagnostics)
        return diagnostics

    def _rewrite(
        self,
        page: Page,
        text: str,
        first_line: int,
        current_module: str | None,
        diagnostics: list[Diagnostic],
    ) -> str:
        def _replace(match: re.Match[str]) -> str:
            label = match.group("label")
            line = first_line + text.count("\n", 0, match.start())
            raw_target = (match.group("target") or "").strip()
            key, candidates = self.lookup(label, raw_target or None, current_module)
            if not candidates:
                diagnostics.append(
                    make_diagnostic(
                        DiagnosticKind.UNRESOLVED_REF,
                        page.page_id,
                        line,
                        f"No anchor found for reference '{key}'.",
                    )
                )
                page.refs.append(CrossRef(label=label, key=key, line=line))
                return label
            if len(candidates) > 1:
                choices = ", ".join(anchor.key for anchor in candidates)
                diagnostics.append(
                    make_diagnostic(
                        DiagnosticKind.AMBIGUOUS_REF,
                        page.page_id,
                        line,
                        f"Reference '{key}' matches {choices}; linking the first.",
                    )
                )
            anchor = candidates[0]
            href = anchor_href(page.page_id, anchor)
            page.refs.append(CrossRef(label=label, key=key, line=line, anchor=anchor, href=href))
            return f"[{label}]({href})"

        return sub_ref_links(_replace, text)

    def lookup(
        self, label: str, target: str | None, current_module: str | None
    ) -> tuple[str, list[Anchor]]:
        """Return the lookup key and matching anchors for one reference."""
        text, is_code = strip_code_span(_strip_quotes(target) if target else label)
        if is_code:
            return self._lookup_symbol(text, current_module)
        key = slugify(text)
        anchor = self.registry.lookup(key)
        if anchor is not None and anchor.origin is AnchorOrigin.HEADING:
            return key, [anchor]
        if target:
            symbol_key, candidates = self._lookup_symbol(text, current_module)
            if candidates:
                return symbol_key, candidates
        return key, []

    def _lookup_symbol(self, text: str, current_module: str | None) -> tuple[str, list[Anchor]]:
        try:
            spec = parse_target(text)
        except SignatureError:
            return text, []
        keys = [spec.key]
        if current_module and not spec.name.startswith(f"{current_module}."):
            keys.append(f"{current_module}.{spec.key}")
        for key in keys:
            anchor = self.registry.lookup(key)
            if anchor is not None and anchor.origin is AnchorOrigin.SYMBOL:
                return key, [anchor]
        candidates = self.registry.find_symbols(spec.name, spec.signature)
        if current_module and not spec.qualified:
            local = [
                anchor
                for anchor in candidates
                if anchor.symbol is not None and anchor.symbol.module == current_module
            ]
            if local:
                return spec.key, local
        return spec.key, candidates


def _prose_blocks(block: Block) -> typ.Iterator[PlainMarkdown]:
    if isinstance(block, PlainMarkdown):
        if not block.verbatim:
            yield block
    elif isinstance(block, (ResolvedContent, SymbolDoc)):
        for child in block.blocks:
            yield from _prose_blocks(child)


__all__ = ["REF_PATTERN", "CrossReferenceResolver"]
