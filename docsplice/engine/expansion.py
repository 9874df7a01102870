"""Multi-pass expansion pipeline: parse, expand docs, expand listings, resolve.

:class:`ExpansionEngine` owns the injected symbol provider and build options;
each call to :meth:`ExpansionEngine.begin` creates a :class:`Build`, a state
machine whose stages must run strictly in order. The registry is populated by
heading registration and ``docs``/``autodocs`` expansion, frozen before
listings are generated, and only read while ``@ref`` links are resolved, so
forward references across pages always resolve.

Example
-------
>>> from docsplice.engine import ExpansionEngine
>>> from docsplice.model import Symbol
>>> from docsplice.providers import StaticSymbolProvider
>>> provider = StaticSymbolProvider([Symbol("length", "Base", None, "Count items.")])
>>> engine = ExpansionEngine(provider)
>>> result = engine.run([("a.md", "See [`Base.length`](@ref).\\n"), ("b.md", "```docs\\nBase.length\\n```\\n")])
>>> result.ok
True
>>> result.pages[0].to_markdown()
'See [`Base.length`](b.html#Base.length).\\n'
"""

from __future__ import annotations

import collections.abc as cabc
import concurrent.futures
import dataclasses as dc
import enum
import logging
import typing as typ

from docsplice._constants import DEFAULT_CONTENTS_DEPTH, DOCS_KINDS, LISTING_KINDS
from docsplice.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticsCollector,
    Severity,
    make_diagnostic,
)
from docsplice.markdown_parser import ParseResult, parse_fragment, parse_page, symbol_anchor_id
from docsplice.model import (
    Anchor,
    AnchorOrigin,
    Directive,
    Heading,
    Page,
    PlainMarkdown,
    ResolvedContent,
    SymbolDoc,
)
from docsplice.registry import AnchorRegistry, RegistrationResult
from docsplice.resolver import SymbolResolver
from docsplice.targets import symbol_key

from .links import resolve_page_reference
from .listings import render_contents, render_index
from .xrefs import CrossReferenceResolver

if typ.TYPE_CHECKING:
    from docsplice.model import Block, Symbol
    from docsplice.providers import SymbolProvider

logger = logging.getLogger(__name__)

_T = typ.TypeVar("_T")
_R = typ.TypeVar("_R")


class BuildStage(enum.IntEnum):
    """Pipeline states in their only permitted order."""

    CREATED = 0
    PARSE = 1
    EXPAND_DOCS = 2
    EXPAND_LISTINGS = 3
    RESOLVE_REFS = 4


class StageOrderError(RuntimeError):
    """Raised when a pipeline stage is run out of order."""


@dc.dataclass(slots=True)
class BuildResult:
    """Resolved document tree plus everything collected while building it."""

    pages: list[Page]
    registry: AnchorRegistry
    diagnostics: DiagnosticsCollector

    @property
    def ok(self) -> bool:
        """Return ``True`` when no error-severity diagnostic was raised."""
        return not self.diagnostics.has_errors

    def page(self, page_id: str) -> Page:
        for page in self.pages:
            if page.page_id == page_id:
                return page
        msg = f"Unknown page '{page_id}'."
        raise KeyError(msg)


class ExpansionEngine:
    """Drive directive expansion and cross-reference resolution for a build."""

    def __init__(
        self,
        provider: SymbolProvider,
        *,
        modules: cabc.Sequence[str] = (),
        warn_only: cabc.Iterable[DiagnosticKind | str] = (),
        max_workers: int | None = None,
    ) -> None:
        """Configure the engine.

        Parameters
        ----------
        provider : SymbolProvider
            External source of symbol documentation.
        modules : Sequence[str], optional
            Build-level module list restricting symbol lookups.
        warn_only : Iterable[DiagnosticKind | str], optional
            Diagnostic kinds downgraded to warnings.
        max_workers : int, optional
            Thread count for the per-page stages; ``1`` runs them inline.
        """
        self.provider = provider
        self.modules = tuple(modules)
        self.warn_only = tuple(warn_only)
        self.max_workers = max_workers

    def begin(self, sources: cabc.Sequence[tuple[str, str]]) -> Build:
        """Return a fresh build over ``(page_id, markdown)`` pairs in page order."""
        return Build(self, sources)

    def run(self, sources: cabc.Sequence[tuple[str, str]]) -> BuildResult:
        """Run every stage over ``sources`` and return the resolved build."""
        build = self.begin(sources)
        build.parse()
        build.expand_docs()
        build.expand_listings()
        build.resolve_refs()
        return build.result()

    def map_pages(self, func: cabc.Callable[[_T], _R], items: cabc.Sequence[_T]) -> list[_R]:
        """Apply ``func`` to ``items`` and return results in input order."""
        if self.max_workers == 1 or len(items) < 2:
            return [func(item) for item in items]
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(func, items))


class Build:
    """State of one pipeline run over an owned, mutable page tree."""

    def __init__(self, engine: ExpansionEngine, sources: cabc.Sequence[tuple[str, str]]) -> None:
        page_ids = [page_id for page_id, _text in sources]
        if len(set(page_ids)) != len(page_ids):
            msg = "Page identifiers must be unique within a build."
            raise ValueError(msg)
        self.engine = engine
        self.sources = list(sources)
        self.stage = BuildStage.CREATED
        self.pages: list[Page] = []
        self.registry = AnchorRegistry()
        self.diagnostics = DiagnosticsCollector(engine.warn_only)
        self.resolver = SymbolResolver(engine.provider, modules=engine.modules)

    def _enter(self, stage: BuildStage) -> None:
        if stage != self.stage + 1:
            msg = f"Cannot run stage {stage.name} after {self.stage.name}."
            raise StageOrderError(msg)
        logger.info("stage %s: %d page(s)", stage.name.lower(), len(self.sources))
        self.stage = stage

    def _report(self, kind: DiagnosticKind, page: Page, line: int, detail: str) -> None:
        self.diagnostics.add(kind, page.page_id, line, detail)

    # -- Parse ---------------------------------------------------------------

    def parse(self) -> None:
        """Parse every page independently; merge results in page order."""
        self._enter(BuildStage.PARSE)
        indexed = list(enumerate(self.sources))

        def _parse(item: tuple[int, tuple[str, str]]) -> ParseResult:
            index, (page_id, text) = item
            return parse_page(page_id, text, index=index)

        for result in self.engine.map_pages(_parse, indexed):
            self.pages.append(result.page)
            self.diagnostics.extend(result.diagnostics)

    # -- Expand-Docs ---------------------------------------------------------

    def expand_docs(self) -> None:
        """Register heading anchors, then splice ``docs``/``autodocs`` symbols."""
        self._enter(BuildStage.EXPAND_DOCS)
        for page in self.pages:
            self._register_headings(page)
        for page in self.pages:
            used_ids = {b.anchor_id for b in page.blocks if isinstance(b, Heading)}
            for block_index, block in enumerate(page.blocks):
                if isinstance(block, Directive) and block.kind in DOCS_KINDS:
                    page.blocks[block_index] = self._expand_docs_directive(
                        page, block_index, block, used_ids
                    )

    def _register_headings(self, page: Page) -> None:
        for block_index, block in enumerate(page.blocks):
            if not isinstance(block, Heading) or block.duplicate:
                continue
            anchor = Anchor(
                key=block.slug,
                origin=AnchorOrigin.HEADING,
                page_id=page.page_id,
                page_index=page.index,
                position=(block_index, 0),
                anchor_id=block.anchor_id,
                label=block.label,
                level=block.level,
            )
            if self.registry.register(anchor) is RegistrationResult.DUPLICATE:
                existing = self.registry.lookup(anchor.key)
                owner = existing.page_id if existing else "?"
                self._report(
                    DiagnosticKind.DUPLICATE_ANCHOR,
                    page,
                    block.line,
                    f"Heading '{block.title}' duplicates anchor '{anchor.key}' from {owner}.",
                )

    def _expand_docs_directive(
        self, page: Page, block_index: int, directive: Directive, used_ids: set[str]
    ) -> ResolvedContent:
        content = ResolvedContent(
            kind=directive.kind, settings=dict(directive.settings), line=directive.line
        )
        if directive.kind == "docs":
            for target in directive.targets:
                scope = self.resolver.scope(directive.current_module, target)
                symbols = self.resolver.resolve(target, scope)
                if not symbols:
                    where = "any module" if scope is None else ", ".join(scope) or "no module"
                    self._report(
                        DiagnosticKind.NO_MATCHING_SYMBOL,
                        page,
                        directive.line,
                        f"No documented symbol matches '{target}' in {where}.",
                    )
                    continue
                for symbol in symbols:
                    self._splice(page, block_index, directive, content, symbol, used_ids)
        elif directive.kind == "autodocs":
            for module in self._autodocs_modules(page, directive):
                for symbol in self.resolver.module_symbols(module):
                    self._splice(page, block_index, directive, content, symbol, used_ids)
        return content

    def _autodocs_modules(self, page: Page, directive: Directive) -> list[str]:
        requested = directive.settings.get("Modules")
        if requested is None:
            if directive.current_module:
                requested = [directive.current_module]
            else:
                requested = list(self.resolver.modules)
        if not requested:
            self._report(
                DiagnosticKind.NO_MATCHING_SYMBOL,
                page,
                directive.line,
                "autodocs block names no Modules and the page has no module context.",
            )
            return []
        selected: list[str] = []
        for module in requested:
            if self.resolver.modules and module not in self.resolver.modules:
                self._report(
                    DiagnosticKind.NO_MATCHING_SYMBOL,
                    page,
                    directive.line,
                    f"Module '{module}' is not part of the build module list.",
                )
            elif not self.resolver.module_symbols(module):
                self._report(
                    DiagnosticKind.NO_MATCHING_SYMBOL,
                    page,
                    directive.line,
                    f"Module '{module}' has no documented symbols.",
                )
            else:
                selected.append(module)
        return selected

    def _splice(
        self,
        page: Page,
        block_index: int,
        directive: Directive,
        content: ResolvedContent,
        symbol: Symbol,
        used_ids: set[str],
    ) -> None:
        key = symbol_key(symbol)
        existing = self.registry.lookup(key)
        if existing is not None:
            self._report(
                DiagnosticKind.DUPLICATE_ANCHOR,
                page,
                directive.line,
                f"Symbol '{key}' is already documented on {existing.page_id}; "
                "keeping the first.",
            )
            return
        anchor = Anchor(
            key=key,
            origin=AnchorOrigin.SYMBOL,
            page_id=page.page_id,
            page_index=page.index,
            position=(block_index, len(content.blocks)),
            anchor_id=symbol_anchor_id(key, used_ids),
            label=key,
            symbol=symbol,
        )
        self.registry.register(anchor)
        body = parse_fragment(symbol.doc, page_id=page.page_id, first_line=directive.line)
        content.blocks.append(
            SymbolDoc(symbol=symbol, key=key, anchor_id=anchor.anchor_id, blocks=body)
        )

    # -- Expand-Index/Contents ----------------------------------------------

    def expand_listings(self) -> None:
        """Freeze the registry and generate ``contents``/``index`` listings."""
        self._enter(BuildStage.EXPAND_LISTINGS)
        self.registry.freeze()
        page_ids = [page.page_id for page in self.pages]
        for page_diagnostics in self.engine.map_pages(
            lambda page: self._expand_listings_on(page, page_ids), self.pages
        ):
            self.diagnostics.extend(page_diagnostics)
        self._check_expanded()

    def _expand_listings_on(self, page: Page, page_ids: list[str]) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for block_index, block in enumerate(page.blocks):
            if isinstance(block, Directive) and block.kind in LISTING_KINDS:
                page.blocks[block_index] = self._expand_listing(
                    page, block, page_ids, diagnostics
                )
        return diagnostics

    def _expand_listing(
        self,
        page: Page,
        directive: Directive,
        page_ids: list[str],
        diagnostics: list[Diagnostic],
    ) -> ResolvedContent:
        pages = self._select_pages(page, directive, page_ids, diagnostics)
        if directive.kind == "contents":
            depth = directive.settings.get("Depth", DEFAULT_CONTENTS_DEPTH)
            anchors = self.registry.anchors(
                origin=AnchorOrigin.HEADING, pages=pages, max_level=depth
            )
            text = render_contents(anchors, page.page_id)
        else:
            modules = directive.settings.get("Modules")
            anchors = self.registry.anchors(
                origin=AnchorOrigin.SYMBOL,
                pages=pages,
                modules=set(modules) if modules is not None else None,
            )
            text = render_index(anchors, page.page_id)
        blocks: list[Block] = [PlainMarkdown(text=text, line=directive.line)] if text else []
        return ResolvedContent(
            kind=directive.kind,
            blocks=blocks,
            anchors=anchors,
            settings=dict(directive.settings),
            line=directive.line,
        )

    @staticmethod
    def _select_pages(
        page: Page,
        directive: Directive,
        page_ids: list[str],
        diagnostics: list[Diagnostic],
    ) -> set[str] | None:
        requested = directive.settings.get("Pages")
        if requested is None:
            return None
        selected: set[str] = set()
        for name in requested:
            match = resolve_page_reference(page.page_id, name, page_ids)
            if match is None:
                diagnostics.append(
                    make_diagnostic(
                        DiagnosticKind.UNRESOLVED_REF,
                        page.page_id,
                        directive.line,
                        f"Pages entry '{name}' does not match any page in the build.",
                        severity=Severity.WARNING,
                    )
                )
            else:
                selected.add(match)
        return selected

    def _check_expanded(self) -> None:
        for page in self.pages:
            for block in page.iter_blocks():
                if isinstance(block, Directive):
                    msg = f"Directive '{block.kind}' on {page.page_id} survived expansion."
                    raise StageOrderError(msg)

    # -- Resolve-Refs --------------------------------------------------------

    def resolve_refs(self) -> None:
        """Rewrite every ``@ref`` link against the frozen registry."""
        self._enter(BuildStage.RESOLVE_REFS)
        xrefs = CrossReferenceResolver(self.registry)
        for page_diagnostics in self.engine.map_pages(xrefs.resolve_page, self.pages):
            self.diagnostics.extend(page_diagnostics)

    def result(self) -> BuildResult:
        """Return the resolved build once every stage has run."""
        if self.stage is not BuildStage.RESOLVE_REFS:
            msg = f"Build is incomplete; last stage was {self.stage.name}."
            raise StageOrderError(msg)
        return BuildResult(pages=self.pages, registry=self.registry, diagnostics=self.diagnostics)


__all__ = ["Build", "BuildResult", "BuildStage", "ExpansionEngine", "StageOrderError"]
