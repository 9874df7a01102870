"""Typed document tree shared by the parser, the expansion engine and renderer.

A build is a list of :class:`Page` objects. Each page holds an ordered list of
blocks; the parser produces :class:`PlainMarkdown`, :class:`Heading` and
:class:`Directive` blocks, and the expansion engine replaces every
:class:`Directive` with exactly one :class:`ResolvedContent`.

Example
-------
>>> from docsplice.model import Heading, Page
>>> page = Page(page_id="index.md", index=0)
>>> page.blocks.append(Heading(level=1, title="Home", slug="home", anchor_id="home"))
>>> page.to_markdown()
'# Home {: #home }\\n'
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ


class AnchorOrigin(enum.StrEnum):
    """Where a registered anchor came from."""

    HEADING = "heading"
    SYMBOL = "symbol"


@dc.dataclass(frozen=True, slots=True)
class TargetSpec:
    """Identifier plus optional signature fragment, e.g. ``length(::T)``.

    Attributes
    ----------
    name : str
        Bare (``length``) or qualified (``Base.length``) identifier.
    signature : str or None
        Normalised argument signature including parentheses, or ``None`` when
        the target was written without one.
    """

    name: str
    signature: str | None = None

    @property
    def key(self) -> str:
        """Return the identity string used for registry lookups."""
        return f"{self.name}{self.signature or ''}"

    @property
    def qualified(self) -> bool:
        """Return ``True`` when the name carries a module prefix."""
        return "." in self.name

    def __str__(self) -> str:
        return self.key


@dc.dataclass(frozen=True, slots=True)
class Symbol:
    """Documented entity supplied by a symbol documentation provider.

    Attributes
    ----------
    name : str
        Name relative to the defining module (``length`` or ``Parser.feed``).
    module : str
        Dotted name of the defining module.
    signature : str or None
        Normalised signature distinguishing overloads, if any.
    doc : str
        Opaque markdown documentation text.
    """

    name: str
    module: str
    signature: str | None = None
    doc: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    @property
    def identity(self) -> str:
        """Return ``module.name`` plus the signature, the symbol's anchor key."""
        return f"{self.qualified_name}{self.signature or ''}"


@dc.dataclass(slots=True)
class Anchor:
    """A build-wide link target with its resolved location.

    Attributes
    ----------
    key : str
        Heading slug or symbol identity.
    origin : AnchorOrigin
        Whether the anchor points at a heading or a spliced symbol.
    page_id : str
        Identifier of the owning page.
    page_index : int
        Build order of the owning page.
    position : tuple[int, int]
        ``(block index, entry index)`` within the page.
    anchor_id : str
        HTML id emitted for the target element.
    label : str
        Human readable link text (heading title or symbol identity).
    level : int
        Heading level; ``0`` for symbols.
    symbol : Symbol or None
        The spliced symbol for symbol anchors.
    claimed : bool
        Set once the key has been taken in the registry.
    """

    key: str
    origin: AnchorOrigin
    page_id: str
    page_index: int
    position: tuple[int, int]
    anchor_id: str
    label: str
    level: int = 0
    symbol: Symbol | None = None
    claimed: bool = False

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.page_index, *self.position)


@dc.dataclass(slots=True)
class PlainMarkdown:
    """Markdown preserved as written; ``verbatim`` marks fenced code."""

    text: str
    line: int = 1
    verbatim: bool = False

    def to_markdown(self) -> str:
        return self.text


@dc.dataclass(slots=True)
class Heading:
    """ATX heading with its normalised slug and emitted HTML id.

    ``title`` is the heading source and may hold inline links; ``label`` is
    its plain text with any ``@ref`` links reduced to their link text.
    """

    level: int
    title: str
    slug: str
    anchor_id: str
    line: int = 1
    duplicate: bool = False
    label: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.title

    def to_markdown(self) -> str:
        return f"{'#' * self.level} {self.title} {{: #{self.anchor_id} }}\n"


@dc.dataclass(slots=True)
class Directive:
    """Parsed directive block awaiting expansion.

    Attributes
    ----------
    kind : str
        One of ``docs``, ``autodocs``, ``index``, ``contents``, ``meta``.
    settings : dict[str, object]
        Recognised ``Key = value`` settings.
    targets : list[TargetSpec]
        Target specs listed in a ``docs`` body.
    current_module : str or None
        Page module context in effect where the directive appears.
    line : int
        1-based line of the opening fence.
    raw : str
        Original fenced source, kept for error reporting.
    """

    kind: str
    settings: dict[str, typ.Any] = dc.field(default_factory=dict)
    targets: list[TargetSpec] = dc.field(default_factory=list)
    current_module: str | None = None
    line: int = 1
    raw: str = ""

    def to_markdown(self) -> str:
        return self.raw


@dc.dataclass(slots=True)
class SymbolDoc:
    """A spliced docstring inside a ``docs``/``autodocs`` expansion."""

    symbol: Symbol
    key: str
    anchor_id: str
    blocks: list[Block] = dc.field(default_factory=list)

    def to_markdown(self) -> str:
        header = f"#### `{self.key}` {{: #{self.anchor_id} .docstring }}\n"
        body = "".join(block.to_markdown() for block in self.blocks)
        return f"{header}\n{body.rstrip()}\n\n"


@dc.dataclass(slots=True)
class ResolvedContent:
    """Content substituted for a directive by the expansion engine.

    ``anchors`` lists the anchors a ``contents``/``index`` listing links to;
    ``settings`` keeps the directive's settings (``meta`` relies on them).
    """

    kind: str
    blocks: list[Block] = dc.field(default_factory=list)
    anchors: list[Anchor] = dc.field(default_factory=list)
    settings: dict[str, typ.Any] = dc.field(default_factory=dict)
    line: int = 1

    def to_markdown(self) -> str:
        return "".join(block.to_markdown() for block in self.blocks)


Block = PlainMarkdown | Heading | Directive | SymbolDoc | ResolvedContent


@dc.dataclass(slots=True)
class PageContext:
    """Per-page override context set by ``meta`` directives."""

    current_module: str | None = None


@dc.dataclass(slots=True)
class CrossRef:
    """Outcome of resolving one ``@ref`` link.

    ``anchor`` is ``None`` for unresolved references, whose text is left
    inert in the output.
    """

    label: str
    key: str
    line: int
    anchor: Anchor | None = None
    href: str | None = None


@dc.dataclass(slots=True)
class Page:
    """One source markdown file and its block tree."""

    page_id: str
    index: int
    blocks: list[Block] = dc.field(default_factory=list)
    context: PageContext = dc.field(default_factory=PageContext)
    refs: list[CrossRef] = dc.field(default_factory=list)

    @property
    def title(self) -> str:
        """Return the first heading title, falling back to the page id."""
        for block in self.blocks:
            if isinstance(block, Heading):
                return block.label
        return self.page_id

    def iter_blocks(self) -> typ.Iterator[Block]:
        """Yield every block depth-first, including spliced content."""
        yield from _walk(self.blocks)

    def to_markdown(self) -> str:
        return "".join(block.to_markdown() for block in self.blocks)


def _walk(blocks: typ.Iterable[Block]) -> typ.Iterator[Block]:
    for block in blocks:
        yield block
        if isinstance(block, (ResolvedContent, SymbolDoc)):
            yield from _walk(block.blocks)


__all__ = [
    "Anchor",
    "AnchorOrigin",
    "Block",
    "CrossRef",
    "Directive",
    "Heading",
    "Page",
    "PageContext",
    "PlainMarkdown",
    "ResolvedContent",
    "Symbol",
    "SymbolDoc",
    "TargetSpec",
]
