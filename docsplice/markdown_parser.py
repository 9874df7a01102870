r"""Parse markdown pages into typed blocks, recognising directive fences.

A directive is a fenced block whose info string names a directive kind
(``docs``, ``autodocs``, ``index``, ``contents`` or ``meta``, optionally
written with a leading ``@``). Everything else is kept verbatim as
:class:`~docsplice.model.PlainMarkdown` or :class:`~docsplice.model.Heading`
blocks. Parsing never raises for malformed input; problems are returned as
diagnostics next to the page so that pages can be parsed concurrently.

Example
-------
>>> from docsplice.markdown_parser import parse_page
>>> result = parse_page("guide.md", "# Guide\n\n```docs\nBase.length\n```\n")
>>> [type(block).__name__ for block in result.page.blocks]
['Heading', 'PlainMarkdown', 'Directive']
>>> result.page.blocks[2].targets[0].name
'Base.length'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from ._constants import DIRECTIVE_KINDS, RECOGNISED_SETTINGS
from .diagnostics import Diagnostic, DiagnosticKind, make_diagnostic
from .model import Directive, Heading, Page, PageContext, PlainMarkdown, TargetSpec
from .targets import SignatureError, parse_target

if typ.TYPE_CHECKING:
    from .model import Block

FENCE_OPEN_PATTERN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^`\n]*?)[ \t]*$")
HEADING_PATTERN = re.compile(r"^ {0,3}(?P<marks>#{1,6})[ \t]+(?P<title>.+?)(?:[ \t]+#+)?[ \t]*$")
DIRECTIVE_PATTERN = re.compile(rf"^@?(?P<kind>{'|'.join(DIRECTIVE_KINDS)})$")
SETTING_PATTERN = re.compile(r"^(?P<key>[A-Za-z_]\w*)\s*=\s*(?P<value>.+?)\s*$")
INTEGER_PATTERN = re.compile(r"^-?\d+$")
REF_PATTERN = re.compile(
    r"\[(?P<label>(?:[^\[\]\n]|\[[^\[\]\n]*\])+)\]"
    r"\(\s*@ref(?:\s+(?P<target>[^)\n]*?))?\s*\)"
)
# Code spans may wrap lines but never cross a blank line.
CODE_SPAN_PATTERN = re.compile(
    r"(?<!`)(?P<ticks>`+)(?!`)(?:(?!\n[ \t]*\n).)+?(?<!`)(?P=ticks)(?!`)", re.DOTALL
)


@dc.dataclass(slots=True)
class ParseResult:
    """A parsed page together with the diagnostics raised while parsing it."""

    page: Page
    diagnostics: list[Diagnostic] = dc.field(default_factory=list)


def _clean_heading(text: str) -> str:
    """Return a cleaned heading, removing escapes and whitespace."""
    return text.replace("\\", "").strip()


def _slugify(title: str) -> str:
    text = re.sub(r"[^\w\s-]", "", title.lower())
    slug = re.sub(r"\s+", "-", text.strip())
    return slug or "section"


def sub_ref_links(repl: typ.Callable[[re.Match[str]], str], text: str) -> str:
    """Replace each ``[text](@ref)`` link in ``text`` with ``repl(match)``.

    Links that start inside an inline code span are literal text and are
    left alone.

    >>> sub_ref_links(lambda m: m.group("label"), "[A](@ref) and `[B](@ref)`")
    'A and `[B](@ref)`'
    """
    spans = [match.span() for match in CODE_SPAN_PATTERN.finditer(text)]

    def _outside_code(match: re.Match[str]) -> str:
        if any(start < match.start() < end for start, end in spans):
            return match.group(0)
        return repl(match)

    return REF_PATTERN.sub(_outside_code, text)


def strip_ref_links(text: str) -> str:
    """Reduce every ``@ref`` link in ``text`` to its link text."""
    return sub_ref_links(lambda match: match.group("label"), text)


def slugify(title: str) -> str:
    """Normalise a heading title into its anchor slug.

    ``@ref`` links contribute their link text only. The title is then
    lowercased, punctuation is stripped and runs of whitespace collapse to
    single hyphens.

    >>> slugify("Getting `Started`: Part 1")
    'getting-started-part-1'
    >>> slugify("More on [Intro](@ref)")
    'more-on-intro'
    """
    return _slugify(strip_ref_links(_clean_heading(title)))


def _unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def symbol_anchor_id(identity: str, used: set[str]) -> str:
    """Return a page-unique HTML id for a spliced symbol identity."""
    base = re.sub(r"[^A-Za-z0-9_.-]+", "-", identity).strip("-") or "symbol"
    return _unique_slug(base, used)


def _strip_quotes(text: str) -> str:
    value = text.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_value(text: str) -> typ.Any:
    """Parse a setting value: bracketed list, integer or scalar string."""
    value = text.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1].strip()
        if not inner:
            return []
        return [_strip_quotes(item) for item in inner.split(",") if item.strip()]
    if INTEGER_PATTERN.match(value):
        return int(value)
    return _strip_quotes(value)


class _PageScanner:
    """Line scanner that splits one page into blocks."""

    def __init__(self, page_id: str, text: str, *, directives: bool, first_line: int) -> None:
        self.page_id = page_id
        self.lines = text.splitlines(keepends=True)
        self.directives = directives
        self.first_line = first_line
        self.blocks: list[Block] = []
        self.diagnostics: list[Diagnostic] = []
        self.used_slugs: set[str] = set()
        self.current_module: str | None = None
        self._prose: list[str] = []
        self._prose_start = first_line

    def _line_no(self, idx: int) -> int:
        return self.first_line + idx

    def _report(self, kind: DiagnosticKind, idx: int, detail: str) -> None:
        self.diagnostics.append(make_diagnostic(kind, self.page_id, self._line_no(idx), detail))

    def _flush(self, next_idx: int) -> None:
        if self._prose:
            self.blocks.append(PlainMarkdown(text="".join(self._prose), line=self._prose_start))
            self._prose = []
        self._prose_start = self._line_no(next_idx)

    def scan(self) -> list[Block]:
        idx = 0
        while idx < len(self.lines):
            line = self.lines[idx]
            fence = FENCE_OPEN_PATTERN.match(line.rstrip("\r\n"))
            if fence:
                idx = self._consume_fence(idx, fence)
                continue
            heading = HEADING_PATTERN.match(line.rstrip("\r\n")) if self.directives else None
            if heading:
                self._flush(idx)
                self._add_heading(idx, heading)
                self._flush(idx + 1)
            else:
                if not self._prose:
                    self._prose_start = self._line_no(idx)
                self._prose.append(line)
            idx += 1
        self._flush(idx)
        return self.blocks

    def _find_close(self, start: int, fence: str) -> int | None:
        closing = re.compile(rf"^ {{0,3}}{re.escape(fence[0])}{{{len(fence)},}}[ \t]*$")
        for idx in range(start + 1, len(self.lines)):
            if closing.match(self.lines[idx].rstrip("\r\n")):
                return idx
        return None

    def _consume_fence(self, idx: int, fence: re.Match[str]) -> int:
        info = fence.group("info").split()
        kind_match = DIRECTIVE_PATTERN.match(info[0]) if info and self.directives else None
        close = self._find_close(idx, fence.group("fence"))
        if kind_match is None:
            end = len(self.lines) if close is None else close + 1
            self._flush(idx)
            text = "".join(self.lines[idx:end])
            self.blocks.append(PlainMarkdown(text=text, line=self._line_no(idx), verbatim=True))
            self._flush(end)
            return end
        kind = kind_match.group("kind")
        if close is None:
            # An unclosed fence runs to the end of the page; close it for rendering.
            self._report(
                DiagnosticKind.PARSE_ERROR,
                idx,
                f"Unclosed '{kind}' directive fence; rest of page kept as code.",
            )
            self._flush(idx)
            text = "".join(self.lines[idx:])
            if not text.endswith("\n"):
                text += "\n"
            text += f"{fence.group('fence')}\n"
            self.blocks.append(PlainMarkdown(text=text, line=self._line_no(idx), verbatim=True))
            self._flush(len(self.lines))
            return len(self.lines)
        self._flush(idx)
        self._add_directive(kind, idx, close)
        self._flush(close + 1)
        return close + 1

    def _add_heading(self, idx: int, match: re.Match[str]) -> None:
        title = _clean_heading(match.group("title"))
        label = strip_ref_links(title)
        slug = _slugify(label)
        duplicate = slug in self.used_slugs
        if duplicate:
            self._report(
                DiagnosticKind.DUPLICATE_ANCHOR,
                idx,
                f"Heading '{title}' repeats slug '{slug}' already used on this page.",
            )
        anchor_id = _unique_slug(slug, self.used_slugs)
        self.blocks.append(
            Heading(
                level=len(match.group("marks")),
                title=title,
                slug=slug,
                anchor_id=anchor_id,
                line=self._line_no(idx),
                duplicate=duplicate,
                label=label,
            )
        )

    def _add_directive(self, kind: str, start: int, close: int) -> None:
        body = self.lines[start + 1 : close]
        directive = Directive(
            kind=kind,
            current_module=self.current_module,
            line=self._line_no(start),
            raw="".join(self.lines[start : close + 1]),
        )
        for offset, raw_line in enumerate(body, start=start + 1):
            text = raw_line.strip()
            if not text or text.startswith("#"):
                continue
            if kind == "docs":
                self._add_target(directive.targets, text, offset)
            else:
                self._add_setting(directive, text, offset)
        if kind == "meta" and "CurrentModule" in directive.settings:
            self.current_module = directive.settings["CurrentModule"] or None
        self.blocks.append(directive)

    def _add_target(self, targets: list[TargetSpec], text: str, idx: int) -> None:
        try:
            targets.append(parse_target(text))
        except SignatureError as exc:
            self._report(DiagnosticKind.PARSE_ERROR, idx, f"{exc} Target skipped.")

    def _add_setting(self, directive: Directive, text: str, idx: int) -> None:
        match = SETTING_PATTERN.match(text)
        if not match:
            self._report(
                DiagnosticKind.PARSE_ERROR,
                idx,
                f"Expected 'Key = value' in '{directive.kind}' block, got '{text}'.",
            )
            return
        key = match.group("key")
        if key not in RECOGNISED_SETTINGS[directive.kind]:
            self._report(
                DiagnosticKind.UNKNOWN_SETTING,
                idx,
                f"Unknown setting '{key}' in '{directive.kind}' block ignored.",
            )
            return
        value = _parse_value(match.group("value"))
        if key == "Depth" and (not isinstance(value, int) or value < 1):
            self._report(
                DiagnosticKind.PARSE_ERROR,
                idx,
                f"Depth must be a positive integer, got '{match.group('value')}'.",
            )
            return
        if key in ("Pages", "Modules") and not isinstance(value, list):
            value = [str(value)]
        if key == "CurrentModule" and isinstance(value, list):
            self._report(
                DiagnosticKind.PARSE_ERROR,
                idx,
                f"CurrentModule expects a single module, got '{match.group('value')}'.",
            )
            return
        directive.settings[key] = value if key != "CurrentModule" else str(value)


def parse_page(page_id: str, text: str, *, index: int = 0) -> ParseResult:
    """Parse one page's markdown into a :class:`~docsplice.model.Page`.

    Parameters
    ----------
    page_id : str
        Identifier of the page (its source path within the build).
    text : str
        Raw markdown content.
    index : int, optional
        Build order of the page.

    Returns
    -------
    ParseResult
        The page and every diagnostic raised while parsing it, in source
        order.
    """
    scanner = _PageScanner(page_id, text, directives=True, first_line=1)
    blocks = scanner.scan()
    page = Page(
        page_id=page_id,
        index=index,
        blocks=blocks,
        context=PageContext(current_module=scanner.current_module),
    )
    return ParseResult(page=page, diagnostics=scanner.diagnostics)


def parse_fragment(text: str, *, page_id: str = "", first_line: int = 1) -> list[Block]:
    """Split spliced markdown into prose and verbatim code blocks only.

    Directive fences and headings inside the fragment are not interpreted, so
    only ``@ref`` links in the prose are resolved later.
    """
    scanner = _PageScanner(page_id, text, directives=False, first_line=first_line)
    return scanner.scan()


__all__ = [
    "REF_PATTERN",
    "ParseResult",
    "parse_fragment",
    "parse_page",
    "slugify",
    "strip_ref_links",
    "sub_ref_links",
    "symbol_anchor_id",
]
