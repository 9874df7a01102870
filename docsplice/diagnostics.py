"""Collect non-fatal problems found while building a document.

The collector is an append-only sink shared by every pipeline stage. It keeps
diagnostics in the order they were raised, applies the ``warn_only`` policy
(kinds downgraded to warnings) and summarises counts for the CLI and the JSON
report.

Examples
--------
>>> from docsplice.diagnostics import DiagnosticKind, DiagnosticsCollector
>>> sink = DiagnosticsCollector()
>>> _ = sink.add(DiagnosticKind.UNRESOLVED_REF, "index.md", 3, "no anchor 'foo'")
>>> sink.has_errors
True
>>> sink.summary()["unresolved_ref"]
{'error': 1}
"""

from __future__ import annotations

import collections
import dataclasses as dc
import enum
import logging
import typing as typ

logger = logging.getLogger(__name__)


class Severity(enum.StrEnum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(enum.StrEnum):
    """Categories of problems reported during a build."""

    PARSE_ERROR = "parse_error"
    NO_MATCHING_SYMBOL = "no_matching_symbol"
    AMBIGUOUS_REF = "ambiguous_ref"
    UNRESOLVED_REF = "unresolved_ref"
    DUPLICATE_ANCHOR = "duplicate_anchor"
    UNKNOWN_SETTING = "unknown_setting"


DEFAULT_SEVERITIES: dict[DiagnosticKind, Severity] = {
    DiagnosticKind.PARSE_ERROR: Severity.ERROR,
    DiagnosticKind.NO_MATCHING_SYMBOL: Severity.ERROR,
    DiagnosticKind.AMBIGUOUS_REF: Severity.WARNING,
    DiagnosticKind.UNRESOLVED_REF: Severity.ERROR,
    DiagnosticKind.DUPLICATE_ANCHOR: Severity.ERROR,
    DiagnosticKind.UNKNOWN_SETTING: Severity.WARNING,
}


@dc.dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single problem with its location.

    Attributes
    ----------
    severity : Severity
        ``warning`` or ``error``.
    kind : DiagnosticKind
        Problem category.
    page_id : str
        Page on which the problem was found.
    line : int
        1-based source line, ``0`` when not applicable.
    detail : str
        Free-text explanation.
    """

    severity: Severity
    kind: DiagnosticKind
    page_id: str
    line: int
    detail: str

    def format(self) -> str:
        location = f"{self.page_id}:{self.line}" if self.line else self.page_id
        return f"{location}: {self.severity}[{self.kind}]: {self.detail}"


def make_diagnostic(
    kind: DiagnosticKind,
    page_id: str,
    line: int,
    detail: str,
    *,
    severity: Severity | None = None,
) -> Diagnostic:
    """Build a diagnostic using the default severity for ``kind``."""
    return Diagnostic(
        severity=severity or DEFAULT_SEVERITIES[kind],
        kind=kind,
        page_id=page_id,
        line=line,
        detail=detail,
    )


class DiagnosticsCollector:
    """Append-only, order-preserving diagnostics sink."""

    def __init__(self, warn_only: typ.Iterable[DiagnosticKind | str] = ()) -> None:
        """Create an empty collector.

        Parameters
        ----------
        warn_only : Iterable[DiagnosticKind | str], optional
            Kinds whose error-severity diagnostics are recorded as warnings.
        """
        self.warn_only = frozenset(DiagnosticKind(kind) for kind in warn_only)
        self._entries: list[Diagnostic] = []

    def add(
        self,
        kind: DiagnosticKind,
        page_id: str,
        line: int,
        detail: str,
        *,
        severity: Severity | None = None,
    ) -> Diagnostic:
        """Record a new diagnostic and return it."""
        diagnostic = make_diagnostic(kind, page_id, line, detail, severity=severity)
        self.append(diagnostic)
        return self._entries[-1]

    def append(self, diagnostic: Diagnostic) -> None:
        if diagnostic.kind in self.warn_only and diagnostic.severity is Severity.ERROR:
            diagnostic = dc.replace(diagnostic, severity=Severity.WARNING)
        logger.debug("diagnostic %s", diagnostic.format())
        self._entries.append(diagnostic)

    def extend(self, diagnostics: typ.Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.append(diagnostic)

    @property
    def entries(self) -> list[Diagnostic]:
        return list(self._entries)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._entries if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._entries if d.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._entries)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._entries if d.kind is kind]

    def summary(self) -> dict[str, dict[str, int]]:
        """Return counts keyed by kind, then by severity."""
        counts: dict[str, collections.Counter[str]] = {}
        for diagnostic in self._entries:
            counts.setdefault(diagnostic.kind.value, collections.Counter())[
                diagnostic.severity.value
            ] += 1
        return {kind: dict(counter) for kind, counter in counts.items()}

    def to_payload(self) -> dict[str, typ.Any]:
        """Return a JSON-serialisable report of the collected diagnostics."""
        return {
            "ok": not self.has_errors,
            "summary": self.summary(),
            "diagnostics": [dc.asdict(d) for d in self._entries],
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> typ.Iterator[Diagnostic]:
        return iter(list(self._entries))


__all__ = [
    "DEFAULT_SEVERITIES",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticsCollector",
    "Severity",
    "make_diagnostic",
]
