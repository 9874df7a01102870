"""Unit tests for the diagnostics collector."""

from __future__ import annotations

from docsplice.diagnostics import (
    DiagnosticKind,
    DiagnosticsCollector,
    Severity,
    make_diagnostic,
)


def test_default_severities() -> None:
    sink = DiagnosticsCollector()
    sink.add(DiagnosticKind.UNRESOLVED_REF, "a.md", 3, "no anchor")
    sink.add(DiagnosticKind.AMBIGUOUS_REF, "a.md", 4, "two anchors")
    assert [d.severity for d in sink] == [Severity.ERROR, Severity.WARNING]
    assert sink.has_errors
    assert len(sink.errors) == 1
    assert len(sink.warnings) == 1


def test_warn_only_downgrades_errors() -> None:
    sink = DiagnosticsCollector(warn_only=["unresolved_ref"])
    diagnostic = sink.add(DiagnosticKind.UNRESOLVED_REF, "a.md", 3, "no anchor")
    assert diagnostic.severity is Severity.WARNING
    assert not sink.has_errors


def test_explicit_severity_overrides_default() -> None:
    diagnostic = make_diagnostic(
        DiagnosticKind.UNRESOLVED_REF, "a.md", 1, "unknown page", severity=Severity.WARNING
    )
    assert diagnostic.severity is Severity.WARNING


def test_entries_keep_insertion_order() -> None:
    sink = DiagnosticsCollector()
    sink.extend(
        [
            make_diagnostic(DiagnosticKind.PARSE_ERROR, "b.md", 9, "first"),
            make_diagnostic(DiagnosticKind.PARSE_ERROR, "a.md", 1, "second"),
        ]
    )
    assert [d.detail for d in sink.entries] == ["first", "second"]
    assert len(sink.of_kind(DiagnosticKind.PARSE_ERROR)) == 2
    assert sink.of_kind(DiagnosticKind.UNKNOWN_SETTING) == []


def test_format_includes_location() -> None:
    diagnostic = make_diagnostic(DiagnosticKind.UNRESOLVED_REF, "guide/a.md", 12, "no anchor 'x'")
    assert diagnostic.format() == "guide/a.md:12: error[unresolved_ref]: no anchor 'x'"
    lineless = make_diagnostic(DiagnosticKind.NO_MATCHING_SYMBOL, "a.md", 0, "missing")
    assert lineless.format() == "a.md: error[no_matching_symbol]: missing"


def test_summary_and_payload() -> None:
    sink = DiagnosticsCollector()
    sink.add(DiagnosticKind.UNRESOLVED_REF, "a.md", 1, "x")
    sink.add(DiagnosticKind.UNRESOLVED_REF, "a.md", 2, "y")
    sink.add(DiagnosticKind.UNKNOWN_SETTING, "b.md", 3, "z")
    assert sink.summary() == {
        "unresolved_ref": {"error": 2},
        "unknown_setting": {"warning": 1},
    }
    payload = sink.to_payload()
    assert payload["ok"] is False
    assert payload["diagnostics"][2]["page_id"] == "b.md"
    assert payload["diagnostics"][2]["kind"] == "unknown_setting"


def test_empty_collector_is_ok() -> None:
    sink = DiagnosticsCollector()
    assert len(sink) == 0
    assert sink.to_payload() == {"ok": True, "summary": {}, "diagnostics": []}
