from __future__ import annotations

from dirdiag.core.lsp.formatter import LSPDiagnosticFormatter


def _diag(**overrides):
    diag = {
        "range": {"start": {"line": 4, "character": 9}, "end": {"line": 4, "character": 12}},
        "severity": 2,
        "message": "unused variable",
    }
    diag.update(overrides)
    return diag


def test_positions_are_one_based() -> None:
    assert LSPDiagnosticFormatter.position(_diag()) == (5, 10)


def test_format_with_code_and_source() -> None:
    line = LSPDiagnosticFormatter.format_diagnostic(_diag(code=6133, source="ts"))

    assert line == "  5:10 - warning [6133]: unused variable (ts)"


def test_missing_severity_is_an_issue() -> None:
    diag = _diag()
    del diag["severity"]

    assert LSPDiagnosticFormatter.format_diagnostic(diag) == "  5:10 - issue: unused variable"


def test_unknown_severity_is_an_issue() -> None:
    assert LSPDiagnosticFormatter.severity_name(_diag(severity=9)) == "issue"


def test_multiline_message_is_flattened() -> None:
    line = LSPDiagnosticFormatter.format_diagnostic(_diag(severity=4, message="first\nsecond"))

    assert line == "  5:10 - hint: first second"


def test_format_diagnostics_joins_lines() -> None:
    text = LSPDiagnosticFormatter.format_diagnostics([_diag(), _diag(severity=3)])

    assert text.splitlines() == [
        "  5:10 - warning: unused variable",
        "  5:10 - information: unused variable",
    ]
