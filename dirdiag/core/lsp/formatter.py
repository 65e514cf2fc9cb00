from __future__ import annotations

from typing import Any

from dirdiag.core.lsp.types import LSPDiagnostic

SEVERITY_NAMES = {1: "error", 2: "warning", 3: "information", 4: "hint"}


class LSPDiagnosticFormatter:
    @staticmethod
    def severity_name(diag: LSPDiagnostic | dict[str, Any]) -> str:
        # Missing or unknown severities are not counted as errors or warnings
        severity = diag.get("severity")
        if severity is None:
            return "issue"
        return SEVERITY_NAMES.get(int(severity), "issue")

    @staticmethod
    def position(diag: LSPDiagnostic | dict[str, Any]) -> tuple[int, int]:
        """1-based ``(line, column)`` of the diagnostic's start."""
        start = diag.get("range", {}).get("start", {})
        return int(start.get("line", 0)) + 1, int(start.get("character", 0)) + 1

    @staticmethod
    def format_diagnostic(diag: LSPDiagnostic | dict[str, Any]) -> str:
        line, column = LSPDiagnosticFormatter.position(diag)
        severity = LSPDiagnosticFormatter.severity_name(diag)
        code = diag.get("code")
        code_text = f" [{code}]" if code not in (None, "") else ""
        source = diag.get("source")
        source_text = f" ({source})" if source else ""
        message = str(diag.get("message", "Unknown issue")).replace("\n", " ")
        return f"  {line}:{column} - {severity}{code_text}: {message}{source_text}"

    @staticmethod
    def format_diagnostics(diagnostics: list[LSPDiagnostic] | list[dict[str, Any]]) -> str:
        return "\n".join(
            LSPDiagnosticFormatter.format_diagnostic(diag) for diag in diagnostics
        )
