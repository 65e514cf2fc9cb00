from __future__ import annotations

from dirdiag.core.diagnostics.detector import detect_project_type
from dirdiag.core.diagnostics.dispatcher import (
    DirectoryDiagnostics,
    run_directory_diagnostics,
)
from dirdiag.core.diagnostics.lsp_aggregator import (
    ExtensionCache,
    LspAggregator,
    find_files,
    run_lsp_aggregated_diagnostics,
)
from dirdiag.core.diagnostics.parsers import (
    parse_go_output,
    parse_mypy_output,
    parse_pylint_output,
    parse_rust_output,
    parse_tsc_output,
)
from dirdiag.core.diagnostics.runners import (
    run_go_diagnostics,
    run_python_diagnostics,
    run_rust_diagnostics,
    run_tsc_diagnostics,
)
from dirdiag.core.diagnostics.types import (
    Diagnostic,
    DiagnosticsStrategy,
    DirectoryDiagnosticResult,
    LspAggregationResult,
    LspDiagnosticWithFile,
    ProjectType,
    ReportedStrategy,
    Severity,
    ToolResult,
)

__all__ = [
    "Diagnostic",
    "DiagnosticsStrategy",
    "DirectoryDiagnosticResult",
    "DirectoryDiagnostics",
    "ExtensionCache",
    "LspAggregationResult",
    "LspAggregator",
    "LspDiagnosticWithFile",
    "ProjectType",
    "ReportedStrategy",
    "Severity",
    "ToolResult",
    "detect_project_type",
    "find_files",
    "parse_go_output",
    "parse_mypy_output",
    "parse_pylint_output",
    "parse_rust_output",
    "parse_tsc_output",
    "run_directory_diagnostics",
    "run_go_diagnostics",
    "run_lsp_aggregated_diagnostics",
    "run_python_diagnostics",
    "run_rust_diagnostics",
    "run_tsc_diagnostics",
]
