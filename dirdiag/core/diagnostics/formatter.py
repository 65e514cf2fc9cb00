from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import TypeVar

from dirdiag.core.diagnostics.types import (
    Diagnostic,
    DirectoryDiagnosticResult,
    LspAggregationResult,
    LspDiagnosticWithFile,
    ReportedStrategy,
    ToolResult,
)
from dirdiag.core.lsp.formatter import LSPDiagnosticFormatter

TOOL_DISPLAY_NAMES: Mapping[ReportedStrategy, str] = {
    ReportedStrategy.TSC: "TypeScript check",
    ReportedStrategy.GO: "Go vet",
    ReportedStrategy.RUST: "Cargo check",
    ReportedStrategy.PYTHON: "Python",
}

LANGUAGE_NAMES: Mapping[ReportedStrategy, str] = {
    ReportedStrategy.TSC: "TypeScript",
    ReportedStrategy.GO: "Go",
    ReportedStrategy.RUST: "Rust",
    ReportedStrategy.PYTHON: "Python",
}

_PYTHON_TOOL_NAMES = {"mypy": "Mypy", "pylint": "Pylint"}

T = TypeVar("T")


def make_skipped_result(summary: str) -> DirectoryDiagnosticResult:
    return DirectoryDiagnosticResult(
        strategy=ReportedStrategy.SKIPPED,
        success=True,
        error_count=0,
        warning_count=0,
        diagnostics="",
        summary=summary,
    )


def _group_by_file(items: Iterable[T]) -> dict[str, list[T]]:
    # dicts keep insertion order, so files appear in first-seen order
    grouped: dict[str, list[T]] = defaultdict(list)
    for item in items:
        grouped[getattr(item, "file")].append(item)
    return dict(grouped)


def format_diagnostic_line(diag: Diagnostic) -> str:
    code = f" [{diag.code}]" if diag.code else ""
    return f"  {diag.line}:{diag.column} - {diag.severity}{code}: {diag.message}"


def display_name(result: ToolResult, strategy: ReportedStrategy) -> str:
    if strategy is ReportedStrategy.PYTHON and result.tool:
        return _PYTHON_TOOL_NAMES.get(result.tool, TOOL_DISPLAY_NAMES[strategy])
    return TOOL_DISPLAY_NAMES[strategy]


def format_tool_result(
    result: ToolResult, strategy: ReportedStrategy
) -> DirectoryDiagnosticResult:
    """Render one runner's result as the caller-facing record.

    Skipped runs become ``strategy: skipped`` with the runner's reason; anything
    else is grouped by file in first-seen order.
    """
    if result.skipped is not None:
        return make_skipped_result(
            f"{LANGUAGE_NAMES[strategy]} diagnostics skipped: {result.skipped}"
        )

    tool_name = display_name(result, strategy)

    if not result.diagnostics:
        diagnostics = f"No diagnostics found. {tool_name} passed!"
        summary = f"{tool_name} passed: 0 errors, 0 warnings"
    else:
        blocks = [
            f"{file}:\n" + "".join(f"{format_diagnostic_line(d)}\n" for d in diags)
            for file, diags in _group_by_file(result.diagnostics).items()
        ]
        diagnostics = "\n".join(blocks)
        status = "passed" if result.success else "failed"
        summary = (
            f"{tool_name} {status}: {result.error_count} errors, "
            f"{result.warning_count} warnings"
        )

    return DirectoryDiagnosticResult(
        strategy=strategy,
        success=result.success,
        error_count=result.error_count,
        warning_count=result.warning_count,
        diagnostics=diagnostics,
        summary=summary,
    )


def format_lsp_result(result: LspAggregationResult) -> DirectoryDiagnosticResult:
    if not result.diagnostics:
        diagnostics = f"Checked {result.files_checked} files. No diagnostics found!"
        summary = (
            f"LSP check passed: 0 errors, 0 warnings ({result.files_checked} files)"
        )
    else:
        grouped: dict[str, list[LspDiagnosticWithFile]] = _group_by_file(
            result.diagnostics
        )
        diagnostics = "\n\n".join(
            f"{file}:\n"
            + LSPDiagnosticFormatter.format_diagnostics([i.diagnostic for i in items])
            for file, items in grouped.items()
        )
        status = "passed" if result.success else "failed"
        summary = (
            f"LSP check {status}: {result.error_count} errors, "
            f"{result.warning_count} warnings ({result.files_checked} files)"
        )

    return DirectoryDiagnosticResult(
        strategy=ReportedStrategy.LSP,
        success=result.success,
        error_count=result.error_count,
        warning_count=result.warning_count,
        diagnostics=diagnostics,
        summary=summary,
    )
