"""Parsers turning raw checker output into :class:`ToolResult` values.

Every parser is a pure function over the full text a tool printed. Lines that do
not match the tool's grammar (banners, progress, summaries) are ignored, and file
paths are kept exactly as the tool printed them.
"""

from __future__ import annotations

import json
import re
from typing import Any

from dirdiag.core.diagnostics.types import Diagnostic, Severity, ToolResult

# file(line,col): error TS2345: message
_TSC_LINE = re.compile(
    r"^(?P<file>.+)\((?P<line>\d+),(?P<column>\d+)\):\s+"
    r"(?P<severity>error|warning)\s+(?P<code>TS\d+):\s+(?P<message>.+)$"
)

# file.py:line[:col]: error|warning|note: message [code]
_MYPY_LINE = re.compile(
    r"^(?P<file>.+?\.pyi?):(?P<line>\d+):(?:(?P<column>\d+):)? "
    r"(?P<severity>error|warning|note): (?P<message>.+?)(?:\s+\[(?P<code>[^\]]+)\])?$"
)

# file.go:line:col: message
_GO_LINE = re.compile(
    r"^(?P<file>.+?\.go):(?P<line>\d+):(?P<column>\d+):\s+(?P<message>.+)$"
)

# file.py:line:col: C0114: message
_PYLINT_LINE = re.compile(
    r"^(?P<file>.+?\.py):(?P<line>\d+):(?P<column>\d+): "
    r"(?P<code>[A-Z]\d+): (?P<message>.+)$"
)

_PYLINT_ERROR_PREFIXES = ("E", "F")


def _lines(output: str) -> list[str]:
    # splitlines() already treats "\r\n" as one separator; a stray "\r" left by
    # doubly-converted output is stripped as well.
    return [line.rstrip("\r") for line in output.splitlines()]


def parse_tsc_output(output: str) -> ToolResult:
    """Parse ``tsc --pretty false`` output."""
    diagnostics: list[Diagnostic] = []
    for line in _lines(output):
        match = _TSC_LINE.match(line)
        if not match:
            continue
        diagnostics.append(
            Diagnostic(
                file=match["file"],
                line=int(match["line"]),
                column=int(match["column"]),
                severity=Severity(match["severity"]),
                code=match["code"],
                message=match["message"],
            )
        )
    return ToolResult.from_diagnostics(diagnostics, tool="tsc")


def parse_mypy_output(output: str) -> ToolResult:
    """Parse mypy output; ``note`` lines annotate another diagnostic and are dropped."""
    diagnostics: list[Diagnostic] = []
    for line in _lines(output):
        match = _MYPY_LINE.match(line)
        if not match or match["severity"] == "note":
            continue
        diagnostics.append(
            Diagnostic(
                file=match["file"],
                line=int(match["line"]),
                column=int(match["column"] or 0),
                severity=Severity(match["severity"]),
                message=match["message"],
                code=match["code"],
            )
        )
    return ToolResult.from_diagnostics(diagnostics, tool="mypy")


def parse_go_output(output: str) -> ToolResult:
    """Parse ``go vet`` output.

    go vet does not grade its findings, so every one is reported as a warning.
    """
    diagnostics = [
        Diagnostic(
            file=match["file"],
            line=int(match["line"]),
            column=int(match["column"]),
            message=match["message"],
            severity=Severity.WARNING,
        )
        for line in _lines(output)
        if (match := _GO_LINE.match(line))
    ]
    return ToolResult.from_diagnostics(diagnostics, tool="go")


def parse_pylint_output(output: str) -> ToolResult:
    """Parse pylint text output. ``E``/``F`` codes are errors, the rest warnings."""
    diagnostics: list[Diagnostic] = []
    for line in _lines(output):
        match = _PYLINT_LINE.match(line)
        if not match:
            continue
        code = match["code"]
        diagnostics.append(
            Diagnostic(
                file=match["file"],
                line=int(match["line"]),
                column=int(match["column"]),
                code=code,
                message=match["message"],
                severity=(
                    Severity.ERROR
                    if code.startswith(_PYLINT_ERROR_PREFIXES)
                    else Severity.WARNING
                ),
            )
        )
    return ToolResult.from_diagnostics(diagnostics, tool="pylint")


def _primary_span(spans: Any) -> dict[str, Any] | None:
    if not isinstance(spans, list):
        return None
    for span in spans:
        if isinstance(span, dict) and span.get("is_primary"):
            return span
    return None


def parse_rust_output(output: str) -> ToolResult:
    """Parse ``cargo check --message-format=json`` output.

    Cargo prints one JSON object per line. Only ``compiler-message`` records at
    ``error`` or ``warning`` level are kept, anchored at their primary span;
    messages without a primary span are dropped.
    """
    diagnostics: list[Diagnostic] = []

    for line in _lines(output):
        line = line.strip()
        if not line:
            continue

        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue

        if not isinstance(record, dict) or record.get("reason") != "compiler-message":
            continue

        message = record.get("message")
        if not isinstance(message, dict):
            continue

        level = message.get("level")
        if level not in (Severity.ERROR, Severity.WARNING):
            continue

        span = _primary_span(message.get("spans"))
        if span is None:
            continue

        code_obj = message.get("code")
        code = code_obj.get("code") if isinstance(code_obj, dict) else None

        diagnostics.append(
            Diagnostic(
                file=str(span.get("file_name", "")),
                line=int(span.get("line_start", 0)),
                column=int(span.get("column_start", 0)),
                severity=Severity(level),
                code=code or None,
                message=str(message.get("message", "")),
            )
        )

    return ToolResult.from_diagnostics(diagnostics, tool="cargo")
