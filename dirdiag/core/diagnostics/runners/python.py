from __future__ import annotations

from pathlib import Path

from dirdiag.core.config import DEFAULT_EXTERNAL_PROCESS_TIMEOUT
from dirdiag.core.diagnostics.parsers import parse_mypy_output, parse_pylint_output
from dirdiag.core.diagnostics.process import (
    OutputStream,
    ProcessOutcomeKind,
    classify_outcome,
    run_external_tool,
)
from dirdiag.core.diagnostics.types import ToolResult
from dirdiag.core.logger import logger

PYTHON_PROJECT_MARKERS = ("pyproject.toml", "requirements.txt", "setup.py")

MYPY_ARGS = (
    ".",
    "--ignore-missing-imports",
    "--show-column-numbers",
    "--show-error-codes",
    "--no-error-summary",
    "--no-pretty",
)
PYLINT_ARGS = ("--output-format=text", "--score=no", "--recursive=y", ".")


def has_python_marker(directory: Path) -> bool:
    return any((directory / marker).exists() for marker in PYTHON_PROJECT_MARKERS)


def run_python_diagnostics(directory: Path, *, timeout: float | None = None) -> ToolResult:
    """Check a Python project with mypy, or pylint when mypy is not installed.

    Only one checker runs. The result's ``tool`` field tells which.
    """
    directory = Path(directory)
    if not has_python_marker(directory):
        logger.info(f"Skipping Python checks for {directory}: no project files")
        return ToolResult.skip(
            "no Python project files found (pyproject.toml, requirements.txt, or setup.py)"
        )

    timeout = timeout or DEFAULT_EXTERNAL_PROCESS_TIMEOUT

    outcome = run_external_tool("mypy", MYPY_ARGS, directory, timeout)
    if outcome.kind is not ProcessOutcomeKind.MISSING:
        # mypy reports on stdout only; stderr carries usage and config errors
        return classify_outcome(
            outcome, "mypy", parse_mypy_output, streams=(OutputStream.STDOUT,)
        )

    outcome = run_external_tool("pylint", PYLINT_ARGS, directory, timeout)
    if outcome.kind is not ProcessOutcomeKind.MISSING:
        return classify_outcome(outcome, "pylint", parse_pylint_output)

    return ToolResult.skip("neither mypy nor pylint found in PATH")
