from __future__ import annotations

from pathlib import Path

from dirdiag.core.config import DEFAULT_EXTERNAL_PROCESS_TIMEOUT
from dirdiag.core.diagnostics.parsers import parse_tsc_output
from dirdiag.core.diagnostics.process import classify_outcome, run_external_tool
from dirdiag.core.diagnostics.types import ToolResult
from dirdiag.core.logger import logger

TSC_ARGS = ("--noEmit", "--pretty", "false")


def run_tsc_diagnostics(directory: Path, *, timeout: float | None = None) -> ToolResult:
    """Type-check a TypeScript project with ``tsc --noEmit``."""
    directory = Path(directory)
    if not (directory / "tsconfig.json").exists():
        logger.info(f"Skipping tsc for {directory}: no tsconfig.json")
        return ToolResult.skip("no tsconfig.json found in directory", tool="tsc")

    outcome = run_external_tool(
        "tsc", TSC_ARGS, directory, timeout or DEFAULT_EXTERNAL_PROCESS_TIMEOUT
    )
    return classify_outcome(outcome, "tsc", parse_tsc_output)
