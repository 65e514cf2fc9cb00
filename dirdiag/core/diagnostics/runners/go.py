from __future__ import annotations

from pathlib import Path

from dirdiag.core.config import DEFAULT_EXTERNAL_PROCESS_TIMEOUT
from dirdiag.core.diagnostics.parsers import parse_go_output
from dirdiag.core.diagnostics.process import (
    OutputStream,
    classify_outcome,
    run_external_tool,
)
from dirdiag.core.diagnostics.types import ToolResult
from dirdiag.core.logger import logger

GO_VET_ARGS = ("vet", "./...")


def run_go_diagnostics(directory: Path, *, timeout: float | None = None) -> ToolResult:
    """Run ``go vet`` over every package of a Go module.

    go vet writes its findings to stderr, so that stream is read first.
    """
    directory = Path(directory)
    if not (directory / "go.mod").exists():
        logger.info(f"Skipping go vet for {directory}: no go.mod")
        return ToolResult.skip("no go.mod found in directory", tool="go")

    outcome = run_external_tool(
        "go", GO_VET_ARGS, directory, timeout or DEFAULT_EXTERNAL_PROCESS_TIMEOUT
    )
    return classify_outcome(
        outcome,
        "go",
        parse_go_output,
        streams=(OutputStream.STDERR, OutputStream.STDOUT),
    )
