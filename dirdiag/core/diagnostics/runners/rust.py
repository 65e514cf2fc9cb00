from __future__ import annotations

from pathlib import Path

from dirdiag.core.config import DEFAULT_EXTERNAL_PROCESS_TIMEOUT
from dirdiag.core.diagnostics.parsers import parse_rust_output
from dirdiag.core.diagnostics.process import classify_outcome, run_external_tool
from dirdiag.core.diagnostics.types import ToolResult
from dirdiag.core.logger import logger

CARGO_CHECK_ARGS = ("check", "--message-format=json")


def run_rust_diagnostics(directory: Path, *, timeout: float | None = None) -> ToolResult:
    directory = Path(directory)
    if not (directory / "Cargo.toml").exists():
        logger.info(f"Skipping cargo check for {directory}: no Cargo.toml")
        return ToolResult.skip("no Cargo.toml found in directory", tool="cargo")

    outcome = run_external_tool(
        "cargo", CARGO_CHECK_ARGS, directory, timeout or DEFAULT_EXTERNAL_PROCESS_TIMEOUT
    )
    return classify_outcome(outcome, "cargo", parse_rust_output)
