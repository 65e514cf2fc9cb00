from __future__ import annotations

from collections.abc import Callable
import os
from pathlib import Path
from typing import TypeAlias

from dirdiag.core.config import DiagnosticsConfig
from dirdiag.core.diagnostics.detector import (
    STRATEGY_FOR_PROJECT_TYPE,
    detect_project_type,
)
from dirdiag.core.diagnostics.formatter import (
    format_lsp_result,
    format_tool_result,
    make_skipped_result,
)
from dirdiag.core.diagnostics.lsp_aggregator import LspAggregator
from dirdiag.core.diagnostics.runners import (
    run_go_diagnostics,
    run_python_diagnostics,
    run_rust_diagnostics,
    run_tsc_diagnostics,
)
from dirdiag.core.diagnostics.types import (
    DiagnosticsStrategy,
    DirectoryDiagnosticResult,
    ReportedStrategy,
    ToolResult,
)
from dirdiag.core.logger import logger
from dirdiag.core.lsp.client_manager import LSPClientManager
from dirdiag.core.lsp.servers import LSPServerRegistry

ToolRunner: TypeAlias = Callable[..., ToolResult]

TOOL_RUNNERS: dict[DiagnosticsStrategy, tuple[ReportedStrategy, ToolRunner]] = {
    DiagnosticsStrategy.TSC: (ReportedStrategy.TSC, run_tsc_diagnostics),
    DiagnosticsStrategy.GO: (ReportedStrategy.GO, run_go_diagnostics),
    DiagnosticsStrategy.RUST: (ReportedStrategy.RUST, run_rust_diagnostics),
    DiagnosticsStrategy.PYTHON: (ReportedStrategy.PYTHON, run_python_diagnostics),
}


class DirectoryDiagnostics:
    """Runs the best available checker over a project directory.

    One instance keeps its language servers and its extension cache alive across
    calls; release the servers with :meth:`aclose`.
    """

    def __init__(
        self,
        config: DiagnosticsConfig | None = None,
        *,
        aggregator: LspAggregator | None = None,
    ) -> None:
        self.config = config or DiagnosticsConfig.load()
        self._manager: LSPClientManager | None = None
        if aggregator is None:
            self._manager = LSPClientManager(
                LSPServerRegistry.from_config(self.config.lsp_servers)
            )
            aggregator = LspAggregator.from_config(self.config, self._manager)
        self.aggregator = aggregator

    @staticmethod
    def resolve_strategy(
        strategy: DiagnosticsStrategy | str, directory: Path
    ) -> DiagnosticsStrategy:
        strategy = DiagnosticsStrategy(strategy)
        if strategy is not DiagnosticsStrategy.AUTO:
            return strategy
        project_type = detect_project_type(directory)
        resolved = STRATEGY_FOR_PROJECT_TYPE[project_type]
        logger.debug(f"Detected {project_type} project in {directory}, using {resolved}")
        return resolved

    async def run(
        self,
        directory: Path | str,
        strategy: DiagnosticsStrategy | str = DiagnosticsStrategy.AUTO,
    ) -> DirectoryDiagnosticResult:
        """Check ``directory`` and return a display-ready result.

        Invalid targets and missing tooling come back as skipped results. Only an
        unknown ``strategy`` value raises (``ValueError``).
        """
        strategy = DiagnosticsStrategy(strategy)

        if not os.path.exists(directory):
            return make_skipped_result(
                f"Diagnostics skipped: directory does not exist: {directory}"
            )
        if not os.path.isdir(directory):
            return make_skipped_result(
                f"Diagnostics skipped: path is not a directory: {directory}"
            )
        try:
            resolved_directory = Path(os.path.realpath(directory, strict=True))
        except OSError as e:
            logger.info(f"Cannot resolve {directory}: {e}")
            return make_skipped_result(
                f"Diagnostics skipped: cannot resolve directory path: {directory}"
            )

        selected = self.resolve_strategy(strategy, resolved_directory)
        logger.info(f"Running {selected} diagnostics on {resolved_directory}")

        if selected is DiagnosticsStrategy.LSP:
            return format_lsp_result(await self.aggregator.run(resolved_directory))

        reported, runner = TOOL_RUNNERS[selected]
        result = runner(resolved_directory, timeout=self.config.external_process_timeout)
        return format_tool_result(result, reported)

    async def aclose(self) -> None:
        if self._manager is not None:
            await self._manager.stop_all_servers()


async def run_directory_diagnostics(
    directory: Path | str,
    strategy: DiagnosticsStrategy | str = DiagnosticsStrategy.AUTO,
    *,
    dispatcher: DirectoryDiagnostics | None = None,
) -> DirectoryDiagnosticResult:
    if dispatcher is not None:
        return await dispatcher.run(directory, strategy)

    owned = DirectoryDiagnostics()
    try:
        return await owned.run(directory, strategy)
    finally:
        await owned.aclose()
