"""Fallback diagnostics collected file by file from language servers.

Used when a directory has no build file that maps to a dedicated checker. Every
matching file is opened in the language server registered for its extension and
whatever the server publishes after a short wait is collected.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
import os
from pathlib import Path

from dirdiag.core.config import (
    DEFAULT_IGNORED_DIRECTORIES,
    DEFAULT_LSP_DIAGNOSTICS_WAIT,
    DiagnosticsConfig,
)
from dirdiag.core.diagnostics.types import LspAggregationResult, LspDiagnosticWithFile
from dirdiag.core.logger import logger
from dirdiag.core.lsp.client_manager import LSPClientManager
from dirdiag.core.lsp.servers import LSPServerRegistry
from dirdiag.core.lsp.types import LSPSessionProvider, LSPSeverity


class ExtensionCache:
    """Lazily computed list of the file extensions some language server handles.

    The list is built from ``source`` on first read and kept until
    :meth:`invalidate` is called.
    """

    def __init__(self, source: Callable[[], Iterable[str]]) -> None:
        self._source = source
        self._extensions: list[str] | None = None

    @property
    def is_populated(self) -> bool:
        return self._extensions is not None

    def get(self) -> list[str]:
        if self._extensions is None:
            self._extensions = list(dict.fromkeys(self._source()))
            logger.debug(f"Cached {len(self._extensions)} LSP file extensions")
        return list(self._extensions)

    def invalidate(self) -> None:
        self._extensions = None


def find_files(
    directory: Path,
    extensions: Iterable[str],
    ignore_dirs: Iterable[str] = DEFAULT_IGNORED_DIRECTORIES,
) -> list[Path]:
    """Recursively list files under ``directory`` whose suffix is in ``extensions``.

    Entries are visited in sorted order. Directories named in ``ignore_dirs`` and
    symlinked directories are not descended into, and paths that cannot be read
    are skipped.
    """
    wanted = {ext.lower() for ext in extensions}
    ignored = set(ignore_dirs)
    results: list[Path] = []

    def walk(current: Path) -> None:
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {current}: {e}")
            return

        for entry in entries:
            path = current / entry.name
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name not in ignored:
                        walk(path)
                elif entry.is_file() and path.suffix.lower() in wanted:
                    results.append(path)
            except OSError as e:
                logger.debug(f"Skipping unreadable path {path}: {e}")

    walk(Path(directory))
    return results


class LspAggregator:
    def __init__(
        self,
        provider: LSPSessionProvider,
        extension_cache: ExtensionCache,
        *,
        wait: float = DEFAULT_LSP_DIAGNOSTICS_WAIT,
        retries: int = 0,
        ignore_dirs: Sequence[str] = DEFAULT_IGNORED_DIRECTORIES,
    ) -> None:
        self.provider = provider
        self.extension_cache = extension_cache
        self.wait = wait
        self.retries = retries
        self.ignore_dirs = tuple(ignore_dirs)

    @classmethod
    def from_config(
        cls,
        config: DiagnosticsConfig,
        manager: LSPClientManager | None = None,
    ) -> LspAggregator:
        if manager is None:
            manager = LSPClientManager(LSPServerRegistry.from_config(config.lsp_servers))
        return cls(
            manager,
            ExtensionCache(manager.registry.all_extensions),
            wait=config.lsp_diagnostics_wait,
            retries=config.lsp_diagnostics_retries,
            ignore_dirs=config.ignored_directories,
        )

    async def _collect(self, file_path: Path) -> list[LspDiagnosticWithFile] | None:
        session = await self.provider.get_client_for_file(file_path)
        if session is None:
            return None

        await session.open_document(file_path)
        await asyncio.sleep(self.wait)
        for _ in range(self.retries):
            if session.has_published(file_path):
                break
            await asyncio.sleep(self.wait)

        return [
            LspDiagnosticWithFile(file=str(file_path), diagnostic=diagnostic)
            for diagnostic in session.get_diagnostics(file_path)
        ]

    async def run(
        self, directory: Path, extensions: Sequence[str] | None = None
    ) -> LspAggregationResult:
        effective = list(extensions) if extensions is not None else self.extension_cache.get()
        files = find_files(Path(directory), effective, self.ignore_dirs)
        logger.info(f"LSP fallback: {len(files)} candidate files under {directory}")

        collected: list[LspDiagnosticWithFile] = []
        files_checked = 0

        for file_path in files:
            try:
                diagnostics = await self._collect(file_path)
            except Exception as e:
                logger.warning(f"LSP diagnostics failed for {file_path}: {e}")
                continue
            if diagnostics is None:
                continue
            collected.extend(diagnostics)
            files_checked += 1

        error_count = sum(
            1 for d in collected if d.diagnostic.get("severity") == LSPSeverity.ERROR
        )
        warning_count = sum(
            1 for d in collected if d.diagnostic.get("severity") == LSPSeverity.WARNING
        )

        return LspAggregationResult(
            success=error_count == 0,
            diagnostics=collected,
            error_count=error_count,
            warning_count=warning_count,
            files_checked=files_checked,
        )


async def run_lsp_aggregated_diagnostics(
    directory: Path | str,
    extensions: Sequence[str] | None = None,
    *,
    aggregator: LspAggregator | None = None,
) -> LspAggregationResult:
    """Aggregate LSP diagnostics for ``directory``.

    Without an ``aggregator`` a temporary one is built from the loaded config and
    the servers it started are stopped before returning.
    """
    if aggregator is not None:
        return await aggregator.run(Path(directory), extensions)

    config = DiagnosticsConfig.load()
    manager = LSPClientManager(LSPServerRegistry.from_config(config.lsp_servers))
    try:
        return await LspAggregator.from_config(config, manager).run(
            Path(directory), extensions
        )
    finally:
        await manager.stop_all_servers()
