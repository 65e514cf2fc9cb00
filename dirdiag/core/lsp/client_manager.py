from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from dirdiag.core.lsp.client import LSPClient
from dirdiag.core.lsp.project_root import ProjectRootFinder
from dirdiag.core.lsp.servers import LSPServerRegistry, LSPServerSpec
from dirdiag.core.lsp.types import LSPServerHandle
from dirdiag.core.utils import resolve_command

logger = logging.getLogger(__name__)

ROOT_MARKERS = [
    "tsconfig.json",
    "jsconfig.json",
    "package.json",
    "go.mod",
    "Cargo.toml",
    "pyproject.toml",
    "setup.py",
    "requirements.txt",
    ".git",
]


class LSPClientManager:
    """Starts language servers on demand and hands out one client per server."""

    def __init__(self, registry: LSPServerRegistry | None = None) -> None:
        self.registry = registry if registry is not None else LSPServerRegistry()
        self.clients: dict[str, LSPClient] = {}
        self.handles: dict[str, LSPServerHandle] = {}
        self._lock = asyncio.Lock()

    async def get_client_for_file(self, file_path: Path) -> LSPClient | None:
        """Return a running client able to analyse ``file_path``.

        ``None`` means no server is registered for the file's extension, or the
        registered server's command is not installed.
        """
        spec = self.registry.get_server_for_file(file_path)
        if spec is None:
            logger.debug(f"No LSP server configured for file: {file_path}")
            return None

        executable = resolve_command(spec.command)
        if executable is None:
            logger.debug(
                f"LSP server '{spec.key}' not installed ({spec.command}); {spec.install_hint}"
            )
            return None

        async with self._lock:
            return await self.start_server(spec, executable, file_path)

    async def start_server(
        self, spec: LSPServerSpec, executable: str, file_path: Path
    ) -> LSPClient:
        if spec.key in self.clients:
            client = self.clients[spec.key]
            if client._check_server_alive():
                return client
            logger.info(f"LSP server '{spec.key}' has exited, restarting...")
            await self.stop_server(spec.key)

        logger.info(f"Starting LSP server: {spec.key}")

        process = await asyncio.create_subprocess_exec(
            *spec.launch_command(executable),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        client = LSPClient(process, spec)
        try:
            await client.start()
            root_uri = ProjectRootFinder.find_project_root(file_path, ROOT_MARKERS)
            initialization = await client.initialize(root_uri)
            await client.initialized()
        except BaseException:
            logger.warning(f"LSP server '{spec.key}' failed to initialize")
            await self._discard(client)
            raise

        self.clients[spec.key] = client
        self.handles[spec.key] = {
            "process": process,
            "initialization": initialization if isinstance(initialization, dict) else None,
        }

        logger.info(f"LSP server '{spec.key}' started successfully")
        return client

    async def stop_server(self, server_key: str) -> None:
        client = self.clients.pop(server_key, None)
        self.handles.pop(server_key, None)
        if client is None:
            return

        logger.info(f"Stopping LSP server: {server_key}")

        if client._check_server_alive():
            try:
                await client.shutdown()
                await client.exit()
            except Exception as e:
                logger.warning(f"Error shutting down LSP server '{server_key}': {e}")

        await self._discard(client)

        logger.info(f"LSP server '{server_key}' stopped")

    async def _discard(self, client: LSPClient) -> None:
        try:
            if client.process.returncode is None:
                client.process.terminate()
            await client.process.wait()
        except ProcessLookupError:
            pass
        finally:
            await client.close()

    async def stop_all_servers(self) -> None:
        for server_key in list(self.clients.keys()):
            await self.stop_server(server_key)
