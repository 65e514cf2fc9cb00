from __future__ import annotations

import asyncio
import json
from pathlib import Path
import re
from typing import Any
from urllib.parse import unquote

from dirdiag.core.logger import logger
from dirdiag.core.lsp.servers import LSPServerSpec, language_id_for_file
from dirdiag.core.lsp.types import LSPDiagnostic

# Type aliases for LSP protocol messages
LSPRequestParams = dict[str, Any]
LSPNotificationParams = dict[str, Any]
LSPResponse = dict[str, Any]
LSPMessage = dict[str, Any]

REQUEST_TIMEOUT = 30.0
_CONTENT_LENGTH = re.compile(rb"Content-Length:\s*(\d+)", re.IGNORECASE)


class LSPRequestError(Exception):
    """Raised when the server answers a request with an error object."""


def _uri_key(uri: str) -> str:
    return unquote(uri)


def encode_message(message: LSPMessage) -> bytes:
    body = json.dumps(message, ensure_ascii=False).encode("utf-8")
    return b"Content-Length: " + str(len(body)).encode("ascii") + b"\r\n\r\n" + body


def extract_message(buffer: bytes) -> tuple[bytes, bytes] | None:
    """Split one framed message off the front of ``buffer``.

    Returns ``(content, remaining_buffer)`` or ``None`` while the message is
    still incomplete.
    """
    header_end = buffer.find(b"\r\n\r\n")
    if header_end == -1:
        return None

    match = _CONTENT_LENGTH.search(buffer[:header_end])
    if not match:
        # Unframed garbage before a header: drop it and resynchronise.
        return b"", buffer[header_end + 4 :]

    content_length = int(match.group(1))
    total_message_length = header_end + 4 + content_length
    if len(buffer) < total_message_length:
        return None

    return buffer[header_end + 4 : total_message_length], buffer[total_message_length:]


class LSPClient:
    def __init__(
        self, process: asyncio.subprocess.Process, spec: LSPServerSpec | None = None
    ) -> None:
        self.process = process
        self.spec = spec
        self.stdin = process.stdin
        self.stdout = process.stdout
        self.stderr = process.stderr
        self.message_id = 0
        self.pending_requests: dict[int, asyncio.Future[Any]] = {}
        # Store diagnostics received via publishDiagnostics notifications
        self.diagnostics: dict[str, list[LSPDiagnostic]] = {}
        self.document_versions: dict[str, int] = {}
        self._tasks: list[asyncio.Task[None]] = []
        self._server_exited = False

    def _check_server_alive(self) -> bool:
        """Check if the LSP server process is still alive."""
        if self._server_exited:
            return False

        if self.process.returncode is not None:
            self._server_exited = True
            logger.debug(f"LSP server process exited with code: {self.process.returncode}")
            return False

        return True

    async def _write(self, message: LSPMessage) -> None:
        if self.stdin is None:
            return
        self.stdin.write(encode_message(message))
        await self.stdin.drain()

    async def send_request(self, method: str, params: LSPRequestParams | None = None) -> Any:
        self.message_id += 1
        request_id = self.message_id

        request: LSPMessage = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
        }
        if params is not None:
            request["params"] = params

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self.pending_requests[request_id] = future

        logger.debug(f"LSP Request: {method}")
        await self._write(request)

        try:
            return await asyncio.wait_for(future, timeout=REQUEST_TIMEOUT)
        except TimeoutError:
            logger.debug(f"LSP Request {method} timed out")
            raise
        finally:
            self.pending_requests.pop(request_id, None)

    async def send_notification(self, method: str, params: LSPNotificationParams | None = None) -> None:
        notification: LSPMessage = {
            "jsonrpc": "2.0",
            "method": method,
        }
        if params is not None:
            notification["params"] = params

        logger.debug(f"LSP Notification: {method}")
        await self._write(notification)

    async def initialize(self, root_uri: str | None = None) -> Any:
        # Minimal client capabilities for diagnostics-only support
        capabilities: LSPRequestParams = {
            "textDocument": {
                "publishDiagnostics": {
                    "relatedInformation": True,
                    "tagSupport": {"valueSet": [1, 2]},
                    "codeDescriptionSupport": True,
                    "dataSupport": True,
                },
                "synchronization": {"didSave": True},
            }
        }

        params: LSPRequestParams = {
            "processId": None,
            "capabilities": capabilities,
            "rootUri": root_uri,
        }
        if root_uri:
            params["workspaceFolders"] = [
                {"uri": root_uri, "name": Path(unquote(root_uri.removeprefix("file://"))).name}
            ]

        return await self.send_request("initialize", params)

    async def initialized(self) -> None:
        await self.send_notification("initialized", {})

    async def shutdown(self) -> Any:
        return await self.send_request("shutdown")

    async def exit(self) -> None:
        await self.send_notification("exit")

    async def text_document_did_open(self, uri: str, text: str, language_id: str) -> None:
        logger.debug(f"Opening document: {uri} (language: {language_id})")
        self.document_versions[_uri_key(uri)] = 1
        await self.send_notification("textDocument/didOpen", {
            "textDocument": {
                "uri": uri,
                "languageId": language_id,
                "version": 1,
                "text": text,
            }
        })

    async def text_document_did_change(self, uri: str, text: str) -> None:
        key = _uri_key(uri)
        version = self.document_versions.get(key, 1) + 1
        self.document_versions[key] = version
        logger.debug(f"Changing document: {uri} (version: {version})")
        await self.send_notification("textDocument/didChange", {
            "textDocument": {
                "uri": uri,
                "version": version,
            },
            "contentChanges": [{"text": text}],
        })

    async def open_document(self, file_path: Path, language_id: str | None = None) -> None:
        """Send the file's current contents so the server (re)analyses it."""
        if language_id is None:
            language_id = (
                language_id_for_file(file_path, self.spec) if self.spec else "plaintext"
            )
        uri = file_path.resolve().as_uri()
        text = file_path.read_text(encoding="utf-8", errors="replace")
        if _uri_key(uri) in self.document_versions:
            await self.text_document_did_change(uri, text)
        else:
            await self.text_document_did_open(uri, text, language_id)

    def get_diagnostics(self, file_path: Path) -> list[LSPDiagnostic]:
        """Return the diagnostics most recently published for ``file_path``."""
        uri = file_path.resolve().as_uri()
        return list(self.diagnostics.get(_uri_key(uri), []))

    def has_published(self, file_path: Path) -> bool:
        return _uri_key(file_path.resolve().as_uri()) in self.diagnostics

    async def _handle_response(self, response: LSPMessage) -> None:
        if "id" not in response or "method" in response:
            method = response.get("method", "unknown")

            if method == "textDocument/publishDiagnostics":
                params = response.get("params", {})
                uri = params.get("uri")
                diagnostics = params.get("diagnostics")

                if uri and diagnostics is not None:
                    self.diagnostics[_uri_key(uri)] = diagnostics
                    logger.debug(f"Received diagnostics for {uri}: {len(diagnostics)} issues")

            elif method == "window/logMessage":
                params = response.get("params", {})
                logger.debug(f"LSP Server Log [{params.get('type', 'info')}]: {params.get('message', '')}")

            elif "id" in response:
                # Server-initiated request (e.g. workspace/configuration); answer with null
                await self._write({"jsonrpc": "2.0", "id": response["id"], "result": None})

            else:
                logger.debug(f"LSP Unknown notification: {method}")

            return

        request_id = response["id"]
        future = self.pending_requests.get(request_id)
        if future is None:
            logger.debug(f"LSP Response for unknown request ID {request_id}")
            return

        if "error" in response:
            error_msg = str(response.get("error", "Unknown error"))
            logger.debug(f"LSP Request {request_id} returned error: {error_msg}")
            if not future.done():
                future.set_exception(LSPRequestError(error_msg))
        else:
            result = response.get("result")
            if not future.done():
                future.set_result(result if result is not None else {})

    async def _read_messages(self) -> None:
        buffer = b""

        while self.stdout is not None and self._check_server_alive():
            chunk = await self.stdout.read(4096)
            if not chunk:
                logger.debug("LSP Client: No more data from server, stopping reader")
                break

            buffer += chunk
            while (extracted := extract_message(buffer)) is not None:
                content, buffer = extracted
                if not content:
                    continue
                try:
                    message = json.loads(content.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    logger.debug(f"Failed to parse LSP message: {e}")
                    continue
                await self._handle_response(message)

    async def _monitor_server_process(self) -> None:
        await self.process.wait()
        logger.debug(f"LSP Client: Server process exited with code: {self.process.returncode}")
        self._server_exited = True
        for future in self.pending_requests.values():
            if not future.done():
                future.set_exception(LSPRequestError("LSP server exited"))

    async def _read_stderr(self) -> None:
        if self.stderr is None:
            return

        while line := await self.stderr.readline():
            line_str = line.decode("utf-8", errors="replace").strip()
            if line_str:
                logger.debug(f"LSP Server stderr: {line_str}")

    async def start(self) -> None:
        logger.debug("LSP Client: Starting server communication")
        self._tasks = [
            asyncio.create_task(self._monitor_server_process()),
            asyncio.create_task(self._read_stderr()),
            asyncio.create_task(self._read_messages()),
        ]

    async def close(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []
