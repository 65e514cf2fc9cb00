from __future__ import annotations

import asyncio
from enum import IntEnum
from pathlib import Path
from typing import NotRequired, Protocol, TypedDict


class LSPSeverity(IntEnum):
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


class LSPPosition(TypedDict):
    line: int
    character: int


class LSPRange(TypedDict):
    start: LSPPosition
    end: LSPPosition


class LSPDiagnostic(TypedDict):
    range: LSPRange
    severity: NotRequired[int]  # 1=ERROR, 2=WARN, 3=INFO, 4=HINT
    message: str
    code: NotRequired[str | int | None]
    source: NotRequired[str | None]


class LSPServerHandle(TypedDict):
    process: asyncio.subprocess.Process
    initialization: dict[str, object] | None


class LSPSession(Protocol):
    async def open_document(self, file_path: Path) -> None: ...

    def get_diagnostics(self, file_path: Path) -> list[LSPDiagnostic]: ...

    def has_published(self, file_path: Path) -> bool: ...


class LSPSessionProvider(Protocol):
    async def get_client_for_file(self, file_path: Path) -> LSPSession | None: ...
