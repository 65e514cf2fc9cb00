from __future__ import annotations

from dirdiag.core.lsp.client import LSPClient, LSPRequestError
from dirdiag.core.lsp.client_manager import LSPClientManager
from dirdiag.core.lsp.formatter import LSPDiagnosticFormatter
from dirdiag.core.lsp.servers import (
    BUILTIN_SERVERS,
    LSPServerRegistry,
    LSPServerSpec,
    LSPServerStatus,
)
from dirdiag.core.lsp.types import (
    LSPDiagnostic,
    LSPRange,
    LSPServerHandle,
    LSPSession,
    LSPSessionProvider,
    LSPSeverity,
)

__all__ = [
    "BUILTIN_SERVERS",
    "LSPClient",
    "LSPClientManager",
    "LSPDiagnostic",
    "LSPDiagnosticFormatter",
    "LSPRange",
    "LSPRequestError",
    "LSPServerHandle",
    "LSPServerRegistry",
    "LSPServerSpec",
    "LSPServerStatus",
    "LSPSession",
    "LSPSessionProvider",
    "LSPSeverity",
]
