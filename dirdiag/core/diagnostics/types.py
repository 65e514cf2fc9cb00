from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dirdiag.core.lsp.types import LSPDiagnostic

# Crash sentinel: a synthesized diagnostic anchored at the project itself, not at
# a real file. Its code is always "<tool>-crash" (e.g. "tsc-crash").
CRASH_SENTINEL_FILE = "."
CRASH_CODE_SUFFIX = "-crash"


class Severity(StrEnum):
    ERROR = auto()
    WARNING = auto()


class ProjectType(StrEnum):
    TYPESCRIPT = auto()
    GO = auto()
    RUST = auto()
    PYTHON = auto()
    UNKNOWN = auto()


class DiagnosticsStrategy(StrEnum):
    TSC = auto()
    GO = auto()
    RUST = auto()
    PYTHON = auto()
    LSP = auto()
    AUTO = auto()


class ReportedStrategy(StrEnum):
    TSC = auto()
    GO = auto()
    RUST = auto()
    PYTHON = auto()
    LSP = auto()
    SKIPPED = auto()


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    line: int = Field(ge=0)
    column: int = Field(ge=0)
    message: str
    severity: Severity
    code: str | None = None

    @property
    def is_crash_sentinel(self) -> bool:
        return (
            self.file == CRASH_SENTINEL_FILE
            and self.code is not None
            and self.code.endswith(CRASH_CODE_SUFFIX)
        )


class ToolResult(BaseModel):
    """Outcome of one external checker run.

    Build instances through :meth:`from_diagnostics`, :meth:`skip` or
    :meth:`crash`; the validator rejects counts that do not partition the
    diagnostics and skips that carry findings.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = True
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    error_count: int = Field(default=0, ge=0)
    warning_count: int = Field(default=0, ge=0)
    skipped: str | None = None
    tool: str | None = None

    @model_validator(mode="after")
    def _check_counts(self) -> ToolResult:
        errors = sum(1 for d in self.diagnostics if d.severity is Severity.ERROR)
        warnings = len(self.diagnostics) - errors
        if (self.error_count, self.warning_count) != (errors, warnings):
            raise ValueError(
                f"counts {self.error_count}/{self.warning_count} do not match "
                f"diagnostics {errors}/{warnings}"
            )
        if self.success != (errors == 0):
            raise ValueError("success must be true exactly when there are no errors")
        if self.skipped is not None and self.diagnostics:
            raise ValueError("a skipped result cannot carry diagnostics")
        return self

    @classmethod
    def from_diagnostics(
        cls, diagnostics: Iterable[Diagnostic], tool: str | None = None
    ) -> ToolResult:
        items = list(diagnostics)
        error_count = sum(1 for d in items if d.severity is Severity.ERROR)
        return cls(
            success=error_count == 0,
            diagnostics=items,
            error_count=error_count,
            warning_count=len(items) - error_count,
            tool=tool,
        )

    @classmethod
    def skip(cls, reason: str, tool: str | None = None) -> ToolResult:
        return cls(skipped=reason, tool=tool)

    @classmethod
    def crash(cls, tool: str) -> ToolResult:
        return cls.from_diagnostics(
            [
                Diagnostic(
                    file=CRASH_SENTINEL_FILE,
                    line=0,
                    column=0,
                    code=f"{tool}{CRASH_CODE_SUFFIX}",
                    message=(
                        f"{tool} exited with errors but produced no diagnostic output "
                        "(possible configuration issue)"
                    ),
                    severity=Severity.ERROR,
                )
            ],
            tool=tool,
        )


class DirectoryDiagnosticResult(BaseModel):
    strategy: ReportedStrategy
    success: bool
    error_count: int = Field(ge=0)
    warning_count: int = Field(ge=0)
    diagnostics: str
    summary: str


@dataclass(frozen=True, slots=True)
class LspDiagnosticWithFile:
    file: str
    diagnostic: LSPDiagnostic


@dataclass(slots=True)
class LspAggregationResult:
    success: bool
    diagnostics: list[LspDiagnosticWithFile] = field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0
    files_checked: int = 0
