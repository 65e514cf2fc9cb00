from __future__ import annotations

from pathlib import Path

from dirdiag.core.diagnostics.runners.python import PYTHON_PROJECT_MARKERS
from dirdiag.core.diagnostics.types import DiagnosticsStrategy, ProjectType

# Checked in order; the first marker present decides.
PROJECT_MARKERS: list[tuple[ProjectType, tuple[str, ...]]] = [
    (ProjectType.TYPESCRIPT, ("tsconfig.json",)),
    (ProjectType.GO, ("go.mod",)),
    (ProjectType.RUST, ("Cargo.toml",)),
    (ProjectType.PYTHON, PYTHON_PROJECT_MARKERS),
]

STRATEGY_FOR_PROJECT_TYPE: dict[ProjectType, DiagnosticsStrategy] = {
    ProjectType.TYPESCRIPT: DiagnosticsStrategy.TSC,
    ProjectType.GO: DiagnosticsStrategy.GO,
    ProjectType.RUST: DiagnosticsStrategy.RUST,
    ProjectType.PYTHON: DiagnosticsStrategy.PYTHON,
    ProjectType.UNKNOWN: DiagnosticsStrategy.LSP,
}


def detect_project_type(directory: Path | str) -> ProjectType:
    """Guess a directory's project type from its build or config files.

    In a mixed repository only the highest-priority match is returned; pass an
    explicit strategy to check another language.
    """
    directory = Path(directory)
    for project_type, markers in PROJECT_MARKERS:
        if any((directory / marker).exists() for marker in markers):
            return project_type
    return ProjectType.UNKNOWN
