from __future__ import annotations

from dirdiag.core.diagnostics.runners.go import run_go_diagnostics
from dirdiag.core.diagnostics.runners.python import run_python_diagnostics
from dirdiag.core.diagnostics.runners.rust import run_rust_diagnostics
from dirdiag.core.diagnostics.runners.tsc import run_tsc_diagnostics

__all__ = [
    "run_go_diagnostics",
    "run_python_diagnostics",
    "run_rust_diagnostics",
    "run_tsc_diagnostics",
]
