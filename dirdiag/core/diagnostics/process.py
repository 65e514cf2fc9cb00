from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum, auto
from pathlib import Path
import subprocess
import time

from dirdiag.core.config import DEFAULT_EXTERNAL_PROCESS_TIMEOUT
from dirdiag.core.diagnostics.types import ToolResult
from dirdiag.core.logger import logger
from dirdiag.core.utils import resolve_command


class ProcessOutcomeKind(StrEnum):
    MISSING = auto()
    COMPLETED = auto()
    TIMED_OUT = auto()


class OutputStream(StrEnum):
    STDOUT = auto()
    STDERR = auto()


STDOUT_THEN_STDERR = (OutputStream.STDOUT, OutputStream.STDERR)


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    kind: ProcessOutcomeKind
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    duration_ms: float = 0.0

    def read(self, stream: OutputStream) -> str:
        return self.stdout if stream is OutputStream.STDOUT else self.stderr

    @property
    def succeeded(self) -> bool:
        return self.kind is ProcessOutcomeKind.COMPLETED and self.exit_code == 0


def _as_text(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def run_external_tool(
    executable: str,
    args: Sequence[str],
    cwd: Path,
    timeout: float = DEFAULT_EXTERNAL_PROCESS_TIMEOUT,
) -> ProcessOutcome:
    """Run ``executable`` in ``cwd`` and capture its output.

    The executable is looked up on the search path first; when it is absent
    nothing is launched and the outcome is ``MISSING``. A run that exceeds
    ``timeout`` seconds is killed and reported as ``TIMED_OUT`` together with
    whatever output had been buffered.
    """
    resolved = resolve_command(executable)
    if resolved is None:
        logger.info(f"{executable} not found in PATH")
        return ProcessOutcome(kind=ProcessOutcomeKind.MISSING)

    logger.info(f"Running {executable} {' '.join(args)} in {cwd}")
    start = time.perf_counter()
    try:
        completed = subprocess.run(
            [resolved, *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        logger.warning(f"{executable} timed out after {timeout}s")
        return ProcessOutcome(
            kind=ProcessOutcomeKind.TIMED_OUT,
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr),
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    duration_ms = (time.perf_counter() - start) * 1000
    logger.debug(
        f"{executable} exited with {completed.returncode} after {duration_ms:.0f} ms"
    )
    return ProcessOutcome(
        kind=ProcessOutcomeKind.COMPLETED,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        exit_code=completed.returncode,
        duration_ms=duration_ms,
    )


def classify_outcome(
    outcome: ProcessOutcome,
    tool: str,
    parser: Callable[[str], ToolResult],
    *,
    streams: Sequence[OutputStream] = STDOUT_THEN_STDERR,
) -> ToolResult:
    """Map a process outcome onto the runner result taxonomy.

    missing binary -> skipped; exit 0 -> clean; failure with output -> parsed;
    failure (or timeout) without any output -> one synthesized crash error.
    Only the given ``streams`` are read, first non-blank one wins.
    """
    if outcome.kind is ProcessOutcomeKind.MISSING:
        return ToolResult.skip(f"`{tool}` binary not found in PATH", tool=tool)

    if outcome.succeeded:
        return ToolResult.from_diagnostics([], tool=tool)

    texts = (outcome.read(stream) for stream in streams)
    output = next((text for text in texts if text.strip()), "")
    if not output:
        logger.warning(f"{tool} failed without producing any output")
        return ToolResult.crash(tool)

    return parser(output)
