from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from dirdiag.core.diagnostics.parsers import parse_tsc_output
from dirdiag.core.diagnostics.process import (
    OutputStream,
    ProcessOutcome,
    ProcessOutcomeKind,
    classify_outcome,
    run_external_tool,
)
from dirdiag.core.diagnostics.runners import (
    run_go_diagnostics,
    run_python_diagnostics,
    run_rust_diagnostics,
    run_tsc_diagnostics,
)
from dirdiag.core.diagnostics.types import Severity

INSTALLED = {"tsc", "go", "cargo", "mypy", "pylint"}


@pytest.fixture
def installed() -> Iterator[set[str]]:
    """Commands reported as present on the search path; edit the set per test."""
    available = set(INSTALLED)
    with patch(
        "dirdiag.core.diagnostics.process.resolve_command",
        side_effect=lambda cmd: f"/usr/bin/{cmd}" if cmd in available else None,
    ):
        yield available


@pytest.fixture
def mock_run() -> Iterator[MagicMock]:
    with patch("dirdiag.core.diagnostics.process.subprocess.run") as run:
        run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")
        yield run


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


def _project(tmp_path: Path, marker: str) -> Path:
    (tmp_path / marker).write_text("", encoding="utf-8")
    return tmp_path


class TestRunExternalTool:
    def test_missing_binary_is_not_launched(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.clear()

        outcome = run_external_tool("tsc", ["--noEmit"], tmp_path)

        assert outcome.kind is ProcessOutcomeKind.MISSING
        mock_run.assert_not_called()

    def test_runs_resolved_executable_in_directory(
        self, tmp_path: Path, installed: set[str], mock_run: MagicMock
    ) -> None:
        mock_run.return_value = _completed(2, stdout="out")

        outcome = run_external_tool("tsc", ["--noEmit"], tmp_path, timeout=12)

        assert outcome.kind is ProcessOutcomeKind.COMPLETED
        assert outcome.exit_code == 2
        assert outcome.stdout == "out"
        args, kwargs = mock_run.call_args
        assert args[0] == ["/usr/bin/tsc", "--noEmit"]
        assert kwargs["cwd"] == tmp_path
        assert kwargs["timeout"] == 12

    def test_timeout_keeps_partial_output(
        self, tmp_path: Path, installed: set[str], mock_run: MagicMock
    ) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(
            cmd="tsc", timeout=1, output=b"a.ts(1,1): error TS1: x\n", stderr=None
        )

        outcome = run_external_tool("tsc", [], tmp_path, timeout=1)

        assert outcome.kind is ProcessOutcomeKind.TIMED_OUT
        assert outcome.stdout == "a.ts(1,1): error TS1: x\n"
        assert outcome.stderr == ""


class TestClassifyOutcome:
    def test_timeout_without_output_is_a_crash(self) -> None:
        outcome = ProcessOutcome(kind=ProcessOutcomeKind.TIMED_OUT)

        result = classify_outcome(outcome, "tsc", parse_tsc_output)

        assert result.success is False
        assert result.diagnostics[0].code == "tsc-crash"

    def test_timeout_with_partial_output_is_parsed(self) -> None:
        outcome = ProcessOutcome(
            kind=ProcessOutcomeKind.TIMED_OUT, stdout="a.ts(1,1): error TS1005: x\n"
        )

        result = classify_outcome(outcome, "tsc", parse_tsc_output)

        assert result.diagnostics[0].code == "TS1005"

    def test_prefers_stdout_then_stderr(self) -> None:
        outcome = ProcessOutcome(
            kind=ProcessOutcomeKind.COMPLETED,
            exit_code=1,
            stdout="  \n",
            stderr="a.ts(2,2): error TS2304: missing\n",
        )

        result = classify_outcome(outcome, "tsc", parse_tsc_output)

        assert result.diagnostics[0].line == 2


class TestTscRunner:
    def test_skips_without_tsconfig(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        result = run_tsc_diagnostics(tmp_path)

        assert result.skipped == "no tsconfig.json found in directory"
        assert result.success is True
        mock_run.assert_not_called()

    def test_skips_when_binary_missing(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.discard("tsc")

        result = run_tsc_diagnostics(_project(tmp_path, "tsconfig.json"))

        assert result.skipped == "`tsc` binary not found in PATH"
        assert result.success is True
        assert result.diagnostics == []

    def test_clean_exit(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        result = run_tsc_diagnostics(_project(tmp_path, "tsconfig.json"))

        assert result.success is True
        assert result.skipped is None
        assert result.diagnostics == []
        assert mock_run.call_args.args[0] == ["/usr/bin/tsc", "--noEmit", "--pretty", "false"]

    def test_parses_diagnostics(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(
            2, stdout="src/index.ts(10,5): error TS2345: Bad argument.\n"
        )

        result = run_tsc_diagnostics(_project(tmp_path, "tsconfig.json"))

        assert result.error_count == 1
        assert result.diagnostics[0].file == "src/index.ts"

    def test_silent_failure_is_a_crash(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(1)

        result = run_tsc_diagnostics(_project(tmp_path, "tsconfig.json"))

        assert result.success is False
        assert result.error_count == 1
        assert result.diagnostics[0].code == "tsc-crash"
        assert result.diagnostics[0].file == "."

    def test_passes_timeout(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        run_tsc_diagnostics(_project(tmp_path, "tsconfig.json"), timeout=5)

        assert mock_run.call_args.kwargs["timeout"] == 5


class TestGoRunner:
    def test_skips_without_go_mod(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        assert run_go_diagnostics(tmp_path).skipped == "no go.mod found in directory"

    def test_skips_when_go_missing(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.discard("go")

        result = run_go_diagnostics(_project(tmp_path, "go.mod"))

        assert result.skipped == "`go` binary not found in PATH"

    def test_reads_stderr_first(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(
            1,
            stdout="other.go:9:9: from stdout\n",
            stderr="# example.com/demo\n./main.go:3:2: unreachable code\n",
        )

        result = run_go_diagnostics(_project(tmp_path, "go.mod"))

        assert [d.file for d in result.diagnostics] == ["./main.go"]
        assert result.diagnostics[0].severity is Severity.WARNING
        assert result.success is True
        assert mock_run.call_args.args[0] == ["/usr/bin/go", "vet", "./..."]

    def test_silent_failure_is_a_crash(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(2)

        result = run_go_diagnostics(_project(tmp_path, "go.mod"))

        assert result.diagnostics[0].code == "go-crash"
        assert result.success is False


class TestRustRunner:
    def test_skips_without_cargo_toml(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        assert run_rust_diagnostics(tmp_path).skipped == "no Cargo.toml found in directory"

    def test_skips_when_cargo_missing(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.discard("cargo")

        result = run_rust_diagnostics(_project(tmp_path, "Cargo.toml"))

        assert result.skipped == "`cargo` binary not found in PATH"

    def test_uses_json_message_format(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        run_rust_diagnostics(_project(tmp_path, "Cargo.toml"))

        assert mock_run.call_args.args[0] == ["/usr/bin/cargo", "check", "--message-format=json"]

    def test_silent_failure_is_a_crash(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(101, stdout="\n")

        result = run_rust_diagnostics(_project(tmp_path, "Cargo.toml"))

        assert result.diagnostics[0].code == "cargo-crash"


class TestPythonRunner:
    def test_skips_without_project_files(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        result = run_python_diagnostics(tmp_path)

        assert result.skipped == (
            "no Python project files found (pyproject.toml, requirements.txt, or setup.py)"
        )

    @pytest.mark.parametrize("marker", ["pyproject.toml", "requirements.txt", "setup.py"])
    def test_prefers_mypy(self, tmp_path: Path, installed: set[str], mock_run: MagicMock, marker: str) -> None:
        mock_run.return_value = _completed(1, stdout="app.py:1:1: error: Bad  [misc]\n")

        result = run_python_diagnostics(_project(tmp_path, marker))

        assert result.tool == "mypy"
        assert result.diagnostics[0].code == "misc"
        command = mock_run.call_args.args[0]
        assert command[0] == "/usr/bin/mypy"
        assert "--ignore-missing-imports" in command
        assert "--show-column-numbers" in command
        assert mock_run.call_count == 1

    def test_falls_back_to_pylint(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.discard("mypy")
        mock_run.return_value = _completed(
            4, stdout="app.py:2:0: W0611: Unused import os (unused-import)\n"
        )

        result = run_python_diagnostics(_project(tmp_path, "pyproject.toml"))

        assert result.tool == "pylint"
        assert result.warning_count == 1
        assert result.success is True
        assert mock_run.call_args.args[0] == [
            "/usr/bin/pylint",
            "--output-format=text",
            "--score=no",
            "--recursive=y",
            ".",
        ]

    def test_skips_when_neither_installed(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.difference_update({"mypy", "pylint"})

        result = run_python_diagnostics(_project(tmp_path, "setup.py"))

        assert result.skipped == "neither mypy nor pylint found in PATH"
        assert result.success is True
        mock_run.assert_not_called()

    def test_mypy_crash(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(2)

        result = run_python_diagnostics(_project(tmp_path, "pyproject.toml"))

        assert result.diagnostics[0].code == "mypy-crash"
        assert result.tool == "mypy"

    def test_pylint_crash(self, tmp_path: Path, installed: set[str], mock_run: MagicMock) -> None:
        installed.discard("mypy")
        mock_run.return_value = _completed(32)

        result = run_python_diagnostics(_project(tmp_path, "pyproject.toml"))

        assert result.diagnostics[0].code == "pylint-crash"


class TestStreamSelection:
    def test_mypy_stderr_only_failure_is_a_crash(
        self, tmp_path: Path, installed: set[str], mock_run: MagicMock
    ) -> None:
        mock_run.return_value = _completed(
            2, stderr="mypy: error: Cannot find config file 'x.ini'\n"
        )

        result = run_python_diagnostics(_project(tmp_path, "pyproject.toml"))

        assert result.success is False
        assert result.error_count == 1
        assert result.diagnostics[0].code == "mypy-crash"

    def test_pylint_still_reads_stderr(
        self, tmp_path: Path, installed: set[str], mock_run: MagicMock
    ) -> None:
        installed.discard("mypy")
        mock_run.return_value = _completed(
            2, stderr="app.py:1:0: E0001: Parsing failed (syntax-error)\n"
        )

        result = run_python_diagnostics(_project(tmp_path, "pyproject.toml"))

        assert result.diagnostics[0].code == "E0001"

    def test_only_listed_streams_are_read(self) -> None:
        outcome = ProcessOutcome(
            kind=ProcessOutcomeKind.COMPLETED,
            exit_code=2,
            stderr="a.ts(1,1): error TS1005: x\n",
        )

        result = classify_outcome(
            outcome, "tsc", parse_tsc_output, streams=(OutputStream.STDOUT,)
        )

        assert result.diagnostics[0].code == "tsc-crash"
