from __future__ import annotations

from pathlib import Path

import pytest

from dirdiag.core.paths import global_paths


@pytest.fixture(autouse=True)
def tmp_working_directory(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Path:
    tmp_working_directory = tmp_path_factory.mktemp("test_cwd")
    monkeypatch.chdir(tmp_working_directory)
    return tmp_working_directory


@pytest.fixture(autouse=True)
def dirdiag_home(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Path:
    home = tmp_path_factory.mktemp("dirdiag") / ".dirdiag"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.delenv("DIRDIAG_HOME", raising=False)
    monkeypatch.setattr(global_paths, "_DEFAULT_DIRDIAG_HOME", home)
    return home


@pytest.fixture(autouse=True)
def _clean_dirdiag_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DIRDIAG_EXTERNAL_PROCESS_TIMEOUT",
        "DIRDIAG_LSP_DIAGNOSTICS_WAIT",
        "DIRDIAG_LSP_DIAGNOSTICS_RETRIES",
        "DIRDIAG_IGNORED_DIRECTORIES",
        "DIRDIAG_LSP_SERVERS",
    ):
        monkeypatch.delenv(name, raising=False)
