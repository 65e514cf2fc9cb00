from __future__ import annotations

from collections.abc import Callable
import os
from pathlib import Path


class GlobalPath:
    def __init__(self, resolver: Callable[[], Path]) -> None:
        self._resolver = resolver

    @property
    def path(self) -> Path:
        return self._resolver()


_DEFAULT_DIRDIAG_HOME = Path.home() / ".dirdiag"


def _get_dirdiag_home() -> Path:
    if dirdiag_home := os.getenv("DIRDIAG_HOME"):
        return Path(dirdiag_home).expanduser().resolve()
    return _DEFAULT_DIRDIAG_HOME


DIRDIAG_HOME = GlobalPath(_get_dirdiag_home)
CONFIG_FILE = GlobalPath(lambda: DIRDIAG_HOME.path / "config.toml")
LOG_DIR = GlobalPath(lambda: DIRDIAG_HOME.path / "logs")
LOG_FILE = GlobalPath(lambda: DIRDIAG_HOME.path / "logs" / "dirdiag.log")
