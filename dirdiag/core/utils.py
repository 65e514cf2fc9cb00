from __future__ import annotations

import re
import shutil

_SAFE_COMMAND_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9._-]*$")


def is_safe_command_name(command: str) -> bool:
    return bool(command) and _SAFE_COMMAND_PATTERN.fullmatch(command) is not None


def command_exists(command: str) -> bool:
    """Check whether ``command`` can be found on the search path.

    Names containing anything other than letters, digits, dots, underscores and
    hyphens are rejected without probing.
    """
    if not is_safe_command_name(command):
        return False
    return shutil.which(command) is not None


def resolve_command(command: str) -> str | None:
    if not is_safe_command_name(command):
        return None
    return shutil.which(command)
