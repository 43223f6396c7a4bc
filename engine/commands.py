from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .graph import ConfigurationError

LOG = "log"
STATUS = "status"

# Literal command lines; fixtures key fake hooks on these exact strings.
DEFAULT_COMMANDS: Mapping[str, str] = MappingProxyType(
    {
        LOG: "git log --pretty=format:%H%d",
        STATUS: "git status --porcelain",
    }
)


def freeze_commands(commands: Mapping[str, str] | None) -> Mapping[str, str]:
    """Return an immutable copy of ``commands`` (or the default catalog)."""
    if commands is None:
        return DEFAULT_COMMANDS
    frozen = {}
    for key, command in commands.items():
        if not isinstance(command, str) or not command.strip():
            raise ConfigurationError(f"Command '{key}' must be a non-empty string.")
        frozen[str(key)] = command
    return MappingProxyType(frozen)
