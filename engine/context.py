from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Sequence, Tuple, TYPE_CHECKING

from .commands import freeze_commands

if TYPE_CHECKING:
    from .engine import Engine
    from .graph import FunctionGraph

OPTION_FIELDS = {"strict", "git_args", "workdir", "ascending"}

AsyncHook = Callable[[str, "CallOptions"], Awaitable[Any]]
SyncHook = Callable[[str, "CallOptions"], Any]


@dataclass(frozen=True)
class CallOptions:
    """Per-call options handed to transforms and to the execution hooks."""

    strict: bool = False
    git_args: Tuple[str, ...] = ()
    workdir: Path | None = None
    ascending: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None = None) -> "CallOptions":
        if not options:
            return cls()

        unknown = set(options.keys()) - OPTION_FIELDS
        if unknown:
            raise TypeError(f"Unsupported query options: {', '.join(sorted(unknown))}")

        workdir = options.get("workdir")
        return cls(
            strict=bool(options.get("strict", False)),
            git_args=_normalize_git_args(options.get("git_args")),
            workdir=Path(workdir).resolve() if workdir else None,
            ascending=bool(options.get("ascending", False)),
        )


def _normalize_git_args(git_args: Sequence[str] | str | None) -> Tuple[str, ...]:
    if not git_args:
        return ()
    if isinstance(git_args, str):
        return tuple(shlex.split(git_args))
    return tuple(str(arg) for arg in git_args)


class Context:
    """Holds construction-time configuration: working directory, hooks, catalog and graph."""

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        exec_git: AsyncHook | None = None,
        exec_git_sync: SyncHook | None = None,
        commands: Mapping[str, str] | None = None,
        graph: "FunctionGraph" | None = None,
        engine: "Engine" | None = None,
    ) -> None:
        from .executors import default_exec_git, default_exec_git_sync

        self.path = Path(path).resolve() if path else Path.cwd()
        self.commands = freeze_commands(commands)
        if graph is None:
            from .views import build_default_graph

            graph = build_default_graph(self.commands)
        else:
            graph.check_commands(self.commands)
        self.graph = graph
        self.exec_git: AsyncHook = exec_git or default_exec_git
        self.exec_git_sync: SyncHook = exec_git_sync or default_exec_git_sync
        if engine is None:
            from .engine import Engine as EngineClass

            engine = EngineClass()
        self.engine = engine

    def workdir_for(self, options: CallOptions) -> Path:
        return options.workdir or self.path

    def command_for(self, key: str) -> str:
        return self.commands[key]
