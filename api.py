from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Mapping, Tuple

from .engine.context import AsyncHook, Context, SyncHook
from .engine.graph import FunctionGraph


class _QueryNamespace(ABC):
    def __init__(self, context: Context) -> None:
        self._context = context

    @property
    def queries(self) -> Tuple[str, ...]:
        return self._context.graph.names

    @abstractmethod
    def run(self, name: str, **options: Any) -> Any:
        """Evaluate the query ``name`` with this namespace's execution strategy."""

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_") or name not in self._context.graph:
            raise AttributeError(f"{type(self).__name__!s} has no query '{name}'")

        def query(**options: Any) -> Any:
            return self.run(name, **options)

        query.__name__ = name
        return query

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | set(self.queries))


class SyncQueries(_QueryNamespace):
    """Blocking entry points: ``api.sync.commits()`` returns the result directly."""

    def run(self, name: str, **options: Any) -> Any:
        return self._context.engine.run_sync(self._context, name, options)


class Gitopia(_QueryNamespace):
    """
    Read-only queries over a git repository.

    Every registered query is available as a coroutine function on the
    instance and as a plain function on ``sync``::

        git = Gitopia("/path/to/repo")
        tags = await git.semver_tags_with_commit()
        dirty = git.sync.is_dirty(strict=True)

    Per-call keyword options: ``strict``, ``git_args``, ``workdir`` and
    ``ascending``.
    """

    def __init__(
        self,
        workdir: str | Path | None = None,
        *,
        exec_git: AsyncHook | None = None,
        exec_git_sync: SyncHook | None = None,
        commands: Mapping[str, str] | None = None,
        graph: FunctionGraph | None = None,
    ) -> None:
        super().__init__(
            Context(
                workdir,
                exec_git=exec_git,
                exec_git_sync=exec_git_sync,
                commands=commands,
                graph=graph,
            )
        )
        self.sync = SyncQueries(self._context)

    def run(self, name: str, **options: Any) -> Awaitable[Any]:
        return self._context.engine.run(self._context, name, options)
