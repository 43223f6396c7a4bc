from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from dataclasses import replace
import inspect
import logging
import shlex
import subprocess
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Mapping, TypeVar

from .context import CallOptions, Context

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExecutionError(RuntimeError):
    """Raised when an external command cannot be spawned or exits unsuccessfully."""

    def __init__(
        self,
        message: str,
        *,
        command_key: str | None = None,
        command: str | None = None,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.command_key = command_key
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class CommandBundle(Mapping[str, str]):
    """Raw output of every command executed for one top-level call, keyed by command key."""

    __slots__ = ("_outputs",)

    def __init__(self, outputs: Mapping[str, str]) -> None:
        self._outputs: Dict[str, str] = dict(outputs)

    def __getitem__(self, key: str) -> str:
        try:
            return self._outputs[key]
        except KeyError:
            raise KeyError(f"Command '{key}' was not executed for this call.") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._outputs)

    def __len__(self) -> int:
        return len(self._outputs)

    def __repr__(self) -> str:
        return f"CommandBundle({sorted(self._outputs)})"


def _coerce_output(key: str, command: str, output: Any) -> str:
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    if not isinstance(output, str):
        raise ExecutionError(
            f"Command '{key}' returned {type(output).__name__} instead of text.",
            command_key=key,
            command=command,
        )
    return output


def _annotate(exc: ExecutionError, key: str, command: str) -> None:
    if exc.command_key is None:
        exc.command_key = key
    if exc.command is None:
        exc.command = command


def _wrap_failure(key: str, command: str, exc: Exception) -> ExecutionError:
    return ExecutionError(
        f"Command '{key}' ({command}) failed: {exc}",
        command_key=key,
        command=command,
        returncode=getattr(exc, "returncode", None),
        stderr=getattr(exc, "stderr", None),
    )


class Executor(ABC):
    """Turns a set of command keys into a ``CommandBundle`` using one execution strategy."""

    def __init__(self, context: Context) -> None:
        self.context = context

    def hook_options(self, options: CallOptions) -> CallOptions:
        return replace(options, workdir=self.context.workdir_for(options))

    @abstractmethod
    def execute(self, command_keys: Iterable[str], options: CallOptions) -> Any:
        """Run each command once and return the bundle (or an awaitable of it)."""

    @abstractmethod
    def then(self, outcome: Any, fn: Callable[[CommandBundle], T]) -> Any:
        """Apply ``fn`` to the bundle produced by ``execute`` in this strategy's style."""


class BlockingExecutor(Executor):
    """Runs commands one after another on the calling thread."""

    def execute(self, command_keys: Iterable[str], options: CallOptions) -> CommandBundle:
        hook_options = self.hook_options(options)
        outputs: Dict[str, str] = {}
        for key in sorted(command_keys):
            outputs[key] = self._invoke(key, hook_options)
        return CommandBundle(outputs)

    def _invoke(self, key: str, options: CallOptions) -> str:
        command = self.context.command_for(key)
        logger.debug("Running %s: %s (cwd=%s)", key, command, options.workdir)
        try:
            output = self.context.exec_git_sync(command, options)
        except ExecutionError as exc:
            _annotate(exc, key, command)
            raise
        except Exception as exc:
            raise _wrap_failure(key, command, exc) from exc
        return _coerce_output(key, command, output)

    def then(self, outcome: CommandBundle, fn: Callable[[CommandBundle], T]) -> T:
        return fn(outcome)


class AsyncExecutor(Executor):
    """Starts every command at once and joins them before the bundle is built."""

    async def execute(self, command_keys: Iterable[str], options: CallOptions) -> CommandBundle:
        hook_options = self.hook_options(options)
        keys = sorted(command_keys)
        results = await asyncio.gather(
            *(self._invoke(key, hook_options) for key in keys),
            return_exceptions=True,
        )

        failures = [(key, result) for key, result in zip(keys, results) if isinstance(result, BaseException)]
        if failures:
            for key, exc in failures[1:]:
                logger.debug("Additional failure for %s suppressed: %s", key, exc)
            raise failures[0][1]

        return CommandBundle(dict(zip(keys, results)))

    async def _invoke(self, key: str, options: CallOptions) -> str:
        command = self.context.command_for(key)
        logger.debug("Starting %s: %s (cwd=%s)", key, command, options.workdir)
        try:
            output = self.context.exec_git(command, options)
            if inspect.isawaitable(output):
                output = await output
        except ExecutionError as exc:
            _annotate(exc, key, command)
            raise
        except Exception as exc:
            raise _wrap_failure(key, command, exc) from exc
        return _coerce_output(key, command, output)

    def then(self, outcome: Awaitable[CommandBundle], fn: Callable[[CommandBundle], T]) -> Awaitable[T]:
        async def _chain() -> T:
            return fn(await outcome)

        return _chain()


def _argv(command: str, options: CallOptions) -> List[str]:
    return [*shlex.split(command), *options.git_args]


def _cwd(options: CallOptions) -> str | None:
    return str(options.workdir) if options.workdir else None


def _failed(command: str, returncode: int, stderr: str) -> ExecutionError:
    return ExecutionError(
        f"Command '{command}' exited with status {returncode}: {stderr.strip()}",
        command=command,
        returncode=returncode,
        stderr=stderr,
    )


def default_exec_git_sync(command: str, options: CallOptions) -> str:
    try:
        completed = subprocess.run(
            _argv(command, options),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            cwd=_cwd(options),
        )
    except OSError as exc:
        raise ExecutionError(f"Could not spawn '{command}': {exc}", command=command) from exc

    if completed.returncode != 0:
        raise _failed(command, completed.returncode, completed.stderr)
    return completed.stdout


async def default_exec_git(command: str, options: CallOptions) -> str:
    try:
        process = await asyncio.create_subprocess_exec(
            *_argv(command, options),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=_cwd(options),
        )
    except OSError as exc:
        raise ExecutionError(f"Could not spawn '{command}': {exc}", command=command) from exc

    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise _failed(command, process.returncode, stderr.decode("utf-8", errors="replace"))
    return stdout.decode("utf-8", errors="replace")
