"""Query graph, executors and transforms behind the gitopia API."""

from .commands import DEFAULT_COMMANDS
from .context import CallOptions, Context
from .engine import Engine
from .executors import (
    AsyncExecutor,
    BlockingExecutor,
    CommandBundle,
    ExecutionError,
    Executor,
    default_exec_git,
    default_exec_git_sync,
)
from .graph import ConfigurationError, FunctionGraph, QueryNode, SiblingLookup
from .parser import ParseError
from .views import (
    CommitRecord,
    DEFAULT_QUERIES,
    TagCommitPair,
    TagRef,
    build_default_graph,
    parse_semver,
)

__all__ = [
    "DEFAULT_COMMANDS",
    "CallOptions",
    "Context",
    "Engine",
    "Executor",
    "AsyncExecutor",
    "BlockingExecutor",
    "CommandBundle",
    "ExecutionError",
    "default_exec_git",
    "default_exec_git_sync",
    "ConfigurationError",
    "FunctionGraph",
    "QueryNode",
    "SiblingLookup",
    "ParseError",
    "CommitRecord",
    "TagCommitPair",
    "TagRef",
    "DEFAULT_QUERIES",
    "build_default_graph",
    "parse_semver",
]
