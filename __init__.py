"""Read-only git history and status queries with blocking and asyncio entry points."""

from .api import Gitopia, SyncQueries
from .engine import (
    CallOptions,
    CommandBundle,
    CommitRecord,
    ConfigurationError,
    DEFAULT_COMMANDS,
    ExecutionError,
    FunctionGraph,
    ParseError,
    QueryNode,
    TagCommitPair,
    TagRef,
    build_default_graph,
)
from .visualize import visualize

__all__ = [
    "Gitopia",
    "SyncQueries",
    "CallOptions",
    "CommandBundle",
    "CommitRecord",
    "ConfigurationError",
    "DEFAULT_COMMANDS",
    "ExecutionError",
    "FunctionGraph",
    "ParseError",
    "QueryNode",
    "TagCommitPair",
    "TagRef",
    "build_default_graph",
    "visualize",
]
