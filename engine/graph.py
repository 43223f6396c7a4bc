from __future__ import annotations

from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Set, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import CallOptions

logger = logging.getLogger(__name__)

# Attribute names taken by the public API: the blocking namespace and its helpers.
RESERVED_NAMES = frozenset({"sync", "run", "queries"})

Transform = Callable[[Mapping[str, str], "CallOptions", "SiblingLookup"], Any]


class ConfigurationError(ValueError):
    """Raised when the query graph or command catalog is inconsistent."""


@dataclass(frozen=True)
class QueryNode:
    """A named query: the commands it reads directly and the queries it builds on."""

    name: str
    fn: Transform
    cmds: Tuple[str, ...] = ()
    deps: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "cmds", tuple(self.cmds))
        object.__setattr__(self, "deps", tuple(self.deps))


class SiblingLookup:
    """
    Resolves a query's declared dependencies to their raw transforms.

    Handed to every transform so composed queries can reuse the bundle of the
    current call instead of going back through the public API.
    """

    def __init__(self, graph: "FunctionGraph", name: str) -> None:
        self._graph = graph
        self.name = name
        self._allowed = frozenset(graph[name].deps)

    def __getitem__(self, name: str) -> Transform:
        if name not in self._allowed:
            raise ConfigurationError(
                f"Query '{self.name}' does not declare a dependency on '{name}'."
            )
        return self._graph[name].fn

    def __contains__(self, name: object) -> bool:
        return name in self._allowed

    def evaluate(self, name: str, bundle: Mapping[str, str], options: "CallOptions") -> Any:
        fn = self[name]
        return fn(bundle, options, self._graph.lookup_for(name))


class FunctionGraph:
    """Immutable registry of named queries, validated once at construction."""

    def __init__(self, nodes: Iterable[QueryNode], commands: Mapping[str, str] | None = None) -> None:
        registry: Dict[str, QueryNode] = {}
        for node in nodes:
            if node.name in registry:
                raise ConfigurationError(f"Query '{node.name}' is registered twice.")
            registry[node.name] = node
        self._nodes: Mapping[str, QueryNode] = MappingProxyType(registry)

        self._validate_names()
        self._validate_dependencies()
        self._command_keys: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {name: self._resolve_uncached(name) for name in self._nodes}
        )
        self._lookups: Mapping[str, SiblingLookup] = MappingProxyType(
            {name: SiblingLookup(self, name) for name in self._nodes}
        )
        if commands is not None:
            self.check_commands(commands)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, name: str) -> QueryNode:
        try:
            return self._nodes[name]
        except KeyError:
            raise ConfigurationError(f"Unknown query '{name}'.") from None

    def resolve(self, name: str) -> FrozenSet[str]:
        """Return every command key ``name`` needs, directly or through its dependencies."""
        if name not in self._nodes:
            raise ConfigurationError(f"Unknown query '{name}'.")
        return self._command_keys[name]

    def lookup_for(self, name: str) -> SiblingLookup:
        if name not in self._nodes:
            raise ConfigurationError(f"Unknown query '{name}'.")
        return self._lookups[name]

    def evaluate(self, name: str, bundle: Mapping[str, str], options: "CallOptions") -> Any:
        node = self[name]
        return node.fn(bundle, options, self._lookups[name])

    def check_commands(self, commands: Mapping[str, str]) -> None:
        for node in self._nodes.values():
            missing = [key for key in node.cmds if key not in commands]
            if missing:
                raise ConfigurationError(
                    f"Query '{node.name}' requires unknown commands: {', '.join(missing)}"
                )

    def _validate_names(self) -> None:
        for name in self._nodes:
            if name in RESERVED_NAMES:
                raise ConfigurationError(f'"{name}" is reserved and cannot name a query.')
            if not name.isidentifier() or name.startswith("_"):
                raise ConfigurationError(f"Query name '{name}' is not a public identifier.")

    def _validate_dependencies(self) -> None:
        for node in self._nodes.values():
            for dep in node.deps:
                if dep not in self._nodes:
                    raise ConfigurationError(
                        f"Query '{node.name}' depends on undeclared query '{dep}'."
                    )

    def _resolve_uncached(self, name: str) -> FrozenSet[str]:
        keys: Set[str] = set()
        self._collect(name, keys, [], set())
        logger.debug("Query %s needs commands %s", name, sorted(keys))
        return frozenset(keys)

    def _collect(self, name: str, keys: Set[str], visiting: List[str], visited: Set[str]) -> None:
        if name in visiting:
            cycle = visiting[visiting.index(name):] + [name]
            raise ConfigurationError(f"Dependency cycle: {' -> '.join(cycle)}")
        if name in visited:
            return

        visiting.append(name)
        node = self._nodes[name]
        keys.update(node.cmds)
        for dep in node.deps:
            self._collect(dep, keys, visiting, visited)
        visiting.pop()
        visited.add(name)
