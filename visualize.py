from __future__ import annotations

from typing import List

from .engine.graph import FunctionGraph, QueryNode


def visualize(graph: FunctionGraph, name: str) -> str:
    """
    Produce a human-readable tree of a query and the queries it depends on.
    """
    lines: List[str] = []
    _render(graph, graph[name], lines, 0)
    return "\n".join(lines)


def _render(graph: FunctionGraph, node: QueryNode, lines: List[str], depth: int) -> None:
    indent = "  " * depth
    lines.append(f"{indent}{_describe_node(node)}")

    for dep in node.deps:
        _render(graph, graph[dep], lines, depth + 1)


def _describe_node(node: QueryNode) -> str:
    if not node.cmds:
        return node.name
    return f"{node.name} [commands={', '.join(node.cmds)}]"
