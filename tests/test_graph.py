from __future__ import annotations

import pytest

from gitopia import ConfigurationError, FunctionGraph, Gitopia, QueryNode, build_default_graph
from gitopia.engine.context import CallOptions
from gitopia.engine.executors import CommandBundle


def _const(value):
    return lambda bundle, options, siblings: value


def test_default_graph_resolves_commands() -> None:
    graph = build_default_graph()
    assert graph.resolve("commits") == {"log"}
    assert graph.resolve("tags_with_commit") == {"log"}
    assert graph.resolve("semver_tags_with_commit") == {"log"}
    assert graph.resolve("commits_by_tag") == {"log"}
    assert graph.resolve("is_dirty") == {"status"}


def test_resolve_deduplicates_shared_dependencies() -> None:
    graph = FunctionGraph(
        [
            QueryNode("base", _const(1), cmds=("log",)),
            QueryNode("left", _const(2), cmds=("log",), deps=("base",)),
            QueryNode("right", _const(3), cmds=("status",), deps=("base",)),
            QueryNode("top", _const(4), deps=("left", "right", "base")),
        ]
    )
    assert graph.resolve("top") == frozenset({"log", "status"})
    assert graph.resolve("left") == frozenset({"log"})


def test_unknown_dependency_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="undeclared query 'missing'"):
        FunctionGraph([QueryNode("commits", _const(None), deps=("missing",))])


@pytest.mark.parametrize("name", ["sync", "run", "queries"])
def test_reserved_names_are_rejected(name: str) -> None:
    with pytest.raises(ConfigurationError, match="reserved"):
        FunctionGraph([QueryNode(name, _const(None))])


@pytest.mark.parametrize("name", ["semver-tags", "_private", "1st"])
def test_non_identifier_names_are_rejected(name: str) -> None:
    with pytest.raises(ConfigurationError):
        FunctionGraph([QueryNode(name, _const(None))])


def test_duplicate_names_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match="registered twice"):
        FunctionGraph([QueryNode("a", _const(1)), QueryNode("a", _const(2))])


def test_cycle_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="a -> b -> c -> a"):
        FunctionGraph(
            [
                QueryNode("a", _const(None), deps=("b",)),
                QueryNode("b", _const(None), deps=("c",)),
                QueryNode("c", _const(None), deps=("a",)),
            ]
        )


def test_self_dependency_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="cycle"):
        FunctionGraph([QueryNode("a", _const(None), deps=("a",))])


def test_unknown_command_key_is_rejected() -> None:
    graph = FunctionGraph([QueryNode("blame", _const(None), cmds=("blame",))])
    with pytest.raises(ConfigurationError, match="unknown commands: blame"):
        Gitopia(graph=graph)


def test_unknown_command_key_is_rejected_at_construction_with_catalog() -> None:
    with pytest.raises(ConfigurationError):
        FunctionGraph([QueryNode("blame", _const(None), cmds=("blame",))], {"log": "git log"})


def test_resolving_unknown_query_fails() -> None:
    with pytest.raises(ConfigurationError, match="Unknown query 'nope'"):
        build_default_graph().resolve("nope")


def test_sibling_lookup_only_exposes_declared_dependencies() -> None:
    seen = {}

    def top(bundle, options, siblings):
        seen["contains"] = "base" in siblings
        seen["value"] = siblings.evaluate("base", bundle, options)
        return siblings["other"]

    graph = FunctionGraph(
        [
            QueryNode("base", lambda bundle, options, siblings: bundle["log"].upper(), cmds=("log",)),
            QueryNode("other", _const(None)),
            QueryNode("top", top, deps=("base",)),
        ]
    )
    with pytest.raises(ConfigurationError, match="does not declare a dependency on 'other'"):
        graph.evaluate("top", CommandBundle({"log": "abc"}), CallOptions())
    assert seen == {"contains": True, "value": "ABC"}


def test_raw_sibling_transform_is_returned() -> None:
    graph = build_default_graph()
    lookup = graph.lookup_for("tags_with_commit")
    assert lookup["commits"] is graph["commits"].fn
