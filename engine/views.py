"""Pure transforms from raw command output to the query results."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, List, Mapping, NamedTuple, Tuple, TYPE_CHECKING

import semver

from .commands import DEFAULT_COMMANDS, LOG, STATUS
from .graph import FunctionGraph, QueryNode
from .parser import HEAD, dirty_codes, iter_lines, parse_log_line, parse_status_line

if TYPE_CHECKING:
    from .context import CallOptions
    from .graph import SiblingLookup

logger = logging.getLogger(__name__)

COMMITS = "commits"
TAGS_WITH_COMMIT = "tags_with_commit"
SEMVER_TAGS_WITH_COMMIT = "semver_tags_with_commit"
COMMITS_BY_TAG = "commits_by_tag"
IS_DIRTY = "is_dirty"


@dataclass(frozen=True)
class CommitRecord:
    hash: str
    names: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()

    @property
    def is_head(self) -> bool:
        return HEAD in self.names

    @classmethod
    def from_log_line(cls, line: str, line_number: int | None = None) -> "CommitRecord":
        commit_hash, names, tags = parse_log_line(line, line_number)
        return cls(hash=commit_hash, names=tuple(names), tags=tuple(tags))


class TagCommitPair(NamedTuple):
    tag: str
    commit: CommitRecord

    @property
    def hash(self) -> str:
        return self.commit.hash


@dataclass(frozen=True)
class TagRef:
    tag: str
    hash: str
    is_head: bool


def parse_semver(tag: str) -> semver.Version | None:
    """Parse ``tag`` as a semantic version, allowing a single leading ``v``."""
    candidate = tag[1:] if tag.startswith("v") else tag
    try:
        return semver.Version.parse(candidate)
    except (TypeError, ValueError):
        return None


def commits(bundle: Mapping[str, str], options: "CallOptions", siblings: "SiblingLookup") -> List[CommitRecord]:
    return [CommitRecord.from_log_line(line, number) for number, line in iter_lines(bundle[LOG])]


def tags_with_commit(
    bundle: Mapping[str, str], options: "CallOptions", siblings: "SiblingLookup"
) -> List[TagCommitPair]:
    return [
        TagCommitPair(tag, commit)
        for commit in siblings.evaluate(COMMITS, bundle, options)
        for tag in commit.tags
    ]


def semver_tags_with_commit(
    bundle: Mapping[str, str], options: "CallOptions", siblings: "SiblingLookup"
) -> List[TagCommitPair]:
    """
    Tags that are valid semantic versions, highest precedence first.

    ``options.ascending`` flips the order. Tags of equal precedence keep their
    log order.
    """
    versioned: List[Tuple[semver.Version, TagCommitPair]] = []
    for pair in siblings.evaluate(TAGS_WITH_COMMIT, bundle, options):
        version = parse_semver(pair.tag)
        if version is not None:
            versioned.append((version, pair))

    versioned.sort(key=lambda item: item[0], reverse=not options.ascending)
    return [pair for _, pair in versioned]


def commits_by_tag(
    bundle: Mapping[str, str], options: "CallOptions", siblings: "SiblingLookup"
) -> Dict[str, TagRef]:
    by_tag: Dict[str, TagRef] = {}
    for commit in siblings.evaluate(COMMITS, bundle, options):
        for tag in commit.tags:
            previous = by_tag.get(tag)
            if previous is not None and previous.hash != commit.hash:
                logger.warning("Tag %s found on %s and %s; keeping %s", tag, previous.hash, commit.hash, commit.hash)
            by_tag[tag] = TagRef(tag=tag, hash=commit.hash, is_head=commit.is_head)
    return by_tag


def is_dirty(bundle: Mapping[str, str], options: "CallOptions", siblings: "SiblingLookup") -> bool:
    codes = dirty_codes(options.strict)
    entries = [parse_status_line(line, number) for number, line in iter_lines(bundle[STATUS])]
    return any(index in codes or worktree in codes for index, worktree, _ in entries)


DEFAULT_QUERIES: Tuple[QueryNode, ...] = (
    QueryNode(COMMITS, commits, cmds=(LOG,)),
    QueryNode(TAGS_WITH_COMMIT, tags_with_commit, deps=(COMMITS,)),
    QueryNode(SEMVER_TAGS_WITH_COMMIT, semver_tags_with_commit, deps=(TAGS_WITH_COMMIT,)),
    QueryNode(COMMITS_BY_TAG, commits_by_tag, deps=(COMMITS,)),
    QueryNode(IS_DIRTY, is_dirty, cmds=(STATUS,)),
)


def build_default_graph(commands: Mapping[str, str] | None = None) -> FunctionGraph:
    return FunctionGraph(DEFAULT_QUERIES, DEFAULT_COMMANDS if commands is None else commands)
