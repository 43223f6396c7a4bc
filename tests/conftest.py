from __future__ import annotations

from typing import Callable, Dict, List, Tuple

import pytest

from gitopia import DEFAULT_COMMANDS, ExecutionError, Gitopia

LOG_COMMAND = DEFAULT_COMMANDS["log"]
STATUS_COMMAND = DEFAULT_COMMANDS["status"]

FAKE_LOG = """\
8d6896dd1beff617b9fbe84e3e0374fde9c2d337 (HEAD, master)
21f3c48d451d4beb49b873597fad7326a2eb88e3
fe276dfc7788e0213ca2de0650a2acd8ef2984d8
2c2f334ae83537b86ae7c011bfae0dea056264d4
966c7bf892a9230c36e80825d7cf7f2b6ea2eb83
5b6a6945e1c9ce3543ac6287bd68809a365c3a94 (tag: NOT_SEMVER, tag: v1.0.2-alpha.1)
25d12cabecfe5f4994416d039606707f57f8a1bd (tag: v1.0.2-alpha.0)
dc2b8f8a5dccfbfe8f79ab6bd9ac489a20d8afb4 (tag: v1.0.1)
7b45610608c27138714298177ed7f96c6b9f35ec
71cdea41c110e46fe510ad218692694662eb3294 (tag: v1.0.0)
683f0dbeb9e97ea9cfcdc6a62c8ab3d539bdf642"""

FAKE_STATUS = """\
 M src/git-utils.js
 M tests/git-utils.js
?? sample.js"""

FAKE_OUTPUTS = {
    LOG_COMMAND: FAKE_LOG,
    STATUS_COMMAND: FAKE_STATUS,
}


class FakeGit:
    """Records every hook invocation and answers from a command -> output table."""

    def __init__(self, outputs: Dict[str, str]) -> None:
        self.outputs = dict(outputs)
        self.calls: List[Tuple[str, object]] = []

    def _answer(self, command: str, options: object) -> str:
        self.calls.append((command, options))
        if command not in self.outputs:
            raise ExecutionError(f"unexpected command {command!r}", returncode=128)
        return self.outputs[command]

    async def exec_git(self, command: str, options: object) -> str:
        return self._answer(command, options)

    def exec_git_sync(self, command: str, options: object) -> str:
        return self._answer(command, options)

    @property
    def commands(self) -> List[str]:
        return [command for command, _ in self.calls]


@pytest.fixture
def make_git() -> Callable[..., Tuple[Gitopia, FakeGit]]:
    def _make(outputs: Dict[str, str] | None = None, **kwargs) -> Tuple[Gitopia, FakeGit]:
        fake = FakeGit(FAKE_OUTPUTS if outputs is None else outputs)
        git = Gitopia(exec_git=fake.exec_git, exec_git_sync=fake.exec_git_sync, **kwargs)
        return git, fake

    return _make


@pytest.fixture
def git(make_git) -> Gitopia:
    return make_git()[0]
