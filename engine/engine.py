from __future__ import annotations

import logging
from typing import Any, Mapping, TYPE_CHECKING

from .context import CallOptions
from .executors import AsyncExecutor, BlockingExecutor, Executor

if TYPE_CHECKING:
    from .context import Context

logger = logging.getLogger(__name__)


class Engine:
    """Resolves a query's commands, runs them through an executor and evaluates the query."""

    async def run(
        self,
        context: "Context",
        name: str,
        options: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.dispatch(AsyncExecutor(context), context, name, options)

    def run_sync(
        self,
        context: "Context",
        name: str,
        options: Mapping[str, Any] | None = None,
    ) -> Any:
        return self.dispatch(BlockingExecutor(context), context, name, options)

    def dispatch(
        self,
        executor: Executor,
        context: "Context",
        name: str,
        options: Mapping[str, Any] | None = None,
    ) -> Any:
        call_options = CallOptions.from_mapping(options)
        command_keys = context.graph.resolve(name)
        logger.debug(
            "Dispatching %s via %s with commands %s",
            name,
            type(executor).__name__,
            sorted(command_keys),
        )
        outcome = executor.execute(command_keys, call_options)
        return executor.then(
            outcome,
            lambda bundle: context.graph.evaluate(name, bundle, call_options),
        )
