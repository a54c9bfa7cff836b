"""
A small in-process saga runner for operations that span the filesystem and the metadata store.

Every step of an operation is registered together with the action that undoes it.
If a later step raises, or the caller is cancelled, the registered compensations run
in reverse order (shielded from cancellation) and the original error is re-raised.
If a compensation itself fails, the remaining ones still run, and the caller gets an
InconsistentState error instead of the original one, because the stores may now disagree.
A cancellation is always re-raised as is.

    async with Saga("create folder x") as saga:
        await saga.step("claim path", claim_path, compensate=release_path)
        await saga.step("create directory", make_dir, compensate=remove_dir)
        ...
"""

import inspect
import logging
from typing import Any, Awaitable, Callable

import anyio

from assetvault.errors import InconsistentState

Action = Callable[[], Awaitable[Any] | Any]


async def _call(action: Action) -> Any:
    result = action()
    if inspect.isawaitable(result):
        result = await result
    return result


class Saga:
    def __init__(self, operation: str):
        self.operation = operation
        self._compensations: list[tuple[str, Action]] = []

    async def step(self, description: str, action: Action, compensate: Action | None = None) -> Any:
        """
        Run the action and, if it succeeds, remember how to undo it.
        Actions can be plain or async callables; the action's result is returned.
        """
        result = await _call(action)
        if compensate is not None:
            self._compensations.append((description, compensate))
        return result

    async def rollback(self) -> list[tuple[str, BaseException]]:
        """Run all compensations (newest first) and return the ones that failed"""
        failures: list[tuple[str, BaseException]] = []
        while self._compensations:
            description, compensate = self._compensations.pop()
            try:
                await _call(compensate)
            except Exception as e:
                logging.error(f"{self.operation}: could not undo '{description}': {e!r}")
                failures.append((description, e))
            else:
                logging.debug(f"{self.operation}: undid '{description}'")
        return failures

    async def __aenter__(self) -> "Saga":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self._compensations.clear()
            return False
        logging.warning(f"{self.operation} failed, rolling back: {exc!r}")
        # a cancelled caller still gets a complete rollback
        with anyio.CancelScope(shield=True):
            failures = await self.rollback()
        if failures:
            if not isinstance(exc, Exception):
                logging.critical(f"{self.operation} was interrupted and could not be rolled back: {failures}")
                return False
            raise InconsistentState(self.operation, exc, failures) from failures[0][1]
        return False
