"""
Command Queue - strict FIFO, single-flight execution of commands on one driver.

Every appended command becomes an asyncio Task that first awaits the task
appended before it. The newest task is the queue's tail. If the previous
task failed, awaiting it re-raises that failure, so the new task fails with
the same exception without ever reaching the driver: the first failure
halts the rest of the chain.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

from browser_chain.core.commands import Command, Wait, WaitReady
from browser_chain.core.errors import UsageError
from browser_chain.drivers.base import Driver

logger = logging.getLogger("browser_chain")

T = TypeVar("T")


class CommandQueue:
    """
    Serializes commands issued by one chain against one driver.

    Commands must be appended while an event loop is running, since each
    one is scheduled as a task immediately.
    """

    def __init__(self, driver: Driver, *, implicit_wait: bool = True):
        self.driver = driver
        self.implicit_wait = implicit_wait
        self._tail: Optional[asyncio.Task] = None
        self._ended = False
        self._released = False

    @property
    def ended(self) -> bool:
        return self._ended

    def enqueue(self, command: Command) -> None:
        """Schedule an action after everything appended so far."""
        self._append(command)

    def process(self, command: Command) -> Awaitable[T]:
        """
        Schedule a query and return an awaitable for its result.

        The awaitable resolves once every earlier command and this one have
        succeeded, or raises the first failure among them.
        """
        return self._append(command)

    def _append(self, command: Command) -> asyncio.Task:
        if self._ended:
            raise UsageError(f"Cannot add {command.type}: chain already ended", method=command.type)
        if self.implicit_wait and not isinstance(command, Wait):
            selector = getattr(command, "selector", None) if command.waits_for_selector else None
            self._schedule(WaitReady(selector))
        return self._schedule(command)

    def _schedule(self, command: Command) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run_after(self._tail, command))
        task.add_done_callback(self._log_failure)
        self._tail = task
        return task

    async def _run_after(self, previous: Optional[asyncio.Task], command: Command) -> Any:
        if previous is not None:
            await previous
        return await self.driver.run(command)

    def _log_failure(self, task: asyncio.Task) -> None:
        if task.cancelled() or task is not self._tail:
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Chain halted: {type(error).__name__}: {error}")

    async def _settle(self) -> Optional[BaseException]:
        tail = self._tail
        if tail is None:
            return None
        await asyncio.wait([tail])
        if tail.cancelled():
            return asyncio.CancelledError()
        return tail.exception()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        await self.driver.close()

    async def end(self) -> None:
        """
        Drain outstanding work, release the driver and raise the chain's
        failure, if any.

        Only the first call releases the driver or raises; later calls just
        wait for any remaining work. A failure while releasing is raised only
        when the chain itself succeeded.
        """
        if self._ended:
            await self._settle()
            return
        self._ended = True
        error = await self._settle()
        if error is None:
            await self._release()
            return
        try:
            await self._release()
        except Exception as e:
            logger.warning(f"Error releasing driver: {type(e).__name__}: {e}")
        raise error

    async def close(self) -> None:
        """Drain outstanding work and release the driver without raising."""
        self._ended = True
        error = await self._settle()
        if error is not None:
            logger.debug(f"Closing chain after failure: {type(error).__name__}: {error}")
        try:
            await self._release()
        except Exception as e:
            logger.warning(f"Error releasing driver: {type(e).__name__}: {e}")
