"""
Driver protocol - executes one command at a time against a browser.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from browser_chain.core.commands import Command


class Driver(ABC):
    """
    Executes a single command and returns its result, or raises.

    A CommandQueue never calls ``run`` concurrently on the same driver, so
    implementations need no locking of their own. ``close`` releases the
    browser connection and must tolerate being called when ``run`` was never
    called.
    """

    @abstractmethod
    async def run(self, command: Command) -> Any:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
