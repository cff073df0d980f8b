"""
Pytest configuration and shared fixtures.
"""
import asyncio
from typing import Any, Dict, List, Optional

import pytest

from browser_chain.core.commands import Command
from browser_chain.drivers.base import Driver


class RecordingDriver(Driver):
    """
    In-memory driver that records every command it runs.

    ``results`` maps command type tags to the value returned for them,
    ``failures`` maps type tags to the exception raised, and ``delays`` is a
    list of per-call sleeps consumed in order. ``close_error`` is raised
    from every close() call after it is counted.
    """

    def __init__(
        self,
        results: Optional[Dict[str, Any]] = None,
        failures: Optional[Dict[str, BaseException]] = None,
        delays: Optional[List[float]] = None,
        close_error: Optional[BaseException] = None,
    ):
        self.results = results or {}
        self.failures = failures or {}
        self.delays = list(delays or [])
        self.commands: List[Command] = []
        self.events: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.close_calls = 0
        self.close_error = close_error

    @property
    def types(self) -> List[str]:
        return [c.type for c in self.commands]

    async def run(self, command: Command) -> Any:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.commands.append(command)
        self.events.append(("start", command.type))
        try:
            await asyncio.sleep(self.delays.pop(0) if self.delays else 0)
            if command.type in self.failures:
                raise self.failures[command.type]
            return self.results.get(command.type)
        finally:
            self.in_flight -= 1
            self.events.append(("end", command.type))

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def driver():
    """A recording driver with canned query results."""
    return RecordingDriver(results={
        "return_html": "<html><body>ok</body></html>",
        "return_exists": True,
        "return_screenshot": "iVBORw0KGgo=",
    })


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires Chrome)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    for item in items:
        if "integration" in item.nodeid.lower():
            item.add_marker(pytest.mark.integration)
        if "slow" in item.nodeid.lower():
            item.add_marker(pytest.mark.slow)
