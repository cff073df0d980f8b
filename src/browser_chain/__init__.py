"""
Browser Chain - a fluent, awaitable API for driving Chrome over CDP.

Commands issued on a chain are queued and run strictly in order against a
single browser tab. Actions return the same chain; queries return a new
chain that resolves to the query's result when awaited.

Usage:
    from browser_chain import BrowserChain, js

    async with BrowserChain() as chain:
        exists = await (
            chain.goto("https://example.com")
            .type("hello", "input[name=q]")
            .press(13)
            .wait("#results")
            .exists("#results a")
        )

    screenshot = await BrowserChain().goto("https://example.com").screenshot().end()
"""
from browser_chain.chain import BrowserChain
from browser_chain.queue import CommandQueue
from browser_chain.cdp.client import setup_logging
from browser_chain.core.commands import JSFunction, js
from browser_chain.core.config import CDPOptions, ChainOptions
from browser_chain.core.errors import (
    BrowserChainError,
    CDPConnectionError,
    CDPProtocolError,
    CDPTargetError,
    CDPTimeoutError,
    ElementNotFoundError,
    EvaluationError,
    NotImplementedYetError,
    UsageError,
)
from browser_chain.drivers import Driver, LocalChrome, RemoteChrome

__version__ = "0.1.0"

__all__ = [
    # Main API
    "BrowserChain",
    "CommandQueue",
    "JSFunction",
    "js",
    # Configuration
    "ChainOptions",
    "CDPOptions",
    "setup_logging",
    # Drivers
    "Driver",
    "LocalChrome",
    "RemoteChrome",
    # Errors
    "BrowserChainError",
    "CDPConnectionError",
    "CDPProtocolError",
    "CDPTargetError",
    "CDPTimeoutError",
    "ElementNotFoundError",
    "EvaluationError",
    "NotImplementedYetError",
    "UsageError",
    # Version
    "__version__",
]
