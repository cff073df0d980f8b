"""
Core module - Command protocol, configuration and errors.
"""
from browser_chain.core.commands import Command, JSFunction, Query, Wait, js
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

__all__ = [
    "Command",
    "Query",
    "Wait",
    "JSFunction",
    "js",
    "CDPOptions",
    "ChainOptions",
    "BrowserChainError",
    "CDPConnectionError",
    "CDPProtocolError",
    "CDPTargetError",
    "CDPTimeoutError",
    "ElementNotFoundError",
    "EvaluationError",
    "NotImplementedYetError",
    "UsageError",
]
