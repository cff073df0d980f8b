"""
Browser Chain Error Taxonomy - Exception classes raised by chains and drivers.

Usage errors and not-implemented errors are raised synchronously from fluent
calls, before anything is queued. Every other error is an execution failure:
it is raised by a driver while a queued command runs and surfaces at the
next awaited query or at ``end()``.
"""
from typing import Optional


class BrowserChainError(Exception):
    """Base exception for all browser chain errors."""

    def __init__(self, message: str, method: Optional[str] = None,
                 selector: Optional[str] = None, **context):
        super().__init__(message)
        self.message = message
        self.method = method
        self.selector = selector
        self.context = context

    def __str__(self):
        parts = [self.message]
        if self.method:
            parts.append(f"method={self.method}")
        if self.selector:
            parts.append(f"selector={self.selector}")
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"context=({context_str})")
        return " | ".join(parts)


class UsageError(BrowserChainError, ValueError):
    """Raised immediately when a fluent call receives malformed arguments."""
    pass


class NotImplementedYetError(BrowserChainError, NotImplementedError):
    """Raised immediately by operations that are declared but not available."""

    def __init__(self, operation: str, **kwargs):
        super().__init__(f"{operation} is not implemented yet", method=operation, **kwargs)
        self.operation = operation


class CDPConnectionError(BrowserChainError):
    """Raised when connection to Chrome/CDP fails or is lost."""
    pass


class CDPTimeoutError(BrowserChainError):
    """Raised when a CDP operation or a wait times out."""

    def __init__(self, message: str, timeout: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class CDPProtocolError(BrowserChainError):
    """Raised when CDP returns an error response."""

    def __init__(self, message: str, code: Optional[int] = None,
                 cdp_error: Optional[dict] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code
        self.cdp_error = cdp_error


class CDPTargetError(BrowserChainError):
    """Raised when opening or closing a tab fails."""
    pass


class ElementNotFoundError(BrowserChainError):
    """Raised when a selector matches no element in the page."""

    def __init__(self, selector: str, **kwargs):
        super().__init__(f"No element matches selector {selector!r}", selector=selector, **kwargs)


class EvaluationError(BrowserChainError):
    """Raised when JavaScript evaluated in the page throws."""

    def __init__(self, message: str, exception_details: Optional[dict] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.exception_details = exception_details
