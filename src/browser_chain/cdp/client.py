"""
CDP Client - Chrome DevTools Protocol WebSocket client and tab endpoints.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
import websockets
from websockets.asyncio.client import connect

from browser_chain.core.errors import (
    BrowserChainError,
    CDPConnectionError,
    CDPProtocolError,
    CDPTargetError,
    CDPTimeoutError,
)

logger = logging.getLogger("browser_chain")


def setup_logging(level: int = logging.INFO, debug: bool = False):
    """Configure logging for browser chains."""
    if debug:
        level = logging.DEBUG

    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)


# =============================================================================
# DevTools HTTP endpoints
# =============================================================================

@dataclass
class TabInfo:
    """A page target opened through the DevTools HTTP endpoint."""
    target_id: str
    ws_url: str
    url: str = ""
    type: str = "page"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TabInfo":
        return cls(
            target_id=data["id"],
            ws_url=data["webSocketDebuggerUrl"],
            url=data.get("url", ""),
            type=data.get("type", "page"),
        )


async def get_version(base_url: str, timeout: float = 2.0) -> Dict[str, Any]:
    """Fetch /json/version; raises CDPConnectionError if nothing is listening."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(f"{base_url}/json/version")
            response.raise_for_status()
            return response.json()
    except httpx.HTTPError as e:
        raise CDPConnectionError(
            f"Failed to reach DevTools endpoint at {base_url}",
            method="get_version"
        ) from e


async def new_tab(base_url: str, url: str = "about:blank") -> TabInfo:
    """Open a new page target and return its debugger WebSocket URL."""
    try:
        async with httpx.AsyncClient() as client:
            response = await client.put(f"{base_url}/json/new?{url}")
            response.raise_for_status()
            tab = TabInfo.from_json(response.json())
            logger.debug(f"Opened tab {tab.target_id}", extra={"target_id": tab.target_id})
            return tab
    except httpx.RequestError as e:
        raise CDPConnectionError(
            f"Failed to connect to Chrome at {base_url}",
            method="new_tab"
        ) from e
    except (httpx.HTTPStatusError, KeyError, ValueError) as e:
        raise CDPTargetError(
            f"Failed to open a new tab at {base_url}: {e}",
            method="new_tab"
        ) from e


async def close_tab(base_url: str, target_id: str) -> None:
    """Close a page target previously opened with new_tab."""
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/json/close/{target_id}")
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise CDPTargetError(
            f"Failed to close tab {target_id}: {e}",
            method="close_tab",
            target_id=target_id,
        ) from e


# =============================================================================
# WebSocket client
# =============================================================================

class CDPClient:
    """Chrome DevTools Protocol WebSocket client for a single page target."""

    def __init__(self, ws_url: str, debug: bool = False):
        self.ws_url = ws_url
        self.message_id = 0
        self.pending_message: Dict[int, asyncio.Future] = {}
        self.event_waiters: Dict[str, List[asyncio.Future]] = {}
        self.ws = None
        self.debug = debug
        self._listener: Optional[asyncio.Task] = None

    def _now(self) -> float:
        return asyncio.get_running_loop().time()

    async def connect(self):
        """Connect to the page target via WebSocket."""
        logger.info(f"Connecting to Chrome via WebSocket: {self.ws_url}")

        try:
            self.ws = await connect(self.ws_url, max_size=None)
            logger.info("WebSocket connection established")
        except Exception as e:
            logger.error(f"Failed to establish WebSocket connection: {e}")
            raise CDPConnectionError(
                f"Failed to connect to Chrome WebSocket: {e}",
                method="connect"
            ) from e

        self._listener = asyncio.create_task(self.listen())

    async def enable_domains(self, domains):
        """Enable CDP domains for the page."""
        for domain in domains:
            await self.send(f"{domain}.enable")
            logger.debug(f"Enabled domain: {domain}", extra={"domain": domain})

    def expect_event(self, method: str) -> asyncio.Future:
        """
        Register interest in the next occurrence of a CDP event.

        Call this before the command that triggers the event so the event
        cannot be missed.
        """
        future = asyncio.get_running_loop().create_future()
        self.event_waiters.setdefault(method, []).append(future)
        return future

    async def wait_for_event(self, future: asyncio.Future, timeout: float) -> Dict[str, Any]:
        """Await a future returned by expect_event, bounded by timeout seconds."""
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as e:
            raise CDPTimeoutError(
                f"Timed out after {timeout}s waiting for event",
                timeout=timeout,
                method="wait_for_event",
            ) from e

    async def send(self, method, params=None):
        """Send a CDP command and wait for response."""
        self.message_id += 1
        msg_id = self.message_id
        future = asyncio.get_running_loop().create_future()

        self.pending_message[msg_id] = future

        message = {"id": msg_id, "method": method, "params": params or {}}

        start_time = self._now()

        if self.debug:
            logger.debug(
                f"CDP command: {method}",
                extra={"method": method, "params": params, "message_id": msg_id}
            )

        try:
            if not self.ws:
                raise CDPConnectionError(
                    "WebSocket connection not established",
                    method=method,
                )

            await self.ws.send(json.dumps(message))
            result = await future

            if self.debug:
                duration = self._now() - start_time
                logger.debug(
                    f"CDP response: {method} (duration={duration:.3f}s)",
                    extra={
                        "method": method,
                        "message_id": msg_id,
                        "duration_ms": duration * 1000,
                    }
                )

            return result
        except Exception as e:
            self.pending_message.pop(msg_id, None)
            duration = self._now() - start_time
            logger.error(
                f"CDP command error: {method} - {e}",
                extra={
                    "method": method,
                    "message_id": msg_id,
                    "duration_ms": duration * 1000,
                    "error_type": type(e).__name__,
                }
            )
            if isinstance(e, BrowserChainError):
                raise
            raise CDPConnectionError(
                f"CDP command {method} failed: {e}",
                method=method,
            ) from e

    def _handle_event(self, data: dict):
        method = data.get("method", "")
        waiters = self.event_waiters.pop(method, [])
        for future in waiters:
            if not future.done():
                future.set_result(data.get("params", {}))

    def _fail_pending(self, error: Exception):
        for future in self.pending_message.values():
            if not future.done():
                future.set_exception(error)
        self.pending_message.clear()
        for waiters in self.event_waiters.values():
            for future in waiters:
                if not future.done():
                    future.set_exception(error)
        self.event_waiters.clear()

    async def listen(self):
        """Listen for CDP responses and events."""
        try:
            while True:
                if not self.ws:
                    break
                raw = await self.ws.recv()
                data = json.loads(raw)

                if "id" in data and data["id"] in self.pending_message:
                    future = self.pending_message.pop(data["id"])
                    if not future.done():
                        if "error" in data:
                            error_data = data["error"]
                            error_code = error_data.get("code")
                            error_message = error_data.get("message", "Unknown CDP error")

                            logger.error(
                                f"CDP protocol error: {error_message}",
                                extra={
                                    "error_code": error_code,
                                    "error_data": error_data,
                                    "message_id": data["id"],
                                }
                            )

                            future.set_exception(CDPProtocolError(
                                f"CDP Error: {error_message}",
                                code=error_code,
                                cdp_error=error_data,
                            ))
                        else:
                            future.set_result(data.get("result", {}))
                elif "method" in data:
                    self._handle_event(data)

        except websockets.exceptions.ConnectionClosed:
            logger.info("WebSocket connection closed")
            self._fail_pending(CDPConnectionError(
                "WebSocket connection closed",
                method="listen"
            ))
        except Exception as e:
            logger.error(f"Error in listen loop: {e}", exc_info=True)
            self._fail_pending(CDPConnectionError(
                f"Unexpected error in listen loop: {e}",
                method="listen"
            ))

    async def close(self) -> None:
        """
        Close the WebSocket connection gracefully.
        """
        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")
            finally:
                self.ws = None
        if self._listener:
            await asyncio.gather(self._listener, return_exceptions=True)
            self._listener = None
