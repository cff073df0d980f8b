"""
Chrome drivers - run commands against a tab over the DevTools protocol.

LocalChrome may launch its own Chrome process; RemoteChrome attaches to an
instance that is already running elsewhere.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from browser_chain.cdp.client import CDPClient, TabInfo, close_tab, new_tab
from browser_chain.cdp.launcher import ChromeLauncher
from browser_chain.core.commands import Command
from browser_chain.core.config import ChainOptions
from browser_chain.core.errors import BrowserChainError
from browser_chain.drivers.base import Driver
from browser_chain.drivers.handlers import COMMAND_HANDLERS, viewport_metrics

logger = logging.getLogger("browser_chain")

DEFAULT_DOMAINS = ["Page", "Runtime", "Network", "DOM"]


class ChromeDriver(Driver):
    """
    Driver for a single Chrome tab.

    The connection is opened lazily by the first command and closed by
    ``close()``, which also closes the tab when ``cdp.close_tab`` is set.
    """

    def __init__(self, options: ChainOptions):
        self.options = options
        self._client: Optional[CDPClient] = None
        self._tab: Optional[TabInfo] = None
        self._closed = False

    @property
    def base_url(self) -> str:
        return self.options.cdp.http_url

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def _before_connect(self) -> None:
        """Hook for variants that need to prepare the browser first."""

    async def _after_close(self) -> None:
        """Hook for variants that own additional resources."""

    async def _ensure_connected(self) -> CDPClient:
        if self._client:
            return self._client
        if self._closed:
            raise BrowserChainError("Driver already closed", method="run")

        await self._before_connect()
        self._tab = await new_tab(self.base_url)
        client = CDPClient(self._rewrite_ws_url(self._tab.ws_url), debug=self.options.debug)
        await client.connect()
        self._client = client

        await client.enable_domains(DEFAULT_DOMAINS)
        viewport = self.options.viewport
        if viewport.get("width") and viewport.get("height"):
            await client.send("Emulation.setDeviceMetricsOverride", viewport_metrics(viewport))

        logger.info(
            f"Attached to tab {self._tab.target_id} at {self.options.cdp.host}:{self.options.cdp.port}",
            extra={"target_id": self._tab.target_id},
        )
        return client

    def _rewrite_ws_url(self, ws_url: str) -> str:
        if self.options.cdp.secure and ws_url.startswith("ws://"):
            return "wss://" + ws_url[len("ws://"):]
        return ws_url

    async def run(self, command: Command) -> Any:
        handler = COMMAND_HANDLERS.get(type(command))
        if handler is None:
            raise BrowserChainError(f"Unsupported command: {command.type}", method="run")
        client = await self._ensure_connected()
        logger.debug(f"Running {command.type}", extra={"command": command.describe()})
        return await handler(client, command, self.options)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._client:
            await self._client.close()
            self._client = None

        try:
            if self._tab and self.options.cdp.close_tab:
                await close_tab(self.base_url, self._tab.target_id)
        finally:
            self._tab = None
            await self._after_close()
        logger.info("Driver closed")


class LocalChrome(ChromeDriver):
    """Chrome on this machine, launched on demand when ``launch_chrome`` is set."""

    def __init__(self, options: ChainOptions):
        super().__init__(options)
        self._launcher: Optional[ChromeLauncher] = None

    async def _before_connect(self) -> None:
        if not self.options.launch_chrome:
            return
        self._launcher = ChromeLauncher.from_options(
            port=self.options.cdp.port,
            host=self.options.cdp.host,
            launch=self.options.launch,
        )
        await self._launcher.start()

    async def _after_close(self) -> None:
        if self._launcher:
            await self._launcher.stop()
            self._launcher = None


class RemoteChrome(ChromeDriver):
    """An already-running Chrome reached over the network; never launched."""


def create_driver(options: ChainOptions) -> ChromeDriver:
    """Pick the driver variant selected by ``options.remote``."""
    if options.remote:
        return RemoteChrome(options)
    return LocalChrome(options)
