"""
Chrome process launcher for local chains.
"""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
import tempfile
import uuid
from typing import Any, List, Mapping, Optional

from browser_chain.cdp.client import get_version
from browser_chain.core.errors import CDPConnectionError

logger = logging.getLogger("browser_chain")

CHROME_NAMES = [
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
    "chrome",
]

FALLBACK_PATHS = [
    "/usr/bin/google-chrome",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/snap/bin/chromium",
    "/opt/google/chrome/chrome",
    # macOS paths
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
]

DEFAULT_FLAGS = [
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-extensions",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-backgrounding-occluded-windows",
]


def find_chrome_executable(chrome_path: Optional[str] = None) -> Optional[str]:
    """Return the first usable Chrome/Chromium executable, or None."""
    if chrome_path:
        return chrome_path if os.path.exists(chrome_path) else shutil.which(chrome_path)

    for name in CHROME_NAMES:
        path = shutil.which(name)
        if path:
            return path

    for path in FALLBACK_PATHS:
        if os.path.exists(path):
            return path
    return None


def _default_user_data_dir() -> str:
    return os.path.join(tempfile.gettempdir(), f"browser-chain-chrome-{uuid.uuid4().hex[:8]}")


class ChromeLauncher:
    """
    Starts and stops a Chrome process with remote debugging enabled.

    Recognised launch options: ``chrome_path``, ``chrome_flags``, ``headless``,
    ``user_data_dir`` and ``startup_timeout`` (seconds).
    """

    def __init__(self, port: int = 9222, host: str = "localhost", **launch: Any):
        self.port = port
        self.host = host
        self.chrome_path: Optional[str] = launch.get("chrome_path")
        self.chrome_flags: List[str] = list(launch.get("chrome_flags") or [])
        self.headless: bool = bool(launch.get("headless", False))
        self.user_data_dir: str = launch.get("user_data_dir") or _default_user_data_dir()
        self.startup_timeout: float = float(launch.get("startup_timeout", 5.0))
        self._process: Optional[subprocess.Popen] = None

    @classmethod
    def from_options(cls, port: int, host: str, launch: Mapping[str, Any]) -> ChromeLauncher:
        return cls(port=port, host=host, **dict(launch))

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def build_args(self, executable: str) -> List[str]:
        args = [
            executable,
            f"--remote-debugging-port={self.port}",
            *DEFAULT_FLAGS,
            f"--user-data-dir={self.user_data_dir}",
            *self.chrome_flags,
        ]
        if self.headless:
            args.extend(["--headless=new", "--disable-gpu"])
        args.append("about:blank")
        return args

    async def start(self) -> None:
        """
        Launch Chrome unless a DevTools endpoint already answers on the port,
        then wait until the endpoint is reachable.
        """
        base_url = f"http://{self.host}:{self.port}"
        try:
            await get_version(base_url)
            logger.info(f"Reusing Chrome already listening at {self.host}:{self.port}")
            return
        except CDPConnectionError:
            pass

        executable = find_chrome_executable(self.chrome_path)
        if not executable:
            raise CDPConnectionError(
                "Chrome/Chromium not found. Please install Chrome or Chromium.",
                method="ChromeLauncher.start"
            )

        self._process = subprocess.Popen(
            self.build_args(executable),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        logger.info(f"Launched Chrome (PID: {self._process.pid})")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout
        while True:
            if self._process.poll() is not None:
                exit_code = self._process.returncode
                self._process = None
                raise CDPConnectionError(
                    f"Chrome process exited unexpectedly with code {exit_code}",
                    method="ChromeLauncher.start"
                )
            try:
                await get_version(base_url)
                return
            except CDPConnectionError:
                if loop.time() >= deadline:
                    await self.stop()
                    raise CDPConnectionError(
                        f"Chrome failed to start after {self.startup_timeout} seconds",
                        method="ChromeLauncher.start"
                    )
            await asyncio.sleep(0.25)

    async def stop(self) -> None:
        """Terminate the launched Chrome process without blocking the event loop."""
        if not self._process:
            return
        logger.info("Terminating Chrome process...")
        self._process.terminate()
        try:
            await asyncio.wait_for(asyncio.to_thread(self._process.wait), timeout=5.0)
        except asyncio.TimeoutError:
            self._process.kill()
            try:
                await asyncio.wait_for(asyncio.to_thread(self._process.wait), timeout=2.0)
            except asyncio.TimeoutError:
                logger.warning(f"Chrome process {self._process.pid} did not exit after kill")
        self._process = None
