"""
Drivers - execute queued commands against a browser.
"""
from browser_chain.drivers.base import Driver
from browser_chain.drivers.chrome import ChromeDriver, LocalChrome, RemoteChrome, create_driver
from browser_chain.drivers.handlers import COMMAND_HANDLERS

__all__ = [
    "Driver",
    "ChromeDriver",
    "LocalChrome",
    "RemoteChrome",
    "create_driver",
    "COMMAND_HANDLERS",
]
