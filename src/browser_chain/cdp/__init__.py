"""
CDP Module - Chrome DevTools Protocol client and Chrome launcher.
"""
from browser_chain.cdp.client import CDPClient, TabInfo, close_tab, get_version, new_tab, setup_logging
from browser_chain.cdp.launcher import ChromeLauncher, find_chrome_executable

__all__ = [
    "CDPClient",
    "TabInfo",
    "close_tab",
    "get_version",
    "new_tab",
    "setup_logging",
    "ChromeLauncher",
    "find_chrome_executable",
]
