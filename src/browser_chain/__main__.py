#!/usr/bin/env python3
"""
Run a one-off chain from the command line: open a URL and extract something.

    python -m browser_chain https://example.com --html
    python -m browser_chain https://example.com --wait "#main" --screenshot page.png
    python -m browser_chain https://example.com --remote --host chrome.internal --pdf page.pdf
"""
from __future__ import annotations

import argparse
import asyncio
import base64
import logging
import sys
from typing import Any, Dict

from browser_chain.chain import BrowserChain
from browser_chain.core.errors import BrowserChainError

logger = logging.getLogger("browser_chain")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Open a page in Chrome and extract its content.")
    parser.add_argument("url", help="URL to open.")
    parser.add_argument("--wait", metavar="SELECTOR", help="Wait for an element before extracting.")

    output = parser.add_mutually_exclusive_group()
    output.add_argument("--html", action="store_true", help="Print the page HTML (default).")
    output.add_argument("--screenshot", metavar="PATH", help="Write a PNG screenshot to PATH.")
    output.add_argument("--pdf", metavar="PATH", help="Write a PDF rendering to PATH.")

    parser.add_argument("--remote", action="store_true", help="Attach to an already-running Chrome.")
    parser.add_argument("--host", help="DevTools host (default: $BROWSER_CHAIN_CHROME_HOST or localhost).")
    parser.add_argument("--port", type=int, help="DevTools port (default: $BROWSER_CHAIN_CHROME_PORT or 9222).")
    parser.add_argument("--no-launch", action="store_true", help="Never launch a local Chrome.")
    parser.add_argument("--headless", action="store_true", help="Launch Chrome without a visible window.")
    parser.add_argument("--debug", action="store_true", help="Log CDP traffic.")
    return parser.parse_args(argv)


def _options(args: argparse.Namespace) -> Dict[str, Any]:
    cdp: Dict[str, Any] = {}
    if args.host:
        cdp["host"] = args.host
    if args.port:
        cdp["port"] = args.port
    options: Dict[str, Any] = {
        "remote": args.remote,
        "launch_chrome": not args.no_launch,
        "launch": {"headless": args.headless},
        "cdp": cdp,
    }
    if args.debug:
        options["debug"] = True
    return options


async def run(args: argparse.Namespace) -> None:
    chain = BrowserChain(_options(args)).goto(args.url)
    if args.wait:
        chain = chain.wait(args.wait)

    if args.screenshot:
        data = await chain.screenshot().end()
        with open(args.screenshot, "wb") as f:
            f.write(base64.b64decode(data))
        print(args.screenshot)
    elif args.pdf:
        data = await chain.pdf().end()
        with open(args.pdf, "wb") as f:
            f.write(base64.b64decode(data))
        print(args.pdf)
    else:
        print(await chain.html().end())


def main(argv: list[str] | None = None) -> bool:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        asyncio.run(run(args))
    except BrowserChainError as e:
        logger.error(f"Chain failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return False
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
