#!/usr/bin/env python3
"""
Basic Navigation Example

Demonstrates a chain that navigates, waits for content, and extracts
the page title, HTML and a screenshot.

Chrome is launched automatically when nothing is listening on port 9222.
"""
import asyncio

from browser_chain import BrowserChain, js


async def main():
    async with BrowserChain({"viewport": {"width": 1280, "height": 720}}) as chain:
        # Navigate and wait for the heading
        print("Navigating to example.com...")
        title = await (
            chain.goto("https://example.com")
            .wait("h1")
            .evaluate(js("() => document.title"))
        )
        print(f"Title: {title}")

        html = await chain.html()
        print(f"HTML: {len(html)} characters")

        # Take a screenshot
        print("\nTaking screenshot...")
        screenshot = await chain.scroll_to(0, 300).screenshot()
        print(f"Screenshot captured: {len(screenshot)} bytes (base64)")

        # Follow the link on the page
        has_link = await chain.exists("a")
        if has_link:
            url = await chain.click("a").wait(1000).evaluate("() => window.location.href")
            print(f"Now at: {url}")


if __name__ == "__main__":
    asyncio.run(main())
