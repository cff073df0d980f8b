#!/usr/bin/env python3
"""
Form Filling Example

Demonstrates filling a form: typing into inputs, pressing keys,
reading values back, and working with cookies.
"""
import asyncio

from browser_chain import BrowserChain

ENTER = 13


async def main():
    async with BrowserChain() as chain:
        print("Navigating to form page...")
        chain.goto("https://httpbin.org/forms/post")

        # Fill the customer name and read it back
        name = await (
            chain.type("John Doe", "input[name=custname]")
            .type("john@example.com", "input[name=custemail]")
            .input_value("input[name=custname]")
        )
        print(f"Customer name field: {name}")

        # Replace a value
        telephone = await (
            chain.type("555-0100", "input[name=custtel]")
            .clear_input("input[name=custtel]")
            .type("555-0199", "input[name=custtel]")
            .input_value("input[name=custtel]")
        )
        print(f"Telephone field: {telephone}")

        # Cookies for the current page
        chain.cookies_set("demo", "1")
        cookie = await chain.cookies_get("demo")
        print(f"Cookie: {cookie}")

        # Submit with Enter from the email input
        print("\nSubmitting...")
        submitted = await (
            chain.focus("input[name=custemail]")
            .press(ENTER)
            .wait("pre")
            .exists("pre")
        )
        print(f"Submitted: {submitted}")


if __name__ == "__main__":
    asyncio.run(main())
