"""
Command handlers - translate each command into CDP calls against one tab.

Handlers are registered per command class in COMMAND_HANDLERS and invoked by
ChromeDriver.run(). Each receives the connected CDPClient, the command and
the chain options, and returns the command's result (None for actions).
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from browser_chain.cdp.client import CDPClient
from browser_chain.core.commands import (
    Click,
    ClearCookies,
    ClearInput,
    Command,
    CookiesGet,
    CookiesGetAll,
    CookiesSet,
    DeleteCookies,
    Focus,
    Goto,
    MouseDown,
    MouseUp,
    Press,
    ReturnCode,
    ReturnExists,
    ReturnHtml,
    ReturnInputValue,
    ReturnPdf,
    ReturnScreenshot,
    ScrollTo,
    SetHtml,
    SetUserAgent,
    SetViewport,
    Type as TypeText,
    WaitFunction,
    WaitReady,
    WaitSelector,
    WaitTimeout,
)
from browser_chain.core.config import ChainOptions
from browser_chain.core.errors import (
    CDPProtocolError,
    CDPTimeoutError,
    ElementNotFoundError,
    EvaluationError,
)

logger = logging.getLogger("browser_chain")

POLL_INTERVAL = 0.1

Handler = Callable[[CDPClient, Any, ChainOptions], Awaitable[Any]]

COMMAND_HANDLERS: Dict[Type[Command], Handler] = {}


def handles(command_cls: Type[Command]):
    def register(func: Handler) -> Handler:
        COMMAND_HANDLERS[command_cls] = func
        return func
    return register


# =============================================================================
# Page helpers
# =============================================================================

async def evaluate(client: CDPClient, expression: str, *, await_promise: bool = False) -> Any:
    """
    Evaluate a JavaScript expression in the page and return its value.

    Raises:
        EvaluationError: If the expression throws.
    """
    result = await client.send(
        "Runtime.evaluate",
        {
            "expression": expression,
            "returnByValue": True,
            "awaitPromise": await_promise,
        },
    )
    details = result.get("exceptionDetails")
    if details:
        exception = details.get("exception") or {}
        message = exception.get("description") or details.get("text") or "JavaScript exception"
        raise EvaluationError(message, exception_details=details, method="Runtime.evaluate")
    return result.get("result", {}).get("value")


def _query(selector: str) -> str:
    return f"document.querySelector({json.dumps(selector)})"


def _call(fn: str, args) -> str:
    return f"({fn}).apply(null, {json.dumps(list(args))})"


async def poll_until(client: CDPClient, expression: str, timeout_ms: float, description: str,
                     *, await_promise: bool = False) -> None:
    """Re-evaluate expression until it is truthy or timeout_ms elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    while True:
        if await evaluate(client, expression, await_promise=await_promise):
            return
        if loop.time() >= deadline:
            raise CDPTimeoutError(
                f"Timed out after {timeout_ms}ms waiting for {description}",
                timeout=timeout_ms / 1000,
                method="wait",
            )
        await asyncio.sleep(POLL_INTERVAL)


async def element_center(client: CDPClient, selector: str) -> Dict[str, float]:
    """Scroll the element into view and return its centre in viewport coordinates."""
    point = await evaluate(client, f"""(() => {{
        const el = {_query(selector)};
        if (!el) return null;
        el.scrollIntoView({{block: 'center', inline: 'center'}});
        const rect = el.getBoundingClientRect();
        return {{x: rect.left + rect.width / 2, y: rect.top + rect.height / 2}};
    }})()""")
    if point is None:
        raise ElementNotFoundError(selector, method="element_center")
    return point


async def dispatch_mouse(client: CDPClient, event_type: str, point: Dict[str, float], **extra) -> None:
    params = {"type": event_type, "x": float(point["x"]), "y": float(point["y"]), "modifiers": 0}
    params.update(extra)
    await client.send("Input.dispatchMouseEvent", params)


async def current_url(client: CDPClient) -> str:
    return await evaluate(client, "window.location.href")


def viewport_metrics(options: Dict[str, Any]) -> Dict[str, Any]:
    """Map viewport options onto Emulation.setDeviceMetricsOverride params."""
    params = {k: v for k, v in options.items() if k != "scale"}
    params["deviceScaleFactor"] = options.get("scale", 1)
    params.setdefault("mobile", False)
    return params


# =============================================================================
# Navigation
# =============================================================================

@handles(Goto)
async def goto(client: CDPClient, command: Goto, options: ChainOptions) -> None:
    load = client.expect_event("Page.loadEventFired")
    result = await client.send("Page.navigate", {"url": command.url})
    error_text = result.get("errorText")
    if error_text:
        load.cancel()
        raise CDPProtocolError(
            f"Navigation to {command.url} failed: {error_text}",
            method="Page.navigate",
        )
    await client.wait_for_event(load, options.wait_timeout / 1000)
    logger.debug(f"Navigated to {command.url}", extra={"url": command.url})


@handles(SetUserAgent)
async def set_user_agent(client: CDPClient, command: SetUserAgent, options: ChainOptions) -> None:
    await client.send("Network.setUserAgentOverride", {"userAgent": command.useragent})


# =============================================================================
# Waits
# =============================================================================

@handles(WaitTimeout)
async def wait_timeout(client: CDPClient, command: WaitTimeout, options: ChainOptions) -> None:
    await asyncio.sleep(command.timeout / 1000)


@handles(WaitSelector)
async def wait_selector(client: CDPClient, command: WaitSelector, options: ChainOptions) -> None:
    await poll_until(
        client,
        f"{_query(command.selector)} !== null",
        options.wait_timeout,
        f"selector {command.selector!r}",
    )


@handles(WaitFunction)
async def wait_function(client: CDPClient, command: WaitFunction, options: ChainOptions) -> None:
    await poll_until(
        client,
        _call(command.fn.source, command.args),
        options.wait_timeout,
        "predicate",
        await_promise=True,
    )


@handles(WaitReady)
async def wait_ready(client: CDPClient, command: WaitReady, options: ChainOptions) -> None:
    if command.selector:
        await poll_until(
            client,
            f"{_query(command.selector)} !== null",
            options.wait_timeout,
            f"selector {command.selector!r}",
        )
    else:
        await poll_until(
            client,
            "document.readyState === 'complete'",
            options.wait_timeout,
            "document ready",
        )


# =============================================================================
# Input
# =============================================================================

@handles(Click)
async def click(client: CDPClient, command: Click, options: ChainOptions) -> None:
    point = await element_center(client, command.selector)
    await dispatch_mouse(client, "mouseMoved", point)
    await dispatch_mouse(client, "mousePressed", point, button="left", clickCount=1)
    await dispatch_mouse(client, "mouseReleased", point, button="left", clickCount=1)


@handles(MouseDown)
async def mousedown(client: CDPClient, command: MouseDown, options: ChainOptions) -> None:
    point = await element_center(client, command.selector)
    await dispatch_mouse(client, "mousePressed", point, button="left", clickCount=1)


@handles(MouseUp)
async def mouseup(client: CDPClient, command: MouseUp, options: ChainOptions) -> None:
    point = await element_center(client, command.selector)
    await dispatch_mouse(client, "mouseReleased", point, button="left", clickCount=1)


@handles(Focus)
async def focus(client: CDPClient, command: Focus, options: ChainOptions) -> None:
    document = await client.send("DOM.getDocument", {"depth": 0})
    result = await client.send(
        "DOM.querySelector",
        {"nodeId": document["root"]["nodeId"], "selector": command.selector},
    )
    node_id = result.get("nodeId")
    if not node_id:
        raise ElementNotFoundError(command.selector, method="DOM.querySelector")
    await client.send("DOM.focus", {"nodeId": node_id})


def key_text(key_code: int) -> Optional[str]:
    """Text a virtual key code inserts, or None for navigation and control keys."""
    if key_code in (13, 32) or 48 <= key_code <= 57 or 65 <= key_code <= 90:
        return chr(key_code)
    return None


@handles(Press)
async def press(client: CDPClient, command: Press, options: ChainOptions) -> None:
    key = {
        "windowsVirtualKeyCode": command.key_code,
        "nativeVirtualKeyCode": command.key_code,
        "modifiers": command.modifiers,
    }
    text = key_text(command.key_code)
    for _ in range(command.count):
        await client.send("Input.dispatchKeyEvent", {"type": "rawKeyDown", **key})
        if text is not None:
            await client.send("Input.dispatchKeyEvent", {"type": "char", "text": text, **key})
        await client.send("Input.dispatchKeyEvent", {"type": "keyUp", **key})


@handles(TypeText)
async def type_text(client: CDPClient, command: TypeText, options: ChainOptions) -> None:
    if command.selector:
        await focus(client, Focus(command.selector), options)
    for char in command.input:
        await client.send("Input.dispatchKeyEvent", {"type": "char", "text": char})


@handles(ClearInput)
async def clear_input(client: CDPClient, command: ClearInput, options: ChainOptions) -> None:
    cleared = await evaluate(client, f"""(() => {{
        const el = {_query(command.selector)};
        if (!el) return false;
        el.value = '';
        el.dispatchEvent(new Event('input', {{bubbles: true}}));
        return true;
    }})()""")
    if not cleared:
        raise ElementNotFoundError(command.selector, method="clear_input")


@handles(ScrollTo)
async def scroll_to(client: CDPClient, command: ScrollTo, options: ChainOptions) -> None:
    await evaluate(client, f"window.scrollTo({json.dumps(command.x)}, {json.dumps(command.y)})")


# =============================================================================
# Page state
# =============================================================================

@handles(SetViewport)
async def set_viewport(client: CDPClient, command: SetViewport, options: ChainOptions) -> None:
    await client.send("Emulation.setDeviceMetricsOverride", viewport_metrics(command.options))


@handles(SetHtml)
async def set_html(client: CDPClient, command: SetHtml, options: ChainOptions) -> None:
    tree = await client.send("Page.getFrameTree")
    frame_id = tree["frameTree"]["frame"]["id"]
    await client.send("Page.setDocumentContent", {"frameId": frame_id, "html": command.html})


# =============================================================================
# Cookies
# =============================================================================

@handles(CookiesGet)
async def cookies_get(client: CDPClient, command: CookiesGet, options: ChainOptions) -> Any:
    url = await current_url(client)
    result = await client.send("Network.getCookies", {"urls": [url]})
    cookies: List[Dict[str, Any]] = result.get("cookies", [])
    if command.name is None:
        return cookies
    return next((c for c in cookies if c.get("name") == command.name), None)


@handles(CookiesGetAll)
async def cookies_get_all(client: CDPClient, command: CookiesGetAll, options: ChainOptions) -> List[Dict[str, Any]]:
    result = await client.send("Network.getAllCookies")
    return result.get("cookies", [])


@handles(CookiesSet)
async def cookies_set(client: CDPClient, command: CookiesSet, options: ChainOptions) -> None:
    value = command.name_or_cookies
    if isinstance(value, str):
        cookies = [{"name": value, "value": command.value}]
    elif isinstance(value, dict):
        cookies = [dict(value)]
    else:
        cookies = [dict(cookie) for cookie in value]

    url: Optional[str] = None
    for cookie in cookies:
        if "url" not in cookie and "domain" not in cookie:
            if url is None:
                url = await current_url(client)
            cookie["url"] = url
    await client.send("Network.setCookies", {"cookies": cookies})


@handles(DeleteCookies)
async def delete_cookies(client: CDPClient, command: DeleteCookies, options: ChainOptions) -> None:
    await client.send("Network.deleteCookies", {"name": command.name, "url": command.url})


@handles(ClearCookies)
async def clear_cookies(client: CDPClient, command: ClearCookies, options: ChainOptions) -> None:
    await client.send("Network.clearBrowserCookies")


# =============================================================================
# Queries
# =============================================================================

@handles(ReturnCode)
async def return_code(client: CDPClient, command: ReturnCode, options: ChainOptions) -> Any:
    return await evaluate(client, _call(command.fn, command.args), await_promise=True)


@handles(ReturnInputValue)
async def return_input_value(client: CDPClient, command: ReturnInputValue, options: ChainOptions) -> Any:
    found = await evaluate(client, f"""(() => {{
        const el = {_query(command.selector)};
        return el ? {{found: true, value: el.value}} : {{found: false}};
    }})()""")
    if not found or not found.get("found"):
        raise ElementNotFoundError(command.selector, method="return_input_value")
    return found.get("value")


@handles(ReturnExists)
async def return_exists(client: CDPClient, command: ReturnExists, options: ChainOptions) -> bool:
    return bool(await evaluate(client, f"{_query(command.selector)} !== null"))


@handles(ReturnScreenshot)
async def return_screenshot(client: CDPClient, command: ReturnScreenshot, options: ChainOptions) -> str:
    result = await client.send("Page.captureScreenshot", {"format": "png"})
    return result.get("data", "")


@handles(ReturnHtml)
async def return_html(client: CDPClient, command: ReturnHtml, options: ChainOptions) -> str:
    return await evaluate(client, "document.documentElement.outerHTML")


@handles(ReturnPdf)
async def return_pdf(client: CDPClient, command: ReturnPdf, options: ChainOptions) -> str:
    result = await client.send("Page.printToPDF", dict(command.options or {}))
    return result.get("data", "")
