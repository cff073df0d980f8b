"""
BrowserChain - fluent, awaitable interface for driving a browser.

Action methods queue a command and return the same chain. Query methods
queue a command and return a new chain whose awaited value is that query's
result. Nothing runs against the browser until the event loop gets a chance
to run the queue, and commands always run in the order they were issued.

Usage:
    async with BrowserChain() as chain:
        html = await chain.goto("https://example.com").click("#more").html()

    title = await (
        BrowserChain({"remote": True, "cdp": {"host": "chrome.internal"}})
        .goto("https://example.com")
        .evaluate(js("() => document.title"))
        .end()
    )
"""
from __future__ import annotations

from typing import (
    Any,
    Awaitable,
    Dict,
    Generator,
    Generic,
    List,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

from browser_chain.cdp.client import setup_logging
from browser_chain.core import commands as cmd
from browser_chain.core.commands import JSFunction
from browser_chain.core.config import ChainOptions, resolve_options
from browser_chain.core.errors import NotImplementedYetError, UsageError
from browser_chain.drivers.base import Driver
from browser_chain.drivers.chrome import create_driver
from browser_chain.queue import CommandQueue

T = TypeVar("T")

Cookie = Dict[str, Any]


class BrowserChain(Generic[T]):
    """
    A chain of browser commands sharing one CommandQueue.

    Awaiting a chain yields the result of the most recent query issued on it
    (None before any query). ``end()`` must be called once per chain, or the
    chain used as an async context manager, to release the browser.
    """

    def __init__(
        self,
        options: Union[ChainOptions, Mapping[str, Any], None] = None,
        *,
        driver: Optional[Driver] = None,
        copy_from: Optional[BrowserChain[Any]] = None,
        last_return: Optional[Awaitable[T]] = None,
    ):
        """
        Create a chain.

        Args:
            options: ChainOptions, or a mapping of option names merged over
                the defaults.
            driver: Driver to use instead of the one selected by ``remote``.
            copy_from: Existing chain whose queue this chain shares. Used at
                query boundaries; ``options`` and ``driver`` are ignored.
            last_return: Pending result carried by the new chain.
        """
        self._last_return = last_return
        if copy_from is not None:
            self.options = copy_from.options
            self._queue = copy_from._queue
            return

        self.options = resolve_options(options)
        if self.options.debug:
            setup_logging(debug=True)
        self._queue = CommandQueue(
            driver or create_driver(self.options),
            implicit_wait=self.options.implicit_wait,
        )

    @property
    def queue(self) -> CommandQueue:
        return self._queue

    # =========================================================================
    # Awaiting
    # =========================================================================

    async def _result(self) -> T:
        if self._last_return is None:
            return None
        return await self._last_return

    def __await__(self) -> Generator[Any, None, T]:
        return self._result().__await__()

    async def __aenter__(self) -> BrowserChain[T]:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            await self._queue.end()
        else:
            await self._queue.close()

    async def end(self) -> T:
        """
        Wait for the current result, drain the queue and release the browser.

        Returns:
            The result of the most recent query.

        Raises:
            The first execution failure in the chain, if any.
        """
        try:
            result = await self._result()
        except BaseException:
            await self._queue.close()
            raise
        await self._queue.end()
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _action(self, command: cmd.Command) -> BrowserChain[T]:
        self._queue.enqueue(command)
        return self

    def _query(self, command: cmd.Query) -> BrowserChain[Any]:
        return BrowserChain(copy_from=self, last_return=self._queue.process(command))

    # =========================================================================
    # Navigation
    # =========================================================================

    def goto(self, url: str) -> BrowserChain[T]:
        return self._action(cmd.Goto(url))

    def set_user_agent(self, useragent: str) -> BrowserChain[T]:
        return self._action(cmd.SetUserAgent(useragent))

    def back(self) -> BrowserChain[T]:
        raise NotImplementedYetError("back")

    def forward(self) -> BrowserChain[T]:
        raise NotImplementedYetError("forward")

    def refresh(self) -> BrowserChain[T]:
        raise NotImplementedYetError("refresh")

    # =========================================================================
    # Interaction
    # =========================================================================

    def click(self, selector: str) -> BrowserChain[T]:
        return self._action(cmd.Click(selector))

    def wait(self, first_arg: Any, *args: Any) -> BrowserChain[T]:
        """
        Wait for a duration, an element, or a condition in the page.

        ``wait(500)`` pauses for 500 milliseconds, ``wait("#id")`` waits for
        a matching element, and ``wait(js("(a, b) => ..."), a, b)`` waits
        until the predicate returns a truthy value. Selector and predicate
        waits give up after ``wait_timeout`` milliseconds.

        Raises:
            UsageError: If the first argument is none of the above.
        """
        if isinstance(first_arg, (int, float)) and not isinstance(first_arg, bool):
            return self._action(cmd.WaitTimeout(first_arg))
        if isinstance(first_arg, JSFunction):
            return self._action(cmd.WaitFunction(first_arg, tuple(args)))
        if isinstance(first_arg, str):
            return self._action(cmd.WaitSelector(first_arg))
        raise UsageError(f"Invalid wait arguments: {first_arg!r} {args!r}", method="wait")

    def focus(self, selector: str) -> BrowserChain[T]:
        return self._action(cmd.Focus(selector))

    def press(self, key_code: int, count: int = 1, modifiers: int = 0) -> BrowserChain[T]:
        return self._action(cmd.Press(key_code, count, modifiers))

    def type(self, input: str, selector: Optional[str] = None) -> BrowserChain[T]:
        return self._action(cmd.Type(input, selector))

    def mousedown(self, selector: str) -> BrowserChain[T]:
        return self._action(cmd.MouseDown(selector))

    def mouseup(self, selector: str) -> BrowserChain[T]:
        return self._action(cmd.MouseUp(selector))

    def mouseover(self) -> BrowserChain[T]:
        raise NotImplementedYetError("mouseover")

    def scroll_to(self, x: float, y: float) -> BrowserChain[T]:
        return self._action(cmd.ScrollTo(x, y))

    def clear_input(self, selector: str) -> BrowserChain[T]:
        return self._action(cmd.ClearInput(selector))

    # =========================================================================
    # Page state
    # =========================================================================

    def set_viewport(self, options: Mapping[str, Any]) -> BrowserChain[T]:
        """Override device metrics; ``width`` and ``height`` are required."""
        missing = [key for key in ("width", "height") if key not in options]
        if missing:
            raise UsageError(f"Viewport requires {', '.join(missing)}", method="set_viewport")
        return self._action(cmd.SetViewport({"scale": 1, **options}))

    def set_html(self, html: str) -> BrowserChain[T]:
        return self._action(cmd.SetHtml(html))

    # =========================================================================
    # Cookies
    # =========================================================================

    def cookies_get(self, name: Optional[str] = None) -> BrowserChain[Union[Cookie, List[Cookie], None]]:
        """
        Read cookies for the current URL.

        With no argument the result is the list of cookies; with a name it is
        that cookie, or None. Filtering by a query mapping is not supported.
        """
        if name is not None and not isinstance(name, str):
            raise NotImplementedYetError("cookies_get(query)")
        return self._query(cmd.CookiesGet(name))

    def cookies_get_all(self) -> BrowserChain[List[Cookie]]:
        return self._query(cmd.CookiesGetAll())

    def cookies_set(
        self,
        name_or_cookies: Union[str, Cookie, List[Cookie]],
        value: Optional[str] = None,
    ) -> BrowserChain[T]:
        if isinstance(name_or_cookies, str):
            if value is None:
                raise UsageError("Cookie value should be defined.", method="cookies_set")
            return self._action(cmd.CookiesSet(name_or_cookies, value))
        if isinstance(name_or_cookies, Mapping):
            return self._action(cmd.CookiesSet(dict(name_or_cookies)))
        if isinstance(name_or_cookies, (list, tuple)):
            return self._action(cmd.CookiesSet([dict(c) for c in name_or_cookies]))
        raise UsageError(f"Invalid cookies: {name_or_cookies!r}", method="cookies_set")

    def delete_cookies(self, name: str, url: str) -> BrowserChain[T]:
        if not name:
            raise UsageError("Cookie name should be defined.", method="delete_cookies")
        if not url:
            raise UsageError("Cookie url should be defined.", method="delete_cookies")
        return self._action(cmd.DeleteCookies(name, url))

    def clear_cookies(self) -> BrowserChain[T]:
        return self._action(cmd.ClearCookies())

    # =========================================================================
    # Extraction
    # =========================================================================

    def evaluate(self, fn: Union[JSFunction, str], *args: Any) -> BrowserChain[Any]:
        """Call a JavaScript function in the page with JSON-serializable args."""
        if not isinstance(fn, (JSFunction, str)):
            raise UsageError(f"evaluate expects JavaScript source, got {fn!r}", method="evaluate")
        return self._query(cmd.ReturnCode(str(fn), tuple(args)))

    def input_value(self, selector: str) -> BrowserChain[str]:
        return self._query(cmd.ReturnInputValue(selector))

    def exists(self, selector: str) -> BrowserChain[bool]:
        return self._query(cmd.ReturnExists(selector))

    def screenshot(self) -> BrowserChain[str]:
        """Base64-encoded PNG of the viewport."""
        return self._query(cmd.ReturnScreenshot())

    def html(self) -> BrowserChain[str]:
        return self._query(cmd.ReturnHtml())

    def pdf(self, options: Optional[Mapping[str, Any]] = None) -> BrowserChain[str]:
        """Base64-encoded PDF; options are passed to Page.printToPDF."""
        return self._query(cmd.ReturnPdf(dict(options) if options else None))
