"""
Command protocol - one frozen dataclass per operation a driver can execute.

Every command carries a class-level ``type`` tag and an ``is_query`` flag.
Action commands change page state and produce no caller-visible value;
query commands produce a value that is delivered to exactly one caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class JSFunction:
    """JavaScript function source, evaluated in the page rather than in Python."""
    source: str

    def __str__(self) -> str:
        return self.source


def js(source: str) -> JSFunction:
    """Mark a string as JavaScript function source, e.g. ``js("() => window.ready")``."""
    return JSFunction(source)


@dataclass(frozen=True)
class Command:
    type: ClassVar[str] = ""
    is_query: ClassVar[bool] = False
    # Whether the implicit readiness step should also wait for ``selector``.
    waits_for_selector: ClassVar[bool] = True

    def describe(self) -> Dict[str, Any]:
        """Tag plus payload, for logging."""
        return {"type": self.type, **self.__dict__}


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class Goto(Command):
    type: ClassVar[str] = "goto"
    url: str


@dataclass(frozen=True)
class SetUserAgent(Command):
    type: ClassVar[str] = "set_user_agent"
    useragent: str


@dataclass(frozen=True)
class Click(Command):
    type: ClassVar[str] = "click"
    selector: str


@dataclass(frozen=True)
class Wait(Command):
    """Base for the wait primitives; never preceded by an implicit wait."""
    type: ClassVar[str] = "wait"


@dataclass(frozen=True)
class WaitTimeout(Wait):
    timeout: float  # milliseconds


@dataclass(frozen=True)
class WaitSelector(Wait):
    selector: str


@dataclass(frozen=True)
class WaitFunction(Wait):
    fn: JSFunction
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class WaitReady(Wait):
    """Readiness step injected by the queue when implicit waiting is on."""
    type: ClassVar[str] = "wait_ready"
    selector: Optional[str] = None


@dataclass(frozen=True)
class Focus(Command):
    type: ClassVar[str] = "focus"
    selector: str


@dataclass(frozen=True)
class Press(Command):
    type: ClassVar[str] = "press"
    key_code: int
    count: int = 1
    modifiers: int = 0


@dataclass(frozen=True)
class Type(Command):
    type: ClassVar[str] = "type"
    input: str
    selector: Optional[str] = None


@dataclass(frozen=True)
class MouseDown(Command):
    type: ClassVar[str] = "mousedown"
    selector: str


@dataclass(frozen=True)
class MouseUp(Command):
    type: ClassVar[str] = "mouseup"
    selector: str


@dataclass(frozen=True)
class ScrollTo(Command):
    type: ClassVar[str] = "scroll_to"
    x: float
    y: float


@dataclass(frozen=True)
class SetViewport(Command):
    type: ClassVar[str] = "set_viewport"
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SetHtml(Command):
    type: ClassVar[str] = "set_html"
    html: str


@dataclass(frozen=True)
class CookiesSet(Command):
    type: ClassVar[str] = "cookies_set"
    name_or_cookies: Union[str, Dict[str, Any], List[Dict[str, Any]]]
    value: Optional[str] = None


@dataclass(frozen=True)
class DeleteCookies(Command):
    type: ClassVar[str] = "delete_cookies"
    name: str
    url: str


@dataclass(frozen=True)
class ClearCookies(Command):
    type: ClassVar[str] = "clear_cookies"


@dataclass(frozen=True)
class ClearInput(Command):
    type: ClassVar[str] = "clear_input"
    selector: str


# =============================================================================
# Queries
# =============================================================================

@dataclass(frozen=True)
class Query(Command):
    is_query: ClassVar[bool] = True


@dataclass(frozen=True)
class CookiesGet(Query):
    type: ClassVar[str] = "cookies_get"
    name: Optional[str] = None


@dataclass(frozen=True)
class CookiesGetAll(Query):
    type: ClassVar[str] = "cookies_get_all"


@dataclass(frozen=True)
class ReturnCode(Query):
    type: ClassVar[str] = "return_code"
    fn: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ReturnInputValue(Query):
    type: ClassVar[str] = "return_input_value"
    selector: str


@dataclass(frozen=True)
class ReturnExists(Query):
    type: ClassVar[str] = "return_exists"
    waits_for_selector: ClassVar[bool] = False
    selector: str


@dataclass(frozen=True)
class ReturnScreenshot(Query):
    type: ClassVar[str] = "return_screenshot"


@dataclass(frozen=True)
class ReturnHtml(Query):
    type: ClassVar[str] = "return_html"


@dataclass(frozen=True)
class ReturnPdf(Query):
    type: ClassVar[str] = "return_pdf"
    options: Optional[Dict[str, Any]] = None
