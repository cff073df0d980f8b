"""
Chain configuration - defaults, environment overrides and option merging.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Union

from browser_chain.core.errors import UsageError

HOST_ENV_VAR = "BROWSER_CHAIN_CHROME_HOST"
PORT_ENV_VAR = "BROWSER_CHAIN_CHROME_PORT"
DEBUG_ENV_VAR = "DEBUG"


def get_debug_option() -> bool:
    """True when the DEBUG environment variable mentions browser_chain or '*'."""
    value = os.environ.get(DEBUG_ENV_VAR, "")
    return "browser_chain" in value or value.strip() == "*"


def _default_host() -> str:
    return os.environ.get(HOST_ENV_VAR) or "localhost"


def _default_port() -> int:
    try:
        return int(os.environ.get(PORT_ENV_VAR, ""))
    except ValueError:
        return 9222


def _default_viewport() -> Dict[str, Any]:
    return {"scale": 1}


@dataclass
class CDPOptions:
    """Where to reach the DevTools endpoint."""

    host: str = field(default_factory=_default_host)
    port: int = field(default_factory=_default_port)
    secure: bool = False
    close_tab: bool = True

    @property
    def http_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}:{self.port}"


@dataclass
class ChainOptions:
    """
    Configuration for a BrowserChain.

    ``wait_timeout`` is in milliseconds and bounds navigation, selector
    waits and predicate waits. ``viewport`` and ``launch`` are passed
    through to the driver and the Chrome launcher respectively.
    """

    debug: bool = field(default_factory=get_debug_option)
    wait_timeout: float = 10000
    remote: bool = False
    implicit_wait: bool = True
    launch_chrome: bool = True
    viewport: Dict[str, Any] = field(default_factory=_default_viewport)
    cdp: CDPOptions = field(default_factory=CDPOptions)
    launch: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> ChainOptions:
        """
        Merge a partial mapping of options over the defaults.

        Nested ``viewport``, ``cdp`` and ``launch`` mappings are merged key by
        key, so ``{"viewport": {"width": 800}}`` keeps the default scale.

        Raises:
            UsageError: If an option name is not recognised.
        """
        options = dict(options or {})
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise UsageError(f"Unknown chain options: {', '.join(sorted(unknown))}")

        merged = cls()
        viewport = options.pop("viewport", None) or {}
        cdp = options.pop("cdp", None) or {}
        launch = options.pop("launch", None) or {}
        merged = replace(merged, **options)

        merged.viewport = {**merged.viewport, **viewport}
        merged.launch = {**merged.launch, **launch}
        if isinstance(cdp, CDPOptions):
            merged.cdp = cdp
        else:
            cdp_known = {f.name for f in fields(CDPOptions)}
            cdp_unknown = set(cdp) - cdp_known
            if cdp_unknown:
                raise UsageError(f"Unknown cdp options: {', '.join(sorted(cdp_unknown))}")
            merged.cdp = replace(merged.cdp, **cdp)
        return merged


def resolve_options(options: Union[ChainOptions, Mapping[str, Any], None]) -> ChainOptions:
    if isinstance(options, ChainOptions):
        return options
    return ChainOptions.from_mapping(options)
