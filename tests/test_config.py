"""
Tests for chain option defaults and merging.
"""
import pytest

from browser_chain.core.config import (
    CDPOptions,
    ChainOptions,
    HOST_ENV_VAR,
    PORT_ENV_VAR,
    get_debug_option,
    resolve_options,
)
from browser_chain.core.errors import UsageError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(HOST_ENV_VAR, raising=False)
    monkeypatch.delenv(PORT_ENV_VAR, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


class TestDefaults:

    def test_defaults(self):
        options = ChainOptions.from_mapping()

        assert options.debug is False
        assert options.wait_timeout == 10000
        assert options.remote is False
        assert options.implicit_wait is True
        assert options.launch_chrome is True
        assert options.viewport == {"scale": 1}
        assert options.launch == {}
        assert options.cdp == CDPOptions(host="localhost", port=9222, secure=False, close_tab=True)

    def test_environment_overrides_host_and_port(self, monkeypatch):
        monkeypatch.setenv(HOST_ENV_VAR, "chrome.internal")
        monkeypatch.setenv(PORT_ENV_VAR, "9333")

        cdp = ChainOptions.from_mapping().cdp

        assert cdp.host == "chrome.internal"
        assert cdp.port == 9333

    def test_invalid_port_variable_falls_back(self, monkeypatch):
        monkeypatch.setenv(PORT_ENV_VAR, "not-a-port")
        assert ChainOptions.from_mapping().cdp.port == 9222

    def test_explicit_option_beats_environment(self, monkeypatch):
        monkeypatch.setenv(HOST_ENV_VAR, "chrome.internal")

        options = ChainOptions.from_mapping({"cdp": {"host": "10.0.0.5"}})

        assert options.cdp.host == "10.0.0.5"
        assert options.cdp.port == 9222

    @pytest.mark.parametrize("value,expected", [
        ("browser_chain", True),
        ("http,browser_chain", True),
        ("*", True),
        ("other", False),
    ])
    def test_debug_from_environment(self, monkeypatch, value, expected):
        monkeypatch.setenv("DEBUG", value)
        assert get_debug_option() is expected


class TestMerging:

    def test_viewport_keeps_default_scale(self):
        options = ChainOptions.from_mapping({"viewport": {"width": 800, "height": 600}})
        assert options.viewport == {"scale": 1, "width": 800, "height": 600}

    def test_viewport_scale_can_be_overridden(self):
        options = ChainOptions.from_mapping({"viewport": {"scale": 2}})
        assert options.viewport == {"scale": 2}

    def test_launch_options_pass_through(self):
        options = ChainOptions.from_mapping({"launch": {"headless": True, "chrome_flags": ["--mute-audio"]}})
        assert options.launch == {"headless": True, "chrome_flags": ["--mute-audio"]}

    def test_top_level_options(self):
        options = ChainOptions.from_mapping({"wait_timeout": 500, "implicit_wait": False, "remote": True})

        assert options.wait_timeout == 500
        assert options.implicit_wait is False
        assert options.remote is True

    def test_cdp_options_instance_is_used_as_is(self):
        cdp = CDPOptions(host="h", port=1, secure=True, close_tab=False)
        assert ChainOptions.from_mapping({"cdp": cdp}).cdp is cdp

    def test_unknown_top_level_option(self):
        with pytest.raises(UsageError, match="launchChrome"):
            ChainOptions.from_mapping({"launchChrome": False})

    def test_unknown_cdp_option(self):
        with pytest.raises(UsageError, match="hostname"):
            ChainOptions.from_mapping({"cdp": {"hostname": "x"}})

    def test_resolve_passes_instances_through(self):
        options = ChainOptions(wait_timeout=1)
        assert resolve_options(options) is options
        assert resolve_options(None) == ChainOptions.from_mapping()

    def test_http_url(self):
        assert CDPOptions(host="a", port=1).http_url == "http://a:1"
        assert CDPOptions(host="a", port=1, secure=True).http_url == "https://a:1"
