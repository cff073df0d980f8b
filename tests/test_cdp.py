"""
Tests for the CDP WebSocket client, the Chrome launcher and the CLI.
"""
import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from websockets.exceptions import ConnectionClosedOK

from browser_chain import __main__ as cli
from browser_chain.cdp import launcher as launcher_module
from browser_chain.cdp.client import CDPClient, TabInfo
from browser_chain.cdp.launcher import ChromeLauncher, find_chrome_executable
from browser_chain.core.errors import CDPConnectionError, CDPProtocolError, CDPTimeoutError


class FakeWebSocket:
    """Answers every command; methods starting with 'Bad.' get a CDP error."""

    def __init__(self):
        self.sent = []
        self.incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, raw):
        message = json.loads(raw)
        self.sent.append(message)
        if message["method"].startswith("Bad."):
            reply = {"id": message["id"], "error": {"code": -32601, "message": "method not found"}}
        elif message["method"] == "Hang.forever":
            return
        else:
            reply = {"id": message["id"], "result": {"echo": message["params"]}}
        await self.incoming.put(reply)

    async def push_event(self, method, params):
        await self.incoming.put({"method": method, "params": params})

    async def recv(self):
        item = await self.incoming.get()
        if item is None:
            raise ConnectionClosedOK(None, None)
        return json.dumps(item)

    async def close(self):
        await self.incoming.put(None)


@pytest.fixture
async def client():
    c = CDPClient("ws://localhost:9222/devtools/page/T1")
    c.ws = FakeWebSocket()
    c._listener = asyncio.create_task(c.listen())
    yield c
    await c.close()


# =============================================================================
# CDPClient
# =============================================================================

class TestCDPClient:

    @pytest.mark.asyncio
    async def test_send_returns_result(self, client):
        result = await client.send("Page.navigate", {"url": "https://x"})

        assert result == {"echo": {"url": "https://x"}}
        assert client.ws.sent[0]["method"] == "Page.navigate"
        assert client.pending_message == {}

    @pytest.mark.asyncio
    async def test_message_ids_increase(self, client):
        await client.send("Page.enable")
        await client.send("Runtime.enable")

        ids = [m["id"] for m in client.ws.sent]
        assert ids == sorted(ids) and len(set(ids)) == 2

    @pytest.mark.asyncio
    async def test_error_response_raises_protocol_error(self, client):
        with pytest.raises(CDPProtocolError) as exc_info:
            await client.send("Bad.method")
        assert exc_info.value.code == -32601

    @pytest.mark.asyncio
    async def test_expected_event_resolves(self, client):
        load = client.expect_event("Page.loadEventFired")
        await client.ws.push_event("Page.loadEventFired", {"timestamp": 1.5})

        assert await client.wait_for_event(load, 1.0) == {"timestamp": 1.5}

    @pytest.mark.asyncio
    async def test_event_wait_times_out(self, client):
        load = client.expect_event("Page.loadEventFired")
        with pytest.raises(CDPTimeoutError):
            await client.wait_for_event(load, 0.01)

    @pytest.mark.asyncio
    async def test_closed_socket_fails_pending_commands(self, client):
        pending = asyncio.create_task(client.send("Hang.forever"))
        await asyncio.sleep(0)
        await client.ws.close()

        with pytest.raises(CDPConnectionError):
            await pending

    @pytest.mark.asyncio
    async def test_send_without_connection(self):
        c = CDPClient("ws://localhost:9222/devtools/page/T1")
        with pytest.raises(CDPConnectionError, match="not established"):
            await c.send("Page.enable")

    def test_tab_info_from_json(self):
        tab = TabInfo.from_json({
            "id": "T1",
            "webSocketDebuggerUrl": "ws://localhost:9222/devtools/page/T1",
            "url": "about:blank",
            "type": "page",
        })
        assert tab == TabInfo("T1", "ws://localhost:9222/devtools/page/T1", "about:blank", "page")


# =============================================================================
# ChromeLauncher
# =============================================================================

class TestLauncher:

    def test_build_args(self):
        launcher = ChromeLauncher(port=9333, headless=True, user_data_dir="/tmp/p", chrome_flags=["--mute-audio"])

        args = launcher.build_args("/usr/bin/chromium")

        assert args[0] == "/usr/bin/chromium"
        assert "--remote-debugging-port=9333" in args
        assert "--user-data-dir=/tmp/p" in args
        assert "--mute-audio" in args
        assert "--headless=new" in args
        assert args[-1] == "about:blank"

    def test_visible_by_default(self):
        args = ChromeLauncher().build_args("chrome")
        assert "--headless=new" not in args

    def test_find_executable_prefers_path_lookup(self, monkeypatch):
        monkeypatch.setattr(launcher_module.shutil, "which",
                            lambda name: "/opt/bin/chromium" if name == "chromium" else None)
        assert find_chrome_executable() == "/opt/bin/chromium"

    def test_find_executable_none(self, monkeypatch):
        monkeypatch.setattr(launcher_module.shutil, "which", lambda name: None)
        monkeypatch.setattr(launcher_module.os.path, "exists", lambda path: False)
        assert find_chrome_executable() is None

    @pytest.mark.asyncio
    async def test_start_reuses_running_chrome(self, monkeypatch):
        monkeypatch.setattr(launcher_module, "get_version", AsyncMock(return_value={"Browser": "Chrome"}))
        popen = AsyncMock()
        monkeypatch.setattr(launcher_module.subprocess, "Popen", popen)

        launcher = ChromeLauncher()
        await launcher.start()

        popen.assert_not_called()
        assert launcher.running is False
        await launcher.stop()

    @pytest.mark.asyncio
    async def test_start_without_executable(self, monkeypatch):
        monkeypatch.setattr(launcher_module, "get_version",
                            AsyncMock(side_effect=CDPConnectionError("down")))
        monkeypatch.setattr(launcher_module, "find_chrome_executable", lambda path=None: None)

        with pytest.raises(CDPConnectionError, match="not found"):
            await ChromeLauncher().start()


# =============================================================================
# CLI
# =============================================================================

class TestCLI:

    def test_options_from_arguments(self):
        args = cli._parse_args(["https://x", "--remote", "--host", "h", "--port", "9333", "--no-launch"])

        assert cli._options(args) == {
            "remote": True,
            "launch_chrome": False,
            "launch": {"headless": False},
            "cdp": {"host": "h", "port": 9333},
        }

    def test_outputs_are_exclusive(self):
        with pytest.raises(SystemExit):
            cli._parse_args(["https://x", "--html", "--pdf", "out.pdf"])

    def test_main_reports_failure(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "run", AsyncMock(side_effect=CDPConnectionError("Chrome not found")))

        assert cli.main(["https://x"]) is False
        assert "Chrome not found" in capsys.readouterr().err

    def test_main_success(self, monkeypatch):
        monkeypatch.setattr(cli, "run", AsyncMock(return_value=None))
        assert cli.main(["https://x", "--debug"]) is True
