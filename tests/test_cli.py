"""
RIGRELAY CLI Tests
"""

import json

import pytest
from typer.testing import CliRunner

from rigrelay import cli
from rigrelay.cli import __version__, app
from rigrelay.config import DEFAULT_ENDPOINT
from rigrelay.content import ALL_MARKERS
from rigrelay.errors import ListenError

runner = CliRunner()


class RecordingServer:
    """Stand-in for RelayServer that records use and returns a fixed outcome."""

    instances = []
    outcome = True

    def __init__(self, protocol, **kwargs):
        self.protocol = protocol
        self.kwargs = kwargs
        RecordingServer.instances.append(self)

    async def run(self, grace):
        if isinstance(RecordingServer.outcome, Exception):
            raise RecordingServer.outcome
        return RecordingServer.outcome


@pytest.fixture
def fake_server(monkeypatch):
    RecordingServer.instances = []
    RecordingServer.outcome = True
    monkeypatch.setattr(cli, "RelayServer", RecordingServer)
    return RecordingServer


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_version_command(self):
        """Test version command outputs version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_help_command(self):
        """Test help output."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "serve" in result.stdout
        assert "render" in result.stdout


class TestServeCommand:
    """Test serve exit codes."""

    def test_missing_content_is_fatal(self, tmp_path, fake_server):
        """Missing content exits 1 before any server is created."""
        result = runner.invoke(app, ["serve", "--content-root", str(tmp_path)])
        assert result.exit_code == 1
        assert fake_server.instances == []

    def test_graceful_exit(self, content_dir, fake_server):
        """A graceful shutdown exits 0."""
        result = runner.invoke(app, [
            "serve", "--content-root", str(content_dir),
            "--ws-port", "0", "--http-port", "0", "--host", "127.0.0.1",
        ])
        assert result.exit_code == 0
        server = fake_server.instances[0]
        assert server.kwargs["host"] == "127.0.0.1"
        assert server.kwargs["ws_port"] == 0
        assert server.protocol.assembler.store.endpoint == DEFAULT_ENDPOINT

    def test_forced_exit(self, content_dir, fake_server):
        """A forced shutdown exits 1."""
        fake_server.outcome = False
        result = runner.invoke(app, ["serve", "--content-root", str(content_dir)])
        assert result.exit_code == 1

    def test_listen_failure(self, content_dir, fake_server):
        """A port conflict exits 1."""
        fake_server.outcome = ListenError(8080, "Address already in use")
        result = runner.invoke(app, ["serve", "--content-root", str(content_dir)])
        assert result.exit_code == 1

    def test_config_endpoint_used(self, content_dir, fake_server):
        """The endpoint file next to the content is honoured."""
        (content_dir / "server_config.json").write_text(json.dumps({"updater_url": "cfg:7"}))
        result = runner.invoke(app, ["serve", "--content-root", str(content_dir)])
        assert result.exit_code == 0
        assert fake_server.instances[0].protocol.assembler.store.endpoint == "cfg:7"


class TestRenderCommand:
    """Test offline assembly."""

    def test_render_script_with_default_endpoint(self, content_dir):
        """Without a config file the default endpoint is substituted."""
        result = runner.invoke(app, ["render", "--content-root", str(content_dir)])
        assert result.exit_code == 0
        assert DEFAULT_ENDPOINT in result.stdout
        for marker in ALL_MARKERS:
            assert marker not in result.stdout

    def test_render_url(self, content_dir):
        """--url prints the javascript: locator."""
        result = runner.invoke(app, ["render", "--content-root", str(content_dir), "--url"])
        assert result.exit_code == 0
        assert "javascript:" in result.stdout

    def test_render_event_to_file(self, content_dir, tmp_path):
        """--event writes the full injection event."""
        out = tmp_path / "out" / "event.json"
        result = runner.invoke(app, [
            "render", "--content-root", str(content_dir),
            "--event", "--frame-id", "F-7", "-o", str(out),
        ])
        assert result.exit_code == 0
        event = json.loads(out.read_text())
        assert event["method"] == "Network.requestWillBeSent"
        assert event["params"]["frameId"] == "F-7"

    def test_render_missing_content(self, tmp_path):
        """Render fails like serve on missing content."""
        result = runner.invoke(app, ["render", "--content-root", str(tmp_path)])
        assert result.exit_code == 1


class TestCheckCommand:
    """Test the content check."""

    def test_check_ok(self, content_dir):
        """Complete content passes."""
        result = runner.invoke(app, ["check", "--content-root", str(content_dir)])
        assert result.exit_code == 0
        assert "All content present" in result.stdout

    def test_check_missing(self, content_dir):
        """A missing blob fails the check."""
        (content_dir / "payloads" / "index.js").unlink()
        result = runner.invoke(app, ["check", "--content-root", str(content_dir)])
        assert result.exit_code == 1
