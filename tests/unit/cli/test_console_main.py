"""
Tests for the console entry point.
"""
import pytest

from ldk_console.infrastructure.settings import ConsoleSettings
from ldk_console.infrastructure.tasks import Substrate
from ldk_console.main import FRONTEND_SUBSTRATES, build_console, build_parser


class TestParser:
    """Tests for command-line parsing."""

    def test_defaults_leave_env_in_charge(self):
        """Unset flags parse to None so environment settings survive."""
        args = build_parser().parse_args([])

        assert args.frontend is None
        assert args.config is None
        assert args.log_level is None
        assert args.json_logs is None

    def test_flags(self):
        args = build_parser().parse_args(
            ["-f", "tui", "-c", "node.toml", "--log-level", "DEBUG", "--json-logs", "--log-dir", "logs"]
        )

        assert args.frontend == "tui"
        assert args.config == "node.toml"
        assert args.log_level == "DEBUG"
        assert args.json_logs is True
        assert args.log_dir == "logs"

    def test_unknown_frontend_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--frontend", "web"])


class TestBuildConsole:
    """Tests for wiring the controller to its substrate."""

    def test_frontend_substrates(self):
        assert FRONTEND_SUBSTRATES == {"tk": Substrate.WORKER_POOL, "tui": Substrate.EVENT_LOOP}

    def test_tui_uses_event_loop(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LDK_SERVER_CONFIG", raising=False)

        console = build_console(ConsoleSettings(frontend="tui"))

        assert console.registry.dispatcher.substrate == Substrate.EVENT_LOOP
        assert console.state.status_message is None
        console.close()

    def test_tk_uses_worker_pool(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LDK_SERVER_CONFIG", raising=False)

        console = build_console(ConsoleSettings(frontend="tk"))

        assert console.registry.dispatcher.substrate == Substrate.WORKER_POOL
        console.close()

    def test_explicit_config_path(self, tmp_path):
        """A missing explicit config is reported on the status line."""
        console = build_console(
            ConsoleSettings(frontend="tui", config_path=str(tmp_path / "missing.toml"))
        )

        assert console.state.status_message.is_error
        assert console.state.status_message.text.startswith("Failed to load config:")
