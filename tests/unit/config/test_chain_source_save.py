"""
Tests for writing the chain source back into the node's config file.
"""
from pathlib import Path
import tomllib

import pytest

from ldk_console.domain.entities import ChainSourceConfig
from ldk_console.domain.value_objects import ChainSourceType
from ldk_console.infrastructure.config import load_config, save_chain_source
from ldk_console.infrastructure.errors import ConfigError


NODE_SECTION = (
    "[node]\n"
    "network = 'regtest'\n"
    "# REST API for the console\n"
    "rest_service_address = '127.0.0.1:3002'\n"
    "\n"
)


def write_config(tmp_path: Path, chain_section: str = "") -> Path:
    storage = tmp_path / "data"
    (storage / "regtest").mkdir(parents=True, exist_ok=True)
    (storage / "regtest" / "api_key").write_bytes(b"\xab")
    path = tmp_path / "ldk-server-config.toml"
    path.write_text(
        NODE_SECTION
        + chain_section
        + "[storage.disk]\n"
        + f"dir_path = '{storage.as_posix()}'\n",
        encoding="utf-8",
    )
    return path


ELECTRUM_SECTION = "[electrum]\nserver_url = 'ssl://electrum.example:50002'\n\n"


class TestSaveChainSource:
    """Tests for save_chain_source."""

    def test_replaces_existing_source(self, tmp_path):
        """The old table is removed and the new one can be read back."""
        path = write_config(tmp_path, ELECTRUM_SECTION)

        save_chain_source(path, ChainSourceConfig.bitcoind("127.0.0.1:18443", "user", "pass"))

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        assert "electrum" not in data
        assert data["bitcoind"] == {
            "rpc_address": "127.0.0.1:18443",
            "rpc_user": "user",
            "rpc_password": "pass",
        }
        assert load_config(path).chain_source == ChainSourceConfig.bitcoind(
            "127.0.0.1:18443", "user", "pass"
        )

    def test_keeps_rest_of_document(self, tmp_path):
        """Other tables, comments and quoting survive the rewrite."""
        path = write_config(tmp_path, ELECTRUM_SECTION)

        save_chain_source(path, ChainSourceConfig.esplora("https://esplora.example/api"))

        text = path.read_text(encoding="utf-8")
        assert text.startswith(NODE_SECTION)
        assert "# REST API for the console" in text
        assert "[storage.disk]" in text

        config = load_config(path)
        assert config.server_url == "127.0.0.1:3002"
        assert config.api_key == "ab"
        assert config.chain_source == ChainSourceConfig.esplora("https://esplora.example/api")

    def test_only_relevant_fields_written(self, tmp_path):
        """Electrum and Esplora tables carry just the server URL."""
        path = write_config(tmp_path)

        save_chain_source(path, ChainSourceConfig(
            source_type=ChainSourceType.ELECTRUM,
            rpc_user="stale",
            server_url="tcp://localhost:50001",
        ))

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        assert data["electrum"] == {"server_url": "tcp://localhost:50001"}

    def test_none_removes_every_source(self, tmp_path):
        """A NONE source leaves no chain source table behind."""
        path = write_config(
            tmp_path,
            ELECTRUM_SECTION + "[esplora]\nserver_url = 'https://esplora.example'\n\n",
        )

        save_chain_source(path, ChainSourceConfig())

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"node", "storage"}
        assert load_config(path).chain_source.source_type == ChainSourceType.NONE

    def test_missing_file_created(self, tmp_path):
        """Saving to a new path writes just the chain source."""
        path = tmp_path / "new-config.toml"

        save_chain_source(path, ChainSourceConfig.electrum("ssl://electrum.example:50002"))

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        assert data == {"electrum": {"server_url": "ssl://electrum.example:50002"}}

    def test_invalid_toml_left_untouched(self, tmp_path):
        """A file that does not parse is reported and not rewritten."""
        path = tmp_path / "broken.toml"
        path.write_text("[node\nnetwork = ", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            save_chain_source(path, ChainSourceConfig.esplora("https://esplora.example"))

        assert str(exc_info.value).startswith("Failed to parse config file:")
        assert exc_info.value.path == str(path)
        assert path.read_text(encoding="utf-8") == "[node\nnetwork = "

    def test_unreadable_path(self, tmp_path):
        """A directory in place of the file is a read error."""
        with pytest.raises(ConfigError) as exc_info:
            save_chain_source(tmp_path, ChainSourceConfig())

        assert str(exc_info.value).startswith("Failed to read config file:")

    def test_unwritable_path(self, tmp_path):
        """A target in a missing directory is a write error."""
        path = tmp_path / "missing" / "ldk-server-config.toml"

        with pytest.raises(ConfigError) as exc_info:
            save_chain_source(path, ChainSourceConfig.esplora("https://esplora.example"))

        assert str(exc_info.value).startswith("Failed to write config file:")
