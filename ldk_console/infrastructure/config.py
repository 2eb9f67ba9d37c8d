"""
Node config file loading.

Reads the connection-relevant parts of an ``ldk-server-config.toml``:
the REST address, the network, where the TLS certificate lives, the
generated API key, and the configured chain source. The chain source can
be written back without disturbing the rest of the file.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging
import os
import tomllib

from tomlkit.exceptions import TOMLKitError
import tomlkit

from ldk_console.domain.entities import ChainSourceConfig
from ldk_console.domain.value_objects import ChainSourceType
from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "ldk-server-config.toml"
CONFIG_ENV_VAR = "LDK_SERVER_CONFIG"

# At most one of these tables is present
CHAIN_SOURCE_SECTIONS = ("bitcoind", "electrum", "esplora")

# Searched in order, relative to the working directory
SEARCH_PATHS = [
    Path(CONFIG_FILE_NAME),
    Path("../ldk-server") / CONFIG_FILE_NAME,
    Path("..") / CONFIG_FILE_NAME,
]


@dataclass(frozen=True)
class GuiConfig:
    """Connection settings extracted from the node's config file."""
    server_url: str
    api_key: str
    tls_cert_path: str
    network: str
    chain_source: ChainSourceConfig = field(default_factory=ChainSourceConfig)


def network_to_dir_name(network: str) -> str:
    """Map a network name to the storage subdirectory used by the server."""
    if network in ("bitcoin", "mainnet"):
        return "bitcoin"
    return network


def load_api_key_from_file(storage_dir: Path, network: str) -> Optional[str]:
    """
    Read the generated key at ``<storage_dir>/<network>/api_key``.

    The server stores raw bytes; the client sends them hex-encoded.
    """
    api_key_path = storage_dir / network_to_dir_name(network) / "api_key"
    try:
        return api_key_path.read_bytes().hex()
    except OSError:
        logger.debug(f"No API key file at {api_key_path}")
        return None


def _require(table: Dict[str, Any], *keys: str) -> Any:
    value: Any = table
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            raise ConfigError(f"Failed to parse config: missing '{'.'.join(keys)}'")
        value = value[key]
    return value


def _chain_source_from_toml(data: Dict[str, Any]) -> ChainSourceConfig:
    if "bitcoind" in data:
        btc = data["bitcoind"]
        return ChainSourceConfig.bitcoind(
            rpc_address=_require(btc, "rpc_address"),
            rpc_user=_require(btc, "rpc_user"),
            rpc_password=_require(btc, "rpc_password"),
        )
    if "electrum" in data:
        return ChainSourceConfig.electrum(_require(data["electrum"], "server_url"))
    if "esplora" in data:
        return ChainSourceConfig.esplora(_require(data["esplora"], "server_url"))
    return ChainSourceConfig()


def parse_config_from_str(contents: str) -> GuiConfig:
    """
    Parse config from TOML text.

    Raises:
        ConfigError: If the TOML is invalid or required keys are missing
    """
    try:
        data = tomllib.loads(contents)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config: {e}") from e

    network = _require(data, "node", "network")
    rest_service_address = _require(data, "node", "rest_service_address")
    storage_dir = Path(_require(data, "storage", "disk", "dir_path"))

    # The api_key field in the config is ignored by the server, which
    # generates its own key in the storage directory
    api_key = load_api_key_from_file(storage_dir, network) or ""

    return GuiConfig(
        server_url=rest_service_address,
        api_key=api_key,
        tls_cert_path=str(storage_dir / "tls.crt"),
        network=network,
        chain_source=_chain_source_from_toml(data),
    )


def load_config(path: Union[str, Path]) -> GuiConfig:
    """
    Load config from a file path.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}", path=str(path)) from e
    return parse_config_from_str(contents)


def candidate_paths() -> List[Path]:
    """Search locations, with the environment override last."""
    paths = list(SEARCH_PATHS)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path))
    return paths


def find_and_load_config() -> Optional[GuiConfig]:
    """
    Load the first readable config from the search locations.

    Returns:
        The config, or None if no location holds a valid file
    """
    for path in candidate_paths():
        if not path.exists():
            continue
        try:
            config = load_config(path)
        except ConfigError as e:
            logger.warning(f"Skipping {path}: {e}")
            continue
        logger.info(f"Loaded config from {path}")
        return config
    return None


def _chain_source_table(chain_source: ChainSourceConfig):
    table = tomlkit.table()
    if chain_source.source_type == ChainSourceType.BITCOIND:
        table["rpc_address"] = chain_source.rpc_address
        table["rpc_user"] = chain_source.rpc_user
        table["rpc_password"] = chain_source.rpc_password
    else:
        table["server_url"] = chain_source.server_url
    return table


def save_chain_source(path: Union[str, Path], chain_source: ChainSourceConfig) -> None:
    """
    Replace the chain source section of a config file.

    Every other table, comment and blank line is written back as it was
    read. Any existing ``[bitcoind]``, ``[electrum]`` or ``[esplora]`` table
    is removed first; a source type of NONE leaves none behind. A missing
    file is created holding only the chain source.

    Raises:
        ConfigError: If the file cannot be read, parsed or written
    """
    path = Path(path)
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        contents = ""
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}", path=str(path)) from e

    try:
        document = tomlkit.parse(contents)
    except TOMLKitError as e:
        raise ConfigError(f"Failed to parse config file: {e}", path=str(path)) from e

    for section in CHAIN_SOURCE_SECTIONS:
        if section in document:
            del document[section]

    if chain_source.is_configured:
        document[chain_source.source_type.value] = _chain_source_table(chain_source)

    try:
        path.write_text(tomlkit.dumps(document), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write config file: {e}", path=str(path)) from e
    logger.info(f"Saved {chain_source.source_type.value} chain source to {path}")
