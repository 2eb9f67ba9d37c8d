"""
Node Console Controller

Owns the application state, the remote client and the operation
registry. Frontends call the trigger methods in response to user input
and call ``tick()`` once per redraw; everything else happens here.
"""
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
import logging

from ldk_console.domain.entities import (
    Bolt11SendForm,
    Bolt12SendForm,
    ChainSourceForm,
    CloseChannelForm,
    ConnectPeerForm,
    OnchainSendForm,
    OpenChannelForm,
    SpliceForm,
    StatusMessage,
    UpdateChannelConfigForm,
)
from ldk_console.domain.value_objects import ConnectionState, OperationKey
from ldk_console.infrastructure.api import LdkServerClient
from ldk_console.infrastructure.api.models import (
    GetBalancesRequest,
    GetNodeInfoRequest,
    ListChannelsRequest,
    ListPaymentsRequest,
    OnchainReceiveRequest,
)
from ldk_console.infrastructure.config import (
    CONFIG_FILE_NAME,
    GuiConfig,
    find_and_load_config,
    load_config,
    parse_config_from_str,
    save_chain_source,
)
from ldk_console.infrastructure.errors import ConfigError, FormValidationError
from ldk_console.infrastructure.tasks import Computation, Dispatcher
from . import requests
from .registry import OperationRegistry
from .state import AppState

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1

ClientFactory = Callable[..., LdkServerClient]


class NodeConsole:
    """
    Controller shared by every frontend.

    Triggers are no-ops while disconnected or while the same operation is
    already in flight. Invalid form input sets an error status and sends
    nothing.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        client_factory: ClientFactory = LdkServerClient,
        state: Optional[AppState] = None,
        request_timeout: float = 30.0,
    ):
        self.state = state or AppState()
        self.registry = OperationRegistry(dispatcher)
        self._client_factory = client_factory
        self._request_timeout = request_timeout
        self._success_handlers: Dict[OperationKey, Callable[[Any], None]] = {
            OperationKey.NODE_INFO: self._on_node_info,
            OperationKey.BALANCES: self._on_balances,
            OperationKey.CHANNELS: self._on_channels,
            OperationKey.PAYMENTS: self._on_payments,
            OperationKey.ONCHAIN_RECEIVE: self._on_onchain_receive,
            OperationKey.ONCHAIN_SEND: self._on_onchain_send,
            OperationKey.BOLT11_RECEIVE: self._on_bolt11_receive,
            OperationKey.BOLT11_SEND: self._on_bolt11_send,
            OperationKey.BOLT12_RECEIVE: self._on_bolt12_receive,
            OperationKey.BOLT12_SEND: self._on_bolt12_send,
            OperationKey.OPEN_CHANNEL: self._on_open_channel,
            OperationKey.CLOSE_CHANNEL: self._on_close_channel,
            OperationKey.FORCE_CLOSE_CHANNEL: self._on_force_close_channel,
            OperationKey.SPLICE_IN: self._on_splice_in,
            OperationKey.SPLICE_OUT: self._on_splice_out,
            OperationKey.UPDATE_CHANNEL_CONFIG: self._on_update_channel_config,
            OperationKey.CONNECT_PEER: self._on_connect_peer,
        }

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def set_success(self, text: str) -> None:
        self.state.status_message = StatusMessage.success(text)

    def set_error(self, text: str) -> None:
        self.state.status_message = StatusMessage.error(text)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """
        Build a client from the connection settings and fetch the overview.

        Returns:
            True if the console is now connected
        """
        state = self.state
        url = state.server_url.strip()
        api_key = state.api_key
        cert_path = state.tls_cert_path.strip()

        if not url or not api_key or not cert_path:
            self.set_error("Please fill in all connection fields")
            return False

        try:
            cert_data = Path(cert_path).read_bytes()
        except OSError as e:
            self.set_error(f"Failed to read TLS cert: {e}")
            return False

        try:
            client = self._client_factory(
                url, api_key, tls_cert=cert_data, timeout=self._request_timeout
            )
        except (ValueError, OSError) as e:
            logger.warning(f"Could not create client for {url}: {e}")
            state.connection_state = ConnectionState.ERROR
            state.connection_error = str(e)
            self.set_error(str(e))
            return False

        state.client = client
        state.connection_state = ConnectionState.CONNECTED
        state.connection_error = None
        self.set_success("Connected")
        logger.info(f"Connected to {url}")

        self.fetch_node_info()
        self.fetch_balances()
        self.fetch_channels()
        return True

    def disconnect(self) -> None:
        """Drop the client and the cached responses. In-flight work still completes."""
        self.state.client = None
        self.state.connection_state = ConnectionState.DISCONNECTED
        self.state.connection_error = None
        self.state.clear_cached_responses()
        self.set_success("Disconnected")
        logger.info("Disconnected")

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def apply_config(self, config: GuiConfig, source: Optional[str] = None) -> None:
        """Populate the connection settings from a loaded config."""
        self.state.server_url = config.server_url
        self.state.api_key = config.api_key
        self.state.tls_cert_path = config.tls_cert_path
        self.state.network = config.network
        self.state.chain_source = config.chain_source
        self.state.forms.chain_source = ChainSourceForm.from_config(config.chain_source)
        if source is not None:
            self.state.config_file_path = source
            self.set_success(f"Config loaded from {source}")
        else:
            self.set_success("Config loaded successfully")

    def load_config_file(self, path: Union[str, Path]) -> bool:
        try:
            config = load_config(path)
        except ConfigError as e:
            self.set_error(f"Failed to load config: {e}")
            return False
        self.apply_config(config, source=str(path))
        return True

    def load_config_text(self, text: str) -> bool:
        """Apply a config pasted as TOML text."""
        try:
            config = parse_config_from_str(text)
        except ConfigError as e:
            self.set_error(str(e))
            return False
        self.apply_config(config)
        self.state.show_load_config_dialog = False
        return True

    def load_default_config(self) -> bool:
        """Apply the first config found in the standard locations, if any."""
        config = find_and_load_config()
        if config is None:
            return False
        self.apply_config(config)
        self.set_success(f"Config loaded from {CONFIG_FILE_NAME}")
        return True

    def save_chain_source(self, path: Optional[Union[str, Path]] = None) -> bool:
        """
        Write the edited chain source into a config file.

        Args:
            path: Target file for "Save As"; defaults to the loaded config file

        The server only reads its chain source at startup, so a saved
        change takes effect after it restarts.
        """
        target = path if path is not None else self.state.config_file_path
        if not target:
            self.set_error("No config file loaded. Use 'Save As...'")
            return False

        chain_source = self.state.forms.chain_source.to_config()
        try:
            save_chain_source(target, chain_source)
        except ConfigError as e:
            self.set_error(f"Failed to save: {e}")
            return False

        self.state.config_file_path = str(target)
        self.state.chain_source = chain_source
        self.set_success(f"Config saved to {target}")
        return True

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _launch(self, key: OperationKey, make_call: Callable[[LdkServerClient], Computation]) -> bool:
        if not self.state.is_connected or self.registry.is_occupied(key):
            return False
        return self.registry.trigger(key, make_call(self.state.client))

    def _launch_with_form(
        self,
        key: OperationKey,
        build: Callable[[], Any],
        make_call: Callable[[LdkServerClient, Any], Computation],
    ) -> bool:
        if not self.state.is_connected or self.registry.is_occupied(key):
            return False
        try:
            request = build()
        except FormValidationError as e:
            self.set_error(str(e))
            return False
        client = self.state.client
        return self.registry.trigger(key, make_call(client, request))

    def tick(self) -> bool:
        """
        Apply every completed operation.

        Returns:
            True if work is still in flight and the frontend should poll again soon
        """
        return self.registry.drain(self._on_success, self._on_failure)

    def close(self) -> None:
        self.registry.dispatcher.close()

    @property
    def any_pending(self) -> bool:
        return self.registry.any_pending

    def _on_success(self, key: OperationKey, payload: Any) -> None:
        self._success_handlers[key](payload)

    def _on_failure(self, key: OperationKey, message: str) -> None:
        logger.warning(f"{key.display_name} failed: {message}")
        self.set_error(message)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def fetch_node_info(self) -> bool:
        return self._launch(
            OperationKey.NODE_INFO,
            lambda client: lambda: client.get_node_info(GetNodeInfoRequest()),
        )

    def fetch_balances(self) -> bool:
        return self._launch(
            OperationKey.BALANCES,
            lambda client: lambda: client.get_balances(GetBalancesRequest()),
        )

    def fetch_channels(self) -> bool:
        return self._launch(
            OperationKey.CHANNELS,
            lambda client: lambda: client.list_channels(ListChannelsRequest()),
        )

    def fetch_payments(self) -> bool:
        """Fetch the next page of payments, starting after the stored page token."""
        request = ListPaymentsRequest(page_token=self.state.payments_page_token)
        return self._launch(
            OperationKey.PAYMENTS,
            lambda client: lambda: client.list_payments(request),
        )

    def refresh_payments(self) -> bool:
        """Fetch payments from the first page."""
        if self.registry.is_occupied(OperationKey.PAYMENTS):
            return False
        self.state.payments_page_token = None
        return self.fetch_payments()

    def generate_onchain_address(self) -> bool:
        return self._launch(
            OperationKey.ONCHAIN_RECEIVE,
            lambda client: lambda: client.onchain_receive(OnchainReceiveRequest()),
        )

    def send_onchain(self) -> bool:
        return self._launch_with_form(
            OperationKey.ONCHAIN_SEND,
            lambda: requests.build_onchain_send(self.state.forms.onchain_send),
            lambda client, request: lambda: client.onchain_send(request),
        )

    def generate_bolt11_invoice(self) -> bool:
        return self._launch_with_form(
            OperationKey.BOLT11_RECEIVE,
            lambda: requests.build_bolt11_receive(self.state.forms.bolt11_receive),
            lambda client, request: lambda: client.bolt11_receive(request),
        )

    def send_bolt11(self) -> bool:
        return self._launch_with_form(
            OperationKey.BOLT11_SEND,
            lambda: requests.build_bolt11_send(self.state.forms.bolt11_send),
            lambda client, request: lambda: client.bolt11_send(request),
        )

    def generate_bolt12_offer(self) -> bool:
        return self._launch_with_form(
            OperationKey.BOLT12_RECEIVE,
            lambda: requests.build_bolt12_receive(self.state.forms.bolt12_receive),
            lambda client, request: lambda: client.bolt12_receive(request),
        )

    def send_bolt12(self) -> bool:
        return self._launch_with_form(
            OperationKey.BOLT12_SEND,
            lambda: requests.build_bolt12_send(self.state.forms.bolt12_send),
            lambda client, request: lambda: client.bolt12_send(request),
        )

    def open_channel(self) -> bool:
        return self._launch_with_form(
            OperationKey.OPEN_CHANNEL,
            lambda: requests.build_open_channel(self.state.forms.open_channel),
            lambda client, request: lambda: client.open_channel(request),
        )

    def close_channel(self) -> bool:
        return self._launch_with_form(
            OperationKey.CLOSE_CHANNEL,
            lambda: requests.build_close_channel(self.state.forms.close_channel),
            lambda client, request: lambda: client.close_channel(request),
        )

    def force_close_channel(self) -> bool:
        return self._launch_with_form(
            OperationKey.FORCE_CLOSE_CHANNEL,
            lambda: requests.build_force_close_channel(self.state.forms.close_channel),
            lambda client, request: lambda: client.force_close_channel(request),
        )

    def splice_in(self) -> bool:
        return self._launch_with_form(
            OperationKey.SPLICE_IN,
            lambda: requests.build_splice_in(self.state.forms.splice_in),
            lambda client, request: lambda: client.splice_in(request),
        )

    def splice_out(self) -> bool:
        return self._launch_with_form(
            OperationKey.SPLICE_OUT,
            lambda: requests.build_splice_out(self.state.forms.splice_out),
            lambda client, request: lambda: client.splice_out(request),
        )

    def update_channel_config(self) -> bool:
        return self._launch_with_form(
            OperationKey.UPDATE_CHANNEL_CONFIG,
            lambda: requests.build_update_channel_config(self.state.forms.update_channel_config),
            lambda client, request: lambda: client.update_channel_config(request),
        )

    def connect_peer(self) -> bool:
        return self._launch_with_form(
            OperationKey.CONNECT_PEER,
            lambda: requests.build_connect_peer(self.state.forms.connect_peer),
            lambda client, request: lambda: client.connect_peer(request),
        )

    # ------------------------------------------------------------------
    # Success handlers
    # ------------------------------------------------------------------

    def _on_node_info(self, response) -> None:
        self.state.node_info = response

    def _on_balances(self, response) -> None:
        self.state.balances = response

    def _on_channels(self, response) -> None:
        self.state.channels = response

    def _on_payments(self, response) -> None:
        self.state.payments_page_token = response.next_page_token
        self.state.payments = response

    def _on_onchain_receive(self, response) -> None:
        self.state.onchain_address = response.address
        self.set_success("Address generated")

    def _on_onchain_send(self, response) -> None:
        self.state.last_txid = response.txid
        self.set_success(f"Sent! TXID: {response.txid}")
        self.state.forms.onchain_send = OnchainSendForm()

    def _on_bolt11_receive(self, response) -> None:
        self.state.generated_invoice = response.invoice
        self.set_success("Invoice generated")

    def _on_bolt11_send(self, response) -> None:
        self.state.last_payment_id = response.payment_id
        self.set_success(f"Payment sent! ID: {response.payment_id}")
        self.state.forms.bolt11_send = Bolt11SendForm()

    def _on_bolt12_receive(self, response) -> None:
        self.state.generated_offer = response.offer
        self.set_success("Offer generated")

    def _on_bolt12_send(self, response) -> None:
        self.state.last_payment_id = response.payment_id
        self.set_success(f"Payment sent! ID: {response.payment_id}")
        self.state.forms.bolt12_send = Bolt12SendForm()

    def _on_open_channel(self, response) -> None:
        self.state.last_channel_id = response.user_channel_id
        self.set_success(f"Channel opened! ID: {response.user_channel_id}")
        self.state.forms.open_channel = OpenChannelForm()
        self.state.show_open_channel_dialog = False
        self.fetch_channels()

    def _on_close_channel(self, response) -> None:
        self.set_success("Channel close initiated")
        self.state.forms.close_channel = CloseChannelForm()
        self.state.show_close_channel_dialog = False
        self.fetch_channels()

    def _on_force_close_channel(self, response) -> None:
        self.set_success("Force close initiated")
        self.state.forms.close_channel = CloseChannelForm()
        self.state.show_close_channel_dialog = False
        self.fetch_channels()

    def _on_splice_in(self, response) -> None:
        self.set_success("Splice-in initiated")
        self.state.forms.splice_in = SpliceForm()
        self.state.show_splice_in_dialog = False
        self.fetch_channels()

    def _on_splice_out(self, response) -> None:
        self.set_success(f"Splice-out initiated to {response.address}")
        self.state.forms.splice_out = SpliceForm()
        self.state.show_splice_out_dialog = False
        self.fetch_channels()

    def _on_update_channel_config(self, response) -> None:
        self.set_success("Channel config updated")
        self.state.forms.update_channel_config = UpdateChannelConfigForm()
        self.state.show_update_config_dialog = False
        self.fetch_channels()

    def _on_connect_peer(self, response) -> None:
        self.set_success("Peer connected successfully")
        self.state.forms.connect_peer = ConnectPeerForm()
        self.state.show_connect_peer_dialog = False
