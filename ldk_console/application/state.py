"""
Application state.

Everything the frontends render lives here. Only the console controller
mutates it, and only from the frontend's own thread.
"""
from dataclasses import dataclass, field
from typing import Optional

from ldk_console.domain.entities import ChainSourceConfig, Forms, StatusMessage
from ldk_console.domain.value_objects import ActiveTab, ConnectionState
from ldk_console.infrastructure.api import LdkServerClient
from ldk_console.infrastructure.api.models import (
    GetBalancesResponse,
    GetNodeInfoResponse,
    ListChannelsResponse,
    ListPaymentsResponse,
    PageToken,
)

DEFAULT_SERVER_URL = "localhost:3002"


@dataclass
class AppState:
    # Connection settings
    server_url: str = DEFAULT_SERVER_URL
    api_key: str = ""
    tls_cert_path: str = ""
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
    connection_error: Optional[str] = None
    client: Optional[LdkServerClient] = None

    # Loaded from the node config file
    config_file_path: Optional[str] = None
    network: str = ""
    chain_source: ChainSourceConfig = field(default_factory=ChainSourceConfig)

    active_tab: ActiveTab = ActiveTab.NODE_INFO

    # Cached responses
    node_info: Optional[GetNodeInfoResponse] = None
    balances: Optional[GetBalancesResponse] = None
    channels: Optional[ListChannelsResponse] = None
    payments: Optional[ListPaymentsResponse] = None
    payments_page_token: Optional[PageToken] = None

    # Results of the last operations
    onchain_address: Optional[str] = None
    generated_invoice: Optional[str] = None
    generated_offer: Optional[str] = None
    last_payment_id: Optional[str] = None
    last_txid: Optional[str] = None
    last_channel_id: Optional[str] = None

    forms: Forms = field(default_factory=Forms)

    status_message: Optional[StatusMessage] = None

    # Dialogs
    show_open_channel_dialog: bool = False
    show_close_channel_dialog: bool = False
    show_splice_in_dialog: bool = False
    show_splice_out_dialog: bool = False
    show_update_config_dialog: bool = False
    show_connect_peer_dialog: bool = False
    show_load_config_dialog: bool = False

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED and self.client is not None

    def clear_cached_responses(self) -> None:
        self.node_info = None
        self.balances = None
        self.channels = None
        self.payments = None
