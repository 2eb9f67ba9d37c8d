"""
Console Domain Entities

Status messages, chain source settings and the editable forms that feed
the remote operations. Forms hold raw text exactly as typed; parsing and
validation happen when a request is built.
"""
from dataclasses import dataclass, field
from datetime import datetime

from .value_objects import ChainSourceType


@dataclass(frozen=True)
class StatusMessage:
    """
    The single "last status" line shown to the user.

    Each new message replaces the previous one; no history is kept.
    """
    text: str
    is_error: bool
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def success(cls, text: str) -> 'StatusMessage':
        return cls(text=text, is_error=False)

    @classmethod
    def error(cls, text: str) -> 'StatusMessage':
        return cls(text=text, is_error=True)


@dataclass(frozen=True)
class ChainSourceConfig:
    """
    Chain source configured on the node (Bitcoin Core RPC, Electrum or Esplora).

    Only the fields relevant to the selected source type are populated.
    """
    source_type: ChainSourceType = ChainSourceType.NONE
    rpc_address: str = ""
    rpc_user: str = ""
    rpc_password: str = ""
    server_url: str = ""

    @classmethod
    def bitcoind(cls, rpc_address: str, rpc_user: str, rpc_password: str) -> 'ChainSourceConfig':
        return cls(
            source_type=ChainSourceType.BITCOIND,
            rpc_address=rpc_address,
            rpc_user=rpc_user,
            rpc_password=rpc_password,
        )

    @classmethod
    def electrum(cls, server_url: str) -> 'ChainSourceConfig':
        return cls(source_type=ChainSourceType.ELECTRUM, server_url=server_url)

    @classmethod
    def esplora(cls, server_url: str) -> 'ChainSourceConfig':
        return cls(source_type=ChainSourceType.ESPLORA, server_url=server_url)

    @property
    def is_configured(self) -> bool:
        return self.source_type != ChainSourceType.NONE


@dataclass
class OpenChannelForm:
    node_pubkey: str = ""
    address: str = ""
    channel_amount_sats: str = ""
    push_to_counterparty_msat: str = ""
    announce_channel: bool = False
    forwarding_fee_proportional_millionths: str = ""
    forwarding_fee_base_msat: str = ""
    cltv_expiry_delta: str = ""


@dataclass
class Bolt11ReceiveForm:
    amount_msat: str = ""
    description: str = ""
    expiry_secs: str = ""


@dataclass
class Bolt11SendForm:
    invoice: str = ""
    amount_msat: str = ""


@dataclass
class Bolt12ReceiveForm:
    description: str = ""
    amount_msat: str = ""
    expiry_secs: str = ""
    quantity: str = ""


@dataclass
class Bolt12SendForm:
    offer: str = ""
    amount_msat: str = ""
    quantity: str = ""
    payer_note: str = ""


@dataclass
class OnchainSendForm:
    address: str = ""
    amount_sats: str = ""
    send_all: bool = False
    fee_rate_sat_per_vb: str = ""


@dataclass
class SpliceForm:
    """Shared by splice-in and splice-out; ``address`` is only used for splice-out."""
    user_channel_id: str = ""
    counterparty_node_id: str = ""
    splice_amount_sats: str = ""
    address: str = ""


@dataclass
class UpdateChannelConfigForm:
    user_channel_id: str = ""
    counterparty_node_id: str = ""
    forwarding_fee_proportional_millionths: str = ""
    forwarding_fee_base_msat: str = ""
    cltv_expiry_delta: str = ""


@dataclass
class CloseChannelForm:
    """Shared by cooperative and force close; the reason only applies to force close."""
    user_channel_id: str = ""
    counterparty_node_id: str = ""
    force_close_reason: str = ""


@dataclass
class ConnectPeerForm:
    node_pubkey: str = ""
    address: str = ""
    persist: bool = False


@dataclass
class ChainSourceForm:
    """
    Editable chain source settings.

    Keeps the values for every source type so switching the type back and
    forth does not lose what was typed.
    """
    source_type: ChainSourceType = ChainSourceType.NONE
    rpc_address: str = ""
    rpc_user: str = ""
    rpc_password: str = ""
    server_url: str = ""

    @classmethod
    def from_config(cls, config: ChainSourceConfig) -> 'ChainSourceForm':
        return cls(
            source_type=config.source_type,
            rpc_address=config.rpc_address,
            rpc_user=config.rpc_user,
            rpc_password=config.rpc_password,
            server_url=config.server_url,
        )

    def to_config(self) -> ChainSourceConfig:
        """Build the config for the selected type, dropping the other fields."""
        if self.source_type == ChainSourceType.BITCOIND:
            return ChainSourceConfig.bitcoind(self.rpc_address, self.rpc_user, self.rpc_password)
        if self.source_type == ChainSourceType.ELECTRUM:
            return ChainSourceConfig.electrum(self.server_url)
        if self.source_type == ChainSourceType.ESPLORA:
            return ChainSourceConfig.esplora(self.server_url)
        return ChainSourceConfig()


@dataclass
class Forms:
    """All editable forms, one instance per operation that takes input."""
    open_channel: OpenChannelForm = field(default_factory=OpenChannelForm)
    bolt11_receive: Bolt11ReceiveForm = field(default_factory=Bolt11ReceiveForm)
    bolt11_send: Bolt11SendForm = field(default_factory=Bolt11SendForm)
    bolt12_receive: Bolt12ReceiveForm = field(default_factory=Bolt12ReceiveForm)
    bolt12_send: Bolt12SendForm = field(default_factory=Bolt12SendForm)
    onchain_send: OnchainSendForm = field(default_factory=OnchainSendForm)
    splice_in: SpliceForm = field(default_factory=SpliceForm)
    splice_out: SpliceForm = field(default_factory=SpliceForm)
    update_channel_config: UpdateChannelConfigForm = field(default_factory=UpdateChannelConfigForm)
    close_channel: CloseChannelForm = field(default_factory=CloseChannelForm)
    connect_peer: ConnectPeerForm = field(default_factory=ConnectPeerForm)
    chain_source: ChainSourceForm = field(default_factory=ChainSourceForm)
