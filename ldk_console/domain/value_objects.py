"""
Console Domain Value Objects

Value objects are immutable and defined by their attributes.
They have no identity beyond their values.
"""
from enum import Enum


class OperationKey(Enum):
    """
    One key per distinct remote operation.

    The set is closed; the registry holds exactly one slot per member and
    drains slots in declaration order.
    """
    NODE_INFO = "node_info"
    BALANCES = "balances"
    CHANNELS = "channels"
    PAYMENTS = "payments"
    ONCHAIN_RECEIVE = "onchain_receive"
    ONCHAIN_SEND = "onchain_send"
    BOLT11_RECEIVE = "bolt11_receive"
    BOLT11_SEND = "bolt11_send"
    BOLT12_RECEIVE = "bolt12_receive"
    BOLT12_SEND = "bolt12_send"
    OPEN_CHANNEL = "open_channel"
    CLOSE_CHANNEL = "close_channel"
    FORCE_CLOSE_CHANNEL = "force_close_channel"
    SPLICE_IN = "splice_in"
    SPLICE_OUT = "splice_out"
    UPDATE_CHANNEL_CONFIG = "update_channel_config"
    CONNECT_PEER = "connect_peer"

    @property
    def display_name(self) -> str:
        """Human-readable name for the operation."""
        names = {
            "node_info": "fetch node info",
            "balances": "fetch balances",
            "channels": "list channels",
            "payments": "list payments",
            "onchain_receive": "generate on-chain address",
            "onchain_send": "send on-chain",
            "bolt11_receive": "generate BOLT11 invoice",
            "bolt11_send": "send BOLT11 payment",
            "bolt12_receive": "generate BOLT12 offer",
            "bolt12_send": "send BOLT12 payment",
            "open_channel": "open channel",
            "close_channel": "close channel",
            "force_close_channel": "force close channel",
            "splice_in": "splice in",
            "splice_out": "splice out",
            "update_channel_config": "update channel config",
            "connect_peer": "connect peer",
        }
        return names.get(self.value, self.value)


class ConnectionState(Enum):
    """Connection lifecycle of the console against a node."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERROR = "error"


class ActiveTab(Enum):
    """Top-level navigation tabs."""
    NODE_INFO = "node_info"
    BALANCES = "balances"
    CHANNELS = "channels"
    PAYMENTS = "payments"
    LIGHTNING = "lightning"
    ONCHAIN = "onchain"

    @property
    def label(self) -> str:
        labels = {
            "node_info": "Node Info",
            "balances": "Balances",
            "channels": "Channels",
            "payments": "Payment History",
            "lightning": "Lightning",
            "onchain": "On-chain",
        }
        return labels.get(self.value, self.value)


class ChainSourceType(Enum):
    """Chain data backend configured on the node."""
    NONE = "none"
    BITCOIND = "bitcoind"
    ELECTRUM = "electrum"
    ESPLORA = "esplora"

    @property
    def label(self) -> str:
        labels = {
            "none": "None",
            "bitcoind": "Bitcoin Core RPC",
            "electrum": "Electrum",
            "esplora": "Esplora",
        }
        return labels.get(self.value, self.value)
