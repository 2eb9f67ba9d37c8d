"""
Console View Models

View models translate API responses into display rows.
They contain display logic but no business logic.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple
import time

from ldk_console.domain.entities import ChainSourceConfig, StatusMessage
from ldk_console.domain.value_objects import ChainSourceType, ConnectionState
from ldk_console.infrastructure.api.models import (
    GetBalancesResponse,
    GetNodeInfoResponse,
    ListChannelsResponse,
    Payment,
    PaymentKind,
)

PAYMENT_KIND_DISPLAY = {
    "onchain": "On-chain",
    "bolt11": "BOLT11",
    "bolt11_jit": "BOLT11 JIT",
    "bolt12_offer": "BOLT12 Offer",
    "bolt12_refund": "BOLT12 Refund",
    "spontaneous": "Spontaneous",
}

DIRECTION_DISPLAY = {0: "Inbound", 1: "Outbound"}
ONCHAIN_DIRECTION_DISPLAY = {0: "Receive", 1: "Send"}

STATUS_DISPLAY = {0: "Pending", 1: "Succeeded", 2: "Failed"}
ONCHAIN_STATUS_DISPLAY = {0: "Pending", 1: "Confirmed", 2: "Failed"}

# Same palette for Tk and Rich markup
STATUS_COLORS = {0: "yellow", 1: "green", 2: "red"}

CONNECTION_DISPLAY = {
    ConnectionState.DISCONNECTED: ("Disconnected", "gray"),
    ConnectionState.CONNECTED: ("Connected", "green"),
    ConnectionState.ERROR: ("Error", "red"),
}

Row = Tuple[str, str]


def format_sats(sats: int) -> str:
    """Group thousands: ``1234567`` becomes ``1,234,567``."""
    return f"{sats:,}"


def format_msat(msat: int) -> str:
    """Show whole-satoshi amounts in sats and keep msat precision otherwise."""
    if msat % 1000 == 0:
        return f"{format_sats(msat // 1000)} sats"
    return f"{msat:,} msat"


def truncate_id(value: str, start: int, end: int) -> str:
    """Shorten a long identifier to ``<start chars>...<end chars>``."""
    if len(value) <= start + end + 3:
        return value
    return f"{value[:start]}...{value[-end:]}"


def format_relative_time(timestamp: int, now: Optional[float] = None, compact: bool = False) -> str:
    """
    Describe a unix timestamp relative to now.

    Future timestamps cannot be described as "ago" and are shown raw.
    """
    now_secs = int(time.time() if now is None else now)
    if now_secs < timestamp:
        return str(timestamp) if compact else f"timestamp: {timestamp}"

    secs = now_secs - timestamp
    if secs < 60:
        value, unit = secs, ("s", "seconds")
    elif secs < 3600:
        value, unit = secs // 60, ("m", "minutes")
    elif secs < 86400:
        value, unit = secs // 3600, ("h", "hours")
    else:
        value, unit = secs // 86400, ("d", "days")

    if compact:
        return f"{value}{unit[0]} ago"
    return f"{value} {unit[1]} ago"


def payment_kind_label(kind: Optional[PaymentKind]) -> str:
    if kind is None:
        return "Unknown"
    return PAYMENT_KIND_DISPLAY.get(kind.variant, "Unknown")


def direction_label(direction: int) -> str:
    return DIRECTION_DISPLAY.get(direction, "Unknown")


def status_label(status: int) -> str:
    return STATUS_DISPLAY.get(status, "Unknown")


def status_line(message: Optional[StatusMessage]) -> Tuple[str, str]:
    """Text and color for the status bar."""
    if message is None:
        return "Ready", "gray"
    return message.text, "red" if message.is_error else "green"


def connection_label(state: ConnectionState, error: Optional[str] = None) -> Tuple[str, str]:
    text, color = CONNECTION_DISPLAY[state]
    if state == ConnectionState.ERROR and error:
        text = f"Error: {error}"
    return text, color


def node_info_rows(info: GetNodeInfoResponse, now: Optional[float] = None) -> List[Row]:
    rows = [("Node ID", truncate_id(info.node_id, 12, 12))]

    if info.current_best_block is not None:
        block = info.current_best_block
        rows.append(
            ("Best Block", f"{truncate_id(block.block_hash, 8, 8)} (height: {block.height})")
        )

    sync_fields = [
        ("Lightning Wallet Sync", info.latest_lightning_wallet_sync_timestamp),
        ("On-chain Wallet Sync", info.latest_onchain_wallet_sync_timestamp),
        ("Fee Rate Cache Update", info.latest_fee_rate_cache_update_timestamp),
        ("RGS Snapshot", info.latest_rgs_snapshot_timestamp),
        ("Node Announcement", info.latest_node_announcement_broadcast_timestamp),
    ]
    for label, timestamp in sync_fields:
        if timestamp is not None:
            rows.append((label, format_relative_time(timestamp, now)))
    return rows


def chain_source_rows(network: str, chain_source: ChainSourceConfig) -> List[Row]:
    """Chain source details. The RPC password is masked."""
    rows: List[Row] = []
    if network:
        rows.append(("Network", network))
    if not chain_source.is_configured:
        return rows

    rows.append(("Chain Source", chain_source.source_type.label))
    if chain_source.source_type == ChainSourceType.BITCOIND:
        rows.append(("RPC Address", chain_source.rpc_address))
        rows.append(("RPC User", chain_source.rpc_user))
        rows.append(("RPC Password", "********"))
    else:
        rows.append(("Server URL", chain_source.server_url))
    return rows


def balance_rows(balances: GetBalancesResponse) -> List[Row]:
    return [
        ("Total On-chain", f"{format_sats(balances.total_onchain_balance_sats)} sats"),
        ("Spendable On-chain", f"{format_sats(balances.spendable_onchain_balance_sats)} sats"),
        ("Anchor Reserve", f"{format_sats(balances.total_anchor_channels_reserve_sats)} sats"),
        ("Total Lightning", f"{format_sats(balances.total_lightning_balance_sats)} sats"),
        ("Lightning Balances", str(len(balances.lightning_balances))),
        ("Pending Sweeps", str(len(balances.pending_balances_from_channel_closures))),
    ]


@dataclass(frozen=True)
class ChannelRow:
    """One line of the channel table."""
    channel_id: str
    user_channel_id: str
    counterparty: str
    capacity: str
    outbound: str
    inbound: str
    state: str
    announced: str

    COLUMNS = ("Channel ID", "User Channel ID", "Counterparty", "Capacity",
               "Outbound", "Inbound", "State", "Public")

    def as_tuple(self) -> Tuple[str, ...]:
        return (self.channel_id, self.user_channel_id, self.counterparty, self.capacity,
                self.outbound, self.inbound, self.state, self.announced)


def _channel_state(is_usable: bool, is_channel_ready: bool) -> str:
    if is_usable:
        return "Usable"
    if is_channel_ready:
        return "Ready"
    return "Pending"


def channel_rows(response: ListChannelsResponse) -> List[ChannelRow]:
    return [
        ChannelRow(
            channel_id=truncate_id(channel.channel_id, 8, 8),
            user_channel_id=channel.user_channel_id,
            counterparty=truncate_id(channel.counterparty_node_id, 8, 8),
            capacity=f"{format_sats(channel.channel_value_sats)} sats",
            outbound=format_msat(channel.outbound_capacity_msat),
            inbound=format_msat(channel.inbound_capacity_msat),
            state=_channel_state(channel.is_usable, channel.is_channel_ready),
            announced="Yes" if channel.is_announced else "No",
        )
        for channel in response.channels
    ]


@dataclass(frozen=True)
class PaymentRow:
    """One line of the payment history table."""
    payment_id: str
    kind: str
    amount: str
    fee: str
    direction: str
    status: str
    status_color: str
    updated: str

    COLUMNS = ("Payment ID", "Type", "Amount", "Fee", "Direction", "Status", "Timestamp")

    def as_tuple(self) -> Tuple[str, ...]:
        return (self.payment_id, self.kind, self.amount, self.fee,
                self.direction, self.status, self.updated)

    @classmethod
    def from_payment(cls, payment: Payment, now: Optional[float] = None) -> 'PaymentRow':
        return cls(
            payment_id=truncate_id(payment.id, 5, 4),
            kind=payment_kind_label(payment.kind),
            amount="-" if payment.amount_msat is None else format_msat(payment.amount_msat),
            fee="-" if payment.fee_paid_msat is None else format_msat(payment.fee_paid_msat),
            direction=direction_label(payment.direction),
            status=status_label(payment.status),
            status_color=STATUS_COLORS.get(payment.status, "gray"),
            updated=format_relative_time(payment.latest_update_timestamp, now, compact=True),
        )


def payment_rows(payments: List[Payment], now: Optional[float] = None) -> List[PaymentRow]:
    return [PaymentRow.from_payment(payment, now) for payment in payments]


def onchain_history_rows(payments: List[Payment], now: Optional[float] = None) -> List[Tuple[str, ...]]:
    """On-chain payments only, with their txid and wallet-style labels."""
    rows = []
    for payment in payments:
        if payment.kind is None or payment.kind.variant != "onchain":
            continue
        txid = (payment.kind.onchain or {}).get("txid")
        rows.append((
            truncate_id(payment.id, 5, 4),
            truncate_id(txid, 5, 4) if txid else "-",
            "-" if payment.amount_msat is None else f"{format_sats(payment.amount_msat // 1000)} sats",
            ONCHAIN_DIRECTION_DISPLAY.get(payment.direction, "Unknown"),
            ONCHAIN_STATUS_DISPLAY.get(payment.status, "Unknown"),
            format_relative_time(payment.latest_update_timestamp, now, compact=True),
        ))
    return rows
