"""
LDK Server request and response models.

Field names follow the server's API. Unknown fields in responses are
ignored so newer servers keep working; optional request fields left as
None are omitted from the request body.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Shared types
# ---------------------------------------------------------------------------

class ChannelConfig(ApiModel):
    forwarding_fee_proportional_millionths: Optional[int] = None
    forwarding_fee_base_msat: Optional[int] = None
    cltv_expiry_delta: Optional[int] = None
    force_close_avoidance_max_fee_satoshis: Optional[int] = None
    accept_underpaying_htlcs: Optional[bool] = None


class PageToken(ApiModel):
    token: str
    index: int = 0


class BestBlock(ApiModel):
    block_hash: str
    height: int


class Bolt11InvoiceDescription(ApiModel):
    """Either a direct description or the hash of one."""
    direct: Optional[str] = None
    hash: Optional[str] = None


class PendingSweepBalance(ApiModel):
    channel_id: Optional[str] = None
    amount_satoshis: int = 0
    confirmation_height: Optional[int] = None
    latest_spending_txid: Optional[str] = None


class LightningBalance(ApiModel):
    channel_id: Optional[str] = None
    counterparty_node_id: Optional[str] = None
    amount_satoshis: int = 0


class Channel(ApiModel):
    channel_id: str
    counterparty_node_id: str
    user_channel_id: str
    funding_txo: Optional[str] = None
    channel_value_sats: int = 0
    outbound_capacity_msat: int = 0
    inbound_capacity_msat: int = 0
    confirmations: Optional[int] = None
    is_outbound: bool = False
    is_channel_ready: bool = False
    is_usable: bool = False
    is_announced: bool = False
    channel_config: Optional[ChannelConfig] = None


class PaymentKind(ApiModel):
    """Exactly one of the variants is set."""
    onchain: Optional[dict] = None
    bolt11: Optional[dict] = None
    bolt11_jit: Optional[dict] = None
    bolt12_offer: Optional[dict] = None
    bolt12_refund: Optional[dict] = None
    spontaneous: Optional[dict] = None

    @property
    def variant(self) -> Optional[str]:
        for name in ("onchain", "bolt11", "bolt11_jit", "bolt12_offer", "bolt12_refund", "spontaneous"):
            if getattr(self, name) is not None:
                return name
        return None


class Payment(ApiModel):
    id: str
    kind: Optional[PaymentKind] = None
    amount_msat: Optional[int] = None
    fee_paid_msat: Optional[int] = None
    direction: int = 0  # 0 inbound, 1 outbound
    status: int = 0     # 0 pending, 1 succeeded, 2 failed
    latest_update_timestamp: int = 0


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class GetNodeInfoRequest(ApiModel):
    pass


class GetBalancesRequest(ApiModel):
    pass


class ListChannelsRequest(ApiModel):
    pass


class ListPaymentsRequest(ApiModel):
    page_token: Optional[PageToken] = None


class OnchainReceiveRequest(ApiModel):
    pass


class OnchainSendRequest(ApiModel):
    address: str
    amount_sats: Optional[int] = None
    send_all: Optional[bool] = None
    fee_rate_sat_per_vb: Optional[int] = None


class Bolt11ReceiveRequest(ApiModel):
    amount_msat: Optional[int] = None
    description: Optional[Bolt11InvoiceDescription] = None
    expiry_secs: int = 86400


class Bolt11SendRequest(ApiModel):
    invoice: str
    amount_msat: Optional[int] = None


class Bolt12ReceiveRequest(ApiModel):
    description: str
    amount_msat: Optional[int] = None
    expiry_secs: Optional[int] = None
    quantity: Optional[int] = None


class Bolt12SendRequest(ApiModel):
    offer: str
    amount_msat: Optional[int] = None
    quantity: Optional[int] = None
    payer_note: Optional[str] = None


class OpenChannelRequest(ApiModel):
    node_pubkey: str
    address: str
    channel_amount_sats: int
    push_to_counterparty_msat: Optional[int] = None
    channel_config: Optional[ChannelConfig] = None
    announce_channel: bool = False


class CloseChannelRequest(ApiModel):
    user_channel_id: str
    counterparty_node_id: str


class ForceCloseChannelRequest(ApiModel):
    user_channel_id: str
    counterparty_node_id: str
    force_close_reason: Optional[str] = None


class SpliceInRequest(ApiModel):
    user_channel_id: str
    counterparty_node_id: str
    splice_amount_sats: int


class SpliceOutRequest(ApiModel):
    user_channel_id: str
    counterparty_node_id: str
    address: Optional[str] = None
    splice_amount_sats: int


class UpdateChannelConfigRequest(ApiModel):
    user_channel_id: str
    counterparty_node_id: str
    channel_config: Optional[ChannelConfig] = None


class ConnectPeerRequest(ApiModel):
    node_pubkey: str
    address: str
    persist: bool = False


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class GetNodeInfoResponse(ApiModel):
    node_id: str
    current_best_block: Optional[BestBlock] = None
    latest_lightning_wallet_sync_timestamp: Optional[int] = None
    latest_onchain_wallet_sync_timestamp: Optional[int] = None
    latest_fee_rate_cache_update_timestamp: Optional[int] = None
    latest_rgs_snapshot_timestamp: Optional[int] = None
    latest_node_announcement_broadcast_timestamp: Optional[int] = None


class GetBalancesResponse(ApiModel):
    total_onchain_balance_sats: int = 0
    spendable_onchain_balance_sats: int = 0
    total_anchor_channels_reserve_sats: int = 0
    total_lightning_balance_sats: int = 0
    lightning_balances: List[LightningBalance] = Field(default_factory=list)
    pending_balances_from_channel_closures: List[PendingSweepBalance] = Field(default_factory=list)


class ListChannelsResponse(ApiModel):
    channels: List[Channel] = Field(default_factory=list)


class ListPaymentsResponse(ApiModel):
    payments: List[Payment] = Field(default_factory=list)
    next_page_token: Optional[PageToken] = None


class OnchainReceiveResponse(ApiModel):
    address: str


class OnchainSendResponse(ApiModel):
    txid: str


class Bolt11ReceiveResponse(ApiModel):
    invoice: str


class Bolt11SendResponse(ApiModel):
    payment_id: str


class Bolt12ReceiveResponse(ApiModel):
    offer: str
    offer_id: Optional[str] = None


class Bolt12SendResponse(ApiModel):
    payment_id: str


class OpenChannelResponse(ApiModel):
    user_channel_id: str


class CloseChannelResponse(ApiModel):
    pass


class ForceCloseChannelResponse(ApiModel):
    pass


class SpliceInResponse(ApiModel):
    pass


class SpliceOutResponse(ApiModel):
    address: str = ""


class UpdateChannelConfigResponse(ApiModel):
    pass


class ConnectPeerResponse(ApiModel):
    pass
