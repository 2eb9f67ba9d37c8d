"""
Request builders.

Turn the raw text held in the forms into API requests. Blank or
unparseable optional numbers are omitted; missing required input raises
FormValidationError before anything is sent.
"""
from typing import Optional

from ldk_console.domain.entities import (
    Bolt11ReceiveForm,
    Bolt11SendForm,
    Bolt12ReceiveForm,
    Bolt12SendForm,
    CloseChannelForm,
    ConnectPeerForm,
    OnchainSendForm,
    OpenChannelForm,
    SpliceForm,
    UpdateChannelConfigForm,
)
from ldk_console.infrastructure.api.models import (
    Bolt11InvoiceDescription,
    Bolt11ReceiveRequest,
    Bolt11SendRequest,
    Bolt12ReceiveRequest,
    Bolt12SendRequest,
    ChannelConfig,
    CloseChannelRequest,
    ConnectPeerRequest,
    ForceCloseChannelRequest,
    OnchainSendRequest,
    OpenChannelRequest,
    SpliceInRequest,
    SpliceOutRequest,
    UpdateChannelConfigRequest,
)
from ldk_console.infrastructure.errors import FormValidationError

U32_MAX = 2 ** 32 - 1
U64_MAX = 2 ** 64 - 1

DEFAULT_INVOICE_EXPIRY_SECS = 86400

CHANNEL_IDS_REQUIRED = "Channel ID and counterparty node ID are required"
PEER_REQUIRED = "Node pubkey and address are required"


def parse_uint(text: str, max_value: int = U64_MAX) -> Optional[int]:
    """
    Parse an unsigned integer, or return None.

    Only plain decimal digits are accepted, so signs, blanks and values
    above ``max_value`` all count as absent.
    """
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    if value > max_value:
        return None
    return value


def _optional_text(text: str) -> Optional[str]:
    text = text.strip()
    return text or None


def _require_channel_ids(user_channel_id: str, counterparty_node_id: str) -> None:
    if not user_channel_id or not counterparty_node_id:
        raise FormValidationError(CHANNEL_IDS_REQUIRED)


def build_channel_config(fee_prop: str, fee_base: str, cltv: str) -> Optional[ChannelConfig]:
    """Build a channel config, or None when none of the three fields parse."""
    fee_prop_value = parse_uint(fee_prop, U32_MAX)
    fee_base_value = parse_uint(fee_base, U32_MAX)
    cltv_value = parse_uint(cltv, U32_MAX)

    if fee_prop_value is None and fee_base_value is None and cltv_value is None:
        return None

    return ChannelConfig(
        forwarding_fee_proportional_millionths=fee_prop_value,
        forwarding_fee_base_msat=fee_base_value,
        cltv_expiry_delta=cltv_value,
    )


def build_onchain_send(form: OnchainSendForm) -> OnchainSendRequest:
    address = form.address.strip()
    if not address:
        raise FormValidationError("Address is required")

    return OnchainSendRequest(
        address=address,
        amount_sats=parse_uint(form.amount_sats),
        # Omitted entirely unless set
        send_all=True if form.send_all else None,
        fee_rate_sat_per_vb=parse_uint(form.fee_rate_sat_per_vb),
    )


def build_bolt11_receive(form: Bolt11ReceiveForm) -> Bolt11ReceiveRequest:
    """A blank amount makes a variable-amount invoice."""
    description = form.description.strip()
    expiry = parse_uint(form.expiry_secs, U32_MAX)

    return Bolt11ReceiveRequest(
        amount_msat=parse_uint(form.amount_msat),
        description=Bolt11InvoiceDescription(direct=description) if description else None,
        expiry_secs=DEFAULT_INVOICE_EXPIRY_SECS if expiry is None else expiry,
    )


def build_bolt11_send(form: Bolt11SendForm) -> Bolt11SendRequest:
    invoice = form.invoice.strip()
    if not invoice:
        raise FormValidationError("Invoice is required")

    return Bolt11SendRequest(invoice=invoice, amount_msat=parse_uint(form.amount_msat))


def build_bolt12_receive(form: Bolt12ReceiveForm) -> Bolt12ReceiveRequest:
    description = form.description.strip()
    if not description:
        raise FormValidationError("Description is required")

    return Bolt12ReceiveRequest(
        description=description,
        amount_msat=parse_uint(form.amount_msat),
        expiry_secs=parse_uint(form.expiry_secs, U32_MAX),
        quantity=parse_uint(form.quantity),
    )


def build_bolt12_send(form: Bolt12SendForm) -> Bolt12SendRequest:
    offer = form.offer.strip()
    if not offer:
        raise FormValidationError("Offer is required")

    return Bolt12SendRequest(
        offer=offer,
        amount_msat=parse_uint(form.amount_msat),
        quantity=parse_uint(form.quantity),
        payer_note=_optional_text(form.payer_note),
    )


def build_open_channel(form: OpenChannelForm) -> OpenChannelRequest:
    """
    Build an open-channel request.

    The amount is checked before the peer fields, so a form with both
    problems reports the amount.
    """
    channel_amount_sats = parse_uint(form.channel_amount_sats)
    if channel_amount_sats is None:
        raise FormValidationError("Invalid channel amount")

    node_pubkey = form.node_pubkey.strip()
    address = form.address.strip()
    if not node_pubkey or not address:
        raise FormValidationError(PEER_REQUIRED)

    return OpenChannelRequest(
        node_pubkey=node_pubkey,
        address=address,
        channel_amount_sats=channel_amount_sats,
        push_to_counterparty_msat=parse_uint(form.push_to_counterparty_msat),
        channel_config=build_channel_config(
            form.forwarding_fee_proportional_millionths,
            form.forwarding_fee_base_msat,
            form.cltv_expiry_delta,
        ),
        announce_channel=form.announce_channel,
    )


def build_close_channel(form: CloseChannelForm) -> CloseChannelRequest:
    user_channel_id = form.user_channel_id.strip()
    counterparty_node_id = form.counterparty_node_id.strip()
    _require_channel_ids(user_channel_id, counterparty_node_id)

    return CloseChannelRequest(
        user_channel_id=user_channel_id,
        counterparty_node_id=counterparty_node_id,
    )


def build_force_close_channel(form: CloseChannelForm) -> ForceCloseChannelRequest:
    user_channel_id = form.user_channel_id.strip()
    counterparty_node_id = form.counterparty_node_id.strip()
    _require_channel_ids(user_channel_id, counterparty_node_id)

    return ForceCloseChannelRequest(
        user_channel_id=user_channel_id,
        counterparty_node_id=counterparty_node_id,
        force_close_reason=_optional_text(form.force_close_reason),
    )


def _splice_amount(form: SpliceForm) -> int:
    amount = parse_uint(form.splice_amount_sats)
    if amount is None:
        raise FormValidationError("Invalid splice amount")
    return amount


def build_splice_in(form: SpliceForm) -> SpliceInRequest:
    splice_amount_sats = _splice_amount(form)
    user_channel_id = form.user_channel_id.strip()
    counterparty_node_id = form.counterparty_node_id.strip()
    _require_channel_ids(user_channel_id, counterparty_node_id)

    return SpliceInRequest(
        user_channel_id=user_channel_id,
        counterparty_node_id=counterparty_node_id,
        splice_amount_sats=splice_amount_sats,
    )


def build_splice_out(form: SpliceForm) -> SpliceOutRequest:
    """A blank address lets the node pick one of its own."""
    splice_amount_sats = _splice_amount(form)
    user_channel_id = form.user_channel_id.strip()
    counterparty_node_id = form.counterparty_node_id.strip()
    _require_channel_ids(user_channel_id, counterparty_node_id)

    return SpliceOutRequest(
        user_channel_id=user_channel_id,
        counterparty_node_id=counterparty_node_id,
        address=_optional_text(form.address),
        splice_amount_sats=splice_amount_sats,
    )


def build_update_channel_config(form: UpdateChannelConfigForm) -> UpdateChannelConfigRequest:
    user_channel_id = form.user_channel_id.strip()
    counterparty_node_id = form.counterparty_node_id.strip()
    _require_channel_ids(user_channel_id, counterparty_node_id)

    # Always sent, even with every field blank
    channel_config = ChannelConfig(
        forwarding_fee_proportional_millionths=parse_uint(
            form.forwarding_fee_proportional_millionths, U32_MAX
        ),
        forwarding_fee_base_msat=parse_uint(form.forwarding_fee_base_msat, U32_MAX),
        cltv_expiry_delta=parse_uint(form.cltv_expiry_delta, U32_MAX),
    )

    return UpdateChannelConfigRequest(
        user_channel_id=user_channel_id,
        counterparty_node_id=counterparty_node_id,
        channel_config=channel_config,
    )


def build_connect_peer(form: ConnectPeerForm) -> ConnectPeerRequest:
    node_pubkey = form.node_pubkey.strip()
    address = form.address.strip()
    if not node_pubkey or not address:
        raise FormValidationError(PEER_REQUIRED)

    return ConnectPeerRequest(node_pubkey=node_pubkey, address=address, persist=form.persist)
