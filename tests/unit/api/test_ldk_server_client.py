"""
Tests for the LDK Server HTTP client.

Requests go to a local aiohttp test server that records what it
receives and replies with canned JSON.
"""
import socket
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ldk_console.infrastructure.api import API_KEY_HEADER, LdkServerClient
from ldk_console.infrastructure.api import models
from ldk_console.infrastructure.errors import LdkServerError, ServerConnectionError


class RecordingNode:
    """Minimal node that records requests and replies from a route table."""

    def __init__(self, replies):
        self.replies = replies
        self.received = []

    async def handle(self, request: web.Request) -> web.StreamResponse:
        endpoint = request.match_info["endpoint"]
        self.received.append({
            "endpoint": endpoint,
            "api_key": request.headers.get(API_KEY_HEADER),
            "body": await request.json(),
        })
        status, body = self.replies[endpoint]
        if isinstance(body, str):
            return web.Response(status=status, text=body)
        return web.json_response(body, status=status)


@asynccontextmanager
async def running_node(replies):
    node = RecordingNode(replies)
    app = web.Application()
    app.router.add_post("/{endpoint}", node.handle)
    async with TestServer(app) as server:
        client = LdkServerClient(f"http://{server.host}:{server.port}", "deadbeef", timeout=5.0)
        yield node, client


def unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestConstruction:
    """Tests for client construction."""

    def test_https_assumed_without_scheme(self):
        client = LdkServerClient("localhost:3002", "key")
        assert client.base_url == "https://localhost:3002"

    def test_explicit_scheme_kept(self):
        client = LdkServerClient("http://127.0.0.1:3002/", "key")
        assert client.base_url == "http://127.0.0.1:3002"

    @pytest.mark.parametrize("url,key", [("", "key"), ("   ", "key"), ("localhost:3002", "")])
    def test_required_fields(self, url, key):
        with pytest.raises(ValueError):
            LdkServerClient(url, key)

    @pytest.mark.parametrize("cert", [b"not a certificate", b"\xff\xfe"])
    def test_invalid_certificate(self, cert):
        with pytest.raises(ValueError, match="Invalid TLS certificate"):
            LdkServerClient("localhost:3002", "key", tls_cert=cert)


class TestRequests:
    """Tests for request encoding and response decoding."""

    @pytest.mark.asyncio
    async def test_get_balances(self):
        """Responses are decoded into models and the API key is sent."""
        replies = {"GetBalances": (200, {
            "total_onchain_balance_sats": 250000,
            "spendable_onchain_balance_sats": 200000,
            "total_lightning_balance_sats": 50000,
        })}
        async with running_node(replies) as (node, client):
            response = await client.get_balances(models.GetBalancesRequest())

        assert response.total_onchain_balance_sats == 250000
        assert response.lightning_balances == []
        assert node.received == [{"endpoint": "GetBalances", "api_key": "deadbeef", "body": {}}]

    @pytest.mark.asyncio
    async def test_unset_fields_omitted(self):
        """Optional fields left as None are not sent."""
        replies = {"OnchainSend": (200, {"txid": "ab" * 32})}
        async with running_node(replies) as (node, client):
            response = await client.onchain_send(
                models.OnchainSendRequest(address="bcrt1qdest", amount_sats=1000)
            )

        assert response.txid == "ab" * 32
        assert node.received[0]["body"] == {"address": "bcrt1qdest", "amount_sats": 1000}

    @pytest.mark.asyncio
    async def test_nested_models(self):
        replies = {"OpenChannel": (200, {"user_channel_id": "99"})}
        request = models.OpenChannelRequest(
            node_pubkey="02" + "11" * 32,
            address="127.0.0.1:9735",
            channel_amount_sats=100000,
            channel_config=models.ChannelConfig(cltv_expiry_delta=144),
        )
        async with running_node(replies) as (node, client):
            response = await client.open_channel(request)

        body = node.received[0]["body"]
        assert response.user_channel_id == "99"
        assert body["channel_config"] == {"cltv_expiry_delta": 144}
        assert body["announce_channel"] is False

    @pytest.mark.asyncio
    async def test_empty_body_response(self):
        """Endpoints with empty responses accept an empty body."""
        replies = {"CloseChannel": (200, "")}
        async with running_node(replies) as (node, client):
            response = await client.close_channel(
                models.CloseChannelRequest(user_channel_id="1", counterparty_node_id="02aa")
            )

        assert isinstance(response, models.CloseChannelResponse)

    @pytest.mark.asyncio
    async def test_list_payments_page_token(self):
        replies = {"ListPayments": (200, {
            "payments": [{"id": "p1", "amount_msat": 1000, "direction": 1, "status": 1}],
            "next_page_token": {"token": "t2", "index": 5},
        })}
        request = models.ListPaymentsRequest(page_token=models.PageToken(token="t1", index=2))
        async with running_node(replies) as (node, client):
            response = await client.list_payments(request)

        assert node.received[0]["body"] == {"page_token": {"token": "t1", "index": 2}}
        assert response.payments[0].id == "p1"
        assert response.next_page_token.index == 5


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_server_error_message(self):
        """The server's message becomes the error text."""
        replies = {"OnchainSend": (400, {"message": "insufficient funds", "error_code": 2})}
        async with running_node(replies) as (node, client):
            with pytest.raises(LdkServerError) as exc_info:
                await client.onchain_send(models.OnchainSendRequest(address="bcrt1q"))

        assert str(exc_info.value) == "insufficient funds"
        assert exc_info.value.status_code == 400
        assert exc_info.value.endpoint == "OnchainSend"

    @pytest.mark.asyncio
    async def test_plain_text_error(self):
        replies = {"GetNodeInfo": (401, "Unauthorized")}
        async with running_node(replies) as (node, client):
            with pytest.raises(LdkServerError, match="Unauthorized"):
                await client.get_node_info(models.GetNodeInfoRequest())

    @pytest.mark.asyncio
    async def test_empty_error_body(self):
        replies = {"GetNodeInfo": (500, "")}
        async with running_node(replies) as (node, client):
            with pytest.raises(LdkServerError, match="HTTP 500"):
                await client.get_node_info(models.GetNodeInfoRequest())

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        """A success reply that does not match the model is an error."""
        replies = {"OnchainReceive": (200, {"unexpected": True})}
        async with running_node(replies) as (node, client):
            with pytest.raises(LdkServerError, match="Unexpected OnchainReceive response"):
                await client.onchain_receive(models.OnchainReceiveRequest())

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        client = LdkServerClient(f"http://127.0.0.1:{unused_port()}", "key", timeout=5.0)

        with pytest.raises(ServerConnectionError, match="Request to GetBalances failed"):
            await client.get_balances(models.GetBalancesRequest())
