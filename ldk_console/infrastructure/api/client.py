"""
Async HTTP client for LDK Server.

One instance is shared by every in-flight operation. It keeps no
connection state between calls: each request opens its own session on
whichever event loop it is awaited from, so the same client works on the
worker pool's background loop and on the frontend's loop alike.
"""
from typing import Optional, Type, TypeVar
import json
import logging
import ssl

import aiohttp

from ldk_console.infrastructure.errors import LdkServerError, ServerConnectionError
from ldk_console.infrastructure.logging import timed_operation
from .models import (
    ApiModel,
    GetNodeInfoRequest, GetNodeInfoResponse,
    GetBalancesRequest, GetBalancesResponse,
    ListChannelsRequest, ListChannelsResponse,
    ListPaymentsRequest, ListPaymentsResponse,
    OnchainReceiveRequest, OnchainReceiveResponse,
    OnchainSendRequest, OnchainSendResponse,
    Bolt11ReceiveRequest, Bolt11ReceiveResponse,
    Bolt11SendRequest, Bolt11SendResponse,
    Bolt12ReceiveRequest, Bolt12ReceiveResponse,
    Bolt12SendRequest, Bolt12SendResponse,
    OpenChannelRequest, OpenChannelResponse,
    CloseChannelRequest, CloseChannelResponse,
    ForceCloseChannelRequest, ForceCloseChannelResponse,
    SpliceInRequest, SpliceInResponse,
    SpliceOutRequest, SpliceOutResponse,
    UpdateChannelConfigRequest, UpdateChannelConfigResponse,
    ConnectPeerRequest, ConnectPeerResponse,
)

logger = logging.getLogger(__name__)

R = TypeVar('R', bound=ApiModel)

API_KEY_HEADER = "X-Api-Key"


class LdkServerClient:
    """Client for the LDK Server REST API."""

    def __init__(
        self,
        server_url: str,
        api_key: str,
        tls_cert: Optional[bytes] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            server_url: ``host:port`` or a full URL; https is assumed without a scheme
            api_key: Hex-encoded API key generated by the server
            tls_cert: PEM certificate of the server; when given it is the only
                trusted certificate
            timeout: Total timeout per request in seconds

        Raises:
            ValueError: If the URL or API key is empty, or the certificate is invalid
        """
        server_url = server_url.strip()
        if not server_url:
            raise ValueError("Server URL is required")
        if not api_key:
            raise ValueError("API key is required")

        if "://" not in server_url:
            server_url = f"https://{server_url}"
        self._base_url = server_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._ssl_context = self._build_ssl_context(tls_cert) if tls_cert else None

    @staticmethod
    def _build_ssl_context(tls_cert: bytes) -> ssl.SSLContext:
        try:
            context = ssl.create_default_context(cadata=tls_cert.decode("ascii"))
        except (ssl.SSLError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid TLS certificate: {e}") from e
        # ldk-server issues a self-signed certificate for its own address
        context.check_hostname = False
        return context

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _post(self, endpoint: str, request: ApiModel, response_type: Type[R]) -> R:
        url = f"{self._base_url}/{endpoint}"
        headers = {API_KEY_HEADER: self._api_key}
        body = request.model_dump(exclude_none=True)
        timeout = aiohttp.ClientTimeout(total=self._timeout)

        with timed_operation(logger, endpoint):
            try:
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.post(url, json=body, headers=headers, ssl=self._ssl_context or True) as response:
                        status = response.status
                        text = await response.text()
            except aiohttp.ClientError as e:
                raise ServerConnectionError(f"Request to {endpoint} failed: {e}") from e
            except TimeoutError as e:
                raise ServerConnectionError(f"Request to {endpoint} timed out") from e

            if status != 200:
                raise LdkServerError(
                    self._error_message(status, text),
                    status_code=status,
                    endpoint=endpoint,
                )

        try:
            payload = json.loads(text) if text.strip() else {}
            return response_type.model_validate(payload)
        except ValueError as e:
            raise LdkServerError(
                f"Unexpected {endpoint} response: {e}",
                status_code=status,
                endpoint=endpoint,
            ) from e

    @staticmethod
    def _error_message(status: int, text: str) -> str:
        """Prefer the server's own message when it sends one."""
        message = text.strip()
        try:
            data = json.loads(message)
            if isinstance(data, dict) and data.get("message"):
                message = str(data["message"])
        except ValueError:
            pass
        return message or f"HTTP {status}"

    async def get_node_info(self, request: GetNodeInfoRequest) -> GetNodeInfoResponse:
        return await self._post("GetNodeInfo", request, GetNodeInfoResponse)

    async def get_balances(self, request: GetBalancesRequest) -> GetBalancesResponse:
        return await self._post("GetBalances", request, GetBalancesResponse)

    async def list_channels(self, request: ListChannelsRequest) -> ListChannelsResponse:
        return await self._post("ListChannels", request, ListChannelsResponse)

    async def list_payments(self, request: ListPaymentsRequest) -> ListPaymentsResponse:
        return await self._post("ListPayments", request, ListPaymentsResponse)

    async def onchain_receive(self, request: OnchainReceiveRequest) -> OnchainReceiveResponse:
        return await self._post("OnchainReceive", request, OnchainReceiveResponse)

    async def onchain_send(self, request: OnchainSendRequest) -> OnchainSendResponse:
        return await self._post("OnchainSend", request, OnchainSendResponse)

    async def bolt11_receive(self, request: Bolt11ReceiveRequest) -> Bolt11ReceiveResponse:
        return await self._post("Bolt11Receive", request, Bolt11ReceiveResponse)

    async def bolt11_send(self, request: Bolt11SendRequest) -> Bolt11SendResponse:
        return await self._post("Bolt11Send", request, Bolt11SendResponse)

    async def bolt12_receive(self, request: Bolt12ReceiveRequest) -> Bolt12ReceiveResponse:
        return await self._post("Bolt12Receive", request, Bolt12ReceiveResponse)

    async def bolt12_send(self, request: Bolt12SendRequest) -> Bolt12SendResponse:
        return await self._post("Bolt12Send", request, Bolt12SendResponse)

    async def open_channel(self, request: OpenChannelRequest) -> OpenChannelResponse:
        return await self._post("OpenChannel", request, OpenChannelResponse)

    async def close_channel(self, request: CloseChannelRequest) -> CloseChannelResponse:
        return await self._post("CloseChannel", request, CloseChannelResponse)

    async def force_close_channel(self, request: ForceCloseChannelRequest) -> ForceCloseChannelResponse:
        return await self._post("ForceCloseChannel", request, ForceCloseChannelResponse)

    async def splice_in(self, request: SpliceInRequest) -> SpliceInResponse:
        return await self._post("SpliceIn", request, SpliceInResponse)

    async def splice_out(self, request: SpliceOutRequest) -> SpliceOutResponse:
        return await self._post("SpliceOut", request, SpliceOutResponse)

    async def update_channel_config(self, request: UpdateChannelConfigRequest) -> UpdateChannelConfigResponse:
        return await self._post("UpdateChannelConfig", request, UpdateChannelConfigResponse)

    async def connect_peer(self, request: ConnectPeerRequest) -> ConnectPeerResponse:
        return await self._post("ConnectPeer", request, ConnectPeerResponse)
