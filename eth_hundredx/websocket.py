"""100x JSON-RPC WebSocket client.

- One RPC connection for account and trading methods

- One optional market data stream connection for ``SUBSCRIBE`` / ``UNSUBSCRIBE``

Each connection is owned by :py:class:`JsonRpcConnection`:

- A single writer task drains a queue of outbound frames, so concurrent callers
  never interleave frames on the wire

- A reader task resolves the future of each request by the response ``id``
  and pushes anything else, like stream data, to :py:attr:`JsonRpcConnection.messages`

No reconnects and no pings beyond what the ``websockets`` library does itself.

Example:

.. code-block:: python

    import asyncio
    import os

    from eth_hundredx.constants import Environment
    from eth_hundredx.websocket import HundredXWebsocketClient

    async def main():
        async with HundredXWebsocketClient(os.environ["PRIVATE_KEY"], environment=Environment.testnet) as client:
            response = await (await client.login("LOGIN"))
            print(response.success, response.result)

    asyncio.run(main())
"""

import asyncio
import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

import websockets
from eth_typing import HexAddress
from websockets.exceptions import ConnectionClosed, WebSocketException

from eth_hundredx.account import HundredXSigner, create_domain
from eth_hundredx.actions import ApproveSigner, CancelOrder, CancelOrders, LoginMessage, Order, Withdraw
from eth_hundredx.constants import (
    DEFAULT_TIMEOUT,
    JSONRPC_VERSION,
    LOGIN_TIMESTAMP_OFFSET_MS,
    MARGIN_ASSET,
    WS_RPC_URL,
    WS_STREAM_URL,
    Environment,
    Interval,
    MarginAsset,
    OrderBookLimit,
    OrderType,
    Product,
    TimeInForce,
    VerifyingContractChoice,
)
from eth_hundredx.errors import TransportFailure, TransportTimeout
from eth_hundredx.utils import dump_json, now_ms

logger = logging.getLogger(__name__)


class RpcMethod(enum.Enum):
    list_products = "product.list"
    get_product = "product.get"
    server_time = "time"
    login = "session.login"
    session_status = "session.status"
    sub_account_list = "subaccount.list"
    withdraw = "withdraw"
    approve_revoke_signer = "signer.set"
    new_order = "order.place"
    order_list = "order.list"
    cancel_order = "order.cancel"
    cancel_all_open_orders = "order.cancelOpen"
    order_book_depth = "depth"
    get_perpetual_position = "position.perp.list"
    get_spot_balances = "position.spot.list"
    account_updates = "account.updates"
    subscribe = "SUBSCRIBE"
    unsubscribe = "UNSUBSCRIBE"


def build_rpc_request(request_id: str, method: RpcMethod | str, params: Any = None) -> dict:
    """Create a JSON-RPC 2.0 request envelope.

    ``params`` is left out when ``None``.
    """
    if isinstance(method, RpcMethod):
        method = method.value
    frame = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
    }
    if params is not None:
        frame["params"] = params
    return frame


@dataclass(slots=True)
class RpcResponse:
    """Decoded response envelope.

    Error envelopes are responses too, with ``success`` false.
    """

    id: str | None

    success: bool

    result: Any = None

    #: ``{"code", "message", "data"}`` as sent by the server
    error: dict | None = None

    #: The frame as received
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict) -> "RpcResponse":
        error = data.get("error")
        success = data.get("success", error is None)
        request_id = data.get("id")
        return cls(
            id=str(request_id) if request_id is not None else None,
            success=bool(success),
            result=data.get("result"),
            error=error,
            raw=data,
        )


class JsonRpcConnection:
    """Single writer, single reader wrapper around a WebSocket.

    Use :py:meth:`connect` to open one.
    """

    def __init__(self, websocket, name: str = "rpc"):
        """
        :param websocket:
            Open ``websockets`` client connection, or anything with
            async ``send()``, ``close()`` and async iteration.

        :param name:
            For logging.
        """
        self.websocket = websocket
        self.name = name

        #: Inbound frames that did not answer a pending request, decoded
        self.messages: asyncio.Queue = asyncio.Queue()

        self._outbox: asyncio.Queue = asyncio.Queue()
        self._pending: dict[str, asyncio.Future] = {}
        self._tasks: list[asyncio.Task] = []
        self._closed = False

    def __repr__(self):
        return f"<JsonRpcConnection {self.name} pending:{len(self._pending)} closed:{self._closed}>"

    @classmethod
    async def connect(cls, url: str, name: str = "rpc", timeout: float = DEFAULT_TIMEOUT) -> "JsonRpcConnection":
        """Open a WebSocket and start the reader and writer tasks.

        :raise TransportTimeout:
            Handshake did not complete within ``timeout``.

        :raise TransportFailure:
            DNS, connect, TLS or handshake failure.
        """
        try:
            websocket = await websockets.connect(url, open_timeout=timeout)
        except TimeoutError as e:
            raise TransportTimeout(f"Connecting {name} to {url} timed out after {timeout}s") from e
        except (OSError, WebSocketException) as e:
            raise TransportFailure(f"Could not connect {name} to {url}: {e}") from e

        logger.info("Connected %s WebSocket to %s", name, url)
        connection = cls(websocket, name)
        connection.start()
        return connection

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self):
        assert not self._tasks, "Already started"
        self._tasks = [
            asyncio.create_task(self._write_loop(), name=f"{self.name}-writer"),
            asyncio.create_task(self._read_loop(), name=f"{self.name}-reader"),
        ]

    async def submit(self, frame: dict) -> asyncio.Future:
        """Queue a request frame and wait until it has been written.

        :return:
            Future resolving to the :py:class:`RpcResponse` with the same ``id``

        :raise EncodingFailure:
            Frame cannot be serialised. Nothing was queued.

        :raise TransportFailure:
            Connection closed or the write failed.
        """
        if self._closed:
            raise TransportFailure(f"{self.name} connection is closed")

        data = dump_json(frame)
        loop = asyncio.get_running_loop()
        response = loop.create_future()
        written = loop.create_future()

        request_id = str(frame["id"])
        assert request_id not in self._pending, f"Request id {request_id} already in flight"
        self._pending[request_id] = response

        logger.debug("Queueing %s id:%s on %s", frame.get("method"), request_id, self.name)
        try:
            await self._outbox.put((data, written))
            await written
        except BaseException:
            # Write failed or the caller was cancelled, the id can be reused
            self._pending.pop(request_id, None)
            raise
        return response

    async def close(self):
        """Close the socket, stop the tasks and fail any pending request."""
        if self._closed and not self._tasks:
            return
        self._closed = True
        try:
            await self.websocket.close()
        finally:
            tasks, self._tasks = self._tasks, []
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

            error = TransportFailure(f"{self.name} connection closed")
            self._fail_outbox(error)
            self._fail_pending(error)
            logger.info("Closed %s WebSocket", self.name)

    async def _write_loop(self):
        try:
            while True:
                data, written = await self._outbox.get()
                try:
                    await self.websocket.send(data)
                except Exception as e:
                    failure = TransportFailure(f"Write on {self.name} failed: {e}")
                    failure.__cause__ = e
                    if not written.done():
                        written.set_exception(failure)
                    continue
                except asyncio.CancelledError:
                    if not written.done():
                        written.set_exception(TransportFailure(f"{self.name} writer stopped"))
                    raise
                if not written.done():
                    written.set_result(None)
        finally:
            # Nothing can be written any more
            self._closed = True
            error = TransportFailure(f"{self.name} writer stopped")
            self._fail_outbox(error)
            self._fail_pending(error)

    async def _read_loop(self):
        try:
            async for raw in self.websocket:
                self._dispatch(raw)
            reason = f"{self.name} connection closed by server"
        except ConnectionClosed as e:
            reason = f"{self.name} connection lost: {e}"
        logger.info(reason)
        self._closed = True
        self._fail_pending(TransportFailure(reason))

    def _dispatch(self, raw: str | bytes):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Undecodable frame on %s: %r", self.name, raw[:200])
            return

        if isinstance(data, dict) and data.get("id") is not None:
            request_id = str(data["id"])
            future = self._pending.pop(request_id, None)
            if future is not None:
                logger.debug("Response id:%s on %s, success:%s", request_id, self.name, data.get("success"))
                if not future.done():
                    future.set_result(RpcResponse.from_json(data))
                return
            logger.warning("Response id:%s on %s matches no pending request", request_id, self.name)

        self.messages.put_nowait(data)

    def _fail_outbox(self, error: TransportFailure):
        while not self._outbox.empty():
            _, written = self._outbox.get_nowait()
            if not written.done():
                written.set_exception(error)

    def _fail_pending(self, error: TransportFailure):
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)


def aggregate_trade_stream(product: Product) -> str:
    return f"{product.symbol}@aggTrade"


def single_trade_stream(product: Product) -> str:
    return f"{product.symbol}@trade"


def kline_stream(product: Product, interval: Interval) -> str:
    return f"{product.symbol}@klines_{interval.value}"


def partial_book_depth_stream(product: Product, limit: OrderBookLimit, granularity: int) -> str:
    """Top ``limit`` bids and asks, prices rounded by ``1e{granularity}``."""
    return f"{product.symbol}@depth_{int(limit)}_{granularity}"


def ticker_stream(product: Product) -> str:
    """24h rolling window statistics."""
    return f"{product.symbol}@ticker"


class HundredXWebsocketClient:
    """Async 100x WebSocket client.

    Every operation takes a caller chosen ``request_id`` and returns, once the frame
    is on the wire, a future for the matching :py:class:`RpcResponse`.
    """

    def __init__(
        self,
        private_key: str,
        environment: Environment = Environment.testnet,
        sub_account_id: int = 0,
        timeout: float = DEFAULT_TIMEOUT,
        verifying_contract: VerifyingContractChoice | HexAddress = VerifyingContractChoice.verifier,
        rpc_url: str | None = None,
        stream_url: str | None = None,
    ):
        """
        :param timeout:
            Connection handshake timeout in seconds.
            Requests themselves have no timeout, wrap the futures in :py:func:`asyncio.wait_for`.

        :raise MalformedKey:
            Private key cannot be used.
        """
        self.environment = environment
        self.timeout = timeout
        self.signer = HundredXSigner(
            private_key,
            create_domain(environment, verifying_contract),
            sub_account_id=sub_account_id,
        )
        self.rpc_url = rpc_url or WS_RPC_URL[environment]
        self.stream_url = stream_url or WS_STREAM_URL[environment]
        self._rpc: JsonRpcConnection | None = None
        self._stream: JsonRpcConnection | None = None

    def __repr__(self):
        return f"<HundredXWebsocketClient {self.environment.value} {self.address} sub-account:{self.sub_account_id}>"

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def address(self) -> HexAddress:
        return self.signer.address

    @property
    def sub_account_id(self) -> int:
        return self.signer.sub_account_id

    @property
    def rpc(self) -> JsonRpcConnection:
        assert self._rpc is not None, "Call connect() first"
        return self._rpc

    @property
    def stream(self) -> JsonRpcConnection:
        assert self._stream is not None, "Call connect(stream=True) first"
        return self._stream

    async def connect(self, stream: bool = False):
        """Open the RPC connection, and the market data stream connection if asked."""
        if self._rpc is None:
            self._rpc = await JsonRpcConnection.connect(self.rpc_url, "rpc", self.timeout)
        if stream and self._stream is None:
            self._stream = await JsonRpcConnection.connect(self.stream_url, "stream", self.timeout)

    async def close(self):
        rpc, stream = self._rpc, self._stream
        self._rpc = None
        self._stream = None
        try:
            if rpc is not None:
                await rpc.close()
        finally:
            if stream is not None:
                await stream.close()

    async def _submit(self, request_id: str, method: RpcMethod, params: Any = None, stream: bool = False) -> asyncio.Future:
        connection = self.stream if stream else self.rpc
        return await connection.submit(build_rpc_request(request_id, method, params))

    #
    # Public
    #

    async def list_products(self, request_id: str) -> asyncio.Future:
        return await self._submit(request_id, RpcMethod.list_products)

    async def get_product(self, request_id: str, product: Product) -> asyncio.Future:
        return await self._submit(request_id, RpcMethod.get_product, {"id": str(product.id)})

    async def server_time(self, request_id: str) -> asyncio.Future:
        return await self._submit(request_id, RpcMethod.server_time)

    async def order_book(
        self,
        request_id: str,
        product: Product,
        granularity: int = 0,
        limit: OrderBookLimit = OrderBookLimit.five,
    ) -> asyncio.Future:
        params = {"Symbol": product.symbol, "Granularity": granularity, "Limit": int(limit)}
        return await self._submit(request_id, RpcMethod.order_book_depth, params)

    #
    # Session
    #

    async def login(self, request_id: str) -> asyncio.Future:
        """Authenticate the RPC connection.

        Needed before trading, deposit and withdraw methods. The server rejects
        timestamps older than 10 seconds, so the login is dated ahead.
        """
        action = LoginMessage(timestamp=now_ms() + LOGIN_TIMESTAMP_OFFSET_MS)
        return await self._submit(request_id, RpcMethod.login, self.signer.build_signed_body(action))

    async def session_status(self, request_id: str) -> asyncio.Future:
        return await self._submit(request_id, RpcMethod.session_status)

    async def sub_account_list(self, request_id: str) -> asyncio.Future:
        return await self._submit(request_id, RpcMethod.sub_account_list)

    #
    # Signed
    #

    async def withdraw(
        self,
        request_id: str,
        quantity: int,
        nonce: int | None = None,
        asset: HexAddress | None = None,
    ) -> asyncio.Future:
        action = Withdraw(
            asset=asset or MARGIN_ASSET[self.environment][MarginAsset.usdb],
            quantity=quantity,
            nonce=nonce if nonce is not None else now_ms(),
        )
        return await self._submit(request_id, RpcMethod.withdraw, self.signer.build_signed_body(action))

    async def approve_signer(self, request_id: str, approved_signer: HexAddress, nonce: int | None = None) -> asyncio.Future:
        return await self._approve_revoke_signer(request_id, approved_signer, True, nonce)

    async def revoke_signer(self, request_id: str, approved_signer: HexAddress, nonce: int | None = None) -> asyncio.Future:
        return await self._approve_revoke_signer(request_id, approved_signer, False, nonce)

    async def _approve_revoke_signer(self, request_id: str, approved_signer: HexAddress, is_approved: bool, nonce: int | None) -> asyncio.Future:
        action = ApproveSigner(
            approved_signer=approved_signer,
            is_approved=is_approved,
            nonce=nonce if nonce is not None else now_ms(),
        )
        body = self.signer.build_signed_body(action)
        # signer.set names the fields differently from the REST body
        params = {
            "Account": body["Account"],
            "SubAccountId": body["SubAccountId"],
            "Signer": body["ApprovedSigner"],
            "Approved": body["IsApproved"],
            "Nonce": body["Nonce"],
            "Signature": body["Signature"],
        }
        return await self._submit(request_id, RpcMethod.approve_revoke_signer, params)

    async def new_order(
        self,
        request_id: str,
        product: Product,
        is_buy: bool,
        price: int,
        quantity: int,
        expiration: int,
        nonce: int | None = None,
        order_type: OrderType = OrderType.limit,
        time_in_force: TimeInForce = TimeInForce.gtc,
    ) -> asyncio.Future:
        """Place an order.

        :param price:
            18 decimals

        :param quantity:
            18 decimals

        :param expiration:
            UNIX ms
        """
        order = Order(
            product_id=product.id,
            is_buy=is_buy,
            price=price,
            quantity=quantity,
            expiration=expiration,
            nonce=nonce if nonce is not None else now_ms(),
            order_type=order_type,
            time_in_force=time_in_force,
        )
        return await self._submit(request_id, RpcMethod.new_order, self.signer.build_signed_body(order))

    async def cancel_order(self, request_id: str, product: Product, order_id: str) -> asyncio.Future:
        action = CancelOrder(product_id=product.id, order_id=order_id)
        return await self._submit(request_id, RpcMethod.cancel_order, self.signer.build_signed_body(action))

    async def cancel_all_open_orders(self, request_id: str, product: Product) -> asyncio.Future:
        """Cancel all open orders of a product. The result is the number of cancelled orders."""
        action = CancelOrders(product_id=product.id)
        return await self._submit(request_id, RpcMethod.cancel_all_open_orders, self.signer.build_signed_body(action))

    #
    # Account reads, need login
    #

    async def list_open_orders(
        self,
        request_id: str,
        product: Product,
        ids: Iterable[str] | None = None,
        start_time: int = 0,
        end_time: int = 0,
        limit: int = 0,
    ) -> asyncio.Future:
        params = {
            "Account": self.address,
            "SubAccountId": self.sub_account_id,
            "ProductId": product.id,
            "OrderIds": list(ids or []),
            "StartTime": start_time,
            "EndTime": end_time,
            "Limit": limit,
        }
        return await self._submit(request_id, RpcMethod.order_list, params)

    async def get_perpetual_position(self, request_id: str, products: Iterable[Product]) -> asyncio.Future:
        params = {
            "Account": self.address,
            "SubAccount": self.sub_account_id,
            "ProductIds": [p.id for p in products],
        }
        return await self._submit(request_id, RpcMethod.get_perpetual_position, params)

    async def get_spot_balances(self, request_id: str) -> asyncio.Future:
        params = {
            "Account": self.address,
            "SubAccount": self.sub_account_id,
            "Assets": [MARGIN_ASSET[self.environment][MarginAsset.usdb]],
        }
        return await self._submit(request_id, RpcMethod.get_spot_balances, params)

    async def account_updates(self, request_id: str) -> asyncio.Future:
        """Order updates as they happen, balances and positions every 5 seconds.

        Pushed frames land in :py:attr:`JsonRpcConnection.messages` of :py:attr:`rpc`.
        """
        params = {"Account": self.address, "SubAccount": self.sub_account_id}
        return await self._submit(request_id, RpcMethod.account_updates, params)

    #
    # Market data streams
    #

    async def subscribe(self, request_id: str, streams: Iterable[str]) -> asyncio.Future:
        """Subscribe to market data streams.

        Build stream names with :py:func:`aggregate_trade_stream`, :py:func:`kline_stream` etc.
        Data frames land in :py:attr:`JsonRpcConnection.messages` of :py:attr:`stream`.
        """
        return await self._submit(request_id, RpcMethod.subscribe, list(streams), stream=True)

    async def unsubscribe(self, request_id: str, streams: Iterable[str]) -> asyncio.Future:
        return await self._submit(request_id, RpcMethod.unsubscribe, list(streams), stream=True)
