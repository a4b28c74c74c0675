"""100x REST API client.

- Public market data reads

- Body signed trading and account actions

- Query signed account reads

Responses are returned as :py:class:`requests.Response` as is, including non-2xx ones:
the exchange reports rejected orders etc. with an HTTP error status and a JSON body
the caller wants to see.

Example:

.. code-block:: python

    import os

    from eth_hundredx.api import HundredXApiClient
    from eth_hundredx.constants import E18, PRODUCT_ETH_PERP, Environment

    client = HundredXApiClient(os.environ["PRIVATE_KEY"], environment=Environment.testnet, sub_account_id=1)
    resp = client.new_order(
        product=PRODUCT_ETH_PERP,
        is_buy=True,
        price=3300 * E18,
        quantity=E18 // 10,
        expiration=client.now() + 60_000,
    )
    print(resp.status_code, resp.json())
"""

import logging
from typing import Any, Iterable

import requests
from eth_typing import HexAddress
from requests import PreparedRequest, Request, Response, Session

from eth_hundredx.account import HundredXSigner, create_domain
from eth_hundredx.actions import ApproveSigner, CancelOrder, CancelOrders, Order, SignableAction, SignedAuthentication, Withdraw
from eth_hundredx.constants import (
    API_BASE_URL,
    DEFAULT_TIMEOUT,
    MARGIN_ASSET,
    Environment,
    Interval,
    MarginAsset,
    OrderBookLimit,
    OrderType,
    Product,
    TimeInForce,
    VerifyingContractChoice,
)
from eth_hundredx.endpoints import (
    APPROVE_REVOKE_SIGNER,
    CANCEL_ALL_OPEN_ORDERS,
    CANCEL_AND_REPLACE_ORDER,
    CANCEL_ORDER,
    GET_PERPETUAL_POSITION,
    GET_PRODUCT,
    GET_PRODUCT_BY_ID,
    GET_SPOT_BALANCES,
    KLINES,
    LIST_APPROVED_SIGNERS,
    LIST_OPEN_ORDERS,
    LIST_ORDERS,
    LIST_PRODUCTS,
    NEW_ORDER,
    ORDER_BOOK,
    SERVER_TIME,
    TICKER_24HR,
    WITHDRAW,
    AuthType,
    Endpoint,
)
from eth_hundredx.errors import TransportFailure, TransportTimeout
from eth_hundredx.session import create_hundredx_session
from eth_hundredx.utils import dump_json, now_ms

logger = logging.getLogger(__name__)

#: Query parameter list, order preserved and keys may repeat
QueryParams = list[tuple[str, str]]


class HundredXApiClient:
    """Synchronous 100x REST client.

    - Thread safe as long as the underlying :py:class:`requests.Session` is

    - Every call is strictly build message, sign, send
    """

    def __init__(
        self,
        private_key: str,
        environment: Environment = Environment.testnet,
        sub_account_id: int = 0,
        timeout: float = DEFAULT_TIMEOUT,
        session: Session | None = None,
        verifying_contract: VerifyingContractChoice | HexAddress = VerifyingContractChoice.verifier,
        base_url: str | None = None,
    ):
        """
        :param private_key:
            Hex private key, with or without ``0x``.

        :param environment:
            Mainnet or testnet.

        :param sub_account_id:
            Sub-account 0-255 all actions apply to.

        :param timeout:
            Overall HTTP timeout in seconds.

        :param session:
            Bring your own session, e.g. with a proxy.
            See :py:func:`eth_hundredx.session.create_hundredx_session`.

        :param verifying_contract:
            EIP-712 ``verifyingContract``. Verifier contract by default.

        :param base_url:
            Override the REST base URL of ``environment``.

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
        self.base_url = (base_url or API_BASE_URL[environment]).rstrip("/")
        self.session = session or create_hundredx_session()

    def __repr__(self):
        return f"<HundredXApiClient {self.environment.value} {self.address} sub-account:{self.sub_account_id}>"

    @property
    def address(self) -> HexAddress:
        return self.signer.address

    @property
    def sub_account_id(self) -> int:
        return self.signer.sub_account_id

    @staticmethod
    def now() -> int:
        """UNIX time in ms, the conventional nonce."""
        return now_ms()

    def build_signed_body(self, action: SignableAction) -> dict[str, Any]:
        return self.signer.build_signed_body(action)

    def build_request(
        self,
        endpoint: Endpoint,
        params: QueryParams | None = None,
        body: Any = None,
        **path_kwargs,
    ) -> PreparedRequest:
        """Build an HTTP request without sending it.

        For query signed endpoints ``account``, ``subAccountId`` and ``signature``
        are added around ``params`` here.

        :param params:
            Extra query parameters.

        :param body:
            JSON body of body signed endpoints, already signed.

        :param path_kwargs:
            Path template values like ``symbol``.

        :raise EncodingFailure:
            Body cannot be serialised.
        """
        params = list(params or [])
        match endpoint.auth:
            case AuthType.public:
                pass
            case AuthType.query:
                signature = self.signer.sign_action(SignedAuthentication())
                params = (
                    [("account", self.address), ("subAccountId", str(self.sub_account_id))]
                    + params
                    + [("signature", signature)]
                )
            case AuthType.body:
                assert body is not None, f"{endpoint.path} needs a signed body"

        url = self.base_url + endpoint.format_path(**path_kwargs)
        headers = {}
        data = None
        if body is not None:
            data = dump_json(body)
            headers["Content-Type"] = "application/json"

        request = Request(
            method=endpoint.method,
            url=url,
            params=params,
            data=data,
            headers=headers,
        )
        return self.session.prepare_request(request)

    def send(self, prepared: PreparedRequest) -> Response:
        """Send a prepared request.

        Non-2xx responses are returned, not raised.

        :raise TransportTimeout:
            No response within ``timeout``.

        :raise TransportFailure:
            DNS, connect, TLS or I/O failure.
        """
        logger.debug("%s %s", prepared.method, prepared.path_url.split("?")[0])
        try:
            resp = self.session.send(prepared, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportTimeout(f"{prepared.method} {self.base_url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportFailure(f"{prepared.method} {self.base_url} failed: {e}") from e

        logger.debug("Received %d for %s %s", resp.status_code, prepared.method, prepared.path_url.split("?")[0])
        return resp

    def _call(self, endpoint: Endpoint, params: QueryParams | None = None, body: Any = None, **path_kwargs) -> Response:
        return self.send(self.build_request(endpoint, params=params, body=body, **path_kwargs))

    #
    # Public
    #

    def get_24hr_price_change_statistics(self, product: Product | None = None) -> Response:
        """24h rolling window price change statistics, one product or all."""
        params = [("symbol", product.symbol)] if product else None
        return self._call(TICKER_24HR, params)

    def get_product(self, symbol: str) -> Response:
        return self._call(GET_PRODUCT, symbol=symbol)

    def get_product_by_id(self, product_id: int) -> Response:
        return self._call(GET_PRODUCT_BY_ID, id=product_id)

    def get_kline_data(
        self,
        product: Product,
        interval: Interval | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> Response:
        """Candles of a product.

        :param start_time:
            UNIX ms

        :param end_time:
            UNIX ms
        """
        params = [("symbol", product.symbol)]
        if interval:
            params.append(("interval", interval.value))
        if start_time:
            params.append(("startTime", str(start_time)))
        if end_time:
            params.append(("endTime", str(end_time)))
        if limit:
            params.append(("limit", str(limit)))
        return self._call(KLINES, params)

    def list_products(self) -> Response:
        return self._call(LIST_PRODUCTS)

    def order_book(
        self,
        product: Product,
        granularity: int | None = None,
        limit: OrderBookLimit | None = None,
    ) -> Response:
        params = [("symbol", product.symbol)]
        if granularity:
            params.append(("granularity", str(granularity)))
        if limit:
            params.append(("limit", str(int(limit))))
        return self._call(ORDER_BOOK, params)

    def server_time(self) -> Response:
        return self._call(SERVER_TIME)

    #
    # Body signed
    #

    def approve_signer(self, approved_signer: HexAddress, nonce: int | None = None) -> Response:
        """Let another key sign for this sub-account."""
        return self._approve_revoke_signer(approved_signer, True, nonce)

    def revoke_signer(self, approved_signer: HexAddress, nonce: int | None = None) -> Response:
        return self._approve_revoke_signer(approved_signer, False, nonce)

    def _approve_revoke_signer(self, approved_signer: HexAddress, is_approved: bool, nonce: int | None) -> Response:
        action = ApproveSigner(
            approved_signer=approved_signer,
            is_approved=is_approved,
            nonce=nonce if nonce is not None else now_ms(),
        )
        return self._call(APPROVE_REVOKE_SIGNER, body=self.build_signed_body(action))

    def create_order(
        self,
        product: Product,
        is_buy: bool,
        price: int,
        quantity: int,
        expiration: int,
        nonce: int | None = None,
        order_type: OrderType = OrderType.limit,
        time_in_force: TimeInForce = TimeInForce.gtc,
    ) -> Order:
        """Create an order action for :py:meth:`new_order` style calls.

        :param price:
            18 decimals, see :py:data:`eth_hundredx.constants.E18`

        :param quantity:
            18 decimals

        :param expiration:
            UNIX ms

        :param nonce:
            Defaults to current UNIX ms
        """
        return Order(
            product_id=product.id,
            is_buy=is_buy,
            price=price,
            quantity=quantity,
            expiration=expiration,
            nonce=nonce if nonce is not None else now_ms(),
            order_type=order_type,
            time_in_force=time_in_force,
        )

    def new_order(self, **kwargs) -> Response:
        """Place an order.

        Takes the arguments of :py:meth:`create_order`.
        """
        order = self.create_order(**kwargs)
        return self._call(NEW_ORDER, body=self.build_signed_body(order))

    def cancel_and_replace_order(self, id_to_cancel: str, **kwargs) -> Response:
        """Cancel an order and place a new one in one call.

        :param id_to_cancel:
            Order id of the order to cancel.

        :param kwargs:
            The new order, see :py:meth:`create_order`.
        """
        order = self.create_order(**kwargs)
        body = {
            "IdToCancel": id_to_cancel,
            "NewOrder": self.build_signed_body(order),
        }
        return self._call(CANCEL_AND_REPLACE_ORDER, body=body)

    def cancel_order(self, product: Product, order_id: str) -> Response:
        action = CancelOrder(product_id=product.id, order_id=order_id)
        return self._call(CANCEL_ORDER, body=self.build_signed_body(action))

    def cancel_all_open_orders(self, product: Product) -> Response:
        action = CancelOrders(product_id=product.id)
        return self._call(CANCEL_ALL_OPEN_ORDERS, body=self.build_signed_body(action))

    def withdraw(self, quantity: int, nonce: int | None = None, asset: HexAddress | None = None) -> Response:
        """Withdraw margin back to the account wallet.

        :param quantity:
            18 decimals

        :param asset:
            Defaults to USDB of the environment
        """
        action = Withdraw(
            asset=asset or MARGIN_ASSET[self.environment][MarginAsset.usdb],
            quantity=quantity,
            nonce=nonce if nonce is not None else now_ms(),
        )
        return self._call(WITHDRAW, body=self.build_signed_body(action))

    #
    # Query signed
    #

    def get_spot_balances(self) -> Response:
        return self._call(GET_SPOT_BALANCES)

    def get_perpetual_position(self, product: Product | None = None) -> Response:
        params = [("symbol", product.symbol)] if product else None
        return self._call(GET_PERPETUAL_POSITION, params)

    def list_approved_signers(self) -> Response:
        return self._call(LIST_APPROVED_SIGNERS)

    def list_open_orders(self, product: Product | None = None) -> Response:
        params = [("symbol", product.symbol)] if product else None
        return self._call(LIST_OPEN_ORDERS, params)

    def list_orders(self, product: Product, ids: Iterable[str] | None = None) -> Response:
        """Orders of a product, optionally only the given order ids."""
        params = [("symbol", product.symbol)]
        params += [("ids", order_id) for order_id in ids or []]
        return self._call(LIST_ORDERS, params)
