"""100x REST endpoint table.

Each operation is a verb, a path relative to the API base URL,
how it is authenticated and, when signed, the primary type.
"""

import enum
from typing import NamedTuple

from eth_hundredx.schema import PrimaryType


class AuthType(enum.Enum):
    #: No signature
    public = "public"

    #: ``account``, ``subAccountId`` and ``signature`` in the query string
    query = "query"

    #: Signature and account context in the JSON body
    body = "body"


class Endpoint(NamedTuple):
    method: str
    path: str
    auth: AuthType
    primary_type: PrimaryType | None = None

    def format_path(self, **kwargs) -> str:
        return self.path.format(**kwargs)


TICKER_24HR = Endpoint("GET", "/ticker/24hr", AuthType.public)
GET_PRODUCT = Endpoint("GET", "/products/{symbol}", AuthType.public)
GET_PRODUCT_BY_ID = Endpoint("GET", "/products/product-by-id/{id}", AuthType.public)
KLINES = Endpoint("GET", "/uiKlines", AuthType.public)
LIST_PRODUCTS = Endpoint("GET", "/products", AuthType.public)
ORDER_BOOK = Endpoint("GET", "/depth", AuthType.public)
SERVER_TIME = Endpoint("GET", "/time", AuthType.public)

APPROVE_REVOKE_SIGNER = Endpoint("POST", "/approved-signers", AuthType.body, PrimaryType.approve_signer)
NEW_ORDER = Endpoint("POST", "/order", AuthType.body, PrimaryType.order)
CANCEL_AND_REPLACE_ORDER = Endpoint("POST", "/order/cancel-and-replace", AuthType.body, PrimaryType.order)
CANCEL_ORDER = Endpoint("DELETE", "/order", AuthType.body, PrimaryType.cancel_order)
CANCEL_ALL_OPEN_ORDERS = Endpoint("DELETE", "/openOrders", AuthType.body, PrimaryType.cancel_orders)
WITHDRAW = Endpoint("POST", "/withdraw", AuthType.body, PrimaryType.withdraw)

GET_SPOT_BALANCES = Endpoint("GET", "/balances", AuthType.query, PrimaryType.signed_authentication)
GET_PERPETUAL_POSITION = Endpoint("GET", "/positionRisk", AuthType.query, PrimaryType.signed_authentication)
LIST_APPROVED_SIGNERS = Endpoint("GET", "/approved-signers", AuthType.query, PrimaryType.signed_authentication)
LIST_OPEN_ORDERS = Endpoint("GET", "/openOrders", AuthType.query, PrimaryType.signed_authentication)
LIST_ORDERS = Endpoint("GET", "/orders", AuthType.query, PrimaryType.signed_authentication)

#: All endpoints by name
ENDPOINTS: dict[str, Endpoint] = {
    "ticker_24hr": TICKER_24HR,
    "get_product": GET_PRODUCT,
    "get_product_by_id": GET_PRODUCT_BY_ID,
    "klines": KLINES,
    "list_products": LIST_PRODUCTS,
    "order_book": ORDER_BOOK,
    "server_time": SERVER_TIME,
    "approve_revoke_signer": APPROVE_REVOKE_SIGNER,
    "new_order": NEW_ORDER,
    "cancel_and_replace_order": CANCEL_AND_REPLACE_ORDER,
    "cancel_order": CANCEL_ORDER,
    "cancel_all_open_orders": CANCEL_ALL_OPEN_ORDERS,
    "withdraw": WITHDRAW,
    "get_spot_balances": GET_SPOT_BALANCES,
    "get_perpetual_position": GET_PERPETUAL_POSITION,
    "list_approved_signers": LIST_APPROVED_SIGNERS,
    "list_open_orders": LIST_OPEN_ORDERS,
    "list_orders": LIST_ORDERS,
}
