"""Signable 100x actions.

Each action has two projections of the same values:

- :py:meth:`SignableAction.to_message`: the EIP-712 message, camelCase keys,
  numbers as base-10 strings

- :py:meth:`SignableAction.to_body`: the JSON sent to the exchange, PascalCase keys,
  numbers as JSON numbers except ``Price`` and ``Quantity`` which stay strings
  because ``uint128`` does not fit a double

:py:meth:`SignableAction.to_body` checks that the two agree.
"""

import abc
from dataclasses import dataclass, field
from typing import Any, ClassVar

from eth_typing import HexAddress, HexStr

from eth_hundredx.constants import LOGIN_MESSAGE, OrderType, TimeInForce
from eth_hundredx.eip_712 import MessageValue
from eth_hundredx.errors import SchemaMismatch
from eth_hundredx.schema import PrimaryType, get_field_names

#: Body keys kept as JSON strings
STRING_BODY_FIELDS = frozenset({"Price", "Quantity"})


def to_pascal_case(name: str) -> str:
    return name[0].upper() + name[1:]


def check_projections(message: dict[str, MessageValue], body: dict[str, Any]):
    """Check that every signed field appears in the body with the same value.

    :raise SchemaMismatch:
        A field is missing from the body or carries a different value.
    """
    for name, signed_value in message.items():
        key = to_pascal_case(name)
        if key not in body:
            raise SchemaMismatch(f"Body is missing signed field {key}")
        body_value = body[key]
        if isinstance(signed_value, bool) or isinstance(body_value, bool):
            same = signed_value is body_value
        else:
            same = str(body_value) == str(signed_value)
        if not same:
            raise SchemaMismatch(f"Signed field {name}={signed_value!r} disagrees with body {key}={body_value!r}")


class SignableAction(abc.ABC):
    """One 100x action that is signed with EIP-712."""

    #: Which schema entry the message is hashed with
    primary_type: ClassVar[PrimaryType]

    @abc.abstractmethod
    def get_fields(self) -> dict[str, MessageValue]:
        """Action specific fields, camelCase, native Python types."""

    def to_message(self, account: HexAddress, sub_account_id: int) -> dict[str, MessageValue]:
        """EIP-712 message with numeric values as base-10 strings."""
        values = {"account": account, "subAccountId": sub_account_id, **self.get_fields()}
        message = {}
        for name in get_field_names(self.primary_type):
            if name not in values:
                raise SchemaMismatch(f"{self.primary_type.value} is missing field {name}")
            message[name] = _stringify(values[name])
        return message

    def to_body(self, account: HexAddress, sub_account_id: int, signature: HexStr) -> dict[str, Any]:
        """JSON body with native numeric types."""
        values = {"account": account, "subAccountId": sub_account_id, **self.get_fields()}
        body = {}
        for name in get_field_names(self.primary_type):
            key = to_pascal_case(name)
            value = values[name]
            if key in STRING_BODY_FIELDS:
                value = str(value)
            elif isinstance(value, int) and not isinstance(value, bool):
                value = int(value)
            body[key] = value
        body["Signature"] = signature
        check_projections(self.to_message(account, sub_account_id), body)
        return body


def _stringify(value: MessageValue) -> MessageValue:
    # bool stays bool, int subclasses like IntEnum collapse to plain digits
    if isinstance(value, bool) or isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(int(value))
    return value


@dataclass(frozen=True, slots=True)
class Order(SignableAction):
    """New order, or the replacement leg of cancel-and-replace."""

    primary_type: ClassVar[PrimaryType] = PrimaryType.order

    product_id: int

    is_buy: bool

    #: Price in 18 decimal fixed point
    price: int

    #: Quantity in 18 decimal fixed point
    quantity: int

    #: UNIX ms after which the order is no longer active
    expiration: int

    #: Suggest current UNIX time in ms
    nonce: int

    order_type: OrderType = OrderType.limit

    time_in_force: TimeInForce = TimeInForce.gtc

    def get_fields(self) -> dict[str, MessageValue]:
        return {
            "productId": self.product_id,
            "isBuy": self.is_buy,
            "orderType": self.order_type,
            "timeInForce": self.time_in_force,
            "expiration": self.expiration,
            "price": self.price,
            "quantity": self.quantity,
            "nonce": self.nonce,
        }


@dataclass(frozen=True, slots=True)
class CancelOrder(SignableAction):
    primary_type: ClassVar[PrimaryType] = PrimaryType.cancel_order

    product_id: int

    order_id: str

    def get_fields(self) -> dict[str, MessageValue]:
        return {"productId": self.product_id, "orderId": self.order_id}


@dataclass(frozen=True, slots=True)
class CancelOrders(SignableAction):
    """Cancel all open orders of a product."""

    primary_type: ClassVar[PrimaryType] = PrimaryType.cancel_orders

    product_id: int

    def get_fields(self) -> dict[str, MessageValue]:
        return {"productId": self.product_id}


@dataclass(frozen=True, slots=True)
class ApproveSigner(SignableAction):
    """Approve or revoke an additional signer of a sub-account."""

    primary_type: ClassVar[PrimaryType] = PrimaryType.approve_signer

    approved_signer: HexAddress

    is_approved: bool

    nonce: int

    def get_fields(self) -> dict[str, MessageValue]:
        return {"approvedSigner": self.approved_signer, "isApproved": self.is_approved, "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class Withdraw(SignableAction):
    primary_type: ClassVar[PrimaryType] = PrimaryType.withdraw

    asset: HexAddress

    #: Amount in 18 decimal fixed point
    quantity: int

    nonce: int

    def get_fields(self) -> dict[str, MessageValue]:
        return {"asset": self.asset, "quantity": self.quantity, "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class SignedAuthentication(SignableAction):
    """Proves account ownership for authenticated reads."""

    primary_type: ClassVar[PrimaryType] = PrimaryType.signed_authentication

    def get_fields(self) -> dict[str, MessageValue]:
        return {}


@dataclass(frozen=True, slots=True)
class LoginMessage(SignableAction):
    """WebSocket session login.

    Not bound to a sub-account, and the login params use camelCase keys.
    """

    primary_type: ClassVar[PrimaryType] = PrimaryType.login_message

    #: UNIX ms, forward dated by the caller
    timestamp: int

    message: str = field(default=LOGIN_MESSAGE)

    def get_fields(self) -> dict[str, MessageValue]:
        return {"message": self.message, "timestamp": self.timestamp}

    def to_body(self, account: HexAddress, sub_account_id: int, signature: HexStr) -> dict[str, Any]:
        return {
            "account": account,
            "message": self.message,
            "timestamp": self.timestamp,
            "signature": signature,
        }
