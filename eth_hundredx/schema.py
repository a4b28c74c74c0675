"""EIP-712 typed data schema for 100x actions.

- The registry is static and read-only after import

- Field order matters: EIP-712 encodes struct members positionally

- No struct references another struct, so type strings never carry
  referenced-type appendices
"""

import enum

from eth_hundredx.errors import UnknownPrimaryType


#: Name of the domain struct
EIP712_DOMAIN = "EIP712Domain"


class PrimaryType(enum.Enum):
    """Signable 100x actions."""

    login_message = "LoginMessage"
    order = "Order"
    cancel_order = "CancelOrder"
    cancel_orders = "CancelOrders"
    approve_signer = "ApproveSigner"
    withdraw = "Withdraw"
    signed_authentication = "SignedAuthentication"


#: EIP-712 struct definitions by type name
MESSAGE_TYPES: dict[str, tuple[dict[str, str], ...]] = {
    EIP712_DOMAIN: (
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ),
    "LoginMessage": (
        {"name": "account", "type": "address"},
        {"name": "message", "type": "string"},
        {"name": "timestamp", "type": "uint64"},
    ),
    "Order": (
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "productId", "type": "uint32"},
        {"name": "isBuy", "type": "bool"},
        {"name": "orderType", "type": "uint8"},
        {"name": "timeInForce", "type": "uint8"},
        {"name": "expiration", "type": "uint64"},
        {"name": "price", "type": "uint128"},
        {"name": "quantity", "type": "uint128"},
        {"name": "nonce", "type": "uint64"},
    ),
    "CancelOrder": (
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "productId", "type": "uint32"},
        {"name": "orderId", "type": "string"},
    ),
    "CancelOrders": (
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "productId", "type": "uint32"},
    ),
    "ApproveSigner": (
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "approvedSigner", "type": "address"},
        {"name": "isApproved", "type": "bool"},
        {"name": "nonce", "type": "uint64"},
    ),
    "Withdraw": (
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "asset", "type": "address"},
        {"name": "quantity", "type": "uint128"},
        {"name": "nonce", "type": "uint64"},
    ),
    "SignedAuthentication": (
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
    ),
}


def resolve_primary_type(primary_type: PrimaryType | str) -> PrimaryType:
    """Accept either the enum or its struct name.

    :raise UnknownPrimaryType:
        The name is not a signable 100x action.
    """
    if isinstance(primary_type, PrimaryType):
        return primary_type
    try:
        return PrimaryType(primary_type)
    except ValueError as e:
        raise UnknownPrimaryType(f"Unknown primary type: {primary_type!r}. Known types: {[p.value for p in PrimaryType]}") from e


def get_struct_fields(type_name: PrimaryType | str) -> tuple[dict[str, str], ...]:
    """Get the ordered field list of a struct.

    :param type_name:
        A primary type, or ``EIP712Domain``.

    :raise UnknownPrimaryType:
        No such struct in the registry.
    """
    if isinstance(type_name, PrimaryType):
        type_name = type_name.value
    try:
        return MESSAGE_TYPES[type_name]
    except KeyError as e:
        raise UnknownPrimaryType(f"No EIP-712 struct definition for {type_name!r}") from e


def get_field_names(type_name: PrimaryType | str) -> list[str]:
    return [f["name"] for f in get_struct_fields(type_name)]


def encode_type(type_name: PrimaryType | str) -> str:
    """Canonical EIP-712 type string.

    Example: ``CancelOrders(address account,uint8 subAccountId,uint32 productId)``
    """
    if isinstance(type_name, PrimaryType):
        type_name = type_name.value
    defs = [f"{f['type']} {f['name']}" for f in get_struct_fields(type_name)]
    return type_name + "(" + ",".join(defs) + ")"
