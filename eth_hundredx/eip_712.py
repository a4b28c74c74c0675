"""EIP-712 hashing for 100x typed data.

- Produces the 32-byte digest a 100x action signature is made over

- Messages are stringly typed: numeric fields arrive as base-10 strings and are
  range checked against their ``uintN`` width here

- Strict: the message keys must be exactly the struct fields

The digest is:

.. code-block:: text

    keccak256(0x19 0x01 ‖ hashStruct(EIP712Domain, domain) ‖ hashStruct(primaryType, message))

Example:

.. code-block:: python

    from eth_hundredx.eip_712 import eip712_encode_hash
    from eth_hundredx.schema import PrimaryType

    digest = eip712_encode_hash(
        PrimaryType.cancel_orders,
        domain={"name": "100x", "version": "0.0.0", "chainId": 168587773, "verifyingContract": "0x02Ca4fcB63E2D3C89fa20D86ccDcfc540c683545"},
        message={"account": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8", "subAccountId": "1", "productId": "1002"},
    )
"""

import re
from typing import Any, Mapping

from eth_abi import encode as encode_abi
from eth_typing import Hash32
from eth_utils import is_hex_address, to_canonical_address
from web3 import Web3

from eth_hundredx.errors import MalformedAddress, OutOfRange, SchemaMismatch
from eth_hundredx.schema import EIP712_DOMAIN, PrimaryType, encode_type, get_struct_fields, resolve_primary_type

#: Plain base-10 unsigned integer, no sign, no spaces, no hex
_UINT_STRING = re.compile(r"^[0-9]+$")

#: Message values the encoder accepts
MessageValue = str | bool | int


def fast_keccak(value: bytes) -> bytes:
    return Web3.keccak(value)


def parse_uint(name: str, typ: str, value: MessageValue) -> int:
    """Parse a ``uintN`` field value and check it fits.

    :raise OutOfRange:
        Not an unsigned integer or too wide for ``typ``.
    """
    bits = int(typ[len("uint") :] or 256)

    # bool is an int subclass
    if isinstance(value, bool):
        raise OutOfRange(f"Field {name} of type {typ} got a boolean: {value}")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and _UINT_STRING.fullmatch(value):
        parsed = int(value, 10)
    else:
        raise OutOfRange(f"Field {name} of type {typ} is not an unsigned base-10 integer: {value!r}")

    if not 0 <= parsed < 2**bits:
        raise OutOfRange(f"Field {name} value {parsed} does not fit {typ}")

    return parsed


def encode_field(name: str, typ: str, value: MessageValue) -> tuple[str, Any]:
    """Turn one struct member into an ABI type/value pair.

    Strings are hashed, everything else is encoded in place
    as a 32-byte word.
    """
    if typ == "string":
        if not isinstance(value, str):
            raise SchemaMismatch(f"Field {name} of type string got {type(value).__name__}: {value!r}")
        return "bytes32", fast_keccak(value.encode("utf-8"))

    if typ == "address":
        if not isinstance(value, str) or not is_hex_address(value):
            raise MalformedAddress(f"Field {name} is not a 20-byte hex address: {value!r}")
        return "address", to_canonical_address(value)

    if typ == "bool":
        if not isinstance(value, bool):
            raise SchemaMismatch(f"Field {name} of type bool got {type(value).__name__}: {value!r}")
        return "bool", value

    if typ.startswith("uint"):
        return typ, parse_uint(name, typ, value)

    raise SchemaMismatch(f"Field {name} has unsupported type {typ}")


def check_fields(type_name: str, data: Mapping[str, MessageValue]):
    """Message keys must be exactly the schema fields.

    :raise SchemaMismatch:
        Listing missing and unexpected keys.
    """
    expected = {f["name"] for f in get_struct_fields(type_name)}
    given = set(data.keys())
    if expected != given:
        missing = sorted(expected - given)
        extra = sorted(given - expected)
        raise SchemaMismatch(f"{type_name} message does not match schema. Missing: {missing}, unexpected: {extra}")


def encode_data(type_name: str, data: Mapping[str, MessageValue]) -> bytes:
    """Encode the struct body: type hash followed by one 32-byte word per field."""
    check_fields(type_name, data)

    encoded_types = ["bytes32"]
    encoded_values = [hash_type(type_name)]

    for field in get_struct_fields(type_name):
        typ, val = encode_field(field["name"], field["type"], data[field["name"]])
        encoded_types.append(typ)
        encoded_values.append(val)

    return encode_abi(encoded_types, encoded_values)


def hash_type(type_name: str) -> Hash32:
    return fast_keccak(encode_type(type_name).encode())


def hash_struct(type_name: str, data: Mapping[str, MessageValue]) -> Hash32:
    return fast_keccak(encode_data(type_name, data))


def hash_domain(domain: Mapping[str, MessageValue]) -> Hash32:
    """Domain separator.

    :param domain:
        Dict with ``name``, ``version``, ``chainId`` and ``verifyingContract``.
    """
    return hash_struct(EIP712_DOMAIN, domain)


def eip712_encode(
    primary_type: PrimaryType | str,
    domain: Mapping[str, MessageValue],
    message: Mapping[str, MessageValue],
) -> list[bytes]:
    """Return the three parts of the signable payload.

      0: The magic & version (0x1901)
      1: The domain separator
      2: The struct hash of the message
    """
    primary_type = resolve_primary_type(primary_type)
    return [
        bytes.fromhex("1901"),
        hash_domain(domain),
        hash_struct(primary_type.value, message),
    ]


def eip712_encode_hash(
    primary_type: PrimaryType | str,
    domain: Mapping[str, MessageValue],
    message: Mapping[str, MessageValue],
) -> Hash32:
    """Build the 32-byte digest to sign.

    :param primary_type:
        Which 100x action is being signed.

    :param domain:
        EIP-712 domain dict, see :py:meth:`eth_hundredx.account.HundredXDomain.as_dict`.

    :param message:
        Field name -> value map, numeric values as base-10 strings.

    :raise UnknownPrimaryType:
        If the primary type is not a 100x action.

    :raise SchemaMismatch:
        Message keys differ from the schema or a value has the wrong kind.

    :raise OutOfRange:
        A numeric value does not fit its ``uintN``.

    :raise MalformedAddress:
        An address field is not 20 bytes of hex.
    """
    return fast_keccak(b"".join(eip712_encode(primary_type, domain, message)))
