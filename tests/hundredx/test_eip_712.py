"""EIP-712 digest of 100x typed data.

Digests are cross-checked against eth_account's own typed data encoder.
"""

import pytest
from eth_account.messages import encode_typed_data
from eth_utils import keccak, to_checksum_address

from eth_hundredx.constants import VERIFIER_ADDRESS, Environment
from eth_hundredx.eip_712 import eip712_encode, eip712_encode_hash, parse_uint
from eth_hundredx.errors import MalformedAddress, OutOfRange, SchemaMismatch, UnknownPrimaryType
from eth_hundredx.schema import EIP712_DOMAIN, MESSAGE_TYPES, PrimaryType, encode_type, get_struct_fields

ACCOUNT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

DOMAIN = {
    "name": "100x",
    "version": "0.0.0",
    "chainId": 168587773,
    "verifyingContract": to_checksum_address(VERIFIER_ADDRESS[Environment.testnet]),
}

ORDER_MESSAGE = {
    "account": ACCOUNT,
    "subAccountId": "1",
    "productId": "1002",
    "isBuy": True,
    "orderType": "0",
    "timeInForce": "0",
    "expiration": "1735689600000",
    "price": "3300000000000000000000",
    "quantity": "1000000000000000000",
    "nonce": "1735689500000",
}

#: Order digest on testnet with the verifier domain
ORDER_DIGEST = "bf156694b67b2aa439388e5686d7ee1717de65b2dc839fe8c672c17c23614c54"

SAMPLE_MESSAGES = {
    PrimaryType.login_message: {"account": ACCOUNT, "message": "I want to log into 100x.finance", "timestamp": "1735689610000"},
    PrimaryType.order: ORDER_MESSAGE,
    PrimaryType.cancel_order: {"account": ACCOUNT, "subAccountId": "1", "productId": "1002", "orderId": "0xabc123"},
    PrimaryType.cancel_orders: {"account": ACCOUNT, "subAccountId": "1", "productId": "1002"},
    PrimaryType.approve_signer: {
        "account": ACCOUNT,
        "subAccountId": "0",
        "approvedSigner": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        "isApproved": False,
        "nonce": "1735689500000",
    },
    PrimaryType.withdraw: {
        "account": ACCOUNT,
        "subAccountId": "255",
        "asset": "0x79A59c326C715AC2d31C169C85d1232319E341ce",
        "quantity": "340282366920938463463374607431768211455",
        "nonce": "18446744073709551615",
    },
    PrimaryType.signed_authentication: {"account": ACCOUNT, "subAccountId": "1"},
}


def reference_digest(primary_type: PrimaryType, domain: dict, message: dict) -> bytes:
    """Digest by eth_account, with numeric strings converted to ints."""
    fields = get_struct_fields(primary_type)
    native = {}
    for f in fields:
        value = message[f["name"]]
        if f["type"].startswith("uint"):
            value = int(value)
        elif f["type"] == "address":
            value = to_checksum_address(value)
        native[f["name"]] = value
    signable = encode_typed_data(
        full_message={
            "types": {
                EIP712_DOMAIN: [dict(f) for f in MESSAGE_TYPES[EIP712_DOMAIN]],
                primary_type.value: [dict(f) for f in fields],
            },
            "primaryType": primary_type.value,
            "domain": domain,
            "message": native,
        }
    )
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def test_encode_type():
    assert encode_type("Order") == (
        "Order(address account,uint8 subAccountId,uint32 productId,bool isBuy,uint8 orderType,"
        "uint8 timeInForce,uint64 expiration,uint128 price,uint128 quantity,uint64 nonce)"
    )
    assert encode_type(PrimaryType.signed_authentication) == "SignedAuthentication(address account,uint8 subAccountId)"
    assert encode_type(EIP712_DOMAIN) == "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"


def test_order_digest_matches_reference():
    digest = eip712_encode_hash(PrimaryType.order, DOMAIN, ORDER_MESSAGE)
    assert len(digest) == 32
    assert digest == reference_digest(PrimaryType.order, DOMAIN, ORDER_MESSAGE)


def test_order_digest_pinned():
    """Testnet order digest, derived once and fixed."""
    digest = eip712_encode_hash(PrimaryType.order, DOMAIN, ORDER_MESSAGE)
    assert digest.hex().removeprefix("0x") == ORDER_DIGEST


def test_digest_is_stable():
    first = eip712_encode_hash("Order", DOMAIN, ORDER_MESSAGE)
    second = eip712_encode_hash(PrimaryType.order, dict(DOMAIN), dict(reversed(list(ORDER_MESSAGE.items()))))
    assert first == second


@pytest.mark.parametrize("primary_type", list(PrimaryType))
def test_all_primary_types_match_reference(primary_type):
    message = SAMPLE_MESSAGES[primary_type]
    assert eip712_encode_hash(primary_type, DOMAIN, message) == reference_digest(primary_type, DOMAIN, message)


def test_encode_parts():
    magic, domain_hash, struct_hash = eip712_encode(PrimaryType.cancel_orders, DOMAIN, SAMPLE_MESSAGES[PrimaryType.cancel_orders])
    assert magic == b"\x19\x01"
    assert len(domain_hash) == len(struct_hash) == 32


def test_domain_change_changes_digest():
    mainnet_chain = dict(DOMAIN, chainId=81457)
    assert eip712_encode_hash(PrimaryType.order, DOMAIN, ORDER_MESSAGE) != eip712_encode_hash(PrimaryType.order, mainnet_chain, ORDER_MESSAGE)


def test_missing_field():
    message = dict(ORDER_MESSAGE)
    del message["timeInForce"]
    with pytest.raises(SchemaMismatch, match="timeInForce"):
        eip712_encode_hash(PrimaryType.order, DOMAIN, message)


def test_extra_field():
    message = dict(SAMPLE_MESSAGES[PrimaryType.signed_authentication], nonce="1")
    with pytest.raises(SchemaMismatch, match="nonce"):
        eip712_encode_hash(PrimaryType.signed_authentication, DOMAIN, message)


def test_login_has_no_sub_account():
    message = dict(SAMPLE_MESSAGES[PrimaryType.login_message], subAccountId="1")
    with pytest.raises(SchemaMismatch):
        eip712_encode_hash(PrimaryType.login_message, DOMAIN, message)


@pytest.mark.parametrize("primary_type", ["Foo", "EIP712Domain", "order", ""])
def test_unknown_primary_type(primary_type):
    with pytest.raises(UnknownPrimaryType):
        eip712_encode_hash(primary_type, DOMAIN, ORDER_MESSAGE)


@pytest.mark.parametrize(
    "field, value",
    [
        ("subAccountId", "256"),
        ("subAccountId", "-1"),
        ("productId", "4294967296"),
        ("price", str(2**128)),
        ("nonce", str(2**64)),
        ("expiration", "0x10"),
        ("quantity", "1.5"),
        ("quantity", " 1"),
        ("quantity", ""),
        ("orderType", True),
    ],
)
def test_out_of_range(field, value):
    message = dict(ORDER_MESSAGE, **{field: value})
    with pytest.raises(OutOfRange):
        eip712_encode_hash(PrimaryType.order, DOMAIN, message)


def test_uint_boundaries():
    assert parse_uint("subAccountId", "uint8", "255") == 255
    assert parse_uint("subAccountId", "uint8", "0") == 0
    assert parse_uint("price", "uint128", str(2**128 - 1)) == 2**128 - 1
    assert parse_uint("chainId", "uint256", 168587773) == 168587773


@pytest.mark.parametrize("account", ["0x1234", "70997970C51812dc3A010C7d01b50e0d17dc79C8x", "", 1])
def test_malformed_address(account):
    message = dict(ORDER_MESSAGE, account=account)
    with pytest.raises(MalformedAddress):
        eip712_encode_hash(PrimaryType.order, DOMAIN, message)


def test_lowercase_address_accepted():
    message = dict(ORDER_MESSAGE, account=ACCOUNT.lower())
    assert eip712_encode_hash(PrimaryType.order, DOMAIN, message) == eip712_encode_hash(PrimaryType.order, DOMAIN, ORDER_MESSAGE)


def test_bool_must_be_bool():
    message = dict(ORDER_MESSAGE, isBuy="true")
    with pytest.raises(SchemaMismatch):
        eip712_encode_hash(PrimaryType.order, DOMAIN, message)
