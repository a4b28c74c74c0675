"""Signatures over 100x typed data."""

from types import SimpleNamespace

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys import keys
from eth_utils import to_checksum_address

from eth_hundredx.account import SECP256K1_N, recover_signer, sign_digest
from eth_hundredx.errors import SchemaMismatch
from eth_hundredx.schema import EIP712_DOMAIN, MESSAGE_TYPES, PrimaryType

ORDER_MESSAGE = {
    "account": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
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


def split(signature: str) -> tuple[int, int, int]:
    raw = bytes.fromhex(signature.removeprefix("0x"))
    return int.from_bytes(raw[0:32], "big"), int.from_bytes(raw[32:64], "big"), raw[64]


def test_order_signature_recovers(signer, address):
    """Testnet order signs and recovers to the account."""
    signature = signer.sign_typed_data(PrimaryType.order, ORDER_MESSAGE)
    assert signature.startswith("0x")
    assert len(signature) == 132

    digest = signer.hash_typed_data(PrimaryType.order, ORDER_MESSAGE)
    assert recover_signer(digest, signature) == address


def test_order_signature_recovers_with_eth_account(signer, address):
    """eth_account recovers the signer from its own encoding of the same typed data."""
    signature = signer.sign_typed_data(PrimaryType.order, ORDER_MESSAGE)

    native = {k: int(v) if isinstance(v, str) and v.isdigit() else v for k, v in ORDER_MESSAGE.items()}
    signable = encode_typed_data(
        full_message={
            "types": {
                EIP712_DOMAIN: [dict(f) for f in MESSAGE_TYPES[EIP712_DOMAIN]],
                "Order": [dict(f) for f in MESSAGE_TYPES["Order"]],
            },
            "primaryType": "Order",
            "domain": signer.domain.as_dict(),
            "message": native,
        }
    )
    assert Account.recover_message(signable, signature=bytes.fromhex(signature[2:])) == address


def test_signature_deterministic(signer):
    first = signer.sign_typed_data(PrimaryType.order, ORDER_MESSAGE)
    second = signer.sign_typed_data("Order", dict(ORDER_MESSAGE))
    assert first == second


def test_order_signature_pinned(signer):
    """RFC 6979 signing gives the same testnet order signature on every run."""
    digest = signer.hash_typed_data(PrimaryType.order, ORDER_MESSAGE)
    assert digest.hex().removeprefix("0x") == "bf156694b67b2aa439388e5686d7ee1717de65b2dc839fe8c672c17c23614c54"

    signature = signer.sign_typed_data(PrimaryType.order, ORDER_MESSAGE)
    assert signature.startswith("0x6548d158")
    assert signature.endswith("b8f8b0b81c")


def test_low_s_and_v(signer):
    for nonce in range(20):
        message = dict(ORDER_MESSAGE, nonce=str(1735689500000 + nonce))
        r, s, v = split(signer.sign_typed_data(PrimaryType.order, message))
        assert 0 < r < SECP256K1_N
        assert 0 < s <= SECP256K1_N // 2
        assert v in (27, 28)


def test_high_s_is_normalised(signer):
    """A high-s signature from the backend is flipped, and v with it."""
    digest = signer.hash_typed_data(PrimaryType.cancel_orders, {"account": signer.address, "subAccountId": "1", "productId": "1002"})
    expected = sign_digest(digest, signer.account)
    r, s, v = split(expected)

    fake_account = SimpleNamespace(unsafe_sign_hash=lambda _: SimpleNamespace(r=r, s=SECP256K1_N - s, v=55 - v))
    assert sign_digest(digest, fake_account) == expected


def test_recovery_id_zero_one_accepted(signer):
    """Backends reporting v as a bare recovery id still end up at 27/28."""
    digest = b"\x11" * 32
    expected = sign_digest(digest, signer.account)
    r, s, v = split(expected)

    fake_account = SimpleNamespace(unsafe_sign_hash=lambda _: SimpleNamespace(r=r, s=s, v=v - 27))
    assert sign_digest(digest, fake_account) == expected


def test_recover_with_eth_keys(signer):
    digest = b"\x42" * 32
    r, s, v = split(sign_digest(digest, signer.account))
    public_key = keys.Signature(vrs=(v - 27, r, s)).recover_public_key_from_msg_hash(digest)
    assert to_checksum_address(public_key.to_canonical_address()) == signer.address


def test_missing_field_fails_before_signing(signer, mocker):
    """Order without timeInForce never reaches the key."""
    message = dict(ORDER_MESSAGE)
    del message["timeInForce"]
    sign = mocker.patch("eth_hundredx.account.sign_digest")
    with pytest.raises(SchemaMismatch):
        signer.sign_typed_data(PrimaryType.order, message)
    sign.assert_not_called()
