"""Key handling, address derivation and EIP-712 domains."""

import pytest
from eth_account import Account
from eth_keys import keys
from eth_utils import keccak, to_checksum_address

from eth_hundredx.account import HundredXSigner, create_domain, derive_address, normalise_private_key
from eth_hundredx.constants import CHAIN_ID, CIAO_ADDRESS, VERIFIER_ADDRESS, Environment, VerifyingContractChoice
from eth_hundredx.errors import HundredXError, MalformedAddress, MalformedKey, OutOfRange


def test_derive_known_address(private_key, address):
    """Development key #1 maps to its well known address."""
    assert derive_address(private_key) == address
    assert derive_address("0x" + private_key) == address
    assert derive_address(private_key.upper()) == address


def test_derive_address_matches_public_key_hash():
    """Derived address is the tail of the public key hash."""
    account = Account.create()
    key = account.key.hex().removeprefix("0x")
    public_key = keys.PrivateKey(bytes.fromhex(key)).public_key.to_bytes()
    expected = to_checksum_address(keccak(public_key)[-20:])
    assert derive_address(key) == expected == account.address


@pytest.mark.parametrize(
    "bad_key",
    [
        "",
        "0x",
        "xyz",
        "ab" * 31,
        "ab" * 33,
        "zz" * 32,
        "00" * 32,
        "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141",
        "FF" * 32,
    ],
)
def test_malformed_key(bad_key):
    with pytest.raises(MalformedKey):
        normalise_private_key(bad_key)


def test_malformed_key_not_echoed():
    bad_key = "cd" * 31 + "zz"
    with pytest.raises(MalformedKey) as exc_info:
        derive_address(bad_key)
    assert bad_key not in str(exc_info.value)


def test_malformed_key_is_value_error():
    with pytest.raises(ValueError):
        normalise_private_key("nope")
    assert issubclass(MalformedKey, HundredXError)


def test_domain_defaults_to_verifier():
    domain = create_domain(Environment.testnet)
    assert domain.as_dict() == {
        "name": "100x",
        "version": "0.0.0",
        "chainId": 168587773,
        "verifyingContract": to_checksum_address(VERIFIER_ADDRESS[Environment.testnet]),
    }


def test_domain_ciao_and_explicit(address):
    ciao = create_domain(Environment.mainnet, VerifyingContractChoice.ciao)
    assert ciao.verifying_contract == to_checksum_address(CIAO_ADDRESS[Environment.mainnet])
    assert ciao.chain_id == CHAIN_ID[Environment.mainnet] == 81457

    explicit = create_domain(Environment.testnet, address.lower())
    assert explicit.verifying_contract == address


def test_domain_bad_address():
    with pytest.raises(MalformedAddress):
        create_domain(Environment.testnet, "0x1234")


def test_signer_repr_hides_key(signer, private_key, address):
    assert signer.address == address
    assert private_key not in repr(signer)
    assert address in repr(signer)


@pytest.mark.parametrize("sub_account_id", [-1, 256, True, "1"])
def test_signer_sub_account_range(private_key, sub_account_id):
    with pytest.raises(OutOfRange):
        HundredXSigner(private_key, create_domain(Environment.testnet), sub_account_id=sub_account_id)


def test_signer_malformed_key():
    with pytest.raises(MalformedKey):
        HundredXSigner("0xdeadbeef", create_domain(Environment.testnet))
