"""Account identity and EIP-712 signing.

- Derive the 100x account address from a hex private key

- Hold the EIP-712 domain of an environment

- Sign digests into 65-byte ``r ‖ s ‖ v`` signatures, low-``s``, ``v`` in {27, 28}

Example:

.. code-block:: python

    from eth_hundredx.account import HundredXSigner, create_domain
    from eth_hundredx.constants import Environment

    signer = HundredXSigner(
        "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d",
        create_domain(Environment.testnet),
        sub_account_id=1,
    )
    print(signer.address)  # 0x70997970C51812dc3A010C7d01b50e0d17dc79C8
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys import keys
from eth_typing import ChecksumAddress, HexAddress, HexStr
from eth_utils import is_hex_address, to_checksum_address
from web3 import Web3

from eth_hundredx.actions import SignableAction
from eth_hundredx.constants import (
    CHAIN_ID,
    CIAO_ADDRESS,
    DOMAIN_NAME,
    DOMAIN_VERSION,
    VERIFIER_ADDRESS,
    Environment,
    VerifyingContractChoice,
)
from eth_hundredx.eip_712 import MessageValue, eip712_encode_hash
from eth_hundredx.errors import MalformedAddress, MalformedKey, OutOfRange
from eth_hundredx.schema import PrimaryType

logger = logging.getLogger(__name__)

#: secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_PRIVATE_KEY_HEX = re.compile(r"^[0-9a-fA-F]{64}$")


def normalise_private_key(private_key: str) -> str:
    """Strip ``0x`` and validate.

    :return:
        64 hex chars, no prefix

    :raise MalformedKey:
        Not 64 hex chars, zero, or not below the curve order.
    """
    if not isinstance(private_key, str):
        raise MalformedKey(f"Private key must be a hex string, got {type(private_key).__name__}")

    if private_key.startswith(("0x", "0X")):
        private_key = private_key[2:]

    if not _PRIVATE_KEY_HEX.fullmatch(private_key):
        # Do not echo the key back
        raise MalformedKey(f"Private key must be 64 hex characters, got {len(private_key)} characters")

    scalar = int(private_key, 16)
    if not 0 < scalar < SECP256K1_N:
        raise MalformedKey("Private key is not a valid secp256k1 scalar")

    return private_key.lower()


def derive_address(private_key: str) -> ChecksumAddress:
    """Derive the EIP-55 address of a private key.

    ``keccak256(pubkey_x ‖ pubkey_y)[12:]`` in checksum form.

    :raise MalformedKey:
        See :py:func:`normalise_private_key`.
    """
    key_bytes = bytes.fromhex(normalise_private_key(private_key))
    public_key = keys.PrivateKey(key_bytes).public_key
    # 64 bytes, SEC1 uncompressed point without the 0x04 prefix
    return to_checksum_address(Web3.keccak(public_key.to_bytes())[-20:])


@dataclass(frozen=True, slots=True)
class HundredXDomain:
    """EIP-712 domain of a 100x deployment."""

    chain_id: int

    verifying_contract: ChecksumAddress

    name: str = DOMAIN_NAME

    version: str = DOMAIN_VERSION

    def as_dict(self) -> dict[str, MessageValue]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


def create_domain(
    environment: Environment,
    verifying_contract: VerifyingContractChoice | HexAddress = VerifyingContractChoice.verifier,
) -> HundredXDomain:
    """Create the EIP-712 domain for an environment.

    :param verifying_contract:
        Use the verifier contract (default), the CIAO contract,
        or an explicit address.
    """
    match verifying_contract:
        case VerifyingContractChoice.verifier:
            address = VERIFIER_ADDRESS[environment]
        case VerifyingContractChoice.ciao:
            address = CIAO_ADDRESS[environment]
        case str():
            address = verifying_contract
        case _:
            raise MalformedAddress(f"Unsupported verifying contract: {verifying_contract!r}")

    if not is_hex_address(address):
        raise MalformedAddress(f"Verifying contract is not a 20-byte hex address: {address!r}")

    return HundredXDomain(
        chain_id=CHAIN_ID[environment],
        verifying_contract=to_checksum_address(address),
    )


def sign_digest(digest: bytes, account: LocalAccount) -> HexStr:
    """Sign a 32-byte digest.

    - RFC 6979 deterministic nonce, the same input always gives the same signature

    - ``s`` normalised to the lower half of the curve order

    :return:
        ``0x`` + 130 hex chars, ``r ‖ s ‖ v`` with ``v`` in {27, 28}
    """
    assert len(digest) == 32, f"Digest must be 32 bytes, got {len(digest)}"

    signed = account.unsafe_sign_hash(digest)
    r, s, v = signed.r, signed.s, signed.v

    if v < 27:
        v += 27

    if s > SECP256K1_N // 2:
        s = SECP256K1_N - s
        v = 55 - v  # 27 <-> 28

    signature = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([v])
    return HexStr("0x" + signature.hex())


def recover_signer(digest: bytes, signature: HexStr | bytes) -> ChecksumAddress:
    """Recover the address that made a signature.

    Inverse of :py:func:`sign_digest`.
    """
    if isinstance(signature, str):
        signature = bytes.fromhex(signature.removeprefix("0x"))
    assert len(signature) == 65, f"Signature must be 65 bytes, got {len(signature)}"
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64] - 27
    sig = keys.Signature(vrs=(v, r, s))
    return sig.recover_public_key_from_msg_hash(digest).to_checksum_address()


class HundredXSigner:
    """Signs 100x actions for one account and sub-account.

    - Private key material stays inside this object for its lifetime

    - Immutable after construction
    """

    def __init__(
        self,
        private_key: str,
        domain: HundredXDomain,
        sub_account_id: int = 0,
    ):
        """
        :param private_key:
            Hex private key, with or without ``0x``.

        :param domain:
            EIP-712 domain, see :py:func:`create_domain`.

        :param sub_account_id:
            Sub-account slot, 0-255.

        :raise MalformedKey:
            Key cannot be used.
        """
        if isinstance(sub_account_id, bool) or not isinstance(sub_account_id, int) or not 0 <= sub_account_id <= 255:
            raise OutOfRange(f"Sub-account id must be 0-255, got {sub_account_id!r}")

        key = normalise_private_key(private_key)
        self._account: LocalAccount = Account.from_key(bytes.fromhex(key))
        self._address = derive_address(key)
        assert self._address == self._account.address, "Address derivation mismatch"
        self._domain = domain
        self._sub_account_id = sub_account_id

        logger.debug("Created signer for %s, sub-account %d, chain %d", self._address, sub_account_id, domain.chain_id)

    def __repr__(self):
        return f"<HundredXSigner {self._address} sub-account:{self._sub_account_id}>"

    @property
    def address(self) -> ChecksumAddress:
        return self._address

    @property
    def domain(self) -> HundredXDomain:
        return self._domain

    @property
    def sub_account_id(self) -> int:
        return self._sub_account_id

    @property
    def account(self) -> LocalAccount:
        """The local account, used for on-chain transactions."""
        return self._account

    def hash_typed_data(self, primary_type: PrimaryType | str, message: Mapping[str, MessageValue]) -> bytes:
        return eip712_encode_hash(primary_type, self._domain.as_dict(), message)

    def sign_typed_data(self, primary_type: PrimaryType | str, message: Mapping[str, MessageValue]) -> HexStr:
        """Hash and sign a mapped message.

        :return:
            Hex signature, 132 chars including ``0x``
        """
        digest = self.hash_typed_data(primary_type, message)
        return sign_digest(digest, self._account)

    def sign_action(self, action: SignableAction) -> HexStr:
        """Map an action to its EIP-712 message for this sub-account and sign it."""
        message = action.to_message(self._address, self._sub_account_id)
        return self.sign_typed_data(action.primary_type, message)

    def build_signed_body(self, action: SignableAction) -> dict[str, Any]:
        """Sign an action and return the JSON body the exchange expects."""
        signature = self.sign_action(action)
        return action.to_body(self._address, self._sub_account_id, signature)
