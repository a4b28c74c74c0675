"""Shared pytest fixtures for 100x tests."""

import pytest
from requests import Session

from eth_hundredx.account import HundredXSigner, create_domain
from eth_hundredx.api import HundredXApiClient
from eth_hundredx.constants import Environment

#: Well known development key, Anvil/Hardhat account #1
TEST_PRIVATE_KEY = "59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"

TEST_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture
def private_key() -> str:
    return TEST_PRIVATE_KEY


@pytest.fixture
def address() -> str:
    return TEST_ADDRESS


@pytest.fixture
def testnet_domain():
    return create_domain(Environment.testnet)


@pytest.fixture
def signer(private_key, testnet_domain) -> HundredXSigner:
    return HundredXSigner(private_key, testnet_domain, sub_account_id=1)


@pytest.fixture
def api_client(private_key) -> HundredXApiClient:
    """REST client on a plain session, nothing is sent unless a test patches ``send``."""
    return HundredXApiClient(
        private_key,
        environment=Environment.testnet,
        sub_account_id=1,
        session=Session(),
    )
