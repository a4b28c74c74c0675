"""On-chain deposit helpers against a mocked Web3."""

import pytest
from hexbytes import HexBytes
from web3 import Web3

from eth_hundredx.constants import CIAO_ADDRESS, E18, USDB_ADDRESS, Environment
from eth_hundredx.deposit import CIAO_DEPOSIT_ABI, ERC20_APPROVE_ABI, approve_usdb, deposit_usdb, wait_transaction

TX_HASH = HexBytes("0x" + "11" * 32)


@pytest.fixture
def web3(mocker):
    web3 = mocker.MagicMock()
    web3.eth.chain_id = 168587773
    web3.eth.get_transaction_count.return_value = 3
    web3.eth.send_raw_transaction.return_value = TX_HASH
    return web3


def unsigned_tx(signer, to: str) -> dict:
    return {
        "from": signer.address,
        "to": Web3.to_checksum_address(to),
        "value": 0,
        "gas": 100_000,
        "gasPrice": 10**9,
        "nonce": 3,
        "chainId": 168587773,
        "data": "0x",
    }


def test_approve_usdb(web3, signer):
    contract = web3.eth.contract.return_value
    tx = unsigned_tx(signer, USDB_ADDRESS[Environment.testnet])
    contract.functions.approve.return_value.build_transaction.return_value = tx

    tx_hash = approve_usdb(web3, signer, 100 * E18, Environment.testnet)

    assert tx_hash == TX_HASH
    web3.eth.contract.assert_called_once_with(
        address=Web3.to_checksum_address(USDB_ADDRESS[Environment.testnet]),
        abi=ERC20_APPROVE_ABI,
    )
    contract.functions.approve.assert_called_once_with(Web3.to_checksum_address(CIAO_ADDRESS[Environment.testnet]), 100 * E18)
    contract.functions.approve.return_value.build_transaction.assert_called_once_with(
        {"from": signer.address, "nonce": 3, "chainId": 168587773}
    )
    expected_raw = signer.account.sign_transaction(tx).raw_transaction
    web3.eth.send_raw_transaction.assert_called_once_with(expected_raw)


def test_deposit_usdb(web3, signer):
    contract = web3.eth.contract.return_value
    contract.functions.deposit.return_value.build_transaction.return_value = unsigned_tx(signer, CIAO_ADDRESS[Environment.testnet])

    assert deposit_usdb(web3, signer, 5 * E18, Environment.testnet) == TX_HASH

    web3.eth.contract.assert_called_once_with(
        address=Web3.to_checksum_address(CIAO_ADDRESS[Environment.testnet]),
        abi=CIAO_DEPOSIT_ABI,
    )
    contract.functions.deposit.assert_called_once_with(
        signer.address,
        1,
        5 * E18,
        Web3.to_checksum_address(USDB_ADDRESS[Environment.testnet]),
    )
    web3.eth.send_raw_transaction.assert_called_once()


def test_wait_transaction(web3):
    web3.eth.wait_for_transaction_receipt.return_value = {"blockNumber": 10, "status": 1}
    receipt = wait_transaction(web3, TX_HASH, timeout=5)
    assert receipt["status"] == 1
    web3.eth.wait_for_transaction_receipt.assert_called_once_with(TX_HASH, timeout=5)
