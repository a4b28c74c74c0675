"""On-chain margin deposits to 100x.

Deposits do not go through the API: USDB is approved for, and deposited to,
the CIAO contract on Blast with an ordinary transaction.

Example:

.. code-block:: python

    import os

    from web3 import Web3, HTTPProvider

    from eth_hundredx.account import HundredXSigner, create_domain
    from eth_hundredx.constants import E18, Environment
    from eth_hundredx.deposit import approve_usdb, deposit_usdb, wait_transaction

    web3 = Web3(HTTPProvider(os.environ["JSON_RPC_BLAST"]))
    signer = HundredXSigner(os.environ["PRIVATE_KEY"], create_domain(Environment.testnet), sub_account_id=1)
    tx_hash = approve_usdb(web3, signer, 100 * E18, Environment.testnet)
    wait_transaction(web3, tx_hash)
    tx_hash = deposit_usdb(web3, signer, 100 * E18, Environment.testnet)
    receipt = wait_transaction(web3, tx_hash)
    assert receipt["status"] == 1
"""

import logging

from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction

from eth_hundredx.account import HundredXSigner
from eth_hundredx.constants import CIAO_ADDRESS, USDB_ADDRESS, Environment

logger = logging.getLogger(__name__)

#: The part of ERC-20 ABI we call
ERC20_APPROVE_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

#: The part of CIAO ABI we call
CIAO_DEPOSIT_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "account", "type": "address"},
            {"internalType": "uint8", "name": "subAccountId", "type": "uint8"},
            {"internalType": "uint256", "name": "quantity", "type": "uint256"},
            {"internalType": "address", "name": "asset", "type": "address"},
        ],
        "name": "deposit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def _broadcast(web3: Web3, signer: HundredXSigner, func: ContractFunction) -> HexBytes:
    account = signer.account
    tx = func.build_transaction(
        {
            "from": account.address,
            "nonce": web3.eth.get_transaction_count(account.address),
            "chainId": web3.eth.chain_id,
        }
    )
    signed = account.sign_transaction(tx)
    tx_hash = web3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info("Broadcasted %s, tx %s", func.fn_name, tx_hash.hex())
    return tx_hash


def approve_usdb(web3: Web3, signer: HundredXSigner, amount: int, environment: Environment) -> HexBytes:
    """Allow the CIAO contract to pull ``amount`` USDB (18 decimals) from the account."""
    usdb = web3.eth.contract(address=Web3.to_checksum_address(USDB_ADDRESS[environment]), abi=ERC20_APPROVE_ABI)
    ciao = Web3.to_checksum_address(CIAO_ADDRESS[environment])
    return _broadcast(web3, signer, usdb.functions.approve(ciao, amount))


def deposit_usdb(web3: Web3, signer: HundredXSigner, amount: int, environment: Environment) -> HexBytes:
    """Deposit ``amount`` USDB (18 decimals) to the signer's sub-account.

    Needs a prior :py:func:`approve_usdb`.
    """
    ciao = web3.eth.contract(address=Web3.to_checksum_address(CIAO_ADDRESS[environment]), abi=CIAO_DEPOSIT_ABI)
    usdb = Web3.to_checksum_address(USDB_ADDRESS[environment])
    func = ciao.functions.deposit(signer.address, signer.sub_account_id, amount, usdb)
    return _broadcast(web3, signer, func)


def wait_transaction(web3: Web3, tx_hash: HexBytes, timeout: float = 120.0) -> dict:
    """Wait for a receipt.

    :return:
        Receipt, check ``status``
    """
    receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    logger.info("Transaction %s mined in block %d, status %d", tx_hash.hex(), receipt["blockNumber"], receipt["status"])
    return receipt
