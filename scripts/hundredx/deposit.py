"""Deposit USDB margin to a 100x sub-account on Blast.

To run:

.. code-block:: shell

    export PRIVATE_KEY=...
    export JSON_RPC_BLAST=...
    python scripts/hundredx/deposit.py --amount 10
"""

import logging
from decimal import Decimal

import typer
from web3 import HTTPProvider, Web3

from eth_hundredx.account import HundredXSigner, create_domain
from eth_hundredx.constants import CHAIN_ID, E18
from eth_hundredx.deposit import approve_usdb, deposit_usdb, wait_transaction
from eth_hundredx.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main(
    private_key: str = typer.Option(..., envvar="PRIVATE_KEY", help="100x account private key"),
    json_rpc_blast: str = typer.Option(..., envvar="JSON_RPC_BLAST", help="Blast JSON-RPC URL"),
    amount: str = typer.Option(..., help="USDB amount"),
    sub_account_id: int = typer.Option(1, envvar="SUB_ACCOUNT_ID", help="Sub-account id"),
):
    setup_console_logging(default_log_level="info")

    web3 = Web3(HTTPProvider(json_rpc_blast))
    chain_id = web3.eth.chain_id
    environment = next(env for env, cid in CHAIN_ID.items() if cid == chain_id)
    logger.info("Connected to chain %d (%s), last block is %s", chain_id, environment.value, f"{web3.eth.block_number:,}")

    signer = HundredXSigner(private_key, create_domain(environment), sub_account_id=sub_account_id)
    raw_amount = int(Decimal(amount) * E18)

    receipt = wait_transaction(web3, approve_usdb(web3, signer, raw_amount, environment))
    assert receipt["status"] == 1, f"Approve failed: {receipt}"

    receipt = wait_transaction(web3, deposit_usdb(web3, signer, raw_amount, environment))
    assert receipt["status"] == 1, f"Deposit failed: {receipt}"

    logger.info("Deposited %s USDB to %s sub-account %d", amount, signer.address, sub_account_id)


if __name__ == "__main__":
    typer.run(main)
