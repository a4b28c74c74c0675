"""Withdraw USDB margin from a 100x sub-account.

To run:

.. code-block:: shell

    export PRIVATE_KEY=...
    python scripts/hundredx/withdraw.py --amount 10
"""

import logging
from decimal import Decimal

import typer

from eth_hundredx.api import HundredXApiClient
from eth_hundredx.constants import E18, Environment
from eth_hundredx.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main(
    private_key: str = typer.Option(..., envvar="PRIVATE_KEY", help="100x account private key"),
    amount: str = typer.Option(..., help="USDB amount"),
    sub_account_id: int = typer.Option(1, envvar="SUB_ACCOUNT_ID", help="Sub-account id"),
    mainnet: bool = typer.Option(False, help="Use mainnet instead of testnet"),
):
    setup_console_logging(default_log_level="info")

    environment = Environment.mainnet if mainnet else Environment.testnet
    client = HundredXApiClient(private_key, environment=environment, sub_account_id=sub_account_id)

    resp = client.get_spot_balances()
    logger.info("Balances before: %s", resp.text)

    resp = client.withdraw(int(Decimal(amount) * E18))
    logger.info("Withdraw: %d %s", resp.status_code, resp.text)
    if not resp.ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    typer.run(main)
