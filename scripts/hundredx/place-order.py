"""Place a far-from-market limit order on 100x testnet and cancel it.

To run:

.. code-block:: shell

    export PRIVATE_KEY=...
    python scripts/hundredx/place-order.py --symbol ethperp --price 1000 --quantity 0.01
"""

import logging
from decimal import Decimal

import typer

from eth_hundredx.api import HundredXApiClient
from eth_hundredx.constants import E18, PRODUCTS, Environment
from eth_hundredx.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main(
    private_key: str = typer.Option(..., envvar="PRIVATE_KEY", help="100x account private key"),
    symbol: str = typer.Option("ethperp", help="Product symbol"),
    price: str = typer.Option(..., help="Limit price in USD"),
    quantity: str = typer.Option(..., help="Quantity in base asset"),
    sell: bool = typer.Option(False, help="Sell instead of buy"),
    sub_account_id: int = typer.Option(1, envvar="SUB_ACCOUNT_ID", help="Sub-account id"),
    mainnet: bool = typer.Option(False, help="Use mainnet instead of testnet"),
):
    setup_console_logging(default_log_level="info")

    product = PRODUCTS[symbol]
    environment = Environment.mainnet if mainnet else Environment.testnet
    client = HundredXApiClient(private_key, environment=environment, sub_account_id=sub_account_id)
    logger.info("Using %s", client)

    now = client.now()
    resp = client.new_order(
        product=product,
        is_buy=not sell,
        price=int(Decimal(price) * E18),
        quantity=int(Decimal(quantity) * E18),
        expiration=now + 60_000,
        nonce=now,
    )
    logger.info("New order: %d %s", resp.status_code, resp.text)
    if not resp.ok:
        raise typer.Exit(1)

    order_id = resp.json()["id"]
    resp = client.cancel_order(product, order_id)
    logger.info("Cancel order %s: %d %s", order_id, resp.status_code, resp.text)


if __name__ == "__main__":
    typer.run(main)
