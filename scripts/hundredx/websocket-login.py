"""Log in to the 100x WebSocket API and follow account updates.

To run:

.. code-block:: shell

    export PRIVATE_KEY=...
    python scripts/hundredx/websocket-login.py
"""

import asyncio
import logging

import typer

from eth_hundredx.constants import PRODUCT_ETH_PERP, Environment
from eth_hundredx.utils import setup_console_logging
from eth_hundredx.websocket import HundredXWebsocketClient, ticker_stream

logger = logging.getLogger(__name__)


async def run(private_key: str, sub_account_id: int, environment: Environment, seconds: float):
    async with HundredXWebsocketClient(private_key, environment=environment, sub_account_id=sub_account_id) as client:
        await client.connect(stream=True)

        response = await asyncio.wait_for(await client.login("LOGIN"), 10)
        logger.info("Login: success:%s result:%s error:%s", response.success, response.result, response.error)
        if not response.success:
            return

        await client.account_updates("UPDATES")
        await client.subscribe("SUBSCRIBE", [ticker_stream(PRODUCT_ETH_PERP)])

        async def drain(name, queue):
            while True:
                logger.info("%s: %s", name, await queue.get())

        tasks = [
            asyncio.create_task(drain("rpc", client.rpc.messages)),
            asyncio.create_task(drain("stream", client.stream.messages)),
        ]
        await asyncio.sleep(seconds)
        for task in tasks:
            task.cancel()


def main(
    private_key: str = typer.Option(..., envvar="PRIVATE_KEY", help="100x account private key"),
    sub_account_id: int = typer.Option(1, envvar="SUB_ACCOUNT_ID", help="Sub-account id"),
    seconds: float = typer.Option(30.0, help="How long to listen"),
    mainnet: bool = typer.Option(False, help="Use mainnet instead of testnet"),
):
    setup_console_logging(default_log_level="info")
    environment = Environment.mainnet if mainnet else Environment.testnet
    asyncio.run(run(private_key, sub_account_id, environment, seconds))


if __name__ == "__main__":
    typer.run(main)
