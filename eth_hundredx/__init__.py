"""100x perpetual futures exchange integration.

100x is a perpetual futures exchange on Blast. Every state changing action
and every authenticated read is an EIP-712 signature made by the account key.

This package provides:

- Key to address derivation and low-s EIP-712 signing
- Typed signable actions with their signed message and request body projections
- Synchronous REST client
- Asyncio JSON-RPC WebSocket client with market data stream subscriptions
- On-chain USDB deposits

Key components:

- :py:mod:`eth_hundredx.account` - Signer and EIP-712 domain
- :py:mod:`eth_hundredx.eip_712` - Typed data digest
- :py:mod:`eth_hundredx.schema` - Primary types and their fields
- :py:mod:`eth_hundredx.actions` - Signable actions
- :py:mod:`eth_hundredx.api` - REST client
- :py:mod:`eth_hundredx.websocket` - WebSocket client
- :py:mod:`eth_hundredx.deposit` - On-chain deposits
- :py:mod:`eth_hundredx.constants` - URLs, addresses and enums

Example workflow::

    from eth_hundredx.api import HundredXApiClient
    from eth_hundredx.constants import E18, PRODUCT_ETH_PERP, Environment

    client = HundredXApiClient(
        private_key="0x...",
        environment=Environment.testnet,
        sub_account_id=1,
    )

    resp = client.get_spot_balances()
    print(resp.json())

    resp = client.new_order(
        product=PRODUCT_ETH_PERP,
        is_buy=True,
        price=3300 * E18,
        quantity=E18 // 10,
        expiration=client.now() + 60_000,
    )

Environment variables for testing:
    - ``HUNDREDX_PRIVATE_KEY`` - Testnet account private key, enables live API tests
"""
