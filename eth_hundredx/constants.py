"""100x exchange constants and configuration.

This module defines API endpoints, contract addresses, chain ids and enums
for the 100x perpetual futures exchange on Blast.

All per-network values are dictionaries keyed by :py:class:`Environment`.
"""

import enum
from typing import NamedTuple

from eth_typing import HexAddress


class Environment(enum.Enum):
    """Which 100x deployment to talk to."""

    #: Blast mainnet
    mainnet = "mainnet"

    #: Blast Sepolia testnet, staging API
    testnet = "testnet"


#: EIP-712 domain name
DOMAIN_NAME = "100x"

#: EIP-712 domain version
DOMAIN_VERSION = "0.0.0"

#: REST API base URLs
API_BASE_URL: dict[Environment, str] = {
    Environment.mainnet: "https://api.100x.finance/v1",
    Environment.testnet: "https://api.staging.100x.finance/v1",
}

#: WebSocket JSON-RPC URLs
WS_RPC_URL: dict[Environment, str] = {
    Environment.mainnet: "wss://api.100x.finance/v1/ws/operate",
    Environment.testnet: "wss://api.staging.100x.finance/v1/ws/operate",
}

#: WebSocket market data stream URLs
WS_STREAM_URL: dict[Environment, str] = {
    Environment.mainnet: "wss://stream.100x.finance/",
    Environment.testnet: "wss://stream.staging.100x.finance/",
}

#: Blast chain ids
CHAIN_ID: dict[Environment, int] = {
    Environment.mainnet: 81457,
    Environment.testnet: 168587773,
}

#: Verifier contract used as the default EIP-712 ``verifyingContract``
VERIFIER_ADDRESS: dict[Environment, HexAddress] = {
    Environment.mainnet: "0x65CbB566D1A6E60107c0c7888761de1AdFa1ccC0",
    Environment.testnet: "0x02Ca4fcB63E2D3C89fa20D86ccDcfc540c683545",
}

#: CIAO contract, holds deposits.
#:
#: Can also be selected as the EIP-712 ``verifyingContract``,
#: see :py:class:`VerifyingContractChoice`.
CIAO_ADDRESS: dict[Environment, HexAddress] = {
    Environment.mainnet: "0x1BaEbEE6B00B3f559B0Ff0719B47E0aF22A6bfC4",
    Environment.testnet: "0x0c3b9472b3923CfE199bAE24B5f5bD75FAD2bae9",
}

#: USDB token, the margin asset
USDB_ADDRESS: dict[Environment, HexAddress] = {
    Environment.mainnet: "0x4300000000000000000000000000000000000003",
    Environment.testnet: "0x79A59c326C715AC2d31C169C85d1232319E341ce",
}


class VerifyingContractChoice(enum.Enum):
    """Which deployed contract is put into the EIP-712 domain."""

    #: :py:data:`VERIFIER_ADDRESS`
    verifier = "verifier"

    #: :py:data:`CIAO_ADDRESS`
    ciao = "ciao"


class MarginAsset(enum.Enum):
    usdb = "USDB"


#: Margin asset addresses per environment
MARGIN_ASSET: dict[Environment, dict[MarginAsset, HexAddress]] = {
    Environment.mainnet: {MarginAsset.usdb: USDB_ADDRESS[Environment.mainnet]},
    Environment.testnet: {MarginAsset.usdb: USDB_ADDRESS[Environment.testnet]},
}


class Product(NamedTuple):
    """A tradeable perpetual market.

    Only the id is signed, as ``productId``; the symbol goes to query strings.
    """

    symbol: str
    id: int


PRODUCT_ETH_PERP = Product("ethperp", 1002)
PRODUCT_BTC_PERP = Product("btcperp", 1003)
PRODUCT_SOL_PERP = Product("solperp", 1004)
PRODUCT_BLAST_PERP = Product("blastperp", 1006)

#: All known products by symbol
PRODUCTS: dict[str, Product] = {p.symbol: p for p in (PRODUCT_ETH_PERP, PRODUCT_BTC_PERP, PRODUCT_SOL_PERP, PRODUCT_BLAST_PERP)}


class OrderType(enum.IntEnum):
    limit = 0
    limit_maker = 1
    market = 2
    stop_loss = 3
    stop_loss_limit = 4
    take_profit = 5
    take_profit_limit = 6


class TimeInForce(enum.IntEnum):
    #: Good till cancelled
    gtc = 0

    #: Fill or kill
    fok = 1

    #: Immediate or cancel
    ioc = 2


class Interval(enum.Enum):
    """Kline intervals."""

    m1 = "1m"
    m5 = "5m"
    m15 = "15m"
    m30 = "30m"
    h1 = "1h"
    h2 = "2h"
    h4 = "4h"
    h8 = "8h"
    d1 = "1d"
    d3 = "3d"
    w1 = "1w"


class OrderBookLimit(enum.IntEnum):
    """How many price levels the order book returns per side."""

    five = 5
    ten = 10
    twenty = 20


#: Login message text, signed under ``LoginMessage``
LOGIN_MESSAGE = "I want to log into 100x.finance"

#: Login timestamps are forward dated by this much, because
#: the server rejects login timestamps older than 10 seconds
LOGIN_TIMESTAMP_OFFSET_MS = 10_000

#: JSON-RPC version string in every WebSocket envelope
JSONRPC_VERSION = "2.0"

#: Default HTTP request timeout in seconds
DEFAULT_TIMEOUT = 10.0

#: Connection pool size of the HTTP session
DEFAULT_POOL_MAXSIZE = 100

# Prices and quantities are 18 decimal fixed point
E10 = 10**10
E12 = 10**12
E14 = 10**14
E15 = 10**15
E16 = 10**16
E17 = 10**17
E18 = 10**18
E19 = 10**19
E20 = 10**20
E21 = 10**21
E22 = 10**22
