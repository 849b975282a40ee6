"""
OpenOcean API Demo
==================

Swaps, gasless swaps (Permit2), limit orders and DCA orders through the
OpenOcean aggregator, with two interchangeable blockchain clients.

Quick Start:
------------

    from openocean import OpenOceanClient, Trader, create_client, load_settings

    settings = load_settings()
    client = create_client("web3", 8453, settings.account())

    async with Trader(OpenOceanClient(), client, settings) as trader:
        quote = await trader.quote("USDC", "USDT", Decimal("10"))
        print(f"Price: {quote.price}")

        # Limit order valid for one day
        await trader.create_limit_order("USDC", "USDT", Decimal("10"), Decimal("10.1"), "1D")

Supported Networks:
-------------------
- Ethereum (1)
- BSC (56)
- Polygon (137)
- Arbitrum (42161)
- Optimism (10)
- Base (8453)
- Avalanche (43114)
"""

# Version
__version__ = "0.1.0"

# API
from .api import OpenOceanClient, OpenOceanError

# Chain clients
from .clients import (
    ChainClient,
    Web3Client,
    JsonRpcClient,
    RpcError,
    TransactionError,
    CLIENT_KINDS,
    create_client,
)

# Config
from .config import ConfigError, Settings, load_settings

# Models
from .models import (
    COMMON_TOKENS,
    NATIVE_TOKEN,
    TokenInfo,
    Quote,
    SwapTransaction,
    GaslessQuote,
    Order,
    OrderMode,
    OrderStatus,
    SwapResult,
    EXPIRE_OPTIONS,
    EXPIRE_LABELS,
    DCA_INTERVAL_UNITS,
)

# Networks
from .networks import NETWORKS, NetworkConfig, get_network, is_gasless_chain

# Orders & permits
from .orders import LimitOrderBuilder, LimitOrderParams, build_dca_payload
from .permit2 import PermitData, build_permit

# Trader
from .trader import GaslessNotSupportedError, Trader

# Wallet
from .wallet import WalletEncryption, format_address, load_account, save_keyfile

__all__ = [
    # Version
    "__version__",

    # API
    "OpenOceanClient",
    "OpenOceanError",

    # Chain clients
    "ChainClient",
    "Web3Client",
    "JsonRpcClient",
    "RpcError",
    "TransactionError",
    "CLIENT_KINDS",
    "create_client",

    # Config
    "ConfigError",
    "Settings",
    "load_settings",

    # Models
    "COMMON_TOKENS",
    "NATIVE_TOKEN",
    "TokenInfo",
    "Quote",
    "SwapTransaction",
    "GaslessQuote",
    "Order",
    "OrderMode",
    "OrderStatus",
    "SwapResult",
    "EXPIRE_OPTIONS",
    "EXPIRE_LABELS",
    "DCA_INTERVAL_UNITS",

    # Networks
    "NETWORKS",
    "NetworkConfig",
    "get_network",
    "is_gasless_chain",

    # Orders & permits
    "LimitOrderBuilder",
    "LimitOrderParams",
    "build_dca_payload",
    "PermitData",
    "build_permit",

    # Trader
    "GaslessNotSupportedError",
    "Trader",

    # Wallet
    "WalletEncryption",
    "format_address",
    "load_account",
    "save_keyfile",
]
