"""
Multi-chain EVM network configuration.
Supports the chains exposed by the OpenOcean demo: Ethereum, BSC, Polygon,
Arbitrum, Optimism, Base and Avalanche.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union


@dataclass
class NetworkConfig:
    """Configuration for an EVM network."""
    chain_id: int
    code: str  # OpenOcean chain code (eth, bsc, base, ...)
    name: str
    symbol: str
    rpc_url: str
    explorer_url: str
    currency_name: str = ""
    decimals: int = 18

    @property
    def hex_chain_id(self) -> str:
        return hex(self.chain_id)

    @property
    def supports_gasless(self) -> bool:
        return self.code in GASLESS_CHAINS

    def to_wallet_params(self) -> Dict:
        """EIP-3085 parameters for wallet_addEthereumChain."""
        return {
            "chainId": self.hex_chain_id,
            "chainName": self.name,
            "nativeCurrency": {
                "name": self.currency_name or self.symbol,
                "symbol": self.symbol,
                "decimals": self.decimals,
            },
            "rpcUrls": [self.rpc_url],
            "blockExplorerUrls": [self.explorer_url],
        }


NETWORKS: Dict[str, NetworkConfig] = {
    "ethereum": NetworkConfig(
        chain_id=1,
        code="eth",
        name="Ethereum Mainnet",
        symbol="ETH",
        currency_name="Ether",
        rpc_url="https://eth.llamarpc.com",
        explorer_url="https://etherscan.io",
    ),
    "bsc": NetworkConfig(
        chain_id=56,
        code="bsc",
        name="BSC",
        symbol="BNB",
        currency_name="BNB",
        rpc_url="https://bsc-dataseed.binance.org",
        explorer_url="https://bscscan.com",
    ),
    "polygon": NetworkConfig(
        chain_id=137,
        code="polygon",
        name="Polygon",
        symbol="MATIC",
        currency_name="MATIC",
        rpc_url="https://polygon-rpc.com",
        explorer_url="https://polygonscan.com",
    ),
    "arbitrum": NetworkConfig(
        chain_id=42161,
        code="arbitrum",
        name="Arbitrum One",
        symbol="ETH",
        currency_name="Ether",
        rpc_url="https://arb1.arbitrum.io/rpc",
        explorer_url="https://arbiscan.io",
    ),
    "optimism": NetworkConfig(
        chain_id=10,
        code="optimism",
        name="Optimism",
        symbol="ETH",
        currency_name="Ether",
        rpc_url="https://mainnet.optimism.io",
        explorer_url="https://optimistic.etherscan.io",
    ),
    "base": NetworkConfig(
        chain_id=8453,
        code="base",
        name="Base",
        symbol="ETH",
        currency_name="Ether",
        rpc_url="https://mainnet.base.org",
        explorer_url="https://basescan.org",
    ),
    "avalanche": NetworkConfig(
        chain_id=43114,
        code="avax",
        name="Avalanche C-Chain",
        symbol="AVAX",
        currency_name="Avalanche",
        rpc_url="https://api.avax.network/ext/bc/C/rpc",
        explorer_url="https://snowtrace.io",
    ),
}

# Chain codes on which OpenOcean relays gasless swaps
GASLESS_CHAINS = ["arbitrum", "bsc", "sonic", "base", "sei", "eth", "hyperevm", "avax", "uni"]

_ALIASES = {
    "eth": "ethereum",
    "mainnet": "ethereum",
    "bnb": "bsc",
    "matic": "polygon",
    "arb": "arbitrum",
    "op": "optimism",
    "avax": "avalanche",
}

_BY_CHAIN_ID: Dict[int, NetworkConfig] = {n.chain_id: n for n in NETWORKS.values()}


def get_network(network: Union[str, int]) -> NetworkConfig:
    """
    Get network configuration by name, chain code or chain id.

    Args:
        network: e.g. 'base', 'eth', 8453 or '8453'

    Returns:
        NetworkConfig for the requested network

    Raises:
        ValueError: If network is not supported
    """
    if isinstance(network, int) or str(network).isdigit():
        config = _BY_CHAIN_ID.get(int(network))
        if config is None:
            raise ValueError(f"Unsupported chain id: {network}")
        return config

    name = network.lower()
    name = _ALIASES.get(name, name)
    if name not in NETWORKS:
        supported = ", ".join(NETWORKS.keys())
        raise ValueError(f"Unknown network: {network}. Supported: {supported}")
    return NETWORKS[name]


def get_chain_info(chain_id: int) -> Optional[NetworkConfig]:
    """Get chain info by id, None if unsupported."""
    return _BY_CHAIN_ID.get(int(chain_id))


def is_chain_supported(chain_id: int) -> bool:
    return int(chain_id) in _BY_CHAIN_ID


def is_gasless_chain(network: Union[str, int]) -> bool:
    """True if OpenOcean relays gasless swaps on this chain (code or id)."""
    if isinstance(network, int) or str(network).isdigit():
        config = get_chain_info(int(network))
        return bool(config and config.supports_gasless)
    return network.lower() in GASLESS_CHAINS


def list_networks() -> List[str]:
    """List available network names."""
    return list(NETWORKS.keys())
