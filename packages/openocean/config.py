"""
Configuration management
Defaults < JSON config file < environment (.env is loaded first)
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from .api import DEFAULT_BASE_URL
from .networks import get_network
from .permit2 import GASLESS_SPENDER, PERMIT2_ADDRESS

logger = logging.getLogger(__name__)

# OpenOcean exchange (swap router), spender for regular swaps
EXCHANGE_CONTRACT = "0x6352a56caadC4F1E25CD6c75970Fa768A3304e64"

SECRET_FIELDS = ("private_key", "keyfile_password")


class ConfigError(Exception):
    """Missing or invalid configuration"""
    pass


@dataclass
class Settings:
    """Runtime settings for the API client, chain clients and flows"""
    base_url: str = DEFAULT_BASE_URL

    # Wallet
    private_key: Optional[str] = None
    keyfile: Optional[str] = None
    keyfile_password: Optional[str] = None

    # Chain
    default_chain: int = 8453
    client_kind: str = "web3"
    rpc_urls: Dict[int, str] = field(default_factory=dict)

    # Order contracts by chain id
    limit_order_contract: Dict[int, str] = field(default_factory=dict)
    dca_contract: Dict[int, str] = field(default_factory=dict)

    # Contracts
    exchange_contract: str = EXCHANGE_CONTRACT
    permit2_address: str = PERMIT2_ADDRESS
    gasless_spender: str = GASLESS_SPENDER

    # Trading
    request_timeout: float = 30.0
    gas_price_multiplier: Decimal = Decimal("1.2")
    default_slippage: Decimal = Decimal("1")  # 1 means 1%

    # Gasless status polling
    poll_interval: float = 2.0
    poll_attempts: int = 31

    def rpc_url(self, chain_id: int) -> str:
        """Custom RPC URL for a chain, else the network default"""
        return self.rpc_urls.get(int(chain_id)) or get_network(chain_id).rpc_url

    def account(self):
        """Signing account (LocalAccount)"""
        from .wallet import load_account
        return load_account(self.private_key, self.keyfile, self.keyfile_password)

    def to_dict(self) -> Dict[str, Any]:
        """Settings as JSON-friendly dict, secrets masked"""
        result = {}
        for key, value in asdict(self).items():
            if key in SECRET_FIELDS and value:
                value = "***"
            elif isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, dict):
                value = {str(k): v for k, v in value.items()}
            result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create settings from a dictionary (JSON config file)"""
        settings = cls()
        for key, value in data.items():
            if not hasattr(settings, key):
                logger.warning("Ignoring unknown config key: %s", key)
                continue
            if key in ("rpc_urls", "limit_order_contract", "dca_contract"):
                value = {int(k): v for k, v in value.items()}
            elif key in ("gas_price_multiplier", "default_slippage"):
                value = Decimal(str(value))
            setattr(settings, key, value)
        return settings


def _chain_map_from_env(prefix: str) -> Dict[int, str]:
    """{chain_id: value} from PREFIX_<chainId> variables"""
    result = {}
    for key, value in os.environ.items():
        if key.startswith(prefix) and key[len(prefix):].isdigit() and value:
            result[int(key[len(prefix):])] = value
    return result


def load_settings(config_path: Optional[str] = None, env_file: Optional[str] = None) -> Settings:
    """
    Load settings

    Args:
        config_path: Optional JSON file
        env_file: Optional .env path (default: search from cwd)
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    if config_path:
        if not os.path.exists(config_path):
            raise ConfigError(f"Config file not found: {config_path}")
        with open(config_path) as f:
            try:
                settings = Settings.from_dict(json.load(f))
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    else:
        settings = Settings()

    env = os.environ
    if env.get("OPENOCEAN_BASE_URL"):
        settings.base_url = env["OPENOCEAN_BASE_URL"]
    if env.get("PRIVATE_KEY"):
        settings.private_key = env["PRIVATE_KEY"]
    if env.get("KEYFILE"):
        settings.keyfile = env["KEYFILE"]
    if env.get("KEYFILE_PASSWORD"):
        settings.keyfile_password = env["KEYFILE_PASSWORD"]
    if env.get("CHAIN"):
        try:
            settings.default_chain = get_network(env["CHAIN"]).chain_id
        except ValueError as e:
            raise ConfigError(str(e)) from e
    if env.get("CLIENT"):
        settings.client_kind = env["CLIENT"]
    if env.get("OPENOCEAN_TIMEOUT"):
        settings.request_timeout = float(env["OPENOCEAN_TIMEOUT"])

    settings.rpc_urls.update(_chain_map_from_env("RPC_URL_"))
    settings.limit_order_contract.update(_chain_map_from_env("LIMIT_ORDER_CONTRACT_"))
    settings.dca_contract.update(_chain_map_from_env("DCA_CONTRACT_"))

    return settings
