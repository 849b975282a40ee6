"""
Shared fixtures: a deterministic account and an in-memory chain client.
"""
from typing import Any, Dict, Optional

import pytest
from eth_abi import encode
from eth_account import Account
from eth_utils import keccak, to_hex

from openocean.abi import encode_call
from openocean.clients import ChainClient

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

ALLOWANCE_SELECTOR = encode_call("allowance(address,address)", ["address", "address"], [
    "0x0000000000000000000000000000000000000000", "0x0000000000000000000000000000000000000000",
])[:10]
NONCE_SELECTOR = encode_call("permit2NextNonce(address)", ["address"], [
    "0x0000000000000000000000000000000000000000",
])[:10]

ENV_KEYS = [
    "OPENOCEAN_BASE_URL", "PRIVATE_KEY", "KEYFILE", "KEYFILE_PASSWORD", "CHAIN",
    "CLIENT", "OPENOCEAN_TIMEOUT", "RPC_URL_8453", "LIMIT_ORDER_CONTRACT_8453", "DCA_CONTRACT_8453",
]


class FakeChainClient(ChainClient):
    """ChainClient answering from memory, records what gets sent"""

    kind = "fake"

    def __init__(
        self,
        chain_id: int = 8453,
        allowance: int = 0,
        permit_nonce: int = 0,
        receipt_status: int = 1,
        gas_price: int = 1_000_000_000,
    ):
        super().__init__(chain_id, PRIVATE_KEY, rpc_url="http://localhost:8545")
        self.allowance_value = allowance
        self.permit_nonce = permit_nonce
        self.receipt_status = receipt_status
        self.gas_price = gas_price
        self.sent = []
        self.estimated = []
        self.calls = []
        self.closed = False

    def close(self):
        self.closed = True

    def get_gas_price(self) -> int:
        return self.gas_price

    def get_chain_id(self) -> int:
        return self.chain_id

    def get_transaction_count(self) -> int:
        return len(self.sent)

    def call(self, to: str, data: str) -> bytes:
        self.calls.append((to, data))
        if data.startswith(NONCE_SELECTOR):
            return encode(["uint256"], [self.permit_nonce])
        return encode(["uint256"], [self.allowance_value])

    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        self.estimated.append(tx)
        return 100_000

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        self.sent.append(raw_transaction)
        return to_hex(keccak(raw_transaction))

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return {"transactionHash": tx_hash, "status": self.receipt_status, "gasUsed": 21000}


@pytest.fixture
def account():
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture
def fake_client():
    return FakeChainClient()


@pytest.fixture
def clean_env(monkeypatch):
    """Unset config variables; teardown also drops values loaded from a .env file"""
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


@pytest.fixture
def make_client():
    """Factory for FakeChainClient with custom chain state"""
    return FakeChainClient
