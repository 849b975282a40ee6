"""
Blockchain clients - two interchangeable ways of reading the chain and
sending signed transactions:

- Web3Client:    web3.py (Web3 + HTTPProvider)
- JsonRpcClient: plain JSON-RPC over httpx, signing locally with eth_account

Both expose the same ChainClient interface, so every flow in the trader
works with either one.
"""

import logging
import time
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

import httpx
from eth_abi import decode
from eth_account import Account
from eth_account.datastructures import SignedMessage
from eth_account.signers.local import LocalAccount
from eth_utils import to_bytes, to_checksum_address, to_hex
from web3 import Web3
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from .abi import encode_call
from .models import MAX_UINT256
from .networks import get_network
from .orders import encode_cancel_order

logger = logging.getLogger(__name__)

# Chains that need the POA extraData middleware
POA_CHAINS = (56, 137)

GAS_LIMIT_MULTIPLIER = Decimal("1.2")


class RpcError(Exception):
    """JSON-RPC node error"""
    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.code = code


class TransactionError(Exception):
    """Transaction reverted or never confirmed"""
    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ChainClient(ABC):
    """
    Signer bound to one chain

    Subclasses implement the RPC primitives; approvals, permits, typed data
    signing and order cancellation are shared.
    """

    kind = ""

    def __init__(
        self,
        chain_id: int,
        account: Union[str, LocalAccount],
        rpc_url: Optional[str] = None,
    ):
        self.chain_id = int(chain_id)
        self.rpc_url = rpc_url or get_network(self.chain_id).rpc_url
        if isinstance(account, str):
            if not account.startswith("0x"):
                account = "0x" + account
            account = Account.from_key(account)
        self.account: LocalAccount = account

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        pass

    @property
    def address(self) -> str:
        return self.account.address

    # ------------------------------------------------------------------
    # RPC primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def get_gas_price(self) -> int:
        ...

    @abstractmethod
    def get_chain_id(self) -> int:
        ...

    @abstractmethod
    def get_transaction_count(self) -> int:
        ...

    @abstractmethod
    def call(self, to: str, data: str) -> bytes:
        ...

    @abstractmethod
    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        ...

    @abstractmethod
    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        ...

    # ------------------------------------------------------------------
    # Shared operations
    # ------------------------------------------------------------------

    def chain_mismatch(self) -> Optional[str]:
        """Warning when the RPC is unreachable or serves another chain, else None"""
        try:
            actual = self.get_chain_id()
        except (RpcError, Web3Exception, OSError, ValueError) as e:
            return f"RPC unreachable: {e}"
        if actual != self.chain_id:
            return f"RPC reports chain {actual}, expected {self.chain_id}"
        return None

    def buffered_gas_price(self, multiplier: Union[float, Decimal] = Decimal("1.2")) -> int:
        """Network gas price with a safety buffer (20% by default)"""
        return int(Decimal(self.get_gas_price()) * Decimal(str(multiplier)))

    def send_transaction(self, tx: Dict[str, Any]) -> str:
        """
        Fill, sign and broadcast a transaction

        Missing nonce, chainId, gasPrice and gas are filled in; gas is the
        node estimate plus 20%.

        Returns:
            Transaction hash (0x hex)
        """
        tx = dict(tx)
        tx.pop("from", None)
        tx["to"] = to_checksum_address(tx["to"])
        tx["value"] = int(tx.get("value", 0) or 0)
        tx.setdefault("nonce", self.get_transaction_count())
        tx.setdefault("chainId", self.chain_id)
        if "maxFeePerGas" not in tx:
            tx["gasPrice"] = int(tx.get("gasPrice") or self.get_gas_price())
        if "gas" not in tx:
            estimate = self.estimate_gas({**tx, "from": self.address})
            tx["gas"] = int(Decimal(estimate) * GAS_LIMIT_MULTIPLIER)

        signed = self.account.sign_transaction(tx)
        tx_hash = self.send_raw_transaction(signed.raw_transaction)
        logger.info("Sent transaction %s (%s client)", tx_hash, self.kind)
        return tx_hash

    def wait_for_receipt(self, tx_hash: str, timeout: int = 120, poll_interval: float = 2.0) -> Dict[str, Any]:
        """Wait until the transaction is mined, raise if it reverted"""
        deadline = time.monotonic() + timeout
        while True:
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                break
            if time.monotonic() >= deadline:
                raise TransactionError(f"Transaction {tx_hash} not mined after {timeout}s", tx_hash)
            time.sleep(poll_interval)

        if int(receipt["status"]) != 1:
            raise TransactionError(f"Transaction {tx_hash} reverted", tx_hash)
        return receipt

    def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, List[Dict[str, str]]],
        message: Dict[str, Any],
    ) -> SignedMessage:
        """EIP-712 signature with the local account"""
        return self.account.sign_typed_data(domain, types, message)

    def allowance(self, token: str, spender: str, owner: Optional[str] = None) -> int:
        """ERC20 allowance of `owner` (default: this account) for `spender`"""
        data = encode_call(
            "allowance(address,address)",
            ["address", "address"],
            [to_checksum_address(owner or self.address), to_checksum_address(spender)],
        )
        result = self.call(token, data)
        return decode(["uint256"], result)[0]

    def approve(
        self,
        token: str,
        spender: str,
        amount: int = MAX_UINT256,
        gas_price: Optional[int] = None,
    ) -> str:
        """Approve `spender` for `amount` of `token`, returns the tx hash"""
        data = encode_call(
            "approve(address,uint256)",
            ["address", "uint256"],
            [to_checksum_address(spender), int(amount)],
        )
        tx = {"to": token, "data": data, "value": 0}
        if gas_price:
            tx["gasPrice"] = int(gas_price)
        logger.info("Approving %s for spender %s", token, spender)
        return self.send_transaction(tx)

    def ensure_allowance(
        self,
        token: str,
        spender: str,
        amount: int,
        approve_amount: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> Optional[str]:
        """
        Approve only if the current allowance is below `amount`

        Returns:
            Approval tx hash, or None if already approved
        """
        current = self.allowance(token, spender)
        if current >= int(amount):
            logger.debug("Allowance %s >= %s, no approval needed", current, amount)
            return None

        tx_hash = self.approve(token, spender, approve_amount or amount, gas_price)
        self.wait_for_receipt(tx_hash)
        return tx_hash

    def permit2_next_nonce(self, spender_contract: str) -> int:
        """Next unused Permit2 nonce for this account, read from the gasless spender"""
        data = encode_call("permit2NextNonce(address)", ["address"], [to_checksum_address(self.address)])
        result = self.call(spender_contract, data)
        return decode(["uint256"], result)[0]

    def cancel_order(self, contract: str, order_data: Dict[str, Any], gas_price: Optional[int] = None) -> str:
        """Cancel a limit / DCA order on-chain"""
        tx = {"to": contract, "data": encode_cancel_order(order_data), "value": 0}
        if gas_price:
            tx["gasPrice"] = int(gas_price)
        return self.send_transaction(tx)


class Web3Client(ChainClient):
    """ChainClient backed by web3.py"""

    kind = "web3"

    def __init__(
        self,
        chain_id: int,
        account: Union[str, LocalAccount],
        rpc_url: Optional[str] = None,
        w3: Optional[Web3] = None,
    ):
        super().__init__(chain_id, account, rpc_url)
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(self.rpc_url))
            if self.chain_id in POA_CHAINS:
                w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3

    def get_gas_price(self) -> int:
        return int(self.w3.eth.gas_price)

    def get_chain_id(self) -> int:
        return int(self.w3.eth.chain_id)

    def get_transaction_count(self) -> int:
        return self.w3.eth.get_transaction_count(self.address, "pending")

    def call(self, to: str, data: str) -> bytes:
        return bytes(self.w3.eth.call({"to": Web3.to_checksum_address(to), "data": data}))

    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        try:
            return int(self.w3.eth.estimate_gas(tx))
        except Web3Exception as e:
            raise RpcError(f"eth_estimateGas: {e}") from e

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        try:
            return Web3.to_hex(self.w3.eth.send_raw_transaction(raw_transaction))
        except Web3Exception as e:
            raise RpcError(f"eth_sendRawTransaction: {e}") from e

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            return dict(self.w3.eth.get_transaction_receipt(tx_hash))
        except TransactionNotFound:
            return None

    def wait_for_receipt(self, tx_hash: str, timeout: int = 120, poll_interval: float = 2.0) -> Dict[str, Any]:
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout, poll_latency=poll_interval)
        except TimeExhausted as e:
            raise TransactionError(f"Transaction {tx_hash} not mined after {timeout}s", tx_hash) from e
        if receipt["status"] != 1:
            raise TransactionError(f"Transaction {tx_hash} reverted", tx_hash)
        return dict(receipt)


class JsonRpcClient(ChainClient):
    """ChainClient speaking raw JSON-RPC through httpx"""

    kind = "rpc"

    def __init__(
        self,
        chain_id: int,
        account: Union[str, LocalAccount],
        rpc_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(chain_id, account, rpc_url)
        self._http = httpx.Client(timeout=httpx.Timeout(timeout), transport=transport)
        self._request_id = 0

    def close(self):
        self._http.close()

    def _rpc(self, method: str, params: List[Any]) -> Any:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            response = self._http.post(self.rpc_url, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException:
            raise RpcError(f"{method}: RPC timeout")
        except httpx.HTTPError as e:
            raise RpcError(f"{method}: {e}")

        body = response.json()
        if body.get("error"):
            error = body["error"]
            raise RpcError(f"{method}: {error.get('message', error)}", int(error.get("code", 0)))
        return body.get("result")

    @staticmethod
    def _rpc_tx(tx: Dict[str, Any]) -> Dict[str, Any]:
        """Quantities as hex strings, as JSON-RPC expects"""
        out = {}
        for key, value in tx.items():
            if key == "chainId":
                continue
            out[key] = hex(value) if isinstance(value, int) else value
        return out

    def get_gas_price(self) -> int:
        return int(self._rpc("eth_gasPrice", []), 16)

    def get_chain_id(self) -> int:
        return int(self._rpc("eth_chainId", []), 16)

    def get_transaction_count(self) -> int:
        return int(self._rpc("eth_getTransactionCount", [self.address, "pending"]), 16)

    def call(self, to: str, data: str) -> bytes:
        result = self._rpc("eth_call", [{"to": to_checksum_address(to), "data": data}, "latest"])
        return to_bytes(hexstr=result)

    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(self._rpc("eth_estimateGas", [self._rpc_tx(tx)]), 16)

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        return self._rpc("eth_sendRawTransaction", [to_hex(raw_transaction)])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        receipt = self._rpc("eth_getTransactionReceipt", [tx_hash])
        if receipt is None:
            return None
        receipt = dict(receipt)
        for key in ("status", "gasUsed", "blockNumber", "effectiveGasPrice"):
            if isinstance(receipt.get(key), str):
                receipt[key] = int(receipt[key], 16)
        return receipt


CLIENT_KINDS = {
    Web3Client.kind: Web3Client,
    JsonRpcClient.kind: JsonRpcClient,
}


def create_client(
    kind: str,
    chain_id: int,
    account: Union[str, LocalAccount],
    rpc_url: Optional[str] = None,
) -> ChainClient:
    """
    Build a chain client

    Args:
        kind: "web3" (web3.py) or "rpc" (raw JSON-RPC)
        chain_id: Target chain
        account: Private key or LocalAccount
        rpc_url: Custom RPC URL (default: network default)
    """
    if kind not in CLIENT_KINDS:
        raise ValueError(f"Unknown client: {kind}. Supported: {', '.join(CLIENT_KINDS)}")
    return CLIENT_KINDS[kind](chain_id, account, rpc_url)
