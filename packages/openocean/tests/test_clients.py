"""
Tests for the chain clients.
"""
import json
from unittest.mock import MagicMock

import httpx
import pytest
from eth_abi import decode
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector, to_bytes
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception

from openocean.clients import (
    JsonRpcClient, RpcError, TransactionError, Web3Client, create_client,
)
from openocean.models import MAX_UINT256

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

TOKEN = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
SPENDER = "0x6352a56caadC4F1E25CD6c75970Fa768A3304e64"


def rpc_handler(results, calls):
    """JSON-RPC mock: method -> result (or {"error": ...})"""
    def handler(request):
        payload = json.loads(request.content)
        calls.append(payload)
        result = results[payload["method"]]
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": result["error"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})
    return handler


def make_rpc_client(results, calls=None) -> JsonRpcClient:
    calls = calls if calls is not None else []
    return JsonRpcClient(
        8453, PRIVATE_KEY, rpc_url="http://rpc.test",
        transport=httpx.MockTransport(rpc_handler(results, calls)),
    )


class TestCreateClient:

    def test_kinds(self):
        assert isinstance(create_client("web3", 8453, PRIVATE_KEY, "http://rpc.test"), Web3Client)
        assert isinstance(create_client("rpc", 8453, PRIVATE_KEY, "http://rpc.test"), JsonRpcClient)

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown client"):
            create_client("ethers", 8453, PRIVATE_KEY)

    def test_key_without_prefix(self, account):
        client = create_client("rpc", 8453, PRIVATE_KEY[2:], "http://rpc.test")
        assert client.address == account.address

    def test_default_rpc_url(self):
        client = create_client("web3", 56, PRIVATE_KEY)
        assert client.rpc_url == "https://bsc-dataseed.binance.org"


class TestSharedOperations:

    def test_send_transaction_fills_fields(self, fake_client, account):
        tx_hash = fake_client.send_transaction({"to": SPENDER, "data": "0x12", "from": "ignored"})

        assert tx_hash.startswith("0x")
        estimated = fake_client.estimated[0]
        assert estimated["from"] == account.address
        assert estimated["nonce"] == 0
        assert estimated["chainId"] == 8453
        assert estimated["gasPrice"] == 1_000_000_000
        assert Account.recover_transaction(fake_client.sent[0]) == account.address

    def test_send_transaction_keeps_gas(self, fake_client):
        fake_client.send_transaction({"to": SPENDER, "data": "0x", "gas": 50_000, "gasPrice": 7})
        assert fake_client.estimated == []

    def test_buffered_gas_price(self, fake_client):
        assert fake_client.buffered_gas_price() == 1_200_000_000
        assert fake_client.buffered_gas_price(2) == 2_000_000_000

    def test_allowance(self, make_client, account):
        client = make_client(allowance=123)
        assert client.allowance(TOKEN, SPENDER) == 123

        to, data = client.calls[0]
        assert to == TOKEN
        owner, spender = decode(["address", "address"], to_bytes(hexstr=data)[4:])
        assert owner.lower() == account.address.lower()
        assert spender.lower() == SPENDER.lower()

    def test_ensure_allowance_sufficient(self, make_client):
        client = make_client(allowance=10 ** 18)
        assert client.ensure_allowance(TOKEN, SPENDER, 10_000_000) is None
        assert client.sent == []

    def test_ensure_allowance_approves(self, make_client):
        client = make_client(allowance=0)
        tx_hash = client.ensure_allowance(TOKEN, SPENDER, 10_000_000, approve_amount=MAX_UINT256)

        assert tx_hash is not None
        assert len(client.sent) == 1
        approve_data = client.estimated[0]["data"]
        assert to_bytes(hexstr=approve_data)[:4] == function_signature_to_4byte_selector("approve(address,uint256)")
        spender, amount = decode(["address", "uint256"], to_bytes(hexstr=approve_data)[4:])
        assert spender.lower() == SPENDER.lower()
        assert amount == MAX_UINT256

    def test_permit2_next_nonce(self, make_client):
        client = make_client(permit_nonce=42)
        assert client.permit2_next_nonce(SPENDER) == 42

    def test_wait_for_receipt_reverted(self, make_client):
        client = make_client(receipt_status=0)
        with pytest.raises(TransactionError) as exc:
            client.wait_for_receipt("0xabc")
        assert exc.value.tx_hash == "0xabc"

    def test_wait_for_receipt_timeout(self, fake_client):
        fake_client.get_transaction_receipt = lambda tx_hash: None
        with pytest.raises(TransactionError, match="not mined"):
            fake_client.wait_for_receipt("0xabc", timeout=0)

    def test_sign_typed_data(self, fake_client, account):
        domain = {"name": "Test", "chainId": 8453}
        types = {"Mail": [{"name": "contents", "type": "string"}]}
        signed = fake_client.sign_typed_data(domain, types, {"contents": "hello"})
        assert signed.signature == account.sign_typed_data(domain, types, {"contents": "hello"}).signature


class TestJsonRpcClient:

    def test_primitives(self):
        client = make_rpc_client({
            "eth_gasPrice": "0x3b9aca00",
            "eth_chainId": "0x2105",
            "eth_getTransactionCount": "0x5",
        })
        assert client.get_gas_price() == 1_000_000_000
        assert client.get_chain_id() == 8453
        assert client.get_transaction_count() == 5

    def test_rpc_error(self):
        client = make_rpc_client({"eth_gasPrice": {"error": {"code": -32000, "message": "header not found"}}})
        with pytest.raises(RpcError, match="header not found") as exc:
            client.get_gas_price()
        assert exc.value.code == -32000

    def test_http_error(self):
        client = JsonRpcClient(
            8453, PRIVATE_KEY, rpc_url="http://rpc.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable")),
        )
        with pytest.raises(RpcError):
            client.get_chain_id()

    def test_receipt(self):
        client = make_rpc_client({"eth_getTransactionReceipt": {"status": "0x1", "gasUsed": "0x5208"}})
        receipt = client.get_transaction_receipt("0xabc")
        assert receipt["status"] == 1
        assert receipt["gasUsed"] == 21000

    def test_receipt_pending(self):
        client = make_rpc_client({"eth_getTransactionReceipt": None})
        assert client.get_transaction_receipt("0xabc") is None

    def test_send_transaction(self, account):
        calls = []
        client = make_rpc_client({
            "eth_getTransactionCount": "0x0",
            "eth_gasPrice": "0x3b9aca00",
            "eth_estimateGas": "0x186a0",
            "eth_sendRawTransaction": "0x" + "ab" * 32,
        }, calls)

        tx_hash = client.send_transaction({"to": SPENDER, "data": "0x12", "value": 0})

        assert tx_hash == "0x" + "ab" * 32
        estimate = next(c for c in calls if c["method"] == "eth_estimateGas")["params"][0]
        assert estimate["gasPrice"] == "0x3b9aca00"
        assert estimate["from"] == account.address
        assert "chainId" not in estimate
        raw = next(c for c in calls if c["method"] == "eth_sendRawTransaction")["params"][0]
        assert Account.recover_transaction(raw) == account.address

    def test_call_returns_bytes(self):
        client = make_rpc_client({"eth_call": "0x" + "00" * 31 + "07"})
        assert client.allowance(TOKEN, SPENDER) == 7


class TestWeb3Client:

    def make(self, **eth_attrs) -> Web3Client:
        w3 = MagicMock()
        for key, value in eth_attrs.items():
            setattr(w3.eth, key, value)
        return Web3Client(8453, PRIVATE_KEY, rpc_url="http://rpc.test", w3=w3)

    def test_gas_price(self):
        client = self.make(gas_price=12345)
        assert client.get_gas_price() == 12345

    def test_receipt_not_found(self):
        client = self.make()
        client.w3.eth.get_transaction_receipt.side_effect = TransactionNotFound("missing")
        assert client.get_transaction_receipt("0xabc") is None

    def test_wait_for_receipt_reverted(self):
        client = self.make()
        client.w3.eth.wait_for_transaction_receipt.return_value = {"status": 0}
        with pytest.raises(TransactionError):
            client.wait_for_receipt("0xabc")

    def test_send_raw_transaction(self):
        client = self.make()
        client.w3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
        assert client.send_raw_transaction(b"raw") == "0x" + "ab" * 32

    def test_wait_for_receipt_timeout(self):
        client = self.make()
        client.w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not in chain after 120s")
        with pytest.raises(TransactionError, match="not mined") as exc:
            client.wait_for_receipt("0xabc")
        assert exc.value.tx_hash == "0xabc"

    def test_send_error_is_rpc_error(self):
        client = self.make()
        client.w3.eth.send_raw_transaction.side_effect = Web3Exception("nonce too low")
        with pytest.raises(RpcError, match="nonce too low"):
            client.send_raw_transaction(b"raw")

    def test_estimate_error_is_rpc_error(self):
        client = self.make()
        client.w3.eth.estimate_gas.side_effect = Web3Exception("execution reverted")
        with pytest.raises(RpcError, match="execution reverted"):
            client.estimate_gas({"to": SPENDER})


class TestChainMismatch:

    def test_matching_chain(self, fake_client):
        assert fake_client.chain_mismatch() is None

    def test_other_chain(self):
        client = make_rpc_client({"eth_chainId": "0x1"})
        assert client.chain_mismatch() == "RPC reports chain 1, expected 8453"

    def test_unreachable(self):
        client = JsonRpcClient(
            8453, PRIVATE_KEY, rpc_url="http://rpc.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable")),
        )
        assert client.chain_mismatch().startswith("RPC unreachable")

    def test_web3_unreachable(self):
        client = Web3Client(8453, PRIVATE_KEY, rpc_url="http://rpc.test", w3=MagicMock())
        client.get_chain_id = MagicMock(side_effect=ConnectionError("refused"))
        assert client.chain_mismatch() == "RPC unreachable: refused"
