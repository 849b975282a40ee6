"""
Tests for limit / DCA order construction and signing.
"""
from decimal import Decimal

import pytest
from eth_abi import decode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import function_signature_to_4byte_selector, to_bytes, to_checksum_address

from openocean.config import ConfigError
from openocean.models import COMMON_TOKENS, OrderMode
from openocean.orders import (
    ORDER_FIELDS, ORDER_TUPLE, ORDER_TYPES, LimitOrderBuilder, LimitOrderParams,
    build_dca_payload, encode_cancel_order,
)

CONTRACT = "0x6352a56caadC4F1E25CD6c75970Fa768A3304e64"
USDC = COMMON_TOKENS[8453]["USDC"]
USDT = COMMON_TOKENS[8453]["USDT"]
NOW = 1_700_000_000


@pytest.fixture
def params():
    return LimitOrderParams(
        maker_token=USDC.address,
        maker_token_decimals=6,
        taker_token=USDT.address,
        taker_token_decimals=6,
        maker_amount=10_000_000,
        taker_amount=10_100_000,
        gas_price=1_200_000_000,
        expire="1D",
    )


@pytest.fixture
def builder(fake_client):
    return LimitOrderBuilder(fake_client, CONTRACT, "base")


class TestBuilder:

    def test_missing_contract(self, fake_client):
        with pytest.raises(ConfigError, match="LIMIT_ORDER_CONTRACT_8453"):
            LimitOrderBuilder(fake_client, None, "base")

    def test_missing_dca_contract(self, fake_client):
        with pytest.raises(ConfigError, match="DCA_CONTRACT_8453"):
            LimitOrderBuilder(fake_client, "", "base", OrderMode.DCA)

    def test_domain(self, builder):
        assert builder.domain["chainId"] == 8453
        assert builder.domain["verifyingContract"] == to_checksum_address(CONTRACT)

    def test_order_struct(self, builder, params, account):
        order = builder.build_order(params, salt=1234, now=NOW)

        assert [name for name, _ in ORDER_FIELDS] == list(order)
        assert order["salt"] == 1234
        assert order["maker"] == account.address
        assert order["makingAmount"] == 10_000_000
        assert order["takingAmount"] == 10_100_000
        assert order["makerAssetData"] == b""

    def test_predicate_expiry(self, builder, params):
        order = builder.build_order(params, salt=1, now=NOW)

        predicate = order["predicate"]
        assert predicate[:4] == function_signature_to_4byte_selector("timestampBelow(uint256)")
        assert decode(["uint256"], predicate[4:])[0] == NOW + 86400

    def test_amount_getters_drop_last_argument(self, builder, params):
        order = builder.build_order(params, salt=1, now=NOW)

        getter = order["getMakerAmount"]
        assert getter[:4] == function_signature_to_4byte_selector("getMakerAmount(uint256,uint256,uint256)")
        assert len(getter) == 4 + 2 * 32
        assert decode(["uint256", "uint256"], getter[4:]) == (10_000_000, 10_100_000)

    def test_random_salt(self, builder, params):
        assert builder.build_order(params)["salt"] != builder.build_order(params)["salt"]

    def test_unknown_expire(self, builder, params):
        params.expire = "2W"
        with pytest.raises(ValueError):
            builder.build_order(params)


class TestSignedPayload:

    def test_payload_fields(self, builder, params, account):
        payload = builder.build(params, salt=1, now=NOW)

        assert payload["makerAmount"] == "10000000"
        assert payload["takerAmount"] == "10100000"
        assert payload["remainingMakerAmount"] == "10000000"
        assert payload["orderMaker"] == account.address
        assert payload["isActive"] is True
        assert payload["chainId"] == 8453
        assert payload["chainKey"] == "base"
        assert payload["gasPrice"] == 1_200_000_000
        assert payload["makerTokenDecimals"] == 6
        assert payload["data"]["salt"] == "1"
        assert payload["data"]["permit"] == "0x"
        assert len(payload["orderHash"]) == 66

    def test_signature_recovers_maker(self, builder, params, account):
        payload = builder.build(params, salt=1, now=NOW)

        order = builder.build_order(params, salt=1, now=NOW)
        signable = encode_typed_data(builder.domain, ORDER_TYPES, order)
        assert Account.recover_message(signable, signature=payload["signature"]) == account.address

    def test_deterministic_hash(self, builder, params):
        first = builder.build(params, salt=7, now=NOW)
        second = builder.build(params, salt=7, now=NOW)
        other = builder.build(params, salt=8, now=NOW)

        assert first["orderHash"] == second["orderHash"]
        assert first["orderHash"] != other["orderHash"]

    def test_hash_depends_on_contract(self, fake_client, params):
        limit = LimitOrderBuilder(fake_client, CONTRACT, "base").build(params, salt=1, now=NOW)
        dca = LimitOrderBuilder(
            fake_client, "0x0000000000000000000000000000000000000001", "base", OrderMode.DCA
        ).build(params, salt=1, now=NOW)
        assert limit["orderHash"] != dca["orderHash"]


class TestCancel:

    def test_cancel_calldata(self, builder, params):
        payload = builder.build(params, salt=99, now=NOW)

        data = to_bytes(hexstr=encode_cancel_order(payload["data"]))

        assert data[:4] == function_signature_to_4byte_selector(f"cancelOrder({ORDER_TUPLE})")
        decoded = decode([ORDER_TUPLE], data[4:])[0]
        assert decoded[0] == 99
        assert decoded[6] == 10_000_000
        assert decoded[7] == 10_100_000


class TestDcaPayload:

    def test_scheduling_fields(self):
        order = build_dca_payload({"orderHash": "0x1"}, interval_seconds=3600, times=3)
        assert order == {"orderHash": "0x1", "expireTime": 180, "time": 3600, "times": 3, "version": "v2"}

    def test_price_bounds(self):
        order = build_dca_payload({}, 60, 2, min_price=Decimal("0.99"), max_price=Decimal("1.01"))
        assert order["minPrice"] == "0.99"
        assert order["maxPrice"] == "1.01"

    def test_invalid_times(self):
        with pytest.raises(ValueError):
            build_dca_payload({}, 60, 0)

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            build_dca_payload({}, 0, 2)
