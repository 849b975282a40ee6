"""
Limit order & DCA order construction

Builds the limit order struct, wraps it in EIP-712 typed data and has the
chain client's account sign it. The resulting payload is what the
/limit-order and /dca/swap endpoints accept. DCA orders are limit orders
signed against the DCA contract, plus scheduling fields.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from eth_utils import to_checksum_address, to_hex

from .abi import cut_last_arg, encode_call, hex_to_bytes
from .config import ConfigError
from .models import ZERO_ADDRESS, OrderMode, expire_seconds

if TYPE_CHECKING:
    from .clients import ChainClient

logger = logging.getLogger(__name__)

DOMAIN_NAME = "OpenOcean Limit Order Protocol"
DOMAIN_VERSION = "2"

ORDER_FIELDS: List[Tuple[str, str]] = [
    ("salt", "uint256"),
    ("makerAsset", "address"),
    ("takerAsset", "address"),
    ("maker", "address"),
    ("receiver", "address"),
    ("allowedSender", "address"),
    ("makingAmount", "uint256"),
    ("takingAmount", "uint256"),
    ("makerAssetData", "bytes"),
    ("takerAssetData", "bytes"),
    ("getMakerAmount", "bytes"),
    ("getTakerAmount", "bytes"),
    ("predicate", "bytes"),
    ("permit", "bytes"),
    ("interaction", "bytes"),
]

ORDER_TUPLE = "(" + ",".join(t for _, t in ORDER_FIELDS) + ")"

ORDER_TYPES = {
    "Order": [{"name": name, "type": type_} for name, type_ in ORDER_FIELDS],
}

# DCA scheduling defaults
DCA_EXPIRE_TIME = 180
DCA_VERSION = "v2"


@dataclass
class LimitOrderParams:
    """What the maker wants: give maker_amount, receive taker_amount (smallest units)"""
    maker_token: str
    maker_token_decimals: int
    taker_token: str
    taker_token_decimals: int
    maker_amount: int
    taker_amount: int
    gas_price: int
    expire: str = "6Month"


def _normalize(order: Dict[str, Any]) -> Dict[str, Any]:
    """Order values as python types for signing / ABI encoding"""
    normalized = {}
    for name, type_ in ORDER_FIELDS:
        value = order.get(name)
        if type_ == "uint256":
            normalized[name] = int(value or 0)
        elif type_ == "address":
            normalized[name] = to_checksum_address(value or ZERO_ADDRESS)
        else:
            normalized[name] = hex_to_bytes(value)
    return normalized


def _stringify(order: Dict[str, Any]) -> Dict[str, str]:
    """Order values as JSON strings for the API"""
    out = {}
    for name, type_ in ORDER_FIELDS:
        value = order[name]
        if type_ == "uint256":
            out[name] = str(value)
        elif type_ == "bytes":
            out[name] = to_hex(value) if value else "0x"
        else:
            out[name] = value
    return out


def encode_cancel_order(order_data: Dict[str, Any]) -> str:
    """cancelOrder(Order) calldata for an order's `data` as listed by the API"""
    order = _normalize(order_data)
    return encode_call(
        f"cancelOrder({ORDER_TUPLE})",
        [ORDER_TUPLE],
        [tuple(order[name] for name, _ in ORDER_FIELDS)],
    )


class LimitOrderBuilder:
    """
    Build and sign limit / DCA orders

    Example:
        builder = LimitOrderBuilder(client, contract, chain_key="base")
        payload = builder.build(LimitOrderParams(...))
        await api.create_limit_order(8453, payload)
    """

    def __init__(
        self,
        client: "ChainClient",
        contract: Optional[str],
        chain_key: str,
        mode: OrderMode = OrderMode.LIMIT,
    ):
        if not contract:
            raise ConfigError(
                f"No {mode.value} order contract configured for chain {client.chain_id} "
                f"(set {'DCA_CONTRACT' if mode == OrderMode.DCA else 'LIMIT_ORDER_CONTRACT'}_{client.chain_id})"
            )
        self.client = client
        self.contract = to_checksum_address(contract)
        self.chain_key = chain_key
        self.mode = mode

    @property
    def domain(self) -> Dict[str, Any]:
        return {
            "name": DOMAIN_NAME,
            "version": DOMAIN_VERSION,
            "chainId": self.client.chain_id,
            "verifyingContract": self.contract,
        }

    def build_order(
        self,
        params: LimitOrderParams,
        salt: Optional[int] = None,
        now: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Order struct (python values) for the given params"""
        now = int(now if now is not None else time.time())
        expiry = now + expire_seconds(params.expire)
        making, taking = int(params.maker_amount), int(params.taker_amount)

        get_maker_amount = cut_last_arg(encode_call(
            "getMakerAmount(uint256,uint256,uint256)",
            ["uint256", "uint256", "uint256"],
            [making, taking, 0],
        ))
        get_taker_amount = cut_last_arg(encode_call(
            "getTakerAmount(uint256,uint256,uint256)",
            ["uint256", "uint256", "uint256"],
            [making, taking, 0],
        ))
        predicate = encode_call("timestampBelow(uint256)", ["uint256"], [expiry])

        return _normalize({
            "salt": salt if salt is not None else secrets.randbits(96),
            "makerAsset": params.maker_token,
            "takerAsset": params.taker_token,
            "maker": self.client.address,
            "receiver": ZERO_ADDRESS,
            "allowedSender": ZERO_ADDRESS,
            "makingAmount": making,
            "takingAmount": taking,
            "makerAssetData": "0x",
            "takerAssetData": "0x",
            "getMakerAmount": get_maker_amount,
            "getTakerAmount": get_taker_amount,
            "predicate": predicate,
            "permit": "0x",
            "interaction": "0x",
        })

    def build(self, params: LimitOrderParams, salt: Optional[int] = None, now: Optional[int] = None) -> Dict[str, Any]:
        """Build, sign and return the API payload"""
        order = self.build_order(params, salt=salt, now=now)
        signed = self.client.sign_typed_data(self.domain, ORDER_TYPES, order)
        order_hash = to_hex(signed.message_hash)

        logger.info("Signed %s order %s", self.mode.value, order_hash)
        return {
            "makerAmount": str(params.maker_amount),
            "takerAmount": str(params.taker_amount),
            "signature": to_hex(signed.signature),
            "orderHash": order_hash,
            "orderMaker": self.client.address,
            "remainingMakerAmount": str(params.maker_amount),
            "data": _stringify(order),
            "isActive": True,
            "chainId": self.client.chain_id,
            "chainKey": self.chain_key,
            "makerTokenAddress": params.maker_token,
            "makerTokenDecimals": params.maker_token_decimals,
            "takerTokenAddress": params.taker_token,
            "takerTokenDecimals": params.taker_token_decimals,
            "gasPrice": int(params.gas_price),
        }


def build_dca_payload(
    order_payload: Dict[str, Any],
    interval_seconds: int,
    times: int,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
) -> Dict[str, Any]:
    """
    Wrap a signed order into a DCA order

    Args:
        order_payload: Output of LimitOrderBuilder.build (DCA mode)
        interval_seconds: Time between two trades
        times: Number of trades
        min_price / max_price: Optional price bounds
    """
    if times < 1:
        raise ValueError("DCA order needs at least one trade")
    if interval_seconds <= 0:
        raise ValueError("DCA interval must be positive")

    order = {
        **order_payload,
        "expireTime": DCA_EXPIRE_TIME,
        "time": int(interval_seconds),
        "times": int(times),
        "version": DCA_VERSION,
    }
    if min_price is not None:
        order["minPrice"] = str(min_price)
    if max_price is not None:
        order["maxPrice"] = str(max_price)
    return order
