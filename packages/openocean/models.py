"""
OpenOcean models - dataclasses for tokens, quotes, swaps and orders
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional


NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1


@dataclass
class TokenInfo:
    """ERC20 (or native) token"""
    address: str
    symbol: str
    decimals: int
    name: str = ""

    @property
    def is_native(self) -> bool:
        return self.address.lower() == NATIVE_TOKEN.lower()

    def to_wei(self, amount: Decimal) -> int:
        """Convert human amount to smallest unit"""
        return int(Decimal(str(amount)) * Decimal(10 ** self.decimals))

    def from_wei(self, wei_amount: int) -> Decimal:
        """Convert smallest unit to human amount"""
        return Decimal(int(wei_amount)) / Decimal(10 ** self.decimals)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TokenInfo":
        return cls(
            address=data["address"],
            symbol=data.get("symbol", ""),
            decimals=int(data.get("decimals", 18)),
            name=data.get("name", ""),
        )


# Common token addresses by chain id
COMMON_TOKENS: Dict[int, Dict[str, TokenInfo]] = {
    1: {
        "ETH": TokenInfo(NATIVE_TOKEN, "ETH", 18, "Ethereum"),
        "WETH": TokenInfo("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", 18, "Wrapped Ether"),
        "USDC": TokenInfo("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", 6, "USD Coin"),
        "USDT": TokenInfo("0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", 6, "Tether"),
    },
    8453: {
        "ETH": TokenInfo(NATIVE_TOKEN, "ETH", 18, "Ethereum"),
        "WETH": TokenInfo("0x4200000000000000000000000000000000000006", "WETH", 18, "Wrapped Ether"),
        "USDC": TokenInfo("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913", "USDC", 6, "USD Coin"),
        "USDT": TokenInfo("0xfde4c96c8593536e31f229ea8f37b2ada2699bb2", "USDT", 6, "Tether"),
    },
    42161: {
        "ETH": TokenInfo(NATIVE_TOKEN, "ETH", 18, "Ethereum"),
        "WETH": TokenInfo("0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", "WETH", 18, "Wrapped Ether"),
        "USDC": TokenInfo("0xaf88d065e77c8cC2239327C5EDb3A432268e5831", "USDC", 6, "USD Coin"),
        "USDT": TokenInfo("0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", "USDT", 6, "Tether"),
    },
    56: {
        "BNB": TokenInfo(NATIVE_TOKEN, "BNB", 18, "BNB"),
        "WBNB": TokenInfo("0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c", "WBNB", 18, "Wrapped BNB"),
        "USDC": TokenInfo("0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d", "USDC", 18, "USD Coin"),
        "USDT": TokenInfo("0x55d398326f99059fF775485246999027B3197955", "USDT", 18, "Tether"),
    },
    137: {
        "MATIC": TokenInfo(NATIVE_TOKEN, "MATIC", 18, "Polygon"),
        "WMATIC": TokenInfo("0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270", "WMATIC", 18, "Wrapped MATIC"),
        "USDC": TokenInfo("0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", "USDC", 6, "USD Coin"),
        "USDT": TokenInfo("0xc2132D05D31c914a87C6611C10748AEb04B58e8F", "USDT", 6, "Tether"),
    },
}


class OrderStatus(IntEnum):
    """Limit / DCA order status codes returned by the API"""
    PENDING = 1
    ACTIVE = 2
    FILLED = 3
    CANCELLED = 4
    EXPIRED = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def is_final(self) -> bool:
        return self in (OrderStatus.FILLED, OrderStatus.CANCELLED)

    @classmethod
    def label_for(cls, code: Any) -> str:
        try:
            return cls(int(code)).label
        except (TypeError, ValueError):
            return "Unknown"


class OrderMode(Enum):
    LIMIT = "Limit"
    DCA = "Dca"


# Time-in-force codes accepted for limit orders
EXPIRE_OPTIONS: Dict[str, int] = {
    "10M": 10 * 60,
    "1H": 60 * 60,
    "1D": 24 * 60 * 60,
    "3D": 3 * 24 * 60 * 60,
    "7D": 7 * 24 * 60 * 60,
    "30D": 30 * 24 * 60 * 60,
    "3Month": 90 * 24 * 60 * 60,
    "6Month": 180 * 24 * 60 * 60,
    "1Y": 365 * 24 * 60 * 60,
}

EXPIRE_LABELS: Dict[str, str] = {
    "10M": "10 Mins",
    "1H": "1 Hour",
    "1D": "1 Day",
    "3D": "3 Days",
    "7D": "7 Days",
    "30D": "1 Month",
    "3Month": "3 Month",
    "6Month": "6 Month",
    "1Y": "1 Year",
}

# DCA interval units in seconds
DCA_INTERVAL_UNITS: Dict[str, int] = {
    "Minute": 60,
    "Hour": 60 * 60,
    "Day": 60 * 60 * 24,
    "Week": 60 * 60 * 24 * 7,
    "Month": 60 * 60 * 24 * 30,
}


def expire_seconds(code: str) -> int:
    """Seconds for a time-in-force code such as '1H' or '6Month'"""
    if code not in EXPIRE_OPTIONS:
        raise ValueError(f"Unknown expire option: {code}. Supported: {', '.join(EXPIRE_OPTIONS)}")
    return EXPIRE_OPTIONS[code]


@dataclass
class Quote:
    """Swap quote returned by /quote"""
    in_token: TokenInfo
    out_token: TokenInfo
    in_amount: int  # smallest unit
    out_amount: int  # smallest unit (estimated)
    estimated_gas: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)
    quoted_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def in_amount_human(self) -> Decimal:
        return self.in_token.from_wei(self.in_amount)

    @property
    def out_amount_human(self) -> Decimal:
        return self.out_token.from_wei(self.out_amount)

    @property
    def price(self) -> Decimal:
        """out per in"""
        src = self.in_amount_human
        return self.out_amount_human / src if src > 0 else Decimal("0")

    @classmethod
    def from_api(cls, data: Dict[str, Any], in_token: TokenInfo, out_token: TokenInfo) -> "Quote":
        return cls(
            in_token=in_token,
            out_token=out_token,
            in_amount=int(data.get("inAmount", 0)),
            out_amount=int(data.get("outAmount", 0)),
            estimated_gas=int(data.get("estimatedGas", 0) or 0),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "in_token": self.in_token.symbol,
            "out_token": self.out_token.symbol,
            "in_amount": str(self.in_amount_human),
            "out_amount": str(self.out_amount_human),
            "price": str(self.price),
            "estimated_gas": self.estimated_gas,
            "quoted_at": self.quoted_at.isoformat(),
        }


@dataclass
class SwapTransaction:
    """Swap transaction returned by /swap, ready to be signed"""
    to: str
    data: str
    value: int = 0
    gas_price: Optional[int] = None
    estimated_gas: int = 0
    in_amount: int = 0
    out_amount: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SwapTransaction":
        gas_price = data.get("gasPrice")
        return cls(
            to=data.get("to", ""),
            data=data.get("data", ""),
            value=int(data.get("value", 0) or 0),
            gas_price=int(gas_price) if gas_price else None,
            estimated_gas=int(data.get("estimatedGas", 0) or 0),
            in_amount=int(data.get("inAmount", 0) or 0),
            out_amount=int(data.get("outAmount", 0) or 0),
            raw=data,
        )

    def to_tx(self, sender: str) -> Dict[str, Any]:
        tx = {"from": sender, "to": self.to, "data": self.data, "value": self.value}
        if self.gas_price:
            tx["gasPrice"] = self.gas_price
        return tx


@dataclass
class GaslessQuote:
    """Gasless quote returned by /gasless/{chain}/quote"""
    in_amount: int
    out_amount: int
    to: str
    data: str
    fees: List[Dict[str, Any]] = field(default_factory=list)
    flags: Any = None
    hash: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "GaslessQuote":
        return cls(
            in_amount=int(data.get("inAmount", 0) or 0),
            out_amount=int(data.get("outAmount", 0) or 0),
            to=data.get("to", ""),
            data=data.get("data", ""),
            fees=data.get("fees") or [],
            flags=data.get("flags"),
            hash=data.get("hash"),
            raw=data,
        )

    def fee_amounts(self) -> List[int]:
        """Relayer fees in smallest unit: [feeAmount1, feeAmount2]"""
        amounts = []
        for i in range(2):
            if i < len(self.fees) and self.fees[i]:
                fee = self.fees[i]
                amounts.append(int(Decimal(str(fee["inFeeAmount"])) * Decimal(10 ** int(fee["decimals"]))))
            else:
                amounts.append(0)
        return amounts


@dataclass
class Order:
    """Limit or DCA order as listed by the API"""
    order_hash: str
    status: Optional[int]
    maker_amount: str = ""
    taker_amount: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    create_date_time: Optional[str] = None
    time: Optional[int] = None
    times: Optional[int] = None
    min_price: Optional[str] = None
    max_price: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def status_label(self) -> str:
        return OrderStatus.label_for(self.status)

    @property
    def is_final(self) -> bool:
        return self.status in (OrderStatus.FILLED, OrderStatus.CANCELLED)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Order":
        status = data.get("statuses", data.get("status"))
        return cls(
            order_hash=data.get("orderHash", ""),
            status=int(status) if status is not None else None,
            maker_amount=str(data.get("makerAmount", "")),
            taker_amount=str(data.get("takerAmount", "")),
            data=data.get("data") or {},
            create_date_time=data.get("createDateTime"),
            time=data.get("time"),
            times=data.get("times"),
            min_price=data.get("minPrice"),
            max_price=data.get("maxPrice"),
            raw=data,
        )


@dataclass
class SwapResult:
    """Result of a swap execution"""
    success: bool
    tx_hash: Optional[str] = None
    in_amount: int = 0
    out_amount: int = 0
    gas_used: int = 0
    error: Optional[str] = None
    is_dry_run: bool = False
    tx: Optional[Dict[str, Any]] = None
    executed_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "tx_hash": self.tx_hash,
            "in_amount": str(self.in_amount),
            "out_amount": str(self.out_amount),
            "gas_used": self.gas_used,
            "error": self.error,
            "is_dry_run": self.is_dry_run,
            "tx": self.tx,
            "executed_at": self.executed_at.isoformat(),
        }
