"""
OpenOcean API client - swap, gasless, limit order and DCA endpoints

Usage:
    async with OpenOceanClient() as api:
        gas_price = await api.get_gas_price(8453)
        quote = await api.get_quote(8453, usdc, usdt, 10_000_000, gas_price)
"""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .models import TokenInfo

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://open-api.openocean.finance"


class OpenOceanError(Exception):
    """Error returned by (or while talking to) the OpenOcean API"""
    def __init__(self, message: str, status_code: int = 0, error_code: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


def format_statuses(statuses: Iterable[int]) -> str:
    """Statuses as the API expects them: [1,2,5]"""
    return "[" + ",".join(str(int(s)) for s in statuses) + "]"


class OpenOceanClient:
    """
    Async client for the OpenOcean open API

    Swap and gasless endpoints live under /v4, limit order and DCA under /v1.
    Every call returns the unwrapped `data` field of the response envelope.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client

        Args:
            base_url: API root (test environment: https://openapi-test.openocean.finance)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._init_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _init_client(self):
        """Initialize HTTP client"""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Make API request and return the decoded JSON body"""
        if not self._client:
            await self._init_client()

        logger.debug("%s %s params=%s", method, endpoint, params)
        try:
            if method == "GET":
                response = await self._client.get(endpoint, params=params)
            else:
                response = await self._client.post(endpoint, json=json_data, params=params)
        except httpx.TimeoutException:
            raise OpenOceanError("Request timeout", 0, "TIMEOUT")
        except httpx.RequestError as e:
            raise OpenOceanError(f"Request failed: {e}", 0, "REQUEST_ERROR")

        if response.status_code == 429:
            raise OpenOceanError("Rate limit exceeded - wait before retrying", 429, "RATE_LIMIT")

        try:
            body = response.json()
        except json.JSONDecodeError:
            raise OpenOceanError(
                f"Invalid response ({response.status_code}): {response.text[:200]}",
                response.status_code,
                "INVALID_RESPONSE",
            )

        if response.status_code >= 400:
            error_msg = body.get("message", body.get("msg", body.get("error", str(body)))) if isinstance(body, dict) else str(body)
            raise OpenOceanError(f"API error ({response.status_code}): {error_msg}", response.status_code)

        if isinstance(body, dict) and body.get("code") not in (None, 200, "200"):
            error_msg = body.get("message") or body.get("msg") or body.get("error") or "Unknown error"
            raise OpenOceanError(f"API error ({body.get('code')}): {error_msg}", response.status_code, "API_ERROR")

        return body

    async def _data(self, method: str, endpoint: str, **kwargs) -> Any:
        body = await self._request(method, endpoint, **kwargs)
        return body.get("data") if isinstance(body, dict) else body

    # =========================================================================
    # Swap API (v4)
    # =========================================================================

    async def get_gas_price(self, chain: int) -> Decimal:
        """Standard gas price for a chain in Gwei, as the quote and swap endpoints expect it"""
        body = await self._request("GET", f"/v4/{chain}/gasPrice")

        standard = (body.get("without_decimals") or {}).get("standard")
        if standard is None:
            standard = (body.get("data") or {}).get("standard")
        if isinstance(standard, dict):
            # EIP-1559 chains return an object
            standard = standard.get("legacyGasPrice") or standard.get("maxFeePerGas")
        if standard is None:
            raise OpenOceanError("Gas price missing from response", error_code="INVALID_RESPONSE")

        gas_price = Decimal(str(standard))
        logger.info("gasPrice is %s Gwei", gas_price)
        return gas_price

    async def get_token_list(self, chain: int) -> List[TokenInfo]:
        """Tokens tradable on a chain"""
        data = await self._data("GET", f"/v4/{chain}/tokenList")
        return [TokenInfo.from_api(t) for t in data or []]

    async def get_allowance(self, chain: int, account: str, token_address: str) -> int:
        """Allowance granted by `account` to the OpenOcean exchange"""
        data = await self._data(
            "GET",
            f"/v4/{chain}/allowance",
            params={"account": account, "inTokenAddress": token_address},
        )
        if not data:
            return 0
        return int(float(data[0].get("allowance", 0) or 0))

    async def get_quote(
        self,
        chain: int,
        in_token_address: str,
        out_token_address: str,
        amount_decimals: int,
        gas_price: Decimal,
        slippage: float = 1,
    ) -> Dict[str, Any]:
        """
        Get swap quote

        Args:
            chain: Chain id or code
            amount_decimals: Input amount in smallest unit
            gas_price: Gas price in Gwei (from get_gas_price)
            slippage: 1 means 1%
        """
        return await self._data(
            "GET",
            f"/v4/{chain}/quote",
            params={
                "inTokenAddress": in_token_address,
                "outTokenAddress": out_token_address,
                "amountDecimals": str(amount_decimals),
                "gasPrice": str(gas_price),
                "slippage": slippage,
            },
        )

    async def get_swap(
        self,
        chain: int,
        in_token_address: str,
        out_token_address: str,
        amount_decimals: int,
        gas_price: Decimal,
        slippage: float,
        account: str,
    ) -> Dict[str, Any]:
        """Swap transaction data (to, data, value, ...) for `account`"""
        return await self._data(
            "GET",
            f"/v4/{chain}/swap",
            params={
                "inTokenAddress": in_token_address,
                "outTokenAddress": out_token_address,
                "amountDecimals": str(amount_decimals),
                "gasPrice": str(gas_price),
                "slippage": slippage,
                "account": account,
            },
        )

    # =========================================================================
    # Gasless API (v4)
    # =========================================================================

    async def get_gasless_quote(
        self,
        chain: int,
        in_token_address: str,
        out_token_address: str,
        amount_decimals: int,
        gas_price: Decimal,
        slippage: float,
        account: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {
            "inTokenAddress": in_token_address,
            "outTokenAddress": out_token_address,
            "amountDecimals": str(amount_decimals),
            "gasPrice": str(gas_price),
            "slippage": slippage,
        }
        if account:
            params["account"] = account
        return await self._data("GET", f"/v4/gasless/{chain}/quote", params=params)

    async def submit_gasless_swap(self, chain: int, body: Dict[str, Any]) -> str:
        """Submit a signed gasless swap, returns the relayer order hash"""
        result = await self._request("POST", f"/v4/gasless/{chain}/swap", json_data=body)
        order_hash = result.get("orderHash") or (result.get("data") or {}).get("orderHash")
        if not order_hash:
            raise OpenOceanError(
                result.get("msg") or result.get("err") or "Transaction error",
                error_code="NO_ORDER_HASH",
            )
        return order_hash

    async def get_gasless_order(self, chain: int, order_hash: str) -> Dict[str, Any]:
        data = await self._data("GET", f"/v4/gasless/{chain}/order", params={"orderHash": order_hash})
        if not data:
            raise OpenOceanError("No data received", error_code="INVALID_RESPONSE")
        return data

    # =========================================================================
    # Limit order API (v1)
    # =========================================================================

    async def create_limit_order(self, chain: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/v1/{chain}/limit-order", json_data=payload)

    async def get_limit_orders(
        self,
        chain: int,
        address: str,
        statuses: Iterable[int] = (1, 2, 5),
        page: int = 1,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        data = await self._data(
            "GET",
            f"/v1/{chain}/limit-order/address/{address}",
            params={
                "page": page,
                "limit": limit,
                "statuses": format_statuses(statuses),
                "sortBy": "createDateTime",
                "exclude": 0,
            },
        )
        return data or []

    async def cancel_limit_order(self, chain: int, order_hash: str) -> Dict[str, Any]:
        data = await self._data(
            "POST",
            f"/v1/{chain}/limit-order/cancelLimitOrder",
            json_data={"orderHash": order_hash},
        )
        return data or {}

    # =========================================================================
    # DCA API (v1)
    # =========================================================================

    async def create_dca_order(self, chain: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/v1/{chain}/dca/swap", json_data=payload)

    async def get_dca_orders(
        self,
        chain: int,
        address: str,
        statuses: Optional[Iterable[int]] = None,
        page: int = 1,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        params = {
            "page": page,
            "limit": limit,
            "sortBy": "createDateTime",
            "exclude": 0,
        }
        if statuses:
            params["statuses"] = format_statuses(statuses)
        data = await self._data("GET", f"/v1/{chain}/dca/address/{address}", params=params)
        return data or []

    async def get_all_dca_orders(
        self,
        chain: int,
        statuses: Iterable[int] = (1, 3, 4),
        limit: int = 1,
    ) -> List[Dict[str, Any]]:
        data = await self._data(
            "GET",
            f"/v1/{chain}/dca/all",
            params={"statuses": format_statuses(statuses), "limit": limit},
        )
        return data or []

    async def cancel_dca_order(self, chain: int, order_hash: str) -> Dict[str, Any]:
        data = await self._data("POST", f"/v1/{chain}/dca/cancel", json_data={"orderHash": order_hash})
        return data or {}
