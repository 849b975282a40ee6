"""
Trader - the demo flows on top of the OpenOcean API and a chain client

Swap, gasless swap (Permit2), limit orders and DCA orders. Every flow
works with either chain client (web3.py or raw JSON-RPC).
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from eth_utils import is_address

from .api import OpenOceanClient, OpenOceanError
from .clients import ChainClient, RpcError, TransactionError
from .config import ConfigError, Settings
from .models import (
    COMMON_TOKENS, MAX_UINT256, GaslessQuote, Order, OrderMode, Quote,
    SwapResult, SwapTransaction, TokenInfo,
)
from .networks import NetworkConfig, get_network
from .orders import LimitOrderBuilder, LimitOrderParams, build_dca_payload
from .permit2 import build_permit

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (1, 2, 5)


class GaslessNotSupportedError(Exception):
    """Gasless swaps are not available on this chain"""
    pass


class Trader:
    """
    Demo flows bound to one chain and one wallet

    Example:
        async with Trader(OpenOceanClient(), create_client("web3", 8453, key)) as trader:
            quote = await trader.quote("USDC", "USDT", Decimal("1"))
            result = await trader.swap("USDC", "USDT", Decimal("1"))
    """

    def __init__(
        self,
        api: OpenOceanClient,
        client: Optional[ChainClient],
        settings: Optional[Settings] = None,
        chain_id: Optional[int] = None,
    ):
        """
        Args:
            api: OpenOcean API client
            client: Chain client holding the wallet (None for read-only use)
            settings: Runtime settings
            chain_id: Chain to use when no client is given
        """
        self.api = api
        self.client = client
        self.settings = settings or Settings()
        self._chain_id = client.chain_id if client else int(chain_id or self.settings.default_chain)
        self._tokens: Optional[List[TokenInfo]] = None

    async def __aenter__(self):
        await self.api.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self.api.close()
        if self.client:
            self.client.close()

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def wallet(self) -> ChainClient:
        if self.client is None:
            raise ConfigError("No wallet configured: set PRIVATE_KEY or KEYFILE")
        return self.client

    @property
    def network(self) -> NetworkConfig:
        return get_network(self.chain_id)

    @property
    def address(self) -> str:
        return self.wallet.address

    def _slippage(self, slippage: Optional[Union[Decimal, float]]) -> float:
        return float(slippage if slippage is not None else self.settings.default_slippage)

    # =========================================================================
    # Tokens & gas
    # =========================================================================

    async def get_gas_price(self) -> Decimal:
        """API gas price in Gwei, sent with quote and swap requests"""
        return await self.api.get_gas_price(self.chain_id)

    def chain_gas_price(self) -> int:
        """Network gas price in wei, for transactions the wallet signs"""
        return self.wallet.get_gas_price()

    def order_gas_price(self) -> int:
        """Chain gas price with the order buffer applied"""
        return self.wallet.buffered_gas_price(self.settings.gas_price_multiplier)

    async def get_tokens(self, refresh: bool = False) -> List[TokenInfo]:
        """Token list of the chain (cached)"""
        if self._tokens is None or refresh:
            self._tokens = await self.api.get_token_list(self.chain_id)
            logger.info("Loaded %d tokens for chain %s", len(self._tokens), self.chain_id)
        return self._tokens

    async def resolve_token(self, token: Union[str, TokenInfo]) -> TokenInfo:
        """
        Token by symbol or address

        Known tokens of the chain are looked up first, then the API token list.
        """
        if isinstance(token, TokenInfo):
            return token

        common = COMMON_TOKENS.get(self.chain_id, {})
        if is_address(token):
            for info in common.values():
                if info.address.lower() == token.lower():
                    return info
            for info in await self.get_tokens():
                if info.address.lower() == token.lower():
                    return info
        else:
            if token.upper() in common:
                return common[token.upper()]
            for info in await self.get_tokens():
                if info.symbol.upper() == token.upper():
                    return info

        raise ValueError(f"Unknown token on chain {self.chain_id}: {token}")

    async def get_allowance(self, token: Union[str, TokenInfo]) -> int:
        """Allowance granted to the OpenOcean exchange, as reported by the API"""
        info = await self.resolve_token(token)
        return await self.api.get_allowance(self.chain_id, self.address, info.address)

    # =========================================================================
    # Swap
    # =========================================================================

    async def quote(
        self,
        in_token: Union[str, TokenInfo],
        out_token: Union[str, TokenInfo],
        amount: Decimal,
        slippage: Optional[Decimal] = None,
    ) -> Quote:
        """Quote for swapping `amount` (human units) of in_token"""
        tin = await self.resolve_token(in_token)
        tout = await self.resolve_token(out_token)
        gas_price = await self.get_gas_price()

        data = await self.api.get_quote(
            self.chain_id, tin.address, tout.address, tin.to_wei(amount), gas_price, self._slippage(slippage)
        )
        return Quote.from_api(data, tin, tout)

    async def approve(
        self,
        token: Union[str, TokenInfo],
        spender: Optional[str] = None,
        amount: int = MAX_UINT256,
    ) -> str:
        """Approve `spender` (default: OpenOcean exchange) and wait for the receipt"""
        info = await self.resolve_token(token)
        if info.is_native:
            raise ValueError("Native token does not need an approval")
        tx_hash = self.wallet.approve(info.address, spender or self.settings.exchange_contract, amount)
        self.wallet.wait_for_receipt(tx_hash)
        return tx_hash

    async def swap(
        self,
        in_token: Union[str, TokenInfo],
        out_token: Union[str, TokenInfo],
        amount: Decimal,
        slippage: Optional[Decimal] = None,
        dry_run: bool = False,
    ) -> SwapResult:
        """
        Swap `amount` of in_token for out_token

        The router returned by /swap gets approved for the input amount when
        needed. With dry_run the transaction is built but never sent.
        """
        tin = await self.resolve_token(in_token)
        tout = await self.resolve_token(out_token)
        gas_price = await self.get_gas_price()
        amount_wei = tin.to_wei(amount)

        data = await self.api.get_swap(
            self.chain_id, tin.address, tout.address, amount_wei, gas_price,
            self._slippage(slippage), self.address,
        )
        swap_tx = SwapTransaction.from_api(data or {})
        if not swap_tx.to or not swap_tx.data:
            raise OpenOceanError("Invalid swap transaction data", error_code="INVALID_RESPONSE")

        tx = swap_tx.to_tx(self.address)
        if "gasPrice" not in tx:
            tx["gasPrice"] = self.chain_gas_price()
        if tin.is_native:
            tx["value"] = swap_tx.in_amount or amount_wei

        if dry_run:
            logger.info("[DRY RUN] Swap %s %s -> %s", amount, tin.symbol, tout.symbol)
            return SwapResult(
                success=True,
                in_amount=swap_tx.in_amount or amount_wei,
                out_amount=swap_tx.out_amount,
                is_dry_run=True,
                tx=tx,
            )

        if not tin.is_native:
            self.wallet.ensure_allowance(tin.address, swap_tx.to, amount_wei, gas_price=tx["gasPrice"])

        logger.info("Swapping %s %s -> %s on chain %s", amount, tin.symbol, tout.symbol, self.chain_id)
        try:
            tx_hash = self.wallet.send_transaction(tx)
            receipt = self.wallet.wait_for_receipt(tx_hash)
        except (TransactionError, RpcError) as e:
            logger.error("Swap failed: %s", e)
            return SwapResult(success=False, tx_hash=getattr(e, "tx_hash", None), error=str(e), tx=tx)

        return SwapResult(
            success=True,
            tx_hash=tx_hash,
            in_amount=swap_tx.in_amount or amount_wei,
            out_amount=swap_tx.out_amount,
            gas_used=int(receipt.get("gasUsed", 0) or 0),
            tx=tx,
        )

    # =========================================================================
    # Gasless swap
    # =========================================================================

    async def gasless_swap(
        self,
        in_token: Union[str, TokenInfo],
        out_token: Union[str, TokenInfo],
        amount: Decimal,
        slippage: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        """
        Swap through the gasless relayer

        Returns:
            {"orderHash": ..., "hash": tx hash or None if the relayer did not report one in time}
        """
        network = self.network
        if not network.supports_gasless:
            raise GaslessNotSupportedError(f"Gasless swaps are not supported on {network.name}")

        tin = await self.resolve_token(in_token)
        tout = await self.resolve_token(out_token)
        gas_price = await self.get_gas_price()
        amount_wei = tin.to_wei(amount)

        data = await self.api.get_gasless_quote(
            self.chain_id, tin.address, tout.address, amount_wei, gas_price,
            self._slippage(slippage), self.address,
        )
        quote = GaslessQuote.from_api(data or {})
        wei_gas_price = self.chain_gas_price()

        permit2_address = self.settings.permit2_address
        if not tin.is_native:
            self.wallet.ensure_allowance(
                tin.address, permit2_address, amount_wei, approve_amount=MAX_UINT256, gas_price=wei_gas_price
            )

        spender = self.settings.gasless_spender
        nonce = self.wallet.permit2_next_nonce(spender)
        permit = build_permit(
            self.wallet, tin.address, quote.in_amount or amount_wei, nonce,
            spender=spender, permit2_address=permit2_address,
        )

        fee1, fee2 = quote.fee_amounts()
        body = {
            "from": self.address,
            "to": quote.to,
            "data": quote.data,
            "amountDecimals": str(amount_wei),
            "feeAmount1": fee1,
            "feeAmount2": fee2,
            "flag": quote.flags,
            "gasPriceDecimals": str(wei_gas_price),
            "deadline": permit.deadline,
            "inToken": tin.address,
            "outToken": tout.address,
            "nonce": permit.nonce,
            "permit": permit.permit,
        }
        order_hash = await self.api.submit_gasless_swap(self.chain_id, body)
        logger.info("Gasless order submitted: %s", order_hash)

        tx_hash = await self.wait_for_gasless_hash(order_hash)
        return {"orderHash": order_hash, "hash": tx_hash}

    async def wait_for_gasless_hash(self, order_hash: str) -> Optional[str]:
        """Poll the relayer until it reports the transaction hash"""
        for attempt in range(self.settings.poll_attempts):
            await asyncio.sleep(self.settings.poll_interval)
            try:
                data = await self.api.get_gasless_order(self.chain_id, order_hash)
                if not isinstance(data, dict):
                    raise OpenOceanError(f"Unexpected order status: {data!r}", error_code="INVALID_RESPONSE")
                if data.get("err"):
                    raise OpenOceanError(str(data["err"]))
                if data.get("hash"):
                    return data["hash"]
            except OpenOceanError as e:
                logger.warning("Polling gasless order %s (attempt %d): %s", order_hash, attempt + 1, e)

        logger.warning("No transaction hash for gasless order %s", order_hash)
        return None

    # =========================================================================
    # Limit orders
    # =========================================================================

    def _builder(self, mode: OrderMode) -> LimitOrderBuilder:
        contracts = self.settings.dca_contract if mode == OrderMode.DCA else self.settings.limit_order_contract
        return LimitOrderBuilder(self.wallet, contracts.get(self.chain_id), self.network.code, mode)

    async def create_limit_order(
        self,
        in_token: Union[str, TokenInfo],
        out_token: Union[str, TokenInfo],
        maker_amount: Decimal,
        taker_amount: Decimal,
        expire: str = "6Month",
    ) -> Dict[str, Any]:
        """Sign and post a limit order: sell maker_amount of in_token for taker_amount of out_token"""
        tin = await self.resolve_token(in_token)
        tout = await self.resolve_token(out_token)
        builder = self._builder(OrderMode.LIMIT)

        params = LimitOrderParams(
            maker_token=tin.address,
            maker_token_decimals=tin.decimals,
            taker_token=tout.address,
            taker_token_decimals=tout.decimals,
            maker_amount=tin.to_wei(maker_amount),
            taker_amount=tout.to_wei(taker_amount),
            gas_price=self.order_gas_price(),
            expire=expire,
        )
        if not tin.is_native:
            self.wallet.ensure_allowance(tin.address, builder.contract, params.maker_amount, gas_price=params.gas_price)

        payload = builder.build(params)
        result = await self.api.create_limit_order(self.chain_id, payload)
        logger.info("Limit order created: %s", payload["orderHash"])
        return result

    async def get_limit_orders(self, statuses: Iterable[int] = ACTIVE_STATUSES) -> List[Order]:
        data = await self.api.get_limit_orders(self.chain_id, self.address, statuses)
        return [Order.from_api(o) for o in data]

    async def _find_order(self, order_hash: str, mode: OrderMode) -> Order:
        if mode == OrderMode.DCA:
            orders = await self.get_dca_orders()
        else:
            orders = await self.get_limit_orders()
        for order in orders:
            if order.order_hash.lower() == order_hash.lower():
                return order
        raise ValueError(f"Order not found: {order_hash}")

    async def _cancel(self, order: Union[str, Order], mode: OrderMode) -> Dict[str, Any]:
        if isinstance(order, str):
            order = await self._find_order(order, mode)

        if mode == OrderMode.DCA:
            result = await self.api.cancel_dca_order(self.chain_id, order.order_hash)
        else:
            result = await self.api.cancel_limit_order(self.chain_id, order.order_hash)

        status = result.get("status")
        if status is not None and int(status) in (3, 4):
            logger.info("%s order %s cancelled through the API", mode.value, order.order_hash)
            return {"orderHash": order.order_hash, "status": int(status), "tx_hash": None}

        # Still live: cancel on-chain
        builder = self._builder(mode)
        tx_hash = self.wallet.cancel_order(builder.contract, order.data, gas_price=self.order_gas_price())
        self.wallet.wait_for_receipt(tx_hash)
        logger.info("%s order %s cancelled on-chain: %s", mode.value, order.order_hash, tx_hash)
        return {"orderHash": order.order_hash, "status": status, "tx_hash": tx_hash}

    async def cancel_limit_order(self, order: Union[str, Order]) -> Dict[str, Any]:
        """Cancel through the API, then on-chain if the order is not filled or cancelled"""
        return await self._cancel(order, OrderMode.LIMIT)

    # =========================================================================
    # DCA orders
    # =========================================================================

    async def create_dca_order(
        self,
        in_token: Union[str, TokenInfo],
        out_token: Union[str, TokenInfo],
        amount: Decimal,
        interval_seconds: int,
        times: int,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        expire: str = "1H",
        taker_amount: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        """
        Sign and post a DCA order

        Args:
            amount: Total input amount (human units), split over `times` trades
            interval_seconds: Time between trades
            times: Number of trades
            taker_amount: Minimum total output (human units), default 1 raw unit
        """
        tin = await self.resolve_token(in_token)
        tout = await self.resolve_token(out_token)
        builder = self._builder(OrderMode.DCA)

        params = LimitOrderParams(
            maker_token=tin.address,
            maker_token_decimals=tin.decimals,
            taker_token=tout.address,
            taker_token_decimals=tout.decimals,
            maker_amount=tin.to_wei(amount),
            taker_amount=tout.to_wei(taker_amount) if taker_amount else 1,
            gas_price=self.order_gas_price(),
            expire=expire,
        )
        if not tin.is_native:
            self.wallet.ensure_allowance(tin.address, builder.contract, params.maker_amount, gas_price=params.gas_price)

        payload = build_dca_payload(builder.build(params), interval_seconds, times, min_price, max_price)
        result = await self.api.create_dca_order(self.chain_id, payload)
        logger.info("DCA order created: %s", payload["orderHash"])
        return result

    async def get_dca_orders(self, statuses: Optional[Iterable[int]] = ACTIVE_STATUSES) -> List[Order]:
        data = await self.api.get_dca_orders(self.chain_id, self.address, statuses)
        return [Order.from_api(o) for o in data]

    async def get_all_dca_orders(self, statuses: Iterable[int] = (1, 3, 4), limit: int = 1) -> List[Order]:
        data = await self.api.get_all_dca_orders(self.chain_id, statuses, limit)
        return [Order.from_api(o) for o in data]

    async def cancel_dca_order(self, order: Union[str, Order]) -> Dict[str, Any]:
        """Cancel through the API, then on-chain if the order is not filled or cancelled"""
        return await self._cancel(order, OrderMode.DCA)
