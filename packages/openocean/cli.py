#!/usr/bin/env python3
"""
OpenOcean demo scripts

Usage:
    openocean-demo --chain base quote USDC USDT 10
    openocean-demo --client rpc swap USDC USDT 10 --dry-run
    openocean-demo limit create USDC USDT 10 10.1 --expire 1D
    openocean-demo dca create USDC USDT 10 --interval 1 --unit Minute --times 2
    openocean-demo demo swap
"""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from decimal import Decimal
from typing import Any, List, Optional

from .api import OpenOceanClient, OpenOceanError
from .clients import CLIENT_KINDS, RpcError, TransactionError, create_client
from .config import ConfigError, Settings, load_settings
from .models import DCA_INTERVAL_UNITS, EXPIRE_OPTIONS
from .networks import NETWORKS, get_network
from .trader import GaslessNotSupportedError, Trader
from .wallet import save_keyfile

logger = logging.getLogger(__name__)

# Commands that only read from the API
READ_ONLY_COMMANDS = ("chains", "gas-price", "tokens", "quote")

# Amounts used by the demo sequences (USDC -> USDT on Base)
DEMO_IN = "USDC"
DEMO_OUT = "USDT"
DEMO_AMOUNT = Decimal("10")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openocean-demo", description="OpenOcean API demo")
    parser.add_argument("--chain", type=str, help="Chain name, code or id (default: CHAIN or base)")
    parser.add_argument("--client", choices=list(CLIENT_KINDS), help="Blockchain client library")
    parser.add_argument("--config", type=str, help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("chains", help="Supported chains")
    sub.add_parser("gas-price", help="Current gas price")

    p = sub.add_parser("tokens", help="Token list")
    p.add_argument("--search", type=str, help="Filter by symbol or name")

    p = sub.add_parser("allowance", help="Allowance granted to the OpenOcean exchange")
    p.add_argument("token")

    p = sub.add_parser("approve", help="Approve a token")
    p.add_argument("token")
    p.add_argument("--spender", type=str, help="Spender (default: OpenOcean exchange)")

    for name, help_text in (("quote", "Swap quote"), ("swap", "Swap tokens"), ("gasless", "Gasless swap")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("in_token")
        p.add_argument("out_token")
        p.add_argument("amount", type=Decimal)
        p.add_argument("--slippage", type=Decimal, help="Slippage in percent (1 = 1%%)")
        if name == "swap":
            p.add_argument("--dry-run", action="store_true", help="Build the transaction without sending")

    limit = sub.add_parser("limit", help="Limit orders").add_subparsers(dest="action", required=True)
    p = limit.add_parser("create")
    p.add_argument("in_token")
    p.add_argument("out_token")
    p.add_argument("maker_amount", type=Decimal)
    p.add_argument("taker_amount", type=Decimal)
    p.add_argument("--expire", choices=list(EXPIRE_OPTIONS), default="6Month")
    limit.add_parser("list")
    p = limit.add_parser("cancel")
    p.add_argument("order_hash")

    dca = sub.add_parser("dca", help="DCA orders").add_subparsers(dest="action", required=True)
    p = dca.add_parser("create")
    p.add_argument("in_token")
    p.add_argument("out_token")
    p.add_argument("amount", type=Decimal)
    p.add_argument("--interval", type=int, required=True, help="Interval value")
    p.add_argument("--unit", choices=list(DCA_INTERVAL_UNITS), default="Minute")
    p.add_argument("--times", type=int, required=True, help="Number of trades")
    p.add_argument("--min-price", type=Decimal)
    p.add_argument("--max-price", type=Decimal)
    p = dca.add_parser("list")
    p.add_argument("--all", action="store_true", help="All DCA orders of the chain")
    p = dca.add_parser("cancel")
    p.add_argument("order_hash")

    wallet = sub.add_parser("wallet", help="Local wallet").add_subparsers(dest="action", required=True)
    p = wallet.add_parser("encrypt", help="Store the private key in an encrypted keyfile")
    p.add_argument("keyfile")
    wallet.add_parser("address")

    p = sub.add_parser("demo", help="Run a full demo sequence")
    p.add_argument("flow", choices=["swap", "limit", "dca"])

    return parser


def _orders(orders) -> List[dict]:
    return [
        {
            "orderHash": o.order_hash,
            "status": o.status,
            "statusLabel": o.status_label,
            "makerAmount": o.maker_amount,
            "takerAmount": o.taker_amount,
            "createDateTime": o.create_date_time,
        }
        for o in orders
    ]


async def run_demo(trader: Trader, flow: str) -> Any:
    """Replay a full backend sequence"""
    steps = {}
    if flow == "swap":
        steps["gasPriceGwei"] = str(await trader.get_gas_price())
        steps["tokens"] = len(await trader.get_tokens())
        steps["allowance"] = str(await trader.get_allowance(DEMO_IN))
        steps["approve"] = await trader.approve(DEMO_IN)
        steps["quote"] = (await trader.quote(DEMO_IN, DEMO_OUT, DEMO_AMOUNT)).to_dict()
        steps["swap"] = (await trader.swap(DEMO_IN, DEMO_OUT, DEMO_AMOUNT)).to_dict()
        return steps

    if flow == "limit":
        steps["create"] = await trader.create_limit_order(DEMO_IN, DEMO_OUT, DEMO_AMOUNT, DEMO_AMOUNT)
        orders = await trader.get_limit_orders()
        steps["orders"] = _orders(orders)
        if orders:
            steps["cancel"] = await trader.cancel_limit_order(orders[0])
        return steps

    steps["create"] = await trader.create_dca_order(
        DEMO_IN, DEMO_OUT, DEMO_AMOUNT, DCA_INTERVAL_UNITS["Minute"], 2, taker_amount=DEMO_AMOUNT
    )
    orders = await trader.get_dca_orders()
    steps["orders"] = _orders(orders)
    if orders:
        steps["cancel"] = await trader.cancel_dca_order(orders[0])
    return steps


async def run(args: argparse.Namespace, settings: Settings) -> Any:
    """Execute a parsed command, returns a JSON-serializable result"""
    command = args.command
    chain_id = settings.default_chain
    logger.debug("Running %s on chain %s (%s client)", command, chain_id, settings.client_kind)

    if command == "chains":
        return [
            {"key": key, "chainId": n.chain_id, "code": n.code, "name": n.name, "gasless": n.supports_gasless}
            for key, n in NETWORKS.items()
        ]

    if command == "wallet" and args.action == "encrypt":
        private_key = settings.private_key or getpass.getpass("Private key: ")
        password = getpass.getpass("Keyfile password: ")
        if password != getpass.getpass("Confirm password: "):
            raise ValueError("Passwords do not match")
        return {"address": save_keyfile(args.keyfile, private_key, password), "keyfile": args.keyfile}

    client = None
    if command not in READ_ONLY_COMMANDS:
        client = create_client(settings.client_kind, chain_id, settings.account(), settings.rpc_url(chain_id))

    api = OpenOceanClient(settings.base_url, timeout=settings.request_timeout)
    async with Trader(api, client, settings, chain_id=chain_id) as trader:
        if command == "gas-price":
            return {"chainId": chain_id, "gasPriceGwei": str(await trader.get_gas_price())}

        if command == "tokens":
            tokens = await trader.get_tokens()
            if args.search:
                term = args.search.lower()
                tokens = [t for t in tokens if term in t.symbol.lower() or term in t.name.lower()]
            return [{"symbol": t.symbol, "address": t.address, "decimals": t.decimals} for t in tokens]

        if command == "quote":
            return (await trader.quote(args.in_token, args.out_token, args.amount, args.slippage)).to_dict()

        if command == "wallet":
            return {"address": trader.address, "client": trader.wallet.kind, "chainId": chain_id}

        if command == "allowance":
            return {"token": args.token, "allowance": str(await trader.get_allowance(args.token))}

        if command == "approve":
            return {"tx_hash": await trader.approve(args.token, args.spender)}

        if command == "swap":
            result = await trader.swap(args.in_token, args.out_token, args.amount, args.slippage, args.dry_run)
            return result.to_dict()

        if command == "gasless":
            return await trader.gasless_swap(args.in_token, args.out_token, args.amount, args.slippage)

        if command == "limit":
            if args.action == "create":
                return await trader.create_limit_order(
                    args.in_token, args.out_token, args.maker_amount, args.taker_amount, args.expire
                )
            if args.action == "list":
                return _orders(await trader.get_limit_orders())
            return await trader.cancel_limit_order(args.order_hash)

        if command == "dca":
            if args.action == "create":
                return await trader.create_dca_order(
                    args.in_token, args.out_token, args.amount,
                    args.interval * DCA_INTERVAL_UNITS[args.unit], args.times,
                    args.min_price, args.max_price,
                )
            if args.action == "list":
                if args.all:
                    return _orders(await trader.get_all_dca_orders())
                return _orders(await trader.get_dca_orders())
            return await trader.cancel_dca_order(args.order_hash)

        if command == "demo":
            return await run_demo(trader, args.flow)

    raise ValueError(f"Unknown command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args.config)
        if args.chain:
            settings.default_chain = get_network(args.chain).chain_id
        if args.client:
            settings.client_kind = args.client
        result = asyncio.run(run(args, settings))
    except (
        OpenOceanError, ConfigError, GaslessNotSupportedError,
        TransactionError, RpcError, ValueError, OSError,
    ) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
