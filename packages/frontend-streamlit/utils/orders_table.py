"""
OpenOcean Demo - Order table with cancel buttons (limit and DCA pages)
"""

from typing import Any, Awaitable, Callable, Dict, List

import pandas as pd
import streamlit as st

from openocean import ConfigError, OpenOceanError, Order, RpcError, Trader, TransactionError, format_address

from .session import run_async, tx_link


def orders_dataframe(orders: List[Order], dca: bool = False) -> pd.DataFrame:
    rows = []
    for o in orders:
        row = {
            "Order": format_address(o.order_hash),
            "Status": o.status_label,
            "Maker amount": o.maker_amount,
            "Taker amount": o.taker_amount,
            "Created": o.create_date_time or "",
        }
        if dca:
            row["Interval (s)"] = o.time
            row["Times"] = o.times
            row["Min price"] = o.min_price or ""
            row["Max price"] = o.max_price or ""
        rows.append(row)
    return pd.DataFrame(rows)


def render_orders(
    orders: List[Order],
    key: str,
    cancel: Callable[[Trader, Order], Awaitable[Dict[str, Any]]],
    dca: bool = False,
):
    """Orders table, then one cancel button per order (disabled once filled or cancelled)"""
    if not orders:
        st.info("No orders")
        return

    st.dataframe(orders_dataframe(orders, dca), use_container_width=True, hide_index=True)

    for order in orders:
        col_hash, col_status, col_action = st.columns([4, 2, 2])
        col_hash.code(order.order_hash)
        col_status.write(order.status_label)
        if col_action.button("🗑️ Cancel", key=f"{key}_cancel_{order.order_hash}", disabled=order.is_final,
                             use_container_width=True):
            with st.spinner("Cancelling..."):
                try:
                    result = run_async(lambda t: cancel(t, order), require_wallet=True)
                except (OpenOceanError, ConfigError, TransactionError, RpcError, ValueError) as e:
                    st.error(f"❌ {e}")
                else:
                    if result["tx_hash"]:
                        st.success(f"✅ Cancelled on-chain: {tx_link(result['tx_hash'])}")
                    else:
                        st.success("✅ Cancelled")
                    st.session_state.pop(key, None)
