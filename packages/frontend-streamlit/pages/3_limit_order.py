"""
🎯 Limit Order - Signed off-chain orders filled by OpenOcean
"""

from decimal import Decimal

import streamlit as st

# Add parent to path for imports
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from openocean import (
    EXPIRE_LABELS, EXPIRE_OPTIONS, ConfigError, OpenOceanError, OrderStatus, RpcError, TransactionError,
)
from utils.orders_table import render_orders
from utils.session import current_account, current_chain_id, get_token_list, render_sidebar, run_async, token_selector

st.set_page_config(
    page_title="🎯 Limit Order | OpenOcean Demo",
    page_icon="🎯",
    layout="wide"
)

ORDERS_KEY = "limit_orders"

render_sidebar()

st.title("🎯 Limit Order")

try:
    tokens = get_token_list(current_chain_id())
except OpenOceanError as e:
    st.error(f"❌ Token list unavailable: {e}")
    st.stop()

# ========== CREATE ==========
st.subheader("➕ New Order")

col_in, col_out = st.columns(2)
with col_in:
    in_token = token_selector("Sell", tokens, "USDC", key="limit_in")
    maker_amount = st.number_input(f"Amount ({in_token.symbol})", min_value=0.0, value=10.0, step=1.0, format="%.6f")
with col_out:
    out_token = token_selector("Buy", tokens, "USDT", key="limit_out")
    taker_amount = st.number_input(f"Receive ({out_token.symbol})", min_value=0.0, value=10.0, step=1.0, format="%.6f")

expire = st.selectbox(
    "⏱️ Expires in", list(EXPIRE_OPTIONS), index=list(EXPIRE_OPTIONS).index("6Month"),
    format_func=lambda code: EXPIRE_LABELS[code],
)

if maker_amount > 0:
    st.caption(
        f"Price: 1 {in_token.symbol} = {Decimal(str(taker_amount)) / Decimal(str(maker_amount)):,.6f} {out_token.symbol}"
    )

if st.button("🎯 Create Limit Order", type="primary", disabled=not current_account()):
    if maker_amount <= 0 or taker_amount <= 0:
        st.error("❌ Amounts must be greater than 0")
    elif in_token.address.lower() == out_token.address.lower():
        st.error("❌ Pick two different tokens")
    else:
        with st.spinner("Signing and posting order..."):
            try:
                result = run_async(
                    lambda t: t.create_limit_order(
                        in_token, out_token, Decimal(str(maker_amount)), Decimal(str(taker_amount)), expire
                    ),
                    require_wallet=True,
                )
            except (OpenOceanError, ConfigError, TransactionError, RpcError, ValueError) as e:
                st.error(f"❌ {e}")
            else:
                st.success("✅ Limit order created")
                st.json(result)
                st.session_state.pop(ORDERS_KEY, None)

st.divider()

# ========== ORDERS ==========
st.subheader("📋 My Orders")

if not current_account():
    st.info("Connect a wallet to see your orders")
    st.stop()

statuses = st.multiselect(
    "Status", list(OrderStatus), default=[OrderStatus.PENDING, OrderStatus.ACTIVE, OrderStatus.EXPIRED],
    format_func=lambda s: s.label,
)

if st.button("🔄 Refresh") or ORDERS_KEY not in st.session_state:
    try:
        st.session_state[ORDERS_KEY] = run_async(
            lambda t: t.get_limit_orders([int(s) for s in statuses]), require_wallet=True
        )
    except (OpenOceanError, ConfigError) as e:
        st.error(f"❌ {e}")
        st.session_state[ORDERS_KEY] = []

render_orders(st.session_state[ORDERS_KEY], ORDERS_KEY, lambda t, order: t.cancel_limit_order(order))
