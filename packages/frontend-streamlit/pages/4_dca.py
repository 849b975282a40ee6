"""
📅 DCA - Split a buy into equal trades over time
"""

from decimal import Decimal

import streamlit as st

# Add parent to path for imports
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from openocean import DCA_INTERVAL_UNITS, ConfigError, OpenOceanError, RpcError, TransactionError
from utils.orders_table import render_orders
from utils.session import current_account, current_chain_id, get_token_list, render_sidebar, run_async, token_selector

st.set_page_config(
    page_title="📅 DCA | OpenOcean Demo",
    page_icon="📅",
    layout="wide"
)

ORDERS_KEY = "dca_orders"

render_sidebar()

st.title("📅 DCA")

try:
    tokens = get_token_list(current_chain_id())
except OpenOceanError as e:
    st.error(f"❌ Token list unavailable: {e}")
    st.stop()

# ========== CREATE ==========
st.subheader("➕ New DCA")

col_in, col_out = st.columns(2)
with col_in:
    in_token = token_selector("Spend", tokens, "USDC", key="dca_in")
    amount = st.number_input(f"Total amount ({in_token.symbol})", min_value=0.0, value=10.0, step=1.0, format="%.6f")
with col_out:
    out_token = token_selector("Buy", tokens, "USDT", key="dca_out")

col_every, col_unit, col_times = st.columns(3)
interval = col_every.number_input("Every", min_value=1, value=1, step=1)
unit = col_unit.selectbox("Unit", list(DCA_INTERVAL_UNITS), index=list(DCA_INTERVAL_UNITS).index("Hour"))
times = col_times.number_input("Frequency (trades)", min_value=1, value=2, step=1)

with st.expander("Price range (optional)"):
    col_min, col_max = st.columns(2)
    min_price = col_min.number_input("Min price", min_value=0.0, value=0.0, format="%.6f")
    max_price = col_max.number_input("Max price", min_value=0.0, value=0.0, format="%.6f")

interval_seconds = int(interval) * DCA_INTERVAL_UNITS[unit]
if amount > 0:
    st.caption(f"{Decimal(str(amount)) / int(times):,.6f} {in_token.symbol} every {int(interval)} {unit.lower()}(s), {int(times)} times")

if st.button("📅 Create DCA", type="primary", disabled=not current_account()):
    if amount <= 0:
        st.error("❌ Amount must be greater than 0")
    elif max_price and min_price > max_price:
        st.error("❌ Min price is above max price")
    elif in_token.address.lower() == out_token.address.lower():
        st.error("❌ Pick two different tokens")
    else:
        with st.spinner("Signing and posting DCA order..."):
            try:
                result = run_async(
                    lambda t: t.create_dca_order(
                        in_token, out_token, Decimal(str(amount)), interval_seconds, int(times),
                        min_price=Decimal(str(min_price)) if min_price else None,
                        max_price=Decimal(str(max_price)) if max_price else None,
                    ),
                    require_wallet=True,
                )
            except (OpenOceanError, ConfigError, TransactionError, RpcError, ValueError) as e:
                st.error(f"❌ {e}")
            else:
                st.success("✅ DCA order created")
                st.json(result)
                st.session_state.pop(ORDERS_KEY, None)

st.divider()

# ========== ORDERS ==========
st.subheader("📋 My DCA Orders")

if not current_account():
    st.info("Connect a wallet to see your orders")
    st.stop()

if st.button("🔄 Refresh") or ORDERS_KEY not in st.session_state:
    try:
        st.session_state[ORDERS_KEY] = run_async(lambda t: t.get_dca_orders(), require_wallet=True)
    except (OpenOceanError, ConfigError) as e:
        st.error(f"❌ {e}")
        st.session_state[ORDERS_KEY] = []

render_orders(st.session_state[ORDERS_KEY], ORDERS_KEY, lambda t, order: t.cancel_dca_order(order), dca=True)
