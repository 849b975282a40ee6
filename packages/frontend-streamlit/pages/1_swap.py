"""
🔄 Swap - Aggregated swap through the OpenOcean router
"""

import streamlit as st

# Add parent to path for imports
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from openocean import ConfigError, OpenOceanError, RpcError, TransactionError
from utils.session import current_account, render_sidebar, run_async, tx_link
from utils.swap_form import get_quote, render_quote, render_swap_inputs

st.set_page_config(
    page_title="🔄 Swap | OpenOcean Demo",
    page_icon="🔄",
    layout="wide"
)

PREFIX = "swap"

render_sidebar()

st.title("🔄 Swap")

inputs = render_swap_inputs(PREFIX)
if inputs is None:
    st.stop()
in_token, out_token, amount, slippage = inputs

col_quote, col_swap = st.columns(2)

with col_quote:
    if st.button("💱 Get Quote", use_container_width=True):
        get_quote(PREFIX, in_token, out_token, amount, slippage)

quote = st.session_state.get(f"{PREFIX}_quote")
if quote:
    render_quote(quote)

with col_swap:
    swap_clicked = st.button(
        "🚀 Swap", type="primary", use_container_width=True,
        disabled=not current_account(),
        help=None if current_account() else "Connect a wallet first",
    )

if swap_clicked:
    with st.spinner(f"Swapping {amount} {in_token.symbol} → {out_token.symbol}..."):
        try:
            result = run_async(lambda t: t.swap(in_token, out_token, amount, slippage), require_wallet=True)
        except (OpenOceanError, ConfigError, TransactionError, RpcError, ValueError) as e:
            st.error(f"❌ {e}")
        else:
            if result.success:
                st.success(f"✅ Swap confirmed: {tx_link(result.tx_hash)}")
                st.session_state.pop(f"{PREFIX}_quote", None)
            else:
                st.error(f"❌ Swap failed: {result.error}")
                if result.tx_hash:
                    st.caption(tx_link(result.tx_hash))
