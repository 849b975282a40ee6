"""
⛽ Gasless Swap - Permit2 signature, the relayer pays the gas
"""

import streamlit as st

# Add parent to path for imports
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from openocean import (
    ConfigError, GaslessNotSupportedError, OpenOceanError, RpcError, TransactionError,
    get_network, is_gasless_chain,
)
from utils.session import current_account, current_chain_id, render_sidebar, run_async, tx_link
from utils.swap_form import get_quote, render_quote, render_swap_inputs

st.set_page_config(
    page_title="⛽ Gasless Swap | OpenOcean Demo",
    page_icon="⛽",
    layout="wide"
)

PREFIX = "gasless"

render_sidebar()

st.title("⛽ Gasless Swap")

network = get_network(current_chain_id())
if not is_gasless_chain(network.chain_id):
    st.warning(f"⚠️ Gasless swaps are not available on {network.name}. Switch chain in the sidebar.")
    st.stop()

st.caption("Sign a Permit2 transfer; the OpenOcean relayer submits the swap and pays the gas.")

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
        "⛽ Gasless Swap", type="primary", use_container_width=True,
        disabled=not current_account(),
        help=None if current_account() else "Connect a wallet first",
    )

if swap_clicked:
    with st.spinner("Signing permit and waiting for the relayer..."):
        try:
            result = run_async(
                lambda t: t.gasless_swap(in_token, out_token, amount, slippage), require_wallet=True
            )
        except (GaslessNotSupportedError, OpenOceanError, ConfigError, TransactionError, RpcError, ValueError) as e:
            st.error(f"❌ {e}")
        else:
            st.info(f"📨 Order `{result['orderHash']}` submitted")
            if result["hash"]:
                st.success(f"✅ Swap sent: {tx_link(result['hash'])}")
                st.session_state.pop(f"{PREFIX}_quote", None)
            else:
                st.warning("⏳ The relayer has not reported a transaction yet. Check the order later.")
