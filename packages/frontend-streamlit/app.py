"""
OpenOcean Demo - Home
"""

import streamlit as st
import pandas as pd

from openocean import NETWORKS, __version__
from utils.session import current_chain_id, render_sidebar

st.set_page_config(
    page_title="🌊 OpenOcean Demo",
    page_icon="🌊",
    layout="wide"
)

render_sidebar()

with st.sidebar:
    st.page_link("pages/1_swap.py", label="🔄 Swap")
    st.page_link("pages/2_gasless_swap.py", label="⛽ Gasless Swap")
    st.page_link("pages/3_limit_order.py", label="🎯 Limit Order")
    st.page_link("pages/4_dca.py", label="📅 DCA")
    st.caption(f"v{__version__}")

# Header
st.title("🌊 OpenOcean Demo")
st.markdown(
    "Swap, gasless swap, limit orders and DCA through the OpenOcean aggregator. "
    "Connect a wallet and pick a chain in the sidebar."
)

st.divider()

# Supported chains (aliases collapsed)
st.subheader("⛓️ Supported Chains")
networks = {n.chain_id: n for n in NETWORKS.values()}
rows = [
    {
        "Chain": n.name,
        "Chain ID": n.chain_id,
        "Code": n.code,
        "Native": n.symbol,
        "Gasless": "✅" if n.supports_gasless else "",
        "Explorer": n.explorer_url,
    }
    for n in networks.values()
]
st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

selected = networks.get(current_chain_id())
if selected:
    st.info(f"Active chain: **{selected.name}** ({selected.chain_id})")
