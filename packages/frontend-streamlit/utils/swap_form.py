"""
OpenOcean Demo - Swap form shared by the swap and gasless swap pages
"""

from decimal import Decimal
from typing import Optional, Tuple

import streamlit as st

from openocean import OpenOceanError, Quote, TokenInfo, get_network

from .session import current_chain_id, get_settings, get_token_list, run_async, token_selector


def _switch_direction(prefix: str):
    in_key, out_key = f"{prefix}_in", f"{prefix}_out"
    st.session_state[in_key], st.session_state[out_key] = (
        st.session_state.get(out_key), st.session_state.get(in_key)
    )
    st.session_state.pop(f"{prefix}_quote", None)


def render_swap_inputs(prefix: str) -> Optional[Tuple[TokenInfo, TokenInfo, Decimal, Decimal]]:
    """
    Token pair, amount and slippage inputs

    Returns:
        (in_token, out_token, amount, slippage) or None when the token list is unavailable
    """
    chain_id = current_chain_id()
    try:
        tokens = get_token_list(chain_id)
    except OpenOceanError as e:
        st.error(f"❌ Token list unavailable: {e}")
        return None
    if not tokens:
        st.warning("⚠️ No tokens for this chain")
        return None

    col_in, col_switch, col_out = st.columns([5, 1, 5])
    with col_in:
        in_token = token_selector("From", tokens, "USDC", key=f"{prefix}_in")
    with col_switch:
        st.write("")
        st.button("⇄", key=f"{prefix}_switch", on_click=_switch_direction, args=(prefix,))
    with col_out:
        out_token = token_selector("To", tokens, "USDT", key=f"{prefix}_out")

    col_amount, col_slippage = st.columns(2)
    amount = col_amount.number_input(
        f"Amount ({in_token.symbol})", min_value=0.0, value=1.0, step=0.1, format="%.6f", key=f"{prefix}_amount"
    )
    slippage = col_slippage.number_input(
        "Slippage (%)", min_value=0.1, max_value=50.0,
        value=float(get_settings().default_slippage), step=0.1, key=f"{prefix}_slippage",
    )
    return in_token, out_token, Decimal(str(amount)), Decimal(str(slippage))


def render_quote(quote: Quote):
    """Rate, amounts and network of a quote"""
    network = get_network(current_chain_id())
    col1, col2, col3 = st.columns(3)
    col1.metric("You pay", f"{quote.in_amount_human:,.6f} {quote.in_token.symbol}")
    col2.metric("You receive (est.)", f"{quote.out_amount_human:,.6f} {quote.out_token.symbol}")
    col3.metric("Network", network.name)
    st.caption(
        f"1 {quote.in_token.symbol} = {quote.price:,.6f} {quote.out_token.symbol}"
        + (f" | gas ~{quote.estimated_gas:,}" if quote.estimated_gas else "")
    )


def get_quote(prefix: str, in_token: TokenInfo, out_token: TokenInfo, amount: Decimal, slippage: Decimal):
    """Fetch a quote into the session; shows the error on failure"""
    if in_token.address.lower() == out_token.address.lower():
        st.error("❌ Pick two different tokens")
        return
    if amount <= 0:
        st.error("❌ Amount must be greater than 0")
        return
    with st.spinner("Fetching quote..."):
        try:
            st.session_state[f"{prefix}_quote"] = run_async(
                lambda t: t.quote(in_token, out_token, amount, slippage)
            )
        except (OpenOceanError, ValueError) as e:
            st.session_state.pop(f"{prefix}_quote", None)
            st.error(f"❌ {e}")
