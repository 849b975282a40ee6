"""
OpenOcean Demo - Session state, wallet connection and async bridge
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

import streamlit as st

from openocean import (
    CLIENT_KINDS, ConfigError, NETWORKS, OpenOceanClient, Settings, TokenInfo, Trader,
    create_client, format_address, get_network, load_account, load_settings,
)

logger = logging.getLogger(__name__)

# Session keys
ACCOUNT = "account"
CHAIN_ID = "chain_id"
CLIENT_KIND = "client_kind"
CHAIN_WARNING = "chain_warning"


@st.cache_resource
def get_settings() -> Settings:
    """Settings from .env / environment, loaded once per server"""
    return load_settings()


def init_session():
    settings = get_settings()
    st.session_state.setdefault(ACCOUNT, None)
    st.session_state.setdefault(CHAIN_ID, settings.default_chain)
    st.session_state.setdefault(CLIENT_KIND, settings.client_kind)
    st.session_state.setdefault(CHAIN_WARNING, None)


def current_chain_id() -> int:
    return st.session_state[CHAIN_ID]


def current_account():
    return st.session_state.get(ACCOUNT)


def connect_wallet(private_key: Optional[str] = None, keyfile: Optional[str] = None, password: Optional[str] = None):
    """Load the account and keep it in the session. Raises ValueError on bad input."""
    account = load_account(private_key, keyfile, password)
    st.session_state[ACCOUNT] = account
    logger.info("Wallet connected: %s", account.address)
    check_chain()
    return account


def disconnect_wallet():
    st.session_state[ACCOUNT] = None
    st.session_state[CHAIN_WARNING] = None


def switch_chain(chain_id: int):
    st.session_state[CHAIN_ID] = int(chain_id)
    check_chain()


def check_chain():
    """Compare the RPC's chain id with the selected chain"""
    account = current_account()
    if not account:
        st.session_state[CHAIN_WARNING] = None
        return
    chain_id = current_chain_id()
    settings = get_settings()
    with create_client(st.session_state[CLIENT_KIND], chain_id, account, settings.rpc_url(chain_id)) as client:
        st.session_state[CHAIN_WARNING] = client.chain_mismatch()


def make_trader(require_wallet: bool = False) -> Trader:
    """Trader for the session's chain, client kind and wallet"""
    settings = get_settings()
    chain_id = current_chain_id()
    account = current_account()
    if require_wallet and not account:
        raise ConfigError("Connect a wallet first")

    api = OpenOceanClient(settings.base_url, settings.request_timeout)
    client = None
    if account:
        client = create_client(st.session_state[CLIENT_KIND], chain_id, account, settings.rpc_url(chain_id))
    return Trader(api, client, settings, chain_id=chain_id)


def run_async(action: Callable[[Trader], Awaitable[Any]], require_wallet: bool = False) -> Any:
    """
    Run `action(trader)` to completion from a Streamlit script

    Example:
        quote = run_async(lambda t: t.quote("USDC", "USDT", Decimal("10")))
    """
    async def _run():
        async with make_trader(require_wallet) as trader:
            return await action(trader)

    return asyncio.run(_run())


@st.cache_data(ttl=300, show_spinner=False)
def get_token_list(chain_id: int) -> List[TokenInfo]:
    async def _load():
        settings = get_settings()
        async with Trader(OpenOceanClient(settings.base_url, settings.request_timeout), None, settings, chain_id) as trader:
            return await trader.get_tokens()

    return asyncio.run(_load())


def token_selector(label: str, tokens: List[TokenInfo], default: str, key: str) -> TokenInfo:
    """Select box over the token list, keyed by address"""
    by_address = {t.address: t for t in tokens}
    if st.session_state.get(key) not in by_address:
        st.session_state[key] = next((t.address for t in tokens if t.symbol == default), tokens[0].address)
    address = st.selectbox(
        label, list(by_address), key=key,
        format_func=lambda a: f"{by_address[a].symbol} ({format_address(a)})",
    )
    return by_address[address]


def tx_link(tx_hash: str) -> str:
    network = get_network(current_chain_id())
    return f"[{format_address(tx_hash)}]({network.explorer_url}/tx/{tx_hash})"


def render_sidebar():
    """Wallet connection and chain switching"""
    init_session()
    settings = get_settings()

    with st.sidebar:
        st.title("🌊 OpenOcean Demo")
        st.markdown("---")

        # Chain
        chain_ids = sorted({n.chain_id for n in NETWORKS.values()})
        selected = st.selectbox(
            "⛓️ Chain",
            chain_ids,
            index=chain_ids.index(current_chain_id()) if current_chain_id() in chain_ids else 0,
            format_func=lambda cid: get_network(cid).name,
        )
        if selected != current_chain_id():
            switch_chain(selected)

        kind = st.radio("🔌 Client", list(CLIENT_KINDS), horizontal=True,
                        index=list(CLIENT_KINDS).index(st.session_state[CLIENT_KIND]))
        if kind != st.session_state[CLIENT_KIND]:
            st.session_state[CLIENT_KIND] = kind
            check_chain()

        st.markdown("---")

        # Wallet
        account = current_account()
        if account:
            st.success(f"👛 `{format_address(account.address)}`")
            if st.session_state.get(CHAIN_WARNING):
                st.warning(f"⚠️ {st.session_state[CHAIN_WARNING]}")
            if st.button("🔌 Disconnect", use_container_width=True):
                disconnect_wallet()
                st.rerun()
        else:
            method = st.radio("Connect with", ["Private key", "Environment", "Keyfile"])
            with st.form("connect_wallet"):
                key = keyfile = password = None
                if method == "Private key":
                    key = st.text_input("Private key", type="password")
                elif method == "Environment":
                    key = settings.private_key
                    keyfile, password = settings.keyfile, settings.keyfile_password
                    st.caption("Uses PRIVATE_KEY or KEYFILE / KEYFILE_PASSWORD")
                else:
                    keyfile = st.text_input("Keyfile path", value=settings.keyfile or "")
                    password = st.text_input("Password", type="password")

                if st.form_submit_button("👛 Connect", type="primary", use_container_width=True):
                    try:
                        connect_wallet(key, keyfile, password)
                        st.rerun()
                    except (ValueError, OSError) as e:
                        st.error(f"❌ {e}")

        st.markdown("---")
        network = get_network(current_chain_id())
        st.caption(f"{network.name} ({network.chain_id}) | {st.session_state[CLIENT_KIND]}")
