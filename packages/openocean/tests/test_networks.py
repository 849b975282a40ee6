"""
Tests for network configuration.
"""
import pytest

from openocean.networks import (
    NETWORKS, get_chain_info, get_network, is_chain_supported, is_gasless_chain, list_networks,
)


class TestGetNetwork:

    def test_by_name(self):
        assert get_network("base").chain_id == 8453

    def test_by_code_alias(self):
        assert get_network("eth").chain_id == 1
        assert get_network("avax").chain_id == 43114

    def test_by_chain_id(self):
        assert get_network(56).code == "bsc"
        assert get_network("137").code == "polygon"

    def test_case_insensitive(self):
        assert get_network("Arbitrum").chain_id == 42161

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Unknown network"):
            get_network("fantom")

    def test_unknown_chain_id_raises(self):
        with pytest.raises(ValueError, match="Unsupported chain id"):
            get_network(999)


class TestChainHelpers:

    def test_chain_info(self):
        assert get_chain_info(10).name == "Optimism"
        assert get_chain_info(12345) is None

    def test_chain_supported(self):
        assert is_chain_supported(8453)
        assert not is_chain_supported(250)

    def test_gasless_chains(self):
        assert is_gasless_chain("base")
        assert is_gasless_chain(8453)
        assert is_gasless_chain("sonic")
        assert not is_gasless_chain(137)
        assert not get_network("polygon").supports_gasless

    def test_list_networks(self):
        assert list_networks() == list(NETWORKS.keys())

    def test_wallet_params(self):
        params = get_network("bsc").to_wallet_params()
        assert params["chainId"] == "0x38"
        assert params["nativeCurrency"] == {"name": "BNB", "symbol": "BNB", "decimals": 18}
        assert params["rpcUrls"] == ["https://bsc-dataseed.binance.org"]
