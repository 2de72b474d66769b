"""Tests for the static network registry."""

import pytest

from chaingas.networks import ARBITRUM, DEFAULT_NETWORKS, get_network


def test_default_networks() -> None:
    assert [(n.name, n.chain_id, n.native_symbol) for n in DEFAULT_NETWORKS] == [
        ("ethereum", 1, "ETH"),
        ("polygon", 137, "MATIC"),
        ("arbitrum", 42161, "ETH"),
    ]


def test_only_arbitrum_carries_l1_surcharge() -> None:
    assert [n.name for n in DEFAULT_NETWORKS if n.rollup_l1_surcharge] == ["arbitrum"]


def test_get_network() -> None:
    assert get_network("arbitrum") is ARBITRUM
    with pytest.raises(KeyError, match="Unknown network: optimism"):
        get_network("optimism")
