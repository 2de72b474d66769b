"""Shared test fixtures for the gas tracker."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from chaingas.config import AppSettings, PriceFeedSettings, RpcSettings
from chaingas.rpc.client import BlockHeader, RpcClient

GWEI = 10**9


def make_rpc(
    base_fee_wei: int | None = 30 * GWEI,
    priority_fee_wei: int = 2 * GWEI,
    gas_price_wei: int = 5 * GWEI,
    block_number: int = 19_000_000,
) -> AsyncMock:
    """Return an RpcClient mock serving a single latest block."""
    rpc = AsyncMock(spec=RpcClient)
    rpc.get_block_number.return_value = block_number
    rpc.get_block.return_value = BlockHeader(
        number=block_number,
        timestamp=1_700_000_000,
        base_fee_per_gas=base_fee_wei,
    )
    rpc.get_max_priority_fee.return_value = priority_fee_wei
    rpc.get_gas_price.return_value = gas_price_wei
    rpc.get_logs.return_value = []
    return rpc


@pytest.fixture
def rpc_factory() -> Callable[..., AsyncMock]:
    """Factory for RpcClient mocks with configurable fee responses."""
    return make_rpc


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (all endpoints configured)."""
    return AppSettings(
        log_level="DEBUG",
        rpc=RpcSettings(
            ethereum_url="http://eth.test",  # type: ignore[arg-type]
            polygon_url="http://polygon.test",  # type: ignore[arg-type]
            arbitrum_url="http://arbitrum.test",  # type: ignore[arg-type]
        ),
        price_feed=PriceFeedSettings(),
    )
