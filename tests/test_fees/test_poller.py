"""Tests for ChainPoller.

All tests use a mocked RpcClient to avoid real node calls.
"""

from decimal import Decimal

import pytest

from chaingas.exceptions import TransientFetchFault, UnsupportedMethodFault
from chaingas.fees.poller import ChainPoller, describe_fault
from chaingas.networks import ARBITRUM, ETHEREUM, POLYGON
from chaingas.timeutils import EpochMillis

GWEI = 10**9
NOW = EpochMillis(1_700_000_123_456)


def _clock() -> EpochMillis:
    return NOW


class TestFetchSample:
    @pytest.mark.asyncio
    async def test_fee_market_sample(self, rpc_factory) -> None:
        rpc = rpc_factory(base_fee_wei=30 * GWEI, priority_fee_wei=2 * GWEI)
        poller = ChainPoller(ETHEREUM, rpc, clock=_clock)

        sample = await poller.fetch_sample()

        assert sample.network == "ethereum"
        assert sample.observed_at_ms == NOW
        assert sample.base_fee_gwei == Decimal("30")
        assert sample.priority_fee_gwei == Decimal("2")
        assert sample.total_gwei == Decimal("32")
        rpc.get_block.assert_awaited_once_with(19_000_000)
        rpc.get_gas_price.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_legacy_sample(self, rpc_factory) -> None:
        rpc = rpc_factory(base_fee_wei=None, gas_price_wei=5 * GWEI)
        sample = await ChainPoller(POLYGON, rpc, clock=_clock).fetch_sample()

        assert sample.base_fee_gwei == Decimal("5")
        assert sample.priority_fee_gwei == Decimal("0")
        rpc.get_max_priority_fee.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollup_sample_has_surcharge(self, rpc_factory) -> None:
        rpc = rpc_factory(base_fee_wei=None, gas_price_wei=5 * GWEI)
        sample = await ChainPoller(ARBITRUM, rpc, clock=_clock).fetch_sample()

        assert sample.base_fee_gwei == Decimal("6.5")
        assert sample.priority_fee_gwei == Decimal("0")

    @pytest.mark.asyncio
    async def test_unsupported_priority_method_uses_default(self, rpc_factory) -> None:
        rpc = rpc_factory(base_fee_wei=20 * GWEI)
        rpc.get_max_priority_fee.side_effect = UnsupportedMethodFault("no such method")

        sample = await ChainPoller(ETHEREUM, rpc, clock=_clock).fetch_sample()

        assert sample.base_fee_gwei == Decimal("20")
        assert sample.priority_fee_gwei == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_block_fetch_failure_is_transient_fault(self, rpc_factory) -> None:
        rpc = rpc_factory()
        rpc.get_block.side_effect = ConnectionError("connection reset")

        with pytest.raises(TransientFetchFault, match="ethereum: connection reset"):
            await ChainPoller(ETHEREUM, rpc).fetch_sample()

    @pytest.mark.asyncio
    async def test_gas_price_failure_is_transient_fault(self, rpc_factory) -> None:
        rpc = rpc_factory(base_fee_wei=None)
        rpc.get_gas_price.side_effect = TimeoutError()

        with pytest.raises(TransientFetchFault, match="TimeoutError"):
            await ChainPoller(POLYGON, rpc).fetch_sample()


class TestPoll:
    @pytest.mark.asyncio
    async def test_success_result(self, rpc_factory) -> None:
        result = await ChainPoller(ETHEREUM, rpc_factory(), clock=_clock).poll()

        assert result.ok
        assert result.network == "ethereum"
        assert result.fault is None
        assert result.sample is not None
        assert result.sample.total_gwei == Decimal("32")

    @pytest.mark.asyncio
    async def test_failure_result_carries_message(self, rpc_factory) -> None:
        rpc = rpc_factory()
        rpc.get_block_number.side_effect = ConnectionError("node unreachable")

        result = await ChainPoller(POLYGON, rpc).poll()

        assert not result.ok
        assert result.sample is None
        assert result.network == "polygon"
        assert result.fault == "Failed to fetch gas data for polygon: node unreachable"

    @pytest.mark.asyncio
    async def test_priority_fallback_is_not_a_fault(self, rpc_factory) -> None:
        rpc = rpc_factory()
        rpc.get_max_priority_fee.side_effect = UnsupportedMethodFault("unsupported")

        result = await ChainPoller(ETHEREUM, rpc).poll()

        assert result.ok
        assert result.fault is None


class TestDescribeFault:
    def test_uses_message(self) -> None:
        assert (
            describe_fault("arbitrum", ValueError("bad block"))
            == "Failed to fetch gas data for arbitrum: bad block"
        )

    def test_falls_back_to_exception_type(self) -> None:
        assert describe_fault("ethereum", TimeoutError()).endswith(": TimeoutError")
