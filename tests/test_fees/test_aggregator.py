"""Tests for OHLCAggregator: bucket snapping, merge vs. roll, and the history cap."""

import random
from collections import deque
from dataclasses import replace
from decimal import Decimal

import pytest

from chaingas.fees.aggregator import BUCKET_WIDTH_MS, MAX_CANDLES, OHLCAggregator
from chaingas.models import Candle, FeeSample, NetworkState
from chaingas.timeutils import EpochMillis


def _sample(t: int, base: str, prio: str = "0", network: str = "ethereum") -> FeeSample:
    return FeeSample(
        network=network,
        observed_at_ms=EpochMillis(t),
        base_fee_gwei=Decimal(base),
        priority_fee_gwei=Decimal(prio),
    )


def _assert_ohlc_invariant(candle: Candle) -> None:
    assert candle.low <= candle.open <= candle.high
    assert candle.low <= candle.close <= candle.high


@pytest.fixture
def aggregator() -> OHLCAggregator:
    return OHLCAggregator()


@pytest.fixture
def candles() -> deque[Candle]:
    return deque()


class TestMerge:
    def test_same_bucket_samples_merge_into_one_candle(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        """Totals 11, 13, 10 within bucket 0 give open=11 high=13 low=10 close=10."""
        aggregator.append(candles, _sample(0, "10", "1"))
        aggregator.append(candles, _sample(300_000, "12", "1"))
        aggregator.append(candles, _sample(310_000, "8", "2"))

        assert len(candles) == 1
        candle = candles[0]
        assert candle.bucket_start_ms == 0
        assert candle.open == Decimal("11")
        assert candle.high == Decimal("13")
        assert candle.low == Decimal("10")
        assert candle.close == Decimal("10")

    def test_merge_refreshes_last_raw_fees(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        aggregator.append(candles, _sample(0, "10", "1"))
        aggregator.append(candles, _sample(60_000, "8", "2"))

        assert candles[-1].last_base_fee_gwei == Decimal("8")
        assert candles[-1].last_priority_fee_gwei == Decimal("2")

    def test_redelivered_sample_is_idempotent(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        aggregator.append(candles, _sample(0, "10"))
        sample = _sample(120_000, "14", "1")
        aggregator.append(candles, sample)
        before = replace(candles[-1])

        aggregator.append(candles, sample)

        assert len(candles) == 1
        assert candles[-1] == before

    def test_invariant_holds_after_every_merge(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        rng = random.Random(1559)
        for i in range(200):
            base = Decimal(rng.randint(1, 50_000)) / 100
            prio = Decimal(rng.randint(0, 500)) / 100
            aggregator.append(candles, _sample(i * 4_000, str(base), str(prio)))
            _assert_ohlc_invariant(candles[-1])
        assert len(candles) == 1


class TestRoll:
    def test_new_bucket_opens_new_candle(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        aggregator.append(candles, _sample(0, "10"))
        aggregator.append(candles, _sample(BUCKET_WIDTH_MS, "20", "1"))

        assert len(candles) == 2
        new = candles[-1]
        assert new.bucket_start_ms == BUCKET_WIDTH_MS
        assert new.open == new.high == new.low == new.close == Decimal("21")
        assert new.last_base_fee_gwei == Decimal("20")
        assert new.last_priority_fee_gwei == Decimal("1")
        # Previous candle is left as it was
        assert candles[0].close == Decimal("10")

    def test_sample_in_different_bucket_never_merges(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        timestamps = [0, 899_999, 900_000, 1_800_001, 5_000_000, 5_000_001]
        for t in timestamps:
            tail_bucket = candles[-1].bucket_start_ms if candles else None
            before = len(candles)
            aggregator.append(candles, _sample(t, "1"))
            if aggregator.snap(EpochMillis(t)) != tail_bucket:
                assert len(candles) == before + 1
            else:
                assert len(candles) == before

    def test_backdated_sample_opens_out_of_order_candle(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        aggregator.append(candles, _sample(2 * BUCKET_WIDTH_MS, "10"))
        aggregator.append(candles, _sample(BUCKET_WIDTH_MS + 5, "7"))

        assert [c.bucket_start_ms for c in candles] == [
            2 * BUCKET_WIDTH_MS,
            BUCKET_WIDTH_MS,
        ]

    def test_bucket_start_is_multiple_of_width(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        for t in (1_700_000_123_456, 1_700_000_999_999, 1_700_003_000_000):
            aggregator.append(candles, _sample(t, "3"))
        assert all(c.bucket_start_ms % BUCKET_WIDTH_MS == 0 for c in candles)


class TestCap:
    def test_history_never_exceeds_cap(
        self, aggregator: OHLCAggregator, candles: deque[Candle]
    ) -> None:
        for i in range(MAX_CANDLES + 16):
            aggregator.append(candles, _sample(i * BUCKET_WIDTH_MS, str(i + 1)))
            assert len(candles) <= MAX_CANDLES

        assert len(candles) == MAX_CANDLES
        # Oldest evicted first
        assert candles[0].bucket_start_ms == 16 * BUCKET_WIDTH_MS
        assert candles[-1].bucket_start_ms == (MAX_CANDLES + 15) * BUCKET_WIDTH_MS

    def test_small_cap(self) -> None:
        aggregator = OHLCAggregator(bucket_width_ms=1_000, max_candles=3)
        candles: deque[Candle] = deque()
        for t in range(0, 10_000, 1_000):
            aggregator.append(candles, _sample(t, "1"))
        assert [c.bucket_start_ms for c in candles] == [7_000, 8_000, 9_000]

    def test_network_state_series(self) -> None:
        aggregator = OHLCAggregator(max_candles=5)
        state = NetworkState(network="polygon", max_candles=5)
        for i in range(12):
            aggregator.append(state.candles, _sample(i * BUCKET_WIDTH_MS, "2", network="polygon"))
        assert len(state.candles) == 5


class TestSnap:
    @pytest.mark.parametrize(
        "timestamp",
        [0, 1, 899_999, 900_000, 1_700_000_123_456],
    )
    def test_snap_is_idempotent(self, aggregator: OHLCAggregator, timestamp: int) -> None:
        once = aggregator.snap(EpochMillis(timestamp))
        assert aggregator.snap(once) == once
        assert once <= timestamp < once + BUCKET_WIDTH_MS

    def test_invalid_configuration(self) -> None:
        with pytest.raises(ValueError):
            OHLCAggregator(bucket_width_ms=0)
        with pytest.raises(ValueError):
            OHLCAggregator(max_candles=0)
