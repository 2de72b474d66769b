"""Folds fee samples into fixed-width OHLC candles.

Each sample contributes its total gas (base + priority, Gwei). Samples are
snapped to the start of their 15-minute bucket; a sample landing in the
newest candle's bucket is merged into it, anything else opens a new candle.
The series is capped, evicting the oldest candles first.

Backdated samples are not reordered: one that snaps to a bucket other than
the newest opens its own candle at the tail. Samples from a single node
arrive in timestamp order under normal operation, so this is accepted
rather than dropping data.
"""

from collections import deque

from chaingas.logging import get_logger
from chaingas.models import Candle, FeeSample
from chaingas.timeutils import EpochMillis, snap_to_bucket

logger = get_logger(__name__)

BUCKET_WIDTH_MS = 15 * 60 * 1000
MAX_CANDLES = 384


class OHLCAggregator:
    """Merge-or-roll candle builder for a bounded candle series.

    Args:
        bucket_width_ms: Candle width in milliseconds (default 15 minutes).
        max_candles: History cap per network (default 384, about 4 days).
    """

    def __init__(
        self,
        bucket_width_ms: int = BUCKET_WIDTH_MS,
        max_candles: int = MAX_CANDLES,
    ) -> None:
        if bucket_width_ms <= 0:
            raise ValueError(f"bucket_width_ms must be positive, got {bucket_width_ms}")
        if max_candles <= 0:
            raise ValueError(f"max_candles must be positive, got {max_candles}")
        self._bucket_width_ms = bucket_width_ms
        self._max_candles = max_candles

    @property
    def bucket_width_ms(self) -> int:
        return self._bucket_width_ms

    @property
    def max_candles(self) -> int:
        return self._max_candles

    def snap(self, timestamp_ms: EpochMillis) -> EpochMillis:
        """Return the bucket start for a timestamp."""
        return snap_to_bucket(timestamp_ms, self._bucket_width_ms)

    def append(self, candles: deque[Candle], sample: FeeSample) -> Candle:
        """Fold one sample into a candle series and return the tail candle.

        Re-delivering an identical sample to the open bucket leaves the
        candle unchanged: max, min and close are idempotent for equal input.

        Args:
            candles: The network's series, oldest to newest. Mutated in place.
            sample: The observation to fold in.

        Returns:
            The candle the sample was merged into or opened.
        """
        value = sample.total_gwei
        bucket_start = self.snap(sample.observed_at_ms)

        if candles and candles[-1].bucket_start_ms == bucket_start:
            tail = candles[-1]
            tail.high = max(tail.high, value)
            tail.low = min(tail.low, value)
            tail.close = value
            tail.last_base_fee_gwei = sample.base_fee_gwei
            tail.last_priority_fee_gwei = sample.priority_fee_gwei
            return tail

        if candles and bucket_start < candles[-1].bucket_start_ms:
            logger.debug(
                "backdated_sample",
                network=sample.network,
                bucket_start=bucket_start,
                tail_bucket_start=candles[-1].bucket_start_ms,
            )

        candle = Candle(
            bucket_start_ms=bucket_start,
            open=value,
            high=value,
            low=value,
            close=value,
            last_base_fee_gwei=sample.base_fee_gwei,
            last_priority_fee_gwei=sample.priority_fee_gwei,
        )
        candles.append(candle)
        while len(candles) > self._max_candles:
            candles.popleft()
        return candle
