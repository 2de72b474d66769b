"""Fee ingestion layer -- fee model resolution, per-network polling, and candle aggregation."""

from chaingas.fees.aggregator import OHLCAggregator
from chaingas.fees.poller import ChainPoller
from chaingas.fees.resolver import FeeModelResolver

__all__ = ["ChainPoller", "FeeModelResolver", "OHLCAggregator"]
