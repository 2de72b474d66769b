"""JSON shapes for published state.

Decimals are serialized as strings. Candle timestamps are converted to epoch
seconds here, at the chart boundary, and nowhere else.
"""

from __future__ import annotations

from typing import Any

from chaingas.cost import CostEstimate
from chaingas.models import Candle, NetworkSnapshot, PriceQuote
from chaingas.networks import NetworkSpec
from chaingas.timeutils import millis_to_seconds


def network_to_dict(snapshot: NetworkSnapshot, spec: NetworkSpec | None = None) -> dict[str, Any]:
    """Current fee state of one network (without its candle history)."""
    return {
        "network": snapshot.network,
        "display_name": spec.display_name if spec else snapshot.network,
        "chain_id": spec.chain_id if spec else None,
        "native_symbol": spec.native_symbol if spec else None,
        "base_fee_gwei": str(snapshot.base_fee_gwei),
        "priority_fee_gwei": str(snapshot.priority_fee_gwei),
        "total_gwei": str(snapshot.total_gwei),
        "loading": snapshot.loading,
        "fault": snapshot.fault,
        "candle_count": len(snapshot.candles),
    }


def candle_to_chart_point(candle: Candle) -> dict[str, Any]:
    """One candlestick point, with `time` in whole epoch seconds."""
    return {
        "time": millis_to_seconds(candle.bucket_start_ms),
        "open": str(candle.open),
        "high": str(candle.high),
        "low": str(candle.low),
        "close": str(candle.close),
        "base_fee_gwei": str(candle.last_base_fee_gwei),
        "priority_fee_gwei": str(candle.last_priority_fee_gwei),
    }


def price_to_dict(quote: PriceQuote) -> dict[str, Any]:
    return {
        "fiat_per_eth": str(quote.fiat_per_eth),
        "derived_at_ms": quote.derived_at_ms,
        "source": quote.source.value,
        "available": quote.available,
    }


def cost_to_dict(network: str, estimate: CostEstimate) -> dict[str, Any]:
    return {
        "network": network,
        "total_gwei": str(estimate.total_gwei),
        "gas_limit": estimate.gas_limit,
        "gas_cost_eth": str(estimate.gas_cost_eth),
        "gas_cost_fiat": str(estimate.gas_cost_fiat),
        "value_fiat": str(estimate.value_fiat),
        "total_fiat": str(estimate.total_fiat),
        "priced": estimate.priced,
    }
