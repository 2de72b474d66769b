"""JSON endpoints over the ingestion store: fees, candles, price, and cost simulation."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from chaingas.api.serialize import (
    candle_to_chart_point,
    cost_to_dict,
    network_to_dict,
    price_to_dict,
)

log = structlog.get_logger(__name__)

router = APIRouter()


def _unknown_network(name: str) -> JSONResponse:
    return JSONResponse(content={"error": f"Unknown network: {name}"}, status_code=404)


@router.get("/networks")
async def get_networks(request: Request) -> JSONResponse:
    """Current fee state for every configured network."""
    store = request.app.state.store
    specs = request.app.state.networks
    snapshots = await store.snapshots()
    return JSONResponse(
        content=[network_to_dict(s, specs.get(s.network)) for s in snapshots]
    )


@router.get("/networks/{name}")
async def get_network(request: Request, name: str) -> JSONResponse:
    """Current fee state for one network."""
    store = request.app.state.store
    if name not in store.networks:
        return _unknown_network(name)
    snapshot = await store.snapshot(name)
    return JSONResponse(
        content=network_to_dict(snapshot, request.app.state.networks.get(name))
    )


@router.get("/networks/{name}/candles")
async def get_candles(request: Request, name: str) -> JSONResponse:
    """Candle history for one network, oldest first, `time` in epoch seconds."""
    store = request.app.state.store
    if name not in store.networks:
        return _unknown_network(name)
    snapshot = await store.snapshot(name)
    return JSONResponse(content=[candle_to_chart_point(c) for c in snapshot.candles])


@router.get("/price")
async def get_price(request: Request) -> JSONResponse:
    """Latest fiat/ETH quote; fiat_per_eth is "0" while unavailable."""
    quote = await request.app.state.store.get_price()
    return JSONResponse(content=price_to_dict(quote))


@router.get("/simulate")
async def simulate_cost(
    request: Request,
    network: str,
    value_eth: str | None = None,
    gas_limit: int | None = None,
) -> JSONResponse:
    """Simulate a transaction's cost on a network at current fees and price.

    Query params:
        network: Network name (e.g. "ethereum").
        value_eth: ETH transferred (default from SIM_TRANSACTION_VALUE_ETH).
        gas_limit: Gas units (default from SIM_GAS_LIMIT).
    """
    store = request.app.state.store
    if network not in store.networks:
        return _unknown_network(network)

    value: Decimal | None = None
    if value_eth is not None:
        try:
            value = Decimal(value_eth)
        except InvalidOperation:
            return JSONResponse(
                content={"error": f"Invalid value_eth: {value_eth}"}, status_code=400
            )
        if not value.is_finite():
            return JSONResponse(
                content={"error": f"Invalid value_eth: {value_eth}"}, status_code=400
            )

    snapshot = await store.snapshot(network)
    quote = await store.get_price()
    try:
        estimate = request.app.state.simulator.estimate(
            snapshot.base_fee_gwei,
            snapshot.priority_fee_gwei,
            quote.fiat_per_eth,
            gas_limit=gas_limit,
            value_eth=value,
        )
    except ValueError as e:
        return JSONResponse(content={"error": str(e)}, status_code=400)

    log.debug("cost_simulated", network=network, total_fiat=str(estimate.total_fiat))
    return JSONResponse(content=cost_to_dict(network, estimate))
