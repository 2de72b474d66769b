"""Periodic WebSocket push of the full published state.

Each payload carries every network's current fees and fault state plus the
latest price quote. Candle history is not pushed; clients fetch it from
/api/networks/{name}/candles.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import FastAPI

from chaingas.api.serialize import network_to_dict, price_to_dict
from chaingas.store import IngestionStore

log = structlog.get_logger(__name__)


async def build_state_payload(store: IngestionStore, specs: dict) -> dict[str, Any]:
    """Assemble the broadcast payload from the store."""
    snapshots = await store.snapshots()
    quote = await store.get_price()
    return {
        "networks": [network_to_dict(s, specs.get(s.network)) for s in snapshots],
        "price": price_to_dict(quote),
    }


async def state_update_loop(app: FastAPI) -> None:
    """Broadcast the published state to all WebSocket clients until cancelled.

    Args:
        app: The FastAPI application with hub, store, networks, and
             update_interval on app.state.
    """
    update_interval = getattr(app.state, "update_interval", 5)

    log.info("state_update_loop_started", interval=update_interval)

    while True:
        try:
            await asyncio.sleep(update_interval)

            hub = app.state.hub
            if not hub.connections:
                continue

            payload = await build_state_payload(app.state.store, app.state.networks)
            await hub.broadcast(payload)

        except asyncio.CancelledError:
            log.info("state_update_loop_cancelled")
            break
        except Exception:
            log.warning("state_update_loop_error", exc_info=True)
