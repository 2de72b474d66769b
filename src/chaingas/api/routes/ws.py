"""WebSocket push of published gas state.

A client receives the full state once on connect, then every broadcast made
by the update loop. Clients never send anything meaningful; inbound frames
are read only to notice disconnects.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from chaingas.api.update_loop import build_state_payload

log = structlog.get_logger(__name__)

router = APIRouter()


class StateHub:
    """Tracks subscribers and fans one JSON payload out to all of them."""

    def __init__(self) -> None:
        self.connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.connections.append(ws)
        log.info("state_ws_connected", total=len(self.connections))

    def disconnect(self, ws: WebSocket) -> None:
        if ws in self.connections:
            self.connections.remove(ws)
        log.info("state_ws_disconnected", total=len(self.connections))

    async def broadcast(self, payload: dict[str, Any]) -> None:
        """Send a payload to every subscriber concurrently.

        The payload is encoded once. A subscriber whose send fails is dropped.
        """
        if not self.connections:
            return
        text = json.dumps(payload)
        targets = self.connections.copy()
        results = await asyncio.gather(
            *(ws.send_text(text) for ws in targets), return_exceptions=True
        )
        for ws, result in zip(targets, results):
            if isinstance(result, Exception):
                if ws in self.connections:
                    self.connections.remove(ws)
                log.warning(
                    "state_ws_send_failed",
                    error=str(result),
                    remaining=len(self.connections),
                )


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    state = websocket.app.state
    hub: StateHub = state.hub
    await hub.connect(websocket)
    try:
        await websocket.send_text(
            json.dumps(await build_state_payload(state.store, state.networks))
        )
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
