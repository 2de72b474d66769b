"""Entry point for the cross-chain gas tracker.

Wires all components together, optionally serves the published-state API,
and starts ingestion. When the API is enabled (default), ingestion and the
server share a single asyncio event loop via uvicorn's programmatic API and
FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown in headless mode.

Component wiring order (in build_components):
1. AppSettings (configuration)
2. Logging setup
3. OHLCAggregator + IngestionStore (shared state)
4. Web3RpcClient + ChainPoller per configured network
5. PriceOracle (own mainnet client)
6. Scheduler
7. CostSimulator
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from chaingas.config import AppSettings
from chaingas.cost import CostSimulator
from chaingas.fees.aggregator import OHLCAggregator
from chaingas.fees.poller import ChainPoller
from chaingas.fees.resolver import FeeModelResolver
from chaingas.logging import get_logger, setup_logging
from chaingas.networks import DEFAULT_NETWORKS, NetworkSpec
from chaingas.pricing.oracle import PriceOracle
from chaingas.rpc.web3_client import Web3RpcClient
from chaingas.scheduler import Scheduler
from chaingas.store import IngestionStore


def build_components(
    settings: AppSettings,
    networks: tuple[NetworkSpec, ...] = DEFAULT_NETWORKS,
) -> dict[str, Any]:
    """Build all ingestion components from settings.

    Creates no network connections: providers connect lazily on first
    request, and tasks start only when the scheduler is started.

    Args:
        settings: Application-wide settings.
        networks: Networks to track.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("chaingas.main")

    aggregator = OHLCAggregator(
        bucket_width_ms=settings.candles.bucket_width_ms,
        max_candles=settings.candles.max_candles,
    )
    store = IngestionStore([n.name for n in networks], aggregator)

    resolver = FeeModelResolver()
    pollers: list[ChainPoller] = []
    unconfigured: list[str] = []
    for network in networks:
        url = settings.rpc.url_for(network.name)
        if url is None:
            unconfigured.append(network.name)
            continue
        client = Web3RpcClient(url, network=network.name, timeout=settings.rpc.request_timeout)
        pollers.append(ChainPoller(network, client, resolver))

    price_url = settings.rpc.price_feed()
    if price_url is None:
        logger.warning("price_feed_not_configured")
        price_client = None
    else:
        price_client = Web3RpcClient(
            price_url, network="price-feed", timeout=settings.rpc.request_timeout
        )
    oracle = PriceOracle(price_client, settings.price_feed)

    scheduler = Scheduler(
        store=store,
        pollers=pollers,
        oracle=oracle,
        unconfigured=unconfigured,
        fee_interval=settings.polling.fee_interval,
        price_interval=settings.polling.price_interval,
    )

    return {
        "store": store,
        "scheduler": scheduler,
        "oracle": oracle,
        "pollers": pollers,
        "simulator": CostSimulator(settings.simulation),
        "networks": {n.name: n for n in networks},
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start ingestion with the server and tear it down on shutdown."""
    from chaingas.api.update_loop import state_update_loop

    logger = get_logger("chaingas.main")
    settings = app.state.settings
    components = app.state.components

    app.state.store = components["store"]
    app.state.networks = components["networks"]
    app.state.simulator = components["simulator"]
    app.state.update_interval = settings.api.update_interval

    handle = await components["scheduler"].start()
    update_task = asyncio.create_task(state_update_loop(app))

    logger.info("lifespan_started", networks=list(components["networks"]))

    yield

    update_task.cancel()
    try:
        await update_task
    except asyncio.CancelledError:
        pass

    await handle.cancel()

    logger.info("gas_tracker_stopped")


async def run_headless(components: dict[str, Any]) -> None:
    """Run ingestion without the API until SIGINT/SIGTERM.

    The signal handler only sets a stop event; teardown is awaited here so
    every RPC client is closed before this returns.
    """
    logger = get_logger("chaingas.main")
    logger.info("starting_headless", networks=list(components["networks"]))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)

    handle = await components["scheduler"].start()
    try:
        await stop.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await handle.cancel()
        logger.info("gas_tracker_stopped")


async def run() -> None:
    """Run the gas tracker.

    When the API is enabled (API_ENABLED=true, the default) ingestion runs
    inside the uvicorn server's lifespan. Otherwise ingestion runs headless
    until SIGINT/SIGTERM.
    """
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("chaingas.main")

    components = build_components(settings)

    if settings.api.enabled:
        from chaingas.api.app import create_api_app

        app = create_api_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.api.host,
            port=settings.api.port,
        )

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
        return

    await run_headless(components)


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
