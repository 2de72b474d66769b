"""Periodic scheduling of fee pollers and the price oracle.

One asyncio task per configured network plus one for the price oracle.
Each runs immediately, then on its own fixed interval; there is no global
tick and a slow network never delays another. The scheduler is also the
single call site that turns poller and oracle results into store writes.

start() returns an IngestionHandle that owns every task and RPC client;
cancelling it is the only teardown path.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from chaingas.exceptions import ConfigurationFault, PriceUnavailableError
from chaingas.fees.poller import ChainPoller
from chaingas.logging import bind_task_context, get_logger
from chaingas.models import PollResult, PriceQuote
from chaingas.pricing.oracle import PriceOracle
from chaingas.rpc.client import RpcClient
from chaingas.store import IngestionStore
from chaingas.timeutils import EpochMillis, now_millis

logger = get_logger(__name__)

DEFAULT_FEE_INTERVAL = 6.0
DEFAULT_PRICE_INTERVAL = 30.0


def unconfigured_message(network: str) -> str:
    return f"RPC URL for {network} not configured."


class IngestionHandle:
    """Cancellation scope for everything a Scheduler started.

    cancel() is idempotent and never raises: it cancels and awaits every
    task, then closes every RPC client, logging (not propagating) any
    close failure. Teardown runs once, as its own task; every cancel()
    call, including overlapping ones, returns only after it has finished.
    """

    def __init__(self, tasks: list[asyncio.Task], clients: list[RpcClient]) -> None:  # type: ignore[type-arg]
        self._tasks = tasks
        self._clients = clients
        self._teardown: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def cancelled(self) -> bool:
        return self._teardown is not None

    @property
    def tasks(self) -> list[asyncio.Task]:  # type: ignore[type-arg]
        return list(self._tasks)

    async def wait(self) -> None:
        """Block until every task finishes (i.e. until cancel() is called)."""
        await asyncio.gather(*self._tasks, return_exceptions=True)

    async def cancel(self) -> None:
        if self._teardown is None:
            self._teardown = asyncio.create_task(self._shutdown(), name="ingestion-teardown")
        # A caller being cancelled must not abort the shared teardown
        await asyncio.shield(self._teardown)

    async def _shutdown(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

        for client in self._clients:
            try:
                await client.close()
            except Exception as e:
                logger.warning("rpc_client_close_failed", error=str(e))

        logger.info("ingestion_stopped", tasks=len(self._tasks), clients=len(self._clients))


class Scheduler:
    """Runs every ChainPoller and the PriceOracle on independent intervals.

    Args:
        store: The shared ingestion state; the only thing written to.
        pollers: One poller per configured network.
        oracle: Fiat/ETH price source.
        unconfigured: Networks with no RPC endpoint. They get a persistent
            configuration fault and no task.
        fee_interval: Seconds between polls of each network.
        price_interval: Seconds between price derivations.
        clock: Timestamp source for sentinel quotes; injectable for tests.
    """

    def __init__(
        self,
        store: IngestionStore,
        pollers: list[ChainPoller],
        oracle: PriceOracle,
        unconfigured: list[str] | None = None,
        fee_interval: float = DEFAULT_FEE_INTERVAL,
        price_interval: float = DEFAULT_PRICE_INTERVAL,
        clock: Callable[[], EpochMillis] = now_millis,
    ) -> None:
        self._store = store
        self._pollers = pollers
        self._oracle = oracle
        self._unconfigured = unconfigured or []
        self._fee_interval = fee_interval
        self._price_interval = price_interval
        self._clock = clock

    async def start(self) -> IngestionHandle:
        """Record configuration faults and launch all periodic tasks."""
        for network in self._unconfigured:
            await self._store.set_fault(network, unconfigured_message(network))
            await self._store.set_loading(network, False)
            logger.warning("network_not_configured", network=network)

        tasks: list[asyncio.Task] = []  # type: ignore[type-arg]
        for poller in self._pollers:
            tasks.append(
                asyncio.create_task(
                    self._poll_loop(poller), name=f"fee-poll-{poller.network.name}"
                )
            )
        tasks.append(asyncio.create_task(self._price_loop(), name="price-oracle"))

        clients: list[RpcClient] = [poller.rpc for poller in self._pollers]
        if self._oracle.rpc is not None and all(
            self._oracle.rpc is not c for c in clients
        ):
            clients.append(self._oracle.rpc)

        logger.info(
            "ingestion_started",
            networks=[p.network.name for p in self._pollers],
            unconfigured=self._unconfigured,
            fee_interval=self._fee_interval,
            price_interval=self._price_interval,
        )
        return IngestionHandle(tasks, clients)

    async def poll_once(self, poller: ChainPoller) -> PollResult:
        """Run one poll and apply its result to the store.

        loading is raised for the duration of the poll and always lowered
        again. On failure only the fault message changes; the last good
        fees and candles stay published.
        """
        network = poller.network.name
        await self._store.set_loading(network, True)
        try:
            result = await poller.poll()
            if result.sample is not None:
                await self._store.publish_sample(result.sample)
            else:
                await self._store.set_fault(network, result.fault)
            return result
        finally:
            await self._store.set_loading(network, False)

    async def refresh_price(self) -> PriceQuote:
        """Derive and publish the fiat/ETH quote, or publish the 0 sentinel."""
        try:
            quote = await self._oracle.derive_fiat_per_eth()
        except (ConfigurationFault, PriceUnavailableError) as e:
            logger.warning("price_unavailable", reason=str(e))
            quote = PriceQuote.unavailable(self._clock())
        except Exception as e:
            logger.error("price_refresh_error", error=str(e), exc_info=True)
            quote = PriceQuote.unavailable(self._clock())
        await self._store.set_price(quote)
        return quote

    async def _poll_loop(self, poller: ChainPoller) -> None:
        bind_task_context(task=f"fee-poll-{poller.network.name}")
        while True:
            try:
                await self.poll_once(poller)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning(
                    "fee_poll_loop_error",
                    network=poller.network.name,
                    exc_info=True,
                )
            await asyncio.sleep(self._fee_interval)

    async def _price_loop(self) -> None:
        bind_task_context(task="price-oracle")
        while True:
            await self.refresh_price()
            await asyncio.sleep(self._price_interval)
