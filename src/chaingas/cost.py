"""Transaction cost simulation.

All calculations use Decimal arithmetic exclusively.

  gas cost (ETH)  = (base fee + priority fee) [Gwei] * gas limit / 10**9
  gas cost (fiat) = gas cost (ETH) * fiat per ETH
  total (fiat)    = gas cost (fiat) + transferred value (ETH) * fiat per ETH

Fiat amounts are only meaningful with a live quote: when the published
price is the 0 sentinel they come out as 0 and `priced` is False.
"""

from dataclasses import dataclass
from decimal import Decimal

from chaingas.config import SimulationSettings

GWEI_PER_ETH = Decimal(10**9)


@dataclass(frozen=True)
class CostEstimate:
    """Simulated cost of one transaction on one network."""

    total_gwei: Decimal
    gas_limit: int
    gas_cost_eth: Decimal
    gas_cost_fiat: Decimal
    value_fiat: Decimal
    total_fiat: Decimal
    priced: bool


class CostSimulator:
    """Estimates what a transaction costs at the current fee and price.

    Args:
        settings: Default gas limit and transfer value.
    """

    def __init__(self, settings: SimulationSettings | None = None) -> None:
        self._settings = settings or SimulationSettings()

    def gas_cost_eth(self, total_gwei: Decimal, gas_limit: int) -> Decimal:
        """Return gas cost in ETH for a total per-gas fee in Gwei."""
        return total_gwei * gas_limit / GWEI_PER_ETH

    def estimate(
        self,
        base_fee_gwei: Decimal,
        priority_fee_gwei: Decimal,
        fiat_per_eth: Decimal,
        gas_limit: int | None = None,
        value_eth: Decimal | None = None,
    ) -> CostEstimate:
        """Simulate a transaction.

        Args:
            base_fee_gwei: Current base fee.
            priority_fee_gwei: Current priority fee.
            fiat_per_eth: Published quote; 0 means unavailable.
            gas_limit: Gas units consumed (defaults to settings, 21000).
            value_eth: ETH transferred (defaults to settings, 0.5).

        Raises:
            ValueError: If gas_limit or value_eth is negative.
        """
        gas_limit = self._settings.gas_limit if gas_limit is None else gas_limit
        value_eth = self._settings.transaction_value_eth if value_eth is None else value_eth
        if gas_limit < 0:
            raise ValueError(f"gas_limit must be non-negative, got {gas_limit}")
        if value_eth < 0:
            raise ValueError(f"value_eth must be non-negative, got {value_eth}")

        total_gwei = base_fee_gwei + priority_fee_gwei
        gas_cost_eth = self.gas_cost_eth(total_gwei, gas_limit)

        priced = fiat_per_eth > 0
        if priced:
            gas_cost_fiat = gas_cost_eth * fiat_per_eth
            value_fiat = value_eth * fiat_per_eth
        else:
            gas_cost_fiat = Decimal("0")
            value_fiat = Decimal("0")

        return CostEstimate(
            total_gwei=total_gwei,
            gas_limit=gas_limit,
            gas_cost_eth=gas_cost_eth,
            gas_cost_fiat=gas_cost_fiat,
            value_fiat=value_fiat,
            total_fiat=gas_cost_fiat + value_fiat,
            priced=priced,
        )
