"""Static registry of the networks the tracker polls."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkSpec:
    """Identity and fee-model flags for one network.

    rollup_l1_surcharge marks L2 rollups whose legacy gas price does not
    include the cost of posting data to L1; the resolver adds an
    approximate surcharge for them.
    """

    name: str
    display_name: str
    chain_id: int
    native_symbol: str
    rollup_l1_surcharge: bool = False


ETHEREUM = NetworkSpec(
    name="ethereum",
    display_name="Ethereum",
    chain_id=1,
    native_symbol="ETH",
)

POLYGON = NetworkSpec(
    name="polygon",
    display_name="Polygon",
    chain_id=137,
    native_symbol="MATIC",
)

ARBITRUM = NetworkSpec(
    name="arbitrum",
    display_name="Arbitrum",
    chain_id=42161,
    native_symbol="ETH",
    rollup_l1_surcharge=True,
)

DEFAULT_NETWORKS: tuple[NetworkSpec, ...] = (ETHEREUM, POLYGON, ARBITRUM)

_BY_NAME = {spec.name: spec for spec in DEFAULT_NETWORKS}


def get_network(name: str) -> NetworkSpec:
    """Look up a default network by name.

    Raises:
        KeyError: If the name is not a known network.
    """
    try:
        return _BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown network: {name}") from None
