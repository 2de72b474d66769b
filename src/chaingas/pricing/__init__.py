"""Price layer -- ETH/USD derivation from an on-chain Uniswap V3 pool."""

from chaingas.pricing.oracle import PriceOracle, sqrt_price_to_fiat

__all__ = ["PriceOracle", "sqrt_price_to_fiat"]
