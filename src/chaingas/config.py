"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RpcSettings(BaseSettings):
    """Per-network JSON-RPC endpoints.

    A network whose URL is unset is never polled; it carries a persistent
    configuration fault instead.
    """

    model_config = SettingsConfigDict(env_prefix="RPC_")

    ethereum_url: SecretStr | None = None
    polygon_url: SecretStr | None = None
    arbitrum_url: SecretStr | None = None
    price_feed_url: SecretStr | None = None  # falls back to ethereum_url
    request_timeout: float = 10.0

    def url_for(self, network: str) -> str | None:
        """Return the plain RPC URL for a network name, or None if unset."""
        secret = getattr(self, f"{network}_url", None)
        if secret is None:
            return None
        url = secret.get_secret_value()
        return url or None

    def price_feed(self) -> str | None:
        """Return the RPC URL used for price derivation (mainnet pool reads)."""
        if self.price_feed_url is not None and self.price_feed_url.get_secret_value():
            return self.price_feed_url.get_secret_value()
        return self.url_for("ethereum")


class PollingSettings(BaseSettings):
    """Refresh cadence for fee pollers and the price oracle."""

    model_config = SettingsConfigDict(env_prefix="POLL_")

    fee_interval: float = 6.0  # seconds between fee polls, per network
    price_interval: float = 30.0  # seconds between price derivations


class CandleSettings(BaseSettings):
    """OHLC bucketing parameters."""

    model_config = SettingsConfigDict(env_prefix="CANDLE_")

    bucket_minutes: int = 15
    max_candles: int = 384  # 4 days of 15-minute candles

    @property
    def bucket_width_ms(self) -> int:
        return self.bucket_minutes * 60 * 1000


class PriceFeedSettings(BaseSettings):
    """Uniswap V3 pool used as the ETH/USD reference.

    The default pool is USDC/WETH 0.05% on mainnet, where token0 is USDC
    (6 decimals) and token1 is WETH (18 decimals).
    """

    model_config = SettingsConfigDict(env_prefix="PRICE_")

    pool_address: str = "0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640"
    lookback_blocks: int = 50
    decimals_diff: int = 12  # WETH decimals minus USDC decimals
    stable_is_token0: bool = True
    min_fiat: Decimal = Decimal("100")
    max_fiat: Decimal = Decimal("100000")


class SimulationSettings(BaseSettings):
    """Defaults for transaction cost simulation."""

    model_config = SettingsConfigDict(env_prefix="SIM_")

    gas_limit: int = 21000  # plain ETH transfer
    transaction_value_eth: Decimal = Decimal("0.5")


class ApiSettings(BaseSettings):
    """Published-state API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True
    update_interval: int = 5  # seconds between WebSocket pushes


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" for machine-readable output
    rpc: RpcSettings = RpcSettings()
    polling: PollingSettings = PollingSettings()
    candles: CandleSettings = CandleSettings()
    price_feed: PriceFeedSettings = PriceFeedSettings()
    simulation: SimulationSettings = SimulationSettings()
    api: ApiSettings = ApiSettings()
