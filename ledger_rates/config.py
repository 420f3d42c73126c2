"""Configuration management for the ledger rate queries."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WarehouseConfig(BaseModel):
    # Trade history (public Stellar dataset)
    trades_table: str = "crypto-stellar.crypto_stellar.history_trades"
    assets_table: str = "crypto-stellar.crypto_stellar.history_assets"
    ledgers_table: str = "crypto-stellar.crypto_stellar.history_ledgers"

    # Order book history (liquidity dataset)
    offer_events_table: str = "hubble-261722.liquidity_data.fact_offer_events"
    offers_table: str = "hubble-261722.liquidity_data.dim_offers"
    markets_table: str = "hubble-261722.liquidity_data.dim_markets"
    orderbook_ledgers_table: str = "hubble-261722.crypto_stellar_internal.history_ledgers"

    # Upper bound on rows returned by any rate query
    row_limit: int = Field(default=100, gt=0)


class Config(BaseSettings):
    """Main configuration class.

    Values come from the YAML file passed to ``load()``.  Keys the
    file leaves out can be supplied through environment variables prefixed
    with ``LEDGER_RATES_``, using ``__`` to reach nested fields
    (e.g. ``LEDGER_RATES_WAREHOUSE__ROW_LIMIT=500``).
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_RATES_",
        env_nested_delimiter="__",
    )

    warehouse: WarehouseConfig = Field(default_factory=WarehouseConfig)

    @classmethod
    def load(cls, path: str = "config.yaml") -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(path)

        if not config_path.exists():
            # Defaults (plus any environment overrides)
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        # File values are init kwargs, which outrank LEDGER_RATES_* env vars
        # key by key; env only fills keys the file leaves out.
        return cls(**data)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or load the global configuration."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reload_config(path: str = "config.yaml") -> Config:
    """Reload configuration from file."""
    global _config
    _config = Config.load(path)
    return _config
