"""Historical exchange rates between Stellar assets from a BigQuery warehouse."""

from ledger_rates.exceptions import (
    InvalidRateRequest,
    QueryDecodeError,
    QueryError,
    QueryExecutionError,
    RateQueryError,
)
from ledger_rates.rates import compute_orderbook_rates, compute_rates, compute_trade_rates
from ledger_rates.warehouse.models import AggregateBy, Asset, RateRequest, RateResult

__all__ = [
    "AggregateBy",
    "Asset",
    "InvalidRateRequest",
    "QueryDecodeError",
    "QueryError",
    "QueryExecutionError",
    "RateQueryError",
    "RateRequest",
    "RateResult",
    "compute_orderbook_rates",
    "compute_rates",
    "compute_trade_rates",
]
