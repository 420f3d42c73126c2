"""Public entry points for historical rate queries.

Each call validates the request, builds the SQL for one formulation, runs
it through the given warehouse client and returns the decoded rows.  There
is no caching, no retry and no fallback from one formulation to the other.

Usage::

    rates = compute_orderbook_rates(
        Asset(code="NGNT", issuer="GAWO..."),
        Asset(code="EURT", issuer="GAP5..."),
        "1577836800", "1580515200", "day",
        warehouse,
    )
"""

import logging
from typing import Callable, Optional

from pydantic import ValidationError

from ledger_rates.config import Config, WarehouseConfig, get_config
from ledger_rates.exceptions import InvalidRateRequest
from ledger_rates.warehouse.executor import WarehouseClient, execute_query
from ledger_rates.warehouse.models import AggregateBy, Asset, RateRequest, RateResult
from ledger_rates.warehouse.queries.orderbooks import build_orderbook_rate_query
from ledger_rates.warehouse.queries.trades import build_trade_rate_query

logger = logging.getLogger(__name__)

QueryBuilder = Callable[[RateRequest, WarehouseConfig], str]

_BUILDERS: dict[str, QueryBuilder] = {
    "orderbook": build_orderbook_rate_query,
    "trade": build_trade_rate_query,
}


def make_request(
    source: Asset,
    dest: Asset,
    start_time: str = "",
    end_time: str = "",
    aggregate_by: "AggregateBy | str" = AggregateBy.DAY,
) -> RateRequest:
    """Build a validated ``RateRequest``.

    Raises
    ------
    InvalidRateRequest
        If source and dest are the same asset, only one time bound is
        set, or a bound is not an integer number of seconds.
    """
    try:
        return RateRequest(
            source=source,
            dest=dest,
            start_time=start_time,
            end_time=end_time,
            aggregate_by=aggregate_by,
        )
    except ValidationError as exc:
        raise InvalidRateRequest(str(exc)) from exc


def _run(
    method: str,
    request: RateRequest,
    client: WarehouseClient,
    config: Optional[Config],
    timeout: Optional[float],
) -> list[RateResult]:
    warehouse = (config or get_config()).warehouse
    sql = _BUILDERS[method](request, warehouse)
    logger.debug("Running %s rate query:\n%s", method, sql)

    results = execute_query(client, sql, timeout=timeout)
    logger.info(
        "Fetched %d %s rates for %s -> %s (by %s)",
        len(results),
        method,
        request.source,
        request.dest,
        request.aggregate_by.value,
    )
    return results


def compute_rates(
    source: Asset,
    dest: Asset,
    start_time: str,
    end_time: str,
    aggregate_by: "AggregateBy | str",
    client: WarehouseClient,
    *,
    method: str = "orderbook",
    config: Optional[Config] = None,
    timeout: Optional[float] = None,
) -> list[RateResult]:
    """Return the rate series for a pair using the named formulation.

    Parameters
    ----------
    source, dest:
        The requested pair; rates are dest units per source unit.
    start_time, end_time:
        Decimal-string Unix seconds, inclusive.  Both empty for no range.
    aggregate_by:
        ``"ledger"`` for per-ledger buckets; anything else buckets by day.
    client:
        Warehouse client capability.
    method:
        ``"orderbook"`` (mid-price) or ``"trade"`` (volume-weighted).
    config:
        Configuration supplying table names and the row limit.  Defaults
        to ``get_config()``.
    timeout:
        Passed through to the warehouse submission.

    Returns
    -------
    list[RateResult]
        Rows ordered by title ascending.

    Raises
    ------
    ValueError
        If *method* is unknown.
    InvalidRateRequest
        If the request is rejected before querying.
    QueryExecutionError, QueryDecodeError
        If the warehouse round-trip fails.
    """
    if method not in _BUILDERS:
        raise ValueError(f"Unknown rate method {method!r}; expected one of {sorted(_BUILDERS)}")
    request = make_request(source, dest, start_time, end_time, aggregate_by)
    return _run(method, request, client, config, timeout)


def compute_trade_rates(
    source: Asset,
    dest: Asset,
    start_time: str,
    end_time: str,
    aggregate_by: "AggregateBy | str",
    client: WarehouseClient,
    *,
    config: Optional[Config] = None,
    timeout: Optional[float] = None,
) -> list[RateResult]:
    """Return volume-weighted trade rates for a pair.

    A bucket whose grouped trade legs match neither orientation is kept
    with ``rate=None``.
    """
    return compute_rates(
        source, dest, start_time, end_time, aggregate_by, client,
        method="trade", config=config, timeout=timeout,
    )


def compute_orderbook_rates(
    source: Asset,
    dest: Asset,
    start_time: str,
    end_time: str,
    aggregate_by: "AggregateBy | str",
    client: WarehouseClient,
    *,
    config: Optional[Config] = None,
    timeout: Optional[float] = None,
) -> list[RateResult]:
    """Return order book mid-price rates for a pair.

    Buckets lacking a best bid or a best ask are left out of the result.
    """
    return compute_rates(
        source, dest, start_time, end_time, aggregate_by, client,
        method="orderbook", config=config, timeout=timeout,
    )
