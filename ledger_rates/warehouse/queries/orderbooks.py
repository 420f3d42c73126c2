"""Orderbook-rate query builder.

Builds a two-stage query over the liquidity dataset.  The ``orderbooks``
stage collects, per bucket and per market, every bid price (highest
first) and every ask price (lowest first).  The outer stage takes the
mid-price of the best bid and best ask, and inverts it when the market is
stored with the requested pair reversed.

A sample query (per-ledger buckets, no time range)::

    WITH orderbooks AS (
        SELECT FORMAT("Ledger %d", E.ledger_id) AS title,
               M.base_code, M.base_issuer, M.counter_code, M.counter_issuer,
        ARRAY_AGG(CASE WHEN O.action="b" THEN O.price END IGNORE NULLS ORDER BY O.price DESC) AS bidPrices,
        ARRAY_AGG(CASE WHEN O.action="s" THEN O.price END IGNORE NULLS ORDER BY O.price ASC) AS askPrices,
        FROM `hubble-261722.liquidity_data.fact_offer_events` AS E
        INNER JOIN `hubble-261722.liquidity_data.dim_offers` O ON (E.offer_instance_id = O.dim_offer_id)
        INNER JOIN `hubble-261722.liquidity_data.dim_markets` M ON (M.market_id = O.market_id)
        INNER JOIN `hubble-261722.crypto_stellar_internal.history_ledgers` L ON (L.sequence = E.ledger_id)
        WHERE (<normal match> OR <reverse match>)
        GROUP BY title, M.base_code, M.base_issuer, M.counter_code, M.counter_issuer)
    SELECT orderbooks.title, CASE WHEN orderbooks.base_code="NGNT" AND orderbooks.base_issuer="GAWO..."
         THEN <mid> ELSE 1/(<mid>) END AS rate
    FROM orderbooks WHERE <mid> IS NOT NULL
    ORDER BY orderbooks.title ASC LIMIT 100

Buckets missing either a bid or an ask have a NULL mid-price and are
dropped entirely, unlike the trade-rate query which keeps NULL rates.
"""

from ledger_rates.config import WarehouseConfig
from ledger_rates.warehouse.models import Asset, RateRequest
from ledger_rates.warehouse.queries.sql import quote_string, table, time_range_filter
from ledger_rates.warehouse.queries.titles import format_title

# SAFE_OFFSET yields NULL for an empty side instead of failing the query
MID_PRICE = (
    "(orderbooks.askPrices[SAFE_OFFSET(0)]+orderbooks.bidPrices[SAFE_OFFSET(0)])/2"
)

_MARKET_COLUMNS = "M.base_code, M.base_issuer, M.counter_code, M.counter_issuer"


def market_match(base: Asset, counter: Asset) -> str:
    """Return the predicate matching markets stored as (*base*, *counter*)."""
    return (
        f"(M.base_code={quote_string(base.code)}"
        f" AND M.base_issuer={quote_string(base.issuer)}"
        f" AND M.counter_code={quote_string(counter.code)}"
        f" AND M.counter_issuer={quote_string(counter.issuer)})"
    )


def build_orderbook_rate_query(request: RateRequest, config: WarehouseConfig) -> str:
    """Return the SQL computing order book mid-price rates for *request*.

    Parameters
    ----------
    request:
        Validated pair, optional time range and bucket granularity.
    config:
        Table names and the row limit.

    Returns
    -------
    str
        A BigQuery Standard SQL statement yielding ``title`` and ``rate``
        columns, ordered by ``title`` ascending.
    """
    source, dest = request.source, request.dest
    normal = market_match(source, dest)
    reverse = market_match(dest, source)
    title = format_title("E.ledger_id", "L.closed_at", request.aggregate_by)

    query = "WITH orderbooks AS ("
    query += f" SELECT {title}, {_MARKET_COLUMNS},"
    query += ' ARRAY_AGG(CASE WHEN O.action="b" THEN O.price END IGNORE NULLS ORDER BY O.price DESC) AS bidPrices,'
    query += ' ARRAY_AGG(CASE WHEN O.action="s" THEN O.price END IGNORE NULLS ORDER BY O.price ASC) AS askPrices,'
    query += f" FROM {table(config.offer_events_table)} AS E"
    query += f" INNER JOIN {table(config.offers_table)} O ON (E.offer_instance_id = O.dim_offer_id)"
    query += f" INNER JOIN {table(config.markets_table)} M ON (M.market_id = O.market_id)"
    query += f" INNER JOIN {table(config.orderbook_ledgers_table)} L ON (L.sequence = E.ledger_id)"
    query += f" WHERE ({normal} OR {reverse})"
    query += time_range_filter("L.closed_at", request)
    query += f" GROUP BY title, {_MARKET_COLUMNS})"

    # A market stored as (dest, source) quotes source per dest: invert it
    base_is_source = (
        f"orderbooks.base_code={quote_string(source.code)}"
        f" AND orderbooks.base_issuer={quote_string(source.issuer)}"
    )
    query += (
        f" SELECT orderbooks.title, CASE WHEN {base_is_source} THEN {MID_PRICE}"
        f" ELSE 1/({MID_PRICE}) END AS rate FROM orderbooks"
    )
    query += f" WHERE {MID_PRICE} IS NOT NULL"
    query += f" ORDER BY orderbooks.title ASC LIMIT {int(config.row_limit)}"
    return query
