"""Trade-rate query builder.

Builds a query over the Stellar ``history_trades`` table that computes a
volume-weighted rate per bucket.  Each trade row stores a base and a
counter leg, and the requested pair may be stored in either order, so the
rate expression picks the ratio that keeps the result in destination units
per source unit.

A sample query (per-ledger buckets, with a time range)::

    SELECT FORMAT("Ledger %d", L.sequence) AS title,
    CASE WHEN ((B.asset_code="NGNT" AND B.asset_issuer="GAWO...") AND
               (C.asset_code="EURT" AND C.asset_issuer="GAP5..."))
         THEN SUM(T.counter_amount)/SUM(T.base_amount)
         WHEN ((C.asset_code="NGNT" AND C.asset_issuer="GAWO...") AND
               (B.asset_code="EURT" AND B.asset_issuer="GAP5..."))
         THEN SUM(T.base_amount)/SUM(T.counter_amount) END AS rate,
    FROM `crypto-stellar.crypto_stellar.history_trades` T
    JOIN `crypto-stellar.crypto_stellar.history_assets` B ON B.id=T.base_asset_id
    JOIN `crypto-stellar.crypto_stellar.history_assets` C ON C.id=T.counter_asset_id
    JOIN `crypto-stellar.crypto_stellar.history_ledgers` L ON L.closed_at=T.ledger_closed_at
    WHERE (<forward match> OR <reverse match>)
      AND L.closed_at BETWEEN TIMESTAMP_SECONDS(1000) AND TIMESTAMP_SECONDS(2000)
    GROUP BY title, B.asset_code, B.asset_issuer, C.asset_code, C.asset_issuer
    ORDER BY title ASC LIMIT 100

Only trades whose base and counter legs are exactly the requested pair,
in either order, are counted.  The rate column is not filtered: a bucket
whose grouped legs match neither ``WHEN`` branch would keep a NULL rate.
"""

from ledger_rates.config import WarehouseConfig
from ledger_rates.warehouse.models import Asset, RateRequest
from ledger_rates.warehouse.queries.sql import quote_string, table, time_range_filter
from ledger_rates.warehouse.queries.titles import format_title

# source is the base leg: dest/source = counter/base
FORWARD_RATE = "SUM(T.counter_amount)/SUM(T.base_amount)"
# source is the counter leg: dest/source = base/counter
REVERSE_RATE = "SUM(T.base_amount)/SUM(T.counter_amount)"


def _leg_match(alias: str, asset: Asset) -> str:
    return (
        f"{alias}.asset_code={quote_string(asset.code)}"
        f" AND {alias}.asset_issuer={quote_string(asset.issuer)}"
    )


def orientation_match(source: Asset, dest: Asset, reverse: bool = False) -> str:
    """Return the predicate for one storage orientation of the pair.

    Parameters
    ----------
    source, dest:
        The requested pair.
    reverse:
        If False, match trades storing *source* as the base leg (``B``) and
        *dest* as the counter leg (``C``).  If True, the legs are swapped.

    Returns
    -------
    str
        A parenthesised SQL boolean expression that holds only when both
        legs match; a trade of either asset against a third asset never does.
    """
    source_leg, dest_leg = ("C", "B") if reverse else ("B", "C")
    return f"(({_leg_match(source_leg, source)}) AND ({_leg_match(dest_leg, dest)}))"


def build_trade_rate_query(request: RateRequest, config: WarehouseConfig) -> str:
    """Return the SQL computing trade-volume-weighted rates for *request*.

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
    forward = orientation_match(request.source, request.dest)
    reverse = orientation_match(request.source, request.dest, reverse=True)
    title = format_title("L.sequence", "L.closed_at", request.aggregate_by)

    query = (
        f"SELECT {title}, CASE WHEN {forward} THEN {FORWARD_RATE}"
        f" WHEN {reverse} THEN {REVERSE_RATE} END AS rate,"
    )
    query += f" FROM {table(config.trades_table)} T"
    query += f" JOIN {table(config.assets_table)} B ON B.id=T.base_asset_id"
    query += f" JOIN {table(config.assets_table)} C ON C.id=T.counter_asset_id"
    query += f" JOIN {table(config.ledgers_table)} L ON L.closed_at=T.ledger_closed_at"
    query += f" WHERE ({forward} OR {reverse})"
    query += time_range_filter("L.closed_at", request)
    query += (
        " GROUP BY title, B.asset_code, B.asset_issuer, C.asset_code, C.asset_issuer"
        f" ORDER BY title ASC LIMIT {int(config.row_limit)}"
    )
    return query
