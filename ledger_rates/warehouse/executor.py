"""Run rate queries against the warehouse and decode the results.

The warehouse is reached through any object satisfying ``WarehouseClient``:
``submit(sql)`` returns a cursor, which is an iterator of result rows
(mappings of column name to value).  Exhaustion of the iterator marks the
end of the result set.

Usage::

    results = execute_query(BigQueryWarehouse(bigquery.Client()), sql)
"""

import logging
from collections.abc import Iterator, Mapping
from typing import Any, Optional, Protocol

from ledger_rates.exceptions import QueryDecodeError, QueryError, QueryExecutionError
from ledger_rates.warehouse.models import RateResult, record_to_model

logger = logging.getLogger(__name__)

Cursor = Iterator[Mapping[str, Any]]


class WarehouseClient(Protocol):
    """Capability for submitting SQL to the warehouse."""

    def submit(self, sql: str, *, timeout: Optional[float] = None) -> Cursor:
        """Run *sql* and return a cursor over its result rows.

        ``timeout`` is the caller's deadline in seconds, or None for none.
        """
        ...


def iter_rate_results(cursor: Cursor) -> Iterator[RateResult]:
    """Lazily decode cursor rows into ``RateResult`` objects.

    Forward-only and not restartable: running the query again means
    submitting it again.

    Raises
    ------
    QueryDecodeError
        If the cursor fails or a row cannot be parsed.  Iteration stops.
        A ``QueryError`` raised by the cursor itself (e.g. a client that
        fails while fetching a later result page) propagates unchanged.
    """
    while True:
        try:
            row = next(cursor)
        except StopIteration:
            return
        except QueryError:
            raise
        except Exception as exc:
            raise QueryDecodeError(exc) from exc

        try:
            result = record_to_model(row, RateResult)
        except Exception as exc:
            raise QueryDecodeError(exc) from exc
        yield result


def execute_query(
    client: WarehouseClient, sql: str, *, timeout: Optional[float] = None
) -> list[RateResult]:
    """Submit *sql* and drain the cursor into a list of results.

    Parameters
    ----------
    client:
        Warehouse client capability.
    sql:
        A rate query yielding ``title`` and ``rate`` columns.
    timeout:
        Passed through to ``client.submit`` unchanged.

    Returns
    -------
    list[RateResult]
        Results in the order the cursor emitted them.

    Raises
    ------
    QueryExecutionError
        If submission fails, or the client reports a failure while
        streaming later rows; the error keeps the SQL text.
    QueryDecodeError
        If any row fails to decode.  Rows decoded before the failure are
        discarded.
    """
    try:
        cursor = iter(client.submit(sql, timeout=timeout))
    except Exception as exc:
        logger.error("Rate query submission failed:\n%s", sql, exc_info=True)
        raise QueryExecutionError(exc, sql) from exc

    try:
        results = list(iter_rate_results(cursor))
    except QueryDecodeError:
        logger.error("Failed to decode rate query results", exc_info=True)
        raise
    except QueryExecutionError:
        logger.error("Rate query failed while reading results:\n%s", sql, exc_info=True)
        raise

    logger.debug("Rate query returned %d rows", len(results))
    return results
