"""``WarehouseClient`` backed by google-cloud-bigquery.

The caller owns the ``bigquery.Client`` (project, credentials, location);
this adapter only submits queries and streams rows.

Usage::

    from google.cloud import bigquery

    warehouse = BigQueryWarehouse(bigquery.Client(project="my-project"))
    cursor = warehouse.submit("SELECT 1 AS title, 2.0 AS rate")
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Any, Optional

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import bigquery

from ledger_rates.exceptions import QueryExecutionError

logger = logging.getLogger(__name__)


class BigQueryWarehouse:
    """Submits Standard SQL to BigQuery and yields rows as dicts.

    Parameters
    ----------
    client:
        A configured ``google.cloud.bigquery.Client``.
    """

    def __init__(self, client: bigquery.Client) -> None:
        self.client = client

    def submit(
        self, sql: str, *, timeout: Optional[float] = None
    ) -> Iterator[dict[str, Any]]:
        """Run *sql* and wait for it to finish.

        Job failures surface here rather than during iteration, so the
        executor reports them as execution errors.  Later result pages are
        fetched lazily; an API failure while fetching one is raised as
        ``QueryExecutionError`` carrying *sql*.
        """
        job_config = bigquery.QueryJobConfig(use_legacy_sql=False)
        job = self.client.query(sql, job_config=job_config, timeout=timeout)
        rows = job.result(timeout=timeout)
        logger.debug("BigQuery job %s finished", job.job_id)
        return self._stream(rows, sql)

    @staticmethod
    def _stream(rows: Iterable[Any], sql: str) -> Iterator[dict[str, Any]]:
        try:
            for row in rows:
                yield dict(row.items())
        except GoogleAPICallError as exc:
            logger.error("Fetching BigQuery result page failed", exc_info=True)
            raise QueryExecutionError(exc, sql) from exc
