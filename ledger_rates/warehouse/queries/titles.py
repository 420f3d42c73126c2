"""Bucket title expressions shared by the rate query builders."""

from ledger_rates.warehouse.models import AggregateBy


def format_title(
    sequence_column: str, closed_at_column: str, aggregate_by: "AggregateBy | str"
) -> str:
    """Return the ``SELECT`` expression labelling each aggregation bucket.

    Per-ledger buckets are titled ``"Ledger <sequence>"``; every other
    granularity buckets by the UTC calendar day of the ledger close time,
    formatted ``YYYY-MM-DD``.  The expression is aliased ``title`` so the
    builders can ``GROUP BY`` and ``ORDER BY`` it.
    """
    if AggregateBy.parse(aggregate_by) is AggregateBy.LEDGER:
        return f'FORMAT("Ledger %d", {sequence_column}) AS title'
    return f'FORMAT_DATE("%Y-%m-%d", DATE({closed_at_column}, "UTC")) AS title'
