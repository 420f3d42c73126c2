"""Helpers for rendering values into BigQuery Standard SQL text.

Rate queries are plain SQL strings.  Every caller-supplied value goes
through one of these helpers so it lands in the query as a literal and
never as SQL syntax.
"""

import re

from ledger_rates.warehouse.models import RateRequest

_TABLE_RE = re.compile(r"[A-Za-z0-9_.\-]+")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def quote_string(value: str) -> str:
    """Return *value* as a double-quoted BigQuery string literal."""
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


def table(name: str) -> str:
    """Return a backtick-quoted ``project.dataset.table`` reference.

    Raises
    ------
    ValueError
        If the name contains characters outside a plain table path.
    """
    if not _TABLE_RE.fullmatch(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return f"`{name}`"


def time_range_filter(closed_at_column: str, request: RateRequest) -> str:
    """Return the ``AND ... BETWEEN`` clause for the request, or ``""``.

    Bounds are inclusive Unix seconds compared against the UTC ledger
    close time.  Timestamps are validated integers on ``RateRequest``.
    """
    if not request.has_time_range:
        return ""
    return (
        f" AND {closed_at_column} BETWEEN TIMESTAMP_SECONDS({int(request.start_time)})"
        f" AND TIMESTAMP_SECONDS({int(request.end_time)})"
    )
