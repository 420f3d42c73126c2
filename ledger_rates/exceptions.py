"""Exception types raised by the rate queries.

Hierarchy::

    RateQueryError
    ├── InvalidRateRequest      rejected before any SQL is built
    └── QueryError              warehouse round-trip failed
        ├── QueryExecutionError stage="execute", keeps the SQL text
        └── QueryDecodeError    stage="decode"
"""

from typing import Optional


class RateQueryError(Exception):
    """Base class for all rate query errors."""


class InvalidRateRequest(RateQueryError, ValueError):
    """Raised when a rate request cannot produce a meaningful query."""


class QueryError(RateQueryError):
    """Raised when the warehouse round-trip for a rate query fails.

    Attributes
    ----------
    stage:
        ``"execute"`` if the warehouse rejected or failed to run the query,
        ``"decode"`` if a result row could not be parsed.
    cause:
        The underlying exception.
    sql:
        The submitted SQL text, when available.
    """

    stage: str = ""

    def __init__(self, cause: Exception, sql: Optional[str] = None):
        self.cause = cause
        self.sql = sql
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"Rate query failed at {self.stage} stage: {self.cause}"


class QueryExecutionError(QueryError):
    """The warehouse rejected or failed to run the submitted SQL."""

    stage = "execute"

    def _describe(self) -> str:
        return f"error running query \n{self.sql}\n{self.cause}"


class QueryDecodeError(QueryError):
    """A result row could not be parsed into a ``RateResult``."""

    stage = "decode"

    def _describe(self) -> str:
        return f"error parsing results from query: {self.cause}"
