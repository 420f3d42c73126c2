"""Shared pytest fixtures for the ledger-rates test suite.

Provides:
- A pair of distinct assets (``ngnt`` / ``eurt``)
- A default ``Config`` with a small row limit
- ``FakeWarehouse``: an in-memory ``WarehouseClient`` that records every
  submission and replays canned rows
"""

from collections.abc import Iterator
from typing import Any, Optional

import pytest

from ledger_rates.config import Config, WarehouseConfig
from ledger_rates.warehouse.models import Asset

ISSUER_A = "GAWODAROMJ33V5YDFY3NPYTHVYQG7MJXVJ2ND3AOGIHYRWINES6ACCPD"
ISSUER_B = "GAP5LETOV6YIE62YAM56STDANPRDO7ZFDBGSNHJQIYGGKSMOZAHOOS2S"


class FakeWarehouse:
    """In-memory warehouse client.

    ``rows`` are yielded in order; an ``Exception`` instance in the list is
    raised when the cursor reaches it.  ``submit_error`` makes ``submit``
    itself fail.
    """

    def __init__(
        self,
        rows: Optional[list[Any]] = None,
        submit_error: Optional[Exception] = None,
    ) -> None:
        self.rows = rows or []
        self.submit_error = submit_error
        self.submitted: list[str] = []
        self.timeouts: list[Optional[float]] = []
        self.consumed = 0

    def submit(self, sql: str, *, timeout: Optional[float] = None) -> Iterator[Any]:
        self.submitted.append(sql)
        self.timeouts.append(timeout)
        if self.submit_error is not None:
            raise self.submit_error
        return self._cursor()

    def _cursor(self) -> Iterator[Any]:
        for row in self.rows:
            self.consumed += 1
            if isinstance(row, Exception):
                raise row
            yield row


@pytest.fixture
def ngnt() -> Asset:
    return Asset(code="NGNT", issuer=ISSUER_A)


@pytest.fixture
def eurt() -> Asset:
    return Asset(code="EURT", issuer=ISSUER_B)


@pytest.fixture
def config() -> Config:
    return Config(warehouse=WarehouseConfig(row_limit=100))


@pytest.fixture
def warehouse_config(config: Config) -> WarehouseConfig:
    return config.warehouse


@pytest.fixture
def make_warehouse() -> type[FakeWarehouse]:
    """Return the ``FakeWarehouse`` class so tests can seed rows."""
    return FakeWarehouse
