"""Pydantic models for rate requests and warehouse result rows.

All models are frozen value objects: they are built once per request and
never mutated afterwards.

Usage::

    row = next(cursor)
    result = record_to_model(row, RateResult)
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

_UNIX_SECONDS_RE = re.compile(r"-?\d+")


class AggregateBy(str, Enum):
    """Bucket granularity for rate aggregation."""

    LEDGER = "ledger"
    DAY = "day"

    @classmethod
    def parse(cls, value: "str | AggregateBy") -> "AggregateBy":
        """Map a raw value onto a granularity.

        ``"ledger"`` selects per-ledger buckets; every other value selects
        per-day buckets.
        """
        if isinstance(value, AggregateBy):
            return value
        return cls.LEDGER if value == cls.LEDGER.value else cls.DAY


class Asset(BaseModel):
    """A tradable asset, identified by code and issuing account."""

    model_config = ConfigDict(frozen=True)

    code: str
    issuer: str

    def __str__(self) -> str:
        return f"{self.code}:{self.issuer}"


class RateRequest(BaseModel):
    """Parameters of a single rate query.

    ``start_time`` and ``end_time`` are decimal-string Unix seconds.  Both
    empty means no time filter; both set means an inclusive range.
    """

    model_config = ConfigDict(frozen=True)

    source: Asset
    dest: Asset
    start_time: str = ""
    end_time: str = ""
    aggregate_by: AggregateBy = AggregateBy.DAY

    @field_validator("aggregate_by", mode="before")
    @classmethod
    def _parse_aggregate_by(cls, value: Any) -> AggregateBy:
        return AggregateBy.parse(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _check_unix_seconds(cls, value: Any) -> str:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise ValueError(f"timestamp must be a string of Unix seconds, got {value!r}")
        if value and not _UNIX_SECONDS_RE.fullmatch(value):
            raise ValueError(f"timestamp is not an integer number of seconds: {value!r}")
        return value

    @model_validator(mode="after")
    def _check_pair_and_range(self) -> "RateRequest":
        if self.source == self.dest:
            raise ValueError(f"source and dest are the same asset: {self.source}")
        if bool(self.start_time) != bool(self.end_time):
            raise ValueError("start_time and end_time must both be set or both be empty")
        return self

    @property
    def has_time_range(self) -> bool:
        return bool(self.start_time and self.end_time)


class RateResult(BaseModel):
    """One rate observation per aggregation bucket.

    ``rate`` is expressed in destination units per source unit.  It is
    ``None`` only for trade-rate buckets where neither orientation of the
    pair matched.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    rate: Optional[float]


def record_to_model(record: Mapping[str, Any], model_cls: type[BaseModel]) -> BaseModel:
    """Build *model_cls* from one cursor row keyed by column name.

    Columns the model does not declare are ignored; missing or mistyped
    ones raise ``pydantic.ValidationError``, which the executor reports as
    a decode failure.
    """
    return model_cls(**dict(record))
