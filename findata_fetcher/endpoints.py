"""
Typed request descriptions.

Every remote call is a `FetchRequest`: the resource key it is cached under, the
provider it goes to, the URL path, and a typed query object. Query objects
validate their values at construction so a malformed parameter set fails in
tests instead of at the remote API.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from typing import Protocol


PROVIDER_FMP = "fmp"
PROVIDER_FX = "fx"

NUM_YEARS = 100
NUM_QUARTERS = NUM_YEARS * 4


class Query(Protocol):
    def to_params(self) -> dict[str, str]:
        ...


@dataclass(frozen=True)
class NoQuery:
    def to_params(self) -> dict[str, str]:
        return {}


@dataclass(frozen=True)
class LimitQuery:
    limit: int

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError(f"limit must be > 0, got {self.limit}")

    def to_params(self) -> dict[str, str]:
        return {"limit": str(self.limit)}


@dataclass(frozen=True)
class QuarterlyQuery:
    limit: int = NUM_QUARTERS
    period: str = "quarter"

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError(f"limit must be > 0, got {self.limit}")
        if self.period not in ("quarter", "annual"):
            raise ValueError(f"invalid period: {self.period}")

    def to_params(self) -> dict[str, str]:
        return {"limit": str(self.limit), "period": self.period}


@dataclass(frozen=True)
class LineSeriesQuery:
    serietype: str = "line"

    def to_params(self) -> dict[str, str]:
        return {"serietype": self.serietype}


def _check_range(start: dt.date, end: dt.date) -> None:
    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")


@dataclass(frozen=True)
class DateRangeQuery:
    start: dt.date
    end: dt.date

    def __post_init__(self):
        _check_range(self.start, self.end)

    def to_params(self) -> dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


@dataclass(frozen=True)
class EconomicQuery:
    name: str
    start: dt.date
    end: dt.date

    def __post_init__(self):
        if not self.name:
            raise ValueError("indicator name must not be empty")
        _check_range(self.start, self.end)

    def to_params(self) -> dict[str, str]:
        return {"name": self.name, "from": self.start.isoformat(), "to": self.end.isoformat()}


@dataclass(frozen=True)
class FxTimeseriesQuery:
    start_date: dt.date
    end_date: dt.date
    base: str

    def __post_init__(self):
        if not self.base or not self.base.strip():
            raise ValueError("base currency must not be empty")
        _check_range(self.start_date, self.end_date)

    def to_params(self) -> dict[str, str]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "base": self.base,
        }


@dataclass(frozen=True)
class FetchRequest:
    key: str
    path: str
    query: Query = field(default_factory=NoQuery)
    provider: str = PROVIDER_FMP

    def __post_init__(self):
        if self.provider not in (PROVIDER_FMP, PROVIDER_FX):
            raise ValueError(f"unknown provider: {self.provider}")
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path}")

    def params(self) -> dict[str, str]:
        return self.query.to_params()


def encode_symbol(symbol: str) -> str:
    """Percent-encode the caret of index symbols (`^GSPC` -> `%5EGSPC`)."""
    return str(symbol).strip().replace("^", "%5E")
