"""
Economic indicators, reference series and yearly FX rate chunks.
"""
from __future__ import annotations

import datetime as dt

from dateutil.relativedelta import relativedelta

from .endpoints import (
    PROVIDER_FX,
    DateRangeQuery,
    EconomicQuery,
    FetchRequest,
    FxTimeseriesQuery,
    LineSeriesQuery,
)
from .fetcher import RetryingFetcher


ECONOMIC_INDICATORS = [
    "GDP",
    "realGDP",
    "nominalPotentialGDP",
    "realGDPPerCapita",
    "federalFunds",
    "CPI",
    "inflationRate",
    "inflation",
    "retailSales",
    "consumerSentiment",
    "durableGoods",
    "unemploymentRate",
    "totalNonfarmPayroll",
    "initialClaims",
    "industrialProductionTotalIndex",
    "newPrivatelyOwnedHousingUnitsStartedTotalUnits",
    "totalVehicleSales",
    "retailMoneyFunds",
    "smoothedUSRecessionProbabilities",
    "3MonthOr90DayRatesAndYieldsCertificatesOfDeposit",
    "commercialBankInterestRateOnCreditCardPlansAllAccounts",
    "30YearFixedRateMortgageAverage",
    "15YearFixedRateMortgageAverage",
]

ECONOMIC_START_DATE = dt.date(1920, 1, 1)
TREASURY_START_DATE = dt.date(1990, 1, 1)

FX_BASE_KEY = "fxratefiles"
FX_CATALOG_REQUEST = FetchRequest(key=f"{FX_BASE_KEY}/symbols.json", path="/symbols", provider=PROVIDER_FX)
FX_START_YEAR = 2000


def economic_requests(today: dt.date) -> list[FetchRequest]:
    return [
        FetchRequest(
            key=f"info/{name}.json",
            path="/v4/economic",
            query=EconomicQuery(name=name, start=ECONOMIC_START_DATE, end=today),
        )
        for name in ECONOMIC_INDICATORS
    ]


def reference_requests(today: dt.date) -> list[FetchRequest]:
    """Treasury rates, S&P 500 price line and historical index constituents."""
    return [
        FetchRequest(
            key="info/tresury_rates.json",
            path="/v4/treasury",
            query=DateRangeQuery(start=TREASURY_START_DATE, end=today),
        ),
        FetchRequest(key="info/s&p500_price.json", path="/v3/historical-price-full/%5EGSPC", query=LineSeriesQuery()),
        FetchRequest(key="info/s&p500_historical_constituent.json", path="/v3/historical/sp500_constituent"),
        FetchRequest(
            key="info/dowjones_constituent_historical_constituent.json",
            path="/v3/historical/dowjones_constituent",
        ),
    ]


def fx_year_chunks(start_year: int, end_year: int) -> list[tuple[dt.date, dt.date]]:
    """One (Jan 1, Dec 31) window per calendar year, both ends inclusive."""
    if end_year < start_year:
        return []
    chunks = []
    current = dt.date(start_year, 1, 1)
    while current.year <= end_year:
        nxt = current + relativedelta(years=1)
        chunks.append((current, nxt - dt.timedelta(days=1)))
        current = nxt
    return chunks


def fx_requests(currency: str, *, start_year: int, end_year: int) -> list[FetchRequest]:
    return [
        FetchRequest(
            key=f"{FX_BASE_KEY}/{currency}_{start.year}.json",
            path="/timeseries",
            query=FxTimeseriesQuery(start_date=start, end_date=end, base=currency),
            provider=PROVIDER_FX,
        )
        for start, end in fx_year_chunks(start_year, end_year)
    ]


def load_fx_currencies(fetcher: RetryingFetcher) -> list[str]:
    """Currency codes of the FX catalog, in catalog order."""
    payload = fetcher.fetch_json(FX_CATALOG_REQUEST)
    symbols = payload.get("symbols") if isinstance(payload, dict) else None
    if not isinstance(symbols, dict):
        raise ValueError(f"{FX_CATALOG_REQUEST.key}: missing 'symbols' mapping")
    return [str(code) for code in symbols.keys()]
