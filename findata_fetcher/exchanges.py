from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ExchangeRegion(Enum):
    US = "US"
    EUROPE = "EUROPE"
    ASIA_PACIFIC = "ASIA_PACIFIC"
    AMERICAS = "AMERICAS"
    MIDDLE_EAST_AFRICA = "MIDDLE_EAST_AFRICA"


class MarketType(Enum):
    DEVELOPED_MARKET = "DEVELOPED_MARKET"
    DEVELOPING_MARKET = "DEVELOPING_MARKET"


@dataclass(frozen=True)
class Exchange:
    code: str  # exchangeShortName as reported in profile.json
    name: str
    region: ExchangeRegion
    market_type: MarketType


_R = ExchangeRegion
_DEV = MarketType.DEVELOPED_MARKET
_EM = MarketType.DEVELOPING_MARKET

# Catalog order is the order used when building the search index
EXCHANGES: list[Exchange] = [
    Exchange("NASDAQ", "NASDAQ Global Select", _R.US, _DEV),
    Exchange("NYSE", "New York Stock Exchange", _R.US, _DEV),
    Exchange("AMEX", "NYSE American", _R.US, _DEV),
    Exchange("OTC", "Other OTC", _R.US, _DEV),
    Exchange("PNK", "Pink Sheets", _R.US, _DEV),
    Exchange("CBOE", "CBOE BZX", _R.US, _DEV),
    Exchange("LSE", "London Stock Exchange", _R.EUROPE, _DEV),
    Exchange("XETRA", "Deutsche Boerse Xetra", _R.EUROPE, _DEV),
    Exchange("EURONEXT", "Euronext", _R.EUROPE, _DEV),
    Exchange("SIX", "SIX Swiss Exchange", _R.EUROPE, _DEV),
    Exchange("STO", "Stockholm Stock Exchange", _R.EUROPE, _DEV),
    Exchange("OSL", "Oslo Stock Exchange", _R.EUROPE, _DEV),
    Exchange("CPH", "Copenhagen", _R.EUROPE, _DEV),
    Exchange("HEL", "Helsinki", _R.EUROPE, _DEV),
    Exchange("MIL", "Milan", _R.EUROPE, _DEV),
    Exchange("MCE", "Madrid Stock Exchange", _R.EUROPE, _DEV),
    Exchange("VIE", "Vienna", _R.EUROPE, _DEV),
    Exchange("BRU", "Brussels", _R.EUROPE, _DEV),
    Exchange("AMS", "Amsterdam", _R.EUROPE, _DEV),
    Exchange("PAR", "Paris", _R.EUROPE, _DEV),
    Exchange("TSX", "Toronto Stock Exchange", _R.AMERICAS, _DEV),
    Exchange("JPX", "Tokyo", _R.ASIA_PACIFIC, _DEV),
    Exchange("ASX", "Australian Securities Exchange", _R.ASIA_PACIFIC, _DEV),
    Exchange("HKSE", "Hong Kong Stock Exchange", _R.ASIA_PACIFIC, _DEV),
    Exchange("SES", "Singapore Exchange", _R.ASIA_PACIFIC, _DEV),
    Exchange("NZE", "New Zealand Exchange", _R.ASIA_PACIFIC, _DEV),
    Exchange("TLV", "Tel Aviv Stock Exchange", _R.MIDDLE_EAST_AFRICA, _DEV),
    Exchange("NSE", "National Stock Exchange of India", _R.ASIA_PACIFIC, _EM),
    Exchange("BSE", "Bombay Stock Exchange", _R.ASIA_PACIFIC, _EM),
    Exchange("SHH", "Shanghai", _R.ASIA_PACIFIC, _EM),
    Exchange("SHZ", "Shenzhen", _R.ASIA_PACIFIC, _EM),
    Exchange("KSC", "KSE", _R.ASIA_PACIFIC, _EM),
    Exchange("KOE", "KOSDAQ", _R.ASIA_PACIFIC, _EM),
    Exchange("TAI", "Taiwan", _R.ASIA_PACIFIC, _EM),
    Exchange("TWO", "Taipei Exchange", _R.ASIA_PACIFIC, _EM),
    Exchange("SET", "Stock Exchange of Thailand", _R.ASIA_PACIFIC, _EM),
    Exchange("KLS", "Kuala Lumpur", _R.ASIA_PACIFIC, _EM),
    Exchange("JKT", "Jakarta Stock Exchange", _R.ASIA_PACIFIC, _EM),
    Exchange("SAO", "Sao Paulo", _R.AMERICAS, _EM),
    Exchange("MEX", "Mexico", _R.AMERICAS, _EM),
    Exchange("WSE", "Warsaw Stock Exchange", _R.EUROPE, _EM),
    Exchange("BUD", "Budapest Stock Exchange", _R.EUROPE, _EM),
    Exchange("PRA", "Prague", _R.EUROPE, _EM),
    Exchange("ATH", "Athens", _R.EUROPE, _EM),
    Exchange("IST", "Istanbul Stock Exchange", _R.MIDDLE_EAST_AFRICA, _EM),
    Exchange("JNB", "Johannesburg", _R.MIDDLE_EAST_AFRICA, _EM),
    Exchange("SAU", "Saudi", _R.MIDDLE_EAST_AFRICA, _EM),
    Exchange("DOH", "Qatar", _R.MIDDLE_EAST_AFRICA, _EM),
]


def exchanges_by_region(region: ExchangeRegion | str, *, catalog: list[Exchange] | None = None) -> list[str]:
    r = ExchangeRegion(region) if isinstance(region, str) else region
    return [e.code for e in (catalog or EXCHANGES) if e.region == r]


def exchanges_by_type(market_type: MarketType | str, *, catalog: list[Exchange] | None = None) -> list[str]:
    m = MarketType(market_type) if isinstance(market_type, str) else market_type
    return [e.code for e in (catalog or EXCHANGES) if e.market_type == m]
