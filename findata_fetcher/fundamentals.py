from __future__ import annotations

from .endpoints import FetchRequest, LineSeriesQuery, NoQuery, QuarterlyQuery, Query, encode_symbol
from .fetcher import RetryingFetcher


# (file name under fundamentals/{symbol}/, remote path prefix, query)
FUNDAMENTAL_ENDPOINTS: list[tuple[str, str, Query]] = [
    ("income-statement", "/v3/income-statement", QuarterlyQuery()),
    ("balance-sheet", "/v3/balance-sheet-statement", QuarterlyQuery()),
    ("cash-flow", "/v3/cash-flow-statement", QuarterlyQuery()),
    ("ratios", "/v3/ratios", QuarterlyQuery()),
    ("enterprise-values", "/v3/enterprise-values", QuarterlyQuery()),
    ("key-metrics", "/v3/key-metrics", QuarterlyQuery()),
    ("historical-price", "/v3/historical-price-full", LineSeriesQuery()),
    ("profile", "/v3/profile", NoQuery()),
]

FUNDAMENTAL_FILES = [f"{name}.json" for name, _, _ in FUNDAMENTAL_ENDPOINTS]


def fundamentals_key(symbol: str, file_name: str) -> str:
    return f"fundamentals/{encode_symbol(symbol)}/{file_name}"


def fundamentals_requests(symbol: str) -> list[FetchRequest]:
    encoded = encode_symbol(symbol)
    if not encoded:
        raise ValueError("symbol must not be empty")
    return [
        FetchRequest(key=fundamentals_key(symbol, f"{name}.json"), path=f"{path}/{encoded}", query=query)
        for name, path, query in FUNDAMENTAL_ENDPOINTS
    ]


def download_symbol(fetcher: RetryingFetcher, symbol: str) -> int:
    """Fetch the eight fundamentals files of one symbol, in order. Returns the file count."""
    requests_ = fundamentals_requests(symbol)
    for req in requests_:
        fetcher.fetch(req)
    return len(requests_)
