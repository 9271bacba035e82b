"""
Example: download the fundamentals of a few symbols into a local cache.

Requires FMP_API_KEY in the environment. Files already in the cache are not fetched again.
"""

from findata_fetcher.cache_store import CacheStore
from findata_fetcher.config import FetcherConfig
from findata_fetcher.fetcher import RetryingFetcher
from findata_fetcher.fundamentals import FUNDAMENTAL_FILES, download_symbol

config = FetcherConfig.from_env(base_folder="data")
store = CacheStore(config.base_folder)
fetcher = RetryingFetcher(config, store)

for symbol in ["AAPL", "MSFT", "^GSPC"]:
    download_symbol(fetcher, symbol)
    print(f"{symbol}: {len(FUNDAMENTAL_FILES)} files cached")

print(f"\nNetwork requests: {fetcher.network_requests}, cache hits: {fetcher.cache_hits}")
