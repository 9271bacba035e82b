"""
Example: look up company names in the search index built by scripts/download_data.py.
"""

from findata_fetcher.cache_store import CacheStore
from findata_fetcher.indexes import SymbolSearchIndex

store = CacheStore("data")
index = SymbolSearchIndex.load(store)
print(f"Loaded {len(index)} entries")

print("\nCompany name of AAPL:", index.company_name("AAPL"))

print("\nTop matches for 'bank':")
for symbol, name in index.search("bank", limit=5):
    print(f"  {symbol:<10} {name}")
