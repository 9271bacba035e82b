"""
findata_fetcher

Batch download + on-disk cache for financial fundamentals, macro series and FX rates.

Design goals:
- Explicit configuration (no module-level state)
- Idempotent: a cached file is never fetched again
- One failing symbol never aborts the batch
- Readability first
"""
