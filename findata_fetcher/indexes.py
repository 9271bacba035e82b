"""
Local post-processing passes over the cached profiles (no network).

- exchange index: info/exchanges/{exchangeShortName} -> newline separated symbols
- search index:   info/symbols/symbols.csv -> newline separated `symbol;companyName`
"""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import math

import pandas as pd

from .cache_store import CacheStore
from .exchanges import ExchangeRegion, MarketType, exchanges_by_region, exchanges_by_type

logger = logging.getLogger(__name__)


FUNDAMENTALS_ROOT = "fundamentals"
EXCHANGES_ROOT = "info/exchanges"
SYMBOL_CACHE_KEY = "info/symbols/symbols.csv"
UNKNOWN_EXCHANGE = "UNKNOWN"
PREFERRED_SHARE_SUFFIX = "-PL"


@dataclass(frozen=True)
class Profile:
    symbol: str
    company_name: str | None
    exchange_short_name: str | None
    exchange: str | None
    market_cap: float | None


def _opt_str(v) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _opt_float(v) -> float | None:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(f) else f


def cached_symbols(store: CacheStore) -> list[str]:
    """Every symbol with a fundamentals directory, sorted."""
    return [name for name in store.list_dir(FUNDAMENTALS_ROOT) if store.list_dir(f"{FUNDAMENTALS_ROOT}/{name}")]


def load_profile(store: CacheStore, symbol: str) -> Profile | None:
    key = f"{FUNDAMENTALS_ROOT}/{symbol}/profile.json"
    if not store.exists(key):
        return None
    try:
        records = json.loads(store.read(key))
    except ValueError as e:
        logger.warning(f"unparseable profile for {symbol}: {e}")
        return None
    if not isinstance(records, list) or not records or not isinstance(records[0], dict):
        return None
    rec = records[0]
    return Profile(
        symbol=_opt_str(rec.get("symbol")) or symbol,
        company_name=_opt_str(rec.get("companyName")),
        exchange_short_name=_opt_str(rec.get("exchangeShortName")),
        exchange=_opt_str(rec.get("exchange")),
        market_cap=_opt_float(rec.get("mktCap")),
    )


def build_exchange_index(store: CacheStore) -> dict[str, list[str]]:
    """Group cached symbols by exchange; write one file per exchange that does not exist yet."""
    exchange_to_symbols: dict[str, list[str]] = {}
    for symbol in cached_symbols(store):
        profile = load_profile(store, symbol)
        code = profile.exchange_short_name if profile is not None else None
        exchange_to_symbols.setdefault(code or UNKNOWN_EXCHANGE, []).append(symbol)

    written = 0
    for code, symbols in exchange_to_symbols.items():
        key = f"{EXCHANGES_ROOT}/{code}"
        if not store.exists(key):
            store.write(key, "\n".join(symbols).encode("utf-8"))
            written += 1
    logger.info(f"Exchange index: {len(exchange_to_symbols)} exchanges ({written} written)")
    return exchange_to_symbols


def symbols_in(store: CacheStore, exchange_codes: list[str]) -> list[str]:
    """Symbols listed in the exchange index files, in exchange order (missing files skipped)."""
    out: list[str] = []
    for code in exchange_codes:
        key = f"{EXCHANGES_ROOT}/{code}"
        if store.exists(key):
            out.extend(line for line in store.read_text(key).splitlines() if line.strip())
    return out


def rank_by_market_cap(profiles: list[Profile], *, excluded_suffix: str = PREFERRED_SHARE_SUFFIX) -> list[str]:
    """Symbols ordered by descending market cap (stable); no-cap and suffixed symbols dropped."""
    rows = [
        {"symbol": p.symbol, "market_cap": p.market_cap}
        for p in profiles
        if p.market_cap is not None and not p.symbol.endswith(excluded_suffix)
    ]
    if not rows:
        return []
    df = pd.DataFrame(rows)
    df = df.sort_values("market_cap", ascending=False, kind="mergesort")
    return df["symbol"].tolist()


def build_search_index(
    store: CacheStore,
    *,
    primary_region: ExchangeRegion | str = ExchangeRegion.US,
    excluded_suffix: str = PREFERRED_SHARE_SUFFIX,
) -> list[str]:
    """
    Ordered `symbol;companyName` entries, most searched first.

    Passes (later passes only add entries not yet present):
      1. primary region by descending market cap
      2. primary region, remaining symbols in exchange file order
      3. developed markets
      4. developing markets
      5. every cached symbol

    Requires the exchange index to exist. The file is written only if absent.
    """
    profiles: dict[str, Profile | None] = {}

    def profile_of(symbol: str) -> Profile | None:
        if symbol not in profiles:
            profiles[symbol] = load_profile(store, symbol)
        return profiles[symbol]

    def entry(symbol: str) -> str:
        p = profile_of(symbol)
        name = p.company_name if p is not None and p.company_name else ""
        return f"{symbol};{name}"

    primary_symbols = symbols_in(store, exchanges_by_region(primary_region))

    # Rank by the directory symbol; profile.json may spell index symbols differently
    rankable = []
    for sym in primary_symbols:
        p = profile_of(sym)
        if p is not None:
            rankable.append(Profile(sym, p.company_name, p.exchange_short_name, p.exchange, p.market_cap))
    ranked = rank_by_market_cap(rankable, excluded_suffix=excluded_suffix)

    passes = [
        ranked,
        primary_symbols,
        symbols_in(store, exchanges_by_type(MarketType.DEVELOPED_MARKET)),
        symbols_in(store, exchanges_by_type(MarketType.DEVELOPING_MARKET)),
        cached_symbols(store),
    ]
    entries: dict[str, None] = {}
    for symbols in passes:
        for sym in symbols:
            entries.setdefault(entry(sym), None)
    out = list(entries)

    if store.exists(SYMBOL_CACHE_KEY):
        logger.info(f"Search index exists, not rewritten: {SYMBOL_CACHE_KEY}")
    else:
        store.write(SYMBOL_CACHE_KEY, "\n".join(out).encode("utf-8"))
        logger.info(f"Search index written: {len(out)} entries")
    return out


class SymbolSearchIndex:
    """Read side of symbols.csv: company name lookup and prefix search."""

    def __init__(self, entries: list[tuple[str, str]]):
        self._entries = entries
        self._name_by_symbol: dict[str, str] = {}
        for symbol, name in entries:
            self._name_by_symbol.setdefault(symbol, name)

    @classmethod
    def load(cls, store: CacheStore) -> "SymbolSearchIndex":
        entries = []
        for line in store.read_text(SYMBOL_CACHE_KEY).splitlines():
            if not line.strip():
                continue
            symbol, _, name = line.partition(";")
            entries.append((symbol, name))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def company_name(self, symbol: str) -> str | None:
        name = self._name_by_symbol.get(symbol)
        return name or None

    def search(self, query: str, *, limit: int = 10) -> list[tuple[str, str]]:
        """Symbol prefix or company-name substring matches, in index priority order."""
        q = query.strip().lower()
        if not q:
            return []
        out = []
        for symbol, name in self._entries:
            if symbol.lower().startswith(q) or q in name.lower():
                out.append((symbol, name))
                if len(out) >= limit:
                    break
        return out
