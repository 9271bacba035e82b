from __future__ import annotations

from dataclasses import dataclass
import logging

from .endpoints import FetchRequest, LimitQuery, NoQuery, NUM_QUARTERS
from .fetcher import RetryingFetcher

logger = logging.getLogger(__name__)


ALL_SYMBOLS_REQUEST = FetchRequest(
    key="info/financial-statement-symbol-lists.json",
    path="/v3/financial-statement-symbol-lists",
    query=NoQuery(),
)

# Index constituent lists, in the order their symbols are processed
CONSTITUENT_LISTS = ["sp500_constituent", "nasdaq_constituent", "dowjones_constituent"]


def constituent_request(name: str) -> FetchRequest:
    return FetchRequest(key=f"info/{name}.json", path=f"/v3/{name}", query=LimitQuery(NUM_QUARTERS))


def _parse_symbol_list(payload, *, source: str) -> list[str]:
    if not isinstance(payload, list):
        raise ValueError(f"{source}: expected a JSON list, got {type(payload).__name__}")
    out: list[str] = []
    for item in payload:
        # Constituent records carry more fields; only the ticker is kept.
        sym = item.get("symbol") if isinstance(item, dict) else item
        if sym is None:
            continue
        sym = str(sym).strip()
        if sym:
            out.append(sym)
    return out


@dataclass(frozen=True)
class SymbolUniverse:
    all_symbols: list[str]
    sp500: list[str]
    nasdaq: list[str]
    dowjones: list[str]

    def ordered_symbols(self) -> list[str]:
        """Index constituents first, then full coverage; repeats dropped, first-seen order kept."""
        return list(dict.fromkeys([*self.sp500, *self.nasdaq, *self.dowjones, *self.all_symbols]))


def resolve_universe(fetcher: RetryingFetcher) -> SymbolUniverse:
    all_symbols = _parse_symbol_list(fetcher.fetch_json(ALL_SYMBOLS_REQUEST), source=ALL_SYMBOLS_REQUEST.key)
    lists = {}
    for name in CONSTITUENT_LISTS:
        req = constituent_request(name)
        lists[name] = _parse_symbol_list(fetcher.fetch_json(req), source=req.key)

    universe = SymbolUniverse(
        all_symbols=all_symbols,
        sp500=lists["sp500_constituent"],
        nasdaq=lists["nasdaq_constituent"],
        dowjones=lists["dowjones_constituent"],
    )
    logger.info(
        f"Universe resolved: all={len(universe.all_symbols)} sp500={len(universe.sp500)} "
        f"nasdaq={len(universe.nasdaq)} dowjones={len(universe.dowjones)}"
    )
    return universe
