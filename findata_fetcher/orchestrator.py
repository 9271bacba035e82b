from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
import logging
from time import perf_counter
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from .cache_store import CacheStore
from .endpoints import FetchRequest
from .errors import FetchError
from .fetcher import RetryingFetcher
from .fundamentals import fundamentals_requests
from .indexes import build_exchange_index, build_search_index
from .io_utils import write_json
from .macro import FX_START_YEAR, economic_requests, fx_requests, load_fx_currencies, reference_requests
from .meta import build_env_meta
from .universe import resolve_universe

logger = logging.getLogger(__name__)


STAGE_FX = "fx"
STAGE_MACRO = "macro"
STAGE_FUNDAMENTALS = "fundamentals"


@dataclass(frozen=True)
class PipelineConfig:
    fx_start_year: int = FX_START_YEAR
    max_workers: int = 1
    test_limit: int = 0
    skip_fx: bool = False
    skip_macro: bool = False
    today: dt.date | None = None
    meta_output_path: str | None = None


@dataclass(frozen=True)
class WorkUnit:
    """Requests that succeed or fail together (one symbol, one FX chunk, one series)."""

    stage: str
    label: str
    requests: list[FetchRequest] = field(default_factory=list)


def _failure_record(unit: WorkUnit, error: Exception) -> dict:
    return {
        "stage": unit.stage,
        "unit": unit.label,
        "key": getattr(error, "key", None),
        "type": type(error).__name__,
        "message": str(error),
    }


def run_units(fetcher: RetryingFetcher, units: list[WorkUnit], *, desc: str, max_workers: int = 1) -> list[dict]:
    """
    Run every unit; a FetchError fails only its own unit.

    Returns failure records. Anything other than FetchError (e.g. a missing API key)
    propagates and stops the run.
    """
    failures: list[dict] = []

    def run_one(unit: WorkUnit) -> None:
        for req in unit.requests:
            fetcher.fetch(req)

    def record(unit: WorkUnit, e: FetchError) -> None:
        logger.error(f"{unit.stage} unit {unit.label} failed, continuing: {e}")
        failures.append(_failure_record(unit, e))

    if max_workers <= 1:
        for unit in tqdm(units, desc=desc, unit="unit"):
            try:
                run_one(unit)
            except FetchError as e:
                record(unit, e)
        return failures

    with ThreadPoolExecutor(max_workers=int(max_workers)) as ex:
        future_by_unit = {ex.submit(run_one, u): u for u in units}
        try:
            for fut in tqdm(as_completed(future_by_unit), total=len(units), desc=desc, unit="unit"):
                unit = future_by_unit[fut]
                try:
                    fut.result()
                except FetchError as e:
                    record(unit, e)
        except Exception:
            # Best-effort: cancel pending futures (running ones may not stop)
            for fut in future_by_unit:
                fut.cancel()
            raise
    return failures


def fx_units(fetcher: RetryingFetcher, *, start_year: int, end_year: int) -> tuple[list[WorkUnit], list[dict]]:
    """One unit per currency and year. A failing catalog yields no units and one failure."""
    catalog_unit = WorkUnit(stage=STAGE_FX, label="symbols")
    try:
        currencies = load_fx_currencies(fetcher)
    except (FetchError, ValueError) as e:
        logger.error(f"FX catalog unavailable, skipping FX rates: {e}")
        return [], [_failure_record(catalog_unit, e)]
    units = [
        WorkUnit(stage=STAGE_FX, label=req.key.rsplit("/", 1)[-1].removesuffix(".json"), requests=[req])
        for currency in currencies
        for req in fx_requests(currency, start_year=start_year, end_year=end_year)
    ]
    return units, []


def macro_units(today: dt.date) -> list[WorkUnit]:
    return [
        WorkUnit(stage=STAGE_MACRO, label=req.key, requests=[req])
        for req in [*reference_requests(today), *economic_requests(today)]
    ]


def symbol_units(symbols: list[str]) -> list[WorkUnit]:
    return [WorkUnit(stage=STAGE_FUNDAMENTALS, label=s, requests=fundamentals_requests(s)) for s in symbols]


def build_failure_meta(
    *,
    cfg: PipelineConfig,
    store: CacheStore,
    started_at_utc: dt.datetime,
    stage: str,
    error: Exception,
    timing_seconds: dict | None = None,
) -> dict:
    return {
        "generated_at_utc": started_at_utc.isoformat(),
        "run_status": "failed",
        "base_folder": store.root,
        "error": {
            "stage": stage,
            "type": type(error).__name__,
            "message": str(error),
        },
        "args": _args_meta(cfg),
        "timing_seconds": timing_seconds or {},
        "env": build_env_meta(),
    }


def _args_meta(cfg: PipelineConfig) -> dict:
    return {
        "fx_start_year": cfg.fx_start_year,
        "max_workers": cfg.max_workers,
        "test_limit": cfg.test_limit,
        "skip_fx": cfg.skip_fx,
        "skip_macro": cfg.skip_macro,
        "today": cfg.today.isoformat() if cfg.today else None,
        "meta_output": cfg.meta_output_path,
    }


def run_pipeline(cfg: PipelineConfig, *, fetcher: RetryingFetcher, store: CacheStore) -> dict:
    """
    Universe -> FX -> macro -> fundamentals -> exchange index -> search index.

    Per-unit failures are logged and listed in the returned metadata
    (run_status "partial"). Universe failures and configuration errors raise;
    callers (CLI) should catch at the boundary to write failure meta.

    Indexes are only built once every selected symbol is complete and no
    test_limit applies; otherwise meta["indexes"] is "skipped".
    """
    t0 = perf_counter()
    started_at = dt.datetime.now(dt.timezone.utc)
    today = cfg.today or dt.date.today()
    failures: list[dict] = []
    timing: dict[str, float] = {}

    # 1) Universe
    logger.info("[TIMING] Resolving symbol universe...")
    t_univ0 = perf_counter()
    universe = resolve_universe(fetcher)
    symbols = universe.ordered_symbols()
    if cfg.test_limit > 0:
        symbols = symbols[: cfg.test_limit]
    timing["universe"] = round(perf_counter() - t_univ0, 4)
    logger.info(f"[TIMING] Universe resolved: {timing['universe']:.2f}s ({len(symbols)} symbols)")

    # 2) FX rates
    fx_unit_count = 0
    if not cfg.skip_fx:
        t_fx0 = perf_counter()
        units, catalog_failures = fx_units(fetcher, start_year=cfg.fx_start_year, end_year=today.year)
        failures.extend(catalog_failures)
        failures.extend(run_units(fetcher, units, desc="FX rates", max_workers=cfg.max_workers))
        fx_unit_count = len(units)
        timing["fx"] = round(perf_counter() - t_fx0, 4)
        logger.info(f"[TIMING] FX rates: {timing['fx']:.2f}s ({fx_unit_count} chunks)")

    # 3) Macro indicators + reference series
    macro_unit_count = 0
    if not cfg.skip_macro:
        t_macro0 = perf_counter()
        units = macro_units(today)
        failures.extend(run_units(fetcher, units, desc="Macro series", max_workers=cfg.max_workers))
        macro_unit_count = len(units)
        timing["macro"] = round(perf_counter() - t_macro0, 4)
        logger.info(f"[TIMING] Macro series: {timing['macro']:.2f}s ({macro_unit_count} series)")

    # 4) Per-symbol fundamentals
    t_fund0 = perf_counter()
    symbol_failures = run_units(fetcher, symbol_units(symbols), desc="Fundamentals", max_workers=cfg.max_workers)
    failures.extend(symbol_failures)
    timing["fundamentals"] = round(perf_counter() - t_fund0, 4)
    logger.info(
        f"[TIMING] Fundamentals: {timing['fundamentals']:.2f}s "
        f"({len(symbols) - len(symbol_failures)}/{len(symbols)} symbols complete)"
    )

    # 5) Local indexes
    # Index files are written once, so only build them over a complete universe
    exchange_index: dict[str, list[str]] = {}
    search_entries: list[str] = []
    if symbol_failures or cfg.test_limit > 0:
        index_status = "skipped"
        reason = f"{len(symbol_failures)} symbols failed" if symbol_failures else f"test_limit={cfg.test_limit}"
        logger.warning(f"Skipping exchange and search indexes ({reason}); rerun to build them")
    else:
        index_status = "built"
        t_idx0 = perf_counter()
        exchange_index = build_exchange_index(store)
        search_entries = build_search_index(store)
        timing["indexes"] = round(perf_counter() - t_idx0, 4)
    timing["total"] = round(perf_counter() - t0, 4)

    meta = {
        "generated_at_utc": started_at.isoformat(),
        "run_status": "success" if not failures else "partial",
        "base_folder": store.root,
        "symbol_count": len(symbols),
        "symbols_complete": len(symbols) - len(symbol_failures),
        "fx_chunk_count": fx_unit_count,
        "macro_series_count": macro_unit_count,
        "indexes": index_status,
        "exchange_count": len(exchange_index),
        "search_index_entries": len(search_entries),
        "failure_count": len(failures),
        "failures": failures,
        "requests": {
            "network": fetcher.network_requests,
            "cache_hits": fetcher.cache_hits,
        },
        "args": _args_meta(cfg),
        "timing_seconds": timing,
        "env": build_env_meta(),
    }
    if cfg.meta_output_path:
        write_json(meta, cfg.meta_output_path)

    logger.info(
        f"[TIMING] TOTAL {timing['total']:.2f}s, status={meta['run_status']}, "
        f"network={fetcher.network_requests}, cache_hits={fetcher.cache_hits}, failures={len(failures)}"
    )
    return meta
