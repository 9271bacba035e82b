"""
Download fundamentals, macro series and FX rates into the local cache, then build
the exchange and search indexes.

Re-running is cheap: files already in the cache are never fetched again.
"""
import argparse
import datetime
import logging
import os
import sys
from time import perf_counter

from findata_fetcher.cache_store import CacheStore
from findata_fetcher.config import ENV_API_KEY, ENV_BASE_FOLDER, ENV_FX_ACCESS_KEY, RATE_LIMIT_PER_MINUTE, FetcherConfig
from findata_fetcher.errors import ConfigurationError
from findata_fetcher.fetcher import RetryingFetcher
from findata_fetcher.io_utils import write_json
from findata_fetcher.macro import FX_START_YEAR
from findata_fetcher.orchestrator import PipelineConfig, build_failure_meta, run_pipeline

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Download financial data into the local cache")
    parser.add_argument("--base-folder", type=str, default=os.environ.get(ENV_BASE_FOLDER, "data"), help="Cache root directory")
    parser.add_argument("--api-key", type=str, default=os.environ.get(ENV_API_KEY, ""), help=f"Fundamentals API key (default: ${ENV_API_KEY})")
    parser.add_argument("--fx-access-key", type=str, default=os.environ.get(ENV_FX_ACCESS_KEY, ""), help="FX API access key (optional)")
    parser.add_argument("--rate-limit", type=float, default=RATE_LIMIT_PER_MINUTE, help="Max requests per minute")
    parser.add_argument("--timeout", type=float, default=60.0, help="HTTP timeout in seconds")
    parser.add_argument("--fx-start-year", type=int, default=FX_START_YEAR, help="First year of FX rate chunks")
    parser.add_argument("--max-workers", type=int, default=1, help="Number of threads (1 = sequential)")
    parser.add_argument("--test-limit", type=int, default=0, help="Limit number of symbols for testing (0 for all)")
    parser.add_argument("--skip-fx", action="store_true", help="Do not download FX rates")
    parser.add_argument("--skip-macro", action="store_true", help="Do not download macro series")
    parser.add_argument("--meta-output", type=str, default="", help="Run metadata json path (default: <base-folder>/../download.meta.json)")
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    base_folder = os.path.abspath(args.base_folder)
    # Kept outside the cache so repeated runs leave the cache byte-identical
    meta_output = args.meta_output or os.path.join(os.path.dirname(base_folder), "download.meta.json")

    fetcher_cfg = FetcherConfig(
        base_folder=base_folder,
        api_key=args.api_key,
        fx_access_key=args.fx_access_key,
        rate_limit_per_minute=args.rate_limit,
        request_timeout_seconds=args.timeout,
    )
    cfg = PipelineConfig(
        fx_start_year=args.fx_start_year,
        max_workers=args.max_workers,
        test_limit=args.test_limit,
        skip_fx=args.skip_fx,
        skip_macro=args.skip_macro,
        meta_output_path=meta_output,
    )
    store = CacheStore(base_folder)
    fetcher = RetryingFetcher(fetcher_cfg, store)

    t0 = perf_counter()
    started_at = datetime.datetime.now(datetime.timezone.utc)
    try:
        meta = run_pipeline(cfg, fetcher=fetcher, store=store)
    except Exception as e:
        stage = "configuration" if isinstance(e, ConfigurationError) else "pipeline"
        logger.exception(f"Download aborted during {stage}: {e}")
        write_json(
            build_failure_meta(
                cfg=cfg,
                store=store,
                started_at_utc=started_at,
                stage=stage,
                error=e,
                timing_seconds={"total": round(perf_counter() - t0, 4)},
            ),
            meta_output,
        )
        return 1

    print(f"Done: {meta['symbols_complete']}/{meta['symbol_count']} symbols, {meta['failure_count']} failures.")
    print(f"Metadata written to {meta_output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
