from __future__ import annotations

import datetime as dt
import json
import os

import pytest

from findata_fetcher.errors import ConfigurationError, FetchError
from findata_fetcher.fetcher import RetryingFetcher
from findata_fetcher.macro import ECONOMIC_INDICATORS
from findata_fetcher.orchestrator import PipelineConfig, build_failure_meta, run_pipeline

from conftest import FakeSession, make_config


TODAY = dt.date(2002, 6, 30)

PROFILES = {
    "AAPL": {"companyName": "Apple Inc.", "exchangeShortName": "NASDAQ", "mktCap": 3e12},
    "MSFT": {"companyName": "Microsoft", "exchangeShortName": "NASDAQ", "mktCap": 2e12},
    "SAP.DE": {"companyName": "SAP SE", "exchangeShortName": "XETRA", "mktCap": 2e11},
}


def _routes(*, failing_symbol: str | None = None) -> dict:
    routes = {
        "/v3/financial-statement-symbol-lists": json.dumps(["AAPL", "MSFT", "SAP.DE"]),
        "/v3/sp500_constituent": json.dumps([{"symbol": "MSFT"}]),
        "/v3/nasdaq_constituent": json.dumps([{"symbol": "AAPL"}, {"symbol": "MSFT"}]),
        "/v3/dowjones_constituent": json.dumps([{"symbol": "MSFT"}]),
        "/symbols": json.dumps({"symbols": {"EUR": {}, "USD": {}}}),
        "/timeseries": '{"rates": {}}',
    }
    for sym, fields in PROFILES.items():
        routes[f"/v3/profile/{sym}"] = json.dumps([{"symbol": sym, **fields}])
    if failing_symbol:
        routes[f"/v3/ratios/{failing_symbol}"] = '{"Error Message": "Limit Reach"}'
    return routes


def _snapshot(root: str) -> dict[str, bytes]:
    out = {}
    for dirpath, _, files in os.walk(root):
        for name in files:
            path = os.path.join(dirpath, name)
            with open(path, "rb") as f:
                out[os.path.relpath(path, root)] = f.read()
    return out


def _fetcher(store, session, **overrides) -> RetryingFetcher:
    return RetryingFetcher(make_config(store.root, **overrides), store, session=session)


def test_pipeline_downloads_everything(store):
    session = FakeSession(_routes(), default="[]")
    fetcher = _fetcher(store, session)

    meta = run_pipeline(PipelineConfig(today=TODAY, fx_start_year=2001), fetcher=fetcher, store=store)

    assert meta["run_status"] == "success"
    assert meta["symbol_count"] == 3
    assert meta["symbols_complete"] == 3
    assert meta["fx_chunk_count"] == 4
    assert meta["macro_series_count"] == len(ECONOMIC_INDICATORS) + 4
    for sym in PROFILES:
        assert len(store.list_dir(f"fundamentals/{sym}")) == 8
    assert store.exists("fxratefiles/EUR_2002.json")
    assert store.exists("info/30YearFixedRateMortgageAverage.json")
    assert store.exists("info/s&p500_price.json")
    assert store.read_text("info/exchanges/NASDAQ") == "AAPL\nMSFT"
    assert store.read_text("info/symbols/symbols.csv") == "AAPL;Apple Inc.\nMSFT;Microsoft\nSAP.DE;SAP SE"

    # fundamentals follow constituent order: sp500, nasdaq, dowjones, then full list
    profile_calls = [p for p in session.paths() if p.startswith("/v3/profile/")]
    assert profile_calls == ["/v3/profile/MSFT", "/v3/profile/AAPL", "/v3/profile/SAP.DE"]


def test_second_run_is_idempotent(store):
    cfg = PipelineConfig(today=TODAY, fx_start_year=2001)
    run_pipeline(cfg, fetcher=_fetcher(store, FakeSession(_routes(), default="[]")), store=store)
    before = _snapshot(store.root)

    session = FakeSession()
    fetcher = _fetcher(store, session)
    meta = run_pipeline(cfg, fetcher=fetcher, store=store)

    assert session.calls == []
    assert meta["requests"]["network"] == 0
    assert meta["requests"]["cache_hits"] > 0
    assert _snapshot(store.root) == before


def test_failing_symbol_does_not_abort_batch(store):
    session = FakeSession(_routes(failing_symbol="AAPL"), default="[]")
    fetcher = _fetcher(store, session)

    meta = run_pipeline(PipelineConfig(today=TODAY, skip_fx=True, skip_macro=True), fetcher=fetcher, store=store)

    assert meta["run_status"] == "partial"
    assert meta["symbols_complete"] == 2
    assert meta["failures"] == [
        {
            "stage": "fundamentals",
            "unit": "AAPL",
            "key": "fundamentals/AAPL/ratios.json",
            "type": "FetchError",
            "message": meta["failures"][0]["message"],
        }
    ]
    assert not store.exists("fundamentals/AAPL/ratios.json")
    assert not store.exists("fundamentals/AAPL/profile.json")
    assert len(store.list_dir("fundamentals/SAP.DE")) == 8
    # AAPL is incomplete: indexes wait for a run where every symbol succeeds
    assert meta["indexes"] == "skipped"
    assert store.list_dir("info/exchanges") == []
    assert not store.exists("info/symbols/symbols.csv")


def test_rerun_completes_previously_failed_symbol(store):
    cfg = PipelineConfig(today=TODAY, skip_fx=True, skip_macro=True)
    run_pipeline(cfg, fetcher=_fetcher(store, FakeSession(_routes(failing_symbol="AAPL"), default="[]")), store=store)

    session = FakeSession(_routes(), default="[]")
    meta = run_pipeline(cfg, fetcher=_fetcher(store, session), store=store)

    assert meta["run_status"] == "success"
    assert meta["indexes"] == "built"
    assert sorted(session.paths()) == sorted(["/v3/ratios/AAPL", "/v3/enterprise-values/AAPL", "/v3/key-metrics/AAPL", "/v3/historical-price-full/AAPL", "/v3/profile/AAPL"])
    assert store.read_text("info/exchanges/NASDAQ") == "AAPL\nMSFT"
    assert not store.exists("info/exchanges/UNKNOWN")
    assert store.read_text("info/symbols/symbols.csv") == "AAPL;Apple Inc.\nMSFT;Microsoft\nSAP.DE;SAP SE"


def test_indexes_built_after_test_limit_run_is_followed_by_full_run(store):
    limited = PipelineConfig(today=TODAY, skip_fx=True, skip_macro=True, test_limit=1)
    meta = run_pipeline(limited, fetcher=_fetcher(store, FakeSession(_routes(), default="[]")), store=store)
    assert meta["indexes"] == "skipped"
    assert not store.exists("info/exchanges/NASDAQ")

    full = PipelineConfig(today=TODAY, skip_fx=True, skip_macro=True)
    meta = run_pipeline(full, fetcher=_fetcher(store, FakeSession(_routes(), default="[]")), store=store)

    assert meta["indexes"] == "built"
    assert meta["exchange_count"] == 2
    assert store.read_text("info/exchanges/NASDAQ") == "AAPL\nMSFT"
    assert store.read_text("info/exchanges/XETRA") == "SAP.DE"
    assert store.read_text("info/symbols/symbols.csv") == "AAPL;Apple Inc.\nMSFT;Microsoft\nSAP.DE;SAP SE"


def test_parallel_workers_fetch_same_files(store):
    session = FakeSession(_routes(), default="[]")
    fetcher = _fetcher(store, session)

    meta = run_pipeline(
        PipelineConfig(today=TODAY, fx_start_year=2001, max_workers=4), fetcher=fetcher, store=store
    )

    assert meta["run_status"] == "success"
    assert all(len(store.list_dir(f"fundamentals/{s}")) == 8 for s in PROFILES)


def test_universe_failure_aborts(store):
    routes = _routes()
    routes["/v3/sp500_constituent"] = '{"Error Message": "Invalid API KEY."}'

    with pytest.raises(FetchError):
        run_pipeline(PipelineConfig(today=TODAY), fetcher=_fetcher(store, FakeSession(routes, default="[]")), store=store)


def test_missing_api_key_aborts(store):
    with pytest.raises(ConfigurationError):
        run_pipeline(PipelineConfig(today=TODAY), fetcher=_fetcher(store, FakeSession(_routes()), api_key=""), store=store)


def test_test_limit_and_meta_output(store, tmp_path):
    meta_path = tmp_path / "run.meta.json"
    cfg = PipelineConfig(today=TODAY, skip_fx=True, skip_macro=True, test_limit=1, meta_output_path=str(meta_path))

    meta = run_pipeline(cfg, fetcher=_fetcher(store, FakeSession(_routes(), default="[]")), store=store)

    assert meta["symbol_count"] == 1
    assert store.list_dir("fundamentals") == ["MSFT"]
    written = json.loads(meta_path.read_text())
    assert written["run_status"] == "success"
    assert written["args"]["test_limit"] == 1
    assert written["indexes"] == "skipped"
    assert "env" in written


def test_build_failure_meta(store):
    started = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    meta = build_failure_meta(
        cfg=PipelineConfig(),
        store=store,
        started_at_utc=started,
        stage="configuration",
        error=ConfigurationError("API key is not configured"),
    )
    assert meta["run_status"] == "failed"
    assert meta["error"] == {"stage": "configuration", "type": "ConfigurationError", "message": "API key is not configured"}
