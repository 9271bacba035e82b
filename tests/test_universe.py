import json

import pytest

from findata_fetcher.errors import FetchError
from findata_fetcher.universe import SymbolUniverse, resolve_universe

from conftest import FakeSession


def _universe_routes():
    return {
        "/v3/financial-statement-symbol-lists": json.dumps(["AAPL", "MSFT", "SAP.DE"]),
        "/v3/sp500_constituent": json.dumps([{"symbol": "AAPL", "name": "Apple"}, {"symbol": "MSFT", "name": "Microsoft"}]),
        "/v3/nasdaq_constituent": json.dumps([{"symbol": "AAPL"}, {"symbol": "NVDA"}]),
        "/v3/dowjones_constituent": json.dumps([{"symbol": "MSFT"}, {"symbol": "KO"}]),
    }


def test_resolve_universe_keeps_lists_separate(store, make_fetcher):
    session = FakeSession(_universe_routes())

    universe = resolve_universe(make_fetcher(session))

    assert universe.all_symbols == ["AAPL", "MSFT", "SAP.DE"]
    assert universe.sp500 == ["AAPL", "MSFT"]
    assert universe.nasdaq == ["AAPL", "NVDA"]
    assert universe.dowjones == ["MSFT", "KO"]
    assert store.exists("info/sp500_constituent.json")
    assert store.exists("info/financial-statement-symbol-lists.json")
    sp500_call = [c for c in session.calls if c["path"] == "/v3/sp500_constituent"][0]
    assert sp500_call["params"]["limit"] == "400"


def test_resolve_universe_uses_cache(store, make_fetcher):
    resolve_universe(make_fetcher(FakeSession(_universe_routes())))
    session = FakeSession()

    universe = resolve_universe(make_fetcher(session))

    assert session.calls == []
    assert universe.nasdaq == ["AAPL", "NVDA"]


def test_ordered_symbols_concatenates_in_insertion_order():
    u = SymbolUniverse(all_symbols=["A", "Z", "B"], sp500=["B", "C"], nasdaq=["C", "D"], dowjones=["E"])
    assert u.ordered_symbols() == ["B", "C", "D", "E", "A", "Z"]


def test_resolve_universe_failure_propagates(store, make_fetcher):
    routes = _universe_routes()
    routes["/v3/nasdaq_constituent"] = '{"Error Message": "Limit Reach"}'

    with pytest.raises(FetchError):
        resolve_universe(make_fetcher(FakeSession(routes)))
