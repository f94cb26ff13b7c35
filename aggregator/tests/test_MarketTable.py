import threading

import pytest

from aggregator.MarketTable import MarketTable
from tradeFeed.struct.Trade import Trade


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_trade(market=1, price=10.0, volume=2.0, is_buy=True) -> Trade:
    return Trade(market=market, price=price, volume=volume, is_buy=is_buy)


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------

def test_empty_table():
    table = MarketTable()
    assert len(table) == 0
    assert table.snapshot() == {}
    assert table.export() == []


def test_resolve_creates_zero_accumulator():
    table = MarketTable()
    acc = table.resolve(42)
    assert acc.market == 42
    assert acc.snapshot().trade_count == 0
    assert 42 in table
    assert len(table) == 1


def test_resolve_returns_same_instance():
    table = MarketTable()
    assert table.resolve(1) is table.resolve(1)


def test_resolve_different_ids_are_distinct():
    table = MarketTable()
    assert table.resolve(1) is not table.resolve(2)
    assert len(table) == 2


# ---------------------------------------------------------------------------
# record
# ---------------------------------------------------------------------------

def test_record_routes_by_market():
    table = MarketTable()
    table.record(_make_trade(market=1, volume=2.0))
    table.record(_make_trade(market=2, volume=5.0))
    table.record(_make_trade(market=1, volume=3.0))
    snap = table.snapshot()
    assert snap[1].trade_count == 2
    assert snap[1].total_volume == 5.0
    assert snap[2].trade_count == 1
    assert snap[2].total_volume == 5.0


def test_record_isolates_markets():
    table = MarketTable()
    table.record(_make_trade(market=2, price=3.0, volume=7.0, is_buy=False))
    before = table.snapshot()[2]
    for _ in range(10):
        table.record(_make_trade(market=1))
    assert table.snapshot()[2] == before


def test_snapshot_in_discovery_order():
    table = MarketTable()
    for market in (9, 3, 7, 3, 9):
        table.record(_make_trade(market=market))
    assert list(table.snapshot()) == [9, 3, 7]


# ---------------------------------------------------------------------------
# freeze / export
# ---------------------------------------------------------------------------

def test_export_freezes_table():
    table = MarketTable()
    table.record(_make_trade(market=1))
    results = table.export()
    assert len(results) == 1
    assert table.frozen is True
    with pytest.raises(RuntimeError, match="frozen"):
        table.resolve(2)


def test_export_does_not_clear():
    table = MarketTable()
    table.record(_make_trade(market=1))
    assert table.export() == table.export()


# ---------------------------------------------------------------------------
# thread safety
# ---------------------------------------------------------------------------

def test_concurrent_first_resolve_creates_one_accumulator():
    table = MarketTable()
    num_threads = 16
    trades_per_thread = 200
    barrier = threading.Barrier(num_threads)
    seen = []
    seen_lock = threading.Lock()

    def worker():
        barrier.wait()
        acc = table.resolve(777)
        with seen_lock:
            seen.append(acc)
        for _ in range(trades_per_thread):
            table.record(_make_trade(market=777, price=1.0, volume=1.0))

    threads = [threading.Thread(target=worker) for _ in range(num_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(table) == 1
    assert all(acc is seen[0] for acc in seen)
    assert table.snapshot()[777].trade_count == num_threads * trades_per_thread


def test_concurrent_many_markets():
    table = MarketTable()
    num_threads = 8
    markets = list(range(50))

    def worker():
        for market in markets:
            table.record(_make_trade(market=market, volume=1.0))

    threads = [threading.Thread(target=worker) for _ in range(num_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = table.snapshot()
    assert sorted(snap) == markets
    assert all(s.trade_count == num_threads for s in snap.values())
    assert all(s.total_volume == float(num_threads) for s in snap.values())
