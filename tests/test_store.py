from __future__ import annotations

import threading

import pytest

from layerconf.document import RawMapping
from layerconf.store import ConfigStore, freeze


def test_store_starts_unloaded():
    store = ConfigStore()
    assert store.loaded is False
    assert store.get() is None


def test_swap_returns_previous_snapshot():
    store = ConfigStore()
    assert store.swap({"a": {"x": 1}}) is None
    old = store.swap({"a": {"x": 2}})
    assert old == {"a": {"x": 1}}
    assert store.get() == {"a": {"x": 2}}
    assert store.clear() == {"a": {"x": 2}}
    assert store.loaded is False


def test_snapshot_is_read_only_and_detached():
    source = {"http": {"ports": [80, 443]}}
    store = ConfigStore()
    store.swap(source)
    snap = store.get()
    source["http"]["ports"].append(8080)
    assert snap["http"]["ports"] == (80, 443)
    with pytest.raises(TypeError):
        snap["http"] = {}
    with pytest.raises(TypeError):
        snap["http"]["ports"] = ()


def test_readers_keep_the_snapshot_they_received():
    store = ConfigStore()
    store.swap({"v": 1})
    held = store.get()
    store.swap({"v": 2})
    assert held["v"] == 1
    assert store.get()["v"] == 2


def test_freeze_raw_mapping():
    frozen = freeze(RawMapping([("a", [1]), ("b", RawMapping([("c", 2)]))]))
    assert frozen == {"a": (1,), "b": {"c": 2}}


def test_concurrent_readers_see_whole_snapshots():
    store = ConfigStore()
    store.swap({"a": 0, "b": 0})
    seen = []

    def reader():
        for _ in range(2000):
            snap = store.get()
            seen.append(snap["a"] == snap["b"])

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for i in range(1, 500):
        store.swap({"a": i, "b": i})
    for t in threads:
        t.join()
    assert all(seen)


def test_freeze_shares_leaves_that_cannot_be_copied():
    lock = threading.Lock()
    frozen = freeze({"svc": {"guard": lock, "peers": [lock]}})
    assert frozen["svc"]["guard"] is lock
    assert frozen["svc"]["peers"] == (lock,)
