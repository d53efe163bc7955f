import json

import pytest

from conftest import FakeClock
from spotistatus.core.errors import StoreError
from spotistatus.core.kvstore import JsonFileKVStore, MemoryKVStore


def test_memory_store_get_missing_is_none():
    kv = MemoryKVStore()
    assert kv.get("nope") is None


def test_memory_store_expiry():
    clock = FakeClock()
    kv = MemoryKVStore(clock=clock)
    kv.set("k", "v", ttl_seconds=30)
    kv.set("forever", "x")

    clock.now += 29
    assert kv.get("k") == "v"
    clock.now += 1
    assert kv.get("k") is None
    clock.now += 10_000
    assert kv.get("forever") == "x"


def test_memory_store_delete_and_overwrite():
    kv = MemoryKVStore()
    kv.set("k", {"a": 1})
    kv.set("k", {"a": 2})
    assert kv.get("k") == {"a": 2}
    kv.delete("k")
    kv.delete("k")
    assert kv.get("k") is None


def test_memory_store_rejects_non_positive_ttl():
    with pytest.raises(StoreError):
        MemoryKVStore().set("k", "v", ttl_seconds=0)


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "kv.json"
    clock = FakeClock()
    JsonFileKVStore(path, clock=clock).set("uid-u1", "a@example.com")

    reopened = JsonFileKVStore(path, clock=clock)
    assert reopened.get("uid-u1") == "a@example.com"
    assert json.loads(path.read_text())["entries"]["uid-u1"]["expires_at"] is None


def test_file_store_expiry_and_purge(tmp_path):
    clock = FakeClock()
    kv = JsonFileKVStore(tmp_path / "kv.json", clock=clock)
    kv.set("cached-status-u1", {"is_connected": True}, ttl_seconds=60)
    kv.set("context-album-x", "Name")

    clock.now += 61
    assert kv.get("cached-status-u1") is None
    assert kv.purge_expired() == 1
    assert kv.get("context-album-x") == "Name"


def test_file_store_corrupt_file_is_an_error_not_a_miss(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text("{not json")
    with pytest.raises(StoreError):
        JsonFileKVStore(path).get("anything")


def test_memory_store_evicts_expired_keys_nobody_reads():
    clock = FakeClock()
    kv = MemoryKVStore(clock=clock)
    for i in range(1000):
        kv.set(f"cached-status-u{i}", {"is_connected": False}, ttl_seconds=1)
    kv.set("token-u0", {"access_token": "a"})

    clock.now += 10
    kv.set("cached-status-fresh", {"is_connected": True}, ttl_seconds=60)

    assert len(kv) == 2
    assert kv.get("token-u0") == {"access_token": "a"}


def test_memory_store_is_bounded():
    kv = MemoryKVStore(maxsize=3)
    for i in range(5):
        kv.set(f"k{i}", i)
    assert len(kv) == 3
    assert kv.get("k4") == 4


@pytest.mark.parametrize("content", ["[]", '"text"', "42"])
def test_file_store_non_object_json_is_an_error(tmp_path, content):
    path = tmp_path / "kv.json"
    path.write_text(content)
    kv = JsonFileKVStore(path)
    with pytest.raises(StoreError):
        kv.get("anything")
    with pytest.raises(StoreError):
        kv.set("k", "v")


def test_file_store_bad_expiry_is_an_error(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text(json.dumps({"entries": {"k": {"value": "v", "expires_at": "soon"}}}))
    kv = JsonFileKVStore(path)
    with pytest.raises(StoreError):
        kv.get("k")
    with pytest.raises(StoreError):
        kv.purge_expired()
