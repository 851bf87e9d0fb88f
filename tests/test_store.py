from pathlib import Path

import pytest

from placeskv.errors import PlacesKVError, StoreExistsError
from placeskv.store import OrderedStore, WriteBatch


def test_iteration_is_byte_lexicographic(tmp_path: Path):
    store = OrderedStore.create(tmp_path / "kv.sqlite")
    batch = WriteBatch()
    for key in (b"b\x00z", b"a\x00b", b"B", b"a\x00a\x00x", b"a", b"\xc3\xa9", b"a\x00"):
        batch.put(key, None)
    store.write(batch)
    keys = [k for k, _ in store.iterate()]
    assert keys == sorted(keys)
    assert keys[0] == b"B"
    assert keys[-1] == b"\xc3\xa9"
    store.close()


def test_prefix_scan_and_existence_markers(tmp_path: Path):
    with OrderedStore.create(tmp_path / "kv.sqlite") as store:
        batch = WriteBatch()
        batch.put(b"T\x00work\x00https://a/", None)
        batch.put(b"T\x00work\x00https://b/", None)
        batch.put(b"T\x00xmas\x00https://c/", None)
        batch.put(b"U", '"x"')
        store.write(batch)

        work = list(store.iterate(b"T\x00work\x00"))
        assert [k for k, _ in work] == [b"T\x00work\x00https://a/", b"T\x00work\x00https://b/"]
        assert all(v is None for _, v in work)
        assert len(list(store.iterate(b"T"))) == 3
        assert store.get(b"U") == '"x"'
        assert b"T\x00work\x00https://a/" in store
        with pytest.raises(KeyError):
            store.get(b"nope")
        assert store.count() == 4


def test_create_refuses_existing_store(tmp_path: Path):
    path = tmp_path / "kv.sqlite"
    OrderedStore.create(path).close()
    with pytest.raises(StoreExistsError):
        OrderedStore.create(path)


def test_open_existing_requires_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        OrderedStore.open_existing(tmp_path / "missing.sqlite")


def test_create_under_a_file_is_reported(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(PlacesKVError):
        OrderedStore.create(blocker / "kv.sqlite")
