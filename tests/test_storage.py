"""Tests for slot stores."""

import pytest

from visionstudio.services.storage import FileSlotStore, MemorySlotStore, SlotStore, StorageCapacityError


def test_file_store_round_trip(tmp_path):
    store = FileSlotStore(tmp_path)

    store.write("vault", '["a"]')

    assert store.read("vault") == '["a"]'
    assert (tmp_path / "vault.json").exists()
    assert list(tmp_path.glob("*.tmp")) == []


def test_file_store_missing_slot(tmp_path):
    assert FileSlotStore(tmp_path).read("nothing") is None


def test_file_store_delete(tmp_path):
    store = FileSlotStore(tmp_path)
    store.write("vault", "[]")

    store.delete("vault")
    store.delete("vault")

    assert store.read("vault") is None


def test_file_store_capacity(tmp_path):
    store = FileSlotStore(tmp_path, max_bytes=4)

    with pytest.raises(StorageCapacityError):
        store.write("vault", "x" * 5)
    assert store.read("vault") is None


def test_file_store_rejects_path_like_slot(tmp_path):
    with pytest.raises(ValueError):
        FileSlotStore(tmp_path).read("../escape")


def test_file_store_default_directory(monkeypatch, tmp_path):
    monkeypatch.setenv("VISIONSTUDIO_HOME", str(tmp_path / "home"))

    assert FileSlotStore().directory == tmp_path / "home"


def test_memory_store_capacity():
    store = MemorySlotStore(max_bytes=2)

    store.write("s", "ok")
    with pytest.raises(StorageCapacityError):
        store.write("s", "too big")
    assert store.read("s") == "ok"


def test_stores_satisfy_protocol(tmp_path):
    assert isinstance(MemorySlotStore(), SlotStore)
    assert isinstance(FileSlotStore(tmp_path), SlotStore)
