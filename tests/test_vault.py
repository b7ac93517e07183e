"""Tests for the artifact vault and cooldown gate."""

from datetime import datetime, timedelta, timezone

import pytest

from visionstudio.models.artifacts import Artifact, SortOrder
from visionstudio.models.requests import AspectRatio, ModelTier
from visionstudio.services.storage import FileSlotStore, MemorySlotStore
from visionstudio.services.vault import (
    CAPACITY_WARNING,
    DURABILITY_WARNING,
    VAULT_SLOT,
    ArtifactVault,
    Cooldown,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_artifact(artifact_id: str, prompt: str = "prompt", offset: int = 0) -> Artifact:
    return Artifact(
        id=artifact_id,
        url="data:image/png;base64,AAAA",
        source_prompt=prompt,
        model=ModelTier.STANDARD,
        created_at=BASE_TIME + timedelta(seconds=offset),
        aspect_ratio=AspectRatio.SQUARE,
    )


def test_insert_prepends_and_persists(memory_vault):
    memory_vault.insert(make_artifact("a", offset=0))
    memory_vault.insert(make_artifact("b", offset=1))

    assert [a.id for a in memory_vault.state().artifacts] == ["b", "a"]
    assert [a.id for a in memory_vault.query()] == ["b", "a"]
    assert memory_vault.store.read(VAULT_SLOT) is not None


def test_insert_replaces_duplicate_id(memory_vault):
    memory_vault.insert(make_artifact("a", prompt="first"))
    memory_vault.insert(make_artifact("a", prompt="second", offset=5))

    assert len(memory_vault) == 1
    assert memory_vault.get("a").source_prompt == "second"


def test_persisted_artifacts_survive_reload():
    store = MemorySlotStore()
    vault = ArtifactVault(store)
    vault.load()
    vault.insert(make_artifact("a", prompt="A Red Fox", offset=0))
    vault.insert(make_artifact("b", prompt="blue sky", offset=1))

    restored = ArtifactVault(store)
    artifacts = restored.load()

    assert [a.id for a in artifacts] == ["b", "a"]
    assert artifacts[1].created_at == BASE_TIME
    assert artifacts[1].model == ModelTier.STANDARD


@pytest.mark.parametrize("raw", ["not json", '{"id": 1}', "[{\"id\": \"x\"}]", "null"])
def test_load_discards_invalid_slot(raw):
    store = MemorySlotStore()
    store.write(VAULT_SLOT, raw)
    vault = ArtifactVault(store)

    assert vault.load() == []
    assert store.read(VAULT_SLOT) is None


def test_load_empty_slot():
    assert ArtifactVault(MemorySlotStore()).load() == []


def test_remove(memory_vault):
    memory_vault.insert(make_artifact("a"))
    memory_vault.insert(make_artifact("b", offset=1))

    memory_vault.remove("a")

    assert "a" not in memory_vault
    assert [a.id for a in ArtifactVault(memory_vault.store).load()] == ["b"]


def test_remove_missing_is_noop(memory_vault):
    memory_vault.insert(make_artifact("a"))

    assert memory_vault.remove("missing") is None
    assert len(memory_vault) == 1


def test_capacity_failure_keeps_artifact_in_memory():
    store = MemorySlotStore(max_bytes=10)
    vault = ArtifactVault(store)
    vault.load()

    warning = vault.insert(make_artifact("a"))

    assert warning == CAPACITY_WARNING
    assert vault.warning == CAPACITY_WARNING
    assert "a" in vault
    assert store.read(VAULT_SLOT) is None


def test_query_sort_orders(memory_vault):
    memory_vault.insert(make_artifact("old", offset=0))
    memory_vault.insert(make_artifact("new", offset=10))
    memory_vault.insert(make_artifact("mid", offset=5))

    assert [a.id for a in memory_vault.query("", SortOrder.NEWEST)] == ["new", "mid", "old"]
    assert [a.id for a in memory_vault.query("", SortOrder.OLDEST)] == ["old", "mid", "new"]
    assert [a.id for a in memory_vault.query("", "oldest")] == ["old", "mid", "new"]


def test_query_ties_keep_insertion_order(memory_vault):
    """Equal timestamps stay in insertion order in both directions."""
    memory_vault.insert(make_artifact("first", offset=3))
    memory_vault.insert(make_artifact("second", offset=3))
    memory_vault.insert(make_artifact("earlier", offset=0))

    assert [a.id for a in memory_vault.query("", SortOrder.NEWEST)] == ["first", "second", "earlier"]
    assert [a.id for a in memory_vault.query("", SortOrder.OLDEST)] == ["earlier", "first", "second"]


def test_query_search_is_case_insensitive(memory_vault):
    memory_vault.insert(make_artifact("fox", prompt="A Red Fox", offset=0))
    memory_vault.insert(make_artifact("sky", prompt="blue sky", offset=1))

    assert [a.id for a in memory_vault.query("red")] == ["fox"]
    assert [a.id for a in memory_vault.query("SKY")] == ["sky"]
    assert len(memory_vault.query("   ")) == 2
    assert memory_vault.query("green") == []


def test_cooldown_counts_down_and_unblocks(memory_vault):
    memory_vault.start_cooldown(3)
    assert memory_vault.can_submit is False

    memory_vault.tick()
    memory_vault.tick()
    assert memory_vault.cooldown_remaining_seconds == 1
    assert memory_vault.state().can_submit is False

    memory_vault.tick()
    assert memory_vault.can_submit is True
    assert memory_vault.tick() == 0


def test_cooldown_restart_replaces_remaining(memory_vault):
    memory_vault.start_cooldown(30)
    memory_vault.tick()
    memory_vault.start_cooldown(10)

    assert memory_vault.cooldown_remaining_seconds == 10


def test_cooldown_rejects_negative():
    with pytest.raises(ValueError):
        Cooldown().start(-1)


@pytest.mark.asyncio
async def test_cooldown_run_ticks_each_interval():
    cooldown = Cooldown()
    cooldown.start(3)
    intervals = []

    async def fake_sleep(seconds):
        intervals.append(seconds)

    await cooldown.run(interval=1.0, sleep=fake_sleep)

    assert intervals == [1.0, 1.0, 1.0]
    assert cooldown.active is False


def test_load_discards_undecodable_slot_file(tmp_path):
    """A slot file that is not valid UTF-8 yields an empty vault."""
    slot_file = tmp_path / f"{VAULT_SLOT}.json"
    slot_file.write_bytes(b"\xff\xfe\x00garbage")
    vault = ArtifactVault(FileSlotStore(tmp_path))

    assert vault.load() == []
    assert not slot_file.exists()


class ReadOnlyStore(MemorySlotStore):
    def write(self, slot: str, value: str) -> None:
        raise PermissionError("read-only fs")


def test_write_failure_keeps_artifact_in_memory():
    vault = ArtifactVault(ReadOnlyStore())
    vault.load()

    warning = vault.insert(make_artifact("a"))

    assert warning == DURABILITY_WARNING
    assert "a" in vault
    assert vault.remove("a") == DURABILITY_WARNING
    assert len(vault) == 0


def test_naive_timestamps_are_stored_as_utc(memory_vault):
    naive = Artifact(
        id="naive",
        url="data:image/png;base64,AAAA",
        source_prompt="naive",
        model=ModelTier.STANDARD,
        created_at=datetime(2024, 5, 1, 12, 30),
        aspect_ratio=AspectRatio.SQUARE,
    )
    memory_vault.insert(make_artifact("aware", offset=0))
    memory_vault.insert(naive)

    assert naive.created_at.tzinfo is not None
    assert [a.id for a in memory_vault.query("", SortOrder.NEWEST)] == ["naive", "aware"]


def test_aware_timestamps_are_converted_to_utc():
    offset = timezone(timedelta(hours=2))
    converted = Artifact(**{**make_artifact("a").model_dump(), "created_at": datetime(2024, 5, 1, 14, 0, tzinfo=offset)})

    assert converted.created_at == BASE_TIME
    assert converted.created_at.utcoffset() == timedelta(0)
