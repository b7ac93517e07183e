"""Artifact vault: persisted, searchable gallery plus the submission cooldown."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from visionstudio.models.artifacts import Artifact, SortOrder, VaultState
from visionstudio.services.storage import SlotStore, StorageCapacityError

logger = logging.getLogger(__name__)

VAULT_SLOT = "visionary_studio_vault"
CAPACITY_WARNING = "Vault capacity reached. Please remove old artifacts."
DURABILITY_WARNING = "Vault could not be saved. Recent changes are kept until the app closes."

_artifact_list = TypeAdapter(list[Artifact])


class Cooldown:
    """Single countdown gating submissions after rate limiting."""

    def __init__(self):
        self._remaining = 0

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def active(self) -> bool:
        return self._remaining > 0

    def start(self, seconds: int) -> None:
        """Start the countdown, replacing (not extending) any active one."""
        if seconds < 0:
            raise ValueError("cooldown seconds must be >= 0")
        self._remaining = int(seconds)
        logger.info("Cooldown started: %ds", self._remaining)

    def tick(self) -> int:
        """Advance one interval. Returns the remaining seconds."""
        if self._remaining > 0:
            self._remaining -= 1
        return self._remaining

    async def run(
        self,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Tick once per interval until the countdown reaches zero."""
        while self._remaining > 0:
            await sleep(interval)
            self.tick()


class ArtifactVault:
    """Owns the artifact collection, its persistence and the cooldown gate."""

    def __init__(self, store: SlotStore, slot: str = VAULT_SLOT, cooldown: Cooldown | None = None):
        """
        Initialize the vault. Call ``load()`` to restore persisted artifacts.

        Args:
            store: Slot store used for persistence
            slot: Name of the slot holding the serialized artifact list
            cooldown: Cooldown instance (a fresh one by default)
        """
        self.store = store
        self.slot = slot
        self.cooldown = cooldown or Cooldown()
        self.warning: Optional[str] = None
        # Newest first
        self._artifacts: list[Artifact] = []

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, artifact_id: object) -> bool:
        return any(artifact.id == artifact_id for artifact in self._artifacts)

    def load(self) -> list[Artifact]:
        """Restore persisted artifacts. Unreadable or invalid data yields an empty vault."""
        try:
            raw = self.store.read(self.slot)
        except UnicodeDecodeError as e:
            logger.warning("Discarding undecodable vault slot %r: %s", self.slot, e)
            self._discard_slot()
            raw = None
        except OSError as e:
            logger.warning("Could not read vault slot %r: %s", self.slot, e)
            raw = None

        artifacts: list[Artifact] = []
        if raw:
            try:
                artifacts = _artifact_list.validate_json(raw)
            except ValidationError as e:
                logger.warning("Discarding corrupt vault slot %r: %s", self.slot, e)
                self._discard_slot()

        # Drop duplicate ids, keeping the first (newest) occurrence
        seen: set[str] = set()
        self._artifacts = []
        for artifact in artifacts:
            if artifact.id not in seen:
                seen.add(artifact.id)
                self._artifacts.append(artifact)
        return list(self._artifacts)

    def insert(self, artifact: Artifact) -> Optional[str]:
        """
        Prepend an artifact and persist.

        Returns:
            A capacity or durability warning if the write failed, else None.
            The artifact is kept in memory either way.
        """
        self._artifacts = [artifact] + [a for a in self._artifacts if a.id != artifact.id]
        return self._persist()

    def remove(self, artifact_id: str) -> Optional[str]:
        """Delete an artifact by id and persist. No-op if absent."""
        remaining = [a for a in self._artifacts if a.id != artifact_id]
        if len(remaining) == len(self._artifacts):
            return None
        self._artifacts = remaining
        return self._persist()

    def get(self, artifact_id: str) -> Optional[Artifact]:
        return next((a for a in self._artifacts if a.id == artifact_id), None)

    def query(self, search_text: str = "", sort_order: SortOrder = SortOrder.NEWEST) -> list[Artifact]:
        """
        Filter by case-insensitive prompt substring and sort by creation time.

        Artifacts with equal timestamps keep their insertion order in both
        directions.
        """
        # Insertion order is the reverse of the newest-first storage order
        result = list(reversed(self._artifacts))
        needle = search_text.strip().lower()
        if needle:
            result = [a for a in result if needle in a.source_prompt.lower()]
        return sorted(
            result,
            key=lambda a: a.created_at,
            reverse=SortOrder(sort_order) is SortOrder.NEWEST,
        )

    def start_cooldown(self, seconds: int) -> None:
        self.cooldown.start(seconds)

    def tick(self) -> int:
        return self.cooldown.tick()

    @property
    def cooldown_remaining_seconds(self) -> int:
        return self.cooldown.remaining

    @property
    def can_submit(self) -> bool:
        return not self.cooldown.active

    def state(self) -> VaultState:
        return VaultState(
            artifacts=list(self._artifacts),
            cooldown_remaining_seconds=self.cooldown.remaining,
        )

    def _persist(self) -> Optional[str]:
        # Serialize a snapshot before handing it to the store
        snapshot = _artifact_list.dump_json(list(self._artifacts)).decode("utf-8")
        try:
            self.store.write(self.slot, snapshot)
        except StorageCapacityError as e:
            logger.warning("Vault persistence failed: %s", e)
            self.warning = CAPACITY_WARNING
            return CAPACITY_WARNING
        except OSError as e:
            logger.warning("Vault persistence failed: %s", e)
            self.warning = DURABILITY_WARNING
            return DURABILITY_WARNING
        self.warning = None
        return None

    def _discard_slot(self) -> None:
        try:
            self.store.delete(self.slot)
        except OSError as e:
            logger.warning("Could not clear vault slot %r: %s", self.slot, e)
