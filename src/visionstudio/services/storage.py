"""Named-slot persistence for client-local state."""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from typing_extensions import runtime_checkable

logger = logging.getLogger(__name__)

_SLOT_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageCapacityError(Exception):
    """Raised when a slot write would exceed the store's capacity."""


@runtime_checkable
class SlotStore(Protocol):
    """Key/value store holding one serialized document per named slot."""

    def read(self, slot: str) -> Optional[str]:
        """Return the slot's contents, or None when the slot is empty."""
        ...

    def write(self, slot: str, value: str) -> None:
        """Replace the slot's contents. Raises StorageCapacityError when full."""
        ...

    def delete(self, slot: str) -> None:
        """Clear the slot. No-op if it is empty."""
        ...


class MemorySlotStore:
    """Slot store kept in process memory."""

    def __init__(self, max_bytes: int | None = None):
        self.max_bytes = max_bytes
        self._slots: dict[str, str] = {}

    def read(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def write(self, slot: str, value: str) -> None:
        if self.max_bytes is not None and len(value.encode("utf-8")) > self.max_bytes:
            raise StorageCapacityError(f"Slot {slot!r} exceeds {self.max_bytes} bytes")
        self._slots[slot] = value

    def delete(self, slot: str) -> None:
        self._slots.pop(slot, None)


class FileSlotStore:
    """Slot store with one JSON file per slot in a directory."""

    def __init__(self, directory: str | Path | None = None, max_bytes: int | None = None):
        """
        Initialize file store.

        Args:
            directory: Storage directory (defaults to VISIONSTUDIO_HOME or ~/.visionstudio)
            max_bytes: Optional per-slot size limit
        """
        if directory is None:
            directory = os.getenv("VISIONSTUDIO_HOME") or Path.home() / ".visionstudio"
        self.directory = Path(directory).expanduser()
        self.max_bytes = max_bytes

    def _path(self, slot: str) -> Path:
        if not _SLOT_NAME.match(slot):
            raise ValueError(f"Invalid slot name: {slot!r}")
        return self.directory / f"{slot}.json"

    def read(self, slot: str) -> Optional[str]:
        path = self._path(slot)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, slot: str, value: str) -> None:
        payload = value.encode("utf-8")
        if self.max_bytes is not None and len(payload) > self.max_bytes:
            raise StorageCapacityError(f"Slot {slot!r} exceeds {self.max_bytes} bytes")

        path = self._path(slot)
        self.directory.mkdir(parents=True, exist_ok=True)
        # Write to a sibling temp file then rename, so readers never see a partial slot
        fd, tmp_name = tempfile.mkstemp(prefix=f".{slot}.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            if getattr(e, "errno", None) == 28:  # ENOSPC
                raise StorageCapacityError(f"No space left for slot {slot!r}") from e
            raise

    def delete(self, slot: str) -> None:
        self._path(slot).unlink(missing_ok=True)
