"""
Durable save slots and the codec that fills them.

A slot is a single named key-value entry holding one serialized SaveState.
The codec converts between SaveState and that string and refuses anything it
cannot fully validate. Two slot implementations are included:

1. InMemorySlot - dict-backed, lost on exit (testing, embedding)
2. JsonFileSlot - one JSON file per key, replaced atomically on write

Usage pattern:
    persistence = GamePersistence(JsonFileSlot())
    saved = persistence.load()        # None when absent or unreadable
    persistence.save(snapshot)        # raises PersistenceWriteError on failure
    persistence.clear()               # "new game"
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from .config import Config
from .logging_utils import log_debug, log_error
from .schemas import SaveState


# =============================
# Module-level Exceptions
# =============================

class SaveLoadError(Exception):
    """Raised when a persisted record cannot be read or does not validate."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        message = (
            f"Saved game could not be loaded: {reason}\n\n"
            "A fresh session will be started instead. To keep the old record, "
            "copy it aside before playing; it will be overwritten on the first action."
        )
        super().__init__(message)


class PersistenceWriteError(Exception):
    """Raised when a slot could not store or delete a record."""

    def __init__(self, *, key: str, underlying: Exception) -> None:
        self.key = key
        self.underlying = underlying
        message = (
            f"Could not write save slot '{key}': {underlying}\n\n"
            "The game keeps running from memory. Remediation tips:\n"
            "  - Check that DREAMWALKER_SAVE_DIR exists and is writable\n"
            "  - Check free disk space"
        )
        super().__init__(message)


# =============================
# Codec
# =============================

class SaveCodec:
    """Converts SaveState to and from its JSON record."""

    def serialize(self, state: SaveState) -> str:
        """Return the JSON record for ``state``. Total for any valid SaveState."""
        return state.model_dump_json(by_alias=True)

    def deserialize(self, record: str) -> SaveState:
        """Parse and validate ``record``.

        Raises:
            SaveLoadError: If the record is not JSON or does not match the save shape
        """
        try:
            return SaveState.model_validate_json(record)
        except ValidationError as exc:
            issues = "; ".join(
                f"{'.'.join(str(part) for part in err.get('loc', [])) or 'root'}: {err.get('msg')}"
                for err in exc.errors(include_url=False)
            )
            raise SaveLoadError(issues or "record did not match the save shape") from exc


# =============================
# Slots
# =============================

class KeyValueSlot(ABC):
    """A single named durable entry.

    Implementations must make write() atomic: either the new record is
    stored, or the previous record is left exactly as it was.
    """

    key: str

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored record, or None when the slot is empty.

        Raises:
            SaveLoadError: If the slot exists but cannot be read
        """
        pass

    @abstractmethod
    def write(self, record: str) -> None:
        """Replace the stored record.

        Raises:
            PersistenceWriteError: If the record could not be stored
        """
        pass

    @abstractmethod
    def delete(self) -> None:
        """Remove the stored record. Deleting an empty slot is a no-op.

        Raises:
            PersistenceWriteError: If the record could not be removed
        """
        pass


class InMemorySlot(KeyValueSlot):
    """Dict-backed slot. Several slots may share one ``storage`` dict."""

    def __init__(self, key: Optional[str] = None, storage: Optional[Dict[str, str]] = None):
        self.key = key or Config.SAVE_KEY
        self.storage: Dict[str, str] = storage if storage is not None else {}

    def read(self) -> Optional[str]:
        return self.storage.get(self.key)

    def write(self, record: str) -> None:
        self.storage[self.key] = record

    def delete(self) -> None:
        self.storage.pop(self.key, None)


class JsonFileSlot(KeyValueSlot):
    """File-backed slot stored at ``{base_path}/{key}.json``.

    Writes go to a temporary file in the same directory which is then
    renamed over the target with os.replace, so readers never observe a
    half-written record. Transient OSErrors are retried before giving up.
    """

    def __init__(
        self,
        key: Optional[str] = None,
        base_path: Path | str | None = None,
        *,
        max_attempts: int = 3,
    ):
        self.key = key or Config.SAVE_KEY
        self.base_path = Path(base_path) if base_path is not None else Config.SAVE_DIR
        self.max_attempts = max_attempts

    @property
    def path(self) -> Path:
        return self.base_path / f"{self.key}.json"

    def read(self) -> Optional[str]:
        path = self.path
        if not path.exists():
            return None
        try:
            return path.read_text("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SaveLoadError(f"could not read {path}: {exc}") from exc

    def write(self, record: str) -> None:
        try:
            for attempt in Retrying(
                retry=retry_if_exception_type(OSError),
                stop=stop_after_attempt(self.max_attempts),
                reraise=True,
            ):
                with attempt:
                    self._write_atomically(record)
        except OSError as exc:
            raise PersistenceWriteError(key=self.key, underlying=exc) from exc

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceWriteError(key=self.key, underlying=exc) from exc

    def _write_atomically(self, record: str) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.key}.", suffix=".tmp", dir=self.base_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(record)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError:
            # Leave no stray temp file behind; the original record is untouched
            Path(tmp_name).unlink(missing_ok=True)
            raise


# =============================
# Slot + codec
# =============================

class GamePersistence:
    """Couples one slot with the codec.

    Only ever handles complete SaveState snapshots; it never holds a
    reference into the live session.
    """

    def __init__(self, slot: Optional[KeyValueSlot] = None, codec: Optional[SaveCodec] = None):
        self.slot = slot or JsonFileSlot()
        self.codec = codec or SaveCodec()

    def load(self) -> Optional[SaveState]:
        """Return the saved state, or None when there is none or it is unusable."""
        try:
            record = self.slot.read()
            if record is None:
                log_debug(f"[Persistence] Slot '{self.slot.key}' is empty")
                return None
            return self.codec.deserialize(record)
        except SaveLoadError as exc:
            log_error(f"[Persistence] Ignoring saved game in '{self.slot.key}': {exc.reason}")
            return None

    def save(self, state: SaveState) -> None:
        """Write ``state`` to the slot. Raises PersistenceWriteError on failure."""
        self.slot.write(self.codec.serialize(state))

    def clear(self) -> None:
        """Delete the saved game. Raises PersistenceWriteError on failure."""
        self.slot.delete()
