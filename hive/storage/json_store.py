"""
JSON document storage for assistants and honeycombs with change detection.
"""
import json
import logging
import os
from pathlib import Path
from typing import Generic, List, Optional, Type, TypeVar

import blake3
from pydantic import BaseModel, ValidationError

from hive.errors import ConcurrentModification, PersistenceError
from hive.models.assistant import Assistant
from hive.models.config import StorageConfig
from hive.models.honeycomb import Honeycomb

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

_NOT_LOADED = object()


class JsonCollectionStore(Generic[RecordT]):
    """
    Persists a collection of records as one pretty-printed JSON array.

    Every mutation reads the whole document, changes it and writes it back.
    The digest of the bytes last read is kept so that a write can refuse to
    clobber a document another process changed in the meantime.
    """

    def __init__(self, path: Path, model: Type[RecordT], detect_conflicts: bool = True):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document
            model: Record model stored in the document
            detect_conflicts: Refuse to overwrite a document changed since it was read
        """
        self.path = Path(path)
        self.model = model
        self.detect_conflicts = detect_conflicts
        self._digest = _NOT_LOADED

    def _compute_digest(self, content: Optional[bytes]) -> Optional[str]:
        """
        Compute a Blake3 hash of the document content.

        Args:
            content: Raw document bytes, or None if the document does not exist

        Returns:
            Hex digest, or None for a missing document
        """
        if content is None:
            return None
        return blake3.blake3(content).hexdigest()

    def _read_bytes(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Error reading {self.path}: {str(e)}")
            raise PersistenceError(f"Could not read {self.path}", e) from e

    def load(self) -> List[RecordT]:
        """
        Read every record from the document.

        Returns:
            Records in document order; empty if the document does not exist

        Raises:
            PersistenceError: If the document cannot be read or decoded
        """
        content = self._read_bytes()
        self._digest = self._compute_digest(content)
        if content is None or not content.strip():
            return []

        try:
            raw = json.loads(content)
            if not isinstance(raw, list):
                raise ValueError("document root must be an array")
            return [self.model.model_validate(item) for item in raw]
        except (ValueError, ValidationError) as e:
            logger.error(f"Error decoding {self.path}: {str(e)}")
            raise PersistenceError(f"Could not decode {self.path}", e) from e

    def save(self, records: List[RecordT]) -> None:
        """
        Write every record back to the document.

        Args:
            records: Full collection to persist

        Raises:
            ConcurrentModification: If the document changed since the last load
            PersistenceError: If the document cannot be written
        """
        if self.detect_conflicts and self._digest is not _NOT_LOADED:
            current = self._compute_digest(self._read_bytes())
            if current != self._digest:
                logger.error(f"{self.path} was modified by another writer since it was read")
                raise ConcurrentModification(
                    f"{self.path} changed on disk since it was read; reload and try again"
                )

        payload = [
            record.model_dump(mode="json", by_alias=True, exclude_none=True)
            for record in records
        ]
        content = (json.dumps(payload, indent=2) + "\n").encode("utf-8")

        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(content)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing {self.path}: {str(e)}")
            raise PersistenceError(f"Could not write {self.path}", e) from e

        self._digest = self._compute_digest(content)
        logger.debug(f"Saved {len(records)} records to {self.path}")

    def get(self, record_id: str) -> Optional[RecordT]:
        """Return the record with the given ID, or None."""
        for record in self.load():
            if record.id == record_id:
                return record
        return None

    def upsert(self, record: RecordT) -> None:
        """Replace the record with the same ID, or append it."""
        records = self.load()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)
        self.save(records)

    def remove(self, record_id: str) -> bool:
        """
        Remove the record with the given ID.

        Returns:
            True if a record was removed
        """
        records = self.load()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return False
        self.save(remaining)
        return True


class AssistantStore(JsonCollectionStore[Assistant]):
    """Local collection of assistants."""

    def __init__(self, path: Path, detect_conflicts: bool = True):
        super().__init__(path, Assistant, detect_conflicts)

    def find_by_name(self, name: str) -> Optional[Assistant]:
        """Case-insensitive lookup by display name."""
        wanted = name.strip().lower()
        for assistant in self.load():
            if assistant.name.lower() == wanted:
                return assistant
        return None


class HoneycombStore(JsonCollectionStore[Honeycomb]):
    """Local collection of honeycombs."""

    def __init__(self, path: Path, detect_conflicts: bool = True):
        super().__init__(path, Honeycomb, detect_conflicts)


def create_stores(config: StorageConfig) -> tuple[AssistantStore, HoneycombStore]:
    """
    Build both state stores from storage settings.

    Args:
        config: Storage configuration

    Returns:
        Tuple of (assistant_store, honeycomb_store)
    """
    assistants = AssistantStore(config.assistants_path, config.detect_conflicts)
    honeycombs = HoneycombStore(config.honeycombs_path, config.detect_conflicts)
    logger.debug(f"Using state files {config.assistants_path} and {config.honeycombs_path}")
    return assistants, honeycombs
