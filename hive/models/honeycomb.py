"""
Models for honeycombs, the locally mirrored vector stores.
"""
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class FileState(str, Enum):
    """Where a file got to on its way into a vector store."""
    REGISTERED = "registered"
    REGISTRATION_FAILED = "registration_failed"
    INGESTED = "ingested"
    INGESTION_FAILED = "ingestion_failed"


class FileEntry(BaseModel):
    """One file's registration record within a honeycomb."""
    name: str = Field(description="File name")
    path: str = Field(description="Local path the file was read from")
    openai_file_id: Optional[str] = Field(default=None, description="Remote file ID, if registration succeeded")
    status: Optional[FileState] = Field(default=None, description="Ingestion state, absent on legacy records")


class Honeycomb(BaseModel):
    """Local mirror of one remote vector store."""
    id: str = Field(description="Remote vector store ID")
    name: str = Field(description="Display name")
    description: str = Field(default="", description="Free-text description")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp"
    )
    files: List[FileEntry] = Field(default_factory=list)


class RegistrationOutcome(BaseModel):
    """Result of registering the file at one enumeration index."""
    index: int
    path: Path
    file_id: Optional[str] = None
    error: Optional[str] = None
    local_failure: bool = Field(default=False, description="The file could not be read locally")

    @property
    def ok(self) -> bool:
        return self.file_id is not None

    def to_entry(self, status: Optional[FileState] = None) -> FileEntry:
        """Build the file entry for this outcome."""
        if status is None:
            status = FileState.REGISTERED if self.ok else FileState.REGISTRATION_FAILED
        return FileEntry(
            name=self.path.name,
            path=str(self.path),
            openai_file_id=self.file_id,
            status=status,
        )
