"""
Models for assistants and their locally mirrored threads.
"""
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ThreadRecord(BaseModel):
    """Local mirror of one remote conversation thread."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, description="User-assigned display name")
    message_ids: List[str] = Field(
        default_factory=list,
        alias="messageIds",
        description="Observed remote message IDs in creation order"
    )

    def append_new(self, ids: Iterable[str]) -> List[str]:
        """
        Append the IDs not yet recorded, keeping their given order.

        Args:
            ids: Remote message IDs in remote creation order

        Returns:
            The IDs that were appended
        """
        seen = set(self.message_ids)
        appended = []
        for message_id in ids:
            if message_id in seen:
                continue
            seen.add(message_id)
            self.message_ids.append(message_id)
            appended.append(message_id)
        return appended


class Assistant(BaseModel):
    """A configured remote assistant plus its local thread mirror."""
    id: str = Field(description="Remote assistant ID")
    name: str = Field(description="Display name, unique among local assistants")
    instructions: str = Field(default="", description="Behavioral instructions, always written")
    model: str = Field(description="Model identifier")
    threads: Dict[str, ThreadRecord] = Field(default_factory=dict, description="Threads by remote thread ID")

    @field_validator("instructions", mode="before")
    @classmethod
    def instructions_not_none(cls, value: Optional[str]) -> str:
        return "" if value is None else value

    def ensure_thread(self, thread_id: str, name: Optional[str] = None) -> ThreadRecord:
        """Return the thread record for thread_id, creating it on first use."""
        thread = self.threads.get(thread_id)
        if thread is None:
            thread = ThreadRecord(name=name)
            self.threads[thread_id] = thread
        elif name and not thread.name:
            thread.name = name
        return thread

    @property
    def thread_names(self) -> List[str]:
        return [thread.name for thread in self.threads.values() if thread.name]


class AssistantSummary(BaseModel):
    """Remote assistant listing joined with local thread names."""
    id: str
    name: Optional[str] = None
    model: str
    instructions: Optional[str] = None
    thread_names: Optional[List[str]] = Field(
        default=None,
        description="Local thread names, None when the assistant is not mirrored locally"
    )
