"""
Assistant and thread management on top of the remote service and local store.
"""
import logging
from typing import List, Optional

from hive.client.openai_client import AssistantServiceClient
from hive.errors import DuplicateName, NotFound
from hive.models.assistant import Assistant, AssistantSummary
from hive.storage.json_store import AssistantStore

logger = logging.getLogger(__name__)


class AssistantManager:
    """
    Creates, lists and deletes assistants and opens new threads for them.
    """

    def __init__(self, service: AssistantServiceClient, store: AssistantStore):
        self.service = service
        self.store = store

    def list_assistants(self) -> List[Assistant]:
        return self.store.load()

    def get_assistant(self, assistant_id: str) -> Assistant:
        assistant = self.store.get(assistant_id)
        if assistant is None:
            raise NotFound(f"Assistant {assistant_id} not found")
        return assistant

    def is_name_taken(self, name: str) -> bool:
        return self.store.find_by_name(name) is not None

    def create_assistant(self, name: str, instructions: str, model: str) -> Assistant:
        """
        Create an assistant remotely and record it locally.

        Args:
            name: Display name, unique among local assistants (case-insensitive)
            instructions: Behavioral instructions
            model: Model identifier

        Returns:
            The stored assistant

        Raises:
            DuplicateName: If a local assistant already uses the name
        """
        name = name.strip()
        if not name:
            raise ValueError("Assistant name must not be empty")
        if self.is_name_taken(name):
            raise DuplicateName(f"An assistant named '{name}' already exists")

        remote = self.service.create_assistant(name, instructions, model)
        assistant = Assistant(
            id=remote.id,
            name=remote.name or name,
            instructions=remote.instructions,
            model=remote.model,
        )
        self.store.upsert(assistant)
        logger.info(f"Created assistant {assistant.name} ({assistant.id})")
        return assistant

    def list_remote_assistants(self, limit: int = 100) -> List[AssistantSummary]:
        """
        List remote assistants, newest first, with their local thread names.

        Args:
            limit: Maximum number of assistants to list

        Returns:
            One summary per remote assistant
        """
        local = {assistant.id: assistant for assistant in self.store.load()}
        summaries = []
        for remote in self.service.list_assistants(limit=limit, order="desc"):
            mirror: Optional[Assistant] = local.get(remote.id)
            summaries.append(
                AssistantSummary(
                    id=remote.id,
                    name=remote.name,
                    model=remote.model,
                    instructions=remote.instructions,
                    thread_names=mirror.thread_names if mirror else None,
                )
            )
        return summaries

    def delete_assistant(self, assistant_id: str) -> None:
        """
        Delete an assistant remotely, then forget it locally.

        A remote failure propagates before local state is touched.
        """
        self.service.delete_assistant(assistant_id)
        if not self.store.remove(assistant_id):
            logger.warning(f"Assistant {assistant_id} was deleted remotely but had no local record")
        logger.info(f"Deleted assistant {assistant_id}")

    def create_thread(self, assistant: Assistant, name: str) -> str:
        """
        Open a new remote thread and register it under the assistant.

        Args:
            assistant: Owning assistant; updated in place
            name: Display name for the thread

        Returns:
            The remote thread ID
        """
        name = name.strip()
        if not name:
            raise ValueError("Thread name must not be empty")

        remote = self.service.create_thread()
        thread = assistant.ensure_thread(remote.id, name=name)

        stored = self.store.load()
        for record in stored:
            if record.id == assistant.id:
                record.threads[remote.id] = thread
                break
        else:
            raise NotFound(f"Assistant {assistant.id} is not stored locally")
        self.store.save(stored)

        logger.info(f"Created thread '{name}' ({remote.id}) for {assistant.name}")
        return remote.id
