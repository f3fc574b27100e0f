"""
Keeps the local thread mirror of an assistant in step with the remote thread.
"""
import logging
from typing import Any, List, Optional

from hive.chat.run_monitor import RunCompletionMonitor
from hive.client.openai_client import AssistantServiceClient
from hive.errors import NotFound, PersistenceError
from hive.models.assistant import Assistant, ThreadRecord
from hive.storage.json_store import AssistantStore

logger = logging.getLogger(__name__)


def message_text(message: Any) -> str:
    """Concatenate the text parts of a remote message."""
    parts = []
    for block in getattr(message, "content", None) or []:
        text = getattr(block, "text", None)
        if getattr(block, "type", "text") == "text" and text is not None:
            parts.append(text.value)
    return "\n".join(parts)


class ThreadHistoryReconciler:
    """
    Merges remote thread messages into the assistant's local thread record.

    The remote service's creation order is authoritative: message IDs are only
    ever appended, never reordered, and each ID is recorded once.
    """

    def __init__(
        self,
        service: AssistantServiceClient,
        store: AssistantStore,
        assistant: Assistant,
        thread_id: str,
        monitor: Optional[RunCompletionMonitor] = None,
    ):
        """
        Initialize the reconciler.

        Args:
            service: Remote service client
            store: Local assistant collection
            assistant: Assistant owning the thread
            thread_id: Remote thread ID
            monitor: Run monitor used by exchange(); built with defaults if omitted
        """
        self.service = service
        self.store = store
        self.assistant = assistant
        self.thread_id = thread_id
        self.monitor = monitor or RunCompletionMonitor(service)
        # Set while the in-memory thread holds IDs the last save failed to write
        self._unsaved = False

    @property
    def thread(self) -> ThreadRecord:
        return self.assistant.ensure_thread(self.thread_id)

    def _save_assistant(self) -> None:
        """
        Write this assistant's threads back into the stored collection.

        Raises:
            NotFound: If the assistant is no longer stored locally
            PersistenceError: If the write failed
        """
        try:
            assistants = self.store.load()
            for stored in assistants:
                if stored.id == self.assistant.id:
                    stored.threads = self.assistant.threads
                    break
            else:
                raise NotFound(f"Assistant {self.assistant.id} is not stored locally")
            self.store.save(assistants)
        except PersistenceError as e:
            self._unsaved = True
            logger.error(f"Could not persist thread {self.thread_id}: {str(e)}")
            raise
        self._unsaved = False

    def append_message(self, role: str, content: str):
        """
        Send a message to the thread and record its ID.

        Args:
            role: Message role, usually "user"
            content: Message text

        Returns:
            The created remote message
        """
        message = self.service.create_message(self.thread_id, role, content)
        self.thread.append_new([message.id])
        self._save_assistant()
        logger.debug(f"Appended message {message.id} to thread {self.thread_id}")
        return message

    def refresh_history(self) -> List[Any]:
        """
        Fetch the full remote history and record any unseen message IDs.

        Returns:
            Every remote message in ascending creation order
        """
        messages = self.service.list_messages(self.thread_id)
        appended = self.thread.append_new(message.id for message in messages)
        if appended or self._unsaved:
            self._save_assistant()
            logger.debug(f"Recorded {len(appended)} new messages for thread {self.thread_id}")
        return messages

    def message_by_id(self, message_id: str):
        return self.service.retrieve_message(self.thread_id, message_id)

    def exchange(self, content: str):
        """
        Run one chat turn: send the user message, run the assistant, and sync.

        Args:
            content: User message text

        Returns:
            The newest assistant message, or None if the run produced none
        """
        self.append_message("user", content)
        run = self.monitor.start_run(self.thread_id, self.assistant.id)
        self.monitor.wait(self.thread_id, run.id)
        messages = self.refresh_history()

        replies = [message for message in messages if message.role == "assistant"]
        return replies[-1] if replies else None
