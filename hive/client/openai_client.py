"""
OpenAI Assistants API client with uniform error handling.
"""
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

import openai
from openai import OpenAI

from hive.errors import HiveError, RemoteUnavailable
from hive.models.config import OpenAIConfig

logger = logging.getLogger(__name__)

FILE_PURPOSE = "assistants"


class AssistantServiceClient:
    """
    A wrapper around the OpenAI client exposing the operations the hive needs.

    Every SDK failure is surfaced as RemoteUnavailable. Nothing here retries
    beyond what the SDK does itself (see OpenAIConfig.max_retries).
    """

    def __init__(self, config: Optional[OpenAIConfig] = None, client: Optional[OpenAI] = None):
        """
        Initialize the service client.

        Args:
            config: OpenAI configuration used to build a client
            client: Pre-built OpenAI client, mainly for tests
        """
        if client is None:
            if config is None or not config.api_key:
                raise HiveError("OPENAI_API_KEY is not set")
            client = OpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                organization=config.organization,
                timeout=config.timeout,
                max_retries=config.max_retries,
            )
        self.client = client

    def _call(self, description: str, method: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Invoke an SDK method, translating SDK errors.

        Args:
            description: What the call does, for log messages
            method: Bound SDK method
            *args: Positional arguments for the method
            **kwargs: Keyword arguments for the method

        Returns:
            The SDK response

        Raises:
            RemoteUnavailable: If the SDK raised an API error
        """
        try:
            return method(*args, **kwargs)
        except openai.APIError as e:
            logger.error(f"Error while trying to {description}: {str(e)}")
            raise RemoteUnavailable(f"Could not {description}", e) from e

    # Assistants

    def create_assistant(self, name: str, instructions: str, model: str):
        return self._call(
            "create assistant",
            self.client.beta.assistants.create,
            name=name,
            instructions=instructions,
            model=model,
        )

    def list_assistants(self, limit: int = 100, order: str = "desc") -> List[Any]:
        page = self._call(
            "list assistants",
            self.client.beta.assistants.list,
            order=order,
            limit=limit,
        )
        return list(page.data)

    def delete_assistant(self, assistant_id: str):
        return self._call(
            f"delete assistant {assistant_id}",
            self.client.beta.assistants.delete,
            assistant_id,
        )

    # Threads and messages

    def create_thread(self):
        return self._call("create thread", self.client.beta.threads.create)

    def create_message(self, thread_id: str, role: str, content: str):
        return self._call(
            f"add message to thread {thread_id}",
            self.client.beta.threads.messages.create,
            thread_id,
            role=role,
            content=content,
        )

    def list_messages(self, thread_id: str) -> List[Any]:
        """
        Fetch the full message history of a thread.

        Args:
            thread_id: Remote thread ID

        Returns:
            Every message in ascending creation order
        """
        def fetch_all():
            # Iterating the page follows the cursor through every page
            return list(self.client.beta.threads.messages.list(thread_id, order="asc"))

        return self._call(f"list messages of thread {thread_id}", fetch_all)

    def retrieve_message(self, thread_id: str, message_id: str):
        return self._call(
            f"retrieve message {message_id}",
            self.client.beta.threads.messages.retrieve,
            message_id,
            thread_id=thread_id,
        )

    # Runs

    def create_run(self, thread_id: str, assistant_id: str):
        return self._call(
            f"start run on thread {thread_id}",
            self.client.beta.threads.runs.create,
            thread_id,
            assistant_id=assistant_id,
        )

    def retrieve_run(self, thread_id: str, run_id: str):
        return self._call(
            f"retrieve run {run_id}",
            self.client.beta.threads.runs.retrieve,
            run_id,
            thread_id=thread_id,
        )

    # Vector stores and files

    def create_vector_store(self, name: str, file_ids: Optional[List[str]] = None):
        return self._call(
            f"create vector store {name}",
            self.client.vector_stores.create,
            name=name,
            file_ids=list(file_ids or []),
        )

    def delete_vector_store(self, vector_store_id: str):
        return self._call(
            f"delete vector store {vector_store_id}",
            self.client.vector_stores.delete,
            vector_store_id,
        )

    def upload_file(self, path: Path) -> str:
        """
        Register a local file with the remote service.

        Args:
            path: File to upload, streamed from disk

        Returns:
            The remote file ID
        """
        path = Path(path)
        with open(path, "rb") as stream:
            remote_file = self._call(
                f"upload {path.name}",
                self.client.files.create,
                file=stream,
                purpose=FILE_PURPOSE,
            )
        logger.debug(f"Uploaded {path} as {remote_file.id}")
        return remote_file.id

    def create_file_batch(self, vector_store_id: str, file_ids: List[str]):
        return self._call(
            f"submit file batch to {vector_store_id}",
            self.client.vector_stores.file_batches.create,
            vector_store_id,
            file_ids=list(file_ids),
        )

    def retrieve_file_batch(self, vector_store_id: str, batch_id: str):
        return self._call(
            f"retrieve file batch {batch_id}",
            self.client.vector_stores.file_batches.retrieve,
            batch_id,
            vector_store_id=vector_store_id,
        )

    def list_batch_files(self, vector_store_id: str, batch_id: str, status: str) -> List[str]:
        """
        List the IDs of files in a batch with a given ingestion status.

        Args:
            vector_store_id: Remote vector store ID
            batch_id: File batch ID
            status: One of in_progress, completed, failed, cancelled

        Returns:
            Remote file IDs
        """
        def fetch_all():
            page = self.client.vector_stores.file_batches.list_files(
                batch_id,
                vector_store_id=vector_store_id,
                filter=status,
            )
            return [item.id for item in page]

        return self._call(f"list {status} files of batch {batch_id}", fetch_all)
