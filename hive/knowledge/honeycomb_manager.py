"""
Lifecycle of honeycombs: remote vector stores seeded from local text files.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from hive.client.openai_client import AssistantServiceClient
from hive.errors import BatchIngestionFailed, HiveError, LocalFileError, NotFound, RemoteUnavailable
from hive.models.config import KnowledgeConfig, PollingConfig
from hive.models.honeycomb import FileState, Honeycomb, RegistrationOutcome
from hive.storage.json_store import HoneycombStore
from hive.utils.polling import poll_until

logger = logging.getLogger(__name__)

BATCH_TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HoneycombManager:
    """
    Creates honeycombs, feeds files into them and tears them down.

    File registration runs concurrently, but outcomes are always reassembled
    by enumeration index so each local file entry lines up with the file it
    describes, even when some registrations fail.
    """

    def __init__(
        self,
        service: AssistantServiceClient,
        store: HoneycombStore,
        knowledge_config: Optional[KnowledgeConfig] = None,
        batch_polling: Optional[PollingConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the manager.

        Args:
            service: Remote service client
            store: Local honeycomb collection
            knowledge_config: Recognised extensions, worker count and store prefix
            batch_polling: Poll settings for waiting on file batches
            sleep: Suspension function between batch status checks
            cancel_event: Optional event that aborts a batch wait when set
            clock: Source of creation timestamps
        """
        self.service = service
        self.store = store
        self.config = knowledge_config or KnowledgeConfig()
        self.batch_polling = batch_polling or PollingConfig()
        self.sleep = sleep
        self.cancel_event = cancel_event
        self.clock = clock

    def list_honeycombs(self) -> List[Honeycomb]:
        return self.store.load()

    def get_honeycomb(self, honeycomb_id: str) -> Honeycomb:
        honeycomb = self.store.get(honeycomb_id)
        if honeycomb is None:
            raise NotFound(f"Honeycomb {honeycomb_id} not found")
        return honeycomb

    def discover_files(self, folder: str) -> List[Path]:
        """
        List recognised files directly inside a folder.

        Args:
            folder: Directory to scan (not recursive)

        Returns:
            Matching files sorted by name

        Raises:
            NotFound: If the folder does not exist or is not a directory
        """
        root = Path(folder).expanduser()
        if not root.is_dir():
            raise NotFound(f"{folder} is not a directory")
        return sorted(
            (
                entry for entry in root.iterdir()
                if entry.is_file() and entry.suffix.lower() in self.config.extensions
            ),
            key=lambda entry: entry.name,
        )

    def register_files(self, paths: List[Path]) -> List[RegistrationOutcome]:
        """
        Upload files concurrently and collect one outcome per input index.

        Failures are recorded, not raised; the caller proceeds with whatever
        succeeded.

        Args:
            paths: Files in enumeration order

        Returns:
            Outcomes in the same order as paths
        """
        if not paths:
            return []

        workers = min(self.config.upload_workers, len(paths))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hive-upload") as executor:
            futures = [executor.submit(self.service.upload_file, path) for path in paths]

        outcomes = []
        for index, (path, future) in enumerate(zip(paths, futures)):
            try:
                outcomes.append(RegistrationOutcome(index=index, path=path, file_id=future.result()))
            except (HiveError, OSError) as e:
                logger.warning(f"Could not register {path.name}: {str(e)}")
                outcomes.append(RegistrationOutcome(
                    index=index, path=path, error=str(e), local_failure=isinstance(e, OSError)
                ))

        failed = [outcome for outcome in outcomes if not outcome.ok]
        if failed:
            logger.warning(
                f"Registered {len(outcomes) - len(failed)} of {len(outcomes)} files; "
                f"failed: {', '.join(outcome.path.name for outcome in failed)}"
            )
        return outcomes

    def create_honeycomb(self, name: str, description: str, source_folder: Optional[str] = None) -> Honeycomb:
        """
        Create a honeycomb, optionally seeded with a folder's text files.

        The file batch is submitted but not waited on.

        Args:
            name: Display name
            description: Free-text description
            source_folder: Optional folder of files to include

        Returns:
            The stored honeycomb
        """
        name = name.strip()
        if not name:
            raise ValueError("Honeycomb name must not be empty")

        paths = self.discover_files(source_folder) if source_folder else []
        logger.info(f"Found {len(paths)} files for honeycomb {name}")
        outcomes = self.register_files(paths)
        file_ids = [outcome.file_id for outcome in outcomes if outcome.ok]

        vector_store = self.service.create_vector_store(f"{self.config.store_prefix}{name}", file_ids)
        logger.info(f"Created vector store {vector_store.id} with {len(file_ids)} files")

        if file_ids:
            batch = self.service.create_file_batch(vector_store.id, file_ids)
            logger.info(f"Submitted file batch {batch.id} for {vector_store.id}")

        honeycomb = Honeycomb(
            id=vector_store.id,
            name=name,
            description=description,
            created_at=self.clock(),
            files=[outcome.to_entry() for outcome in outcomes],
        )
        self.store.upsert(honeycomb)
        return honeycomb

    def add_files(self, honeycomb_id: str, source_folder: str):
        """
        Ingest a folder's files into an existing honeycomb and wait for the batch.

        Args:
            honeycomb_id: Remote vector store ID of the honeycomb
            source_folder: Folder of files to add

        Returns:
            The terminal file batch, or None if the folder had no recognised files

        Raises:
            NotFound: If the honeycomb is not stored locally
            RemoteUnavailable: If no file could be registered
            LocalFileError: If no file could be registered and the first could not be read
            BatchIngestionFailed: If the batch failed or was cancelled
        """
        self.get_honeycomb(honeycomb_id)

        paths = self.discover_files(source_folder)
        if not paths:
            logger.info(f"No recognised files found in {source_folder}")
            return None

        outcomes = self.register_files(paths)
        file_ids = [outcome.file_id for outcome in outcomes if outcome.ok]
        if not file_ids:
            error_type = LocalFileError if outcomes[0].local_failure else RemoteUnavailable
            raise error_type(
                f"Could not register any of {len(paths)} files from {source_folder}: {outcomes[0].error}"
            )

        logger.info(f"Uploading {len(file_ids)} files to vector store {honeycomb_id}...")
        submitted = self.service.create_file_batch(honeycomb_id, file_ids)
        batch = poll_until(
            lambda: self.service.retrieve_file_batch(honeycomb_id, submitted.id),
            lambda current: current.status in BATCH_TERMINAL_STATUSES,
            self.batch_polling,
            sleep=self.sleep,
            cancel_event=self.cancel_event,
            describe=f"file batch {submitted.id}",
        )
        if batch.status != "completed":
            raise BatchIngestionFailed(batch.id, batch.status)

        failed_ids = set()
        file_counts = getattr(batch, "file_counts", None)
        if file_counts is not None and file_counts.failed:
            failed_ids = set(self.service.list_batch_files(honeycomb_id, batch.id, "failed"))
            logger.warning(f"{len(failed_ids)} files failed ingestion in batch {batch.id}")

        entries = []
        for outcome in outcomes:
            if not outcome.ok:
                entries.append(outcome.to_entry())
            elif outcome.file_id in failed_ids:
                entries.append(outcome.to_entry(FileState.INGESTION_FAILED))
            else:
                entries.append(outcome.to_entry(FileState.INGESTED))

        honeycombs = self.store.load()
        for honeycomb in honeycombs:
            if honeycomb.id == honeycomb_id:
                honeycomb.files.extend(entries)
                self.store.save(honeycombs)
                break
        else:
            logger.warning(f"Honeycomb {honeycomb_id} disappeared locally before files were recorded")

        return batch

    def delete_honeycomb(self, honeycomb_id: str) -> None:
        """
        Delete the remote vector store, then the local record.

        If the remote deletion fails the local record is left untouched.
        """
        self.service.delete_vector_store(honeycomb_id)
        if not self.store.remove(honeycomb_id):
            logger.warning(f"Vector store {honeycomb_id} was deleted but had no local honeycomb")
        logger.info(f"Deleted honeycomb {honeycomb_id}")
