"""
Shared fixtures: a scripted in-memory stand-in for the OpenAI service client.
"""
import itertools
import threading
from collections import deque
from pathlib import Path
from types import SimpleNamespace

import pytest

from hive.errors import RemoteUnavailable
from hive.models.config import AppConfig, KnowledgeConfig, PollingConfig, StorageConfig
from hive.storage.json_store import AssistantStore, HoneycombStore


def make_message(message_id, role, text, created_at=0):
    return SimpleNamespace(
        id=message_id,
        role=role,
        created_at=created_at,
        content=[SimpleNamespace(type="text", text=SimpleNamespace(value=text))],
    )


class FakeAssistantService:
    """Behaves like AssistantServiceClient without touching the network."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.assistants = {}
        self.threads = {}
        self.runs = {}
        self.vector_stores = {}
        self.batches = {}
        self.deleted_vector_stores = []
        self.deleted_assistants = []
        self.calls = []

        # Scripts
        self.failing = set()
        self.failing_uploads = set()
        self.unreadable_uploads = set()
        self.run_statuses = ["completed"]
        self.reply_text = "Hello from the assistant"
        self.batch_statuses = ["completed"]
        self.failed_batch_files = set()

    def _next_id(self, prefix):
        with self._lock:
            return f"{prefix}_{next(self._ids)}"

    def _record(self, name):
        with self._lock:
            self.calls.append(name)
        if name in self.failing:
            raise RemoteUnavailable(f"Could not {name}")

    def count(self, name):
        return self.calls.count(name)

    # Assistants

    def create_assistant(self, name, instructions, model):
        self._record("create_assistant")
        assistant = SimpleNamespace(
            id=self._next_id("asst"), name=name, instructions=instructions, model=model
        )
        self.assistants[assistant.id] = assistant
        return assistant

    def list_assistants(self, limit=100, order="desc"):
        self._record("list_assistants")
        items = list(self.assistants.values())
        if order == "desc":
            items.reverse()
        return items[:limit]

    def delete_assistant(self, assistant_id):
        self._record("delete_assistant")
        self.assistants.pop(assistant_id, None)
        self.deleted_assistants.append(assistant_id)

    # Threads and messages

    def create_thread(self):
        self._record("create_thread")
        thread = SimpleNamespace(id=self._next_id("thread"))
        self.threads[thread.id] = []
        return thread

    def add_remote_message(self, thread_id, role, text):
        messages = self.threads.setdefault(thread_id, [])
        message = make_message(self._next_id("msg"), role, text, created_at=len(messages))
        messages.append(message)
        return message

    def create_message(self, thread_id, role, content):
        self._record("create_message")
        return self.add_remote_message(thread_id, role, content)

    def list_messages(self, thread_id):
        self._record("list_messages")
        return list(self.threads.get(thread_id, []))

    def retrieve_message(self, thread_id, message_id):
        self._record("retrieve_message")
        for message in self.threads.get(thread_id, []):
            if message.id == message_id:
                return message
        raise RemoteUnavailable(f"No message {message_id}")

    # Runs

    def create_run(self, thread_id, assistant_id):
        self._record("create_run")
        run_id = self._next_id("run")
        self.runs[run_id] = {
            "thread_id": thread_id,
            "statuses": deque(self.run_statuses),
            "replied": False,
        }
        return SimpleNamespace(id=run_id, status="queued", thread_id=thread_id)

    def retrieve_run(self, thread_id, run_id):
        self._record("retrieve_run")
        run = self.runs[run_id]
        statuses = run["statuses"]
        status = statuses.popleft() if len(statuses) > 1 else statuses[0]
        if status == "completed" and not run["replied"]:
            run["replied"] = True
            self.add_remote_message(thread_id, "assistant", self.reply_text)
        return SimpleNamespace(id=run_id, status=status, thread_id=thread_id)

    # Vector stores and files

    def create_vector_store(self, name, file_ids=None):
        self._record("create_vector_store")
        store = SimpleNamespace(id=self._next_id("vs"), name=name, file_ids=list(file_ids or []))
        self.vector_stores[store.id] = store
        return store

    def delete_vector_store(self, vector_store_id):
        self._record("delete_vector_store")
        self.vector_stores.pop(vector_store_id, None)
        self.deleted_vector_stores.append(vector_store_id)

    def upload_file(self, path):
        self._record("upload_file")
        path = Path(path)
        if path.name in self.unreadable_uploads:
            raise PermissionError(13, "Permission denied", str(path))
        if path.name in self.failing_uploads:
            raise RemoteUnavailable(f"Could not upload {path.name}")
        return f"file-{path.stem}"

    def create_file_batch(self, vector_store_id, file_ids):
        self._record("create_file_batch")
        batch_id = self._next_id("vsfb")
        self.batches[batch_id] = {
            "vector_store_id": vector_store_id,
            "file_ids": list(file_ids),
            "statuses": deque(self.batch_statuses),
        }
        return SimpleNamespace(id=batch_id, status="in_progress", file_counts=None)

    def retrieve_file_batch(self, vector_store_id, batch_id):
        self._record("retrieve_file_batch")
        batch = self.batches[batch_id]
        statuses = batch["statuses"]
        status = statuses.popleft() if len(statuses) > 1 else statuses[0]
        failed = len(self.failed_batch_files & set(batch["file_ids"]))
        return SimpleNamespace(
            id=batch_id,
            status=status,
            file_counts=SimpleNamespace(
                completed=len(batch["file_ids"]) - failed,
                failed=failed,
                in_progress=0,
                cancelled=0,
                total=len(batch["file_ids"]),
            ),
        )

    def list_batch_files(self, vector_store_id, batch_id, status):
        self._record("list_batch_files")
        if status != "failed":
            return []
        return [file_id for file_id in self.batches[batch_id]["file_ids"] if file_id in self.failed_batch_files]


@pytest.fixture
def service():
    return FakeAssistantService()


@pytest.fixture
def sleeps():
    """Records requested sleep durations; pass sleeps.append as the sleep function."""
    return []


@pytest.fixture
def fast_polling():
    return PollingConfig(interval_ms=0)


@pytest.fixture
def assistant_store(tmp_path):
    return AssistantStore(tmp_path / "assistants.json")


@pytest.fixture
def honeycomb_store(tmp_path):
    return HoneycombStore(tmp_path / "honeycombs.json")


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        run_polling=PollingConfig(interval_ms=0),
        batch_polling=PollingConfig(interval_ms=0),
        storage=StorageConfig(data_dir=tmp_path),
        knowledge=KnowledgeConfig(upload_workers=2),
    )


@pytest.fixture
def text_folder(tmp_path):
    """A folder with three .txt files, one other file and a nested folder."""
    folder = tmp_path / "docs"
    folder.mkdir()
    for name in ("alpha.txt", "beta.txt", "gamma.txt"):
        (folder / name).write_text(f"contents of {name}")
    (folder / "notes.md").write_text("not a text file")
    nested = folder / "nested"
    nested.mkdir()
    (nested / "deep.txt").write_text("not enumerated")
    return folder
