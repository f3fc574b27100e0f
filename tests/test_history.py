"""
Tests for the thread history reconciler.
"""
import pytest

from hive.assistants.manager import AssistantManager
from hive.chat.history import ThreadHistoryReconciler, message_text
from hive.chat.run_monitor import RunCompletionMonitor
from hive.errors import NotFound, PersistenceError, RemoteUnavailable, RunFailed
from hive.models.config import PollingConfig


def setup_thread(service, assistant_store):
    manager = AssistantManager(service, assistant_store)
    assistant = manager.create_assistant("Helper", "Be helpful", "gpt-4o")
    thread_id = manager.create_thread(assistant, "T1")
    return assistant, thread_id


def make_reconciler(service, store, assistant, thread_id, sleeps):
    monitor = RunCompletionMonitor(service, PollingConfig(interval_ms=0), sleep=sleeps.append)
    return ThreadHistoryReconciler(service, store, assistant, thread_id, monitor=monitor)


def stored_ids(store, assistant_id, thread_id):
    return store.get(assistant_id).threads[thread_id].message_ids


def count_saves(store, monkeypatch):
    saves = []
    original = store.save

    def counting_save(records):
        saves.append(len(records))
        original(records)

    monkeypatch.setattr(store, "save", counting_save)
    return saves


def test_append_message_records_and_persists_id(service, assistant_store, sleeps):
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)

    message = history.append_message("user", "hi")

    assert history.thread.message_ids == [message.id]
    assert stored_ids(assistant_store, assistant.id, thread_id) == [message.id]


def test_append_creates_thread_record_on_first_use(service, assistant_store, sleeps):
    assistant, _ = setup_thread(service, assistant_store)
    remote_thread = service.create_thread()
    history = make_reconciler(service, assistant_store, assistant, remote_thread.id, sleeps)

    message = history.append_message("user", "first")

    assert stored_ids(assistant_store, assistant.id, remote_thread.id) == [message.id]


def test_refresh_matches_remote_order_without_duplicates(service, assistant_store, sleeps):
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)

    history.append_message("user", "one")
    service.add_remote_message(thread_id, "assistant", "reply one")
    history.append_message("user", "two")
    service.add_remote_message(thread_id, "assistant", "reply two")

    for _ in range(3):
        messages = history.refresh_history()

    remote_ids = [message.id for message in service.threads[thread_id]]
    assert [message.id for message in messages] == remote_ids
    assert history.thread.message_ids == remote_ids
    assert stored_ids(assistant_store, assistant.id, thread_id) == remote_ids


def test_refresh_is_idempotent_and_skips_redundant_writes(service, assistant_store, sleeps, monkeypatch):
    assistant, thread_id = setup_thread(service, assistant_store)
    service.add_remote_message(thread_id, "user", "hello")
    service.add_remote_message(thread_id, "assistant", "hi there")
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)
    saves = count_saves(assistant_store, monkeypatch)

    history.refresh_history()
    first = stored_ids(assistant_store, assistant.id, thread_id)
    history.refresh_history()
    second = stored_ids(assistant_store, assistant.id, thread_id)

    assert first == second
    assert len(first) == 2
    assert len(saves) == 1


def test_refresh_returns_full_history_not_just_new(service, assistant_store, sleeps):
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)
    history.append_message("user", "already known")

    messages = history.refresh_history()

    assert [message_text(message) for message in messages] == ["already known"]


def test_remote_failure_leaves_local_state_alone(service, assistant_store, sleeps):
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)
    service.failing.add("create_message")

    with pytest.raises(RemoteUnavailable):
        history.append_message("user", "lost")

    assert stored_ids(assistant_store, assistant.id, thread_id) == []


def test_persistence_failure_surfaces_and_next_refresh_recovers(service, assistant_store, sleeps, monkeypatch):
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)
    original_save = assistant_store.save

    def broken_save(records):
        raise PersistenceError("disk full")

    monkeypatch.setattr(assistant_store, "save", broken_save)
    with pytest.raises(PersistenceError):
        history.append_message("user", "hi")
    assert stored_ids(assistant_store, assistant.id, thread_id) == []

    monkeypatch.setattr(assistant_store, "save", original_save)
    history.refresh_history()

    assert stored_ids(assistant_store, assistant.id, thread_id) == [
        message.id for message in service.threads[thread_id]
    ]


def test_saving_unknown_assistant_raises_not_found(service, assistant_store, sleeps):
    assistant, thread_id = setup_thread(service, assistant_store)
    assistant_store.remove(assistant.id)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)

    with pytest.raises(NotFound):
        history.append_message("user", "hi")


def test_chat_turn_scenario(service, assistant_store, sleeps):
    service.run_statuses = ["queued", "in_progress", "completed"]
    service.reply_text = "Hi! How can I help?"
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)

    history.append_message("user", "hi")
    run = history.monitor.start_run(thread_id, assistant.id)
    history.monitor.wait(thread_id, run.id)
    messages = history.refresh_history()

    reply = messages[-1]
    assert reply.role == "assistant"
    assert message_text(reply) == "Hi! How can I help?"
    assert reply.id in stored_ids(assistant_store, assistant.id, thread_id)
    assert service.count("retrieve_run") == 3


def test_exchange_returns_latest_assistant_reply(service, assistant_store, sleeps):
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)

    service.reply_text = "first answer"
    history.exchange("question one")
    service.reply_text = "second answer"
    reply = history.exchange("question two")

    assert message_text(reply) == "second answer"
    assert len(stored_ids(assistant_store, assistant.id, thread_id)) == 4


def test_exchange_propagates_failed_run(service, assistant_store, sleeps):
    service.run_statuses = ["in_progress", "failed"]
    assistant, thread_id = setup_thread(service, assistant_store)
    history = make_reconciler(service, assistant_store, assistant, thread_id, sleeps)

    with pytest.raises(RunFailed):
        history.exchange("hello?")

    # The user message is still mirrored locally
    assert len(stored_ids(assistant_store, assistant.id, thread_id)) == 1
