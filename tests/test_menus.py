"""
End-to-end tests of the interactive menus with scripted input.
"""
import pytest

from hive.cli import menus
from hive.cli.context import build_context


@pytest.fixture
def ctx(app_config, service, sleeps):
    return build_context(app_config, service=service, sleep=sleeps.append)


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted answers to input()."""
    script = []

    def fake_input(prompt=""):
        if not script:
            raise EOFError(f"no scripted answer for {prompt!r}")
        return script.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)
    return script


def test_create_assistant_and_chat(ctx, service, answers, capsys):
    service.reply_text = "Hello, human."
    answers.extend([
        "1",                    # Create Assistant
        "Helper",
        "Be friendly",
        "2",                    # gpt-4o-mini
        "3",                    # Use Assistant
        "1",                    # Helper
        "T1",                   # first thread name
        "hi",
        "exit",
        "7",                    # Exit
    ])

    menus.main_menu(ctx)

    out = capsys.readouterr().out
    assert "Assistant: Hello, human." in out
    assistant = ctx.assistant_store.load()[0]
    assert assistant.model == "gpt-4o-mini"
    (thread,) = assistant.threads.values()
    assert thread.name == "T1"
    assert len(thread.message_ids) == 2


def test_failed_run_returns_to_chat_prompt(ctx, service, answers, capsys):
    service.run_statuses = ["failed"]
    assistant = ctx.assistants.create_assistant("Helper", "", "gpt-4o")
    ctx.assistants.create_thread(assistant, "T1")
    answers.extend(["1", "1", "hello", "exit"])

    menus.use_assistant(ctx)

    assert "could not produce a reply" in capsys.readouterr().out


def test_delete_honeycomb_failure_is_reported(ctx, service, answers, capsys):
    honeycomb = ctx.honeycombs.create_honeycomb("docs", "Docs")
    service.failing.add("delete_vector_store")
    answers.extend(["1", "3", "y"])

    menus.view_and_manage_honeycombs(ctx)

    assert "Error:" in capsys.readouterr().out
    assert ctx.honeycomb_store.get(honeycomb.id) is not None


def test_create_honeycomb_from_folder(ctx, answers, text_folder, capsys):
    answers.extend(["docs", "Team docs", "y", str(text_folder)])

    menus.create_new_honeycomb(ctx)

    assert "Registered 3 of 3 files" in capsys.readouterr().out
    assert len(ctx.honeycomb_store.load()[0].files) == 3


def test_exit_word_matches_regardless_of_case(ctx, service, answers):
    ctx.config.chat.exit_word = "Exit"
    ctx.assistants.create_assistant("Helper", "", "gpt-4o")
    answers.extend(["1", "T1", "EXIT"])

    menus.use_assistant(ctx)

    assert answers == []
    assert service.count("create_message") == 0


def test_ctrl_c_during_batch_wait_returns_to_menu(app_config, service, answers, text_folder, capsys):
    def interrupt(seconds):
        raise KeyboardInterrupt

    ctx = build_context(app_config, service=service, sleep=interrupt)
    honeycomb = ctx.honeycombs.create_honeycomb("docs", "Docs")
    service.batch_statuses = ["in_progress"]
    answers.extend(["1", "2", str(text_folder)])

    menus.view_and_manage_honeycombs(ctx)

    assert "Cancelled." in capsys.readouterr().out
    assert service.count("retrieve_file_batch") == 1
    assert ctx.honeycomb_store.get(honeycomb.id).files == []
