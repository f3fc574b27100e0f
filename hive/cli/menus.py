"""
Interactive menus for assistants, chats and honeycombs.
"""
import functools
import logging
from datetime import datetime
from typing import Optional

from hive.cli.context import HiveContext
from hive.cli.prompts import ask, choose, confirm, labels, not_blank
from hive.chat.history import message_text
from hive.errors import HiveError, NotFound, RunFailed
from hive.models.assistant import Assistant

logger = logging.getLogger(__name__)

RETURN = "return"


def menu_action(func):
    """Log and report hive errors so the menu loop keeps running."""
    @functools.wraps(func)
    def wrapper(ctx: HiveContext, *args, **kwargs):
        try:
            return func(ctx, *args, **kwargs)
        except HiveError as e:
            logger.error(f"{func.__name__} failed: {str(e)}")
            print(f"\nError: {e}\n")
        except KeyboardInterrupt:
            # Ctrl-C stops a pending wait and returns to the menu
            logger.warning(f"{func.__name__} cancelled")
            print("\nCancelled.\n")
        return None
    return wrapper


def _select_assistant(ctx: HiveContext, prompt: str) -> Optional[Assistant]:
    assistants = ctx.assistants.list_assistants()
    if not assistants:
        print("No assistants found. Please create an assistant first.")
        return None
    return choose(prompt, [(assistant.name, assistant) for assistant in assistants])


def _folder_validator(ctx: HiveContext):
    def validate(answer: str) -> Optional[str]:
        try:
            files = ctx.honeycombs.discover_files(answer)
        except NotFound:
            return "Please enter a valid directory path"
        if not files:
            extensions = ", ".join(ctx.config.knowledge.extensions)
            return f"Directory must contain at least one {extensions} file"
        return None
    return validate


def _format_timestamp(created_at) -> str:
    if isinstance(created_at, (int, float)):
        return datetime.fromtimestamp(created_at).strftime("%Y-%m-%d %H:%M:%S")
    return str(created_at)


# Assistants

@menu_action
def create_assistant(ctx: HiveContext) -> None:
    def unique_name(answer: str) -> Optional[str]:
        if not answer:
            return "A value is required."
        if ctx.assistants.is_name_taken(answer):
            return "An assistant with this name already exists. Please choose a different name."
        return None

    name = ask("Enter the assistant name:", unique_name)
    instructions = ask("Enter the assistant instructions:")
    model = choose("Select the model:", labels(ctx.config.chat.models))

    assistant = ctx.assistants.create_assistant(name, instructions, model)
    print(f"Created assistant {assistant.name} ({assistant.id})")


@menu_action
def view_assistants(ctx: HiveContext) -> None:
    summaries = ctx.assistants.list_remote_assistants()
    if not summaries:
        print("No assistants found.")
    for summary in summaries:
        print(f"\nName: {summary.name}")
        print(f"id: {summary.id}")
        print(f"Model: {summary.model}")
        print(f"Instructions: {summary.instructions}")
        if summary.thread_names is not None:
            print(f"Chat History: {', '.join(summary.thread_names) or 'No chats yet'}")
        print("------------------------")


def _select_or_create_thread(ctx: HiveContext, assistant: Assistant) -> str:
    if assistant.threads:
        options = [
            (thread.name or f"Thread {thread_id}", thread_id)
            for thread_id, thread in assistant.threads.items()
        ]
        options.append(("Create New Thread", "new"))
        choice = choose("Select a thread or create new:", options)
        if choice != "new":
            return choice

    name = ask("Enter a name for this thread:", not_blank)
    return ctx.assistants.create_thread(assistant, name)


@menu_action
def use_assistant(ctx: HiveContext) -> None:
    assistant = _select_assistant(ctx, "Select an assistant to chat with:")
    if assistant is None:
        return

    thread_id = _select_or_create_thread(ctx, assistant)
    history = ctx.reconciler(assistant, thread_id)
    history.refresh_history()

    exit_word = ctx.config.chat.exit_word
    print(f"\nChatting with {assistant.name}")
    print(f'Type "{exit_word}" to return to main menu\n')

    while True:
        message = input("You: ")
        if message.strip().lower() == exit_word.lower():
            break
        if not message.strip():
            continue

        try:
            reply = history.exchange(message)
        except RunFailed as e:
            logger.error(str(e))
            print("\nThe assistant could not produce a reply. Please try again.\n")
            continue

        if reply is not None:
            print(f"\nAssistant: {message_text(reply)}\n")


@menu_action
def delete_assistant(ctx: HiveContext) -> None:
    assistant = _select_assistant(ctx, "Select an assistant to delete:")
    if assistant is None:
        return
    if not confirm(f"Are you sure you want to delete {assistant.name}?"):
        print("Deletion cancelled.")
        return

    ctx.assistants.delete_assistant(assistant.id)
    print(f"Successfully deleted assistant: {assistant.name}")


@menu_action
def view_chat_history(ctx: HiveContext) -> None:
    assistant = _select_assistant(ctx, "Select an assistant to view chat history:")
    if assistant is None:
        return
    if not assistant.threads:
        print("No chat history found for this assistant.")
        return

    thread_id = choose(
        "Select a thread to view:",
        [
            (f"{thread.name or 'Thread'} ({len(thread.message_ids)} messages)", thread_id)
            for thread_id, thread in assistant.threads.items()
        ],
    )
    thread = assistant.threads[thread_id]

    print("\n=== Chat History ===")
    print(f"Assistant: {assistant.name}")
    print(f"Thread ID: {thread_id}")
    print(f"Found {len(thread.message_ids)} messages\n")

    history = ctx.reconciler(assistant, thread_id)
    for message_id in thread.message_ids:
        try:
            message = history.message_by_id(message_id)
        except HiveError as e:
            print(f"Could not retrieve message {message_id}: {e}")
            continue
        print(f"[{_format_timestamp(message.created_at)}] {message.role.capitalize()}:")
        print(message_text(message))
        print("---")

    input("Press Enter to return to main menu...")


# Honeycombs

@menu_action
def create_new_honeycomb(ctx: HiveContext) -> None:
    name = ask("Enter honeycomb name:", not_blank)
    description = ask("Enter honeycomb description:", not_blank)

    folder = None
    if confirm("Do you want to include files from a folder?"):
        folder = ask("Enter folder path:", _folder_validator(ctx))

    honeycomb = ctx.honeycombs.create_honeycomb(name, description, folder)
    registered = sum(1 for entry in honeycomb.files if entry.openai_file_id)
    print(f"Successfully created honeycomb: {honeycomb.name} ({honeycomb.id})")
    print(f"Registered {registered} of {len(honeycomb.files)} files")


def _show_details(honeycomb) -> None:
    print("\nHoneycomb Details:")
    print(f"Name: {honeycomb.name}")
    print(f"Description: {honeycomb.description}")
    print(f"Created: {honeycomb.created_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Files ({len(honeycomb.files)}):")
    for entry in honeycomb.files:
        status = f" [{entry.status.value}]" if entry.status else ""
        print(f"- {entry.name} ({entry.path}){status}")
    input("Press Enter to continue...")


@menu_action
def view_and_manage_honeycombs(ctx: HiveContext) -> None:
    honeycombs = ctx.honeycombs.list_honeycombs()
    if not honeycombs:
        print("No honeycombs found.")
        return

    options = [
        (f"{honeycomb.name} - {honeycomb.description} ({len(honeycomb.files)} files)", honeycomb)
        for honeycomb in honeycombs
    ]
    options.append(("Return", RETURN))
    honeycomb = choose("Select a honeycomb:", options)
    if honeycomb == RETURN:
        return

    action = choose(
        f"What would you like to do with {honeycomb.name}?",
        labels(["View Details", "Add Files", "Delete Honeycomb", "Return"]),
    )

    if action == "View Details":
        _show_details(honeycomb)

    elif action == "Add Files":
        folder = ask("Enter folder path containing new files:", _folder_validator(ctx))
        batch = ctx.honeycombs.add_files(honeycomb.id, folder)
        if batch is not None:
            print("Successfully added files to honeycomb")

    elif action == "Delete Honeycomb":
        if confirm(f"Are you sure you want to delete {honeycomb.name}?"):
            ctx.honeycombs.delete_honeycomb(honeycomb.id)
            print(f"Successfully deleted honeycomb: {honeycomb.name}")


def manage_honeycombs(ctx: HiveContext) -> None:
    while True:
        action = choose(
            "Honeycomb Management:",
            labels(["View Honeycombs", "Create New Honeycomb", "Return to Main Menu"]),
        )
        if action == "Return to Main Menu":
            break
        if action == "Create New Honeycomb":
            create_new_honeycomb(ctx)
        else:
            view_and_manage_honeycombs(ctx)


MAIN_ACTIONS = {
    "Create Assistant": create_assistant,
    "View Assistants": view_assistants,
    "Use Assistant": use_assistant,
    "Delete Assistant": delete_assistant,
    "View Chat History": view_chat_history,
    "Manage Honeycombs": manage_honeycombs,
}


def main_menu(ctx: HiveContext) -> None:
    """Run the main menu until the user exits."""
    while True:
        choice = choose("What would you like to do?", labels([*MAIN_ACTIONS, "Exit"]))
        if choice == "Exit":
            print("Goodbye!")
            return
        MAIN_ACTIONS[choice](ctx)
