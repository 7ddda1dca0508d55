"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from upload_client.commands import (
    get_manager,
    handle_cancel,
    handle_pause,
    handle_resume,
    handle_status,
    handle_upload,
)
from upload_client.completer import ChunkupCompleter
from upload_client.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    TOOLBAR_REFRESH_INTERVAL,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from upload_client.manager import TransferManager
from upload_client.models import (
    CancelCommand,
    PauseCommand,
    ResumeCommand,
    StatusCommand,
    UploadCommand,
)
from upload_client.parser import ParseError, parse_command


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj, manager: TransferManager) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, UploadCommand):
        return handle_upload(cmd_obj, manager)
    elif isinstance(cmd_obj, StatusCommand):
        return handle_status(cmd_obj, manager)
    elif isinstance(cmd_obj, PauseCommand):
        return handle_pause(cmd_obj, manager)
    elif isinstance(cmd_obj, ResumeCommand):
        return handle_resume(cmd_obj, manager)
    elif isinstance(cmd_obj, CancelCommand):
        return handle_cancel(cmd_obj, manager)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


def repl_loop(manager: TransferManager | None = None) -> None:
    """Start interactive REPL with prompt_toolkit.

    Transfers run in the background; the bottom toolbar shows their
    progress and refreshes while the prompt waits for input.
    """
    if manager is None:
        manager = get_manager()

    completer = ChunkupCompleter(
        transfer_ids=lambda: [t.transfer_id for t in manager.list_transfers()]
    )
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=completer,
        history=history,
        style=STYLE,
        bottom_toolbar=manager.toolbar_text,
        refresh_interval=TOOLBAR_REFRESH_INTERVAL,
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = session.prompt([("class:prompt", PROMPT_TEXT)])

            if not user_input.strip():
                continue

            if user_input.strip() == "exit":
                if manager.has_active_transfers():
                    manager.cancel()
                    print("Cancelled running transfers.")
                print("Goodbye!")
                break

            if user_input.strip() == "help":
                print(HELP_TEXT)
                continue

            if user_input.strip() == "clear":
                clear_screen()
                show_welcome()
                continue

            cmd_obj = parse_command(user_input)
            result = dispatch_command(cmd_obj, manager)
            print(result)

        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
