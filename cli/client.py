"""Main CLI client with REPL loop."""

import asyncio
import os

from api.observability import configure_logging

from .commands import (
    close_file,
    edit_file,
    enter_token,
    list_gists,
    logout_user,
    open_file,
    refresh_credential,
    save_file,
    show_file,
)
from .config import LOG_LEVEL, ClientStore
from .credentials import CredentialProvider, default_credential_source
from .editor import ExternalEditor
from .session import EditorSession, NoticeLevel, StatusNotice


def print_notice(notice: StatusNotice):
    """Print a status notice as soon as it is posted."""
    if notice.level is NoticeLevel.ERROR:
        print(f"Error: {notice.message}")
    elif notice.level is NoticeLevel.SUCCESS:
        print(f"✓ {notice.message}")
    else:
        print(notice.message)


def build_session(store: ClientStore | None = None) -> EditorSession:
    """Wire the session with the configured credential source and $EDITOR."""
    store = store or ClientStore()
    provider = CredentialProvider(default_credential_source(), store)
    return EditorSession(provider, ExternalEditor(), store, on_notice=print_notice)


def print_help():
    print("\nAuth Commands:")
    print("  /login - Get a token from the GitHub CLI (gh auth token)")
    print("  /token - Enter a GitHub token manually")
    print("  /logout - Forget the stored token")
    print("\nGist Commands:")
    print("  /gists - List your gists")
    print("  /open <number|gist_id> <file> - Open a gist file")
    print("  /show - Show the open file")
    print("  /edit - Edit the open file in $EDITOR")
    print("  /save - Save the open file to GitHub")
    print("  /close - Close the open file")
    print("\nUtility Commands:")
    print("  /theme - Toggle light/dark theme preference")
    print("  /clear - Clear the terminal screen")
    print("  /help - Show this help")
    print("\nType 'exit' or 'quit' to leave.\n")


def main():
    """CLI client for editing GitHub gists."""
    configure_logging(log_level=LOG_LEVEL, log_format="console")

    print("Welcome to Gist Editor!")
    print_help()

    session = build_session()
    print(f"Theme: {session.store.load_theme()}")

    outcome = asyncio.run(session.on_refresh_credential())
    if not outcome.ok:
        print("⚠ Use /token to enter a GitHub token manually.\n")
    else:
        print()

    commands = {
        "/login": lambda args: refresh_credential(session),
        "/token": lambda args: enter_token(session),
        "/logout": lambda args: logout_user(session),
        "/gists": lambda args: list_gists(session),
        "/open": lambda args: open_file(session, args),
        "/show": lambda args: show_file(session),
        "/edit": lambda args: edit_file(session),
        "/save": lambda args: save_file(session),
        "/close": lambda args: close_file(session),
        "/theme": lambda args: session.on_toggle_theme(),
        "/clear": lambda args: os.system("cls" if os.name == "nt" else "clear"),
        "/help": lambda args: print_help(),
    }

    while True:
        try:
            user_input = input("gist> ").strip()

            if user_input.lower() in ["exit", "quit"]:
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            command, *args = user_input.split(maxsplit=2)
            handler = commands.get(command.lower())
            if handler is None:
                print(f"Unknown command: {command}. Type /help for a list of commands.\n")
                continue

            handler(args)

        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except EOFError:
            print("\n\nGoodbye!")
            break
