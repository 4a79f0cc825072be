"""Authentication command handlers."""

import asyncio
from getpass import getpass

from ..session import EditorSession


def refresh_credential(session: EditorSession):
    """Fetch a token from the GitHub CLI, prompting for one if none is available."""
    outcome = asyncio.run(session.on_refresh_credential())
    if not outcome.ok:
        enter_token(session)


def enter_token(session: EditorSession):
    """Handle manual token entry."""
    print("\n=== GitHub Token ===")
    print("Create a token with the 'gist' scope at https://github.com/settings/tokens")
    token = getpass("Token (input hidden, Enter to skip): ").strip()

    if not token:
        print("No token entered. Use /token to enter one later.\n")
        return

    session.on_set_credential(token)


def logout_user(session: EditorSession):
    """Handle user logout."""
    session.on_logout()
