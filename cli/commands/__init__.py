"""CLI command handlers."""

from .auth import enter_token, logout_user, refresh_credential
from .gists import close_file, edit_file, list_gists, open_file, save_file, show_file

__all__ = [
    # Gist commands
    "close_file",
    "edit_file",
    # Auth commands
    "enter_token",
    "list_gists",
    "logout_user",
    "open_file",
    "refresh_credential",
    "save_file",
    "show_file",
]
