"""Configuration and storage utilities for CLI client."""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configuration
SERVER_URL = os.getenv("GISTEDITOR_SERVER_URL", "http://127.0.0.1:3000")
CREDENTIAL_SOURCE = os.getenv("GISTEDITOR_CREDENTIAL_SOURCE", "server")
CONFIG_DIR = Path(os.getenv("GISTEDITOR_HOME", str(Path.home() / ".gisteditor")))
LOG_LEVEL = os.getenv("GISTEDITOR_LOG_LEVEL", "WARNING")

Theme = Literal["light", "dark"]


class ClientStore:
    """Persisted client state: a GitHub token and a theme preference.

    Each entry is a plain text file under ``root``.
    """

    def __init__(self, root: Path = CONFIG_DIR):
        self.root = Path(root)
        self.token_file = self.root / "token"
        self.theme_file = self.root / "theme"

    def save_token(self, token: str):
        """Save GitHub token to local file."""
        self.root.mkdir(parents=True, exist_ok=True)
        self.token_file.write_text(token)
        os.chmod(self.token_file, 0o600)

    def load_token(self) -> str | None:
        """Load GitHub token from local file."""
        if self.token_file.exists():
            return self.token_file.read_text().strip() or None
        return None

    def delete_token(self):
        """Delete GitHub token file."""
        if self.token_file.exists():
            self.token_file.unlink()

    def save_theme(self, theme: Theme):
        self.root.mkdir(parents=True, exist_ok=True)
        self.theme_file.write_text(theme)

    def load_theme(self) -> Theme:
        """Load theme preference, defaulting to light."""
        if self.theme_file.exists() and self.theme_file.read_text().strip() == "dark":
            return "dark"
        return "light"
