"""Text editing surfaces for gist file content."""

import os
import shlex
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Protocol


class EditorSurface(Protocol):
    """Minimal editing capability the session needs."""

    def get_value(self) -> str: ...

    def set_value(self, text: str) -> None: ...


class BufferEditor:
    """In-memory editing surface."""

    def __init__(self, text: str = ""):
        self._text = text

    def get_value(self) -> str:
        return self._text

    def set_value(self, text: str) -> None:
        self._text = text


class EditorError(Exception):
    """Raised when the external editor cannot be run."""


def get_editor_command() -> list[str]:
    """Get the user's preferred text editor as an argv prefix."""
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR")
    if editor:
        return shlex.split(editor)

    if sys.platform == "win32":
        return ["notepad"]
    for editor_cmd in ["nano", "vim", "vi"]:
        if shutil.which(editor_cmd):
            return [editor_cmd]
    return ["vi"]


class ExternalEditor(BufferEditor):
    """Buffer that can be handed to ``$EDITOR`` for interactive editing."""

    def __init__(self, text: str = "", command: list[str] | None = None):
        super().__init__(text)
        self.command = command

    def edit(self, file_name: str = "gist.md") -> bool:
        """Open the buffer in the external editor.

        The temp file keeps the gist file's suffix so editors pick the right
        syntax mode. Returns True if the content changed.
        """
        command = self.command or get_editor_command()
        suffix = Path(file_name).suffix or ".md"

        with tempfile.NamedTemporaryFile(
            mode="w", suffix=suffix, delete=False, encoding="utf-8"
        ) as tmp_file:
            tmp_file.write(self.get_value())
            tmp_path = Path(tmp_file.name)

        try:
            try:
                subprocess.run([*command, str(tmp_path)], check=True)
            except subprocess.CalledProcessError as e:
                raise EditorError(f"Editor '{command[0]}' exited with an error.") from e
            except FileNotFoundError as e:
                raise EditorError(
                    f"Editor '{command[0]}' not found. Set one with: export EDITOR=nano"
                ) from e

            try:
                edited = tmp_path.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise EditorError(
                    f"Could not read the edited file as UTF-8 ({e.reason}). Save it as UTF-8."
                ) from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        changed = edited != self.get_value()
        self.set_value(edited)
        return changed
