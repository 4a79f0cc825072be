"""Editor session state and the command handlers that drive it.

The handlers are UI-agnostic: each one performs a single user action, turns
any failure into a ``StatusNotice`` and never raises. A failed action leaves
the session state as it was before the action started.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from connectors.gh_cli import CredentialOutcome
from connectors.github import GistConnector, GistError
from connectors.models import FileNotInGistError, Gist

from .config import ClientStore, Theme
from .credentials import CredentialProvider
from .editor import EditorSurface

logger = structlog.get_logger(__name__)

NOTICE_TTL_SECONDS = 3.0


class FileTooLargeError(Exception):
    """Raised when GitHub only returned part of a file's content."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(
            f"File {file_name} is too large to edit here; GitHub returned truncated content"
        )


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusNotice:
    """Transient message shown to the user after an action."""

    message: str
    level: NoticeLevel
    posted_at: float

    def expired(self, now: float) -> bool:
        return now - self.posted_at >= NOTICE_TTL_SECONDS


@dataclass
class SessionState:
    """Currently open gist and file; both None when nothing is open."""

    gist: Gist | None = None
    file_name: str | None = None

    @property
    def is_open(self) -> bool:
        return self.gist is not None and self.file_name is not None

    def can_save(self) -> bool:
        return self.is_open and self.gist.has_file(self.file_name)

    def close(self):
        self.gist = None
        self.file_name = None


class EditorSession:
    """Command handlers for the gist editor.

    Args:
        provider: Resolves and holds the GitHub credential
        editor: Surface holding the text being edited
        store: Persisted client state (theme preference)
        connector_factory: Builds a GistConnector for a credential
        clock: Monotonic time source used to expire notices
        on_notice: Called with every notice as it is posted
    """

    def __init__(
        self,
        provider: CredentialProvider,
        editor: EditorSurface,
        store: ClientStore,
        connector_factory: Callable[[str | None], GistConnector] = GistConnector,
        clock: Callable[[], float] = time.monotonic,
        on_notice: Callable[[StatusNotice], None] | None = None,
    ):
        self.provider = provider
        self.editor = editor
        self.store = store
        self.connector_factory = connector_factory
        self.clock = clock
        self.on_notice = on_notice
        self.state = SessionState()
        self.listing: list[Gist] = []
        self.saving = False
        self._notice: StatusNotice | None = None

    # Notices

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> StatusNotice:
        notice = StatusNotice(message=message, level=level, posted_at=self.clock())
        self._notice = notice
        if self.on_notice is not None:
            self.on_notice(notice)
        return notice

    @property
    def notice(self) -> StatusNotice | None:
        """The latest notice, or None once it has expired."""
        if self._notice is not None and self._notice.expired(self.clock()):
            self._notice = None
        return self._notice

    # Credential

    async def on_refresh_credential(self) -> CredentialOutcome:
        """Resolve a credential from the helper, falling back to the stored one.

        Falling back to the stored token posts no notice.
        """
        outcome = await self.provider.resolve()
        if outcome.from_storage:
            logger.debug("credential_refresh_using_stored")
        elif outcome.ok:
            self.notify(outcome.message or "Authenticated", NoticeLevel.SUCCESS)
        else:
            self.notify(
                f"{outcome.message} Please authenticate with GitHub CLI or enter token manually.",
                NoticeLevel.ERROR,
            )
        return outcome

    def on_set_credential(self, text: str) -> bool:
        try:
            outcome = self.provider.set(text)
        except ValueError as e:
            self.notify(str(e), NoticeLevel.ERROR)
            return False
        self.notify(outcome.message, NoticeLevel.SUCCESS)
        return True

    def on_logout(self):
        self.provider.clear()
        self._reset_editor()
        self.notify("Logged out successfully.", NoticeLevel.SUCCESS)

    # Gists

    async def on_list_gists(self) -> list[Gist] | None:
        """List gists; an empty list is a normal outcome, None means failure."""
        if not self.provider.credential:
            self.notify("Please set your GitHub token first", NoticeLevel.ERROR)
            return None

        self.notify("Loading gists...")
        try:
            async with self.connector_factory(self.provider.credential) as gists:
                result = await gists.list_gists()
        except GistError as e:
            logger.error("list_gists_failed", error=str(e))
            self.notify(str(e), NoticeLevel.ERROR)
            return None

        if not result:
            self.notify("No gists found", NoticeLevel.INFO)
        else:
            plural = "s" if len(result) > 1 else ""
            self.notify(f"Loaded {len(result)} gist{plural}", NoticeLevel.SUCCESS)
        self.listing = result
        return result

    async def on_open(self, gist_id: str, file_name: str) -> bool:
        """Fetch a gist and load one of its files into the editor."""
        self.notify("Loading gist...")
        try:
            async with self.connector_factory(self.provider.credential) as gists:
                gist = await gists.fetch_gist(gist_id)
            gist_file = gist.file(file_name)
            if gist_file.truncated:
                raise FileTooLargeError(file_name)
        except (GistError, FileNotInGistError, FileTooLargeError) as e:
            logger.error("open_gist_failed", gist_id=gist_id, file_name=file_name, error=str(e))
            self.notify(str(e), NoticeLevel.ERROR)
            return False

        self.state.gist = gist
        self.state.file_name = file_name
        self.editor.set_value(gist_file.content or "")
        self.notify("Gist loaded successfully!", NoticeLevel.SUCCESS)
        return True

    async def on_save(self) -> bool:
        """Send the editor's content for the open file back to GitHub.

        A second save while one is in flight is rejected. If the session is
        closed or switched while saving, the response is not adopted.
        """
        if self.saving:
            self.notify("Save already in progress", NoticeLevel.ERROR)
            return False
        if not self.state.can_save():
            self.notify("No gist loaded", NoticeLevel.ERROR)
            return False

        gist_id = self.state.gist.id
        file_name = self.state.file_name
        content = self.editor.get_value()

        self.saving = True
        self.notify("Saving...")
        try:
            async with self.connector_factory(self.provider.credential) as gists:
                updated = await gists.save_file(gist_id, file_name, content)
        except GistError as e:
            logger.error("save_gist_failed", gist_id=gist_id, file_name=file_name, error=str(e))
            self.notify(str(e), NoticeLevel.ERROR)
            return False
        finally:
            self.saving = False

        if self.state.gist is not None and self.state.gist.id == gist_id:
            self.state.gist = updated
        self.notify("Gist saved successfully!", NoticeLevel.SUCCESS)
        return True

    def on_close(self):
        """Close the open gist; unsaved edits are discarded."""
        self._reset_editor()

    def _reset_editor(self):
        self.state.close()
        self.editor.set_value("")

    # Preferences

    def on_toggle_theme(self) -> Theme:
        theme: Theme = "light" if self.store.load_theme() == "dark" else "dark"
        self.store.save_theme(theme)
        self.notify(f"Switched to {theme} theme", NoticeLevel.SUCCESS)
        return theme
