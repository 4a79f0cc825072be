"""Pydantic models for GitHub gist payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class FileNotInGistError(KeyError):
    """Raised when a requested file name is not part of a gist."""

    def __init__(self, gist_id: str, file_name: str):
        self.gist_id = gist_id
        self.file_name = file_name
        super().__init__(file_name)

    def __str__(self) -> str:
        return f"File {self.file_name} not found in gist"


class GistFile(BaseModel):
    """A single file inside a gist.

    List responses omit ``content``; single-gist responses include it.
    """

    filename: str | None = None
    language: str | None = None
    content: str | None = None
    size: int | None = None
    raw_url: str | None = None
    truncated: bool = False


class Gist(BaseModel):
    """A gist as returned by the GitHub REST API."""

    id: str
    description: str | None = None
    public: bool | None = None
    html_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    files: dict[str, GistFile] = Field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.description or "Untitled Gist"

    def has_file(self, file_name: str) -> bool:
        return file_name in self.files

    def file(self, file_name: str) -> GistFile:
        """Return the named file or raise FileNotInGistError."""
        try:
            return self.files[file_name]
        except KeyError:
            raise FileNotInGistError(self.id, file_name) from None
