"""Credential endpoint Pydantic models."""

from typing import Literal

from pydantic import BaseModel


class CredentialResponse(BaseModel):
    """Response model for a successfully resolved token."""

    token: str


class CredentialErrorResponse(BaseModel):
    """Response model when the GitHub CLI could not supply a token."""

    error: str
    reason: Literal["tool_missing", "not_authenticated"]
    details: str | None = None
