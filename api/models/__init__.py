"""Pydantic models for API requests and responses."""

from .credential import CredentialErrorResponse, CredentialResponse

__all__ = [
    "CredentialErrorResponse",
    "CredentialResponse",
]
