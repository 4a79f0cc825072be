"""API route handlers organized by domain."""

from .credential import router as credential_router

__all__ = ["credential_router"]
