"""Credential resolution for the CLI client.

A credential comes from, in order: a credential source (the local server's
``/credential`` endpoint or the ``gh`` CLI directly), the token persisted by
an earlier session, or manual entry by the user.
"""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from connectors.gh_cli import CredentialOutcome, CredentialStatus, GhCliCredentialSource

from .config import CREDENTIAL_SOURCE, SERVER_URL, ClientStore

logger = structlog.get_logger(__name__)


class CredentialSource(Protocol):
    """Anything that can look up a credential once."""

    async def fetch(self) -> CredentialOutcome: ...


class ServerCredentialSource:
    """Fetch the token from the local server's ``GET /credential`` endpoint."""

    def __init__(
        self,
        server_url: str = SERVER_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_url = server_url
        self.transport = transport

    async def fetch(self) -> CredentialOutcome:
        try:
            async with httpx.AsyncClient(
                base_url=self.server_url, transport=self.transport, timeout=10.0
            ) as client:
                response = await client.get("/credential")
        except httpx.ConnectError:
            logger.warning("credential_server_unreachable", server_url=self.server_url)
            return CredentialOutcome.failure(
                CredentialStatus.NONE_AVAILABLE,
                "Could not connect to the local server. "
                "Start it with: python -m api.server",
            )
        except httpx.HTTPError as e:
            logger.warning("credential_server_request_failed", error=str(e))
            return CredentialOutcome.failure(
                CredentialStatus.NONE_AVAILABLE, f"Credential request failed: {e}"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_success and data.get("token"):
            return CredentialOutcome.success(data["token"], message="Authenticated via GitHub CLI")

        try:
            status = CredentialStatus(data.get("reason"))
        except ValueError:
            status = CredentialStatus.NOT_AUTHENTICATED
        if status is CredentialStatus.SUCCESS:
            status = CredentialStatus.NOT_AUTHENTICATED

        return CredentialOutcome.failure(
            status, data.get("error") or "Failed to get token", details=data.get("details")
        )


def default_credential_source() -> CredentialSource:
    """Pick the source named by GISTEDITOR_CREDENTIAL_SOURCE ("server" or "gh")."""
    if CREDENTIAL_SOURCE == "gh":
        return GhCliCredentialSource()
    return ServerCredentialSource()


class CredentialProvider:
    """Holds the active credential for the session and keeps it persisted."""

    def __init__(self, source: CredentialSource, store: ClientStore):
        self.source = source
        self.store = store
        self.credential: str | None = store.load_token()

    async def resolve(self) -> CredentialOutcome:
        """Resolve a credential without raising.

        On source failure the persisted token is used; if there is none the
        source's failure is returned so the caller can prompt for one.
        """
        try:
            outcome = await self.source.fetch()
        except Exception as e:
            logger.error("credential_source_error", error=str(e), error_type=type(e).__name__)
            outcome = CredentialOutcome.failure(
                CredentialStatus.NONE_AVAILABLE, f"Failed to get token: {e}"
            )

        if outcome.ok:
            self._activate(outcome.credential)
            logger.info("credential_resolved", source="helper")
            return outcome

        stored = self.credential or self.store.load_token()
        if stored:
            self._activate(stored)
            logger.info("credential_resolved", source="stored", helper_status=outcome.status.value)
            return CredentialOutcome.success(
                stored, message="Using stored token", from_storage=True
            )

        logger.warning("credential_unavailable", status=outcome.status.value)
        return outcome

    def set(self, credential: str) -> CredentialOutcome:
        """Store a user-supplied credential and make it active."""
        credential = credential.strip()
        if not credential:
            raise ValueError("Please enter a valid token")
        self._activate(credential)
        logger.info("credential_set_manually")
        return CredentialOutcome.success(credential, message="Token saved successfully!")

    def clear(self):
        """Forget the active credential and remove it from storage."""
        self.credential = None
        self.store.delete_token()

    def _activate(self, credential: str):
        self.credential = credential
        self.store.save_token(credential)
