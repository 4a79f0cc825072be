"""GitHub CLI credential helper.

Runs ``gh auth token`` once and classifies the result into a tagged
``CredentialOutcome`` instead of raising.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from enum import Enum

import structlog
from opentelemetry import trace

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

GH_CLI_PATH = os.getenv("GH_CLI_PATH", "gh")

TOOL_MISSING_MESSAGE = (
    "GitHub CLI (gh) is not installed. Please install it from https://cli.github.com/"
)
NOT_AUTHENTICATED_MESSAGE = 'No token found. Please run "gh auth login" first.'


class CredentialStatus(str, Enum):
    """Outcome kinds of a credential lookup."""

    SUCCESS = "success"
    TOOL_MISSING = "tool_missing"
    NOT_AUTHENTICATED = "not_authenticated"
    NONE_AVAILABLE = "none_available"


@dataclass(frozen=True)
class CredentialOutcome:
    """Result of a credential lookup: either a credential or a failure reason."""

    status: CredentialStatus
    credential: str | None = None
    message: str = ""
    details: str | None = None
    from_storage: bool = False

    def __post_init__(self):
        if self.status is CredentialStatus.SUCCESS and not self.credential:
            raise ValueError("a successful outcome requires a non-empty credential")
        if self.status is not CredentialStatus.SUCCESS and self.credential is not None:
            raise ValueError("a failed outcome cannot carry a credential")

    @property
    def ok(self) -> bool:
        return self.status is CredentialStatus.SUCCESS

    @classmethod
    def success(
        cls, credential: str, message: str = "", from_storage: bool = False
    ) -> CredentialOutcome:
        return cls(
            CredentialStatus.SUCCESS,
            credential=credential,
            message=message,
            from_storage=from_storage,
        )

    @classmethod
    def failure(
        cls, status: CredentialStatus, message: str, details: str | None = None
    ) -> CredentialOutcome:
        return cls(status, message=message, details=details)


class GhCliCredentialSource:
    """Credential source backed by the ``gh`` command-line tool."""

    def __init__(self, executable: str = GH_CLI_PATH):
        self.executable = executable

    @tracer.start_as_current_span("gh_cli.auth_token")
    async def fetch(self) -> CredentialOutcome:
        """Run ``gh auth token`` and return the trimmed token from stdout."""
        logger.debug("gh_cli_token_requested", executable=self.executable)

        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                "auth",
                "token",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.warning("gh_cli_not_installed", executable=self.executable)
            return CredentialOutcome.failure(
                CredentialStatus.TOOL_MISSING, TOOL_MISSING_MESSAGE, details=str(e)
            )

        stdout, stderr = await process.communicate()
        token = stdout.decode("utf-8", errors="replace").strip()
        error_output = stderr.decode("utf-8", errors="replace").strip()

        if "command not found" in error_output:
            logger.warning("gh_cli_not_installed", executable=self.executable)
            return CredentialOutcome.failure(
                CredentialStatus.TOOL_MISSING, TOOL_MISSING_MESSAGE, details=error_output
            )

        if error_output:
            logger.warning("gh_cli_stderr", stderr=error_output, returncode=process.returncode)

        if process.returncode != 0:
            return CredentialOutcome.failure(
                CredentialStatus.NOT_AUTHENTICATED,
                'Failed to get GitHub token. Make sure you are logged in with "gh auth login".',
                details=error_output or None,
            )

        if not token:
            return CredentialOutcome.failure(
                CredentialStatus.NOT_AUTHENTICATED, NOT_AUTHENTICATED_MESSAGE
            )

        logger.info("gh_cli_token_obtained")
        return CredentialOutcome.success(token, message="Authenticated via GitHub CLI")
