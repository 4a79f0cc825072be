"""GitHub gist API connector.

Thin async wrapper around the three gist endpoints the editor needs:

- ``GET /gists`` to list the authenticated user's gists
- ``GET /gists/{id}`` to fetch one gist with file contents
- ``PATCH /gists/{id}`` to replace the content of a single file

Every call is traced with OpenTelemetry. There are no retries; a non-success
status is raised as ``GistRequestError`` carrying the remote status text.
"""

from __future__ import annotations

import os
from typing import Any

import httpx
import structlog
from opentelemetry import trace
from pydantic import ValidationError

from .models import Gist

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_ACCEPT = "application/vnd.github.v3+json"
INVALID_RESPONSE = "Invalid response from GitHub"


class GistError(Exception):
    """Base class for gist client failures."""


class MissingCredentialError(GistError):
    """Raised when an operation is attempted without a credential."""

    def __init__(self):
        super().__init__("Missing GitHub token. Authenticate or enter a token first.")


class GistRequestError(GistError):
    """Raised when the remote API rejects a request or cannot be reached."""

    def __init__(self, action: str, reason: str, status_code: int | None = None):
        self.action = action
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to {action}: {reason}")


class GistConnector:
    """Client for the GitHub gist endpoints.

    Example:
        >>> async with GistConnector(token="abc123") as gists:
        ...     gist = await gists.fetch_gist("g1")
        ...     print(gist.file("notes.md").content)
    """

    def __init__(
        self,
        token: str | None,
        base_url: str = GITHUB_API_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the connector.

        Args:
            token: Bearer credential sent as ``Authorization: token <token>``
            base_url: API root, overridable for GitHub Enterprise or tests
            timeout: Request timeout in seconds; ``None`` keeps httpx's default
            transport: Optional custom transport (used by tests)
        """
        self.token = token
        client_kwargs: dict[str, Any] = {"base_url": base_url, "transport": transport}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self.client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self.token:
            raise MissingCredentialError()
        return {"Authorization": f"token {self.token}", "Accept": GITHUB_ACCEPT}

    async def _request(self, action: str, method: str, url: str, **kwargs: Any) -> Any:
        headers = self._headers()
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("gist_request_transport_error", action=action, url=url, error=str(e))
            raise GistRequestError(action, str(e) or type(e).__name__) from e

        span = trace.get_current_span()
        span.set_attribute("http.status_code", response.status_code)

        if response.is_error:
            logger.warning(
                "gist_request_failed",
                action=action,
                url=url,
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
            span.set_attribute("error", True)
            raise GistRequestError(action, response.reason_phrase, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error("gist_response_not_json", action=action, url=url, error=str(e))
            raise GistRequestError(action, INVALID_RESPONSE, response.status_code) from e

    def _to_gist(self, action: str, data: Any) -> Gist:
        try:
            return Gist.model_validate(data)
        except ValidationError as e:
            logger.error("gist_response_invalid", action=action, errors=e.error_count())
            raise GistRequestError(action, INVALID_RESPONSE) from e

    @tracer.start_as_current_span("github.list_gists")
    async def list_gists(self) -> list[Gist]:
        """List the authenticated user's gists.

        Returns:
            Gist summaries in server order; file contents are not included.
        """
        data = await self._request("load gists", "GET", "/gists")
        if not isinstance(data, list):
            raise GistRequestError("load gists", INVALID_RESPONSE)
        gists = [self._to_gist("load gists", item) for item in data]
        logger.info("gists_listed", count=len(gists))
        return gists

    @tracer.start_as_current_span("github.fetch_gist")
    async def fetch_gist(self, gist_id: str) -> Gist:
        """Fetch one gist including the content of every file."""
        trace.get_current_span().set_attribute("gist.id", gist_id)
        data = await self._request("load gist", "GET", f"/gists/{gist_id}")
        gist = self._to_gist("load gist", data)
        logger.info("gist_fetched", gist_id=gist_id, files=len(gist.files))
        return gist

    @tracer.start_as_current_span("github.save_file")
    async def save_file(self, gist_id: str, file_name: str, content: str) -> Gist:
        """Replace the content of one file and return the updated gist.

        Only the named file is sent; other files in the gist are untouched.
        The returned gist is the server's view and should replace any local copy.
        """
        span = trace.get_current_span()
        span.set_attribute("gist.id", gist_id)
        span.set_attribute("gist.file_name", file_name)

        payload = {"files": {file_name: {"content": content}}}
        data = await self._request("save gist", "PATCH", f"/gists/{gist_id}", json=payload)
        gist = self._to_gist("save gist", data)
        logger.info("gist_file_saved", gist_id=gist_id, file_name=file_name, chars=len(content))
        return gist
