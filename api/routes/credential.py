"""Credential endpoint backed by the GitHub CLI."""

from time import time

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from connectors.gh_cli import CredentialStatus, GhCliCredentialSource

from ..models import CredentialErrorResponse, CredentialResponse
from ..observability import get_app_metrics, get_tracer

# Initialize logger
logger = structlog.get_logger(__name__)

tracer = get_tracer(__name__)

router = APIRouter(tags=["credential"])

ERROR_STATUS_CODES = {
    CredentialStatus.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    CredentialStatus.TOOL_MISSING: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_credential_source() -> GhCliCredentialSource:
    """Dependency providing the credential source; overridden in tests."""
    return GhCliCredentialSource()


@router.get(
    "/credential",
    response_model=CredentialResponse,
    responses={401: {"model": CredentialErrorResponse}, 500: {"model": CredentialErrorResponse}},
)
async def get_credential(source: GhCliCredentialSource = Depends(get_credential_source)):
    """
    Return the GitHub token printed by ``gh auth token``.

    401 when the CLI has no active login, 500 when the CLI is not installed.
    """
    metrics = get_app_metrics()

    with tracer.start_as_current_span("get_credential") as span:
        logger.info("credential_requested")

        start_time = time()
        outcome = await source.fetch()
        metrics.helper_duration.record((time() - start_time) * 1000)
        metrics.credential_requests.add(1, {"outcome": outcome.status.value})
        span.set_attribute("credential.outcome", outcome.status.value)

        if outcome.ok:
            logger.info("credential_served")
            return CredentialResponse(token=outcome.credential)

        status_code = ERROR_STATUS_CODES.get(
            outcome.status, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        reason = (
            outcome.status.value
            if outcome.status in ERROR_STATUS_CODES
            else CredentialStatus.NOT_AUTHENTICATED.value
        )
        logger.warning("credential_unavailable", reason=reason, status_code=status_code)

        body = CredentialErrorResponse(error=outcome.message, reason=reason, details=outcome.details)
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
