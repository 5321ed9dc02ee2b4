"""
GitHub sync endpoints.

Provides token validation, repository import (plain or SSE-streamed)
and pushing a file set back as a commit.
"""

import asyncio
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from gitsync.config import SyncSettings
from gitsync.dependencies import get_bearer_token, get_sync_settings, get_transport
from gitsync.exceptions import AppException, SyncError
from gitsync.schemas.sync import (
    ImportRequest,
    ImportResponse,
    PushRequest,
    PushResponse,
    ValidateTokenRequest,
    ValidateTokenResponse,
)
from gitsync.services.github import GitHubClient
from gitsync.services.sync import RepositorySyncService, SSEProgressReporter, SyncPhase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["github"])


@router.post("/validate-token", response_model=ValidateTokenResponse)
async def validate_github_token(
    request: ValidateTokenRequest,
    settings: SyncSettings = Depends(get_sync_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    """
    Validate a GitHub Personal Access Token.

    Calls GitHub API /user endpoint to verify token validity.

    Args:
        request: Token to validate

    Returns:
        Validation result with username if valid
    """
    async with GitHubClient(request.token, settings=settings, transport=transport) as client:
        try:
            response = await client.request("GET", "/user")
        except AppException as e:
            if e.status_code in (401, 429):
                return ValidateTokenResponse(valid=False, error=e.message)
            raise

    if response.status_code == 200:
        user_data = response.json()
        return ValidateTokenResponse(valid=True, username=user_data.get("login"))
    if response.status_code == 403:
        return ValidateTokenResponse(
            valid=False,
            error="Token lacks required permissions or rate limit exceeded"
        )
    return ValidateTokenResponse(
        valid=False,
        error=f"GitHub API returned status {response.status_code}"
    )


@router.post("/import", response_model=ImportResponse)
async def import_repository(
    request: ImportRequest,
    header_token: Optional[str] = Depends(get_bearer_token),
    settings: SyncSettings = Depends(get_sync_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    """Import the supported files of a repository branch."""
    service = RepositorySyncService(
        request.token or header_token, settings=settings, transport=transport
    )
    result = await service.import_repository(
        request.reference, branch=request.branch, strict=request.strict
    )
    return ImportResponse.from_result(result)


@router.post("/import/stream")
async def import_repository_stream(
    request: ImportRequest,
    header_token: Optional[str] = Depends(get_bearer_token),
    settings: SyncSettings = Depends(get_sync_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    """
    Import a repository, streaming progress as Server-Sent Events.

    Events:
    - progress: {phase: "resolving"|"listing"|"fetching", ...}
    - done: ImportResponse
    - error: {error_code, message, repository, branch, step}
    """
    reporter = SSEProgressReporter()
    service = RepositorySyncService(
        request.token or header_token,
        settings=settings,
        progress=reporter,
        transport=transport,
    )

    async def import_task():
        """Execute import and push progress to queue."""
        try:
            result = await service.import_repository(
                request.reference, branch=request.branch, strict=request.strict
            )
            await reporter.report_phase(SyncPhase.DONE, files=len(result.files))
            await reporter.report_done(ImportResponse.from_result(result).model_dump())
        except SyncError as e:
            logger.warning(f"Import failed: {e.message}", extra={"repository": e.repository or ""})
            await reporter.report_error(e.to_dict())
        except AppException as e:
            logger.warning(f"Import failed: {e.message}")
            await reporter.report_error({"error_code": e.error_code, "message": e.message})
        except Exception as e:
            logger.exception(f"Import failed: {e}")
            await reporter.report_error({"error_code": "INTERNAL_ERROR", "message": str(e)})
        finally:
            await reporter.signal_end()

    async def generate_events():
        """SSE event generator."""
        task = asyncio.create_task(import_task())
        try:
            async for chunk in reporter.stream():
                yield chunk
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        generate_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.post("/push", response_model=PushResponse)
async def push_files(
    request: PushRequest,
    header_token: Optional[str] = Depends(get_bearer_token),
    settings: SyncSettings = Depends(get_sync_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    """
    Push the given files as one commit on the branch.

    Files whose upload fails are reported in `failures`; the commit
    still goes ahead with the rest.
    """
    service = RepositorySyncService(
        request.token or header_token, settings=settings, transport=transport
    )
    result = await service.push_files(
        request.repository,
        request.to_records(),
        request.message,
        branch=request.branch,
    )
    return PushResponse.from_result(result)
