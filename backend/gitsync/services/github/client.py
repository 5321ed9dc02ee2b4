"""
Thin async client for the GitHub git-data REST API.

Only the object primitives the sync engine needs are exposed. Each method
returns the raw httpx.Response so callers can map statuses to their own
step-specific errors; credential and rate-limit failures are raised here
because they mean the same thing for every call.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from gitsync.config import SyncSettings, get_settings
from gitsync.exceptions import (
    AuthenticationError,
    RateLimitError,
    ExternalServiceError,
)
from .models import RepositoryIdentity

logger = logging.getLogger(__name__)

SERVICE_NAME = "GitHub API"


def _ref_path(branch: str) -> str:
    # branch names may contain '/', which must stay a path separator
    return quote(branch, safe="/")


class GitHubClient:
    """
    Async GitHub REST client bound to one access token.

    Usage:
        async with GitHubClient(token) as client:
            response = await client.get_repository(repo)

    The token may be None for read operations against public repositories.
    Pass ``transport`` to route requests somewhere other than the network.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        settings: Optional[SyncSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.settings.api_version,
            "User-Agent": self.settings.user_agent,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def __aenter__(self) -> "GitHubClient":
        self._client = httpx.AsyncClient(
            base_url=self.settings.api_base,
            headers=self._headers(),
            timeout=self.settings.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Transport
    # =========================================================================

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send one request and check credential/rate-limit statuses.

        Raises:
            AuthenticationError: remote returned 401
            RateLimitError: remote returned 403/429 with no requests remaining
            ExternalServiceError: the request never got a response
        """
        if self._client is None:
            raise RuntimeError("GitHubClient must be used as an async context manager")

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"{SERVICE_NAME} timeout: {method} {url}")
            raise ExternalServiceError(SERVICE_NAME, "timeout")
        except httpx.HTTPError as e:
            logger.error(f"{SERVICE_NAME} request failed: {method} {url}: {e}")
            raise ExternalServiceError(SERVICE_NAME, str(e) or type(e).__name__)

        logger.debug(f"{method} {url} -> {response.status_code}")

        if response.status_code == 401:
            raise AuthenticationError("GitHub token")
        if response.status_code in (403, 429):
            remaining = response.headers.get("X-RateLimit-Remaining")
            if response.status_code == 429 or remaining == "0":
                raise RateLimitError(SERVICE_NAME)

        return response

    # =========================================================================
    # Read Endpoints
    # =========================================================================

    async def get_repository(self, repo: RepositoryIdentity) -> httpx.Response:
        return await self.request("GET", f"/repos/{repo.owner}/{repo.name}")

    async def get_tree(self, repo: RepositoryIdentity, tree_ish: str, recursive: bool = True) -> httpx.Response:
        params = {"recursive": "1"} if recursive else None
        return await self.request(
            "GET",
            f"/repos/{repo.owner}/{repo.name}/git/trees/{_ref_path(tree_ish)}",
            params=params,
        )

    async def get_blob(self, url: str) -> httpx.Response:
        """Fetch a blob by the absolute URL given in a tree listing."""
        return await self.request("GET", url)

    async def get_ref(self, repo: RepositoryIdentity, branch: str) -> httpx.Response:
        return await self.request(
            "GET", f"/repos/{repo.owner}/{repo.name}/git/ref/heads/{_ref_path(branch)}"
        )

    async def get_commit(self, repo: RepositoryIdentity, sha: str) -> httpx.Response:
        return await self.request("GET", f"/repos/{repo.owner}/{repo.name}/git/commits/{sha}")

    # =========================================================================
    # Write Endpoints
    # =========================================================================

    async def create_blob(self, repo: RepositoryIdentity, content: str) -> httpx.Response:
        return await self.request(
            "POST",
            f"/repos/{repo.owner}/{repo.name}/git/blobs",
            json={"content": content, "encoding": "utf-8"},
        )

    async def create_tree(self, repo: RepositoryIdentity, base_tree: str, entries: list[dict]) -> httpx.Response:
        return await self.request(
            "POST",
            f"/repos/{repo.owner}/{repo.name}/git/trees",
            json={"base_tree": base_tree, "tree": entries},
        )

    async def create_commit(self, repo: RepositoryIdentity, message: str, tree: str, parent: str) -> httpx.Response:
        return await self.request(
            "POST",
            f"/repos/{repo.owner}/{repo.name}/git/commits",
            json={"message": message, "tree": tree, "parents": [parent]},
        )

    async def update_ref(self, repo: RepositoryIdentity, branch: str, sha: str) -> httpx.Response:
        # force=False: the remote rejects anything that is not a fast-forward
        return await self.request(
            "PATCH",
            f"/repos/{repo.owner}/{repo.name}/git/refs/heads/{_ref_path(branch)}",
            json={"sha": sha, "force": False},
        )


def is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def error_reason(response: httpx.Response) -> str:
    """Short reason string from a failed GitHub response."""
    reason = f"status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return reason
    if isinstance(body, dict) and body.get("message"):
        reason = f"{reason}: {body['message']}"
    return reason
