"""
Read-only access to a remote repository's object graph.

ObjectFetcher lists a branch's full tree in one call and downloads the
eligible blobs in fixed-size batches, so the number of outstanding
connections never exceeds the batch size regardless of repository size.
"""

import asyncio
import base64
import binascii
import logging
from typing import List, Optional, Sequence, Tuple

from gitsync.exceptions import (
    BlobDecodeFailed,
    ExternalServiceError,
    RepositoryNotFound,
    TreeUnavailable,
)
from .client import GitHubClient, error_reason, is_success
from .file_filter import is_eligible, language_for_path
from .models import FetchResult, FileFailure, FileRecord, RepositoryIdentity, TreeEntry

logger = logging.getLogger(__name__)


def decode_blob_payload(payload: dict) -> str:
    """
    Decode a blob API payload into text.

    Raises:
        ValueError: payload is not valid base64 or not UTF-8 text
    """
    if not isinstance(payload, dict):
        raise ValueError("blob payload is not an object")
    content = payload.get("content")
    if content is None:
        raise ValueError("blob payload has no content")

    encoding = payload.get("encoding", "base64")
    if encoding == "utf-8":
        return content
    if encoding != "base64":
        raise ValueError(f"unsupported blob encoding {encoding!r}")

    # GitHub wraps base64 content at 60 columns
    compact = "".join(content.split())
    try:
        raw = base64.b64decode(compact, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 content: {e}")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValueError("content is not UTF-8 text")


class ObjectFetcher:
    """Fetches tree listings and blob contents through a GitHubClient."""

    def __init__(self, client: GitHubClient):
        self.client = client
        self.settings = client.settings

    # =========================================================================
    # Tree Listing
    # =========================================================================

    async def get_repository(self, repo: RepositoryIdentity) -> dict:
        """
        Existence check; returns the repository metadata.

        Raises:
            RepositoryNotFound: any non-success status
        """
        response = await self.client.get_repository(repo)
        if not is_success(response):
            logger.warning(f"Repository lookup failed for {repo}: {response.status_code}")
            raise RepositoryNotFound(
                repository=repo.full_name,
                step="get repository",
                reason=error_reason(response),
            )
        return response.json()

    async def resolve_branch(self, repo: RepositoryIdentity, branch: Optional[str] = None) -> Tuple[dict, str]:
        """Return repository metadata and the branch to use (default branch if none given)."""
        metadata = await self.get_repository(repo)
        return metadata, branch or metadata.get("default_branch") or "main"

    async def list_tree(self, repo: RepositoryIdentity, branch: Optional[str] = None) -> List[TreeEntry]:
        """
        List every entry of the branch's tree in one recursive call.

        Raises:
            RepositoryNotFound: repository does not exist or is not visible
            TreeUnavailable: listing failed or the remote truncated it
        """
        _, branch = await self.resolve_branch(repo, branch)
        return await self.list_branch_tree(repo, branch)

    async def list_branch_tree(self, repo: RepositoryIdentity, branch: str) -> List[TreeEntry]:
        """list_tree for an already resolved branch (skips the existence check)."""
        response = await self.client.get_tree(repo, branch, recursive=True)
        if not is_success(response):
            raise TreeUnavailable(
                repository=repo.full_name,
                branch=branch,
                step="list tree",
                reason=error_reason(response),
            )

        data = response.json()
        if data.get("truncated"):
            # Too large for a single listing; retrying will not help
            raise TreeUnavailable(
                repository=repo.full_name,
                branch=branch,
                step="list tree",
                reason="tree listing truncated by the remote (repository too large)",
                status_code=413,
            )

        entries = [TreeEntry.from_api(item) for item in data.get("tree", [])]
        logger.info(f"Listed {len(entries)} tree entries for {repo}@{branch}")
        return entries

    # =========================================================================
    # Content Fetch
    # =========================================================================

    def filter_entries(self, entries: Sequence[TreeEntry]) -> List[TreeEntry]:
        return [e for e in entries if is_eligible(e, self.settings.max_file_bytes)]

    async def fetch_content(self, entries: Sequence[TreeEntry]) -> FetchResult:
        """
        Download and decode the eligible entries.

        Requests go out in batches of ``settings.batch_size``; each batch is
        awaited before the next starts. A file that cannot be fetched or
        decoded is reported in ``failures`` and does not stop the others.
        """
        eligible = self.filter_entries(entries)
        result = FetchResult()
        batch_size = self.settings.batch_size

        for start in range(0, len(eligible), batch_size):
            batch = eligible[start:start + batch_size]
            outcomes = await asyncio.gather(
                *(self._fetch_one(entry) for entry in batch), return_exceptions=True
            )
            # the whole batch has settled; a fatal error aborts the import
            errors = [o for o in outcomes if isinstance(o, BaseException)]
            if errors:
                raise errors[0]
            for outcome in outcomes:
                if isinstance(outcome, FileFailure):
                    result.failures.append(outcome)
                else:
                    result.files.append(outcome)

        logger.info(
            f"Fetched {len(result.files)}/{len(eligible)} files "
            f"({len(entries) - len(eligible)} filtered out, {len(result.failures)} failed)"
        )
        return result

    async def _fetch_one(self, entry: TreeEntry) -> FileRecord | FileFailure:
        try:
            return await self._fetch_file(entry)
        except BlobDecodeFailed as e:
            logger.warning(f"Skipping {entry.path}: {e.reason}", extra={"error": e.reason})
            return FileFailure.from_error(e)

    async def _fetch_file(self, entry: TreeEntry) -> FileRecord:
        try:
            response = await self.client.get_blob(entry.url)
        except ExternalServiceError as e:
            raise BlobDecodeFailed(entry.path, reason=e.message)

        if not is_success(response):
            raise BlobDecodeFailed(entry.path, reason=error_reason(response))

        try:
            content = decode_blob_payload(response.json())
        except ValueError as e:
            raise BlobDecodeFailed(entry.path, reason=str(e))

        return FileRecord(
            path=entry.path,
            content=content,
            language_tag=language_for_path(entry.path),
        )
