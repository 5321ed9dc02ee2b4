"""
Repository sync service.

The two entry points the surrounding application calls:
- import_repository: reference -> remote tree -> filtered, decoded file set
- push_files: local file set -> one new commit on the remote branch

Each call opens its own GitHub client and shares no state with other calls.
Nothing is retried; a caller that wants resilience re-runs the whole call.
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from gitsync.config import SyncSettings, get_settings
from gitsync.exceptions import (
    BlobDecodeFailed,
    ConfigurationError,
    InvalidReference,
    NoEligibleFiles,
    ValidationError,
)
from gitsync.services.github import (
    CommitBuilder,
    FileRecord,
    GitHubClient,
    ImportResult,
    ObjectFetcher,
    PushResult,
    RepositoryIdentity,
    parse_repo_reference,
)
from .progress import ProgressReporter, SyncPhase

logger = logging.getLogger(__name__)


class RepositorySyncService:
    """
    Import and push a project's file set against a GitHub repository.

    Usage:
        service = RepositorySyncService(token)
        result = await service.import_repository("https://github.com/acme/site")
        await service.push_files(result.repository, edited_files, "update")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        settings: Optional[SyncSettings] = None,
        progress: Optional[ProgressReporter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.settings = settings or get_settings()
        self.progress = progress
        self._transport = transport

    def _client(self) -> GitHubClient:
        return GitHubClient(self.token, settings=self.settings, transport=self._transport)

    # =========================================================================
    # Import
    # =========================================================================

    async def import_repository(
        self,
        reference: str,
        branch: Optional[str] = None,
        strict: bool = False,
    ) -> ImportResult:
        """
        Import the eligible files of a repository branch.

        Args:
            reference: repository URL or owner/name
            branch: branch to read; the repository's default branch if None
            strict: abort on the first file that cannot be decoded instead
                of skipping it

        Raises:
            InvalidReference, RepositoryNotFound, TreeUnavailable,
            NoEligibleFiles, BlobDecodeFailed (strict only)
        """
        repo = parse_repo_reference(reference)
        if repo is None:
            raise InvalidReference(reference)

        async with self._client() as client:
            fetcher = ObjectFetcher(client)

            await self._report_phase(SyncPhase.RESOLVING, repository=repo.full_name)
            metadata, branch = await fetcher.resolve_branch(repo, branch)

            await self._report_phase(SyncPhase.LISTING, branch=branch)
            entries = await fetcher.list_branch_tree(repo, branch)

            eligible = fetcher.filter_entries(entries)
            if not eligible:
                raise NoEligibleFiles(
                    repository=repo.full_name,
                    branch=branch,
                    step="filter tree",
                    reason=f"0 of {len(entries)} entries are supported files",
                )

            await self._report_phase(SyncPhase.FETCHING, total=len(eligible))
            fetched = await fetcher.fetch_content(eligible)

        if strict and fetched.failures:
            failure = fetched.failures[0]
            raise BlobDecodeFailed(
                failure.path,
                reason=failure.reason,
                repository=repo.full_name,
                branch=branch,
                step="fetch content",
            )

        if not fetched.files:
            raise NoEligibleFiles(
                repository=repo.full_name,
                branch=branch,
                step="fetch content",
                reason=f"all {len(eligible)} eligible files failed to load",
            )

        result = ImportResult(
            repo_name=metadata.get("name") or repo.name,
            repository=repo,
            branch=branch,
            files=fetched.files,
            failures=fetched.failures,
        )
        logger.info(
            f"Imported {len(result.files)} files from {repo}@{branch}",
            extra={"repository": repo.full_name},
        )
        return result

    # =========================================================================
    # Push
    # =========================================================================

    async def push_files(
        self,
        repo: RepositoryIdentity,
        files: Sequence[FileRecord],
        message: str,
        branch: Optional[str] = None,
    ) -> PushResult:
        """
        Push ``files`` as one new commit on ``branch``.

        The default branch is used when ``branch`` is None. Files whose blob
        upload fails are left out of the commit and listed in
        ``PushResult.failures``.

        Raises:
            ValidationError, ConfigurationError, RefNotFound, TreeUnavailable,
            TreeCreateFailed, CommitCreateFailed, RefConflict
        """
        self._validate_push(files, message)

        async with self._client() as client:
            if branch is None:
                _, branch = await ObjectFetcher(client).resolve_branch(repo)

            builder = CommitBuilder(client, repo, branch, on_step=self._report_step)
            return await builder.push(list(files), message)

    def _validate_push(self, files: Sequence[FileRecord], message: str) -> None:
        if not self.token:
            raise ConfigurationError("GitHub", "token")
        if not files:
            raise ValidationError("At least one file is required to push")
        if not message or not message.strip():
            raise ValidationError("Commit message is required")

        seen = set()
        for file in files:
            path = file.path
            if not path or not path.strip("/"):
                raise ValidationError("File path must not be empty")
            if path.startswith("/") or path.endswith("/") or "//" in path:
                raise ValidationError(f"File path must be relative with no empty segments: {path}")
            if path in seen:
                raise ValidationError(f"Duplicate file path: {path}")
            seen.add(path)

    # =========================================================================
    # Helper: Progress Reporting
    # =========================================================================

    async def _report_phase(self, phase: SyncPhase, **data: Any) -> None:
        """Report phase if progress reporter is available."""
        if self.progress:
            await self.progress.report_phase(phase, **data)

    async def _report_step(self, step: str) -> None:
        await self._report_phase(SyncPhase(step))
