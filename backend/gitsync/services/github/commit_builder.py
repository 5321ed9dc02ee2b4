"""
Builds a commit on a remote branch from a local file set.

The push runs five dependent steps, each consuming the hash produced by
the previous one:

1. resolve the branch to its tip commit (BranchState)
2. resolve the tip commit to its tree
3. upload one blob per file (batched; per-file failures are skipped)
4. create a tree layered on the tip's tree
5. create a commit with the tip as its only parent, then fast-forward the ref

Before the ref update the branch is read again and compared with the tip
from step 1; any difference, including a rewind to an older commit, is a
RefConflict. The update itself is sent with force=False, so a writer that
advances the branch between that read and the PATCH is still rejected by
the remote as a non-fast-forward. A writer that rewinds the branch inside
that same short window cannot be detected through this API.
In every conflict case the branch is left untouched.
Objects created before a failure stay behind as unreferenced garbage.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from gitsync.exceptions import (
    BlobCreateFailed,
    CommitCreateFailed,
    ExternalServiceError,
    RefConflict,
    RefNotFound,
    TreeCreateFailed,
    TreeUnavailable,
)
from .client import GitHubClient, error_reason, is_success
from .models import (
    BlobRef,
    BranchState,
    CommitRef,
    FileFailure,
    FileRecord,
    PushResult,
    RepositoryIdentity,
    TreeRef,
)

logger = logging.getLogger(__name__)

REGULAR_FILE_MODE = "100644"

# Remote answers to a rejected non-forced ref update
REF_CONFLICT_STATUSES = (409, 422)

StepCallback = Callable[[str], Awaitable[None]]


class CommitBuilder:
    """Pushes a file set as one new commit on a branch."""

    def __init__(
        self,
        client: GitHubClient,
        repo: RepositoryIdentity,
        branch: str,
        on_step: Optional[StepCallback] = None,
    ):
        self.client = client
        self.repo = repo
        self.branch = branch
        self.batch_size = client.settings.batch_size
        self._on_step = on_step

    def _context(self, step: str) -> dict:
        return {"repository": self.repo.full_name, "branch": self.branch, "step": step}

    async def _report(self, step: str) -> None:
        if self._on_step:
            await self._on_step(step)

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    async def push(self, files: Sequence[FileRecord], message: str) -> PushResult:
        """
        Run the five-step push.

        Returns:
            PushResult with the new commit, the old and new branch state,
            the uploaded blobs and any files dropped on blob failure.
        """
        # Step 1-2: parent commit and base tree
        await self._report("resolving")
        previous = await self.resolve_branch()
        base_tree = await self.resolve_base_tree(previous.tip_sha)

        # Step 3: blobs
        await self._report("uploading")
        blobs, failures = await self.create_blobs(files)
        if not blobs:
            raise TreeCreateFailed(
                reason=f"none of the {len(files)} files could be uploaded",
                **self._context("create tree"),
            )

        # Step 4: tree
        await self._report("tree")
        tree = await self.create_tree(base_tree, blobs)

        # Step 5: commit + ref
        await self._report("commit")
        commit = await self.create_commit(tree, previous.tip_sha, message)
        await self._report("ref")
        current = await self.update_ref(previous, commit)

        logger.info(
            f"Pushed {len(blobs)} files to {self.repo}@{self.branch}: "
            f"{previous.tip_sha[:7]} -> {current.tip_sha[:7]}"
            + (f" ({len(failures)} skipped)" if failures else ""),
            extra={"repository": self.repo.full_name},
        )
        return PushResult(
            repository=self.repo,
            commit=commit,
            previous=previous,
            current=current,
            blobs=blobs,
            failures=failures,
        )

    # =========================================================================
    # Step 1: Branch Tip
    # =========================================================================

    async def resolve_branch(self) -> BranchState:
        response = await self.client.get_ref(self.repo, self.branch)
        if not is_success(response):
            raise RefNotFound(reason=error_reason(response), **self._context("resolve branch"))

        data = response.json()
        sha = (data.get("object") or {}).get("sha")
        if not sha:
            raise RefNotFound(reason="ref has no target commit", **self._context("resolve branch"))
        return BranchState(branch=self.branch, tip_sha=sha)

    # =========================================================================
    # Step 2: Base Tree
    # =========================================================================

    async def resolve_base_tree(self, commit_sha: str) -> str:
        response = await self.client.get_commit(self.repo, commit_sha)
        if not is_success(response):
            raise TreeUnavailable(reason=error_reason(response), **self._context("resolve base tree"))

        tree_sha = (response.json().get("tree") or {}).get("sha")
        if not tree_sha:
            raise TreeUnavailable(
                reason=f"commit {commit_sha} has no tree", **self._context("resolve base tree")
            )
        return tree_sha

    # =========================================================================
    # Step 3: Blobs
    # =========================================================================

    async def create_blobs(self, files: Sequence[FileRecord]) -> tuple[List[BlobRef], List[FileFailure]]:
        """Upload file contents in batches; failed files are dropped and reported."""
        blobs: List[BlobRef] = []
        failures: List[FileFailure] = []

        for start in range(0, len(files), self.batch_size):
            batch = files[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self._create_blob_safe(f) for f in batch), return_exceptions=True
            )
            # the whole batch has settled; a fatal error aborts the push
            errors = [o for o in outcomes if isinstance(o, BaseException)]
            if errors:
                raise errors[0]
            for outcome in outcomes:
                if isinstance(outcome, FileFailure):
                    failures.append(outcome)
                else:
                    blobs.append(outcome)

        logger.info(f"Created {len(blobs)}/{len(files)} blobs in {self.repo}")
        return blobs, failures

    async def _create_blob_safe(self, file: FileRecord) -> BlobRef | FileFailure:
        try:
            return await self.create_blob(file)
        except BlobCreateFailed as e:
            logger.warning(
                f"Dropping {file.path} from push to {self.repo}@{self.branch}: {e.reason}",
                extra={"repository": self.repo.full_name, "error": e.reason},
            )
            return FileFailure.from_error(e)

    async def create_blob(self, file: FileRecord) -> BlobRef:
        try:
            response = await self.client.create_blob(self.repo, file.content)
        except ExternalServiceError as e:
            raise BlobCreateFailed(file.path, reason=e.message, **self._context("create blob"))

        if not is_success(response):
            raise BlobCreateFailed(file.path, reason=error_reason(response), **self._context("create blob"))

        sha = response.json().get("sha")
        if not sha:
            raise BlobCreateFailed(file.path, reason="no sha in response", **self._context("create blob"))
        return BlobRef(path=file.path, sha=sha)

    # =========================================================================
    # Step 4: Tree
    # =========================================================================

    async def create_tree(self, base_tree: str, blobs: Sequence[BlobRef]) -> TreeRef:
        entries = [
            {"path": blob.path, "mode": REGULAR_FILE_MODE, "type": "blob", "sha": blob.sha}
            for blob in blobs
        ]
        response = await self.client.create_tree(self.repo, base_tree, entries)
        if not is_success(response):
            raise TreeCreateFailed(reason=error_reason(response), **self._context("create tree"))

        sha = response.json().get("sha")
        if not sha:
            raise TreeCreateFailed(reason="no sha in response", **self._context("create tree"))
        return TreeRef(sha=sha)

    # =========================================================================
    # Step 5: Commit + Ref
    # =========================================================================

    async def create_commit(self, tree: TreeRef, parent_sha: str, message: str) -> CommitRef:
        response = await self.client.create_commit(self.repo, message, tree.sha, parent_sha)
        if not is_success(response):
            raise CommitCreateFailed(reason=error_reason(response), **self._context("create commit"))

        sha = response.json().get("sha")
        if not sha:
            raise CommitCreateFailed(reason="no sha in response", **self._context("create commit"))
        return CommitRef(sha=sha, parent_sha=parent_sha, tree_sha=tree.sha, message=message)

    async def update_ref(self, previous: BranchState, commit: CommitRef) -> BranchState:
        """Move the branch from ``previous.tip_sha`` to the new commit."""
        current = await self.resolve_branch()
        if current.tip_sha != previous.tip_sha:
            logger.warning(
                f"Branch {self.repo}@{self.branch} moved during push: "
                f"expected {previous.tip_sha[:7]}, found {current.tip_sha[:7]}",
                extra={"repository": self.repo.full_name},
            )
            raise RefConflict(
                reason=f"branch tip changed from {previous.tip_sha} to {current.tip_sha}",
                **self._context("update ref"),
            )

        response = await self.client.update_ref(self.repo, self.branch, commit.sha)

        if response.status_code in REF_CONFLICT_STATUSES:
            logger.warning(
                f"Ref update rejected for {self.repo}@{self.branch} "
                f"(expected tip {previous.tip_sha[:7]}): {error_reason(response)}",
                extra={"repository": self.repo.full_name},
            )
            raise RefConflict(reason=error_reason(response), **self._context("update ref"))
        if response.status_code == 404:
            raise RefNotFound(reason=error_reason(response), **self._context("update ref"))
        if not is_success(response):
            raise CommitCreateFailed(reason=error_reason(response), **self._context("update ref"))

        return BranchState(branch=self.branch, tip_sha=commit.sha)
