"""
GitHub object-graph access for the sync engine.

- parse_repo_reference: URL / owner/name -> RepositoryIdentity
- is_eligible: import filter for tree entries
- GitHubClient: async REST client (httpx)
- ObjectFetcher: tree listing + batched blob download
- CommitBuilder: blobs -> tree -> commit -> fast-forward ref
"""

from .client import GitHubClient
from .commit_builder import CommitBuilder
from .fetcher import ObjectFetcher
from .file_filter import is_eligible, language_for_path
from .locator import parse_repo_reference
from .models import (
    BlobRef,
    BranchState,
    CommitRef,
    FetchResult,
    FileFailure,
    FileRecord,
    ImportResult,
    ObjectKind,
    PushResult,
    RepositoryIdentity,
    TreeEntry,
    TreeRef,
)

__all__ = [
    "GitHubClient",
    "CommitBuilder",
    "ObjectFetcher",
    "is_eligible",
    "language_for_path",
    "parse_repo_reference",
    "BlobRef",
    "BranchState",
    "CommitRef",
    "FetchResult",
    "FileFailure",
    "FileRecord",
    "ImportResult",
    "ObjectKind",
    "PushResult",
    "RepositoryIdentity",
    "TreeEntry",
    "TreeRef",
]
