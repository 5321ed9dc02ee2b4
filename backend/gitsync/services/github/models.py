"""
Records passed between the sync components.

Each remote object is addressed by the content hash returned from its
creation call; the hash is threaded explicitly into the next call. Nothing
here holds references to other objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class ObjectKind(str, Enum):
    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"


@dataclass(frozen=True)
class RepositoryIdentity:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a recursive tree listing. Lives for a single import."""

    path: str
    kind: ObjectKind
    sha: str
    url: str = ""
    size: Optional[int] = None

    @classmethod
    def from_api(cls, item: dict) -> "TreeEntry":
        try:
            kind = ObjectKind(item.get("type"))
        except ValueError:
            # submodules show up as "commit" entries; anything unknown is treated alike
            kind = ObjectKind.COMMIT
        return cls(
            path=item["path"],
            kind=kind,
            sha=item["sha"],
            url=item.get("url") or "",
            size=item.get("size"),
        )


@dataclass(frozen=True)
class FileRecord:
    path: str
    content: str
    language_tag: str = "txt"


@dataclass(frozen=True)
class BlobRef:
    path: str
    sha: str


@dataclass(frozen=True)
class TreeRef:
    sha: str


@dataclass(frozen=True)
class CommitRef:
    sha: str
    parent_sha: str
    tree_sha: str
    message: str

    @property
    def parents(self) -> Tuple[str]:
        # linear history: exactly one parent
        return (self.parent_sha,)


@dataclass(frozen=True)
class BranchState:
    branch: str
    tip_sha: str


@dataclass(frozen=True)
class FileFailure:
    """A recoverable per-file failure, kept for the caller to display."""

    path: str
    error_code: str
    reason: str

    @classmethod
    def from_error(cls, error) -> "FileFailure":
        return cls(path=error.path, error_code=error.error_code, reason=error.message)


@dataclass
class FetchResult:
    files: List[FileRecord] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)


@dataclass
class ImportResult:
    repo_name: str
    repository: RepositoryIdentity
    branch: str
    files: List[FileRecord] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)


@dataclass
class PushResult:
    repository: RepositoryIdentity
    commit: CommitRef
    previous: BranchState
    current: BranchState
    blobs: List[BlobRef] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)

    @property
    def pushed_paths(self) -> List[str]:
        return [blob.path for blob in self.blobs]
