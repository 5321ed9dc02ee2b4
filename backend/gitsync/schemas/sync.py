"""
Pydantic schemas for repository import/push.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from gitsync.services.github import FileRecord, ImportResult, PushResult, RepositoryIdentity


class FileModel(BaseModel):
    """One project file as exchanged with the surrounding application."""
    path: str = Field(..., min_length=1)
    content: str
    language_tag: str = "txt"

    class Config:
        from_attributes = True

    def to_record(self) -> FileRecord:
        return FileRecord(path=self.path, content=self.content, language_tag=self.language_tag)


class FileFailureModel(BaseModel):
    path: str
    error_code: str
    reason: str

    class Config:
        from_attributes = True


class RepositoryModel(BaseModel):
    owner: str
    name: str

    class Config:
        from_attributes = True


class ImportRequest(BaseModel):
    """Request model for importing a repository."""
    reference: str = Field(..., description="https://github.com/owner/repo or owner/repo")
    token: Optional[str] = None
    branch: Optional[str] = None
    strict: bool = False


class ImportResponse(BaseModel):
    """Response model for an import."""
    repo_name: str
    repository: RepositoryModel
    branch: str
    files: List[FileModel]
    failures: List[FileFailureModel] = []

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResponse":
        return cls.model_validate(result, from_attributes=True)


class PushRequest(BaseModel):
    """Request model for pushing a file set as one commit."""
    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    token: Optional[str] = None
    branch: Optional[str] = None
    message: str
    files: List[FileModel]

    @property
    def repository(self) -> RepositoryIdentity:
        return RepositoryIdentity(owner=self.owner, name=self.name)

    def to_records(self) -> List[FileRecord]:
        return [f.to_record() for f in self.files]


class PushResponse(BaseModel):
    """Response model for a push."""
    repository: RepositoryModel
    branch: str
    commit_sha: str
    parent_sha: str
    tree_sha: str
    pushed_paths: List[str]
    failures: List[FileFailureModel] = []

    @classmethod
    def from_result(cls, result: PushResult) -> "PushResponse":
        return cls(
            repository=RepositoryModel.model_validate(result.repository, from_attributes=True),
            branch=result.current.branch,
            commit_sha=result.commit.sha,
            parent_sha=result.commit.parent_sha,
            tree_sha=result.commit.tree_sha,
            pushed_paths=result.pushed_paths,
            failures=[
                FileFailureModel.model_validate(f, from_attributes=True) for f in result.failures
            ],
        )


class ValidateTokenRequest(BaseModel):
    """Request model for token validation."""
    token: str


class ValidateTokenResponse(BaseModel):
    """Response model for token validation."""
    valid: bool
    username: str | None = None
    error: str | None = None
