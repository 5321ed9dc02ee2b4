"""
Custom exception classes for the sync engine.

These exceptions are caught by global exception handlers in exception_handlers.py,
providing consistent error responses across all API endpoints.

Usage:
    from gitsync.exceptions import RefConflict, ValidationError

    # In services - just raise, the handler builds the response
    raise ValidationError("Commit message is required")   # 400
    raise RefConflict(repository, "main", "update ref")   # 409
"""

from typing import Any, Dict


class AppException(Exception):
    """
    Base exception class for application-level errors.

    All custom exceptions should inherit from this class.
    The global exception handler will catch these and return
    appropriate HTTP responses.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code to return
        error_code: Machine-readable error code for client handling
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or f"ERR_{status_code}"
        super().__init__(message)


class ValidationError(AppException):
    """
    Validation error (400).

    Usage:
        raise ValidationError("At least one file is required")
    """

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
        )


class ConfigurationError(AppException):
    """
    Configuration missing or invalid (400).

    Usage:
        raise ConfigurationError("GitHub", "token")  # "Please configure GitHub token first"
    """

    def __init__(self, config_name: str, config_type: str = "configuration"):
        super().__init__(
            message=f"Please configure {config_name} {config_type} first",
            status_code=400,
            error_code="CONFIGURATION_MISSING",
        )


class AuthenticationError(AppException):
    """Credential rejected by an external service (401)."""

    def __init__(self, credential: str = "credential"):
        super().__init__(
            message=f"Invalid or expired {credential}",
            status_code=401,
            error_code="AUTHENTICATION_FAILED",
        )


class RateLimitError(AppException):
    """External service rate limit exhausted (429)."""

    def __init__(self, service: str = "External service"):
        super().__init__(
            message=f"{service} rate limit exceeded",
            status_code=429,
            error_code="RATE_LIMITED",
        )


class ExternalServiceError(AppException):
    """
    External service error (502).

    Usage:
        raise ExternalServiceError("GitHub API", "status 500")
        raise ExternalServiceError("GitHub API", "timeout")
    """

    def __init__(self, service: str, reason: str | None = None):
        message = f"{service} error"
        if reason:
            message = f"{service} error: {reason}"
        super().__init__(
            message=message,
            status_code=502,
            error_code="EXTERNAL_SERVICE_ERROR",
        )


# =============================================================================
# Sync Errors
# =============================================================================

class SyncError(AppException):
    """
    Base class for import/push failures.

    Carries the repository, branch and failing step so callers can
    retry or report. ``repository`` is the ``owner/name`` string.
    """

    status_code = 502
    error_code = "SYNC_ERROR"

    def __init__(
        self,
        repository: str | None = None,
        branch: str | None = None,
        step: str | None = None,
        reason: str | None = None,
        status_code: int | None = None,
    ):
        self.repository = repository
        self.branch = branch
        self.step = step
        self.reason = reason
        super().__init__(
            message=self._build_message(),
            status_code=status_code or type(self).status_code,
            error_code=type(self).error_code,
        )

    def describe(self) -> str:
        """Short description of the failure, without context."""
        return "Sync failed"

    def _build_message(self) -> str:
        message = self.describe()
        context = []
        if self.repository:
            context.append(f"repository={self.repository}")
        if self.branch:
            context.append(f"branch={self.branch}")
        if self.step:
            context.append(f"step={self.step}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        if self.reason:
            message = f"{message}: {self.reason}"
        return message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "repository": self.repository,
            "branch": self.branch,
            "step": self.step,
        }


class InvalidReference(SyncError):
    status_code = 400
    error_code = "INVALID_REFERENCE"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(step="parse reference", reason=repr(reference))

    def describe(self) -> str:
        return "Invalid repository reference. Use https://github.com/owner/repo or owner/repo"


class RepositoryNotFound(SyncError):
    status_code = 404
    error_code = "REPOSITORY_NOT_FOUND"

    def describe(self) -> str:
        return "Repository not found or access denied"


class TreeUnavailable(SyncError):
    error_code = "TREE_UNAVAILABLE"

    def describe(self) -> str:
        return "Repository tree is unavailable"


class NoEligibleFiles(SyncError):
    status_code = 422
    error_code = "NO_ELIGIBLE_FILES"

    def describe(self) -> str:
        return "No supported files found in this repository"


class RefNotFound(SyncError):
    status_code = 404
    error_code = "REF_NOT_FOUND"

    def describe(self) -> str:
        return "Branch not found"


class TreeCreateFailed(SyncError):
    error_code = "TREE_CREATE_FAILED"

    def describe(self) -> str:
        return "Failed to create tree"


class CommitCreateFailed(SyncError):
    error_code = "COMMIT_CREATE_FAILED"

    def describe(self) -> str:
        return "Failed to create commit"


class RefConflict(SyncError):
    status_code = 409
    error_code = "REF_CONFLICT"

    def describe(self) -> str:
        return "Branch was updated by another writer; re-run the push against the new tip"


# =============================================================================
# Per-file Errors (recovered at the batch boundary)
# =============================================================================

class FileSyncError(SyncError):
    """
    A failure scoped to one file.

    Never escapes an import or push on its own: the batch runner turns
    it into a FileFailure record and carries on with the other files.
    """

    def __init__(self, path: str, reason: str | None = None, **context: Any):
        self.path = path
        super().__init__(reason=reason, **context)

    def _build_message(self) -> str:
        message = f"{self.describe()}: {self.path}"
        if self.reason:
            message = f"{message} ({self.reason})"
        return message


class BlobDecodeFailed(FileSyncError):
    error_code = "BLOB_DECODE_FAILED"

    def describe(self) -> str:
        return "Failed to read file content"


class BlobCreateFailed(FileSyncError):
    error_code = "BLOB_CREATE_FAILED"

    def describe(self) -> str:
        return "Failed to upload file content"
