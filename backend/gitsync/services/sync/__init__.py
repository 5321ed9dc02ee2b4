"""
Repository sync service module.

Provides clean separation of concerns for import/push synchronization:
- ProgressReporter: Abstract progress reporting (SSE, WebSocket, etc.)
- RepositorySyncService: Import and push entry points
- SSEProgressReporter: SSE implementation of progress reporting
"""

from .progress import ProgressReporter, SyncPhase
from .repository_sync import RepositorySyncService
from .sse_reporter import SSEProgressReporter

__all__ = [
    "ProgressReporter",
    "SyncPhase",
    "RepositorySyncService",
    "SSEProgressReporter",
]
