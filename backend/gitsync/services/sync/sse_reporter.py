"""
SSE (Server-Sent Events) progress reporter implementation.

Bridges the sync service with FastAPI's StreamingResponse.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Optional

from .progress import SyncPhase


class SSEProgressReporter:
    """
    Progress reporter that pushes events to an asyncio.Queue for SSE streaming.

    Usage:
        reporter = SSEProgressReporter()
        sync_service = RepositorySyncService(..., progress=reporter)

        # In the StreamingResponse generator:
        async for chunk in reporter.stream():
            yield chunk
    """

    def __init__(self, queue: Optional[asyncio.Queue] = None):
        self.queue = queue or asyncio.Queue()

    async def report_phase(self, phase: SyncPhase, **data: Any) -> None:
        """Report a phase transition."""
        await self.queue.put({
            "event": "progress",
            "data": {"phase": phase.value, **data},
        })

    async def report_error(self, error: dict) -> None:
        """Report an error."""
        await self.queue.put({
            "event": "error",
            "data": error,
        })

    async def report_done(self, result: dict) -> None:
        """Report completion."""
        await self.queue.put({
            "event": "done",
            "data": result,
        })

    async def signal_end(self) -> None:
        """Signal end of stream."""
        await self.queue.put(None)

    async def stream(self) -> AsyncIterator[str]:
        """Yield queued events as SSE frames until signal_end()."""
        while True:
            item = await self.queue.get()
            if item is None:
                break
            yield f"event: {item['event']}\ndata: {json.dumps(item['data'])}\n\n"
