"""
FastAPI dependencies shared by the routers.
"""

from typing import Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from gitsync.config import SyncSettings, get_settings

security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    GitHub token from the Authorization header (Bearer token), if any.
    A token in the request body takes precedence.
    """
    if not credentials:
        return None
    return credentials.credentials


def get_sync_settings() -> SyncSettings:
    return get_settings()


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for GitHub calls; None means the network. Overridden in tests."""
    return None
