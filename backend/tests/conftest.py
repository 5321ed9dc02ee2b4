from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND = Path(__file__).resolve().parents[1]
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

from gitsync.config import SyncSettings  # noqa: E402

from github_stub import API_BASE, TOKEN, GitHubStub  # noqa: E402



@pytest.fixture(scope="session")
def anyio_backend():
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(api_base=API_BASE, batch_size=5, max_file_bytes=100_000)


@pytest.fixture
def stub() -> GitHubStub:
    return GitHubStub(tokens={TOKEN})


@pytest.fixture
def site_repo(stub: GitHubStub) -> str:
    """acme/site on main with index.html and style.css; returns the tip sha."""
    return stub.seed_repo(
        "acme",
        "site",
        {
            "index.html": "<html><body>Hello</body></html>\n",
            "style.css": "body { color: black; }\n",
        },
    )
