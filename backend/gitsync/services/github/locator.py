"""
Repository reference parser.

Turns a user-supplied reference (a repository URL or ``owner/name``
shorthand) into a RepositoryIdentity. No network access.
"""

import logging
from typing import Optional
from urllib.parse import urlparse, unquote

from .models import RepositoryIdentity

logger = logging.getLogger(__name__)


def _clean_name(name: str) -> str:
    return name.removesuffix(".git")


def parse_repo_reference(reference: str) -> Optional[RepositoryIdentity]:
    """
    Parse a repository reference.

    Accepts a full URL whose path has at least two non-empty segments
    (``https://github.com/owner/repo/tree/main`` -> owner, repo) or a bare
    ``owner/repo`` string.

    Args:
        reference: URL or shorthand entered by the user

    Returns:
        RepositoryIdentity, or None if the reference cannot be parsed
    """
    if not reference:
        return None

    reference = unquote(reference.strip())
    parsed = urlparse(reference)

    if parsed.scheme and parsed.netloc:
        # Split path: /owner/repo/...
        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) < 2:
            logger.debug(f"URL reference has fewer than two path segments: {reference!r}")
            return None
        name = _clean_name(parts[1])
        if not name:
            return None
        return RepositoryIdentity(owner=parts[0], name=name)

    # Not a URL: try "owner/repo"
    parts = reference.split("/")
    if len(parts) == 2 and all(parts):
        name = _clean_name(parts[1])
        if name:
            return RepositoryIdentity(owner=parts[0], name=name)

    logger.debug(f"Unparsable repository reference: {reference!r}")
    return None
