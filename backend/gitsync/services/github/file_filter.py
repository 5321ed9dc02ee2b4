"""
Import eligibility rules for tree entries.

Only text/source files small enough to hold in memory are imported.
Lockfiles, build output and VCS metadata are skipped wherever they appear
in the tree.
"""

from typing import FrozenSet, Optional

from .models import ObjectKind, TreeEntry

EXTENSION_ALLOWLIST: FrozenSet[str] = frozenset({
    "ts", "tsx", "js", "jsx", "vue", "html", "css", "json", "md",
})

IGNORED_NAMES: FrozenSet[str] = frozenset({
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "dist", "build", "node_modules", ".git",
})

MAX_FILE_BYTES = 100_000

DEFAULT_LANGUAGE = "txt"


def file_extension(path: str) -> Optional[str]:
    """Text after the final '.' of the last path segment, or None."""
    filename = path.rsplit("/", 1)[-1]
    if "." not in filename:
        return None
    return filename.rsplit(".", 1)[-1]


def language_for_path(path: str) -> str:
    return file_extension(path) or DEFAULT_LANGUAGE


def is_ignored_path(path: str) -> bool:
    return path in IGNORED_NAMES or any(part in IGNORED_NAMES for part in path.split("/"))


def is_eligible(entry: TreeEntry, max_bytes: int = MAX_FILE_BYTES) -> bool:
    """
    Decide whether a tree entry should be imported.

    Entries without a reported size are never rejected on size grounds.
    """
    if entry.kind != ObjectKind.BLOB:
        return False

    if is_ignored_path(entry.path):
        return False

    if file_extension(entry.path) not in EXTENSION_ALLOWLIST:
        return False

    if entry.size is not None and entry.size > max_bytes:
        return False

    return True
