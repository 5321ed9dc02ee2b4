import pytest

from gitsync.services.github import ObjectKind, TreeEntry, is_eligible, language_for_path
from gitsync.services.github.file_filter import IGNORED_NAMES, MAX_FILE_BYTES, file_extension


def blob(path, size=10):
    return TreeEntry(path=path, kind=ObjectKind.BLOB, sha="0" * 40, url="", size=size)


@pytest.mark.parametrize(
    "path",
    ["index.html", "src/App.tsx", "src/components/Button.jsx", "README.md", "a/b/c/data.json", "x.vue"],
)
def test_source_files_are_eligible(path):
    assert is_eligible(blob(path))


def test_tree_entries_are_rejected():
    entry = TreeEntry(path="src", kind=ObjectKind.TREE, sha="0" * 40)
    assert not is_eligible(entry)


@pytest.mark.parametrize("name", sorted(IGNORED_NAMES))
def test_ignored_names_rejected_anywhere(name):
    assert not is_eligible(blob(name))
    assert not is_eligible(blob(f"{name}/index.js"))
    assert not is_eligible(blob(f"packages/web/{name}/main.css"))


def test_ignored_lockfile_with_allowed_extension():
    # package-lock.json has an allowed extension but is still skipped
    assert not is_eligible(blob("package-lock.json"))
    assert not is_eligible(blob("apps/web/package-lock.json"))


def test_ignored_name_must_match_whole_segment():
    assert is_eligible(blob("builder/index.js"))
    assert is_eligible(blob("src/dist.js"))


@pytest.mark.parametrize("path", ["logo.png", "Makefile", "script.py", "archive.tar.gz", ".env"])
def test_unlisted_extensions_rejected(path):
    assert not is_eligible(blob(path))


def test_size_ceiling():
    assert is_eligible(blob("big.js", size=MAX_FILE_BYTES))
    assert not is_eligible(blob("big.js", size=MAX_FILE_BYTES + 1))
    assert not is_eligible(blob("big.js", size=50), max_bytes=10)


def test_missing_size_is_not_rejected():
    assert is_eligible(blob("unknown.js", size=None))


def test_language_tag_from_extension():
    assert language_for_path("src/App.tsx") == "tsx"
    assert language_for_path("styles/site.css") == "css"
    assert language_for_path("LICENSE") == "txt"
    assert file_extension("v1.2/LICENSE") is None
