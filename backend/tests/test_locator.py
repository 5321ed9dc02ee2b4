import pytest

from gitsync.services.github import RepositoryIdentity, parse_repo_reference


@pytest.mark.parametrize(
    "reference",
    [
        "https://github.com/acme/repo",
        "https://github.com/acme/repo/",
        "https://github.com/acme/repo/tree/main/src",
        "https://github.com/acme/repo.git",
        "https://git.example.org/acme/repo",
        "acme/repo",
        "  acme/repo  ",
    ],
)
def test_parse_valid_references(reference):
    assert parse_repo_reference(reference) == RepositoryIdentity(owner="acme", name="repo")


@pytest.mark.parametrize(
    "reference",
    [
        "",
        "acme",
        "acme/",
        "/repo",
        "acme/repo/extra",
        "https://github.com/acme",
        "https://github.com/",
        "github.com/acme/repo",
    ],
)
def test_parse_invalid_references(reference):
    assert parse_repo_reference(reference) is None


def test_identity_full_name():
    identity = parse_repo_reference("https://github.com/acme/site")
    assert identity.full_name == "acme/site"
    assert str(identity) == "acme/site"
