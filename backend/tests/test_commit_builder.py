import httpx
import pytest

from gitsync.exceptions import (
    AuthenticationError,
    CommitCreateFailed,
    RateLimitError,
    RefConflict,
    RefNotFound,
    TreeCreateFailed,
    TreeUnavailable,
)
from gitsync.services.github import CommitBuilder, FileRecord, GitHubClient, RepositoryIdentity

from github_stub import TOKEN

SITE = RepositoryIdentity("acme", "site")


def files(**contents):
    return [FileRecord(path=path.replace("__", "."), content=text) for path, text in contents.items()]


async def push(stub, settings, records, message="update", branch="main", token=TOKEN):
    async with GitHubClient(token, settings=settings, transport=stub.transport) as client:
        return await CommitBuilder(client, SITE, branch).push(records, message)


@pytest.mark.anyio
async def test_push_creates_linear_commit(stub, settings, site_repo):
    result = await push(stub, settings, files(index__html="<h1>new</h1>"), message="edit index")

    new_tip = stub.tip("acme/site")
    assert result.current.tip_sha == new_tip
    assert result.previous.tip_sha == site_repo
    assert result.commit.parent_sha == site_repo
    assert result.commit.parents == (site_repo,)
    assert stub.commits[new_tip]["parents"] == [site_repo]
    assert stub.commits[new_tip]["message"] == "edit index"
    assert stub.files_at(new_tip) == {
        "index.html": "<h1>new</h1>",
        "style.css": "body { color: black; }\n",
    }


@pytest.mark.anyio
async def test_push_layers_new_paths_on_base_tree(stub, settings, site_repo):
    await push(stub, settings, files(**{"src/app__js": "console.log(1)"}))

    assert stub.files_at(stub.tip("acme/site")) == {
        "index.html": "<html><body>Hello</body></html>\n",
        "style.css": "body { color: black; }\n",
        "src/app.js": "console.log(1)",
    }


@pytest.mark.anyio
async def test_push_sends_raw_content_and_file_mode(stub, settings, site_repo):
    captured = []
    original = stub._route

    def spy(repo, method, rest, body, request):
        if method == "POST":
            captured.append((rest, body))
        return original(repo, method, rest, body, request)

    stub._route = spy
    await push(stub, settings, files(index__html="<p>ü</p>"))

    blob_body = next(body for rest, body in captured if rest == "/git/blobs")
    assert blob_body == {"content": "<p>ü</p>", "encoding": "utf-8"}
    tree_body = next(body for rest, body in captured if rest == "/git/trees")
    assert tree_body["base_tree"] == stub.commits[site_repo]["tree"]
    assert tree_body["tree"][0]["mode"] == "100644"
    assert tree_body["tree"][0]["type"] == "blob"
    commit_body = next(body for rest, body in captured if rest == "/git/commits")
    assert commit_body["parents"] == [site_repo]


@pytest.mark.anyio
async def test_blob_hash_is_content_addressed(stub, settings, site_repo):
    async with GitHubClient(TOKEN, settings=settings, transport=stub.transport) as client:
        builder = CommitBuilder(client, SITE, "main")
        first = await builder.create_blob(FileRecord("a.js", "same content"))
        second = await builder.create_blob(FileRecord("b.js", "same content"))
        other = await builder.create_blob(FileRecord("c.js", "other content"))

    assert first.sha == second.sha
    assert first.sha != other.sha


@pytest.mark.anyio
async def test_blob_failure_drops_only_that_file(stub, settings, site_repo):
    records = [FileRecord(f"page{i}.html", f"<p>{i}</p>") for i in range(5)]
    stub.fail_blob_contents.add("<p>3</p>")

    result = await push(stub, settings, records)

    assert sorted(result.pushed_paths) == ["page0.html", "page1.html", "page2.html", "page4.html"]
    assert len(result.failures) == 1
    assert result.failures[0].path == "page3.html"
    assert result.failures[0].error_code == "BLOB_CREATE_FAILED"
    tree = stub.files_at(stub.tip("acme/site"))
    assert "page3.html" not in tree
    assert tree["page4.html"] == "<p>4</p>"


@pytest.mark.anyio
async def test_all_blobs_failing_aborts_before_tree(stub, settings, site_repo):
    stub.fail_blob_contents.update({"a", "b"})

    with pytest.raises(TreeCreateFailed):
        await push(stub, settings, [FileRecord("a.js", "a"), FileRecord("b.js", "b")])

    assert stub.tip("acme/site") == site_repo
    assert not any(rest == "/repos/acme/site/git/trees" for _, rest in stub.requests)


@pytest.mark.anyio
async def test_blob_uploads_are_batched(stub, settings, site_repo):
    records = [FileRecord(f"f{i}.js", f"// {i}") for i in range(11)]
    stub.max_in_flight = 0

    result = await push(stub, settings, records)

    assert len(result.blobs) == 11
    assert stub.max_in_flight == settings.batch_size


@pytest.mark.anyio
async def test_missing_branch_is_ref_not_found(stub, settings, site_repo):
    with pytest.raises(RefNotFound) as excinfo:
        await push(stub, settings, files(a__js="x"), branch="feature")

    assert excinfo.value.branch == "feature"
    assert excinfo.value.step == "resolve branch"
    assert not any(method == "POST" for method, _ in stub.requests)


@pytest.mark.anyio
async def test_unreadable_tip_commit_is_tree_unavailable(stub, settings, site_repo):
    stub.status_overrides[("GET", f"/repos/acme/site/git/commits/{site_repo}")] = 500

    with pytest.raises(TreeUnavailable) as excinfo:
        await push(stub, settings, files(a__js="x"))

    assert excinfo.value.step == "resolve base tree"


@pytest.mark.anyio
async def test_malformed_path_is_tree_create_failed(stub, settings, site_repo):
    with pytest.raises(TreeCreateFailed) as excinfo:
        await push(stub, settings, [FileRecord("/abs/path.js", "x")])

    assert "malformed" in excinfo.value.message
    assert stub.tip("acme/site") == site_repo


@pytest.mark.anyio
async def test_commit_rejection_is_commit_create_failed(stub, settings, site_repo):
    stub.status_overrides[("POST", "/repos/acme/site/git/commits")] = 500

    with pytest.raises(CommitCreateFailed):
        await push(stub, settings, files(a__js="x"))

    assert stub.tip("acme/site") == site_repo


@pytest.mark.anyio
async def test_concurrent_writer_causes_ref_conflict(stub, settings, site_repo):
    external = {}

    def other_writer(repo, branch):
        external["sha"] = stub.advance_branch(repo.full_name, branch, {"index.html": "theirs"})

    stub.before_ref_update = other_writer

    with pytest.raises(RefConflict) as excinfo:
        await push(stub, settings, files(index__html="ours"))

    assert excinfo.value.status_code == 409
    assert excinfo.value.step == "update ref"
    assert stub.tip("acme/site") == external["sha"]
    assert stub.files_at(stub.tip("acme/site"))["index.html"] == "theirs"
    # exactly one ref update, no automatic retry
    assert sum(1 for method, _ in stub.requests if method == "PATCH") == 1


@pytest.mark.anyio
async def test_push_without_valid_token(stub, settings, site_repo):
    with pytest.raises(AuthenticationError):
        await push(stub, settings, files(a__js="x"), token="bad-token")


@pytest.mark.anyio
async def test_branch_rewound_during_push_is_ref_conflict(stub, settings, site_repo):
    advanced = stub.advance_branch("acme/site", "main", {"index.html": "second"})
    reads = []

    def rewind_after_first_read(repo, branch):
        reads.append(branch)
        if len(reads) == 2:
            repo.refs[branch] = site_repo

    stub.before_ref_read = rewind_after_first_read

    with pytest.raises(RefConflict) as excinfo:
        await push(stub, settings, files(index__html="ours"))

    assert excinfo.value.step == "update ref"
    assert excinfo.value.reason == f"branch tip changed from {advanced} to {site_repo}"
    assert stub.tip("acme/site") == site_repo
    assert not any(method == "PATCH" for method, _ in stub.requests)


@pytest.mark.anyio
async def test_fatal_error_in_blob_batch_lets_siblings_settle(stub, settings, site_repo):
    original = stub._route

    def rate_limited(repo, method, rest, body, request):
        if rest == "/git/blobs" and body.get("content") == "<p>2</p>":
            return httpx.Response(429, json={"message": "API rate limit exceeded"})
        return original(repo, method, rest, body, request)

    stub._route = rate_limited
    records = [FileRecord(f"page{i}.html", f"<p>{i}</p>") for i in range(5)]

    with pytest.raises(RateLimitError):
        await push(stub, settings, records)

    assert stub.in_flight == 0
    assert sum(1 for method, rest in stub.requests if rest.endswith("/git/blobs")) == 5
    assert not any(rest.endswith("/git/trees") for method, rest in stub.requests if method == "POST")
    assert stub.tip("acme/site") == site_repo
