"""Tests for the seven-step branch replacement."""

import base64

import pytest

from core.models import CommitAuthor
from github_uploader import BlobUploadError, GitHubAPIError, GitHubClient, LocalFile, TreeCommitter


def _files(*names):
    return [
        LocalFile(local_path=name, repo_path=name, content=f"content of {name}".encode("utf-8"))
        for name in names
    ]


@pytest.fixture()
def client(github_config, fake_session):
    return GitHubClient(github_config, session=fake_session)


def test_commit_files_runs_full_sequence(client, fake_session):
    committer = TreeCommitter(client, branch="main")

    result = committer.commit_files(_files("b.txt", "a.txt", "c.txt"), "replace history")

    methods = [(method, path) for method, path, _, _ in fake_session.calls]
    assert methods[0] == ("GET", "git/ref/heads/main")
    assert methods[1:4] == [("POST", "git/blobs")] * 3
    assert methods[4:] == [
        ("POST", "git/trees"),
        ("POST", "git/commits"),
        ("PATCH", "git/refs/heads/main"),
    ]

    assert result.ref == "refs/heads/main"
    assert result.previous_sha == "old-head"
    assert result.tree_sha == "tree-sha"
    assert result.commit_sha == "commit-sha"
    assert result.html_url == "https://github.com/octo/demo/commit/commit-sha"
    assert result.elapsed_seconds >= 0
    assert [entry.path for entry in result.entries] == ["a.txt", "b.txt", "c.txt"]


def test_tree_is_built_from_empty_base_and_commit_has_no_parents(client, fake_session):
    TreeCommitter(client, branch="main").commit_files(_files("README.md"), "init")

    tree_payload = fake_session.calls_for("POST", "git/trees")[0][2]
    assert "base_tree" not in tree_payload
    entry = tree_payload["tree"][0]
    assert entry["path"] == "README.md"
    assert entry["mode"] == "100644"
    assert entry["type"] == "blob"
    assert entry["sha"].startswith("blob-")

    commit_payload = fake_session.calls_for("POST", "git/commits")[0][2]
    assert commit_payload["parents"] == []
    assert commit_payload["tree"] == "tree-sha"
    assert commit_payload["message"] == "init"
    assert "author" not in commit_payload

    ref_payload = fake_session.calls_for("PATCH", "git/refs/heads/main")[0][2]
    assert ref_payload == {"sha": "commit-sha", "force": True}


def test_blob_entries_match_uploaded_content(client, fake_session):
    result = TreeCommitter(client, branch="main").commit_files(_files("x.txt", "y.txt"), "msg")

    blob_contents = [payload["content"] for _, _, payload, _ in fake_session.calls_for("POST", "git/blobs")]
    assert sorted(blob_contents) == ["content of x.txt", "content of y.txt"]
    assert len({entry.sha for entry in result.entries}) == 2


def test_binary_file_uploaded_as_base64(client, fake_session):
    raw = b"\x00\xff\xfe binary"
    files = [LocalFile(local_path="bin.dat", repo_path="bin.dat", content=raw)]

    TreeCommitter(client, branch="main").commit_files(files, "msg")

    payload = fake_session.calls_for("POST", "git/blobs")[0][2]
    assert payload["encoding"] == "base64"
    assert base64.b64decode(payload["content"]) == raw


def test_blob_failure_aborts_before_tree(client, fake_session):
    fake_session.fail_blobs["content of bad.txt"] = (422, "Validation Failed")

    with pytest.raises(BlobUploadError) as excinfo:
        TreeCommitter(client, branch="main").commit_files(_files("ok1.txt", "bad.txt", "ok2.txt"), "msg")

    assert excinfo.value.path == "bad.txt"
    assert excinfo.value.status_code == 422
    assert str(excinfo.value) == "blob error for bad.txt: CreateBlob: Validation Failed"
    # every upload still ran to completion
    assert len(fake_session.calls_for("POST", "git/blobs")) == 3
    assert fake_session.calls_for("POST", "git/trees") == []
    assert fake_session.calls_for("POST", "git/commits") == []
    assert fake_session.calls_for("PATCH", "git/refs/heads/main") == []


def test_get_ref_failure_stops_everything(client, fake_session):
    fake_session.fail_ops[("GET", "git/ref/heads/main")] = (404, "Not Found")

    with pytest.raises(GitHubAPIError, match="GetRef"):
        TreeCommitter(client, branch="main").commit_files(_files("a.txt"), "msg")

    assert len(fake_session.calls) == 1


def test_update_ref_failure_propagates(client, fake_session):
    fake_session.fail_ops[("PATCH", "git/refs/heads/main")] = (422, "Reference update failed")

    with pytest.raises(GitHubAPIError) as excinfo:
        TreeCommitter(client, branch="main").commit_files(_files("a.txt"), "msg")

    assert excinfo.value.operation == "UpdateRef"
    assert not isinstance(excinfo.value, BlobUploadError)


def test_create_tree_failure_stops_before_commit(client, fake_session):
    fake_session.fail_ops[("POST", "git/trees")] = (422, "GitRPC::BadObjectState")

    with pytest.raises(GitHubAPIError) as excinfo:
        TreeCommitter(client, branch="main").commit_files(_files("a.txt", "b.txt"), "msg")

    assert excinfo.value.operation == "CreateTree"
    assert excinfo.value.status_code == 422
    assert len(fake_session.calls_for("POST", "git/blobs")) == 2
    assert fake_session.calls_for("POST", "git/commits") == []
    assert fake_session.calls_for("PATCH", "git/refs/heads/main") == []


def test_create_commit_failure_leaves_ref_untouched(client, fake_session):
    fake_session.fail_ops[("POST", "git/commits")] = (500, "Server Error")

    with pytest.raises(GitHubAPIError) as excinfo:
        TreeCommitter(client, branch="main").commit_files(_files("a.txt"), "msg")

    assert excinfo.value.operation == "CreateCommit"
    assert str(excinfo.value) == "CreateCommit: Server Error"
    assert len(fake_session.calls_for("POST", "git/trees")) == 1
    assert fake_session.calls_for("PATCH", "git/refs/heads/main") == []


def test_max_workers_bounds_concurrent_uploads(client, fake_session):
    fake_session.blob_delay = 0.05

    TreeCommitter(client, branch="main", max_workers=2).commit_files(
        _files("1.txt", "2.txt", "3.txt", "4.txt", "5.txt"), "msg"
    )

    assert len(fake_session.calls_for("POST", "git/blobs")) == 5
    assert fake_session.max_active_blobs <= 2


def test_default_fan_out_uploads_in_parallel(client, fake_session):
    fake_session.blob_delay = 0.1

    TreeCommitter(client, branch="main").commit_files(_files("1.txt", "2.txt", "3.txt"), "msg")

    assert fake_session.max_active_blobs > 1


def test_author_is_sent_when_configured(client, fake_session):
    committer = TreeCommitter(client, branch="main", author=CommitAuthor("Bot", "bot@example.com"))

    committer.commit_files(_files("a.txt"), "msg")

    payload = fake_session.calls_for("POST", "git/commits")[0][2]
    assert payload["author"] == {"name": "Bot", "email": "bot@example.com"}


def test_empty_and_duplicate_inputs_make_no_requests(client, fake_session):
    committer = TreeCommitter(client, branch="main")

    with pytest.raises(ValueError):
        committer.commit_files([], "msg")
    with pytest.raises(ValueError):
        committer.commit_files(_files("a.txt", "a.txt"), "msg")

    assert fake_session.calls == []


def test_invalid_committer_arguments(client):
    with pytest.raises(ValueError):
        TreeCommitter(client, branch="")
    with pytest.raises(ValueError):
        TreeCommitter(client, branch="main", max_workers=-1)


def test_connection_pool_covers_default_fan_out(client, fake_session):
    names = [f"file{i:02d}.txt" for i in range(25)]

    TreeCommitter(client, branch="main").commit_files(_files(*names), "msg")

    adapter = fake_session.get_adapter("https://api.github.com")
    assert adapter._pool_maxsize >= 25
    assert fake_session.get_adapter("http://ghe.internal")._pool_maxsize >= 25


def test_blob_error_keeps_api_error_as_cause(client, fake_session):
    fake_session.fail_blobs["content of bad.txt"] = (403, "Resource not accessible by integration")

    with pytest.raises(BlobUploadError) as excinfo:
        TreeCommitter(client, branch="main").commit_files(_files("bad.txt"), "msg")

    cause = excinfo.value.__cause__
    assert isinstance(cause, GitHubAPIError)
    assert cause.operation == "CreateBlob"
    assert cause.status_code == 403


def test_blob_response_without_sha_is_reported_per_file(client, fake_session):
    fake_session.responses[("POST", "git/blobs")] = (201, {"url": "https://api.github.com/blob"})

    with pytest.raises(BlobUploadError) as excinfo:
        TreeCommitter(client, branch="main").commit_files(_files("a.txt"), "msg")

    assert str(excinfo.value) == "blob error for a.txt: CreateBlob: response did not include a sha"
    assert fake_session.calls_for("POST", "git/trees") == []
