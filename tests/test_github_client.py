from unittest.mock import MagicMock, patch

import pytest
from github import GithubException

from postgen.output.github_client import GitHubPublisher


@pytest.fixture
def files(tmp_path):
    page = tmp_path / "docs" / "posts" / "knoten" / "index.html"
    page.parent.mkdir(parents=True)
    page.write_text("<html></html>", encoding="utf-8")
    data = tmp_path / "data" / "posts.json"
    data.parent.mkdir()
    data.write_text("[]", encoding="utf-8")
    return [page, data]


def github_stub():
    client = MagicMock()
    client.get_rate_limit.return_value.core.remaining = 5000
    repo = client.get_repo.return_value
    repo.default_branch = "main"
    repo.create_git_blob.return_value.sha = "blob-sha"
    repo.create_git_commit.return_value.sha = "abcdef123456"
    return client, repo


def publisher(tmp_path, client, **kwargs):
    return GitHubPublisher(token="t", repo="crew/segeln-lernen", root=tmp_path, client=client, **kwargs)


class TestCommitAndPush:
    def test_single_commit_through_git_data_api(self, tmp_path, files):
        client, repo = github_stub()

        assert publisher(tmp_path, client).commit_and_push("Neuer Artikel: Knoten", files)

        repo.get_git_ref.assert_called_once_with("heads/main")
        assert repo.create_git_blob.call_count == 2
        elements = repo.create_git_tree.call_args.args[0]
        assert len(elements) == 2
        message, _tree, parents = repo.create_git_commit.call_args.args
        assert message == "Neuer Artikel: Knoten"
        assert parents == [repo.get_git_commit.return_value]
        repo.get_git_ref.return_value.edit.assert_called_once_with("abcdef123456")

    def test_missing_files_are_skipped(self, tmp_path):
        client, repo = github_stub()

        assert not publisher(tmp_path, client).commit_and_push("msg", [tmp_path / "nope.html"])
        repo.create_git_commit.assert_not_called()

    def test_dry_run(self, tmp_path, files):
        client, repo = github_stub()

        assert not publisher(tmp_path, client, dry_run=True).commit_and_push("msg", files)
        client.get_repo.assert_not_called()

    def test_missing_repository(self, tmp_path, files, monkeypatch):
        monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)
        client, _ = github_stub()

        assert not GitHubPublisher(token="t", root=tmp_path, client=client).commit_and_push("msg", files)

    @patch("postgen.output.github_client.time.sleep")
    def test_throttling_is_retried(self, mock_sleep, tmp_path, files):
        client, repo = github_stub()
        repo.create_git_tree.side_effect = [GithubException(429, {"message": "slow down"}, None), MagicMock()]

        assert publisher(tmp_path, client).commit_and_push("msg", files)
        assert mock_sleep.call_count == 1

    def test_other_api_errors_fail_without_raising(self, tmp_path, files):
        client, repo = github_stub()
        repo.get_git_ref.side_effect = GithubException(404, {"message": "no branch"}, None)

        assert not publisher(tmp_path, client).commit_and_push("msg", files)
