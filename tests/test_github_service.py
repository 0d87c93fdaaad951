"""Tests for GitHubService"""
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
from github import GithubException

from gitflow_cli.exceptions import ExternalToolError, GitHubUnavailableError
from gitflow_cli.services.github_service import GitHubService, parse_github_repo


def make_pr(number, head="feature/login", base="develop", created=None):
    pr = Mock()
    pr.number = number
    pr.title = f"PR {number}"
    pr.head.ref = head
    pr.base.ref = base
    pr.html_url = f"https://github.com/test/repo/pull/{number}"
    pr.created_at = created or datetime(2024, 1, number)
    return pr


@pytest.fixture
def service(temp_dir, mock_config):
    """Service with an already connected mock repository."""
    service = GitHubService(str(temp_dir), mock_config, "git@github.com:test/repo.git")
    service.github_repo = "test/repo"
    service.gh_repo = Mock()
    return service


class TestParseGithubRepo:
    """Test remote URL parsing."""

    @pytest.mark.parametrize("url", [
        "git@github.com:test/repo.git",
        "https://github.com/test/repo.git",
        "https://github.com/test/repo",
    ])
    def test_github_urls(self, url):
        assert parse_github_repo(url) == "test/repo"

    @pytest.mark.parametrize("url", ["git@gitlab.com:test/repo.git", "", None])
    def test_other_hosts(self, url):
        assert parse_github_repo(url) is None


class TestGitHubServiceInit:
    """Test GitHubService initialization."""

    def test_init_with_token_from_config(self, temp_dir, mock_config):
        service = GitHubService(str(temp_dir), mock_config)
        assert service.github_token == "test_token_for_testing"
        assert service.gh_repo is None

    @patch.dict('os.environ', {'GITHUB_TOKEN': 'env_token'})
    def test_init_with_token_from_env(self, temp_dir, mock_config):
        """Test the environment is used when the config has no token."""
        mock_config['github_token'] = None
        service = GitHubService(str(temp_dir), mock_config)

        assert service.github_token == "env_token"


class TestGitHubServiceSetup:
    """Test GitHub API setup."""

    def test_setup_with_github_url(self, temp_dir, mock_config):
        service = GitHubService(str(temp_dir), mock_config)

        with patch('gitflow_cli.services.github_service.Github') as mock_github_class:
            mock_gh = Mock()
            mock_github_class.return_value = mock_gh

            service.setup_github_api("git@github.com:test/repo.git")

            assert service.github_repo == "test/repo"
            assert service.gh_repo is mock_gh.get_repo.return_value
            mock_gh.get_repo.assert_called_once_with("test/repo")

    def test_setup_non_github_remote(self, temp_dir, mock_config):
        service = GitHubService(str(temp_dir), mock_config)

        with pytest.raises(GitHubUnavailableError):
            service.setup_github_api("git@gitlab.com:test/repo.git")

    @patch.dict('os.environ', {}, clear=True)
    def test_setup_without_token(self, temp_dir, mock_config):
        mock_config['github_token'] = None
        service = GitHubService(str(temp_dir), mock_config)

        with pytest.raises(GitHubUnavailableError) as exc_info:
            service.setup_github_api("git@github.com:test/repo.git")
        assert "GITHUB_TOKEN" in exc_info.value.hint

    def test_setup_unreachable_repository(self, temp_dir, mock_config):
        service = GitHubService(str(temp_dir), mock_config)

        with patch('gitflow_cli.services.github_service.Github') as mock_github_class:
            mock_github_class.return_value.get_repo.side_effect = GithubException(
                404, {"message": "Not Found"}, None
            )
            with pytest.raises(GitHubUnavailableError, match="Not Found"):
                service.setup_github_api("git@github.com:test/repo.git")

    def test_connects_lazily_on_first_call(self, temp_dir, mock_config):
        service = GitHubService(str(temp_dir), mock_config, "https://github.com/test/repo.git")

        with patch('gitflow_cli.services.github_service.Github') as mock_github_class:
            mock_github_class.return_value.get_repo.return_value.get_pulls.return_value = []

            assert service.list_open_pull_requests() == []
            mock_github_class.assert_called_once()

    def test_no_remote(self, temp_dir, mock_config):
        service = GitHubService(str(temp_dir), mock_config)

        with pytest.raises(GitHubUnavailableError):
            service.find_open_pull_request("feature/login")


class TestPullRequests:
    """Test PR-related operations."""

    def test_create(self, service):
        service.gh_repo.create_pull.return_value = make_pr(7)

        info = service.create_pull_request(base="develop", head="feature/login", title="Add login", body="")

        service.gh_repo.create_pull.assert_called_once_with(
            base="develop", head="feature/login", title="Add login", body=""
        )
        assert info.number == 7
        assert info.url == "https://github.com/test/repo/pull/7"

    def test_create_failure_carries_github_message(self, service):
        service.gh_repo.create_pull.side_effect = GithubException(
            422,
            {"message": "Validation Failed", "errors": [{"message": "A pull request already exists"}]},
            None,
        )

        with pytest.raises(ExternalToolError) as exc_info:
            service.create_pull_request(base="develop", head="feature/login", title="t", body="")
        assert "A pull request already exists" in exc_info.value.message

    def test_find_picks_most_recent(self, service):
        older = make_pr(3, created=datetime(2024, 1, 1))
        newer = make_pr(5, created=datetime(2024, 2, 1))
        service.gh_repo.get_pulls.return_value = [older, newer]

        info = service.find_open_pull_request("feature/login")

        service.gh_repo.get_pulls.assert_called_once_with(state='open', head="test:feature/login")
        assert info.number == 5

    def test_find_none(self, service):
        service.gh_repo.get_pulls.return_value = []
        assert service.find_open_pull_request("feature/login") is None

    def test_merge_and_delete_head(self, service):
        pr = make_pr(7)
        pr.merge.return_value = Mock(merged=True)
        service.gh_repo.get_pull.return_value = pr

        service.merge_pull_request(7, method="squash", delete_branch=True)

        pr.merge.assert_called_once_with(merge_method="squash")
        service.gh_repo.get_git_ref.assert_called_once_with("heads/feature/login")
        service.gh_repo.get_git_ref.return_value.delete.assert_called_once()

    def test_merge_refused(self, service):
        pr = make_pr(7)
        pr.merge.return_value = Mock(merged=False, message="Pull Request is not mergeable")
        service.gh_repo.get_pull.return_value = pr

        with pytest.raises(ExternalToolError, match="not mergeable"):
            service.merge_pull_request(7)
        service.gh_repo.get_git_ref.assert_not_called()

    def test_head_already_deleted(self, service):
        """Test a head branch GitHub already removed is not an error."""
        pr = make_pr(7)
        pr.merge.return_value = Mock(merged=True)
        service.gh_repo.get_pull.return_value = pr
        service.gh_repo.get_git_ref.side_effect = GithubException(404, {"message": "Not Found"}, None)

        service.merge_pull_request(7)

    def test_list_open(self, service):
        service.gh_repo.get_pulls.return_value = [make_pr(1), make_pr(2, head="fix/typo")]

        pulls = service.list_open_pull_requests()

        assert [(p.number, p.head) for p in pulls] == [(1, "feature/login"), (2, "fix/typo")]
