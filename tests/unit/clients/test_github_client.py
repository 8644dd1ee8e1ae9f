from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

from github import GithubException
import pytest

from prview.clients.github_client import GitHubClient
from prview.exceptions import (
    APIError,
    AuthenticationError,
    ResourceNotFoundError,
    ValidationError,
)
from prview.models import FileStatus


@pytest.fixture
def mock_github():
    with patch("prview.clients.github_client.Github") as mock:
        yield mock


@pytest.fixture
def mock_auth():
    with patch("prview.clients.github_client.Auth") as mock:
        yield mock


@pytest.fixture
def github_client(mock_github, mock_auth):
    mock_auth.Token.return_value = Mock()
    return GitHubClient(token="fake_token")


def _file(name: str) -> MagicMock:
    file = MagicMock()
    file.filename = name
    file.status = "modified"
    file.additions = 1
    file.deletions = 1
    file.changes = 2
    file.patch = "@@ -1 +1 @@\n-a\n+b"
    file.previous_filename = None
    file.blob_url = f"https://github.com/blob/{name}"
    file.raw_url = f"https://github.com/raw/{name}"
    return file


@pytest.fixture
def mock_pr():
    pr = MagicMock()
    pr.id = 987
    pr.number = 42
    pr.title = "Add feature"
    pr.body = "Implements #123456"
    pr.user.login = "alice"
    pr.user.avatar_url = "https://avatars/alice"
    pr.html_url = "https://github.com/owner/repo/pull/42"
    pr.created_at = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    pr.updated_at = datetime(2024, 1, 2, 12, 0, 0, tzinfo=timezone.utc)
    pr.draft = False
    pr.base.ref = "main"
    pr.head.ref = "feature"
    pr.requested_reviewers = []
    pr.requested_teams = []
    return pr


def _pages(github_client: GitHubClient) -> MagicMock:
    pr = github_client.client.get_repo.return_value.get_pull.return_value
    return pr.get_files.return_value


def test_should_initialize_github_client_with_token_auth(mock_github, mock_auth):
    mock_auth.Token.return_value = "auth"

    client = GitHubClient(token="token", base_url="https://ghe.example.com/api/v3")

    mock_auth.Token.assert_called_once_with("token")
    kwargs = mock_github.call_args.kwargs
    assert kwargs["auth"] == "auth"
    assert kwargs["base_url"] == "https://ghe.example.com/api/v3"
    assert kwargs["per_page"] == 100
    assert client.per_page == 100


def test_should_list_open_pull_requests_for_repository(github_client, mock_pr):
    repo = github_client.client.get_repo.return_value
    repo.get_pulls.return_value = [mock_pr]

    prs = github_client.list_open_pull_requests("owner/repo")

    github_client.client.get_repo.assert_called_once_with("owner/repo", lazy=True)
    repo.get_pulls.assert_called_once_with(state="open")
    assert len(prs) == 1
    assert prs[0].repository == "owner/repo"
    assert prs[0].author == "alice"
    assert prs[0].updated_at == "2024-01-02T12:00:00Z"


def test_should_reject_malformed_repository(github_client):
    with pytest.raises(ValidationError):
        github_client.list_open_pull_requests("not-a-repo")


def test_should_fetch_pages_until_short_page(github_client):
    pages = _pages(github_client)
    pages.get_page.side_effect = [
        [_file(f"f{i}.py") for i in range(100)],
        [_file("last.py")],
    ]

    files = github_client.get_pull_request_files("owner", "repo", 7)

    assert len(files) == 101
    assert files[-1].filename == "last.py"
    assert files[0].status == FileStatus.MODIFIED
    assert [c.args[0] for c in pages.get_page.call_args_list] == [0, 1]
    github_client.client.get_repo.return_value.get_pull.assert_called_once_with(7)


def test_should_fail_whole_fetch_with_upstream_status_when_page_fails(github_client):
    pages = _pages(github_client)
    pages.get_page.side_effect = [
        [_file(f"f{i}.py") for i in range(100)],
        GithubException(502, {"message": "Bad Gateway"}, None),
    ]

    with pytest.raises(APIError) as exc_info:
        github_client.get_pull_request_files("owner", "repo", 7)

    assert exc_info.value.status_code == 502


def test_should_raise_not_found_when_pull_request_missing(github_client):
    github_client.client.get_repo.return_value.get_pull.side_effect = (
        GithubException(404, {"message": "Not Found"}, None)
    )

    with pytest.raises(ResourceNotFoundError):
        github_client.get_pull_request_files("owner", "repo", 999)


def test_should_raise_authentication_error_when_token_rejected(github_client):
    repo = github_client.client.get_repo.return_value
    repo.get_pulls.side_effect = GithubException(401, {"message": "Bad credentials"}, None)

    with pytest.raises(AuthenticationError):
        github_client.list_open_pull_requests("owner/repo")


def test_should_stop_at_file_limit(github_client):
    pages = _pages(github_client)
    pages.get_page.side_effect = lambda page: [
        _file(f"p{page}_{i}.py") for i in range(100)
    ]

    files = github_client.get_pull_request_files("owner", "repo", 1)

    assert len(files) == GitHubClient.MAX_FILES_PER_PR
    assert pages.get_page.call_count == 30
