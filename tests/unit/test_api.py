from unittest.mock import MagicMock

from fastapi.testclient import TestClient
import pytest

from prview.api import create_app
from prview.app import DashboardApplication
from prview.config import DashboardConfig
from prview.exceptions import APIError, ResourceNotFoundError
from prview.models import ChangedFile, FileStatus, PullRequestSummary


@pytest.fixture
def code_host() -> MagicMock:
    client = MagicMock()
    client.list_open_pull_requests.return_value = [
        PullRequestSummary(
            id=1,
            number=10,
            title="Add endpoint",
            body="",
            author="alice",
            author_avatar=None,
            repository="org/api",
            url="https://github.com/org/api/pull/10",
            created_at="2024-01-01T00:00:00Z",
            updated_at="2024-01-02T00:00:00Z",
        )
    ]
    client.get_pull_request_files.return_value = [
        ChangedFile(
            filename="src/app.py",
            status=FileStatus.MODIFIED,
            additions=1,
            deletions=1,
            changes=2,
            patch="@@ -1 +1 @@\n-a = 1\n+a = 2\n",
        )
    ]
    return client


def _client(config: DashboardConfig, code_host: MagicMock | None = None) -> TestClient:
    application = DashboardApplication(config, client=code_host)
    return TestClient(create_app(application), raise_server_exceptions=False)


@pytest.fixture
def api(code_host) -> TestClient:
    config = DashboardConfig(token="token", repositories=("org/api",))
    return _client(config, code_host)


def test_should_report_health_when_unconfigured():
    response = _client(DashboardConfig()).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "configured": {"hasToken": False, "repositories": 0, "teamMembers": 0},
    }


def test_should_list_open_pull_requests(api):
    response = api.get("/api/prs")

    assert response.status_code == 200
    body = response.json()
    assert body["totalCount"] == 1
    assert body["repositories"] == 1
    assert body["teamMembers"] == 0
    assert body["prs"][0]["number"] == 10


def test_should_return_500_with_hint_when_token_missing():
    response = _client(DashboardConfig(repositories=("org/api",))).get("/api/prs")

    assert response.status_code == 500
    assert "GITHUB_TOKEN" in response.json()["error"]


def test_should_return_500_with_hint_when_repositories_missing():
    response = _client(DashboardConfig(token="token")).get("/api/prs")

    assert response.status_code == 500
    assert "REPOSITORIES" in response.json()["error"]


def test_should_return_500_with_reason_when_base_url_is_forbidden():
    config = DashboardConfig(
        token="token", repositories=("org/api",), base_url="https://10.0.0.5/api"
    )

    response = _client(config).get("/api/prs")

    assert response.status_code == 500
    assert response.json() == {"error": "Access to private networks is not allowed"}


def test_should_return_pull_request_files(api, code_host):
    response = api.get("/api/prs/org/api/10/files")

    assert response.status_code == 200
    body = response.json()
    assert body["algorithm"] == "myers"
    assert body["files"][0]["filename"] == "src/app.py"
    code_host.get_pull_request_files.assert_called_once_with("org", "api", 10)


def test_should_return_400_when_pull_request_number_is_invalid(api, code_host):
    response = api.get("/api/prs/org/api/not-a-number/files")

    assert response.status_code == 400
    assert "error" in response.json()
    code_host.get_pull_request_files.assert_not_called()


def test_should_pass_through_upstream_status_when_fetch_fails(api, code_host):
    code_host.get_pull_request_files.side_effect = APIError(
        status_code=502, message="Upstream returned 502"
    )

    response = api.get("/api/prs/org/api/10/files")

    assert response.status_code == 502
    assert response.json() == {"error": "Upstream returned 502"}


def test_should_return_404_when_pull_request_missing(api, code_host):
    code_host.get_pull_request_files.side_effect = ResourceNotFoundError("gone")

    response = api.get("/api/prs/org/api/10/files")

    assert response.status_code == 404


def test_should_hide_details_of_unexpected_errors(api, code_host):
    code_host.get_pull_request_files.side_effect = RuntimeError("token=secret")

    response = api.get("/api/prs/org/api/10/files")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_should_render_pull_request_view(api):
    response = api.get("/api/prs/org/api/10/view", params={"viewType": "unified"})

    assert response.status_code == 200
    body = response.json()
    assert body["viewType"] == "unified"
    assert body["totalFiles"] == 1
    assert body["expanded"] == [0]
    assert body["tree"]["directories"][0]["name"] == "src"
    hunk = body["files"][0]["hunks"][0]
    assert [row["type"] for row in hunk["rows"]] == ["delete", "insert"]


def test_should_default_view_to_split(api):
    body = api.get("/api/prs/org/api/10/view").json()

    rows = body["files"][0]["hunks"][0]["rows"]
    assert body["viewType"] == "split"
    assert rows[0]["old"]["type"] == "delete"
    assert rows[0]["new"]["type"] == "insert"


def test_should_allow_cross_origin_requests(api):
    response = api.get("/api/health", headers={"Origin": "http://localhost:3000"})

    assert response.headers["access-control-allow-origin"] == "*"
