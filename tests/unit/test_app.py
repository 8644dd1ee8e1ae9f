from unittest.mock import MagicMock, patch

import pytest

from prview.app import DashboardApplication
from prview.config import DashboardConfig
from prview.diff.expansion import ExpansionController
from prview.exceptions import ConfigurationError, ValidationError
from prview.models import ChangedFile, FileStatus


@pytest.fixture
def config() -> DashboardConfig:
    return DashboardConfig(token="token", repositories=("org/api",))


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.get_pull_request_files.return_value = [
        ChangedFile(
            filename="src/app.py",
            status=FileStatus.MODIFIED,
            changes=2,
            patch="@@ -1 +1 @@\n-a = 1\n+a = 2\n",
        ),
        ChangedFile(filename="assets/logo.png", status=FileStatus.ADDED),
    ]
    return client


def test_should_report_health_without_credentials() -> None:
    app = DashboardApplication(DashboardConfig())

    assert app.health() == {
        "status": "ok",
        "configured": {"hasToken": False, "repositories": 0, "teamMembers": 0},
    }


def test_should_raise_configuration_error_when_listing_without_token() -> None:
    app = DashboardApplication(DashboardConfig(repositories=("org/api",)))

    with pytest.raises(ConfigurationError, match="GITHUB_TOKEN"):
        app.list_pull_requests()


@patch("prview.app.CodeHostClientFactory")
def test_should_create_client_lazily(mock_factory, config) -> None:
    app = DashboardApplication(config)

    mock_factory.create.assert_not_called()
    client = app.client

    mock_factory.create.assert_called_once_with(config)
    assert app.client is client


def test_should_not_build_work_item_client_when_disabled(config) -> None:
    assert DashboardApplication(config).work_items is None


def test_should_build_work_item_client_when_url_configured() -> None:
    app = DashboardApplication(
        DashboardConfig(token="t", work_item_url="https://tickets/{id}")
    )

    assert app.work_items is not None
    assert app.work_items.url_template == "https://tickets/{id}"


def test_should_validate_pull_request_coordinates(config, client) -> None:
    app = DashboardApplication(config, client=client)

    with pytest.raises(ValidationError):
        app.get_pull_request_files("org", "api", "abc")
    with pytest.raises(ValidationError):
        app.get_pull_request_files("org", "../etc", "1")
    client.get_pull_request_files.assert_not_called()


def test_should_load_files_into_controller(config, client) -> None:
    app = DashboardApplication(config, client=client)
    controller = ExpansionController()

    try:
        result = app.open_diff("org", "api", "12", controller)
    finally:
        controller.close()

    assert result is controller
    assert len(controller.files) == 2
    client.get_pull_request_files.assert_called_once_with("org", "api", 12)


def test_should_build_view_with_tree_and_rendered_files(config, client) -> None:
    app = DashboardApplication(config, client=client)

    view = app.view_pull_request("org", "api", 12, view_type="unified")

    assert view["totalFiles"] == 2
    assert view["viewType"] == "unified"
    assert view["expanded"] == [0, 1]
    assert [d["name"] for d in view["tree"]["directories"]] == ["assets", "src"]
    # tree order: assets/ before src/
    logo, source = view["files"]
    assert source["body"] == "diff"
    assert source["highlighted"] is True
    assert logo["body"] == "placeholder"
    assert logo["message"] == "File added (binary or too large to display)"
