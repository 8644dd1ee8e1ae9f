from unittest.mock import Mock

import pytest

from prview.clients.base import BaseCodeHostClient
from prview.exceptions import APIError, AuthenticationError, ResourceNotFoundError


class ConcreteCodeHostClient(BaseCodeHostClient):
    def list_open_pull_requests(self, repository: str) -> list:
        return []

    def get_pull_request_files(self, owner: str, repo: str, number: int) -> list:
        return []


class StatusError(Exception):
    def __init__(self, status: int | None, message: str = "failed") -> None:
        super().__init__(message)
        self.status = status


@pytest.fixture
def client() -> ConcreteCodeHostClient:
    return ConcreteCodeHostClient(client=Mock(), per_page=50)


def test_should_initialize_base_client_when_parameters_are_provided(client) -> None:
    assert client.per_page == 50
    assert client.logger.name == "prview.ConcreteCodeHostClient"


@pytest.mark.parametrize(
    "status,expected",
    [
        (401, AuthenticationError),
        (404, ResourceNotFoundError),
        (403, APIError),
        (500, APIError),
        (None, APIError),
    ],
)
def test_should_translate_upstream_status_into_exception(client, status, expected):
    with pytest.raises(expected):
        client._raise_api_error(StatusError(status), "listing")


def test_should_keep_upstream_status_on_api_error(client) -> None:
    with pytest.raises(APIError) as exc_info:
        client._raise_api_error(StatusError(503), "file listing")

    assert exc_info.value.status_code == 503
    assert "503" in exc_info.value.message


def test_should_not_log_token_when_translating_error(client, caplog) -> None:
    error = StatusError(500, "failed with token=ghp_abcdef123456")

    with pytest.raises(APIError):
        client._raise_api_error(error, "listing")

    assert "ghp_abcdef123456" not in caplog.text
