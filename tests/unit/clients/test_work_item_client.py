import subprocess
from unittest.mock import MagicMock, patch

import pytest
import requests

from prview.clients.work_item_client import (
    CredentialBridge,
    WorkItemClient,
    extract_work_item_ids,
)
from prview.exceptions import WorkItemError
from prview.models import WorkItem


URL = "https://dev.azure.com/org/_apis/wit/workitems/{id}?api-version=7.0"


def _response(status_code: int = 200, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return response


def _work_item_payload(work_item_id: int, title: str = "Fix login") -> dict:
    return {
        "id": work_item_id,
        "fields": {
            "System.Title": title,
            "System.State": "Active",
            "System.WorkItemType": "Bug",
        },
        "_links": {"html": {"href": f"https://dev.azure.com/org/_workitems/{work_item_id}"}},
    }


def test_should_extract_first_three_distinct_six_digit_ids():
    body = "Fixes #123456 and #234567, see #123456, #345678 and #456789"

    assert extract_work_item_ids(body) == ["123456", "234567", "345678"]


def test_should_ignore_references_that_are_not_six_digits():
    assert extract_work_item_ids("#12345 #1234567 issue #42") == []
    assert extract_work_item_ids(None) == []


def test_should_fetch_work_item_with_bearer_token():
    credentials = MagicMock()
    credentials.token.return_value = "secret"
    session = MagicMock()
    session.get.return_value = _response(payload=_work_item_payload(123456))
    client = WorkItemClient(URL, credentials=credentials, session=session)

    item = client.get("123456")

    assert item == WorkItem(
        id="123456",
        title="Fix login",
        state="Active",
        type="Bug",
        url="https://dev.azure.com/org/_workitems/123456",
    )
    url = session.get.call_args.args[0]
    assert url.startswith("https://dev.azure.com/org/_apis/wit/workitems/123456")
    assert session.get.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"


def test_should_cache_work_item_lookups():
    session = MagicMock()
    session.get.return_value = _response(payload=_work_item_payload(123456))
    client = WorkItemClient(URL, session=session)

    client.get("123456")
    client.get("123456")

    assert session.get.call_count == 1


def test_should_omit_failed_lookups_and_keep_the_rest(caplog):
    session = MagicMock()
    session.get.side_effect = [
        _response(status_code=404),
        requests.ConnectionError("unreachable"),
        _response(payload=_work_item_payload(345678, "Ship it")),
    ]
    client = WorkItemClient(URL, session=session)

    items = client.for_body("#123456 #234567 #345678")

    assert [item.title for item in items] == ["Ship it"]
    assert "Skipping work item 123456" in caplog.text
    assert "Skipping work item 234567" in caplog.text


def test_should_reject_payload_without_title():
    session = MagicMock()
    session.get.return_value = _response(payload={"id": 1, "fields": {}})
    client = WorkItemClient(URL, session=session)

    with pytest.raises(WorkItemError):
        client.get("123456")


@patch("prview.clients.work_item_client.subprocess.run")
def test_should_cache_credential_command_output(mock_run):
    mock_run.return_value = subprocess.CompletedProcess(
        args=[], returncode=0, stdout="token-value\n", stderr=""
    )
    bridge = CredentialBridge("az account get-access-token --query accessToken -o tsv")

    assert bridge.token() == "token-value"
    assert bridge.token() == "token-value"
    assert mock_run.call_count == 1
    assert mock_run.call_args.args[0][:3] == ["az", "account", "get-access-token"]


@patch("prview.clients.work_item_client.subprocess.run")
def test_should_raise_work_item_error_when_credential_command_fails(mock_run):
    mock_run.side_effect = subprocess.CalledProcessError(returncode=2, cmd=["az"])
    bridge = CredentialBridge("az account get-access-token")

    with pytest.raises(WorkItemError, match="exit code 2"):
        bridge.token()


def test_should_reject_empty_credential_command():
    with pytest.raises(WorkItemError):
        CredentialBridge("   ")
