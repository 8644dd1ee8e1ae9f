import re
import shlex
import subprocess
import threading
from typing import Any

from cachetools import TTLCache
import requests

from prview.clients.mixins import CacheMixin
from prview.exceptions import WorkItemError
from prview.logger import get_logger
from prview.models import WorkItem
from prview.security import SecurityValidator


WORK_ITEM_PATTERN = re.compile(r"#(\d{6})(?!\d)")
MAX_WORK_ITEMS_PER_PR = 3


def extract_work_item_ids(
    body: str | None, limit: int = MAX_WORK_ITEMS_PER_PR
) -> list[str]:
    """First ``limit`` distinct ``#NNNNNN`` references, in order of appearance."""
    ids: list[str] = []
    for match in WORK_ITEM_PATTERN.finditer(body or ""):
        work_item_id = match.group(1)
        if work_item_id not in ids:
            ids.append(work_item_id)
            if len(ids) >= limit:
                break
    return ids


class CredentialBridge:
    """Bearer token from a local command, e.g. ``az account get-access-token``.

    The command's stdout is the token. It is cached for ``ttl`` seconds.
    """

    def __init__(self, command: str, timeout: int = 30, ttl: int = 600) -> None:
        self.command = shlex.split(command)
        if not self.command:
            raise WorkItemError("Credential command is empty")
        self.timeout = timeout
        self._tokens: TTLCache[str, str] = TTLCache(maxsize=1, ttl=ttl)
        self._lock = threading.Lock()
        self.logger = get_logger(self.__class__.__name__)

    def token(self) -> str:
        with self._lock:
            cached = self._tokens.get("token")
            if cached:
                return cached

            try:
                completed = subprocess.run(  # nosec B603 - command from local config
                    self.command,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=True,
                )
            except FileNotFoundError as e:
                raise WorkItemError(
                    f"Credential command not found: {self.command[0]}"
                ) from e
            except subprocess.TimeoutExpired as e:
                raise WorkItemError("Credential command timed out") from e
            except subprocess.CalledProcessError as e:
                raise WorkItemError(
                    f"Credential command failed with exit code {e.returncode}"
                ) from e

            token = completed.stdout.strip()
            if not token:
                raise WorkItemError("Credential command returned no token")
            self._tokens["token"] = token
            self.logger.debug("Obtained work-item credential")
            return token


class WorkItemClient(CacheMixin):
    """Looks up ticketing-system records referenced from PR descriptions.

    ``url_template`` contains an ``{id}`` placeholder. Responses follow the
    Azure DevOps work item shape (``fields["System.Title"]`` and friends).
    """

    def __init__(
        self,
        url_template: str,
        credentials: CredentialBridge | None = None,
        session: requests.Session | None = None,
        timeout: int = 30,
        cache_ttl: int = 300,
        cache_maxsize: int = 500,
    ) -> None:
        self.cache_ttl = cache_ttl
        self.cache_maxsize = cache_maxsize
        super().__init__()
        self.url_template = url_template
        self.credentials = credentials
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = get_logger(self.__class__.__name__)
        self._get_cached = self.with_cache(key_prefix="work_item:")(self._fetch)

    def _fetch(self, work_item_id: str) -> WorkItem:
        headers = {"Accept": "application/json"}
        if self.credentials is not None:
            headers["Authorization"] = f"Bearer {self.credentials.token()}"

        response = self.session.get(
            self.url_template.format(id=work_item_id),
            headers=headers,
            timeout=self.timeout,
        )
        if response.status_code != 200:
            raise WorkItemError(
                f"Work item {work_item_id} lookup returned {response.status_code}"
            )
        return self._to_work_item(work_item_id, response.json())

    @staticmethod
    def _to_work_item(work_item_id: str, data: dict[str, Any]) -> WorkItem:
        fields = data.get("fields") or {}
        links = data.get("_links") or {}
        title = fields.get("System.Title") or data.get("title")
        if not title:
            raise WorkItemError(f"Work item {work_item_id} has no title")
        return WorkItem(
            id=str(data.get("id", work_item_id)),
            title=title,
            state=fields.get("System.State") or data.get("state"),
            type=fields.get("System.WorkItemType") or data.get("type"),
            url=(links.get("html") or {}).get("href") or data.get("url"),
        )

    def get(self, work_item_id: str) -> WorkItem:
        return self._get_cached(work_item_id)

    def lookup(self, ids: list[str]) -> list[WorkItem]:
        items: list[WorkItem] = []
        for work_item_id in ids:
            try:
                items.append(self.get(work_item_id))
            except (WorkItemError, requests.RequestException, ValueError) as e:
                self.logger.warning(
                    f"Skipping work item {work_item_id}: "
                    f"{SecurityValidator.sanitize_error_message(e)}"
                )
        return items

    def for_body(self, body: str | None) -> list[WorkItem]:
        return self.lookup(extract_work_item_ids(body))
