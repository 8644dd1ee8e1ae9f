from typing import Any

from prview.client import CodeHostClient
from prview.clients.factory import CodeHostClientFactory
from prview.clients.work_item_client import CredentialBridge, WorkItemClient
from prview.config import DashboardConfig
from prview.diff.expansion import ExpansionController
from prview.diff.render import ViewType, rendered_file_to_dict
from prview.diff.tree import tree_to_dict
from prview.models import PullRequestFiles, PullRequestListing
from prview.security import SecurityValidator
from prview.service import PullRequestService


class DashboardApplication:
    def __init__(
        self,
        config: DashboardConfig,
        client: CodeHostClient | None = None,
        work_items: WorkItemClient | None = None,
    ):
        self.config = config
        self._client = client
        self._work_items = work_items
        self._service: PullRequestService | None = None

    @property
    def client(self) -> CodeHostClient:
        if self._client is None:
            self.config.require_token()
            self._client = CodeHostClientFactory.create(self.config)
        return self._client

    @property
    def work_items(self) -> WorkItemClient | None:
        if self._work_items is None and self.config.work_items_enabled:
            credentials = None
            if self.config.work_item_credential_command:
                credentials = CredentialBridge(
                    self.config.work_item_credential_command,
                    timeout=self.config.timeout,
                )
            self._work_items = WorkItemClient(
                self.config.work_item_url,  # type: ignore[arg-type]
                credentials=credentials,
                timeout=self.config.timeout,
                cache_ttl=self.config.cache_ttl,
            )
        return self._work_items

    @property
    def service(self) -> PullRequestService:
        if self._service is None:
            self._service = PullRequestService(
                client=self.client,
                repositories=self.config.repositories,
                team_members=self.config.team_members,
                work_items=self.work_items,
                max_workers=self.config.max_workers,
            )
        return self._service

    @classmethod
    def from_env(cls) -> "DashboardApplication":
        return cls(DashboardConfig.from_env())

    @classmethod
    def from_file(cls, path: str) -> "DashboardApplication":
        return cls(DashboardConfig.from_file(path))

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "configured": {
                "hasToken": self.config.has_token,
                "repositories": len(self.config.repositories),
                "teamMembers": len(self.config.team_members),
            },
        }

    def list_pull_requests(self) -> PullRequestListing:
        self.config.require_token()
        self.config.require_repositories()
        return self.service.list_open_pull_requests()

    def get_pull_request_files(
        self, owner: str, repo: str, number: str | int
    ) -> PullRequestFiles:
        self.config.require_token()
        owner = SecurityValidator.validate_name(owner, "owner")
        repo = SecurityValidator.validate_name(repo, "repository")
        pr_number = SecurityValidator.validate_pr_number(number)
        return self.service.get_pull_request_files(owner, repo, pr_number)

    def open_diff(
        self,
        owner: str,
        repo: str,
        number: str | int,
        controller: ExpansionController | None = None,
    ) -> ExpansionController:
        """Fetch a PR's files into a controller, auto-expanding small files.

        The controller is tagged before the fetch so a newer open on the same
        controller wins over this one if it lands first.
        """
        controller = controller or ExpansionController()
        generation = controller.begin_load()
        result = self.get_pull_request_files(owner, repo, number)
        controller.load(result.files, generation)
        return controller

    def view_pull_request(
        self,
        owner: str,
        repo: str,
        number: str | int,
        view_type: ViewType = ViewType.SPLIT,
        expand_all: bool = False,
        timeout: float | None = 30.0,
    ) -> dict[str, Any]:
        controller = self.open_diff(owner, repo, number)
        try:
            if expand_all:
                controller.expand_all()
            controller.wait_for_tokens(timeout)
            return {
                "tree": tree_to_dict(controller.tree),
                "files": [
                    rendered_file_to_dict(rendered, view_type)
                    for rendered in controller.render_all()
                ],
                "expanded": sorted(controller.expanded_indices),
                "totalFiles": len(controller.files),
                "viewType": str(view_type),
            }
        finally:
            controller.close()
