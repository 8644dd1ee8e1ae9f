from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from prview.client import CodeHostClient
from prview.clients.work_item_client import WorkItemClient
from prview.logger import get_logger
from prview.models import PullRequestFiles, PullRequestListing, PullRequestSummary
from prview.security import SecurityValidator


class PullRequestService:
    """Aggregates open pull requests across repositories.

    Repositories are fetched concurrently and joined before any filtering or
    sorting. A repository that fails contributes nothing; the others are
    still returned.
    """

    def __init__(
        self,
        client: CodeHostClient,
        repositories: tuple[str, ...],
        team_members: tuple[str, ...] = (),
        work_items: WorkItemClient | None = None,
        max_workers: int = 8,
    ) -> None:
        self.client = client
        self.repositories = repositories
        self.team_members = team_members
        self.work_items = work_items
        self.max_workers = max_workers
        self.logger = get_logger(self.__class__.__name__)

    def _fetch_repository(self, repository: str) -> list[PullRequestSummary]:
        try:
            return self.client.list_open_pull_requests(repository)
        except Exception as e:
            self.logger.error(
                f"Error fetching PRs from {repository}: "
                f"{SecurityValidator.sanitize_error_message(e)}"
            )
            return []

    def _with_work_items(self, pr: PullRequestSummary) -> PullRequestSummary:
        if self.work_items is None:
            return pr
        items = self.work_items.for_body(pr.body)
        if not items:
            return pr
        return replace(pr, work_items=tuple(items))

    def list_open_pull_requests(self) -> PullRequestListing:
        if not self.repositories:
            return PullRequestListing(
                prs=[], repositories=0, team_members=len(self.team_members)
            )

        workers = min(self.max_workers, len(self.repositories))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="prview-fetch"
        ) as executor:
            per_repository = list(
                executor.map(self._fetch_repository, self.repositories)
            )

        prs = [pr for batch in per_repository for pr in batch]
        if self.team_members:
            members = set(self.team_members)
            prs = [pr for pr in prs if pr.author in members]
        prs.sort(key=lambda pr: pr.updated_at, reverse=True)

        if self.work_items is not None and prs:
            with ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(prs)),
                thread_name_prefix="prview-work-items",
            ) as executor:
                prs = list(executor.map(self._with_work_items, prs))

        self.logger.info(
            f"Aggregated {len(prs)} open PRs from {len(self.repositories)} repositories"
        )
        return PullRequestListing(
            prs=prs,
            repositories=len(self.repositories),
            team_members=len(self.team_members),
        )

    def get_pull_request_files(
        self, owner: str, repo: str, number: int
    ) -> PullRequestFiles:
        files = self.client.get_pull_request_files(owner, repo, number)
        return PullRequestFiles(files=files)
