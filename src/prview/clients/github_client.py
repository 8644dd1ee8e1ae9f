import re
from typing import Any

from github import Auth, Github
from github.File import File
from github.PullRequest import PullRequest

from prview.adapters.github_mapper import GitHubMapper
from prview.clients.base import BaseCodeHostClient
from prview.clients.mixins import PaginationMixin
from prview.exceptions import PrviewException, ValidationError
from prview.logger import get_logger
from prview.models import ChangedFile, PullRequestSummary


DEFAULT_BASE_URL = "https://api.github.com"
USER_AGENT = "prview"


class GitHubClient(BaseCodeHostClient[Github], PaginationMixin):
    # GitHub stops listing a pull request's files after 3000 entries
    MAX_FILES_PER_PR = 3000
    MAX_OPEN_PRS_PER_REPO = 1000

    _REPO_PATTERN = re.compile(r"^[a-zA-Z0-9\-_.]+/[a-zA-Z0-9\-_.]+$")

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        logger: Any | None = None,
        per_page: int = 100,
        timeout: int = 30,
    ) -> None:
        auth = Auth.Token(token)
        per_page = min(per_page, 100)
        client = Github(
            auth=auth,
            base_url=base_url or DEFAULT_BASE_URL,
            per_page=per_page,
            timeout=timeout,
            user_agent=USER_AGENT,
        )
        logger = logger or get_logger(self.__class__.__name__)
        super().__init__(client=client, logger=logger, per_page=per_page)
        self.mapper = GitHubMapper()

    @classmethod
    def _validate_repository(cls, repository: str) -> None:
        if not cls._REPO_PATTERN.match(repository):
            raise ValidationError(f"Invalid repository identifier: {repository}")

    def list_open_pull_requests(self, repository: str) -> list[PullRequestSummary]:
        self._validate_repository(repository)
        try:
            repo = self.client.get_repo(repository, lazy=True)
            summaries: list[PullRequestSummary] = []
            for pr in self.paginate_github(
                repo.get_pulls(state="open"), max_items=self.MAX_OPEN_PRS_PER_REPO
            ):
                summaries.append(self.mapper.to_pull_request_summary(pr, repository))
            self.logger.debug(f"Fetched {len(summaries)} open PRs from {repository}")
            return summaries
        except (PrviewException, ValueError):
            raise
        except Exception as e:
            self._raise_api_error(e, f"pull request listing for {repository}")

    def get_pull_request_files(
        self, owner: str, repo: str, number: int
    ) -> list[ChangedFile]:
        repository = f"{owner}/{repo}"
        self._validate_repository(repository)
        try:
            pr: PullRequest = self.client.get_repo(repository, lazy=True).get_pull(
                number
            )
            pages = pr.get_files()

            def fetch_page(page: int) -> list[File]:
                # PaginatedList pages are zero-based
                return list(pages.get_page(page - 1))

            files = [
                self.mapper.to_changed_file(f)
                for f in self.collect_paginated(
                    fetch_page, page_size=self.per_page, max_items=self.MAX_FILES_PER_PR
                )
            ]
        except (PrviewException, ValueError):
            raise
        except Exception as e:
            self._raise_api_error(e, f"file listing for {repository}#{number}")

        self.logger.info(f"Fetched {len(files)} files for PR #{number} in {repository}")
        return files
