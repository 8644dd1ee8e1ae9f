from abc import ABC, abstractmethod

from prview.models import ChangedFile, PullRequestSummary


class CodeHostClient(ABC):
    @abstractmethod
    def list_open_pull_requests(self, repository: str) -> list[PullRequestSummary]:
        raise NotImplementedError

    @abstractmethod
    def get_pull_request_files(
        self, owner: str, repo: str, number: int
    ) -> list[ChangedFile]:
        raise NotImplementedError
