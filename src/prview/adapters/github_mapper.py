from datetime import datetime

from github.File import File
from github.PullRequest import PullRequest

from prview.models import ChangedFile, FileStatus, PullRequestSummary, Reviewer, TeamRef


STATUS_MAP = {
    "added": FileStatus.ADDED,
    "removed": FileStatus.REMOVED,
    "modified": FileStatus.MODIFIED,
    "renamed": FileStatus.RENAMED,
}


def _isoformat(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat().replace("+00:00", "Z")


class GitHubMapper:
    @staticmethod
    def to_pull_request_summary(pr: PullRequest, repository: str) -> PullRequestSummary:
        try:
            return PullRequestSummary(
                id=pr.id,
                number=pr.number,
                title=pr.title,
                body=pr.body or "",
                author=pr.user.login,
                author_avatar=pr.user.avatar_url,
                repository=repository,
                url=pr.html_url,
                created_at=_isoformat(pr.created_at),
                updated_at=_isoformat(pr.updated_at or pr.created_at),
                draft=bool(pr.draft),
                target_branch=pr.base.ref,
                source_branch=pr.head.ref,
                requested_reviewers=tuple(
                    Reviewer(login=r.login, avatar=r.avatar_url)
                    for r in (pr.requested_reviewers or [])
                ),
                requested_teams=tuple(
                    TeamRef(name=t.name, slug=t.slug)
                    for t in (pr.requested_teams or [])
                ),
            )
        except AttributeError as e:
            raise ValueError(f"Invalid GitHub PR data: {e}") from e

    @staticmethod
    def to_changed_file(file: File) -> ChangedFile:
        try:
            return ChangedFile(
                filename=file.filename,
                status=STATUS_MAP.get(file.status, FileStatus.MODIFIED),
                additions=file.additions,
                deletions=file.deletions,
                changes=file.changes,
                patch=file.patch,
                previous_filename=getattr(file, "previous_filename", None),
                blob_url=file.blob_url,
                raw_url=file.raw_url,
            )
        except AttributeError as e:
            raise ValueError(f"Invalid GitHub file data: {e}") from e
