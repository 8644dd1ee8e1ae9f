from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class FileStatus(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"


@dataclass(frozen=True)
class ChangedFile:
    """One entry per file touched by a pull request.

    ``changes`` is taken as reported upstream and is never re-derived from
    ``additions`` and ``deletions``.
    """

    filename: str
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: str | None = None
    previous_filename: str | None = None
    blob_url: str | None = None
    raw_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "status": str(self.status),
            "additions": self.additions,
            "deletions": self.deletions,
            "changes": self.changes,
            "patch": self.patch,
            "previousFilename": self.previous_filename,
            "blobUrl": self.blob_url,
            "rawUrl": self.raw_url,
        }


@dataclass(frozen=True)
class Reviewer:
    login: str
    avatar: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"login": self.login, "avatar": self.avatar}


@dataclass(frozen=True)
class TeamRef:
    name: str
    slug: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "slug": self.slug}


@dataclass(frozen=True)
class WorkItem:
    id: str
    title: str
    state: str | None = None
    type: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "state": self.state,
            "type": self.type,
            "url": self.url,
        }


@dataclass(frozen=True)
class PullRequestSummary:
    id: int
    number: int
    title: str
    body: str
    author: str
    author_avatar: str | None
    repository: str
    url: str
    created_at: str
    updated_at: str
    draft: bool = False
    target_branch: str = ""
    source_branch: str = ""
    requested_reviewers: tuple[Reviewer, ...] = ()
    requested_teams: tuple[TeamRef, ...] = ()
    work_items: tuple[WorkItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "author": self.author,
            "authorAvatar": self.author_avatar,
            "repository": self.repository,
            "url": self.url,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "draft": self.draft,
            "targetBranch": self.target_branch,
            "sourceBranch": self.source_branch,
            "requestedReviewers": [r.to_dict() for r in self.requested_reviewers],
            "requestedTeams": [t.to_dict() for t in self.requested_teams],
            "workItems": [w.to_dict() for w in self.work_items],
        }


@dataclass(frozen=True)
class PullRequestListing:
    prs: list[PullRequestSummary]
    repositories: int
    team_members: int

    @property
    def total_count(self) -> int:
        return len(self.prs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "prs": [pr.to_dict() for pr in self.prs],
            "totalCount": self.total_count,
            "repositories": self.repositories,
            "teamMembers": self.team_members,
        }


@dataclass(frozen=True)
class PullRequestFiles:
    files: list[ChangedFile] = field(default_factory=list)
    algorithm: str = "myers"

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "algorithm": self.algorithm,
        }
