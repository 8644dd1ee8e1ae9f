from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from prview.models import ChangedFile


@dataclass(frozen=True)
class TreeFile:
    index: int
    file: ChangedFile

    @property
    def name(self) -> str:
        return self.file.filename.rsplit("/", 1)[-1]


@dataclass
class DirectoryNode:
    name: str = ""
    path: str = ""
    children: dict[str, "DirectoryNode"] = field(default_factory=dict)
    files: list[TreeFile] = field(default_factory=list)

    def sorted_children(self) -> list["DirectoryNode"]:
        return [self.children[name] for name in sorted(self.children)]

    def sorted_files(self) -> list[TreeFile]:
        return sorted(self.files, key=lambda entry: entry.file.filename)

    def child(self, name: str) -> "DirectoryNode":
        node = self.children.get(name)
        if node is None:
            path = f"{self.path}/{name}" if self.path else name
            node = DirectoryNode(name=name, path=path)
            self.children[name] = node
        return node


def build_file_tree(files: Sequence[ChangedFile]) -> DirectoryNode:
    """Group a flat file list into directories.

    Every file lands in exactly one ``files`` list, tagged with its position
    in the input so the tree can address the flat list.
    """
    root = DirectoryNode()
    for index, file in enumerate(files):
        *directories, _ = file.filename.split("/")
        current = root
        for segment in directories:
            current = current.child(segment)
        current.files.append(TreeFile(index=index, file=file))
    return root


def count_files(node: DirectoryNode) -> int:
    return len(node.files) + sum(count_files(c) for c in node.children.values())


def iter_files(node: DirectoryNode) -> Iterator[TreeFile]:
    """Files in display order: subdirectories first, then the node's own files."""
    for child in node.sorted_children():
        yield from iter_files(child)
    yield from node.sorted_files()


def directory_paths(node: DirectoryNode) -> list[str]:
    paths: list[str] = []
    for child in node.sorted_children():
        paths.append(child.path)
        paths.extend(directory_paths(child))
    return paths


def tree_to_dict(node: DirectoryNode) -> dict[str, Any]:
    return {
        "name": node.name,
        "path": node.path,
        "fileCount": count_files(node),
        "directories": [tree_to_dict(c) for c in node.sorted_children()],
        "files": [
            {
                "index": entry.index,
                "name": entry.name,
                "filename": entry.file.filename,
                "status": str(entry.file.status),
                "additions": entry.file.additions,
                "deletions": entry.file.deletions,
            }
            for entry in node.sorted_files()
        ],
    }


class DirectoryExpansion:
    """Which directories are open, keyed by slash-joined path from the root."""

    def __init__(self) -> None:
        self._expanded: set[str] = set()

    def is_expanded(self, path: str) -> bool:
        return path in self._expanded

    def toggle(self, path: str) -> bool:
        if path in self._expanded:
            self._expanded.discard(path)
            return False
        self._expanded.add(path)
        return True

    def expand_all(self, root: DirectoryNode) -> None:
        self._expanded = set(directory_paths(root))

    def collapse_all(self) -> None:
        self._expanded.clear()

    @property
    def expanded(self) -> frozenset[str]:
        return frozenset(self._expanded)
