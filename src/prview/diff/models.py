from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ChangeKind(StrEnum):
    INSERT = "insert"
    DELETE = "delete"
    NORMAL = "normal"


class DiffType(StrEnum):
    ADD = "add"
    DELETE = "delete"
    RENAME = "rename"
    MODIFY = "modify"


@dataclass(frozen=True)
class Change:
    kind: ChangeKind
    content: str
    old_line_number: int | None = None
    new_line_number: int | None = None

    @property
    def is_insert(self) -> bool:
        return self.kind == ChangeKind.INSERT

    @property
    def is_delete(self) -> bool:
        return self.kind == ChangeKind.DELETE

    @property
    def is_normal(self) -> bool:
        return self.kind == ChangeKind.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.kind),
            "content": self.content,
            "oldLineNumber": self.old_line_number,
            "newLineNumber": self.new_line_number,
        }


@dataclass(frozen=True)
class Hunk:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    changes: tuple[Change, ...] = ()
    section: str = ""

    @property
    def header(self) -> str:
        header = (
            f"@@ -{self.old_start},{self.old_lines} "
            f"+{self.new_start},{self.new_lines} @@"
        )
        if self.section:
            header = f"{header} {self.section}"
        return header

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.header,
            "oldStart": self.old_start,
            "oldLines": self.old_lines,
            "newStart": self.new_start,
            "newLines": self.new_lines,
            "changes": [c.to_dict() for c in self.changes],
        }


@dataclass(frozen=True)
class ParsedDiff:
    change_type: DiffType
    old_path: str
    new_path: str
    hunks: tuple[Hunk, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.change_type),
            "oldPath": self.old_path,
            "newPath": self.new_path,
            "hunks": [h.to_dict() for h in self.hunks],
        }


@dataclass(frozen=True)
class Token:
    category: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.category, "value": self.text}


@dataclass(frozen=True)
class FileTokens:
    """Highlighting for one file, indexed as ``lines[hunk][change]``."""

    language: str
    highlighted: bool
    lines: tuple[tuple[tuple[Token, ...], ...], ...]

    def for_change(self, hunk_index: int, change_index: int) -> tuple[Token, ...]:
        return self.lines[hunk_index][change_index]
