from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from prview.diff.highlight import plain_line
from prview.diff.models import Change, FileTokens, Hunk, ParsedDiff, Token
from prview.models import ChangedFile, FileStatus


class ViewType(StrEnum):
    SPLIT = "split"
    UNIFIED = "unified"


class BodyKind(StrEnum):
    COLLAPSED = "collapsed"
    PLACEHOLDER = "placeholder"
    RAW = "raw"
    DIFF = "diff"


STATUS_MARKERS = {
    FileStatus.ADDED: "A",
    FileStatus.REMOVED: "D",
    FileStatus.MODIFIED: "M",
    FileStatus.RENAMED: "R",
}

CHANGE_MARKERS = {"insert": "+", "delete": "-", "normal": " "}


@dataclass(frozen=True)
class RenderedFile:
    index: int
    file: ChangedFile
    expanded: bool
    body: BodyKind
    message: str | None = None
    diff: ParsedDiff | None = None
    tokens: FileTokens | None = None

    @property
    def anchor(self) -> str:
        return f"file-{self.index}"

    @property
    def highlighted(self) -> bool:
        return self.tokens is not None and self.tokens.highlighted


@dataclass(frozen=True)
class Cell:
    change: Change
    tokens: tuple[Token, ...]

    def to_dict(self, line_number: int | None) -> dict[str, Any]:
        return {
            "type": str(self.change.kind),
            "lineNumber": line_number,
            "tokens": [t.to_dict() for t in self.tokens],
        }


@dataclass(frozen=True)
class SplitRow:
    left: Cell | None
    right: Cell | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "old": self.left.to_dict(self.left.change.old_line_number)
            if self.left
            else None,
            "new": self.right.to_dict(self.right.change.new_line_number)
            if self.right
            else None,
        }


def _hunk_tokens(
    hunk: Hunk, tokens: FileTokens | None, hunk_index: int
) -> list[tuple[Token, ...]]:
    if tokens is not None and hunk_index < len(tokens.lines):
        return [
            tokens.for_change(hunk_index, position)
            for position in range(len(hunk.changes))
        ]
    return [plain_line(change.content) for change in hunk.changes]


def unified_rows(
    hunk: Hunk, tokens: FileTokens | None = None, hunk_index: int = 0
) -> list[Cell]:
    line_tokens = _hunk_tokens(hunk, tokens, hunk_index)
    return [Cell(c, t) for c, t in zip(hunk.changes, line_tokens, strict=True)]


def split_rows(
    hunk: Hunk, tokens: FileTokens | None = None, hunk_index: int = 0
) -> list[SplitRow]:
    """Pair each run of deletions with the insertions that follow it.

    Each side keeps the hunk's order; context lines appear on both sides.
    """
    rows: list[SplitRow] = []
    deletes: list[Cell] = []
    inserts: list[Cell] = []

    def flush() -> None:
        for position in range(max(len(deletes), len(inserts))):
            rows.append(
                SplitRow(
                    left=deletes[position] if position < len(deletes) else None,
                    right=inserts[position] if position < len(inserts) else None,
                )
            )
        deletes.clear()
        inserts.clear()

    for cell in unified_rows(hunk, tokens, hunk_index):
        if cell.change.is_delete:
            if inserts:
                flush()
            deletes.append(cell)
        elif cell.change.is_insert:
            inserts.append(cell)
        else:
            flush()
            rows.append(SplitRow(left=cell, right=cell))
    flush()
    return rows


def _hunk_to_dict(
    hunk: Hunk, tokens: FileTokens | None, hunk_index: int, view_type: ViewType
) -> dict[str, Any]:
    if view_type == ViewType.SPLIT:
        rows = [row.to_dict() for row in split_rows(hunk, tokens, hunk_index)]
    else:
        rows = [
            {
                **cell.to_dict(None),
                "oldLineNumber": cell.change.old_line_number,
                "newLineNumber": cell.change.new_line_number,
            }
            for cell in unified_rows(hunk, tokens, hunk_index)
        ]
    return {
        "content": hunk.header,
        "oldStart": hunk.old_start,
        "oldLines": hunk.old_lines,
        "newStart": hunk.new_start,
        "newLines": hunk.new_lines,
        "rows": rows,
    }


def rendered_file_to_dict(
    rendered: RenderedFile, view_type: ViewType = ViewType.SPLIT
) -> dict[str, Any]:
    file = rendered.file
    data: dict[str, Any] = {
        "index": rendered.index,
        "anchor": rendered.anchor,
        "filename": file.filename,
        "previousFilename": file.previous_filename,
        "status": str(file.status),
        "additions": file.additions,
        "deletions": file.deletions,
        "changes": file.changes,
        "expanded": rendered.expanded,
        "body": str(rendered.body),
    }
    if rendered.body in (BodyKind.PLACEHOLDER, BodyKind.RAW):
        data["message"] = rendered.message
    if rendered.body == BodyKind.RAW:
        data["patch"] = file.patch
    if rendered.body == BodyKind.DIFF and rendered.diff is not None:
        data["diffType"] = str(rendered.diff.change_type)
        data["language"] = rendered.tokens.language if rendered.tokens else None
        data["highlighted"] = rendered.highlighted
        data["hunks"] = [
            _hunk_to_dict(hunk, rendered.tokens, position, view_type)
            for position, hunk in enumerate(rendered.diff.hunks)
        ]
    return data


def _text(cell: Cell | None) -> str:
    if cell is None:
        return ""
    return "".join(token.text for token in cell.tokens)


def format_file_header(file: ChangedFile) -> str:
    marker = STATUS_MARKERS.get(file.status, "?")
    name = file.filename
    if file.previous_filename and file.previous_filename != file.filename:
        name = f"{file.previous_filename} -> {file.filename}"
    return f"{marker} {name} (+{file.additions} -{file.deletions})"


def format_file_text(
    rendered: RenderedFile, view_type: ViewType = ViewType.UNIFIED, width: int = 60
) -> str:
    lines = [format_file_header(rendered.file)]

    if rendered.body == BodyKind.COLLAPSED:
        return lines[0]
    if rendered.body == BodyKind.PLACEHOLDER or rendered.diff is None:
        # a diff body without a parsed diff falls back to the raw patch
        if rendered.message:
            lines.append(f"    {rendered.message}")
        if rendered.body != BodyKind.PLACEHOLDER and rendered.file.patch:
            lines.extend(f"    {line}" for line in rendered.file.patch.splitlines())
        return "\n".join(lines)

    for position, hunk in enumerate(rendered.diff.hunks):
        lines.append(hunk.header)
        if view_type == ViewType.SPLIT:
            for row in split_rows(hunk, rendered.tokens, position):
                old_no = row.left.change.old_line_number if row.left else None
                new_no = row.right.change.new_line_number if row.right else None
                left = _text(row.left)[:width].ljust(width)
                lines.append(
                    f"{old_no or '':>5} {left} | {new_no or '':>5} {_text(row.right)}"
                )
        else:
            for cell in unified_rows(hunk, rendered.tokens, position):
                change = cell.change
                lines.append(
                    f"{change.old_line_number or '':>5} "
                    f"{change.new_line_number or '':>5} "
                    f"{CHANGE_MARKERS[change.kind]}{_text(cell)}"
                )
    return "\n".join(lines)
