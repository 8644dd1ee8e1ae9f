from unidiff import PatchSet
from unidiff.patch import Hunk as UnidiffHunk
from unidiff.patch import PatchedFile

from prview.diff.models import Change, ChangeKind, DiffType, Hunk, ParsedDiff
from prview.logger import get_logger
from prview.models import ChangedFile, FileStatus


DEV_NULL = "/dev/null"

logger = get_logger("diff.parser")


def synthesize_diff_text(file: ChangedFile) -> str:
    """Prefix a hunk-only patch with the file header the parser needs.

    The code host returns the hunks without ``---``/``+++`` lines. The header
    drives change-type inference, so added and removed files get a
    ``/dev/null`` side.
    """
    old_path = f"a/{file.previous_filename or file.filename}"
    new_path = f"b/{file.filename}"
    if file.status == FileStatus.ADDED:
        old_path = DEV_NULL
    elif file.status == FileStatus.REMOVED:
        new_path = DEV_NULL

    patch = file.patch or ""
    if not patch.endswith("\n"):
        patch += "\n"
    return f"--- {old_path}\n+++ {new_path}\n{patch}"


def _strip_prefix(path: str) -> str:
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def _change_type(patched_file: PatchedFile) -> tuple[DiffType, str, str]:
    source = patched_file.source_file
    target = patched_file.target_file
    old_path = _strip_prefix(source)
    new_path = _strip_prefix(target)

    if source == DEV_NULL:
        return DiffType.ADD, new_path, new_path
    if target == DEV_NULL:
        return DiffType.DELETE, old_path, old_path
    if old_path != new_path:
        return DiffType.RENAME, old_path, new_path
    return DiffType.MODIFY, old_path, new_path


def _convert_hunk(hunk: UnidiffHunk) -> Hunk:
    changes: list[Change] = []
    for line in hunk:
        content = line.value.rstrip("\n")
        if line.is_added:
            changes.append(
                Change(ChangeKind.INSERT, content, new_line_number=line.target_line_no)
            )
        elif line.is_removed:
            changes.append(
                Change(ChangeKind.DELETE, content, old_line_number=line.source_line_no)
            )
        elif line.is_context:
            changes.append(
                Change(
                    ChangeKind.NORMAL,
                    content,
                    old_line_number=line.source_line_no,
                    new_line_number=line.target_line_no,
                )
            )
        # "\ No newline at end of file" markers carry no line

    return Hunk(
        old_start=hunk.source_start,
        old_lines=hunk.source_length,
        new_start=hunk.target_start,
        new_lines=hunk.target_length,
        changes=tuple(changes),
        section=(hunk.section_header or "").strip(),
    )


def parse_patch(file: ChangedFile) -> ParsedDiff | None:
    """Parse one file's patch into hunks.

    Returns None when the file has no patch or the patch cannot be parsed;
    callers fall back to a placeholder or the raw patch text.
    """
    if not file.patch:
        return None

    try:
        patch_set = PatchSet.from_string(synthesize_diff_text(file))
        if len(patch_set) != 1:
            raise ValueError(f"Expected one file in patch, found {len(patch_set)}")

        patched_file = patch_set[0]
        if len(patched_file) == 0:
            raise ValueError("No hunks found in patch")
        change_type, old_path, new_path = _change_type(patched_file)
        hunks = sorted(
            (_convert_hunk(h) for h in patched_file), key=lambda h: h.old_start
        )
        return ParsedDiff(
            change_type=change_type,
            old_path=old_path,
            new_path=new_path,
            hunks=tuple(hunks),
        )
    except Exception as e:
        logger.warning(f"Could not parse patch for {file.filename}: {e}")
        return None


def placeholder_for(file: ChangedFile) -> str:
    if file.status == FileStatus.ADDED:
        return "File added (binary or too large to display)"
    if file.status == FileStatus.REMOVED:
        return "File removed (binary or too large to display)"
    if file.status == FileStatus.RENAMED:
        return "File renamed without content changes"
    return "No diff available"
