from collections.abc import Callable, Sequence
import hashlib
import json
import threading

from cachetools import LRUCache

from prview.diff.highlight import Highlighter, get_highlighter, tokenize_safely
from prview.diff.languages import language_for_filename
from prview.diff.models import FileTokens, ParsedDiff
from prview.diff.parser import parse_patch, placeholder_for
from prview.diff.render import BodyKind, RenderedFile
from prview.diff.scheduler import TokenizationScheduler
from prview.diff.tree import (
    DirectoryExpansion,
    DirectoryNode,
    build_file_tree,
    iter_files,
)
from prview.logger import get_logger
from prview.models import ChangedFile


SMALL_CHANGE_THRESHOLD = 500
LARGE_PULL_REQUEST_FILES = 50
LARGE_PULL_REQUEST_CAP = 10
DEFAULT_AUTO_EXPAND_CAP = 20

UNPARSEABLE_MESSAGE = "Unable to parse diff, showing raw patch"

logger = get_logger("diff.expansion")


def auto_expand_cap(total_files: int) -> int:
    if total_files > LARGE_PULL_REQUEST_FILES:
        return LARGE_PULL_REQUEST_CAP
    return DEFAULT_AUTO_EXPAND_CAP


def auto_expand_indices(files: Sequence[ChangedFile]) -> set[int]:
    """Small files in list order, up to a cap that shrinks for large PRs."""
    cap = auto_expand_cap(len(files))
    expanded: set[int] = set()
    for index, file in enumerate(files):
        if len(expanded) >= cap:
            break
        if file.changes < SMALL_CHANGE_THRESHOLD:
            expanded.add(index)
    return expanded


def file_fingerprint(file: ChangedFile) -> str:
    """Identity of the inputs that parsing and highlighting depend on."""
    key_data = [file.filename, file.previous_filename, file.patch]
    return hashlib.sha256(json.dumps(key_data).encode()).hexdigest()


class ExpansionController:
    """Per-session file expansion state for one pull request's file list.

    Expanding a file parses it synchronously and highlights it in the
    background; until highlighting lands the file renders with plain tokens.
    Parse and token results are memoised by file content, so collapsing and
    re-expanding never re-parses.
    """

    def __init__(
        self,
        scheduler: TokenizationScheduler | None = None,
        highlighter: Highlighter | None = None,
        cache_size: int = 4096,
    ) -> None:
        self._scheduler = scheduler or TokenizationScheduler()
        self._highlighter = highlighter or get_highlighter()
        self._files: tuple[ChangedFile, ...] = ()
        self._tree: DirectoryNode = build_file_tree(())
        self._expanded: set[int] = set()
        self._generation = 0
        self._parsed: LRUCache[str, ParsedDiff | None] = LRUCache(maxsize=cache_size)
        self._tokens: LRUCache[str, FileTokens] = LRUCache(maxsize=cache_size)
        self._tokens_lock = threading.Lock()
        self.directories = DirectoryExpansion()

    @property
    def files(self) -> tuple[ChangedFile, ...]:
        return self._files

    @property
    def tree(self) -> DirectoryNode:
        return self._tree

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def expanded_indices(self) -> frozenset[int]:
        return frozenset(self._expanded)

    def begin_load(self) -> int:
        """Tag a file-list fetch; only the latest tag may be loaded."""
        self._generation += 1
        return self._generation

    def load(self, files: Sequence[ChangedFile], generation: int | None = None) -> bool:
        if generation is None:
            generation = self.begin_load()
        elif generation != self._generation:
            logger.info(
                f"Discarding stale file list (generation {generation}, "
                f"current {self._generation})"
            )
            return False

        self._scheduler.cancel_all()
        self._files = tuple(files)
        self._tree = build_file_tree(self._files)
        self.directories.collapse_all()
        self._expanded = auto_expand_indices(self._files)
        logger.debug(
            f"Loaded {len(self._files)} files, auto-expanded {len(self._expanded)}"
        )
        for index in sorted(self._expanded):
            self._materialize(index)
        return True

    def _file(self, index: int) -> ChangedFile:
        if not 0 <= index < len(self._files):
            raise IndexError(f"File index {index} out of range")
        return self._files[index]

    def is_expanded(self, index: int) -> bool:
        return index in self._expanded

    def expand(self, index: int) -> None:
        self._file(index)
        self._expanded.add(index)
        self._materialize(index)

    def collapse(self, index: int) -> None:
        self._file(index)
        self._expanded.discard(index)

    def toggle(self, index: int) -> bool:
        if self.is_expanded(index):
            self.collapse(index)
            return False
        self.expand(index)
        return True

    def expand_all(self) -> None:
        for index in range(len(self._files)):
            self.expand(index)

    def collapse_all(self) -> None:
        self._expanded.clear()

    def select(
        self, index: int, scroll_into_view: Callable[[str], None] | None = None
    ) -> RenderedFile:
        # expand before scrolling so the target does not shift afterwards
        self.expand(index)
        rendered = self.render(index)
        if scroll_into_view is not None:
            scroll_into_view(rendered.anchor)
        return rendered

    def parsed(self, index: int) -> ParsedDiff | None:
        file = self._file(index)
        if not file.patch:
            return None
        fingerprint = file_fingerprint(file)
        if fingerprint in self._parsed:
            return self._parsed[fingerprint]
        result = parse_patch(file)
        self._parsed[fingerprint] = result
        return result

    def tokens(self, index: int) -> FileTokens | None:
        fingerprint = file_fingerprint(self._file(index))
        with self._tokens_lock:
            return self._tokens.get(fingerprint)

    def _store_tokens(self, fingerprint: str, tokens: FileTokens) -> None:
        with self._tokens_lock:
            self._tokens[fingerprint] = tokens

    def _materialize(self, index: int) -> None:
        parsed = self.parsed(index)
        if parsed is None:
            return

        file = self._files[index]
        fingerprint = file_fingerprint(file)
        with self._tokens_lock:
            if fingerprint in self._tokens:
                return
        key = (self._generation, index)
        if self._scheduler.pending(key):
            return

        language = language_for_filename(file.filename)
        hunks = parsed.hunks
        highlighter = self._highlighter
        self._scheduler.submit(
            key,
            lambda: tokenize_safely(hunks, language, highlighter),
            lambda tokens: self._store_tokens(fingerprint, tokens),
        )

    def render(self, index: int) -> RenderedFile:
        file = self._file(index)
        if index not in self._expanded:
            return RenderedFile(index, file, expanded=False, body=BodyKind.COLLAPSED)
        if not file.patch:
            return RenderedFile(
                index,
                file,
                expanded=True,
                body=BodyKind.PLACEHOLDER,
                message=placeholder_for(file),
            )

        parsed = self.parsed(index)
        if parsed is None:
            return RenderedFile(
                index,
                file,
                expanded=True,
                body=BodyKind.RAW,
                message=UNPARSEABLE_MESSAGE,
            )
        return RenderedFile(
            index,
            file,
            expanded=True,
            body=BodyKind.DIFF,
            diff=parsed,
            tokens=self.tokens(index),
        )

    def render_all(self) -> list[RenderedFile]:
        """Every file in the order the tree lists them."""
        return [self.render(entry.index) for entry in iter_files(self._tree)]

    def wait_for_tokens(self, timeout: float | None = None) -> bool:
        return self._scheduler.wait(timeout)

    def close(self) -> None:
        self._scheduler.shutdown()
