from collections.abc import Iterable, Mapping, Sequence
from functools import cache
from types import MappingProxyType

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    _TokenType,
)
from pygments.util import ClassNotFound

from prview.diff.languages import PLAIN_TEXT
from prview.diff.models import FileTokens, Hunk, Token
from prview.logger import get_logger


PLAIN = "plain"

# First alias that resolves wins; older Pygments releases lack jsx/tsx.
LANGUAGE_LEXERS: dict[str, tuple[str, ...]] = {
    "csharp": ("csharp",),
    "javascript": ("javascript",),
    "jsx": ("jsx", "javascript"),
    "typescript": ("typescript",),
    "tsx": ("tsx", "typescript"),
    "python": ("python",),
    "java": ("java",),
    "css": ("css",),
    "scss": ("scss",),
    "json": ("json",),
    "yaml": ("yaml",),
    "markdown": ("markdown",),
    "sql": ("sql",),
    "go": ("go",),
    "rust": ("rust",),
    "php": ("php",),
    "ruby": ("ruby",),
    "bash": ("bash",),
    "xml": ("xml",),
    "markup": ("html",),
    "c": ("c",),
    "cpp": ("cpp",),
}

# Checked in order, so more specific token types come first.
CATEGORY_RULES: tuple[tuple[_TokenType, str], ...] = (
    (Comment, "comment"),
    (String, "string"),
    (Number, "number"),
    (Keyword, "keyword"),
    (Name.Function, "function"),
    (Name.Class, "class-name"),
    (Name.Builtin, "builtin"),
    (Name.Tag, "tag"),
    (Name.Attribute, "attr-name"),
    (Name.Variable, "variable"),
    (Operator, "operator"),
    (Punctuation, "punctuation"),
)

LEXER_OPTIONS: dict[str, dict[str, bool]] = {
    # patches rarely include the opening "<?php"
    "php": {"startinline": True},
}

logger = get_logger("diff.highlight")


def category_for(token_type: _TokenType) -> str:
    for parent, category in CATEGORY_RULES:
        if token_type in parent:
            return category
    return PLAIN


def plain_line(content: str) -> tuple[Token, ...]:
    return (Token(PLAIN, content),) if content else ()


def _merge(tokens: Iterable[Token]) -> tuple[Token, ...]:
    merged: list[Token] = []
    for token in tokens:
        if merged and merged[-1].category == token.category:
            merged[-1] = Token(token.category, merged[-1].text + token.text)
        else:
            merged.append(token)
    return tuple(merged)


def _load_lexers() -> Mapping[str, Lexer]:
    lexers: dict[str, Lexer] = {}
    for language, aliases in LANGUAGE_LEXERS.items():
        for alias in aliases:
            try:
                lexers[language] = get_lexer_by_name(
                    alias,
                    stripnl=False,
                    ensurenl=False,
                    **LEXER_OPTIONS.get(language, {}),
                )
                break
            except ClassNotFound:
                continue
        else:
            logger.debug(f"No lexer available for {language}")
    return MappingProxyType(lexers)


class Highlighter:
    """Syntax highlighting for parsed hunks.

    The lexer registry is fixed at construction; use ``get_highlighter()``
    for the process-wide instance.
    """

    def __init__(self, lexers: Mapping[str, Lexer] | None = None) -> None:
        self._lexers = lexers if lexers is not None else _load_lexers()

    @property
    def languages(self) -> frozenset[str]:
        return frozenset(self._lexers)

    def is_supported(self, language: str) -> bool:
        return language != PLAIN_TEXT and language in self._lexers

    def tokenize(self, hunks: Sequence[Hunk], language: str) -> FileTokens:
        if not self.is_supported(language):
            return self.plain(hunks, language)

        lexer = self._lexers[language]
        return FileTokens(
            language=language,
            highlighted=True,
            lines=tuple(self._tokenize_hunk(hunk, lexer) for hunk in hunks),
        )

    def plain(self, hunks: Sequence[Hunk], language: str = PLAIN_TEXT) -> FileTokens:
        return FileTokens(
            language=language,
            highlighted=False,
            lines=tuple(
                tuple(plain_line(change.content) for change in hunk.changes)
                for hunk in hunks
            ),
        )

    def _tokenize_hunk(
        self, hunk: Hunk, lexer: Lexer
    ) -> tuple[tuple[Token, ...], ...]:
        # Lex each side as a whole so multi-line strings and comments
        # keep their context across lines.
        old_side = self._lex_lines(
            [c.content for c in hunk.changes if not c.is_insert], lexer
        )
        new_side = self._lex_lines(
            [c.content for c in hunk.changes if not c.is_delete], lexer
        )

        result: list[tuple[Token, ...]] = []
        old_index = new_index = 0
        for change in hunk.changes:
            if change.is_delete:
                result.append(old_side[old_index])
                old_index += 1
            else:
                result.append(new_side[new_index])
                new_index += 1
                if change.is_normal:
                    old_index += 1
        return tuple(result)

    def _lex_lines(
        self, lines: list[str], lexer: Lexer
    ) -> list[tuple[Token, ...]]:
        if not lines:
            return []

        # CRLF patches keep "\r" in the content; the lexer would turn it into
        # a line break, so lex without it and restore it as a plain token.
        endings = ["\r" if line.endswith("\r") else "" for line in lines]
        stripped = [line[: len(line) - len(end)] for line, end in zip(lines, endings)]

        rows: list[list[Token]] = [[]]
        for token_type, value in lexer.get_tokens("\n".join(stripped)):
            category = category_for(token_type)
            for position, part in enumerate(value.split("\n")):
                if position:
                    rows.append([])
                if part:
                    rows[-1].append(Token(category, part))

        result: list[tuple[Token, ...]] = []
        for position, content in enumerate(lines):
            row = rows[position] if position < len(rows) else []
            if "".join(token.text for token in row) != stripped[position]:
                # lexer normalised the text (e.g. a lone "\r"), keep the line exact
                result.append(plain_line(content))
            else:
                if endings[position]:
                    row.append(Token(PLAIN, endings[position]))
                result.append(_merge(row))
        return result


@cache
def get_highlighter() -> Highlighter:
    return Highlighter()


def tokenize_safely(
    hunks: Sequence[Hunk], language: str, highlighter: Highlighter | None = None
) -> FileTokens:
    highlighter = highlighter or get_highlighter()
    try:
        return highlighter.tokenize(hunks, language)
    except Exception as e:
        logger.warning(f"Highlighting failed for language {language}: {e}")
        return highlighter.plain(hunks, language)
