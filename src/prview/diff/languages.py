from pathlib import PurePosixPath


PLAIN_TEXT = "text"

EXTENSION_LANGUAGES: dict[str, str] = {
    "cs": "csharp",
    "csx": "csharp",
    "razor": "csharp",
    "js": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "jsx": "jsx",
    "ts": "typescript",
    "tsx": "tsx",
    "py": "python",
    "java": "java",
    "css": "css",
    "scss": "scss",
    "sass": "scss",
    "json": "json",
    "yml": "yaml",
    "yaml": "yaml",
    "md": "markdown",
    "markdown": "markdown",
    "sql": "sql",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "rb": "ruby",
    "sh": "bash",
    "bash": "bash",
    "xml": "xml",
    "html": "markup",
    "htm": "markup",
    "vue": "markup",
    "aspx": "markup",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
}


def extension_of(filename: str) -> str:
    """Lower-cased text after the last dot of the base name.

    A name without a dot is its own extension, so ``Makefile`` yields
    ``makefile`` and resolves to plain text.
    """
    return PurePosixPath(filename).name.rsplit(".", 1)[-1].lower()


def language_for_filename(filename: str) -> str:
    return EXTENSION_LANGUAGES.get(extension_of(filename), PLAIN_TEXT)
