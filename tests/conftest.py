import logging

import pytest

from prview.models import ChangedFile, FileStatus


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test."""
    logger = logging.getLogger("prview")

    original_handlers = logger.handlers[:]
    original_propagate = logger.propagate
    original_level = logger.level

    # Clear handlers and ensure propagation so caplog sees records
    logger.handlers.clear()
    logger.propagate = True

    yield

    logger.handlers = original_handlers
    logger.propagate = original_propagate
    logger.setLevel(original_level)


@pytest.fixture
def make_file():
    def factory(
        filename: str = "src/app.py",
        status: FileStatus = FileStatus.MODIFIED,
        patch: str | None = "@@ -1,2 +1,2 @@\n x = 1\n-y = 2\n+y = 3\n",
        changes: int = 2,
        **kwargs,
    ) -> ChangedFile:
        return ChangedFile(
            filename=filename, status=status, patch=patch, changes=changes, **kwargs
        )

    return factory
