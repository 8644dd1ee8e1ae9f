from abc import ABC
from typing import Any, Generic, NoReturn, TypeVar

from prview.client import CodeHostClient
from prview.exceptions import APIError, AuthenticationError, ResourceNotFoundError
from prview.logger import get_logger
from prview.security import SecurityValidator


T = TypeVar("T")


class BaseCodeHostClient(CodeHostClient, Generic[T], ABC):
    def __init__(
        self,
        client: T,
        logger: Any | None = None,
        per_page: int = 100,
    ) -> None:
        super().__init__()
        self.client = client
        self.logger = logger or get_logger(self.__class__.__name__)
        self.per_page = per_page

    @staticmethod
    def _status_of(error: Exception) -> int | None:
        status = getattr(error, "status", None)
        return status if isinstance(status, int) else None

    def _raise_api_error(self, error: Exception, context: str) -> NoReturn:
        """Translate an SDK failure into our hierarchy, keeping the status."""
        status = self._status_of(error)
        sanitized = SecurityValidator.sanitize_error_message(error)
        self.logger.error(f"Failed during {context}: {sanitized}")

        if status == 401:
            raise AuthenticationError(f"Authentication failed during {context}") from error
        if status == 404:
            raise ResourceNotFoundError(f"Resource not found during {context}") from error
        if status == 403:
            message = f"Access forbidden during {context}"
        elif status is None:
            message = f"Operation failed during {context}"
        else:
            message = f"Upstream returned {status} during {context}"
        raise APIError(status_code=status, message=message) from error
