from collections.abc import Callable, Generator, Iterable
from typing import Any, TypeVar

from prview.logger import get_logger


T = TypeVar("T")


class PaginationMixin:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._pagination_logger = get_logger(
            f"{self.__class__.__name__}.PaginationMixin"
        )

    def paginate(
        self,
        fetch_page: Callable[[int], list[T]],
        page_size: int = 100,
    ) -> Generator[T, None, None]:
        """
        Walk pages sequentially until a short or empty page.

        The total page count is unknown upfront, so each page gates the next.
        A failing page is re-raised; a partial result is never returned.

        Args:
            fetch_page: Function that takes a 1-based page number and returns
                that page's rows
            page_size: Rows per full page

        Yields:
            Individual rows from all pages
        """
        page = 1
        total_items = 0

        while True:
            self._pagination_logger.debug(f"Fetching page {page} (size={page_size})")

            try:
                items = fetch_page(page)
            except Exception as e:
                self._pagination_logger.error(f"Error fetching page {page}: {e}")
                raise

            yield from items
            total_items += len(items)

            self._pagination_logger.debug(
                f"Page {page} returned {len(items)} items (total: {total_items})"
            )

            if len(items) < page_size:
                self._pagination_logger.info(
                    f"Pagination complete. Total items: {total_items}"
                )
                break

            page += 1

    def collect_paginated(
        self,
        fetch_page: Callable[[int], list[T]],
        page_size: int = 100,
        max_items: int | None = None,
    ) -> list[T]:
        results: list[T] = []

        for item in self.paginate(fetch_page, page_size):
            results.append(item)
            if max_items is not None and len(results) >= max_items:
                self._pagination_logger.warning(
                    f"Reached max_items limit ({max_items})"
                )
                break

        return results

    def paginate_github(
        self, paginated_list: Iterable[Any], max_items: int | None = None
    ) -> Generator[Any, None, None]:
        """
        Paginate through a PyGithub PaginatedList.

        Args:
            paginated_list: PyGithub PaginatedList object
            max_items: Maximum items to yield

        Yields:
            Individual items from the paginated list
        """
        count = 0
        for item in paginated_list:
            yield item
            count += 1
            if max_items is not None and count >= max_items:
                self._pagination_logger.info(f"Reached max_items limit ({max_items})")
                break
