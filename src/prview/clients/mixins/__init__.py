from prview.clients.mixins.caching import CacheMixin
from prview.clients.mixins.pagination import PaginationMixin


__all__ = ["CacheMixin", "PaginationMixin"]
