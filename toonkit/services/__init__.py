"""Services composed on top of the adapter layer."""

from toonkit.services.pagination import PaginationEngine, paginate

__all__ = ["PaginationEngine", "paginate"]
