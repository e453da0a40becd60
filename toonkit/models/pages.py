"""Page containers and continuation tokens for paginated listings.

Two upstream pagination styles are normalized into one shape:

* :class:`PageNumber` -- caller-supplied integer page index.  ``step`` is
  ``-1`` for listings walked from their last page backwards (webtoons.com
  episode lists are newest-first), and ``stop`` is the last index to
  request, when the platform publishes the page count.
* :class:`Cursor` -- opaque continuation token handed back by the server.
  It is stored and echoed verbatim, never parsed or built client-side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


@dataclass(frozen=True)
class PageNumber:
    """Integer page index token."""

    number: int
    step: int = 1
    stop: int | None = None

    def next(self) -> PageNumber:
        return PageNumber(self.number + self.step, self.step, self.stop)

    @property
    def at_stop(self) -> bool:
        return self.stop is not None and self.number == self.stop


@dataclass(frozen=True)
class Cursor:
    """Opaque continuation token; ``None`` means "first page"."""

    value: str | None = None


PageToken = Union[PageNumber, Cursor]


class Page(BaseModel, Generic[T]):
    """One fetched page of a listing.

    ``cursor`` carries the next continuation token for cursor-paginated
    listings.  ``page_size`` is the requested size; a forward page-number
    walk stops at the first page shorter than it.  ``last`` lets an
    adapter mark the final page when the platform says so explicitly.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: list[T] = Field(default_factory=list)
    cursor: str | None = None
    page_size: int | None = None
    last: bool = False
