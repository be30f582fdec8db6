from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a view, with tokens for its neighbours.

    ``result_from`` and ``result_to`` are 1-based inclusive positions in the
    ascending view ordering, whichever direction the page was read in.
    """

    result_list: list[T]
    page_size: int
    page_number: int
    result_from: int
    result_to: int
    total_results: int
    has_next: bool = False
    has_previous: bool = False
    next_token: str | None = field(default=None, repr=False)
    previous_token: str | None = field(default=None, repr=False)
