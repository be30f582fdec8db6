"""Bidirectional pagination over a view's stateless range queries.

A view can only be read from a start key, in either direction, up to a
limit. Paging is rebuilt on top of that by reading one extra row per page and
carrying page boundaries in opaque tokens:

* a NEXT token starts the forward read at the row just past the current page;
* a PREVIOUS token starts a descending read at the current page's first row
  (its anchor), which then comes back as the extra row and is trimmed.

The engine keeps no state between calls; everything needed to resume travels
in the token.
"""

from __future__ import annotations

import logging
import math
from typing import Generic, TypeVar

from pycouch.core.executor import ViewExecutor
from pycouch.core.params import Direction, ViewParams, build_page_params
from pycouch.core.result import Row, ViewQueryResult, row_item
from pycouch.core.tokens import PageAction, PageAnchor, PageCursor, decode_token, encode_token
from pycouch.utils.exceptions import EmptyResultError
from pycouch.utils.pagination import Page

T = TypeVar("T")

logger = logging.getLogger(__name__)


class PaginationEngine(Generic[T]):
    """Produces one Page per call from a ViewExecutor.

    Args:
        executor: The query capability to read the view with
        document_class: Optional model to validate each page item into
        base_params: View options carried into every page query

    Raises:
        ValueError: If ``base_params`` restricts or orders the rows read
            (``key``, ``start_key``, ``skip``, ``descending``, ...); page
            tokens own the read position
    """

    def __init__(
        self,
        executor: ViewExecutor,
        *,
        document_class: type[T] | None = None,
        base_params: ViewParams | None = None,
    ) -> None:
        if base_params is not None:
            conflicting = base_params.positional_options()
            if conflicting:
                raise ValueError(
                    f"Cannot paginate with {', '.join(conflicting)} set; "
                    "page tokens decide where each page starts"
                )
        self._executor = executor
        self._document_class = document_class
        self._base_params = base_params

    async def query_page(self, page_size: int, token: str | None = None) -> Page[T]:
        """Return the page a token points at, or the first page without one.

        Raises:
            ValueError: If page_size is not positive
            InvalidTokenError: If the token cannot be decoded
            EmptyResultError: If no rows exist at the token's position
            ExecutorError: If the underlying view query fails
        """
        _check_page_size(page_size)
        if token is None:
            return await self.next_page(page_size)

        cursor = decode_token(token)
        if cursor.action is PageAction.PREVIOUS:
            return await self.previous_page(page_size, cursor)
        return await self.next_page(page_size, cursor)

    async def next_page(self, page_size: int, cursor: PageCursor | None = None) -> Page[T]:
        """Read forward from the cursor's target, or from the start of the view."""
        _check_page_size(page_size)
        if cursor is None:
            params = build_page_params(Direction.FORWARD, None, None, page_size, self._base_params)
        else:
            params = build_page_params(
                Direction.FORWARD,
                cursor.target_start_key,
                cursor.target_start_key_doc_id,
                page_size,
                self._base_params,
            )

        result = await self._executor.query(params)
        rows = _require_rows(result)
        fetched = len(rows)
        anchor = _anchor(rows[0])
        rows, next_token = _trim_extra(rows, page_size, anchor)

        previous_token = None
        if cursor is not None and result.offset != 0:
            previous_token = encode_token(
                PageCursor(
                    action=PageAction.PREVIOUS,
                    target_start_key=cursor.anchor.key,
                    target_start_key_doc_id=cursor.anchor.doc_id,
                    anchor=anchor,
                )
            )

        result_from = result.offset + 1
        result_to = result.offset + min(page_size, fetched)
        page_number = math.ceil(result_from / page_size)

        logger.debug(
            "Forward page %d: rows %d-%d of %d",
            page_number,
            result_from,
            result_to,
            result.total_rows,
        )
        return self._build_page(
            rows,
            page_size=page_size,
            page_number=page_number,
            result_from=result_from,
            result_to=result_to,
            total_results=result.total_rows,
            next_token=next_token,
            previous_token=previous_token,
        )

    async def previous_page(self, page_size: int, cursor: PageCursor) -> Page[T]:
        """Read backward from the cursor's anchor and restore ascending order."""
        _check_page_size(page_size)
        params = build_page_params(
            Direction.BACKWARD,
            cursor.anchor.key,
            cursor.anchor.doc_id,
            page_size,
            self._base_params,
        )

        result = await self._executor.query(params)
        rows = list(reversed(_require_rows(result)))
        anchor = _anchor(rows[0])
        rows, next_token = _trim_extra(rows, page_size, anchor)

        offset = result.offset
        total_rows = result.total_rows

        # A descending read that ends on the view's first row sits exactly
        # page_size + 1 rows from the end of the descending ordering.
        previous_token = None
        if offset != total_rows - page_size - 1:
            previous_token = encode_token(
                PageCursor(
                    action=PageAction.PREVIOUS,
                    target_start_key=cursor.anchor.key,
                    target_start_key_doc_id=cursor.anchor.doc_id,
                    anchor=anchor,
                )
            )

        result_from = total_rows - (offset + page_size)
        result_to = total_rows - offset - 1
        page_number = result_to // page_size

        logger.debug(
            "Backward page %d: rows %d-%d of %d",
            page_number,
            result_from,
            result_to,
            total_rows,
        )
        return self._build_page(
            rows,
            page_size=page_size,
            page_number=page_number,
            result_from=result_from,
            result_to=result_to,
            total_results=total_rows,
            next_token=next_token,
            previous_token=previous_token,
        )

    def _build_page(
        self,
        rows: list[Row],
        *,
        page_size: int,
        page_number: int,
        result_from: int,
        result_to: int,
        total_results: int,
        next_token: str | None,
        previous_token: str | None,
    ) -> Page[T]:
        return Page(
            result_list=[row_item(row, self._document_class) for row in rows],
            page_size=page_size,
            page_number=page_number,
            result_from=result_from,
            result_to=result_to,
            total_results=total_results,
            has_next=next_token is not None,
            has_previous=previous_token is not None,
            next_token=next_token,
            previous_token=previous_token,
        )


def _check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")


def _require_rows(result: ViewQueryResult) -> list[Row]:
    if not result.rows:
        raise EmptyResultError(
            f"No rows at the requested position (offset={result.offset}, "
            f"total_rows={result.total_rows})"
        )
    return list(result.rows)


def _anchor(row: Row) -> PageAnchor:
    if row.id is None:
        raise ValueError("Cannot paginate rows without document ids (is this a reduce query?)")
    return PageAnchor(key=row.key, doc_id=row.id)


def _trim_extra(
    rows: list[Row], page_size: int, anchor: PageAnchor
) -> tuple[list[Row], str | None]:
    """Drop the look-ahead row, turning it into the next page's token."""
    if len(rows) <= page_size:
        return rows, None
    target = _anchor(rows[page_size])
    token = encode_token(
        PageCursor(
            action=PageAction.NEXT,
            target_start_key=target.key,
            target_start_key_doc_id=target.doc_id,
            anchor=anchor,
        )
    )
    return rows[:page_size], token
