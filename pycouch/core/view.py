from __future__ import annotations

from typing import Any, Generic, TypeVar

from pycouch.core.executor import HttpViewExecutor, ViewExecutor
from pycouch.core.params import ViewParams, encode_key
from pycouch.core.paginator import PaginationEngine
from pycouch.core.result import ViewQueryResult, row_item
from pycouch.utils.pagination import Page
from pycouch.utils.types import DEFAULT_PAGE_SIZE

T = TypeVar("T")


class View(Generic[T]):
    """Fluent, lazy, immutable query builder for CouchDB views.

    Each chainable method returns a new View instance.
    Queries are only executed when a terminal method is called.

    Example:
        page = await view("example/by_name", User).include_docs(True).query_page(10)
    """

    def __init__(
        self,
        view_id: str,
        document_class: type[T] | None = None,
        params: ViewParams | None = None,
        *,
        alias: str = "default",
        executor: ViewExecutor | None = None,
    ) -> None:
        if not view_id:
            raise ValueError("View id must not be empty")
        self._view_id = view_id
        self._document_class = document_class
        self._params = params or ViewParams()
        self._alias = alias
        self._executor = executor or HttpViewExecutor(view_id, alias=alias)

    def _clone(self, **overrides: Any) -> View[T]:
        """Return a new View with merged parameter overrides."""
        return View(
            self._view_id,
            self._document_class,
            self._params.with_options(**overrides),
            alias=self._alias,
            executor=self._executor,
        )

    @property
    def params(self) -> ViewParams:
        return self._params

    # --- Chainable methods ---

    def key(self, *key: Any) -> View[T]:
        """Exact key match. Several values form a complex key."""
        return self._clone(key=encode_key(*key))

    def start_key(self, *key: Any) -> View[T]:
        return self._clone(start_key=encode_key(*key))

    def start_key_doc_id(self, doc_id: str) -> View[T]:
        return self._clone(start_key_doc_id=doc_id)

    def end_key(self, *key: Any) -> View[T]:
        return self._clone(end_key=encode_key(*key))

    def end_key_doc_id(self, doc_id: str) -> View[T]:
        return self._clone(end_key_doc_id=doc_id)

    def limit(self, n: int) -> View[T]:
        return self._clone(limit=n)

    def skip(self, n: int) -> View[T]:
        return self._clone(skip=n)

    def descending(self, value: bool = True) -> View[T]:
        """Reverse the reading direction. Start and end keys swap roles."""
        return self._clone(descending=value)

    def stale(self, value: str) -> View[T]:
        """Allow stale index reads: ``"ok"`` or ``"update_after"``."""
        return self._clone(stale=value)

    def group(self, value: bool = True) -> View[T]:
        return self._clone(group=value)

    def group_level(self, level: int) -> View[T]:
        return self._clone(group_level=level)

    def reduce(self, value: bool = True) -> View[T]:
        return self._clone(reduce=value)

    def include_docs(self, value: bool = True) -> View[T]:
        return self._clone(include_docs=value)

    def inclusive_end(self, value: bool = True) -> View[T]:
        return self._clone(inclusive_end=value)

    def update_seq(self, value: bool = True) -> View[T]:
        return self._clone(update_seq=value)

    def keys(self, keys: list[Any]) -> View[T]:
        """Fetch only the given keys; the request is sent as a POST."""
        return self._clone(keys=tuple(keys))

    # --- Terminal methods ---

    async def query_view(self) -> ViewQueryResult:
        """Execute the query and return the raw view result."""
        return await self._executor.query(self._params)

    async def all(self) -> list[T]:
        """Execute the query and return one item per row."""
        result = await self.query_view()
        include_docs = bool(self._params.include_docs)
        return [row_item(row, self._document_class, include_docs) for row in result.rows]

    async def first(self) -> T | None:
        """Return the first item, or None."""
        results = await self.limit(1).all()
        return results[0] if results else None

    async def value(self) -> Any:
        """Return the first row's value, e.g. a reduce result, or None."""
        result = await self.query_view()
        return result.rows[0].value if result.rows else None

    # --- Pagination ---

    async def query_page(self, page_size: int = DEFAULT_PAGE_SIZE, token: str | None = None) -> Page[T]:
        """Return the page for a continuation token, or the first page.

        Tokens come from ``Page.next_token`` / ``Page.previous_token`` of an
        earlier call on the same view and page size. ``page_size`` replaces
        any ``limit``; read options such as ``stale`` carry over.

        Raises:
            ValueError: If a key range, ``keys``, ``skip`` or ``descending``
                is set on this view
        """
        engine: PaginationEngine[T] = PaginationEngine(
            self._executor,
            document_class=self._document_class,
            base_params=self._params,
        )
        return await engine.query_page(page_size, token)


def view(view_id: str, document_class: type[T] | None = None, *, alias: str = "default") -> View[T]:
    """Start a view query on the database registered under ``alias``."""
    return View(view_id, document_class, alias=alias)
