from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from pycouch.core.connection import connect, disconnect
from pycouch.utils.exceptions import (
    DocumentNotFound,
    EmptyResultError,
    ExecutorError,
    InvalidTokenError,
    PycouchError,
)
from pycouch.utils.pagination import Page
from pycouch.utils.types import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


def init_app(app: Any, uri: str, alias: str = "default") -> Any:
    """Initialize a FastAPI app with Pycouch.

    Sets up:
    - CouchDB connection/disconnection in app lifespan
    - Exception handlers for Pycouch exceptions

    Args:
        app: FastAPI application instance
        uri: CouchDB database URI
        alias: Connection alias for multi-connection support (default: "default")
    """
    original_lifespan = getattr(app, "router", app).lifespan_context

    @asynccontextmanager
    async def lifespan(a: Any):
        await connect(uri, alias=alias)
        try:
            if original_lifespan is not None:
                async with original_lifespan(a) as state:
                    yield state
            else:
                yield
        finally:
            await disconnect(alias)

    app.router.lifespan_context = lifespan
    register_exception_handlers(app)
    return app


def register_exception_handlers(app: Any) -> None:
    """Register pycouch exception handlers on a FastAPI app."""
    from starlette.responses import JSONResponse

    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(request: Any, exc: InvalidTokenError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(EmptyResultError)
    async def empty_result_handler(request: Any, exc: EmptyResultError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DocumentNotFound)
    async def document_not_found_handler(request: Any, exc: DocumentNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ExecutorError)
    async def executor_error_handler(request: Any, exc: ExecutorError):
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(PycouchError)
    async def pycouch_error_handler(request: Any, exc: PycouchError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})


class PaginationParams:
    """FastAPI dependency for token pagination parameters."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, token: str | None = None):
        self.page_size = min(max(1, page_size), MAX_PAGE_SIZE)
        self.token = token or None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response model for API endpoints."""

    items: list[T]
    page_size: int
    page_number: int
    result_from: int
    result_to: int
    total_results: int
    has_next: bool
    has_previous: bool
    next_token: str | None = None
    previous_token: str | None = None

    @classmethod
    def from_page(cls, page_obj: Page) -> PaginatedResponse:
        return cls(
            items=page_obj.result_list,
            page_size=page_obj.page_size,
            page_number=page_obj.page_number,
            result_from=page_obj.result_from,
            result_to=page_obj.result_to,
            total_results=page_obj.total_results,
            has_next=page_obj.has_next,
            has_previous=page_obj.has_previous,
            next_token=page_obj.next_token,
            previous_token=page_obj.previous_token,
        )
