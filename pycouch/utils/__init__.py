from pycouch.utils.exceptions import (
    PycouchError,
    NotConnected,
    InvalidTokenError,
    EmptyResultError,
    ExecutorError,
    DocumentNotFound,
)
from pycouch.utils.pagination import Page
from pycouch.utils.types import (
    DocumentData,
    QueryParams,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)

__all__ = [
    "PycouchError",
    "NotConnected",
    "InvalidTokenError",
    "EmptyResultError",
    "ExecutorError",
    "DocumentNotFound",
    "Page",
    "DocumentData",
    "QueryParams",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]
