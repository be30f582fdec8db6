from pycouch.core.document import Document, _document_registry
from pycouch.core.view import View, view
from pycouch.core.paginator import PaginationEngine
from pycouch.core.executor import ViewExecutor, HttpViewExecutor
from pycouch.core.params import Direction, ViewParams, build_page_params
from pycouch.core.result import Row, ViewQueryResult
from pycouch.core.tokens import PageAction, PageAnchor, PageCursor, decode_token, encode_token
from pycouch.core.connection import Database, connect, disconnect, get_database, get_client

__all__ = [
    "Document",
    "View",
    "view",
    "PaginationEngine",
    "ViewExecutor",
    "HttpViewExecutor",
    "Direction",
    "ViewParams",
    "build_page_params",
    "Row",
    "ViewQueryResult",
    "PageAction",
    "PageAnchor",
    "PageCursor",
    "decode_token",
    "encode_token",
    "Database",
    "connect",
    "disconnect",
    "get_database",
    "get_client",
    "_document_registry",
]
