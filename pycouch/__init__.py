from pycouch.core import (
    Document,
    View,
    view,
    PaginationEngine,
    ViewExecutor,
    HttpViewExecutor,
    ViewParams,
    Row,
    ViewQueryResult,
    PageCursor,
    decode_token,
    encode_token,
    Database,
    connect,
    disconnect,
    get_database,
    get_client,
)
from pycouch.lifecycle import (
    enable_tracing,
    disable_tracing,
    QueryEvent,
    add_listener,
)
from pycouch.integrations import init_app
from pycouch.utils import (
    PycouchError,
    NotConnected,
    InvalidTokenError,
    EmptyResultError,
    ExecutorError,
    DocumentNotFound,
    Page,
)

__all__ = [
    # Core
    "Document",
    "View",
    "view",
    "PaginationEngine",
    "ViewExecutor",
    "HttpViewExecutor",
    "ViewParams",
    "Row",
    "ViewQueryResult",
    "PageCursor",
    "decode_token",
    "encode_token",
    "Database",
    "connect",
    "disconnect",
    "get_database",
    "get_client",
    # Lifecycle
    "enable_tracing",
    "disable_tracing",
    "QueryEvent",
    "add_listener",
    # Integrations
    "init_app",
    # Utils
    "PycouchError",
    "NotConnected",
    "InvalidTokenError",
    "EmptyResultError",
    "ExecutorError",
    "DocumentNotFound",
    "Page",
]
