"""Opt-in tracing of CouchDB view requests.

Every request made by :class:`~pycouch.core.executor.HttpViewExecutor` runs
inside :func:`track_query`. While tracing is enabled, each request produces a
:class:`QueryEvent` carrying the HTTP status and the view's ``offset`` and
``total_rows``, which is enough to follow a paging session request by request.
With ``opentelemetry`` installed, the request also runs inside a client span.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

if TYPE_CHECKING:
    from pycouch.core.result import ViewQueryResult

logger = logging.getLogger("pycouch")


@dataclass
class QueryTrace:
    """Response details of an in-flight request, filled in by the executor."""

    status_code: int | None = None
    result_count: int | None = None
    offset: int | None = None
    total_rows: int | None = None

    def record_result(self, result: ViewQueryResult) -> None:
        self.result_count = len(result.rows)
        self.offset = result.offset
        self.total_rows = result.total_rows


@dataclass(frozen=True)
class QueryEvent:
    """One finished view request.

    ``error`` is set when the request raised; response fields stay ``None``
    when no response was received.
    """

    view: str
    database: str
    method: str = "GET"
    params: dict[str, str] = field(default_factory=dict)
    status_code: int | None = None
    duration_ms: float = 0.0
    result_count: int | None = None
    offset: int | None = None
    total_rows: int | None = None
    error: str | None = None

    @property
    def descending(self) -> bool:
        """Whether the view was read backward, as previous-page reads are."""
        return self.params.get("descending") == "true"

    @property
    def failed(self) -> bool:
        return self.error is not None


Listener = Callable[[QueryEvent], Any]


@dataclass
class _Tracing:
    enabled: bool = False
    slow_query_ms: float = 100.0
    listeners: list[Listener] = field(default_factory=list)
    # None unless events are being captured
    events: deque[QueryEvent] | None = None


_tracing = _Tracing()


def enable_tracing(
    slow_query_ms: float = 100.0,
    capture_events: bool = False,
    max_events: int = 1000,
) -> None:
    """Start tracing view requests.

    Args:
        slow_query_ms: Requests slower than this are logged at WARNING
        capture_events: Keep events in memory for :func:`get_events`
        max_events: Capacity of the capture buffer; the oldest events are
            dropped first
    """
    _tracing.enabled = True
    _tracing.slow_query_ms = slow_query_ms
    _tracing.events = deque(maxlen=max_events) if capture_events else None


def disable_tracing() -> None:
    """Stop tracing and forget listeners and captured events."""
    _tracing.enabled = False
    _tracing.slow_query_ms = 100.0
    _tracing.listeners.clear()
    _tracing.events = None


def get_events() -> list[QueryEvent]:
    """Return captured events, oldest first."""
    return list(_tracing.events or ())


def clear_events() -> None:
    if _tracing.events is not None:
        _tracing.events.clear()


def add_listener(callback: Listener) -> None:
    """Call ``callback`` with every QueryEvent while tracing is enabled."""
    _tracing.listeners.append(callback)


def remove_listener(callback: Listener) -> None:
    _tracing.listeners.remove(callback)


def _publish(event: QueryEvent) -> None:
    if _tracing.events is not None:
        _tracing.events.append(event)

    if event.duration_ms > _tracing.slow_query_ms:
        logger.warning(
            "Slow view request: %s %s on %s took %.1fms, status %s, %s rows (threshold: %.1fms)",
            event.method,
            event.view,
            event.database,
            event.duration_ms,
            event.status_code,
            event.result_count,
            _tracing.slow_query_ms,
        )

    for listener in list(_tracing.listeners):
        listener(event)


def _start_span(view: str, database: str, method: str, params: dict[str, str]):
    """Open a client span for the request, or a no-op without opentelemetry."""
    try:
        from opentelemetry import trace
    except ImportError:
        return nullcontext()

    tracer = trace.get_tracer("pycouch")
    return tracer.start_as_current_span(
        f"couchdb {method} {view}",
        kind=trace.SpanKind.CLIENT,
        attributes={
            "db.system": "couchdb",
            "db.name": database,
            "http.request.method": method,
            "couchdb.view": view,
            "couchdb.descending": params.get("descending") == "true",
        },
    )


def _finish_span(span: Any, event: QueryEvent) -> None:
    if span is None:
        return
    if event.status_code is not None:
        span.set_attribute("http.response.status_code", event.status_code)
    for name in ("result_count", "offset", "total_rows"):
        value = getattr(event, name)
        if value is not None:
            span.set_attribute(f"couchdb.{name}", value)


@asynccontextmanager
async def track_query(
    view: str,
    database: str,
    *,
    method: str = "GET",
    params: dict[str, str] | None = None,
) -> AsyncIterator[QueryTrace]:
    """Time one view request and publish a QueryEvent when it ends.

    The yielded QueryTrace is filled in by the caller as the response
    arrives. Exceptions propagate unchanged after being recorded.
    """
    details = QueryTrace()
    if not _tracing.enabled:
        yield details
        return

    params = dict(params or {})
    error = None
    with _start_span(view, database, method, params) as span:
        start = time.perf_counter()
        try:
            yield details
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            raise
        finally:
            event = QueryEvent(
                view=view,
                database=database,
                method=method,
                params=params,
                status_code=details.status_code,
                duration_ms=(time.perf_counter() - start) * 1000,
                result_count=details.result_count,
                offset=details.offset,
                total_rows=details.total_rows,
                error=error,
            )
            _finish_span(span, event)
            _publish(event)
