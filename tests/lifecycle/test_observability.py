import logging

import httpx
import pytest

from pycouch import view
from pycouch.lifecycle.observability import (
    QueryEvent,
    add_listener,
    clear_events,
    disable_tracing,
    enable_tracing,
    get_events,
    remove_listener,
)
from pycouch.utils.exceptions import DocumentNotFound, ExecutorError

BODY = {
    "total_rows": 9,
    "offset": 4,
    "rows": [
        {"id": "a", "key": 1, "value": 1},
        {"id": "b", "key": 2, "value": 2},
    ],
}


@pytest.fixture
def couch(mock_couch):
    mock_couch["handler"] = lambda request: httpx.Response(200, json=BODY)
    return mock_couch


class TestObservability:
    async def test_tracing_disabled_by_default(self, couch):
        await view("example/foo").all()
        assert get_events() == []

    async def test_events_carry_response_details(self, couch):
        enable_tracing(capture_events=True)
        await view("example/foo").limit(2).all()
        (event,) = get_events()
        assert event.view == "_design/example/_view/foo"
        assert event.database == "pycouch_test"
        assert event.method == "GET"
        assert event.params == {"limit": "2"}
        assert event.status_code == 200
        assert event.result_count == 2
        assert event.offset == 4
        assert event.total_rows == 9
        assert event.duration_ms >= 0
        assert not event.failed

    async def test_keys_requests_are_posts(self, couch):
        enable_tracing(capture_events=True)
        await view("_all_docs").keys(["a", "b"]).all()
        (event,) = get_events()
        assert event.method == "POST"
        assert event.view == "_all_docs"

    async def test_paging_direction_is_visible(self, couch):
        enable_tracing(capture_events=True)
        items = view("example/foo")
        first = await items.query_page(1)
        second = await items.query_page(1, first.next_token)
        await items.query_page(1, second.previous_token)
        events = get_events()
        assert [e.descending for e in events] == [False, False, True]
        assert events[0].params == {"limit": "2", "include_docs": "true"}

    async def test_capture_buffer_is_bounded(self, couch):
        enable_tracing(capture_events=True, max_events=2)
        for limit in (1, 2, 3):
            await view("example/foo").limit(limit).all()
        assert [e.params["limit"] for e in get_events()] == ["2", "3"]

    async def test_disable_tracing_clears_state(self, couch):
        enable_tracing(capture_events=True)
        await view("example/foo").all()
        assert len(get_events()) > 0
        disable_tracing()
        assert get_events() == []

    async def test_clear_events(self, couch):
        enable_tracing(capture_events=True)
        await view("example/foo").all()
        clear_events()
        assert get_events() == []

    async def test_slow_query_logs_warning(self, couch, caplog):
        enable_tracing(slow_query_ms=0.0)  # All queries are slow
        with caplog.at_level(logging.WARNING, logger="pycouch"):
            await view("example/foo").all()
        messages = [record.getMessage() for record in caplog.records]
        assert any("Slow view request: GET _design/example/_view/foo" in m for m in messages)
        assert any("status 200, 2 rows" in m for m in messages)

    async def test_listener_receives_events(self, couch):
        received = []

        def listener(event: QueryEvent):
            received.append(event)

        enable_tracing()
        add_listener(listener)
        await view("example/foo").all()
        assert [e.status_code for e in received] == [200]

        remove_listener(listener)
        await view("example/foo").all()
        assert len(received) == 1


class TestFailedRequests:
    async def test_error_status_is_recorded(self, mock_couch):
        mock_couch["handler"] = lambda request: httpx.Response(404, json={"error": "not_found", "reason": "missing"})
        enable_tracing(capture_events=True)
        with pytest.raises(DocumentNotFound):
            await view("example/missing").all()
        (event,) = get_events()
        assert event.status_code == 404
        assert event.result_count is None
        assert event.failed
        assert event.error.startswith("DocumentNotFound")

    async def test_transport_failure_has_no_status(self, mock_couch):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        mock_couch["handler"] = refuse
        enable_tracing(capture_events=True)
        with pytest.raises(ExecutorError):
            await view("example/foo").all()
        (event,) = get_events()
        assert event.status_code is None
        assert "connection refused" in event.error


class TestOpenTelemetry:
    @pytest.fixture
    def exporter(self, monkeypatch):
        pytest.importorskip("opentelemetry.sdk.trace")
        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import SimpleSpanProcessor
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        monkeypatch.setattr(trace, "get_tracer", lambda name, *args, **kwargs: provider.get_tracer(name))
        return exporter

    async def test_span_wraps_the_request(self, couch, exporter):
        seen_during_request = []

        def handler(request):
            from opentelemetry import trace

            seen_during_request.append(trace.get_current_span().is_recording())
            return httpx.Response(200, json=BODY)

        couch["handler"] = handler
        enable_tracing()
        await view("example/foo").all()

        (span,) = exporter.get_finished_spans()
        assert seen_during_request == [True]
        assert span.name == "couchdb GET _design/example/_view/foo"
        assert span.attributes["db.system"] == "couchdb"
        assert span.attributes["db.name"] == "pycouch_test"
        assert span.attributes["http.response.status_code"] == 200
        assert span.attributes["couchdb.result_count"] == 2
        assert span.attributes["couchdb.total_rows"] == 9
        assert span.end_time >= span.start_time

    async def test_failed_request_marks_span(self, mock_couch, exporter):
        from opentelemetry.trace import StatusCode

        mock_couch["handler"] = lambda request: httpx.Response(500, json={"error": "unknown_error"})
        enable_tracing()
        with pytest.raises(ExecutorError):
            await view("example/foo").all()

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR
        assert span.attributes["http.response.status_code"] == 500
