from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pycouch.core.connection import Database, get_database
from pycouch.core.params import ViewParams
from pycouch.core.result import ViewQueryResult
from pycouch.lifecycle.observability import track_query
from pycouch.utils.exceptions import DocumentNotFound, ExecutorError

logger = logging.getLogger(__name__)


@runtime_checkable
class ViewExecutor(Protocol):
    """Runs one range query against a view."""

    async def query(self, params: ViewParams) -> ViewQueryResult: ...


def view_path(view_id: str) -> str:
    """Resolve a view id to its path below the database.

    ``"design/view"`` maps to ``"_design/design/_view/view"``; ``_all_docs``
    and already-qualified ``_design/...`` paths are used as given.

    Raises:
        ValueError: If the view id is empty, or names neither a design view
            nor a special view
    """
    if not view_id:
        raise ValueError("View id must not be empty")
    if view_id.startswith("_"):
        return view_id
    if "/" not in view_id:
        raise ValueError(
            f"View id {view_id!r} must be 'design/view' or a special view such as '_all_docs'"
        )
    design, _, view = view_id.partition("/")
    return f"_design/{quote(design, safe='')}/_view/{quote(view, safe='')}"


class HttpViewExecutor:
    """ViewExecutor backed by the registered httpx client."""

    def __init__(
        self,
        view_id: str,
        *,
        database: Database | None = None,
        alias: str = "default",
    ) -> None:
        self._path = view_path(view_id)
        self._database = database
        self._alias = alias

    @property
    def database(self) -> Database:
        # Resolved per call so reconnecting under the same alias is picked up
        if self._database is not None:
            return self._database
        return get_database(self._alias)

    async def query(self, params: ViewParams) -> ViewQueryResult:
        db = self.database
        url = f"{db.path}/{self._path}"
        query = params.to_query()
        method = "POST" if params.keys is not None else "GET"

        async with track_query(self._path, db.name, method=method, params=query) as trace:
            try:
                if params.keys is not None:
                    response = await db.client.post(
                        url, params=query, json={"keys": list(params.keys)}
                    )
                else:
                    response = await db.client.get(url, params=query)
            except httpx.HTTPError as e:
                logger.error(f"View request to '{url}' failed: {e}")
                raise ExecutorError(f"Error executing view request: {e}") from e

            trace.status_code = response.status_code
            _raise_for_status(response)

            try:
                result = ViewQueryResult.model_validate_json(response.content)
            except ValidationError as e:
                raise ExecutorError(
                    f"Malformed view response from '{url}': {e}",
                    status_code=response.status_code,
                ) from e
            trace.record_result(result)

        logger.debug(
            "View %s returned %d rows (offset=%d, total_rows=%d)",
            self._path,
            len(result.rows),
            result.offset,
            result.total_rows,
        )
        return result


def _raise_for_status(response: httpx.Response) -> None:
    """Map CouchDB error responses onto library exceptions."""
    if response.is_success:
        return

    error = reason = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        reason = body.get("reason")

    message = f"{response.status_code} {response.reason_phrase}"
    if error or reason:
        message = f"{message}: {error or ''} {reason or ''}".rstrip()

    if response.status_code == 404:
        raise DocumentNotFound(
            message, status_code=response.status_code, error=error, reason=reason
        )
    raise ExecutorError(message, status_code=response.status_code, error=error, reason=reason)
