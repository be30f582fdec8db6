"""View query parameters and the paging parameter builder."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

from pycouch.utils.types import QueryParams


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


# Python field name -> CouchDB query-string name
_QUERY_NAMES: dict[str, str] = {
    "key": "key",
    "start_key": "startkey",
    "start_key_doc_id": "startkey_docid",
    "end_key": "endkey",
    "end_key_doc_id": "endkey_docid",
    "limit": "limit",
    "skip": "skip",
    "descending": "descending",
    "stale": "stale",
    "group": "group",
    "group_level": "group_level",
    "reduce": "reduce",
    "include_docs": "include_docs",
    "inclusive_end": "inclusive_end",
    "update_seq": "update_seq",
}

_STALE_VALUES = ("ok", "update_after")

# Options that fix where a read starts, ends or which rows it covers
_POSITIONAL_OPTIONS = (
    "key",
    "keys",
    "start_key",
    "start_key_doc_id",
    "end_key",
    "end_key_doc_id",
    "skip",
    "inclusive_end",
    "descending",
)


def encode_key(*key: Any) -> str:
    """JSON-encode a view key. Several values form a complex (array) key."""
    value = key[0] if len(key) == 1 else list(key)
    return json.dumps(value, separators=(",", ":"))


@dataclass(frozen=True)
class ViewParams:
    """Immutable set of view query options.

    Keys are held JSON-encoded, exactly as they go on the wire. ``None`` means
    the option is not sent.
    """

    key: str | None = None
    start_key: str | None = None
    start_key_doc_id: str | None = None
    end_key: str | None = None
    end_key_doc_id: str | None = None
    limit: int | None = None
    skip: int | None = None
    descending: bool | None = None
    stale: str | None = None
    group: bool | None = None
    group_level: int | None = None
    reduce: bool | None = None
    include_docs: bool | None = None
    inclusive_end: bool | None = None
    update_seq: bool | None = None
    keys: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be >= 0")
        if self.skip is not None and self.skip < 0:
            raise ValueError("skip must be >= 0")
        if self.stale is not None and self.stale not in _STALE_VALUES:
            raise ValueError(f"stale must be one of {_STALE_VALUES}, got {self.stale!r}")

    def to_query(self) -> QueryParams:
        """Render the options as CouchDB query-string parameters."""
        query: QueryParams = {}
        for f in fields(self):
            if f.name == "keys":
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            query[_QUERY_NAMES[f.name]] = str(value)
        return query

    def with_options(self, **overrides: Any) -> ViewParams:
        return replace(self, **overrides)

    def positional_options(self) -> list[str]:
        """Names of the set options that restrict or order the rows read."""
        return [name for name in _POSITIONAL_OPTIONS if getattr(self, name) is not None]


def build_page_params(
    direction: Direction,
    start_key: Any,
    start_key_doc_id: str | None,
    page_size: int,
    base: ViewParams | None = None,
) -> ViewParams:
    """Build the range query for one page.

    One row more than ``page_size`` is requested so the caller can tell
    whether a further page exists. ``start_key_doc_id`` of ``None`` means
    there is no start position (the first forward page); keys themselves may
    legitimately be ``null``.

    Positional options of ``base`` are replaced (callers reject them first,
    see :meth:`ViewParams.positional_options`); read-consistency and reduce
    options (``stale``, ``update_seq``, ``reduce``, ``group``,
    ``group_level``) are kept.
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    has_start = start_key_doc_id is not None
    return replace(
        base or ViewParams(),
        key=None,
        keys=None,
        start_key=encode_key(start_key) if has_start else None,
        start_key_doc_id=start_key_doc_id if has_start else None,
        end_key=None,
        end_key_doc_id=None,
        inclusive_end=None,
        skip=None,
        limit=page_size + 1,
        descending=True if direction == Direction.BACKWARD else None,
        include_docs=True,
    )
